"""Income, limit and allocation derivation for budgets.

Pure functions only: every figure here is computed from values already
fetched by the engine, so the same inputs always give the same snapshot.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Mapping

from perfin.services.periods import PeriodWindow
from perfin.services.snapshots import (
    CENT,
    ZERO,
    BudgetSnapshot,
    CategorySnapshot,
    IncomeSettingsSnapshot,
)

AMOUNT_FIXED = "fixed"
AMOUNT_PERCENTAGE = "percentage"

STATUS_ON_TRACK = "on_track"
STATUS_WARNING = "warning"
STATUS_OVER = "over"

WARNING_THRESHOLD = 80.0
OVER_THRESHOLD = 100.0

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class BudgetWithSpent:
    budget: BudgetSnapshot
    categories: tuple[CategorySnapshot, ...]
    period: PeriodWindow
    spent: Decimal
    limit: Decimal
    percentage_used: float
    status: str


@dataclass(frozen=True)
class AllocationSummary:
    effective_income: Decimal
    total_allocated_percentage: Decimal
    total_allocated_currency: Decimal
    unallocated_percentage: float
    total_spent: Decimal
    total_limit: Decimal
    total_percentage_used: float
    total_status: str


@dataclass(frozen=True)
class CategoryBudgetStatus:
    category: CategorySnapshot
    budget_amount: Decimal
    spent: Decimal
    percentage_used: float
    status: str


def resolve_effective_income(settings: IncomeSettingsSnapshot, dynamic_income: Decimal) -> Decimal:
    """Pick the income baseline for percentage budgets."""
    return dynamic_income if settings.use_dynamic_income else settings.manual_income


def resolve_budget_limit(amount_type: str, amount: Decimal, effective_income: Decimal) -> Decimal:
    """Concrete spending limit for a budget's current period.

    A percentage of a non-positive income is zero, not an error.
    """
    if amount_type != AMOUNT_PERCENTAGE:
        return amount
    if effective_income <= ZERO:
        return ZERO
    return (amount / HUNDRED * effective_income).quantize(CENT, rounding=ROUND_HALF_UP)


def compute_percentage_used(spent: Decimal, limit: Decimal) -> float:
    if limit <= ZERO:
        return 0.0
    return float(spent / limit * HUNDRED)


def classify_status(percentage_used: float) -> str:
    if percentage_used >= OVER_THRESHOLD:
        return STATUS_OVER
    if percentage_used >= WARNING_THRESHOLD:
        return STATUS_WARNING
    return STATUS_ON_TRACK


def build_budget_with_spent(
    budget: BudgetSnapshot,
    categories: Iterable[CategorySnapshot],
    period: PeriodWindow,
    spent: Decimal,
    effective_income: Decimal,
) -> BudgetWithSpent:
    limit = resolve_budget_limit(budget.amount_type, budget.amount, effective_income)
    percentage_used = compute_percentage_used(spent, limit)
    return BudgetWithSpent(
        budget=budget,
        categories=tuple(categories),
        period=period,
        spent=spent,
        limit=limit,
        percentage_used=percentage_used,
        status=classify_status(percentage_used),
    )


def summarize_allocations(
    budgets: Iterable[BudgetWithSpent], effective_income: Decimal
) -> AllocationSummary:
    """Portfolio figures across all budgets.

    ``total_allocated_percentage`` only counts percentage budgets (it is a sum
    of percentage points); ``total_allocated_currency`` counts every resolved
    limit.
    """
    budgets = list(budgets)
    total_percentage = sum(
        (b.budget.amount for b in budgets if b.budget.amount_type == AMOUNT_PERCENTAGE), ZERO
    )
    total_limit = sum((b.limit for b in budgets), ZERO)
    total_spent = sum((b.spent for b in budgets), ZERO)

    if effective_income > ZERO:
        unallocated = max(float(HUNDRED - total_limit / effective_income * HUNDRED), 0.0)
    else:
        unallocated = 0.0

    total_percentage_used = compute_percentage_used(total_spent, total_limit)
    return AllocationSummary(
        effective_income=effective_income,
        total_allocated_percentage=total_percentage,
        total_allocated_currency=total_limit,
        unallocated_percentage=unallocated,
        total_spent=total_spent,
        total_limit=total_limit,
        total_percentage_used=total_percentage_used,
        total_status=classify_status(total_percentage_used),
    )


def resolve_category_budgets(
    categories: Iterable[CategorySnapshot],
    spending_by_category: Mapping[str, Decimal],
    effective_income: Decimal,
) -> list[CategoryBudgetStatus]:
    """Status of categories that carry their own amount or percentage budget.

    A percentage wins over a stored amount and is rounded to whole currency
    units.
    """
    results = []
    for category in categories:
        has_percentage = category.budget_percentage is not None and category.budget_percentage > ZERO
        has_amount = category.budget_amount is not None and category.budget_amount > ZERO
        if not (has_percentage or has_amount):
            continue

        if has_percentage:
            budget_amount = (category.budget_percentage / HUNDRED * effective_income).quantize(
                Decimal("1"), rounding=ROUND_HALF_UP
            )
        else:
            budget_amount = category.budget_amount
        spent = abs(spending_by_category.get(category.category_name, ZERO))
        percentage_used = compute_percentage_used(spent, budget_amount)
        results.append(
            CategoryBudgetStatus(
                category=category,
                budget_amount=budget_amount,
                spent=spent,
                percentage_used=percentage_used,
                status=classify_status(percentage_used),
            )
        )
    return results
