"""Immutable read models handed to the budget engine.

The engine never touches ORM rows: the Budget Store and the Ledger copy what
they load into these frozen dataclasses, so one refresh works on a fixed
snapshot no matter what the database does afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

ZERO = Decimal("0")
CENT = Decimal("0.01")


def to_decimal(value) -> Decimal:
    """Coerce a driver value (Decimal, float, int or None) to a cent Decimal."""
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT)


@dataclass(frozen=True)
class BudgetSnapshot:
    id: int
    name: str
    color: str
    amount_type: str
    amount: Decimal
    period_type: str
    custom_start_date: date | None = None
    custom_end_date: date | None = None
    sort_order: int = 0

    @classmethod
    def from_model(cls, budget) -> BudgetSnapshot:
        return cls(
            id=budget.id,
            name=budget.name,
            color=budget.color,
            amount_type=budget.amount_type,
            amount=to_decimal(budget.amount),
            period_type=budget.period_type,
            custom_start_date=budget.custom_start_date,
            custom_end_date=budget.custom_end_date,
            sort_order=budget.sort_order,
        )


@dataclass(frozen=True)
class CategorySnapshot:
    id: int
    category_name: str
    budget_id: int | None = None
    budget_amount: Decimal | None = None
    budget_percentage: Decimal | None = None
    sort_order: int = 0

    @classmethod
    def from_model(cls, category) -> CategorySnapshot:
        return cls(
            id=category.id,
            category_name=category.category_name,
            budget_id=category.budget_id,
            budget_amount=(
                to_decimal(category.budget_amount) if category.budget_amount is not None else None
            ),
            budget_percentage=(
                to_decimal(category.budget_percentage)
                if category.budget_percentage is not None
                else None
            ),
            sort_order=category.sort_order,
        )


@dataclass(frozen=True)
class IncomeSettingsSnapshot:
    use_dynamic_income: bool = True
    manual_income: Decimal = ZERO
    monthly_savings_target: Decimal = ZERO

    @classmethod
    def from_model(cls, income_settings) -> IncomeSettingsSnapshot:
        return cls(
            use_dynamic_income=income_settings.use_dynamic_income,
            manual_income=to_decimal(income_settings.manual_income),
            monthly_savings_target=to_decimal(income_settings.monthly_savings_target),
        )


@dataclass(frozen=True)
class AccountSnapshot:
    id: int
    name: str
    type: str
    balance: Decimal
    monthly_savings_goal: Decimal | None = None

    @classmethod
    def from_model(cls, account) -> AccountSnapshot:
        return cls(
            id=account.id,
            name=account.name,
            type=account.type,
            balance=to_decimal(account.balance),
            monthly_savings_goal=(
                to_decimal(account.monthly_savings_goal)
                if account.monthly_savings_goal is not None
                else None
            ),
        )


@dataclass(frozen=True)
class StoreSnapshot:
    """Everything the Budget Store contributes to one refresh."""

    budgets: tuple[BudgetSnapshot, ...] = ()
    categories: tuple[CategorySnapshot, ...] = ()
    income_settings: IncomeSettingsSnapshot = field(default_factory=IncomeSettingsSnapshot)

    def categories_for(self, budget_id: int) -> tuple[CategorySnapshot, ...]:
        return tuple(c for c in self.categories if c.budget_id == budget_id)
