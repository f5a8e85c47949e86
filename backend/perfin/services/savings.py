"""Savings goal tracking for savings and investment accounts.

Money moved into an account this month is approximated by the balance delta
since the 1st of the month. Withdrawals make the delta (and the displayed
progress) negative; only the upper side is clamped.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Mapping

from perfin.services.snapshots import ZERO, AccountSnapshot

ACCOUNT_SAVINGS = "savings"
ACCOUNT_INVESTMENT = "investment"
SAVINGS_ACCOUNT_TYPES = (ACCOUNT_SAVINGS, ACCOUNT_INVESTMENT)

MAX_PROGRESS = 100.0


@dataclass(frozen=True)
class AccountSavingsBreakdown:
    account: AccountSnapshot
    saved_this_month: Decimal
    goal: Decimal | None
    progress_percent: float


@dataclass(frozen=True)
class SavingsSummary:
    this_month_savings: Decimal
    this_month_investments: Decimal
    total_saved_this_month: Decimal
    monthly_savings_target: Decimal
    goal_progress: float
    savings_goal_total: Decimal
    accounts: tuple[AccountSavingsBreakdown, ...]

    @property
    def has_savings_accounts(self) -> bool:
        return bool(self.accounts)


def progress_toward(saved: Decimal, goal: Decimal | None) -> float:
    if goal is None or goal <= ZERO:
        return 0.0
    return min(float(saved / goal * 100), MAX_PROGRESS)


def compute_account_savings(
    accounts: Iterable[AccountSnapshot],
    month_start_balances: Mapping[str, Decimal],
) -> list[AccountSavingsBreakdown]:
    """Per-account breakdown, keyed on account name like the ledger's flows.

    An account with no recorded month-start balance is treated as unchanged.
    """
    breakdown = []
    for account in accounts:
        if account.type not in SAVINGS_ACCOUNT_TYPES:
            continue
        start_balance = month_start_balances.get(account.name, account.balance)
        saved = account.balance - start_balance
        breakdown.append(
            AccountSavingsBreakdown(
                account=account,
                saved_this_month=saved,
                goal=account.monthly_savings_goal,
                progress_percent=progress_toward(saved, account.monthly_savings_goal),
            )
        )
    return breakdown


def summarize_savings(
    breakdown: Iterable[AccountSavingsBreakdown], monthly_savings_target: Decimal
) -> SavingsSummary:
    breakdown = tuple(breakdown)
    savings = sum(
        (b.saved_this_month for b in breakdown if b.account.type == ACCOUNT_SAVINGS), ZERO
    )
    investments = sum(
        (b.saved_this_month for b in breakdown if b.account.type == ACCOUNT_INVESTMENT), ZERO
    )
    total = savings + investments
    return SavingsSummary(
        this_month_savings=savings,
        this_month_investments=investments,
        total_saved_this_month=total,
        monthly_savings_target=monthly_savings_target,
        goal_progress=progress_toward(total, monthly_savings_target),
        savings_goal_total=sum((b.goal for b in breakdown if b.goal is not None), ZERO),
        accounts=breakdown,
    )
