"""Budget refresh cycle.

``BudgetEngine`` turns one Budget Store snapshot plus concurrent Ledger reads
into a ``BudgetOverview``. ``RefreshCoordinator`` sits in front of it and
keeps the last published overview: results from a refresh that has been
superseded by a newer one are dropped, and a failed refresh leaves the
previous overview in place while reporting the failure.
"""

import asyncio
import itertools
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Awaitable, Callable

import structlog

from perfin.services.allocation import (
    AllocationSummary,
    BudgetWithSpent,
    CategoryBudgetStatus,
    build_budget_with_spent,
    resolve_category_budgets,
    resolve_effective_income,
    summarize_allocations,
)
from perfin.services.ledger import Ledger
from perfin.services.periods import PeriodWindow, calendar_month, resolve_period
from perfin.services.savings import (
    SavingsSummary,
    compute_account_savings,
    summarize_savings,
)
from perfin.services.snapshots import ZERO, IncomeSettingsSnapshot, StoreSnapshot

logger = structlog.get_logger()


@dataclass(frozen=True)
class BudgetOverview:
    token: int
    computed_at: datetime
    income_window: PeriodWindow
    dynamic_income: Decimal
    effective_income: Decimal
    budgets: tuple[BudgetWithSpent, ...]
    summary: AllocationSummary


@dataclass(frozen=True)
class RefreshOutcome:
    overview: BudgetOverview | None
    token: int
    failed: bool = False
    superseded: bool = False
    error: str | None = None


class BudgetEngine:
    def __init__(self, ledger: Ledger):
        self.ledger = ledger

    async def compute_overview(
        self, snapshot: StoreSnapshot, now: datetime, token: int = 0
    ) -> BudgetOverview:
        """Derive spent/limit/usage for every budget in ``snapshot``.

        The income fetch and all per-budget spend fetches run concurrently.
        Ledger errors propagate unchanged.
        """
        income_window = calendar_month(now)
        windows = [
            resolve_period(b.period_type, b.custom_start_date, b.custom_end_date, now)
            for b in snapshot.budgets
        ]
        owned = [snapshot.categories_for(b.id) for b in snapshot.budgets]

        dynamic_income, *spent = await asyncio.gather(
            self.ledger.fetch_income_for_period(income_window.start, income_window.end),
            *(
                self.ledger.fetch_spend([c.category_name for c in categories], window.start, window.end)
                for categories, window in zip(owned, windows)
            ),
        )

        effective_income = resolve_effective_income(snapshot.income_settings, dynamic_income)
        budgets = tuple(
            build_budget_with_spent(budget, categories, window, budget_spent, effective_income)
            for budget, categories, window, budget_spent in zip(snapshot.budgets, owned, windows, spent)
        )
        return BudgetOverview(
            token=token,
            computed_at=now,
            income_window=income_window,
            dynamic_income=dynamic_income,
            effective_income=effective_income,
            budgets=budgets,
            summary=summarize_allocations(budgets, effective_income),
        )

    async def compute_effective_income(
        self, income_settings: IncomeSettingsSnapshot, now: datetime
    ) -> tuple[Decimal, Decimal]:
        """Return ``(dynamic_income, effective_income)`` for the calendar month."""
        window = calendar_month(now)
        dynamic_income = await self.ledger.fetch_income_for_period(window.start, window.end)
        return dynamic_income, resolve_effective_income(income_settings, dynamic_income)

    async def compute_category_budgets(
        self, snapshot: StoreSnapshot, now: datetime
    ) -> list[CategoryBudgetStatus]:
        window = calendar_month(now)
        dynamic_income, spending = await asyncio.gather(
            self.ledger.fetch_income_for_period(window.start, window.end),
            self.ledger.fetch_spending_by_category(window.start, window.end),
        )
        effective_income = resolve_effective_income(snapshot.income_settings, dynamic_income)
        return resolve_category_budgets(snapshot.categories, spending, effective_income)

    async def compute_savings(
        self, income_settings: IncomeSettingsSnapshot, now: datetime
    ) -> SavingsSummary:
        """Savings progress for the calendar month containing ``now``.

        The month-start balance of each account is its current balance minus
        the net flow recorded on it since the 1st.
        """
        window = calendar_month(now)
        accounts, flow = await asyncio.gather(
            self.ledger.load_accounts(),
            self.ledger.fetch_savings_for_period(window.start, window.end),
        )
        month_start_balances = {
            acc.name: acc.balance - flow.by_account.get(acc.name, ZERO) for acc in accounts
        }
        breakdown = compute_account_savings(accounts, month_start_balances)
        return summarize_savings(breakdown, income_settings.monthly_savings_target)


class RefreshCoordinator:
    """Publishes the overview of the most recent refresh only."""

    def __init__(self):
        self._tokens = itertools.count(1)
        self._latest_token = 0
        self._published: BudgetOverview | None = None

    @property
    def published(self) -> BudgetOverview | None:
        return self._published

    @property
    def latest_token(self) -> int:
        return self._latest_token

    def invalidate(self) -> int:
        """Mark every in-flight refresh as stale (e.g. after an income edit)."""
        self._latest_token = next(self._tokens)
        return self._latest_token

    async def refresh(
        self,
        engine: BudgetEngine,
        load_snapshot: Callable[[], Awaitable[StoreSnapshot]],
        now: datetime,
    ) -> RefreshOutcome:
        token = self.invalidate()
        log = logger.bind(token=token)
        try:
            snapshot = await load_snapshot()
            overview = await engine.compute_overview(snapshot, now, token=token)
        except Exception as exc:
            log.warning("budget refresh failed", error=str(exc), exc_type=type(exc).__name__)
            return RefreshOutcome(
                overview=self._published, token=token, failed=True, error=str(exc)
            )

        if token != self._latest_token:
            # Not published; with nothing published yet the caller still gets its own result
            log.info("budget refresh superseded", latest_token=self._latest_token)
            return RefreshOutcome(
                overview=self._published or overview, token=token, superseded=True
            )

        self._published = overview
        log.info(
            "budget refresh published",
            budgets=len(overview.budgets),
            effective_income=str(overview.effective_income),
        )
        return RefreshOutcome(overview=overview, token=token)
