"""Budget engine and refresh coordinator tests."""

import asyncio
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from perfin.services.budget_engine import BudgetEngine, RefreshCoordinator
from perfin.services.ledger import SavingsFlow
from perfin.services.snapshots import (
    ZERO,
    AccountSnapshot,
    BudgetSnapshot,
    CategorySnapshot,
    IncomeSettingsSnapshot,
    StoreSnapshot,
)

UTC = timezone.utc
NOW = datetime(2024, 2, 10, 12, tzinfo=UTC)


class FakeLedger:
    """In-memory ledger over (category, amount, occurred_at) rows."""

    def __init__(self, rows=(), accounts=(), flows=None, error=None):
        self.rows = list(rows)
        self.accounts = list(accounts)
        self.flows = flows or {}
        self.error = error
        self.calls = []

    async def _enter(self, name):
        self.calls.append(name)
        if self.error is not None:
            raise self.error

    async def fetch_spend(self, category_names, start, end):
        await self._enter("spend")
        names = set(category_names)
        return sum(
            (abs(amount) for cat, amount, ts in self.rows if cat in names and start <= ts < end),
            ZERO,
        )

    async def fetch_income_for_period(self, start, end):
        await self._enter("income")
        return sum(
            (amount for cat, amount, ts in self.rows if cat == "Income" and start <= ts < end), ZERO
        )

    async def fetch_spending_by_category(self, start, end):
        await self._enter("by_category")
        totals = {}
        for cat, amount, ts in self.rows:
            if cat not in ("Income", "Transfer") and start <= ts < end:
                totals[cat] = totals.get(cat, ZERO) + amount
        return totals

    async def fetch_savings_for_period(self, start, end):
        await self._enter("savings")
        return SavingsFlow(by_account=dict(self.flows))

    async def load_accounts(self):
        await self._enter("accounts")
        return self.accounts


class BarrierLedger(FakeLedger):
    """Every read waits until ``expected`` reads are in flight at once."""

    def __init__(self, expected, **kwargs):
        super().__init__(**kwargs)
        self.expected = expected
        self.all_started = asyncio.Event()

    async def _enter(self, name):
        await super()._enter(name)
        if len(self.calls) >= self.expected:
            self.all_started.set()
        await asyncio.wait_for(self.all_started.wait(), timeout=1)


class GatedLedger(FakeLedger):
    """Blocks the income read until the gate opens."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.entered = asyncio.Event()
        self.gate = asyncio.Event()

    async def fetch_income_for_period(self, start, end):
        self.entered.set()
        await self.gate.wait()
        return await super().fetch_income_for_period(start, end)


def ts(day, month=2):
    return datetime(2024, month, day, 12, tzinfo=UTC)


def make_snapshot(income_settings=None) -> StoreSnapshot:
    return StoreSnapshot(
        budgets=(
            BudgetSnapshot(
                id=1,
                name="Food",
                color="#22c55e",
                amount_type="percentage",
                amount=Decimal("20"),
                period_type="monthly",
            ),
            BudgetSnapshot(
                id=2,
                name="Fun",
                color="#f97316",
                amount_type="fixed",
                amount=Decimal("100"),
                period_type="weekly",
                sort_order=1,
            ),
            BudgetSnapshot(
                id=3,
                name="Travel",
                color="#0ea5e9",
                amount_type="fixed",
                amount=Decimal("400"),
                period_type="custom",
                custom_start_date=date(2024, 1, 1),
                custom_end_date=date(2024, 1, 15),
                sort_order=2,
            ),
        ),
        categories=(
            CategorySnapshot(id=10, category_name="Groceries", budget_id=1),
            CategorySnapshot(id=11, category_name="Dining", budget_id=1),
            CategorySnapshot(id=12, category_name="Subscriptions", budget_id=2),
            CategorySnapshot(id=13, category_name="Travel", budget_id=3),
            CategorySnapshot(id=14, category_name="Rent"),
        ),
        income_settings=income_settings or IncomeSettingsSnapshot(),
    )


ROWS = [
    ("Income", Decimal("5000"), ts(1)),
    ("Income", Decimal("4000"), ts(28, month=1)),
    ("Groceries", Decimal("-600"), ts(3)),
    ("Dining", Decimal("-250"), ts(9)),
    ("Groceries", Decimal("-999"), ts(31, month=1)),
    ("Subscriptions", Decimal("-30"), ts(4)),  # previous week
    ("Subscriptions", Decimal("-85"), ts(6)),
    ("Travel", Decimal("-120"), ts(28, month=1)),  # before the current cycle
    ("Travel", Decimal("-300"), ts(2)),
    ("Rent", Decimal("-1500"), ts(1)),
]


def load(snapshot):
    async def _load():
        return snapshot

    return _load


class TestComputeOverview:
    async def test_spent_limits_and_statuses(self):
        engine = BudgetEngine(FakeLedger(rows=ROWS))
        overview = await engine.compute_overview(make_snapshot(), NOW, token=7)

        assert overview.token == 7
        assert overview.dynamic_income == Decimal("5000")
        assert overview.effective_income == Decimal("5000")

        food, fun, travel = overview.budgets
        assert food.limit == Decimal("1000.00")
        assert food.spent == Decimal("850")
        assert food.status == "warning"

        assert fun.period.start == datetime(2024, 2, 5, tzinfo=UTC)
        assert fun.spent == Decimal("85")
        assert fun.status == "warning"

        assert travel.period.start == datetime(2024, 1, 29, tzinfo=UTC)
        assert travel.spent == Decimal("300")
        assert travel.percentage_used == 75.0
        assert travel.status == "on_track"

        assert overview.summary.total_allocated_percentage == Decimal("20")
        assert overview.summary.total_limit == Decimal("1500.00")

    async def test_manual_income_drives_percentage_limits(self):
        settings = IncomeSettingsSnapshot(use_dynamic_income=False, manual_income=Decimal("4000"))
        engine = BudgetEngine(FakeLedger(rows=ROWS))
        overview = await engine.compute_overview(make_snapshot(settings), NOW)

        assert overview.dynamic_income == Decimal("5000")
        assert overview.effective_income == Decimal("4000")
        assert overview.budgets[0].limit == Decimal("800.00")

    async def test_budget_without_categories_has_no_spend(self):
        snapshot = StoreSnapshot(
            budgets=(
                BudgetSnapshot(
                    id=1, name="Empty", color="#000000", amount_type="fixed",
                    amount=Decimal("50"), period_type="monthly",
                ),
            ),
        )
        overview = await BudgetEngine(FakeLedger(rows=ROWS)).compute_overview(snapshot, NOW)
        assert overview.budgets[0].spent == ZERO
        assert overview.budgets[0].status == "on_track"

    async def test_ledger_reads_run_concurrently(self):
        # one income read plus one spend read per budget
        ledger = BarrierLedger(expected=4, rows=ROWS)
        overview = await BudgetEngine(ledger).compute_overview(make_snapshot(), NOW)
        assert sorted(ledger.calls) == ["income", "spend", "spend", "spend"]
        assert len(overview.budgets) == 3

    async def test_ledger_errors_propagate(self):
        engine = BudgetEngine(FakeLedger(error=ConnectionError("ledger down")))
        with pytest.raises(ConnectionError):
            await engine.compute_overview(make_snapshot(), NOW)


async def test_compute_category_budgets():
    snapshot = StoreSnapshot(
        categories=(
            CategorySnapshot(id=1, category_name="Rent", budget_amount=Decimal("1500")),
            CategorySnapshot(id=2, category_name="Dining", budget_percentage=Decimal("10")),
            CategorySnapshot(id=3, category_name="Groceries"),
        ),
    )
    statuses = await BudgetEngine(FakeLedger(rows=ROWS)).compute_category_budgets(snapshot, NOW)

    rent, dining = statuses
    assert rent.status == "over"
    assert dining.budget_amount == Decimal("500")
    assert dining.spent == Decimal("250")
    assert dining.percentage_used == 50.0


async def test_compute_savings_uses_month_flow_for_start_balance():
    ledger = FakeLedger(
        accounts=[
            AccountSnapshot(id=1, name="Current", type="checking", balance=Decimal("2000")),
            AccountSnapshot(
                id=2,
                name="Emergency fund",
                type="savings",
                balance=Decimal("1800"),
                monthly_savings_goal=Decimal("500"),
            ),
        ],
        flows={"Emergency fund": Decimal("300")},
    )
    settings = IncomeSettingsSnapshot(monthly_savings_target=Decimal("600"))
    summary = await BudgetEngine(ledger).compute_savings(settings, NOW)

    [item] = summary.accounts
    assert item.saved_this_month == Decimal("300")
    assert item.progress_percent == 60.0
    assert summary.goal_progress == 50.0


async def test_compute_effective_income():
    settings = IncomeSettingsSnapshot(use_dynamic_income=True)
    dynamic, effective = await BudgetEngine(FakeLedger(rows=ROWS)).compute_effective_income(
        settings, NOW
    )
    assert dynamic == effective == Decimal("5000")


class TestRefreshCoordinator:
    async def test_publishes_latest_refresh(self):
        coordinator = RefreshCoordinator()
        outcome = await coordinator.refresh(
            BudgetEngine(FakeLedger(rows=ROWS)), load(make_snapshot()), NOW
        )

        assert not outcome.failed
        assert not outcome.superseded
        assert outcome.token == coordinator.latest_token == 1
        assert coordinator.published is outcome.overview

    async def test_failed_refresh_keeps_previous_overview(self):
        coordinator = RefreshCoordinator()
        first = await coordinator.refresh(
            BudgetEngine(FakeLedger(rows=ROWS)), load(make_snapshot()), NOW
        )
        failed = await coordinator.refresh(
            BudgetEngine(FakeLedger(error=ConnectionError("ledger down"))),
            load(make_snapshot()),
            NOW,
        )

        assert failed.failed
        assert failed.error == "ledger down"
        assert failed.overview is first.overview
        assert coordinator.published is first.overview

    async def test_failure_with_nothing_published(self):
        async def broken_store():
            raise RuntimeError("store unavailable")

        coordinator = RefreshCoordinator()
        outcome = await coordinator.refresh(BudgetEngine(FakeLedger()), broken_store, NOW)
        assert outcome.failed
        assert outcome.overview is None

    async def test_stale_refresh_is_dropped(self):
        coordinator = RefreshCoordinator()
        slow = GatedLedger(rows=ROWS)
        stale_task = asyncio.create_task(
            coordinator.refresh(BudgetEngine(slow), load(make_snapshot()), NOW)
        )
        await slow.entered.wait()

        settings = IncomeSettingsSnapshot(use_dynamic_income=False, manual_income=Decimal("4000"))
        fresh = await coordinator.refresh(
            BudgetEngine(FakeLedger(rows=ROWS)), load(make_snapshot(settings)), NOW
        )
        slow.gate.set()
        stale = await stale_task

        assert stale.superseded
        assert stale.token < fresh.token
        assert stale.overview is fresh.overview
        assert coordinator.published.effective_income == Decimal("4000")

    async def test_invalidate_discards_in_flight_refresh(self):
        coordinator = RefreshCoordinator()
        slow = GatedLedger(rows=ROWS)
        task = asyncio.create_task(
            coordinator.refresh(BudgetEngine(slow), load(make_snapshot()), NOW)
        )
        await slow.entered.wait()
        coordinator.invalidate()
        slow.gate.set()
        outcome = await task

        assert outcome.superseded
        assert coordinator.published is None
        # the caller still gets its own result while nothing is published
        assert outcome.overview is not None
        assert outcome.overview.token == outcome.token

    async def test_older_refresh_finishing_first_on_cold_start(self):
        coordinator = RefreshCoordinator()
        older_ledger = GatedLedger(rows=ROWS)
        newer_ledger = GatedLedger(rows=ROWS)
        older = asyncio.create_task(
            coordinator.refresh(BudgetEngine(older_ledger), load(make_snapshot()), NOW)
        )
        await older_ledger.entered.wait()
        settings = IncomeSettingsSnapshot(use_dynamic_income=False, manual_income=Decimal("4000"))
        newer = asyncio.create_task(
            coordinator.refresh(BudgetEngine(newer_ledger), load(make_snapshot(settings)), NOW)
        )
        await newer_ledger.entered.wait()

        older_ledger.gate.set()
        older_outcome = await older
        assert older_outcome.superseded
        assert not older_outcome.failed
        assert older_outcome.overview.effective_income == Decimal("5000")
        assert coordinator.published is None

        newer_ledger.gate.set()
        newer_outcome = await newer
        assert not newer_outcome.superseded
        assert coordinator.published is newer_outcome.overview
        assert coordinator.published.effective_income == Decimal("4000")
