"""Ledger read tests against a real database."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from perfin.models import Account, Transaction
from perfin.services.ledger import LedgerService

UTC = timezone.utc
FEB = (datetime(2024, 2, 1, tzinfo=UTC), datetime(2024, 3, 1, tzinfo=UTC))


def ts(month, day, hour=12):
    return datetime(2024, month, day, hour, tzinfo=UTC)


@pytest.fixture
async def ledger(db, session_factory):
    current = Account(name="Current", type="checking", balance=Decimal("2000"), sort_order=0)
    savings = Account(name="Emergency fund", type="savings", balance=Decimal("1800"), sort_order=1)
    brokerage = Account(name="Brokerage", type="investment", balance=Decimal("10200"), sort_order=2)
    db.add_all([current, savings, brokerage])
    await db.flush()

    db.add_all(
        [
            Transaction(account_id=current.id, category_name="Income", amount=Decimal("5000"), occurred_at=ts(2, 1, 0)),
            Transaction(account_id=current.id, category_name="Income", amount=Decimal("4000"), occurred_at=ts(1, 31)),
            Transaction(account_id=current.id, category_name="Groceries", amount=Decimal("-600"), occurred_at=ts(2, 3)),
            Transaction(account_id=current.id, category_name="Groceries", amount=Decimal("25"), occurred_at=ts(2, 4)),
            Transaction(account_id=current.id, category_name="Dining", amount=Decimal("-250"), occurred_at=ts(2, 9)),
            Transaction(account_id=current.id, category_name="Dining", amount=Decimal("-70"), occurred_at=ts(3, 1, 0)),
            Transaction(account_id=current.id, category_name="Transfer", amount=Decimal("-500"), occurred_at=ts(2, 5)),
            Transaction(account_id=savings.id, category_name="Transfer", amount=Decimal("300"), occurred_at=ts(2, 5)),
            Transaction(account_id=brokerage.id, category_name="Transfer", amount=Decimal("200"), occurred_at=ts(2, 5)),
            Transaction(account_id=savings.id, category_name="Transfer", amount=Decimal("100"), occurred_at=ts(1, 20)),
        ]
    )
    await db.commit()
    return LedgerService(session_factory)


async def test_fetch_spend_sums_absolute_amounts_in_window(ledger):
    spent = await ledger.fetch_spend(["Groceries", "Dining"], *FEB)
    # the Dining row at exactly 1 March is outside the half-open window
    assert spent == Decimal("875.00")


async def test_fetch_spend_without_categories(ledger):
    assert await ledger.fetch_spend([], *FEB) == Decimal("0")


async def test_fetch_income_includes_window_start(ledger):
    assert await ledger.fetch_income_for_period(*FEB) == Decimal("5000.00")


async def test_spending_by_category_excludes_income_and_transfers(ledger):
    spending = await ledger.fetch_spending_by_category(*FEB)
    assert spending == {"Groceries": Decimal("-575.00"), "Dining": Decimal("-250.00")}


async def test_savings_flow(ledger):
    flow = await ledger.fetch_savings_for_period(*FEB)
    assert flow.by_account == {"Emergency fund": Decimal("300.00"), "Brokerage": Decimal("200.00")}


async def test_load_accounts_in_display_order(ledger):
    accounts = await ledger.load_accounts()
    assert [a.name for a in accounts] == ["Current", "Emergency fund", "Brokerage"]
    assert accounts[1].balance == Decimal("1800.00")
