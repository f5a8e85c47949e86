"""Ledger reads: spend, income and savings flows over a time window.

Every read opens its own session from the factory so the engine can run
them concurrently; an ``AsyncSession`` must never be shared between tasks.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Protocol

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from perfin.config import settings
from perfin.models.account import Account
from perfin.models.transaction import Transaction
from perfin.services.savings import SAVINGS_ACCOUNT_TYPES
from perfin.services.snapshots import ZERO, AccountSnapshot, to_decimal


@dataclass(frozen=True)
class SavingsFlow:
    by_account: dict[str, Decimal] = field(default_factory=dict)


class Ledger(Protocol):
    """Source of transactions and balances consumed by the budget engine."""

    async def fetch_spend(
        self, category_names: Iterable[str], start: datetime, end: datetime
    ) -> Decimal:  # pragma: no cover - interface
        ...

    async def fetch_income_for_period(
        self, start: datetime, end: datetime
    ) -> Decimal:  # pragma: no cover - interface
        ...

    async def fetch_spending_by_category(
        self, start: datetime, end: datetime
    ) -> dict[str, Decimal]:  # pragma: no cover - interface
        ...

    async def fetch_savings_for_period(
        self, start: datetime, end: datetime
    ) -> SavingsFlow:  # pragma: no cover - interface
        ...

    async def load_accounts(self) -> list[AccountSnapshot]:  # pragma: no cover - interface
        ...


class LedgerService:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        income_category: str = settings.income_category_name,
        transfer_category: str = settings.transfer_category_name,
    ):
        self.session_factory = session_factory
        self.income_category = income_category
        self.transfer_category = transfer_category

    @staticmethod
    def _window(start: datetime, end: datetime) -> list:
        return [Transaction.occurred_at >= start, Transaction.occurred_at < end]

    async def fetch_spend(
        self, category_names: Iterable[str], start: datetime, end: datetime
    ) -> Decimal:
        """Sum of |amount| for transactions in the given categories and window."""
        names = sorted(set(category_names))
        if not names:
            return ZERO

        query = select(func.coalesce(func.sum(func.abs(Transaction.amount)), 0)).where(
            Transaction.category_name.in_(names),
            *self._window(start, end),
        )
        async with self.session_factory() as session:
            result = await session.execute(query)
            return to_decimal(result.scalar())

    async def fetch_income_for_period(self, start: datetime, end: datetime) -> Decimal:
        query = select(func.coalesce(func.sum(Transaction.amount), 0)).where(
            Transaction.category_name == self.income_category,
            *self._window(start, end),
        )
        async with self.session_factory() as session:
            result = await session.execute(query)
            return to_decimal(result.scalar())

    async def fetch_spending_by_category(self, start: datetime, end: datetime) -> dict[str, Decimal]:
        """Signed totals per category, income and transfers excluded."""
        query = (
            select(Transaction.category_name, func.sum(Transaction.amount).label("total"))
            .where(
                Transaction.category_name.not_in([self.income_category, self.transfer_category]),
                *self._window(start, end),
            )
            .group_by(Transaction.category_name)
        )
        async with self.session_factory() as session:
            result = await session.execute(query)
            return {row.category_name: to_decimal(row.total) for row in result.all()}

    async def fetch_savings_for_period(self, start: datetime, end: datetime) -> SavingsFlow:
        """Net flow into savings and investment accounts, keyed by account name."""
        query = (
            select(Account.name, func.coalesce(func.sum(Transaction.amount), 0).label("total"))
            .join(Transaction, Transaction.account_id == Account.id)
            .where(Account.type.in_(SAVINGS_ACCOUNT_TYPES), *self._window(start, end))
            .group_by(Account.name)
        )
        async with self.session_factory() as session:
            result = await session.execute(query)
            return SavingsFlow(by_account={row.name: to_decimal(row.total) for row in result.all()})

    async def load_accounts(self) -> list[AccountSnapshot]:
        async with self.session_factory() as session:
            result = await session.execute(select(Account).order_by(Account.sort_order, Account.id))
            return [AccountSnapshot.from_model(acc) for acc in result.scalars().all()]
