"""Transaction recording service (ledger write side)."""

from datetime import datetime, timezone

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from perfin.models.transaction import Transaction
from perfin.schemas.transaction import TransactionCreate
from perfin.services.account_service import AccountService

logger = structlog.get_logger()


class TransactionService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_transaction(self, data: TransactionCreate, now: datetime | None = None) -> Transaction:
        """Record a transaction and move its account balance by the amount."""
        account = await AccountService(self.db).get_account(data.account_id)
        occurred_at = data.occurred_at or now or datetime.now(timezone.utc)

        transaction = Transaction(
            account_id=account.id,
            category_name=data.category_name,
            amount=data.amount,
            description=data.description,
            occurred_at=occurred_at,
        )
        account.balance = account.balance + data.amount
        self.db.add(transaction)
        await self.db.flush()
        await self.db.refresh(transaction)
        logger.info(
            "transaction recorded",
            transaction_id=transaction.id,
            account_id=account.id,
            category=data.category_name,
        )
        return transaction

    async def list_transactions(
        self,
        account_id: int | None = None,
        category_name: str | None = None,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
        limit: int = 100,
    ) -> list[Transaction]:
        """List transactions, newest first, within ``[date_from, date_to)``."""
        query = select(Transaction)
        if account_id:
            query = query.where(Transaction.account_id == account_id)
        if category_name:
            query = query.where(Transaction.category_name == category_name)
        if date_from:
            query = query.where(Transaction.occurred_at >= date_from)
        if date_to:
            query = query.where(Transaction.occurred_at < date_to)
        query = query.order_by(Transaction.occurred_at.desc(), Transaction.id.desc()).limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())
