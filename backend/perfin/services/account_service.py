"""Account management service."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from perfin.core.exceptions import AlreadyExistsError, NotFoundError
from perfin.models.account import Account
from perfin.schemas.account import AccountCreate, AccountUpdate
from perfin.services.budget_store import shift_sort_order


class AccountService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_accounts(self) -> list[Account]:
        result = await self.db.execute(select(Account).order_by(Account.sort_order, Account.id))
        return list(result.scalars().all())

    async def create_account(self, data: AccountCreate) -> Account:
        """Create an account at ``data.sort_order`` (or last), shifting the others."""
        await self._ensure_name_free(data.name)
        existing = await self.list_accounts()
        account = Account(
            name=data.name,
            type=data.type,
            balance=data.balance,
            monthly_savings_goal=data.monthly_savings_goal,
            sort_order=0,
        )
        self.db.add(account)
        await self.db.flush()

        ordered = shift_sort_order([a.id for a in existing], account.id, data.sort_order)
        self._apply_order(ordered, [*existing, account])
        await self.db.flush()
        await self.db.refresh(account)
        return account

    async def get_account(self, account_id: int) -> Account:
        account = await self.db.get(Account, account_id)
        if not account:
            raise NotFoundError("Account")
        return account

    async def update_account(self, account_id: int, data: AccountUpdate) -> Account:
        account = await self.get_account(account_id)
        update_data = data.model_dump(exclude_unset=True)
        new_position = update_data.pop("sort_order", None)
        if "name" in update_data and update_data["name"] != account.name:
            await self._ensure_name_free(update_data["name"])
        for key, value in update_data.items():
            setattr(account, key, value)

        if new_position is not None and new_position != account.sort_order:
            accounts = await self.list_accounts()
            self._apply_order(shift_sort_order([a.id for a in accounts], account.id, new_position), accounts)

        await self.db.flush()
        await self.db.refresh(account)
        return account

    async def delete_account(self, account_id: int) -> None:
        account = await self.get_account(account_id)
        await self.db.delete(account)
        await self.db.flush()

        remaining = await self.list_accounts()
        self._apply_order([a.id for a in remaining], remaining)
        await self.db.flush()

    async def _ensure_name_free(self, name: str) -> None:
        result = await self.db.execute(select(Account.id).where(Account.name == name))
        if result.scalar_one_or_none() is not None:
            raise AlreadyExistsError("Account")

    @staticmethod
    def _apply_order(ordered_ids: list[int], accounts: list[Account]) -> None:
        by_id = {a.id: a for a in accounts}
        for position, account_id in enumerate(ordered_ids):
            by_id[account_id].sort_order = position
