"""Budget Store: persistence of budgets, categories and income settings.

Budgets keep a dense, 0-based ``sort_order``. Inserting at a position shifts
the budgets after it down by one, deleting closes the gap, and moving a
budget reindexes the whole list through ``shift_sort_order``.
"""

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from perfin.core.exceptions import AlreadyExistsError, NotFoundError, ValidationError
from perfin.models.budget import Budget
from perfin.models.category import Category
from perfin.models.income_settings import SINGLETON_ID, IncomeSettings
from perfin.schemas.budget import BudgetCreate, BudgetUpdate, validate_budget_fields
from perfin.schemas.category import CategoryCreate, CategoryUpdate
from perfin.schemas.income import IncomeSettingsUpdate
from perfin.services.snapshots import (
    BudgetSnapshot,
    CategorySnapshot,
    IncomeSettingsSnapshot,
    StoreSnapshot,
)

logger = structlog.get_logger()


def shift_sort_order(ids: list[int], item_id: int, position: int | None = None) -> list[int]:
    """Return ``ids`` with ``item_id`` placed at ``position``.

    ``item_id`` is moved if present and inserted otherwise; ``None`` or an
    out-of-range position means the end of the list. The list index of each
    id is its new sort order.
    """
    remaining = [i for i in ids if i != item_id]
    if position is None or position > len(remaining):
        position = len(remaining)
    return remaining[:position] + [item_id] + remaining[position:]


class BudgetStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    # ── Budgets ────────────────────────────────────────

    async def list_budgets(self) -> list[Budget]:
        result = await self.db.execute(select(Budget).order_by(Budget.sort_order, Budget.id))
        return list(result.scalars().all())

    async def get_budget(self, budget_id: int) -> Budget:
        budget = await self.db.get(Budget, budget_id)
        if not budget:
            raise NotFoundError("Budget")
        return budget

    async def create_budget(self, data: BudgetCreate) -> Budget:
        """Insert a budget at ``data.sort_order`` (or last) and assign its categories."""
        budget = Budget(
            name=data.name,
            color=data.color,
            amount_type=data.amount_type,
            amount=data.amount,
            period_type=data.period_type,
            custom_start_date=data.custom_start_date if data.period_type == "custom" else None,
            custom_end_date=data.custom_end_date if data.period_type == "custom" else None,
            sort_order=0,
        )
        existing = await self.list_budgets()
        self.db.add(budget)
        await self.db.flush()

        ordered = shift_sort_order([b.id for b in existing], budget.id, data.sort_order)
        await self._apply_budget_order(ordered, [*existing, budget])

        if data.category_ids:
            await self.assign_categories(budget.id, data.category_ids)

        await self.db.refresh(budget)
        logger.info("budget created", budget_id=budget.id, sort_order=budget.sort_order)
        return budget

    async def update_budget(self, budget_id: int, data: BudgetUpdate) -> Budget:
        budget = await self.get_budget(budget_id)
        update_data = data.model_dump(exclude_unset=True)
        new_position = update_data.pop("sort_order", None)
        for key, value in update_data.items():
            setattr(budget, key, value)

        if budget.period_type != "custom":
            budget.custom_start_date = None
            budget.custom_end_date = None
        try:
            validate_budget_fields(
                budget.amount_type,
                budget.amount,
                budget.period_type,
                budget.custom_start_date,
                budget.custom_end_date,
            )
        except ValueError as e:
            raise ValidationError(str(e)) from e

        if new_position is not None and new_position != budget.sort_order:
            budgets = await self.list_budgets()
            ordered = shift_sort_order([b.id for b in budgets], budget.id, new_position)
            await self._apply_budget_order(ordered, budgets)

        await self.db.flush()
        await self.db.refresh(budget)
        return budget

    async def delete_budget(self, budget_id: int) -> None:
        """Delete a budget, unassigning its categories and closing the order gap."""
        budget = await self.get_budget(budget_id)
        await self.db.execute(
            update(Category)
            .where(Category.budget_id == budget_id)
            .values(budget_id=None)
            .execution_options(synchronize_session="fetch")
        )
        await self.db.delete(budget)
        await self.db.flush()

        remaining = await self.list_budgets()
        await self._apply_budget_order([b.id for b in remaining], remaining)
        logger.info("budget deleted", budget_id=budget_id)

    async def assign_categories(self, budget_id: int, category_ids: list[int]) -> list[Category]:
        """Make ``category_ids`` exactly the categories owned by the budget.

        Categories currently owned by another budget are moved here; a
        category can only ever belong to one budget.
        """
        await self.get_budget(budget_id)
        wanted = sorted(set(category_ids))
        if wanted:
            result = await self.db.execute(select(Category.id).where(Category.id.in_(wanted)))
            found = set(result.scalars().all())
            if found != set(wanted):
                raise NotFoundError("Category")

        await self.db.execute(
            update(Category)
            .where(Category.budget_id == budget_id, Category.id.not_in(wanted))
            .values(budget_id=None)
            .execution_options(synchronize_session="fetch")
        )
        if wanted:
            await self.db.execute(
                update(Category)
                .where(Category.id.in_(wanted))
                .values(budget_id=budget_id)
                .execution_options(synchronize_session="fetch")
            )
        await self.db.flush()
        return await self.categories_for_budget(budget_id)

    async def _apply_budget_order(self, ordered_ids: list[int], budgets: list[Budget]) -> None:
        by_id = {b.id: b for b in budgets}
        for position, budget_id in enumerate(ordered_ids):
            by_id[budget_id].sort_order = position
        await self.db.flush()

    # ── Categories ─────────────────────────────────────

    async def list_categories(self) -> list[Category]:
        result = await self.db.execute(
            select(Category).order_by(Category.sort_order, Category.id).execution_options(
                populate_existing=True
            )
        )
        return list(result.scalars().all())

    async def categories_for_budget(self, budget_id: int) -> list[Category]:
        result = await self.db.execute(
            select(Category)
            .where(Category.budget_id == budget_id)
            .order_by(Category.sort_order, Category.id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def get_category(self, category_id: int) -> Category:
        category = await self.db.get(Category, category_id)
        if not category:
            raise NotFoundError("Category")
        return category

    async def create_category(self, data: CategoryCreate) -> Category:
        await self._ensure_category_name_free(data.category_name)
        if data.budget_id is not None:
            await self.get_budget(data.budget_id)

        existing = await self.list_categories()
        category = Category(
            category_name=data.category_name,
            budget_id=data.budget_id,
            budget_amount=data.budget_amount,
            budget_percentage=data.budget_percentage,
            sort_order=len(existing),
        )
        self.db.add(category)
        await self.db.flush()
        await self.db.refresh(category)
        return category

    async def update_category(self, category_id: int, data: CategoryUpdate) -> Category:
        category = await self.get_category(category_id)
        update_data = data.model_dump(exclude_unset=True)
        new_position = update_data.pop("sort_order", None)

        if "category_name" in update_data and update_data["category_name"] != category.category_name:
            await self._ensure_category_name_free(update_data["category_name"])
        if update_data.get("budget_id") is not None:
            await self.get_budget(update_data["budget_id"])
        for key, value in update_data.items():
            setattr(category, key, value)

        if new_position is not None and new_position != category.sort_order:
            categories = await self.list_categories()
            ordered = shift_sort_order([c.id for c in categories], category.id, new_position)
            by_id = {c.id: c for c in categories}
            for position, cid in enumerate(ordered):
                by_id[cid].sort_order = position

        await self.db.flush()
        await self.db.refresh(category)
        return category

    async def delete_category(self, category_id: int) -> None:
        category = await self.get_category(category_id)
        await self.db.delete(category)
        await self.db.flush()

        remaining = await self.list_categories()
        for position, cat in enumerate(remaining):
            cat.sort_order = position
        await self.db.flush()

    async def _ensure_category_name_free(self, name: str) -> None:
        result = await self.db.execute(select(Category.id).where(Category.category_name == name))
        if result.scalar_one_or_none() is not None:
            raise AlreadyExistsError("Category")

    # ── Income settings ────────────────────────────────

    async def get_income_settings(self) -> IncomeSettings:
        """Return the settings row, creating it with defaults on first access."""
        income_settings = await self.db.get(IncomeSettings, SINGLETON_ID)
        if income_settings is None:
            income_settings = IncomeSettings(id=SINGLETON_ID)
            self.db.add(income_settings)
            await self.db.flush()
            await self.db.refresh(income_settings)
        return income_settings

    async def update_income_settings(self, data: IncomeSettingsUpdate) -> IncomeSettings:
        income_settings = await self.get_income_settings()
        for key, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(income_settings, key, value)
        await self.db.flush()
        await self.db.refresh(income_settings)
        logger.info(
            "income settings updated",
            use_dynamic_income=income_settings.use_dynamic_income,
        )
        return income_settings

    # ── Snapshot for the engine ────────────────────────

    async def load_budgets(self) -> tuple[BudgetSnapshot, ...]:
        return tuple(BudgetSnapshot.from_model(b) for b in await self.list_budgets())

    async def load_categories(self) -> tuple[CategorySnapshot, ...]:
        return tuple(CategorySnapshot.from_model(c) for c in await self.list_categories())

    async def load_income_settings(self) -> IncomeSettingsSnapshot:
        return IncomeSettingsSnapshot.from_model(await self.get_income_settings())

    async def load_snapshot(self) -> StoreSnapshot:
        return StoreSnapshot(
            budgets=await self.load_budgets(),
            categories=await self.load_categories(),
            income_settings=await self.load_income_settings(),
        )
