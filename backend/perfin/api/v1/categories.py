"""Category API routes."""

from collections.abc import Callable
from datetime import datetime
from decimal import Decimal

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from perfin.api.deps import get_budget_engine, get_clock, get_db, get_refresh_coordinator
from perfin.schemas.category import (
    CategoryBudgetStatusResponse,
    CategoryBudgetsResponse,
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
)
from perfin.services.budget_engine import BudgetEngine, RefreshCoordinator
from perfin.services.budget_store import BudgetStore

router = APIRouter()


@router.get("", response_model=list[CategoryResponse])
async def list_categories(db: AsyncSession = Depends(get_db)):
    """List all categories in display order."""
    store = BudgetStore(db)
    return await store.list_categories()


@router.post("", response_model=CategoryResponse, status_code=201)
async def create_category(
    data: CategoryCreate,
    db: AsyncSession = Depends(get_db),
    coordinator: RefreshCoordinator = Depends(get_refresh_coordinator),
):
    store = BudgetStore(db)
    category = await store.create_category(data)
    await db.commit()
    coordinator.invalidate()
    return category


@router.get("/budget-status", response_model=CategoryBudgetsResponse)
async def category_budget_status(
    db: AsyncSession = Depends(get_db),
    engine: BudgetEngine = Depends(get_budget_engine),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    """Status of category-level budgets for the current calendar month."""
    store = BudgetStore(db)
    snapshot = await store.load_snapshot()
    statuses = await engine.compute_category_budgets(snapshot, clock())
    return CategoryBudgetsResponse(
        data=[CategoryBudgetStatusResponse.model_validate(s) for s in statuses],
        total_budgeted=sum((s.budget_amount for s in statuses), Decimal("0")),
        total_spent=sum((s.spent for s in statuses), Decimal("0")),
    )


@router.patch("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: int,
    data: CategoryUpdate,
    db: AsyncSession = Depends(get_db),
    coordinator: RefreshCoordinator = Depends(get_refresh_coordinator),
):
    """Update a category; setting ``budget_id`` moves it to that budget."""
    store = BudgetStore(db)
    category = await store.update_category(category_id, data)
    await db.commit()
    coordinator.invalidate()
    return category


@router.delete("/{category_id}", status_code=204)
async def delete_category(
    category_id: int,
    db: AsyncSession = Depends(get_db),
    coordinator: RefreshCoordinator = Depends(get_refresh_coordinator),
):
    store = BudgetStore(db)
    await store.delete_category(category_id)
    await db.commit()
    coordinator.invalidate()
