"""Budget API routes: CRUD, category assignment and the derived overview."""

from collections.abc import Callable
from dataclasses import asdict
from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from perfin.api.deps import get_budget_engine, get_clock, get_db, get_refresh_coordinator
from perfin.core.exceptions import ServiceUnavailableError
from perfin.schemas.budget import (
    AllocationSummaryResponse,
    BudgetCreate,
    BudgetOverviewResponse,
    BudgetResponse,
    BudgetUpdate,
    BudgetWithSpentResponse,
    CategoryAssignment,
    PeriodWindowResponse,
)
from perfin.schemas.category import CategoryResponse
from perfin.services.allocation import BudgetWithSpent
from perfin.services.budget_engine import BudgetEngine, RefreshCoordinator, RefreshOutcome
from perfin.services.budget_store import BudgetStore

router = APIRouter()


def _budget_with_spent(item: BudgetWithSpent) -> BudgetWithSpentResponse:
    return BudgetWithSpentResponse(
        **asdict(item.budget),
        spent=item.spent,
        limit=item.limit,
        percentage_used=item.percentage_used,
        status=item.status,
        period=PeriodWindowResponse.model_validate(item.period),
        categories=[CategoryResponse.model_validate(c) for c in item.categories],
    )


def _overview_response(outcome: RefreshOutcome) -> BudgetOverviewResponse:
    overview = outcome.overview
    if overview is None:
        raise ServiceUnavailableError(outcome.error or "Budget data is temporarily unavailable")
    return BudgetOverviewResponse(
        refresh_token=overview.token,
        failed=outcome.failed,
        superseded=outcome.superseded,
        error=outcome.error,
        computed_at=overview.computed_at,
        dynamic_income=overview.dynamic_income,
        effective_income=overview.effective_income,
        income_period=PeriodWindowResponse.model_validate(overview.income_window),
        budgets=[_budget_with_spent(b) for b in overview.budgets],
        summary=AllocationSummaryResponse.model_validate(overview.summary),
    )


@router.get("", response_model=list[BudgetResponse])
async def list_budgets(db: AsyncSession = Depends(get_db)):
    """List budgets in display order."""
    store = BudgetStore(db)
    return await store.list_budgets()


@router.post("", response_model=BudgetResponse, status_code=201)
async def create_budget(
    data: BudgetCreate,
    db: AsyncSession = Depends(get_db),
    coordinator: RefreshCoordinator = Depends(get_refresh_coordinator),
):
    """Create a budget, optionally at a given position and with categories."""
    store = BudgetStore(db)
    budget = await store.create_budget(data)
    await db.commit()
    coordinator.invalidate()
    return budget


@router.get("/overview", response_model=BudgetOverviewResponse)
async def budget_overview(
    db: AsyncSession = Depends(get_db),
    engine: BudgetEngine = Depends(get_budget_engine),
    coordinator: RefreshCoordinator = Depends(get_refresh_coordinator),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    """Spent, limit and usage for every budget in its current period.

    When the ledger cannot be read, the last good overview is returned with
    ``failed=true``; with nothing to fall back on the response is a 503.
    """
    store = BudgetStore(db)
    outcome = await coordinator.refresh(engine, store.load_snapshot, clock())
    return _overview_response(outcome)


@router.get("/{budget_id}", response_model=BudgetResponse)
async def get_budget(budget_id: int, db: AsyncSession = Depends(get_db)):
    store = BudgetStore(db)
    return await store.get_budget(budget_id)


@router.patch("/{budget_id}", response_model=BudgetResponse)
async def update_budget(
    budget_id: int,
    data: BudgetUpdate,
    db: AsyncSession = Depends(get_db),
    coordinator: RefreshCoordinator = Depends(get_refresh_coordinator),
):
    """Update a budget; changing ``sort_order`` moves it and reindexes the rest."""
    store = BudgetStore(db)
    budget = await store.update_budget(budget_id, data)
    await db.commit()
    coordinator.invalidate()
    return budget


@router.delete("/{budget_id}", status_code=204)
async def delete_budget(
    budget_id: int,
    db: AsyncSession = Depends(get_db),
    coordinator: RefreshCoordinator = Depends(get_refresh_coordinator),
):
    """Delete a budget; its categories become unassigned."""
    store = BudgetStore(db)
    await store.delete_budget(budget_id)
    await db.commit()
    coordinator.invalidate()


@router.put("/{budget_id}/categories", response_model=list[CategoryResponse])
async def assign_categories(
    budget_id: int,
    data: CategoryAssignment,
    db: AsyncSession = Depends(get_db),
    coordinator: RefreshCoordinator = Depends(get_refresh_coordinator),
):
    """Replace the set of categories owned by a budget."""
    store = BudgetStore(db)
    categories = await store.assign_categories(budget_id, data.category_ids)
    await db.commit()
    coordinator.invalidate()
    return categories
