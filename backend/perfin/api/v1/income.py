"""Income settings API routes."""

from collections.abc import Callable
from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from perfin.api.deps import get_budget_engine, get_clock, get_db, get_refresh_coordinator
from perfin.schemas.income import (
    EffectiveIncomeResponse,
    IncomeSettingsResponse,
    IncomeSettingsUpdate,
)
from perfin.services.budget_engine import BudgetEngine, RefreshCoordinator
from perfin.services.budget_store import BudgetStore
from perfin.services.periods import calendar_month

router = APIRouter()


@router.get("/settings", response_model=IncomeSettingsResponse)
async def get_income_settings(db: AsyncSession = Depends(get_db)):
    store = BudgetStore(db)
    return await store.get_income_settings()


@router.patch("/settings", response_model=IncomeSettingsResponse)
async def update_income_settings(
    data: IncomeSettingsUpdate,
    db: AsyncSession = Depends(get_db),
    coordinator: RefreshCoordinator = Depends(get_refresh_coordinator),
):
    """Persist income settings; any budget refresh still in flight is discarded."""
    store = BudgetStore(db)
    income_settings = await store.update_income_settings(data)
    # Committed before invalidating so the next refresh reads the new settings
    await db.commit()
    coordinator.invalidate()
    return income_settings


@router.get("/effective", response_model=EffectiveIncomeResponse)
async def effective_income(
    db: AsyncSession = Depends(get_db),
    engine: BudgetEngine = Depends(get_budget_engine),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    """Income used for percentage budgets this calendar month."""
    store = BudgetStore(db)
    income_settings = await store.load_income_settings()
    now = clock()
    dynamic, effective = await engine.compute_effective_income(income_settings, now)
    window = calendar_month(now)
    return EffectiveIncomeResponse(
        use_dynamic_income=income_settings.use_dynamic_income,
        manual_income=income_settings.manual_income,
        dynamic_income=dynamic,
        effective_income=effective,
        period_start=window.start,
        period_end=window.end,
    )
