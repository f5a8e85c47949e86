"""Savings progress API routes."""

from collections.abc import Callable
from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from perfin.api.deps import get_budget_engine, get_clock, get_db
from perfin.schemas.savings import SavingsSummaryResponse
from perfin.services.budget_engine import BudgetEngine
from perfin.services.budget_store import BudgetStore

router = APIRouter()


@router.get("/summary", response_model=SavingsSummaryResponse)
async def savings_summary(
    db: AsyncSession = Depends(get_db),
    engine: BudgetEngine = Depends(get_budget_engine),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    """Saved this month per savings/investment account and against the target."""
    store = BudgetStore(db)
    income_settings = await store.load_income_settings()
    summary = await engine.compute_savings(income_settings, clock())
    return SavingsSummaryResponse.model_validate(summary)
