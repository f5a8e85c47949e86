"""Shared API dependencies."""

from collections.abc import Callable
from datetime import datetime
from zoneinfo import ZoneInfo

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from perfin.config import settings
from perfin.core.database import async_session_factory, get_db
from perfin.services.budget_engine import BudgetEngine, RefreshCoordinator
from perfin.services.ledger import LedgerService

__all__ = [
    "get_db",
    "get_clock",
    "get_session_factory",
    "get_ledger",
    "get_budget_engine",
    "get_refresh_coordinator",
]


def _now() -> datetime:
    return datetime.now(ZoneInfo(settings.timezone))


def get_clock() -> Callable[[], datetime]:
    """Source of "now" for period windows; overridden in tests."""
    return _now


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    return async_session_factory


def get_ledger(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> LedgerService:
    return LedgerService(session_factory)


def get_budget_engine(ledger: LedgerService = Depends(get_ledger)) -> BudgetEngine:
    return BudgetEngine(ledger)


def get_refresh_coordinator(request: Request) -> RefreshCoordinator:
    """One coordinator per application, created on first use."""
    coordinator = getattr(request.app.state, "refresh_coordinator", None)
    if coordinator is None:
        coordinator = RefreshCoordinator()
        request.app.state.refresh_coordinator = coordinator
    return coordinator
