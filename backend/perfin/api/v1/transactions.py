"""Transaction API routes."""

from collections.abc import Callable
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from perfin.api.deps import get_clock, get_db, get_refresh_coordinator
from perfin.schemas.transaction import TransactionCreate, TransactionResponse
from perfin.services.budget_engine import RefreshCoordinator
from perfin.services.transaction_service import TransactionService

router = APIRouter()


@router.get("", response_model=list[TransactionResponse])
async def list_transactions(
    account_id: int | None = None,
    category_name: str | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    limit: int = Query(100, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
):
    """List transactions newest first, optionally within ``[date_from, date_to)``."""
    service = TransactionService(db)
    return await service.list_transactions(
        account_id=account_id,
        category_name=category_name,
        date_from=date_from,
        date_to=date_to,
        limit=limit,
    )


@router.post("", response_model=TransactionResponse, status_code=201)
async def create_transaction(
    data: TransactionCreate,
    db: AsyncSession = Depends(get_db),
    coordinator: RefreshCoordinator = Depends(get_refresh_coordinator),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    """Record a transaction and update its account balance."""
    service = TransactionService(db)
    transaction = await service.create_transaction(data, now=clock())
    await db.commit()
    coordinator.invalidate()
    return transaction
