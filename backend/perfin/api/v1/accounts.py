"""Account management API routes."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from perfin.api.deps import get_db
from perfin.schemas.account import AccountCreate, AccountResponse, AccountUpdate
from perfin.services.account_service import AccountService

router = APIRouter()


@router.get("", response_model=list[AccountResponse])
async def list_accounts(db: AsyncSession = Depends(get_db)):
    """List all accounts in display order."""
    service = AccountService(db)
    return await service.list_accounts()


@router.post("", response_model=AccountResponse, status_code=201)
async def create_account(data: AccountCreate, db: AsyncSession = Depends(get_db)):
    service = AccountService(db)
    return await service.create_account(data)


@router.get("/{account_id}", response_model=AccountResponse)
async def get_account(account_id: int, db: AsyncSession = Depends(get_db)):
    service = AccountService(db)
    return await service.get_account(account_id)


@router.patch("/{account_id}", response_model=AccountResponse)
async def update_account(account_id: int, data: AccountUpdate, db: AsyncSession = Depends(get_db)):
    service = AccountService(db)
    return await service.update_account(account_id, data)


@router.delete("/{account_id}", status_code=204)
async def delete_account(account_id: int, db: AsyncSession = Depends(get_db)):
    service = AccountService(db)
    await service.delete_account(account_id)
