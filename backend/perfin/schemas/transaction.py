"""Transaction schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class TransactionCreate(BaseModel):
    account_id: int
    category_name: str = Field(min_length=1, max_length=100)
    amount: Decimal  # inflow > 0, outflow < 0
    description: str | None = Field(default=None, max_length=500)
    occurred_at: datetime | None = None  # defaults to now


class TransactionResponse(BaseModel):
    id: int
    account_id: int
    category_name: str
    amount: Decimal
    description: str | None
    occurred_at: datetime

    model_config = {"from_attributes": True}
