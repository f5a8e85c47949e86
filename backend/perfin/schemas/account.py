"""Account schemas for request/response validation."""

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field, field_validator

AccountType = Literal["checking", "savings", "credit", "investment", "other"]


class AccountCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    type: AccountType
    balance: Decimal = Decimal("0.00")
    monthly_savings_goal: Decimal | None = Field(default=None, ge=0)
    sort_order: int | None = Field(default=None, ge=0)  # None = append at the end


class AccountUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    type: AccountType | None = None
    balance: Decimal | None = None
    monthly_savings_goal: Decimal | None = Field(default=None, ge=0)
    sort_order: int | None = Field(default=None, ge=0)

    @field_validator("name", "type", "balance", "sort_order")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v


class AccountResponse(BaseModel):
    id: int
    name: str
    type: AccountType
    balance: Decimal
    monthly_savings_goal: Decimal | None
    sort_order: int
    created_at: datetime

    model_config = {"from_attributes": True}
