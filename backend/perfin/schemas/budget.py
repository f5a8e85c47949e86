"""Budget schemas for request/response validation."""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from perfin.schemas.category import CategoryResponse

AmountType = Literal["fixed", "percentage"]
PeriodType = Literal["weekly", "monthly", "custom"]
BudgetStatus = Literal["on_track", "warning", "over"]


def validate_budget_fields(
    amount_type: str,
    amount: Decimal,
    period_type: str,
    custom_start_date: date | None,
    custom_end_date: date | None,
) -> None:
    """Raise ``ValueError`` when a budget's fields break its invariants."""
    if amount < 0:
        raise ValueError("amount must not be negative")
    if amount_type == "percentage" and amount > 100:
        raise ValueError("percentage budgets must be between 0 and 100")
    if period_type == "custom":
        if custom_start_date is None or custom_end_date is None:
            raise ValueError("custom periods require custom_start_date and custom_end_date")
        if custom_end_date <= custom_start_date:
            raise ValueError("custom_end_date must be after custom_start_date")


class BudgetCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    color: str = Field(default="#6366f1", pattern="^#[0-9a-fA-F]{6}$")
    amount_type: AmountType = "fixed"
    amount: Decimal
    period_type: PeriodType = "monthly"
    custom_start_date: date | None = None
    custom_end_date: date | None = None
    sort_order: int | None = Field(default=None, ge=0)  # None = append at the end
    category_ids: list[int] = []

    @model_validator(mode="after")
    def check_invariants(self):
        validate_budget_fields(
            self.amount_type,
            self.amount,
            self.period_type,
            self.custom_start_date,
            self.custom_end_date,
        )
        return self


class BudgetUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    color: str | None = Field(default=None, pattern="^#[0-9a-fA-F]{6}$")
    amount_type: AmountType | None = None
    amount: Decimal | None = None
    period_type: PeriodType | None = None
    custom_start_date: date | None = None
    custom_end_date: date | None = None
    sort_order: int | None = Field(default=None, ge=0)

    @field_validator("name", "color", "amount_type", "amount", "period_type", "sort_order")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v


class CategoryAssignment(BaseModel):
    category_ids: list[int]


class BudgetResponse(BaseModel):
    id: int
    name: str
    color: str
    amount_type: AmountType
    amount: Decimal
    period_type: PeriodType
    custom_start_date: date | None
    custom_end_date: date | None
    sort_order: int

    model_config = {"from_attributes": True}


class PeriodWindowResponse(BaseModel):
    start: datetime
    end: datetime

    model_config = {"from_attributes": True}


class BudgetWithSpentResponse(BudgetResponse):
    spent: Decimal
    limit: Decimal
    percentage_used: float
    status: BudgetStatus
    period: PeriodWindowResponse
    categories: list[CategoryResponse]


class AllocationSummaryResponse(BaseModel):
    effective_income: Decimal
    total_allocated_percentage: Decimal
    total_allocated_currency: Decimal
    unallocated_percentage: float
    total_spent: Decimal
    total_limit: Decimal
    total_percentage_used: float
    total_status: BudgetStatus

    model_config = {"from_attributes": True}


class BudgetOverviewResponse(BaseModel):
    refresh_token: int
    failed: bool = False
    superseded: bool = False
    error: str | None = None
    computed_at: datetime
    dynamic_income: Decimal
    effective_income: Decimal
    income_period: PeriodWindowResponse
    budgets: list[BudgetWithSpentResponse]
    summary: AllocationSummaryResponse
