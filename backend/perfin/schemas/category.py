"""Category schemas."""

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class CategoryCreate(BaseModel):
    category_name: str = Field(min_length=1, max_length=100)
    budget_id: int | None = None
    budget_amount: Decimal | None = Field(default=None, ge=0)
    budget_percentage: Decimal | None = Field(default=None, ge=0, le=100)


class CategoryUpdate(BaseModel):
    category_name: str | None = Field(default=None, min_length=1, max_length=100)
    budget_id: int | None = None
    budget_amount: Decimal | None = Field(default=None, ge=0)
    budget_percentage: Decimal | None = Field(default=None, ge=0, le=100)
    sort_order: int | None = Field(default=None, ge=0)

    @field_validator("category_name", "sort_order")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v


class CategoryResponse(BaseModel):
    id: int
    category_name: str
    budget_id: int | None
    budget_amount: Decimal | None
    budget_percentage: Decimal | None
    sort_order: int

    model_config = {"from_attributes": True}


class CategoryBudgetStatusResponse(BaseModel):
    category: CategoryResponse
    budget_amount: Decimal
    spent: Decimal
    percentage_used: float
    status: Literal["on_track", "warning", "over"]

    model_config = {"from_attributes": True}


class CategoryBudgetsResponse(BaseModel):
    data: list[CategoryBudgetStatusResponse]
    total_budgeted: Decimal
    total_spent: Decimal
