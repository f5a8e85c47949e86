"""Savings progress schemas."""

from decimal import Decimal

from pydantic import BaseModel


class SavingsAccountRef(BaseModel):
    id: int
    name: str
    type: str
    balance: Decimal

    model_config = {"from_attributes": True}


class AccountSavingsBreakdownResponse(BaseModel):
    account: SavingsAccountRef
    saved_this_month: Decimal
    goal: Decimal | None
    progress_percent: float

    model_config = {"from_attributes": True}


class SavingsSummaryResponse(BaseModel):
    this_month_savings: Decimal
    this_month_investments: Decimal
    total_saved_this_month: Decimal
    monthly_savings_target: Decimal
    goal_progress: float
    savings_goal_total: Decimal
    has_savings_accounts: bool
    accounts: list[AccountSavingsBreakdownResponse]

    model_config = {"from_attributes": True}
