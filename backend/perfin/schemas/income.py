"""Income settings schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class IncomeSettingsUpdate(BaseModel):
    use_dynamic_income: bool | None = None
    manual_income: Decimal | None = Field(default=None, ge=0)
    monthly_savings_target: Decimal | None = Field(default=None, ge=0)


class IncomeSettingsResponse(BaseModel):
    use_dynamic_income: bool
    manual_income: Decimal
    monthly_savings_target: Decimal

    model_config = {"from_attributes": True}


class EffectiveIncomeResponse(BaseModel):
    use_dynamic_income: bool
    manual_income: Decimal
    dynamic_income: Decimal
    effective_income: Decimal
    period_start: datetime
    period_end: datetime
