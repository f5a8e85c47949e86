"""Income settings model (single row)."""

from decimal import Decimal

from sqlalchemy import Boolean, Numeric
from sqlalchemy.orm import Mapped, mapped_column

from perfin.models.base import Base, TimestampMixin

SINGLETON_ID = 1


class IncomeSettings(Base, TimestampMixin):
    __tablename__ = "income_settings"

    id: Mapped[int] = mapped_column(primary_key=True, default=SINGLETON_ID)
    use_dynamic_income: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    manual_income: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    monthly_savings_target: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0.00")
    )
