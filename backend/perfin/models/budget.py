"""Budget model."""

from datetime import date
from decimal import Decimal

from sqlalchemy import Date, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from perfin.models.base import Base, TimestampMixin


class Budget(Base, TimestampMixin):
    __tablename__ = "budgets"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    color: Mapped[str] = mapped_column(String(7), nullable=False, default="#6366f1")  # hex color
    amount_type: Mapped[str] = mapped_column(String(20), nullable=False)  # fixed, percentage
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    period_type: Mapped[str] = mapped_column(String(20), nullable=False, default="monthly")  # weekly, monthly, custom
    custom_start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    custom_end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
