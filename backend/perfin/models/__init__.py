"""SQLAlchemy models."""

from perfin.models.account import Account
from perfin.models.base import Base
from perfin.models.budget import Budget
from perfin.models.category import Category
from perfin.models.income_settings import IncomeSettings
from perfin.models.transaction import Transaction

__all__ = [
    "Base",
    "Account",
    "Budget",
    "Category",
    "IncomeSettings",
    "Transaction",
]
