"""Shared SQLAlchemy models registry for the workspace database.

Currently includes the budget-tracking tables used by ``budget_cycles``.
"""

from .budget import Base, BcBill, BcBudgetPeriod, BcExpense

__all__ = [
    "Base",
    "BcBill",
    "BcBudgetPeriod",
    "BcExpense",
]
