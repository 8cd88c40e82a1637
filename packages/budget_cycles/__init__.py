"""Public interface for the ``budget_cycles`` package.

This module exposes the period calculator, the aggregation helpers and the
public models as the stable import surface. There is no runtime logic here,
only symbol re-exports. Database-backed helpers live in
``budget_cycles.persistence`` and are not imported eagerly.
"""

from .aggregate import (
    budget_status,
    category_expenses,
    daily_limit,
    date_label,
    days_remaining,
    default_daily_limit,
    expenses_in_period,
    expenses_on_day,
    group_by_date,
    is_over_budget,
    percentage_used,
    raw_percentage,
    remaining,
    summarize_budget,
    summarize_categories,
    total_allocated_budget,
    total_for_category,
    total_for_period,
    total_unpaid_bills,
    weekly_comparison,
)
from .models import (
    CYCLE_INFO,
    DEFAULT_SETTINGS,
    Bill,
    BillCategory,
    BudgetStatus,
    BudgetSummary,
    CategoryBudget,
    CategorySummary,
    CycleInfo,
    CycleType,
    Expense,
    Period,
    UserSettings,
    WeeklyComparison,
    WeekSummary,
)
from .periods import (
    compute_period,
    cycle_description,
    iter_periods,
    next_payday,
    next_period,
    previous_period,
)

__all__ = [
    # Periods
    "compute_period",
    "cycle_description",
    "iter_periods",
    "next_payday",
    "next_period",
    "previous_period",
    # Aggregation
    "budget_status",
    "category_expenses",
    "daily_limit",
    "date_label",
    "days_remaining",
    "default_daily_limit",
    "expenses_in_period",
    "expenses_on_day",
    "group_by_date",
    "is_over_budget",
    "percentage_used",
    "raw_percentage",
    "remaining",
    "summarize_budget",
    "summarize_categories",
    "total_allocated_budget",
    "total_for_category",
    "total_for_period",
    "total_unpaid_bills",
    "weekly_comparison",
    # Models / static data
    "CYCLE_INFO",
    "DEFAULT_SETTINGS",
    "Bill",
    "BillCategory",
    "BudgetStatus",
    "BudgetSummary",
    "CategoryBudget",
    "CategorySummary",
    "CycleInfo",
    "CycleType",
    "Expense",
    "Period",
    "UserSettings",
    "WeekSummary",
    "WeeklyComparison",
]
