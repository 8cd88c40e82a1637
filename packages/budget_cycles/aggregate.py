"""Budget aggregation over caller-supplied expense lists.

Everything here is a pure function of its inputs: totals, remaining balances,
percentages, over-budget flags and the dashboard roll-ups built from them.
Degenerate inputs (no expenses, zero or invalid allocations) resolve to
zero/neutral results instead of raising.

Category matching is case-insensitive throughout. Period membership comes in
two flavours:

- by identifier (``period_id``), for expenses tagged with a stored period;
- by interval (:func:`expenses_in_period`), closed on both ends.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping, Sequence
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation

from .models import (
    CYCLE_INFO,
    Bill,
    BudgetStatus,
    BudgetSummary,
    CategoryBudget,
    CategorySummary,
    CycleInfo,
    CycleType,
    Expense,
    Expenses,
    Period,
    UserSettings,
    WeeklyComparison,
    WeekSummary,
)
from .periods import compute_period

_ZERO = Decimal("0")

# Inputs accepted wherever an amount is taken from a caller.
type Amount = Decimal | int | float


def _as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def _category_key(name: str) -> str:
    return name.strip().casefold()


def _matches_period(expense: Expense, period_id: str | None) -> bool:
    # An omitted/empty period id means "all periods".
    return not period_id or expense.period_id == period_id


def _amount(value: Amount | None) -> Decimal:
    """Coerce a numeric amount to ``Decimal``; missing or non-finite values become zero.

    Floats go through ``str`` so ``0.1`` stays ``Decimal("0.1")``.
    """

    if value is None:
        return _ZERO
    try:
        d = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        return _ZERO
    return d if d.is_finite() else _ZERO


def _allocation(value: Amount | None) -> Decimal:
    """Normalize an allocated budget: non-finite or negative values count as zero."""

    d = _amount(value)
    return d if d > 0 else _ZERO


def _sum(expenses: Iterable[Expense]) -> Decimal:
    return sum((e.amount for e in expenses), _ZERO)


# ---------------------------------------------------------------------------
# Totals and filters
# ---------------------------------------------------------------------------


def total_for_period(expenses: Expenses, period_id: str | None = None) -> Decimal:
    """Sum expenses tagged with ``period_id`` (all expenses when omitted)."""

    return _sum(e for e in expenses if _matches_period(e, period_id))


def category_expenses(
    expenses: Expenses, category_name: str, period_id: str | None = None
) -> list[Expense]:
    """Return expenses in ``category_name`` (case-insensitive), optionally for one period."""

    key = _category_key(category_name)
    return [
        e for e in expenses if _category_key(e.category) == key and _matches_period(e, period_id)
    ]


def total_for_category(
    expenses: Expenses, category_name: str, period_id: str | None = None
) -> Decimal:
    return _sum(category_expenses(expenses, category_name, period_id))


def expenses_in_period(expenses: Expenses, period: Period) -> list[Expense]:
    """Return expenses dated within ``period`` (both ends inclusive)."""

    return [e for e in expenses if period.start <= e.date <= period.end]


def expenses_on_day(expenses: Expenses, day: date | datetime) -> list[Expense]:
    target = _as_date(day)
    return [e for e in expenses if e.date.date() == target]


def total_allocated_budget(categories: Iterable[CategoryBudget]) -> Decimal:
    return sum((_allocation(c.allocated_budget) for c in categories), _ZERO)


def total_unpaid_bills(bills: Iterable[Bill]) -> Decimal:
    return sum((b.amount for b in bills if not b.is_paid), _ZERO)


# ---------------------------------------------------------------------------
# Ratios and flags
# ---------------------------------------------------------------------------


def remaining(allocated: Amount, spent: Amount) -> Decimal:
    """``allocated - spent``; negative when over budget."""

    return _amount(allocated) - _amount(spent)


def raw_percentage(spent: Amount, allocated: Amount | None) -> float:
    """Unclamped ``spent / allocated`` in percent; ``0.0`` without an allocation."""

    alloc = _allocation(allocated)
    if alloc <= 0:
        return 0.0
    return float(_amount(spent) / alloc * 100)


def percentage_used(spent: Amount, allocated: Amount | None) -> float:
    """Progress-bar percentage: :func:`raw_percentage` capped at 100."""

    return min(100.0, raw_percentage(spent, allocated))


def is_over_budget(spent: Amount, allocated: Amount | None) -> bool:
    """True when ``spent`` strictly exceeds the (normalized) allocation."""

    return _amount(spent) > _allocation(allocated)


def budget_status(percentage: float) -> BudgetStatus:
    if percentage < 50:
        return BudgetStatus.ON_TRACK
    if percentage < 75:
        return BudgetStatus.CAUTION
    if percentage < 90:
        return BudgetStatus.WARNING
    return BudgetStatus.CRITICAL


def days_remaining(period: Period, today: date | datetime) -> int:
    """Calendar days left in ``period``, counting ``today``; never negative."""

    return max(0, (period.end_date - _as_date(today)).days + 1)


def daily_limit(remaining_amount: Amount, days_left: int) -> Decimal:
    """Spendable amount per remaining day; ``0`` when no days remain."""

    if days_left <= 0:
        return _ZERO
    return _amount(remaining_amount) / days_left


def default_daily_limit(
    settings: UserSettings,
    cycle_info: Mapping[CycleType, CycleInfo] = CYCLE_INFO,
) -> Decimal:
    """Explicit daily limit, else income spread over the cycle's nominal days."""

    if settings.daily_spending_limit is not None:
        return settings.daily_spending_limit
    if settings.income <= 0:
        return _ZERO
    days = cycle_info[settings.budget_cycle].days or cycle_info[CycleType.SEMI_MONTHLY].days
    return settings.income / days


# ---------------------------------------------------------------------------
# Roll-ups
# ---------------------------------------------------------------------------


def summarize_categories(
    expenses: Expenses,
    categories: Iterable[CategoryBudget],
    period_id: str | None = None,
) -> list[CategorySummary]:
    """Per-category spent/remaining/percentage rows, in ``categories`` order."""

    items = list(expenses)
    out: list[CategorySummary] = []
    for cat in categories:
        allocated = _allocation(cat.allocated_budget)
        spent = total_for_category(items, cat.name, period_id)
        raw = raw_percentage(spent, allocated)
        out.append(
            CategorySummary(
                name=cat.name,
                allocated=allocated,
                spent=spent,
                remaining=remaining(allocated, spent),
                percentage=min(100.0, raw),
                raw_percentage=raw,
                over_budget=is_over_budget(spent, allocated),
            )
        )
    return out


def summarize_budget(
    expenses: Expenses,
    allocated: Amount | None,
    period: Period,
    *,
    period_id: str | None = None,
    today: date | datetime,
) -> BudgetSummary:
    """Overall roll-up for ``period``.

    When ``period_id`` is given, spending is selected by identifier (expenses
    tagged with that stored period); otherwise by interval membership.
    """

    items = list(expenses)
    if period_id:
        spent = total_for_period(items, period_id)
    else:
        spent = _sum(expenses_in_period(items, period))
    alloc = _allocation(allocated)
    left = remaining(alloc, spent)
    raw = raw_percentage(spent, alloc)
    pct = min(100.0, raw)
    days_left = days_remaining(period, today)
    return BudgetSummary(
        period=period,
        allocated=alloc,
        spent=spent,
        remaining=left,
        percentage=pct,
        raw_percentage=raw,
        over_budget=is_over_budget(spent, alloc),
        days_remaining=days_left,
        daily_limit=daily_limit(left, days_left),
        status=budget_status(pct),
    )


def _week_summary(expenses: Sequence[Expense], week: Period) -> WeekSummary:
    in_week = tuple(expenses_in_period(expenses, week))
    # Categories merge case-insensitively under the first spelling seen.
    labels: dict[str, str] = {}
    by_category: dict[str, Decimal] = defaultdict(lambda: _ZERO)
    for e in in_week:
        label = labels.setdefault(_category_key(e.category), e.category.strip())
        by_category[label] += e.amount
    total = _sum(in_week)
    return WeekSummary(
        period=week,
        total=total,
        by_category=dict(by_category),
        daily_average=total / 7,
        expenses=in_week,
    )


def weekly_comparison(expenses: Expenses, today: date | datetime) -> WeeklyComparison:
    """Compare the current Monday-first week with the one before it."""

    items = list(expenses)
    ref = _as_date(today)
    current = _week_summary(items, compute_period(ref, CycleType.WEEKLY, 1))
    previous = _week_summary(items, compute_period(ref - timedelta(days=7), CycleType.WEEKLY, 1))
    if previous.total > 0:
        change = float((current.total - previous.total) / previous.total * 100)
    else:
        change = 0.0
    return WeeklyComparison(
        current_week=current, previous_week=previous, percentage_change=change
    )


def group_by_date(expenses: Expenses, *, newest_first: bool = True) -> dict[date, list[Expense]]:
    """Group expenses by calendar day; groups and members follow the chosen order."""

    ordered = sorted(expenses, key=lambda e: e.date, reverse=newest_first)
    grouped: dict[date, list[Expense]] = {}
    for e in ordered:
        grouped.setdefault(e.date.date(), []).append(e)
    return grouped


def date_label(day: date | datetime, today: date | datetime) -> str:
    """Relative label for a day: ``Today``, ``Yesterday``, a weekday name, or ``Mon D``."""

    d = _as_date(day)
    diff = (_as_date(today) - d).days
    if diff == 0:
        return "Today"
    if diff == 1:
        return "Yesterday"
    if diff < 7:
        return d.strftime("%A")
    return f"{d:%b} {d.day}"


__all__ = [
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
]
