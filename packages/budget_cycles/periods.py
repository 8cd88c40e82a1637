"""Budget-cycle period calculator.

:func:`compute_period` maps ``(reference, cycle_type, anchor_day)`` to the
closed :class:`~budget_cycles.models.Period` that ``reference`` falls into.
It is pure and total: every in-domain combination returns a period, an
unrecognized cycle type falls back to the fixed 1st/16th semi-monthly split,
and anchors past the end of a month are clamped to that month's last day for
that month only.

End dates are always "the day before the next boundary", so month lengths of
28-31 days need no special casing. Each month visited during a calculation
reclamps the nominal anchor against its own length.
"""

from __future__ import annotations

import calendar
from collections.abc import Iterator
from datetime import date, datetime, time, timedelta

from .logging_setup import get_logger
from .models import END_OF_DAY, CycleType, Period

_logger = get_logger("budget_cycles.periods")

_ONE_DAY = timedelta(days=1)

# Semi-monthly resets are spaced half a month apart.
_SEMI_MONTHLY_OFFSET = 15

_DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


# ---------------------------------------------------------------------------
# Calendar helpers
# ---------------------------------------------------------------------------


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def clamp_day(year: int, month: int, day: int) -> int:
    """Clamp ``day`` into ``1..days_in_month(year, month)``."""

    return max(1, min(day, days_in_month(year, month)))


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    """Return ``(year, month)`` moved by ``delta`` months (may be negative)."""

    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def start_of_day(value: date | datetime) -> datetime:
    d = value.date() if isinstance(value, datetime) else value
    return datetime.combine(d, time.min)


def end_of_day(value: date | datetime) -> datetime:
    d = value.date() if isinstance(value, datetime) else value
    return datetime.combine(d, END_OF_DAY)


def _anchor_date(year: int, month: int, anchor_day: int) -> date:
    return date(year, month, clamp_day(year, month, anchor_day))


def _reference_date(reference: date | datetime) -> date:
    return reference.date() if isinstance(reference, datetime) else reference


# ---------------------------------------------------------------------------
# Per-cycle calculations (all operate on calendar dates)
# ---------------------------------------------------------------------------


def _weekly(ref: date, anchor_day: int) -> tuple[date, date]:
    # Anchor uses ISO numbering (1=Monday .. 7=Sunday), the same convention as
    # date.isoweekday(); reducing both mod 7 maps Sunday to 0.
    days_since_anchor = (ref.isoweekday() - anchor_day) % 7
    start = ref - timedelta(days=days_since_anchor)
    return start, start + timedelta(days=6)


def _semi_monthly_resets(anchor_day: int) -> tuple[int, int]:
    """Return the two nominal reset days of a month, ordered."""

    anchor = max(1, anchor_day)
    if anchor > _SEMI_MONTHLY_OFFSET:
        other = anchor - _SEMI_MONTHLY_OFFSET
    else:
        other = anchor + _SEMI_MONTHLY_OFFSET
    first, second = sorted((anchor, other))
    return first, second


def _semi_monthly(ref: date, anchor_day: int) -> tuple[date, date]:
    first, second = _semi_monthly_resets(anchor_day)
    year, month = ref.year, ref.month
    first_reset = _anchor_date(year, month, first)
    second_reset = _anchor_date(year, month, second)

    if first_reset <= ref < second_reset:
        return first_reset, second_reset - _ONE_DAY

    if ref >= second_reset:
        next_year, next_month = shift_month(year, month, 1)
        next_first = _anchor_date(next_year, next_month, first)
        return second_reset, next_first - _ONE_DAY

    prev_year, prev_month = shift_month(year, month, -1)
    prev_second = _anchor_date(prev_year, prev_month, second)
    return prev_second, first_reset - _ONE_DAY


def _monthly(ref: date, anchor_day: int) -> tuple[date, date]:
    this_reset = _anchor_date(ref.year, ref.month, anchor_day)
    if ref >= this_reset:
        next_year, next_month = shift_month(ref.year, ref.month, 1)
        return this_reset, _anchor_date(next_year, next_month, anchor_day) - _ONE_DAY

    prev_year, prev_month = shift_month(ref.year, ref.month, -1)
    return _anchor_date(prev_year, prev_month, anchor_day), this_reset - _ONE_DAY


def _quarterly(ref: date, anchor_day: int) -> tuple[date, date]:
    quarter_month = (ref.month - 1) // 3 * 3 + 1
    start = _anchor_date(ref.year, quarter_month, anchor_day)
    if ref < start:
        # Reference precedes this quarter's (anchored) reset: previous quarter.
        prev_year, prev_month = shift_month(ref.year, quarter_month, -3)
        start = _anchor_date(prev_year, prev_month, anchor_day)
        return start, _anchor_date(ref.year, quarter_month, anchor_day) - _ONE_DAY

    next_year, next_month = shift_month(ref.year, quarter_month, 3)
    return start, _anchor_date(next_year, next_month, anchor_day) - _ONE_DAY


def _yearly(ref: date, anchor_day: int) -> tuple[date, date]:
    this_reset = _anchor_date(ref.year, 1, anchor_day)
    if ref < this_reset:
        return _anchor_date(ref.year - 1, 1, anchor_day), this_reset - _ONE_DAY
    return this_reset, _anchor_date(ref.year + 1, 1, anchor_day) - _ONE_DAY


def _default_split(ref: date) -> tuple[date, date]:
    # Fixed 1st/16th split regardless of the configured anchor.
    return _semi_monthly(ref, 1)


_CALCULATORS = {
    CycleType.WEEKLY: _weekly,
    CycleType.SEMI_MONTHLY: _semi_monthly,
    CycleType.MONTHLY: _monthly,
    CycleType.QUARTERLY: _quarterly,
    CycleType.YEARLY: _yearly,
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def compute_period(
    reference: date | datetime,
    cycle_type: CycleType | str,
    anchor_day: int,
) -> Period:
    """Return the budget period containing ``reference``.

    Parameters
    ----------
    reference:
        Local calendar date, or a naive local ``datetime`` (time of day is
        ignored for boundary selection).
    cycle_type:
        A :class:`CycleType` or its string value. Unrecognized values fall
        back to a fixed semi-monthly split on the 1st and 16th.
    anchor_day:
        1-7 (Monday..Sunday) for weekly cycles; day of month (1-31) for all
        others. Clamped per month where it exceeds the month length.

    Returns
    -------
    Period
        ``start`` at 00:00:00.000 and ``end`` at 23:59:59.999 local time.
    """

    ref = _reference_date(reference)
    cycle = CycleType.parse(cycle_type)
    if cycle is None:
        _logger.debug("Unrecognized cycle type %r; using 1st/16th split", cycle_type)
        start, end = _default_split(ref)
    else:
        start, end = _CALCULATORS[cycle](ref, anchor_day)
    return Period.from_dates(start, end)


def next_period(period: Period, cycle_type: CycleType | str, anchor_day: int) -> Period:
    """Return the period that starts the day after ``period`` ends."""

    return compute_period(period.end_date + _ONE_DAY, cycle_type, anchor_day)


def previous_period(period: Period, cycle_type: CycleType | str, anchor_day: int) -> Period:
    """Return the period that ends the day before ``period`` starts."""

    return compute_period(period.start_date - _ONE_DAY, cycle_type, anchor_day)


def iter_periods(
    reference: date | datetime,
    cycle_type: CycleType | str,
    anchor_day: int,
    count: int,
) -> Iterator[Period]:
    """Yield ``count`` consecutive periods starting with the one containing ``reference``."""

    if count <= 0:
        return
    period = compute_period(reference, cycle_type, anchor_day)
    yield period
    for _ in range(count - 1):
        period = next_period(period, cycle_type, anchor_day)
        yield period


# ---------------------------------------------------------------------------
# Display helpers
# ---------------------------------------------------------------------------


def ordinal(n: int) -> str:
    """Return ``n`` with its English ordinal suffix (``1st``, ``12th``, ``23rd``)."""

    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def cycle_description(cycle_type: CycleType | str, anchor_day: int) -> str:
    """Short human description of when a cycle resets."""

    cycle = CycleType.parse(cycle_type)
    if cycle is CycleType.WEEKLY:
        return f"Starts every {_DAY_NAMES[(anchor_day - 1) % 7]}"
    if cycle is CycleType.SEMI_MONTHLY:
        first, second = _semi_monthly_resets(anchor_day)
        return f"Reset on {ordinal(first)} & {ordinal(second)}"
    if cycle is CycleType.MONTHLY:
        return f"Reset every {ordinal(anchor_day)}"
    if cycle is CycleType.QUARTERLY:
        return "Reset every 3 months"
    if cycle is CycleType.YEARLY:
        return "Reset every year"
    return "Reset every cycle"


def next_payday(reference: date | datetime) -> date:
    """Return the next twice-monthly payday (15th and 30th/month end)."""

    ref = _reference_date(reference)
    if ref.day < 15:
        return ref.replace(day=15)
    if ref.day < 30:
        return ref.replace(day=min(30, days_in_month(ref.year, ref.month)))
    year, month = shift_month(ref.year, ref.month, 1)
    return date(year, month, 15)


__all__ = [
    "clamp_day",
    "compute_period",
    "cycle_description",
    "days_in_month",
    "end_of_day",
    "iter_periods",
    "next_payday",
    "next_period",
    "ordinal",
    "previous_period",
    "shift_month",
    "start_of_day",
]
