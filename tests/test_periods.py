from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest
from budget_cycles.models import CycleType, Period
from budget_cycles.periods import (
    clamp_day,
    compute_period,
    cycle_description,
    days_in_month,
    end_of_day,
    iter_periods,
    next_payday,
    next_period,
    ordinal,
    previous_period,
    shift_month,
    start_of_day,
)

_ONE_MS = timedelta(milliseconds=1)


def _dates(period: Period) -> tuple[date, date]:
    return period.start_date, period.end_date


# ---- Boundary shape ------------------------------------------------------------


def test_period_spans_whole_days():
    p = compute_period(datetime(2024, 1, 10, 14, 30), CycleType.SEMI_MONTHLY, 1)

    assert p.start == datetime(2024, 1, 1, 0, 0, 0)
    assert p.end == datetime(2024, 1, 15, 23, 59, 59, 999_000)


def test_time_of_day_does_not_change_the_period():
    late = datetime(2024, 1, 15, 23, 59, 59, 999_999)
    midnight = date(2024, 1, 15)

    assert compute_period(late, "semi-monthly", 1) == compute_period(midnight, "semi-monthly", 1)


# ---- Weekly --------------------------------------------------------------------


def test_weekly_sunday_anchor_from_wednesday():
    # 2024-01-17 is a Wednesday.
    p = compute_period(date(2024, 1, 17), CycleType.WEEKLY, 7)

    assert _dates(p) == (date(2024, 1, 14), date(2024, 1, 20))
    assert p.start_date.isoweekday() == 7


def test_weekly_monday_anchor():
    assert _dates(compute_period(date(2024, 1, 17), "weekly", 1)) == (
        date(2024, 1, 15),
        date(2024, 1, 21),
    )


def test_weekly_period_starts_on_reference_when_it_is_the_anchor_day():
    assert _dates(compute_period(date(2024, 1, 17), "weekly", 3)) == (
        date(2024, 1, 17),
        date(2024, 1, 23),
    )


# ---- Semi-monthly --------------------------------------------------------------


def test_semi_monthly_second_half_runs_to_month_end():
    p = compute_period(date(2024, 1, 20), CycleType.SEMI_MONTHLY, 1)

    assert p.start == datetime(2024, 1, 16)
    assert p.end == datetime(2024, 1, 31, 23, 59, 59, 999_000)


def test_semi_monthly_first_half():
    assert _dates(compute_period(date(2024, 1, 10), CycleType.SEMI_MONTHLY, 1)) == (
        date(2024, 1, 1),
        date(2024, 1, 15),
    )


def test_semi_monthly_second_half_of_leap_february():
    assert _dates(compute_period(date(2024, 2, 16), CycleType.SEMI_MONTHLY, 1)) == (
        date(2024, 2, 16),
        date(2024, 2, 29),
    )


def test_semi_monthly_anchor_past_mid_month_orders_resets():
    # Anchor 20 resets on the 5th and the 20th.
    assert _dates(compute_period(date(2024, 1, 3), "semi-monthly", 20)) == (
        date(2023, 12, 20),
        date(2024, 1, 4),
    )
    assert _dates(compute_period(date(2024, 1, 10), "semi-monthly", 20)) == (
        date(2024, 1, 5),
        date(2024, 1, 19),
    )
    assert _dates(compute_period(date(2024, 1, 25), "semi-monthly", 20)) == (
        date(2024, 1, 20),
        date(2024, 2, 4),
    )


def test_semi_monthly_anchor_31_clamps_second_reset_in_february():
    # Resets on the 16th and the 31st (29th in February 2024).
    assert _dates(compute_period(date(2024, 2, 20), "semi-monthly", 31)) == (
        date(2024, 2, 16),
        date(2024, 2, 28),
    )
    assert _dates(compute_period(date(2024, 2, 29), "semi-monthly", 31)) == (
        date(2024, 2, 29),
        date(2024, 3, 15),
    )
    assert _dates(compute_period(date(2024, 3, 5), "semi-monthly", 31)) == (
        date(2024, 2, 29),
        date(2024, 3, 15),
    )


def test_semi_monthly_anchor_16_matches_anchor_1():
    ref = date(2024, 5, 20)

    assert compute_period(ref, "semi-monthly", 16) == compute_period(ref, "semi-monthly", 1)


# ---- Monthly -------------------------------------------------------------------


def test_monthly_anchor_1_is_the_calendar_month():
    assert _dates(compute_period(date(2024, 3, 15), CycleType.MONTHLY, 1)) == (
        date(2024, 3, 1),
        date(2024, 3, 31),
    )


def test_monthly_anchor_31_clamps_each_month_independently():
    assert _dates(compute_period(date(2024, 2, 10), "monthly", 31)) == (
        date(2024, 1, 31),
        date(2024, 2, 28),
    )
    assert _dates(compute_period(date(2024, 2, 29), "monthly", 31)) == (
        date(2024, 2, 29),
        date(2024, 3, 30),
    )
    # The anchor is not permanently shortened by February.
    assert _dates(compute_period(date(2024, 3, 31), "monthly", 31)) == (
        date(2024, 3, 31),
        date(2024, 4, 29),
    )


def test_monthly_anchor_31_non_leap_february():
    assert _dates(compute_period(date(2023, 2, 15), "monthly", 31)) == (
        date(2023, 1, 31),
        date(2023, 2, 27),
    )
    assert _dates(compute_period(date(2023, 2, 28), "monthly", 31)) == (
        date(2023, 2, 28),
        date(2023, 3, 30),
    )


def test_monthly_crosses_year_boundary():
    assert _dates(compute_period(date(2024, 1, 3), "monthly", 15)) == (
        date(2023, 12, 15),
        date(2024, 1, 14),
    )


# ---- Quarterly and yearly ------------------------------------------------------


def test_quarterly_anchor_1():
    assert _dates(compute_period(date(2024, 5, 10), CycleType.QUARTERLY, 1)) == (
        date(2024, 4, 1),
        date(2024, 6, 30),
    )


def test_quarterly_reference_before_anchored_start_uses_previous_quarter():
    p = compute_period(date(2024, 4, 3), CycleType.QUARTERLY, 15)

    assert _dates(p) == (date(2024, 1, 15), date(2024, 4, 14))
    assert p.contains(datetime(2024, 4, 3, 12, 0))


def test_quarterly_previous_quarter_crosses_year_boundary():
    assert _dates(compute_period(date(2024, 1, 5), "quarterly", 15)) == (
        date(2023, 10, 15),
        date(2024, 1, 14),
    )


def test_yearly_anchor_1():
    assert _dates(compute_period(date(2024, 7, 4), CycleType.YEARLY, 1)) == (
        date(2024, 1, 1),
        date(2024, 12, 31),
    )


def test_yearly_reference_before_anchor():
    assert _dates(compute_period(date(2024, 1, 10), "yearly", 15)) == (
        date(2023, 1, 15),
        date(2024, 1, 14),
    )


# ---- Fallback ------------------------------------------------------------------


@pytest.mark.parametrize("cycle", ["biweekly", "", "daily"])
def test_unrecognized_cycle_uses_fixed_1st_16th_split(cycle: str):
    # The configured anchor is ignored.
    assert _dates(compute_period(date(2024, 1, 20), cycle, 9)) == (
        date(2024, 1, 16),
        date(2024, 1, 31),
    )
    assert _dates(compute_period(date(2024, 1, 9), cycle, 9)) == (
        date(2024, 1, 1),
        date(2024, 1, 15),
    )


def test_cycle_names_are_case_insensitive():
    ref = date(2024, 1, 20)

    assert compute_period(ref, "MONTHLY", 5) == compute_period(ref, CycleType.MONTHLY, 5)
    assert compute_period(ref, "Semi_Monthly", 20) == compute_period(ref, "semi-monthly", 20)


# ---- Partition properties ------------------------------------------------------

_MONTH_ANCHORS = (1, 2, 14, 15, 16, 28, 29, 30, 31)
_CASES = [(CycleType.WEEKLY, a) for a in range(1, 8)] + [
    (cycle, a)
    for cycle in (CycleType.SEMI_MONTHLY, CycleType.MONTHLY, CycleType.QUARTERLY)
    for a in _MONTH_ANCHORS
] + [(CycleType.YEARLY, a) for a in (1, 15, 31)]


@pytest.mark.parametrize(("cycle", "anchor"), _CASES)
def test_periods_contain_reference_and_tile_the_calendar(cycle: CycleType, anchor: int):
    day = date(2023, 11, 1)
    stop = date(2026, 3, 1) if cycle is CycleType.YEARLY else date(2025, 3, 1)
    seen: list[Period] = []
    while day < stop:
        p = compute_period(day, cycle, anchor)
        assert p.contains(day), (cycle, anchor, day, p)
        assert p.start.time() == datetime.min.time()
        if not seen or p != seen[-1]:
            if seen:
                # Adjacent periods share no instant and leave no gap.
                assert p.start == seen[-1].end + _ONE_MS, (cycle, anchor, seen[-1], p)
            seen.append(p)
        day += timedelta(days=1)

    assert len(seen) >= 3


@pytest.mark.parametrize(("cycle", "anchor"), _CASES)
def test_next_and_previous_periods_agree(cycle: CycleType, anchor: int):
    p = compute_period(date(2024, 1, 31), cycle, anchor)
    nxt = next_period(p, cycle, anchor)

    assert nxt.start == p.end + _ONE_MS
    assert previous_period(nxt, cycle, anchor) == p
    assert next_period(previous_period(p, cycle, anchor), cycle, anchor) == p


def test_iter_periods_yields_consecutive_periods():
    periods = list(iter_periods(date(2024, 1, 20), "monthly", 31, 3))

    assert [_dates(p) for p in periods] == [
        (date(2023, 12, 31), date(2024, 1, 30)),
        (date(2024, 1, 31), date(2024, 2, 28)),
        (date(2024, 2, 29), date(2024, 3, 30)),
    ]


def test_iter_periods_non_positive_count_is_empty():
    assert list(iter_periods(date(2024, 1, 20), "monthly", 1, 0)) == []


# ---- Calendar helpers ----------------------------------------------------------


def test_calendar_helpers():
    assert days_in_month(2024, 2) == 29
    assert days_in_month(2023, 2) == 28
    assert clamp_day(2024, 4, 31) == 30
    assert clamp_day(2024, 4, 0) == 1
    assert shift_month(2024, 1, -1) == (2023, 12)
    assert shift_month(2023, 12, 1) == (2024, 1)
    assert shift_month(2024, 11, 3) == (2025, 2)


# ---- Display helpers -----------------------------------------------------------


@pytest.mark.parametrize(
    ("n", "expected"),
    [(1, "1st"), (2, "2nd"), (3, "3rd"), (4, "4th"), (11, "11th"), (12, "12th"), (13, "13th"),
     (21, "21st"), (22, "22nd"), (31, "31st")],
)
def test_ordinal(n: int, expected: str):
    assert ordinal(n) == expected


def test_cycle_description():
    assert cycle_description("weekly", 1) == "Starts every Monday"
    assert cycle_description("weekly", 7) == "Starts every Sunday"
    assert cycle_description("semi-monthly", 1) == "Reset on 1st & 16th"
    assert cycle_description("semi-monthly", 20) == "Reset on 5th & 20th"
    assert cycle_description("monthly", 22) == "Reset every 22nd"
    assert cycle_description("quarterly", 1) == "Reset every 3 months"
    assert cycle_description("yearly", 1) == "Reset every year"
    assert cycle_description("fortnightly", 1) == "Reset every cycle"


def test_next_payday():
    assert next_payday(date(2024, 1, 3)) == date(2024, 1, 15)
    assert next_payday(date(2024, 1, 15)) == date(2024, 1, 30)
    assert next_payday(date(2024, 2, 20)) == date(2024, 2, 29)
    assert next_payday(date(2024, 1, 30)) == date(2024, 2, 15)
    assert next_payday(datetime(2024, 12, 31, 9, 0)) == date(2025, 1, 15)


def test_day_bounds():
    assert start_of_day(datetime(2024, 1, 5, 13, 45)) == datetime(2024, 1, 5)
    assert end_of_day(date(2024, 1, 5)) == datetime(2024, 1, 5, 23, 59, 59, 999_000)
