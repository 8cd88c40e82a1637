from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from pathlib import Path

import pytest
from budget_cycles.aggregate import total_for_period, total_unpaid_bills
from budget_cycles.models import BillCategory, CycleType, UserSettings
from budget_cycles.periods import compute_period
from budget_cycles.persistence import (
    add_bill,
    add_expense,
    delete_expense,
    ensure_current_period,
    find_current_period,
    list_periods,
    load_bills,
    load_expenses,
    mark_bill_paid,
    to_period,
    update_expense,
)
from db.client import session_scope
from db.models.budget import BcBudgetPeriod, BcExpense

from tests.helpers.db import bootstrap_sqlite_db

SEMI_MONTHLY = UserSettings(budget_cycle="semi-monthly", cycle_start_day=1, income=Decimal("15000"))
MONTHLY_25 = UserSettings(budget_cycle="monthly", cycle_start_day=25, income=Decimal("30000"))


@pytest.fixture()
def db_url(tmp_path: Path) -> str:
    return bootstrap_sqlite_db(tmp_path / "budget.sqlite3")


# ---- Periods -------------------------------------------------------------------


def test_ensure_current_period_creates_once(db_url: str):
    now = datetime(2024, 1, 10, 9, 0)

    with session_scope(database_url=db_url) as s:
        row, created = ensure_current_period(s, user_id="u1", settings=SEMI_MONTHLY, now=now)
        first_id = row.id
        assert created is True
        assert row.amount == Decimal("15000")
        assert row.cycle_type == "semi-monthly"
        assert to_period(row) == compute_period(now, CycleType.SEMI_MONTHLY, 1)

    with session_scope(database_url=db_url) as s:
        again, created = ensure_current_period(
            s, user_id="u1", settings=SEMI_MONTHLY, now=datetime(2024, 1, 15, 23, 59, 59)
        )
        assert created is False
        assert again.id == first_id


def test_last_sub_millisecond_of_a_period_reuses_it(db_url: str):
    last_instant = datetime(2024, 1, 15, 23, 59, 59, 999_500)

    with session_scope(database_url=db_url) as s:
        row, _ = ensure_current_period(
            s, user_id="u1", settings=SEMI_MONTHLY, now=datetime(2024, 1, 10)
        )
        first_id = row.id

    with session_scope(database_url=db_url) as s:
        again, created = ensure_current_period(
            s, user_id="u1", settings=SEMI_MONTHLY, now=last_instant
        )
        expense = add_expense(
            s,
            user_id="u1",
            amount="12",
            category="Food",
            spent_at=last_instant,
            now=last_instant,
        )

        assert created is False
        assert again.id == first_id
        assert expense.budget_period_id == first_id
        assert len(list_periods(s, user_id="u1")) == 1


def test_periods_are_scoped_per_user(db_url: str):
    now = datetime(2024, 1, 10)

    with session_scope(database_url=db_url) as s:
        a, _ = ensure_current_period(s, user_id="u1", settings=SEMI_MONTHLY, now=now)
        b, created = ensure_current_period(s, user_id="u2", settings=SEMI_MONTHLY, now=now)

        assert created is True
        assert a.id != b.id
        assert find_current_period(s, user_id="u3", now=now) is None


def test_settings_change_is_forward_only(db_url: str):
    with session_scope(database_url=db_url) as s:
        original, _ = ensure_current_period(
            s, user_id="u1", settings=SEMI_MONTHLY, now=datetime(2024, 1, 10)
        )

    # The stored period keeps covering "now" until it ends.
    with session_scope(database_url=db_url) as s:
        still, created = ensure_current_period(
            s, user_id="u1", settings=MONTHLY_25, now=datetime(2024, 1, 12)
        )
        assert created is False
        assert still.id == original.id
        assert still.cycle_type == "semi-monthly"

    # Once it ends, the next period follows the new settings.
    with session_scope(database_url=db_url) as s:
        nxt, created = ensure_current_period(
            s, user_id="u1", settings=MONTHLY_25, now=datetime(2024, 1, 16, 8, 0)
        )
        assert created is True
        assert nxt.cycle_type == "monthly"
        assert to_period(nxt) == compute_period(datetime(2024, 1, 16), "monthly", 25)

        periods = list_periods(s, user_id="u1")
        assert [p.id for p in periods] == [nxt.id, original.id]
        assert periods[1].end_at == datetime(2024, 1, 15, 23, 59, 59, 999_000)


# ---- Expenses ------------------------------------------------------------------


def test_add_expense_tags_current_period(db_url: str):
    now = datetime(2024, 1, 10, 12, 0)

    with session_scope(database_url=db_url) as s:
        period, _ = ensure_current_period(s, user_id="u1", settings=SEMI_MONTHLY, now=now)
        tagged = add_expense(
            s,
            user_id="u1",
            amount="120.456",
            category="  Food ",
            spent_at=now,
            description=" lunch ",
            now=now,
        )
        untagged = add_expense(
            s,
            user_id="u1",
            amount=50,
            category="Food",
            spent_at=datetime(2024, 2, 3),
            now=datetime(2024, 2, 3),
        )

        assert tagged.budget_period_id == period.id
        assert tagged.amount == Decimal("120.46")
        assert tagged.category == "Food"
        assert tagged.description == "lunch"
        assert untagged.budget_period_id is None

    with session_scope(database_url=db_url) as s:
        expenses = load_expenses(s, user_id="u1")

    assert [e.date for e in expenses] == [datetime(2024, 2, 3), now]
    assert expenses[1].period_id == str(period.id)
    assert total_for_period(expenses, str(period.id)) == Decimal("120.46")


def test_add_expense_explicit_period_wins(db_url: str):
    with session_scope(database_url=db_url) as s:
        period, _ = ensure_current_period(
            s, user_id="u1", settings=SEMI_MONTHLY, now=datetime(2024, 1, 10)
        )
        row = add_expense(
            s,
            user_id="u1",
            amount="10",
            category="Food",
            spent_at=datetime(2024, 3, 1),
            budget_period_id=period.id,
            now=datetime(2024, 3, 1),
        )
        assert row.budget_period_id == period.id


@pytest.mark.parametrize("amount", ["0", "-5", "abc", "inf"])
def test_add_expense_rejects_bad_amounts(db_url: str, amount: str):
    with session_scope(database_url=db_url) as s:
        with pytest.raises(ValueError):
            add_expense(
                s, user_id="u1", amount=amount, category="Food", spent_at=datetime(2024, 1, 1)
            )


def test_add_expense_rejects_blank_category(db_url: str):
    with session_scope(database_url=db_url) as s:
        with pytest.raises(ValueError, match="category"):
            add_expense(s, user_id="u1", amount="1", category="   ", spent_at=datetime(2024, 1, 1))


def test_update_expense_keeps_period_tag(db_url: str):
    now = datetime(2024, 1, 10)
    with session_scope(database_url=db_url) as s:
        period, _ = ensure_current_period(s, user_id="u1", settings=SEMI_MONTHLY, now=now)
        row = add_expense(
            s, user_id="u1", amount="10", category="Food", spent_at=now, now=now
        )
        expense_id = row.id

    with session_scope(database_url=db_url) as s:
        updated = update_expense(
            s, expense_id, amount="25", category="Transport", spent_at=datetime(2024, 2, 1)
        )
        assert updated.amount == Decimal("25.00")
        assert updated.category == "Transport"
        assert updated.budget_period_id == period.id


def test_update_missing_expense(db_url: str):
    with session_scope(database_url=db_url) as s:
        with pytest.raises(LookupError):
            update_expense(s, 999, amount="1")


def test_delete_expense(db_url: str):
    with session_scope(database_url=db_url) as s:
        row = add_expense(
            s, user_id="u1", amount="5", category="Food", spent_at=datetime(2024, 1, 1)
        )
        expense_id = row.id

    with session_scope(database_url=db_url) as s:
        assert delete_expense(s, expense_id) is True
        assert delete_expense(s, expense_id) is False
        assert load_expenses(s, user_id="u1") == []


def test_deleting_a_period_untags_its_expenses(db_url: str):
    now = datetime(2024, 1, 10)
    with session_scope(database_url=db_url) as s:
        period, _ = ensure_current_period(s, user_id="u1", settings=SEMI_MONTHLY, now=now)
        expense = add_expense(s, user_id="u1", amount="5", category="Food", spent_at=now, now=now)
        period_id, expense_id = period.id, expense.id

    with session_scope(database_url=db_url) as s:
        s.delete(s.get(BcBudgetPeriod, period_id))

    with session_scope(database_url=db_url) as s:
        row = s.get(BcExpense, expense_id)
        assert row is not None
        assert row.budget_period_id is None


# ---- Bills ---------------------------------------------------------------------


def test_bills_round_trip(db_url: str):
    paid_at = datetime(2024, 1, 4, 10, 0)
    with session_scope(database_url=db_url) as s:
        add_bill(s, user_id="u1", name="Internet", amount="1699", due_day=20)
        rent = add_bill(
            s, user_id="u1", name=" Rent ", amount="12000", due_day=5, category="rent"
        )
        mark_bill_paid(s, rent.id, is_paid=True, now=paid_at)

    with session_scope(database_url=db_url) as s:
        bills = load_bills(s, user_id="u1")

    assert [b.name for b in bills] == ["Rent", "Internet"]
    assert bills[0].category is BillCategory.RENT
    assert bills[0].is_paid is True
    assert bills[0].paid_at == paid_at
    assert bills[1].category is BillCategory.OTHER
    assert total_unpaid_bills(bills) == Decimal("1699.00")


def test_marking_a_bill_unpaid_clears_paid_at(db_url: str):
    with session_scope(database_url=db_url) as s:
        bill = add_bill(s, user_id="u1", name="Water", amount="400", due_day=12)
        mark_bill_paid(s, bill.id, is_paid=True, now=datetime(2024, 1, 12))
        unpaid = mark_bill_paid(s, bill.id, is_paid=False)

        assert unpaid.is_paid is False
        assert unpaid.paid_at is None


@pytest.mark.parametrize(("name", "due_day"), [("Rent", 0), ("Rent", 32), ("  ", 5)])
def test_add_bill_validation(db_url: str, name: str, due_day: int):
    with session_scope(database_url=db_url) as s:
        with pytest.raises(ValueError):
            add_bill(s, user_id="u1", name=name, amount="1", due_day=due_day)


def test_mark_missing_bill(db_url: str):
    with session_scope(database_url=db_url) as s:
        with pytest.raises(LookupError):
            mark_bill_paid(s, 42, is_paid=True)
