# ruff: noqa: I001
"""Persistence integration for budget_cycles.

Functions here read and write the shared database owned by ``libs/db``
through a caller-provided SQLAlchemy session (callers own the transaction
scope, typically via ``db.client.session_scope``).

Scope:
- Materialize the "current budget period" for a user when none covers now.
- Store expenses tagged with the period that covered them at creation.
- Store bills and their paid state.

Settings changes are forward-only: stored periods and the expense-to-period
links are never rewritten. A stored period that still covers ``now`` stays
current until it ends, even if the cycle configuration changed meanwhile.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from db.models.budget import BcBill, BcBudgetPeriod, BcExpense
from .logging_setup import get_logger
from .models import Bill, BillCategory, Expense, Period, UserSettings
from .periods import compute_period

_logger = get_logger("budget_cycles.persistence")


def _to_decimal_2(raw: Any) -> Decimal:
    try:
        d = raw if isinstance(raw, Decimal) else Decimal(str(raw))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"invalid amount: {raw!r}") from e
    if not d.is_finite():
        raise ValueError(f"invalid amount: {raw!r}")
    return d.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _positive_amount(raw: Any) -> Decimal:
    amount = _to_decimal_2(raw)
    if amount <= 0:
        raise ValueError("amount must be positive")
    return amount


def _to_millis(value: datetime) -> datetime:
    # Stored bounds carry millisecond precision (periods end at 23:59:59.999).
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


def _norm_category(raw: str) -> str:
    s = " ".join(str(raw).strip().split())
    if not s:
        raise ValueError("category must be non-empty")
    return s


# ---------------------------
# Row <-> domain conversions
# ---------------------------


def to_period(row: BcBudgetPeriod) -> Period:
    return Period(start=row.start_at, end=row.end_at)


def _to_expense(row: BcExpense) -> Expense:
    return Expense(
        amount=row.amount,
        category=row.category,
        date=row.spent_at,
        period_id=str(row.budget_period_id) if row.budget_period_id is not None else None,
        description=row.description or "",
        id=str(row.id),
    )


def _to_bill(row: BcBill) -> Bill:
    return Bill(
        name=row.name,
        amount=row.amount,
        due_day=row.due_day,
        is_paid=bool(row.is_paid),
        category=BillCategory(row.category),
        is_recurring=bool(row.is_recurring),
        paid_at=row.paid_at,
        id=str(row.id),
    )


# ---------------------------
# Budget periods
# ---------------------------


def find_current_period(
    session: Session, *, user_id: str, now: datetime
) -> BcBudgetPeriod | None:
    """Return the newest stored period covering ``now`` for ``user_id``.

    ``now`` is truncated to milliseconds, so the final sub-millisecond of a
    period still resolves to it.
    """

    now = _to_millis(now)
    stmt = (
        select(BcBudgetPeriod)
        .where(
            (BcBudgetPeriod.user_id == user_id)
            & (BcBudgetPeriod.start_at <= now)
            & (BcBudgetPeriod.end_at >= now)
        )
        .order_by(BcBudgetPeriod.start_at.desc(), BcBudgetPeriod.id.desc())
        .limit(1)
    )
    return session.execute(stmt).scalars().first()


def ensure_current_period(
    session: Session,
    *,
    user_id: str,
    settings: UserSettings,
    now: datetime | None = None,
) -> tuple[BcBudgetPeriod, bool]:
    """Return ``(period_row, created)`` for the period covering ``now``.

    When no stored period covers ``now``, one is computed from the user's
    current cycle settings, stored with ``amount = settings.income`` and
    flushed so its ``id`` is available to the caller.
    """

    now = now or datetime.now()
    existing = find_current_period(session, user_id=user_id, now=now)
    if existing is not None:
        return existing, False

    period = compute_period(now, settings.budget_cycle, settings.cycle_start_day)
    row = BcBudgetPeriod(
        user_id=user_id,
        amount=_to_decimal_2(settings.income),
        cycle_type=settings.budget_cycle.value,
        anchor_day=settings.cycle_start_day,
        start_at=period.start,
        end_at=period.end,
    )
    session.add(row)
    session.flush()
    _logger.info(
        "Created budget period %s for user %s: %s..%s (%s, anchor %d)",
        row.id,
        user_id,
        period.start_date.isoformat(),
        period.end_date.isoformat(),
        settings.budget_cycle.value,
        settings.cycle_start_day,
    )
    return row, True


def list_periods(session: Session, *, user_id: str) -> list[BcBudgetPeriod]:
    """Stored periods for ``user_id``, newest first."""

    stmt = (
        select(BcBudgetPeriod)
        .where(BcBudgetPeriod.user_id == user_id)
        .order_by(BcBudgetPeriod.start_at.desc(), BcBudgetPeriod.id.desc())
    )
    return list(session.execute(stmt).scalars())


# ---------------------------
# Expenses
# ---------------------------


def add_expense(
    session: Session,
    *,
    user_id: str,
    amount: Decimal | int | float | str,
    category: str,
    spent_at: datetime,
    description: str = "",
    budget_period_id: int | None = None,
    now: datetime | None = None,
) -> BcExpense:
    """Insert an expense and return the flushed row.

    Without ``budget_period_id``, the expense is tagged with the stored period
    covering ``now`` (defaults to the current time), or left untagged when
    there is none.
    """

    if budget_period_id is None:
        current = find_current_period(session, user_id=user_id, now=now or datetime.now())
        budget_period_id = current.id if current is not None else None

    row = BcExpense(
        user_id=user_id,
        amount=_positive_amount(amount),
        category=_norm_category(category),
        description=(description or "").strip(),
        spent_at=spent_at,
        budget_period_id=budget_period_id,
    )
    session.add(row)
    session.flush()
    _logger.debug("Added expense %s (period %s)", row.id, budget_period_id)
    return row


def update_expense(
    session: Session,
    expense_id: int,
    *,
    amount: Decimal | int | float | str | None = None,
    category: str | None = None,
    description: str | None = None,
    spent_at: datetime | None = None,
) -> BcExpense:
    """Apply the given field updates. The period tag is left unchanged."""

    row = session.get(BcExpense, expense_id)
    if row is None:
        raise LookupError(f"expense {expense_id} not found")
    if amount is not None:
        row.amount = _positive_amount(amount)
    if category is not None:
        row.category = _norm_category(category)
    if description is not None:
        row.description = description.strip()
    if spent_at is not None:
        row.spent_at = spent_at
    session.flush()
    return row


def delete_expense(session: Session, expense_id: int) -> bool:
    """Delete an expense; returns ``False`` when it did not exist."""

    result = session.execute(delete(BcExpense).where(BcExpense.id == expense_id))
    return bool(result.rowcount)


def load_expenses(session: Session, *, user_id: str) -> list[Expense]:
    """All of ``user_id``'s expenses as domain values, newest first."""

    stmt = (
        select(BcExpense)
        .where(BcExpense.user_id == user_id)
        .order_by(BcExpense.spent_at.desc(), BcExpense.id.desc())
    )
    return [_to_expense(row) for row in session.execute(stmt).scalars()]


# ---------------------------
# Bills
# ---------------------------


def add_bill(
    session: Session,
    *,
    user_id: str,
    name: str,
    amount: Decimal | int | float | str,
    due_day: int,
    category: BillCategory | str = BillCategory.OTHER,
    is_recurring: bool = True,
) -> BcBill:
    if not 1 <= due_day <= 31:
        raise ValueError("due_day must be within 1..31")
    clean_name = " ".join(name.strip().split())
    if not clean_name:
        raise ValueError("bill name must be non-empty")
    row = BcBill(
        user_id=user_id,
        name=clean_name,
        amount=_positive_amount(amount),
        due_day=due_day,
        category=BillCategory(category).value,
        is_recurring=is_recurring,
    )
    session.add(row)
    session.flush()
    return row


def mark_bill_paid(
    session: Session, bill_id: int, *, is_paid: bool, now: datetime | None = None
) -> BcBill:
    """Set the paid flag; ``paid_at`` is stamped when paid and cleared otherwise."""

    row = session.get(BcBill, bill_id)
    if row is None:
        raise LookupError(f"bill {bill_id} not found")
    row.is_paid = is_paid
    row.paid_at = (now or datetime.now()) if is_paid else None
    session.flush()
    return row


def load_bills(session: Session, *, user_id: str) -> list[Bill]:
    """All of ``user_id``'s bills ordered by due day."""

    stmt = select(BcBill).where(BcBill.user_id == user_id).order_by(BcBill.due_day, BcBill.id)
    return [_to_bill(row) for row in session.execute(stmt).scalars()]


__all__ = [
    "add_bill",
    "add_expense",
    "delete_expense",
    "ensure_current_period",
    "find_current_period",
    "list_periods",
    "load_bills",
    "load_expenses",
    "mark_bill_paid",
    "to_period",
    "update_expense",
]
