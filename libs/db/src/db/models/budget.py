from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# BIGINT identity on Postgres; INTEGER PRIMARY KEY (rowid) on SQLite so
# autoincrement works in local/test databases.
_PK = BigInteger().with_variant(Integer, "sqlite")


class Base(DeclarativeBase):
    pass


# ---------------------------
# Materialized budget periods
# ---------------------------


class BcBudgetPeriod(Base):
    __tablename__ = "bc_budget_periods"

    id: Mapped[int] = mapped_column(_PK, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False)
    amount: Mapped[Decimal] = mapped_column(
        Numeric(18, 2), nullable=False, server_default=text("0")
    )
    # Cycle configuration in force when the period was materialized. Kept for
    # audit only; later settings changes never rewrite stored periods.
    cycle_type: Mapped[str] = mapped_column(String, nullable=False)
    anchor_day: Mapped[int] = mapped_column(Integer, nullable=False)
    # Naive local instants: start 00:00:00.000, end 23:59:59.999.
    start_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    end_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("start_at <= end_at", name="ck_bc_period_bounds"),
        CheckConstraint("amount >= 0", name="ck_bc_period_amount"),
        Index("ix_bc_periods_user_start", "user_id", "start_at"),
    )


# ---------------------------
# Expenses
# ---------------------------


class BcExpense(Base):
    __tablename__ = "bc_expenses"

    id: Mapped[int] = mapped_column(_PK, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    # Free-form; matched case-insensitively against category budgets.
    category: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, server_default=text("''"))
    spent_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    budget_period_id: Mapped[int | None] = mapped_column(
        _PK,
        ForeignKey("bc_budget_periods.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_bc_expense_amount"),
        Index("ix_bc_expenses_user_spent", "user_id", "spent_at"),
    )


# ---------------------------
# Bills
# ---------------------------


class BcBill(Base):
    __tablename__ = "bc_bills"

    id: Mapped[int] = mapped_column(_PK, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    due_day: Mapped[int] = mapped_column(Integer, nullable=False)
    is_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    category: Mapped[str] = mapped_column(String, nullable=False, server_default=text("'other'"))
    is_recurring: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=text("true")
    )

    __table_args__ = (
        CheckConstraint("due_day >= 1 AND due_day <= 31", name="ck_bc_bill_due_day"),
        CheckConstraint(
            "category in ('utilities','rent','subscription','loan','insurance','other')",
            name="ck_bc_bill_category",
        ),
    )


__all__ = [
    "Base",
    "BcBill",
    "BcBudgetPeriod",
    "BcExpense",
]
