# ruff: noqa: I001
"""Budget periods, expenses and bills.

Revision ID: 0001_budget_core
Revises: None
Create Date: 2026-10-17
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0001_budget_core"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

# BIGINT on Postgres; INTEGER PRIMARY KEY on SQLite so rowids autoincrement.
_ID = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def upgrade() -> None:
    # bc_budget_periods
    op.create_table(
        "bc_budget_periods",
        sa.Column("id", _ID, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Text(), nullable=False),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("cycle_type", sa.Text(), nullable=False),
        sa.Column("anchor_day", sa.Integer(), nullable=False),
        sa.Column("start_at", sa.DateTime(timezone=False), nullable=False),
        sa.Column("end_at", sa.DateTime(timezone=False), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint("start_at <= end_at", name="ck_bc_period_bounds"),
        sa.CheckConstraint("amount >= 0", name="ck_bc_period_amount"),
    )
    op.create_index("ix_bc_periods_user_start", "bc_budget_periods", ["user_id", "start_at"])

    # bc_expenses
    op.create_table(
        "bc_expenses",
        sa.Column("id", _ID, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Text(), nullable=False),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("category", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("spent_at", sa.DateTime(timezone=False), nullable=False),
        sa.Column(
            "budget_period_id",
            _ID,
            sa.ForeignKey("bc_budget_periods.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint("amount > 0", name="ck_bc_expense_amount"),
    )
    op.create_index("ix_bc_expenses_user_spent", "bc_expenses", ["user_id", "spent_at"])

    # bc_bills
    op.create_table(
        "bc_bills",
        sa.Column("id", _ID, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("due_day", sa.Integer(), nullable=False),
        sa.Column("is_paid", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("paid_at", sa.DateTime(timezone=False), nullable=True),
        sa.Column("category", sa.Text(), nullable=False, server_default=sa.text("'other'")),
        sa.Column("is_recurring", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.CheckConstraint("due_day >= 1 AND due_day <= 31", name="ck_bc_bill_due_day"),
        sa.CheckConstraint(
            "category in ('utilities','rent','subscription','loan','insurance','other')",
            name="ck_bc_bill_category",
        ),
    )


def downgrade() -> None:
    op.drop_table("bc_bills")
    op.drop_index("ix_bc_expenses_user_spent", table_name="bc_expenses")
    op.drop_table("bc_expenses")
    op.drop_index("ix_bc_periods_user_start", table_name="bc_budget_periods")
    op.drop_table("bc_budget_periods")
