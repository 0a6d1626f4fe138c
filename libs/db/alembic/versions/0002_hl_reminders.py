# ruff: noqa: I001
"""Bill reminders with recurring frequency and paid-history rows.

Revision ID: 0002_hl_reminders
Revises: 0001_hl_core
Create Date: 2025-10-09
"""

from __future__ import annotations  # ruff: noqa: I001

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0002_hl_reminders"
down_revision: str | None = "0001_hl_core"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "hl_reminders",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("amount", sa.BigInteger(), nullable=False),
        sa.Column(
            "category_id",
            sa.String(36),
            sa.ForeignKey("hl_categories.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "wallet_id",
            sa.String(36),
            sa.ForeignKey("hl_wallets.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("is_recurring", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("frequency", sa.String(), nullable=True),
        sa.Column("is_paid", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint("amount > 0", name="ck_hl_reminders_amount_positive"),
        sa.CheckConstraint(
            "frequency IS NULL OR frequency in ('daily','weekly','monthly','yearly')",
            name="ck_hl_reminders_frequency",
        ),
        sa.CheckConstraint(
            "NOT is_recurring OR frequency IS NOT NULL",
            name="ck_hl_reminders_recurring_frequency",
        ),
    )
    op.create_index("ix_hl_reminders_user_id", "hl_reminders", ["user_id"])
    op.create_index("ix_hl_reminders_user_due", "hl_reminders", ["user_id", "due_date"])


def downgrade() -> None:
    op.drop_index("ix_hl_reminders_user_due", table_name="hl_reminders")
    op.drop_index("ix_hl_reminders_user_id", table_name="hl_reminders")
    op.drop_table("hl_reminders")
