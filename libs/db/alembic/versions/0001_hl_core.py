# ruff: noqa: I001
"""Ledger core tables: wallets, categories, transactions, budgets.

Revision ID: 0001_hl_core
Revises: None
Create Date: 2025-10-02
"""

from __future__ import annotations  # ruff: noqa: I001

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0001_hl_core"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "hl_wallets",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("balance", sa.BigInteger(), nullable=False, server_default=sa.text("0")),
        sa.Column(
            "opening_balance", sa.BigInteger(), nullable=False, server_default=sa.text("0")
        ),
        sa.Column("icon", sa.String(), nullable=True),
        sa.Column("color", sa.String(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "name", name="uq_hl_wallets_user_name"),
        sa.CheckConstraint("type in ('cash','bank','ewallet')", name="ck_hl_wallets_type"),
    )
    op.create_index("ix_hl_wallets_user_id", "hl_wallets", ["user_id"])

    op.create_table(
        "hl_categories",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("icon", sa.String(), nullable=True),
        sa.Column("color", sa.String(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint("user_id", "name", "type", name="uq_hl_categories_user_name_type"),
        sa.CheckConstraint("type in ('income','expense')", name="ck_hl_categories_type"),
    )
    op.create_index("ix_hl_categories_user_id", "hl_categories", ["user_id"])

    op.create_table(
        "hl_transactions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("wallet_id", sa.String(36), sa.ForeignKey("hl_wallets.id"), nullable=False),
        sa.Column(
            "category_id", sa.String(36), sa.ForeignKey("hl_categories.id"), nullable=False
        ),
        sa.Column("amount", sa.BigInteger(), nullable=False),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("date", sa.Date(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("amount > 0", name="ck_hl_tx_amount_positive"),
        sa.CheckConstraint("type in ('income','expense')", name="ck_hl_tx_type"),
    )
    op.create_index("ix_hl_tx_user_date", "hl_transactions", ["user_id", "date"])
    op.create_index("ix_hl_tx_category", "hl_transactions", ["category_id"])
    op.create_index("ix_hl_tx_wallet", "hl_transactions", ["wallet_id"])

    op.create_table(
        "hl_budgets",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column(
            "category_id", sa.String(36), sa.ForeignKey("hl_categories.id"), nullable=False
        ),
        sa.Column("amount", sa.BigInteger(), nullable=False),
        sa.Column("period", sa.String(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "category_id", "period", name="uq_hl_budgets_cadence"),
        sa.CheckConstraint("amount > 0", name="ck_hl_budgets_amount_positive"),
        sa.CheckConstraint(
            "period in ('weekly','monthly','yearly')", name="ck_hl_budgets_period"
        ),
        sa.CheckConstraint("start_date <= end_date", name="ck_hl_budgets_range"),
    )
    op.create_index("ix_hl_budgets_user_id", "hl_budgets", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_hl_budgets_user_id", table_name="hl_budgets")
    op.drop_table("hl_budgets")
    op.drop_index("ix_hl_tx_wallet", table_name="hl_transactions")
    op.drop_index("ix_hl_tx_category", table_name="hl_transactions")
    op.drop_index("ix_hl_tx_user_date", table_name="hl_transactions")
    op.drop_table("hl_transactions")
    op.drop_index("ix_hl_categories_user_id", table_name="hl_categories")
    op.drop_table("hl_categories")
    op.drop_index("ix_hl_wallets_user_id", table_name="hl_wallets")
    op.drop_table("hl_wallets")
