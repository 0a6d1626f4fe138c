from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import expression as sa_expr


class Base(DeclarativeBase):
    pass


# ---------------------------
# Reference: hl_wallets
# ---------------------------


class HlWallet(Base):
    __tablename__ = "hl_wallets"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    type: Mapped[str] = mapped_column(String, nullable=False)
    # Amounts are integer minor units. `balance` is only ever moved by signed
    # transaction deltas; `opening_balance` is fixed at creation time.
    balance: Mapped[int] = mapped_column(BigInteger, nullable=False, server_default=text("0"))
    opening_balance: Mapped[int] = mapped_column(BigInteger, nullable=False, server_default=text("0"))
    icon: Mapped[str | None] = mapped_column(String, nullable=True)
    color: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_hl_wallets_user_name"),
        CheckConstraint("type in ('cash','bank','ewallet')", name="ck_hl_wallets_type"),
    )


# ---------------------------
# Reference: hl_categories
# ---------------------------


class HlCategory(Base):
    __tablename__ = "hl_categories"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    type: Mapped[str] = mapped_column(String, nullable=False)
    icon: Mapped[str | None] = mapped_column(String, nullable=True)
    color: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        # Same display name may exist once as income and once as expense.
        UniqueConstraint("user_id", "name", "type", name="uq_hl_categories_user_name_type"),
        CheckConstraint("type in ('income','expense')", name="ck_hl_categories_type"),
    )


# ---------------------------
# Core: hl_transactions
# ---------------------------


class HlTransaction(Base):
    __tablename__ = "hl_transactions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False)
    wallet_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("hl_wallets.id"), nullable=False
    )
    category_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("hl_categories.id"), nullable=False
    )
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    type: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    date: Mapped[date] = mapped_column(Date, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_hl_tx_amount_positive"),
        CheckConstraint("type in ('income','expense')", name="ck_hl_tx_type"),
        Index("ix_hl_tx_user_date", "user_id", "date"),
        Index("ix_hl_tx_category", "category_id"),
        Index("ix_hl_tx_wallet", "wallet_id"),
    )


# ---------------------------
# Envelopes: hl_budgets
# ---------------------------


class HlBudget(Base):
    __tablename__ = "hl_budgets"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    category_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("hl_categories.id"), nullable=False
    )
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    period: Mapped[str] = mapped_column(String, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    # `spent` is intentionally absent: it is recomputed from hl_transactions.
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("user_id", "category_id", "period", name="uq_hl_budgets_cadence"),
        CheckConstraint("amount > 0", name="ck_hl_budgets_amount_positive"),
        CheckConstraint("period in ('weekly','monthly','yearly')", name="ck_hl_budgets_period"),
        CheckConstraint("start_date <= end_date", name="ck_hl_budgets_range"),
    )


# ---------------------------
# Bills: hl_reminders
# ---------------------------


class HlReminder(Base):
    __tablename__ = "hl_reminders"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    category_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("hl_categories.id", ondelete="SET NULL"), nullable=True
    )
    wallet_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("hl_wallets.id", ondelete="SET NULL"), nullable=True
    )
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_recurring: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=sa_expr.false()
    )
    frequency: Mapped[str | None] = mapped_column(String, nullable=True)
    is_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=sa_expr.false())
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_hl_reminders_amount_positive"),
        CheckConstraint(
            "frequency IS NULL OR frequency in ('daily','weekly','monthly','yearly')",
            name="ck_hl_reminders_frequency",
        ),
        CheckConstraint(
            "NOT is_recurring OR frequency IS NOT NULL",
            name="ck_hl_reminders_recurring_frequency",
        ),
        Index("ix_hl_reminders_user_due", "user_id", "due_date"),
    )


__all__ = [
    "Base",
    "HlBudget",
    "HlCategory",
    "HlReminder",
    "HlTransaction",
    "HlWallet",
]
