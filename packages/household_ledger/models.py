"""Domain records and report payloads for ``household_ledger``.

All money values are integers in minor currency units. Entity records are
immutable; mutations produce a new record via :func:`dataclasses.replace` and
hand it back to the store. Derived figures (budget ``spent``, reminder
``is_overdue``) live only on the output types and are never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Literal

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

type TxType = Literal["income", "expense"]
type WalletType = Literal["cash", "bank", "ewallet"]
type BudgetPeriod = Literal["weekly", "monthly", "yearly"]
type Frequency = Literal["daily", "weekly", "monthly", "yearly"]
type Granularity = Literal["daily", "weekly", "monthly"]
type BudgetState = Literal["on-track", "near-limit", "over"]
type Direction = Literal["up", "down"]


# ---------------------------------------------------------------------------
# Stored entities
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Wallet:
    """A money container whose ``balance`` tracks its transactions.

    ``balance == opening_balance + sum(signed amounts)`` over every transaction
    currently referencing the wallet.
    """

    id: str
    user_id: str
    name: str
    type: WalletType
    balance: int
    opening_balance: int = 0
    icon: str | None = None
    color: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class Category:
    id: str
    user_id: str
    name: str
    type: TxType
    icon: str | None = None
    color: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class Transaction:
    id: str
    user_id: str
    wallet_id: str
    category_id: str
    amount: int
    type: TxType
    date: date
    description: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class Budget:
    """A spending envelope over ``[start_date, end_date]`` (inclusive)."""

    id: str
    user_id: str
    category_id: str
    amount: int
    period: BudgetPeriod
    start_date: date
    end_date: date
    created_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class Reminder:
    id: str
    user_id: str
    title: str
    amount: int
    due_date: date
    category_id: str | None = None
    wallet_id: str | None = None
    is_recurring: bool = False
    frequency: Frequency | None = None
    is_paid: bool = False
    paid_at: datetime | None = None
    created_at: datetime | None = None


# ---------------------------------------------------------------------------
# Query parameters
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TransactionQuery:
    """Filter for transaction reads. ``None`` fields do not constrain.

    Results are ordered by ``date`` descending, then ``created_at`` descending.
    """

    start: date | None = None
    end: date | None = None
    type: TxType | None = None
    category_id: str | None = None
    wallet_id: str | None = None
    limit: int | None = None
    offset: int = 0


# ---------------------------------------------------------------------------
# Derived outputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class BudgetStatus:
    id: str
    category_id: str
    category_name: str
    amount: int
    spent: int
    remaining: int
    percentage: int
    is_over_budget: bool
    is_near_limit: bool
    status: BudgetState
    period: BudgetPeriod
    start_date: date
    end_date: date


@dataclass(frozen=True, slots=True)
class BudgetOverview:
    total_budget: int
    total_spent: int
    total_remaining: int
    budgets: tuple[BudgetStatus, ...]


@dataclass(frozen=True, slots=True)
class Summary:
    total_income: int
    total_expense: int
    balance: int
    transaction_count: int = 0


@dataclass(frozen=True, slots=True)
class TrendBucket:
    label: str
    start: date
    end: date
    income: int
    expense: int
    balance: int


@dataclass(frozen=True, slots=True)
class TrendReport:
    granularity: Granularity
    buckets: tuple[TrendBucket, ...]
    average_income: int
    average_expense: int
    average_balance: int


@dataclass(frozen=True, slots=True)
class CategoryShare:
    category_id: str
    category_name: str
    icon: str | None
    total: int
    count: int
    percentage: int


@dataclass(frozen=True, slots=True)
class ChangeFigure:
    current: int
    previous: int
    change: int
    direction: Direction


@dataclass(frozen=True, slots=True)
class MonthComparison:
    current_month: date
    previous_month: date
    current: Summary
    previous: Summary
    income: ChangeFigure
    expense: ChangeFigure


@dataclass(frozen=True, slots=True)
class TransactionView:
    """A transaction joined with the display names of its references."""

    transaction: Transaction
    category_name: str
    category_icon: str | None
    wallet_name: str


@dataclass(frozen=True, slots=True)
class MonthlyReport:
    year: int
    month: int
    start: date
    end: date
    summary: Summary
    expense_breakdown: tuple[CategoryShare, ...]
    income_breakdown: tuple[CategoryShare, ...]
    daily: TrendReport
    transactions: tuple[TransactionView, ...]


@dataclass(frozen=True, slots=True)
class ReminderView:
    reminder: Reminder
    is_overdue: bool
    days_until_due: int
    category_name: str | None = None
    wallet_name: str | None = None


@dataclass(frozen=True, slots=True)
class MarkPaidOutcome:
    """Two-record transition: the settled instance and the spawned follow-up."""

    paid: Reminder
    next: Reminder | None


@dataclass(frozen=True, slots=True)
class Reconciliation:
    wallet_id: str
    stored_balance: int
    expected_balance: int

    @property
    def drift(self) -> int:
        return self.stored_balance - self.expected_balance

    @property
    def in_sync(self) -> bool:
        return self.drift == 0


__all__ = [
    "Budget",
    "BudgetOverview",
    "BudgetPeriod",
    "BudgetState",
    "BudgetStatus",
    "Category",
    "CategoryShare",
    "ChangeFigure",
    "Direction",
    "Frequency",
    "Granularity",
    "MarkPaidOutcome",
    "MonthComparison",
    "MonthlyReport",
    "Reconciliation",
    "Reminder",
    "ReminderView",
    "Summary",
    "Transaction",
    "TransactionQuery",
    "TransactionView",
    "TrendBucket",
    "TrendReport",
    "TxType",
    "Wallet",
    "WalletType",
]
