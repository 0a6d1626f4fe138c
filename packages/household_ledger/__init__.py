"""Public interface for the ``household_ledger`` package.

This module only re-exports the stable import surface: the per-user
:class:`Ledger` coordinator, the store implementations, settings, the error
taxonomy and the record/report types.
"""

from .config import LedgerSettings
from .coordinator import Ledger, Result
from .errors import (
    Conflict,
    DuplicateBudget,
    InvalidInput,
    LedgerError,
    NotFound,
    StorageFailure,
)
from .models import (
    Budget,
    BudgetOverview,
    BudgetStatus,
    Category,
    CategoryShare,
    ChangeFigure,
    MarkPaidOutcome,
    MonthComparison,
    MonthlyReport,
    Reconciliation,
    Reminder,
    ReminderView,
    Summary,
    Transaction,
    TransactionView,
    TrendBucket,
    TrendReport,
    Wallet,
)
from .store import LedgerStore, LedgerUnit, MemoryLedgerStore, open_store

__all__ = [
    # Coordinator / config
    "Ledger",
    "LedgerSettings",
    "Result",
    # Stores
    "LedgerStore",
    "LedgerUnit",
    "MemoryLedgerStore",
    "open_store",
    # Errors
    "Conflict",
    "DuplicateBudget",
    "InvalidInput",
    "LedgerError",
    "NotFound",
    "StorageFailure",
    # Records / reports
    "Budget",
    "BudgetOverview",
    "BudgetStatus",
    "Category",
    "CategoryShare",
    "ChangeFigure",
    "MarkPaidOutcome",
    "MonthComparison",
    "MonthlyReport",
    "Reconciliation",
    "Reminder",
    "ReminderView",
    "Summary",
    "Transaction",
    "TransactionView",
    "TrendBucket",
    "TrendReport",
    "Wallet",
]
