"""Ledger storage contract and the in-memory (local-only) implementation.

A :class:`LedgerStore` hands out units of work through :meth:`LedgerStore.atomic`.
Everything done through the yielded :class:`LedgerUnit` is applied together
when the ``with`` block exits normally and discarded when it raises::

    with store.atomic() as unit:
        unit.add_transaction(tx)
        unit.adjust_balance(tx.user_id, tx.wallet_id, -tx.amount)

Every read and write takes the owning ``user_id``; rows belonging to another
user are invisible (``get_*`` returns ``None``), which callers surface as
``NotFound``.

The SQL implementation lives in :mod:`household_ledger.sql_store`.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from dataclasses import dataclass, field, replace
from datetime import date, datetime

from .errors import NotFound
from .logging_setup import get_logger
from .models import Budget, Category, Reminder, Transaction, TransactionQuery, TxType, Wallet

logger = get_logger("household_ledger.store")


class LedgerUnit(ABC):
    """Operations available inside one atomic unit of work."""

    # ---- wallets -------------------------------------------------------------

    @abstractmethod
    def get_wallet(self, user_id: str, wallet_id: str, *, lock: bool = False) -> Wallet | None:
        """Return the wallet; ``lock=True`` holds it for the rest of the unit."""

    @abstractmethod
    def list_wallets(self, user_id: str) -> list[Wallet]: ...

    @abstractmethod
    def find_wallet_by_name(self, user_id: str, name: str) -> Wallet | None: ...

    @abstractmethod
    def add_wallet(self, wallet: Wallet) -> Wallet: ...

    @abstractmethod
    def save_wallet(self, wallet: Wallet) -> Wallet:
        """Persist descriptive fields (name, type, icon, color); never the balance."""

    @abstractmethod
    def adjust_balance(self, user_id: str, wallet_id: str, delta: int) -> int:
        """Add ``delta`` to the stored balance and return the new balance."""

    @abstractmethod
    def delete_wallet(self, user_id: str, wallet_id: str) -> None: ...

    # ---- categories ----------------------------------------------------------

    @abstractmethod
    def get_category(self, user_id: str, category_id: str) -> Category | None: ...

    @abstractmethod
    def list_categories(self, user_id: str, type: TxType | None = None) -> list[Category]: ...

    @abstractmethod
    def find_category(self, user_id: str, name: str, type: TxType) -> Category | None: ...

    @abstractmethod
    def add_category(self, category: Category) -> Category: ...

    @abstractmethod
    def save_category(self, category: Category) -> Category: ...

    @abstractmethod
    def delete_category(self, user_id: str, category_id: str) -> None: ...

    # ---- transactions --------------------------------------------------------

    @abstractmethod
    def get_transaction(self, user_id: str, tx_id: str) -> Transaction | None: ...

    @abstractmethod
    def add_transaction(self, tx: Transaction) -> Transaction: ...

    @abstractmethod
    def save_transaction(self, tx: Transaction) -> Transaction: ...

    @abstractmethod
    def delete_transaction(self, user_id: str, tx_id: str) -> None: ...

    @abstractmethod
    def query_transactions(self, user_id: str, query: TransactionQuery) -> list[Transaction]:
        """Matching transactions, newest ``date`` first."""

    @abstractmethod
    def count_transactions(
        self,
        user_id: str,
        *,
        wallet_id: str | None = None,
        category_id: str | None = None,
    ) -> int: ...

    def sum_amounts(self, user_id: str, query: TransactionQuery) -> int:
        """Sum of ``amount`` over matching transactions (pagination ignored)."""

        unpaged = replace(query, limit=None, offset=0)
        return sum(tx.amount for tx in self.query_transactions(user_id, unpaged))

    # ---- budgets -------------------------------------------------------------

    @abstractmethod
    def get_budget(self, user_id: str, budget_id: str) -> Budget | None: ...

    @abstractmethod
    def find_budget(self, user_id: str, category_id: str, period: str) -> Budget | None: ...

    @abstractmethod
    def list_budgets(self, user_id: str) -> list[Budget]:
        """All budgets, newest first."""

    @abstractmethod
    def add_budget(self, budget: Budget) -> Budget: ...

    @abstractmethod
    def save_budget(self, budget: Budget) -> Budget: ...

    @abstractmethod
    def delete_budget(self, user_id: str, budget_id: str) -> None: ...

    @abstractmethod
    def count_budgets(self, user_id: str, *, category_id: str) -> int: ...

    # ---- reminders -----------------------------------------------------------

    @abstractmethod
    def get_reminder(self, user_id: str, reminder_id: str) -> Reminder | None: ...

    @abstractmethod
    def list_reminders(
        self,
        user_id: str,
        *,
        is_paid: bool | None = None,
        due_from: date | None = None,
    ) -> list[Reminder]:
        """Matching reminders ordered by ``due_date`` ascending."""

    @abstractmethod
    def add_reminder(self, reminder: Reminder) -> Reminder: ...

    @abstractmethod
    def save_reminder(self, reminder: Reminder) -> Reminder: ...

    @abstractmethod
    def delete_reminder(self, user_id: str, reminder_id: str) -> None: ...


class LedgerStore(ABC):
    @abstractmethod
    def atomic(self) -> AbstractContextManager[LedgerUnit]:
        """Open a unit of work: commit on normal exit, roll back on error."""

    def close(self) -> None:  # noqa: B027 - optional hook
        """Release any resources held by the store."""


# ---------------------------------------------------------------------------
# In-memory implementation
# ---------------------------------------------------------------------------


@dataclass
class _Tables:
    wallets: dict[str, Wallet] = field(default_factory=dict)
    categories: dict[str, Category] = field(default_factory=dict)
    transactions: dict[str, Transaction] = field(default_factory=dict)
    budgets: dict[str, Budget] = field(default_factory=dict)
    reminders: dict[str, Reminder] = field(default_factory=dict)

    def copy(self) -> _Tables:
        # Records are frozen, so copying the dicts is a full snapshot.
        return _Tables(
            wallets=dict(self.wallets),
            categories=dict(self.categories),
            transactions=dict(self.transactions),
            budgets=dict(self.budgets),
            reminders=dict(self.reminders),
        )


def _owned[T: (Wallet, Category, Transaction, Budget, Reminder)](
    table: dict[str, T], user_id: str, key: str
) -> T | None:
    row = table.get(key)
    if row is None or row.user_id != user_id:
        return None
    return row


def _created_key(created_at: datetime | None) -> tuple[bool, datetime]:
    return (created_at is not None, created_at or datetime.min)


class _MemoryUnit(LedgerUnit):
    def __init__(self, tables: _Tables) -> None:
        self._t = tables

    def _require(self, table: dict, user_id: str, key: str, entity: str):
        row = _owned(table, user_id, key)
        if row is None:
            raise NotFound(entity, key)
        return row

    # wallets
    def get_wallet(self, user_id: str, wallet_id: str, *, lock: bool = False) -> Wallet | None:
        return _owned(self._t.wallets, user_id, wallet_id)

    def list_wallets(self, user_id: str) -> list[Wallet]:
        return [w for w in self._t.wallets.values() if w.user_id == user_id]

    def find_wallet_by_name(self, user_id: str, name: str) -> Wallet | None:
        for w in self._t.wallets.values():
            if w.user_id == user_id and w.name == name:
                return w
        return None

    def add_wallet(self, wallet: Wallet) -> Wallet:
        self._t.wallets[wallet.id] = wallet
        return wallet

    def save_wallet(self, wallet: Wallet) -> Wallet:
        current = self._require(self._t.wallets, wallet.user_id, wallet.id, "wallet")
        stored = replace(
            current, name=wallet.name, type=wallet.type, icon=wallet.icon, color=wallet.color
        )
        self._t.wallets[wallet.id] = stored
        return stored

    def adjust_balance(self, user_id: str, wallet_id: str, delta: int) -> int:
        current = self._require(self._t.wallets, user_id, wallet_id, "wallet")
        updated = replace(current, balance=current.balance + delta)
        self._t.wallets[wallet_id] = updated
        return updated.balance

    def delete_wallet(self, user_id: str, wallet_id: str) -> None:
        self._require(self._t.wallets, user_id, wallet_id, "wallet")
        del self._t.wallets[wallet_id]
        for rid, r in list(self._t.reminders.items()):
            if r.wallet_id == wallet_id:
                self._t.reminders[rid] = replace(r, wallet_id=None)

    # categories
    def get_category(self, user_id: str, category_id: str) -> Category | None:
        return _owned(self._t.categories, user_id, category_id)

    def list_categories(self, user_id: str, type: TxType | None = None) -> list[Category]:
        rows = [
            c
            for c in self._t.categories.values()
            if c.user_id == user_id and (type is None or c.type == type)
        ]
        return sorted(rows, key=lambda c: (c.type, c.name))

    def find_category(self, user_id: str, name: str, type: TxType) -> Category | None:
        for c in self._t.categories.values():
            if c.user_id == user_id and c.name == name and c.type == type:
                return c
        return None

    def add_category(self, category: Category) -> Category:
        self._t.categories[category.id] = category
        return category

    def save_category(self, category: Category) -> Category:
        self._require(self._t.categories, category.user_id, category.id, "category")
        self._t.categories[category.id] = category
        return category

    def delete_category(self, user_id: str, category_id: str) -> None:
        self._require(self._t.categories, user_id, category_id, "category")
        del self._t.categories[category_id]
        for rid, r in list(self._t.reminders.items()):
            if r.category_id == category_id:
                self._t.reminders[rid] = replace(r, category_id=None)

    # transactions
    def get_transaction(self, user_id: str, tx_id: str) -> Transaction | None:
        return _owned(self._t.transactions, user_id, tx_id)

    def add_transaction(self, tx: Transaction) -> Transaction:
        self._t.transactions[tx.id] = tx
        return tx

    def save_transaction(self, tx: Transaction) -> Transaction:
        self._require(self._t.transactions, tx.user_id, tx.id, "transaction")
        self._t.transactions[tx.id] = tx
        return tx

    def delete_transaction(self, user_id: str, tx_id: str) -> None:
        self._require(self._t.transactions, user_id, tx_id, "transaction")
        del self._t.transactions[tx_id]

    def query_transactions(self, user_id: str, query: TransactionQuery) -> list[Transaction]:
        rows = [
            tx
            for tx in self._t.transactions.values()
            if tx.user_id == user_id
            and (query.start is None or tx.date >= query.start)
            and (query.end is None or tx.date <= query.end)
            and (query.type is None or tx.type == query.type)
            and (query.category_id is None or tx.category_id == query.category_id)
            and (query.wallet_id is None or tx.wallet_id == query.wallet_id)
        ]
        rows.sort(key=lambda tx: (tx.date, _created_key(tx.created_at)), reverse=True)
        stop = None if query.limit is None else query.offset + query.limit
        return rows[query.offset : stop]

    def count_transactions(
        self,
        user_id: str,
        *,
        wallet_id: str | None = None,
        category_id: str | None = None,
    ) -> int:
        return sum(
            1
            for tx in self._t.transactions.values()
            if tx.user_id == user_id
            and (wallet_id is None or tx.wallet_id == wallet_id)
            and (category_id is None or tx.category_id == category_id)
        )

    # budgets
    def get_budget(self, user_id: str, budget_id: str) -> Budget | None:
        return _owned(self._t.budgets, user_id, budget_id)

    def find_budget(self, user_id: str, category_id: str, period: str) -> Budget | None:
        for b in self._t.budgets.values():
            if b.user_id == user_id and b.category_id == category_id and b.period == period:
                return b
        return None

    def list_budgets(self, user_id: str) -> list[Budget]:
        rows = [b for b in self._t.budgets.values() if b.user_id == user_id]
        # Insertion order breaks ties, newest last; reverse puts it first.
        return list(reversed(sorted(rows, key=lambda b: _created_key(b.created_at))))

    def add_budget(self, budget: Budget) -> Budget:
        self._t.budgets[budget.id] = budget
        return budget

    def save_budget(self, budget: Budget) -> Budget:
        self._require(self._t.budgets, budget.user_id, budget.id, "budget")
        self._t.budgets[budget.id] = budget
        return budget

    def delete_budget(self, user_id: str, budget_id: str) -> None:
        self._require(self._t.budgets, user_id, budget_id, "budget")
        del self._t.budgets[budget_id]

    def count_budgets(self, user_id: str, *, category_id: str) -> int:
        return sum(
            1
            for b in self._t.budgets.values()
            if b.user_id == user_id and b.category_id == category_id
        )

    # reminders
    def get_reminder(self, user_id: str, reminder_id: str) -> Reminder | None:
        return _owned(self._t.reminders, user_id, reminder_id)

    def list_reminders(
        self,
        user_id: str,
        *,
        is_paid: bool | None = None,
        due_from: date | None = None,
    ) -> list[Reminder]:
        rows = [
            r
            for r in self._t.reminders.values()
            if r.user_id == user_id
            and (is_paid is None or r.is_paid == is_paid)
            and (due_from is None or r.due_date >= due_from)
        ]
        return sorted(rows, key=lambda r: r.due_date)

    def add_reminder(self, reminder: Reminder) -> Reminder:
        self._t.reminders[reminder.id] = reminder
        return reminder

    def save_reminder(self, reminder: Reminder) -> Reminder:
        self._require(self._t.reminders, reminder.user_id, reminder.id, "reminder")
        self._t.reminders[reminder.id] = reminder
        return reminder

    def delete_reminder(self, user_id: str, reminder_id: str) -> None:
        self._require(self._t.reminders, user_id, reminder_id, "reminder")
        del self._t.reminders[reminder_id]


class MemoryLedgerStore(LedgerStore):
    """Process-local store used in offline mode and in tests.

    Units are serialized by a lock. Each unit works on the live tables and
    restores a snapshot taken at entry if the block raises.
    """

    def __init__(self) -> None:
        self._tables = _Tables()
        self._lock = threading.RLock()

    @contextmanager
    def atomic(self) -> Iterator[LedgerUnit]:
        with self._lock:
            snapshot = self._tables.copy()
            try:
                yield _MemoryUnit(self._tables)
            except BaseException:
                self._tables = snapshot
                logger.debug("memory unit rolled back")
                raise


def open_store(database_url: str | None) -> LedgerStore:
    """SQL store when ``database_url`` is given, otherwise a fresh local store."""

    if database_url:
        from .sql_store import SqlLedgerStore

        return SqlLedgerStore(database_url)
    logger.info("DATABASE_URL not set; using the in-memory local store")
    return MemoryLedgerStore()


__all__ = [
    "LedgerStore",
    "LedgerUnit",
    "MemoryLedgerStore",
    "open_store",
]
