"""SQLAlchemy-backed ledger store.

Each unit of work is one ``db.client.session_scope`` transaction: the session
commits when the ``with`` block exits normally and rolls back when it raises.
Any ``SQLAlchemyError`` escaping the unit (including one raised at commit) is
reported as :class:`~household_ledger.errors.StorageFailure`; domain errors
pass through untouched after the rollback.

Balance changes are issued as in-database increments
(``UPDATE hl_wallets SET balance = balance + :delta``) so concurrent units
never overwrite each other's deltas.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, date, datetime

from db import Base
from db.client import get_engine, session_scope
from db.models.ledger import HlBudget, HlCategory, HlReminder, HlTransaction, HlWallet
from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .errors import NotFound, StorageFailure
from .logging_setup import get_logger
from .models import Budget, Category, Reminder, Transaction, TransactionQuery, TxType, Wallet
from .store import LedgerStore, LedgerUnit

logger = get_logger("household_ledger.sql_store")


def _aware(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes for timezone-aware columns.
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


# ---- row <-> record mapping ---------------------------------------------------


def _wallet(row: HlWallet) -> Wallet:
    return Wallet(
        id=row.id,
        user_id=row.user_id,
        name=row.name,
        type=row.type,  # type: ignore[arg-type]
        balance=int(row.balance),
        opening_balance=int(row.opening_balance),
        icon=row.icon,
        color=row.color,
        created_at=_aware(row.created_at),
    )


def _category(row: HlCategory) -> Category:
    return Category(
        id=row.id,
        user_id=row.user_id,
        name=row.name,
        type=row.type,  # type: ignore[arg-type]
        icon=row.icon,
        color=row.color,
        created_at=_aware(row.created_at),
    )


def _transaction(row: HlTransaction) -> Transaction:
    return Transaction(
        id=row.id,
        user_id=row.user_id,
        wallet_id=row.wallet_id,
        category_id=row.category_id,
        amount=int(row.amount),
        type=row.type,  # type: ignore[arg-type]
        date=row.date,
        description=row.description,
        created_at=_aware(row.created_at),
    )


def _budget(row: HlBudget) -> Budget:
    return Budget(
        id=row.id,
        user_id=row.user_id,
        category_id=row.category_id,
        amount=int(row.amount),
        period=row.period,  # type: ignore[arg-type]
        start_date=row.start_date,
        end_date=row.end_date,
        created_at=_aware(row.created_at),
    )


def _reminder(row: HlReminder) -> Reminder:
    return Reminder(
        id=row.id,
        user_id=row.user_id,
        title=row.title,
        amount=int(row.amount),
        due_date=row.due_date,
        category_id=row.category_id,
        wallet_id=row.wallet_id,
        is_recurring=bool(row.is_recurring),
        frequency=row.frequency,  # type: ignore[arg-type]
        is_paid=bool(row.is_paid),
        paid_at=_aware(row.paid_at),
        created_at=_aware(row.created_at),
    )


def _created(value: datetime | None) -> dict[str, datetime]:
    # Let the server default fill created_at when the record carries none.
    return {} if value is None else {"created_at": value}


class _SqlUnit(LedgerUnit):
    def __init__(self, session: Session) -> None:
        self._s = session

    def _one[R](self, model: type[R], user_id: str, key: str, *, lock: bool = False) -> R | None:
        stmt = select(model).where(model.id == key, model.user_id == user_id)  # type: ignore[attr-defined]
        if lock:
            stmt = stmt.with_for_update()
        return self._s.execute(stmt).scalar_one_or_none()

    def _require[R](self, model: type[R], user_id: str, key: str, entity: str) -> R:
        row = self._one(model, user_id, key)
        if row is None:
            raise NotFound(entity, key)
        return row

    # ---- wallets -------------------------------------------------------------

    def get_wallet(self, user_id: str, wallet_id: str, *, lock: bool = False) -> Wallet | None:
        row = self._one(HlWallet, user_id, wallet_id, lock=lock)
        return None if row is None else _wallet(row)

    def list_wallets(self, user_id: str) -> list[Wallet]:
        stmt = (
            select(HlWallet)
            .where(HlWallet.user_id == user_id)
            .order_by(HlWallet.created_at, HlWallet.name)
        )
        return [_wallet(r) for r in self._s.execute(stmt).scalars()]

    def find_wallet_by_name(self, user_id: str, name: str) -> Wallet | None:
        stmt = select(HlWallet).where(HlWallet.user_id == user_id, HlWallet.name == name)
        row = self._s.execute(stmt).scalar_one_or_none()
        return None if row is None else _wallet(row)

    def add_wallet(self, wallet: Wallet) -> Wallet:
        row = HlWallet(
            id=wallet.id,
            user_id=wallet.user_id,
            name=wallet.name,
            type=wallet.type,
            balance=wallet.balance,
            opening_balance=wallet.opening_balance,
            icon=wallet.icon,
            color=wallet.color,
            **_created(wallet.created_at),
        )
        self._s.add(row)
        self._s.flush()
        return _wallet(row)

    def save_wallet(self, wallet: Wallet) -> Wallet:
        row = self._require(HlWallet, wallet.user_id, wallet.id, "wallet")
        row.name = wallet.name
        row.type = wallet.type
        row.icon = wallet.icon
        row.color = wallet.color
        row.updated_at = func.now()
        self._s.flush()
        self._s.refresh(row)
        return _wallet(row)

    def adjust_balance(self, user_id: str, wallet_id: str, delta: int) -> int:
        stmt = (
            update(HlWallet)
            .where(HlWallet.id == wallet_id, HlWallet.user_id == user_id)
            .values(balance=HlWallet.balance + delta, updated_at=func.now())
            # Wallet rows already loaded in this session pick up the new balance.
            .execution_options(synchronize_session="fetch")
        )
        result = self._s.execute(stmt)
        if result.rowcount != 1:
            raise NotFound("wallet", wallet_id)
        new_balance = self._s.execute(
            select(HlWallet.balance).where(HlWallet.id == wallet_id)
        ).scalar_one()
        return int(new_balance)

    def delete_wallet(self, user_id: str, wallet_id: str) -> None:
        self._require(HlWallet, user_id, wallet_id, "wallet")
        self._s.execute(
            update(HlReminder)
            .where(HlReminder.wallet_id == wallet_id)
            .values(wallet_id=None)
            .execution_options(synchronize_session=False)
        )
        self._s.execute(
            delete(HlWallet)
            .where(HlWallet.id == wallet_id, HlWallet.user_id == user_id)
            .execution_options(synchronize_session=False)
        )

    # ---- categories ----------------------------------------------------------

    def get_category(self, user_id: str, category_id: str) -> Category | None:
        row = self._one(HlCategory, user_id, category_id)
        return None if row is None else _category(row)

    def list_categories(self, user_id: str, type: TxType | None = None) -> list[Category]:
        stmt = select(HlCategory).where(HlCategory.user_id == user_id)
        if type is not None:
            stmt = stmt.where(HlCategory.type == type)
        stmt = stmt.order_by(HlCategory.type, HlCategory.name)
        return [_category(r) for r in self._s.execute(stmt).scalars()]

    def find_category(self, user_id: str, name: str, type: TxType) -> Category | None:
        stmt = select(HlCategory).where(
            HlCategory.user_id == user_id, HlCategory.name == name, HlCategory.type == type
        )
        row = self._s.execute(stmt).scalar_one_or_none()
        return None if row is None else _category(row)

    def add_category(self, category: Category) -> Category:
        row = HlCategory(
            id=category.id,
            user_id=category.user_id,
            name=category.name,
            type=category.type,
            icon=category.icon,
            color=category.color,
            **_created(category.created_at),
        )
        self._s.add(row)
        self._s.flush()
        return _category(row)

    def save_category(self, category: Category) -> Category:
        row = self._require(HlCategory, category.user_id, category.id, "category")
        row.name = category.name
        row.type = category.type
        row.icon = category.icon
        row.color = category.color
        self._s.flush()
        return _category(row)

    def delete_category(self, user_id: str, category_id: str) -> None:
        self._require(HlCategory, user_id, category_id, "category")
        self._s.execute(
            update(HlReminder)
            .where(HlReminder.category_id == category_id)
            .values(category_id=None)
            .execution_options(synchronize_session=False)
        )
        self._s.execute(
            delete(HlCategory)
            .where(HlCategory.id == category_id, HlCategory.user_id == user_id)
            .execution_options(synchronize_session=False)
        )

    # ---- transactions --------------------------------------------------------

    def get_transaction(self, user_id: str, tx_id: str) -> Transaction | None:
        row = self._one(HlTransaction, user_id, tx_id)
        return None if row is None else _transaction(row)

    def add_transaction(self, tx: Transaction) -> Transaction:
        row = HlTransaction(
            id=tx.id,
            user_id=tx.user_id,
            wallet_id=tx.wallet_id,
            category_id=tx.category_id,
            amount=tx.amount,
            type=tx.type,
            description=tx.description,
            date=tx.date,
            **_created(tx.created_at),
        )
        self._s.add(row)
        self._s.flush()
        return _transaction(row)

    def save_transaction(self, tx: Transaction) -> Transaction:
        row = self._require(HlTransaction, tx.user_id, tx.id, "transaction")
        row.wallet_id = tx.wallet_id
        row.category_id = tx.category_id
        row.amount = tx.amount
        row.type = tx.type
        row.description = tx.description
        row.date = tx.date
        row.updated_at = func.now()
        self._s.flush()
        self._s.refresh(row)
        return _transaction(row)

    def delete_transaction(self, user_id: str, tx_id: str) -> None:
        self._require(HlTransaction, user_id, tx_id, "transaction")
        self._s.execute(
            delete(HlTransaction)
            .where(HlTransaction.id == tx_id, HlTransaction.user_id == user_id)
            .execution_options(synchronize_session=False)
        )

    def _filtered(self, stmt, user_id: str, query: TransactionQuery):
        stmt = stmt.where(HlTransaction.user_id == user_id)
        if query.start is not None:
            stmt = stmt.where(HlTransaction.date >= query.start)
        if query.end is not None:
            stmt = stmt.where(HlTransaction.date <= query.end)
        if query.type is not None:
            stmt = stmt.where(HlTransaction.type == query.type)
        if query.category_id is not None:
            stmt = stmt.where(HlTransaction.category_id == query.category_id)
        if query.wallet_id is not None:
            stmt = stmt.where(HlTransaction.wallet_id == query.wallet_id)
        return stmt

    def query_transactions(self, user_id: str, query: TransactionQuery) -> list[Transaction]:
        stmt = self._filtered(select(HlTransaction), user_id, query).order_by(
            HlTransaction.date.desc(), HlTransaction.created_at.desc()
        )
        if query.offset:
            stmt = stmt.offset(query.offset)
        if query.limit is not None:
            stmt = stmt.limit(query.limit)
        return [_transaction(r) for r in self._s.execute(stmt).scalars()]

    def count_transactions(
        self,
        user_id: str,
        *,
        wallet_id: str | None = None,
        category_id: str | None = None,
    ) -> int:
        query = TransactionQuery(wallet_id=wallet_id, category_id=category_id)
        stmt = self._filtered(select(func.count(HlTransaction.id)), user_id, query)
        return int(self._s.execute(stmt).scalar_one())

    def sum_amounts(self, user_id: str, query: TransactionQuery) -> int:
        stmt = self._filtered(
            select(func.coalesce(func.sum(HlTransaction.amount), 0)), user_id, query
        )
        return int(self._s.execute(stmt).scalar_one())

    # ---- budgets -------------------------------------------------------------

    def get_budget(self, user_id: str, budget_id: str) -> Budget | None:
        row = self._one(HlBudget, user_id, budget_id)
        return None if row is None else _budget(row)

    def find_budget(self, user_id: str, category_id: str, period: str) -> Budget | None:
        stmt = select(HlBudget).where(
            HlBudget.user_id == user_id,
            HlBudget.category_id == category_id,
            HlBudget.period == period,
        )
        row = self._s.execute(stmt).scalar_one_or_none()
        return None if row is None else _budget(row)

    def list_budgets(self, user_id: str) -> list[Budget]:
        stmt = (
            select(HlBudget)
            .where(HlBudget.user_id == user_id)
            .order_by(HlBudget.created_at.desc(), HlBudget.id)
        )
        return [_budget(r) for r in self._s.execute(stmt).scalars()]

    def add_budget(self, budget: Budget) -> Budget:
        row = HlBudget(
            id=budget.id,
            user_id=budget.user_id,
            category_id=budget.category_id,
            amount=budget.amount,
            period=budget.period,
            start_date=budget.start_date,
            end_date=budget.end_date,
            **_created(budget.created_at),
        )
        self._s.add(row)
        self._s.flush()
        return _budget(row)

    def save_budget(self, budget: Budget) -> Budget:
        row = self._require(HlBudget, budget.user_id, budget.id, "budget")
        row.category_id = budget.category_id
        row.amount = budget.amount
        row.period = budget.period
        row.start_date = budget.start_date
        row.end_date = budget.end_date
        self._s.flush()
        return _budget(row)

    def delete_budget(self, user_id: str, budget_id: str) -> None:
        self._require(HlBudget, user_id, budget_id, "budget")
        self._s.execute(
            delete(HlBudget)
            .where(HlBudget.id == budget_id, HlBudget.user_id == user_id)
            .execution_options(synchronize_session=False)
        )

    def count_budgets(self, user_id: str, *, category_id: str) -> int:
        stmt = select(func.count(HlBudget.id)).where(
            HlBudget.user_id == user_id, HlBudget.category_id == category_id
        )
        return int(self._s.execute(stmt).scalar_one())

    # ---- reminders -----------------------------------------------------------

    def get_reminder(self, user_id: str, reminder_id: str) -> Reminder | None:
        row = self._one(HlReminder, user_id, reminder_id)
        return None if row is None else _reminder(row)

    def list_reminders(
        self,
        user_id: str,
        *,
        is_paid: bool | None = None,
        due_from: date | None = None,
    ) -> list[Reminder]:
        stmt = select(HlReminder).where(HlReminder.user_id == user_id)
        if is_paid is not None:
            stmt = stmt.where(HlReminder.is_paid == is_paid)
        if due_from is not None:
            stmt = stmt.where(HlReminder.due_date >= due_from)
        stmt = stmt.order_by(HlReminder.due_date, HlReminder.created_at)
        return [_reminder(r) for r in self._s.execute(stmt).scalars()]

    def add_reminder(self, reminder: Reminder) -> Reminder:
        row = HlReminder(
            id=reminder.id,
            user_id=reminder.user_id,
            title=reminder.title,
            amount=reminder.amount,
            category_id=reminder.category_id,
            wallet_id=reminder.wallet_id,
            due_date=reminder.due_date,
            is_recurring=reminder.is_recurring,
            frequency=reminder.frequency,
            is_paid=reminder.is_paid,
            paid_at=reminder.paid_at,
            **_created(reminder.created_at),
        )
        self._s.add(row)
        self._s.flush()
        return _reminder(row)

    def save_reminder(self, reminder: Reminder) -> Reminder:
        row = self._require(HlReminder, reminder.user_id, reminder.id, "reminder")
        row.title = reminder.title
        row.amount = reminder.amount
        row.category_id = reminder.category_id
        row.wallet_id = reminder.wallet_id
        row.due_date = reminder.due_date
        row.is_recurring = reminder.is_recurring
        row.frequency = reminder.frequency
        row.is_paid = reminder.is_paid
        row.paid_at = reminder.paid_at
        self._s.flush()
        return _reminder(row)

    def delete_reminder(self, user_id: str, reminder_id: str) -> None:
        self._require(HlReminder, user_id, reminder_id, "reminder")
        self._s.execute(
            delete(HlReminder)
            .where(HlReminder.id == reminder_id, HlReminder.user_id == user_id)
            .execution_options(synchronize_session=False)
        )


class SqlLedgerStore(LedgerStore):
    """Ledger store over any SQLAlchemy URL (PostgreSQL in production, SQLite locally)."""

    def __init__(self, database_url: str) -> None:
        self.database_url = database_url

    def create_schema(self) -> None:
        """Create every ``hl_*`` table that does not exist yet.

        Production databases are migrated with Alembic (``libs/db/alembic``);
        this is for local SQLite files and tests.
        """

        Base.metadata.create_all(bind=get_engine(database_url=self.database_url))

    @contextmanager
    def atomic(self) -> Iterator[LedgerUnit]:
        try:
            with session_scope(database_url=self.database_url) as session:
                yield _SqlUnit(session)
        except SQLAlchemyError as exc:
            logger.error("storage unit failed and was rolled back: %s", exc, exc_info=True)
            raise StorageFailure(f"storage failure: {exc.__class__.__name__}") from exc

    def close(self) -> None:
        get_engine(database_url=self.database_url).dispose()


__all__ = ["SqlLedgerStore"]
