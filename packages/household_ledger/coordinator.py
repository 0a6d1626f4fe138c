"""Public entry point: one :class:`Ledger` per authenticated user.

Each method runs exactly one unit of work on the store and returns a
:class:`Result`. Expected failures (missing entities, bad input, duplicate
budgets, blocked deletes, storage errors) come back as ``Result.error`` with
nothing applied; they are never raised to the caller. Programming errors still
propagate after the unit has rolled back.

Usage
-----
ledger = Ledger(MemoryLedgerStore(), "user-1")
result = ledger.create_wallet({"name": "cash", "type": "cash"})
if not result.ok:
    print(result.code, result.error)
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from . import budgets, categories, reminders, reports, transactions, wallets
from .categories import Provisioned
from .config import LedgerSettings
from .errors import LedgerError, StorageFailure
from .logging_setup import get_logger
from .models import (
    Budget,
    BudgetOverview,
    BudgetStatus,
    Category,
    CategoryShare,
    MarkPaidOutcome,
    MonthComparison,
    MonthlyReport,
    Reconciliation,
    Reminder,
    ReminderView,
    Summary,
    Transaction,
    TrendReport,
    TxType,
    Wallet,
)
from .periods import DateRange, preset_range
from .scope import CallScope, new_uuid, utc_now
from .store import LedgerStore, LedgerUnit

logger = get_logger("household_ledger.coordinator")


@dataclass(frozen=True)
class Result[T]:
    """Outcome of one ledger call: exactly one of ``value``/``error`` is meaningful."""

    value: T | None = None
    error: LedgerError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def code(self) -> str | None:
        return None if self.error is None else self.error.code

    def unwrap(self) -> T:
        """Return ``value`` or raise the carried error."""

        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


type Payload = Mapping[str, Any]


class Ledger:
    def __init__(
        self,
        store: LedgerStore,
        user_id: str,
        *,
        settings: LedgerSettings | None = None,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = new_uuid,
    ) -> None:
        if not user_id:
            raise ValueError("user_id is required")
        self.store = store
        self.user_id = user_id
        self.settings = settings or LedgerSettings()
        self._clock = clock
        self._id_factory = id_factory

    # ---- plumbing ----------------------------------------------------------

    @property
    def today(self) -> date:
        """Current UTC calendar day according to the ledger clock."""

        return self._scope().today

    def _scope(self) -> CallScope:
        return CallScope(user_id=self.user_id, now=self._clock(), new_id=self._id_factory)

    def _run[T](
        self, op: str, fn: Callable[[LedgerUnit, CallScope], T], *, mutation: bool = True
    ) -> Result[T]:
        scope = self._scope()
        try:
            with self.store.atomic() as unit:
                value = fn(unit, scope)
        except StorageFailure as exc:
            logger.error("%s failed for user %s: %s", op, self.user_id, exc.message)
            return Result(error=exc)
        except LedgerError as exc:
            logger.log(
                logging.WARNING if mutation else logging.INFO,
                "%s rejected for user %s [%s]: %s",
                op,
                self.user_id,
                exc.code,
                exc.message,
            )
            return Result(error=exc)
        if mutation:
            logger.info("%s committed for user %s", op, self.user_id)
        return Result(value=value)

    @property
    def _near(self) -> int:
        return self.settings.near_limit_percent

    # ---- wallets -----------------------------------------------------------

    def create_wallet(self, data: Payload) -> Result[Wallet]:
        return self._run("create_wallet", lambda u, s: wallets.create_wallet(u, s, data))

    def update_wallet(self, wallet_id: str, data: Payload) -> Result[Wallet]:
        return self._run(
            "update_wallet", lambda u, s: wallets.update_wallet(u, s, wallet_id, data)
        )

    def delete_wallet(self, wallet_id: str) -> Result[Wallet]:
        return self._run("delete_wallet", lambda u, s: wallets.delete_wallet(u, s, wallet_id))

    def get_wallet(self, wallet_id: str) -> Result[Wallet]:
        return self._run(
            "get_wallet",
            lambda u, s: wallets.get_wallet(u, s.user_id, wallet_id),
            mutation=False,
        )

    def list_wallets(self) -> Result[list[Wallet]]:
        return self._run(
            "list_wallets", lambda u, s: wallets.list_wallets(u, s.user_id), mutation=False
        )

    def reconcile(self, wallet_id: str | None = None) -> Result[list[Reconciliation]]:
        """Check one wallet (or all of them) against its transaction history."""

        def _op(unit: LedgerUnit, scope: CallScope) -> list[Reconciliation]:
            ids = [wallet_id] if wallet_id else [w.id for w in unit.list_wallets(scope.user_id)]
            return [wallets.reconcile_wallet(unit, scope.user_id, wid) for wid in ids]

        return self._run("reconcile", _op, mutation=False)

    # ---- categories --------------------------------------------------------

    def create_category(self, data: Payload) -> Result[Category]:
        return self._run(
            "create_category", lambda u, s: categories.create_category(u, s, data)
        )

    def update_category(self, category_id: str, data: Payload) -> Result[Category]:
        return self._run(
            "update_category",
            lambda u, s: categories.update_category(u, s, category_id, data),
        )

    def delete_category(self, category_id: str) -> Result[Category]:
        return self._run(
            "delete_category", lambda u, s: categories.delete_category(u, s, category_id)
        )

    def list_categories(self, type: TxType | None = None) -> Result[list[Category]]:
        return self._run(
            "list_categories",
            lambda u, s: categories.list_categories(u, s.user_id, type),
            mutation=False,
        )

    def provision(self) -> Result[Provisioned]:
        return self._run("provision", categories.provision_user)

    # ---- transactions ------------------------------------------------------

    def create_transaction(self, data: Payload) -> Result[Transaction]:
        return self._run(
            "create_transaction", lambda u, s: transactions.create_transaction(u, s, data)
        )

    def update_transaction(self, tx_id: str, data: Payload) -> Result[Transaction]:
        return self._run(
            "update_transaction",
            lambda u, s: transactions.update_transaction(u, s, tx_id, data),
        )

    def delete_transaction(self, tx_id: str) -> Result[Transaction]:
        return self._run(
            "delete_transaction", lambda u, s: transactions.delete_transaction(u, s, tx_id)
        )

    def get_transaction(self, tx_id: str) -> Result[Transaction]:
        return self._run(
            "get_transaction",
            lambda u, s: transactions.get_transaction(u, s.user_id, tx_id),
            mutation=False,
        )

    def list_transactions(self, **filters: Any) -> Result[list[Transaction]]:
        """Filters: ``start``, ``end``, ``type``, ``category_id``, ``wallet_id``, ``limit``, ``offset``."""

        return self._run(
            "list_transactions",
            lambda u, s: transactions.list_transactions(u, s.user_id, filters),
            mutation=False,
        )

    # ---- budgets -----------------------------------------------------------

    def create_budget(self, data: Payload) -> Result[BudgetStatus]:
        return self._run(
            "create_budget",
            lambda u, s: budgets.create_budget(u, s, data, near_limit_percent=self._near),
        )

    def create_monthly_budget(
        self, category_id: str, amount: int, year: int, month: int
    ) -> Result[BudgetStatus]:
        return self._run(
            "create_budget",
            lambda u, s: budgets.create_monthly_budget(
                u,
                s,
                category_id=category_id,
                amount=amount,
                year=year,
                month=month,
                near_limit_percent=self._near,
            ),
        )

    def update_budget(self, budget_id: str, data: Payload) -> Result[BudgetStatus]:
        return self._run(
            "update_budget",
            lambda u, s: budgets.update_budget(
                u, s, budget_id, data, near_limit_percent=self._near
            ),
        )

    def delete_budget(self, budget_id: str) -> Result[Budget]:
        return self._run("delete_budget", lambda u, s: budgets.delete_budget(u, s, budget_id))

    def budget_status(self, budget_id: str) -> Result[BudgetStatus]:
        return self._run(
            "budget_status",
            lambda u, s: budgets.budget_status(
                u, s.user_id, budget_id, near_limit_percent=self._near
            ),
            mutation=False,
        )

    def list_budgets(self) -> Result[list[BudgetStatus]]:
        return self._run(
            "list_budgets",
            lambda u, s: budgets.list_budget_statuses(
                u, s.user_id, near_limit_percent=self._near
            ),
            mutation=False,
        )

    def budget_overview(self) -> Result[BudgetOverview]:
        return self._run(
            "budget_overview",
            lambda u, s: budgets.budget_overview(u, s.user_id, near_limit_percent=self._near),
            mutation=False,
        )

    # ---- reports -----------------------------------------------------------

    def resolve_range(self, preset: str) -> Result[DateRange]:
        """Turn ``this-month``/``last-month``/``last-N-months`` into dates."""

        try:
            return Result(value=preset_range(preset, self.today))
        except LedgerError as exc:
            return Result(error=exc)

    def summary(self, start: date | str, end: date | str) -> Result[Summary]:
        return self._run(
            "summary", lambda u, s: reports.summary(u, s.user_id, start, end), mutation=False
        )

    def trend(
        self, start: date | str, end: date | str, granularity: str = "monthly"
    ) -> Result[TrendReport]:
        return self._run(
            "trend",
            lambda u, s: reports.trend(u, s.user_id, start, end, granularity),
            mutation=False,
        )

    def category_breakdown(
        self, start: date | str, end: date | str, type: TxType = "expense"
    ) -> Result[list[CategoryShare]]:
        return self._run(
            "category_breakdown",
            lambda u, s: reports.category_breakdown(u, s.user_id, start, end, type),
            mutation=False,
        )

    def month_comparison(self, today: date | str | None = None) -> Result[MonthComparison]:
        return self._run(
            "month_comparison",
            lambda u, s: reports.month_comparison(
                u, s.user_id, s.today if today is None else today
            ),
            mutation=False,
        )

    def monthly_report(
        self, year: int | None = None, month: int | None = None
    ) -> Result[MonthlyReport]:
        def _op(unit: LedgerUnit, scope: CallScope) -> MonthlyReport:
            today = scope.today
            return reports.monthly_report(
                unit,
                scope.user_id,
                today.year if year is None else year,
                today.month if month is None else month,
            )

        return self._run("monthly_report", _op, mutation=False)

    # ---- reminders ---------------------------------------------------------

    def create_reminder(self, data: Payload) -> Result[Reminder]:
        return self._run(
            "create_reminder", lambda u, s: reminders.create_reminder(u, s, data)
        )

    def update_reminder(self, reminder_id: str, data: Payload) -> Result[Reminder]:
        return self._run(
            "update_reminder",
            lambda u, s: reminders.update_reminder(u, s, reminder_id, data),
        )

    def delete_reminder(self, reminder_id: str) -> Result[Reminder]:
        return self._run(
            "delete_reminder", lambda u, s: reminders.delete_reminder(u, s, reminder_id)
        )

    def mark_reminder_paid(self, reminder_id: str) -> Result[MarkPaidOutcome]:
        return self._run(
            "mark_reminder_paid", lambda u, s: reminders.mark_paid(u, s, reminder_id)
        )

    def list_reminders(
        self, *, upcoming: bool = False, is_paid: bool | None = None
    ) -> Result[list[ReminderView]]:
        return self._run(
            "list_reminders",
            lambda u, s: reminders.list_reminders(
                u, s.user_id, s.now, upcoming=upcoming, is_paid=is_paid
            ),
            mutation=False,
        )


__all__ = ["Ledger", "Result"]
