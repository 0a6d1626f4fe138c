"""Bill reminders and the recurring "mark paid" transition.

Paying a recurring reminder is a two-record transition inside one unit of
work: the current instance becomes history (``is_paid=True``) and a fresh
pending instance is inserted one frequency step later. A paid instance can
never be paid again, so a history record spawns at most one follow-up.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import replace
from datetime import UTC, date, datetime, time, timedelta
from typing import Any

from .errors import Conflict, InvalidInput, NotFound
from .logging_setup import get_logger
from .models import MarkPaidOutcome, Reminder, ReminderView
from .periods import add_frequency
from .schemas import ReminderInput, ReminderPatch, changes, parse_input
from .scope import CallScope
from .store import LedgerUnit

logger = get_logger("household_ledger.reminders")

_ONE_DAY = timedelta(days=1)


def next_due_date(due: date, frequency: str) -> date:
    """One calendar step after ``due`` (``2025-01-31`` monthly -> ``2025-02-28``)."""

    return add_frequency(due, frequency)


def _due_instant(due: date) -> datetime:
    return datetime.combine(due, time.min, tzinfo=UTC)


def days_until_due(due: date, now: datetime) -> int:
    """Whole days until ``due`` (00:00 UTC), rounded up; negative once past."""

    remaining = _due_instant(due) - now
    return -(-remaining // _ONE_DAY)


def is_overdue(reminder: Reminder, now: datetime) -> bool:
    return not reminder.is_paid and _due_instant(reminder.due_date) < now


def view(
    reminder: Reminder,
    now: datetime,
    *,
    category_name: str | None = None,
    wallet_name: str | None = None,
) -> ReminderView:
    return ReminderView(
        reminder=reminder,
        is_overdue=is_overdue(reminder, now),
        days_until_due=days_until_due(reminder.due_date, now),
        category_name=category_name,
        wallet_name=wallet_name,
    )


def _check_links(
    unit: LedgerUnit, user_id: str, category_id: str | None, wallet_id: str | None
) -> None:
    if category_id is not None and unit.get_category(user_id, category_id) is None:
        raise NotFound("category", category_id)
    if wallet_id is not None and unit.get_wallet(user_id, wallet_id) is None:
        raise NotFound("wallet", wallet_id)


def get_reminder(unit: LedgerUnit, user_id: str, reminder_id: str) -> Reminder:
    reminder = unit.get_reminder(user_id, reminder_id)
    if reminder is None:
        raise NotFound("reminder", reminder_id)
    return reminder


def create_reminder(
    unit: LedgerUnit, scope: CallScope, data: ReminderInput | Mapping[str, Any]
) -> Reminder:
    payload = parse_input(ReminderInput, data)
    _check_links(unit, scope.user_id, payload.category_id, payload.wallet_id)
    return unit.add_reminder(
        Reminder(
            id=scope.new_id(),
            user_id=scope.user_id,
            title=payload.title,
            amount=payload.amount,
            due_date=payload.due_date,
            category_id=payload.category_id,
            wallet_id=payload.wallet_id,
            is_recurring=payload.is_recurring,
            frequency=payload.frequency,
            created_at=scope.now,
        )
    )


def update_reminder(
    unit: LedgerUnit,
    scope: CallScope,
    reminder_id: str,
    data: ReminderPatch | Mapping[str, Any],
) -> Reminder:
    patch = parse_input(ReminderPatch, data)
    reminder = get_reminder(unit, scope.user_id, reminder_id)
    updated = replace(reminder, **changes(patch))
    if updated.is_recurring and updated.frequency is None:
        raise InvalidInput("a recurring reminder requires a frequency")
    _check_links(unit, scope.user_id, updated.category_id, updated.wallet_id)
    return unit.save_reminder(updated)


def delete_reminder(unit: LedgerUnit, scope: CallScope, reminder_id: str) -> Reminder:
    reminder = get_reminder(unit, scope.user_id, reminder_id)
    unit.delete_reminder(scope.user_id, reminder_id)
    return reminder


def mark_paid(unit: LedgerUnit, scope: CallScope, reminder_id: str) -> MarkPaidOutcome:
    current = get_reminder(unit, scope.user_id, reminder_id)
    if current.is_paid:
        raise Conflict(f"reminder {current.title!r} was already paid on {current.paid_at}")

    paid = unit.save_reminder(replace(current, is_paid=True, paid_at=scope.now))
    follow_up = None
    if current.is_recurring and current.frequency is not None:
        follow_up = unit.add_reminder(
            Reminder(
                id=scope.new_id(),
                user_id=current.user_id,
                title=current.title,
                amount=current.amount,
                due_date=next_due_date(current.due_date, current.frequency),
                category_id=current.category_id,
                wallet_id=current.wallet_id,
                is_recurring=True,
                frequency=current.frequency,
                is_paid=False,
                created_at=scope.now,
            )
        )
        logger.debug("reminder %s spawned %s due %s", paid.id, follow_up.id, follow_up.due_date)
    return MarkPaidOutcome(paid=paid, next=follow_up)


def list_reminders(
    unit: LedgerUnit,
    user_id: str,
    now: datetime,
    *,
    upcoming: bool = False,
    is_paid: bool | None = None,
) -> list[ReminderView]:
    """Reminders ordered by due date; ``upcoming`` keeps unpaid ones due today or later."""

    if upcoming:
        rows = unit.list_reminders(user_id, is_paid=False, due_from=now.astimezone(UTC).date())
    else:
        rows = unit.list_reminders(user_id, is_paid=is_paid)
    categories = {c.id: c.name for c in unit.list_categories(user_id)}
    wallets = {w.id: w.name for w in unit.list_wallets(user_id)}
    return [
        view(
            r,
            now,
            category_name=categories.get(r.category_id) if r.category_id else None,
            wallet_name=wallets.get(r.wallet_id) if r.wallet_id else None,
        )
        for r in rows
    ]


__all__ = [
    "create_reminder",
    "days_until_due",
    "delete_reminder",
    "get_reminder",
    "is_overdue",
    "list_reminders",
    "mark_paid",
    "next_due_date",
    "update_reminder",
    "view",
]
