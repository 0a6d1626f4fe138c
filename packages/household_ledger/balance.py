"""Wallet balance maintenance.

A transaction moves its wallet by a signed delta: ``+amount`` for income and
``-amount`` for expense. Every effective change to the transaction log calls
exactly one of :func:`apply` / :func:`reverse` per affected transaction inside
the same unit of work as the log change itself:

- create: ``apply(new)``
- delete: ``reverse(old)``
- update: ``reverse(old)`` then ``apply(new)`` (possibly on another wallet)
"""

from __future__ import annotations

from .errors import InvalidInput, NotFound
from .logging_setup import get_logger
from .models import Transaction
from .store import LedgerUnit

logger = get_logger("household_ledger.balance")


def balance_delta(type: str, amount: int) -> int:
    if type == "income":
        return amount
    if type == "expense":
        return -amount
    raise InvalidInput(f"unknown transaction type: {type!r}")


def _move(unit: LedgerUnit, tx: Transaction, delta: int) -> int:
    if unit.get_wallet(tx.user_id, tx.wallet_id, lock=True) is None:
        raise NotFound("wallet", tx.wallet_id)
    balance = unit.adjust_balance(tx.user_id, tx.wallet_id, delta)
    logger.debug("wallet %s moved by %+d to %d (tx %s)", tx.wallet_id, delta, balance, tx.id)
    return balance


def apply(unit: LedgerUnit, tx: Transaction) -> int:
    """Add the transaction's delta to its wallet; return the new balance."""

    return _move(unit, tx, balance_delta(tx.type, tx.amount))


def reverse(unit: LedgerUnit, tx: Transaction) -> int:
    """Undo :func:`apply` for ``tx``; return the new balance."""

    return _move(unit, tx, -balance_delta(tx.type, tx.amount))


__all__ = ["apply", "balance_delta", "reverse"]
