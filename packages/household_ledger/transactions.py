"""Transaction create/update/delete with balance maintenance.

Callers own the unit of work; each function here performs its log change and
the matching balance moves through the same ``unit`` so they commit or roll
back together.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import replace
from typing import Any

from . import balance
from .errors import InvalidInput, NotFound
from .logging_setup import get_logger
from .models import Category, Transaction, TransactionQuery, TxType, Wallet
from .schemas import (
    TransactionFilter,
    TransactionInput,
    TransactionPatch,
    changes,
    parse_input,
)
from .scope import CallScope
from .store import LedgerUnit

logger = get_logger("household_ledger.transactions")


def _references(
    unit: LedgerUnit, user_id: str, wallet_id: str, category_id: str, type: TxType
) -> tuple[Wallet, Category]:
    wallet = unit.get_wallet(user_id, wallet_id)
    if wallet is None:
        raise NotFound("wallet", wallet_id)
    category = unit.get_category(user_id, category_id)
    if category is None:
        raise NotFound("category", category_id)
    if category.type != type:
        raise InvalidInput(
            f"category {category.name!r} is a {category.type} category; "
            f"it cannot hold a {type} transaction"
        )
    return wallet, category


def _clean_description(value: str | None) -> str | None:
    if value is None:
        return None
    return value or None


def get_transaction(unit: LedgerUnit, user_id: str, tx_id: str) -> Transaction:
    tx = unit.get_transaction(user_id, tx_id)
    if tx is None:
        raise NotFound("transaction", tx_id)
    return tx


def create_transaction(
    unit: LedgerUnit, scope: CallScope, data: TransactionInput | Mapping[str, Any]
) -> Transaction:
    payload = parse_input(TransactionInput, data)
    _references(unit, scope.user_id, payload.wallet_id, payload.category_id, payload.type)

    tx = unit.add_transaction(
        Transaction(
            id=scope.new_id(),
            user_id=scope.user_id,
            wallet_id=payload.wallet_id,
            category_id=payload.category_id,
            amount=payload.amount,
            type=payload.type,
            date=payload.date,
            description=_clean_description(payload.description),
            created_at=scope.now,
        )
    )
    balance.apply(unit, tx)
    return tx


def update_transaction(
    unit: LedgerUnit,
    scope: CallScope,
    tx_id: str,
    data: TransactionPatch | Mapping[str, Any],
) -> Transaction:
    patch = parse_input(TransactionPatch, data)
    old = get_transaction(unit, scope.user_id, tx_id)

    fields = changes(patch)
    if "description" in fields:
        fields["description"] = _clean_description(fields["description"])
    new = replace(old, **fields)
    _references(unit, scope.user_id, new.wallet_id, new.category_id, new.type)

    if new.wallet_id != old.wallet_id:
        logger.debug("transaction %s moves from wallet %s to %s", tx_id, old.wallet_id, new.wallet_id)

    balance.reverse(unit, old)
    stored = unit.save_transaction(new)
    balance.apply(unit, stored)
    return stored


def delete_transaction(unit: LedgerUnit, scope: CallScope, tx_id: str) -> Transaction:
    old = get_transaction(unit, scope.user_id, tx_id)
    balance.reverse(unit, old)
    unit.delete_transaction(scope.user_id, tx_id)
    return old


def list_transactions(
    unit: LedgerUnit, user_id: str, filters: TransactionFilter | Mapping[str, Any]
) -> list[Transaction]:
    """Filtered page of transactions, newest first."""

    f = parse_input(TransactionFilter, filters)
    query = TransactionQuery(
        start=f.start,
        end=f.end,
        type=f.type,
        category_id=f.category_id,
        wallet_id=f.wallet_id,
        limit=f.limit,
        offset=f.offset,
    )
    return unit.query_transactions(user_id, query)


__all__ = [
    "create_transaction",
    "delete_transaction",
    "get_transaction",
    "list_transactions",
    "update_transaction",
]
