"""Wallet management and balance reconciliation."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import replace
from typing import Any

from .errors import Conflict, NotFound
from .logging_setup import get_logger
from .models import Reconciliation, TransactionQuery, Wallet
from .schemas import WalletInput, WalletPatch, changes, normalize_name, parse_input
from .scope import CallScope
from .store import LedgerUnit

logger = get_logger("household_ledger.wallets")


def get_wallet(unit: LedgerUnit, user_id: str, wallet_id: str) -> Wallet:
    wallet = unit.get_wallet(user_id, wallet_id)
    if wallet is None:
        raise NotFound("wallet", wallet_id)
    return wallet


def list_wallets(unit: LedgerUnit, user_id: str) -> list[Wallet]:
    return unit.list_wallets(user_id)


def _ensure_name_free(unit: LedgerUnit, user_id: str, name: str, *, own_id: str | None = None):
    existing = unit.find_wallet_by_name(user_id, name)
    if existing is not None and existing.id != own_id:
        raise Conflict(f"a wallet named {name!r} already exists")


def create_wallet(
    unit: LedgerUnit, scope: CallScope, data: WalletInput | Mapping[str, Any]
) -> Wallet:
    """Create a wallet whose balance starts at ``opening_balance``."""

    payload = parse_input(WalletInput, data)
    name = normalize_name(payload.name)
    _ensure_name_free(unit, scope.user_id, name)
    return unit.add_wallet(
        Wallet(
            id=scope.new_id(),
            user_id=scope.user_id,
            name=name,
            type=payload.type,
            balance=payload.opening_balance,
            opening_balance=payload.opening_balance,
            icon=payload.icon,
            color=payload.color,
            created_at=scope.now,
        )
    )


def update_wallet(
    unit: LedgerUnit,
    scope: CallScope,
    wallet_id: str,
    data: WalletPatch | Mapping[str, Any],
) -> Wallet:
    patch = parse_input(WalletPatch, data)
    wallet = get_wallet(unit, scope.user_id, wallet_id)
    fields = changes(patch)
    if fields.get("name") is not None:
        fields["name"] = normalize_name(fields["name"])
        if fields["name"] != wallet.name:
            _ensure_name_free(unit, scope.user_id, fields["name"], own_id=wallet.id)
    elif "name" in fields:
        del fields["name"]
    if fields.get("type") is None:
        fields.pop("type", None)
    return unit.save_wallet(replace(wallet, **fields))


def delete_wallet(unit: LedgerUnit, scope: CallScope, wallet_id: str) -> Wallet:
    wallet = get_wallet(unit, scope.user_id, wallet_id)
    in_use = unit.count_transactions(scope.user_id, wallet_id=wallet_id)
    if in_use:
        raise Conflict(
            f"wallet {wallet.name!r} still has {in_use} transaction(s); "
            "move or delete them first"
        )
    unit.delete_wallet(scope.user_id, wallet_id)
    return wallet


def reconcile_wallet(unit: LedgerUnit, user_id: str, wallet_id: str) -> Reconciliation:
    """Compare the stored balance with ``opening_balance + signed transaction sum``."""

    wallet = get_wallet(unit, user_id, wallet_id)
    income = unit.sum_amounts(user_id, TransactionQuery(wallet_id=wallet_id, type="income"))
    expense = unit.sum_amounts(user_id, TransactionQuery(wallet_id=wallet_id, type="expense"))
    result = Reconciliation(
        wallet_id=wallet.id,
        stored_balance=wallet.balance,
        expected_balance=wallet.opening_balance + income - expense,
    )
    if not result.in_sync:
        logger.warning(
            "wallet %s balance drift: stored=%d expected=%d",
            wallet.id,
            result.stored_balance,
            result.expected_balance,
        )
    return result


__all__ = [
    "create_wallet",
    "delete_wallet",
    "get_wallet",
    "list_wallets",
    "reconcile_wallet",
    "update_wallet",
]
