"""Category management and new-account provisioning."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any

from .errors import Conflict, NotFound
from .logging_setup import get_logger
from .models import Category, TxType, Wallet
from .schemas import CategoryInput, CategoryPatch, changes, normalize_name, parse_input
from .scope import CallScope
from .store import LedgerUnit

logger = get_logger("household_ledger.categories")

# Seeded for every new account: (name, type, icon).
DEFAULT_CATEGORIES: tuple[tuple[str, TxType, str], ...] = (
    ("Salary", "income", "💰"),
    ("Bonus", "income", "🎁"),
    ("Investment", "income", "📈"),
    ("Food", "expense", "🍽️"),
    ("Transportation", "expense", "🚗"),
    ("Shopping", "expense", "🛒"),
    ("Electricity", "expense", "⚡"),
    ("Internet", "expense", "📶"),
    ("Health", "expense", "🏥"),
    ("Education", "expense", "📚"),
)
DEFAULT_WALLET: tuple[str, str, str] = ("Main Wallet", "cash", "👛")


@dataclass(frozen=True, slots=True)
class Provisioned:
    categories: tuple[Category, ...]
    wallet: Wallet | None


def get_category(unit: LedgerUnit, user_id: str, category_id: str) -> Category:
    category = unit.get_category(user_id, category_id)
    if category is None:
        raise NotFound("category", category_id)
    return category


def list_categories(unit: LedgerUnit, user_id: str, type: TxType | None = None) -> list[Category]:
    return unit.list_categories(user_id, type)


def _ensure_name_free(
    unit: LedgerUnit, user_id: str, name: str, type: TxType, *, own_id: str | None = None
) -> None:
    existing = unit.find_category(user_id, name, type)
    if existing is not None and existing.id != own_id:
        raise Conflict(f"an {type} category named {name!r} already exists")


def _references(unit: LedgerUnit, user_id: str, category_id: str) -> tuple[int, int]:
    return (
        unit.count_transactions(user_id, category_id=category_id),
        unit.count_budgets(user_id, category_id=category_id),
    )


def create_category(
    unit: LedgerUnit, scope: CallScope, data: CategoryInput | Mapping[str, Any]
) -> Category:
    payload = parse_input(CategoryInput, data)
    name = normalize_name(payload.name)
    _ensure_name_free(unit, scope.user_id, name, payload.type)
    return unit.add_category(
        Category(
            id=scope.new_id(),
            user_id=scope.user_id,
            name=name,
            type=payload.type,
            icon=payload.icon,
            color=payload.color,
            created_at=scope.now,
        )
    )


def update_category(
    unit: LedgerUnit,
    scope: CallScope,
    category_id: str,
    data: CategoryPatch | Mapping[str, Any],
) -> Category:
    """Rename or restyle a category.

    Changing ``type`` is refused while transactions or budgets reference the
    category, since it would break the category/transaction type match.
    """

    patch = parse_input(CategoryPatch, data)
    category = get_category(unit, scope.user_id, category_id)
    fields = {k: v for k, v in changes(patch).items() if k in ("icon", "color") or v is not None}
    if "name" in fields:
        fields["name"] = normalize_name(fields["name"])

    updated = replace(category, **fields)
    if updated.type != category.type:
        tx_count, budget_count = _references(unit, scope.user_id, category_id)
        if tx_count or budget_count:
            raise Conflict(
                f"category {category.name!r} is referenced by {tx_count} transaction(s) "
                f"and {budget_count} budget(s); its type cannot change"
            )
    if (updated.name, updated.type) != (category.name, category.type):
        _ensure_name_free(unit, scope.user_id, updated.name, updated.type, own_id=category.id)
    return unit.save_category(updated)


def delete_category(unit: LedgerUnit, scope: CallScope, category_id: str) -> Category:
    category = get_category(unit, scope.user_id, category_id)
    tx_count, budget_count = _references(unit, scope.user_id, category_id)
    if tx_count:
        raise Conflict(f"category {category.name!r} still has {tx_count} transaction(s)")
    if budget_count:
        raise Conflict(f"category {category.name!r} still has a budget allocated")
    unit.delete_category(scope.user_id, category_id)
    return category


def provision_user(unit: LedgerUnit, scope: CallScope) -> Provisioned:
    """Seed default categories and a default wallet for a new account.

    Idempotent: entries that already exist (by name and type) are left alone,
    and the wallet is only created when the user has none.
    """

    created: list[Category] = []
    for name, type_, icon in DEFAULT_CATEGORIES:
        if unit.find_category(scope.user_id, name, type_) is not None:
            continue
        created.append(
            unit.add_category(
                Category(
                    id=scope.new_id(),
                    user_id=scope.user_id,
                    name=name,
                    type=type_,
                    icon=icon,
                    created_at=scope.now,
                )
            )
        )

    wallet = None
    if not unit.list_wallets(scope.user_id):
        name, wtype, icon = DEFAULT_WALLET
        wallet = unit.add_wallet(
            Wallet(
                id=scope.new_id(),
                user_id=scope.user_id,
                name=name,
                type=wtype,  # type: ignore[arg-type]
                balance=0,
                icon=icon,
                created_at=scope.now,
            )
        )
    logger.info(
        "provisioned user %s: %d categories, wallet=%s",
        scope.user_id,
        len(created),
        wallet.id if wallet else None,
    )
    return Provisioned(categories=tuple(created), wallet=wallet)


__all__ = [
    "DEFAULT_CATEGORIES",
    "DEFAULT_WALLET",
    "Provisioned",
    "create_category",
    "delete_category",
    "get_category",
    "list_categories",
    "provision_user",
    "update_category",
]
