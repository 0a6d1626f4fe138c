"""Budget envelopes: spent/remaining/status derivation and envelope CRUD.

``spent`` is never stored. It is recomputed on every read as the sum of
expense transactions in the envelope's category whose date falls inside
``[start_date, end_date]``, so it always reflects the current transaction log.

Status precedence::

    spent > amount                         -> "over"
    round_half_up(spent / amount * 100) >= near_limit_percent -> "near-limit"
    otherwise                              -> "on-track"

``percentage`` is the same rounded ratio capped at 100 for display.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import replace
from typing import Any

from .amounts import percent_of
from .errors import DuplicateBudget, InvalidInput, NotFound
from .logging_setup import get_logger
from .models import Budget, BudgetOverview, BudgetState, BudgetStatus, Category, TransactionQuery
from .periods import month_bounds
from .schemas import BudgetInput, BudgetPatch, changes, parse_input
from .scope import CallScope
from .store import LedgerUnit

logger = get_logger("household_ledger.budgets")

DEFAULT_NEAR_LIMIT_PERCENT = 80


def spent(unit: LedgerUnit, budget: Budget) -> int:
    query = TransactionQuery(
        start=budget.start_date,
        end=budget.end_date,
        type="expense",
        category_id=budget.category_id,
    )
    return unit.sum_amounts(budget.user_id, query)


def compute_status(
    budget: Budget,
    spent_amount: int,
    category_name: str,
    *,
    near_limit_percent: int = DEFAULT_NEAR_LIMIT_PERCENT,
) -> BudgetStatus:
    if budget.amount == 0:
        raw = 0
        over = spent_amount > 0
    else:
        raw = percent_of(spent_amount, budget.amount)
        over = spent_amount > budget.amount

    status: BudgetState
    if over:
        status = "over"
    elif raw >= near_limit_percent:
        status = "near-limit"
    else:
        status = "on-track"

    return BudgetStatus(
        id=budget.id,
        category_id=budget.category_id,
        category_name=category_name,
        amount=budget.amount,
        spent=spent_amount,
        remaining=budget.amount - spent_amount,
        percentage=max(0, min(raw, 100)),
        is_over_budget=over,
        is_near_limit=status == "near-limit",
        status=status,
        period=budget.period,
        start_date=budget.start_date,
        end_date=budget.end_date,
    )


def _get(unit: LedgerUnit, user_id: str, budget_id: str) -> Budget:
    budget = unit.get_budget(user_id, budget_id)
    if budget is None:
        raise NotFound("budget", budget_id)
    return budget


def _expense_category(unit: LedgerUnit, user_id: str, category_id: str) -> Category:
    category = unit.get_category(user_id, category_id)
    if category is None:
        raise NotFound("category", category_id)
    if category.type != "expense":
        raise InvalidInput(f"budgets can only track expense categories; {category.name!r} is income")
    return category


def _ensure_unique(
    unit: LedgerUnit, user_id: str, category_id: str, period: str, *, own_id: str | None = None
) -> None:
    existing = unit.find_budget(user_id, category_id, period)
    if existing is not None and existing.id != own_id:
        raise DuplicateBudget(
            f"a {period} budget for this category already exists ({existing.id}); edit it instead"
        )


def _status(
    unit: LedgerUnit, budget: Budget, category_name: str, near_limit_percent: int
) -> BudgetStatus:
    used = spent(unit, budget)
    logger.debug("budget %s: spent %d of %d", budget.id, used, budget.amount)
    return compute_status(budget, used, category_name, near_limit_percent=near_limit_percent)


def create_budget(
    unit: LedgerUnit,
    scope: CallScope,
    data: BudgetInput | Mapping[str, Any],
    *,
    near_limit_percent: int = DEFAULT_NEAR_LIMIT_PERCENT,
) -> BudgetStatus:
    payload = parse_input(BudgetInput, data)
    category = _expense_category(unit, scope.user_id, payload.category_id)
    _ensure_unique(unit, scope.user_id, payload.category_id, payload.period)
    budget = unit.add_budget(
        Budget(
            id=scope.new_id(),
            user_id=scope.user_id,
            category_id=payload.category_id,
            amount=payload.amount,
            period=payload.period,
            start_date=payload.start_date,
            end_date=payload.end_date,
            created_at=scope.now,
        )
    )
    return _status(unit, budget, category.name, near_limit_percent)


def create_monthly_budget(
    unit: LedgerUnit,
    scope: CallScope,
    *,
    category_id: str,
    amount: int,
    year: int,
    month: int,
    near_limit_percent: int = DEFAULT_NEAR_LIMIT_PERCENT,
) -> BudgetStatus:
    """Envelope for one calendar month (first to last day)."""

    span = month_bounds(year, month)
    return create_budget(
        unit,
        scope,
        {
            "category_id": category_id,
            "amount": amount,
            "period": "monthly",
            "start_date": span.start,
            "end_date": span.end,
        },
        near_limit_percent=near_limit_percent,
    )


def update_budget(
    unit: LedgerUnit,
    scope: CallScope,
    budget_id: str,
    data: BudgetPatch | Mapping[str, Any],
    *,
    near_limit_percent: int = DEFAULT_NEAR_LIMIT_PERCENT,
) -> BudgetStatus:
    patch = parse_input(BudgetPatch, data)
    budget = _get(unit, scope.user_id, budget_id)
    fields = {k: v for k, v in changes(patch).items() if v is not None}
    updated = replace(budget, **fields)

    if updated.start_date > updated.end_date:
        raise InvalidInput("start_date must not be after end_date")
    category = _expense_category(unit, scope.user_id, updated.category_id)
    if (updated.category_id, updated.period) != (budget.category_id, budget.period):
        _ensure_unique(
            unit, scope.user_id, updated.category_id, updated.period, own_id=budget.id
        )
    stored = unit.save_budget(updated)
    return _status(unit, stored, category.name, near_limit_percent)


def delete_budget(unit: LedgerUnit, scope: CallScope, budget_id: str) -> Budget:
    budget = _get(unit, scope.user_id, budget_id)
    unit.delete_budget(scope.user_id, budget_id)
    return budget


def budget_status(
    unit: LedgerUnit,
    user_id: str,
    budget_id: str,
    *,
    near_limit_percent: int = DEFAULT_NEAR_LIMIT_PERCENT,
) -> BudgetStatus:
    budget = _get(unit, user_id, budget_id)
    category = unit.get_category(user_id, budget.category_id)
    name = category.name if category is not None else "Unknown"
    return _status(unit, budget, name, near_limit_percent)


def list_budget_statuses(
    unit: LedgerUnit,
    user_id: str,
    *,
    near_limit_percent: int = DEFAULT_NEAR_LIMIT_PERCENT,
) -> list[BudgetStatus]:
    """Status of every envelope, newest first."""

    names = {c.id: c.name for c in unit.list_categories(user_id)}
    return [
        _status(unit, b, names.get(b.category_id, "Unknown"), near_limit_percent)
        for b in unit.list_budgets(user_id)
    ]


def budget_overview(
    unit: LedgerUnit,
    user_id: str,
    *,
    near_limit_percent: int = DEFAULT_NEAR_LIMIT_PERCENT,
) -> BudgetOverview:
    statuses = list_budget_statuses(unit, user_id, near_limit_percent=near_limit_percent)
    total_budget = sum(s.amount for s in statuses)
    total_spent = sum(s.spent for s in statuses)
    return BudgetOverview(
        total_budget=total_budget,
        total_spent=total_spent,
        total_remaining=total_budget - total_spent,
        budgets=tuple(statuses),
    )


__all__ = [
    "DEFAULT_NEAR_LIMIT_PERCENT",
    "budget_overview",
    "budget_status",
    "compute_status",
    "create_budget",
    "create_monthly_budget",
    "delete_budget",
    "list_budget_statuses",
    "spent",
    "update_budget",
]
