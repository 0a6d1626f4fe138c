from __future__ import annotations

import pytest

from household_ledger import Ledger
from household_ledger.balance import balance_delta
from household_ledger.errors import InvalidInput

from tests.helpers.ledger import Seeded


def _balance(ledger: Ledger, wallet_id: str) -> int:
    return ledger.get_wallet(wallet_id).unwrap().balance


def _tx(seeded: Seeded, **overrides) -> dict:
    payload = {
        "wallet_id": seeded.wallet_id,
        "category_id": seeded.food_id,
        "amount": 30_000,
        "type": "expense",
        "date": "2025-01-10",
    }
    payload.update(overrides)
    return payload


def test_balance_delta_signs() -> None:
    assert balance_delta("income", 500) == 500
    assert balance_delta("expense", 500) == -500
    with pytest.raises(InvalidInput):
        balance_delta("transfer", 500)


def test_create_and_delete_move_the_wallet(seeded: Seeded) -> None:
    ledger = seeded.ledger
    assert _balance(ledger, seeded.wallet_id) == 100_000

    expense = ledger.create_transaction(_tx(seeded)).unwrap()
    assert _balance(ledger, seeded.wallet_id) == 70_000

    ledger.create_transaction(
        _tx(seeded, category_id=seeded.salary_id, type="income", amount=20_000)
    ).unwrap()
    assert _balance(ledger, seeded.wallet_id) == 90_000

    ledger.delete_transaction(expense.id).unwrap()
    assert _balance(ledger, seeded.wallet_id) == 120_000


def test_create_then_delete_restores_the_balance(seeded: Seeded) -> None:
    ledger = seeded.ledger
    before = _balance(ledger, seeded.wallet_id)
    tx = ledger.create_transaction(_tx(seeded, amount=12_345)).unwrap()
    ledger.delete_transaction(tx.id).unwrap()
    assert _balance(ledger, seeded.wallet_id) == before


def test_delete_then_recreate_restores_the_pre_delete_balance(seeded: Seeded) -> None:
    ledger = seeded.ledger
    payload = _tx(seeded, amount=12_345, description="groceries")
    original = ledger.create_transaction(payload).unwrap()
    pre_delete = _balance(ledger, seeded.wallet_id)
    assert pre_delete == 100_000 - 12_345

    ledger.delete_transaction(original.id).unwrap()
    assert _balance(ledger, seeded.wallet_id) == 100_000

    again = ledger.create_transaction(payload).unwrap()
    assert again.id != original.id
    assert _balance(ledger, seeded.wallet_id) == pre_delete


def test_update_reverses_old_and_applies_new(seeded: Seeded) -> None:
    ledger = seeded.ledger
    tx = ledger.create_transaction(_tx(seeded, amount=10_000)).unwrap()
    assert _balance(ledger, seeded.wallet_id) == 90_000

    ledger.update_transaction(tx.id, {"amount": 25_000}).unwrap()
    assert _balance(ledger, seeded.wallet_id) == 75_000

    # Flip to income: reverse -25000, apply +25000.
    ledger.update_transaction(
        tx.id, {"type": "income", "category_id": seeded.salary_id}
    ).unwrap()
    assert _balance(ledger, seeded.wallet_id) == 125_000


def test_update_can_move_a_transaction_between_wallets(seeded: Seeded) -> None:
    ledger = seeded.ledger
    tx = ledger.create_transaction(_tx(seeded, amount=40_000)).unwrap()

    moved = ledger.update_transaction(tx.id, {"wallet_id": seeded.bank_id}).unwrap()

    assert moved.wallet_id == seeded.bank_id
    assert _balance(ledger, seeded.wallet_id) == 100_000
    assert _balance(ledger, seeded.bank_id) == -40_000


def test_rejected_update_leaves_balances_untouched(seeded: Seeded) -> None:
    ledger = seeded.ledger
    tx = ledger.create_transaction(_tx(seeded, amount=40_000)).unwrap()

    result = ledger.update_transaction(tx.id, {"wallet_id": "missing-wallet"})

    assert result.code == "not_found"
    assert _balance(ledger, seeded.wallet_id) == 60_000
    assert ledger.get_transaction(tx.id).unwrap().wallet_id == seeded.wallet_id


def test_balance_matches_ledger_after_a_mixed_history(seeded: Seeded) -> None:
    ledger = seeded.ledger
    ids = []
    for i, (amount, kind) in enumerate(
        [(5_000, "expense"), (70_000, "income"), (1_250, "expense"), (999, "expense")]
    ):
        category = seeded.salary_id if kind == "income" else seeded.food_id
        wallet = seeded.wallet_id if i % 2 == 0 else seeded.bank_id
        ids.append(
            ledger.create_transaction(
                _tx(seeded, amount=amount, type=kind, category_id=category, wallet_id=wallet)
            ).unwrap().id
        )
    ledger.update_transaction(ids[0], {"amount": 6_000, "wallet_id": seeded.bank_id}).unwrap()
    ledger.delete_transaction(ids[2]).unwrap()

    checks = ledger.reconcile().unwrap()
    assert len(checks) == 2
    assert all(check.in_sync for check in checks)
    # cash: 100000 (opening), no remaining tx; bank: -6000 + 70000 - 999
    assert _balance(ledger, seeded.wallet_id) == 100_000
    assert _balance(ledger, seeded.bank_id) == 63_001
