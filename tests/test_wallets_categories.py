from __future__ import annotations

from household_ledger import Ledger
from household_ledger.categories import DEFAULT_CATEGORIES

from tests.helpers.ledger import Seeded


def test_wallet_names_are_normalized_and_unique(ledger: Ledger) -> None:
    wallet = ledger.create_wallet({"name": "  main   wallet ", "type": "cash"}).unwrap()
    assert wallet.name == "Main Wallet"
    assert wallet.balance == 0

    dup = ledger.create_wallet({"name": "MAIN wallet", "type": "bank"})
    assert dup.code == "conflict"


def test_opening_balance_seeds_balance(ledger: Ledger) -> None:
    wallet = ledger.create_wallet(
        {"name": "savings", "type": "bank", "opening_balance": 2_500_000}
    ).unwrap()
    assert (wallet.balance, wallet.opening_balance) == (2_500_000, 2_500_000)
    assert ledger.reconcile(wallet.id).unwrap()[0].in_sync


def test_wallet_update_cannot_touch_the_balance(seeded: Seeded) -> None:
    ledger = seeded.ledger
    assert ledger.update_wallet(seeded.wallet_id, {"balance": 1}).code == "invalid_input"

    renamed = ledger.update_wallet(seeded.wallet_id, {"name": "pocket", "color": "#ff0"}).unwrap()
    assert (renamed.name, renamed.color, renamed.balance) == ("Pocket", "#ff0", 100_000)


def test_wallet_rename_into_a_taken_name_is_a_conflict(seeded: Seeded) -> None:
    assert seeded.ledger.update_wallet(seeded.bank_id, {"name": "cash"}).code == "conflict"


def test_wallet_with_transactions_cannot_be_deleted(seeded: Seeded) -> None:
    ledger = seeded.ledger
    tx = ledger.create_transaction(
        {
            "wallet_id": seeded.wallet_id,
            "category_id": seeded.food_id,
            "amount": 1_000,
            "type": "expense",
            "date": "2025-01-02",
        }
    ).unwrap()

    assert ledger.delete_wallet(seeded.wallet_id).code == "conflict"
    ledger.delete_transaction(tx.id).unwrap()
    assert ledger.delete_wallet(seeded.wallet_id).ok
    assert ledger.get_wallet(seeded.wallet_id).code == "not_found"


def test_wallets_are_scoped_to_their_owner(seeded: Seeded, other_ledger: Ledger) -> None:
    assert other_ledger.get_wallet(seeded.wallet_id).code == "not_found"
    assert other_ledger.list_wallets().unwrap() == []
    # Same name is fine for a different user.
    assert other_ledger.create_wallet({"name": "cash", "type": "cash"}).ok


def test_category_names_are_unique_per_type(ledger: Ledger) -> None:
    ledger.create_category({"name": "gift", "type": "income"}).unwrap()
    assert ledger.create_category({"name": "GIFT", "type": "income"}).code == "conflict"
    assert ledger.create_category({"name": "gift", "type": "expense"}).ok


def test_category_type_change_is_blocked_while_referenced(seeded: Seeded) -> None:
    ledger = seeded.ledger
    ledger.create_monthly_budget(seeded.transport_id, 100_000, 2025, 1).unwrap()

    blocked = ledger.update_category(seeded.transport_id, {"type": "income"})
    assert blocked.code == "conflict"

    free = ledger.create_category({"name": "refunds", "type": "expense"}).unwrap()
    flipped = ledger.update_category(free.id, {"type": "income"}).unwrap()
    assert flipped.type == "income"


def test_category_delete_is_blocked_by_transactions_and_budgets(seeded: Seeded) -> None:
    ledger = seeded.ledger
    ledger.create_transaction(
        {
            "wallet_id": seeded.wallet_id,
            "category_id": seeded.food_id,
            "amount": 1_000,
            "type": "expense",
            "date": "2025-01-02",
        }
    ).unwrap()
    budget = ledger.create_monthly_budget(seeded.transport_id, 100_000, 2025, 1).unwrap()

    assert ledger.delete_category(seeded.food_id).code == "conflict"
    assert ledger.delete_category(seeded.transport_id).code == "conflict"

    ledger.delete_budget(budget.id).unwrap()
    assert ledger.delete_category(seeded.transport_id).ok


def test_transaction_type_must_match_category(seeded: Seeded) -> None:
    result = seeded.ledger.create_transaction(
        {
            "wallet_id": seeded.wallet_id,
            "category_id": seeded.salary_id,
            "amount": 1_000,
            "type": "expense",
            "date": "2025-01-02",
        }
    )
    assert result.code == "invalid_input"


def test_list_categories_filters_by_type(seeded: Seeded) -> None:
    income = seeded.ledger.list_categories("income").unwrap()
    assert [c.id for c in income] == [seeded.salary_id]
    assert len(seeded.ledger.list_categories().unwrap()) == 3


def test_provision_seeds_defaults_once(ledger: Ledger) -> None:
    first = ledger.provision().unwrap()
    assert len(first.categories) == len(DEFAULT_CATEGORIES)
    assert first.wallet is not None
    assert first.wallet.name == "Main Wallet"

    second = ledger.provision().unwrap()
    assert second.categories == ()
    assert second.wallet is None
    assert len(ledger.list_categories().unwrap()) == len(DEFAULT_CATEGORIES)
    assert len(ledger.list_wallets().unwrap()) == 1


def test_provision_keeps_existing_wallets(seeded: Seeded) -> None:
    outcome = seeded.ledger.provision().unwrap()
    assert outcome.wallet is None
    # "Salary"/"Food" already exist from the fixture.
    names = {c.name for c in outcome.categories}
    assert "Salary" not in names and "Food" not in names
