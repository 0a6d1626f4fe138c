"""Pytest configuration: import paths, store fixtures and a deterministic clock.

Store-facing tests run twice through the parametrised ``store`` fixture: once
against the in-memory local store and once against a file-backed SQLite
database created fresh under ``tmp_path``.

Logging state is reset around every test because the CLI configures the
package logger (and turns off propagation), which would otherwise hide
records from ``caplog`` in later tests.
"""

# ruff: noqa: E402, I001
from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path

import pytest

# Make sure the workspace `packages/` and `libs/db/src` dirs are on sys.path so
# `household_ledger` and `db` import without an install.
_ROOT = Path(__file__).resolve().parents[1]
sys.path[:0] = [
    p
    for p in [str(_ROOT / "packages"), str(_ROOT / "libs/db/src"), str(_ROOT)]
    if p not in sys.path
]

from db.client import dispose_engines  # noqa: E402

import household_ledger.logging_setup as logging_setup  # noqa: E402
from household_ledger import Ledger, LedgerSettings, MemoryLedgerStore  # noqa: E402
from household_ledger.sql_store import SqlLedgerStore  # noqa: E402

from tests.helpers.db import bootstrap_sqlite_db  # noqa: E402
from tests.helpers.ledger import OTHER_USER, USER, Clock, Seeded, SequentialIds  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_package_logging() -> Iterator[None]:
    yield
    pkg = logging.getLogger("household_ledger")
    for handler in list(pkg.handlers):
        pkg.removeHandler(handler)
    pkg.setLevel(logging.NOTSET)
    pkg.propagate = True
    logging_setup._CONFIGURED = False


@pytest.fixture(params=["memory", "sqlite"])
def store(request: pytest.FixtureRequest, tmp_path: Path):
    if request.param == "memory":
        yield MemoryLedgerStore()
        return
    url = bootstrap_sqlite_db(tmp_path / "ledger.db")
    yield SqlLedgerStore(url)
    dispose_engines()


@pytest.fixture
def clock() -> Clock:
    return Clock(datetime(2025, 1, 15, 9, 30, tzinfo=UTC))


@pytest.fixture
def ledger(store, clock: Clock) -> Ledger:
    return Ledger(store, USER, settings=LedgerSettings(), clock=clock, id_factory=SequentialIds())


@pytest.fixture
def other_ledger(store, clock: Clock) -> Ledger:
    return Ledger(store, OTHER_USER, clock=clock, id_factory=SequentialIds("other"))


@pytest.fixture
def seeded(ledger: Ledger) -> Seeded:
    """Two wallets (cash opens at 100000), two expense and one income category."""

    wallet = ledger.create_wallet(
        {"name": "cash", "type": "cash", "opening_balance": 100_000}
    ).unwrap()
    bank = ledger.create_wallet({"name": "bank", "type": "bank"}).unwrap()
    food = ledger.create_category({"name": "food", "type": "expense"}).unwrap()
    transport = ledger.create_category({"name": "transport", "type": "expense"}).unwrap()
    salary = ledger.create_category({"name": "salary", "type": "income"}).unwrap()
    return Seeded(
        ledger=ledger,
        wallet_id=wallet.id,
        bank_id=bank.id,
        food_id=food.id,
        transport_id=transport.id,
        salary_id=salary.id,
    )
