from __future__ import annotations

from datetime import UTC, datetime
from functools import partial
from pathlib import Path

import pytest
from db.client import dispose_engines
from typer.testing import CliRunner

from household_ledger import Ledger
from household_ledger import cli as cli_module
from household_ledger.cli import app

_ENV_VARS = (
    "DATABASE_URL",
    "HOUSEHOLD_LEDGER_USER",
    "HOUSEHOLD_LEDGER_NEAR_LIMIT_PERCENT",
    "HOUSEHOLD_LEDGER_LOG_LEVEL",
)


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    # setenv first so teardown also drops anything load_dotenv writes later.
    for name in _ENV_VARS:
        monkeypatch.setenv(name, "placeholder")
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    yield tmp_path
    dispose_engines()


@pytest.fixture
def cli(workdir: Path):
    url = f"sqlite+pysqlite:///{workdir / 'ledger.db'}"
    runner = CliRunner()

    def invoke(*args: str, user: str | None = "alice"):
        base = ["--database-url", url]
        if user:
            base += ["--user", user]
        return runner.invoke(app, [*base, *args])

    assert invoke("init-db").exit_code == 0
    return invoke


def _ids(output: str) -> dict[str, str]:
    """Map ``name`` -> ``id`` for provision output (``id<TAB>kind<TAB>name``)."""

    rows = (line.split("\t") for line in output.splitlines() if line.count("\t") == 2)
    return {name: row_id for row_id, _kind, name in rows}


def test_full_session(cli) -> None:
    provisioned = cli("provision")
    assert provisioned.exit_code == 0, provisioned.output
    ids = _ids(provisioned.stdout)
    wallet, food = ids["Main Wallet"], ids["Food"]

    added = cli(
        "add-transaction",
        "--wallet", wallet,
        "--category", food,
        "--amount", "30000",
        "--type", "expense",
        "--date", "2025-01-10",
        "--description", "groceries",
    )  # fmt: skip
    assert added.exit_code == 0, added.output
    tx_id = added.stdout.strip()

    wallets = cli("wallets")
    assert f"{wallet}\tMain Wallet\tcash\t-30,000" in wallets.stdout
    assert "total\t-30,000" in wallets.stdout

    summary = cli("report", "summary", "--start", "2025-01-01", "--end", "2025-01-31")
    assert summary.exit_code == 0, summary.output
    assert "expense\t30,000" in summary.stdout
    assert "transactions\t1" in summary.stdout

    budget = cli("add-budget", "--category", food, "--amount", "50000", "--month", "2025-01")
    assert budget.exit_code == 0, budget.output
    assert "30,000/50,000\t60%\ton-track" in budget.stdout

    breakdown = cli("report", "breakdown", "--start", "2025-01-01", "--end", "2025-01-31")
    assert breakdown.stdout.splitlines() == ["Food\t30,000\t1\t100%"]

    assert cli("reconcile").exit_code == 0

    deleted = cli("delete-transaction", tx_id)
    assert deleted.exit_code == 0
    assert "total\t0" in cli("wallets").stdout


def test_recurring_reminder_round_trip(cli) -> None:
    created = cli(
        "add-reminder", "--title", "Rent", "--amount", "1000",
        "--due", "2025-01-31", "--frequency", "monthly",
    )  # fmt: skip
    assert created.exit_code == 0, created.output
    reminder_id = created.stdout.strip()

    paid = cli("pay-reminder", reminder_id)
    assert paid.exit_code == 0, paid.output
    assert "due 2025-02-28" in paid.stdout

    again = cli("pay-reminder", reminder_id)
    assert again.exit_code == 1
    assert "Error [conflict]" in again.output

    unpaid = cli("reminders", "--unpaid")
    assert [line.split("\t")[1] for line in unpaid.stdout.splitlines()] == ["2025-02-28"]


def test_rejections_exit_with_status_one(cli) -> None:
    cli("provision")
    result = cli(
        "add-transaction",
        "--wallet", "missing",
        "--category", "missing",
        "--amount", "100",
        "--type", "expense",
    )  # fmt: skip
    assert result.exit_code == 1
    assert "Error [not_found]" in result.output


def test_bad_month_option(cli) -> None:
    result = cli("add-budget", "--category", "c", "--amount", "1", "--month", "January")
    assert result.exit_code == 1
    assert "Error [invalid_input]" in result.output


def test_a_user_is_required(cli) -> None:
    result = cli("wallets", user=None)
    assert result.exit_code == 1
    assert "no user given" in result.output


def test_user_and_database_come_from_dotenv(workdir: Path) -> None:
    url = f"sqlite+pysqlite:///{workdir / 'env.db'}"
    (workdir / ".env").write_text(f"DATABASE_URL={url}\nHOUSEHOLD_LEDGER_USER=carol\n")
    runner = CliRunner()

    assert runner.invoke(app, ["init-db"]).exit_code == 0
    created = runner.invoke(app, ["add-wallet", "--name", "pocket", "--type", "cash"])
    assert created.exit_code == 0, created.output

    listed = runner.invoke(app, ["wallets"])
    assert "\tPocket\tcash\t0" in listed.stdout


def test_init_db_needs_a_database(workdir: Path) -> None:
    result = CliRunner().invoke(app, ["--user", "dave", "init-db"])
    assert result.exit_code == 1
    assert "DATABASE_URL is not set" in result.output


def test_add_transaction_defaults_to_the_ledgers_utc_day(
    cli, monkeypatch: pytest.MonkeyPatch
) -> None:
    # Already the 11th on a host clock east of UTC.
    late = datetime(2025, 3, 10, 23, 30, tzinfo=UTC)
    monkeypatch.setattr(cli_module, "Ledger", partial(Ledger, clock=lambda: late))
    ids = _ids(cli("provision").stdout)
    wallet, food = ids["Main Wallet"], ids["Food"]

    added = cli(
        "add-transaction",
        "--wallet", wallet,
        "--category", food,
        "--amount", "1000",
        "--type", "expense",
    )  # fmt: skip
    assert added.exit_code == 0, added.output

    listed = cli("transactions")
    assert f"{added.stdout.strip()}\t2025-03-10\texpense" in listed.stdout
