# ruff: noqa: I001
"""CLI for the ``household_ledger`` package.

A thin Typer console over :class:`household_ledger.coordinator.Ledger`.
Environment variables (``DATABASE_URL``, ``HOUSEHOLD_LEDGER_USER`` and the
rest of :mod:`household_ledger.config`) are loaded from a local ``.env`` with
``python-dotenv`` before any command runs. Rejected operations print
``Error [<code>]: <message>`` to stderr and exit with status 1.

Without ``DATABASE_URL`` every invocation gets a fresh in-memory store, which
is only useful for trying commands out; point it at a database (a SQLite file
works) to keep data between runs.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Annotated, Any

import typer
from dotenv import load_dotenv

from .config import LedgerSettings
from .coordinator import Ledger, Result
from .errors import LedgerError
from .logging_setup import configure_logging
from .models import BudgetStatus, TrendReport
from .periods import DateRange
from .store import open_store


@dataclass
class _CliState:
    settings: LedgerSettings
    user: str | None


# ---- Small module-level helpers used by CLI commands --------------------------


def _fail(message: str, code: str | None = None) -> typer.Exit:
    prefix = f"Error [{code}]" if code else "Error"
    typer.echo(f"{prefix}: {message}", err=True)
    return typer.Exit(1)


def _ledger(ctx: typer.Context) -> Ledger:
    state: _CliState = ctx.obj
    if not state.user:
        raise _fail("no user given; pass --user or set HOUSEHOLD_LEDGER_USER")
    store = open_store(state.settings.database_url)
    return Ledger(store, state.user, settings=state.settings)


def _value[T](result: Result[T]) -> T:
    if result.error is not None:
        raise _fail(result.error.message, result.error.code)
    return result.value  # type: ignore[return-value]


def _day(value: datetime | None) -> date | None:
    return None if value is None else value.date()


def _span(
    ledger: Ledger, start: datetime | None, end: datetime | None, preset: str | None
) -> DateRange:
    if preset:
        return _value(ledger.resolve_range(preset))
    if start is None or end is None:
        raise _fail("pass --start and --end, or --range")
    try:
        return DateRange(start.date(), end.date())
    except LedgerError as exc:
        raise _fail(exc.message, exc.code) from exc


def _money(amount: int) -> str:
    return f"{amount:,}"


def _print_budget(status: BudgetStatus) -> None:
    typer.echo(
        f"{status.id}\t{status.category_name}\t{status.period}\t"
        f"{status.start_date}..{status.end_date}\t"
        f"{_money(status.spent)}/{_money(status.amount)}\t{status.percentage}%\t{status.status}"
    )


def _print_trend(report: TrendReport) -> None:
    for bucket in report.buckets:
        typer.echo(
            f"{bucket.label}\t{_money(bucket.income)}\t{_money(bucket.expense)}\t"
            f"{_money(bucket.balance)}"
        )
    typer.echo(
        f"average\t{_money(report.average_income)}\t{_money(report.average_expense)}\t"
        f"{_money(report.average_balance)}"
    )


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Household ledger: wallets, transactions, budgets, reports and bill reminders. "
        "Loads DATABASE_URL and HOUSEHOLD_LEDGER_USER from a local .env before running."
    ),
)
report_app = typer.Typer(no_args_is_help=True, help="Aggregated reports over a date range.")
app.add_typer(report_app, name="report")

DateOpt = Annotated[datetime | None, typer.Option(formats=["%Y-%m-%d"], help="YYYY-MM-DD")]
RangeOpt = Annotated[
    str | None,
    typer.Option(
        "--range", help="Preset range: this-month, last-month, last-3-months, last-6-months."
    ),
]


@app.command("init-db")
def init_db_cmd(ctx: typer.Context) -> None:
    """Create the ledger tables in DATABASE_URL (local SQLite or a fresh database)."""

    state: _CliState = ctx.obj
    if not state.settings.database_url:
        raise _fail("DATABASE_URL is not set")

    from .sql_store import SqlLedgerStore

    SqlLedgerStore(state.settings.database_url).create_schema()
    typer.echo("schema ready")


@app.command("provision")
def provision_cmd(ctx: typer.Context) -> None:
    """Seed default categories and a default wallet for the user."""

    outcome = _value(_ledger(ctx).provision())
    for category in outcome.categories:
        typer.echo(f"{category.id}\t{category.type}\t{category.name}")
    if outcome.wallet is not None:
        typer.echo(f"{outcome.wallet.id}\twallet\t{outcome.wallet.name}")


@app.command("wallets")
def wallets_cmd(ctx: typer.Context) -> None:
    """List wallets with their balances."""

    rows = _value(_ledger(ctx).list_wallets())
    for wallet in rows:
        typer.echo(f"{wallet.id}\t{wallet.name}\t{wallet.type}\t{_money(wallet.balance)}")
    typer.echo(f"total\t{_money(sum(w.balance for w in rows))}")


@app.command("add-wallet")
def add_wallet_cmd(
    ctx: typer.Context,
    name: Annotated[str, typer.Option(help="Wallet name.")],
    type: Annotated[str, typer.Option("--type", help="cash, bank or ewallet.")] = "cash",
    opening_balance: Annotated[int, typer.Option(help="Starting balance in minor units.")] = 0,
) -> None:
    wallet = _value(
        _ledger(ctx).create_wallet(
            {"name": name, "type": type, "opening_balance": opening_balance}
        )
    )
    typer.echo(wallet.id)


@app.command("categories")
def categories_cmd(
    ctx: typer.Context,
    type: Annotated[str | None, typer.Option("--type", help="income or expense.")] = None,
) -> None:
    for category in _value(_ledger(ctx).list_categories(type)):  # type: ignore[arg-type]
        typer.echo(f"{category.id}\t{category.type}\t{category.name}")


@app.command("add-transaction")
def add_transaction_cmd(
    ctx: typer.Context,
    wallet: Annotated[str, typer.Option(help="Wallet id.")],
    category: Annotated[str, typer.Option(help="Category id.")],
    amount: Annotated[int, typer.Option(help="Amount in minor units (> 0).")],
    type: Annotated[str, typer.Option("--type", help="income or expense.")],
    on: Annotated[str | None, typer.Option("--date", help="YYYY-MM-DD (default: today in UTC).")] = None,
    description: Annotated[str | None, typer.Option(help="Free-text note.")] = None,
) -> None:
    """Record a transaction and move the wallet balance."""

    ledger = _ledger(ctx)
    payload: dict[str, Any] = {
        "wallet_id": wallet,
        "category_id": category,
        "amount": amount,
        "type": type,
        "date": on or ledger.today.isoformat(),
        "description": description,
    }
    tx = _value(ledger.create_transaction(payload))
    typer.echo(tx.id)


@app.command("delete-transaction")
def delete_transaction_cmd(ctx: typer.Context, tx_id: str) -> None:
    """Delete a transaction and reverse its effect on the wallet balance."""

    tx = _value(_ledger(ctx).delete_transaction(tx_id))
    typer.echo(f"deleted {tx.id}")


@app.command("transactions")
def transactions_cmd(
    ctx: typer.Context,
    start: DateOpt = None,
    end: DateOpt = None,
    type: Annotated[str | None, typer.Option("--type", help="income or expense.")] = None,
    limit: Annotated[int, typer.Option(help="Page size.")] = 50,
    offset: Annotated[int, typer.Option(help="Rows to skip.")] = 0,
) -> None:
    rows = _value(
        _ledger(ctx).list_transactions(
            start=_day(start), end=_day(end), type=type, limit=limit, offset=offset
        )
    )
    for tx in rows:
        typer.echo(f"{tx.id}\t{tx.date}\t{tx.type}\t{_money(tx.amount)}\t{tx.description or ''}")


@app.command("budgets")
def budgets_cmd(ctx: typer.Context) -> None:
    """Show every budget envelope with its live spent/status."""

    overview = _value(_ledger(ctx).budget_overview())
    for status in overview.budgets:
        _print_budget(status)
    typer.echo(
        f"total\t{_money(overview.total_spent)}/{_money(overview.total_budget)}\t"
        f"remaining {_money(overview.total_remaining)}"
    )


@app.command("add-budget")
def add_budget_cmd(
    ctx: typer.Context,
    category: Annotated[str, typer.Option(help="Expense category id.")],
    amount: Annotated[int, typer.Option(help="Limit in minor units (> 0).")],
    month: Annotated[
        str | None, typer.Option(help="YYYY-MM; shorthand for a monthly envelope.")
    ] = None,
    period: Annotated[str, typer.Option(help="weekly, monthly or yearly.")] = "monthly",
    start: DateOpt = None,
    end: DateOpt = None,
) -> None:
    ledger = _ledger(ctx)
    if month:
        try:
            year_s, month_s = month.split("-")
            year_i, month_i = int(year_s), int(month_s)
        except ValueError:
            raise _fail(f"--month must look like YYYY-MM, got {month!r}", "invalid_input") from None
        status = _value(ledger.create_monthly_budget(category, amount, year_i, month_i))
    else:
        if start is None or end is None:
            raise _fail("pass --month, or --start and --end")
        status = _value(
            ledger.create_budget(
                {
                    "category_id": category,
                    "amount": amount,
                    "period": period,
                    "start_date": start.date(),
                    "end_date": end.date(),
                }
            )
        )
    _print_budget(status)


# ---- report subcommands -------------------------------------------------------


@report_app.command("summary")
def report_summary_cmd(
    ctx: typer.Context, start: DateOpt = None, end: DateOpt = None, preset: RangeOpt = None
) -> None:
    ledger = _ledger(ctx)
    span = _span(ledger, start, end, preset)
    s = _value(ledger.summary(span.start, span.end))
    typer.echo(f"income\t{_money(s.total_income)}")
    typer.echo(f"expense\t{_money(s.total_expense)}")
    typer.echo(f"balance\t{_money(s.balance)}")
    typer.echo(f"transactions\t{s.transaction_count}")


@report_app.command("trend")
def report_trend_cmd(
    ctx: typer.Context,
    granularity: Annotated[str, typer.Option(help="daily, weekly or monthly.")] = "monthly",
    start: DateOpt = None,
    end: DateOpt = None,
    preset: RangeOpt = None,
) -> None:
    ledger = _ledger(ctx)
    span = _span(ledger, start, end, preset)
    _print_trend(_value(ledger.trend(span.start, span.end, granularity)))


@report_app.command("breakdown")
def report_breakdown_cmd(
    ctx: typer.Context,
    type: Annotated[str, typer.Option("--type", help="income or expense.")] = "expense",
    start: DateOpt = None,
    end: DateOpt = None,
    preset: RangeOpt = None,
) -> None:
    ledger = _ledger(ctx)
    span = _span(ledger, start, end, preset)
    for share in _value(ledger.category_breakdown(span.start, span.end, type)):  # type: ignore[arg-type]
        typer.echo(
            f"{share.category_name}\t{_money(share.total)}\t{share.count}\t{share.percentage}%"
        )


@report_app.command("compare")
def report_compare_cmd(ctx: typer.Context) -> None:
    """This calendar month against the previous one."""

    cmp = _value(_ledger(ctx).month_comparison())
    for label, fig in (("income", cmp.income), ("expense", cmp.expense)):
        typer.echo(
            f"{label}\t{_money(fig.previous)} -> {_money(fig.current)}\t"
            f"{fig.change:+d}%\t{fig.direction}"
        )


@report_app.command("monthly")
def report_monthly_cmd(
    ctx: typer.Context,
    year: Annotated[int | None, typer.Option(help="Defaults to the current year.")] = None,
    month: Annotated[int | None, typer.Option(help="1..12; defaults to this month.")] = None,
) -> None:
    report = _value(_ledger(ctx).monthly_report(year, month))
    typer.echo(f"{report.start:%B %Y}")
    typer.echo(
        f"income\t{_money(report.summary.total_income)}\t"
        f"expense\t{_money(report.summary.total_expense)}\t"
        f"balance\t{_money(report.summary.balance)}"
    )
    for share in report.expense_breakdown:
        typer.echo(f"  {share.category_name}\t{_money(share.total)}\t{share.percentage}%")
    for view in report.transactions:
        tx = view.transaction
        typer.echo(
            f"{tx.date}\t{tx.type}\t{_money(tx.amount)}\t{view.category_name}\t{view.wallet_name}"
        )


# ---- reminders ------------------------------------------------------------------


@app.command("reminders")
def reminders_cmd(
    ctx: typer.Context,
    upcoming: Annotated[bool, typer.Option(help="Only unpaid reminders due today or later.")] = False,
    paid: Annotated[bool | None, typer.Option("--paid/--unpaid", help="Filter by paid state.")] = None,
) -> None:
    for v in _value(_ledger(ctx).list_reminders(upcoming=upcoming, is_paid=paid)):
        r = v.reminder
        state = "paid" if r.is_paid else ("overdue" if v.is_overdue else f"in {v.days_until_due}d")
        typer.echo(f"{r.id}\t{r.due_date}\t{r.title}\t{_money(r.amount)}\t{state}")


@app.command("add-reminder")
def add_reminder_cmd(
    ctx: typer.Context,
    title: Annotated[str, typer.Option(help="What the bill is for.")],
    amount: Annotated[int, typer.Option(help="Amount in minor units (> 0).")],
    due: Annotated[str, typer.Option(help="Due date, YYYY-MM-DD.")],
    frequency: Annotated[
        str | None, typer.Option(help="daily, weekly, monthly or yearly; makes it recurring.")
    ] = None,
) -> None:
    reminder = _value(
        _ledger(ctx).create_reminder(
            {
                "title": title,
                "amount": amount,
                "due_date": due,
                "is_recurring": frequency is not None,
                "frequency": frequency,
            }
        )
    )
    typer.echo(reminder.id)


@app.command("pay-reminder")
def pay_reminder_cmd(ctx: typer.Context, reminder_id: str) -> None:
    """Mark a reminder paid; recurring reminders schedule their next instance."""

    outcome = _value(_ledger(ctx).mark_reminder_paid(reminder_id))
    typer.echo(f"paid {outcome.paid.id}")
    if outcome.next is not None:
        typer.echo(f"next {outcome.next.id} due {outcome.next.due_date}")


@app.command("reconcile")
def reconcile_cmd(
    ctx: typer.Context,
    wallet: Annotated[str | None, typer.Option(help="Only this wallet id.")] = None,
) -> None:
    """Compare stored wallet balances with the transaction history."""

    drifted = 0
    for rec in _value(_ledger(ctx).reconcile(wallet)):
        flag = "ok" if rec.in_sync else f"DRIFT {rec.drift:+d}"
        typer.echo(
            f"{rec.wallet_id}\t{_money(rec.stored_balance)}\t{_money(rec.expected_balance)}\t{flag}"
        )
        drifted += not rec.in_sync
    if drifted:
        raise typer.Exit(2)


@app.callback()
def _root(
    ctx: typer.Context,
    *,
    database_url: Annotated[
        str | None, typer.Option(help="Override DATABASE_URL (falls back to env var).")
    ] = None,
    user: Annotated[
        str | None, typer.Option(help="User id (falls back to HOUSEHOLD_LEDGER_USER).")
    ] = None,
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures logging once.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

    # Central logging setup so child loggers inherit configuration
    configure_logging()

    try:
        settings = LedgerSettings.from_env()
    except LedgerError as exc:
        raise _fail(exc.message, exc.code) from exc
    if database_url:
        settings = LedgerSettings(
            database_url=database_url,
            near_limit_percent=settings.near_limit_percent,
            default_user=settings.default_user,
            log_level=settings.log_level,
        )
    ctx.obj = _CliState(settings=settings, user=user or settings.default_user)


if __name__ == "__main__":  # pragma: no cover
    # Running as a module: `python -m household_ledger.cli`
    app()
