"""Read-only aggregations over the transaction log.

Every report filters the log to an inclusive ``[start, end]`` date range and
is computed synchronously from stored state; nothing here is cached.
"""

from __future__ import annotations

from bisect import bisect_right
from collections.abc import Iterable, Sequence
from datetime import date

from .amounts import mean_rounded, percent_of, round_half_up
from .errors import InvalidInput
from .models import (
    CategoryShare,
    ChangeFigure,
    MonthComparison,
    MonthlyReport,
    Summary,
    Transaction,
    TransactionQuery,
    TransactionView,
    TrendBucket,
    TrendReport,
    TxType,
)
from .periods import DateRange, iter_buckets, month_bounds, previous_month
from .schemas import DateSpan, parse_date, parse_input
from .store import LedgerUnit


def _span(start: date | str, end: date | str) -> DateRange:
    span = parse_input(DateSpan, {"start": start, "end": end})
    return DateRange(span.start, span.end)


def _transactions(unit: LedgerUnit, user_id: str, span: DateRange) -> list[Transaction]:
    return unit.query_transactions(user_id, TransactionQuery(start=span.start, end=span.end))


def summarize(transactions: Iterable[Transaction]) -> Summary:
    income = expense = count = 0
    for tx in transactions:
        count += 1
        if tx.type == "income":
            income += tx.amount
        else:
            expense += tx.amount
    return Summary(
        total_income=income,
        total_expense=expense,
        balance=income - expense,
        transaction_count=count,
    )


def summary(unit: LedgerUnit, user_id: str, start: date | str, end: date | str) -> Summary:
    return summarize(_transactions(unit, user_id, _span(start, end)))


# ---- trend -------------------------------------------------------------------


def build_trend(
    transactions: Iterable[Transaction], span: DateRange, granularity: str
) -> TrendReport:
    """Bucket ``transactions`` over ``span``; empty buckets are kept with zeros."""

    labelled = list(iter_buckets(span, granularity))
    starts = [bucket.start for _, bucket in labelled]
    income = [0] * len(labelled)
    expense = [0] * len(labelled)

    for tx in transactions:
        if tx.date not in span:
            continue
        idx = bisect_right(starts, tx.date) - 1
        if tx.type == "income":
            income[idx] += tx.amount
        else:
            expense[idx] += tx.amount

    buckets = tuple(
        TrendBucket(
            label=label,
            start=bucket.start,
            end=bucket.end,
            income=income[i],
            expense=expense[i],
            balance=income[i] - expense[i],
        )
        for i, (label, bucket) in enumerate(labelled)
    )
    avg_income = mean_rounded(income)
    avg_expense = mean_rounded(expense)
    return TrendReport(
        granularity=granularity,  # type: ignore[arg-type]
        buckets=buckets,
        average_income=avg_income,
        average_expense=avg_expense,
        average_balance=avg_income - avg_expense,
    )


def trend(
    unit: LedgerUnit,
    user_id: str,
    start: date | str,
    end: date | str,
    granularity: str = "monthly",
) -> TrendReport:
    span = _span(start, end)
    return build_trend(_transactions(unit, user_id, span), span, granularity)


# ---- category breakdown -------------------------------------------------------


def build_breakdown(
    transactions: Sequence[Transaction],
    type: TxType,
    names: dict[str, tuple[str, str | None]],
) -> list[CategoryShare]:
    """Group ``transactions`` of ``type`` by category, largest total first.

    Groups with equal totals keep the order in which they were first seen.
    """

    totals: dict[str, list[int]] = {}
    for tx in transactions:
        if tx.type != type:
            continue
        group = totals.setdefault(tx.category_id, [0, 0])
        group[0] += tx.amount
        group[1] += 1

    grand = sum(total for total, _ in totals.values())
    shares = [
        CategoryShare(
            category_id=category_id,
            category_name=names.get(category_id, ("Unknown", None))[0],
            icon=names.get(category_id, ("Unknown", None))[1],
            total=total,
            count=count,
            percentage=percent_of(total, grand),
        )
        for category_id, (total, count) in totals.items()
    ]
    shares.sort(key=lambda s: s.total, reverse=True)
    return shares


def _category_names(unit: LedgerUnit, user_id: str) -> dict[str, tuple[str, str | None]]:
    return {c.id: (c.name, c.icon) for c in unit.list_categories(user_id)}


def category_breakdown(
    unit: LedgerUnit,
    user_id: str,
    start: date | str,
    end: date | str,
    type: TxType = "expense",
) -> list[CategoryShare]:
    if type not in ("income", "expense"):
        raise InvalidInput(f"unknown transaction type: {type!r}")
    txs = _transactions(unit, user_id, _span(start, end))
    return build_breakdown(txs, type, _category_names(unit, user_id))


# ---- month over month ---------------------------------------------------------


def change_figure(current: int, previous: int) -> ChangeFigure:
    if previous == 0:
        change = 100 if current > 0 else 0
    else:
        change = round_half_up((current - previous) * 100, previous)
    return ChangeFigure(
        current=current,
        previous=previous,
        change=change,
        direction="up" if change >= 0 else "down",
    )


def month_comparison(unit: LedgerUnit, user_id: str, today: date | str) -> MonthComparison:
    """Current calendar month (containing ``today``) against the one before."""

    today = parse_date(today, "today")
    this_month = month_bounds(today.year, today.month)
    last_month = previous_month(today)
    current = summarize(_transactions(unit, user_id, this_month))
    previous = summarize(_transactions(unit, user_id, last_month))
    return MonthComparison(
        current_month=this_month.start,
        previous_month=last_month.start,
        current=current,
        previous=previous,
        income=change_figure(current.total_income, previous.total_income),
        expense=change_figure(current.total_expense, previous.total_expense),
    )


# ---- monthly report -----------------------------------------------------------


def monthly_report(unit: LedgerUnit, user_id: str, year: int, month: int) -> MonthlyReport:
    """Everything an export needs for one calendar month."""

    span = month_bounds(year, month)
    txs = _transactions(unit, user_id, span)
    names = _category_names(unit, user_id)
    wallets = {w.id: w.name for w in unit.list_wallets(user_id)}

    views = tuple(
        TransactionView(
            transaction=tx,
            category_name=names.get(tx.category_id, ("Unknown", None))[0],
            category_icon=names.get(tx.category_id, ("Unknown", None))[1],
            wallet_name=wallets.get(tx.wallet_id, "Unknown"),
        )
        for tx in txs
    )
    return MonthlyReport(
        year=year,
        month=month,
        start=span.start,
        end=span.end,
        summary=summarize(txs),
        expense_breakdown=tuple(build_breakdown(txs, "expense", names)),
        income_breakdown=tuple(build_breakdown(txs, "income", names)),
        daily=build_trend(txs, span, "daily"),
        transactions=views,
    )


__all__ = [
    "build_breakdown",
    "build_trend",
    "category_breakdown",
    "change_figure",
    "month_comparison",
    "monthly_report",
    "summarize",
    "summary",
    "trend",
]
