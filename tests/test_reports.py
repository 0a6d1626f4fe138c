from __future__ import annotations

from datetime import UTC, date, datetime

import pytest

from household_ledger.reports import change_figure

from tests.helpers.ledger import Seeded


def _add(seeded: Seeded, amount: int, on: str, category_id: str | None = None, **extra) -> None:
    kind = "income" if category_id == seeded.salary_id else "expense"
    seeded.ledger.create_transaction(
        {
            "wallet_id": seeded.wallet_id,
            "category_id": category_id or seeded.food_id,
            "amount": amount,
            "type": kind,
            "date": on,
            **extra,
        }
    ).unwrap()


def test_summary_is_limited_to_the_inclusive_range(seeded: Seeded) -> None:
    _add(seeded, 200_000, "2025-01-01", seeded.salary_id)
    _add(seeded, 30_000, "2025-01-10")
    _add(seeded, 20_000, "2025-01-31")
    _add(seeded, 99_000, "2025-02-01")

    result = seeded.ledger.summary(date(2025, 1, 1), date(2025, 1, 31)).unwrap()

    assert result.total_income == 200_000
    assert result.total_expense == 50_000
    assert result.balance == 150_000
    assert result.transaction_count == 3


def test_summary_only_sees_the_callers_transactions(seeded: Seeded, other_ledger) -> None:
    _add(seeded, 30_000, "2025-01-10")
    empty = other_ledger.summary(date(2025, 1, 1), date(2025, 1, 31)).unwrap()
    assert (empty.total_income, empty.total_expense, empty.transaction_count) == (0, 0, 0)


def test_summary_rejects_reversed_range(seeded: Seeded) -> None:
    assert seeded.ledger.summary(date(2025, 2, 1), date(2025, 1, 1)).code == "invalid_input"


def test_weekly_trend_keeps_empty_weeks(seeded: Seeded) -> None:
    _add(seeded, 10_000, "2025-01-06")
    _add(seeded, 5_000, "2025-01-12")
    _add(seeded, 70_000, "2025-01-28", seeded.salary_id)

    report = seeded.ledger.trend(date(2025, 1, 6), date(2025, 2, 2), "weekly").unwrap()

    assert [b.label for b in report.buckets] == ["6 Jan", "13 Jan", "20 Jan", "27 Jan"]
    assert [b.expense for b in report.buckets] == [15_000, 0, 0, 0]
    assert [b.income for b in report.buckets] == [0, 0, 0, 70_000]
    assert [b.balance for b in report.buckets] == [-15_000, 0, 0, 70_000]


def test_trend_buckets_add_up_to_the_summary(seeded: Seeded) -> None:
    for amount, on in [(1_000, "2024-11-20"), (2_500, "2024-12-31"), (4_000, "2025-01-05")]:
        _add(seeded, amount, on)
    _add(seeded, 300_000, "2025-01-02", seeded.salary_id)
    start, end = date(2024, 11, 20), date(2025, 1, 5)

    for granularity in ("daily", "weekly", "monthly"):
        report = seeded.ledger.trend(start, end, granularity).unwrap()
        assert report.buckets[0].start == start
        assert report.buckets[-1].end == end
        assert sum(b.expense for b in report.buckets) == 7_500
        assert sum(b.income for b in report.buckets) == 300_000


def test_monthly_trend_labels_and_averages(seeded: Seeded) -> None:
    _add(seeded, 10_000, "2024-12-15")
    _add(seeded, 20_000, "2025-01-03")
    _add(seeded, 300_000, "2025-01-02", seeded.salary_id)

    report = seeded.ledger.trend(date(2024, 11, 1), date(2025, 1, 31)).unwrap()

    assert report.granularity == "monthly"
    assert [b.label for b in report.buckets] == ["Nov 24", "Dec 24", "Jan 25"]
    assert report.average_income == 100_000
    assert report.average_expense == 10_000
    assert report.average_balance == 90_000


def test_trend_rejects_unknown_granularity(seeded: Seeded) -> None:
    result = seeded.ledger.trend(date(2025, 1, 1), date(2025, 1, 31), "hourly")
    assert result.code == "invalid_input"


def test_breakdown_sorts_by_total_and_keeps_ties_in_first_seen_order(seeded: Seeded) -> None:
    bills = seeded.ledger.create_category({"name": "bills", "type": "expense"}).unwrap()
    _add(seeded, 40_000, "2025-01-01", bills.id)
    _add(seeded, 20_000, "2025-01-03")
    _add(seeded, 10_000, "2025-01-12")
    _add(seeded, 30_000, "2025-01-10", seeded.transport_id)
    _add(seeded, 500_000, "2025-01-11", seeded.salary_id)

    shares = seeded.ledger.category_breakdown(date(2025, 1, 1), date(2025, 1, 31)).unwrap()

    # Listing is newest-first, so food (12 Jan) is seen before transport (10 Jan).
    assert [s.category_name for s in shares] == ["Bills", "Food", "Transport"]
    assert [s.total for s in shares] == [40_000, 30_000, 30_000]
    assert [s.count for s in shares] == [1, 2, 1]
    assert [s.percentage for s in shares] == [40, 30, 30]


def test_income_breakdown(seeded: Seeded) -> None:
    _add(seeded, 30_000, "2025-01-10")
    _add(seeded, 500_000, "2025-01-11", seeded.salary_id)

    shares = seeded.ledger.category_breakdown(
        date(2025, 1, 1), date(2025, 1, 31), "income"
    ).unwrap()

    assert len(shares) == 1
    assert shares[0].category_id == seeded.salary_id
    assert shares[0].percentage == 100


def test_breakdown_of_an_empty_range_is_empty(seeded: Seeded) -> None:
    assert seeded.ledger.category_breakdown(date(2025, 1, 1), date(2025, 1, 31)).unwrap() == []


def test_breakdown_rejects_unknown_type(seeded: Seeded) -> None:
    result = seeded.ledger.category_breakdown(date(2025, 1, 1), date(2025, 1, 31), "transfer")
    assert result.code == "invalid_input"


def test_month_comparison_from_zero_income(seeded: Seeded) -> None:
    _add(seeded, 40_000, "2024-12-20")
    _add(seeded, 50_000, "2025-01-05", seeded.salary_id)
    _add(seeded, 30_000, "2025-01-07")

    cmp = seeded.ledger.month_comparison(date(2025, 1, 20)).unwrap()

    assert cmp.current_month == date(2025, 1, 1)
    assert cmp.previous_month == date(2024, 12, 1)
    assert cmp.income.change == 100
    assert cmp.income.direction == "up"
    assert cmp.expense.change == -25
    assert cmp.expense.direction == "down"
    assert cmp.current.total_income == 50_000
    assert cmp.previous.total_expense == 40_000


def test_month_comparison_defaults_to_the_clock(seeded: Seeded) -> None:
    _add(seeded, 50_000, "2025-01-05", seeded.salary_id)
    cmp = seeded.ledger.month_comparison().unwrap()
    assert cmp.current_month == date(2025, 1, 1)
    assert cmp.current.total_income == 50_000


@pytest.mark.parametrize(
    ("current", "previous", "change", "direction"),
    [
        (0, 0, 0, "up"),
        (50_000, 0, 100, "up"),
        (0, 5_000, -100, "down"),
        (150, 100, 50, "up"),
        (1, 3, -67, "down"),  # -66.67
        (100, 100, 0, "up"),
    ],
)
def test_change_figure(current: int, previous: int, change: int, direction: str) -> None:
    figure = change_figure(current, previous)
    assert (figure.change, figure.direction) == (change, direction)


def test_monthly_report_bundles_the_month(seeded: Seeded) -> None:
    _add(seeded, 30_000, "2025-01-10", description="groceries")
    _add(seeded, 200_000, "2025-01-01", seeded.salary_id)
    _add(seeded, 1_000, "2024-12-31")

    report = seeded.ledger.monthly_report().unwrap()

    assert (report.year, report.month) == (2025, 1)
    assert (report.start, report.end) == (date(2025, 1, 1), date(2025, 1, 31))
    assert report.summary.transaction_count == 2
    assert len(report.daily.buckets) == 31
    assert report.daily.buckets[9].expense == 30_000
    assert [s.category_name for s in report.expense_breakdown] == ["Food"]
    assert [s.category_name for s in report.income_breakdown] == ["Salary"]
    first = report.transactions[0]
    assert first.transaction.description == "groceries"
    assert (first.category_name, first.wallet_name) == ("Food", "Cash")


def test_monthly_report_rejects_bad_month(seeded: Seeded) -> None:
    assert seeded.ledger.monthly_report(2025, 13).code == "invalid_input"


@pytest.mark.parametrize(("year", "month"), [(2025, 0), (0, 1), (2025, -1)])
def test_monthly_report_does_not_treat_zero_as_unset(
    seeded: Seeded, year: int, month: int
) -> None:
    assert seeded.ledger.monthly_report(year, month).code == "invalid_input"


def test_reports_accept_iso_date_strings(seeded: Seeded) -> None:
    _add(seeded, 200_000, "2025-01-01", seeded.salary_id)
    _add(seeded, 30_000, "2025-01-10")
    ledger = seeded.ledger

    assert ledger.summary("2025-01-01", "2025-01-31").unwrap() == ledger.summary(
        date(2025, 1, 1), date(2025, 1, 31)
    ).unwrap()
    report = ledger.trend("2025-01-01", "2025-01-31", "monthly").unwrap()
    assert [(b.income, b.expense) for b in report.buckets] == [(200_000, 30_000)]
    shares = ledger.category_breakdown("2025-01-01", "2025-01-31").unwrap()
    assert [(s.category_id, s.total) for s in shares] == [(seeded.food_id, 30_000)]

    cmp = ledger.month_comparison("2025-02-03").unwrap()
    assert cmp.current_month == date(2025, 2, 1)
    assert cmp.previous.total_expense == 30_000


@pytest.mark.parametrize(
    "bad",
    [
        datetime(2025, 1, 1, tzinfo=UTC),
        datetime(2025, 1, 1),
        20250101,
        None,
        "01/01/2025",
        "2025-02-30",
    ],
)
def test_reports_reject_values_that_are_not_calendar_days(seeded: Seeded, bad) -> None:
    ledger = seeded.ledger
    end = date(2025, 1, 31)

    assert ledger.summary(bad, end).code == "invalid_input"
    assert ledger.trend(bad, end).code == "invalid_input"
    assert ledger.category_breakdown(bad, end).code == "invalid_input"
    assert ledger.summary(date(2024, 12, 1), bad).code == "invalid_input"


@pytest.mark.parametrize("bad", [datetime(2025, 3, 10, 12, 0, tzinfo=UTC), 20250310, "March"])
def test_month_comparison_rejects_values_that_are_not_calendar_days(
    seeded: Seeded, bad
) -> None:
    assert seeded.ledger.month_comparison(bad).code == "invalid_input"


def test_string_range_in_the_wrong_order_is_rejected(seeded: Seeded) -> None:
    assert seeded.ledger.summary("2025-02-01", "2025-01-01").code == "invalid_input"
