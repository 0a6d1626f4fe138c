"""Calendar helpers: period bounds, trend buckets and recurrence steps.

Month and year steps use :class:`dateutil.relativedelta.relativedelta`, which
clamps to the last valid day (``Jan 31 + 1 month == Feb 28``) instead of
overflowing into the next month.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import MAXYEAR, MINYEAR, date, timedelta

from dateutil.relativedelta import relativedelta

from .errors import InvalidInput

_ONE_DAY = timedelta(days=1)

_STEPS: dict[str, relativedelta] = {
    "daily": relativedelta(days=1),
    "weekly": relativedelta(weeks=1),
    "monthly": relativedelta(months=1),
    "yearly": relativedelta(years=1),
}

PRESETS: tuple[str, ...] = ("this-month", "last-month", "last-3-months", "last-6-months")


@dataclass(frozen=True, slots=True)
class DateRange:
    """Inclusive ``[start, end]`` date range."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise InvalidInput(f"range start {self.start} is after end {self.end}")

    def __contains__(self, day: object) -> bool:
        return isinstance(day, date) and self.start <= day <= self.end


def add_frequency(day: date, frequency: str) -> date:
    """Advance ``day`` by one unit of ``frequency``."""

    try:
        step = _STEPS[frequency]
    except KeyError:
        raise InvalidInput(f"unknown frequency: {frequency!r}") from None
    return day + step


def week_start(day: date) -> date:
    """Monday of the ISO week containing ``day``."""

    return day - timedelta(days=day.weekday())


def month_bounds(year: int, month: int) -> DateRange:
    if not 1 <= month <= 12:
        raise InvalidInput(f"month must be 1..12, got {month}")
    if not MINYEAR <= year <= MAXYEAR:
        raise InvalidInput(f"year must be {MINYEAR}..{MAXYEAR}, got {year}")
    first = date(year, month, 1)
    return DateRange(first, first + relativedelta(day=31))


def previous_month(day: date) -> DateRange:
    prev = day.replace(day=1) - relativedelta(months=1)
    return month_bounds(prev.year, prev.month)


def preset_range(name: str, today: date) -> DateRange:
    """Resolve a named report range relative to ``today``.

    ``last-N-months`` covers the current month plus the N-1 before it, ending
    today.
    """

    if name == "this-month":
        return DateRange(today.replace(day=1), today)
    if name == "last-month":
        return previous_month(today)
    if name in ("last-3-months", "last-6-months"):
        months = int(name.split("-")[1])
        start = today.replace(day=1) - relativedelta(months=months - 1)
        return DateRange(start, today)
    raise InvalidInput(f"unknown range preset: {name!r}; expected one of {', '.join(PRESETS)}")


def iter_buckets(span: DateRange, granularity: str) -> Iterator[tuple[str, DateRange]]:
    """Yield ``(label, range)`` for every bucket overlapping ``span``.

    Buckets are clipped to ``span`` so their union is exactly ``span``; the
    label always names the unclipped calendar unit (week start day and month,
    ``"%b %y"`` month, or day of month).
    """

    if granularity == "daily":
        cursor = span.start
        while cursor <= span.end:
            yield str(cursor.day), DateRange(cursor, cursor)
            cursor += _ONE_DAY
    elif granularity == "weekly":
        cursor = week_start(span.start)
        while cursor <= span.end:
            last = cursor + timedelta(days=6)
            label = f"{cursor.day} {cursor:%b}"
            yield label, DateRange(max(cursor, span.start), min(last, span.end))
            cursor += timedelta(weeks=1)
    elif granularity == "monthly":
        cursor = span.start.replace(day=1)
        while cursor <= span.end:
            month = month_bounds(cursor.year, cursor.month)
            yield f"{cursor:%b %y}", DateRange(max(cursor, span.start), min(month.end, span.end))
            cursor += relativedelta(months=1)
    else:
        raise InvalidInput(f"unknown granularity: {granularity!r}")


__all__ = [
    "PRESETS",
    "DateRange",
    "add_frequency",
    "iter_buckets",
    "month_bounds",
    "preset_range",
    "previous_month",
    "week_start",
]
