"""Ledger test doubles: a ticking clock, predictable ids and a seeded fixture shape."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from household_ledger import Ledger

USER = "user-1"
OTHER_USER = "user-2"


class Clock:
    """Callable clock that ticks one second per reading."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now = current + timedelta(seconds=1)
        return current

    def set(self, when: datetime) -> None:
        self.now = when


class SequentialIds:
    def __init__(self, prefix: str = "id") -> None:
        self.prefix = prefix
        self.n = 0

    def __call__(self) -> str:
        self.n += 1
        return f"{self.prefix}-{self.n:04d}"


@dataclass
class Seeded:
    ledger: Ledger
    wallet_id: str
    bank_id: str
    food_id: str
    transport_id: str
    salary_id: str
