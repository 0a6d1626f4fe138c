"""Per-call context passed from the coordinator into the domain modules."""

from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, date, datetime


def utc_now() -> datetime:
    return datetime.now(UTC)


def new_uuid() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True, slots=True)
class CallScope:
    """Who is calling, what time it is, and how new ids are minted.

    ``user_id`` comes from the (external) auth layer and is trusted as-is.
    """

    user_id: str
    now: datetime = field(default_factory=utc_now)
    new_id: Callable[[], str] = new_uuid

    @property
    def today(self) -> date:
        return self.now.astimezone(UTC).date()


__all__ = ["CallScope", "new_uuid", "utc_now"]
