"""Runtime settings read from the environment.

Entrypoints call ``load_dotenv(override=False)`` first, so values from a local
``.env`` fill in anything the real environment leaves unset.

- ``DATABASE_URL``: SQLAlchemy URL; when set the SQL store is used, otherwise
  the in-memory local store.
- ``HOUSEHOLD_LEDGER_LOG_LEVEL``: level name or number for ``configure_logging``.
- ``HOUSEHOLD_LEDGER_NEAR_LIMIT_PERCENT``: budget near-limit threshold, 1..100
  (default 80).
- ``HOUSEHOLD_LEDGER_USER``: default user id for CLI commands.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from .budgets import DEFAULT_NEAR_LIMIT_PERCENT
from .errors import InvalidInput

_NEAR_LIMIT_ENV = "HOUSEHOLD_LEDGER_NEAR_LIMIT_PERCENT"


def _near_limit(raw: str | None) -> int:
    if raw is None or not raw.strip():
        return DEFAULT_NEAR_LIMIT_PERCENT
    try:
        value = int(raw.strip())
    except ValueError:
        raise InvalidInput(f"{_NEAR_LIMIT_ENV} must be an integer, got {raw!r}") from None
    if not 1 <= value <= 100:
        raise InvalidInput(f"{_NEAR_LIMIT_ENV} must be within 1..100, got {value}")
    return value


@dataclass(frozen=True, slots=True)
class LedgerSettings:
    database_url: str | None = None
    near_limit_percent: int = DEFAULT_NEAR_LIMIT_PERCENT
    default_user: str | None = None
    log_level: str | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> LedgerSettings:
        env = os.environ if environ is None else environ
        return cls(
            database_url=env.get("DATABASE_URL") or None,
            near_limit_percent=_near_limit(env.get(_NEAR_LIMIT_ENV)),
            default_user=env.get("HOUSEHOLD_LEDGER_USER") or None,
            log_level=env.get("HOUSEHOLD_LEDGER_LOG_LEVEL") or None,
        )


__all__ = ["LedgerSettings"]
