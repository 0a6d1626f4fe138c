"""Logging for the ``household_ledger`` package.

Library modules ask :func:`get_logger` for ``"household_ledger.<module>"`` and
never attach handlers themselves. Until an entrypoint calls
:func:`configure_logging`, the package logger only carries a ``NullHandler``,
so embedding the ledger in another application stays silent unless that
application configures logging.

The CLI calls :func:`configure_logging` once at startup; the level comes from
its argument, else ``HOUSEHOLD_LEDGER_LOG_LEVEL``, else INFO.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

PACKAGE_LOGGER = "household_ledger"
LEVEL_ENV = "HOUSEHOLD_LEDGER_LOG_LEVEL"
DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

_CONFIGURED = False


def resolve_level(level: int | str | None = None) -> int:
    """Turn ``20``, ``"20"``, ``"debug"`` or ``None`` (env, then INFO) into a level number."""

    if level is None:
        level = os.getenv(LEVEL_ENV) or logging.INFO
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name.isdigit():
        return int(name)
    return logging.getLevelNamesMapping().get(name, logging.INFO)


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
) -> None:
    """Send package records to ``stream``.

    Only the first call has any effect. Records stop propagating to the root
    logger so a host that also logs to stderr does not print them twice.
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    resolved = resolve_level(level)
    pkg = logging.getLogger(PACKAGE_LOGGER)
    for existing in [h for h in pkg.handlers if isinstance(h, logging.NullHandler)]:
        pkg.removeHandler(existing)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))
    handler.setLevel(resolved)
    pkg.addHandler(handler)
    pkg.setLevel(resolved)
    pkg.propagate = False
    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    pkg = logging.getLogger(PACKAGE_LOGGER)
    if not _CONFIGURED and not pkg.handlers:
        pkg.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "resolve_level"]
