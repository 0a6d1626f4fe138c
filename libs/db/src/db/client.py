"""Engines and sessions for the ledger database.

    from db.client import session_scope

    with session_scope(database_url="sqlite+pysqlite:///ledger.db") as session:
        session.add(row)   # committed on exit, rolled back if the block raises

Engines are created lazily and cached per URL, so one process can hold the
production database and any number of test databases side by side. Omitting
``database_url`` falls back to the ``DATABASE_URL`` environment variable.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

_engines: dict[str, Engine] = {}
_factories: dict[str, sessionmaker[Session]] = {}


def resolve_url(database_url: str | None = None) -> str:
    url = database_url or os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError("no database URL given and DATABASE_URL is not set")
    return url


def _sqlite_pragmas(dbapi_conn, _record) -> None:  # pragma: no cover - driver hook
    # SQLite ships with foreign keys off; the ledger relies on them.
    cursor = dbapi_conn.cursor()
    try:
        cursor.execute("PRAGMA foreign_keys = ON")
    finally:
        cursor.close()


def _factory(url: str) -> sessionmaker[Session]:
    factory = _factories.get(url)
    if factory is None:
        engine = create_engine(url, pool_pre_ping=True)
        if engine.dialect.name == "sqlite":
            event.listen(engine, "connect", _sqlite_pragmas)
        factory = sessionmaker(bind=engine, expire_on_commit=False)
        _engines[url] = engine
        _factories[url] = factory
    return factory


def get_engine(*, database_url: str | None = None) -> Engine:
    """Engine for ``database_url`` (or ``DATABASE_URL``), created on first use."""

    url = resolve_url(database_url)
    _factory(url)
    return _engines[url]


def get_session(*, database_url: str | None = None) -> Session:
    """New session on the cached engine; the caller owns commit and close."""

    return _factory(resolve_url(database_url))()


@contextmanager
def session_scope(*, database_url: str | None = None) -> Iterator[Session]:
    """One transaction: commit when the block finishes, roll back when it raises."""

    with get_session(database_url=database_url) as session:
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise


def dispose_engines() -> None:
    """Close every pooled connection and forget the cache (tests, short-lived CLIs)."""

    for engine in _engines.values():
        engine.dispose()
    _engines.clear()
    _factories.clear()


__all__ = [
    "dispose_engines",
    "get_engine",
    "get_session",
    "resolve_url",
    "session_scope",
]
