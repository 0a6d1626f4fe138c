"""Alembic environment for the household ledger schema.

URL precedence: ``DATABASE_URL`` from the process environment (a ``.env``
found from the working directory fills it in without overriding), then
``sqlalchemy.url`` from the Alembic config. Autogenerate targets
``db.metadata``, i.e. every ``hl_*`` table.

    DATABASE_URL=sqlite+pysqlite:///ledger.db alembic -c libs/db/alembic.ini upgrade head
"""

from __future__ import annotations

import os
from logging.config import fileConfig

from alembic import context
from dotenv import find_dotenv, load_dotenv
from sqlalchemy import create_engine, pool

import db

config = context.config

# Programmatic Configs (tests) have no ini file and keep the host's logging.
if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

_dotenv = find_dotenv(usecwd=True)
if _dotenv:
    load_dotenv(_dotenv, override=False)


def _ledger_url() -> str:
    url = os.getenv("DATABASE_URL") or config.get_main_option("sqlalchemy.url")
    if not url:
        raise RuntimeError(
            "no database configured: export DATABASE_URL or set sqlalchemy.url in alembic.ini"
        )
    return url


LEDGER_URL = _ledger_url()
IS_SQLITE = LEDGER_URL.startswith("sqlite")
target_metadata = db.metadata


def run_migrations_offline() -> None:
    """Emit SQL to stdout instead of touching a database."""

    context.configure(
        url=LEDGER_URL,
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
        render_as_batch=IS_SQLITE,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    engine = create_engine(LEDGER_URL, poolclass=pool.NullPool)
    try:
        with engine.connect() as connection:
            # Batch mode: SQLite cannot ALTER constraints in place.
            context.configure(
                connection=connection,
                target_metadata=target_metadata,
                compare_type=True,
                render_as_batch=IS_SQLITE,
            )
            with context.begin_transaction():
                context.run_migrations()
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
