"""Shared test helpers: SQLite bootstrap and ledger test doubles."""
