"""Error taxonomy shared by every ledger operation.

Domain modules raise these; :mod:`household_ledger.coordinator` catches them
at the public boundary and hands them back inside a ``Result``. Each class
carries a stable ``code`` so callers (CLI, HTTP glue) can switch on it
without matching message text.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for every expected ledger failure."""

    code: str = "ledger_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return f"{type(self).__name__}({self.message!r})"


class NotFound(LedgerError):
    """A referenced entity is missing or belongs to another user."""

    code = "not_found"

    def __init__(self, entity: str, entity_id: str | None) -> None:
        super().__init__(f"{entity} not found: {entity_id!r}")
        self.entity = entity
        self.entity_id = entity_id


class InvalidInput(LedgerError):
    code = "invalid_input"


class DuplicateBudget(LedgerError):
    code = "duplicate_budget"


class Conflict(LedgerError):
    """The operation is blocked by existing state (references, duplicates)."""

    code = "conflict"


class StorageFailure(LedgerError):
    """The store could not complete an atomic unit; nothing was applied."""

    code = "storage_failure"


__all__ = [
    "Conflict",
    "DuplicateBudget",
    "InvalidInput",
    "LedgerError",
    "NotFound",
    "StorageFailure",
]
