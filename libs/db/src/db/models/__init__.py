"""Shared SQLAlchemy models registry for the ledger database.

Currently includes the household ledger tables used by ``household_ledger``.
"""

from .ledger import Base, HlBudget, HlCategory, HlReminder, HlTransaction, HlWallet

__all__ = [
    "Base",
    "HlBudget",
    "HlCategory",
    "HlReminder",
    "HlTransaction",
    "HlWallet",
]
