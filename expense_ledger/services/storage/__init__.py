"""
Ledger Store Package

Provides the abstract store interface the engine depends on, a timeout
guard, and concrete implementations (in-memory and Google Sheets).
"""

from expense_ledger.services.storage.interface import (
    ConnectionError,
    LedgerStoreInterface,
    NotFoundError,
    StoreError,
    StoreTimeoutError,
)
from expense_ledger.services.storage.guard import (
    GuardedLedgerStore,
    call_store,
    gather_store_calls,
)
from expense_ledger.services.storage.memory import InMemoryLedgerStore
from expense_ledger.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsLedgerStore,
)

__all__ = [
    # Interfaces
    "LedgerStoreInterface",
    "GuardedLedgerStore",
    "call_store",
    "gather_store_calls",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StoreError",
    "StoreTimeoutError",
    # Implementations
    "InMemoryLedgerStore",
    "GoogleSheetsClient",
    "GoogleSheetsLedgerStore",
]
