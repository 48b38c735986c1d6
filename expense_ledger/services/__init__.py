"""Services package."""

from expense_ledger.services.storage import (
    ConnectionError,
    GuardedLedgerStore,
    InMemoryLedgerStore,
    LedgerStoreInterface,
    NotFoundError,
    StoreError,
    StoreTimeoutError,
)

__all__ = [
    "ConnectionError",
    "GuardedLedgerStore",
    "InMemoryLedgerStore",
    "LedgerStoreInterface",
    "NotFoundError",
    "StoreError",
    "StoreTimeoutError",
]
