"""
Storage Services Package

Provides the abstract ledger store and its implementations.
The in-memory store is the default backend; Google Sheets is the
remote one. Both are swappable behind `LedgerStore`.
"""

from finledger.services.storage.interface import (
    ConnectionError,
    DuplicateError,
    LedgerStore,
    NotFoundError,
    Record,
    StorageError,
    Table,
)
from finledger.services.storage.memory import InMemoryLedgerStore
from finledger.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsLedgerStore,
)

__all__ = [
    # Interface
    "LedgerStore",
    "Record",
    "Table",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    # Implementations
    "InMemoryLedgerStore",
    "GoogleSheetsClient",
    "GoogleSheetsLedgerStore",
]
