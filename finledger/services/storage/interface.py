"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for testing
3. Keep the ledger services decoupled from storage implementation

The interface is intentionally simple - we're not building a full ORM.
Records are plain JSON-compatible dicts keyed by `id`; the services
convert them to and from the Pydantic models.

OWNER SCOPE: a store instance is bound to one owner. Every read and
write is implicitly scoped to it; there is no cross-owner query.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any

from finledger.engine.balance import daily_flow, semiannual_flow
from finledger.models.ledger import DailyFlow, SemiannualFlow, Transaction

Record = dict[str, Any]


class Table(str, Enum):
    """Logical collections of the ledger."""
    TRANSACTIONS = "transactions"
    CARDS = "cards"
    BUDGETS = "budgets"
    GOALS = "goals"
    DEBTS = "debts"
    CLOSURES = "closures"
    AUDIT_LOG = "audit_log"


class LedgerStore(ABC):
    """
    Abstract interface for ledger storage operations.

    Any storage implementation (Google Sheets, in-memory, SQL, ...)
    must implement the four CRUD methods.
    """

    def __init__(self, owner_id: str):
        self.owner_id = owner_id

    @abstractmethod
    async def get_all(self, table: Table) -> list[Record]:
        """
        Get every record of a table for this owner.

        Returns:
            List of records (insertion order)
        """
        pass

    @abstractmethod
    async def insert(self, table: Table, records: list[Record]) -> list[Record]:
        """
        Insert records.

        Args:
            table: Target table
            records: Records without ids

        Returns:
            The inserted records, with assigned ids

        Raises:
            StorageError: If the insert fails
        """
        pass

    @abstractmethod
    async def update(self, table: Table, record_id: str, fields: Record) -> Record:
        """
        Update part of a record.

        Args:
            table: Target table
            record_id: Record id
            fields: Fields to overwrite

        Returns:
            The updated record

        Raises:
            NotFoundError: If the record doesn't exist
            StorageError: If the update fails
        """
        pass

    @abstractmethod
    async def delete(self, table: Table, record_id: str) -> bool:
        """
        Delete a record by id.

        Returns:
            True if a record was deleted
        """
        pass

    # -------------------------------------------------------------------------
    # Read views
    # -------------------------------------------------------------------------

    async def _transactions(self) -> list[Transaction]:
        return [Transaction.model_validate(r) for r in await self.get_all(Table.TRANSACTIONS)]

    async def get_daily_flow(self) -> list[DailyFlow]:
        """Per-day cash flow view (card transactions excluded)."""
        return daily_flow(await self._transactions())

    async def get_semiannual_flow(self) -> list[SemiannualFlow]:
        """Per-half-year cash flow view, most recent first."""
        return semiannual_flow(await self._transactions())


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
