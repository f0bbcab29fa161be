"""
In-Memory Storage Implementation

Dict-backed `LedgerStore`. It is the default backend for local use and
the store every test runs against.

Layout of the backend dict: owner id -> table -> record id -> record.
Passing the same backend to several stores models several owners
sharing one database.
"""

import copy
import uuid
from typing import Optional

from finledger.services.storage.interface import (
    DuplicateError,
    LedgerStore,
    NotFoundError,
    Record,
    Table,
)

Backend = dict[str, dict[str, dict[str, Record]]]


class InMemoryLedgerStore(LedgerStore):
    """Owner-scoped dict store. Records are copied in and out."""

    def __init__(self, owner_id: str = "local", backend: Optional[Backend] = None):
        super().__init__(owner_id)
        self._backend: Backend = backend if backend is not None else {}

    def _table(self, table: Table) -> dict[str, Record]:
        tables = self._backend.setdefault(self.owner_id, {})
        return tables.setdefault(Table(table).value, {})

    async def get_all(self, table: Table) -> list[Record]:
        return [copy.deepcopy(r) for r in self._table(table).values()]

    async def insert(self, table: Table, records: list[Record]) -> list[Record]:
        rows = self._table(table)
        inserted = []
        for record in records:
            record_id = record.get("id") or str(uuid.uuid4())
            if record_id in rows:
                raise DuplicateError(f"{Table(table).value} record already exists: {record_id}")
            row = {**copy.deepcopy(record), "id": record_id}
            rows[record_id] = row
            inserted.append(copy.deepcopy(row))
        return inserted

    async def update(self, table: Table, record_id: str, fields: Record) -> Record:
        rows = self._table(table)
        if record_id not in rows:
            raise NotFoundError(f"{Table(table).value} record not found: {record_id}")
        changes = {k: v for k, v in copy.deepcopy(fields).items() if k != "id"}
        rows[record_id].update(changes)
        return copy.deepcopy(rows[record_id])

    async def delete(self, table: Table, record_id: str) -> bool:
        return self._table(table).pop(record_id, None) is not None
