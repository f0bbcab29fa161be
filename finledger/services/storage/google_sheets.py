"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is offered as a storage backend because:
1. Non-technical users can view their data directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- No transactions (we handle this with careful ordering)
- Limited query capabilities (we filter in Python)

Each table lives in its own worksheet with the columns
`id | owner_id | record_json`. The record itself is JSON so new model
fields never require a sheet migration.

Only the connection handshake is retried. Ledger writes are never
retried internally; failures surface to the caller as StorageError.
"""

import json
import uuid
from typing import Optional

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from finledger.config import GoogleSheetsSettings, get_settings
from finledger.services.storage.interface import (
    ConnectionError,
    LedgerStore,
    NotFoundError,
    Record,
    StorageError,
    Table,
)


TABLE_COLUMNS = ["id", "owner_id", "record_json"]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for the connection.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_table_sheet(self, table: Table) -> gspread.Worksheet:
        """Get or create the worksheet of a table."""
        spreadsheet = self.get_spreadsheet()
        title = f"{self._settings.worksheet_prefix}{Table(table).value}"
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=1000,
                cols=len(TABLE_COLUMNS),
            )
            sheet.append_row(TABLE_COLUMNS)
        return sheet


class GoogleSheetsLedgerStore(LedgerStore):
    """
    Google Sheets implementation of the ledger store.

    Rows of other owners share the worksheet and are filtered out on
    every read and write.
    """

    def __init__(self, owner_id: str, client: Optional[GoogleSheetsClient] = None):
        super().__init__(owner_id)
        self._client = client or GoogleSheetsClient()

    def _record_to_row(self, record: Record) -> list:
        return [record["id"], self.owner_id, json.dumps(record, ensure_ascii=False)]

    def _owned_rows(self, sheet: gspread.Worksheet) -> list[tuple[int, Record]]:
        """(sheet row number, record) for every row of this owner."""
        rows = []
        for idx, row in enumerate(sheet.get_all_values()[1:], start=2):  # Row 1 is header
            if len(row) < 3 or not row[0] or row[1] != self.owner_id:
                continue
            rows.append((idx, json.loads(row[2])))
        return rows

    async def get_all(self, table: Table) -> list[Record]:
        """Get every record of a table for this owner."""
        try:
            sheet = self._client.get_table_sheet(table)
            return [record for _, record in self._owned_rows(sheet)]
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read {Table(table).value}: {e}")

    async def insert(self, table: Table, records: list[Record]) -> list[Record]:
        """Append records, assigning ids."""
        try:
            sheet = self._client.get_table_sheet(table)
            inserted = [{**record, "id": record.get("id") or str(uuid.uuid4())} for record in records]
            if inserted:
                sheet.append_rows(
                    [self._record_to_row(r) for r in inserted],
                    value_input_option="RAW",
                )
            return inserted
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to insert into {Table(table).value}: {e}")

    async def update(self, table: Table, record_id: str, fields: Record) -> Record:
        """Merge `fields` into a record and rewrite its JSON cell."""
        try:
            sheet = self._client.get_table_sheet(table)
            for idx, record in self._owned_rows(sheet):
                if record.get("id") == record_id:
                    record.update({k: v for k, v in fields.items() if k != "id"})
                    sheet.update_cell(idx, 3, json.dumps(record, ensure_ascii=False))
                    return record

            raise NotFoundError(f"{Table(table).value} record not found: {record_id}")
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update {Table(table).value}: {e}")

    async def delete(self, table: Table, record_id: str) -> bool:
        """Delete a record by ID."""
        try:
            sheet = self._client.get_table_sheet(table)
            for idx, record in self._owned_rows(sheet):
                if record.get("id") == record_id:
                    sheet.delete_rows(idx)
                    return True

            return False
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete from {Table(table).value}: {e}")
