"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is offered as a shared backend because:
1. Non-technical users can inspect the ledger directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Not suitable for high-volume data (one group's ledger is fine)
- No transactions: a value is written with a single row update
- Concurrent writers overwrite each other (same as every other backend)

Each key is one row: [key, value_json, updated_at].
"""

import json
from datetime import datetime
from typing import Any, Optional

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from hamoney.config import get_settings
from hamoney.services.storage.interface import (
    ConnectionError,
    PersistenceStore,
    StorageError,
)


STORAGE_COLUMNS = [
    "key",
    "value_json",
    "updated_at",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

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

    def get_storage_sheet(self) -> gspread.Worksheet:
        """Get or create the key-value worksheet."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(self._settings.storage_sheet_name)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=self._settings.storage_sheet_name,
                rows=100,
                cols=len(STORAGE_COLUMNS),
            )
            sheet.append_row(STORAGE_COLUMNS)
        return sheet


class GoogleSheetsStore(PersistenceStore):
    """
    Google Sheets implementation of the key-value store.

    Values are JSON-serialized into a single cell. A ledger of a few
    thousand entries stays well under the Sheets per-cell limit.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None, key_prefix: str = ""):
        self._client = client or GoogleSheetsClient()
        self._prefix = key_prefix

    def _find_row(self, sheet, full_key: str) -> tuple[Optional[int], Optional[list]]:
        """Return (1-based row index, row) for a key, skipping the header."""
        all_rows = sheet.get_all_values()
        for idx, row in enumerate(all_rows[1:], start=2):
            if row and row[0] == full_key:
                return idx, row
        return None, None

    def get(self, key: str) -> Optional[Any]:
        full_key = self._prefix + key
        try:
            sheet = self._client.get_storage_sheet()
            _, row = self._find_row(sheet, full_key)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read {key!r}: {e}")

        if row is None or len(row) < 2 or not row[1]:
            return None

        try:
            return json.loads(row[1])
        except json.JSONDecodeError as e:
            raise StorageError(f"Corrupt value for {key!r}: {e}")

    def set(self, key: str, value: Any) -> bool:
        try:
            payload = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Value for {key!r} is not JSON-serializable: {e}")

        return self._write_row(self._prefix + key, payload)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _write_row(self, full_key: str, payload: str) -> bool:
        """Update the key's row in place, or append one."""
        try:
            sheet = self._client.get_storage_sheet()
            idx, _ = self._find_row(sheet, full_key)
            updated_at = datetime.utcnow().isoformat()

            if idx is None:
                sheet.append_row(
                    [full_key, payload, updated_at],
                    value_input_option="RAW",
                )
            else:
                sheet.update_cell(idx, 2, payload)
                sheet.update_cell(idx, 3, updated_at)
            return True
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to write {full_key!r}: {e}")

    def delete(self, key: str) -> bool:
        full_key = self._prefix + key
        try:
            sheet = self._client.get_storage_sheet()
            idx, _ = self._find_row(sheet, full_key)
            if idx is None:
                return False
            sheet.delete_rows(idx)
            return True
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete {key!r}: {e}")
