"""
Google Sheets Key-Value Store

DESIGN DECISION: Google Sheets is offered as a hosted backend because:
1. Non-technical owners can look at (and back up) their data directly
2. No database setup required
3. Data survives a lost phone or a cleared browser

TRADEOFFS:
- One cell per collection: fine for a small business, not for bulk data
- No transactions (a set() is a single cell write)
- Only the connection handshake is retried; reads and writes fail fast
  and surface to the caller

The worksheet has two columns: key | value.
"""

from typing import Optional

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from bizledger.config import get_settings
from bizledger.config.settings import GoogleSheetsSettings
from bizledger.services.storage.interface import (
    ConnectionError,
    KeyValueStoreInterface,
    PersistenceError,
)


KV_COLUMNS = ["key", "value"]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for connecting.
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

    def get_kv_sheet(self) -> gspread.Worksheet:
        """Get or create the key/value worksheet."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(self._settings.worksheet_name)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=self._settings.worksheet_name,
                rows=1000,
                cols=len(KV_COLUMNS),
            )
            sheet.append_row(KV_COLUMNS)
        return sheet


class GoogleSheetsKeyValueStore(KeyValueStoreInterface):
    """
    Google Sheets implementation of the persistence gateway.

    One row per key; the value cell holds the JSON blob.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _find_row(self, sheet: gspread.Worksheet, key: str) -> Optional[tuple[int, list]]:
        all_rows = sheet.get_all_values()
        for idx, row in enumerate(all_rows[1:], start=2):  # Row 1 is the header
            if row and row[0] == key:
                return idx, row
        return None

    def get(self, key: str) -> Optional[str]:
        try:
            sheet = self._client.get_kv_sheet()
            found = self._find_row(sheet, key)
        except ConnectionError:
            raise
        except Exception as e:
            raise PersistenceError(f"Failed to read {key}: {e}")

        if found is None:
            return None
        _, row = found
        return row[1] if len(row) > 1 else ""

    def set(self, key: str, value: str) -> None:
        try:
            sheet = self._client.get_kv_sheet()
            found = self._find_row(sheet, key)
            if found is None:
                sheet.append_row([key, value], value_input_option="RAW")
            else:
                row_idx, _ = found
                sheet.update(
                    values=[[value]],
                    range_name=f"B{row_idx}",
                    value_input_option="RAW",
                )
        except ConnectionError:
            raise
        except Exception as e:
            raise PersistenceError(f"Failed to write {key}: {e}")
