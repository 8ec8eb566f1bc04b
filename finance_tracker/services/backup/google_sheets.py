"""
Google Sheets Backup Transport

DESIGN DECISION: Besides the Drive JSON file, a backup can go to a
spreadsheet because:
1. Users can look at their transactions directly in Sheets
2. The spreadsheet doubles as an export for other tools

TRADEOFFS:
- Every backup rewrites both worksheets completely
- A backup is staged in two extra worksheets before it replaces the old one
- Values are stored as text and parsed back by the models on restore

Fields the columns do not cover (keys from newer or older app versions)
are kept as JSON in the last column.
"""

import json
from typing import Any, Optional

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from finance_tracker.config import GoogleSheetsSettings, get_settings
from finance_tracker.services.backup.interface import (
    BackupNotFoundError,
    BackupTransportInterface,
    InvalidBackupError,
    TransportError,
)
from finance_tracker.services.storage import ConnectionError


# Column mappings for Transactions sheet
TRANSACTION_COLUMNS = [
    "id",
    "amount",
    "category",
    "note",
    "date",
    "paymentMethod",
    "type",
    "customColor",
    "customImage",
    "extra_json",
]

# Column mappings for Cards sheet
CARD_COLUMNS = [
    "id",
    "type",
    "number",
    "balance",
    "color",
    "image",
    "extra_json",
]

# Empty cells in these columns mean "not set"
OPTIONAL_COLUMNS = {"customColor", "customImage"}

# Uploads are written here and renamed to the live titles once complete
STAGING_SUFFIX = " (staging)"

logger = structlog.get_logger(__name__)


def item_to_row(item: dict[str, Any], columns: list[str]) -> list[str]:
    """Convert one backup entry to a spreadsheet row."""
    known = columns[:-1]
    extras = {k: v for k, v in item.items() if k not in known}
    row = ["" if item.get(col) is None else str(item[col]) for col in known]
    row.append(json.dumps(extras, ensure_ascii=False) if extras else "")
    return row


def row_to_item(row: list[str], columns: list[str]) -> dict[str, Any]:
    """Convert a spreadsheet row back to a backup entry."""
    # Handle missing trailing cells gracefully
    row = list(row) + [""] * (len(columns) - len(row))
    known = columns[:-1]

    item = {}
    for col, value in zip(known, row):
        if value == "" and col in OPTIONAL_COLUMNS:
            continue
        item[col] = value

    extra_json = row[len(known)]
    if extra_json:
        try:
            item.update(json.loads(extra_json))
        except json.JSONDecodeError as e:
            raise InvalidBackupError(f"Row {item.get('id')} has unreadable extra data: {e}")
    return item


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(
        self,
        settings: Optional[GoogleSheetsSettings] = None,
        client: Optional[gspread.Client] = None,
    ):
        self._settings = settings or get_settings().google_sheets
        self._client = client
        self._spreadsheet: Optional[gspread.Spreadsheet] = None

    @property
    def settings(self) -> GoogleSheetsSettings:
        return self._settings

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

    def get_worksheet(
        self,
        title: str,
        columns: list[str],
        create: bool = False,
    ) -> gspread.Worksheet:
        """
        Get a worksheet by title.

        With create=True a missing worksheet is added; otherwise
        gspread.WorksheetNotFound propagates.
        """
        spreadsheet = self.get_spreadsheet()
        try:
            return spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            if not create:
                raise
            return spreadsheet.add_worksheet(
                title=title,
                rows=1000,
                cols=len(columns),
            )


class GoogleSheetsBackupTransport(BackupTransportInterface):
    """
    Backup stored as two worksheets, one row per transaction or card.

    Row 1 of each worksheet is the header.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _sheets(self) -> list[tuple[str, str, list[str]]]:
        settings = self._client.settings
        return [
            ("transactions", settings.transactions_sheet_name, TRANSACTION_COLUMNS),
            ("cards", settings.cards_sheet_name, CARD_COLUMNS),
        ]

    def upload(self, payload: dict[str, Any]) -> str:
        """
        Write both collections, then publish them together.

        Rows go to staging worksheets first. A single batch update then
        deletes the live worksheets and renames the staging ones, so a
        failure at any point leaves the previous backup whole.
        """
        try:
            staged = []
            for key, title, columns in self._sheets():
                staging_title = f"{title}{STAGING_SUFFIX}"
                sheet = self._client.get_worksheet(staging_title, columns, create=True)
                rows = [item_to_row(item, columns) for item in payload.get(key) or []]
                sheet.clear()
                sheet.update(
                    values=[columns] + rows,
                    range_name="A1",
                    value_input_option="RAW",
                )
                logger.info("sheet_backup_staged", sheet=staging_title, rows=len(rows))
                staged.append((title, sheet))

            spreadsheet = self._client.get_spreadsheet()
            spreadsheet.batch_update({"requests": self._publish_requests(spreadsheet, staged)})
            logger.info("sheet_backup_published", sheets=[title for title, _ in staged])
            return spreadsheet.id
        except gspread.exceptions.GSpreadException as e:
            raise TransportError(f"Failed to write backup to Google Sheets: {e}")

    @staticmethod
    def _publish_requests(
        spreadsheet: gspread.Spreadsheet,
        staged: list[tuple[str, gspread.Worksheet]],
    ) -> list[dict[str, Any]]:
        """Delete each live worksheet and give its staging sheet the live title."""
        requests = []
        for title, sheet in staged:
            try:
                live = spreadsheet.worksheet(title)
                requests.append({"deleteSheet": {"sheetId": live.id}})
            except gspread.WorksheetNotFound:
                pass
            requests.append({
                "updateSheetProperties": {
                    "properties": {"sheetId": sheet.id, "title": title},
                    "fields": "title",
                }
            })
        return requests

    def download(self) -> dict[str, Any]:
        payload = {}
        for key, title, columns in self._sheets():
            try:
                sheet = self._client.get_worksheet(title, columns)
                # Get all data (excluding header)
                all_rows = sheet.get_all_values()[1:]
            except gspread.WorksheetNotFound:
                raise BackupNotFoundError(f"No backup worksheet '{title}' in Google Sheets.")
            except gspread.exceptions.GSpreadException as e:
                raise TransportError(f"Failed to read backup from Google Sheets: {e}")

            payload[key] = [row_to_item(row, columns) for row in all_rows if row and row[0]]

        logger.info(
            "sheet_backup_downloaded",
            transactions=len(payload["transactions"]),
            cards=len(payload["cards"]),
        )
        return payload
