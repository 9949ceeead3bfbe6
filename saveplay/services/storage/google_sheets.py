"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the persistent backend because:
1. Non-technical users can view their data directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Easy to export/migrate later

Each collection gets its own worksheet with three columns:
[user_id, record_id, data_json]. Users are keyed by uid in both the
user_id and record_id columns.

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- No transactions: a multi-path write is applied path by path, so this
  store reports supports_atomic_writes = False and services repair
  partial cascades themselves
- Limited query capabilities (we filter in Python)
"""

import json
from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from saveplay.config import get_settings
from saveplay.models.audit import AuditEvent, AuditEventType, AuditSeverity
from saveplay.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    Document,
    DocumentStore,
    PreconditionFailedError,
    RecordNotFoundError,
    Snapshot,
    SnapshotCallback,
    StorageError,
    Unsubscribe,
    order_key,
)
from saveplay.services.storage.paths import USERS, is_record_path, new_record_id, split_path
from saveplay.services.storage.subscriptions import SubscriptionHub


logger = structlog.get_logger()

# Column mappings for collection sheets
RECORD_COLUMNS = [
    "user_id",
    "record_id",
    "data_json",
]

# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "user_id",
    "entity_type",
    "entity_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._worksheets: dict[str, gspread.Worksheet] = {}
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

    def get_worksheet(self, title: str, columns: list[str], rows: int = 1000) -> gspread.Worksheet:
        """Get or create a worksheet with the given header row."""
        if title not in self._worksheets:
            spreadsheet = self.get_spreadsheet()
            try:
                sheet = spreadsheet.worksheet(title)
            except gspread.WorksheetNotFound:
                # Create the sheet with headers
                sheet = spreadsheet.add_worksheet(
                    title=title,
                    rows=rows,
                    cols=len(columns),
                )
                sheet.append_row(columns)
            self._worksheets[title] = sheet
        return self._worksheets[title]

    def get_collection_sheet(self, collection: str) -> gspread.Worksheet:
        return self.get_worksheet(collection, RECORD_COLUMNS)

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        # More rows for audit log
        return self.get_worksheet(self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000)


class GoogleSheetsDocumentStore(DocumentStore):
    """
    Google Sheets implementation of the document store.

    Records are stored as rows, one record per row, with the document
    JSON-serialized into the data_json column.
    """

    supports_atomic_writes = False

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()
        self._hub = SubscriptionHub(self._snapshot)

    # -------------------------------------------------------------------------
    # Row helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _locate(path: str) -> tuple[str, str, Optional[str]]:
        """Split a path into (collection, user_id, record_id or None)."""
        parts = split_path(path)
        if len(parts) < 2:
            raise ValueError(f"Path must include a user id: {path!r}")
        if parts[0] == USERS:
            return USERS, parts[1], parts[1]
        return parts[0], parts[1], parts[2] if len(parts) == 3 else None

    @staticmethod
    def _row_to_document(row: list) -> Optional[Document]:
        """Convert a spreadsheet row to a document carrying its id."""
        if len(row) < 3 or not row[1]:
            return None
        try:
            data = json.loads(row[2]) if row[2] else {}
        except json.JSONDecodeError:
            logger.warning("malformed_row_skipped", record_id=row[1])
            return None
        return {"id": row[1], **data}

    @staticmethod
    def _document_to_row(user_id: str, record_id: str, document: Document) -> list:
        data = {key: value for key, value in document.items() if key != "id"}
        return [user_id, record_id, json.dumps(data, default=str)]

    def _find_row(self, sheet: gspread.Worksheet, user_id: str, record_id: str) -> tuple[int, list]:
        """Return the 1-based row index and row of a record (0 if absent)."""
        all_rows = sheet.get_all_values()
        # Start from 2 (row 1 is header)
        for idx, row in enumerate(all_rows[1:], start=2):
            if len(row) >= 2 and row[0] == user_id and row[1] == record_id:
                return idx, row
        return 0, []

    def _read(self, path: str) -> Optional[Document]:
        collection, user_id, record_id = self._locate(path)
        if record_id is None:
            raise ValueError(f"Expected a record path, got {path!r}")
        sheet = self._client.get_collection_sheet(collection)
        _, row = self._find_row(sheet, user_id, record_id)
        return self._row_to_document(row) if row else None

    def _list(self, path: str) -> List[Document]:
        collection, user_id, record_id = self._locate(path)
        if record_id is not None:
            raise ValueError(f"Expected a collection path, got {path!r}")
        sheet = self._client.get_collection_sheet(collection)
        documents = []
        for row in sheet.get_all_values()[1:]:  # Skip header
            if not row or row[0] != user_id:
                continue
            document = self._row_to_document(row)
            if document is not None:
                documents.append(document)
        return documents

    def _write(self, path: str, document: Optional[Document]) -> None:
        """Replace (or, with None, delete) the record at a path."""
        collection, user_id, record_id = self._locate(path)
        if record_id is None:
            raise ValueError(f"Expected a record path, got {path!r}")
        sheet = self._client.get_collection_sheet(collection)
        idx, _ = self._find_row(sheet, user_id, record_id)

        if document is None:
            if idx:
                sheet.delete_rows(idx)
            return

        new_row = self._document_to_row(user_id, record_id, document)
        if idx:
            # Update each cell in the row
            for col_idx, value in enumerate(new_row, start=1):
                sheet.update_cell(idx, col_idx, value)
        else:
            sheet.append_row(new_row, value_input_option="RAW")

    # -------------------------------------------------------------------------
    # DocumentStore
    # -------------------------------------------------------------------------

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(StorageError),
        reraise=True,
    )
    async def get(self, path: str) -> Optional[Document]:
        """Read one record."""
        try:
            return self._read(path)
        except (ValueError, StorageError):
            raise
        except Exception as e:
            raise StorageError(f"Failed to get record: {e}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(StorageError),
        reraise=True,
    )
    async def list(
        self,
        path: str,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> list[Document]:
        """List the records of one user's collection."""
        try:
            documents = self._list(path)
        except (ValueError, StorageError):
            raise
        except Exception as e:
            raise StorageError(f"Failed to list records: {e}")

        if order_by:
            documents.sort(key=order_key(order_by), reverse=descending)
        elif descending:
            documents.reverse()
        return documents

    async def query_equal(self, path: str, field: str, value: Any) -> List[Document]:
        documents = await self.list(path)
        return [document for document in documents if document.get(field) == value]

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(StorageError),
        reraise=True,
    )
    async def push(self, path: str, document: Document) -> str:
        """Append a new record with a generated id."""
        collection, user_id, record_id = self._locate(path)
        if record_id is not None or collection == USERS:
            raise ValueError(f"push needs a collection path, got {path!r}")
        record_id = new_record_id()
        try:
            sheet = self._client.get_collection_sheet(collection)
            sheet.append_row(
                self._document_to_row(user_id, record_id, document),
                value_input_option="RAW",
            )
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to push record: {e}")

        await self._hub.publish([f"{path.strip('/')}/{record_id}"])
        return record_id

    async def set(self, path: str, document: Document) -> None:
        await self._apply(path, document)
        await self._hub.publish([path.strip("/")])

    async def update(self, path: str, fields: Document) -> None:
        current = await self.get(path)
        if current is None:
            raise RecordNotFoundError(f"Record not found: {path}")
        current.update(fields)
        await self.set(path, current)

    async def remove(self, path: str) -> None:
        await self._apply(path, None)
        await self._hub.publish([path.strip("/")])

    async def atomic_update(
        self,
        updates: dict[str, Optional[Document]],
        expected: Optional[dict[str, Optional[Document]]] = None,
    ) -> None:
        """
        Apply a multi-path write, one path at a time.

        Expectations are checked up front; a failure part way through the
        writes leaves the earlier paths written.
        """
        for path, document in (expected or {}).items():
            current = await self.get(path)
            if _strip_id(current) != _strip_id(document):
                raise PreconditionFailedError(path)

        written = []
        try:
            for path, document in updates.items():
                await self._apply(path, document)
                written.append(path.strip("/"))
        finally:
            if written:
                await self._hub.publish(written)

    async def subscribe(self, path: str, callback: SnapshotCallback) -> Unsubscribe:
        self._locate(path)
        return await self._hub.subscribe(path, callback)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(StorageError),
        reraise=True,
    )
    async def _apply(self, path: str, document: Optional[Document]) -> None:
        try:
            self._write(path, document)
        except (ValueError, StorageError):
            raise
        except Exception as e:
            raise StorageError(f"Failed to write record: {e}")

    async def _snapshot(self, path: str) -> Snapshot:
        if is_record_path(path):
            return await self.get(path)
        return await self.list(path)


def _strip_id(document: Optional[Document]) -> Optional[Document]:
    if document is None:
        return None
    return {key: value for key, value in document.items() if key != "id"}


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return AuditEvent(
            event_id=UUID(safe_get(0)),
            timestamp=datetime.fromisoformat(safe_get(1)),
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3)),
            user_id=safe_get(4) or None,
            entity_type=safe_get(5) or None,
            entity_id=safe_get(6) or None,
            description=safe_get(7),
            details=json.loads(safe_get(8)) if safe_get(8) else {},
            error_message=safe_get(9) or None,
            is_user_action=safe_get(10).lower() == "true",
        )

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            self._append_row(event.to_sheets_row())
            return True
        except Exception as e:
            # Don't raise - audit logging should not break the main flow
            logger.warning(
                "audit_append_failed",
                error=str(e),
                event_id=str(event.event_id),
            )
            return False

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _append_row(self, row: list) -> None:
        sheet = self._client.get_audit_sheet()
        sheet.append_row(row, value_input_option="RAW")

    def _load_events(self) -> list[AuditEvent]:
        sheet = self._client.get_audit_sheet()
        events = []
        for row in sheet.get_all_values()[1:]:
            if row and row[0]:
                try:
                    events.append(self._row_to_event(row))
                except (ValueError, json.JSONDecodeError):
                    logger.warning("malformed_audit_row_skipped", event_id=row[0])
        return events

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        """Get events by entity."""
        try:
            events = [
                event for event in self._load_events()
                if event.entity_type == entity_type and event.entity_id == entity_id
            ]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events."""
        try:
            events = self._load_events()
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

        # Sort newest first
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
