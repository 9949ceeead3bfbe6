"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract hierarchical document store.
This allows us to:
1. Run everything against an in-memory store in tests
2. Use Google Sheets as a persistent backend
3. Keep business logic decoupled from storage implementation

Records live at `{collection}/{user_id}/{record_id}` and are flat
JSON-compatible dicts. The interface is intentionally small - we're not
building a query engine. Just the operations the domain services need.

IMPORTANT: Not every backend can write several paths atomically. Backends
report this through `supports_atomic_writes`; services that cascade-delete
run a reconciliation pass when it is False.
"""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, List, Optional, Union

from saveplay.models.audit import AuditEvent


Document = dict[str, Any]
Snapshot = Union[list[Document], Document, None]
SnapshotCallback = Callable[[Snapshot], Union[None, Awaitable[None]]]
Unsubscribe = Callable[[], None]


def order_key(field: str) -> Callable[[Document], tuple]:
    """Sort key for `list(order_by=...)`."""
    # Records without the field sort before records that have it
    def key(document: Document) -> tuple:
        value = document.get(field)
        return (value is not None, value if value is not None else "")
    return key


class DocumentStore(ABC):
    """
    Abstract interface for the hierarchical document store.

    Any storage implementation (memory, Google Sheets, etc.)
    must implement these methods.
    """

    supports_atomic_writes: bool = True

    @abstractmethod
    async def get(self, path: str) -> Optional[Document]:
        """
        Read one record.

        Args:
            path: Record path `{collection}/{user_id}/{record_id}`

        Returns:
            The document (with its "id" key) or None if absent
        """
        pass

    @abstractmethod
    async def list(
        self,
        path: str,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> list[Document]:
        """
        List every record under a collection path.

        Args:
            path: Collection path `{collection}/{user_id}`
            order_by: Field to sort by (records missing it sort first)
            descending: Reverse the order

        Returns:
            Documents, each carrying its "id" key
        """
        pass

    @abstractmethod
    async def query_equal(self, path: str, field: str, value: Any) -> List[Document]:
        """
        List records under a collection path whose `field` equals `value`.
        """
        pass

    @abstractmethod
    async def push(self, path: str, document: Document) -> str:
        """
        Append a record under a collection path with a new unique key.

        Returns:
            The generated record id
        """
        pass

    @abstractmethod
    async def set(self, path: str, document: Document) -> None:
        """Create or replace the record at a path."""
        pass

    @abstractmethod
    async def update(self, path: str, fields: Document) -> None:
        """
        Merge fields into an existing record.

        Raises:
            RecordNotFoundError: If the record does not exist
        """
        pass

    @abstractmethod
    async def remove(self, path: str) -> None:
        """Delete the record at a path (no error if absent)."""
        pass

    @abstractmethod
    async def atomic_update(
        self,
        updates: dict[str, Optional[Document]],
        expected: Optional[dict[str, Optional[Document]]] = None,
    ) -> None:
        """
        Apply a multi-path write.

        Each key of `updates` is a record path; a document value replaces
        the record, None deletes it.

        Args:
            updates: Path -> document (or None to delete)
            expected: Path -> document the caller read earlier (or None for
                "must not exist"). Every expectation is checked before any
                write happens.

        Raises:
            PreconditionFailedError: If an expectation does not hold
        """
        pass

    @abstractmethod
    async def subscribe(self, path: str, callback: SnapshotCallback) -> Unsubscribe:
        """
        Watch a collection or record path.

        The callback receives the current snapshot immediately and again
        after every write through this store that touches the path.

        Returns:
            A callable that stops the subscription
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Args:
            event: The audit event to log

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific entity.

        Args:
            entity_type: Type of entity (e.g., 'goal', 'debt')
            entity_id: The entity's ID

        Returns:
            List of events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Args:
            limit: Maximum number of events to return

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class RecordNotFoundError(StorageError):
    """Record not found in storage."""
    pass


class PreconditionFailedError(StorageError):
    """An atomic_update expectation did not match the stored record."""

    def __init__(self, path: str):
        super().__init__(f"Record changed since it was read: {path}")
        self.path = path


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
