"""
In-Memory Document Store

Keeps every record in a dict keyed by its full path. Used by the test
suite and for local runs without a spreadsheet.

Multi-path writes are atomic: expectations are checked and every path is
written without yielding to the event loop in between, so no other
coroutine can observe or interleave with a half-applied batch.
"""

import copy
from typing import Any, List, Optional

from saveplay.services.storage.interface import (
    Document,
    DocumentStore,
    PreconditionFailedError,
    RecordNotFoundError,
    Snapshot,
    SnapshotCallback,
    Unsubscribe,
    order_key,
)
from saveplay.services.storage.paths import (
    is_record_path,
    new_record_id,
    parent_path,
    record_path,
    split_path,
)
from saveplay.services.storage.subscriptions import SubscriptionHub


def _strip_id(document: Optional[Document]) -> Optional[Document]:
    if document is None:
        return None
    return {key: value for key, value in document.items() if key != "id"}


class InMemoryDocumentStore(DocumentStore):
    """Dict-backed store with atomic multi-path writes."""

    supports_atomic_writes = True

    def __init__(self):
        self._records: dict[str, Document] = {}
        self._hub = SubscriptionHub(self._snapshot)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get(self, path: str) -> Optional[Document]:
        return self._read(path)

    async def list(
        self,
        path: str,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> list[Document]:
        return self._list(path, order_by, descending)

    async def query_equal(self, path: str, field: str, value: Any) -> List[Document]:
        return [
            document for document in self._list(path)
            if document.get(field) == value
        ]

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def push(self, path: str, document: Document) -> str:
        parts = split_path(path)
        if is_record_path(path) or len(parts) != 2:
            raise ValueError(f"push needs a collection path, got {path!r}")
        record_id = new_record_id()
        full_path = record_path(parts[0], parts[1], record_id)
        self._records[full_path] = copy.deepcopy(_strip_id(document))
        await self._hub.publish([full_path])
        return record_id

    async def set(self, path: str, document: Document) -> None:
        key = self._record_key(path)
        self._records[key] = copy.deepcopy(_strip_id(document))
        await self._hub.publish([key])

    async def update(self, path: str, fields: Document) -> None:
        key = self._record_key(path)
        if key not in self._records:
            raise RecordNotFoundError(f"Record not found: {path}")
        self._records[key].update(copy.deepcopy(_strip_id(fields)))
        await self._hub.publish([key])

    async def remove(self, path: str) -> None:
        key = self._record_key(path)
        self._records.pop(key, None)
        await self._hub.publish([key])

    async def atomic_update(
        self,
        updates: dict[str, Optional[Document]],
        expected: Optional[dict[str, Optional[Document]]] = None,
    ) -> None:
        keyed_updates = {
            self._record_key(path): document for path, document in updates.items()
        }

        for path, document in (expected or {}).items():
            key = self._record_key(path)
            if self._records.get(key) != _strip_id(document):
                raise PreconditionFailedError(path)

        for key, document in keyed_updates.items():
            if document is None:
                self._records.pop(key, None)
            else:
                self._records[key] = copy.deepcopy(_strip_id(document))

        await self._hub.publish(list(keyed_updates))

    async def subscribe(self, path: str, callback: SnapshotCallback) -> Unsubscribe:
        split_path(path)
        return await self._hub.subscribe(path, callback)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _record_key(self, path: str) -> str:
        if not is_record_path(path):
            raise ValueError(f"Expected a record path, got {path!r}")
        return path.strip("/")

    def _read(self, path: str) -> Optional[Document]:
        key = self._record_key(path)
        document = self._records.get(key)
        if document is None:
            return None
        return {"id": key.rsplit("/", 1)[1], **copy.deepcopy(document)}

    def _list(
        self,
        path: str,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Document]:
        prefix = "/".join(split_path(path))
        documents = [
            {"id": key.rsplit("/", 1)[1], **copy.deepcopy(document)}
            for key, document in self._records.items()
            if parent_path(key) == prefix
        ]
        if order_by:
            documents.sort(key=order_key(order_by), reverse=descending)
        elif descending:
            documents.reverse()
        return documents

    async def _snapshot(self, path: str) -> Snapshot:
        if is_record_path(path):
            return self._read(path)
        return self._list(path)
