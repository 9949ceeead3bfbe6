"""
Shared plumbing for the domain mutation services.

Every service:
1. Requires an authenticated user and scopes paths to that user
2. Validates raw input before reading or writing anything
3. Normalizes amounts to the canonical currency
4. Audits its writes (when an audit logger is configured)

DESIGN DECISION: Read-modify-write operations (contributions, payments)
use optimistic concurrency. The record read at the start is sent back as
an expectation with the write; if it changed in between the store refuses
the write and the whole operation re-reads and re-checks. After the
configured number of attempts the caller gets a ConflictError.
"""

from decimal import Decimal
from typing import Any, Awaitable, Callable, Optional, TypeVar

import structlog
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt

from saveplay.audit import AuditLogger
from saveplay.config import get_settings
from saveplay.errors import ConflictError
from saveplay.models.finance import Currency
from saveplay.services.auth import AuthProvider
from saveplay.services.currency import CurrencyConverter
from saveplay.services.storage import DocumentStore, PreconditionFailedError
from saveplay.services.storage.paths import collection_path, record_path
from saveplay.validation import InputValidator


logger = structlog.get_logger()

T = TypeVar("T")


class DomainService:
    """Base class wiring a service to its collaborators."""

    def __init__(
        self,
        store: DocumentStore,
        auth: AuthProvider,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[InputValidator] = None,
        converter: Optional[CurrencyConverter] = None,
        conflict_retry_attempts: Optional[int] = None,
    ):
        self._store = store
        self._auth = auth
        self._audit_logger = audit_logger
        self._validator = validator or InputValidator()
        self._converter = converter or CurrencyConverter()
        self._conflict_retry_attempts = (
            conflict_retry_attempts or get_settings().app.conflict_retry_attempts
        )

    def _user_id(self) -> str:
        """Raises AuthError when nobody is signed in."""
        return self._auth.require_user().uid

    def _collection(self, collection: str, user_id: str) -> str:
        return collection_path(collection, user_id)

    def _record(self, collection: str, user_id: str, record_id: str) -> str:
        return record_path(collection, user_id, record_id)

    def _to_canonical(self, amount: Any, currency: Currency) -> Decimal:
        return self._converter.to_canonical(amount, currency)

    async def _with_conflict_retry(
        self,
        operation: Callable[..., Awaitable[T]],
        *args: Any,
    ) -> T:
        """
        Run a read-check-write operation, re-running it on write conflicts.

        Raises:
            ConflictError: If every attempt hit a conflicting write
        """
        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type(PreconditionFailedError),
                stop=stop_after_attempt(self._conflict_retry_attempts),
                before_sleep=lambda state: logger.warning(
                    "write_conflict_retrying",
                    attempt=state.attempt_number,
                    path=getattr(state.outcome.exception(), "path", None),
                ),
                reraise=True,
            ):
                with attempt:
                    return await operation(*args)
        except PreconditionFailedError as e:
            logger.error("write_conflict_exhausted", path=e.path)
            if self._audit_logger:
                await self._audit_logger.log_error(
                    error_type="ConflictError",
                    error_message=str(e),
                    details={
                        "path": e.path,
                        "attempts": self._conflict_retry_attempts,
                    },
                    user_id=self._user_id(),
                )
            raise ConflictError() from e

    async def _cascade_delete(
        self,
        user_id: str,
        parent_collection: str,
        parent_id: str,
        child_collection: str,
        child_field: str,
    ) -> int:
        """
        Delete a parent record and every child pointing at it.

        Children come first in the batch so that, on a store without
        atomic writes, a failure part way through leaves the parent in
        place and the delete can simply be retried.

        Returns:
            Number of children deleted
        """
        children = await self._store.query_equal(
            self._collection(child_collection, user_id),
            child_field,
            parent_id,
        )

        updates: dict[str, Optional[dict]] = {}
        for child in children:
            updates[self._record(child_collection, user_id, child["id"])] = None
        updates[self._record(parent_collection, user_id, parent_id)] = None

        await self._store.atomic_update(updates)

        orphan_ids = await self._reconcile_orphans(
            user_id, child_collection, child_field, parent_id
        )
        return len(children) + len(orphan_ids)

    async def _reconcile_orphans(
        self,
        user_id: str,
        child_collection: str,
        child_field: str,
        parent_id: str,
    ) -> list[str]:
        """
        Remove children left behind by a non-atomic cascade.

        No-op on stores with atomic multi-path writes.
        """
        if self._store.supports_atomic_writes:
            return []

        leftovers = await self._store.query_equal(
            self._collection(child_collection, user_id),
            child_field,
            parent_id,
        )
        orphan_ids = [document["id"] for document in leftovers]
        for orphan_id in orphan_ids:
            await self._store.remove(self._record(child_collection, user_id, orphan_id))

        if orphan_ids:
            logger.warning(
                "orphans_reconciled",
                collection=child_collection,
                parent_id=parent_id,
                count=len(orphan_ids),
            )
            if self._audit_logger:
                await self._audit_logger.log_orphans_reconciled(
                    user_id=user_id,
                    collection=child_collection,
                    parent_id=parent_id,
                    orphan_ids=orphan_ids,
                )
        return orphan_ids
