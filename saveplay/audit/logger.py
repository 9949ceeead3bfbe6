"""
Audit Logger

DESIGN DECISION: Every mutation of a user's finances is logged.
This provides:
1. Complete traceability
2. Debugging capability
3. A trail of cascades repaired on non-atomic stores

The audit logger:
- Is async to not block main flow
- Gracefully handles failures (doesn't crash the app if logging fails)
"""

from decimal import Decimal
from typing import Optional

import structlog

from saveplay.models.audit import AuditEvent, AuditEventBuilder, AuditEventType
from saveplay.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An audit store such as Google Sheets (for persistence)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger()

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        # Always log locally
        log_dict = event.to_log_dict()

        if event.severity.value == "error":
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        # Persist to storage if available
        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_goal_created(
        self,
        user_id: str,
        goal_id: str,
        name: str,
        total_amount: Decimal,
    ) -> None:
        """Log goal creation."""
        event = AuditEventBuilder.goal_created(
            user_id=user_id,
            goal_id=goal_id,
            name=name,
            total_amount=total_amount,
        )
        await self.log(event)

    async def log_contribution_added(
        self,
        user_id: str,
        goal_id: str,
        contribution_id: str,
        amount: Decimal,
        saved_amount: Decimal,
    ) -> None:
        """Log a contribution towards a goal."""
        event = AuditEventBuilder.contribution_added(
            user_id=user_id,
            goal_id=goal_id,
            contribution_id=contribution_id,
            amount=amount,
            saved_amount=saved_amount,
        )
        await self.log(event)

    async def log_goal_archived(
        self,
        user_id: str,
        goal_id: str,
        name: str,
    ) -> None:
        """Log a goal reaching its target."""
        event = AuditEventBuilder.goal_archived(
            user_id=user_id,
            goal_id=goal_id,
            name=name,
        )
        await self.log(event)

    async def log_debt_payment_added(
        self,
        user_id: str,
        debt_id: str,
        payment_id: str,
        amount: Decimal,
        paid_amount: Decimal,
    ) -> None:
        """Log a payment towards a debt."""
        event = AuditEventBuilder.debt_payment_added(
            user_id=user_id,
            debt_id=debt_id,
            payment_id=payment_id,
            amount=amount,
            paid_amount=paid_amount,
        )
        await self.log(event)

    async def log_record_changed(
        self,
        event_type: AuditEventType,
        user_id: str,
        entity_type: str,
        entity_id: str,
        details: Optional[dict] = None,
    ) -> None:
        """Log a plain create/update/delete."""
        event = AuditEventBuilder.record_changed(
            event_type=event_type,
            user_id=user_id,
            entity_type=entity_type,
            entity_id=entity_id,
            details=details,
        )
        await self.log(event)

    async def log_orphans_reconciled(
        self,
        user_id: str,
        collection: str,
        parent_id: str,
        orphan_ids: list[str],
    ) -> None:
        """Log children removed after a partial cascade."""
        event = AuditEventBuilder.orphans_reconciled(
            user_id=user_id,
            collection=collection,
            parent_id=parent_id,
            orphan_ids=orphan_ids,
        )
        await self.log(event)

    async def log_user_signed_in(self, user_id: str, first_login: bool) -> None:
        event = AuditEventBuilder.user_signed_in(user_id=user_id, first_login=first_login)
        await self.log(event)

    async def log_tip_fallback(self, reason: str) -> None:
        await self.log(AuditEventBuilder.tip_fallback_used(reason))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        user_id: Optional[str] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            user_id=user_id,
        )
        await self.log(event)
