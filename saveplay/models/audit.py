"""
Audit Models for Save & Play

Every mutation of a user's finances is logged for audit purposes.
This provides:
1. Traceability of every write (who, what, how much)
2. Debugging information when things go wrong
3. A record of repaired cascades on stores without atomic writes

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Goals
    GOAL_CREATED = "goal_created"
    GOAL_UPDATED = "goal_updated"
    GOAL_DELETED = "goal_deleted"
    GOAL_ARCHIVED = "goal_archived"
    CONTRIBUTION_ADDED = "contribution_added"

    # Debts
    DEBT_CREATED = "debt_created"
    DEBT_UPDATED = "debt_updated"
    DEBT_DELETED = "debt_deleted"
    DEBT_PAYMENT_ADDED = "debt_payment_added"

    # Income / expenses
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"

    # Categories
    CATEGORY_CHANGED = "category_changed"

    # Store consistency
    ORPHANS_RECONCILED = "orphans_reconciled"

    # Users
    USER_SIGNED_IN = "user_signed_in"

    # AI collaborator
    TIP_FALLBACK_USED = "tip_fallback_used"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.now,
        description="When the event occurred"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
    )

    # Context - whose data and which record
    user_id: Optional[str] = Field(
        default=None,
        description="Owner of the namespace the event touched"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'goal', 'debt', 'income')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Store key of the entity this event relates to"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=True,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "user_id": self.user_id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, user_id, entity_type,
         entity_id, description, details_json, error_message, is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.user_id or "",
            self.entity_type or "",
            self.entity_id or "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.goal_created(user_id, goal_id, name, total)
        event = AuditEventBuilder.contribution_added(user_id, goal_id, amount, completed)
    """

    @staticmethod
    def goal_created(
        user_id: str,
        goal_id: str,
        name: str,
        total_amount: Decimal,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GOAL_CREATED,
            user_id=user_id,
            entity_type="goal",
            entity_id=goal_id,
            description=f"Goal created: {name}",
            details={"name": name, "total_amount": str(total_amount)},
        )

    @staticmethod
    def contribution_added(
        user_id: str,
        goal_id: str,
        contribution_id: str,
        amount: Decimal,
        saved_amount: Decimal,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CONTRIBUTION_ADDED,
            user_id=user_id,
            entity_type="goal",
            entity_id=goal_id,
            description=f"Contributed ${amount:,.2f} to goal",
            details={
                "contribution_id": contribution_id,
                "amount": str(amount),
                "saved_amount": str(saved_amount),
            },
        )

    @staticmethod
    def goal_archived(
        user_id: str,
        goal_id: str,
        name: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GOAL_ARCHIVED,
            user_id=user_id,
            entity_type="goal",
            entity_id=goal_id,
            description=f"Goal reached its target and was archived: {name}",
            is_user_action=False,
        )

    @staticmethod
    def debt_payment_added(
        user_id: str,
        debt_id: str,
        payment_id: str,
        amount: Decimal,
        paid_amount: Decimal,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DEBT_PAYMENT_ADDED,
            user_id=user_id,
            entity_type="debt",
            entity_id=debt_id,
            description=f"Paid ${amount:,.2f} towards debt",
            details={
                "payment_id": payment_id,
                "amount": str(amount),
                "paid_amount": str(paid_amount),
            },
        )

    @staticmethod
    def record_changed(
        event_type: AuditEventType,
        user_id: str,
        entity_type: str,
        entity_id: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        """Generic create/update/delete event for simple CRUD records."""
        action = event_type.value.rsplit("_", 1)[-1]
        return AuditEvent(
            event_type=event_type,
            user_id=user_id,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{entity_type.capitalize()} {action}",
            details=details or {},
        )

    @staticmethod
    def orphans_reconciled(
        user_id: str,
        collection: str,
        parent_id: str,
        orphan_ids: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ORPHANS_RECONCILED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            entity_type=collection,
            entity_id=parent_id,
            description=f"Removed {len(orphan_ids)} orphaned {collection} records",
            details={"orphan_ids": orphan_ids},
            is_user_action=False,
        )

    @staticmethod
    def user_signed_in(user_id: str, first_login: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_SIGNED_IN,
            user_id=user_id,
            entity_type="user",
            entity_id=user_id,
            description="Profile created" if first_login else "User signed in",
            details={"first_login": first_login},
        )

    @staticmethod
    def tip_fallback_used(reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TIP_FALLBACK_USED,
            severity=AuditSeverity.WARNING,
            description="Savings tip fell back to the default message",
            error_message=reason,
            is_user_action=False,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        user_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            is_user_action=False,
        )
