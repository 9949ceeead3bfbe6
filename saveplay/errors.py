"""
Domain error taxonomy.

Every error raised by a domain service carries a user_message that the
presentation layer can show as-is. None of them are retried by the system.
"""

from typing import Optional

from saveplay.models.finance import ValidationIssue


class DomainError(Exception):
    """Base exception for domain services."""

    default_message = "Something went wrong. Please try again."

    def __init__(self, message: Optional[str] = None):
        self.user_message = message or self.default_message
        super().__init__(self.user_message)


class ValidationError(DomainError):
    """Bad input shape or range. Always raised before any write."""

    default_message = "Please check the highlighted fields."

    def __init__(
        self,
        issues: list[ValidationIssue],
        message: Optional[str] = None,
    ):
        self.issues = issues
        if message is None and issues:
            message = "; ".join(issue.message for issue in issues)
        super().__init__(message)

    @property
    def fields(self) -> list[str]:
        return [issue.field for issue in self.issues]


class AuthError(DomainError):
    """No authenticated user."""

    default_message = "Please sign in to continue."


class NotFoundError(DomainError):
    """Referenced record is missing (or was deleted concurrently)."""

    default_message = "That item no longer exists."

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type.capitalize()} not found: {entity_id}")


class InvalidStateError(DomainError):
    """Operation not permitted given the entity's status."""

    default_message = "This action is not allowed right now."


class ConflictError(DomainError):
    """The record kept changing underneath us; the user should retry."""

    default_message = "This item was changed elsewhere. Please try again."
