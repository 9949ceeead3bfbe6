"""Audit logging package."""

from saveplay.audit.logger import AuditLogger

__all__ = ["AuditLogger"]
