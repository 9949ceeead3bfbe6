"""
Storage Services Package

Provides the abstract document store plus two implementations:
an in-memory store (atomic, used for tests and local runs) and
Google Sheets (persistent, non-atomic).
"""

from saveplay.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    Document,
    DocumentStore,
    PreconditionFailedError,
    RecordNotFoundError,
    StorageError,
)
from saveplay.services.storage.memory import InMemoryDocumentStore
from saveplay.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsDocumentStore,
)
from saveplay.services.storage import paths

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "Document",
    "DocumentStore",
    # Exceptions
    "ConnectionError",
    "PreconditionFailedError",
    "RecordNotFoundError",
    "StorageError",
    # Implementations
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsDocumentStore",
    "InMemoryDocumentStore",
    # Path layout
    "paths",
]
