"""Services package."""

from saveplay.services.auth import AuthProvider, SessionAuthProvider
from saveplay.services.currency import CurrencyConverter
from saveplay.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    DocumentStore,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsDocumentStore,
    InMemoryDocumentStore,
    PreconditionFailedError,
    RecordNotFoundError,
    StorageError,
)

__all__ = [
    # Auth
    "AuthProvider",
    "SessionAuthProvider",
    # Currency
    "CurrencyConverter",
    # Storage services
    "AuditStorageInterface",
    "ConnectionError",
    "DocumentStore",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsDocumentStore",
    "InMemoryDocumentStore",
    "PreconditionFailedError",
    "RecordNotFoundError",
    "StorageError",
]
