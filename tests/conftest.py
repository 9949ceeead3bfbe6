"""
Shared fixtures.

Every service test runs against the in-memory store with a signed-in
session user. No network: Gemini and Google Sheets are faked.
"""

from decimal import Decimal

import pytest

from saveplay.audit import AuditLogger
from saveplay.domain import (
    CategoryService,
    DebtService,
    GoalService,
    TransactionService,
    UserService,
)
from saveplay.models.finance import UserIdentity
from saveplay.services.auth import SessionAuthProvider
from saveplay.services.currency import CurrencyConverter
from saveplay.services.storage import InMemoryDocumentStore


USER_ID = "user-1"


class RecordingAuditStorage:
    """Audit storage double that keeps events in a list."""

    def __init__(self):
        self.events = []

    async def append_event(self, event):
        self.events.append(event)
        return True

    def types(self):
        return [event.event_type for event in self.events]


@pytest.fixture
def identity():
    return UserIdentity(uid=USER_ID, email="ana@example.com", display_name="Ana")


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def auth(identity):
    return SessionAuthProvider(user=identity)


@pytest.fixture
def signed_out_auth():
    return SessionAuthProvider()


@pytest.fixture
def audit_storage():
    return RecordingAuditStorage()


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage)


@pytest.fixture
def converter():
    return CurrencyConverter(usd_to_dop_rate=Decimal("59"))


@pytest.fixture
def service_kwargs(store, auth, audit_logger, converter):
    return dict(
        store=store,
        auth=auth,
        audit_logger=audit_logger,
        converter=converter,
        conflict_retry_attempts=3,
    )


@pytest.fixture
def goal_service(service_kwargs):
    return GoalService(**service_kwargs)


@pytest.fixture
def debt_service(service_kwargs):
    return DebtService(**service_kwargs)


@pytest.fixture
def transaction_service(service_kwargs):
    return TransactionService(**service_kwargs)


@pytest.fixture
def category_service(service_kwargs):
    return CategoryService(**service_kwargs)


@pytest.fixture
def user_service(service_kwargs):
    return UserService(**service_kwargs)
