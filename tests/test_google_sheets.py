"""
Tests for the Google Sheets backend.

Test strategy:
1. No real API calls (worksheets are faked in memory)
2. Rows round-trip to documents with their ids
3. The domain services behave the same on the non-atomic store
"""

import pytest
from datetime import date, timedelta
from decimal import Decimal

from saveplay.domain import CategoryService, GoalService
from saveplay.models.audit import AuditEventBuilder, AuditEventType
from saveplay.models.finance import CategoryKind, GoalStatus
from saveplay.services.storage import (
    GoogleSheetsAuditStorage,
    GoogleSheetsDocumentStore,
    PreconditionFailedError,
    RecordNotFoundError,
)
from saveplay.services.storage.google_sheets import AUDIT_COLUMNS, RECORD_COLUMNS


class FakeWorksheet:
    """Just enough of gspread.Worksheet for the store."""

    def __init__(self, columns):
        self.rows = [list(columns)]

    def get_all_values(self):
        return [list(row) for row in self.rows]

    def append_row(self, row, value_input_option=None):
        self.rows.append(list(row))

    def update_cell(self, row, col, value):
        self.rows[row - 1][col - 1] = value

    def delete_rows(self, index):
        del self.rows[index - 1]


class FakeSheetsClient:
    """Stands in for GoogleSheetsClient."""

    def __init__(self):
        self.sheets = {}

    def get_collection_sheet(self, collection):
        if collection not in self.sheets:
            self.sheets[collection] = FakeWorksheet(RECORD_COLUMNS)
        return self.sheets[collection]

    def get_audit_sheet(self):
        if "AuditLog" not in self.sheets:
            self.sheets["AuditLog"] = FakeWorksheet(AUDIT_COLUMNS)
        return self.sheets["AuditLog"]


class CountingSheetsClient(FakeSheetsClient):
    """FakeSheetsClient that counts worksheet lookups."""

    def __init__(self):
        super().__init__()
        self.lookups = 0

    def get_collection_sheet(self, collection):
        self.lookups += 1
        return super().get_collection_sheet(collection)


@pytest.fixture
def sheets_client():
    return FakeSheetsClient()


@pytest.fixture
def sheets_store(sheets_client):
    return GoogleSheetsDocumentStore(sheets_client)


class TestGoogleSheetsDocumentStore:
    """Tests for GoogleSheetsDocumentStore."""

    def test_not_atomic(self, sheets_store):
        """Test the store reports per-path writes."""
        assert sheets_store.supports_atomic_writes is False

    @pytest.mark.asyncio
    async def test_push_writes_a_row(self, sheets_store, sheets_client):
        """Test one row per record: user, id, JSON."""
        record_id = await sheets_store.push("goals/u1", {"name": "Trip", "saved_amount": "0"})

        row = sheets_client.sheets["goals"].rows[1]
        assert row[:2] == ["u1", record_id]
        assert await sheets_store.get(f"goals/u1/{record_id}") == {
            "id": record_id,
            "name": "Trip",
            "saved_amount": "0",
        }

    @pytest.mark.asyncio
    async def test_list_scoped_to_user(self, sheets_store):
        """Test other users' rows are not listed."""
        await sheets_store.set("goals/u1/a", {"created_at": "2026-01-02"})
        await sheets_store.set("goals/u1/b", {"created_at": "2026-01-03"})
        await sheets_store.set("goals/u2/c", {"created_at": "2026-01-04"})

        documents = await sheets_store.list("goals/u1", order_by="created_at", descending=True)

        assert [d["id"] for d in documents] == ["b", "a"]

    @pytest.mark.asyncio
    async def test_update_rewrites_row(self, sheets_store, sheets_client):
        """Test updates replace the row in place."""
        await sheets_store.set("goals/u1/g1", {"name": "Trip", "emoji": "✈️"})

        await sheets_store.update("goals/u1/g1", {"name": "Beach"})

        assert len(sheets_client.sheets["goals"].rows) == 2
        assert (await sheets_store.get("goals/u1/g1"))["name"] == "Beach"

    @pytest.mark.asyncio
    async def test_update_missing(self, sheets_store):
        """Test updating a missing record fails."""
        with pytest.raises(RecordNotFoundError):
            await sheets_store.update("goals/u1/nope", {"name": "x"})

    @pytest.mark.asyncio
    async def test_user_profiles(self, sheets_store, sheets_client):
        """Test profiles are keyed by uid."""
        await sheets_store.set("users/u1", {"display_name": "Ana"})

        assert sheets_client.sheets["users"].rows[1][:2] == ["u1", "u1"]
        assert (await sheets_store.get("users/u1"))["display_name"] == "Ana"

    @pytest.mark.asyncio
    async def test_atomic_update_checks_expectations_first(self, sheets_store):
        """Test a stale expectation writes nothing."""
        await sheets_store.set("goals/u1/g1", {"saved_amount": "5"})

        with pytest.raises(PreconditionFailedError):
            await sheets_store.atomic_update(
                {
                    "contributions/u1/c1": {"goal_id": "g1"},
                    "goals/u1/g1": {"saved_amount": "10"},
                },
                expected={"goals/u1/g1": {"id": "g1", "saved_amount": "0"}},
            )

        assert await sheets_store.get("contributions/u1/c1") is None

    @pytest.mark.asyncio
    async def test_malformed_row_skipped(self, sheets_store, sheets_client):
        """Test rows with broken JSON are ignored."""
        sheet = sheets_client.get_collection_sheet("goals")
        sheet.append_row(["u1", "bad", "{not json"])
        await sheets_store.set("goals/u1/good", {"name": "Trip"})

        assert [d["id"] for d in await sheets_store.list("goals/u1")] == ["good"]

    @pytest.mark.asyncio
    async def test_subscription(self, sheets_store):
        """Test subscribers see pushes."""
        snapshots = []
        await sheets_store.subscribe("debts/u1", snapshots.append)

        await sheets_store.push("debts/u1", {"name": "Card"})

        assert [len(s) for s in snapshots] == [0, 1]

    @pytest.mark.asyncio
    async def test_order_by_keeps_zero(self, sheets_store):
        """Test a zero sort value orders with the other numbers."""
        await sheets_store.push("incomeCategories/u1", {"name": "B", "order": 1})
        await sheets_store.push("incomeCategories/u1", {"name": "A", "order": 0})
        await sheets_store.push("incomeCategories/u1", {"name": "Z"})

        documents = await sheets_store.list("incomeCategories/u1", order_by="order")

        assert [d["name"] for d in documents] == ["Z", "A", "B"]

    @pytest.mark.asyncio
    async def test_bad_input_not_retried(self):
        """Test errors that are not storage failures surface on the first call."""
        client = CountingSheetsClient()
        store = GoogleSheetsDocumentStore(client)
        await store.push("incomeCategories/u1", {"order": 1})
        await store.push("incomeCategories/u1", {"order": "first"})
        client.lookups = 0

        with pytest.raises(TypeError):
            await store.list("incomeCategories/u1", order_by="order")
        with pytest.raises(ValueError):
            await store.get("incomeCategories/u1")

        assert client.lookups == 1


class TestServicesOnSheets:
    """Tests for the domain services against the Sheets store."""

    @pytest.mark.asyncio
    async def test_default_categories(self, sheets_store, auth):
        """Test seeded categories list in display order."""
        service = CategoryService(sheets_store, auth, conflict_retry_attempts=3)

        assert await service.seed_defaults() == 11

        income = await service.list(CategoryKind.INCOME)
        assert [c.name for c in income] == ["Salario", "Ingreso Extra", "Regalo", "Venta"]
        assert [c.order for c in income] == [0, 1, 2, 3]
        added = await service.add(CategoryKind.INCOME, "Bono")
        assert added.order == 4
        assert await service.seed_defaults() == 0

    @pytest.mark.asyncio
    async def test_contribute_and_delete(self, sheets_store, sheets_client, auth, converter):
        """Test contributions, archiving and cascades work without atomic writes."""
        service = GoalService(sheets_store, auth, converter=converter, conflict_retry_attempts=3)
        goal = await service.create_goal("Laptop", None, 100, date.today() + timedelta(days=30))

        assert await service.contribute(goal.id, 60) is False
        assert await service.contribute(goal.id, 40) is True

        stored = await service.get_goal(goal.id)
        assert stored.status == GoalStatus.ARCHIVED
        assert stored.saved_amount == Decimal("100")

        await service.delete_goal(goal.id)

        assert sheets_client.sheets["goals"].rows == [RECORD_COLUMNS]
        assert sheets_client.sheets["contributions"].rows == [RECORD_COLUMNS]


class TestGoogleSheetsAuditStorage:
    """Tests for the audit sheet."""

    @pytest.mark.asyncio
    async def test_append_and_read_back(self, sheets_client):
        """Test events round-trip through rows."""
        storage = GoogleSheetsAuditStorage(sheets_client)
        created = AuditEventBuilder.goal_created("u1", "g1", "Laptop", Decimal("100"))
        archived = AuditEventBuilder.goal_archived("u1", "g1", "Laptop")

        assert await storage.append_event(created)
        assert await storage.append_event(archived)

        events = await storage.get_events_by_entity("goal", "g1")
        recent = await storage.get_recent_events(limit=1)
        assert [e.event_type for e in events] == [
            AuditEventType.GOAL_CREATED,
            AuditEventType.GOAL_ARCHIVED,
        ]
        assert events[0].details == {"name": "Laptop", "total_amount": "100"}
        assert recent[0].event_id == archived.event_id
        assert not recent[0].is_user_action
