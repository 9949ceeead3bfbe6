"""
Main Orchestrator for Save & Play

This module ties together all the components and defines the
read-side flows the screens need:
1. Sign-in (profile upsert + default categories)
2. Dashboard (every collection → financial summary + savings tip)
3. Reports (cash flow, income distribution, goal performance)

DESIGN DECISION: Writes go straight to the domain services; the
orchestrator only owns flows that span several services. The store is
injected, never a module-level singleton, so tests run against an
in-memory store and production against Google Sheets with the same code.
"""

from datetime import datetime
from typing import Optional

import structlog

from saveplay.agents import SavingsTip, SavingsTipAgent
from saveplay.aggregation import (
    TimeRange,
    cash_flow,
    debt_summary,
    financial_summary,
    goal_performance,
    income_distribution,
)
from saveplay.audit import AuditLogger
from saveplay.config import get_settings
from saveplay.domain import (
    CategoryService,
    DebtService,
    GoalService,
    TransactionService,
    UserService,
)
from saveplay.models.finance import (
    CashFlowPoint,
    DebtSummary,
    DistributionSlice,
    FinancialSummary,
    GoalPerformancePoint,
    GoalStatus,
    UserIdentity,
    UserProfile,
)
from saveplay.services.auth import AuthProvider, SessionAuthProvider
from saveplay.services.currency import CurrencyConverter
from saveplay.services.storage import (
    DocumentStore,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsDocumentStore,
    InMemoryDocumentStore,
)


logger = structlog.get_logger()


class SavePlayApp:
    """
    Every service wired to one store, one auth provider and one audit log.

    Build it with create_app_components().
    """

    def __init__(
        self,
        store: DocumentStore,
        auth: AuthProvider,
        audit_logger: Optional[AuditLogger] = None,
        converter: Optional[CurrencyConverter] = None,
        tip_agent: Optional[SavingsTipAgent] = None,
    ):
        self.store = store
        self.auth = auth
        self.audit_logger = audit_logger
        self.converter = converter or CurrencyConverter()

        shared = dict(audit_logger=audit_logger, converter=self.converter)
        self.goals = GoalService(store, auth, **shared)
        self.debts = DebtService(store, auth, **shared)
        self.transactions = TransactionService(store, auth, **shared)
        self.categories = CategoryService(store, auth, **shared)
        self.users = UserService(store, auth, **shared)

        self.tip_agent = tip_agent or SavingsTipAgent(audit_logger=audit_logger)

    async def sign_in(self, identity: UserIdentity) -> UserProfile:
        """
        Sign a user in, upsert their profile and seed default categories.

        Only works with a SessionAuthProvider; other providers sign users
        in on their own and call on_signed_in().
        """
        if not isinstance(self.auth, SessionAuthProvider):
            raise TypeError("sign_in() needs a SessionAuthProvider")
        await self.auth.sign_in(identity)
        return await self.on_signed_in(identity)

    async def on_signed_in(self, identity: UserIdentity) -> UserProfile:
        profile = await self.users.ensure_profile(identity)
        seeded = await self.categories.seed_defaults()
        if seeded:
            logger.info("default_categories_seeded", user_id=identity.uid, count=seeded)
        return profile

    async def dashboard(self, now: Optional[datetime] = None) -> FinancialSummary:
        """Headline figures for the signed-in user."""
        now = now or datetime.now()
        return financial_summary(
            goals=await self.goals.list_goals(),
            incomes=await self.transactions.list_incomes(),
            expenses=await self.transactions.list_expenses(),
            contributions=await self.goals.list_contributions(),
            debts=await self.debts.list_debts(),
            debt_payments=await self.debts.list_payments(),
            now=now,
        )

    async def debts_overview(self, now: Optional[datetime] = None) -> DebtSummary:
        now = now or datetime.now()
        return debt_summary(
            await self.debts.list_debts(),
            await self.debts.list_payments(),
            now,
        )

    async def cash_flow_report(
        self,
        now: Optional[datetime] = None,
        months: Optional[int] = None,
    ) -> list[CashFlowPoint]:
        now = now or datetime.now()
        return cash_flow(
            await self.transactions.list_incomes(),
            await self.transactions.list_expenses(),
            await self.debts.list_payments(),
            now,
            months=months or get_settings().app.cash_flow_months,
        )

    async def income_distribution_report(
        self,
        now: Optional[datetime] = None,
    ) -> list[DistributionSlice]:
        now = now or datetime.now()
        return income_distribution(
            await self.transactions.list_incomes(),
            await self.goals.list_contributions(),
            await self.debts.list_payments(),
            await self.transactions.list_expenses(),
            now,
        )

    async def goal_performance_report(
        self,
        time_range: TimeRange = TimeRange.ALL_TIME,
        now: Optional[datetime] = None,
    ) -> list[GoalPerformancePoint]:
        now = now or datetime.now()
        return goal_performance(await self.goals.list_goals(), now, time_range)

    async def savings_tip(self) -> SavingsTip:
        """Personalized tip from active goals and contribution history."""
        return await self.tip_agent.get_tip(
            await self.goals.list_goals(status=GoalStatus.ACTIVE),
            await self.goals.list_contributions(),
        )


def create_app_components(
    backend: Optional[str] = None,
    auth: Optional[AuthProvider] = None,
    store: Optional[DocumentStore] = None,
) -> SavePlayApp:
    """
    Factory function to create all application components.

    Args:
        backend: "memory" or "google_sheets" (defaults to STORAGE_BACKEND).
                 Ignored when a store is passed in.
        auth: Authentication provider (a fresh session if None)
        store: Pre-built document store, mainly for tests

    Returns:
        The wired application
    """
    backend = backend or get_settings().storage.backend
    audit_logger = None

    if store is None and backend == "google_sheets":
        sheets_client = GoogleSheetsClient()
        store = GoogleSheetsDocumentStore(sheets_client)
        audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
    elif store is None:
        store = InMemoryDocumentStore()

    if audit_logger is None:
        audit_logger = AuditLogger()  # Local-only logging

    return SavePlayApp(
        store=store,
        auth=auth or SessionAuthProvider(),
        audit_logger=audit_logger,
    )
