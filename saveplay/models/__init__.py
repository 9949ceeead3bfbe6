"""
Data Models Package

This package contains all Pydantic models used in Save & Play.
Everything written to or read from the store conforms to these schemas.
"""

from saveplay.models.finance import (
    CashFlowPoint,
    Category,
    CategoryKind,
    Contribution,
    Currency,
    Debt,
    DebtPayment,
    DebtSummary,
    DistributionSlice,
    Expense,
    FinancialSummary,
    Goal,
    GoalPerformancePoint,
    GoalStatus,
    Income,
    Record,
    Transaction,
    UserIdentity,
    UserProfile,
    ValidationIssue,
)
from saveplay.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Finance models
    "CashFlowPoint",
    "Category",
    "CategoryKind",
    "Contribution",
    "Currency",
    "Debt",
    "DebtPayment",
    "DebtSummary",
    "DistributionSlice",
    "Expense",
    "FinancialSummary",
    "Goal",
    "GoalPerformancePoint",
    "GoalStatus",
    "Income",
    "Record",
    "Transaction",
    "UserIdentity",
    "UserProfile",
    "ValidationIssue",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
