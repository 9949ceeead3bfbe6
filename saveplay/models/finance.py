"""
Core Data Models for Save & Play

These models define the strict schemas for every record the app stores.
They are designed to:
1. Enforce type and range safety at runtime
2. Provide clear validation error messages
3. Round-trip through the document store as flat JSON documents

DESIGN DECISION: Money is Decimal, always in the canonical currency (USD).
The amount the user actually typed is kept next to it on incomes and
expenses (original_amount + currency) so nothing is lost by conversion.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class Currency(str, Enum):
    """Currencies a user can enter amounts in or display amounts as."""
    USD = "USD"
    DOP = "DOP"


class GoalStatus(str, Enum):
    """
    Savings goal status.

    CRITICAL: ACTIVE -> ARCHIVED is one-way. A goal is archived by the
    contribution that first brings it to its target and never reopens.
    """
    ACTIVE = "active"
    ARCHIVED = "archived"


class CategoryKind(str, Enum):
    """Categories are partitioned into income and expense lists."""
    INCOME = "income"
    EXPENSE = "expense"


# =============================================================================
# BASE RECORD
# =============================================================================

class Record(BaseModel):
    """
    Base for every stored record.

    The id is the record key in the store; it is not part of the stored
    document itself.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(
        default="",
        description="Record key assigned by the store"
    )

    def to_document(self) -> dict[str, Any]:
        """Flat JSON-compatible document for the store (without the id)."""
        return self.model_dump(mode="json", exclude={"id"})

    @classmethod
    def from_document(cls, document: dict[str, Any]):
        """Build a model from a store document that carries its id."""
        return cls.model_validate(document)


# =============================================================================
# GOALS
# =============================================================================

class Goal(Record):
    """
    A savings goal.

    saved_amount only ever grows (contributions are the sole writer) and
    the goal is archived the first time it reaches total_amount.
    """

    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Goal name"
    )
    emoji: str = Field(
        default="🎯",
        max_length=16,
    )
    total_amount: Decimal = Field(
        ...,
        gt=0,
        description="Target amount in USD"
    )
    saved_amount: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Amount saved so far in USD"
    )
    deadline: date
    status: GoalStatus = Field(
        default=GoalStatus.ACTIVE,
    )
    created_at: datetime = Field(
        default_factory=datetime.now,
    )

    @property
    def is_archived(self) -> bool:
        return self.status == GoalStatus.ARCHIVED

    @property
    def is_complete(self) -> bool:
        return self.saved_amount >= self.total_amount

    @property
    def remaining_amount(self) -> Decimal:
        return max(self.total_amount - self.saved_amount, Decimal("0"))


class Contribution(Record):
    """
    Money put towards a goal.

    goal_name is a snapshot taken at write time, not a live reference.
    """

    goal_id: str = Field(..., min_length=1)
    goal_name: str = Field(
        ...,
        description="Goal name at the time of the contribution"
    )
    amount: Decimal = Field(..., gt=0)
    date: datetime = Field(default_factory=datetime.now)


# =============================================================================
# DEBTS
# =============================================================================

class Debt(Record):
    """
    A debt being paid off in monthly instalments.

    Debts have no status: paid_amount may reach or pass total_amount and
    the debt stays listed and payable.
    """

    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
    )
    emoji: str = Field(
        default="💳",
        max_length=16,
    )
    total_amount: Decimal = Field(..., gt=0)
    paid_amount: Decimal = Field(
        default=Decimal("0"),
        ge=0,
    )
    monthly_payment: Decimal = Field(..., gt=0)
    due_date: int = Field(
        ...,
        ge=1,
        le=31,
        description="Day of the month the instalment is due"
    )
    created_at: datetime = Field(default_factory=datetime.now)

    @property
    def remaining_amount(self) -> Decimal:
        return max(self.total_amount - self.paid_amount, Decimal("0"))


class DebtPayment(Record):
    """A payment made against a debt (debt_name is a write-time snapshot)."""

    debt_id: str = Field(..., min_length=1)
    debt_name: str
    amount: Decimal = Field(..., gt=0)
    date: datetime = Field(default_factory=datetime.now)


# =============================================================================
# INCOME / EXPENSES
# =============================================================================

class Transaction(Record):
    """
    Shared shape of incomes and expenses.

    `type` holds a category *name*; it is a soft reference that the
    store does not enforce.
    """

    type: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Category name"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Amount in USD"
    )
    original_amount: Decimal = Field(
        ...,
        gt=0,
        description="Amount as entered by the user"
    )
    currency: Currency = Field(
        default=Currency.USD,
        description="Currency the user entered the amount in"
    )
    date: datetime
    description: Optional[str] = Field(
        default=None,
        max_length=500,
    )
    created_at: datetime = Field(default_factory=datetime.now)

    @model_validator(mode='after')
    def validate_original_amount(self) -> 'Transaction':
        """A USD entry is stored as typed."""
        if self.currency == Currency.USD and self.amount != self.original_amount:
            raise ValueError("USD amounts must equal their original amount")
        return self


class Income(Transaction):
    pass


class Expense(Transaction):
    pass


# =============================================================================
# CATEGORIES & USERS
# =============================================================================

class Category(Record):
    name: str = Field(..., min_length=1, max_length=50)
    emoji: str = Field(default="🏷️", max_length=16)
    order: int = Field(default=0, ge=0)


class UserIdentity(BaseModel):
    """Who is signed in, as reported by the authentication collaborator."""

    uid: str = Field(..., min_length=1)
    email: Optional[str] = None
    display_name: Optional[str] = None


class UserProfile(Record):
    """Profile document kept at users/{uid}."""

    email: Optional[str] = None
    display_name: str
    created_at: datetime = Field(default_factory=datetime.now)
    last_login: datetime = Field(default_factory=datetime.now)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'out_of_range', 'not_positive')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
    )


# =============================================================================
# REPORT MODELS
# =============================================================================

class FinancialSummary(BaseModel):
    """Headline numbers for the dashboard."""

    income_this_month: Decimal
    expenses_this_month: Decimal
    total_saved: Decimal
    total_debt: Decimal
    savings_percentage: Decimal
    monthly_debt_commitment: Decimal
    available_balance: Decimal


class DebtSummary(BaseModel):
    """Headline numbers for the debts page."""

    total_debt_load: Decimal
    monthly_commitment: Decimal
    next_due_payment: Optional[Debt] = None


class CashFlowPoint(BaseModel):
    """Totals for one calendar month."""

    month: date = Field(
        ...,
        description="First day of the month"
    )
    income: Decimal
    expenses: Decimal
    debt_payments: Decimal

    @property
    def label(self) -> str:
        return self.month.strftime("%b %y")


class DistributionSlice(BaseModel):
    """Where last month's income went."""

    category: str = Field(
        ...,
        pattern="^(savings|debt|expenses|available)$",
    )
    amount: Decimal


class GoalPerformancePoint(BaseModel):
    """Target vs actual savings for one active goal."""

    goal_id: str
    label: str
    total: Decimal
    saved: Decimal
