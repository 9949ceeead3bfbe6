"""
Input Validation

DESIGN DECISION: Every mutation validates its raw input before touching
the store. Validation collects ALL issues instead of stopping at the
first one, so a form can highlight every bad field at once.

Issues come in two severities:
- error: blocks the write (raised as ValidationError)
- warning: reported but allowed (e.g. a goal deadline in the past)

IMPORTANT: Validation NEVER silently fixes input. A non-positive amount
is rejected, not clamped.
"""

from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from saveplay.errors import ValidationError
from saveplay.models.finance import ValidationIssue


def as_decimal(value: Any) -> Optional[Decimal]:
    """
    Convert user input to Decimal without float artefacts.

    Returns None when the value is not a finite number.
    """
    if isinstance(value, bool) or value is None:
        return None
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not result.is_finite():
        return None
    return result


def as_date(value: date) -> date:
    # datetime is a date subclass but does not compare with plain dates
    return value.date() if isinstance(value, datetime) else value


def as_datetime(value: date) -> datetime:
    """Promote a plain date to midnight of that day."""
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time())


class InputValidator:
    """
    Validates raw service input.

    Each validate_* method returns the list of issues found; ensure_valid
    turns error-level issues into a ValidationError.
    """

    def __init__(self, today: Optional[date] = None):
        self._today = today

    @property
    def today(self) -> date:
        return self._today or date.today()

    def validate_name(
        self,
        value: Any,
        field: str = "name",
        max_length: int = 100,
    ) -> list[ValidationIssue]:
        label = field.replace('_', ' ').capitalize()
        if not isinstance(value, str) or not value.strip():
            return [ValidationIssue(
                field=field,
                issue_type="missing",
                message=f"{label} is required",
            )]
        if len(value.strip()) > max_length:
            return [ValidationIssue(
                field=field,
                issue_type="too_long",
                message=f"{label} must be at most {max_length} characters",
            )]
        return []

    def validate_positive_amount(self, value: Any, field: str = "amount") -> list[ValidationIssue]:
        amount = as_decimal(value)
        label = field.replace('_', ' ').capitalize()
        if amount is None:
            return [ValidationIssue(
                field=field,
                issue_type="invalid_format",
                message=f"{label} must be a number",
            )]
        if amount <= 0:
            return [ValidationIssue(
                field=field,
                issue_type="not_positive",
                message=f"{label} must be greater than zero",
            )]
        return []

    def validate_due_day(self, value: Any, field: str = "due_date") -> list[ValidationIssue]:
        if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 31:
            return [ValidationIssue(
                field=field,
                issue_type="out_of_range",
                message="Due date must be a day of the month between 1 and 31",
            )]
        return []

    def validate_description(self, value: Any, max_length: int = 500) -> list[ValidationIssue]:
        if value is not None and (not isinstance(value, str) or len(value) > max_length):
            return [ValidationIssue(
                field="description",
                issue_type="too_long",
                message=f"Description must be text of at most {max_length} characters",
            )]
        return []

    def validate_goal(
        self,
        name: Any,
        total_amount: Any,
        deadline: Any,
    ) -> list[ValidationIssue]:
        issues = []
        issues.extend(self.validate_name(name))
        issues.extend(self.validate_positive_amount(total_amount, "total_amount"))

        if not isinstance(deadline, date):
            issues.append(ValidationIssue(
                field="deadline",
                issue_type="missing",
                message="Deadline must be a date",
            ))
        elif as_date(deadline) < self.today:
            issues.append(ValidationIssue(
                field="deadline",
                issue_type="past_date",
                message=f"Deadline ({deadline}) is in the past",
                severity="warning",
            ))

        return issues

    def validate_debt(
        self,
        name: Any,
        total_amount: Any,
        monthly_payment: Any,
        due_date: Any,
    ) -> list[ValidationIssue]:
        issues = []
        issues.extend(self.validate_name(name))
        issues.extend(self.validate_positive_amount(total_amount, "total_amount"))
        issues.extend(self.validate_positive_amount(monthly_payment, "monthly_payment"))
        issues.extend(self.validate_due_day(due_date))

        total = as_decimal(total_amount)
        monthly = as_decimal(monthly_payment)
        if total and monthly and total > 0 and monthly > total:
            issues.append(ValidationIssue(
                field="monthly_payment",
                issue_type="suspicious_value",
                message="Monthly payment is larger than the whole debt",
                severity="warning",
            ))

        return issues

    def validate_transaction(
        self,
        category: Any,
        amount: Any,
        when: Any,
        description: Any = None,
    ) -> list[ValidationIssue]:
        issues = []
        issues.extend(self.validate_name(category, "type"))
        issues.extend(self.validate_positive_amount(amount))
        if not isinstance(when, date):
            issues.append(ValidationIssue(
                field="date",
                issue_type="missing",
                message="Date is required",
            ))
        issues.extend(self.validate_description(description))
        return issues

    @staticmethod
    def ensure_valid(issues: list[ValidationIssue]) -> list[ValidationIssue]:
        """
        Raise if any error-level issue exists.

        Returns the remaining warnings so callers can surface them.
        """
        errors = [issue for issue in issues if issue.severity == "error"]
        if errors:
            raise ValidationError(errors)
        return [issue for issue in issues if issue.severity != "error"]
