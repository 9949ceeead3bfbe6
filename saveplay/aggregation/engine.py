"""
Aggregation Engine

Pure functions over in-memory collections. Nothing here reads the store
or the clock: callers pass the records and `now` explicitly, so every
figure on the dashboard can be recomputed and tested in isolation.

All amounts are canonical (USD) Decimals.

DESIGN DECISION: The available balance subtracts the monthly instalment of
every debt that has not been paid yet this calendar month. Money already
promised to a creditor is not "available", even before it leaves.
"""

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Iterable, Optional, TypeVar, Union

from saveplay.models.finance import Debt, DebtPayment, Goal

DateLike = Union[date, datetime]
R = TypeVar("R")

ZERO = Decimal("0")


# =============================================================================
# DATE PREDICATES
# =============================================================================

def is_same_month(value: DateLike, reference: DateLike) -> bool:
    """Same calendar month of the same year."""
    return value.year == reference.year and value.month == reference.month


def is_same_day(value: DateLike, reference: DateLike) -> bool:
    return (value.year, value.month, value.day) == (reference.year, reference.month, reference.day)


def in_range(value: DateLike, start: DateLike, end: DateLike) -> bool:
    """Inclusive on both ends. Plain dates compare as whole days."""
    if not isinstance(start, datetime) or not isinstance(end, datetime):
        value = value.date() if isinstance(value, datetime) else value
        start = start.date() if isinstance(start, datetime) else start
        end = end.date() if isinstance(end, datetime) else end
    elif not isinstance(value, datetime):
        value = datetime.combine(value, datetime.min.time())
    return start <= value <= end


def month_start(value: DateLike, offset: int = 0) -> date:
    """First day of the month `offset` months away from `value`'s month."""
    index = value.year * 12 + (value.month - 1) + offset
    return date(index // 12, index % 12 + 1, 1)


# =============================================================================
# SUMS
# =============================================================================

def total(records: Iterable) -> Decimal:
    """Sum of the `amount` of every record."""
    return sum((record.amount for record in records), ZERO)


def period_sum(records: Iterable[R], predicate: Callable[[R], bool]) -> Decimal:
    """Sum of `amount` over the records the predicate accepts."""
    return total(record for record in records if predicate(record))


def debts_paid_in_month(debt_payments: Iterable[DebtPayment], now: DateLike) -> set[str]:
    """Ids of debts with at least one payment in `now`'s calendar month."""
    return {
        payment.debt_id for payment in debt_payments
        if is_same_month(payment.date, now)
    }


def monthly_debt_commitment(
    debts: Iterable[Debt],
    debt_payments: Iterable[DebtPayment],
    now: DateLike,
) -> Decimal:
    """Instalments still owed this month: debts with no payment this month."""
    paid = debts_paid_in_month(debt_payments, now)
    return sum(
        (debt.monthly_payment for debt in debts if debt.id not in paid),
        ZERO,
    )


def available_balance(
    incomes: Iterable,
    contributions: Iterable,
    debt_payments: Iterable[DebtPayment],
    expenses: Iterable,
    debts: Iterable[Debt],
    now: DateLike,
) -> Decimal:
    """
    All-time income minus everything spent, saved or paid, minus the
    instalments still owed this month.

    May be negative.
    """
    debt_payments = list(debt_payments)
    outgoing = total(contributions) + total(debt_payments) + total(expenses)
    return total(incomes) - outgoing - monthly_debt_commitment(debts, debt_payments, now)


def total_debt_load(debts: Iterable[Debt]) -> Decimal:
    """What is still owed across all debts (overpaid debts count as zero)."""
    return sum((debt.remaining_amount for debt in debts), ZERO)


def savings_percentage(goals: Iterable[Goal], incomes: Iterable) -> Decimal:
    """Share of all-time income sitting in goals, as a percentage."""
    income = total(incomes)
    if income <= 0:
        return ZERO
    saved = sum((goal.saved_amount for goal in goals), ZERO)
    return saved / income * 100


# =============================================================================
# PROGRESS
# =============================================================================

def _progress_percent(done: Decimal, target: Decimal) -> int:
    if not target:
        return 0
    percent = (Decimal(done) / Decimal(target) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return max(0, min(int(percent), 100))


def goal_progress_percent(saved: Decimal, total_amount: Decimal) -> int:
    """Whole-number progress 0..100 (0 when the target is 0)."""
    return _progress_percent(saved, total_amount)


def debt_progress_percent(paid: Decimal, total_amount: Decimal) -> int:
    """Whole-number progress 0..100 (0 when the total is 0)."""
    return _progress_percent(paid, total_amount)


# =============================================================================
# DUE DATES
# =============================================================================

def next_due_payment(
    debts: Iterable[Debt],
    debt_payments: Iterable[DebtPayment],
    today: DateLike,
) -> Optional[Debt]:
    """
    The unpaid debt due soonest for the rest of this month.

    Considers debts whose due day has not passed and that have no
    payment this month. Ties on the due day go to the smallest id.
    """
    paid = debts_paid_in_month(debt_payments, today)
    upcoming = [
        debt for debt in debts
        if debt.due_date >= today.day and debt.id not in paid
    ]
    return min(upcoming, key=lambda debt: (debt.due_date, debt.id), default=None)
