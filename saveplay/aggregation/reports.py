"""
Report Builders

Assemble the dashboard, debts and reports screens from the engine's
primitives. Like the engine, these are pure: records and `now` in,
report models out.
"""

from datetime import datetime, timedelta
from enum import Enum
from typing import Iterable, Optional

from saveplay.aggregation.engine import (
    ZERO,
    available_balance,
    is_same_month,
    month_start,
    monthly_debt_commitment,
    next_due_payment,
    period_sum,
    savings_percentage,
    total_debt_load,
)
from saveplay.models.finance import (
    CashFlowPoint,
    Debt,
    DebtPayment,
    DebtSummary,
    DistributionSlice,
    FinancialSummary,
    Goal,
    GoalPerformancePoint,
    GoalStatus,
)


GOAL_PERFORMANCE_LIMIT = 5


class TimeRange(str, Enum):
    """Windows offered by the goal performance chart."""
    LAST_30_DAYS = "last-30-days"
    LAST_3_MONTHS = "last-3-months"
    THIS_YEAR = "this-year"
    ALL_TIME = "all-time"


def financial_summary(
    goals: Iterable[Goal],
    incomes: Iterable,
    expenses: Iterable,
    contributions: Iterable,
    debts: Iterable[Debt],
    debt_payments: Iterable[DebtPayment],
    now: datetime,
) -> FinancialSummary:
    """Dashboard headline figures."""
    goals = list(goals)
    incomes = list(incomes)
    expenses = list(expenses)
    debts = list(debts)
    debt_payments = list(debt_payments)

    def this_month(record) -> bool:
        return is_same_month(record.date, now)

    return FinancialSummary(
        income_this_month=period_sum(incomes, this_month),
        expenses_this_month=period_sum(expenses, this_month),
        total_saved=sum((goal.saved_amount for goal in goals), ZERO),
        total_debt=total_debt_load(debts),
        savings_percentage=savings_percentage(goals, incomes),
        monthly_debt_commitment=monthly_debt_commitment(debts, debt_payments, now),
        available_balance=available_balance(
            incomes, contributions, debt_payments, expenses, debts, now
        ),
    )


def debt_summary(
    debts: Iterable[Debt],
    debt_payments: Iterable[DebtPayment],
    now: datetime,
) -> DebtSummary:
    debts = list(debts)
    debt_payments = list(debt_payments)
    return DebtSummary(
        total_debt_load=total_debt_load(debts),
        monthly_commitment=monthly_debt_commitment(debts, debt_payments, now),
        next_due_payment=next_due_payment(debts, debt_payments, now),
    )


def cash_flow(
    incomes: Iterable,
    expenses: Iterable,
    debt_payments: Iterable[DebtPayment],
    now: datetime,
    months: int = 6,
) -> list[CashFlowPoint]:
    """Income, expense and debt-payment totals per calendar month, oldest first."""
    incomes = list(incomes)
    expenses = list(expenses)
    debt_payments = list(debt_payments)

    points = []
    for offset in range(months - 1, -1, -1):
        month = month_start(now, -offset)

        def in_month(record, month=month) -> bool:
            return is_same_month(record.date, month)

        points.append(CashFlowPoint(
            month=month,
            income=period_sum(incomes, in_month),
            expenses=period_sum(expenses, in_month),
            debt_payments=period_sum(debt_payments, in_month),
        ))
    return points


def income_distribution(
    incomes: Iterable,
    contributions: Iterable,
    debt_payments: Iterable[DebtPayment],
    expenses: Iterable,
    now: datetime,
) -> list[DistributionSlice]:
    """
    Where last calendar month's income went.

    What was not saved, paid or spent is "available" (never negative).
    Empty slices are left out.
    """
    last_month = month_start(now, -1)

    def in_last_month(record) -> bool:
        return is_same_month(record.date, last_month)

    income = period_sum(incomes, in_last_month)
    savings = period_sum(contributions, in_last_month)
    debt = period_sum(debt_payments, in_last_month)
    spent = period_sum(expenses, in_last_month)
    available = max(income - savings - debt - spent, ZERO)

    slices = [
        DistributionSlice(category="savings", amount=savings),
        DistributionSlice(category="debt", amount=debt),
        DistributionSlice(category="expenses", amount=spent),
        DistributionSlice(category="available", amount=available),
    ]
    return [s for s in slices if s.amount > 0]


def _range_start(time_range: TimeRange, now: datetime) -> Optional[datetime]:
    if time_range == TimeRange.LAST_30_DAYS:
        return now - timedelta(days=30)
    if time_range == TimeRange.LAST_3_MONTHS:
        return now - timedelta(days=90)
    if time_range == TimeRange.THIS_YEAR:
        return datetime(now.year, 1, 1)
    return None


def goal_performance(
    goals: Iterable[Goal],
    now: datetime,
    time_range: TimeRange = TimeRange.ALL_TIME,
) -> list[GoalPerformancePoint]:
    """
    Target vs saved for up to five active goals created in the window.

    Falls back to all active goals when none were created in the window.
    """
    active = [goal for goal in goals if goal.status == GoalStatus.ACTIVE]
    start = _range_start(TimeRange(time_range), now)

    selected = active
    if start is not None:
        selected = [goal for goal in active if goal.created_at > start] or active

    return [
        GoalPerformancePoint(
            goal_id=goal.id,
            label=f"{goal.emoji} {goal.name}",
            total=goal.total_amount,
            saved=goal.saved_amount,
        )
        for goal in selected[:GOAL_PERFORMANCE_LIMIT]
    ]

