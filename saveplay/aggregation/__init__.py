"""
Aggregation Package

Pure computations behind every derived figure the app shows:
balances, progress, due dates and the report series.
"""

from saveplay.aggregation.engine import (
    available_balance,
    debt_progress_percent,
    goal_progress_percent,
    in_range,
    is_same_day,
    is_same_month,
    month_start,
    monthly_debt_commitment,
    next_due_payment,
    period_sum,
    savings_percentage,
    total_debt_load,
)
from saveplay.aggregation.reports import (
    TimeRange,
    cash_flow,
    debt_summary,
    financial_summary,
    goal_performance,
    income_distribution,
)

__all__ = [
    # Engine
    "available_balance",
    "debt_progress_percent",
    "goal_progress_percent",
    "in_range",
    "is_same_day",
    "is_same_month",
    "month_start",
    "monthly_debt_commitment",
    "next_due_payment",
    "period_sum",
    "savings_percentage",
    "total_debt_load",
    # Reports
    "TimeRange",
    "cash_flow",
    "debt_summary",
    "financial_summary",
    "goal_performance",
    "income_distribution",
]
