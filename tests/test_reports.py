"""
Tests for report builders.

Test strategy:
1. Every report is built from plain records and a fixed `now`
2. Month windows are calendar months, oldest first
3. Empty inputs give empty (not failing) reports
"""

from datetime import date, datetime, timedelta
from decimal import Decimal

from saveplay.aggregation import (
    TimeRange,
    cash_flow,
    debt_summary,
    financial_summary,
    goal_performance,
    income_distribution,
)
from saveplay.models.finance import (
    Contribution,
    Debt,
    DebtPayment,
    Expense,
    Goal,
    GoalStatus,
    Income,
)


NOW = datetime(2026, 5, 10, 12, 0)
LAST_MONTH = datetime(2026, 4, 15)


def income(amount, when=NOW):
    return Income(type="Salario", amount=Decimal(amount), original_amount=Decimal(amount), date=when)


def expense(amount, when=NOW):
    return Expense(type="Comida", amount=Decimal(amount), original_amount=Decimal(amount), date=when)


def contribution(amount, when=NOW):
    return Contribution(goal_id="g1", goal_name="Laptop", amount=Decimal(amount), date=when)


def payment(amount, when=NOW, debt_id="d1"):
    return DebtPayment(debt_id=debt_id, debt_name="Card", amount=Decimal(amount), date=when)


def goal(goal_id, created_at, status=GoalStatus.ACTIVE, saved="0"):
    return Goal(
        id=goal_id,
        name=f"Goal {goal_id}",
        emoji="🎯",
        total_amount=Decimal("100"),
        saved_amount=Decimal(saved),
        deadline=date(2027, 1, 1),
        status=status,
        created_at=created_at,
    )


class TestFinancialSummary:
    """Tests for the dashboard summary."""

    def test_summary(self):
        """Test every headline figure."""
        debts = [Debt(
            id="d1",
            name="Card",
            total_amount=Decimal("1000"),
            paid_amount=Decimal("100"),
            monthly_payment=Decimal("150"),
            due_date=20,
        )]

        summary = financial_summary(
            goals=[goal("g1", NOW, saved="200")],
            incomes=[income("1000"), income("500", LAST_MONTH)],
            expenses=[expense("100"), expense("40", LAST_MONTH)],
            contributions=[contribution("200")],
            debts=debts,
            debt_payments=[payment("100", LAST_MONTH)],
            now=NOW,
        )

        assert summary.income_this_month == Decimal("1000")
        assert summary.expenses_this_month == Decimal("100")
        assert summary.total_saved == Decimal("200")
        assert summary.total_debt == Decimal("900")
        assert summary.monthly_debt_commitment == Decimal("150")
        # 1500 - 200 - 100 - 140 - 150
        assert summary.available_balance == Decimal("910")
        assert round(summary.savings_percentage, 2) == Decimal("13.33")

    def test_empty_summary(self):
        """Test a new user's dashboard is all zeros."""
        summary = financial_summary([], [], [], [], [], [], NOW)

        assert summary.available_balance == Decimal("0")
        assert summary.savings_percentage == Decimal("0")


class TestDebtSummary:
    """Tests for the debts page summary."""

    def test_debt_summary(self):
        """Test load, commitment and next due debt."""
        debts = [
            Debt(id="d1", name="Card", total_amount=Decimal("500"),
                 monthly_payment=Decimal("100"), due_date=15),
            Debt(id="d2", name="Loan", total_amount=Decimal("900"),
                 paid_amount=Decimal("300"), monthly_payment=Decimal("60"), due_date=12),
        ]

        summary = debt_summary(debts, [payment("60", debt_id="d2")], NOW)

        assert summary.total_debt_load == Decimal("1100")
        assert summary.monthly_commitment == Decimal("100")
        assert summary.next_due_payment.id == "d1"


class TestCashFlow:
    """Tests for the monthly cash flow series."""

    def test_six_months_oldest_first(self):
        """Test window shape and per-month sums."""
        points = cash_flow(
            incomes=[income("1000"), income("800", LAST_MONTH), income("5", datetime(2025, 5, 1))],
            expenses=[expense("300"), expense("50", datetime(2025, 12, 31))],
            debt_payments=[payment("100", LAST_MONTH)],
            now=NOW,
        )

        assert [p.month for p in points] == [
            date(2025, 12, 1),
            date(2026, 1, 1),
            date(2026, 2, 1),
            date(2026, 3, 1),
            date(2026, 4, 1),
            date(2026, 5, 1),
        ]
        assert points[0].expenses == Decimal("50")
        assert points[-2].income == Decimal("800")
        assert points[-2].debt_payments == Decimal("100")
        assert points[-1].income == Decimal("1000")
        assert points[-1].expenses == Decimal("300")
        assert sum(p.income for p in points) == Decimal("1800")

    def test_custom_window(self):
        """Test a different number of months."""
        points = cash_flow([], [], [], NOW, months=3)

        assert [p.label for p in points] == ["Mar 26", "Apr 26", "May 26"]


class TestIncomeDistribution:
    """Tests for last month's income breakdown."""

    def test_distribution(self):
        """Test slices for last calendar month only."""
        slices = income_distribution(
            incomes=[income("1000", LAST_MONTH), income("999")],
            contributions=[contribution("200", LAST_MONTH)],
            debt_payments=[payment("100", LAST_MONTH)],
            expenses=[expense("300", LAST_MONTH), expense("50")],
            now=NOW,
        )

        assert {s.category: s.amount for s in slices} == {
            "savings": Decimal("200"),
            "debt": Decimal("100"),
            "expenses": Decimal("300"),
            "available": Decimal("400"),
        }

    def test_overspent_month_has_no_available_slice(self):
        """Test available is floored at zero and empty slices dropped."""
        slices = income_distribution(
            incomes=[income("100", LAST_MONTH)],
            contributions=[],
            debt_payments=[],
            expenses=[expense("300", LAST_MONTH)],
            now=NOW,
        )

        assert [s.category for s in slices] == ["expenses"]


class TestGoalPerformance:
    """Tests for the goal performance chart."""

    def test_only_active_goals(self):
        """Test archived goals are left out."""
        goals = [
            goal("g1", NOW),
            goal("g2", NOW, status=GoalStatus.ARCHIVED, saved="100"),
        ]

        points = goal_performance(goals, NOW)

        assert [p.goal_id for p in points] == ["g1"]
        assert points[0].label == "🎯 Goal g1"

    def test_at_most_five(self):
        """Test the chart is capped at five goals."""
        goals = [goal(f"g{i}", NOW) for i in range(8)]

        assert len(goal_performance(goals, NOW)) == 5

    def test_time_range_filters_by_creation(self):
        """Test only goals created in the window are shown."""
        goals = [
            goal("recent", NOW - timedelta(days=3)),
            goal("old", NOW - timedelta(days=200)),
        ]

        points = goal_performance(goals, NOW, TimeRange.LAST_30_DAYS)

        assert [p.goal_id for p in points] == ["recent"]

    def test_empty_window_falls_back_to_all_active(self):
        """Test an empty window shows every active goal instead."""
        goals = [goal("old", datetime(2025, 1, 1))]

        points = goal_performance(goals, NOW, TimeRange.THIS_YEAR)

        assert [p.goal_id for p in points] == ["old"]
