"""
Domain Mutation Services

Every write to a user's finances goes through one of these services.
"""

from saveplay.domain.base import DomainService
from saveplay.domain.categories import (
    DEFAULT_EXPENSE_CATEGORIES,
    DEFAULT_INCOME_CATEGORIES,
    CategoryService,
)
from saveplay.domain.debts import DebtService
from saveplay.domain.goals import GoalService
from saveplay.domain.transactions import TransactionService
from saveplay.domain.users import UserService

__all__ = [
    "CategoryService",
    "DEFAULT_EXPENSE_CATEGORIES",
    "DEFAULT_INCOME_CATEGORIES",
    "DebtService",
    "DomainService",
    "GoalService",
    "TransactionService",
    "UserService",
]
