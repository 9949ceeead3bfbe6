"""
Save & Play - Source Package

The data and aggregation layer of a personal finance tracker: savings
goals, debts, incomes and expenses for a single signed-in user, plus
the summaries and reports computed from them.

DESIGN PRINCIPLES:
1. Every amount is stored in one canonical currency (USD)
2. Fail early, fail visibly
3. No silent corrections
4. Every write is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Save & Play Team"
