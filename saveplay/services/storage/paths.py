"""
Store path layout.

Every per-user record lives at `{collection}/{user_id}/{record_id}`;
user profiles live at `users/{uid}`.
"""

from uuid import uuid4

GOALS = "goals"
CONTRIBUTIONS = "contributions"
INCOMES = "incomes"
EXPENSES = "expenses"
DEBTS = "debts"
DEBT_PAYMENTS = "debtPayments"
INCOME_CATEGORIES = "incomeCategories"
EXPENSE_CATEGORIES = "expenseCategories"
USERS = "users"

COLLECTIONS = (
    GOALS,
    CONTRIBUTIONS,
    INCOMES,
    EXPENSES,
    DEBTS,
    DEBT_PAYMENTS,
    INCOME_CATEGORIES,
    EXPENSE_CATEGORIES,
    USERS,
)


def new_record_id() -> str:
    """Fresh record key, used by push and by multi-path writes that create records."""
    return uuid4().hex


def collection_path(collection: str, user_id: str) -> str:
    return f"{collection}/{user_id}"


def record_path(collection: str, user_id: str, record_id: str) -> str:
    return f"{collection}/{user_id}/{record_id}"


def user_path(uid: str) -> str:
    return f"{USERS}/{uid}"


def split_path(path: str) -> list[str]:
    """
    Split a path into its segments.

    Raises:
        ValueError: On an empty path or an unknown collection
    """
    parts = [part for part in path.strip("/").split("/") if part]
    if not parts or parts[0] not in COLLECTIONS:
        raise ValueError(f"Invalid store path: {path!r}")
    if len(parts) > 3 or (parts[0] == USERS and len(parts) > 2):
        raise ValueError(f"Store path too deep: {path!r}")
    return parts


def is_record_path(path: str) -> bool:
    """True for a path that names one record rather than a collection."""
    parts = split_path(path)
    if parts[0] == USERS:
        return len(parts) == 2
    return len(parts) == 3


def parent_path(path: str) -> str:
    return path.strip("/").rsplit("/", 1)[0]


def touches(watched: str, written: str) -> bool:
    """
    Whether a write at `written` changes what a watcher of `watched` sees.

    A watcher sees writes at its own path, below it, and above it.
    """
    watched = watched.strip("/")
    written = written.strip("/")
    return (
        watched == written
        or written.startswith(watched + "/")
        or watched.startswith(written + "/")
    )
