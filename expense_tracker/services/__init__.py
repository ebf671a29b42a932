"""Services package: persistence backends for the expense tracker."""

from expense_tracker.services.storage import (
    ExpenseStorageInterface,
    InMemoryExpenseStorage,
    SQLiteExpenseStorage,
)

__all__ = [
    "ExpenseStorageInterface",
    "InMemoryExpenseStorage",
    "SQLiteExpenseStorage",
]
