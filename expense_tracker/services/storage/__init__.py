"""
Storage Services Package

Provides the abstract storage interface, its exceptions and two
implementations: SQLite (durable) and in-memory.
"""

from expense_tracker.services.storage.interface import (
    BudgetSnapshot,
    ExpenseStorageInterface,
    InvalidAmountError,
    PersistenceError,
    StorageConnectionError,
    StorageError,
    TransactionSnapshot,
)
from expense_tracker.services.storage.memory import InMemoryExpenseStorage
from expense_tracker.services.storage.sqlite import SQLiteDatabase, SQLiteExpenseStorage

__all__ = [
    # Interface
    "BudgetSnapshot",
    "ExpenseStorageInterface",
    "TransactionSnapshot",
    # Exceptions
    "InvalidAmountError",
    "PersistenceError",
    "StorageConnectionError",
    "StorageError",
    # Implementations
    "InMemoryExpenseStorage",
    "SQLiteDatabase",
    "SQLiteExpenseStorage",
]
