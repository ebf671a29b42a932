"""
Abstract Storage Interface

Every storage backend (SQLite, in-memory) implements this interface, so
the aggregator and the tracker never depend on a concrete backend.

Contract shared by all implementations:
- Mutations run one at a time, in submission order
- A mutation's effect is in the published snapshot before the awaited
  call returns
- A failed mutation raises and leaves the published snapshot untouched
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional

from expense_tracker.models.expense import Budget, Transaction
from expense_tracker.state import ObservableValue


TransactionSnapshot = tuple[Transaction, ...]
BudgetSnapshot = tuple[Budget, ...]


class ExpenseStorageInterface(ABC):
    """
    Abstract interface for transaction and budget storage.
    
    Snapshots are exposed as ObservableValue objects holding immutable
    tuples: transactions ordered by date descending (ties keep insertion
    order), budgets ordered by (period, category).
    """
    
    @property
    @abstractmethod
    def transactions(self) -> ObservableValue[TransactionSnapshot]:
        """Current list of all persisted transactions."""
    
    @property
    @abstractmethod
    def budgets(self) -> ObservableValue[BudgetSnapshot]:
        """Current list of all persisted budgets."""
    
    @abstractmethod
    async def open(self) -> None:
        """
        Prepare the backend and publish the initial snapshots.
        
        Raises:
            StorageConnectionError: If the backend cannot be opened
        """
    
    @abstractmethod
    async def close(self) -> None:
        """Release backend resources."""
    
    @abstractmethod
    async def create_transaction(self, candidate: Transaction) -> int:
        """
        Persist a new transaction.
        
        Args:
            candidate: The transaction to save; its id is ignored
            
        Returns:
            The newly assigned identifier
            
        Raises:
            InvalidAmountError: If the amount is not greater than zero
            PersistenceError: If the write fails
        """
    
    @abstractmethod
    async def update_transaction(self, record: Transaction) -> bool:
        """
        Replace the stored transaction with the same id.
        
        Returns:
            True if a transaction was replaced, False if none has that id
            
        Raises:
            InvalidAmountError: If the amount is not greater than zero
            PersistenceError: If the write fails
        """
    
    @abstractmethod
    async def delete_transaction(self, record: Transaction) -> bool:
        """
        Delete the stored transaction with the same id.
        
        Returns:
            True if a transaction was deleted, False if none has that id
            
        Raises:
            PersistenceError: If the write fails
        """
    
    @abstractmethod
    async def get_transaction_by_id(self, transaction_id: int) -> Optional[Transaction]:
        """
        Look up a transaction in storage (not in the snapshot).
        
        Returns:
            The transaction if found, None otherwise
        """
    
    @abstractmethod
    async def upsert_budget(self, candidate: Budget) -> None:
        """
        Insert a budget, or replace the amount of the existing budget with
        the same (category, period).
        
        Raises:
            PersistenceError: If the write fails
        """


def ensure_positive_amount(amount: Decimal) -> None:
    """Reject transaction amounts that are zero or negative."""
    if amount <= 0:
        raise InvalidAmountError(f"Transaction amount must be greater than zero, got {amount}")


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class PersistenceError(StorageError):
    """A durable storage operation failed; nothing was changed."""
    pass


class StorageConnectionError(StorageError):
    """Could not open the storage backend."""
    pass


class InvalidAmountError(ValueError):
    """A transaction amount is not greater than zero."""
    pass
