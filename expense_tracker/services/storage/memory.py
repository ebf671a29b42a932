"""
In-Memory Storage Implementation

Same contract as the SQLite storage without durability. Used for
prototyping a presentation layer and as the reference model in tests.
"""

import asyncio
import itertools
from typing import Optional

from expense_tracker.audit import AuditLogger
from expense_tracker.models.expense import Budget, Transaction
from expense_tracker.services.storage.interface import (
    BudgetSnapshot,
    ExpenseStorageInterface,
    TransactionSnapshot,
    ensure_positive_amount,
)
from expense_tracker.state import ObservableValue


def sort_transactions(records) -> TransactionSnapshot:
    """Date descending; equal dates keep their relative order."""
    return tuple(sorted(records, key=lambda t: t.date, reverse=True))


def sort_budgets(records) -> BudgetSnapshot:
    return tuple(sorted(records, key=lambda b: (b.period.key, b.category.value)))


class InMemoryExpenseStorage(ExpenseStorageInterface):
    """Keeps records in insertion order in plain lists."""
    
    def __init__(self, audit_logger: Optional[AuditLogger] = None):
        self._audit = audit_logger or AuditLogger()
        self._ids = itertools.count(1)
        self._records: list[Transaction] = []
        self._budget_rows: dict[tuple, Budget] = {}
        self._write_lock = asyncio.Lock()
        self._transactions: ObservableValue[TransactionSnapshot] = ObservableValue((), name="transactions")
        self._budgets: ObservableValue[BudgetSnapshot] = ObservableValue((), name="budgets")
    
    @property
    def transactions(self) -> ObservableValue[TransactionSnapshot]:
        return self._transactions
    
    @property
    def budgets(self) -> ObservableValue[BudgetSnapshot]:
        return self._budgets
    
    async def open(self) -> None:
        self._audit.log_store_opened("memory", len(self._records), len(self._budget_rows))
    
    async def close(self) -> None:
        self._audit.log_store_closed("memory")
    
    async def create_transaction(self, candidate: Transaction) -> int:
        ensure_positive_amount(candidate.amount)
        async with self._write_lock:
            new_id = next(self._ids)
            self._records.append(candidate.model_copy(update={"id": new_id}))
            self._transactions.publish(sort_transactions(self._records))
        self._audit.log_transaction_created(new_id, candidate.category.value, str(candidate.amount))
        return new_id
    
    async def update_transaction(self, record: Transaction) -> bool:
        ensure_positive_amount(record.amount)
        async with self._write_lock:
            for index, existing in enumerate(self._records):
                if existing.id == record.id:
                    self._records[index] = record
                    self._transactions.publish(sort_transactions(self._records))
                    break
            else:
                self._audit.log_transaction_not_found(record.id, "update")
                return False
        self._audit.log_transaction_updated(record.id, record.category.value, str(record.amount))
        return True
    
    async def delete_transaction(self, record: Transaction) -> bool:
        async with self._write_lock:
            remaining = [t for t in self._records if t.id != record.id]
            if len(remaining) == len(self._records):
                self._audit.log_transaction_not_found(record.id, "delete")
                return False
            self._records = remaining
            self._transactions.publish(sort_transactions(self._records))
        self._audit.log_transaction_deleted(record.id)
        return True
    
    async def get_transaction_by_id(self, transaction_id: int) -> Optional[Transaction]:
        for record in self._records:
            if record.id == transaction_id:
                return record
        return None
    
    async def upsert_budget(self, candidate: Budget) -> None:
        async with self._write_lock:
            self._budget_rows[candidate.key] = candidate
            self._budgets.publish(sort_budgets(self._budget_rows.values()))
        self._audit.log_budget_upserted(
            candidate.category.value, candidate.period.key, str(candidate.amount)
        )
