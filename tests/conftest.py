"""Shared fixtures for the expense tracker tests."""

from datetime import date
from decimal import Decimal

import pytest
import pytest_asyncio

from expense_tracker.audit import AuditLogger
from expense_tracker.models.audit import AuditEvent
from expense_tracker.models.expense import ExpenseCategory, Period, Transaction
from expense_tracker.services.storage import InMemoryExpenseStorage, SQLiteExpenseStorage


class RecordingAuditLogger(AuditLogger):
    """AuditLogger that also keeps every event for assertions."""
    
    def __init__(self):
        super().__init__()
        self.events: list[AuditEvent] = []
    
    def log(self, event: AuditEvent) -> AuditEvent:
        self.events.append(event)
        return super().log(event)
    
    def of_type(self, event_type) -> list[AuditEvent]:
        return [e for e in self.events if e.event_type == event_type]


def make_transaction(
    category: ExpenseCategory = ExpenseCategory.MEAL,
    amount: str = "10.00",
    on: date = date(2024, 3, 5),
    description: str = "",
    receipt_ref=None,
    id=None,
) -> Transaction:
    return Transaction(
        id=id,
        category=category,
        amount=Decimal(amount),
        description=description,
        date=on,
        receipt_ref=receipt_ref,
    )


@pytest.fixture
def march_2024() -> Period:
    return Period(month=3, year=2024)


@pytest.fixture
def audit_logger() -> RecordingAuditLogger:
    return RecordingAuditLogger()


@pytest_asyncio.fixture
async def sqlite_storage(tmp_path, audit_logger):
    storage = SQLiteExpenseStorage.from_path(str(tmp_path / "expenses.db"), audit_logger=audit_logger)
    await storage.open()
    yield storage
    await storage.close()


@pytest_asyncio.fixture
async def memory_storage(audit_logger):
    storage = InMemoryExpenseStorage(audit_logger=audit_logger)
    await storage.open()
    yield storage
    await storage.close()


@pytest_asyncio.fixture(params=["sqlite", "memory"])
async def storage(request, tmp_path, audit_logger):
    """Each storage backend in turn; both must honour the same contract."""
    if request.param == "sqlite":
        storage = SQLiteExpenseStorage.from_path(str(tmp_path / "expenses.db"), audit_logger=audit_logger)
    else:
        storage = InMemoryExpenseStorage(audit_logger=audit_logger)
    await storage.open()
    yield storage
    await storage.close()
