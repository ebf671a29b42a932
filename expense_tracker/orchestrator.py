"""
Main Orchestrator for the Expense Tracker

Ties the store, the aggregator and the validator together behind one
facade that a presentation layer drives:

1. Mutations: validate → store (write + republish) → aggregator recomputes
2. Navigation: select/next/previous period → aggregator recomputes
3. Reads: observables for snapshots and derived views

The store is the single source of truth. The facade holds no state of
its own besides references to its collaborators.
"""

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from expense_tracker.aggregation import SpendingAggregator
from expense_tracker.audit import AuditLogger
from expense_tracker.config import Settings, get_settings
from expense_tracker.models.expense import (
    Budget,
    CategoryBreakdown,
    ExpenseCategory,
    Period,
    PeriodSummary,
    Transaction,
)
from expense_tracker.services.storage import (
    BudgetSnapshot,
    ExpenseStorageInterface,
    InMemoryExpenseStorage,
    SQLiteDatabase,
    SQLiteExpenseStorage,
    TransactionSnapshot,
)
from expense_tracker.state import ObservableValue
from expense_tracker.validation import ExpenseValidationError, ExpenseValidator


AmountLike = Union[Decimal, int, float, str]


def to_amount(value: AmountLike) -> Decimal:
    """
    Convert user input to a Decimal amount.
    
    Floats go through str() so 15.1 becomes Decimal("15.1"), not its
    binary expansion.
    
    Raises:
        ValueError: If the value is not a number
    """
    try:
        result = Decimal(str(value).strip())
    except InvalidOperation as e:
        raise ValueError(f"Not a valid amount: {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"Not a valid amount: {value!r}")
    return result


class ExpenseTracker:
    """
    Facade over store, aggregator and validator.
    
    Every mutation returns only after the store has committed and the
    new summary has been published.
    """
    
    def __init__(
        self,
        storage: ExpenseStorageInterface,
        validator: Optional[ExpenseValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        period: Optional[Period] = None,
    ):
        self._storage = storage
        self._validator = validator or ExpenseValidator()
        self._audit_logger = audit_logger or AuditLogger()
        self._aggregator = SpendingAggregator(
            transactions=storage.transactions,
            budgets=storage.budgets,
            period=period,
        )
    
    # -------------------------------------------------------------------------
    # Observables
    # -------------------------------------------------------------------------
    
    @property
    def storage(self) -> ExpenseStorageInterface:
        return self._storage
    
    @property
    def transactions(self) -> ObservableValue[TransactionSnapshot]:
        """All transactions, most recent first."""
        return self._storage.transactions
    
    @property
    def budgets(self) -> ObservableValue[BudgetSnapshot]:
        return self._storage.budgets
    
    @property
    def current_period(self) -> ObservableValue[Period]:
        return self._aggregator.period
    
    @property
    def period_transactions(self) -> ObservableValue[tuple[Transaction, ...]]:
        return self._aggregator.period_transactions
    
    @property
    def period_budgets(self) -> ObservableValue[tuple[Budget, ...]]:
        return self._aggregator.period_budgets
    
    @property
    def summary(self) -> ObservableValue[PeriodSummary]:
        return self._aggregator.summary
    
    @property
    def breakdown(self) -> ObservableValue[tuple[CategoryBreakdown, ...]]:
        return self._aggregator.breakdown
    
    # -------------------------------------------------------------------------
    # Period navigation
    # -------------------------------------------------------------------------
    
    def select_period(self, period: Period) -> None:
        self._aggregator.select_period(period)
    
    def next_period(self) -> Period:
        return self._aggregator.next_period()
    
    def previous_period(self) -> Period:
        return self._aggregator.previous_period()
    
    # -------------------------------------------------------------------------
    # Expenses
    # -------------------------------------------------------------------------
    
    def _check_expense(self, amount: Decimal, description: str, on: date) -> None:
        result = self._validator.validate_expense(amount, description, on)
        if result.has_errors:
            self._audit_logger.log_validation_failed(
                "expense", [issue.model_dump() for issue in result.issues]
            )
            raise ExpenseValidationError(result)
    
    async def add_expense(
        self,
        category: ExpenseCategory,
        amount: AmountLike,
        description: Optional[str] = "",
        on: Optional[date] = None,
        receipt_ref: Optional[str] = None,
    ) -> int:
        """
        Record a new expense.
        
        Args:
            category: Expense category
            amount: Amount spent, greater than zero
            description: Optional free text
            on: Date of the expense (defaults to today)
            receipt_ref: Optional opaque receipt reference
            
        Returns:
            The id of the new transaction
            
        Raises:
            ExpenseValidationError: If the input has error-level issues
            PersistenceError: If the store write fails
        """
        value = to_amount(amount)
        on = on or date.today()
        description = (description or "").strip()
        self._check_expense(value, description, on)
        
        candidate = Transaction(
            category=category,
            amount=value,
            description=description,
            date=on,
            receipt_ref=receipt_ref,
        )
        return await self._storage.create_transaction(candidate)
    
    async def update_expense(self, transaction: Transaction) -> bool:
        """
        Save changes to an existing expense.
        
        Returns:
            False if no stored expense has this id
        """
        self._check_expense(transaction.amount, transaction.description, transaction.date)
        return await self._storage.update_transaction(transaction)
    
    async def delete_expense(self, transaction: Transaction) -> bool:
        """Returns False if no stored expense has this id."""
        return await self._storage.delete_transaction(transaction)
    
    async def get_expense(self, transaction_id: int) -> Optional[Transaction]:
        return await self._storage.get_transaction_by_id(transaction_id)
    
    # -------------------------------------------------------------------------
    # Budgets
    # -------------------------------------------------------------------------
    
    async def set_budget(
        self,
        category: ExpenseCategory,
        amount: AmountLike,
        period: Optional[Period] = None,
    ) -> Budget:
        """
        Set the budget of a category, for the selected period by default.
        
        Raises:
            ExpenseValidationError: If the amount is negative
            PersistenceError: If the store write fails
        """
        value = to_amount(amount)
        result = self._validator.validate_budget(category, value)
        if result.has_errors:
            self._audit_logger.log_validation_failed(
                "budget", [issue.model_dump() for issue in result.issues]
            )
            raise ExpenseValidationError(result)
        
        budget = Budget(
            category=category,
            amount=value,
            period=period or self._aggregator.period.value,
        )
        await self._storage.upsert_budget(budget)
        return budget
    
    async def close(self) -> None:
        self._aggregator.close()
        await self._storage.close()


async def create_tracker(
    settings: Optional[Settings] = None,
    use_storage: bool = True,
) -> ExpenseTracker:
    """
    Factory function to build and open a tracker.
    
    Args:
        settings: Application settings (read from the environment if None)
        use_storage: Whether to use the SQLite database.
                     Set to False for a throwaway in-memory store.
                     
    Raises:
        StorageConnectionError: If the database cannot be opened
    """
    settings = settings or get_settings()
    audit_logger = AuditLogger()
    
    if use_storage:
        storage_settings = settings.storage
        storage: ExpenseStorageInterface = SQLiteExpenseStorage(
            SQLiteDatabase(storage_settings.url, echo=storage_settings.echo),
            audit_logger=audit_logger,
        )
    else:
        storage = InMemoryExpenseStorage(audit_logger=audit_logger)
    
    await storage.open()
    
    return ExpenseTracker(
        storage=storage,
        validator=ExpenseValidator(settings.app),
        audit_logger=audit_logger,
    )
