"""
SQLite Storage Implementation

A single-file SQLite database accessed through SQLAlchemy's asyncio
extension (aiosqlite driver).

Every mutation is one unit of work on a single writer lane:
1. Acquire the writer lock (FIFO)
2. Write, then read the new snapshot, in one database transaction
3. Commit
4. Publish the snapshot
5. Return to the caller

If any step up to the commit fails, the transaction is rolled back,
nothing is published and the caller gets a PersistenceError.
A stored row that cannot be read back (malformed date, period or
amount) fails the operation the same way.
Point lookups by id do not take the writer lock.
"""

import asyncio
from datetime import date
from decimal import Decimal
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool
from tenacity import retry, stop_after_attempt, wait_exponential

from expense_tracker.audit import AuditLogger
from expense_tracker.models.expense import (
    DEFAULT_CATEGORY,
    Budget,
    ExpenseCategory,
    Period,
    Transaction,
)
from expense_tracker.services.storage.interface import (
    BudgetSnapshot,
    ExpenseStorageInterface,
    PersistenceError,
    StorageConnectionError,
    TransactionSnapshot,
    ensure_positive_amount,
)
from expense_tracker.services.storage.schema import Base, BudgetRow, TransactionRow
from expense_tracker.state import ObservableValue


CENT = Decimal("0.01")

logger = structlog.get_logger(__name__)


class SQLiteDatabase:
    """
    Low-level database wrapper.
    
    Owns the async engine and session factory, creates the schema on
    first connect and retries opening the database.
    """
    
    def __init__(self, url: str, echo: bool = False):
        self._url = url
        self._echo = echo
        self._engine: Optional[AsyncEngine] = None
        self._sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None
    
    @property
    def url(self) -> str:
        return self._url
    
    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise StorageConnectionError("Database is not open")
        return self._engine
    
    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
        reraise=True,
    )
    async def connect(self) -> AsyncEngine:
        """
        Open the database and create missing tables.
        
        Raises:
            StorageConnectionError: After the last failed attempt
        """
        if self._engine is None:
            options = {"echo": self._echo}
            if ":memory:" in self._url:
                # Every connection to :memory: is a new database; share one
                options["poolclass"] = StaticPool
            engine = create_async_engine(self._url, **options)
            try:
                async with engine.begin() as conn:
                    await conn.run_sync(Base.metadata.create_all)
            except SQLAlchemyError as e:
                await engine.dispose()
                logger.warning("database_connect_failed", url=self._url, error=str(e))
                raise StorageConnectionError(f"Failed to open database {self._url}: {e}") from e
            
            self._engine = engine
            self._sessionmaker = async_sessionmaker(engine, expire_on_commit=False)
        
        return self._engine
    
    def session(self) -> AsyncSession:
        if self._sessionmaker is None:
            raise StorageConnectionError("Database is not open")
        return self._sessionmaker()
    
    async def dispose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._sessionmaker = None


class SQLiteExpenseStorage(ExpenseStorageInterface):
    """
    SQLite implementation of expense storage.
    
    Snapshots are re-read from the database after every write, inside the
    same database transaction as the write.
    """
    
    def __init__(
        self,
        database: SQLiteDatabase,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._db = database
        self._audit = audit_logger or AuditLogger()
        self._write_lock = asyncio.Lock()
        self._reported_categories: set[str] = set()
        self._transactions: ObservableValue[TransactionSnapshot] = ObservableValue((), name="transactions")
        self._budgets: ObservableValue[BudgetSnapshot] = ObservableValue((), name="budgets")
    
    @classmethod
    def from_path(cls, path: str, **kwargs) -> "SQLiteExpenseStorage":
        return cls(SQLiteDatabase(f"sqlite+aiosqlite:///{path}"), **kwargs)
    
    @property
    def database(self) -> SQLiteDatabase:
        return self._db
    
    @property
    def transactions(self) -> ObservableValue[TransactionSnapshot]:
        return self._transactions
    
    @property
    def budgets(self) -> ObservableValue[BudgetSnapshot]:
        return self._budgets
    
    # -------------------------------------------------------------------------
    # Row conversion
    # -------------------------------------------------------------------------
    
    def _parse_category(self, raw: str) -> ExpenseCategory:
        try:
            return ExpenseCategory(raw)
        except ValueError:
            # Once per store instance
            if raw not in self._reported_categories:
                self._reported_categories.add(raw)
                self._audit.log_invalid_category(raw, DEFAULT_CATEGORY.value)
            return DEFAULT_CATEGORY
    
    def _row_to_transaction(self, row: TransactionRow) -> Transaction:
        return Transaction(
            id=row.id,
            category=self._parse_category(row.category),
            amount=Decimal(str(row.amount)).quantize(CENT),
            description=row.description,
            date=date.fromisoformat(row.date),
            receipt_ref=row.receipt_ref,
        )
    
    @staticmethod
    def _apply_transaction(row: TransactionRow, record: Transaction) -> TransactionRow:
        row.category = record.category.value
        row.amount = float(record.amount)
        row.description = record.description
        row.date = record.date.isoformat()
        row.receipt_ref = record.receipt_ref
        return row
    
    def _row_to_budget(self, row: BudgetRow) -> Budget:
        return Budget(
            category=self._parse_category(row.category),
            amount=Decimal(str(row.amount)).quantize(CENT),
            period=Period.from_key(row.period),
        )
    
    async def _load_transactions(self, session: AsyncSession) -> TransactionSnapshot:
        result = await session.execute(
            select(TransactionRow).order_by(TransactionRow.date.desc(), TransactionRow.id.asc())
        )
        return self._convert_rows(result.scalars(), self._row_to_transaction, "load_transactions")
    
    async def _load_budgets(self, session: AsyncSession) -> BudgetSnapshot:
        result = await session.execute(
            select(BudgetRow).order_by(BudgetRow.period, BudgetRow.category)
        )
        return self._convert_rows(result.scalars(), self._row_to_budget, "load_budgets")
    
    def _convert_rows(self, rows, converter, operation: str) -> tuple:
        """Convert stored rows to models; a malformed row fails the operation."""
        try:
            return tuple(converter(row) for row in rows)
        except (ValueError, ArithmeticError) as e:
            raise self._persistence_error(operation, e) from e
    
    def _persistence_error(self, operation: str, error: Exception) -> PersistenceError:
        self._audit.log_persistence_failed(operation, str(error))
        return PersistenceError(f"{operation} failed: {error}")
    
    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------
    
    async def open(self) -> None:
        await self._db.connect()
        try:
            async with self._db.session() as session:
                transactions = await self._load_transactions(session)
                budgets = await self._load_budgets(session)
        except (SQLAlchemyError, PersistenceError) as e:
            raise StorageConnectionError(f"Failed to load stored records: {e}") from e
        
        self._transactions.publish(transactions)
        self._budgets.publish(budgets)
        self._audit.log_store_opened("sqlite", len(transactions), len(budgets))
    
    async def close(self) -> None:
        # Let an in-flight write finish first
        async with self._write_lock:
            await self._db.dispose()
        self._audit.log_store_closed("sqlite")
    
    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------
    
    async def create_transaction(self, candidate: Transaction) -> int:
        ensure_positive_amount(candidate.amount)
        
        async with self._write_lock:
            try:
                async with self._db.session() as session:
                    row = self._apply_transaction(TransactionRow(), candidate)
                    session.add(row)
                    await session.flush()
                    new_id = row.id
                    snapshot = await self._load_transactions(session)
                    await session.commit()
            except SQLAlchemyError as e:
                raise self._persistence_error("create_transaction", e) from e
            
            self._transactions.publish(snapshot)
        
        self._audit.log_transaction_created(new_id, candidate.category.value, str(candidate.amount))
        return new_id
    
    async def update_transaction(self, record: Transaction) -> bool:
        ensure_positive_amount(record.amount)
        if record.id is None:
            self._audit.log_transaction_not_found(None, "update")
            return False
        
        async with self._write_lock:
            try:
                async with self._db.session() as session:
                    row = await session.get(TransactionRow, record.id)
                    if row is None:
                        snapshot = None
                    else:
                        self._apply_transaction(row, record)
                        snapshot = await self._load_transactions(session)
                        await session.commit()
            except SQLAlchemyError as e:
                raise self._persistence_error("update_transaction", e) from e
            
            if snapshot is None:
                self._audit.log_transaction_not_found(record.id, "update")
                return False
            self._transactions.publish(snapshot)
        
        self._audit.log_transaction_updated(record.id, record.category.value, str(record.amount))
        return True
    
    async def delete_transaction(self, record: Transaction) -> bool:
        if record.id is None:
            self._audit.log_transaction_not_found(None, "delete")
            return False
        
        async with self._write_lock:
            try:
                async with self._db.session() as session:
                    row = await session.get(TransactionRow, record.id)
                    if row is None:
                        snapshot = None
                    else:
                        await session.delete(row)
                        await session.flush()
                        snapshot = await self._load_transactions(session)
                        await session.commit()
            except SQLAlchemyError as e:
                raise self._persistence_error("delete_transaction", e) from e
            
            if snapshot is None:
                self._audit.log_transaction_not_found(record.id, "delete")
                return False
            self._transactions.publish(snapshot)
        
        self._audit.log_transaction_deleted(record.id)
        return True
    
    async def get_transaction_by_id(self, transaction_id: int) -> Optional[Transaction]:
        try:
            async with self._db.session() as session:
                row = await session.get(TransactionRow, transaction_id)
                if row is None:
                    return None
                (record,) = self._convert_rows([row], self._row_to_transaction, "get_transaction_by_id")
                return record
        except SQLAlchemyError as e:
            raise self._persistence_error("get_transaction_by_id", e) from e
    
    # -------------------------------------------------------------------------
    # Budgets
    # -------------------------------------------------------------------------
    
    async def upsert_budget(self, candidate: Budget) -> None:
        stmt = sqlite_insert(BudgetRow).values(
            category=candidate.category.value,
            amount=float(candidate.amount),
            period=candidate.period.key,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[BudgetRow.category, BudgetRow.period],
            set_={"amount": stmt.excluded.amount},
        )
        
        async with self._write_lock:
            try:
                async with self._db.session() as session:
                    await session.execute(stmt)
                    snapshot = await self._load_budgets(session)
                    await session.commit()
            except SQLAlchemyError as e:
                raise self._persistence_error("upsert_budget", e) from e
            
            self._budgets.publish(snapshot)
        
        self._audit.log_budget_upserted(
            candidate.category.value, candidate.period.key, str(candidate.amount)
        )
