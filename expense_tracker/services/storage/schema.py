"""Table definitions for the SQLite store (schema version 1)."""

from sqlalchemy import Column, Float, Integer, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()

SCHEMA_VERSION = 1


class TransactionRow(Base):
    """One recorded expense."""
    __tablename__ = "transactions"
    # AUTOINCREMENT: ids of deleted rows are never handed out again
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True)
    category = Column(Text, nullable=False)  # ExpenseCategory name
    amount = Column(Float, nullable=False)
    description = Column(Text, nullable=False)
    date = Column(Text, nullable=False)  # ISO-8601 calendar date
    receipt_ref = Column(Text, nullable=True)


class BudgetRow(Base):
    """Budget for one category in one period."""
    __tablename__ = "budgets"

    category = Column(Text, primary_key=True)
    amount = Column(Float, nullable=False)
    period = Column(Text, primary_key=True)  # "YYYY-MM"
