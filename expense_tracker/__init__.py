"""
Expense Tracker - Source Package

Core of a personal expense tracker: a durable store of transactions and
monthly budgets, and a reactive aggregator deriving per-period spending
summaries from it.

DESIGN PRINCIPLES:
1. The store is the single source of truth
2. Derived summaries are pure functions of (period, transactions, budgets)
3. A mutation is complete only once its snapshot is published
4. Storage failures fail the operation, never the process
"""

__version__ = "1.0.0"
__author__ = "Expense Tracker Team"
