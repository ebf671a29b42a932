"""Aggregation package: derived spending views."""

from expense_tracker.aggregation.aggregator import SpendingAggregator
from expense_tracker.aggregation.summary import (
    budgets_for_period,
    category_breakdown,
    summarize_period,
    transactions_in_period,
)

__all__ = [
    "SpendingAggregator",
    "budgets_for_period",
    "category_breakdown",
    "summarize_period",
    "transactions_in_period",
]
