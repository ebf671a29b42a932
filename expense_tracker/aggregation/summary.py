"""
Period aggregation.

Pure functions from (period, transactions, budgets) to the derived views
shown on the home, budget and report screens. Nothing here touches
storage; inputs are the immutable snapshots published by the store.
"""

from functools import lru_cache
from typing import Iterable

from expense_tracker.models.expense import (
    ZERO,
    Budget,
    CategoryBreakdown,
    CategorySummary,
    ExpenseCategory,
    Period,
    PeriodSummary,
    Transaction,
    spent_ratio,
)


def transactions_in_period(
    period: Period,
    transactions: Iterable[Transaction],
) -> tuple[Transaction, ...]:
    """Transactions dated within the period, most recent first (stable)."""
    in_period = [t for t in transactions if period.contains(t.date)]
    return tuple(sorted(in_period, key=lambda t: t.date, reverse=True))


def budgets_for_period(
    period: Period,
    budgets: Iterable[Budget],
) -> tuple[Budget, ...]:
    """
    One budget per category for the period, in category order.
    
    Categories without a stored budget get a zero-amount budget.
    """
    stored = {b.category: b for b in budgets if b.period.key == period.key}
    return tuple(
        stored.get(category) or Budget(category=category, amount=ZERO, period=period)
        for category in ExpenseCategory
    )


@lru_cache(maxsize=32)
def _summarize(
    period: Period,
    transactions: tuple[Transaction, ...],
    budgets: tuple[Budget, ...],
) -> PeriodSummary:
    in_period = transactions_in_period(period, transactions)
    budget_by_category = {b.category: b.amount for b in budgets_for_period(period, budgets)}
    
    summaries = []
    for category in ExpenseCategory:
        spent = sum((t.amount for t in in_period if t.category == category), ZERO)
        budget = budget_by_category[category]
        summaries.append(CategorySummary(
            category=category,
            spent=spent,
            budget=budget,
            percentage=spent_ratio(spent, budget),
            remaining_budget=budget - spent,
        ))
    
    return PeriodSummary(
        period=period,
        total_spent=sum((s.spent for s in summaries), ZERO),
        total_budget=sum((s.budget for s in summaries), ZERO),
        category_summaries=tuple(summaries),
    )


def summarize_period(
    period: Period,
    transactions: Iterable[Transaction],
    budgets: Iterable[Budget],
) -> PeriodSummary:
    """
    Spending against budget for every category in a period.
    
    Memoized on the (immutable) inputs: recomputing the same snapshot
    twice returns the cached summary.
    """
    return _summarize(period, tuple(transactions), tuple(budgets))


def category_breakdown(transactions: Iterable[Transaction]) -> tuple[CategoryBreakdown, ...]:
    """
    Group transactions by category for the category report.
    
    Only categories with spending are included, largest total first;
    equal totals keep category order. share is the percentage of the
    overall total.
    """
    grouped: dict[ExpenseCategory, list[Transaction]] = {}
    for t in transactions:
        grouped.setdefault(t.category, []).append(t)
    
    totals = {category: sum((t.amount for t in items), ZERO) for category, items in grouped.items()}
    overall = sum(totals.values(), ZERO)
    
    ordered = sorted(
        (category for category in ExpenseCategory if category in grouped),
        key=lambda category: totals[category],
        reverse=True,
    )
    return tuple(
        CategoryBreakdown(
            category=category,
            total=totals[category],
            share=float(totals[category] / overall * 100) if overall > 0 else 0.0,
            transactions=tuple(sorted(grouped[category], key=lambda t: t.date, reverse=True)),
        )
        for category in ordered
    )
