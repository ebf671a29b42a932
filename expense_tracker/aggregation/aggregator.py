"""
Reactive spending aggregator.

Combines the selected period with the store's transaction and budget
snapshots and keeps the derived views up to date:

    (period, transactions, budgets) -> period_transactions, period_budgets,
                                       summary, breakdown

Every change to any input triggers a full recomputation over the current
snapshots. Recomputation is pure and runs inside the publishing call.
"""

from typing import Optional

import structlog

from expense_tracker.aggregation.summary import (
    budgets_for_period,
    category_breakdown,
    summarize_period,
    transactions_in_period,
)
from expense_tracker.models.expense import (
    Budget,
    CategoryBreakdown,
    Period,
    PeriodSummary,
    Transaction,
)
from expense_tracker.state import ObservableValue

logger = structlog.get_logger(__name__)


class SpendingAggregator:
    """
    Derives per-period views from store snapshots.
    
    The snapshot observables are injected (normally a store's
    `transactions` and `budgets`); the selected period is owned here.
    """
    
    def __init__(
        self,
        transactions: ObservableValue[tuple[Transaction, ...]],
        budgets: ObservableValue[tuple[Budget, ...]],
        period: Optional[Period] = None,
    ):
        self._source_transactions = transactions
        self._source_budgets = budgets
        
        self._period = ObservableValue(period or Period.current(), name="period")
        
        initial_period = self._period.value
        self._period_transactions = ObservableValue(
            transactions_in_period(initial_period, transactions.value),
            name="period_transactions",
        )
        self._period_budgets = ObservableValue(
            budgets_for_period(initial_period, budgets.value),
            name="period_budgets",
        )
        self._summary = ObservableValue(
            summarize_period(initial_period, transactions.value, budgets.value),
            name="summary",
        )
        self._breakdown = ObservableValue(
            category_breakdown(self._period_transactions.value),
            name="breakdown",
        )
        
        self._unsubscribers = [
            self._period.subscribe(self._on_input_changed),
            transactions.subscribe(self._on_input_changed),
            budgets.subscribe(self._on_input_changed),
        ]
    
    # -------------------------------------------------------------------------
    # Observables
    # -------------------------------------------------------------------------
    
    @property
    def period(self) -> ObservableValue[Period]:
        return self._period
    
    @property
    def period_transactions(self) -> ObservableValue[tuple[Transaction, ...]]:
        """Transactions of the selected period, most recent first."""
        return self._period_transactions
    
    @property
    def period_budgets(self) -> ObservableValue[tuple[Budget, ...]]:
        """One budget per category for the selected period."""
        return self._period_budgets
    
    @property
    def summary(self) -> ObservableValue[PeriodSummary]:
        return self._summary
    
    @property
    def breakdown(self) -> ObservableValue[tuple[CategoryBreakdown, ...]]:
        """Spending per category for the selected period, largest first."""
        return self._breakdown
    
    # -------------------------------------------------------------------------
    # Period navigation
    # -------------------------------------------------------------------------
    
    def select_period(self, period: Period) -> None:
        self._period.publish(period)
    
    def next_period(self) -> Period:
        self._period.publish(self._period.value.next())
        return self._period.value
    
    def previous_period(self) -> Period:
        self._period.publish(self._period.value.previous())
        return self._period.value
    
    # -------------------------------------------------------------------------
    # Recomputation
    # -------------------------------------------------------------------------
    
    def _on_input_changed(self, _value) -> None:
        self.recompute()
    
    def recompute(self) -> PeriodSummary:
        """Rebuild every derived view from the current inputs."""
        period = self._period.value
        transactions = self._source_transactions.value
        budgets = self._source_budgets.value
        
        in_period = transactions_in_period(period, transactions)
        self._period_transactions.publish(in_period)
        self._period_budgets.publish(budgets_for_period(period, budgets))
        self._breakdown.publish(category_breakdown(in_period))
        
        summary = summarize_period(period, transactions, budgets)
        if self._summary.publish(summary):
            logger.debug(
                "summary_recomputed",
                period=period.key,
                total_spent=str(summary.total_spent),
                total_budget=str(summary.total_budget),
            )
        return summary
    
    def close(self) -> None:
        """Stop following the store snapshots."""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
