"""Observable state package."""

from expense_tracker.state.observable import ObservableValue, Subscriber, Unsubscribe

__all__ = ["ObservableValue", "Subscriber", "Unsubscribe"]
