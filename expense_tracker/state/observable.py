"""
Observable value container.

Holds the latest value of some state and pushes every change to its
subscribers. Store snapshots, the selected period and every derived
summary live in one of these.
"""

from typing import Callable, Generic, List, TypeVar

import structlog

__all__ = ["ObservableValue", "Subscriber", "Unsubscribe"]

T = TypeVar("T")

Subscriber = Callable[[T], None]
Unsubscribe = Callable[[], None]

logger = structlog.get_logger(__name__)


class ObservableValue(Generic[T]):
    """
    Latest-value state holder.
    
    - subscribe() delivers the current value immediately, then every change
    - publish() ignores a value equal to the current one
    - values are swapped in whole, never mutated in place, so readers need
      no locking as long as published values are immutable
    """
    
    def __init__(self, initial: T, name: str = ""):
        self._value = initial
        self._name = name
        self._subscribers: List[Subscriber] = []
    
    def __repr__(self) -> str:
        return f"ObservableValue({self._name or '?'}={self._value!r})"
    
    @property
    def value(self) -> T:
        return self._value
    
    def subscribe(self, handler: Subscriber) -> Unsubscribe:
        """Register a handler and return a callable that removes it again."""
        self._subscribers.append(handler)
        handler(self._value)
        
        def unsubscribe() -> None:
            if handler in self._subscribers:
                self._subscribers.remove(handler)
        
        return unsubscribe
    
    def publish(self, value: T) -> bool:
        """
        Replace the current value and notify subscribers.
        
        Returns False if the value equals the current one (nothing sent).
        """
        if value == self._value:
            return False
        self._value = value
        
        for handler in list(self._subscribers):
            try:
                handler(value)
            except Exception:
                # One broken observer must not hide the change from the rest
                logger.exception(
                    "subscriber_failed",
                    observable=self._name,
                    handler=getattr(handler, "__qualname__", repr(handler)),
                )
        return True
    
    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)
