"""
Audit Models for the Expense Tracker

Every store mutation, every "not found" result and every anomaly met while
reading stored data produces one AuditEvent. Events go to the structured
log; they are not persisted.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Store lifecycle
    STORE_OPENED = "store_opened"
    STORE_CLOSED = "store_closed"
    
    # Transactions
    TRANSACTION_CREATED = "transaction_created"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"
    TRANSACTION_NOT_FOUND = "transaction_not_found"
    
    # Budgets
    BUDGET_UPSERTED = "budget_upserted"
    
    # Read path anomalies
    INVALID_CATEGORY = "invalid_category"
    
    # Failures
    PERSISTENCE_FAILED = "persistence_failed"
    VALIDATION_FAILED = "validation_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEvent(BaseModel):
    """A single audit event."""
    
    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )
    
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO
    
    # What entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity ('transaction', 'budget', 'store')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Transaction id or budget key"
    )
    
    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None
    
    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.
    
    Usage:
        event = AuditEventBuilder.transaction_created(42, "MEAL", "15.00")
        event = AuditEventBuilder.invalid_category("GROCERY", "OTHERS")
    """
    
    @staticmethod
    def store_opened(backend: str, transactions: int, budgets: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_OPENED,
            entity_type="store",
            description=f"Store opened ({backend})",
            details={
                "backend": backend,
                "transaction_count": transactions,
                "budget_count": budgets,
            },
        )
    
    @staticmethod
    def store_closed(backend: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_CLOSED,
            entity_type="store",
            description=f"Store closed ({backend})",
            details={"backend": backend},
        )
    
    @staticmethod
    def transaction_created(
        transaction_id: int,
        category: str,
        amount: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_CREATED,
            entity_type="transaction",
            entity_id=str(transaction_id),
            description=f"Transaction created: {category} {amount}",
            details={
                "category": category,
                "amount": amount,
            },
        )
    
    @staticmethod
    def transaction_updated(
        transaction_id: int,
        category: str,
        amount: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_UPDATED,
            entity_type="transaction",
            entity_id=str(transaction_id),
            description=f"Transaction updated: {category} {amount}",
            details={
                "category": category,
                "amount": amount,
            },
        )
    
    @staticmethod
    def transaction_deleted(transaction_id: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=str(transaction_id),
            description=f"Transaction {transaction_id} deleted",
        )
    
    @staticmethod
    def transaction_not_found(
        transaction_id: Optional[int],
        operation: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_NOT_FOUND,
            severity=AuditSeverity.WARNING,
            entity_type="transaction",
            entity_id=str(transaction_id) if transaction_id is not None else None,
            description=f"{operation}: no transaction with id {transaction_id}",
            details={"operation": operation},
        )
    
    @staticmethod
    def budget_upserted(category: str, period: str, amount: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_UPSERTED,
            entity_type="budget",
            entity_id=f"{category}/{period}",
            description=f"Budget set: {category} {period} = {amount}",
            details={
                "category": category,
                "period": period,
                "amount": amount,
            },
        )
    
    @staticmethod
    def invalid_category(raw_value: str, fallback: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INVALID_CATEGORY,
            severity=AuditSeverity.WARNING,
            description=f"Unknown stored category {raw_value!r}, read as {fallback}",
            details={
                "raw_value": raw_value,
                "fallback": fallback,
            },
        )
    
    @staticmethod
    def persistence_failed(operation: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERSISTENCE_FAILED,
            severity=AuditSeverity.ERROR,
            description=f"Storage operation failed: {operation}",
            error_message=error_message,
            details={"operation": operation},
        )
    
    @staticmethod
    def validation_failed(subject: str, issues: list[dict]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type=subject,
            description=f"{subject.capitalize()} validation failed with {len(issues)} issues",
            details={"issues": issues},
        )
