"""
Audit Logger

Every store mutation and every anomaly is written to the structured log.

The audit logger:
- Never raises
- Has one method per event the store and the tracker emit
"""

from typing import Optional

import structlog

from expense_tracker.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """Central audit logging service."""
    
    def __init__(self, logger_name: str = "expense_tracker.audit"):
        self._logger = structlog.get_logger(logger_name)
        self.last_event: Optional[AuditEvent] = None
    
    def log(self, event: AuditEvent) -> AuditEvent:
        """Log an audit event at the level matching its severity."""
        self.last_event = event
        log_dict = event.to_log_dict()
        
        try:
            if event.severity == AuditSeverity.ERROR:
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception as e:
            # Never propagate to the caller
            structlog.get_logger().error("audit_log_failed", error=str(e))
        
        return event
    
    def log_store_opened(self, backend: str, transactions: int, budgets: int) -> None:
        self.log(AuditEventBuilder.store_opened(backend, transactions, budgets))
    
    def log_store_closed(self, backend: str) -> None:
        self.log(AuditEventBuilder.store_closed(backend))
    
    def log_transaction_created(self, transaction_id: int, category: str, amount: str) -> None:
        self.log(AuditEventBuilder.transaction_created(transaction_id, category, amount))
    
    def log_transaction_updated(self, transaction_id: int, category: str, amount: str) -> None:
        self.log(AuditEventBuilder.transaction_updated(transaction_id, category, amount))
    
    def log_transaction_deleted(self, transaction_id: int) -> None:
        self.log(AuditEventBuilder.transaction_deleted(transaction_id))
    
    def log_transaction_not_found(self, transaction_id: Optional[int], operation: str) -> None:
        self.log(AuditEventBuilder.transaction_not_found(transaction_id, operation))
    
    def log_budget_upserted(self, category: str, period: str, amount: str) -> None:
        self.log(AuditEventBuilder.budget_upserted(category, period, amount))
    
    def log_invalid_category(self, raw_value: str, fallback: str) -> None:
        """Log a stored category string that matches no ExpenseCategory."""
        self.log(AuditEventBuilder.invalid_category(raw_value, fallback))
    
    def log_persistence_failed(self, operation: str, error_message: str) -> None:
        self.log(AuditEventBuilder.persistence_failed(operation, error_message))
    
    def log_validation_failed(self, subject: str, issues: list[dict]) -> None:
        self.log(AuditEventBuilder.validation_failed(subject, issues))
