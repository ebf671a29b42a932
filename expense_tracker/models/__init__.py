"""
Data Models Package

All records the store persists and all summaries the aggregator derives
are defined here.
"""

from expense_tracker.models.expense import (
    CATEGORY_STYLES,
    DEFAULT_CATEGORY,
    Budget,
    BudgetStatus,
    CategoryBreakdown,
    CategoryStyle,
    CategorySummary,
    ExpenseCategory,
    Period,
    PeriodSummary,
    Transaction,
)
from expense_tracker.models.validation import ValidationIssue, ValidationResult
from expense_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Expense models
    "CATEGORY_STYLES",
    "DEFAULT_CATEGORY",
    "Budget",
    "BudgetStatus",
    "CategoryBreakdown",
    "CategoryStyle",
    "CategorySummary",
    "ExpenseCategory",
    "Period",
    "PeriodSummary",
    "Transaction",
    # Validation models
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
