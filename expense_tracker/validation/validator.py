"""
Expense Input Validation

Checks what a user typed before it reaches the store:
- Amount must be greater than zero (error)
- Amounts beyond the storable range are rejected (error)
- Unusually large amounts are flagged (warning)
- Dates in the future beyond the tolerance are flagged (warning)
- Overlong descriptions are rejected (error)

Validation never fixes input. It reports issues; warnings don't block.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Callable, Optional

from expense_tracker.config import AppSettings
from expense_tracker.models.expense import MAX_AMOUNT, ExpenseCategory
from expense_tracker.models.validation import ValidationIssue, ValidationResult


class ExpenseValidationError(ValueError):
    """Raised by the tracker when an input has error-level issues."""
    
    def __init__(self, result: ValidationResult):
        self.result = result
        messages = "; ".join(
            issue.message for issue in result.issues if issue.severity == "error"
        )
        super().__init__(messages or "Validation failed")


class ExpenseValidator:
    """Validates expense and budget inputs against AppSettings thresholds."""
    
    def __init__(
        self,
        settings: Optional[AppSettings] = None,
        today: Callable[[], date] = date.today,
    ):
        """
        Args:
            settings: Thresholds; read from the environment if None
            today: Clock used for the future-date check
        """
        self._settings = settings or AppSettings()
        self._today = today
    
    def validate_expense(
        self,
        amount: Decimal,
        description: str,
        on: date,
    ) -> ValidationResult:
        issues = []
        
        if amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                severity="error",
                suggested_fix="Enter the amount you spent",
            ))
        elif amount.as_tuple().exponent < -2:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_format",
                message=f"Amount {amount} has more than two decimal places",
                severity="error",
            ))
        elif amount > MAX_AMOUNT:
            issues.append(self._too_large(amount))
        elif amount > self._settings.max_expense_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=(
                    f"Amount {self._settings.currency_symbol}{amount} is unusually large "
                    f"(over {self._settings.currency_symbol}{self._settings.max_expense_amount})"
                ),
                severity="warning",
                suggested_fix="Check for an extra digit",
            ))
        
        latest = self._today() + timedelta(days=self._settings.future_date_tolerance_days)
        if on > latest:
            issues.append(ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Date {on.isoformat()} is in the future",
                severity="warning",
            ))
        
        if len(description) > self._settings.max_description_length:
            issues.append(ValidationIssue(
                field="description",
                issue_type="too_long",
                message=(
                    f"Description is {len(description)} characters, "
                    f"the limit is {self._settings.max_description_length}"
                ),
                severity="error",
            ))
        
        return ValidationResult(issues=issues)
    
    def validate_budget(self, category: ExpenseCategory, amount: Decimal) -> ValidationResult:
        issues = []
        if amount < 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message=f"Budget for {category.label} cannot be negative",
                severity="error",
                suggested_fix="Use 0 to clear the budget",
            ))
        elif amount > MAX_AMOUNT:
            issues.append(self._too_large(amount))
        return ValidationResult(issues=issues)
    
    def _too_large(self, amount: Decimal) -> ValidationIssue:
        return ValidationIssue(
            field="amount",
            issue_type="out_of_range",
            message=(
                f"Amount {self._settings.currency_symbol}{amount} exceeds the largest "
                f"storable amount {self._settings.currency_symbol}{MAX_AMOUNT}"
            ),
            severity="error",
        )
