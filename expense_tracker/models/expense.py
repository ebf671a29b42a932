"""
Core Data Models for the Expense Tracker

These models define the schemas for everything the store persists and
everything the aggregator derives:
1. Persisted records: Transaction, Budget
2. Value types: ExpenseCategory, Period
3. Derived summaries: CategorySummary, PeriodSummary, CategoryBreakdown

All models are frozen. Snapshots published by the store are tuples of
these objects, so they can be shared between observers and used as
cache keys without copying.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from functools import total_ordering
from typing import NamedTuple, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


ZERO = Decimal("0")

# Amounts are stored as REAL; 15 significant digits survive the float round-trip
AMOUNT_MAX_DIGITS = 15
MAX_AMOUNT = Decimal("9999999999999.99")

# Thresholds for BudgetStatus, as fractions of the budget spent
WARNING_THRESHOLD = 0.7
OVER_BUDGET_THRESHOLD = 0.9


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class ExpenseCategory(str, Enum):
    """
    Supported expense categories.
    
    The value of each member is its name, which is also the persisted form.
    Declaration order is the canonical order for every summary.
    """
    NTUC = "NTUC"
    MEAL = "MEAL"
    FUEL = "FUEL"
    JL_JE = "JL_JE"
    OTHERS = "OTHERS"
    CASH = "CASH"
    CREDIT_CARD = "CREDIT_CARD"
    
    @property
    def label(self) -> str:
        """Human-readable name of the category."""
        return CATEGORY_STYLES[self].label
    
    @property
    def color(self) -> str:
        """Display color of the category as a hex string."""
        return CATEGORY_STYLES[self].color


# Categories that fail to parse on read are stored under this one
DEFAULT_CATEGORY = ExpenseCategory.OTHERS


class CategoryStyle(NamedTuple):
    """Display attributes of a category."""
    label: str
    color: str


CATEGORY_STYLES: dict[ExpenseCategory, CategoryStyle] = {
    ExpenseCategory.NTUC: CategoryStyle("NTUC", "#2196F3"),
    ExpenseCategory.MEAL: CategoryStyle("Meal", "#4CAF50"),
    ExpenseCategory.FUEL: CategoryStyle("Fuel", "#F44336"),
    ExpenseCategory.JL_JE: CategoryStyle("JL & JE", "#9C27B0"),
    ExpenseCategory.OTHERS: CategoryStyle("Others", "#FF9800"),
    ExpenseCategory.CASH: CategoryStyle("Cash", "#2196F3"),
    ExpenseCategory.CREDIT_CARD: CategoryStyle("Credit Card", "#4CAF50"),
}


class BudgetStatus(str, Enum):
    """How close a category (or a whole period) is to its budget."""
    ON_TRACK = "on_track"
    WARNING = "warning"
    OVER_BUDGET = "over_budget"


# =============================================================================
# PERIOD
# =============================================================================

@total_ordering
class Period(BaseModel):
    """
    A budgeting cycle: one calendar month of one year.
    
    Periods are ordered chronologically and serialize to a zero-padded
    "YYYY-MM" key. The same key groups budgets and transactions.
    """
    model_config = ConfigDict(frozen=True)
    
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=1, le=9999)
    
    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Period):
            return NotImplemented
        return (self.year, self.month) < (other.year, other.month)
    
    def __str__(self) -> str:
        return self.key
    
    @property
    def key(self) -> str:
        """Canonical "YYYY-MM" form."""
        return f"{self.year:04d}-{self.month:02d}"
    
    @property
    def display_name(self) -> str:
        """Month name and year, e.g. "March 2024"."""
        return date(self.year, self.month, 1).strftime("%B %Y")
    
    def next(self) -> "Period":
        if self.month == 12:
            return Period(month=1, year=self.year + 1)
        return Period(month=self.month + 1, year=self.year)
    
    def previous(self) -> "Period":
        if self.month == 1:
            return Period(month=12, year=self.year - 1)
        return Period(month=self.month - 1, year=self.year)
    
    def contains(self, day: date) -> bool:
        """Check if a calendar date falls within this period."""
        return day.year == self.year and day.month == self.month
    
    @classmethod
    def from_date(cls, day: date) -> "Period":
        return cls(month=day.month, year=day.year)
    
    @classmethod
    def from_key(cls, key: str) -> "Period":
        """
        Parse a "YYYY-MM" key.
        
        Raises:
            ValueError: If the key is malformed or out of range
        """
        parts = key.split("-")
        if len(parts) != 2 or not all(part.isdigit() for part in parts):
            raise ValueError(f"Invalid period key: {key!r}")
        return cls(month=int(parts[1]), year=int(parts[0]))
    
    @classmethod
    def current(cls, today: Optional[date] = None) -> "Period":
        return cls.from_date(today or date.today())


# =============================================================================
# PERSISTED RECORDS
# =============================================================================

class Transaction(BaseModel):
    """
    A single recorded expense.
    
    A candidate that has not been saved yet has id=None. The store assigns
    the id on creation and never reuses it.
    """
    model_config = ConfigDict(frozen=True)
    
    id: Optional[int] = Field(
        default=None,
        description="Store-assigned identifier (None until saved)"
    )
    category: ExpenseCategory
    amount: Decimal = Field(
        ...,
        ge=0,
        decimal_places=2,
        max_digits=AMOUNT_MAX_DIGITS,
        description="Amount spent"
    )
    description: str = Field(
        default="",
        description="Free text, may be empty"
    )
    date: date
    receipt_ref: Optional[str] = Field(
        default=None,
        description="Opaque reference to a receipt image"
    )
    
    @field_validator("description", mode="before")
    @classmethod
    def normalize_description(cls, v):
        if v is None:
            return ""
        return v.strip() if isinstance(v, str) else v
    
    @property
    def period(self) -> Period:
        return Period.from_date(self.date)
    
    @property
    def display_description(self) -> str:
        return self.description or "(No description)"


class Budget(BaseModel):
    """Budget amount for one category in one period. Zero means "no budget"."""
    model_config = ConfigDict(frozen=True)
    
    category: ExpenseCategory
    amount: Decimal = Field(..., ge=0, max_digits=AMOUNT_MAX_DIGITS, decimal_places=2)
    period: Period
    
    @property
    def key(self) -> tuple[ExpenseCategory, str]:
        """Composite key: at most one budget per (category, period)."""
        return (self.category, self.period.key)


# =============================================================================
# DERIVED SUMMARIES (never persisted)
# =============================================================================

def spent_ratio(spent: Decimal, budget: Decimal) -> float:
    """spent/budget clamped to [0, 1]; 0 when there is no budget."""
    if budget <= 0:
        return 0.0
    return min(max(float(spent / budget), 0.0), 1.0)


def budget_status(percentage: float, remaining: Decimal) -> BudgetStatus:
    if remaining < 0 or percentage >= OVER_BUDGET_THRESHOLD:
        return BudgetStatus.OVER_BUDGET
    if percentage >= WARNING_THRESHOLD:
        return BudgetStatus.WARNING
    return BudgetStatus.ON_TRACK


class CategorySummary(BaseModel):
    """Spending against budget for one category in one period."""
    model_config = ConfigDict(frozen=True)
    
    category: ExpenseCategory
    spent: Decimal = ZERO
    budget: Decimal = ZERO
    percentage: float = Field(default=0.0, ge=0.0, le=1.0)
    remaining_budget: Decimal = Field(
        default=ZERO,
        description="budget - spent, negative when overspent"
    )
    
    @property
    def status(self) -> BudgetStatus:
        return budget_status(self.percentage, self.remaining_budget)


class PeriodSummary(BaseModel):
    """
    Spending against budget for one period.
    
    category_summaries always holds exactly one entry per ExpenseCategory,
    in declaration order.
    """
    model_config = ConfigDict(frozen=True)
    
    period: Period
    total_spent: Decimal = ZERO
    total_budget: Decimal = ZERO
    category_summaries: tuple[CategorySummary, ...] = ()
    
    @property
    def remaining_budget(self) -> Decimal:
        return self.total_budget - self.total_spent
    
    @property
    def percentage(self) -> float:
        return spent_ratio(self.total_spent, self.total_budget)
    
    @property
    def status(self) -> BudgetStatus:
        return budget_status(self.percentage, self.remaining_budget)
    
    def for_category(self, category: ExpenseCategory) -> CategorySummary:
        for summary in self.category_summaries:
            if summary.category == category:
                return summary
        raise KeyError(category)


class CategoryBreakdown(BaseModel):
    """A category's slice of one period's spending, for reports."""
    model_config = ConfigDict(frozen=True)
    
    category: ExpenseCategory
    total: Decimal
    share: float = Field(
        ...,
        ge=0.0,
        le=100.0,
        description="Percentage of the period's total spending"
    )
    transactions: tuple[Transaction, ...] = ()
