"""
Core Data Models for the Expense Ledger

These models define the strict schemas for all data flowing through the engine.
They are designed to:
1. Keep every monetary amount an integer count of base-cents
2. Provide clear validation error messages
3. Be serializable for storage and logging
4. Model joins as strict one-to-one relations

DESIGN DECISION: Amount fields use strict integers.
A float or a bool is rejected instead of being silently coerced into cents.
"""

from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Annotated, Iterator, Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


BaseCents = Annotated[int, Field(strict=True)]


def utc_now() -> datetime:
    """Timezone-aware current time used for record timestamps."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Opaque identifier for new records."""
    return str(uuid4())


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class BudgetState(str, Enum):
    """
    Budget consumption classification for one category.

    NO_BUDGET is excluded from alerting and from over-budget counts.
    """
    NO_BUDGET = "no_budget"
    ON_TRACK = "on_track"
    WARNING = "warning"
    EXCEEDED = "exceeded"


# =============================================================================
# REFERENCE DATA
# =============================================================================

class Category(BaseModel):
    """
    Spending category.

    Immutable reference data created by seed/setup. The engine never
    creates, mutates or deletes categories.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Opaque category identifier"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Category name shown to the user"
    )
    color: str = Field(
        default="#000000",
        description="Display color hint"
    )
    icon_name: str = Field(
        default="MoreHorizontal",
        description="Display icon reference"
    )
    emoji: str = Field(
        default="",
        description="Display emoji"
    )
    display_order: int = Field(
        default=0,
        description="Defines the stable sort of category lists"
    )


class DateWindow(BaseModel):
    """
    Closed calendar-date interval [start, end], inclusive on both ends.

    A window with start > end cannot be constructed.
    """
    model_config = ConfigDict(frozen=True)

    start: date
    end: date

    @model_validator(mode='after')
    def validate_bounds(self) -> 'DateWindow':
        if self.start > self.end:
            raise ValueError("Window start cannot be after window end")
        return self

    def days(self) -> int:
        """Number of calendar days in the window, both ends included."""
        return (self.end - self.start).days + 1

    def dates(self) -> Iterator[date]:
        """Iterate every calendar date of the window in ascending order."""
        for offset in range(self.days()):
            yield self.start + timedelta(days=offset)

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


# =============================================================================
# LEDGER RECORDS
# =============================================================================

class NewExpense(BaseModel):
    """
    Insert payload for an expense.

    Amounts arrive here already converted to base-cents; the display
    amount the user typed never reaches the store.

    The id is fixed before the insert is attempted, so every retry of the
    same payload targets the same record.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=new_id, min_length=1)
    user_id: str = Field(..., min_length=1)
    category_id: str = Field(..., min_length=1)
    amount_base_cents: BaseCents = Field(
        ...,
        gt=0,
        description="Amount in base-cents"
    )
    description: Optional[str] = Field(
        default=None,
        max_length=200,
        description="What the expense was for"
    )
    expense_date: date = Field(
        ...,
        description="Calendar date of the expense (no time of day)"
    )

    @field_validator('description')
    @classmethod
    def blank_description_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None


class ExpenseUpdate(BaseModel):
    """Partial update payload. Only the fields that are set are applied."""
    model_config = ConfigDict(str_strip_whitespace=True)

    category_id: Optional[str] = Field(default=None, min_length=1)
    amount_base_cents: Optional[BaseCents] = Field(default=None, gt=0)
    description: Optional[str] = Field(default=None, max_length=200)
    expense_date: Optional[date] = None

    @field_validator('description')
    @classmethod
    def blank_description_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    def changes(self) -> dict:
        """Fields explicitly provided by the caller."""
        return self.model_dump(exclude_unset=True)


class Expense(BaseModel):
    """
    A stored expense.

    The joined category is exactly one Category; its id must match
    category_id.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=new_id)
    user_id: str = Field(..., min_length=1)
    category_id: str = Field(..., min_length=1)
    category: Category = Field(
        ...,
        description="Joined category display fields"
    )
    amount_base_cents: BaseCents = Field(..., gt=0)
    description: Optional[str] = Field(default=None, max_length=200)
    expense_date: date
    created_at: datetime = Field(
        default_factory=utc_now,
        description="Insert time, used only as an ordering tie-break"
    )
    updated_at: datetime = Field(default_factory=utc_now)

    @model_validator(mode='after')
    def validate_category_join(self) -> 'Expense':
        if self.category.id != self.category_id:
            raise ValueError("Joined category does not match category_id")
        return self


class Budget(BaseModel):
    """
    Monthly spending limit for one category.

    At most one budget exists per (user, category). A limit of 0 means
    "no budget set".
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=new_id)
    user_id: str = Field(..., min_length=1)
    category_id: str = Field(..., min_length=1)
    category: Category
    monthly_limit_base_cents: BaseCents = Field(
        ...,
        ge=0,
        description="Monthly limit in base-cents (0 = unset)"
    )
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @model_validator(mode='after')
    def validate_category_join(self) -> 'Budget':
        if self.category.id != self.category_id:
            raise ValueError("Joined category does not match category_id")
        return self

    @property
    def is_set(self) -> bool:
        return self.monthly_limit_base_cents > 0


class Currency(BaseModel):
    """
    Display currency.

    Display-only: never stored per expense and never used to write amounts.
    rate_to_base is the number of currency units per one base unit.
    """
    model_config = ConfigDict(frozen=True)

    code: str = Field(..., pattern="^[A-Z]{3}$")
    symbol: str = Field(..., min_length=1)
    name: str
    rate_to_base: float = Field(..., gt=0)
    decimals: int = Field(
        default=2,
        ge=0,
        le=4,
        description="Fraction digits shown for this currency"
    )
    symbol_after: bool = Field(
        default=False,
        description="Render the symbol after the number (e.g. 1.000₫)"
    )
    group_separator: str = ","
    decimal_separator: str = "."


# =============================================================================
# DERIVED / QUERY MODELS
# =============================================================================

class BudgetStatus(BaseModel):
    """
    Budget consumption for one category over one window.

    Computed on demand, never persisted.
    """

    category_id: str
    category_name: str = ""
    color: str = "#000000"
    emoji: str = ""
    spent_base_cents: BaseCents = Field(..., ge=0)
    limit_base_cents: BaseCents = Field(..., ge=0)
    percentage: Optional[float] = Field(
        default=None,
        description="spent / limit * 100; None when no limit is set"
    )
    state: BudgetState

    @property
    def is_over_budget(self) -> bool:
        return self.percentage is not None and self.percentage > 100

    @property
    def remaining_base_cents(self) -> int:
        """Headroom left under the limit (negative once exceeded)."""
        return self.limit_base_cents - self.spent_base_cents


class BudgetOverview(BaseModel):
    """Budgets view: one row per category plus totals over budgeted rows."""

    window: DateWindow
    rows: list[BudgetStatus] = Field(default_factory=list)
    total_budget_base_cents: int = 0
    total_spent_base_cents: int = 0
    over_budget_count: int = 0


class DailyTotal(BaseModel):
    """Spend on a single calendar day."""
    model_config = ConfigDict(frozen=True)

    day: date
    total_base_cents: int = Field(default=0, ge=0)


class CategoryTotal(BaseModel):
    """Spend for one category with its share of the whole."""

    category_id: str
    category_name: str
    color: str
    emoji: str
    total_base_cents: int = Field(..., ge=0)
    share_percent: float = Field(default=0.0, ge=0.0)


class ExpenseQuery(BaseModel):
    """
    Store-level filter passed to the ledger store adapter.

    All bounds are inclusive.
    """

    date_from: Optional[date] = None
    date_to: Optional[date] = None
    category_id: Optional[str] = None
    search_text: Optional[str] = None
    order_by_created: bool = Field(
        default=False,
        description="Order by created_at desc only (recent activity)"
    )

    @classmethod
    def for_window(
        cls,
        window: Optional[DateWindow],
        category_id: Optional[str] = None,
        search_text: Optional[str] = None,
    ) -> 'ExpenseQuery':
        return cls(
            date_from=window.start if window else None,
            date_to=window.end if window else None,
            category_id=category_id,
            search_text=search_text,
        )


class ExpenseFilters(BaseModel):
    """
    User-facing expense list filters.

    When no window is given and all_dates is False, the list is scoped to
    the current month.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    search_text: Optional[str] = Field(default=None, max_length=200)
    category_id: Optional[str] = None
    window: Optional[DateWindow] = None
    all_dates: bool = False

    @field_validator('search_text', 'category_id')
    @classmethod
    def blank_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None


class ExpensePage(BaseModel):
    """One page of the expense list."""

    items: list[Expense] = Field(default_factory=list)
    page: int = Field(..., ge=0)
    page_size: int = Field(..., ge=1)
    has_more: bool

    @property
    def total_base_cents(self) -> int:
        return sum(expense.amount_base_cents for expense in self.items)


class DateGroup(BaseModel):
    """Expenses of one page that share an expense date."""

    expense_date: date
    expenses: list[Expense] = Field(default_factory=list)
    subtotal_base_cents: int = 0


class DashboardSummary(BaseModel):
    """Everything the dashboard shows, in base-cents."""

    reference_date: date
    today_total: int = 0
    yesterday_total: int = 0
    current_month_total: int = 0
    last_month_total: int = 0
    last_7_days: list[DailyTotal] = Field(default_factory=list)
    by_category: list[CategoryTotal] = Field(default_factory=list)
    month_over_month_change: float = 0.0
    recent_expenses: list[Expense] = Field(default_factory=list)
    budget_statuses: list[BudgetStatus] = Field(default_factory=list)

    @property
    def categories_used(self) -> int:
        return len(self.by_category)

    @property
    def active_budget_count(self) -> int:
        return sum(1 for s in self.budget_statuses if s.limit_base_cents > 0)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'future_date')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning)$",
        description="Issue severity"
    )
