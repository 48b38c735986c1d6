"""
Data Models Package

This package contains all Pydantic models used by the expense ledger.
All data flowing through the engine must conform to these schemas.
"""

from expense_ledger.models.ledger import (
    Budget,
    BudgetOverview,
    BudgetState,
    BudgetStatus,
    Category,
    CategoryTotal,
    Currency,
    DailyTotal,
    DashboardSummary,
    DateGroup,
    DateWindow,
    Expense,
    ExpenseFilters,
    ExpensePage,
    ExpenseQuery,
    ExpenseUpdate,
    NewExpense,
    ValidationIssue,
)
from expense_ledger.models.categories import DEFAULT_CATEGORIES, seed_categories
from expense_ledger.models.notification import Notification, NotificationSeverity
from expense_ledger.models.events import (
    EventSeverity,
    LedgerEvent,
    LedgerEventBuilder,
    LedgerEventType,
)

__all__ = [
    # Ledger models
    "Budget",
    "BudgetOverview",
    "BudgetState",
    "BudgetStatus",
    "Category",
    "CategoryTotal",
    "Currency",
    "DailyTotal",
    "DashboardSummary",
    "DateGroup",
    "DateWindow",
    "Expense",
    "ExpenseFilters",
    "ExpensePage",
    "ExpenseQuery",
    "ExpenseUpdate",
    "NewExpense",
    "ValidationIssue",
    # Seed data
    "DEFAULT_CATEGORIES",
    "seed_categories",
    # Notifications
    "Notification",
    "NotificationSeverity",
    # Event models
    "EventSeverity",
    "LedgerEvent",
    "LedgerEventBuilder",
    "LedgerEventType",
]
