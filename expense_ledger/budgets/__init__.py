"""Budget status and notification package."""

from expense_ledger.budgets.notifications import (
    CollectingNotificationSink,
    LoggingNotificationSink,
    NotificationSink,
)
from expense_ledger.budgets.status import (
    BudgetStatusEngine,
    budget_percentage,
    build_status,
    classify,
)

__all__ = [
    "BudgetStatusEngine",
    "CollectingNotificationSink",
    "LoggingNotificationSink",
    "NotificationSink",
    "budget_percentage",
    "build_status",
    "classify",
]
