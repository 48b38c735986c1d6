"""Time window package."""

from expense_ledger.windows.calculator import (
    WINDOW_FILTERS,
    current_month,
    describe_window,
    format_relative_date,
    last_3_months,
    last_7_days,
    last_month,
    today,
    window_for_filter,
    yesterday,
)

__all__ = [
    "WINDOW_FILTERS",
    "current_month",
    "describe_window",
    "format_relative_date",
    "last_3_months",
    "last_7_days",
    "last_month",
    "today",
    "window_for_filter",
    "yesterday",
]
