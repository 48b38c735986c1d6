"""Spending aggregation package."""

from expense_ledger.analytics.aggregation import (
    AnalyticsService,
    category_breakdown,
    month_over_month_change,
    sum_by_category,
    sum_by_day,
    total_of,
)

__all__ = [
    "AnalyticsService",
    "category_breakdown",
    "month_over_month_change",
    "sum_by_category",
    "sum_by_day",
    "total_of",
]
