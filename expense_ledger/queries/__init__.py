"""Expense listing package."""

from expense_ledger.queries.executor import ExpenseQueryService, group_by_date

__all__ = ["ExpenseQueryService", "group_by_date"]
