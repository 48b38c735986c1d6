"""
Aggregation Engine

DESIGN DECISION: Aggregation is DETERMINISTIC and pure.
The store adapter fetches raw expenses for (user, window, category);
the functions here only group and sum integers. No function in this module
touches floats except the share and change percentages, which are
display values derived from exact integer totals.

AnalyticsService is the thin async layer that fetches windows through the
store (concurrently where the reads are independent) and hands the rows
to the pure functions.
"""

from datetime import date
from typing import Iterable, Optional

from expense_ledger.config import LedgerSettings, get_settings
from expense_ledger.models.ledger import (
    CategoryTotal,
    DailyTotal,
    DashboardSummary,
    DateWindow,
    Expense,
    ExpenseQuery,
)
from expense_ledger.services.storage import (
    LedgerStoreInterface,
    gather_store_calls,
)
from expense_ledger import windows


# Rows requested per store call when a whole window is needed
FETCH_BATCH_SIZE = 500


def total_of(expenses: Iterable[Expense]) -> int:
    """Sum of amounts in base-cents; 0 for no expenses."""
    return sum(expense.amount_base_cents for expense in expenses)


def sum_by_day(expenses: Iterable[Expense], window: DateWindow) -> list[DailyTotal]:
    """
    One DailyTotal per calendar day of the window, oldest first.

    Days without expenses are present with 0. Expenses dated outside the
    window are ignored.
    """
    totals = {day: 0 for day in window.dates()}
    for expense in expenses:
        if expense.expense_date in totals:
            totals[expense.expense_date] += expense.amount_base_cents
    return [DailyTotal(day=day, total_base_cents=total) for day, total in totals.items()]


def sum_by_category(expenses: Iterable[Expense]) -> dict[str, int]:
    """
    Totals keyed by category_id, in order of first occurrence.

    A category with no expenses has no key.
    """
    totals: dict[str, int] = {}
    for expense in expenses:
        totals[expense.category_id] = totals.get(expense.category_id, 0) + expense.amount_base_cents
    return totals


def category_breakdown(expenses: Iterable[Expense]) -> list[CategoryTotal]:
    """Per-category totals with display fields and share of the whole, largest first."""
    expenses = list(expenses)
    totals = sum_by_category(expenses)
    grand_total = sum(totals.values())
    if grand_total == 0:
        return []

    categories = {expense.category_id: expense.category for expense in expenses}
    breakdown = [
        CategoryTotal(
            category_id=category_id,
            category_name=categories[category_id].name,
            color=categories[category_id].color,
            emoji=categories[category_id].emoji,
            total_base_cents=total,
            share_percent=total / grand_total * 100,
        )
        for category_id, total in totals.items()
        if total > 0
    ]
    # sorted() is stable: equal totals keep first-occurrence order
    return sorted(breakdown, key=lambda row: row.total_base_cents, reverse=True)


def month_over_month_change(current: int, previous: int) -> float:
    """Percentage change from previous to current; 0.0 when previous is 0."""
    if previous == 0:
        return 0.0
    return (current - previous) / previous * 100


class AnalyticsService:
    """
    Fetches expense windows and aggregates them.

    GUARANTEES:
    - Only aggregates what the store returns
    - Store failures propagate; no partial dashboard is returned
    """

    def __init__(
        self,
        store: LedgerStoreInterface,
        settings: Optional[LedgerSettings] = None,
    ):
        self._store = store
        self._settings = settings or get_settings().ledger

    async def expenses_in_window(
        self,
        user_id: str,
        window: Optional[DateWindow],
        category_id: Optional[str] = None,
    ) -> list[Expense]:
        """Every expense of the user in the window, newest first."""
        query = ExpenseQuery.for_window(window, category_id=category_id)
        expenses: list[Expense] = []
        offset = 0
        while True:
            batch = await self._store.fetch_expenses(
                user_id, query, offset=offset, limit=FETCH_BATCH_SIZE
            )
            expenses.extend(batch)
            if len(batch) < FETCH_BATCH_SIZE:
                return expenses
            offset += FETCH_BATCH_SIZE

    async def spending_in_window(
        self,
        user_id: str,
        window: DateWindow,
        category_id: Optional[str] = None,
    ) -> int:
        """Total spend in base-cents for the window (optionally one category)."""
        return total_of(await self.expenses_in_window(user_id, window, category_id))

    async def spending_by_category(
        self,
        user_id: str,
        window: DateWindow,
    ) -> dict[str, int]:
        return sum_by_category(await self.expenses_in_window(user_id, window))

    async def recent_expenses(self, user_id: str, limit: Optional[int] = None) -> list[Expense]:
        """Most recently created expenses, regardless of expense date."""
        return await self._store.fetch_expenses(
            user_id,
            ExpenseQuery(order_by_created=True),
            offset=0,
            limit=limit or self._settings.recent_expenses_limit,
        )

    async def dashboard(
        self,
        user_id: str,
        reference: Optional[date] = None,
    ) -> DashboardSummary:
        """
        Build the dashboard summary.

        The window fetches are independent reads and run concurrently.
        """
        reference = reference or date.today()
        today_window = windows.today(reference)
        yesterday_window = windows.yesterday(reference)
        month_window = windows.current_month(reference)
        last_month_window = windows.last_month(reference)
        week_window = windows.last_7_days(reference)

        (
            today_expenses,
            yesterday_expenses,
            month_expenses,
            last_month_expenses,
            week_expenses,
            recent,
        ) = await gather_store_calls(
            self.expenses_in_window(user_id, today_window),
            self.expenses_in_window(user_id, yesterday_window),
            self.expenses_in_window(user_id, month_window),
            self.expenses_in_window(user_id, last_month_window),
            self.expenses_in_window(user_id, week_window),
            self.recent_expenses(user_id),
        )

        current_total = total_of(month_expenses)
        previous_total = total_of(last_month_expenses)

        return DashboardSummary(
            reference_date=reference,
            today_total=total_of(today_expenses),
            yesterday_total=total_of(yesterday_expenses),
            current_month_total=current_total,
            last_month_total=previous_total,
            last_7_days=sum_by_day(week_expenses, week_window),
            by_category=category_breakdown(month_expenses),
            month_over_month_change=month_over_month_change(current_total, previous_total),
            recent_expenses=recent,
        )
