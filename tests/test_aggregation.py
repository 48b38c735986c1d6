"""Tests for the aggregation engine."""

from datetime import date, timedelta

import pytest

from expense_ledger.analytics import (
    AnalyticsService,
    category_breakdown,
    month_over_month_change,
    sum_by_category,
    sum_by_day,
    total_of,
)
from expense_ledger.models import Category, DateWindow, Expense
from expense_ledger.windows import current_month, last_7_days


REFERENCE = date(2026, 10, 19)

FOOD = Category(id="food-dining", name="Food & Dining", color="#ef4444", emoji="🍽️", display_order=1)
TRANSPORT = Category(id="transportation", name="Transportation", color="#3b82f6", emoji="🚗", display_order=2)


def make_expense(category: Category, cents: int, day: date = REFERENCE) -> Expense:
    return Expense(
        user_id="user-1",
        category_id=category.id,
        category=category,
        amount_base_cents=cents,
        expense_date=day,
    )


class TestPureAggregation:
    """Grouping and summing without a store."""

    def test_total_of_empty_is_zero(self):
        assert total_of([]) == 0

    def test_sum_by_day_fills_every_day(self):
        window = last_7_days(REFERENCE)
        expenses = [
            make_expense(FOOD, 500, REFERENCE),
            make_expense(FOOD, 250, REFERENCE),
            make_expense(TRANSPORT, 300, date(2026, 10, 13)),
            # Outside the window
            make_expense(TRANSPORT, 999, date(2026, 10, 12)),
        ]
        days = sum_by_day(expenses, window)

        assert len(days) == window.days() == 7
        assert [d.day for d in days] == list(window.dates())
        assert days[0].total_base_cents == 300
        assert days[-1].total_base_cents == 750
        assert all(d.total_base_cents == 0 for d in days[1:-1])

    def test_sum_by_day_matches_total_in_window(self):
        window = DateWindow(start=date(2026, 10, 1), end=date(2026, 10, 10))
        expenses = [
            make_expense(FOOD, 100 + i, date(2026, 10, 1) + timedelta(days=i))
            for i in range(10)
        ]
        days = sum_by_day(expenses, window)
        assert sum(d.total_base_cents for d in days) == total_of(expenses)

    def test_sum_by_category_first_occurrence_order(self):
        expenses = [
            make_expense(TRANSPORT, 200),
            make_expense(FOOD, 100),
            make_expense(TRANSPORT, 50),
        ]
        totals = sum_by_category(expenses)
        assert list(totals) == ["transportation", "food-dining"]
        assert totals == {"transportation": 250, "food-dining": 100}

    def test_sum_by_category_omits_unused_categories(self):
        assert sum_by_category([]) == {}

    def test_category_breakdown_sorted_with_shares(self):
        expenses = [
            make_expense(FOOD, 250),
            make_expense(TRANSPORT, 750),
        ]
        breakdown = category_breakdown(expenses)
        assert [row.category_id for row in breakdown] == ["transportation", "food-dining"]
        assert breakdown[0].share_percent == pytest.approx(75.0)
        assert breakdown[0].category_name == "Transportation"
        assert breakdown[1].emoji == "🍽️"

    def test_category_breakdown_empty(self):
        assert category_breakdown([]) == []

    @pytest.mark.parametrize("current,previous,expected", [
        (1500, 1000, 50.0),
        (500, 1000, -50.0),
        (1000, 0, 0.0),
        (0, 0, 0.0),
    ])
    def test_month_over_month_change(self, current, previous, expected):
        assert month_over_month_change(current, previous) == pytest.approx(expected)


class TestAnalyticsService:
    """Window fetches through the store."""

    @pytest.mark.asyncio
    async def test_spending_in_window_scopes_user_and_category(self, store, add_expense, settings):
        await add_expense("food-dining", 500)
        await add_expense("food-dining", 700, date(2026, 10, 2))
        await add_expense("transportation", 300)
        await add_expense("food-dining", 900, date(2026, 9, 30))
        await add_expense("food-dining", 400, user_id="user-2")

        analytics = AnalyticsService(store, settings)
        window = current_month(REFERENCE)

        assert await analytics.spending_in_window("user-1", window) == 1500
        assert await analytics.spending_in_window("user-1", window, "food-dining") == 1200

    @pytest.mark.asyncio
    async def test_expenses_in_window_reads_past_one_batch(self, store, add_expense, settings, monkeypatch):
        monkeypatch.setattr("expense_ledger.analytics.aggregation.FETCH_BATCH_SIZE", 4)
        for i in range(10):
            await add_expense("food-dining", 100, REFERENCE - timedelta(days=i))

        analytics = AnalyticsService(store, settings)
        expenses = await analytics.expenses_in_window("user-1", current_month(REFERENCE))
        assert len(expenses) == 10

    @pytest.mark.asyncio
    async def test_deleting_last_expense_removes_category_key(self, store, add_expense, settings):
        expense = await add_expense("groceries", 1200)
        analytics = AnalyticsService(store, settings)
        window = current_month(REFERENCE)

        assert await analytics.spending_by_category("user-1", window) == {"groceries": 1200}

        await store.delete_expense(expense.id, "user-1")
        totals = await analytics.spending_by_category("user-1", window)
        assert "groceries" not in totals

    @pytest.mark.asyncio
    async def test_dashboard(self, store, add_expense, settings):
        await add_expense("food-dining", 1000, REFERENCE)
        await add_expense("transportation", 500, date(2026, 10, 18))
        await add_expense("food-dining", 1500, date(2026, 10, 2))
        await add_expense("shopping", 2000, date(2026, 9, 15))

        summary = await AnalyticsService(store, settings).dashboard("user-1", REFERENCE)

        assert summary.today_total == 1000
        assert summary.yesterday_total == 500
        assert summary.current_month_total == 3000
        assert summary.last_month_total == 2000
        assert summary.month_over_month_change == pytest.approx(50.0)
        assert len(summary.last_7_days) == 7
        assert sum(d.total_base_cents for d in summary.last_7_days) == 1500
        assert [row.category_id for row in summary.by_category] == ["food-dining", "transportation"]
        assert summary.categories_used == 2

    @pytest.mark.asyncio
    async def test_dashboard_recent_expenses_by_creation(self, store, add_expense, settings):
        # Created last, but dated earliest
        for i in range(6):
            await add_expense("food-dining", 100 + i, REFERENCE)
        latest = await add_expense("other", 42, date(2026, 8, 1))

        summary = await AnalyticsService(store, settings).dashboard("user-1", REFERENCE)

        assert len(summary.recent_expenses) == settings.recent_expenses_limit == 5
        assert summary.recent_expenses[0].id == latest.id
