"""Tests for the budget status engine."""

import asyncio
from datetime import date

import pytest

from expense_ledger.budgets import build_status, classify
from expense_ledger.models import (
    BudgetState,
    Category,
    NotificationSeverity,
)
from expense_ledger.services.storage import InMemoryLedgerStore, StoreError
from expense_ledger.budgets import BudgetStatusEngine
from expense_ledger.validation import ValidationError
from expense_ledger.windows import current_month


REFERENCE = date(2026, 10, 19)
WINDOW = current_month(REFERENCE)

FOOD = Category(id="food-dining", name="Food & Dining", display_order=1)


class TestClassification:
    """State bands are closed-open at 80 and 100."""

    @pytest.mark.parametrize("spent,limit,state", [
        (0, 0, BudgetState.NO_BUDGET),
        (5000, 0, BudgetState.NO_BUDGET),
        (0, 10000, BudgetState.ON_TRACK),
        (7999, 10000, BudgetState.ON_TRACK),
        (8000, 10000, BudgetState.WARNING),
        (9999, 10000, BudgetState.WARNING),
        (10000, 10000, BudgetState.EXCEEDED),
        (15000, 10000, BudgetState.EXCEEDED),
    ])
    def test_classify(self, spent, limit, state, settings):
        assert classify(spent, limit, settings) == state

    def test_no_budget_has_no_percentage(self, settings):
        status = build_status(FOOD, 5000, 0, settings)
        assert status.percentage is None
        assert status.is_over_budget is False

    def test_thresholds_come_from_settings(self):
        from expense_ledger.config import LedgerSettings

        strict = LedgerSettings(warning_threshold_percent=50.0, exceeded_threshold_percent=90.0)
        assert classify(5000, 10000, strict) == BudgetState.WARNING
        assert classify(9000, 10000, strict) == BudgetState.EXCEEDED


class TestEvaluate:
    @pytest.mark.asyncio
    async def test_evaluate_without_budget_is_no_budget(self, engine, add_expense):
        await add_expense("food-dining", 500)
        status = await engine.evaluate("user-1", "food-dining", WINDOW)
        assert status.state == BudgetState.NO_BUDGET
        assert status.spent_base_cents == 500
        assert status.category_name == "Food & Dining"

    @pytest.mark.asyncio
    async def test_evaluate_all_skips_unset_budgets(self, engine, store, add_expense):
        await store.upsert_budget("user-1", "shopping", 20000)
        await store.upsert_budget("user-1", "food-dining", 10000)
        await store.upsert_budget("user-1", "groceries", 0)
        await add_expense("food-dining", 8500)

        statuses = await engine.evaluate_all("user-1", WINDOW)

        assert [s.category_id for s in statuses] == ["food-dining", "shopping"]
        assert statuses[0].state == BudgetState.WARNING
        assert statuses[1].state == BudgetState.ON_TRACK

    @pytest.mark.asyncio
    async def test_overview_includes_every_category(self, engine, store, add_expense):
        await store.upsert_budget("user-1", "food-dining", 10000)
        await store.upsert_budget("user-1", "shopping", 5000)
        await add_expense("food-dining", 12000)
        await add_expense("shopping", 1000)
        await add_expense("transportation", 7000)

        overview = await engine.overview("user-1", WINDOW)

        assert len(overview.rows) == 9
        assert overview.total_budget_base_cents == 15000
        # Unbudgeted spending is not part of the budgeted total
        assert overview.total_spent_base_cents == 13000
        assert overview.over_budget_count == 1
        transport = next(r for r in overview.rows if r.category_id == "transportation")
        assert transport.state == BudgetState.NO_BUDGET


class TestNotifications:
    @pytest.mark.asyncio
    async def test_on_track_then_exceeded(self, engine, store, add_expense, sink):
        """500/1000 is on track; +600 makes it 110% and one error alert."""
        await store.upsert_budget("user-1", "food-dining", 100000)
        await add_expense("food-dining", 50000)

        status = await engine.evaluate("user-1", "food-dining", WINDOW)
        assert status.percentage == pytest.approx(50.0)
        assert status.state == BudgetState.ON_TRACK
        assert await engine.notify_on_transition("user-1", "food-dining", reference=REFERENCE) is None
        assert sink.delivered == []

        await add_expense("food-dining", 60000)
        notification = await engine.notify_on_transition("user-1", "food-dining", reference=REFERENCE)

        assert notification.severity == NotificationSeverity.ERROR
        assert notification.title == "Budget Exceeded: Food & Dining"
        assert notification.body == "You've spent $1,100.00 (110.0%) of your $1,000.00 budget."
        assert notification.duration_ms == 8000
        assert sink.delivered == [notification]

    @pytest.mark.asyncio
    async def test_warning_names_percentage_and_remaining(self, engine, store, add_expense):
        await store.upsert_budget("user-1", "food-dining", 10000)
        await add_expense("food-dining", 8500)

        notification = await engine.notify_on_transition("user-1", "food-dining", reference=REFERENCE)

        assert notification.severity == NotificationSeverity.WARNING
        assert notification.title == "Budget Alert: Food & Dining"
        assert notification.body == "You've used 85.0% of your budget. $15.00 remaining."
        assert notification.duration_ms == 6000

    @pytest.mark.asyncio
    async def test_notification_is_not_deduplicated(self, engine, store, add_expense, sink):
        await store.upsert_budget("user-1", "food-dining", 1000)
        await add_expense("food-dining", 1000)

        await engine.notify_on_transition("user-1", "food-dining", reference=REFERENCE)
        await engine.notify_on_transition("user-1", "food-dining", reference=REFERENCE)
        assert len(sink.delivered) == 2

    @pytest.mark.asyncio
    async def test_summary_prefers_exceeded(self, engine, store, add_expense):
        await store.upsert_budget("user-1", "food-dining", 1000)
        await store.upsert_budget("user-1", "transportation", 1000)
        await store.upsert_budget("user-1", "shopping", 1000)
        await add_expense("food-dining", 1500)
        await add_expense("transportation", 1200)
        await add_expense("shopping", 900)

        statuses = await engine.evaluate_all("user-1", WINDOW)
        notification = engine.summary_notification(statuses)

        assert notification.severity == NotificationSeverity.ERROR
        assert notification.title == "2 Budgets Exceeded"
        assert notification.body == "Food & Dining, Transportation over budget this month."
        assert notification.duration_ms == 10000

    @pytest.mark.asyncio
    async def test_summary_warnings_only(self, engine, store, add_expense):
        await store.upsert_budget("user-1", "shopping", 1000)
        await add_expense("shopping", 800)

        notification = engine.summary_notification(await engine.evaluate_all("user-1", WINDOW))

        assert notification.severity == NotificationSeverity.WARNING
        assert notification.title == "1 Budget Warning"
        assert notification.duration_ms == 8000

    def test_summary_none_when_all_on_track(self, engine, settings):
        statuses = [build_status(FOOD, 100, 10000, settings)]
        assert engine.summary_notification(statuses) is None
        assert engine.summary_notification([]) is None

    @pytest.mark.asyncio
    async def test_zero_limit_never_alerts(self, engine, store, add_expense, sink):
        await store.upsert_budget("user-1", "food-dining", 0)
        await add_expense("food-dining", 99999)

        assert await engine.notify_on_transition("user-1", "food-dining", reference=REFERENCE) is None
        assert engine.summary_notification(await engine.evaluate_all("user-1", WINDOW)) is None
        assert sink.delivered == []


class FailingBudgetStore(InMemoryLedgerStore):
    async def fetch_budgets(self, user_id):
        raise StoreError("budgets unavailable")


class TestFailClosed:
    @pytest.mark.asyncio
    async def test_store_failure_propagates_without_notification(self, sink, event_logger, settings):
        engine = BudgetStatusEngine(FailingBudgetStore(), sink=sink, event_logger=event_logger, settings=settings)

        with pytest.raises(StoreError):
            await engine.notify_on_transition("user-1", "food-dining", reference=REFERENCE)
        assert sink.delivered == []


class SlowSpendingStore(FailingBudgetStore):
    """Budgets fail at once while the spending read is still in flight."""

    def __init__(self):
        super().__init__()
        self.finished_reads = 0

    async def fetch_expenses(self, user_id, query, offset=0, limit=100):
        await asyncio.sleep(0.05)
        self.finished_reads += 1
        return await super().fetch_expenses(user_id, query, offset, limit)


class TestConcurrentReadFailures:
    @pytest.mark.asyncio
    async def test_evaluate_waits_for_every_read(self, sink, event_logger, settings):
        store = SlowSpendingStore()
        engine = BudgetStatusEngine(store, sink=sink, event_logger=event_logger, settings=settings)

        with pytest.raises(StoreError, match="budgets unavailable"):
            await engine.evaluate("user-1", "food-dining", WINDOW)
        assert store.finished_reads == 1

    @pytest.mark.asyncio
    async def test_evaluate_all_waits_for_every_read(self, sink, event_logger, settings):
        store = SlowSpendingStore()
        engine = BudgetStatusEngine(store, sink=sink, event_logger=event_logger, settings=settings)

        with pytest.raises(StoreError, match="budgets unavailable"):
            await engine.evaluate_all("user-1", WINDOW)
        assert store.finished_reads == 1


class TestSaveBudget:
    @pytest.mark.asyncio
    async def test_save_and_update(self, engine, store):
        budget = await engine.save_budget("user-1", "food-dining", 30000)
        assert budget.monthly_limit_base_cents == 30000

        await engine.save_budget("user-1", "food-dining", 45000)
        budgets = await store.fetch_budgets("user-1")
        assert len(budgets) == 1
        assert budgets[0].monthly_limit_base_cents == 45000

    @pytest.mark.asyncio
    async def test_zero_removes_budget(self, engine, store, event_logger):
        await engine.save_budget("user-1", "food-dining", 30000)
        assert await engine.save_budget("user-1", "food-dining", 0) is None
        assert await store.fetch_budgets("user-1") == []

        # Removing again is a no-op
        assert await engine.save_budget("user-1", "food-dining", 0) is None
        assert event_logger.events[-1].details == {"existed": False}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("limit", [-1, 10.5])
    async def test_invalid_limit(self, engine, store, limit):
        with pytest.raises(ValidationError):
            await engine.save_budget("user-1", "food-dining", limit)
        assert await store.fetch_budgets("user-1") == []
