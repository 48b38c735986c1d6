"""Tests for the ledger store adapters and the timeout guard."""

import asyncio
from datetime import date

import pytest

from expense_ledger.models import ExpenseQuery, NewExpense
from expense_ledger.services.storage import (
    GuardedLedgerStore,
    InMemoryLedgerStore,
    NotFoundError,
    StoreError,
    StoreTimeoutError,
    gather_store_calls,
)


REFERENCE = date(2026, 10, 19)


class SlowStore(InMemoryLedgerStore):
    """Store whose reads hang longer than any sane timeout."""

    async def fetch_expenses(self, user_id, query, offset=0, limit=100):
        await asyncio.sleep(5)
        return []


class BrokenStore(InMemoryLedgerStore):
    async def fetch_categories(self):
        raise RuntimeError("socket closed")


class TestInMemoryStore:
    @pytest.mark.asyncio
    async def test_insert_joins_category(self, store):
        expense = await store.insert_expense(NewExpense(
            user_id="user-1",
            category_id="healthcare",
            amount_base_cents=2500,
            expense_date=REFERENCE,
        ))
        assert expense.category.name == "Healthcare"
        assert expense.created_at.tzinfo is not None

    @pytest.mark.asyncio
    async def test_insert_unknown_category(self, store):
        with pytest.raises(NotFoundError):
            await store.insert_expense(NewExpense(
                user_id="user-1",
                category_id="space-travel",
                amount_base_cents=2500,
                expense_date=REFERENCE,
            ))

    @pytest.mark.asyncio
    async def test_insert_is_idempotent_on_id(self, store):
        payload = NewExpense(
            user_id="user-1",
            category_id="healthcare",
            amount_base_cents=2500,
            expense_date=REFERENCE,
        )

        first = await store.insert_expense(payload)
        second = await store.insert_expense(payload)

        assert second.id == first.id == payload.id
        assert len(await store.fetch_expenses("user-1", ExpenseQuery())) == 1

    @pytest.mark.asyncio
    async def test_insert_rejects_id_of_another_user(self, store):
        payload = NewExpense(
            user_id="user-1",
            category_id="healthcare",
            amount_base_cents=2500,
            expense_date=REFERENCE,
        )
        await store.insert_expense(payload)

        with pytest.raises(StoreError):
            await store.insert_expense(payload.model_copy(update={"user_id": "user-2"}))
        assert await store.fetch_expenses("user-2", ExpenseQuery()) == []

    @pytest.mark.asyncio
    async def test_date_bounds_are_inclusive(self, store, add_expense):
        await add_expense("food-dining", 100, date(2026, 10, 1))
        await add_expense("food-dining", 200, date(2026, 10, 19))
        await add_expense("food-dining", 300, date(2026, 10, 20))

        query = ExpenseQuery(date_from=date(2026, 10, 1), date_to=date(2026, 10, 19))
        expenses = await store.fetch_expenses("user-1", query)
        assert sorted(e.amount_base_cents for e in expenses) == [100, 200]

    @pytest.mark.asyncio
    async def test_one_budget_per_user_and_category(self, store):
        await store.upsert_budget("user-1", "food-dining", 100)
        await store.upsert_budget("user-1", "food-dining", 200)
        await store.upsert_budget("user-2", "food-dining", 300)

        budgets = await store.fetch_budgets("user-1")
        assert [b.monthly_limit_base_cents for b in budgets] == [200]
        assert (await store.fetch_budget("user-1", "shopping")) is None

    @pytest.mark.asyncio
    async def test_update_requires_owner(self, store, add_expense):
        from expense_ledger.models import ExpenseUpdate

        expense = await add_expense("food-dining", 100)
        with pytest.raises(NotFoundError):
            await store.update_expense("user-2", expense.id, ExpenseUpdate(amount_base_cents=5))

    @pytest.mark.asyncio
    async def test_categories_in_display_order(self, store):
        categories = await store.fetch_categories()
        assert [c.display_order for c in categories] == sorted(c.display_order for c in categories)


class TestGuardedStore:
    @pytest.mark.asyncio
    async def test_timeout_becomes_store_timeout_error(self):
        guarded = GuardedLedgerStore(SlowStore(), timeout=0.05)

        with pytest.raises(StoreTimeoutError):
            await guarded.fetch_expenses("user-1", ExpenseQuery())

    @pytest.mark.asyncio
    async def test_timeout_is_a_store_error(self):
        assert issubclass(StoreTimeoutError, StoreError)

    @pytest.mark.asyncio
    async def test_backend_errors_are_normalized(self):
        guarded = GuardedLedgerStore(BrokenStore(), timeout=1.0)

        with pytest.raises(StoreError) as exc_info:
            await guarded.fetch_categories()
        assert "socket closed" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_not_found_passes_through(self):
        guarded = GuardedLedgerStore(InMemoryLedgerStore(), timeout=1.0)

        with pytest.raises(NotFoundError):
            await guarded.upsert_budget("user-1", "space-travel", 100)

    @pytest.mark.asyncio
    async def test_successful_calls_pass_results(self):
        inner = InMemoryLedgerStore()
        guarded = GuardedLedgerStore(inner, timeout=1.0)

        budget = await guarded.upsert_budget("user-1", "food-dining", 100)
        assert budget.monthly_limit_base_cents == 100
        assert (await guarded.fetch_budget("user-1", "food-dining")).id == budget.id
        assert guarded.inner is inner


class TestGatherStoreCalls:
    @pytest.mark.asyncio
    async def test_returns_results_in_order(self):
        async def value(v):
            return v

        assert await gather_store_calls(value(1), value(2)) == [1, 2]

    @pytest.mark.asyncio
    async def test_siblings_finish_before_the_failure_is_raised(self):
        finished = []

        async def slow_read():
            await asyncio.sleep(0.05)
            finished.append("slow")
            return []

        async def failing_read():
            raise StoreError("budgets unavailable")

        with pytest.raises(StoreError, match="budgets unavailable"):
            await gather_store_calls(failing_read(), slow_read())
        assert finished == ["slow"]

    @pytest.mark.asyncio
    async def test_first_failure_in_argument_order_wins(self):
        async def fail(message):
            raise StoreError(message)

        with pytest.raises(StoreError, match="first"):
            await gather_store_calls(fail("first"), fail("second"))
