"""
In-memory ledger store.

Used by the tests and for local runs without a backend. Behaves like the
real stores: ordering, inclusive date bounds, case-insensitive description
search, owner-scoped deletes and one budget per (user, category).
"""

from datetime import datetime
from itertools import count
from typing import Callable, Iterable, Optional

from expense_ledger.models.categories import seed_categories
from expense_ledger.models.ledger import (
    Budget,
    Category,
    Expense,
    ExpenseQuery,
    ExpenseUpdate,
    NewExpense,
    utc_now,
)
from expense_ledger.services.storage.interface import (
    LedgerStoreInterface,
    NotFoundError,
    StoreError,
)


class InMemoryLedgerStore(LedgerStoreInterface):
    """Dictionary-backed implementation of the ledger store."""

    def __init__(
        self,
        categories: Optional[Iterable[Category]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        source = seed_categories() if categories is None else categories
        self._categories: dict[str, Category] = {c.id: c for c in source}
        self._expenses: dict[str, Expense] = {}
        self._budgets: dict[tuple[str, str], Budget] = {}
        self._clock = clock or utc_now
        # Insertion sequence breaks exact created_at ties
        self._sequence = count()
        self._order: dict[str, int] = {}

    def _category(self, category_id: str) -> Category:
        category = self._categories.get(category_id)
        if category is None:
            raise NotFoundError(f"Category not found: {category_id}")
        return category

    @staticmethod
    def _matches(expense: Expense, query: ExpenseQuery) -> bool:
        if query.date_from and expense.expense_date < query.date_from:
            return False
        if query.date_to and expense.expense_date > query.date_to:
            return False
        if query.category_id and expense.category_id != query.category_id:
            return False
        if query.search_text:
            description = (expense.description or "").lower()
            if query.search_text.lower() not in description:
                return False
        return True

    async def fetch_expenses(
        self,
        user_id: str,
        query: ExpenseQuery,
        offset: int = 0,
        limit: int = 100,
    ) -> list[Expense]:
        matches = [
            e for e in self._expenses.values()
            if e.user_id == user_id and self._matches(e, query)
        ]
        if query.order_by_created:
            matches.sort(
                key=lambda e: (e.created_at, self._order[e.id]),
                reverse=True,
            )
        else:
            matches.sort(
                key=lambda e: (e.expense_date, e.created_at, self._order[e.id]),
                reverse=True,
            )
        return [e.model_copy() for e in matches[offset:offset + limit]]

    async def insert_expense(self, expense: NewExpense) -> Expense:
        existing = self._expenses.get(expense.id)
        if existing is not None:
            if existing.user_id != expense.user_id:
                raise StoreError(f"Expense id already in use: {expense.id}")
            return existing.model_copy()

        now = self._clock()
        stored = Expense(
            category=self._category(expense.category_id),
            created_at=now,
            updated_at=now,
            **expense.model_dump(),
        )
        self._expenses[stored.id] = stored
        self._order[stored.id] = next(self._sequence)
        return stored.model_copy()

    async def update_expense(
        self,
        user_id: str,
        expense_id: str,
        update: ExpenseUpdate,
    ) -> Expense:
        current = self._expenses.get(expense_id)
        if current is None or current.user_id != user_id:
            raise NotFoundError(f"Expense not found: {expense_id}")

        changes = update.changes()
        if "category_id" in changes:
            changes["category"] = self._category(changes["category_id"])
        changes["updated_at"] = self._clock()

        updated = Expense.model_validate({**current.model_dump(), **changes})
        self._expenses[expense_id] = updated
        return updated.model_copy()

    async def delete_expense(self, expense_id: str, user_id: str) -> bool:
        current = self._expenses.get(expense_id)
        if current is None or current.user_id != user_id:
            return False
        del self._expenses[expense_id]
        del self._order[expense_id]
        return True

    async def fetch_budgets(self, user_id: str) -> list[Budget]:
        budgets = [b for (owner, _), b in self._budgets.items() if owner == user_id]
        budgets.sort(key=lambda b: b.category.display_order)
        return [b.model_copy() for b in budgets]

    async def upsert_budget(
        self,
        user_id: str,
        category_id: str,
        monthly_limit_base_cents: int,
    ) -> Budget:
        key = (user_id, category_id)
        now = self._clock()
        existing = self._budgets.get(key)
        if existing is not None:
            budget = existing.model_copy(update={
                "monthly_limit_base_cents": monthly_limit_base_cents,
                "updated_at": now,
            })
        else:
            budget = Budget(
                user_id=user_id,
                category_id=category_id,
                category=self._category(category_id),
                monthly_limit_base_cents=monthly_limit_base_cents,
                created_at=now,
                updated_at=now,
            )
        self._budgets[key] = budget
        return budget.model_copy()

    async def delete_budget(self, user_id: str, category_id: str) -> bool:
        return self._budgets.pop((user_id, category_id), None) is not None

    async def fetch_categories(self) -> list[Category]:
        return sorted(self._categories.values(), key=lambda c: c.display_order)
