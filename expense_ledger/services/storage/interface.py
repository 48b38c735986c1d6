"""
Abstract Ledger Store Interface

DESIGN DECISION: The engine never talks to a database directly.
It depends on this narrow interface, which allows us to:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for testing
3. Impose timeouts on every call transparently (see guard.py)
4. Keep budget/aggregation logic decoupled from storage

The interface is intentionally small - just the record operations the
engine needs. Filtering, ordering and paging happen in the store.
"""

from abc import ABC, abstractmethod
from typing import Optional

from expense_ledger.models.ledger import (
    Budget,
    Category,
    Expense,
    ExpenseQuery,
    ExpenseUpdate,
    NewExpense,
)


class LedgerStoreInterface(ABC):
    """
    Abstract interface for ledger record storage.

    Any storage implementation (Google Sheets, PostgreSQL, in-memory)
    must implement these methods.
    """

    @abstractmethod
    async def fetch_expenses(
        self,
        user_id: str,
        query: ExpenseQuery,
        offset: int = 0,
        limit: int = 100,
    ) -> list[Expense]:
        """
        List a user's expenses.

        Args:
            user_id: Owner of the expenses
            query: Inclusive date bounds, category and description filters
            offset: Number of results to skip
            limit: Maximum number of results

        Returns:
            Expenses ordered by expense_date desc then created_at desc
            (created_at desc only when query.order_by_created is set),
            each joined with exactly one Category.
        """
        pass

    @abstractmethod
    async def insert_expense(self, expense: NewExpense) -> Expense:
        """
        Insert an expense under the payload's id.

        Idempotent on expense.id: when the id is already stored for the
        same user, the stored expense is returned and nothing is written.

        Returns:
            The stored expense with its id and timestamps

        Raises:
            NotFoundError: If the category doesn't exist
            StoreError: If the insert fails, or the id belongs to
                another user
        """
        pass

    @abstractmethod
    async def update_expense(
        self,
        user_id: str,
        expense_id: str,
        update: ExpenseUpdate,
    ) -> Expense:
        """
        Apply a partial update to an expense owned by user_id.

        Raises:
            NotFoundError: If no expense matches both id and owner
            StoreError: If the update fails
        """
        pass

    @abstractmethod
    async def delete_expense(self, expense_id: str, user_id: str) -> bool:
        """
        Hard-delete an expense, conditional on id AND owner.

        Returns:
            True if a row was deleted, False if nothing matched
        """
        pass

    @abstractmethod
    async def fetch_budgets(self, user_id: str) -> list[Budget]:
        """Return all of a user's budgets, each joined with its Category."""
        pass

    @abstractmethod
    async def upsert_budget(
        self,
        user_id: str,
        category_id: str,
        monthly_limit_base_cents: int,
    ) -> Budget:
        """
        Create or update the single budget for (user, category).

        Raises:
            NotFoundError: If the category doesn't exist
        """
        pass

    @abstractmethod
    async def delete_budget(self, user_id: str, category_id: str) -> bool:
        """
        Delete the budget for (user, category).

        Returns:
            True if a budget was removed, False if none was set
        """
        pass

    @abstractmethod
    async def fetch_categories(self) -> list[Category]:
        """Return all categories ordered by display_order."""
        pass

    async def fetch_budget(
        self,
        user_id: str,
        category_id: str,
    ) -> Optional[Budget]:
        """Return the budget for one category, or None if none is set."""
        for budget in await self.fetch_budgets(user_id):
            if budget.category_id == category_id:
                return budget
        return None


class StoreError(Exception):
    """Base exception for ledger store operations."""
    pass


class NotFoundError(StoreError):
    """Record not found, or not owned by the caller."""
    pass


class ConnectionError(StoreError):
    """Could not connect to storage backend."""
    pass


class StoreTimeoutError(StoreError):
    """
    A store call did not complete within its timeout.

    The outcome is unknown: the backend may still apply the write after
    the caller stopped waiting. Retry writes with the same record id
    rather than treating the call as a clean failure.
    """
    pass
