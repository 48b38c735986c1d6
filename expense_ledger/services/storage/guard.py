"""
Timeout guard for ledger store calls.

Every store call made by the engine goes through GuardedLedgerStore, which
bounds it with a timeout and normalizes backend exceptions into StoreError.
Retries are the adapter's business; the guard never retries.

A timeout only stops the waiting. A backend running in a worker thread
may still finish the write, so StoreTimeoutError means "outcome unknown".
"""

import asyncio
from typing import Awaitable, Optional, TypeVar

from expense_ledger.models.ledger import (
    Budget,
    Category,
    Expense,
    ExpenseQuery,
    ExpenseUpdate,
    NewExpense,
)
from expense_ledger.services.storage.interface import (
    LedgerStoreInterface,
    StoreError,
    StoreTimeoutError,
)

T = TypeVar("T")


async def call_store(
    awaitable: Awaitable[T],
    timeout: float,
    operation: str,
) -> T:
    """
    Await a store call with a timeout.

    Raises:
        StoreTimeoutError: If the call exceeds the timeout
        StoreError: For any other backend failure (StoreError subclasses
            such as NotFoundError pass through unchanged)
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError as e:
        raise StoreTimeoutError(
            f"{operation} timed out after {timeout:g}s"
        ) from e
    except StoreError:
        raise
    except Exception as e:
        raise StoreError(f"{operation} failed: {e}") from e


async def gather_store_calls(*awaitables: Awaitable) -> list:
    """
    Run store reads concurrently and fail closed.

    Every call is awaited to completion before anything is raised, so no
    sibling is left running with an unretrieved exception. The first
    failure, in argument order, is re-raised.
    """
    results = await asyncio.gather(*awaitables, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results


class GuardedLedgerStore(LedgerStoreInterface):
    """Wraps another store so that every call is bounded by a timeout."""

    def __init__(self, inner: LedgerStoreInterface, timeout: float):
        self._inner = inner
        self._timeout = timeout

    @property
    def inner(self) -> LedgerStoreInterface:
        return self._inner

    async def fetch_expenses(
        self,
        user_id: str,
        query: ExpenseQuery,
        offset: int = 0,
        limit: int = 100,
    ) -> list[Expense]:
        return await call_store(
            self._inner.fetch_expenses(user_id, query, offset, limit),
            self._timeout,
            "fetch_expenses",
        )

    async def insert_expense(self, expense: NewExpense) -> Expense:
        return await call_store(
            self._inner.insert_expense(expense),
            self._timeout,
            "insert_expense",
        )

    async def update_expense(
        self,
        user_id: str,
        expense_id: str,
        update: ExpenseUpdate,
    ) -> Expense:
        return await call_store(
            self._inner.update_expense(user_id, expense_id, update),
            self._timeout,
            "update_expense",
        )

    async def delete_expense(self, expense_id: str, user_id: str) -> bool:
        return await call_store(
            self._inner.delete_expense(expense_id, user_id),
            self._timeout,
            "delete_expense",
        )

    async def fetch_budgets(self, user_id: str) -> list[Budget]:
        return await call_store(
            self._inner.fetch_budgets(user_id),
            self._timeout,
            "fetch_budgets",
        )

    async def fetch_budget(
        self,
        user_id: str,
        category_id: str,
    ) -> Optional[Budget]:
        return await call_store(
            self._inner.fetch_budget(user_id, category_id),
            self._timeout,
            "fetch_budget",
        )

    async def upsert_budget(
        self,
        user_id: str,
        category_id: str,
        monthly_limit_base_cents: int,
    ) -> Budget:
        return await call_store(
            self._inner.upsert_budget(user_id, category_id, monthly_limit_base_cents),
            self._timeout,
            "upsert_budget",
        )

    async def delete_budget(self, user_id: str, category_id: str) -> bool:
        return await call_store(
            self._inner.delete_budget(user_id, category_id),
            self._timeout,
            "delete_budget",
        )

    async def fetch_categories(self) -> list[Category]:
        return await call_store(
            self._inner.fetch_categories(),
            self._timeout,
            "fetch_categories",
        )
