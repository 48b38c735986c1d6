"""
Expense Query Service

DESIGN DECISION: Listing is DETERMINISTIC and store-driven.
Filtering, ordering and paging happen in the store; this service turns
user filters into an ExpenseQuery, asks for exactly one page and reports
whether another page probably exists.

KNOWN APPROXIMATION: has_more is True whenever a page comes back full.
When the last page is exactly full, the caller makes one extra fetch that
returns an empty page. Counting rows would cost a second query per page.
"""

from datetime import date
from typing import Iterable, Optional
from uuid import UUID

from expense_ledger import windows
from expense_ledger.config import LedgerSettings, get_settings
from expense_ledger.events import EventLogger
from expense_ledger.models.ledger import (
    DateGroup,
    DateWindow,
    Expense,
    ExpenseFilters,
    ExpensePage,
    ExpenseQuery,
    ExpenseUpdate,
)
from expense_ledger.services.storage import LedgerStoreInterface, NotFoundError
from expense_ledger.validation import ExpenseValidator


def group_by_date(expenses: Iterable[Expense]) -> list[DateGroup]:
    """
    Group already-ordered expenses by expense date.

    Groups keep first-seen order; each carries its subtotal.
    """
    groups: dict[date, DateGroup] = {}
    for expense in expenses:
        group = groups.get(expense.expense_date)
        if group is None:
            group = groups[expense.expense_date] = DateGroup(expense_date=expense.expense_date)
        group.expenses.append(expense)
        group.subtotal_base_cents += expense.amount_base_cents
    return list(groups.values())


class ExpenseQueryService:
    """
    Paged expense listing plus the owner-scoped writes the list exposes.

    GUARANTEES:
    - Only returns real rows from the store
    - Deletes and updates never touch another user's expense
    """

    def __init__(
        self,
        store: LedgerStoreInterface,
        event_logger: Optional[EventLogger] = None,
        settings: Optional[LedgerSettings] = None,
    ):
        self._store = store
        self._events = event_logger or EventLogger()
        self._settings = settings or get_settings().ledger
        self._validator = ExpenseValidator(store, self._settings)

    def resolve_window(
        self,
        filters: ExpenseFilters,
        reference: Optional[date] = None,
    ) -> Optional[DateWindow]:
        """The filter's window; the current month unless all dates were requested."""
        if filters.all_dates:
            return None
        return filters.window or windows.current_month(reference)

    async def list(
        self,
        user_id: str,
        filters: Optional[ExpenseFilters] = None,
        page: int = 0,
        page_size: Optional[int] = None,
        reference: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> ExpensePage:
        """
        One page of the user's expenses, newest expense date first.

        Page n holds records [n * page_size, (n + 1) * page_size).

        Raises:
            ValidationError: For a negative page or out-of-range page size
            StoreError: If the store call fails
        """
        filters = filters or ExpenseFilters()
        page_size = page_size if page_size is not None else self._settings.default_page_size
        self._validator.validate_page(page, page_size)

        query = ExpenseQuery.for_window(
            self.resolve_window(filters, reference),
            category_id=filters.category_id,
            search_text=filters.search_text,
        )
        items = await self._store.fetch_expenses(
            user_id, query, offset=page * page_size, limit=page_size
        )
        has_more = len(items) == page_size

        self._events.log_expenses_listed(
            user_id=user_id,
            page=page,
            result_count=len(items),
            has_more=has_more,
            correlation_id=correlation_id,
        )
        return ExpensePage(items=items, page=page, page_size=page_size, has_more=has_more)

    async def delete(
        self,
        user_id: str,
        expense_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """
        Hard-delete an expense owned by the user.

        Raises:
            NotFoundError: If the id is unknown or belongs to someone else
        """
        deleted = await self._store.delete_expense(expense_id, user_id)
        if not deleted:
            raise NotFoundError(f"Expense not found: {expense_id}")
        self._events.log_expense_deleted(
            user_id=user_id,
            expense_id=expense_id,
            correlation_id=correlation_id,
        )

    async def update(
        self,
        user_id: str,
        expense_id: str,
        update: ExpenseUpdate,
        correlation_id: Optional[UUID] = None,
    ) -> Expense:
        """
        Apply an already-validated partial update.

        Raises:
            NotFoundError: If the id is unknown or belongs to someone else
        """
        expense = await self._store.update_expense(user_id, expense_id, update)
        self._events.log_expense_updated(
            user_id=user_id,
            expense_id=expense_id,
            changed_fields=sorted(update.changes()),
            correlation_id=correlation_id,
        )
        return expense
