"""
Main Orchestrator for the Expense Ledger

This module ties together all the components and defines the
end-to-end flows for:
1. Adding an expense (display amount → base-cents → validate → insert → budget alert)
2. Editing and deleting expenses
3. Reading (expense pages, dashboard, budget overview, budget digest)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing reaches the store before it is validated
- A stored expense is never rolled back because a budget alert failed
- Every write is logged with a correlation ID

This is the "glue" that ensures the system works correctly
even when individual components might behave unexpectedly.
"""

from datetime import date
from typing import Optional
from uuid import UUID

import structlog

from expense_ledger import windows
from expense_ledger.analytics import AnalyticsService
from expense_ledger.budgets import (
    BudgetStatusEngine,
    LoggingNotificationSink,
    NotificationSink,
)
from expense_ledger.config import LedgerSettings, get_settings
from expense_ledger.events import EventLogger, create_correlation_id
from expense_ledger.models.ledger import (
    Budget,
    BudgetOverview,
    BudgetStatus,
    DashboardSummary,
    DateWindow,
    Expense,
    ExpenseFilters,
    ExpensePage,
)
from expense_ledger.models.notification import Notification
from expense_ledger.money import DisplayPreference
from expense_ledger.queries import ExpenseQueryService
from expense_ledger.services.storage import (
    GoogleSheetsClient,
    GoogleSheetsLedgerStore,
    GuardedLedgerStore,
    InMemoryLedgerStore,
    LedgerStoreInterface,
    StoreError,
    gather_store_calls,
)
from expense_ledger.validation import ExpenseValidator, ValidationError


logger = structlog.get_logger("expense_ledger.orchestrator")


class LedgerFlow:
    """
    Orchestrates every ledger operation a caller can perform.

    Add-expense flow:
    1. Convert → display amount to base-cents with the caller's preference
    2. Validate → schema then semantic checks (category must exist)
    3. Insert → persist the expense (durable from here on)
    4. Evaluate → budget status of the expense's category this month
    5. Notify → warning/error notification to the sink when needed

    Steps 4-5 are best-effort: their failures are logged, never raised.
    """

    def __init__(
        self,
        store: LedgerStoreInterface,
        sink: Optional[NotificationSink] = None,
        event_logger: Optional[EventLogger] = None,
        settings: Optional[LedgerSettings] = None,
    ):
        self._settings = settings or get_settings().ledger
        self._store = store
        self._events = event_logger or EventLogger()
        self._sink = sink or LoggingNotificationSink()

        self._validator = ExpenseValidator(store, self._settings)
        self._analytics = AnalyticsService(store, self._settings)
        self._budgets = BudgetStatusEngine(
            store,
            sink=self._sink,
            event_logger=self._events,
            settings=self._settings,
        )
        self._queries = ExpenseQueryService(store, self._events, self._settings)
        self._default_preference = DisplayPreference.for_code(
            self._settings.default_display_currency
        )

    @property
    def budgets(self) -> BudgetStatusEngine:
        return self._budgets

    @property
    def queries(self) -> ExpenseQueryService:
        return self._queries

    @property
    def analytics(self) -> AnalyticsService:
        return self._analytics

    @property
    def default_preference(self) -> DisplayPreference:
        return self._default_preference

    def _store_failed(
        self,
        operation: str,
        error: StoreError,
        correlation_id: Optional[UUID],
    ) -> None:
        self._events.log_store_error(
            operation=operation,
            error_message=str(error),
            correlation_id=correlation_id,
        )

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def add_expense(
        self,
        user_id: str,
        display_amount,
        category_id: str,
        description: Optional[str] = None,
        expense_date: Optional[date] = None,
        preference: Optional[DisplayPreference] = None,
        reference: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
        expense_id: Optional[str] = None,
    ) -> tuple[Expense, Optional[Notification]]:
        """
        Add an expense entered in the user's display currency.

        Args:
            display_amount: Amount as the user typed it (in display units)
            expense_date: Defaults to the reference date
            preference: Display currency (defaults to the configured one)
            reference: The user's local "today"
            expense_id: Id for the new expense. Resubmitting with the same
                        id never stores a second copy.

        Returns:
            (stored expense, budget notification or None)

        Raises:
            ValidationError: Input rejected; nothing was stored
            StoreTimeoutError: The insert outcome is unknown; the expense
                               may still land. Resubmit with the same
                               expense_id to settle it.
            StoreError: The insert failed; nothing was stored
        """
        correlation_id = correlation_id or create_correlation_id()
        preference = preference or self._default_preference
        today = reference or date.today()

        try:
            amount_base_cents = preference.to_base_cents(display_amount)
            new_expense = await self._validator.validate_new_expense(
                user_id=user_id,
                category_id=category_id,
                amount_base_cents=amount_base_cents,
                expense_date=expense_date or today,
                description=description,
                today=today,
                expense_id=expense_id,
            )
        except ValidationError as e:
            self._events.log_expense_rejected(
                user_id=user_id,
                issues=e.to_dicts(),
                correlation_id=correlation_id,
            )
            raise

        try:
            expense = await self._store.insert_expense(new_expense)
        except StoreError as e:
            self._store_failed("insert_expense", e, correlation_id)
            raise

        self._events.log_expense_added(
            user_id=user_id,
            expense_id=expense.id,
            category_id=expense.category_id,
            amount_base_cents=expense.amount_base_cents,
            correlation_id=correlation_id,
        )

        # The expense is durable now; alerting must not undo or fail it
        notification = None
        try:
            notification = await self._budgets.notify_on_transition(
                user_id,
                expense.category_id,
                preference=preference,
                correlation_id=correlation_id,
                reference=today,
            )
        except Exception as e:
            self._events.log_notification_failed(
                user_id=user_id,
                category_id=expense.category_id,
                error_message=str(e),
                correlation_id=correlation_id,
            )

        return expense, notification

    async def update_expense(
        self,
        user_id: str,
        expense_id: str,
        display_amount=None,
        category_id: Optional[str] = None,
        description: Optional[str] = None,
        expense_date: Optional[date] = None,
        clear_description: bool = False,
        preference: Optional[DisplayPreference] = None,
        reference: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Expense:
        """
        Edit an expense. Only the given fields change.

        Raises:
            ValidationError: Input rejected
            NotFoundError: Unknown expense or not owned by user_id
        """
        correlation_id = correlation_id or create_correlation_id()
        preference = preference or self._default_preference

        fields_set = set()
        amount_base_cents = None
        if display_amount is not None:
            fields_set.add("amount_base_cents")
        if category_id is not None:
            fields_set.add("category_id")
        if expense_date is not None:
            fields_set.add("expense_date")
        if description is not None or clear_description:
            fields_set.add("description")

        try:
            if display_amount is not None:
                amount_base_cents = preference.to_base_cents(display_amount)
            update = await self._validator.validate_update(
                category_id=category_id,
                amount_base_cents=amount_base_cents,
                expense_date=expense_date,
                description=None if clear_description else description,
                today=reference,
                fields_set=fields_set,
            )
        except ValidationError as e:
            self._events.log_expense_rejected(
                user_id=user_id,
                issues=e.to_dicts(),
                correlation_id=correlation_id,
            )
            raise

        return await self._queries.update(
            user_id, expense_id, update, correlation_id=correlation_id
        )

    async def delete_expense(
        self,
        user_id: str,
        expense_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Hard-delete an expense owned by the user (NotFoundError otherwise)."""
        await self._queries.delete(
            user_id,
            expense_id,
            correlation_id=correlation_id or create_correlation_id(),
        )

    async def save_budget(
        self,
        user_id: str,
        category_id: str,
        display_limit,
        preference: Optional[DisplayPreference] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Optional[Budget]:
        """
        Set a monthly limit entered in display units; 0 removes the budget.

        Returns the saved Budget, or None when the budget was removed.
        """
        preference = preference or self._default_preference
        limit_base_cents = preference.to_base_cents(display_limit)
        return await self._budgets.save_budget(
            user_id,
            category_id,
            limit_base_cents,
            correlation_id=correlation_id or create_correlation_id(),
        )

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def list_expenses(
        self,
        user_id: str,
        filters: Optional[ExpenseFilters] = None,
        page: int = 0,
        page_size: Optional[int] = None,
        reference: Optional[date] = None,
    ) -> ExpensePage:
        return await self._queries.list(
            user_id,
            filters,
            page=page,
            page_size=page_size,
            reference=reference,
        )

    async def dashboard(
        self,
        user_id: str,
        reference: Optional[date] = None,
    ) -> DashboardSummary:
        """Dashboard totals plus this month's budget statuses."""
        reference = reference or date.today()
        summary, statuses = await gather_store_calls(
            self._analytics.dashboard(user_id, reference),
            self._budgets.evaluate_all(user_id, windows.current_month(reference)),
        )
        summary.budget_statuses = statuses
        return summary

    async def budget_overview(
        self,
        user_id: str,
        window: Optional[DateWindow] = None,
    ) -> BudgetOverview:
        return await self._budgets.overview(user_id, window)

    async def budget_digest(
        self,
        user_id: str,
        reference: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[list[BudgetStatus], Optional[Notification]]:
        """
        Evaluate every budget for the month and emit at most one summary.

        Returns:
            (statuses, summary notification or None)
        """
        statuses = await self._budgets.evaluate_all(
            user_id, windows.current_month(reference)
        )
        notification = self._budgets.summary_notification(statuses)
        if notification is not None:
            await self._budgets.emit(
                notification,
                correlation_id=correlation_id or create_correlation_id(),
            )
        return statuses, notification


def create_app_components(
    store: Optional[LedgerStoreInterface] = None,
    sink: Optional[NotificationSink] = None,
    use_sheets: bool = True,
) -> tuple[LedgerFlow, Optional[GoogleSheetsClient]]:
    """
    Factory function to create all application components.

    Args:
        store: Store to use. If None, Google Sheets is tried (when
               use_sheets is set), falling back to an in-memory store.
        sink: Notification sink (structured log by default)
        use_sheets: Whether to initialize Google Sheets storage.
                    Set to False for local runs without credentials.

    Returns:
        (ledger_flow, sheets_client)
    """
    settings = get_settings().ledger
    sheets_client = None

    if store is None and use_sheets:
        try:
            sheets_client = GoogleSheetsClient()
            store = GoogleSheetsLedgerStore(sheets_client)
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("sheets_store_unavailable", error=str(e))
            sheets_client = None
            store = None

    if store is None:
        store = InMemoryLedgerStore()

    guarded = GuardedLedgerStore(store, timeout=settings.store_timeout_seconds)
    flow = LedgerFlow(guarded, sink=sink, settings=settings)

    return flow, sheets_client
