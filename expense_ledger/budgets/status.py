"""
Budget Status Engine

Combines monthly budget limits with spending to classify each category:

    limit == 0                       -> NO_BUDGET  (never alerted or counted)
    percentage < warning threshold   -> ON_TRACK
    warning <= percentage < exceeded -> WARNING
    percentage >= exceeded           -> EXCEEDED

Thresholds come from LedgerSettings (80 and 100 by default).

DESIGN DECISION: Fail closed.
If a store read fails, the error propagates and no notification is built.
A half-computed status is never shown to the user.
"""

from datetime import date
from typing import Optional
from uuid import UUID

from expense_ledger import windows
from expense_ledger.analytics import AnalyticsService, sum_by_category
from expense_ledger.budgets.notifications import (
    LoggingNotificationSink,
    NotificationSink,
)
from expense_ledger.config import LedgerSettings, get_settings
from expense_ledger.events import EventLogger
from expense_ledger.models.ledger import (
    Budget,
    BudgetOverview,
    BudgetState,
    BudgetStatus,
    Category,
    DateWindow,
)
from expense_ledger.models.notification import Notification, NotificationSeverity
from expense_ledger.money import DisplayPreference
from expense_ledger.services.storage import (
    LedgerStoreInterface,
    NotFoundError,
    gather_store_calls,
)
from expense_ledger.validation import ExpenseValidator


def budget_percentage(spent_base_cents: int, limit_base_cents: int) -> Optional[float]:
    """spent / limit * 100, or None when no limit is set."""
    if limit_base_cents == 0:
        return None
    return spent_base_cents * 100 / limit_base_cents


def classify(
    spent_base_cents: int,
    limit_base_cents: int,
    settings: Optional[LedgerSettings] = None,
) -> BudgetState:
    """Budget state for a spend against a limit. Bands are closed-open."""
    settings = settings or get_settings().ledger
    percentage = budget_percentage(spent_base_cents, limit_base_cents)

    if percentage is None:
        return BudgetState.NO_BUDGET
    if percentage >= settings.exceeded_threshold_percent:
        return BudgetState.EXCEEDED
    if percentage >= settings.warning_threshold_percent:
        return BudgetState.WARNING
    return BudgetState.ON_TRACK


def build_status(
    category: Category,
    spent_base_cents: int,
    limit_base_cents: int,
    settings: Optional[LedgerSettings] = None,
) -> BudgetStatus:
    return BudgetStatus(
        category_id=category.id,
        category_name=category.name,
        color=category.color,
        emoji=category.emoji,
        spent_base_cents=spent_base_cents,
        limit_base_cents=limit_base_cents,
        percentage=budget_percentage(spent_base_cents, limit_base_cents),
        state=classify(spent_base_cents, limit_base_cents, settings),
    )


def _plural(count: int, word: str) -> str:
    return word if count == 1 else f"{word}s"


class BudgetStatusEngine:
    """
    Budget evaluation, alert decisions and budget maintenance.

    Notifications are returned to the caller AND delivered to the sink.
    The engine does not remember what it already said: evaluating the same
    state twice produces the same notification twice.
    """

    def __init__(
        self,
        store: LedgerStoreInterface,
        sink: Optional[NotificationSink] = None,
        event_logger: Optional[EventLogger] = None,
        settings: Optional[LedgerSettings] = None,
        preference: Optional[DisplayPreference] = None,
    ):
        self._store = store
        self._sink = sink or LoggingNotificationSink()
        self._events = event_logger or EventLogger()
        self._settings = settings or get_settings().ledger
        self._analytics = AnalyticsService(store, self._settings)
        self._validator = ExpenseValidator(settings=self._settings)
        self._preference = preference or DisplayPreference.for_code(
            self._settings.default_display_currency
        )

    # -------------------------------------------------------------------------
    # Evaluation
    # -------------------------------------------------------------------------

    async def _category(self, category_id: str) -> Category:
        for category in await self._store.fetch_categories():
            if category.id == category_id:
                return category
        raise NotFoundError(f"Category not found: {category_id}")

    async def evaluate(
        self,
        user_id: str,
        category_id: str,
        window: Optional[DateWindow] = None,
    ) -> BudgetStatus:
        """
        Status of one category over the window (current month by default).

        A category without a budget row is NO_BUDGET, not an error.
        """
        window = window or windows.current_month()
        budget, spent = await gather_store_calls(
            self._store.fetch_budget(user_id, category_id),
            self._analytics.spending_in_window(user_id, window, category_id),
        )

        if budget is None:
            category = await self._category(category_id)
            return build_status(category, spent, 0, self._settings)
        return build_status(
            budget.category, spent, budget.monthly_limit_base_cents, self._settings
        )

    async def evaluate_all(
        self,
        user_id: str,
        window: Optional[DateWindow] = None,
    ) -> list[BudgetStatus]:
        """One status per budget with a limit above 0, in category display order."""
        window = window or windows.current_month()
        budgets, expenses = await gather_store_calls(
            self._store.fetch_budgets(user_id),
            self._analytics.expenses_in_window(user_id, window),
        )
        spending = sum_by_category(expenses)

        active = sorted(
            (b for b in budgets if b.is_set),
            key=lambda b: b.category.display_order,
        )
        return [
            build_status(
                budget.category,
                spending.get(budget.category_id, 0),
                budget.monthly_limit_base_cents,
                self._settings,
            )
            for budget in active
        ]

    async def overview(
        self,
        user_id: str,
        window: Optional[DateWindow] = None,
    ) -> BudgetOverview:
        """
        Budgets view: every category (NO_BUDGET rows included) plus totals.

        Totals and the over-budget count only consider categories with a
        limit above 0.
        """
        window = window or windows.current_month()
        categories, budgets, expenses = await gather_store_calls(
            self._store.fetch_categories(),
            self._store.fetch_budgets(user_id),
            self._analytics.expenses_in_window(user_id, window),
        )
        spending = sum_by_category(expenses)
        limits = {b.category_id: b.monthly_limit_base_cents for b in budgets}

        rows = [
            build_status(
                category,
                spending.get(category.id, 0),
                limits.get(category.id, 0),
                self._settings,
            )
            for category in sorted(categories, key=lambda c: c.display_order)
        ]
        budgeted = [row for row in rows if row.limit_base_cents > 0]

        return BudgetOverview(
            window=window,
            rows=rows,
            total_budget_base_cents=sum(r.limit_base_cents for r in budgeted),
            total_spent_base_cents=sum(r.spent_base_cents for r in budgeted),
            over_budget_count=sum(1 for r in budgeted if r.is_over_budget),
        )

    # -------------------------------------------------------------------------
    # Notifications
    # -------------------------------------------------------------------------

    def notification_for(
        self,
        status: BudgetStatus,
        preference: Optional[DisplayPreference] = None,
    ) -> Optional[Notification]:
        """The alert for a single status, or None if it needs none."""
        preference = preference or self._preference

        if status.state == BudgetState.EXCEEDED:
            return Notification(
                severity=NotificationSeverity.ERROR,
                title=f"Budget Exceeded: {status.category_name}",
                body=(
                    f"You've spent {preference.format(status.spent_base_cents)} "
                    f"({status.percentage:.1f}%) of your "
                    f"{preference.format(status.limit_base_cents)} budget."
                ),
                duration_ms=self._settings.exceeded_duration_ms,
                category_ids=[status.category_id],
            )
        if status.state == BudgetState.WARNING:
            return Notification(
                severity=NotificationSeverity.WARNING,
                title=f"Budget Alert: {status.category_name}",
                body=(
                    f"You've used {status.percentage:.1f}% of your budget. "
                    f"{preference.format(status.remaining_base_cents)} remaining."
                ),
                duration_ms=self._settings.warning_duration_ms,
                category_ids=[status.category_id],
            )
        return None

    async def emit(
        self,
        notification: Notification,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Deliver a notification to the sink and log it."""
        await self._sink.deliver(notification)
        self._events.log_notification_emitted(
            severity=notification.severity.value,
            title=notification.title,
            category_ids=notification.category_ids,
            correlation_id=correlation_id,
        )

    async def notify_on_transition(
        self,
        user_id: str,
        category_id: str,
        preference: Optional[DisplayPreference] = None,
        correlation_id: Optional[UUID] = None,
        reference: Optional[date] = None,
    ) -> Optional[Notification]:
        """
        Evaluate one category for the current month and alert if needed.

        Called after an expense write. Raises StoreError if the evaluation
        cannot complete; nothing is delivered in that case.
        """
        status = await self.evaluate(
            user_id, category_id, windows.current_month(reference)
        )
        notification = self.notification_for(status, preference)
        if notification is not None:
            await self.emit(notification, correlation_id)
        return notification

    def summary_notification(
        self,
        statuses: list[BudgetStatus],
    ) -> Optional[Notification]:
        """
        At most one digest notification for a set of statuses.

        Exceeded budgets take precedence over warnings.
        """
        exceeded = [s for s in statuses if s.state == BudgetState.EXCEEDED]
        warnings = [s for s in statuses if s.state == BudgetState.WARNING]

        if exceeded:
            return Notification(
                severity=NotificationSeverity.ERROR,
                title=f"{len(exceeded)} {_plural(len(exceeded), 'Budget')} Exceeded",
                body=f"{', '.join(s.category_name for s in exceeded)} over budget this month.",
                duration_ms=self._settings.summary_exceeded_duration_ms,
                category_ids=[s.category_id for s in exceeded],
            )
        if warnings:
            return Notification(
                severity=NotificationSeverity.WARNING,
                title=f"{len(warnings)} Budget {_plural(len(warnings), 'Warning')}",
                body=f"{', '.join(s.category_name for s in warnings)} approaching budget limits.",
                duration_ms=self._settings.summary_warning_duration_ms,
                category_ids=[s.category_id for s in warnings],
            )
        return None

    # -------------------------------------------------------------------------
    # Budget maintenance
    # -------------------------------------------------------------------------

    async def save_budget(
        self,
        user_id: str,
        category_id: str,
        limit_base_cents: int,
        correlation_id: Optional[UUID] = None,
    ) -> Optional[Budget]:
        """
        Set a monthly limit. 0 removes the budget (no-op if none exists).

        Returns:
            The saved Budget, or None when the budget was removed

        Raises:
            ValidationError: For a negative or non-integer limit
        """
        limit_base_cents = self._validator.validate_budget_limit(limit_base_cents)

        if limit_base_cents == 0:
            existed = await self._store.delete_budget(user_id, category_id)
            self._events.log_budget_removed(
                user_id=user_id,
                category_id=category_id,
                existed=existed,
                correlation_id=correlation_id,
            )
            return None

        budget = await self._store.upsert_budget(user_id, category_id, limit_base_cents)
        self._events.log_budget_saved(
            user_id=user_id,
            category_id=category_id,
            limit_base_cents=limit_base_cents,
            correlation_id=correlation_id,
        )
        return budget
