"""
Ledger Event Logger

DESIGN DECISION: Significant ledger actions are logged as structured events.
This provides:
1. Traceability of writes and budget notifications
2. Debugging capability when the store misbehaves
3. Correlation of the steps of one user action

The event logger:
- Writes to the local structured log only (nothing is persisted)
- Never raises: a logging failure must not break a ledger write
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from expense_ledger.models.events import (
    EventSeverity,
    LedgerEvent,
    LedgerEventBuilder,
)


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class EventLogger:
    """
    Central ledger event logging service.

    Every event goes to the structured local log at a level matching its
    severity. Tests can read `events` to see what was logged.
    """

    def __init__(self, keep_history: bool = False):
        """
        Initialize event logger.

        Args:
            keep_history: Keep logged events in memory (used by tests)
        """
        self._logger = structlog.get_logger("expense_ledger")
        self._keep_history = keep_history
        self.events: list[LedgerEvent] = []

    def log(self, event: LedgerEvent) -> None:
        """Log a ledger event. Never raises."""
        if self._keep_history:
            self.events.append(event)

        try:
            log_dict = event.to_log_dict()

            if event.severity == EventSeverity.ERROR:
                self._logger.error("ledger_event", **log_dict)
            elif event.severity == EventSeverity.WARNING:
                self._logger.warning("ledger_event", **log_dict)
            elif event.severity == EventSeverity.DEBUG:
                self._logger.debug("ledger_event", **log_dict)
            else:
                self._logger.info("ledger_event", **log_dict)
        except (TypeError, ValueError) as e:
            # Unserializable details; log the failure but don't raise
            self._logger.error(
                "ledger_event_log_failed",
                error=str(e),
                event_id=str(event.event_id),
            )

    def log_expense_added(
        self,
        user_id: str,
        expense_id: str,
        category_id: str,
        amount_base_cents: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a stored expense."""
        self.log(LedgerEventBuilder.expense_added(
            user_id=user_id,
            expense_id=expense_id,
            category_id=category_id,
            amount_base_cents=amount_base_cents,
            correlation_id=correlation_id,
        ))

    def log_expense_updated(
        self,
        user_id: str,
        expense_id: str,
        changed_fields: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(LedgerEventBuilder.expense_updated(
            user_id=user_id,
            expense_id=expense_id,
            changed_fields=changed_fields,
            correlation_id=correlation_id,
        ))

    def log_expense_deleted(
        self,
        user_id: str,
        expense_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(LedgerEventBuilder.expense_deleted(
            user_id=user_id,
            expense_id=expense_id,
            correlation_id=correlation_id,
        ))

    def log_expense_rejected(
        self,
        user_id: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log validation failure."""
        self.log(LedgerEventBuilder.expense_rejected(
            user_id=user_id,
            issues=issues,
            correlation_id=correlation_id,
        ))

    def log_budget_saved(
        self,
        user_id: str,
        category_id: str,
        limit_base_cents: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(LedgerEventBuilder.budget_saved(
            user_id=user_id,
            category_id=category_id,
            limit_base_cents=limit_base_cents,
            correlation_id=correlation_id,
        ))

    def log_budget_removed(
        self,
        user_id: str,
        category_id: str,
        existed: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(LedgerEventBuilder.budget_removed(
            user_id=user_id,
            category_id=category_id,
            existed=existed,
            correlation_id=correlation_id,
        ))

    def log_notification_emitted(
        self,
        severity: str,
        title: str,
        category_ids: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(LedgerEventBuilder.notification_emitted(
            severity=severity,
            title=title,
            category_ids=category_ids,
            correlation_id=correlation_id,
        ))

    def log_notification_failed(
        self,
        user_id: str,
        category_id: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a budget check that was skipped after a failure."""
        self.log(LedgerEventBuilder.notification_failed(
            user_id=user_id,
            category_id=category_id,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    def log_expenses_listed(
        self,
        user_id: str,
        page: int,
        result_count: int,
        has_more: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(LedgerEventBuilder.expenses_listed(
            user_id=user_id,
            page=page,
            result_count=result_count,
            has_more=has_more,
            correlation_id=correlation_id,
        ))

    def log_store_error(
        self,
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a failed store call."""
        self.log(LedgerEventBuilder.store_error(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a user action (e.g., adding an expense)
    and pass it through all subsequent operations.
    """
    return uuid4()
