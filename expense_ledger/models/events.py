"""
Ledger Event Models

Significant ledger actions are described as structured events and written
to the local structured log. This gives:
1. Traceability of writes and notification decisions
2. Debugging information when a store call fails
3. Correlation of the steps of one user action

DESIGN DECISION: Events are log records, not an audit trail.
They are never persisted or replayed, and edits are not versioned.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class LedgerEventType(str, Enum):
    """Types of events the ledger logs."""
    # Expenses
    EXPENSE_ADDED = "expense_added"
    EXPENSE_UPDATED = "expense_updated"
    EXPENSE_DELETED = "expense_deleted"
    EXPENSE_REJECTED = "expense_rejected"

    # Budgets
    BUDGET_SAVED = "budget_saved"
    BUDGET_REMOVED = "budget_removed"

    # Notifications
    NOTIFICATION_EMITTED = "notification_emitted"
    NOTIFICATION_FAILED = "notification_failed"

    # Reads
    EXPENSES_LISTED = "expenses_listed"

    # System events
    STORE_ERROR = "store_error"


class EventSeverity(str, Enum):
    """Severity level for ledger events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LedgerEvent(BaseModel):
    """A single structured log event."""

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: LedgerEventType
    severity: EventSeverity = EventSeverity.INFO

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'expense', 'budget')"
    )
    entity_id: Optional[str] = None
    user_id: Optional[str] = None

    # Correlation - for tracking the steps of one user action
    correlation_id: Optional[UUID] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "user_id": self.user_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class LedgerEventBuilder:
    """
    Helper class to build ledger events with common patterns.

    Usage:
        event = LedgerEventBuilder.expense_added(expense, correlation_id)
        event = LedgerEventBuilder.store_error("fetch_budgets", str(exc))
    """

    @staticmethod
    def expense_added(
        user_id: str,
        expense_id: str,
        category_id: str,
        amount_base_cents: int,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.EXPENSE_ADDED,
            entity_type="expense",
            entity_id=expense_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Expense added: {amount_base_cents} base-cents",
            details={
                "category_id": category_id,
                "amount_base_cents": amount_base_cents,
            },
        )

    @staticmethod
    def expense_updated(
        user_id: str,
        expense_id: str,
        changed_fields: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.EXPENSE_UPDATED,
            entity_type="expense",
            entity_id=expense_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Expense updated: {', '.join(changed_fields) or 'no changes'}",
            details={"changed_fields": changed_fields},
        )

    @staticmethod
    def expense_deleted(
        user_id: str,
        expense_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.EXPENSE_DELETED,
            entity_type="expense",
            entity_id=expense_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description="Expense deleted",
        )

    @staticmethod
    def expense_rejected(
        user_id: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.EXPENSE_REJECTED,
            severity=EventSeverity.WARNING,
            entity_type="expense",
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Expense rejected with {len(issues)} issues",
            details={"issues": issues},
        )

    @staticmethod
    def budget_saved(
        user_id: str,
        category_id: str,
        limit_base_cents: int,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.BUDGET_SAVED,
            entity_type="budget",
            entity_id=category_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Budget saved: {limit_base_cents} base-cents",
            details={"monthly_limit_base_cents": limit_base_cents},
        )

    @staticmethod
    def budget_removed(
        user_id: str,
        category_id: str,
        existed: bool,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.BUDGET_REMOVED,
            entity_type="budget",
            entity_id=category_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description="Budget removed" if existed else "Budget already unset",
            details={"existed": existed},
        )

    @staticmethod
    def notification_emitted(
        severity: str,
        title: str,
        category_ids: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.NOTIFICATION_EMITTED,
            entity_type="notification",
            correlation_id=correlation_id,
            description=f"Notification emitted: {title}",
            details={
                "notification_severity": severity,
                "category_ids": category_ids,
            },
        )

    @staticmethod
    def notification_failed(
        user_id: str,
        category_id: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.NOTIFICATION_FAILED,
            severity=EventSeverity.WARNING,
            entity_type="budget",
            entity_id=category_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description="Budget notification skipped after a failure",
            error_message=error_message,
        )

    @staticmethod
    def expenses_listed(
        user_id: str,
        page: int,
        result_count: int,
        has_more: bool,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.EXPENSES_LISTED,
            severity=EventSeverity.DEBUG,
            entity_type="expense",
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Expense page {page} returned {result_count} results",
            details={
                "page": page,
                "result_count": result_count,
                "has_more": has_more,
            },
        )

    @staticmethod
    def store_error(
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.STORE_ERROR,
            severity=EventSeverity.ERROR,
            description=f"Ledger store error during {operation}",
            error_message=error_message,
            details={"operation": operation},
            correlation_id=correlation_id,
        )
