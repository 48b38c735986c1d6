"""Tests for event logging and notification sinks."""

import pytest

from expense_ledger.budgets import CollectingNotificationSink, LoggingNotificationSink
from expense_ledger.events import EventLogger, create_correlation_id
from expense_ledger.models import (
    EventSeverity,
    LedgerEventType,
    Notification,
    NotificationSeverity,
)


class TestEventLogger:
    def test_keeps_history_when_asked(self):
        event_logger = EventLogger(keep_history=True)
        correlation_id = create_correlation_id()

        event_logger.log_expense_added("user-1", "exp-1", "food-dining", 1250, correlation_id)
        event_logger.log_store_error("fetch_budgets", "timed out", correlation_id)

        assert [e.event_type for e in event_logger.events] == [
            LedgerEventType.EXPENSE_ADDED,
            LedgerEventType.STORE_ERROR,
        ]
        assert event_logger.events[1].severity == EventSeverity.ERROR
        assert all(e.correlation_id == correlation_id for e in event_logger.events)

    def test_history_off_by_default(self):
        event_logger = EventLogger()
        event_logger.log_expenses_listed("user-1", page=0, result_count=3, has_more=False)
        assert event_logger.events == []

    def test_rejected_event_carries_issues(self):
        event_logger = EventLogger(keep_history=True)
        issues = [{"field": "amount", "issue_type": "invalid_value", "message": "bad"}]

        event_logger.log_expense_rejected("user-1", issues)

        event = event_logger.events[0]
        assert event.severity == EventSeverity.WARNING
        assert event.details["issues"] == issues


class TestSinks:
    @pytest.mark.asyncio
    async def test_collecting_sink(self):
        sink = CollectingNotificationSink()
        notification = Notification(severity=NotificationSeverity.WARNING, title="Heads up")

        await sink.deliver(notification)
        assert sink.delivered == [notification]

        sink.clear()
        assert sink.delivered == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("severity", list(NotificationSeverity))
    async def test_logging_sink_accepts_every_severity(self, severity):
        sink = LoggingNotificationSink()
        await sink.deliver(Notification(severity=severity, title="Budget Exceeded: Food"))
