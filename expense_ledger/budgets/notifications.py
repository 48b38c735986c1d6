"""
Notification Sinks

The budget engine decides what to say; a sink decides how it reaches the
user (toast, push, email). Sinks are async so a delivery can hit the
network without blocking the event loop.
"""

from abc import ABC, abstractmethod

import structlog

from expense_ledger.models.notification import Notification, NotificationSeverity


class NotificationSink(ABC):
    """Outbound channel for budget notifications."""

    @abstractmethod
    async def deliver(self, notification: Notification) -> None:
        """
        Deliver one notification.

        Raises:
            Exception: Implementations may raise; callers decide whether a
                failed delivery matters.
        """
        pass


class LoggingNotificationSink(NotificationSink):
    """Writes notifications to the structured log. Default for headless use."""

    def __init__(self):
        self._logger = structlog.get_logger("expense_ledger.notifications")

    async def deliver(self, notification: Notification) -> None:
        log_dict = notification.model_dump(mode="json")
        if notification.severity == NotificationSeverity.ERROR:
            self._logger.error("notification", **log_dict)
        elif notification.severity == NotificationSeverity.WARNING:
            self._logger.warning("notification", **log_dict)
        else:
            self._logger.info("notification", **log_dict)


class CollectingNotificationSink(NotificationSink):
    """Keeps delivered notifications in memory (tests, previews)."""

    def __init__(self):
        self.delivered: list[Notification] = []

    async def deliver(self, notification: Notification) -> None:
        self.delivered.append(notification)

    def clear(self) -> None:
        self.delivered.clear()
