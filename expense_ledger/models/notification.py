"""
Notification Models

The engine decides WHAT to tell the user and how loudly.
Delivering the message (toast, email, push) belongs to a NotificationSink.
"""

from enum import Enum

from pydantic import BaseModel, Field


class NotificationSeverity(str, Enum):
    """Severity understood by notification sinks."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class Notification(BaseModel):
    """A single message for the notification sink."""

    severity: NotificationSeverity
    title: str = Field(..., min_length=1, max_length=200)
    body: str = Field(default="", max_length=1000)
    duration_ms: int = Field(
        default=6000,
        ge=0,
        description="How long the sink should keep the message visible"
    )
    category_ids: list[str] = Field(
        default_factory=list,
        description="Categories the message is about (lets callers dedupe)"
    )
