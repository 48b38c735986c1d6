"""Ledger event logging package."""

from expense_ledger.events.logger import EventLogger, create_correlation_id

__all__ = ["EventLogger", "create_correlation_id"]
