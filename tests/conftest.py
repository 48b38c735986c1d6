"""
Shared fixtures for the ledger tests.

Everything runs against InMemoryLedgerStore with a fixed reference date.
No network, no Google credentials.
"""

from datetime import date
from typing import Optional

import pytest

from expense_ledger.budgets import BudgetStatusEngine, CollectingNotificationSink
from expense_ledger.config import LedgerSettings
from expense_ledger.events import EventLogger
from expense_ledger.models import NewExpense
from expense_ledger.orchestrator import LedgerFlow
from expense_ledger.services.storage import InMemoryLedgerStore


REFERENCE = date(2026, 10, 19)
USER = "user-1"
OTHER_USER = "user-2"


@pytest.fixture
def reference() -> date:
    return REFERENCE


@pytest.fixture
def settings() -> LedgerSettings:
    return LedgerSettings()


@pytest.fixture
def store() -> InMemoryLedgerStore:
    return InMemoryLedgerStore()


@pytest.fixture
def sink() -> CollectingNotificationSink:
    return CollectingNotificationSink()


@pytest.fixture
def event_logger() -> EventLogger:
    return EventLogger(keep_history=True)


@pytest.fixture
def engine(store, sink, event_logger, settings) -> BudgetStatusEngine:
    return BudgetStatusEngine(store, sink=sink, event_logger=event_logger, settings=settings)


@pytest.fixture
def flow(store, sink, event_logger, settings) -> LedgerFlow:
    return LedgerFlow(store, sink=sink, event_logger=event_logger, settings=settings)


@pytest.fixture
def add_expense(store):
    """Insert an expense straight into the store (bypasses validation)."""

    async def _add(
        category_id: str,
        amount_base_cents: int,
        expense_date: date = REFERENCE,
        description: Optional[str] = None,
        user_id: str = USER,
    ):
        return await store.insert_expense(NewExpense(
            user_id=user_id,
            category_id=category_id,
            amount_base_cents=amount_base_cents,
            description=description,
            expense_date=expense_date,
        ))

    return _add
