"""
Shared fixtures.

Everything runs against the in-memory gateway; no network, no files
unless a test asks for tmp_path.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from bizledger.activity import ActivityLogger
from bizledger.backup import BackupService
from bizledger.config import AppSettings
from bizledger.goals import GoalTracker
from bizledger.ledger import LedgerStore
from bizledger.models.ledger import TransactionInput, TransactionType
from bizledger.models.session import Session, UserProfile
from bizledger.queries import QueryExecutor
from bizledger.services.storage import (
    InMemoryKeyValueStore,
    KeyValueGoalStorage,
    KeyValueTransactionStorage,
)
from bizledger.validation import LedgerValidator


USER_ID = "user-1"


def make_input(
    type: TransactionType = TransactionType.INCOME,
    amount: str = "500",
    category: str = "Sales",
    **kwargs,
) -> TransactionInput:
    """Build a TransactionInput with sensible defaults."""
    kwargs.setdefault("date", datetime(2024, 12, 15, 10, 0, tzinfo=timezone.utc))
    return TransactionInput(
        type=type,
        amount=Decimal(amount),
        category=category,
        **kwargs,
    )


@pytest.fixture
def app_settings() -> AppSettings:
    return AppSettings()


@pytest.fixture
def gateway() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def validator(app_settings) -> LedgerValidator:
    return LedgerValidator(app_settings)


@pytest.fixture
def ledger_store(gateway) -> LedgerStore:
    return LedgerStore(KeyValueTransactionStorage(gateway))


@pytest.fixture
def goal_tracker(gateway, validator) -> GoalTracker:
    return GoalTracker(KeyValueGoalStorage(gateway), validator=validator)


@pytest.fixture
def backup_service(ledger_store, goal_tracker) -> BackupService:
    return BackupService(ledger_store, goal_tracker)


@pytest.fixture
def query_executor(ledger_store) -> QueryExecutor:
    return QueryExecutor(ledger_store)


@pytest.fixture
def activity_logger() -> ActivityLogger:
    return ActivityLogger("bizledger.tests")


@pytest.fixture
def session() -> Session:
    return Session(user=UserProfile(id=USER_ID, name="Rina", business_name="Rina Store"))
