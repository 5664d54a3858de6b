"""Tests for backup export and import."""

import json
from decimal import Decimal

import pytest

from bizledger.backup import BackupService, ImportFormatError
from bizledger.goals import GoalTracker
from bizledger.ledger import LedgerStore
from bizledger.models.ledger import GoalInput, TransactionType
from bizledger.models.session import UserProfile
from bizledger.services.storage import (
    InMemoryKeyValueStore,
    KeyValueGoalStorage,
    KeyValueTransactionStorage,
)

from tests.conftest import USER_ID, make_input


def _fresh_service() -> BackupService:
    gateway = InMemoryKeyValueStore()
    ledger = LedgerStore(KeyValueTransactionStorage(gateway))
    goals = GoalTracker(KeyValueGoalStorage(gateway))
    return BackupService(ledger, goals)


def _by_id(records):
    return {r.id: r for r in records}


@pytest.fixture
def populated(ledger_store, goal_tracker):
    ledger_store.create(USER_ID, make_input(amount="500"))
    due = ledger_store.create(
        USER_ID,
        make_input(type=TransactionType.EXPENSE, amount="200", is_due=True, party_name="Karim"),
    )
    ledger_store.settle(USER_ID, due.id)
    goal = goal_tracker.create(USER_ID, GoalInput(title="Oven", target_amount=1000))
    goal_tracker.add_progress(USER_ID, goal.id, Decimal("400"))


class TestExport:
    """Tests for export_data."""

    def test_document_shape(self, backup_service, populated):
        """Test the exported keys and version."""
        doc = json.loads(backup_service.export_data(USER_ID, UserProfile(id=USER_ID, name="Rina")))
        assert doc["version"] == "1.1"
        assert "exportDate" in doc
        assert doc["user"]["name"] == "Rina"
        assert len(doc["transactions"]) == 2
        assert len(doc["goals"]) == 1
        assert doc["goals"][0]["currentAmount"] == 400

    def test_empty_user(self, backup_service):
        """Test exporting a user with no data."""
        doc = json.loads(backup_service.export_data("nobody"))
        assert doc["transactions"] == []
        assert doc["goals"] == []
        assert doc["user"] is None


class TestImport:
    """Tests for import_data."""

    def test_round_trip_into_fresh_store(self, backup_service, ledger_store, goal_tracker, populated):
        """Test export then import reproduces both collections."""
        raw = backup_service.export_data(USER_ID)

        target = _fresh_service()
        summary = target.import_data(USER_ID, raw)

        assert summary.transaction_count == 2
        assert summary.goal_count == 1
        assert summary.goals_replaced is True
        assert summary.source_version == "1.1"
        assert _by_id(target._ledger.list(USER_ID)) == _by_id(ledger_store.list(USER_ID))
        assert _by_id(target._goals.list(USER_ID)) == _by_id(goal_tracker.list(USER_ID))

    def test_import_replaces_not_merges(self, backup_service, ledger_store):
        """Test existing transactions are dropped."""
        ledger_store.create(USER_ID, make_input(amount="1"))
        backup_service.import_data(USER_ID, json.dumps({"transactions": []}))
        assert ledger_store.list(USER_ID) == []

    def test_missing_goals_leaves_goals_alone(self, backup_service, goal_tracker):
        """Test goals are only replaced when the backup has them."""
        goal_tracker.create(USER_ID, GoalInput(title="Keep me", target_amount=10))
        summary = backup_service.import_data(USER_ID, json.dumps({"transactions": []}))
        assert summary.goals_replaced is False
        assert [g.title for g in goal_tracker.list(USER_ID)] == ["Keep me"]

    def test_records_are_rescoped(self, backup_service, ledger_store, populated):
        """Test a backup from another account lands under the importing user."""
        raw = backup_service.export_data(USER_ID)
        target = _fresh_service()
        target.import_data("user-2", raw)
        assert {t.user_id for t in target._ledger.list("user-2")} == {"user-2"}
        assert {g.user_id for g in target._goals.list("user-2")} == {"user-2"}
        assert target._ledger.list(USER_ID) == []

    def test_browser_backup_parses(self, backup_service, ledger_store):
        """Test a hand-written camelCase backup."""
        raw = json.dumps({
            "user": {"id": "old", "name": "Rina"},
            "transactions": [{
                "id": "t1",
                "userId": "old",
                "type": "INCOME",
                "amount": 300,
                "category": "Sales",
                "date": "2024-12-01T00:00:00.000Z",
                "timestamp": 1733011200000,
                "isDue": True,
                "isSettled": False,
                "partyName": "Rahim",
                "dueDate": "",
            }],
            "exportDate": "2024-12-02T00:00:00.000Z",
            "version": "1.1",
        })
        backup_service.import_data(USER_ID, raw)
        [tx] = ledger_store.list(USER_ID)
        assert tx.id == "t1"
        assert tx.party_name == "Rahim"
        assert tx.due_date is None

    @pytest.mark.parametrize("raw", [
        "not json",
        "[]",
        json.dumps({"goals": []}),
        json.dumps({"transactions": None}),
        json.dumps({"transactions": [{"id": "broken"}]}),
        json.dumps({"transactions": [], "goals": [{"title": "no target"}]}),
    ])
    def test_bad_payload_writes_nothing(self, backup_service, ledger_store, goal_tracker, populated, raw):
        """Test a rejected backup leaves the existing data untouched."""
        before_tx = ledger_store.list(USER_ID)
        before_goals = goal_tracker.list(USER_ID)

        with pytest.raises(ImportFormatError):
            backup_service.import_data(USER_ID, raw)

        assert ledger_store.list(USER_ID) == before_tx
        assert goal_tracker.list(USER_ID) == before_goals
