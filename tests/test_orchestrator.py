"""
Integration tests for the orchestrator flows.

All flows run against the in-memory gateway, wired by create_app_components.
"""

import json
import logging
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from bizledger.activity import ActivityLogger
from bizledger.backup import ImportFormatError
from bizledger.config import Settings
from bizledger.ledger import LedgerStore
from bizledger.models.activity import ActivityEventType
from bizledger.models.ledger import GoalInput, GoalStatus, TransactionEdit, TransactionType
from bizledger.models.session import Session, UserProfile
from bizledger.orchestrator import (
    BackupFlow,
    GoalFlow,
    LedgerFlow,
    create_app_components,
    create_gateway,
)
from bizledger.services.storage import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueStoreInterface,
    KeyValueTransactionStorage,
    NotFoundError,
    PersistenceError,
)
from bizledger.validation import ValidationError

from tests.conftest import make_input


class RecordingActivityLogger(ActivityLogger):
    """Keeps events in memory instead of writing them out."""

    def __init__(self):
        super().__init__("bizledger.tests")
        self.events = []

    def log(self, event):
        self.events.append(event)

    def types(self):
        return [e.event_type for e in self.events]


class BrokenGateway(KeyValueStoreInterface):
    """A backend that is down."""

    def get(self, key):
        raise PersistenceError("backend unavailable")

    def set(self, key, value):
        raise PersistenceError("backend unavailable")


@pytest.fixture
def recorder() -> RecordingActivityLogger:
    return RecordingActivityLogger()


@pytest.fixture
def ledger_flow(ledger_store, validator, recorder) -> LedgerFlow:
    return LedgerFlow(ledger_store, validator, recorder)


@pytest.fixture
def goal_flow(goal_tracker, validator, recorder) -> GoalFlow:
    return GoalFlow(goal_tracker, validator, recorder)


@pytest.fixture
def backup_flow(backup_service, recorder) -> BackupFlow:
    return BackupFlow(backup_service, recorder)


class TestLedgerFlow:
    """Tests for recording, editing and settling transactions."""

    def test_record(self, ledger_flow, session, recorder):
        """Test a valid transaction is saved and logged."""
        tx, result = ledger_flow.record_transaction(session, make_input(amount="500"))
        assert tx.user_id == session.user_id
        assert result.is_valid
        assert ledger_flow.balance(session) == Decimal("500")
        assert recorder.types() == [ActivityEventType.TRANSACTION_RECORDED]

    def test_invalid_input_is_not_saved(self, ledger_flow, session, recorder):
        """Test a due without a party is rejected before any write."""
        with pytest.raises(ValidationError) as exc_info:
            ledger_flow.record_transaction(session, make_input(is_due=True))
        assert exc_info.value.issues[0].field == "party_name"
        assert ledger_flow.transactions(session) == []
        assert recorder.types() == [ActivityEventType.VALIDATION_FAILED]

    def test_warnings_do_not_block(self, ledger_flow, session):
        """Test a suspicious amount is saved with its warning."""
        tx, result = ledger_flow.record_transaction(session, make_input(amount="50000000"))
        assert result.warnings
        assert ledger_flow.transactions(session) == [tx]

    def test_validate_only(self, ledger_flow, session):
        """Test the review step does not write."""
        result, message = ledger_flow.validate(make_input(amount="0"))
        assert result.has_errors
        assert "Please fix" in message
        assert ledger_flow.transactions(session) == []

    def test_edit_keeps_fixed_fields(self, ledger_flow, session):
        """Test type, date, id, timestamp and settlement survive an edit."""
        tx, _ = ledger_flow.record_transaction(
            session,
            make_input(type=TransactionType.EXPENSE, amount="200", is_due=True, party_name="Karim"),
        )
        ledger_flow.settle_transaction(session, tx.id)

        edited, _ = ledger_flow.edit_transaction(
            session,
            tx.id,
            TransactionEdit(amount=Decimal("250"), category="Stock", is_due=True, party_name="Karim Traders"),
        )
        assert edited.id == tx.id
        assert edited.type == TransactionType.EXPENSE
        assert edited.date == tx.date
        assert edited.timestamp == tx.timestamp
        assert edited.is_settled is True
        assert edited.amount == Decimal("250")
        assert edited.party_name == "Karim Traders"

    def test_edit_missing(self, ledger_flow, session):
        """Test editing an unknown id."""
        with pytest.raises(NotFoundError):
            ledger_flow.edit_transaction(session, "missing", TransactionEdit(amount=1, category="x"))

    def test_edit_validates(self, ledger_flow, session):
        """Test edits go through the same rules."""
        tx, _ = ledger_flow.record_transaction(session, make_input())
        with pytest.raises(ValidationError):
            ledger_flow.edit_transaction(session, tx.id, TransactionEdit(amount=0, category="x"))
        assert ledger_flow.transactions(session)[0].amount == Decimal("500")

    def test_due_scenario(self, ledger_flow, session):
        """Scenario: a payable to Karim, then settled."""
        tx, _ = ledger_flow.record_transaction(
            session,
            make_input(type=TransactionType.EXPENSE, amount="200", is_due=True, party_name="Karim"),
        )
        assert ledger_flow.balance(session) == Decimal("0")
        [karim] = ledger_flow.parties(session)
        assert karim.net_balance == Decimal("-200")

        ledger_flow.settle_transaction(session, tx.id)
        assert ledger_flow.balance(session) == Decimal("-200")
        assert ledger_flow.parties(session)[0].total_payable == Decimal("200")

    def test_remove(self, ledger_flow, session, recorder):
        """Test delete and the no-op delete are both logged."""
        tx, _ = ledger_flow.record_transaction(session, make_input())
        assert ledger_flow.remove_transaction(session, tx.id) is True
        assert ledger_flow.remove_transaction(session, tx.id) is False
        deleted = [e for e in recorder.events if e.event_type == ActivityEventType.TRANSACTION_DELETED]
        assert [e.details["existed"] for e in deleted] == [True, False]

    def test_search_parties(self, ledger_flow, session):
        """Test party search through the flow."""
        ledger_flow.record_transaction(session, make_input(is_due=True, party_name="Karim Traders"))
        ledger_flow.record_transaction(session, make_input(is_due=True, party_name="Rahim"))
        assert [p.name for p in ledger_flow.search_parties(session, "karim")] == ["Karim Traders"]

    def test_party_statement(self, ledger_flow, session):
        """Test one party's transactions, newest date first."""
        early = datetime(2024, 12, 1, tzinfo=timezone.utc)
        late = datetime(2024, 12, 9, tzinfo=timezone.utc)
        ledger_flow.record_transaction(session, make_input(party_name="Rahim", date=early))
        ledger_flow.record_transaction(session, make_input(party_name="Rahim", date=late))
        ledger_flow.record_transaction(session, make_input(party_name="Karim", date=late))
        statement = ledger_flow.party_statement(session, "Rahim")
        assert [t.date for t in statement] == [late, early]

    def test_party_names(self, ledger_flow, session):
        """Test autocomplete names."""
        ledger_flow.record_transaction(session, make_input(party_name="Rahim"))
        assert ledger_flow.party_names(session) == ["Rahim"]

    def test_sessions_are_isolated(self, ledger_flow, session):
        """Test another user sees nothing."""
        ledger_flow.record_transaction(session, make_input())
        other = Session(user=UserProfile(id="user-2"))
        assert ledger_flow.transactions(other) == []
        assert ledger_flow.balance(other) == Decimal("0")

    def test_storage_error_is_logged_and_raised(self, validator, session):
        """Test a backend failure surfaces to the caller."""
        recorder = RecordingActivityLogger()
        flow = LedgerFlow(LedgerStore(KeyValueTransactionStorage(BrokenGateway())), validator, recorder)
        with pytest.raises(PersistenceError):
            flow.record_transaction(session, make_input())
        assert recorder.types() == [ActivityEventType.STORAGE_ERROR]


class TestGoalFlow:
    """Tests for the goal flow."""

    def test_goal_scenario(self, goal_flow, session, recorder):
        """Scenario: contributions of 400 and 600 toward 1000."""
        goal, _ = goal_flow.create_goal(session, GoalInput(title="Oven", target_amount=1000))
        goal, event = goal_flow.add_progress(session, goal.id, Decimal("400"))
        assert event is None
        goal, event = goal_flow.add_progress(session, goal.id, Decimal("600"))
        assert goal.status == GoalStatus.COMPLETED
        assert event is not None
        assert recorder.types().count(ActivityEventType.GOAL_COMPLETED) == 1

    def test_invalid_goal(self, goal_flow, session):
        """Test a goal without a title is rejected."""
        with pytest.raises(ValidationError):
            goal_flow.create_goal(session, GoalInput(title=" ", target_amount=10))
        goals, _ = goal_flow.load_goals(session)
        assert goals == []

    def test_invalid_contribution(self, goal_flow, session, recorder):
        """Test a zero contribution is rejected and logged."""
        goal, _ = goal_flow.create_goal(session, GoalInput(title="Oven", target_amount=10))
        with pytest.raises(ValidationError):
            goal_flow.add_progress(session, goal.id, Decimal("0"))
        assert recorder.types()[-1] == ActivityEventType.VALIDATION_FAILED

    def test_load_reports_completion_once(self, goal_flow, goal_tracker, session):
        """Test goals over target are completed on the first load only."""
        goal, _ = goal_flow.create_goal(session, GoalInput(title="Oven", target_amount=100))
        stored = goal_tracker.get(session.user_id, goal.id)
        goal_tracker.replace_all(
            session.user_id, [stored.model_copy(update={"current_amount": Decimal("100")})]
        )

        goals, events = goal_flow.load_goals(session)
        assert len(events) == 1
        assert goals[0].status == GoalStatus.COMPLETED

        _, events = goal_flow.load_goals(session)
        assert events == []

    def test_remove_goal(self, goal_flow, session):
        """Test goals can be deleted."""
        goal, _ = goal_flow.create_goal(session, GoalInput(title="Oven", target_amount=10))
        assert goal_flow.remove_goal(session, goal.id) is True
        assert goal_flow.load_goals(session)[0] == []


class TestBackupFlow:
    """Tests for export and restore through the flow."""

    def test_export_includes_profile(self, backup_flow, ledger_flow, session, recorder):
        """Test the session's profile travels with the backup."""
        ledger_flow.record_transaction(session, make_input())
        doc = json.loads(backup_flow.export(session))
        assert doc["user"]["businessName"] == "Rina Store"
        assert len(doc["transactions"]) == 1
        assert recorder.types()[-1] == ActivityEventType.DATA_EXPORTED
        assert recorder.events[-1].details == {"transaction_count": 1, "goal_count": 0}

    def test_restore(self, backup_flow, ledger_flow, session, recorder):
        """Test restore replaces the ledger."""
        ledger_flow.record_transaction(session, make_input(amount="500"))
        raw = backup_flow.export(session)
        ledger_flow.record_transaction(session, make_input(amount="999"))

        summary = backup_flow.restore(session, raw)
        assert summary.transaction_count == 1
        assert ledger_flow.balance(session) == Decimal("500")
        assert recorder.types()[-1] == ActivityEventType.DATA_IMPORTED

    def test_rejected_restore(self, backup_flow, session, recorder):
        """Test a bad backup is logged and re-raised."""
        with pytest.raises(ImportFormatError):
            backup_flow.restore(session, '{"version": "1.1"}')
        assert recorder.types() == [ActivityEventType.IMPORT_REJECTED]


class TestAppComponents:
    """Tests for create_app_components and gateway selection."""

    def test_wired_components_share_storage(self, session):
        """Test all flows see the same data."""
        components = create_app_components(Settings(), gateway=InMemoryKeyValueStore())
        components.ledger.record_transaction(session, make_input(amount="500"))
        components.goals.create_goal(session, GoalInput(title="Oven", target_amount=100))

        assert components.queries.summary(session.user_id).balance == Decimal("500")
        doc = json.loads(components.backup.export(session))
        assert len(doc["transactions"]) == 1
        assert len(doc["goals"]) == 1
        assert sorted(components.gateway.keys()) == [
            "bizledger_data:user-1",
            "bizledger_goals:user-1",
        ]

    def test_default_backend_is_memory(self, monkeypatch):
        """Test no configuration means the in-memory backend."""
        monkeypatch.delenv("BIZLEDGER_STORAGE_BACKEND", raising=False)
        assert isinstance(create_gateway(Settings()), InMemoryKeyValueStore)

    def test_json_file_backend(self, monkeypatch, tmp_path, session):
        """Test the file backend is selected from the environment."""
        path = tmp_path / "data.json"
        monkeypatch.setenv("BIZLEDGER_STORAGE_BACKEND", "json_file")
        monkeypatch.setenv("BIZLEDGER_STORAGE_JSON_PATH", str(path))

        components = create_app_components(Settings())
        assert isinstance(components.gateway, JsonFileKeyValueStore)
        components.ledger.record_transaction(session, make_input())
        assert path.exists()

    def test_custom_key_prefix(self, monkeypatch, session):
        """Test key prefixes come from settings."""
        monkeypatch.setenv("BIZLEDGER_STORAGE_TRANSACTIONS_KEY_PREFIX", "shop")
        components = create_app_components(Settings(), gateway=InMemoryKeyValueStore())
        components.ledger.record_transaction(session, make_input())
        assert components.gateway.keys() == ["shop:user-1"]


def test_activity_events_reach_the_log(caplog, ledger_store, validator, session):
    """Test the real logger writes structured events through logging."""
    caplog.set_level(logging.INFO)
    flow = LedgerFlow(ledger_store, validator, ActivityLogger("bizledger.tests.caplog"))
    flow.record_transaction(session, make_input())
    assert "transaction_recorded" in caplog.text
