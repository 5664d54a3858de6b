"""
Main Orchestrator for BizLedger

This module ties together all the components and defines the
end-to-end flows for:
1. Ledger (record → validate → save, edit, settle, delete, parties)
2. Goals (create, contribute, reconcile on load, delete)
3. Backup (export, restore)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing reaches a store without passing validation
- Every operation runs for an explicit Session, never a global user
- Every state change is logged

Failures are logged and re-raised; the flows never retry and never
swallow an error.
"""

import json
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from bizledger.activity import ActivityLogger
from bizledger.backup import BackupService, ImportFormatError
from bizledger.config import Settings, get_settings
from bizledger.goals import GoalTracker
from bizledger.ledger import (
    LedgerStore,
    aggregate_parties,
    party_transactions,
    search_parties,
)
from bizledger.models.ledger import (
    Goal,
    GoalCompletion,
    GoalInput,
    PartySummary,
    Transaction,
    TransactionEdit,
    TransactionInput,
    ValidationResult,
)
from bizledger.models.session import ImportSummary, Session
from bizledger.queries import QueryExecutor
from bizledger.services.storage import (
    GoogleSheetsClient,
    GoogleSheetsKeyValueStore,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueGoalStorage,
    KeyValueStoreInterface,
    KeyValueTransactionStorage,
    NotFoundError,
    StorageError,
)
from bizledger.validation import LedgerValidator, ValidationError


class LedgerFlow:
    """
    Orchestrates transaction recording and the due book.

    Flow for a new transaction:
    1. Validate → Two-stage validation (errors block, warnings pass)
    2. Save → LedgerStore assigns id and timestamp
    3. Log → One activity event
    """

    def __init__(
        self,
        ledger_store: LedgerStore,
        validator: Optional[LedgerValidator] = None,
        activity_logger: Optional[ActivityLogger] = None,
    ):
        self._ledger = ledger_store
        self._validator = validator or LedgerValidator()
        self._activity_logger = activity_logger or ActivityLogger()

    def _check(self, session: Session, result: ValidationResult) -> ValidationResult:
        if result.has_errors:
            self._activity_logger.log_validation_failed(session.user_id, result)
            raise ValidationError(result)
        return result

    def validate(self, data: TransactionInput) -> tuple[ValidationResult, str]:
        """
        Validate without saving, for the review step of the form.

        Returns:
            (validation_result, user_message)
        """
        result = self._validator.validate_transaction(data)
        return result, self._validator.get_user_friendly_summary(result)

    def record_transaction(
        self,
        session: Session,
        data: TransactionInput,
    ) -> tuple[Transaction, ValidationResult]:
        """
        Validate and save a new transaction.

        Returns:
            (saved_transaction, validation_result). The result may carry
            warnings for the UI to show.

        Raises:
            ValidationError: If a business rule is broken (nothing saved)
            PersistenceError: If the backend failed
        """
        result = self._check(session, self._validator.validate_transaction(data))

        try:
            transaction = self._ledger.create(session.user_id, data)
        except StorageError as e:
            self._activity_logger.log_storage_error(session.user_id, "record_transaction", e)
            raise

        self._activity_logger.log_transaction_recorded(transaction)
        return transaction, result

    def edit_transaction(
        self,
        session: Session,
        transaction_id: str,
        changes: TransactionEdit,
    ) -> tuple[Transaction, ValidationResult]:
        """
        Apply user edits to an existing transaction.

        Type, date, id, timestamp and settlement stay as stored.

        Raises:
            NotFoundError: If the transaction does not exist
            ValidationError: If the edited values break a business rule
        """
        current = self._ledger.get(session.user_id, transaction_id)
        if current is None:
            raise NotFoundError(f"Transaction not found: {transaction_id}")

        result = self._check(
            session,
            self._validator.validate_transaction(changes, transaction_date=current.date),
        )

        edited = current.model_copy(
            update=changes.model_dump(include=set(TransactionEdit.model_fields))
        )
        try:
            saved = self._ledger.update(edited)
        except StorageError as e:
            self._activity_logger.log_storage_error(session.user_id, "edit_transaction", e)
            raise

        self._activity_logger.log_transaction_updated(saved)
        return saved, result

    def settle_transaction(self, session: Session, transaction_id: str) -> Transaction:
        """
        Mark a due as paid. No confirmation step.

        Raises:
            NotFoundError: If the transaction does not exist
        """
        try:
            settled = self._ledger.settle(session.user_id, transaction_id)
        except StorageError as e:
            self._activity_logger.log_storage_error(session.user_id, "settle_transaction", e)
            raise

        self._activity_logger.log_transaction_settled(settled)
        return settled

    def remove_transaction(self, session: Session, transaction_id: str) -> bool:
        """Delete a transaction. Deleting an unknown id is a no-op."""
        try:
            existed = self._ledger.delete(session.user_id, transaction_id)
        except StorageError as e:
            self._activity_logger.log_storage_error(session.user_id, "remove_transaction", e)
            raise

        self._activity_logger.log_transaction_deleted(session.user_id, transaction_id, existed)
        return existed

    def transactions(self, session: Session) -> list[Transaction]:
        """All transactions, newest first."""
        return self._ledger.list_recent(session.user_id)

    def balance(self, session: Session) -> Decimal:
        """Cash on hand (outstanding dues excluded)."""
        return self._ledger.calculate_balance(session.user_id)

    def parties(self, session: Session) -> list[PartySummary]:
        """Net position per counterparty, most recently active first."""
        return aggregate_parties(self._ledger.list(session.user_id))

    def search_parties(self, session: Session, text: str) -> list[PartySummary]:
        """Party summaries whose name contains `text`, case-insensitive."""
        return search_parties(self.parties(session), text)

    def party_statement(self, session: Session, name: str) -> list[Transaction]:
        """Every transaction with one party, newest first."""
        return party_transactions(self._ledger.list(session.user_id), name)

    def party_names(self, session: Session) -> list[str]:
        """Known party names for autocomplete."""
        return self._ledger.get_parties(session.user_id)


class GoalFlow:
    """
    Orchestrates savings goals.

    Completion events are returned to the caller exactly once, whether the
    goal crossed its target through a contribution or was found over target
    on load.
    """

    def __init__(
        self,
        goal_tracker: GoalTracker,
        validator: Optional[LedgerValidator] = None,
        activity_logger: Optional[ActivityLogger] = None,
    ):
        self._goals = goal_tracker
        self._validator = validator or LedgerValidator()
        self._activity_logger = activity_logger or ActivityLogger()

    def _check(self, session: Session, result: ValidationResult) -> ValidationResult:
        if result.has_errors:
            self._activity_logger.log_validation_failed(session.user_id, result)
            raise ValidationError(result)
        return result

    def create_goal(
        self,
        session: Session,
        data: GoalInput,
    ) -> tuple[Goal, ValidationResult]:
        """
        Validate and save a new goal.

        Raises:
            ValidationError: If the title is blank or the target is not positive
        """
        result = self._check(session, self._validator.validate_goal(data))

        try:
            goal = self._goals.create(session.user_id, data)
        except StorageError as e:
            self._activity_logger.log_storage_error(session.user_id, "create_goal", e)
            raise

        self._activity_logger.log_goal_created(goal)
        return goal, result

    def add_progress(
        self,
        session: Session,
        goal_id: str,
        amount: Decimal,
    ) -> tuple[Goal, Optional[GoalCompletion]]:
        """
        Contribute to a goal.

        Raises:
            ValidationError: If amount is not positive
            NotFoundError: If the goal does not exist
        """
        self._check(session, self._validator.validate_contribution(amount))

        try:
            goal, completion = self._goals.add_progress(session.user_id, goal_id, amount)
        except StorageError as e:
            self._activity_logger.log_storage_error(session.user_id, "add_progress", e)
            raise

        self._activity_logger.log_goal_progress(goal, Decimal(str(amount)))
        if completion is not None:
            self._activity_logger.log_goal_completed(session.user_id, completion)
        return goal, completion

    def load_goals(self, session: Session) -> tuple[list[Goal], list[GoalCompletion]]:
        """
        Load goals, completing any that already reached their target.

        Returns:
            (goals, newly_completed). A second load returns no events.
        """
        try:
            goals, completions = self._goals.reconcile(session.user_id)
        except StorageError as e:
            self._activity_logger.log_storage_error(session.user_id, "load_goals", e)
            raise

        for completion in completions:
            self._activity_logger.log_goal_completed(session.user_id, completion)
        return goals, completions

    def remove_goal(self, session: Session, goal_id: str) -> bool:
        """Delete a goal. No confirmation, no undo."""
        try:
            existed = self._goals.delete(session.user_id, goal_id)
        except StorageError as e:
            self._activity_logger.log_storage_error(session.user_id, "remove_goal", e)
            raise

        self._activity_logger.log_goal_deleted(session.user_id, goal_id, existed)
        return existed


class BackupFlow:
    """
    Orchestrates export and restore.

    Restore is a full replace of the session user's data.
    """

    def __init__(
        self,
        backup_service: BackupService,
        activity_logger: Optional[ActivityLogger] = None,
    ):
        self._backup = backup_service
        self._activity_logger = activity_logger or ActivityLogger()

    def export(self, session: Session) -> str:
        """Backup document for the session user."""
        raw = self._backup.export_data(session.user_id, session.user)
        document = json.loads(raw)
        self._activity_logger.log_data_exported(
            session.user_id,
            transaction_count=len(document["transactions"]),
            goal_count=len(document["goals"]),
        )
        return raw

    def restore(self, session: Session, raw: str) -> ImportSummary:
        """
        Replace the session user's data with a backup.

        Raises:
            ImportFormatError: If the backup is unusable (nothing written)
        """
        try:
            summary = self._backup.import_data(session.user_id, raw)
        except ImportFormatError as e:
            self._activity_logger.log_import_rejected(session.user_id, str(e))
            raise
        except StorageError as e:
            self._activity_logger.log_storage_error(session.user_id, "restore", e)
            raise

        self._activity_logger.log_data_imported(
            session.user_id,
            transaction_count=summary.transaction_count,
            goal_count=summary.goal_count,
            goals_replaced=summary.goals_replaced,
        )
        return summary


@dataclass
class AppComponents:
    """Everything a front end needs, wired to one storage backend."""

    ledger: LedgerFlow
    goals: GoalFlow
    backup: BackupFlow
    queries: QueryExecutor
    gateway: KeyValueStoreInterface


def create_gateway(settings: Settings) -> KeyValueStoreInterface:
    """Build the key-value gateway selected by BIZLEDGER_STORAGE_BACKEND."""
    storage = settings.storage
    if storage.backend == "json_file":
        return JsonFileKeyValueStore(storage.json_path)
    if storage.backend == "google_sheets":
        return GoogleSheetsKeyValueStore(GoogleSheetsClient(settings.google_sheets))
    return InMemoryKeyValueStore()


def create_app_components(
    settings: Optional[Settings] = None,
    gateway: Optional[KeyValueStoreInterface] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        settings: Settings to use (defaults to get_settings())
        gateway: Pre-built gateway, e.g. an in-memory store for tests.
                 When omitted, one is built from the storage settings.
    """
    settings = settings or get_settings()
    gateway = gateway or create_gateway(settings)
    storage = settings.storage
    app = settings.app

    validator = LedgerValidator(app)
    activity_logger = ActivityLogger()

    ledger_store = LedgerStore(
        KeyValueTransactionStorage(gateway, key_prefix=storage.transactions_key_prefix)
    )
    goal_tracker = GoalTracker(
        KeyValueGoalStorage(gateway, key_prefix=storage.goals_key_prefix),
        validator=validator,
    )
    backup_service = BackupService(ledger_store, goal_tracker, version=app.backup_version)

    return AppComponents(
        ledger=LedgerFlow(ledger_store, validator, activity_logger),
        goals=GoalFlow(goal_tracker, validator, activity_logger),
        backup=BackupFlow(backup_service, activity_logger),
        queries=QueryExecutor(ledger_store),
        gateway=gateway,
    )
