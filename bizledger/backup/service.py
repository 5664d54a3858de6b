"""
Backup & Restore

Export writes everything one user owns into a single JSON document:

    {"user": ..., "transactions": [...], "goals": [...],
     "exportDate": "<ISO 8601>", "version": "1.1"}

Import is a FULL REPLACE, not a merge:
- `transactions` must be present, or nothing is written
- `goals` is optional; when absent the stored goals are left alone
- every record is parsed before the first write, so a bad backup never
  leaves a half-imported ledger behind
"""

import json
from typing import Any, Optional

from pydantic import TypeAdapter, ValidationError

from bizledger.goals import GoalTracker
from bizledger.ledger import LedgerStore
from bizledger.models.ledger import Goal, Transaction
from bizledger.models.session import BackupPayload, ImportSummary, UserProfile


class ImportFormatError(Exception):
    """The backup payload failed the shape check. Nothing was imported."""
    pass


_transactions_adapter = TypeAdapter(list[Transaction])
_goals_adapter = TypeAdapter(list[Goal])


class BackupService:
    """Export and import one user's transactions and goals."""

    def __init__(
        self,
        ledger_store: LedgerStore,
        goal_tracker: GoalTracker,
        version: str = "1.1",
    ):
        self._ledger = ledger_store
        self._goals = goal_tracker
        self._version = version

    def build_payload(
        self,
        user_id: str,
        user: Optional[UserProfile] = None,
    ) -> BackupPayload:
        return BackupPayload(
            user=user,
            transactions=self._ledger.list(user_id),
            goals=self._goals.list(user_id),
            version=self._version,
        )

    def export_data(
        self,
        user_id: str,
        user: Optional[UserProfile] = None,
    ) -> str:
        """Serialize the user's data as a backup document."""
        payload = self.build_payload(user_id, user)
        return payload.model_dump_json(by_alias=True)

    def parse_payload(self, raw: str) -> tuple[list[Transaction], Optional[list[Goal]], Optional[str]]:
        """
        Check the backup shape and parse its records.

        Returns:
            (transactions, goals_or_None, version)

        Raises:
            ImportFormatError: If the document is not usable
        """
        try:
            data: Any = json.loads(raw)
        except (TypeError, json.JSONDecodeError) as e:
            raise ImportFormatError(f"Backup is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise ImportFormatError("Backup must be a JSON object")
        if data.get("transactions") is None:
            raise ImportFormatError("Backup has no transactions")

        try:
            transactions = _transactions_adapter.validate_python(data["transactions"])
        except ValidationError as e:
            raise ImportFormatError(
                f"Backup transactions are malformed: {e.error_count()} errors"
            ) from e

        goals = None
        if data.get("goals") is not None:
            try:
                goals = _goals_adapter.validate_python(data["goals"])
            except ValidationError as e:
                raise ImportFormatError(
                    f"Backup goals are malformed: {e.error_count()} errors"
                ) from e

        version = data.get("version")
        return transactions, goals, str(version) if version is not None else None

    def import_data(self, user_id: str, raw: str) -> ImportSummary:
        """
        Replace the user's collections with the backup's.

        Records are re-owned by `user_id`, so a backup taken under another
        account lands in this user's partition.

        Raises:
            ImportFormatError: If the backup fails the shape check
        """
        transactions, goals, version = self.parse_payload(raw)

        transactions = [
            t.model_copy(update={"user_id": user_id}) for t in transactions
        ]
        self._ledger.replace_all(user_id, transactions)

        if goals is not None:
            goals = [g.model_copy(update={"user_id": user_id}) for g in goals]
            self._goals.replace_all(user_id, goals)

        return ImportSummary(
            user_id=user_id,
            transaction_count=len(transactions),
            goal_count=len(goals) if goals is not None else 0,
            goals_replaced=goals is not None,
            source_version=version,
        )
