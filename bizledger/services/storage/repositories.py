"""
Key-Value Backed Repositories

Each user's transactions and goals are stored as ONE JSON array under
"<prefix>:<user_id>". Every write reads the whole array, changes it in
memory and writes the whole array back.

TRADEOFFS:
- No partial writes: a change is either fully written or not at all
- No locking: last writer wins if two processes share a backend
- Fine for a single business's volume
"""

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from bizledger.models.ledger import Goal, Transaction
from bizledger.services.storage.interface import (
    GoalStorageInterface,
    KeyValueStoreInterface,
    NotFoundError,
    PersistenceError,
    TransactionStorageInterface,
)


RecordT = TypeVar("RecordT", Transaction, Goal)


def collection_key(prefix: str, user_id: str) -> str:
    """Key for one user's collection."""
    return f"{prefix}:{user_id}"


class JsonCollection(Generic[RecordT]):
    """
    One JSON array per user, read and written whole.

    Records are serialized with their camelCase aliases so the blobs match
    what the browser app stored.
    """

    def __init__(
        self,
        gateway: KeyValueStoreInterface,
        prefix: str,
        model: type[BaseModel],
    ):
        self._gateway = gateway
        self._prefix = prefix
        self._name = model.__name__.lower()
        self._adapter = TypeAdapter(list[model])

    def load(self, user_id: str) -> list[RecordT]:
        """Read and parse a user's collection. Missing key means empty."""
        raw = self._gateway.get(collection_key(self._prefix, user_id))
        if raw is None or not raw.strip():
            return []
        try:
            return self._adapter.validate_json(raw)
        except ValidationError as e:
            raise PersistenceError(
                f"Stored {self._name} data for user {user_id} is malformed: "
                f"{e.error_count()} errors"
            ) from e

    def dump(self, user_id: str, records: list[RecordT]) -> None:
        """Serialize and write a user's whole collection."""
        raw = self._adapter.dump_json(records, by_alias=True).decode("utf-8")
        self._gateway.set(collection_key(self._prefix, user_id), raw)

    def find(self, user_id: str, record_id: str) -> Optional[RecordT]:
        for record in self.load(user_id):
            if record.id == record_id:
                return record
        return None

    def append(self, record: RecordT) -> RecordT:
        records = self.load(record.user_id)
        records.append(record)
        self.dump(record.user_id, records)
        return record

    def replace_one(self, record: RecordT) -> RecordT:
        records = self.load(record.user_id)
        for idx, existing in enumerate(records):
            if existing.id == record.id:
                records[idx] = record
                self.dump(record.user_id, records)
                return record

        raise NotFoundError(
            f"{self._name.capitalize()} not found: {record.id}"
        )

    def remove(self, user_id: str, record_id: str) -> bool:
        records = self.load(user_id)
        kept = [r for r in records if r.id != record_id]
        if len(kept) == len(records):
            return False
        self.dump(user_id, kept)
        return True


class KeyValueTransactionStorage(TransactionStorageInterface):
    """Transaction repository on top of any key-value gateway."""

    def __init__(
        self,
        gateway: KeyValueStoreInterface,
        key_prefix: str = "bizledger_data",
    ):
        self._collection: JsonCollection[Transaction] = JsonCollection(
            gateway, key_prefix, Transaction
        )

    def list_transactions(self, user_id: str) -> list[Transaction]:
        return self._collection.load(user_id)

    def get_transaction(
        self,
        user_id: str,
        transaction_id: str,
    ) -> Optional[Transaction]:
        return self._collection.find(user_id, transaction_id)

    def save_transaction(self, transaction: Transaction) -> Transaction:
        return self._collection.append(transaction)

    def update_transaction(self, transaction: Transaction) -> Transaction:
        return self._collection.replace_one(transaction)

    def delete_transaction(self, user_id: str, transaction_id: str) -> bool:
        return self._collection.remove(user_id, transaction_id)

    def replace_transactions(
        self,
        user_id: str,
        transactions: list[Transaction],
    ) -> None:
        self._collection.dump(user_id, transactions)


class KeyValueGoalStorage(GoalStorageInterface):
    """Goal repository on top of any key-value gateway."""

    def __init__(
        self,
        gateway: KeyValueStoreInterface,
        key_prefix: str = "bizledger_goals",
    ):
        self._collection: JsonCollection[Goal] = JsonCollection(
            gateway, key_prefix, Goal
        )

    def list_goals(self, user_id: str) -> list[Goal]:
        return self._collection.load(user_id)

    def get_goal(self, user_id: str, goal_id: str) -> Optional[Goal]:
        return self._collection.find(user_id, goal_id)

    def save_goal(self, goal: Goal) -> Goal:
        return self._collection.append(goal)

    def update_goal(self, goal: Goal) -> Goal:
        return self._collection.replace_one(goal)

    def delete_goal(self, user_id: str, goal_id: str) -> bool:
        return self._collection.remove(user_id, goal_id)

    def replace_goals(self, user_id: str, goals: list[Goal]) -> None:
        self._collection.dump(user_id, goals)
