"""
Abstract Storage Interface

DESIGN DECISION: We define abstract interfaces at two levels:

1. KeyValueStoreInterface - the persistence gateway. get/set of whole
   string blobs, the way the browser's local storage works.
2. TransactionStorageInterface / GoalStorageInterface - per-entity
   repositories (list/get/create/update/delete) that the stores use.

This allows us to:
1. Swap the backing store (memory, file, Google Sheets) without touching
   business logic
2. Use in-memory storage for testing
3. Keep the read-modify-write-whole-collection detail in one place

The interface is intentionally simple - we're not building a full ORM.
"""

from abc import ABC, abstractmethod
from typing import Optional

from bizledger.models.ledger import Goal, Transaction


class KeyValueStoreInterface(ABC):
    """
    The persistence gateway.

    Keys are namespaced as "<prefix>:<user_id>"; values are JSON strings.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Read the blob stored under a key.

        Returns:
            The stored string, or None if the key was never written

        Raises:
            PersistenceError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """
        Replace the blob stored under a key.

        Raises:
            PersistenceError: If the backend cannot be written
        """
        pass


class TransactionStorageInterface(ABC):
    """
    Abstract interface for transaction storage.

    Every operation is scoped to one user's collection.
    """

    @abstractmethod
    def list_transactions(self, user_id: str) -> list[Transaction]:
        """
        All transactions for a user, in stored order.

        Raises:
            PersistenceError: If stored data is unreadable
        """
        pass

    @abstractmethod
    def get_transaction(
        self,
        user_id: str,
        transaction_id: str,
    ) -> Optional[Transaction]:
        """The transaction with this ID, or None."""
        pass

    @abstractmethod
    def save_transaction(self, transaction: Transaction) -> Transaction:
        """
        Append a transaction to its owner's collection.

        No duplicate detection: every call adds a record.
        """
        pass

    @abstractmethod
    def update_transaction(self, transaction: Transaction) -> Transaction:
        """
        Replace the stored record with the same ID.

        Raises:
            NotFoundError: If no record has this ID
        """
        pass

    @abstractmethod
    def delete_transaction(self, user_id: str, transaction_id: str) -> bool:
        """
        Remove a transaction.

        Returns:
            True if a record was removed, False if there was none
        """
        pass

    @abstractmethod
    def replace_transactions(
        self,
        user_id: str,
        transactions: list[Transaction],
    ) -> None:
        """Overwrite the whole collection (used by import)."""
        pass


class GoalStorageInterface(ABC):
    """
    Abstract interface for savings goal storage.
    """

    @abstractmethod
    def list_goals(self, user_id: str) -> list[Goal]:
        pass

    @abstractmethod
    def get_goal(self, user_id: str, goal_id: str) -> Optional[Goal]:
        pass

    @abstractmethod
    def save_goal(self, goal: Goal) -> Goal:
        pass

    @abstractmethod
    def update_goal(self, goal: Goal) -> Goal:
        """
        Raises:
            NotFoundError: If no goal has this ID
        """
        pass

    @abstractmethod
    def delete_goal(self, user_id: str, goal_id: str) -> bool:
        pass

    @abstractmethod
    def replace_goals(self, user_id: str, goals: list[Goal]) -> None:
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class PersistenceError(StorageError):
    """Backend unavailable, or stored data is malformed."""
    pass


class ConnectionError(PersistenceError):
    """Could not connect to storage backend."""
    pass
