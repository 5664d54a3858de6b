"""Services package."""

from bizledger.services.storage import (
    ConnectionError,
    GoalStorageInterface,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueGoalStorage,
    KeyValueStoreInterface,
    KeyValueTransactionStorage,
    NotFoundError,
    PersistenceError,
    StorageError,
    TransactionStorageInterface,
)

__all__ = [
    "ConnectionError",
    "GoalStorageInterface",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "KeyValueGoalStorage",
    "KeyValueStoreInterface",
    "KeyValueTransactionStorage",
    "NotFoundError",
    "PersistenceError",
    "StorageError",
    "TransactionStorageInterface",
]
