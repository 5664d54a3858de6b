"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
The repositories sit on a key-value gateway; the gateway is swappable
between memory, a JSON file and Google Sheets.
"""

from bizledger.services.storage.interface import (
    ConnectionError,
    GoalStorageInterface,
    KeyValueStoreInterface,
    NotFoundError,
    PersistenceError,
    StorageError,
    TransactionStorageInterface,
)
from bizledger.services.storage.memory import InMemoryKeyValueStore
from bizledger.services.storage.json_file import JsonFileKeyValueStore
from bizledger.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsKeyValueStore,
)
from bizledger.services.storage.repositories import (
    KeyValueGoalStorage,
    KeyValueTransactionStorage,
    collection_key,
)

__all__ = [
    # Interfaces
    "GoalStorageInterface",
    "KeyValueStoreInterface",
    "TransactionStorageInterface",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "PersistenceError",
    "StorageError",
    # Gateways
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "GoogleSheetsClient",
    "GoogleSheetsKeyValueStore",
    # Repositories
    "KeyValueGoalStorage",
    "KeyValueTransactionStorage",
    "collection_key",
]
