"""
In-Memory Key-Value Store

The stand-in for browser local storage: a plain dict that lives as long as
the process. Used for tests and throwaway sessions.
"""

from typing import Optional

from bizledger.services.storage.interface import KeyValueStoreInterface


class InMemoryKeyValueStore(KeyValueStoreInterface):
    """Dict-backed gateway."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def keys(self) -> list[str]:
        """All keys written so far."""
        return list(self._data)
