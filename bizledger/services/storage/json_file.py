"""
JSON File Key-Value Store

All keys live in one JSON document on disk: {"<key>": "<json blob>", ...}.
Every set() rewrites the file through a temporary sibling and an atomic
rename, so a crash mid-write leaves the previous version intact.
"""

import json
import os
from pathlib import Path
from typing import Optional

from bizledger.services.storage.interface import (
    KeyValueStoreInterface,
    PersistenceError,
)


class JsonFileKeyValueStore(KeyValueStoreInterface):
    """File-backed gateway."""

    def __init__(self, path: str | Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            text = self._path.read_text(encoding="utf-8")
        except OSError as e:
            raise PersistenceError(f"Failed to read {self._path}: {e}") from e

        if not text.strip():
            return {}
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise PersistenceError(f"Storage file {self._path} is corrupt: {e}") from e

        if not isinstance(data, dict):
            raise PersistenceError(
                f"Storage file {self._path} must hold a JSON object"
            )
        return data

    def get(self, key: str) -> Optional[str]:
        value = self._read_all().get(key)
        if value is not None and not isinstance(value, str):
            raise PersistenceError(f"Value for {key} is not a string blob")
        return value

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value

        tmp_path = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(
                json.dumps(data, ensure_ascii=False),
                encoding="utf-8",
            )
            os.replace(tmp_path, self._path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise PersistenceError(f"Failed to write {self._path}: {e}") from e
