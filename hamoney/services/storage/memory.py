"""
In-Memory Storage

Used for tests and for sessions where nothing needs to survive a restart.
Values are kept as JSON text, so anything that would not survive a real
backend fails here too.
"""

import json
from typing import Any, Optional

from hamoney.services.storage.interface import PersistenceStore, StorageError


class InMemoryStore(PersistenceStore):
    """Dict-backed key-value store."""

    def __init__(self, key_prefix: str = ""):
        self._prefix = key_prefix
        self._data: dict[str, str] = {}

    def _full_key(self, key: str) -> str:
        return self._prefix + key

    def get(self, key: str) -> Optional[Any]:
        raw = self._data.get(self._full_key(key))
        if raw is None:
            return None
        return json.loads(raw)

    def set(self, key: str, value: Any) -> bool:
        try:
            self._data[self._full_key(key)] = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Value for {key!r} is not JSON-serializable: {e}")
        return True

    def delete(self, key: str) -> bool:
        return self._data.pop(self._full_key(key), None) is not None

    def keys(self) -> list[str]:
        """Logical keys currently stored."""
        return [k[len(self._prefix):] for k in self._data]
