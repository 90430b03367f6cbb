"""
JSON File Storage

One file per key under a data directory, named `<prefix><key>.json`.
Writes go to a temporary file first and are moved into place, so a crash
mid-write leaves the previous value intact.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

from hamoney.services.storage.interface import PersistenceStore, StorageError


class JsonFileStore(PersistenceStore):
    """File-backed key-value store."""

    def __init__(self, data_dir, key_prefix: str = "hamoney_"):
        self._dir = Path(data_dir)
        self._prefix = key_prefix

    def _path_for(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise StorageError(f"Invalid storage key: {key!r}")
        return self._dir / f"{self._prefix}{key}.json"

    def get(self, key: str) -> Optional[Any]:
        path = self._path_for(key)
        try:
            with path.open("r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return None
        except json.JSONDecodeError as e:
            raise StorageError(f"Corrupt value for {key!r} in {path}: {e}")
        except OSError as e:
            raise StorageError(f"Failed to read {path}: {e}")

    def set(self, key: str, value: Any) -> bool:
        path = self._path_for(key)
        try:
            payload = json.dumps(value, ensure_ascii=False, indent=2)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Value for {key!r} is not JSON-serializable: {e}")

        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self._dir, prefix=".tmp_", suffix=".json")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                os.replace(tmp_path, path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}")

        return True

    def delete(self, key: str) -> bool:
        path = self._path_for(key)
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Failed to delete {path}: {e}")
