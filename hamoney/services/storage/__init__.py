"""
Storage Services Package

Provides the abstract key-value interface and its implementations:
in-memory, local JSON files and Google Sheets.

The Google Sheets backend is imported lazily so the engine runs
without the Google client libraries being configured.
"""

from hamoney.services.storage.interface import (
    ConnectionError,
    PersistenceStore,
    StorageError,
)
from hamoney.services.storage.memory import InMemoryStore
from hamoney.services.storage.json_file import JsonFileStore

__all__ = [
    # Interface
    "PersistenceStore",
    # Exceptions
    "ConnectionError",
    "StorageError",
    # Implementations
    "InMemoryStore",
    "JsonFileStore",
]
