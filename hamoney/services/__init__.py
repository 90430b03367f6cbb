"""Services package."""

from hamoney.services.storage import (
    ConnectionError,
    InMemoryStore,
    JsonFileStore,
    PersistenceStore,
    StorageError,
)

__all__ = [
    # Storage services
    "ConnectionError",
    "InMemoryStore",
    "JsonFileStore",
    "PersistenceStore",
    "StorageError",
]
