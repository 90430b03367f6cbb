"""
Abstract Storage Interface

DESIGN DECISION: The engine persists through a plain key-value interface.
This allows us to:
1. Swap local files for Google Sheets (or a real database) later
2. Use in-memory storage for testing
3. Keep ledger logic decoupled from storage implementation

The interface is intentionally tiny: named JSON values, read and written
whole. There are no partial writes, no locking and no versioning. A single
logical writer is assumed; anything more belongs in front of this interface.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class PersistenceStore(ABC):
    """
    Abstract interface for key-value persistence.

    Values must be JSON-serializable (dicts, lists, strings, numbers,
    booleans, None). Implementations may reject anything else.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """
        Read a value.

        Args:
            key: Logical key (implementations may prefix it)

        Returns:
            The stored JSON value, or None if the key is absent

        Raises:
            StorageError: If the backend fails or the value is corrupt
        """
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> bool:
        """
        Write a value, replacing whatever was there.

        Args:
            key: Logical key
            value: JSON-serializable value

        Returns:
            True if written successfully

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Remove a key.

        Returns:
            True if the key existed
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
