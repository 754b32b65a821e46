"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep data in JSON files on disk
2. Use in-memory storage for testing
3. Swap in another durable key-value backend later
4. Keep business logic decoupled from storage implementation

The interface is intentionally a plain string key-value store.
Every value is a complete serialized JSON document; writes always
replace the whole value, never patch it.
"""

from abc import ABC, abstractmethod
from typing import Iterator, Optional


class KeyValueStoreInterface(ABC):
    """
    Abstract interface for durable key-value storage.

    Any storage implementation must implement these methods.
    Values survive process restarts (except for in-memory stores).
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Read the value stored under a key.

        Args:
            key: The storage key (e.g. 'users', 'Alice_transactions')

        Returns:
            The stored text, or None if the key is absent

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """
        Replace the value stored under a key.

        Args:
            key: The storage key
            value: The complete serialized value

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

    @abstractmethod
    def keys(self) -> Iterator[str]:
        """Iterate over every stored key."""
        pass

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class CorruptValueError(StorageError):
    """A stored value could not be decoded into its expected shape."""

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Stored value for '{key}' is unreadable: {reason}")
