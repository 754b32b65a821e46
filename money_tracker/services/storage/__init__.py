"""
Storage Services Package

Provides the abstract key-value interface, its implementations, and the
typed repository the session uses. JSON files on disk are the default
backend; the in-memory store is used for tests.
"""

from money_tracker.services.storage.interface import (
    CorruptValueError,
    KeyValueStoreInterface,
    StorageError,
)
from money_tracker.services.storage.json_file import JsonFileStore
from money_tracker.services.storage.memory import InMemoryStore
from money_tracker.services.storage.repository import (
    MAIN_USER_KEY,
    USERS_KEY,
    UserCollection,
    UserDataRepository,
    user_key,
)

__all__ = [
    # Interfaces
    "KeyValueStoreInterface",
    # Exceptions
    "CorruptValueError",
    "StorageError",
    # Implementations
    "InMemoryStore",
    "JsonFileStore",
    # Repository
    "MAIN_USER_KEY",
    "USERS_KEY",
    "UserCollection",
    "UserDataRepository",
    "user_key",
]
