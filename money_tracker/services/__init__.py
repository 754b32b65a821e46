"""
Services Package

Storage backends for Money Tracker.
"""

from money_tracker.services.storage import (
    CorruptValueError,
    InMemoryStore,
    JsonFileStore,
    KeyValueStoreInterface,
    StorageError,
    UserCollection,
    UserDataRepository,
)

__all__ = [
    "CorruptValueError",
    "InMemoryStore",
    "JsonFileStore",
    "KeyValueStoreInterface",
    "StorageError",
    "UserCollection",
    "UserDataRepository",
]
