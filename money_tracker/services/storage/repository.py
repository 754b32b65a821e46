"""
User Data Repository

Typed access to the values the tracker keeps in a key-value store:

    users                 -> list of User              (process-wide)
    mainUser              -> user name, "" if none     (process-wide)
    <user>_transactions   -> {"YYYY-MM": [Transaction, ...]}
    <user>_templates      -> list of Template
    <user>_tags           -> list of Tag

Values are compact JSON. Optional fields that are unset are omitted,
so a stored transaction looks like
{"id":1709600000000,"type":"expense","date":5,"item":"Coffee","amount":400}
"""

import json
from enum import Enum
from typing import Any, Optional

from pydantic import TypeAdapter, ValidationError

from money_tracker.models.records import (
    TAGS_ADAPTER,
    TEMPLATES_ADAPTER,
    TRANSACTIONS_ADAPTER,
    USERS_ADAPTER,
    Tag,
    Template,
    TransactionsByMonth,
    User,
)
from money_tracker.services.storage.interface import (
    CorruptValueError,
    KeyValueStoreInterface,
)


USERS_KEY = "users"
MAIN_USER_KEY = "mainUser"

_MAIN_USER_ADAPTER = TypeAdapter(str)


class UserCollection(str, Enum):
    """Per-user collections, named as they appear in storage keys."""
    TRANSACTIONS = "transactions"
    TEMPLATES = "templates"
    TAGS = "tags"


_ADAPTERS: dict[UserCollection, TypeAdapter] = {
    UserCollection.TRANSACTIONS: TRANSACTIONS_ADAPTER,
    UserCollection.TEMPLATES: TEMPLATES_ADAPTER,
    UserCollection.TAGS: TAGS_ADAPTER,
}

_DEFAULTS = {
    UserCollection.TRANSACTIONS: dict,
    UserCollection.TEMPLATES: list,
    UserCollection.TAGS: list,
}


def user_key(user: str, collection: UserCollection) -> str:
    """Storage key of a per-user collection."""
    return f"{user}_{collection.value}"


def dump_json(adapter: TypeAdapter, value: Any) -> str:
    """Serialize to compact JSON with unset optionals left out."""
    data = adapter.dump_python(value, mode="json", exclude_none=True)
    return json.dumps(data, ensure_ascii=False, separators=(",", ":"))


class UserDataRepository:
    """
    Reads and writes the tracker's values through a key-value store.

    Every save writes the complete value of one key. Absent keys load as
    empty defaults; unreadable values raise CorruptValueError.
    """

    def __init__(self, store: KeyValueStoreInterface):
        self._store = store

    @property
    def store(self) -> KeyValueStoreInterface:
        return self._store

    def _load(self, key: str, adapter: TypeAdapter, default: Any) -> Any:
        raw = self._store.get(key)
        if raw is None:
            return default()
        try:
            return adapter.validate_json(raw)
        except ValidationError as e:
            raise CorruptValueError(key, f"{e.error_count()} schema error(s)")

    def _save(self, key: str, adapter: TypeAdapter, value: Any) -> None:
        self._store.set(key, dump_json(adapter, value))

    # ----- process-wide values -------------------------------------------

    def load_users(self) -> list[User]:
        return self._load(USERS_KEY, USERS_ADAPTER, list)

    def save_users(self, users: list[User]) -> None:
        self._save(USERS_KEY, USERS_ADAPTER, users)

    def load_main_user(self) -> str:
        return self._load(MAIN_USER_KEY, _MAIN_USER_ADAPTER, str)

    def save_main_user(self, name: str) -> None:
        self._save(MAIN_USER_KEY, _MAIN_USER_ADAPTER, name)

    # ----- per-user collections ------------------------------------------

    def load_collection(self, user: str, collection: UserCollection) -> Any:
        return self._load(
            user_key(user, collection),
            _ADAPTERS[collection],
            _DEFAULTS[collection],
        )

    def save_collection(self, user: str, collection: UserCollection, value: Any) -> None:
        self._save(user_key(user, collection), _ADAPTERS[collection], value)

    def load_transactions(self, user: str) -> TransactionsByMonth:
        return self.load_collection(user, UserCollection.TRANSACTIONS)

    def save_transactions(self, user: str, transactions: TransactionsByMonth) -> None:
        self.save_collection(user, UserCollection.TRANSACTIONS, transactions)

    def load_templates(self, user: str) -> list[Template]:
        return self.load_collection(user, UserCollection.TEMPLATES)

    def save_templates(self, user: str, templates: list[Template]) -> None:
        self.save_collection(user, UserCollection.TEMPLATES, templates)

    def load_tags(self, user: str) -> list[Tag]:
        return self.load_collection(user, UserCollection.TAGS)

    def save_tags(self, user: str, tags: list[Tag]) -> None:
        self.save_collection(user, UserCollection.TAGS, tags)

    # ----- comparison and housekeeping -----------------------------------

    def stored_canonical(self, user: str, collection: UserCollection) -> Optional[str]:
        """
        Canonical serialization of what is stored for a collection.

        Returns None when nothing is stored. The stored text is decoded
        and re-encoded so that formatting differences never count as a
        data difference.
        """
        if self._store.get(user_key(user, collection)) is None:
            return None
        return self.canonical(collection, self.load_collection(user, collection))

    @staticmethod
    def canonical(collection: UserCollection, value: Any) -> str:
        """Canonical serialization of an in-memory collection."""
        return dump_json(_ADAPTERS[collection], value)

    def rename_user_data(self, old_name: str, new_name: str) -> None:
        """Move a user's stored collections to keys under a new name."""
        for collection in UserCollection:
            raw = self._store.get(user_key(old_name, collection))
            if raw is None:
                self._store.delete(user_key(new_name, collection))
                continue
            self._store.set(user_key(new_name, collection), raw)
            self._store.delete(user_key(old_name, collection))

    def delete_user_data(self, name: str) -> None:
        """Remove every stored collection of a user."""
        for collection in UserCollection:
            self._store.delete(user_key(name, collection))
