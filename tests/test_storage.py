"""
Tests for the key-value stores and the user data repository.

JsonFileStore runs against pytest's tmp_path; nothing outside it is touched.
"""

import pytest

from money_tracker.models import Tag, Template, Transaction, User
from money_tracker.services.storage import (
    CorruptValueError,
    InMemoryStore,
    JsonFileStore,
    StorageError,
    UserCollection,
    UserDataRepository,
    user_key,
)


@pytest.fixture(params=["memory", "json"])
def any_store(request, tmp_path):
    if request.param == "memory":
        return InMemoryStore()
    return JsonFileStore(tmp_path / "data")


class TestKeyValueStores:
    """Behaviour shared by every store backend."""

    def test_missing_key_is_none(self, any_store):
        assert any_store.get("users") is None
        assert "users" not in any_store

    def test_set_then_get(self, any_store):
        any_store.set("users", '[{"name":"Alice","balance":0}]')
        assert any_store.get("users") == '[{"name":"Alice","balance":0}]'
        assert "users" in any_store

    def test_set_replaces_whole_value(self, any_store):
        any_store.set("mainUser", '"Alice"')
        any_store.set("mainUser", '"Bob"')
        assert any_store.get("mainUser") == '"Bob"'

    def test_delete_reports_existence(self, any_store):
        any_store.set("k", "1")
        assert any_store.delete("k") is True
        assert any_store.delete("k") is False
        assert any_store.get("k") is None

    def test_keys_with_unusual_characters(self, any_store):
        """Test that user-derived keys survive the round trip through key listing."""
        any_store.set("a/b c_tags", "[]")
        any_store.set("users", "[]")
        assert sorted(any_store.keys()) == ["a/b c_tags", "users"]


class TestJsonFileStore:
    """Tests specific to the file-backed store."""

    def test_creates_data_dir_on_first_write(self, tmp_path):
        data_dir = tmp_path / "nested" / "data"
        store = JsonFileStore(data_dir)
        assert list(store.keys()) == []
        store.set("users", "[]")
        assert data_dir.is_dir()

    def test_no_temp_files_left_behind(self, tmp_path):
        store = JsonFileStore(tmp_path)
        store.set("users", "[]")
        store.set("users", '[{"name":"A","balance":0}]')
        assert [p.name for p in tmp_path.iterdir()] == ["users.json"]

    def test_values_survive_new_instance(self, tmp_path):
        JsonFileStore(tmp_path).set("Alice_tags", '[{"name":"food","color":"red"}]')
        assert JsonFileStore(tmp_path).get("Alice_tags") == '[{"name":"food","color":"red"}]'

    def test_unicode_value(self, tmp_path):
        store = JsonFileStore(tmp_path)
        store.set("Zoë_templates", '[{"item":"Café"}]')
        assert store.get("Zoë_templates") == '[{"item":"Café"}]'

    def test_empty_key_rejected(self, tmp_path):
        with pytest.raises(StorageError):
            JsonFileStore(tmp_path).set("", "1")


class TestUserDataRepository:
    """Tests for typed access to stored values."""

    def test_absent_keys_load_as_empty(self):
        repository = UserDataRepository(InMemoryStore())
        assert repository.load_users() == []
        assert repository.load_main_user() == ""
        assert repository.load_transactions("Alice") == {}
        assert repository.load_templates("Alice") == []
        assert repository.load_tags("Alice") == []

    def test_transactions_stored_as_compact_json(self):
        """Test the exact stored layout, with the absent tag omitted."""
        store = InMemoryStore()
        repository = UserDataRepository(store)
        repository.save_transactions("Alice", {
            "2024-03": [Transaction(id=1709600000000, type="expense", date=5, item="Coffee", amount=400)],
        })
        assert store.get("Alice_transactions") == (
            '{"2024-03":[{"id":1709600000000,"type":"expense","date":5,"item":"Coffee","amount":400}]}'
        )

    def test_main_user_stored_as_json_string(self):
        store = InMemoryStore()
        UserDataRepository(store).save_main_user("Alice")
        assert store.get("mainUser") == '"Alice"'

    def test_users_round_trip(self):
        repository = UserDataRepository(InMemoryStore())
        repository.save_users([User(name="Alice", balance=1000), User(name="Bob", balance=-50)])
        assert [u.name for u in repository.load_users()] == ["Alice", "Bob"]
        assert repository.load_users()[1].balance == -50

    def test_corrupt_value_raises(self):
        store = InMemoryStore({"Alice_tags": "not json"})
        with pytest.raises(CorruptValueError) as exc_info:
            UserDataRepository(store).load_tags("Alice")
        assert exc_info.value.key == "Alice_tags"

    def test_stored_canonical_absent(self):
        repository = UserDataRepository(InMemoryStore())
        assert repository.stored_canonical("Alice", UserCollection.TAGS) is None

    def test_stored_canonical_ignores_formatting(self):
        """Test that whitespace in stored text is not a data difference."""
        store = InMemoryStore({"Alice_tags": '[ {"name": "food", "color": "red"} ]'})
        repository = UserDataRepository(store)
        tags = [Tag(name="food", color="red")]
        assert repository.stored_canonical("Alice", UserCollection.TAGS) == (
            repository.canonical(UserCollection.TAGS, tags)
        )

    def test_rename_user_data_moves_keys(self):
        store = InMemoryStore()
        repository = UserDataRepository(store)
        repository.save_templates("Alice", [Template(type="expense", item="Coffee", amount=400)])
        repository.save_tags("Alice", [Tag(name="food", color="red")])

        repository.rename_user_data("Alice", "Ali")

        assert sorted(store.keys()) == ["Ali_tags", "Ali_templates"]
        assert repository.load_templates("Ali")[0].item == "Coffee"

    def test_delete_user_data(self):
        store = InMemoryStore({
            "users": "[]",
            "Bob_transactions": "{}",
            "Bob_tags": "[]",
        })
        UserDataRepository(store).delete_user_data("Bob")
        assert list(store.keys()) == ["users"]

    def test_user_key(self):
        assert user_key("Alice", UserCollection.TRANSACTIONS) == "Alice_transactions"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
