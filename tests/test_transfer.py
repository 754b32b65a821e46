"""Tests for the export artifact codec and import conflict detection."""

import base64
import json
from datetime import date, datetime, timezone

import pytest

from money_tracker.ledger import ImportFormatFailure
from money_tracker.models import Tag, Template, Transaction, User
from money_tracker.services.storage import InMemoryStore, UserCollection, UserDataRepository
from money_tracker.transfer import (
    MSG_INVALID_FORMAT,
    MSG_READ_FAILED,
    artifact_filename,
    build_payload,
    decode_artifact,
    encode_payload,
    export_artifact,
    find_conflicts,
    iso_timestamp,
)


EXPORTED_AT = datetime(2024, 3, 15, 9, 30, 5, 123456, tzinfo=timezone.utc)


def _b64(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


@pytest.fixture
def payload():
    return build_payload(
        User(name="Alice", balance=1000),
        {"2024-03": [Transaction(id=1, type="expense", date=5, item="Coffee", amount=400, tag="food")]},
        [Template(type="expense", item="Coffee", amount=400, tag="food")],
        [Tag(name="food", color="#f00")],
        EXPORTED_AT,
    )


class TestEncoding:
    """Tests for the artifact text format."""

    def test_iso_timestamp_has_millis_and_z(self):
        assert iso_timestamp(EXPORTED_AT) == "2024-03-15T09:30:05.123Z"

    def test_artifact_is_base64_of_compact_json(self, payload):
        decoded = base64.b64decode(encode_payload(payload)).decode("utf-8")
        assert decoded.startswith('{"user":{"name":"Alice","balance":1000},"transactions":')
        assert ": " not in decoded
        data = json.loads(decoded)
        assert data["exportedAt"] == "2024-03-15T09:30:05.123Z"
        assert data["tags"] == [{"name": "food", "color": "#f00"}]

    def test_non_ascii_names_survive(self):
        payload = build_payload(User(name="Zoë"), {}, [], [], EXPORTED_AT)
        assert decode_artifact(encode_payload(payload)).user.name == "Zoë"

    def test_decode_restores_records(self, payload):
        restored = decode_artifact(encode_payload(payload))
        assert restored.user == payload.user
        assert restored.transactions == payload.transactions
        assert restored.templates == payload.templates
        assert restored.tags == payload.tags

    def test_trailing_newline_tolerated(self, payload):
        assert decode_artifact(encode_payload(payload) + "\n").user.name == "Alice"

    def test_filename(self):
        assert artifact_filename("money-tracker", "Alice", date(2024, 3, 15)) == (
            "money-tracker-Alice-2024-03-15.txt"
        )

    def test_filename_replaces_path_separators(self):
        assert artifact_filename("money-tracker", "a/b\\c", date(2024, 3, 15)) == (
            "money-tracker-a_b_c-2024-03-15.txt"
        )

    def test_export_artifact(self, payload):
        artifact = export_artifact(payload, "money-tracker", date(2024, 3, 15))
        assert artifact.filename == "money-tracker-Alice-2024-03-15.txt"
        assert decode_artifact(artifact.content).user.name == "Alice"


class TestDecodeFailures:
    """Tests for unreadable and malformed artifacts."""

    @pytest.mark.parametrize("content", ["!!! not base64 !!!", _b64("hello"), _b64("{broken")])
    def test_unreadable(self, content):
        with pytest.raises(ImportFormatFailure) as exc_info:
            decode_artifact(content)
        assert exc_info.value.message == MSG_READ_FAILED

    @pytest.mark.parametrize("data", [
        [],
        {"transactions": {}},
        {"user": {"name": "Alice", "balance": 0}},
        {"user": {"balance": 0}, "transactions": {}},
        {"user": {"name": "Alice"}, "transactions": []},
    ])
    def test_invalid_format(self, data):
        """Test that JSON without a usable user and transactions is refused."""
        with pytest.raises(ImportFormatFailure) as exc_info:
            decode_artifact(_b64(json.dumps(data)))
        assert exc_info.value.message == MSG_INVALID_FORMAT

    def test_templates_and_tags_optional(self):
        payload = decode_artifact(_b64('{"user":{"name":"Bob","balance":5},"transactions":{}}'))
        assert payload.templates is None
        assert payload.tags is None


class TestConflicts:
    """Tests for detecting stored data that an import would overwrite."""

    def test_nothing_stored(self, payload):
        repository = UserDataRepository(InMemoryStore())
        assert find_conflicts(repository, payload) == []

    def test_identical_data(self, payload):
        repository = UserDataRepository(InMemoryStore())
        repository.save_transactions("Alice", payload.transactions)
        repository.save_templates("Alice", payload.templates)
        repository.save_tags("Alice", payload.tags)
        assert find_conflicts(repository, payload) == []

    def test_differing_transactions(self, payload):
        repository = UserDataRepository(InMemoryStore())
        repository.save_transactions("Alice", {})
        assert find_conflicts(repository, payload) == [UserCollection.TRANSACTIONS]

    def test_collection_missing_from_import_never_conflicts(self, payload):
        """Test that stored tags are not compared when the file carries none."""
        repository = UserDataRepository(InMemoryStore())
        repository.save_tags("Alice", [Tag(name="rent", color="#00f")])
        trimmed = payload.model_copy(update={"tags": None})
        assert find_conflicts(repository, trimmed) == []

    def test_formatting_differences_ignored(self, payload):
        store = InMemoryStore({"Alice_tags": '[ {"color": "#f00", "name": "food"} ]'})
        assert find_conflicts(UserDataRepository(store), payload) == []

    def test_corrupt_stored_value_conflicts(self, payload):
        store = InMemoryStore({"Alice_templates": "garbage"})
        assert find_conflicts(UserDataRepository(store), payload) == [UserCollection.TEMPLATES]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
