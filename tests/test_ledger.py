"""Tests for the transaction lifecycle and the template/tag catalog."""

import pytest

from money_tracker.config import AppSettings
from money_tracker.ledger import (
    NotFoundFailure,
    TransactionIdGenerator,
    ValidationFailure,
    create_transaction,
    delete_tag,
    delete_template,
    delete_transaction,
    month_key,
    parse_month_key,
    rename_tag,
    resolve_template,
    sort_for_display,
    update_transaction,
    upsert_tag,
    upsert_template,
    validate_transaction_input,
)
from money_tracker.ledger.catalog import MSG_TAG_EXISTS, MSG_TEMPLATE_EXISTS
from money_tracker.models import (
    Tag,
    TagInput,
    Template,
    TemplateInput,
    Transaction,
    TransactionInput,
    TransactionType,
)
from money_tracker.validation import RecordValidator
from money_tracker.validation.validator import MSG_DAY_INVALID, MSG_ITEM_EMPTY


@pytest.fixture
def validator():
    return RecordValidator(AppSettings())


def _txn(id, date, item="Coffee", amount=400, type="expense", tag=None):
    return Transaction(id=id, type=type, date=date, item=item, amount=amount, tag=tag)


def _fields(item="Coffee", amount=400, date=5, tag=None, type=TransactionType.EXPENSE):
    return {"type": type, "date": date, "item": item, "amount": amount, "tag": tag}


class TestMonthKeys:
    """Tests for month bucket keys."""

    def test_month_is_zero_padded(self):
        assert month_key(2024, 3) == "2024-03"
        assert month_key(2024, 12) == "2024-12"

    def test_parse_month_key(self):
        assert parse_month_key("2024-03") == (2024, 3)


class TestTransactionIdGenerator:
    """Tests for id issuing."""

    def test_ids_are_millisecond_timestamps(self, clock):
        generator = TransactionIdGenerator(clock)
        assert generator.next_id() == clock.ms

    def test_ids_strictly_increase_on_a_stalled_clock(self, clock):
        generator = TransactionIdGenerator(clock)
        ids = [generator.next_id() for _ in range(3)]
        assert ids == [clock.ms, clock.ms + 1, clock.ms + 2]

    def test_clock_moving_backwards(self, clock):
        generator = TransactionIdGenerator(clock)
        first = generator.next_id()
        clock.ms -= 5000
        assert generator.next_id() == first + 1

    def test_clock_moving_forwards(self, clock):
        generator = TransactionIdGenerator(clock)
        generator.next_id()
        clock.ms += 5000
        assert generator.next_id() == clock.ms

    def test_observe_skips_stored_ids(self, clock):
        """Test that ids already stored are never reissued."""
        generator = TransactionIdGenerator(clock)
        generator.observe({"2030-01": [_txn(clock.ms + 100, 1)]})
        assert generator.next_id() == clock.ms + 101


class TestTransactionLifecycle:
    """Tests for create/update/delete over month buckets."""

    def test_create_makes_bucket(self):
        by_month, transaction = create_transaction({}, 2024, 3, _fields(), 1)
        assert list(by_month) == ["2024-03"]
        assert by_month["2024-03"] == [transaction]

    def test_create_appends_and_leaves_input_untouched(self):
        original = {"2024-03": [_txn(1, 5)]}
        by_month, _ = create_transaction(original, 2024, 3, _fields(item="Tea"), 2)
        assert [t.item for t in by_month["2024-03"]] == ["Coffee", "Tea"]
        assert len(original["2024-03"]) == 1

    def test_update_keeps_id_and_position(self):
        by_month = {"2024-03": [_txn(1, 5), _txn(2, 6)]}
        updated, transaction = update_transaction(
            by_month, 2024, 3, 1, _fields(item="Latte", amount=550, date=7)
        )
        assert transaction.id == 1
        assert updated["2024-03"][0].item == "Latte"
        assert updated["2024-03"][0].amount == 550
        assert updated["2024-03"][1].id == 2

    def test_update_missing_id(self):
        with pytest.raises(NotFoundFailure):
            update_transaction({"2024-03": [_txn(1, 5)]}, 2024, 3, 99, _fields())

    def test_delete_last_prunes_month(self):
        """Test that a month key is never left with an empty list."""
        by_month = delete_transaction({"2024-03": [_txn(1, 5)]}, 2024, 3, 1)
        assert by_month == {}

    def test_readd_after_prune(self):
        by_month = delete_transaction({"2024-03": [_txn(1, 5)]}, 2024, 3, 1)
        by_month, _ = create_transaction(by_month, 2024, 3, _fields(), 2)
        assert len(by_month["2024-03"]) == 1

    def test_delete_missing_id(self):
        with pytest.raises(NotFoundFailure):
            delete_transaction({}, 2024, 3, 1)

    def test_sort_for_display(self):
        rows = sort_for_display([_txn(3, 10), _txn(2, 5), _txn(1, 10)])
        assert [(t.date, t.id) for t in rows] == [(5, 2), (10, 1), (10, 3)]


class TestTransactionInputValidation:
    """Tests for turning form input into transaction fields."""

    def test_valid_input(self, validator):
        form = TransactionInput(type="income", date=25, item="Salary", amount="3000", tag="")
        fields = validate_transaction_input(form, 2024, 3, validator)
        assert fields == {
            "type": TransactionType.INCOME,
            "date": 25,
            "item": "Salary",
            "amount": 3000,
            "tag": None,
        }

    def test_first_failure_wins(self, validator):
        """Test that the item is checked before the amount."""
        form = TransactionInput(date=5, item="", amount="0")
        with pytest.raises(ValidationFailure) as exc_info:
            validate_transaction_input(form, 2024, 3, validator)
        assert exc_info.value.message == MSG_ITEM_EMPTY

    def test_day_outside_month(self, validator):
        form = TransactionInput(date=30, item="Coffee", amount="400")
        with pytest.raises(ValidationFailure) as exc_info:
            validate_transaction_input(form, 2023, 2, validator)
        assert exc_info.value.message == MSG_DAY_INVALID


class TestTemplates:
    """Tests for template CRUD."""

    def test_add_template(self, validator):
        templates, template = upsert_template(
            [], TemplateInput(item="Coffee", amount="400", tag="food"), validator
        )
        assert templates == [template]
        assert template.amount == 400

    def test_duplicate_item_refused(self, validator):
        existing = [Template(type="expense", item="Coffee", amount=400)]
        with pytest.raises(ValidationFailure) as exc_info:
            upsert_template(existing, TemplateInput(item="Coffee", amount="500"), validator)
        assert exc_info.value.message == MSG_TEMPLATE_EXISTS

    def test_edit_keeps_own_item(self, validator):
        """Test that editing a template may keep its item."""
        existing = [Template(type="expense", item="Coffee", amount=400)]
        templates, _ = upsert_template(
            existing, TemplateInput(item="Coffee", amount="500"), validator, editing_item="Coffee"
        )
        assert templates[0].amount == 500

    def test_edit_vanished_template(self, validator):
        with pytest.raises(NotFoundFailure):
            upsert_template([], TemplateInput(item="Coffee", amount="1"), validator, editing_item="Tea")

    def test_delete_template(self):
        existing = [
            Template(type="expense", item="Coffee", amount=400),
            Template(type="income", item="Salary", amount=3000),
        ]
        assert [t.item for t in delete_template(existing, "Coffee")] == ["Salary"]
        with pytest.raises(NotFoundFailure):
            delete_template(existing, "Tea")

    def test_resolve_template(self):
        templates = [Template(type="income", item="Salary", amount=3000, tag="job")]
        draft = resolve_template("Salary", templates)
        assert draft.type == TransactionType.INCOME
        assert draft.amount == 3000
        assert draft.tag == "job"
        assert resolve_template("Coffee", templates) is None


class TestTags:
    """Tests for tag CRUD and the rename cascade."""

    def test_add_tag(self, validator):
        update = upsert_tag({}, [], [], TagInput(name="food", color="#f00"), validator)
        assert update.tags == [Tag(name="food", color="#f00")]
        assert update.renamed_references == 0

    def test_reserved_name_refused(self):
        """Test that a built-in type label cannot be saved as a tag."""
        validator = RecordValidator(AppSettings(max_tag_length=10))
        with pytest.raises(ValidationFailure) as exc_info:
            upsert_tag({}, [], [], TagInput(name="Income", color="#f00"), validator)
        assert "cannot be used as tag names" in exc_info.value.message

    def test_color_required(self, validator):
        with pytest.raises(ValidationFailure):
            upsert_tag({}, [], [], TagInput(name="food", color=""), validator)

    def test_duplicate_name_refused(self, validator):
        tags = [Tag(name="food", color="#f00")]
        with pytest.raises(ValidationFailure) as exc_info:
            upsert_tag({}, [], tags, TagInput(name="food", color="#0f0"), validator)
        assert exc_info.value.message == MSG_TAG_EXISTS

    def test_recolor_does_not_touch_records(self, validator):
        by_month = {"2024-03": [_txn(1, 5, tag="food")]}
        update = upsert_tag(
            by_month, [], [Tag(name="food", color="#f00")],
            TagInput(name="food", color="#0f0"), validator, editing_name="food",
        )
        assert update.tags[0].color == "#0f0"
        assert update.renamed_references == 0
        assert update.transactions == by_month

    def test_rename_cascades_everywhere(self, validator):
        """Test that every transaction and template using the old name is rewritten."""
        by_month = {
            "2024-02": [_txn(1, 1, tag="food"), _txn(2, 2, tag="rent")],
            "2024-03": [_txn(3, 5, tag="food")],
        }
        templates = [
            Template(type="expense", item="Lunch", amount=800, tag="food"),
            Template(type="expense", item="Rent", amount=50000, tag="rent"),
        ]
        tags = [Tag(name="food", color="#f00"), Tag(name="rent", color="#00f")]

        update = upsert_tag(
            by_month, templates, tags,
            TagInput(name="meal", color="#f00"), validator, editing_name="food",
        )

        assert update.renamed_references == 3
        assert [t.name for t in update.tags] == ["meal", "rent"]
        assert [t.tag for t in update.transactions["2024-02"]] == ["meal", "rent"]
        assert update.transactions["2024-03"][0].tag == "meal"
        assert [t.tag for t in update.templates] == ["meal", "rent"]

    def test_rename_tag_preserves_reference_count(self):
        """Test that food -> meals leaves as many references as before."""
        by_month = {"2024-03": [_txn(1, 5, tag="food"), _txn(2, 6, tag="food"), _txn(3, 7)]}
        templates = [Template(type="expense", item="Lunch", amount=800, tag="food")]

        new_by_month, new_templates, affected = rename_tag(by_month, templates, "food", "meals")

        assert affected == 3
        tagged = [t for t in new_by_month["2024-03"] if t.tag == "meals"]
        assert len(tagged) == 2
        assert not any(t.tag == "food" for t in new_by_month["2024-03"])
        assert new_templates[0].tag == "meals"

    def test_delete_tag_leaves_references(self):
        """Test that deleting a tag does not cascade."""
        tags = [Tag(name="food", color="#f00")]
        assert delete_tag(tags, "food") == []
        with pytest.raises(NotFoundFailure):
            delete_tag(tags, "rent")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
