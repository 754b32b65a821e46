"""
Template & Tag Catalog

CRUD over a user's templates (keyed by item) and tags (keyed by name).

CASCADES:
- Renaming a tag rewrites the tag of every transaction (all months) and
  every template that referenced the old name. This is one pure
  transformation returning all three collections.
- Deleting a tag does NOT cascade. Records keep the dangling name and
  are displayed with their built-in type label.
"""

from typing import Optional

from money_tracker.ledger.errors import NotFoundFailure, ValidationFailure
from money_tracker.models.records import (
    Tag,
    TagInput,
    Template,
    TemplateInput,
    TransactionsByMonth,
)
from money_tracker.models.results import CatalogUpdate
from money_tracker.validation import RecordValidator


MSG_TEMPLATE_EXISTS = "A template with this item already exists"
MSG_TAG_EXISTS = "A tag with this name already exists"


# =============================================================================
# TEMPLATES
# =============================================================================

def validate_template_input(
    form: TemplateInput,
    templates: list[Template],
    validator: RecordValidator,
    editing_item: Optional[str] = None,
) -> Template:
    """
    Build a template from form input.

    The item must be unique among templates other than the one being
    edited.

    Raises:
        ValidationFailure: With the first failing check's message
    """
    item_result = validator.item(form.item)
    if not item_result.success:
        raise ValidationFailure(item_result.message)

    amount_result = validator.amount(form.amount)
    if not amount_result.success:
        raise ValidationFailure(amount_result.message)

    if any(t.item == form.item and t.item != editing_item for t in templates):
        raise ValidationFailure(MSG_TEMPLATE_EXISTS)

    return Template(
        type=form.type,
        item=form.item,
        amount=amount_result.value,
        tag=form.tag,
    )


def upsert_template(
    templates: list[Template],
    form: TemplateInput,
    validator: RecordValidator,
    editing_item: Optional[str] = None,
) -> tuple[list[Template], Template]:
    """
    Add a template, or replace the one keyed by editing_item.

    Raises:
        ValidationFailure: If the input is invalid or the item is taken
        NotFoundFailure: If editing_item is given but no longer exists
    """
    template = validate_template_input(form, templates, validator, editing_item)

    if editing_item is None:
        return [*templates, template], template

    if not any(t.item == editing_item for t in templates):
        raise NotFoundFailure("template", editing_item)
    return [template if t.item == editing_item else t for t in templates], template


def delete_template(templates: list[Template], item: str) -> list[Template]:
    """
    Raises:
        NotFoundFailure: If no template has this item
    """
    remaining = [t for t in templates if t.item != item]
    if len(remaining) == len(templates):
        raise NotFoundFailure("template", item)
    return remaining


# =============================================================================
# TAGS
# =============================================================================

def validate_tag_input(
    form: TagInput,
    tags: list[Tag],
    validator: RecordValidator,
    editing_name: Optional[str] = None,
) -> Tag:
    """
    Build a tag from form input.

    Raises:
        ValidationFailure: With the first failing check's message
    """
    name_result = validator.tag_name(form.name)
    if not name_result.success:
        raise ValidationFailure(name_result.message)

    color_result = validator.color(form.color)
    if not color_result.success:
        raise ValidationFailure(color_result.message)

    if any(t.name == form.name and t.name != editing_name for t in tags):
        raise ValidationFailure(MSG_TAG_EXISTS)

    return Tag(name=form.name, color=form.color)


def rename_tag(
    transactions: TransactionsByMonth,
    templates: list[Template],
    old_name: str,
    new_name: str,
) -> tuple[TransactionsByMonth, list[Template], int]:
    """
    Rewrite every reference to old_name as new_name.

    Returns:
        (transactions, templates, number_of_rewritten_records)
    """
    affected = 0

    new_transactions: TransactionsByMonth = {}
    for key, bucket in transactions.items():
        new_bucket = []
        for transaction in bucket:
            if transaction.tag == old_name:
                transaction = transaction.model_copy(update={"tag": new_name})
                affected += 1
            new_bucket.append(transaction)
        new_transactions[key] = new_bucket

    new_templates = []
    for template in templates:
        if template.tag == old_name:
            template = template.model_copy(update={"tag": new_name})
            affected += 1
        new_templates.append(template)

    return new_transactions, new_templates, affected


def upsert_tag(
    transactions: TransactionsByMonth,
    templates: list[Template],
    tags: list[Tag],
    form: TagInput,
    validator: RecordValidator,
    editing_name: Optional[str] = None,
) -> CatalogUpdate:
    """
    Add a tag, or replace the one named editing_name.

    When the name changes, references in transactions and templates are
    renamed in the same update.

    Raises:
        ValidationFailure: If the input is invalid or the name is taken
        NotFoundFailure: If editing_name is given but no longer exists
    """
    tag = validate_tag_input(form, tags, validator, editing_name)

    if editing_name is None:
        return CatalogUpdate(
            transactions=transactions,
            templates=templates,
            tags=[*tags, tag],
        )

    if not any(t.name == editing_name for t in tags):
        raise NotFoundFailure("tag", editing_name)

    new_tags = [tag if t.name == editing_name else t for t in tags]
    if tag.name == editing_name:
        return CatalogUpdate(transactions=transactions, templates=templates, tags=new_tags)

    new_transactions, new_templates, affected = rename_tag(
        transactions, templates, editing_name, tag.name
    )
    return CatalogUpdate(
        transactions=new_transactions,
        templates=new_templates,
        tags=new_tags,
        renamed_references=affected,
    )


def delete_tag(tags: list[Tag], name: str) -> list[Tag]:
    """
    Remove a tag. References to it are left as they are.

    Raises:
        NotFoundFailure: If no tag has this name
    """
    remaining = [t for t in tags if t.name != name]
    if len(remaining) == len(tags):
        raise NotFoundFailure("tag", name)
    return remaining
