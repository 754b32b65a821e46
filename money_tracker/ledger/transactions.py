"""
Transaction Lifecycle

Create, edit and delete transactions inside month buckets.

INVARIANTS:
- A month key is "YYYY-MM" with a zero-padded month
- A month key is never mapped to an empty list; deleting the last
  transaction of a bucket removes the key
- A transaction's id never changes across edits

All functions are pure: they take the current mapping and return a new
one. The caller persists the result, so a failed operation can never
leave a half-updated mapping behind.
"""

import time
from typing import Callable, Iterable, Iterator, Optional

from money_tracker.ledger.errors import NotFoundFailure, ValidationFailure
from money_tracker.models.records import (
    Template,
    Transaction,
    TransactionDraft,
    TransactionInput,
    TransactionsByMonth,
)
from money_tracker.validation import RecordValidator


def month_key(year: int, month: int) -> str:
    """Key of the month bucket, e.g. (2024, 3) -> "2024-03"."""
    return f"{year}-{month:02d}"


def parse_month_key(key: str) -> tuple[int, int]:
    """Inverse of month_key."""
    year, month = key.split("-", 1)
    return int(year), int(month)


def iter_transactions(by_month: TransactionsByMonth) -> Iterator[Transaction]:
    """Every transaction in every month bucket."""
    for transactions in by_month.values():
        yield from transactions


class TransactionIdGenerator:
    """
    Issues strictly increasing transaction ids.

    Ids are millisecond timestamps, like the ones stored by earlier
    releases, bumped past the last issued id when the clock has not
    moved on (two creations in the same millisecond, or a clock that
    went backwards).
    """

    def __init__(self, clock: Optional[Callable[[], int]] = None):
        self._clock = clock or time.time_ns
        self._last = 0

    def observe(self, by_month: TransactionsByMonth) -> None:
        """Never issue an id at or below one already stored."""
        for transaction in iter_transactions(by_month):
            self._last = max(self._last, transaction.id)

    def next_id(self) -> int:
        candidate = self._clock() // 1_000_000
        self._last = max(candidate, self._last + 1)
        return self._last


def validate_transaction_input(
    form: TransactionInput,
    year: int,
    month: int,
    validator: RecordValidator,
) -> dict:
    """
    Turn form input into transaction fields.

    Raises:
        ValidationFailure: With the first failing check's message
    """
    item_result = validator.item(form.item)
    if not item_result.success:
        raise ValidationFailure(item_result.message)

    amount_result = validator.amount(form.amount)
    if not amount_result.success:
        raise ValidationFailure(amount_result.message)

    day_result = validator.day(year, month, form.date)
    if not day_result.success:
        raise ValidationFailure(day_result.message)

    return {
        "type": form.type,
        "date": form.date,
        "item": form.item,
        "amount": amount_result.value,
        "tag": form.tag,
    }


def create_transaction(
    by_month: TransactionsByMonth,
    year: int,
    month: int,
    fields: dict,
    transaction_id: int,
) -> tuple[TransactionsByMonth, Transaction]:
    """Append a new transaction to its month bucket, creating the bucket if absent."""
    key = month_key(year, month)
    transaction = Transaction(id=transaction_id, **fields)

    updated = dict(by_month)
    updated[key] = [*by_month.get(key, []), transaction]
    return updated, transaction


def update_transaction(
    by_month: TransactionsByMonth,
    year: int,
    month: int,
    transaction_id: int,
    fields: dict,
) -> tuple[TransactionsByMonth, Transaction]:
    """
    Replace a transaction's fields in place, keeping its id and position.

    Raises:
        NotFoundFailure: If the id is not in that month's bucket
    """
    key = month_key(year, month)
    bucket = by_month.get(key, [])

    for index, existing in enumerate(bucket):
        if existing.id == transaction_id:
            replaced = Transaction(id=existing.id, **fields)
            new_bucket = list(bucket)
            new_bucket[index] = replaced
            updated = dict(by_month)
            updated[key] = new_bucket
            return updated, replaced

    raise NotFoundFailure("transaction", str(transaction_id))


def delete_transaction(
    by_month: TransactionsByMonth,
    year: int,
    month: int,
    transaction_id: int,
) -> TransactionsByMonth:
    """
    Remove a transaction; prune the month key if its bucket is now empty.

    Raises:
        NotFoundFailure: If the id is not in that month's bucket
    """
    key = month_key(year, month)
    bucket = by_month.get(key, [])
    remaining = [t for t in bucket if t.id != transaction_id]

    if len(remaining) == len(bucket):
        raise NotFoundFailure("transaction", str(transaction_id))

    updated = dict(by_month)
    if remaining:
        updated[key] = remaining
    else:
        del updated[key]
    return updated


def resolve_template(item: str, templates: Iterable[Template]) -> Optional[TransactionDraft]:
    """Prefilled transaction fields from the template with this item, if any."""
    for template in templates:
        if template.item == item:
            return TransactionDraft(
                type=template.type,
                item=template.item,
                amount=template.amount,
                tag=template.tag,
            )
    return None


def sort_for_display(transactions: Iterable[Transaction]) -> list[Transaction]:
    """Ascending by day of month, then by id."""
    return sorted(transactions, key=lambda t: (t.date, t.id))
