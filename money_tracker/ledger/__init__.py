"""Transaction lifecycle and template/tag catalog."""

from money_tracker.ledger.catalog import (
    delete_tag,
    delete_template,
    rename_tag,
    upsert_tag,
    upsert_template,
)
from money_tracker.ledger.errors import (
    ImportFormatFailure,
    InvariantViolation,
    MoneyTrackerError,
    NotFoundFailure,
    ValidationFailure,
)
from money_tracker.ledger.transactions import (
    TransactionIdGenerator,
    create_transaction,
    delete_transaction,
    iter_transactions,
    month_key,
    parse_month_key,
    resolve_template,
    sort_for_display,
    update_transaction,
    validate_transaction_input,
)

__all__ = [
    # Catalog
    "delete_tag",
    "delete_template",
    "rename_tag",
    "upsert_tag",
    "upsert_template",
    # Errors
    "ImportFormatFailure",
    "InvariantViolation",
    "MoneyTrackerError",
    "NotFoundFailure",
    "ValidationFailure",
    # Transactions
    "TransactionIdGenerator",
    "create_transaction",
    "delete_transaction",
    "iter_transactions",
    "month_key",
    "parse_month_key",
    "resolve_template",
    "sort_for_display",
    "update_transaction",
    "validate_transaction_input",
]
