"""Input validation package."""

from money_tracker.validation.validator import (
    DEFAULT_RESERVED_LABELS,
    RecordValidator,
    parse_balance,
    strip_decimal,
    validate_amount,
    validate_color,
    validate_day,
    validate_item,
    validate_name,
    validate_tag_name,
)

__all__ = [
    "DEFAULT_RESERVED_LABELS",
    "RecordValidator",
    "parse_balance",
    "strip_decimal",
    "validate_amount",
    "validate_color",
    "validate_day",
    "validate_item",
    "validate_name",
    "validate_tag_name",
]
