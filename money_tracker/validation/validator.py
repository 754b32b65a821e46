"""
Input Validation

DESIGN DECISION: Every check is a pure function returning a result with
a single user-facing message. Nothing here raises, writes, or logs.
The session decides what to do with a failed result (report it and
abort the operation).

AMOUNTS:
Amounts are whole numbers. By default every decimal point is stripped
before parsing, so "100.7" becomes 1007 (this matches what the input
field has always done). With strict amounts enabled, any decimal point
is rejected instead.
"""

import calendar
import math
from typing import Iterable, Optional, Union

from money_tracker.config import AppSettings, get_settings
from money_tracker.models.records import Amount, User
from money_tracker.models.results import AmountResult, ValidationResult


DEFAULT_RESERVED_LABELS = ("Income", "Expense")

MSG_NAME_EMPTY = "Enter a name"
MSG_NAME_TAKEN = "A user with this name already exists"
MSG_ITEM_EMPTY = "Enter an item name"
MSG_TAG_EMPTY = "Enter a tag name"
MSG_AMOUNT_INVALID = "Enter a valid amount"
MSG_AMOUNT_DECIMAL = "Decimals are not allowed"
MSG_DAY_INVALID = "Choose a valid date"
MSG_COLOR_EMPTY = "Choose a color"


def strip_decimal(raw: str) -> str:
    """Remove every decimal point from amount input."""
    return raw.replace(".", "")


def _to_number(text: str) -> Optional[Amount]:
    """Parse text to an int (or a float when not integral)."""
    text = text.strip()
    # digit-group underscores are Python literal syntax, not amount input
    if not text or "_" in text:
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        value = float(text)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return int(value) if value.is_integer() else value


def validate_name(
    name: str,
    existing_users: Iterable[Union[User, str]],
    max_length: int = 8,
) -> ValidationResult:
    """Check a new or changed user name."""
    if not name:
        return ValidationResult.fail(MSG_NAME_EMPTY)
    if len(name) > max_length:
        return ValidationResult.fail(
            f"Name must be {max_length} characters or fewer"
        )
    taken = {u.name if isinstance(u, User) else u for u in existing_users}
    if name in taken:
        return ValidationResult.fail(MSG_NAME_TAKEN)
    return ValidationResult.ok()


def validate_item(item: str, max_length: int = 12) -> ValidationResult:
    """Check a transaction or template item name."""
    if not item:
        return ValidationResult.fail(MSG_ITEM_EMPTY)
    if len(item) > max_length:
        return ValidationResult.fail(
            f"Item name must be {max_length} characters or fewer"
        )
    return ValidationResult.ok()


def validate_tag_name(
    name: str,
    reserved_labels: Iterable[str] = DEFAULT_RESERVED_LABELS,
    max_length: int = 4,
) -> ValidationResult:
    """Check a tag name. Built-in type labels are reserved."""
    reserved = tuple(reserved_labels)
    if not name:
        return ValidationResult.fail(MSG_TAG_EMPTY)
    if len(name) > max_length:
        return ValidationResult.fail(
            f"Tag name must be {max_length} characters or fewer"
        )
    if name in reserved:
        quoted = " and ".join(f'"{label}"' for label in reserved)
        return ValidationResult.fail(f"{quoted} cannot be used as tag names")
    return ValidationResult.ok()


def validate_amount(raw: Union[str, int, float], strict: bool = False) -> AmountResult:
    """
    Parse an amount. Fails when unparseable, zero or negative.

    Args:
        raw: The text typed by the user (numbers are accepted too)
        strict: Reject decimal input instead of stripping the point
    """
    text = str(raw)
    if strict:
        if "." in text:
            return AmountResult(message=MSG_AMOUNT_DECIMAL)
    else:
        text = strip_decimal(text)

    value = _to_number(text)
    if value is None or value <= 0:
        return AmountResult(message=MSG_AMOUNT_INVALID)
    return AmountResult(value=value)


def parse_balance(raw: Union[str, int, float, None]) -> Amount:
    """
    Parse an initial balance. Anything unparseable becomes 0.

    Negative balances are allowed.
    """
    if raw is None:
        return 0
    value = _to_number(strip_decimal(str(raw)))
    return 0 if value is None else value


def validate_day(year: int, month: int, day: int) -> ValidationResult:
    """Check that day exists in the given month."""
    if not 1 <= month <= 12:
        return ValidationResult.fail(MSG_DAY_INVALID)
    days_in_month = calendar.monthrange(year, month)[1]
    if not 1 <= day <= days_in_month:
        return ValidationResult.fail(MSG_DAY_INVALID)
    return ValidationResult.ok()


def validate_color(color: str) -> ValidationResult:
    if not color:
        return ValidationResult.fail(MSG_COLOR_EMPTY)
    return ValidationResult.ok()


class RecordValidator:
    """
    Validation bound to the configured limits and reserved labels.

    The session holds one of these so that limits come from settings
    rather than call sites.
    """

    def __init__(self, settings: Optional[AppSettings] = None):
        """
        Initialize validator.

        Args:
            settings: Application settings. Defaults to the cached settings.
        """
        self._settings = settings or get_settings().app

    @property
    def reserved_labels(self) -> tuple[str, str]:
        return self._settings.reserved_labels

    @property
    def strict_amounts(self) -> bool:
        return self._settings.strict_amounts

    def name(
        self,
        name: str,
        existing_users: Iterable[Union[User, str]],
    ) -> ValidationResult:
        return validate_name(name, existing_users, self._settings.max_name_length)

    def item(self, item: str) -> ValidationResult:
        return validate_item(item, self._settings.max_item_length)

    def tag_name(self, name: str) -> ValidationResult:
        return validate_tag_name(
            name,
            self._settings.reserved_labels,
            self._settings.max_tag_length,
        )

    def amount(self, raw: Union[str, int, float]) -> AmountResult:
        return validate_amount(raw, strict=self._settings.strict_amounts)

    def day(self, year: int, month: int, day: int) -> ValidationResult:
        return validate_day(year, month, day)

    def color(self, color: str) -> ValidationResult:
        return validate_color(color)

    def balance(self, raw: Union[str, int, float, None]) -> Amount:
        return parse_balance(raw)
