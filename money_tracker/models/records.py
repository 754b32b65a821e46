"""
Core Data Models for Money Tracker

These models define the schemas for everything kept in the store:
users, transactions grouped by month, templates and tags.
They are designed to:
1. Round-trip through JSON without changing shape
2. Omit absent optional fields when serialized (no "tag": null)
3. Keep integer amounts as integers

DESIGN DECISION: Field limits (name length, item length, ...) are NOT
enforced here. They are input rules owned by the validation package, so
that data written by older versions or imported from a file still loads.
"""

from enum import Enum
from typing import Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    field_validator,
)


# Amounts and balances are whole numbers in practice, but imported files
# may carry floats. Smart-mode union keeps ints as ints.
Amount = Union[int, float]


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """
    Built-in transaction type.

    Untagged rows are displayed with the configured label for their type.
    """
    INCOME = "income"
    EXPENSE = "expense"


# =============================================================================
# STORED RECORDS
# =============================================================================

class User(BaseModel):
    """A named profile with a signed initial balance."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(
        ...,
        description="Unique profile name"
    )
    balance: Amount = Field(
        default=0,
        description="Initial balance (signed)"
    )


class Transaction(BaseModel):
    """
    A single income or expense entry inside a month bucket.

    The id never changes across edits; every other field is replaceable.
    """

    id: int = Field(
        ...,
        description="Unique, strictly increasing identifier"
    )
    type: TransactionType
    date: int = Field(
        ...,
        description="Day of month"
    )
    item: str
    amount: Amount
    tag: Optional[str] = Field(
        default=None,
        description="Name of a custom tag, if any"
    )


class Template(BaseModel):
    """A reusable preset for creating transactions, keyed by item."""

    type: TransactionType
    item: str
    amount: Amount
    tag: Optional[str] = None


class Tag(BaseModel):
    """A user-defined label with a display color."""

    name: str
    color: str = Field(
        ...,
        description="Hex color or preset identifier"
    )


# "YYYY-MM" -> transactions recorded in that month
TransactionsByMonth = dict[str, list[Transaction]]

USERS_ADAPTER = TypeAdapter(list[User])
TRANSACTIONS_ADAPTER = TypeAdapter(TransactionsByMonth)
TEMPLATES_ADAPTER = TypeAdapter(list[Template])
TAGS_ADAPTER = TypeAdapter(list[Tag])


# =============================================================================
# INPUT MODELS - raw values as typed by the user
# =============================================================================

def _coerce_raw_amount(v: object) -> str:
    """Amount inputs are kept as text until validated."""
    if v is None:
        return ""
    if isinstance(v, bool):
        raise ValueError("amount must be text or a number")
    if isinstance(v, (int, float)):
        return str(v)
    return v


class TransactionInput(BaseModel):
    """
    Data submitted from the add/edit transaction form.

    CRITICAL: amount is RAW input. It is parsed by validate_amount,
    never trusted as a number.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    type: TransactionType = TransactionType.EXPENSE
    date: int
    item: str = ""
    amount: str = ""
    tag: Optional[str] = None

    @field_validator('amount', mode='before')
    @classmethod
    def coerce_amount(cls, v: object) -> str:
        return _coerce_raw_amount(v)

    @field_validator('tag')
    @classmethod
    def empty_tag_is_none(cls, v: Optional[str]) -> Optional[str]:
        """The form's "none" option submits an empty string."""
        return v or None


class TemplateInput(BaseModel):
    """Data submitted from the template editor."""
    model_config = ConfigDict(str_strip_whitespace=True)

    type: TransactionType = TransactionType.EXPENSE
    item: str = ""
    amount: str = ""
    tag: Optional[str] = None

    @field_validator('amount', mode='before')
    @classmethod
    def coerce_amount(cls, v: object) -> str:
        return _coerce_raw_amount(v)

    @field_validator('tag')
    @classmethod
    def empty_tag_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None


class TagInput(BaseModel):
    """Data submitted from the tag editor."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = ""
    color: str = ""


class TransactionDraft(BaseModel):
    """
    Prefilled transaction fields resolved from a template.

    The date is left for the user to choose.
    """

    type: TransactionType
    item: str
    amount: Amount
    tag: Optional[str] = None
