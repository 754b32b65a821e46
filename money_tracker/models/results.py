"""
Result and View Models

Models returned to the presentation layer: validation outcomes,
aggregate queries and their totals, and display rows for the
transaction table.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from money_tracker.models.records import (
    Amount,
    Tag,
    Template,
    Transaction,
    TransactionsByMonth,
)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationResult(BaseModel):
    """
    Success, or failure with one user-facing message.

    Validation never raises; callers check `success`.
    """

    success: bool
    message: Optional[str] = None

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(success=True)

    @classmethod
    def fail(cls, message: str) -> "ValidationResult":
        return cls(success=False, message=message)


class AmountResult(BaseModel):
    """Parsed amount, or the reason it could not be parsed."""

    value: Optional[Amount] = None
    message: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.value is not None


# =============================================================================
# AGGREGATION MODELS
# =============================================================================

class DisplayWindow(str, Enum):
    """Time window the period totals are computed over."""
    THIS_MONTH = "this_month"          # real-world calendar month
    SELECTED_MONTH = "selected_month"
    SELECTED_YEAR = "selected_year"


class AggregateQuery(BaseModel):
    """
    A totals query over one window.

    `year`/`month` describe the selected period; they are ignored for
    THIS_MONTH, which always uses today's date.
    """

    window: DisplayWindow = DisplayWindow.THIS_MONTH
    filter: Optional[str] = Field(
        default=None,
        description="None, a built-in type name, or a custom tag name"
    )
    year: int
    month: int = Field(ge=1, le=12)


class Totals(BaseModel):
    """Expense, income and their difference for one window."""

    expense: Amount = 0
    income: Amount = 0
    balance: Amount = 0


class DisplayRow(BaseModel):
    """One row of the transaction table, ready to render."""

    transaction: Transaction
    show_date: bool = Field(
        ...,
        description="False when the previous row has the same day"
    )
    tag_label: str
    tag_color: Optional[str] = Field(
        default=None,
        description="None when the row is shown with its built-in type label"
    )
    is_filtered: bool = False


# =============================================================================
# CATALOG MODELS
# =============================================================================

class CatalogUpdate(BaseModel):
    """
    All three per-user collections after a tag change.

    A tag rename touches transactions and templates too, so the result
    always carries every collection and is applied as a whole.
    """

    transactions: TransactionsByMonth = Field(default_factory=dict)
    templates: list[Template] = Field(default_factory=list)
    tags: list[Tag] = Field(default_factory=list)
    renamed_references: int = Field(
        default=0,
        ge=0,
        description="Transactions plus templates whose tag was rewritten"
    )
