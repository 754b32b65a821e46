"""
Import/Export Models

The exported artifact is a user's full dataset. Key names follow the
file format (`exportedAt`), so files written by earlier releases of the
tracker import unchanged.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from money_tracker.models.records import (
    Tag,
    Template,
    TransactionsByMonth,
    User,
)


class ExportPayload(BaseModel):
    """
    Decoded contents of an export file.

    `user` and `transactions` are required for a usable import; they are
    Optional here so a missing field is reported as a format error rather
    than a schema error.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    user: Optional[User] = None
    transactions: Optional[TransactionsByMonth] = None
    templates: Optional[list[Template]] = None
    tags: Optional[list[Tag]] = None
    exported_at: Optional[str] = Field(
        default=None,
        alias="exportedAt",
        description="ISO-8601 UTC timestamp of the export"
    )


class ExportArtifact(BaseModel):
    """A downloadable export: deterministic file name plus text content."""

    filename: str
    content: str


class ImportStatus(str, Enum):
    """Outcome of an import attempt."""
    APPLIED = "applied"
    NEEDS_CONFIRMATION = "needs_confirmation"  # existing data differs
    CANCELLED = "cancelled"                     # user declined overwrite
    FAILED = "failed"


class ImportOutcome(BaseModel):
    """Result returned to the presentation layer after an import."""

    status: ImportStatus
    user_name: Optional[str] = None
    message: Optional[str] = None
    created_user: bool = False
