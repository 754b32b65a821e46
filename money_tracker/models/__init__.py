"""
Data Models Package

This package contains all Pydantic models used in Money Tracker.
All data flowing through the system must conform to these schemas.
"""

from money_tracker.models.records import (
    Amount,
    Tag,
    TagInput,
    Template,
    TemplateInput,
    Transaction,
    TransactionDraft,
    TransactionInput,
    TransactionsByMonth,
    TransactionType,
    User,
)
from money_tracker.models.results import (
    AggregateQuery,
    AmountResult,
    CatalogUpdate,
    DisplayRow,
    DisplayWindow,
    Totals,
    ValidationResult,
)
from money_tracker.models.transfer import (
    ExportArtifact,
    ExportPayload,
    ImportOutcome,
    ImportStatus,
)
from money_tracker.models.activity import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivityEventType,
    ActivitySeverity,
)

__all__ = [
    # Records
    "Amount",
    "Tag",
    "TagInput",
    "Template",
    "TemplateInput",
    "Transaction",
    "TransactionDraft",
    "TransactionInput",
    "TransactionsByMonth",
    "TransactionType",
    "User",
    # Results
    "AggregateQuery",
    "AmountResult",
    "CatalogUpdate",
    "DisplayRow",
    "DisplayWindow",
    "Totals",
    "ValidationResult",
    # Transfer
    "ExportArtifact",
    "ExportPayload",
    "ImportOutcome",
    "ImportStatus",
    # Activity models
    "ActivityEvent",
    "ActivityEventBuilder",
    "ActivityEventType",
    "ActivitySeverity",
]
