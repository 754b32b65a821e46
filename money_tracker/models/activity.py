"""
Activity Models for Money Tracker

Every state change and every surfaced failure produces one activity event.
Events are written to the structured log only; they are not stored and
there is no history or undo built on them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class ActivityEventType(str, Enum):
    """Types of events we log."""
    # Users
    USER_CREATED = "user_created"
    USER_RENAMED = "user_renamed"
    USER_DELETED = "user_deleted"
    USER_SELECTED = "user_selected"
    MAIN_USER_CHANGED = "main_user_changed"

    # Transactions
    TRANSACTION_CREATED = "transaction_created"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"

    # Catalog
    TEMPLATE_SAVED = "template_saved"
    TEMPLATE_DELETED = "template_deleted"
    TAG_SAVED = "tag_saved"
    TAG_RENAMED = "tag_renamed"
    TAG_DELETED = "tag_deleted"

    # Import / export
    DATA_EXPORTED = "data_exported"
    IMPORT_APPLIED = "import_applied"
    IMPORT_PENDING = "import_pending"
    IMPORT_DECLINED = "import_declined"

    # Failures
    OPERATION_REFUSED = "operation_refused"
    RECORD_NOT_FOUND = "record_not_found"


class ActivitySeverity(str, Enum):
    """Severity level for activity events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ActivityEvent(BaseModel):
    """
    A single activity event.

    This is the unit handed to the structured logger.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: ActivityEventType = Field(
        ...,
        description="Type of event"
    )
    severity: ActivitySeverity = Field(
        default=ActivitySeverity.INFO,
        description="Event severity"
    )

    # Context - what record is this about?
    user: Optional[str] = Field(
        default=None,
        description="Selected user when the event happened"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of record (e.g., 'transaction', 'tag', 'user')"
    )
    entity_key: Optional[str] = Field(
        default=None,
        description="Id or key of the record this event relates to"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=True,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "user": self.user,
            "entity_type": self.entity_type,
            "entity_key": self.entity_key,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class ActivityEventBuilder:
    """
    Helper class to build activity events with common patterns.

    Usage:
        event = ActivityEventBuilder.user_created("Alice", 1000)
        event = ActivityEventBuilder.tag_renamed("Alice", "food", "meal", 7)
    """

    @staticmethod
    def user_created(name: str, balance: float) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.USER_CREATED,
            user=name,
            entity_type="user",
            entity_key=name,
            description=f"User created: {name}",
            details={"balance": balance},
        )

    @staticmethod
    def user_renamed(old_name: str, new_name: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.USER_RENAMED,
            user=new_name,
            entity_type="user",
            entity_key=new_name,
            description=f"User renamed: {old_name} -> {new_name}",
            details={"old_name": old_name},
        )

    @staticmethod
    def user_deleted(name: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.USER_DELETED,
            user=name,
            entity_type="user",
            entity_key=name,
            description=f"User deleted: {name}",
        )

    @staticmethod
    def user_selected(name: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.USER_SELECTED,
            severity=ActivitySeverity.DEBUG,
            user=name or None,
            entity_type="user",
            entity_key=name or None,
            description=f"User selected: {name}" if name else "User deselected",
        )

    @staticmethod
    def main_user_changed(name: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.MAIN_USER_CHANGED,
            user=name,
            entity_type="user",
            entity_key=name,
            description=f"Main user set to {name}",
        )

    @staticmethod
    def transaction_changed(
        event_type: ActivityEventType,
        user: str,
        transaction_id: int,
        month_key: str,
    ) -> ActivityEvent:
        verb = event_type.value.rsplit("_", 1)[-1]
        return ActivityEvent(
            event_type=event_type,
            user=user,
            entity_type="transaction",
            entity_key=str(transaction_id),
            description=f"Transaction {verb} in {month_key}",
            details={"month": month_key},
        )

    @staticmethod
    def template_changed(
        event_type: ActivityEventType,
        user: str,
        item: str,
    ) -> ActivityEvent:
        verb = event_type.value.rsplit("_", 1)[-1]
        return ActivityEvent(
            event_type=event_type,
            user=user,
            entity_type="template",
            entity_key=item,
            description=f"Template {verb}: {item}",
        )

    @staticmethod
    def tag_changed(
        event_type: ActivityEventType,
        user: str,
        name: str,
    ) -> ActivityEvent:
        verb = event_type.value.rsplit("_", 1)[-1]
        return ActivityEvent(
            event_type=event_type,
            user=user,
            entity_type="tag",
            entity_key=name,
            description=f"Tag {verb}: {name}",
        )

    @staticmethod
    def tag_renamed(
        user: str,
        old_name: str,
        new_name: str,
        affected: int,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.TAG_RENAMED,
            user=user,
            entity_type="tag",
            entity_key=new_name,
            description=f"Tag renamed: {old_name} -> {new_name}",
            details={
                "old_name": old_name,
                "affected_records": affected,
            },
        )

    @staticmethod
    def data_exported(user: str, filename: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.DATA_EXPORTED,
            user=user,
            entity_type="user",
            entity_key=user,
            description=f"Data exported to {filename}",
            details={"filename": filename},
        )

    @staticmethod
    def import_event(
        event_type: ActivityEventType,
        user: str,
        created_user: bool = False,
    ) -> ActivityEvent:
        descriptions = {
            ActivityEventType.IMPORT_APPLIED: f"Import applied for {user}",
            ActivityEventType.IMPORT_PENDING: f"Import for {user} awaits confirmation",
            ActivityEventType.IMPORT_DECLINED: f"Import for {user} declined",
        }
        return ActivityEvent(
            event_type=event_type,
            user=user,
            entity_type="user",
            entity_key=user,
            description=descriptions.get(event_type, f"Import event for {user}"),
            details={"created_user": created_user},
        )

    @staticmethod
    def operation_refused(
        error_type: str,
        error_message: str,
        user: Optional[str] = None,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.OPERATION_REFUSED,
            severity=ActivitySeverity.WARNING,
            user=user or None,
            description=f"Operation refused: {error_type}",
            error_message=error_message,
        )

    @staticmethod
    def record_not_found(
        entity_type: str,
        entity_key: str,
        user: Optional[str] = None,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.RECORD_NOT_FOUND,
            severity=ActivitySeverity.DEBUG,
            user=user or None,
            entity_type=entity_type,
            entity_key=entity_key,
            description=f"{entity_type.capitalize()} not found: {entity_key}",
        )
