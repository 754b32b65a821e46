"""
Failure taxonomy for ledger operations.

Every failure carries the message shown to the user. The session
catches MoneyTrackerError, reports the message through its alert
channel, and leaves state untouched. None of these are fatal.
"""


class MoneyTrackerError(Exception):
    """Base exception for ledger operations."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationFailure(MoneyTrackerError):
    """Bad name, item, tag, amount, day or color. Operation aborted."""
    pass


class NotFoundFailure(MoneyTrackerError):
    """
    The record being edited or deleted no longer exists.

    The session treats this as a silent no-op.
    """

    def __init__(self, entity_type: str, key: str):
        self.entity_type = entity_type
        self.key = key
        super().__init__(f"{entity_type.capitalize()} not found: {key}")


class ImportFormatFailure(MoneyTrackerError):
    """The import artifact could not be read or has the wrong shape."""
    pass


class InvariantViolation(MoneyTrackerError):
    """The operation would break an invariant (e.g. deleting the main user)."""
    pass
