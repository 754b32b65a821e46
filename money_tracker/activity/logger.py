"""
Activity Logger

DESIGN DECISION: Every state change and every surfaced failure is logged
as one structured event. This provides:
1. Traceability when a user reports lost or odd data
2. Debugging capability
3. A single place that knows the log format

The activity logger:
- Writes to the structured log only (nothing is stored, there is no
  history or undo built on top of it)
- Never raises; a logging failure must not abort a mutation that
  already succeeded
"""

import logging
from typing import Any, Callable, Optional

import structlog
from pydantic import ValidationError

from money_tracker.config import LoggingSettings
from money_tracker.models.activity import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivityEventType,
    ActivitySeverity,
)


def configure_logging(settings: Optional[LoggingSettings] = None) -> None:
    """
    Configure structlog (and the stdlib root level) for the process.

    Called once at import with defaults and again by create_session()
    with the loaded settings.
    """
    level = settings.level if settings else "INFO"
    json_output = settings.json_output if settings else True

    logging.basicConfig(format="%(message)s", level=getattr(logging, level))
    logging.getLogger().setLevel(getattr(logging, level))

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


configure_logging()


class ActivityLogger:
    """
    Central activity logging service.

    One instance per session; the session calls the log_* helpers after
    each successful mutation and report_failure() for each failure.
    """

    def __init__(self, logger_name: str = "money_tracker"):
        self._logger = structlog.get_logger(logger_name)

    def log(self, event: ActivityEvent) -> bool:
        """
        Log an activity event.

        Returns True if the event was handed to the logger.
        """
        try:
            log_dict = event.to_log_dict()
            if event.severity == ActivitySeverity.ERROR:
                self._logger.error("activity_event", **log_dict)
            elif event.severity == ActivitySeverity.WARNING:
                self._logger.warning("activity_event", **log_dict)
            elif event.severity == ActivitySeverity.DEBUG:
                self._logger.debug("activity_event", **log_dict)
            else:
                self._logger.info("activity_event", **log_dict)
        except Exception as e:
            # Logging must never break a mutation that already happened
            logging.getLogger(__name__).warning("activity log failed: %s", e)
            return False
        return True

    def _record(self, build: Callable[..., ActivityEvent], *args: Any) -> bool:
        """Build an event and log it. An event that fails validation is dropped."""
        try:
            event = build(*args)
        except ValidationError as e:
            logging.getLogger(__name__).warning("activity event rejected: %s", e)
            return False
        return self.log(event)

    # ----- users ---------------------------------------------------------

    def log_user_created(self, name: str, balance: float) -> None:
        self._record(ActivityEventBuilder.user_created, name, balance)

    def log_user_renamed(self, old_name: str, new_name: str) -> None:
        self._record(ActivityEventBuilder.user_renamed, old_name, new_name)

    def log_user_deleted(self, name: str) -> None:
        self._record(ActivityEventBuilder.user_deleted, name)

    def log_user_selected(self, name: str) -> None:
        self._record(ActivityEventBuilder.user_selected, name)

    def log_main_user_changed(self, name: str) -> None:
        self._record(ActivityEventBuilder.main_user_changed, name)

    # ----- records -------------------------------------------------------

    def log_transaction(
        self,
        event_type: ActivityEventType,
        user: str,
        transaction_id: int,
        month_key: str,
    ) -> None:
        self._record(
            ActivityEventBuilder.transaction_changed,
            event_type, user, transaction_id, month_key,
        )

    def log_template(self, event_type: ActivityEventType, user: str, item: str) -> None:
        self._record(ActivityEventBuilder.template_changed, event_type, user, item)

    def log_tag(self, event_type: ActivityEventType, user: str, name: str) -> None:
        self._record(ActivityEventBuilder.tag_changed, event_type, user, name)

    def log_tag_renamed(self, user: str, old_name: str, new_name: str, affected: int) -> None:
        self._record(ActivityEventBuilder.tag_renamed, user, old_name, new_name, affected)

    # ----- transfer ------------------------------------------------------

    def log_exported(self, user: str, filename: str) -> None:
        self._record(ActivityEventBuilder.data_exported, user, filename)

    def log_import(
        self,
        event_type: ActivityEventType,
        user: str,
        created_user: bool = False,
    ) -> None:
        self._record(ActivityEventBuilder.import_event, event_type, user, created_user)

    # ----- failures ------------------------------------------------------

    def log_refused(self, error_type: str, message: str, user: Optional[str] = None) -> None:
        self._record(ActivityEventBuilder.operation_refused, error_type, message, user)

    def log_not_found(self, entity_type: str, key: str, user: Optional[str] = None) -> None:
        self._record(ActivityEventBuilder.record_not_found, entity_type, key, user)
