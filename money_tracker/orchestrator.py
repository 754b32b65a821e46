"""
Main Orchestrator for Money Tracker

This module ties together all the components and defines the session
a presentation layer drives:
1. Users (create → select → rename / set main / delete)
2. Transactions for the selected period (create → edit → delete)
3. Templates and tags (with the tag-rename cascade)
4. Aggregates, filters and display rows
5. Import/export

DESIGN DECISION: The session enforces the boundaries:
- Every change is computed in full before anything is written
- Every successful change is written back immediately, one key per value
- Every failure reaches the user through one alert channel
- Every step is logged

Managers raise MoneyTrackerError subclasses; this is the only place that
catches them.
"""

from datetime import date, datetime, timezone
from pathlib import Path
from typing import Callable, Optional, TypeVar, Union

from pydantic import BaseModel, ValidationError

from money_tracker.activity import ActivityLogger, configure_logging
from money_tracker.config import AppSettings, Settings, get_settings
from money_tracker.ledger import (
    ImportFormatFailure,
    InvariantViolation,
    MoneyTrackerError,
    NotFoundFailure,
    TransactionIdGenerator,
    ValidationFailure,
    month_key,
    sort_for_display,
)
from money_tracker.ledger import catalog, transactions as ledger
from money_tracker.models import (
    ActivityEventType,
    AggregateQuery,
    DisplayRow,
    DisplayWindow,
    ExportArtifact,
    ExportPayload,
    ImportOutcome,
    ImportStatus,
    Tag,
    TagInput,
    Template,
    TemplateInput,
    Totals,
    Transaction,
    TransactionDraft,
    TransactionInput,
    TransactionsByMonth,
    User,
)
from money_tracker.queries import (
    AggregationEngine,
    current_balance,
    cycle_window,
    period_label,
    toggle_filter,
)
from money_tracker.services.storage import (
    InMemoryStore,
    JsonFileStore,
    KeyValueStoreInterface,
    UserDataRepository,
)
from money_tracker.transfer import (
    MSG_INVALID_FORMAT,
    MSG_READ_FAILED,
    build_payload,
    decode_artifact,
    export_artifact,
    find_conflicts,
)
from money_tracker.validation import RecordValidator
from money_tracker.validation.validator import (
    MSG_AMOUNT_INVALID,
    MSG_COLOR_EMPTY,
    MSG_DAY_INVALID,
    MSG_ITEM_EMPTY,
    MSG_TAG_EMPTY,
)


MSG_NO_USER = "Select a user first"
MSG_MAIN_USER_UNDELETABLE = "The main user cannot be deleted"
MSG_EXPORT_DONE = "Export complete"
MSG_IMPORT_DONE = "Import complete"
MSG_WRITE_FAILED = "Failed to write file"
MSG_TYPE_INVALID = "Choose income or expense"
MSG_FORM_INVALID = "Check the entered values"

# Message for a form field that could not be coerced at all
_FIELD_MESSAGES = {
    "type": MSG_TYPE_INVALID,
    "date": MSG_DAY_INVALID,
    "item": MSG_ITEM_EMPTY,
    "amount": MSG_AMOUNT_INVALID,
    "name": MSG_TAG_EMPTY,
    "color": MSG_COLOR_EMPTY,
}

# Marks "use the session's current filter" in get_aggregates
_CURRENT = object()

FormModel = TypeVar("FormModel", bound=BaseModel)


def overwrite_prompt(name: str) -> str:
    return f"Data for '{name}' already exists. Overwrite?"


def parse_form(model: type[FormModel], data: Union[FormModel, dict]) -> FormModel:
    """
    Coerce submitted form data into its input model.

    Raises:
        ValidationFailure: With the message for the first field that
            could not be coerced (e.g. a blank date)
    """
    try:
        return model.model_validate(data)
    except ValidationError as e:
        errors = e.errors()
        loc = errors[0]["loc"] if errors else ()
        field = loc[0] if loc else None
        raise ValidationFailure(_FIELD_MESSAGES.get(field, MSG_FORM_INVALID))


class MoneyTrackerSession:
    """
    One running tracker: the process-wide user list plus the selected
    user's collections, swapped in from storage on selection.

    Failed operations return a falsy value (None / False) after the
    message has gone through report_error(). A record that vanished
    before an edit or delete is a silent no-op.
    """

    def __init__(
        self,
        repository: UserDataRepository,
        settings: Optional[AppSettings] = None,
        activity_logger: Optional[ActivityLogger] = None,
        id_generator: Optional[TransactionIdGenerator] = None,
        today: Optional[Callable[[], date]] = None,
        now: Optional[Callable[[], datetime]] = None,
        alert: Optional[Callable[[str], None]] = None,
    ):
        self._repository = repository
        self._settings = settings or get_settings().app
        self._validator = RecordValidator(self._settings)
        self._engine = AggregationEngine(self._settings)
        self._activity = activity_logger or ActivityLogger()
        self._ids = id_generator or TransactionIdGenerator()
        self._today = today or date.today
        self._now = now or (lambda: datetime.now(timezone.utc))
        self._alert = alert

        self.alert_message: Optional[str] = None

        # Process-wide state
        self._users: list[User] = repository.load_users()
        self._main_user: str = repository.load_main_user()

        # Selected user's state (read-through on selection)
        self._selected_user = ""
        self._transactions: TransactionsByMonth = {}
        self._templates: list[Template] = []
        self._tags: list[Tag] = []

        # View state
        current = self._today()
        self.selected_year = current.year
        self.selected_month = current.month
        self.window = DisplayWindow.THIS_MONTH
        self.filter: Optional[str] = None

        self._pending_import: Optional[ExportPayload] = None

        if self._main_user and self._find_user(self._main_user):
            self.select_user(self._main_user)

    # =========================================================================
    # STATE ACCESS
    # =========================================================================

    @property
    def repository(self) -> UserDataRepository:
        return self._repository

    @property
    def settings(self) -> AppSettings:
        return self._settings

    @property
    def main_user(self) -> str:
        return self._main_user

    @property
    def selected_user(self) -> str:
        return self._selected_user

    @property
    def transactions(self) -> TransactionsByMonth:
        return self._transactions

    @property
    def pending_import(self) -> Optional[ExportPayload]:
        return self._pending_import

    def _find_user(self, name: str) -> Optional[User]:
        for user in self._users:
            if user.name == name:
                return user
        return None

    def _require_user(self) -> User:
        user = self._find_user(self._selected_user) if self._selected_user else None
        if user is None:
            raise InvariantViolation(MSG_NO_USER)
        return user

    # =========================================================================
    # ALERTS
    # =========================================================================

    def _notify(self, message: str) -> None:
        self.alert_message = message
        if self._alert:
            self._alert(message)

    def report_error(self, message: str) -> None:
        """The one user-visible failure channel."""
        self._notify(message)

    def dismiss_alert(self) -> None:
        self.alert_message = None

    def _fail(self, error: MoneyTrackerError) -> None:
        """Route a caught failure: vanished records are silent, the rest are reported."""
        if isinstance(error, NotFoundFailure):
            self._activity.log_not_found(error.entity_type, error.key, self._selected_user or None)
            return
        self._activity.log_refused(type(error).__name__, error.message, self._selected_user or None)
        self.report_error(error.message)

    # =========================================================================
    # USERS
    # =========================================================================

    def list_users(self) -> list[User]:
        return list(self._users)

    def create_user(self, name: str, balance: Union[str, int, float, None] = None) -> Optional[User]:
        """
        Add a user and select it. The first user becomes main.

        Args:
            name: New profile name
            balance: Initial balance as typed; unparseable input is 0
        """
        name = name.strip()
        try:
            result = self._validator.name(name, self._users)
            if not result.success:
                raise ValidationFailure(result.message)
        except MoneyTrackerError as e:
            self._fail(e)
            return None

        user = User(name=name, balance=self._validator.balance(balance))
        self._users = [*self._users, user]
        self._repository.save_users(self._users)
        self._activity.log_user_created(user.name, user.balance)

        if not self._main_user:
            self._set_main(user.name)

        self.select_user(user.name)
        return user

    def select_user(self, name: str) -> bool:
        """
        Make a user current, loading its collections from storage.

        An empty name deselects; the in-memory collections are cleared
        and nothing is written.
        """
        if not name:
            self._selected_user = ""
            self._transactions = {}
            self._templates = []
            self._tags = []
            return True

        if self._find_user(name) is None:
            self._fail(NotFoundFailure("user", name))
            return False

        self._transactions = self._repository.load_transactions(name)
        self._templates = self._repository.load_templates(name)
        self._tags = self._repository.load_tags(name)
        self._selected_user = name
        self._ids.observe(self._transactions)
        self._activity.log_user_selected(name)
        return True

    def rename_user(self, name: str) -> bool:
        """Rename the selected user, moving its stored data to the new name."""
        name = name.strip()
        try:
            user = self._require_user()
            if name == user.name:
                return True
            result = self._validator.name(name, self._users)
            if not result.success:
                raise ValidationFailure(result.message)
        except MoneyTrackerError as e:
            self._fail(e)
            return False

        old_name = user.name
        renamed = user.model_copy(update={"name": name})
        self._users = [renamed if u.name == old_name else u for u in self._users]
        self._repository.save_users(self._users)
        self._repository.rename_user_data(old_name, name)
        if self._main_user == old_name:
            self._set_main(name)
        self._selected_user = name
        self._activity.log_user_renamed(old_name, name)
        return True

    def set_main_user(self, name: str) -> bool:
        try:
            if self._find_user(name) is None:
                raise NotFoundFailure("user", name)
        except MoneyTrackerError as e:
            self._fail(e)
            return False
        self._set_main(name)
        return True

    def _set_main(self, name: str) -> None:
        self._main_user = name
        self._repository.save_main_user(name)
        self._activity.log_main_user_changed(name)

    def delete_user(self) -> bool:
        """
        Delete the selected user and its stored data, then select the
        main user. The main user cannot be deleted.
        """
        try:
            user = self._require_user()
            if user.name == self._main_user:
                raise InvariantViolation(MSG_MAIN_USER_UNDELETABLE)
        except MoneyTrackerError as e:
            self._fail(e)
            return False

        self._users = [u for u in self._users if u.name != user.name]
        self._repository.save_users(self._users)
        self._repository.delete_user_data(user.name)
        self._activity.log_user_deleted(user.name)
        self.select_user(self._main_user)
        return True

    # =========================================================================
    # PERIOD, WINDOW AND FILTER
    # =========================================================================

    def select_period(self, year: int, month: int) -> tuple[int, int]:
        """Select a month, clamped to min_year-01 .. the current month."""
        current = self._today()
        lowest = (self._settings.min_year, 1)
        highest = (current.year, current.month)
        year, month = max(lowest, min(highest, (year, month)))
        self.selected_year, self.selected_month = year, month
        return year, month

    def step_month(self, delta: int) -> tuple[int, int]:
        """Move the selected month forwards or backwards, within bounds."""
        index = self.selected_year * 12 + (self.selected_month - 1) + delta
        return self.select_period(index // 12, index % 12 + 1)

    def toggle_filter(self, value: str) -> Optional[str]:
        self.filter = toggle_filter(self.filter, value)
        return self.filter

    def clear_filter(self) -> None:
        self.filter = None

    def cycle_window(self) -> DisplayWindow:
        self.window = cycle_window(self.window)
        return self.window

    def period_label(self) -> str:
        return period_label(self.window, self.filter)

    # =========================================================================
    # TRANSACTIONS
    # =========================================================================

    def get_transactions(self, year: Optional[int] = None, month: Optional[int] = None) -> list[Transaction]:
        """A month's transactions, in display order. Defaults to the selected month."""
        year = year or self.selected_year
        month = month or self.selected_month
        return sort_for_display(self._transactions.get(month_key(year, month), []))

    def display_rows(self) -> list[DisplayRow]:
        """Rows for the selected month under the active filter."""
        bucket = self._transactions.get(month_key(self.selected_year, self.selected_month), [])
        return self._engine.display_rows(bucket, self.filter, self._tags)

    def create_transaction(self, data: Union[TransactionInput, dict]) -> Optional[Transaction]:
        """Record a transaction in the selected month."""
        year, month = self.selected_year, self.selected_month
        try:
            user = self._require_user()
            form = parse_form(TransactionInput, data)
            fields = ledger.validate_transaction_input(form, year, month, self._validator)
        except MoneyTrackerError as e:
            self._fail(e)
            return None

        updated, transaction = ledger.create_transaction(
            self._transactions, year, month, fields, self._ids.next_id()
        )
        self._write_transactions(user.name, updated)
        self._activity.log_transaction(
            ActivityEventType.TRANSACTION_CREATED, user.name, transaction.id, month_key(year, month)
        )
        return transaction

    def update_transaction(
        self,
        transaction_id: int,
        data: Union[TransactionInput, dict],
    ) -> Optional[Transaction]:
        """Replace a transaction's fields in the selected month; its id is kept."""
        year, month = self.selected_year, self.selected_month
        try:
            user = self._require_user()
            form = parse_form(TransactionInput, data)
            fields = ledger.validate_transaction_input(form, year, month, self._validator)
            updated, transaction = ledger.update_transaction(
                self._transactions, year, month, transaction_id, fields
            )
        except MoneyTrackerError as e:
            self._fail(e)
            return None

        self._write_transactions(user.name, updated)
        self._activity.log_transaction(
            ActivityEventType.TRANSACTION_UPDATED, user.name, transaction.id, month_key(year, month)
        )
        return transaction

    def delete_transaction(self, transaction_id: int) -> bool:
        year, month = self.selected_year, self.selected_month
        try:
            user = self._require_user()
            updated = ledger.delete_transaction(self._transactions, year, month, transaction_id)
        except MoneyTrackerError as e:
            self._fail(e)
            return False

        self._write_transactions(user.name, updated)
        self._activity.log_transaction(
            ActivityEventType.TRANSACTION_DELETED, user.name, transaction_id, month_key(year, month)
        )
        return True

    def resolve_template(self, item: str) -> Optional[TransactionDraft]:
        return ledger.resolve_template(item, self._templates)

    def _write_transactions(self, user: str, updated: TransactionsByMonth) -> None:
        self._repository.save_transactions(user, updated)
        self._transactions = updated

    # =========================================================================
    # AGGREGATES
    # =========================================================================

    def get_aggregates(
        self,
        window: Optional[DisplayWindow] = None,
        filter_value=_CURRENT,
    ) -> Totals:
        """
        Totals for a window. Defaults to the session's window and filter;
        the selected period supplies year and month.
        """
        query = AggregateQuery(
            window=window or self.window,
            filter=self.filter if filter_value is _CURRENT else filter_value,
            year=self.selected_year,
            month=self.selected_month,
        )
        return self._engine.execute(self._transactions, query, self._today())

    def current_balance(self):
        """Selected user's initial balance plus every transaction ever recorded."""
        user = self._find_user(self._selected_user)
        if user is None:
            return 0
        return current_balance(user.balance, self._transactions)

    # =========================================================================
    # TEMPLATES
    # =========================================================================

    def list_templates(self) -> list[Template]:
        return list(self._templates)

    def upsert_template(
        self,
        data: Union[TemplateInput, dict],
        editing_item: Optional[str] = None,
    ) -> Optional[Template]:
        try:
            user = self._require_user()
            form = parse_form(TemplateInput, data)
            updated, template = catalog.upsert_template(
                self._templates, form, self._validator, editing_item
            )
        except MoneyTrackerError as e:
            self._fail(e)
            return None

        self._repository.save_templates(user.name, updated)
        self._templates = updated
        self._activity.log_template(ActivityEventType.TEMPLATE_SAVED, user.name, template.item)
        return template

    def delete_template(self, item: str) -> bool:
        try:
            user = self._require_user()
            updated = catalog.delete_template(self._templates, item)
        except MoneyTrackerError as e:
            self._fail(e)
            return False

        self._repository.save_templates(user.name, updated)
        self._templates = updated
        self._activity.log_template(ActivityEventType.TEMPLATE_DELETED, user.name, item)
        return True

    # =========================================================================
    # TAGS
    # =========================================================================

    def list_tags(self) -> list[Tag]:
        return list(self._tags)

    def upsert_tag(
        self,
        data: Union[TagInput, dict],
        editing_name: Optional[str] = None,
    ) -> Optional[Tag]:
        """
        Add or edit a tag. A rename rewrites every transaction and
        template that used the old name, and all three collections are
        written back.
        """
        try:
            user = self._require_user()
            form = parse_form(TagInput, data)
            update = catalog.upsert_tag(
                self._transactions,
                self._templates,
                self._tags,
                form,
                self._validator,
                editing_name,
            )
        except MoneyTrackerError as e:
            self._fail(e)
            return None

        tag = next(t for t in update.tags if t.name == form.name)
        renamed = editing_name is not None and editing_name != tag.name

        if renamed:
            self._repository.save_transactions(user.name, update.transactions)
            self._repository.save_templates(user.name, update.templates)
            self._transactions = update.transactions
            self._templates = update.templates
        self._repository.save_tags(user.name, update.tags)
        self._tags = update.tags

        if renamed:
            self._activity.log_tag_renamed(user.name, editing_name, tag.name, update.renamed_references)
        else:
            self._activity.log_tag(ActivityEventType.TAG_SAVED, user.name, tag.name)
        return tag

    def delete_tag(self, name: str) -> bool:
        """Remove a tag. Records keep the dangling name."""
        try:
            user = self._require_user()
            updated = catalog.delete_tag(self._tags, name)
        except MoneyTrackerError as e:
            self._fail(e)
            return False

        self._repository.save_tags(user.name, updated)
        self._tags = updated
        self._activity.log_tag(ActivityEventType.TAG_DELETED, user.name, name)
        return True

    # =========================================================================
    # EXPORT
    # =========================================================================

    def export_data(self) -> Optional[ExportArtifact]:
        """The selected user's full dataset as a downloadable artifact."""
        try:
            user = self._require_user()
        except MoneyTrackerError as e:
            self._fail(e)
            return None

        moment = self._now()
        payload = build_payload(user, self._transactions, self._templates, self._tags, moment)
        artifact = export_artifact(
            payload,
            self._settings.export_prefix,
            moment.astimezone(timezone.utc).date(),
        )
        self._activity.log_exported(user.name, artifact.filename)
        self._notify(MSG_EXPORT_DONE)
        return artifact

    def export_to_file(self, directory: Union[str, Path]) -> Optional[Path]:
        """Write the export artifact into a directory; returns the file path."""
        artifact = self.export_data()
        if artifact is None:
            return None

        path = Path(directory) / artifact.filename
        try:
            path.write_text(artifact.content, encoding="ascii")
        except OSError as e:
            self._activity.log_refused("OSError", str(e), self._selected_user)
            self.report_error(MSG_WRITE_FAILED)
            return None
        return path

    # =========================================================================
    # IMPORT
    # =========================================================================

    def import_data(
        self,
        artifact: Union[str, ExportArtifact],
        confirm: Optional[Callable[[str], bool]] = None,
    ) -> ImportOutcome:
        """
        Import an exported dataset.

        FLOW:
        1. Decode the artifact (failures are reported)
        2. Unknown user → create it and apply
        3. Known user whose stored data matches → apply
        4. Known user whose stored data differs → ask `confirm`, or park
           the import for confirm_import() / cancel_import()
        """
        content = artifact.content if isinstance(artifact, ExportArtifact) else artifact
        try:
            payload = decode_artifact(content)
            if not self._validator.name(payload.user.name, ()).success:
                raise ImportFormatFailure(MSG_INVALID_FORMAT)
        except MoneyTrackerError as e:
            self._fail(e)
            return ImportOutcome(status=ImportStatus.FAILED, message=e.message)

        name = payload.user.name
        if self._find_user(name) is None:
            return self._apply_import(payload, create=True)

        if not find_conflicts(self._repository, payload):
            return self._apply_import(payload, create=False)

        prompt = overwrite_prompt(name)
        if confirm is None:
            self._pending_import = payload
            self._activity.log_import(ActivityEventType.IMPORT_PENDING, name)
            return ImportOutcome(
                status=ImportStatus.NEEDS_CONFIRMATION,
                user_name=name,
                message=prompt,
            )

        if confirm(prompt):
            return self._apply_import(payload, create=False)
        return self._decline_import(payload)

    def confirm_import(self) -> ImportOutcome:
        """Apply the import parked by import_data()."""
        payload, self._pending_import = self._pending_import, None
        if payload is None:
            return ImportOutcome(status=ImportStatus.CANCELLED)
        return self._apply_import(payload, create=self._find_user(payload.user.name) is None)

    def cancel_import(self) -> ImportOutcome:
        """Discard the parked import; storage is left untouched."""
        payload, self._pending_import = self._pending_import, None
        if payload is None:
            return ImportOutcome(status=ImportStatus.CANCELLED)
        return self._decline_import(payload)

    def import_from_file(
        self,
        path: Union[str, Path],
        confirm: Optional[Callable[[str], bool]] = None,
    ) -> ImportOutcome:
        try:
            content = Path(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            self._fail(ImportFormatFailure(MSG_READ_FAILED))
            return ImportOutcome(status=ImportStatus.FAILED, message=MSG_READ_FAILED)
        return self.import_data(content, confirm)

    def _apply_import(self, payload: ExportPayload, create: bool) -> ImportOutcome:
        """
        Write the imported collections, whole-collection replace.

        A new user keeps its exported balance; an existing user keeps
        the balance it already has.
        """
        name = payload.user.name

        if create:
            self._users = [*self._users, User(name=name, balance=payload.user.balance)]
            self._repository.save_users(self._users)
            self._activity.log_user_created(name, payload.user.balance)
            if not self._main_user:
                self._set_main(name)

        self._repository.save_transactions(name, payload.transactions)
        if payload.templates is not None:
            self._repository.save_templates(name, payload.templates)
        if payload.tags is not None:
            self._repository.save_tags(name, payload.tags)

        self.select_user(name)
        self._activity.log_import(ActivityEventType.IMPORT_APPLIED, name, created_user=create)
        self._notify(MSG_IMPORT_DONE)
        return ImportOutcome(
            status=ImportStatus.APPLIED,
            user_name=name,
            created_user=create,
        )

    def _decline_import(self, payload: ExportPayload) -> ImportOutcome:
        self._activity.log_import(ActivityEventType.IMPORT_DECLINED, payload.user.name)
        return ImportOutcome(status=ImportStatus.CANCELLED, user_name=payload.user.name)


def create_store(settings: Optional[Settings] = None) -> KeyValueStoreInterface:
    """Build the configured key-value store backend."""
    store_settings = (settings or get_settings()).store
    if store_settings.backend == "memory":
        return InMemoryStore()
    return JsonFileStore(store_settings.data_dir, store_settings.write_retries)


def create_session(
    settings: Optional[Settings] = None,
    store: Optional[KeyValueStoreInterface] = None,
    today: Optional[Callable[[], date]] = None,
    alert: Optional[Callable[[str], None]] = None,
) -> MoneyTrackerSession:
    """
    Factory function to create a session from settings.

    Args:
        settings: Root settings. Defaults to the cached settings.
        store: Store to use instead of the configured backend
            (tests pass an InMemoryStore).
        today: Date source for "this month" and period bounds.
        alert: Callable receiving every user-visible message.

    Returns:
        A session with the main user selected, if there is one.
    """
    settings = settings or get_settings()
    configure_logging(settings.logging)

    repository = UserDataRepository(store or create_store(settings))
    return MoneyTrackerSession(
        repository,
        settings=settings.app,
        activity_logger=ActivityLogger(),
        today=today,
        alert=alert,
    )
