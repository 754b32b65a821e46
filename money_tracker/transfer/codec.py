"""
Import/Export Codec

ARTIFACT FORMAT:
    base64( utf-8( compact JSON of
        {"user": {...}, "transactions": {...}, "templates": [...],
         "tags": [...], "exportedAt": "2024-03-05T09:30:00.000Z"} ) )

The base64 layer keeps the file plain ASCII text, so it survives being
downloaded, mailed or pasted. File names are
`<prefix>-<user>-<YYYY-MM-DD>.txt`.

Import is whole-collection replace only; records are never merged.
"""

import base64
import binascii
import json
from datetime import date, datetime, timezone
from typing import Optional

from pydantic import ValidationError

from money_tracker.ledger.errors import ImportFormatFailure
from money_tracker.models.records import Tag, Template, TransactionsByMonth, User
from money_tracker.models.transfer import ExportArtifact, ExportPayload
from money_tracker.services.storage import (
    CorruptValueError,
    UserCollection,
    UserDataRepository,
)


MSG_INVALID_FORMAT = "Invalid file format"
MSG_READ_FAILED = "Failed to read file"


def iso_timestamp(moment: datetime) -> str:
    """UTC timestamp with millisecond precision and a 'Z' suffix."""
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def artifact_filename(prefix: str, user_name: str, on: date) -> str:
    """File name for an export. Path separators in the user name become '_'."""
    safe_name = user_name.replace("/", "_").replace("\\", "_")
    return f"{prefix}-{safe_name}-{on.isoformat()}.txt"


def build_payload(
    user: User,
    transactions: TransactionsByMonth,
    templates: list[Template],
    tags: list[Tag],
    exported_at: datetime,
) -> ExportPayload:
    return ExportPayload(
        user=user,
        transactions=transactions,
        templates=templates,
        tags=tags,
        exported_at=iso_timestamp(exported_at),
    )


def encode_payload(payload: ExportPayload) -> str:
    """Serialize a payload to artifact text."""
    data = payload.model_dump(mode="json", by_alias=True, exclude_none=True)
    text = json.dumps(data, ensure_ascii=False, separators=(",", ":"))
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def decode_artifact(content: str) -> ExportPayload:
    """
    Decode artifact text back into a payload.

    Raises:
        ImportFormatFailure: "Failed to read file" when the text is not
            base64/UTF-8/JSON; "Invalid file format" when the JSON does
            not carry a user and transactions
    """
    try:
        raw = base64.b64decode(content.strip(), validate=True)
        data = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError, ValueError):
        raise ImportFormatFailure(MSG_READ_FAILED)

    if not isinstance(data, dict):
        raise ImportFormatFailure(MSG_INVALID_FORMAT)

    try:
        payload = ExportPayload.model_validate(data)
    except ValidationError:
        raise ImportFormatFailure(MSG_INVALID_FORMAT)

    if payload.user is None or payload.transactions is None:
        raise ImportFormatFailure(MSG_INVALID_FORMAT)
    return payload


def export_artifact(
    payload: ExportPayload,
    prefix: str,
    exported_on: Optional[date] = None,
) -> ExportArtifact:
    """Package a payload as a named downloadable artifact."""
    if exported_on is None:
        exported_on = datetime.now(timezone.utc).date()
    return ExportArtifact(
        filename=artifact_filename(prefix, payload.user.name, exported_on),
        content=encode_payload(payload),
    )


def find_conflicts(
    repository: UserDataRepository,
    payload: ExportPayload,
) -> list[UserCollection]:
    """
    Collections whose stored value differs from the imported one.

    A collection only conflicts when something is stored for it and,
    for templates and tags, the import carries it at all.
    """
    name = payload.user.name
    imported = {
        UserCollection.TRANSACTIONS: payload.transactions,
        UserCollection.TEMPLATES: payload.templates,
        UserCollection.TAGS: payload.tags,
    }

    conflicts = []
    for collection, value in imported.items():
        if value is None:
            continue
        try:
            stored = repository.stored_canonical(name, collection)
        except CorruptValueError:
            conflicts.append(collection)
            continue
        if stored is None:
            continue
        if stored != repository.canonical(collection, value):
            conflicts.append(collection)
    return conflicts
