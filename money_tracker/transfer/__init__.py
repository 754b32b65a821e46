"""Import/export package."""

from money_tracker.transfer.codec import (
    MSG_INVALID_FORMAT,
    MSG_READ_FAILED,
    artifact_filename,
    build_payload,
    decode_artifact,
    encode_payload,
    export_artifact,
    find_conflicts,
    iso_timestamp,
)

__all__ = [
    "MSG_INVALID_FORMAT",
    "MSG_READ_FAILED",
    "artifact_filename",
    "build_payload",
    "decode_artifact",
    "encode_payload",
    "export_artifact",
    "find_conflicts",
    "iso_timestamp",
]
