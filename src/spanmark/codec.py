"""Annotation Codec: JSON interchange for persistence and export/import.

The wire format is a JSON array of records with camelCase keys::

    [{"id": "...", "position": {"selectedText": "...", "beforeText": "...",
      "afterText": "...", "sourceURL": "..."}, "color": "#fff9e6",
      "comment": "", "text": "...", "timestamp": "2026-01-01T00:00:00Z"}]

Backups written by older versions used ``textPosition`` instead of
``position`` and ``url`` instead of ``sourceURL``; both are accepted.
"""

from __future__ import annotations

import logging
from datetime import datetime

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
)

from spanmark.anchoring.descriptor import PositionDescriptor
from spanmark.errors import MalformedRecord
from spanmark.marker_constants import DEFAULT_COLOR

logger = logging.getLogger(__name__)


class AnnotationRecord(BaseModel):
    """One annotation as persisted or exchanged."""

    model_config = ConfigDict(populate_by_name=True)

    id: str | None = None
    position: PositionDescriptor = Field(
        validation_alias=AliasChoices("position", "textPosition"),
    )
    color: str = DEFAULT_COLOR
    comment: str = ""
    text: str = ""
    timestamp: datetime | None = None
    url: str | None = None


_RECORDS = TypeAdapter(list[AnnotationRecord])


def encode(records: list[AnnotationRecord]) -> bytes:
    """Serialise *records* to pretty-printed JSON bytes."""
    return _RECORDS.dump_json(records, by_alias=True, exclude_none=True, indent=2)


def decode(data: bytes | str) -> list[AnnotationRecord]:
    """Parse interchange bytes back into records, preserving order.

    Raises:
        MalformedRecord: *data* is not valid JSON or does not match the
            record shape.
    """
    try:
        return _RECORDS.validate_json(data)
    except ValidationError as exc:
        msg = f"Malformed annotation data: {exc.error_count()} error(s)"
        raise MalformedRecord(msg) from exc


def decode_import(data: bytes | str) -> list[AnnotationRecord]:
    """Decode a user-supplied import payload, which must be non-empty.

    Raises:
        MalformedRecord: The payload is undecodable or holds no records.
    """
    records = decode(data)
    if not records:
        msg = "Import data is empty"
        raise MalformedRecord(msg)
    return records
