"""Per-page storage of encoded annotation records.

One record per page identity (host + path).  Repositories only move
bytes; encoding and decoding belong to the codec.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Protocol

from spanmark.codec import decode
from spanmark.errors import MalformedRecord

if TYPE_CHECKING:
    from pathlib import Path

    from spanmark.codec import AnnotationRecord

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class AnnotationRepository(Protocol):
    """Storage interface for per-page annotation records.

    Both FileRepository and MemoryRepository implement this protocol,
    allowing them to be used interchangeably.
    """

    def load(self, key: str) -> bytes | None:
        """Return the stored payload for *key*, or None if there is none."""
        ...

    def save(self, key: str, payload: bytes) -> None:
        """Store *payload* under *key*, replacing any previous record."""
        ...

    def delete(self, key: str) -> None:
        """Remove the record for *key* if present."""
        ...


class MemoryRepository:
    """Dict-backed repository, used in tests and for throwaway sessions."""

    def __init__(self) -> None:
        self.records: dict[str, bytes] = {}

    def load(self, key: str) -> bytes | None:
        return self.records.get(key)

    def save(self, key: str, payload: bytes) -> None:
        self.records[key] = payload

    def delete(self, key: str) -> None:
        self.records.pop(key, None)


class FileRepository:
    """Stores each page's record as a JSON file under *data_dir*."""

    def __init__(self, data_dir: Path) -> None:
        self.data_dir = data_dir

    def path_for(self, key: str) -> Path:
        """Map a page key to a file name safe on every platform."""
        name = _UNSAFE_FILENAME_CHARS.sub("_", key).strip("_") or "highlights"
        return self.data_dir / f"{name}.json"

    def load(self, key: str) -> bytes | None:
        path = self.path_for(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None

    def save(self, key: str, payload: bytes) -> None:
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_bytes(payload)
        tmp_path.replace(path)

    def delete(self, key: str) -> None:
        self.path_for(key).unlink(missing_ok=True)


def load_records(
    repository: AnnotationRepository, key: str
) -> list[AnnotationRecord]:
    """Load the persisted records for *key*.

    A missing record is an empty set.  A malformed record is logged and
    also treated as an empty set, so one bad write never blocks the page.
    """
    payload = repository.load(key)
    if payload is None:
        logger.debug("No saved annotations for %s", key)
        return []
    try:
        records = decode(payload)
    except MalformedRecord:
        logger.warning(
            "Ignoring malformed annotation record for %s", key, exc_info=True
        )
        return []
    logger.debug("Loaded %d saved annotation(s) for %s", len(records), key)
    return records
