"""In-memory annotation records and id generation."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from spanmark.errors import UnknownAnnotationId

if TYPE_CHECKING:
    from collections.abc import Iterator

    from spanmark.anchoring.descriptor import PositionDescriptor

logger = logging.getLogger(__name__)


class IdGenerator:
    """Mint time-ordered ids that stay unique within one millisecond.

    Ids are a zero-padded millisecond timestamp plus a sequence number
    that restarts whenever the millisecond changes, so they sort in
    creation order as plain strings.
    """

    def __init__(self) -> None:
        self._last_ms = -1
        self._seq = 0

    def __call__(self) -> str:
        now_ms = time.time_ns() // 1_000_000
        if now_ms <= self._last_ms:
            # Same millisecond, or the clock stepped backwards
            now_ms = self._last_ms
            self._seq += 1
        else:
            self._last_ms = now_ms
            self._seq = 0
        return f"{now_ms:013d}-{self._seq:04d}"


generate_id = IdGenerator()


@dataclass
class Annotation:
    """A live highlight: a text span with a color and optional comment.

    The decoration node is not held here; it belongs to the document and
    is looked up by id whenever needed, so external re-renders can never
    leave a stale handle behind.
    """

    id: str
    color: str
    text: str
    position: PositionDescriptor
    comment: str = ""
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def has_comment(self) -> bool:
        return bool(self.comment.strip())


class AnnotationStore:
    """The per-page id -> Annotation mapping, in insertion order.

    Created when a document loads (``open``) and emptied when it unloads
    (``close``).  Only the highlight manager writes to it.
    """

    def __init__(self) -> None:
        self._annotations: dict[str, Annotation] = {}
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> None:
        """Start a fresh store for a newly loaded document."""
        self._annotations.clear()
        self._open = True

    def close(self) -> None:
        """Drop every record when the document unloads."""
        count = len(self._annotations)
        self._annotations.clear()
        self._open = False
        logger.debug("Annotation store closed (%d records dropped)", count)

    def add(self, annotation: Annotation) -> None:
        self._annotations[annotation.id] = annotation

    def get(self, annotation_id: str) -> Annotation | None:
        return self._annotations.get(annotation_id)

    def require(self, annotation_id: str) -> Annotation:
        """Return the annotation for *annotation_id*.

        Raises:
            UnknownAnnotationId: No such annotation is live.
        """
        try:
            return self._annotations[annotation_id]
        except KeyError:
            raise UnknownAnnotationId(annotation_id) from None

    def discard(self, annotation_id: str) -> Annotation | None:
        return self._annotations.pop(annotation_id, None)

    def ids(self) -> list[str]:
        return list(self._annotations)

    def __contains__(self, annotation_id: object) -> bool:
        return annotation_id in self._annotations

    def __iter__(self) -> Iterator[Annotation]:
        return iter(list(self._annotations.values()))

    def __len__(self) -> int:
        return len(self._annotations)
