"""Error kinds raised inside the anchoring and highlight core.

None of these are fatal: each one is recovered close to where it is
raised, degrading to "this annotation is not restored" or "this operation
is a no-op".
"""

from __future__ import annotations


class SpanmarkError(Exception):
    """Base class for all spanmark errors."""


class ResolutionFailed(SpanmarkError):
    """A position descriptor no longer matches the document text."""


class MalformedRecord(SpanmarkError):
    """A persisted record or import payload could not be decoded."""


class DecorationAttachFailed(SpanmarkError):
    """A range could not be wrapped in place by a decoration element."""


class UnknownAnnotationId(SpanmarkError, KeyError):
    """An operation referenced an annotation id that is not in the store."""

    def __init__(self, annotation_id: str) -> None:
        super().__init__(annotation_id)
        self.annotation_id = annotation_id

    def __str__(self) -> str:
        return f"Unknown annotation id: {self.annotation_id}"


class ExportRejected(SpanmarkError):
    """There is nothing to export for the current page."""
