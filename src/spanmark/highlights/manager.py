"""Highlight Manager: owns the live annotation set for one document.

Every operation that decorates, restyles or un-decorates the page goes
through here, and every change is persisted straight away.  Operations on
ids that are not (or no longer) live are silent no-ops.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from spanmark.anchoring.resolver import resolve_position
from spanmark.anchoring.serializer import CONTEXT_WINDOW, serialize_position
from spanmark.anchoring.text_index import build_text_index
from spanmark.codec import AnnotationRecord, encode
from spanmark.document import within_decoration
from spanmark.errors import DecorationAttachFailed, UnknownAnnotationId
from spanmark.highlights.decoration import (
    attach_comment,
    attach_highlight,
    detach_comment,
    recolor_highlight,
    unwrap_highlight,
)
from spanmark.highlights.editor import EditorSurface
from spanmark.highlights.store import Annotation, AnnotationStore, generate_id
from spanmark.marker_constants import DEFAULT_COLOR
from spanmark.persistence import load_records

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from spanmark.anchoring.text_range import TextRange
    from spanmark.document import HtmlDocument
    from spanmark.persistence import AnnotationRepository

logger = logging.getLogger(__name__)


@dataclass
class RestoreSummary:
    """Counts from a load or import pass."""

    restored: int = 0
    skipped: int = 0
    ids: list[str] = field(default_factory=list)


class HighlightManager:
    """Creates, edits and removes highlights on one HtmlDocument.

    Attributes:
        document: The page being annotated.
        store: Live annotations keyed by id.
        repository: Where the page's record is persisted (None disables
            persistence).
    """

    def __init__(
        self,
        document: HtmlDocument,
        *,
        store: AnnotationStore | None = None,
        repository: AnnotationRepository | None = None,
        default_color: str = DEFAULT_COLOR,
        context_chars: int = CONTEXT_WINDOW,
    ) -> None:
        self.document = document
        self.store = store if store is not None else AnnotationStore()
        if not self.store.is_open:
            self.store.open()
        self.repository = repository
        self.default_color = default_color
        self.context_chars = context_chars
        self._editor: EditorSurface | None = None
        self._persist_suspended = False
        # Saved records the last load pass could not place; kept so a later
        # reload can try them again.
        self._unresolved: list[AnnotationRecord] = []

    # --- Lookup ---

    def _lookup(self, annotation_id: str, action: str) -> Annotation | None:
        try:
            return self.store.require(annotation_id)
        except UnknownAnnotationId:
            logger.debug("%s ignored: unknown annotation %s", action, annotation_id)
            return None

    def get(self, annotation_id: str) -> Annotation | None:
        return self.store.get(annotation_id)

    def __iter__(self) -> Iterator[Annotation]:
        return iter(self.store)

    def __len__(self) -> int:
        return len(self.store)

    # --- Highlight operations ---

    def create(
        self,
        text_range: TextRange,
        color: str | None = None,
        comment: str = "",
    ) -> str:
        """Annotate *text_range* and return the new annotation id.

        The position is serialised from the untouched range before the
        document is mutated.

        Raises:
            DecorationAttachFailed: The range is not attached to the document
                or covers no text.
        """
        if not text_range.is_valid():
            msg = "Range is not attached to the document"
            raise DecorationAttachFailed(msg)
        if not text_range.text:
            msg = "Range covers no text"
            raise DecorationAttachFailed(msg)

        color = color or self.default_color
        comment = comment or ""
        position = serialize_position(
            text_range, self.document.url, window=self.context_chars
        )
        annotation_id = generate_id()

        result = attach_highlight(text_range, annotation_id, color)
        self.document.ensure_stylesheet()

        annotation = Annotation(
            id=annotation_id,
            color=color,
            text=position.selected_text,
            position=position,
            comment=comment,
        )
        self.store.add(annotation)
        if annotation.has_comment:
            attach_comment(self.document, annotation_id, comment)

        logger.info(
            "Created highlight %s (%s): %r",
            annotation_id,
            result.kind,
            position.selected_text[:60],
        )
        self.persist()
        return annotation_id

    def update_comment(self, annotation_id: str, text: str) -> None:
        """Replace the comment on a highlight; blank text removes it."""
        annotation = self._lookup(annotation_id, "update_comment")
        if annotation is None:
            return

        annotation.comment = text or ""
        detach_comment(self.document, annotation_id)
        if annotation.has_comment:
            attach_comment(self.document, annotation_id, annotation.comment)

        logger.debug("Updated comment on %s", annotation_id)
        self.persist()

    def change_color(self, annotation_id: str, color: str) -> None:
        """Recolor a highlight whose decoration is still in the document."""
        annotation = self._lookup(annotation_id, "change_color")
        if annotation is None:
            return
        if not recolor_highlight(self.document, annotation_id, color):
            logger.debug("change_color ignored: %s has no decoration", annotation_id)
            return

        annotation.color = color
        logger.debug("Changed color of %s to %s", annotation_id, color)
        self.persist()

    def remove(self, annotation_id: str) -> None:
        """Remove a highlight, restoring its text as a plain text node."""
        annotation = self._lookup(annotation_id, "remove")
        if annotation is None:
            return

        detach_comment(self.document, annotation_id)
        if not unwrap_highlight(self.document, annotation_id):
            logger.debug("Decoration for %s was already gone", annotation_id)
        self.store.discard(annotation_id)
        if self._editor is not None and self._editor.highlight_id == annotation_id:
            self.hide_editor()

        logger.info("Removed highlight %s", annotation_id)
        self.persist()

    # --- Editor surface ---

    @property
    def editor(self) -> EditorSurface | None:
        return self._editor

    def show_editor(
        self, annotation_id: str, x: float, y: float
    ) -> EditorSurface | None:
        """Open the editor for a highlight, closing any editor already open."""
        self.hide_editor()
        annotation = self._lookup(annotation_id, "show_editor")
        if annotation is None:
            return None
        self._editor = EditorSurface(
            manager=self,
            highlight_id=annotation_id,
            x=x,
            y=y,
            draft_comment=annotation.comment,
        )
        return self._editor

    def hide_editor(self) -> None:
        if self._editor is not None:
            self._editor.close()

    def _forget_editor(self, editor: EditorSurface) -> None:
        if self._editor is editor:
            self._editor = None

    def handle_pointer_down(
        self, target: Any, *, inside_editor: bool = False
    ) -> bool:
        """Close the editor on a press outside it and outside any decoration.

        Returns:
            True if an editor was closed.
        """
        if self._editor is None or inside_editor:
            return False
        if target is not None and within_decoration(target):
            return False
        self.hide_editor()
        return True

    # --- Load / import / export ---

    def _restore(
        self, records: Iterable[AnnotationRecord], *, require_text_match: bool
    ) -> tuple[RestoreSummary, list[AnnotationRecord]]:
        summary = RestoreSummary()
        unresolved: list[AnnotationRecord] = []
        for record in records:
            # Each create mutates the tree, so the index is rebuilt every time
            index = build_text_index(self.document.root)
            text_range = resolve_position(record.position, index)
            if text_range is None or (
                require_text_match and record.text and text_range.text != record.text
            ):
                summary.skipped += 1
                unresolved.append(record)
                continue
            try:
                annotation_id = self.create(text_range, record.color, record.comment)
            except DecorationAttachFailed:
                logger.warning(
                    "Could not decorate restored highlight %r",
                    record.position.selected_text[:60],
                    exc_info=True,
                )
                summary.skipped += 1
                unresolved.append(record)
                continue
            summary.restored += 1
            summary.ids.append(annotation_id)
        return summary, unresolved

    def restore_saved(self) -> RestoreSummary:
        """Re-create highlights from the page's persisted record.

        Records that no longer resolve are skipped for this pass but kept in
        the persisted record so a later reload can try them again.
        """
        if self.repository is None:
            return RestoreSummary()
        records = load_records(self.repository, self.document.page_key)
        with self._deferred_persist(persist_on_exit=False):
            summary, unresolved = self._restore(records, require_text_match=True)
        self._unresolved = unresolved
        logger.info(
            "Load pass for %s: %d restored, %d skipped",
            self.document.page_key,
            summary.restored,
            summary.skipped,
        )
        return summary

    def import_all(self, records: Iterable[AnnotationRecord]) -> RestoreSummary:
        """Replace every highlight with those resolved from *records*.

        Records that fail to resolve are counted in ``skipped`` and dropped.
        """
        with self._deferred_persist():
            for annotation_id in self.store.ids():
                self.remove(annotation_id)
            self._unresolved = []
            summary, _unresolved = self._restore(records, require_text_match=False)
        logger.info(
            "Imported %d highlight(s), skipped %d", summary.restored, summary.skipped
        )
        return summary

    def export_all(self) -> list[AnnotationRecord]:
        """Live highlights as interchange records, in creation order."""
        now = datetime.now(UTC)
        return [
            AnnotationRecord(
                id=annotation.id,
                url=self.document.url,
                position=annotation.position,
                comment=annotation.comment,
                color=annotation.color,
                text=annotation.text,
                timestamp=now,
            )
            for annotation in self.store
        ]

    # --- Persistence ---

    @contextmanager
    def _deferred_persist(self, *, persist_on_exit: bool = True) -> Iterator[None]:
        """Hold back per-operation saves and write once at the end."""
        previous = self._persist_suspended
        self._persist_suspended = True
        try:
            yield
        finally:
            self._persist_suspended = previous
        if persist_on_exit:
            self.persist()

    def persist(self) -> None:
        """Write the current set (plus unresolved saved records) for this page.

        An empty set removes the page's record altogether.
        """
        if self.repository is None or self._persist_suspended:
            return
        now = datetime.now(UTC)
        records = [
            AnnotationRecord(
                id=annotation.id,
                position=annotation.position,
                comment=annotation.comment,
                color=annotation.color,
                text=annotation.text,
                timestamp=now,
            )
            for annotation in self.store
        ]
        records.extend(self._unresolved)
        if not records:
            self.repository.delete(self.document.page_key)
            logger.debug("Cleared saved highlights for %s", self.document.page_key)
            return
        self.repository.save(self.document.page_key, encode(records))
        logger.debug(
            "Saved %d highlight(s) for %s", len(records), self.document.page_key
        )

    def close(self) -> None:
        """Persist and drop the in-memory set when the document unloads."""
        self.hide_editor()
        self.persist()
        self.store.close()
