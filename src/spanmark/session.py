"""Per-page annotation session: the entry points the outside world calls.

A session ties one HtmlDocument to its HighlightManager and exposes the
message-style interface (``startAnnotating``, ``stopAnnotating``,
``exportAnnotations``, ``importAnnotations``) plus the two cooperative
suspension points: the selection debounce and the deferred load pass.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

from spanmark.codec import decode_import, encode
from spanmark.config import get_settings
from spanmark.document import within_decoration, within_tags
from spanmark.errors import DecorationAttachFailed, ExportRejected, MalformedRecord
from spanmark.highlights.manager import HighlightManager, RestoreSummary
from spanmark.highlights.store import AnnotationStore
from spanmark.marker_constants import NON_RENDERED_TAGS

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from spanmark.anchoring.text_range import TextRange
    from spanmark.config import Settings
    from spanmark.document import HtmlDocument
    from spanmark.persistence import AnnotationRepository

logger = logging.getLogger(__name__)

EXPORT_FILENAME_TEMPLATE = "annotations_backup_{:%Y%m%d_%H%M}.json"


@dataclass(frozen=True)
class ExportArtifact:
    """Export payload plus a suggested, timestamped file name."""

    filename: str
    payload: bytes
    count: int


@dataclass(frozen=True)
class ImportResult:
    """Outcome of an import, with a message suitable for the user."""

    success: bool
    message: str
    restored: int = 0
    skipped: int = 0


class AnnotationSession:
    """Annotation state for one loaded page.

    Attributes:
        document: The page.
        manager: Highlight manager for the page (single writer).
        active: Whether new selections create highlights.
    """

    def __init__(
        self,
        document: HtmlDocument,
        *,
        repository: AnnotationRepository | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings if settings is not None else get_settings()
        self.document = document
        self.manager = HighlightManager(
            document,
            store=AnnotationStore(),
            repository=repository,
            default_color=self.settings.anchor.default_color,
            context_chars=self.settings.anchor.context_chars,
        )
        self.active = False
        self._load_started = False

    # --- Activation ---

    def start(self) -> None:
        self.active = True
        logger.debug("Annotating started on %s", self.document.url)

    def stop(self) -> None:
        """Stop annotating; also closes any open editor."""
        self.active = False
        self.manager.hide_editor()
        logger.debug("Annotating stopped on %s", self.document.url)

    # --- Suspension points ---

    async def load_when_ready(self) -> RestoreSummary:
        """Run the load pass once, after the page has had time to settle.

        Resolving against a half-built tree would report spurious misses,
        so the pass waits ``session.load_delay_ms`` first.
        """
        if self._load_started:
            return RestoreSummary()
        self._load_started = True
        await asyncio.sleep(self.settings.session.load_delay_ms / 1000)
        return self.manager.restore_saved()

    async def on_selection_end(
        self,
        read_selection: Callable[[], TextRange | None],
        target: Any = None,
        *,
        inside_editor: bool = False,
    ) -> str | None:
        """Handle the end of a pointer selection.

        Waits a short debounce so the selection state settles, then reads
        it via *read_selection* and highlights it if it qualifies.

        Returns:
            The new annotation id, or None if nothing was created.
        """
        if not self.active or inside_editor:
            return None
        if target is not None and within_decoration(target):
            return None

        await asyncio.sleep(self.settings.session.selection_debounce_ms / 1000)

        text_range = read_selection()
        if text_range is None or text_range.collapsed:
            return None
        if len(text_range.text.strip()) < self.settings.session.min_selection_chars:
            return None
        if within_tags(text_range.common_ancestor(), NON_RENDERED_TAGS):
            return None

        try:
            return self.manager.create(text_range)
        except DecorationAttachFailed:
            logger.warning("Could not highlight selection", exc_info=True)
            return None

    # --- Export / import ---

    def export_artifact(self, now: datetime | None = None) -> ExportArtifact:
        """Encode every live highlight for download.

        Raises:
            ExportRejected: There are no highlights on this page.
        """
        records = self.manager.export_all()
        if not records:
            msg = "No highlights found on this page; highlight some text first."
            raise ExportRejected(msg)
        now = now or datetime.now()
        return ExportArtifact(
            filename=EXPORT_FILENAME_TEMPLATE.format(now),
            payload=encode(records),
            count=len(records),
        )

    def import_artifact(self, payload: bytes | str) -> ImportResult:
        """Replace the page's highlights with those in *payload*.

        Malformed or empty payloads are rejected without touching the page.
        """
        try:
            records = decode_import(payload)
        except MalformedRecord as exc:
            logger.info("Rejected import: %s", exc)
            return ImportResult(
                success=False,
                message=f"Invalid backup file or empty data ({exc}).",
            )

        summary = self.manager.import_all(records)
        return ImportResult(
            success=True,
            message=(
                f"Restored {summary.restored} of {len(records)} highlight(s)."
            ),
            restored=summary.restored,
            skipped=summary.skipped,
        )

    # --- Message interface ---

    def handle_message(self, message: Mapping[str, Any]) -> dict[str, Any]:
        """Dispatch a ``{"action": ...}`` message and return its response."""
        action = message.get("action")
        if action == "startAnnotating":
            self.start()
            return {"success": True}
        if action == "stopAnnotating":
            self.stop()
            return {"success": True}
        if action == "getState":
            return {"isActive": self.active}
        if action == "exportAnnotations":
            return {
                "data": [
                    record.model_dump(mode="json", by_alias=True, exclude_none=True)
                    for record in self.manager.export_all()
                ]
            }
        if action == "importAnnotations":
            data = message.get("data")
            payload = data if isinstance(data, (bytes, str)) else json.dumps(data)
            result = self.import_artifact(payload)
            return {
                "success": result.success,
                "message": result.message,
                "restored": result.restored,
                "skipped": result.skipped,
            }

        logger.debug("Ignoring unknown action %r", action)
        return {"success": False, "message": f"Unknown action: {action!r}"}

    def unload(self) -> None:
        """Persist and clear the annotation set as the page goes away."""
        self.manager.close()
