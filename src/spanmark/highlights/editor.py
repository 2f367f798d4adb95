"""Transient editor surface for a single highlight.

Only one editor is open at a time; the manager owns it.  Closing an
editor discards whatever draft it holds.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from spanmark.marker_constants import HIGHLIGHT_COLORS

if TYPE_CHECKING:
    from spanmark.highlights.manager import HighlightManager


@dataclass
class EditorSurface:
    """Color picker, comment box and delete action for one highlight."""

    manager: HighlightManager
    highlight_id: str
    x: float
    y: float
    draft_comment: str = ""
    colors: dict[str, str] = field(default_factory=lambda: dict(HIGHLIGHT_COLORS))
    closed: bool = False

    @property
    def current_color(self) -> str | None:
        annotation = self.manager.store.get(self.highlight_id)
        return annotation.color if annotation else None

    def save_comment(self, text: str | None = None) -> None:
        """Store the (trimmed) comment and close."""
        value = self.draft_comment if text is None else text
        self.manager.update_comment(self.highlight_id, value.strip())
        self.close()

    def clear_comment(self) -> None:
        self.manager.update_comment(self.highlight_id, "")
        self.close()

    def choose_color(self, color: str) -> None:
        self.manager.change_color(self.highlight_id, color)
        self.close()

    def delete(self) -> None:
        self.manager.remove(self.highlight_id)
        self.close()

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.draft_comment = ""
        self.manager._forget_editor(self)
