"""Flattened text view of a document, used for pattern search.

Walks the DOM in document order and concatenates the content of every
renderable text node, recording where each node's characters fall in the
buffer.  Text inside script/style-like elements or inside existing
decorations is skipped so that already-annotated text is never matched
again (that would nest decorations and corrupt offsets).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from spanmark.anchoring.text_range import TextRange
from spanmark.document import is_decoration
from spanmark.marker_constants import NON_RENDERED_TAGS, TEXT_NODE_TAG

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Segment:
    """One text node's contribution to the buffer."""

    node: Any
    start: int  # inclusive buffer offset
    end: int  # exclusive buffer offset


@dataclass
class TextIndex:
    """Concatenated buffer plus per-node segment boundaries."""

    root: Any
    buffer: str = ""
    segments: list[Segment] = field(default_factory=list)

    def find(self, pattern: str) -> int:
        """Return the leftmost buffer offset of *pattern*, or -1."""
        return self.buffer.find(pattern)

    def locate_start(self, offset: int) -> tuple[Any, int] | None:
        """Map a start offset to the first segment whose end lies past it."""
        for seg in self.segments:
            if seg.end > offset:
                return seg.node, offset - seg.start
        return None

    def locate_end(self, offset: int) -> tuple[Any, int] | None:
        """Map an end offset to the first segment that reaches it."""
        for seg in self.segments:
            if seg.end >= offset:
                return seg.node, offset - seg.start
        return None

    def range_for(self, start: int, end: int) -> TextRange | None:
        """Build a live range covering ``buffer[start:end]``.

        Returns None when either offset falls outside every segment.
        """
        start_pos = self.locate_start(start)
        end_pos = self.locate_end(end)
        if start_pos is None or end_pos is None:
            return None
        start_node, start_offset = start_pos
        end_node, end_offset = end_pos
        return TextRange(
            start_node=start_node,
            start_offset=start_offset,
            end_node=end_node,
            end_offset=end_offset,
            root=self.root,
        )

    def range_of(self, needle: str, occurrence: int = 0) -> TextRange | None:
        """Range over the *occurrence*-th (0-based) match of *needle*.

        Stands in for a user selection when driving the engine from code.
        """
        if not needle:
            return None
        pos = -1
        for _ in range(occurrence + 1):
            pos = self.buffer.find(needle, pos + 1)
            if pos == -1:
                return None
        return self.range_for(pos, pos + len(needle))


def _walk(node: Any, parts: list[str], segments: list[Segment], pos: int) -> int:
    """Append included text under *node* and return the new buffer length."""
    child = node.child
    while child is not None:
        tag = child.tag
        if tag == TEXT_NODE_TAG:
            text = child.text_content or ""
            if text:
                segments.append(Segment(node=child, start=pos, end=pos + len(text)))
                parts.append(text)
                pos += len(text)
        elif tag not in NON_RENDERED_TAGS and not is_decoration(child):
            pos = _walk(child, parts, segments, pos)
        child = child.next
    return pos


def build_text_index(root: Any) -> TextIndex:
    """Build a fresh index of every renderable, undecorated text node.

    Args:
        root: Traversal root, normally the document ``<body>``.

    Returns:
        TextIndex whose buffer is the plain concatenation of included text
        nodes (no separators) and whose segments map buffer offsets back to
        nodes.
    """
    parts: list[str] = []
    segments: list[Segment] = []
    total = _walk(root, parts, segments, 0)
    logger.debug("Built text index: %d segments, %d chars", len(segments), total)
    return TextIndex(root=root, buffer="".join(parts), segments=segments)
