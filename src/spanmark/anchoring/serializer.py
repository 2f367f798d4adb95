"""Turn a live range into a PositionDescriptor.

Must run before anything mutates the tree: decorating a range splits text
nodes, which changes the boundary nodes the context is read from.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from spanmark.anchoring.descriptor import PositionDescriptor
from spanmark.document import is_text_node

if TYPE_CHECKING:
    from spanmark.anchoring.text_range import TextRange

# Characters of context captured on each side of a selection
CONTEXT_WINDOW = 50


def extract_context(node: Any, offset: int, length: int) -> str:
    """Read up to ``abs(length)`` characters around *offset* in one text node.

    Positive *length* reads forwards from *offset*, negative reads the
    characters just before it.  Context never crosses into neighbouring
    nodes, so it may come back shorter near node edges.  Non-text nodes
    yield an empty string.
    """
    if not is_text_node(node):
        return ""
    text = node.text_content or ""
    if length > 0:
        return text[offset : min(offset + length, len(text))]
    start = max(0, offset + length)
    return text[start:offset]


def serialize_position(
    text_range: TextRange,
    source_url: str = "",
    *,
    window: int = CONTEXT_WINDOW,
) -> PositionDescriptor:
    """Build a descriptor for *text_range*.

    Args:
        text_range: Range over the unmutated document.
        source_url: Address of the page, stored for reference only.
        window: Context characters per side, capped at ``CONTEXT_WINDOW``.
    """
    window = min(window, CONTEXT_WINDOW)
    return PositionDescriptor(
        selected_text=text_range.text,
        before_text=extract_context(
            text_range.start_node, text_range.start_offset, -window
        ),
        after_text=extract_context(text_range.end_node, text_range.end_offset, window),
        source_url=source_url,
    )
