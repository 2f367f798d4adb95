"""Live text ranges over a selectolax tree.

A ``TextRange`` plays the part of a browser ``Range`` whose boundaries are
both text nodes.  Node identity is compared by ``mem_id`` because
selectolax hands out a fresh Python wrapper on every traversal step.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from spanmark.document import ancestors, is_text_node, iter_nodes, iter_text_nodes


def same_node(a: Any, b: Any) -> bool:
    """Return True if *a* and *b* wrap the same underlying DOM node."""
    if a is None or b is None:
        return False
    return a.mem_id == b.mem_id


@dataclass(frozen=True)
class TextRange:
    """A span of document text between two (node, offset) boundaries.

    Attributes:
        start_node: Text node holding the first selected character.
        start_offset: Offset of the first selected character in start_node.
        end_node: Text node holding the boundary after the last character.
        end_offset: Offset just past the last selected character in end_node.
        root: Traversal root the range lives under (usually ``<body>``).
    """

    start_node: Any
    start_offset: int
    end_node: Any
    end_offset: int
    root: Any

    @property
    def collapsed(self) -> bool:
        return (
            same_node(self.start_node, self.end_node)
            and self.start_offset == self.end_offset
        )

    @property
    def same_container(self) -> bool:
        return same_node(self.start_node, self.end_node)

    @property
    def text(self) -> str:
        """The text the range covers, across every text node in between.

        Text inside non-rendered elements (script, style) between the two
        boundaries is included, matching ``Range.toString()``.
        """
        start_text = self.start_node.text_content or ""
        if self.same_container:
            return start_text[self.start_offset : self.end_offset]

        parts = [start_text[self.start_offset :]]
        inside = False
        for node in iter_text_nodes(self.root):
            if same_node(node, self.start_node):
                inside = True
                continue
            if not inside:
                continue
            if same_node(node, self.end_node):
                parts.append((node.text_content or "")[: self.end_offset])
                return "".join(parts)
            parts.append(node.text_content or "")

        # end_node never followed start_node: the range is inverted or stale
        return ""

    def is_valid(self) -> bool:
        """Check both boundaries are text nodes in order with in-bounds offsets."""
        if not (is_text_node(self.start_node) and is_text_node(self.end_node)):
            return False
        start_len = len(self.start_node.text_content or "")
        end_len = len(self.end_node.text_content or "")
        if not (0 <= self.start_offset <= start_len):
            return False
        if not (0 <= self.end_offset <= end_len):
            return False
        if self.same_container:
            return self.start_offset <= self.end_offset
        for node in iter_text_nodes(self.root):
            if same_node(node, self.start_node):
                return True
            if same_node(node, self.end_node):
                return False
        return False

    def common_ancestor(self) -> Any:
        """Nearest element containing both boundaries."""
        start_chain = {a.mem_id for a in ancestors(self.start_node)}
        for candidate in ancestors(self.end_node):
            if candidate.mem_id in start_chain:
                return candidate
        return self.root

    def contained_nodes(self) -> list[Any]:
        """Topmost nodes lying wholly inside the range, in document order.

        Boundary text nodes and the ancestors of either boundary are
        partially selected and never included.  The list is materialised
        so callers may mutate the tree afterwards.
        """
        if self.same_container:
            return []
        end_chain = {a.mem_id for a in ancestors(self.end_node)}
        picked: list[Any] = []
        picked_ids: set[int] = set()
        inside = False
        for node in iter_nodes(self.root):
            if same_node(node, self.start_node):
                inside = True
                continue
            if not inside:
                continue
            if same_node(node, self.end_node):
                break
            if node.mem_id in end_chain:
                continue
            if any(a.mem_id in picked_ids for a in ancestors(node)):
                continue
            picked.append(node)
            picked_ids.add(node.mem_id)
        return picked
