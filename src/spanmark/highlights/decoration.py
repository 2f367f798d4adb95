"""Decoration elements: build, attach, restyle and remove them.

This is the only code that mutates the document for annotation purposes.
selectolax has no reparenting API, so wrapping works by serialising the
selected content into a new ``<span>`` and inserting that (lexbor imports
a deep copy into the target document), then dropping the originals.
"""

from __future__ import annotations

import html as html_module
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal

from selectolax.lexbor import LexborHTMLParser

from spanmark.anchoring.text_range import same_node
from spanmark.document import ancestors, node_text
from spanmark.errors import DecorationAttachFailed
from spanmark.marker_constants import (
    COMMENT_CLASS,
    COMMENT_FOR_ATTR,
    HIGHLIGHT_CLASS,
    HIGHLIGHT_ID_ATTR,
)

if TYPE_CHECKING:
    from spanmark.anchoring.text_range import TextRange
    from spanmark.document import HtmlDocument

logger = logging.getLogger(__name__)

COMMENT_STYLE = (
    "font-size: 0.85em; color: #666; font-style: italic; "
    "margin-left: 4px; font-weight: 400; opacity: 0.8"
)

AttachKind = Literal["wrapped", "replaced"]


@dataclass(frozen=True)
class AttachResult:
    """Outcome of attaching a highlight decoration.

    ``kind`` is ``"wrapped"`` when the original content was wrapped in place
    and ``"replaced"`` when the fallback swapped it for plain text.
    """

    kind: AttachKind
    highlight_id: str
    text: str


def highlight_style(color: str) -> str:
    """Inline style for a highlight decoration in *color*."""
    return (
        f"background-color: {color}; cursor: pointer; padding: 1px 3px; "
        "border-radius: 3px; transition: opacity 0.2s ease"
    )


def _escape(text: str) -> str:
    return html_module.escape(text, quote=False)


def _make_element(markup: str) -> Any:
    """Parse *markup* and return its first body-level node."""
    body = LexborHTMLParser(markup).body
    node = body.child if body is not None else None
    if node is None:
        msg = f"Could not build element from {markup[:60]!r}"
        raise DecorationAttachFailed(msg)
    return node


def _highlight_element(highlight_id: str, color: str, inner_html: str) -> Any:
    style = html_module.escape(highlight_style(color), quote=True)
    return _make_element(
        f'<span class="{HIGHLIGHT_CLASS}" {HIGHLIGHT_ID_ATTR}="{highlight_id}" '
        f'style="{style}">{inner_html}</span>'
    )


def _comment_element(highlight_id: str, comment: str) -> Any:
    return _make_element(
        f'<span class="{COMMENT_CLASS}" {COMMENT_FOR_ATTR}="{highlight_id}" '
        f'style="{COMMENT_STYLE}">({_escape(comment)})</span>'
    )


def _siblings_between(start: Any, end: Any) -> list[Any]:
    """Siblings strictly between *start* and *end*, or raise if *end* never follows."""
    between: list[Any] = []
    node = start.next
    while node is not None:
        if same_node(node, end):
            return between
        between.append(node)
        node = node.next
    msg = "Range end is not a following sibling of its start"
    raise DecorationAttachFailed(msg)


def _splice(
    text_range: TextRange, decoration: Any | None, middle: list[Any]
) -> None:
    """Put *decoration* where the range was and drop the covered content.

    With no *decoration* only the covered content is dropped.

    Order matters: everything is inserted relative to the boundary nodes
    before any of them is destroyed.
    """
    start, end = text_range.start_node, text_range.end_node
    start_text = start.text_content or ""
    end_text = end.text_content or ""
    prefix = start_text[: text_range.start_offset]
    suffix = end_text[text_range.end_offset :]

    if prefix:
        start.insert_before(prefix)
    if decoration is not None:
        start.insert_before(decoration)

    for node in middle:
        node.decompose()

    if suffix:
        end.insert_before(suffix)
    end.decompose()
    if not text_range.same_container:
        start.decompose()


def wrap_in_place(text_range: TextRange, highlight_id: str, color: str) -> None:
    """Wrap the range's content, markup included, in a highlight decoration.

    Only possible when both boundary text nodes share a parent; otherwise
    the range partially selects an element and cannot be surrounded.

    Raises:
        DecorationAttachFailed: The range crosses element boundaries.
    """
    start, end = text_range.start_node, text_range.end_node
    start_text = start.text_content or ""

    if text_range.same_container:
        inner = _escape(start_text[text_range.start_offset : text_range.end_offset])
        middle: list[Any] = []
    else:
        if start.parent is None or not same_node(start.parent, end.parent):
            msg = "Range boundaries have different parents"
            raise DecorationAttachFailed(msg)
        middle = _siblings_between(start, end)
        end_text = end.text_content or ""
        inner = (
            _escape(start_text[text_range.start_offset :])
            + "".join(node.html or "" for node in middle)
            + _escape(end_text[: text_range.end_offset])
        )

    decoration = _highlight_element(highlight_id, color, inner)
    _splice(text_range, decoration, middle)


def _insertion_anchor(text_range: TextRange) -> Any | None:
    """Outermost ancestor of the start node that does not contain the end.

    Once the range is emptied the insertion point sits just after this
    element.  None means the start node's own parent contains the end, so
    the decoration goes directly before the start node.
    """
    end_chain = {a.mem_id for a in ancestors(text_range.end_node)}
    reference = text_range.start_node
    while reference.parent is not None and reference.parent.mem_id not in end_chain:
        reference = reference.parent
    if same_node(reference, text_range.start_node):
        return None
    return reference


def replace_contents(
    text_range: TextRange, highlight_id: str, color: str, text: str
) -> None:
    """Delete the range's contents and insert a decoration holding *text*.

    Partially selected elements keep their unselected parts; everything
    wholly inside the range is removed.
    """
    contained = text_range.contained_nodes()
    decoration = _highlight_element(highlight_id, color, _escape(text))
    anchor = _insertion_anchor(text_range)
    if anchor is None:
        _splice(text_range, decoration, contained)
        return
    anchor.insert_after(decoration)
    _splice(text_range, None, contained)


def attach_highlight(
    text_range: TextRange, highlight_id: str, color: str
) -> AttachResult:
    """Decorate *text_range*, falling back to plain-text replacement.

    Returns:
        AttachResult tagged with how the decoration was attached.
    """
    text = text_range.text
    try:
        wrap_in_place(text_range, highlight_id, color)
    except DecorationAttachFailed as exc:
        logger.info(
            "In-place wrap failed for %s (%s); using fallback", highlight_id, exc
        )
        replace_contents(text_range, highlight_id, color, text)
        return AttachResult(kind="replaced", highlight_id=highlight_id, text=text)
    return AttachResult(kind="wrapped", highlight_id=highlight_id, text=text)


def attach_comment(document: HtmlDocument, highlight_id: str, comment: str) -> bool:
    """Insert a comment decoration right after the highlight.

    Returns False when the highlight is no longer in the document.
    """
    highlight = document.find_highlight(highlight_id)
    if highlight is None or highlight.parent is None:
        return False
    highlight.insert_after(_comment_element(highlight_id, comment))
    return True


def detach_comment(document: HtmlDocument, highlight_id: str) -> bool:
    """Remove the comment decoration for *highlight_id*, if present."""
    comment = document.find_comment(highlight_id)
    if comment is None:
        return False
    comment.decompose()
    return True


def recolor_highlight(document: HtmlDocument, highlight_id: str, color: str) -> bool:
    """Restyle the live decoration. Returns False if it is gone."""
    highlight = document.find_highlight(highlight_id)
    if highlight is None:
        return False
    highlight.attrs["style"] = highlight_style(color)
    return True


def unwrap_highlight(document: HtmlDocument, highlight_id: str) -> bool:
    """Replace the decoration with a plain text node of its text content.

    Returns False if the decoration is already gone.
    """
    highlight = document.find_highlight(highlight_id)
    if highlight is None:
        return False
    text = node_text(highlight)
    if text:
        highlight.replace_with(text)
    else:
        highlight.decompose()
    return True
