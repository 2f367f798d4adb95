"""HTML document wrapper and selectolax tree-walking helpers.

The helpers walk the DOM via selectolax child/next iteration, which
exposes text nodes (tag ``"-text"``).  Every walker in the package uses
the same pre-order so that text offsets agree between the serializer,
the text index and the decoration code.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit

from selectolax.lexbor import LexborHTMLParser

from spanmark.marker_constants import (
    COMMENT_CLASS,
    COMMENT_FOR_ATTR,
    COMMENT_SELECTOR_TEMPLATE,
    HIGHLIGHT_CLASS,
    HIGHLIGHT_CSS,
    HIGHLIGHT_ID_ATTR,
    HIGHLIGHT_SELECTOR_TEMPLATE,
    STYLESHEET_ID,
    TEXT_NODE_TAG,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger(__name__)


def is_text_node(node: Any) -> bool:
    """Return True if *node* is a text node."""
    return node is not None and node.tag == TEXT_NODE_TAG


def iter_nodes(root: Any) -> Iterator[Any]:
    """Yield every descendant of *root* in document (pre-order) order.

    *root* itself is not yielded.  Callers that mutate the tree must
    materialise the sequence first.
    """
    child = root.child
    while child is not None:
        yield child
        yield from iter_nodes(child)
        child = child.next


def iter_text_nodes(root: Any) -> Iterator[Any]:
    """Yield every text node under *root* in document order."""
    for node in iter_nodes(root):
        if node.tag == TEXT_NODE_TAG:
            yield node


def ancestors(node: Any) -> Iterator[Any]:
    """Yield the ancestors of *node*, nearest first."""
    parent = node.parent
    while parent is not None:
        yield parent
        parent = parent.parent


def node_text(node: Any) -> str:
    """Return the text of a text node, or the deep text of an element."""
    if node.tag == TEXT_NODE_TAG:
        return node.text_content or ""
    return node.text(deep=True) or ""


def is_decoration(node: Any) -> bool:
    """Return True for highlight and comment decoration elements."""
    if node.tag == TEXT_NODE_TAG:
        return False
    attrs = node.attributes
    if HIGHLIGHT_ID_ATTR in attrs or COMMENT_FOR_ATTR in attrs:
        return True
    classes = (attrs.get("class") or "").split()
    return HIGHLIGHT_CLASS in classes or COMMENT_CLASS in classes


def within_tags(node: Any, tags: frozenset[str]) -> bool:
    """Return True if *node* or any ancestor has a tag in *tags*."""
    if node.tag in tags:
        return True
    return any(a.tag in tags for a in ancestors(node))


def within_decoration(node: Any) -> bool:
    """Return True if *node* is, or sits inside, a decoration."""
    if is_decoration(node):
        return True
    return any(is_decoration(a) for a in ancestors(node))


def page_key_for(url: str) -> str:
    """Derive the persistence key for a page from its address (host + path)."""
    parts = urlsplit(url)
    host = parts.hostname or ""
    path = parts.path or "/"
    return f"highlights_{host}_{path}"


class HtmlDocument:
    """A parsed HTML page plus the address it was loaded from.

    Attributes:
        tree: The underlying selectolax parser (owns every node).
        url: Full page address, recorded in position descriptors.
    """

    def __init__(self, html: str, url: str = "about:blank") -> None:
        self.tree = LexborHTMLParser(html)
        self.url = url

    @classmethod
    def from_file(cls, path: Any, url: str | None = None) -> HtmlDocument:
        """Load a document from disk, defaulting the URL to a file: address."""
        file_path = Path(path)
        html = file_path.read_text(encoding="utf-8")
        return cls(html, url=url or file_path.resolve().as_uri())

    @property
    def root(self) -> Any:
        """The traversal root: ``<body>`` when present, else the tree root."""
        body = self.tree.body
        return body if body is not None else self.tree.root

    @property
    def page_key(self) -> str:
        return page_key_for(self.url)

    def find_highlight(self, highlight_id: str) -> Any | None:
        """Look up the live decoration for *highlight_id*, if still attached."""
        return self.tree.css_first(HIGHLIGHT_SELECTOR_TEMPLATE.format(highlight_id))

    def find_comment(self, highlight_id: str) -> Any | None:
        """Look up the comment decoration for *highlight_id*, if any."""
        return self.tree.css_first(COMMENT_SELECTOR_TEMPLATE.format(highlight_id))

    def ensure_stylesheet(self) -> None:
        """Inject the decoration hover rule into ``<head>`` once."""
        head = self.tree.head
        if head is None or self.tree.css_first(f"style#{STYLESHEET_ID}"):
            return
        style = LexborHTMLParser(
            f'<style id="{STYLESHEET_ID}">{HIGHLIGHT_CSS}</style>'
        ).css_first("style")
        head.insert_child(style)
        logger.debug("Injected decoration stylesheet")

    def text(self) -> str:
        """Visible-ish text of the traversal root (all text nodes)."""
        return "".join(node_text(n) for n in iter_text_nodes(self.root))

    @property
    def html(self) -> str:
        return self.tree.html or ""
