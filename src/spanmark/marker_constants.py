"""Class names, attributes and tag sets shared by the anchoring core.

The text index uses these to skip content that is already decorated, and
the highlight code uses them to build and find decorations.  Both sides
must agree, so they live here rather than in either module.
"""

from __future__ import annotations

# selectolax (lexbor) reports text nodes with this tag name
TEXT_NODE_TAG = "-text"

# Non-renderable content never contributes to the text index
NON_RENDERED_TAGS = frozenset(("script", "style", "noscript", "template"))

HIGHLIGHT_CLASS = "highlight-text"
HIGHLIGHT_ID_ATTR = "data-highlight-id"

COMMENT_CLASS = "comment-display"
COMMENT_FOR_ATTR = "data-comment-for"

HIGHLIGHT_SELECTOR_TEMPLATE = '[data-highlight-id="{}"]'
COMMENT_SELECTOR_TEMPLATE = '[data-comment-for="{}"]'

# Soft palette offered by the editor surface
HIGHLIGHT_COLORS: dict[str, str] = {
    "soft yellow": "#fff9e6",
    "soft green": "#e8f5e8",
    "soft blue": "#e3f2fd",
    "soft pink": "#fce4ec",
    "soft purple": "#f3e5f5",
}
DEFAULT_COLOR = HIGHLIGHT_COLORS["soft yellow"]

# Hover feedback for decorations; inline styles cannot express :hover
HIGHLIGHT_CSS = f".{HIGHLIGHT_CLASS}:hover{{opacity:0.8}}"
STYLESHEET_ID = "spanmark-style"
