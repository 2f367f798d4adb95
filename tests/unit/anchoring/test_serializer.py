"""Tests for context extraction and position serialisation."""

from __future__ import annotations

from spanmark.anchoring.serializer import (
    CONTEXT_WINDOW,
    extract_context,
    serialize_position,
)
from tests.helpers.pages import PAGE_URL, make_document, select


class TestExtractContext:
    """Tests for reading context from a single text node."""

    def test_reads_backwards_for_negative_length(self) -> None:
        """Negative length returns the characters just before the offset."""
        doc = make_document("<p>abcdefgh</p>")
        node = doc.tree.css_first("p").child

        assert extract_context(node, 5, -3) == "cde"

    def test_reads_forwards_for_positive_length(self) -> None:
        """Positive length returns the characters from the offset on."""
        doc = make_document("<p>abcdefgh</p>")
        node = doc.tree.css_first("p").child

        assert extract_context(node, 5, 3) == "fgh"

    def test_clamped_at_node_edges(self) -> None:
        """Context stops at the start or end of the node."""
        doc = make_document("<p>abcdefgh</p>")
        node = doc.tree.css_first("p").child

        assert extract_context(node, 2, -10) == "ab"
        assert extract_context(node, 6, 10) == "gh"

    def test_element_node_gives_empty_string(self) -> None:
        """Only text nodes carry context."""
        doc = make_document("<p>abcdefgh</p>")

        assert extract_context(doc.tree.css_first("p"), 0, 5) == ""


class TestSerializePosition:
    """Tests for building position descriptors from ranges."""

    def test_fox_scenario(self, fox_document) -> None:
        """Selecting 'brown fox' records its neighbouring text as context."""
        text_range = select(fox_document, "brown fox")

        descriptor = serialize_position(text_range, PAGE_URL)

        assert descriptor.selected_text == "brown fox"
        assert descriptor.before_text == "The quick "
        assert descriptor.after_text == " jumps"
        assert descriptor.source_url == PAGE_URL

    def test_context_capped_at_window(self) -> None:
        """Long surrounding text is trimmed to the context window."""
        doc = make_document("<p>" + "x" * 80 + "TARGET" + "y" * 80 + "</p>")

        descriptor = serialize_position(select(doc, "TARGET"))

        assert descriptor.before_text == "x" * CONTEXT_WINDOW
        assert descriptor.after_text == "y" * CONTEXT_WINDOW

    def test_context_does_not_cross_nodes(self) -> None:
        """A selection filling its own element gets empty context."""
        doc = make_document("<p>alpha <b>beta</b> gamma</p>")

        descriptor = serialize_position(select(doc, "beta"))

        assert descriptor.before_text == ""
        assert descriptor.after_text == ""

    def test_smaller_window(self, fox_document) -> None:
        """A narrower window captures fewer characters."""
        descriptor = serialize_position(select(fox_document, "brown fox"), window=3)

        assert descriptor.before_text == "ck "
        assert descriptor.after_text == " ju"

    def test_window_never_exceeds_cap(self) -> None:
        """Requests for more context than the cap are clamped."""
        doc = make_document("<p>" + "x" * 80 + "TARGET</p>")

        descriptor = serialize_position(select(doc, "TARGET"), window=500)

        assert len(descriptor.before_text) == CONTEXT_WINDOW

    def test_selection_across_markup(self) -> None:
        """Selected text spans nodes; context comes from the boundary nodes."""
        doc = make_document("<p>The <b>quick</b> brown</p>")

        descriptor = serialize_position(select(doc, "he quick br"))

        assert descriptor.selected_text == "he quick br"
        assert descriptor.before_text == "T"
        assert descriptor.after_text == "own"
