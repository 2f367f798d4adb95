"""Tests for the single-highlight editor surface."""

from __future__ import annotations

from spanmark.highlights.manager import HighlightManager
from spanmark.marker_constants import HIGHLIGHT_COLORS
from tests.helpers.pages import select


class TestEditorSurface:
    """Tests for opening, acting in and closing the editor."""

    def test_show_editor_prefills_comment(self, fox_document) -> None:
        """The draft starts from the saved comment."""
        manager = HighlightManager(fox_document)
        hid = manager.create(select(fox_document, "fox"), comment="old")

        editor = manager.show_editor(hid, 10, 20)

        assert editor is manager.editor
        assert editor.draft_comment == "old"
        assert (editor.x, editor.y) == (10, 20)
        assert editor.colors == HIGHLIGHT_COLORS
        assert editor.current_color == "#fff9e6"

    def test_only_one_editor_open(self, fox_document) -> None:
        """Opening a second editor closes the first."""
        manager = HighlightManager(fox_document)
        first_id = manager.create(select(fox_document, "quick"))
        second_id = manager.create(select(fox_document, "jumps"))

        first = manager.show_editor(first_id, 0, 0)
        second = manager.show_editor(second_id, 0, 0)

        assert first.closed
        assert manager.editor is second

    def test_show_editor_for_unknown_id(self, fox_document) -> None:
        """Unknown ids open nothing."""
        manager = HighlightManager(fox_document)

        assert manager.show_editor("missing", 0, 0) is None
        assert manager.editor is None

    def test_save_comment_trims_and_closes(self, fox_document) -> None:
        """Saving stores the trimmed comment and closes the editor."""
        manager = HighlightManager(fox_document)
        hid = manager.create(select(fox_document, "fox"))
        editor = manager.show_editor(hid, 0, 0)
        editor.draft_comment = "  nice  "

        editor.save_comment()

        assert manager.get(hid).comment == "nice"
        assert fox_document.find_comment(hid).text() == "(nice)"
        assert editor.closed
        assert manager.editor is None

    def test_clear_comment(self, fox_document) -> None:
        """Clearing removes the comment decoration."""
        manager = HighlightManager(fox_document)
        hid = manager.create(select(fox_document, "fox"), comment="note")

        manager.show_editor(hid, 0, 0).clear_comment()

        assert manager.get(hid).comment == ""
        assert fox_document.find_comment(hid) is None

    def test_choose_color(self, fox_document) -> None:
        """Choosing a color recolors the highlight."""
        manager = HighlightManager(fox_document)
        hid = manager.create(select(fox_document, "fox"))

        manager.show_editor(hid, 0, 0).choose_color(HIGHLIGHT_COLORS["soft green"])

        assert manager.get(hid).color == "#e8f5e8"

    def test_delete(self, fox_document) -> None:
        """Deleting removes the highlight and closes the editor."""
        manager = HighlightManager(fox_document)
        hid = manager.create(select(fox_document, "fox"))
        editor = manager.show_editor(hid, 0, 0)

        editor.delete()

        assert manager.get(hid) is None
        assert editor.closed
        assert manager.editor is None

    def test_close_discards_draft(self, fox_document) -> None:
        """Closing without saving drops the draft."""
        manager = HighlightManager(fox_document)
        hid = manager.create(select(fox_document, "fox"), comment="kept")
        editor = manager.show_editor(hid, 0, 0)
        editor.draft_comment = "unsaved"

        manager.hide_editor()

        assert editor.draft_comment == ""
        assert manager.get(hid).comment == "kept"

    def test_pointer_down_outside_closes(self, fox_document) -> None:
        """A press outside the editor and decorations closes it."""
        manager = HighlightManager(fox_document)
        hid = manager.create(select(fox_document, "quick"))
        manager.show_editor(hid, 0, 0)

        assert not manager.handle_pointer_down(fox_document.find_highlight(hid))
        assert not manager.handle_pointer_down(None, inside_editor=True)
        assert manager.editor is not None

        assert manager.handle_pointer_down(fox_document.tree.css_first("p"))
        assert manager.editor is None
