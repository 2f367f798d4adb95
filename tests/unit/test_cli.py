"""Tests for the spanmark command-line interface."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from spanmark import cli
from tests.helpers.pages import FOX_PAGE, PAGE_URL

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def page(tmp_path: Path) -> Path:
    path = tmp_path / "page.html"
    path.write_text(FOX_PAGE, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("SPANMARK_SESSION__LOAD_DELAY_MS", "0")
    monkeypatch.setenv("SPANMARK_APP__LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setattr(cli, "setup_logging", lambda log_dir=None: None)


def _run(page: Path, data_dir: Path, *args: str) -> int:
    command, *rest = args
    return cli.main(
        [command, str(page), "--url", PAGE_URL, "--data-dir", str(data_dir), *rest]
    )


class TestHighlightCommand:
    """Tests for ``spanmark highlight``."""

    def test_highlight_writes_page_and_saves(self, page, tmp_path) -> None:
        """The annotated page is written and the highlight persisted."""
        out = tmp_path / "out.html"
        data = tmp_path / "data"

        code = _run(page, data, "highlight", "--text", "brown fox", "-o", str(out))

        assert code == 0
        assert 'data-highlight-id="' in out.read_text(encoding="utf-8")
        (saved,) = list(data.iterdir())
        assert json.loads(saved.read_text())[0]["text"] == "brown fox"

    def test_highlight_missing_text(self, page, tmp_path) -> None:
        """Text that is not on the page exits with status 1."""
        code = _run(page, tmp_path / "data", "highlight", "--text", "zebra")

        assert code == 1

    def test_occurrence_must_be_positive(self, page, tmp_path) -> None:
        """--occurrence counts from 1."""
        code = _run(
            page, tmp_path / "data", "highlight", "--text", "fox", "--occurrence", "0"
        )

        assert code == 2


class TestRestoreExportImport:
    """Tests for restore, export and import commands."""

    def test_restore_reapplies_saved(self, page, tmp_path) -> None:
        """A later run restores what an earlier one saved."""
        data = tmp_path / "data"
        out = tmp_path / "restored.html"
        _run(page, data, "highlight", "--text", "quick", "--comment", "fast")

        code = _run(page, data, "restore", "-o", str(out))

        html = out.read_text(encoding="utf-8")
        assert code == 0
        assert "data-highlight-id" in html
        assert "(fast)" in html

    def test_export_nothing(self, page, tmp_path) -> None:
        """Export with no highlights exits with status 1."""
        code = _run(page, tmp_path / "data", "export", "-o", str(tmp_path / "bk"))

        assert code == 1

    def test_export_then_import(self, page, tmp_path) -> None:
        """A backup made by export imports into a fresh data directory."""
        backups = tmp_path / "bk"
        _run(page, tmp_path / "data", "highlight", "--text", "jumps")

        assert _run(page, tmp_path / "data", "export", "-o", str(backups)) == 0
        (backup,) = list(backups.iterdir())
        assert backup.name.startswith("annotations_backup_")

        out = tmp_path / "imported.html"
        code = _run(page, tmp_path / "fresh", "import", str(backup), "-o", str(out))

        assert code == 0
        assert "data-highlight-id" in out.read_text(encoding="utf-8")

    def test_import_unreadable_file(self, page, tmp_path) -> None:
        """A missing backup file exits with status 1."""
        code = _run(page, tmp_path / "data", "import", str(tmp_path / "nope.json"))

        assert code == 1

    def test_import_invalid_file(self, page, tmp_path) -> None:
        """A backup that is not valid JSON is rejected."""
        bad = tmp_path / "bad.json"
        bad.write_text("nope", encoding="utf-8")

        assert _run(page, tmp_path / "data", "import", str(bad)) == 1
