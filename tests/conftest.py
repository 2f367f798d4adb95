"""Shared pytest fixtures for spanmark tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from spanmark.config import SessionConfig, Settings, get_settings
from spanmark.document import HtmlDocument
from spanmark.highlights.manager import HighlightManager
from spanmark.persistence import MemoryRepository
from tests.helpers.pages import FOX_PAGE, PAGE_URL

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path


@pytest.fixture(autouse=True)
def _reset_settings_cache() -> Iterator[None]:
    """Keep cached settings from leaking between tests."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fast_settings(tmp_path: Path) -> Settings:
    """Settings with no session delays and storage under tmp_path."""
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        session=SessionConfig(selection_debounce_ms=0, load_delay_ms=0),
        storage={"data_dir": tmp_path / "data"},
        app={"log_dir": tmp_path / "logs"},
    )


@pytest.fixture
def repository() -> MemoryRepository:
    return MemoryRepository()


@pytest.fixture
def fox_document() -> HtmlDocument:
    return HtmlDocument(FOX_PAGE, url=PAGE_URL)


@pytest.fixture
def manager_factory(
    repository: MemoryRepository,
) -> Callable[[HtmlDocument], HighlightManager]:
    """Build managers that share the in-memory repository."""

    def _factory(document: HtmlDocument) -> HighlightManager:
        return HighlightManager(document, repository=repository)

    return _factory
