"""Shared test fixtures for Pocket Reader tests."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from pocket_reader.models import ContentType, Entry, EntryPatch
from pocket_reader.parsing import extract_domain
from pocket_reader.query import _HIGHLIGHT_PATTERN_CACHE
from pocket_reader.store import EntryStore
from pocket_reader.themes import DEFAULT_THEME, THEME_COLORS
from pocket_reader.widgets import set_ascii_icons

# Fixed "now" for store clocks: 2023-11-14 22:13:20 UTC
FIXED_NOW = 1_700_000_000

# ── Module-level state isolation ─────────────────────────────────────────────


@pytest.fixture(autouse=True)
def _reset_global_state():
    """Restore THEME_COLORS, icon mode and the highlight cache after each test.

    PocketReader.__init__ mutates these module-level objects. Without this
    fixture tests that instantiate the app would pollute later tests.
    """
    yield
    THEME_COLORS.clear()
    THEME_COLORS.update(DEFAULT_THEME)
    set_ascii_icons(False)
    _HIGHLIGHT_PATTERN_CACHE.clear()


# ── Factories ────────────────────────────────────────────────────────────────


@pytest.fixture
def make_entry():
    """Factory fixture for Entry instances; the domain follows the url."""

    def _make(
        entry_id: str = "1001",
        title: str = "Test Entry",
        url: str | None = None,
        content_type: ContentType = ContentType.ARTICLE,
        tags: tuple[str, ...] = (),
        added_at: int = FIXED_NOW - 3600,
        modified_at: int | None = None,
        **kwargs: Any,
    ) -> Entry:
        if url is None:
            url = f"https://example.com/{entry_id}"
        return Entry(
            id=entry_id,
            title=title,
            url=url,
            domain=extract_domain(url),
            content_type=content_type,
            tags=tags,
            added_at=added_at,
            modified_at=added_at if modified_at is None else modified_at,
            **kwargs,
        )

    return _make


@pytest.fixture
def make_patch():
    """Factory fixture for a complete server-side EntryPatch."""

    def _make(
        entry_id: str = "1001",
        modified_at: int = FIXED_NOW - 3600,
        title: str = "Test Entry",
        url: str | None = None,
        tags: tuple[str, ...] = (),
        added_at: int | None = None,
        **kwargs: Any,
    ) -> EntryPatch:
        kwargs.setdefault("content_type", ContentType.ARTICLE)
        kwargs.setdefault("favorite", False)
        kwargs.setdefault("archived", False)
        kwargs.setdefault("deleted", False)
        kwargs.setdefault("replace_tags", True)
        return EntryPatch(
            id=entry_id,
            modified_at=modified_at,
            title=title,
            url=url if url is not None else f"https://example.com/{entry_id}",
            tags=tags,
            added_at=added_at if added_at is not None else modified_at,
            **kwargs,
        )

    return _make


@pytest.fixture
def make_store(make_entry):
    """Factory fixture for an EntryStore with a fixed clock and given entries."""

    def _make(*entries: Entry, now: int = FIXED_NOW) -> EntryStore:
        store = EntryStore(clock=lambda: now)
        store.restore(entries)
        return store

    return _make


@pytest.fixture
def sample_store(make_entry, make_store):
    """Five live entries plus one archived and one deleted, newest first by id."""
    return make_store(
        make_entry("e1", "Rust ownership explained", "https://blog.rust-lang.org/own", tags=("rust",), added_at=FIXED_NOW - 100),
        make_entry("e2", "Async Python patterns", "https://realpython.com/async", tags=("python", "top"), added_at=FIXED_NOW - 200),
        make_entry("e3", "Kernel news", "https://lwn.net/Articles/1", tags=("linux",), added_at=FIXED_NOW - 300),
        make_entry(
            "e4",
            "Talk on borrow checking",
            "https://www.youtube.com/watch?v=abc",
            content_type=ContentType.VIDEO,
            tags=("rust", "talk"),
            added_at=FIXED_NOW - 400,
        ),
        make_entry("e5", "Spec sheet", "https://lwn.net/doc.pdf", content_type=ContentType.PDF, added_at=FIXED_NOW - 500),
        make_entry("e6", "Old archived piece", "https://lwn.net/old", archived=True, added_at=FIXED_NOW - 600),
        make_entry("e7", "Gone", "https://example.com/gone", deleted=True, added_at=FIXED_NOW - 700),
    )


class FakePersistence:
    """In-memory Persistence used by app and CLI tests."""

    def __init__(self, data: bytes | None = None) -> None:
        self.data = data
        self.saves = 0

    def load_bytes(self) -> bytes | None:
        return self.data

    def save_bytes(self, data: bytes) -> None:
        self.data = data
        self.saves += 1


@pytest.fixture
def fake_persistence():
    return FakePersistence()


@pytest.fixture
def make_app(sample_store, fake_persistence):
    """Factory for an offline PocketReader that never touches the real config file."""
    from pocket_reader.app import PocketReader
    from pocket_reader.models import UserConfig
    from pocket_reader.services.interfaces import AppServices

    def _make(store: EntryStore | None = None, config: UserConfig | None = None, **kwargs: Any) -> PocketReader:
        kwargs.setdefault("offline", True)
        kwargs.setdefault("restore_session", False)
        services = AppServices(tokens=MagicMock(), transport=MagicMock(), persistence=fake_persistence)
        return PocketReader(
            store if store is not None else sample_store,
            config or UserConfig(),
            services=services,
            **kwargs,
        )

    with patch("pocket_reader.app.save_config", return_value=True):
        yield _make
