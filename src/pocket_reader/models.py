"""Data models and constants for the Pocket Reader application."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum

# Application identity used for platformdirs config and data paths
CONFIG_APP_NAME = "pocket-reader"

# Tags with behavior attached by the client
READ_TAG = "read"
TOP_TAG = "top"

# Placeholder shown for entries whose title is empty
EMPTY_TITLE_PLACEHOLDER = "[empty]"

# Tag filter semantics for multi-tag selections
TAG_MATCH_MODES = ("and", "or")

DEFAULT_PAGE_SIZE = 13
DEFAULT_SYNC_INTERVAL_MINUTES = 10
DOMAIN_STATS_LIMIT = 40

# Fields the merge rule compares one at a time
MERGE_FIELDS: tuple[str, ...] = (
    "title",
    "url",
    "content_type",
    "tags",
    "favorite",
    "archived",
    "deleted",
    "stats",
)
FLAG_FIELDS: tuple[str, ...] = ("favorite", "archived", "deleted")

# Filter predicate kinds
FILTER_TYPE = "type"
FILTER_TAG = "tag"
FILTER_DOMAIN = "domain"
FILTER_TEXT = "text"

# One timed tag change: (time, tags, replace)
TagStep = tuple[int, tuple[str, ...], bool]

# Opaque resume token. The Pocket API hands out epoch seconds.
Cursor = int


class ContentType(str, Enum):
    """Kind of saved item."""

    ARTICLE = "article"
    VIDEO = "video"
    PDF = "pdf"

    @property
    def label(self) -> str:
        return _CONTENT_TYPE_LABELS[self]


_CONTENT_TYPE_LABELS = {
    ContentType.ARTICLE: "Articles",
    ContentType.VIDEO: "Videos",
    ContentType.PDF: "PDFs",
}


class ViewMode(str, Enum):
    """Active interaction mode. Exactly one is current at any time."""

    BROWSE = "browse"
    TAG_BROWSER = "tag-browser"
    TYPE_BROWSER = "type-browser"
    DOMAIN_BROWSER = "domain-browser"
    SEARCH_INPUT = "search-input"
    RENAME_PROMPT = "rename-prompt"
    DATE_PROMPT = "date-prompt"
    TAG_EDITOR = "tag-editor"
    CONFIRM_DELETE = "confirm-delete"
    HELP = "help"
    STATS = "stats"
    SHUTDOWN = "shutdown"

    @property
    def is_modal(self) -> bool:
        return self not in (ViewMode.BROWSE, ViewMode.SHUTDOWN)


@dataclass(slots=True, frozen=True)
class EntryStats:
    """Optional size information filled in by the remote source."""

    word_count: int = 0
    duration_seconds: int = 0
    page_count: int = 0


@dataclass(slots=True, frozen=True)
class Entry:
    """One saved item as held by the entry store.

    ``field_times`` records when each merge field was last written so that
    older records never overwrite newer values.
    """

    id: str
    title: str = ""
    url: str = ""
    domain: str = ""
    content_type: ContentType = ContentType.ARTICLE
    tags: tuple[str, ...] = ()
    added_at: int = 0
    modified_at: int = 0
    favorite: bool = False
    archived: bool = False
    deleted: bool = False
    stats: EntryStats | None = None
    field_times: Mapping[str, int] = field(default_factory=dict)

    @property
    def display_title(self) -> str:
        return self.title if self.title.strip() else EMPTY_TITLE_PLACEHOLDER

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags

    def field_time(self, name: str) -> int:
        return self.field_times.get(name, self.modified_at)


@dataclass(slots=True)
class EntryPatch:
    """A full or partial entry update from a snapshot, delta, or local intent.

    ``None`` means the field is absent from the record. Per-field timestamps
    in ``field_times`` override the record-level ``modified_at``.

    ``tag_steps`` is set on patches folded from several records: each
    ``(time, tags, replace)`` step is one record's tag change, in application
    order, with non-decreasing times. When empty, ``tags`` is the only step.
    """

    id: str
    modified_at: int = 0
    title: str | None = None
    url: str | None = None
    content_type: ContentType | None = None
    tags: tuple[str, ...] | None = None
    replace_tags: bool = False
    added_at: int | None = None
    favorite: bool | None = None
    archived: bool | None = None
    deleted: bool | None = None
    stats: EntryStats | None = None
    field_times: dict[str, int] = field(default_factory=dict)
    tag_steps: tuple[TagStep, ...] = ()

    def time_of(self, name: str) -> int:
        return self.field_times.get(name, self.modified_at)

    def tag_changes(self) -> tuple[TagStep, ...]:
        if self.tag_steps:
            return self.tag_steps
        if self.tags is None:
            return ()
        return ((self.time_of("tags"), self.tags, self.replace_tags),)

    def present_fields(self) -> list[str]:
        return [name for name in MERGE_FIELDS if getattr(self, name) is not None]


@dataclass(slots=True)
class Snapshot:
    """Full listing of the remote list, used for bootstrap and full refresh."""

    records: list[EntryPatch] = field(default_factory=list)
    cursor: Cursor | None = None


@dataclass(slots=True)
class DeltaBatch:
    """Ordered entry mutations since ``since``; ``end_cursor`` resumes after them."""

    records: list[EntryPatch] = field(default_factory=list)
    since: Cursor | None = None
    end_cursor: Cursor | None = None

    def __len__(self) -> int:
        return len(self.records)


@dataclass(slots=True, frozen=True)
class OutgoingMutation:
    """A local change waiting to be pushed to the remote service."""

    action: str
    item_id: str
    timestamp: int
    args: Mapping[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class MergeReport:
    """Outcome of folding one batch into the store."""

    created: int = 0
    updated: int = 0
    stale_fields: int = 0
    cancelled: bool = False

    @property
    def changed(self) -> int:
        return self.created + self.updated


@dataclass(slots=True)
class FilterState:
    """Active predicates, all combined with AND.

    ``order`` lists the active predicate kinds from oldest to newest so the
    most recently activated one can be cleared first.
    """

    content_type: ContentType | None = None
    tags: tuple[str, ...] = ()
    domain: str | None = None
    text: str = ""
    show_archived: bool = False
    order: list[str] = field(default_factory=list)

    def _touch(self, kind: str, active: bool) -> None:
        if kind in self.order:
            self.order.remove(kind)
        if active:
            self.order.append(kind)

    def set_type(self, content_type: ContentType | None) -> None:
        self.content_type = content_type
        self._touch(FILTER_TYPE, content_type is not None)

    def set_tags(self, tags: tuple[str, ...]) -> None:
        self.tags = tuple(dict.fromkeys(tags))
        self._touch(FILTER_TAG, bool(self.tags))

    def toggle_tag(self, tag: str) -> None:
        if tag in self.tags:
            self.set_tags(tuple(t for t in self.tags if t != tag))
        else:
            self.set_tags((*self.tags, tag))

    def set_domain(self, domain: str | None) -> None:
        self.domain = domain or None
        self._touch(FILTER_DOMAIN, self.domain is not None)

    def set_text(self, text: str) -> None:
        self.text = text.strip()
        self._touch(FILTER_TEXT, bool(self.text))

    def clear_kind(self, kind: str) -> None:
        if kind == FILTER_TYPE:
            self.set_type(None)
        elif kind == FILTER_TAG:
            self.set_tags(())
        elif kind == FILTER_DOMAIN:
            self.set_domain(None)
        elif kind == FILTER_TEXT:
            self.set_text("")

    def clear_last(self) -> str | None:
        """Clear the most recently activated predicate and return its kind."""
        if not self.order:
            return None
        kind = self.order[-1]
        self.clear_kind(kind)
        return kind

    def clear(self) -> None:
        for kind in list(self.order):
            self.clear_kind(kind)

    @property
    def is_empty(self) -> bool:
        return not self.order

    @property
    def narrows_by_index(self) -> bool:
        return bool(self.tags) or self.domain is not None


@dataclass(slots=True)
class QueryToken:
    """Token of the search box syntax (``tag:x``, ``type:pdf``, free text)."""

    value: str
    field: str | None = None
    phrase: bool = False


@dataclass(slots=True)
class SessionState:
    """State to restore on next run (selection, filters, etc.)."""

    selected_id: str | None = None
    current_filter: str = ""
    type_filter: str | None = None
    show_archived: bool = False

    def __post_init__(self) -> None:
        """Drop unknown type filters written by older versions."""
        if self.type_filter not in {None, *(ct.value for ct in ContentType)}:
            self.type_filter = None


@dataclass(slots=True)
class UserConfig:
    """User configuration that persists between sessions."""

    consumer_key: str = ""
    tag_match_mode: str = "and"
    show_archived: bool = False
    sync_interval_minutes: int = DEFAULT_SYNC_INTERVAL_MINUTES
    page_size: int = DEFAULT_PAGE_SIZE
    ascii_icons: bool = False
    theme_name: str = "monokai"
    session: SessionState = field(default_factory=SessionState)
    version: int = 1

    def __post_init__(self) -> None:
        if self.tag_match_mode not in TAG_MATCH_MODES:
            self.tag_match_mode = "and"
        if self.page_size < 1:
            self.page_size = DEFAULT_PAGE_SIZE
        if self.sync_interval_minutes < 0:
            self.sync_interval_minutes = 0


__all__ = [
    "CONFIG_APP_NAME",
    "DEFAULT_PAGE_SIZE",
    "DEFAULT_SYNC_INTERVAL_MINUTES",
    "DOMAIN_STATS_LIMIT",
    "EMPTY_TITLE_PLACEHOLDER",
    "FILTER_DOMAIN",
    "FILTER_TAG",
    "FILTER_TEXT",
    "FILTER_TYPE",
    "FLAG_FIELDS",
    "MERGE_FIELDS",
    "READ_TAG",
    "TAG_MATCH_MODES",
    "TOP_TAG",
    "ContentType",
    "Cursor",
    "DeltaBatch",
    "Entry",
    "EntryPatch",
    "EntryStats",
    "FilterState",
    "MergeReport",
    "OutgoingMutation",
    "QueryToken",
    "SessionState",
    "Snapshot",
    "TagStep",
    "UserConfig",
    "ViewMode",
]
