"""Filter/query engine plus search parsing and text formatting utilities."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from rich.markup import escape as escape_markup

from pocket_reader.models import (
    FILTER_DOMAIN,
    FILTER_TAG,
    FILTER_TEXT,
    FILTER_TYPE,
    ContentType,
    Entry,
    FilterState,
    QueryToken,
)
from pocket_reader.store import StoreView

# ============================================================================
# Text Formatting Utilities
# ============================================================================


def truncate_text(text: str, max_len: int, suffix: str = "...") -> str:
    """Truncate text to max_len characters, adding suffix if truncated.

    Args:
        text: The text to truncate.
        max_len: Maximum length before truncation (not including suffix).
        suffix: String to append when truncated.

    Returns:
        Original text if within limit, otherwise truncated with suffix.
    """
    if len(text) <= max_len:
        return text
    return text[:max_len] + suffix


def escape_rich_text(text: str) -> str:
    """Escape text for safe Rich markup rendering."""
    return escape_markup(text) if text else ""


_HIGHLIGHT_PATTERN_CACHE: dict[tuple[str, ...], re.Pattern[str]] = {}


def highlight_text(text: str, terms: list[str], color: str) -> str:
    """Highlight terms inside text using Rich markup."""
    if not text:
        return text
    escaped_text = escape_rich_text(text)
    normalized = sorted({term.strip() for term in terms if len(term.strip()) >= 2}, key=len, reverse=True)
    if not normalized:
        return escaped_text
    cache_key = tuple(normalized)
    pattern = _HIGHLIGHT_PATTERN_CACHE.get(cache_key)
    if pattern is None:
        escaped_terms = [escape_rich_text(term) for term in normalized]
        pattern = re.compile("|".join(re.escape(term) for term in escaped_terms), re.IGNORECASE)
        _HIGHLIGHT_PATTERN_CACHE[cache_key] = pattern
    return pattern.sub(lambda match: f"[bold {color}]{match.group(0)}[/]", escaped_text)


# ============================================================================
# Search Box Parsing
# ============================================================================

_FIELD_NAMES = frozenset({FILTER_TAG, FILTER_TYPE, FILTER_DOMAIN})

_TYPE_ALIASES: dict[str, ContentType] = {
    "article": ContentType.ARTICLE,
    "articles": ContentType.ARTICLE,
    "video": ContentType.VIDEO,
    "videos": ContentType.VIDEO,
    "yt": ContentType.VIDEO,
    "pdf": ContentType.PDF,
    "pdfs": ContentType.PDF,
}


def parse_content_type(value: str) -> ContentType | None:
    return _TYPE_ALIASES.get(value.strip().lower())


def _parse_quoted(query: str, i: int, query_len: int) -> tuple[str, int]:
    start = i
    while i < query_len and query[i] != '"':
        i += 1
    return query[start:i], i + 1


def tokenize_query(query: str) -> list[QueryToken]:
    """Split a search string into ``field:value`` tokens and free text."""
    tokens: list[QueryToken] = []
    i = 0
    query_len = len(query)
    while i < query_len:
        if query[i].isspace():
            i += 1
            continue
        if query[i] == '"':
            value, i = _parse_quoted(query, i + 1, query_len)
            tokens.append(QueryToken(value=value, phrase=True))
            continue
        start = i
        while i < query_len and not query[i].isspace() and query[i] != ":":
            i += 1
        if i < query_len and query[i] == ":":
            field = query[start:i].lower()
            if field in _FIELD_NAMES:
                i += 1
                if i < query_len and query[i] == '"':
                    value, i = _parse_quoted(query, i + 1, query_len)
                    tokens.append(QueryToken(value=value, field=field, phrase=True))
                    continue
                value_start = i
                while i < query_len and not query[i].isspace():
                    i += 1
                tokens.append(QueryToken(value=query[value_start:i], field=field))
                continue
        while i < query_len and not query[i].isspace():
            i += 1
        tokens.append(QueryToken(value=query[start:i]))
    return tokens


def pill_label_for_token(token: QueryToken) -> str:
    """Return a human-readable label for a query token pill.

    Examples: tag:rust, type:pdf, "exact phrase", kernel
    """
    value = f'"{token.value}"' if token.phrase else token.value
    return f"{token.field}:{value}" if token.field else value


def apply_search_query(filters: FilterState, query: str) -> None:
    """Apply a submitted search string to ``filters``.

    ``tag:`` tokens add tag predicates, ``type:`` and ``domain:`` replace
    their predicate, and the remaining words form the free-text predicate.
    Unknown ``type:`` values are treated as free text.
    """
    words: list[str] = []
    for token in tokenize_query(query.strip()):
        if not token.value:
            continue
        if token.field == FILTER_TAG:
            if token.value not in filters.tags:
                filters.toggle_tag(token.value)
        elif token.field == FILTER_TYPE:
            content_type = parse_content_type(token.value)
            if content_type is None:
                words.append(token.value)
            else:
                filters.set_type(content_type)
        elif token.field == FILTER_DOMAIN:
            filters.set_domain(token.value.lower())
        else:
            words.append(token.value)
    filters.set_text(" ".join(words))


def filters_to_query(filters: FilterState) -> str:
    """Inverse of :func:`apply_search_query` for tag, domain and text predicates.

    The type predicate is persisted separately and is not included.
    """
    tokens = [QueryToken(value=tag, field=FILTER_TAG, phrase=" " in tag) for tag in filters.tags]
    if filters.domain:
        tokens.append(QueryToken(value=filters.domain, field=FILTER_DOMAIN))
    parts = [pill_label_for_token(token) for token in tokens]
    if filters.text:
        parts.append(filters.text)
    return " ".join(parts)


def filter_pills(filters: FilterState) -> list[tuple[str, str]]:
    """Return (kind, label) pairs for the active predicates, oldest first."""
    pills: list[tuple[str, str]] = []
    for kind in filters.order:
        if kind == FILTER_TYPE and filters.content_type is not None:
            pills.append((kind, f"type:{filters.content_type.value}"))
        elif kind == FILTER_TAG:
            pills.extend((kind, pill_label_for_token(QueryToken(value=tag, field=FILTER_TAG))) for tag in filters.tags)
        elif kind == FILTER_DOMAIN and filters.domain:
            pills.append((kind, f"domain:{filters.domain}"))
        elif kind == FILTER_TEXT and filters.text:
            pills.append((kind, pill_label_for_token(QueryToken(value=filters.text, phrase=" " in filters.text))))
    return pills


# ============================================================================
# Query Engine
# ============================================================================


@dataclass(slots=True, frozen=True)
class ResultList:
    """Ordered ids matching a filter state at one store generation."""

    ids: tuple[str, ...] = ()
    generation: int = 0

    def __len__(self) -> int:
        return len(self.ids)

    def __getitem__(self, index: int) -> str:
        return self.ids[index]

    def position_of(self, entry_id: str | None) -> int | None:
        if entry_id is None:
            return None
        try:
            return self.ids.index(entry_id)
        except ValueError:
            return None


def entry_sort_key(entry: Entry) -> tuple[int, str]:
    """Newest first, ties broken by id."""
    return (-entry.added_at, entry.id)


def matches_text(entry: Entry, text: str) -> bool:
    needle = text.lower()
    return needle in entry.title.lower() or needle in entry.url.lower()


def entry_matches(entry: Entry, filters: FilterState, *, tag_match_mode: str = "and") -> bool:
    """Evaluate every active predicate plus the default exclusions."""
    if entry.deleted:
        return False
    if entry.archived and not filters.show_archived:
        return False
    if filters.content_type is not None and entry.content_type != filters.content_type:
        return False
    if filters.tags:
        held = [tag in entry.tags for tag in filters.tags]
        if not (any(held) if tag_match_mode == "or" else all(held)):
            return False
    if filters.domain is not None and entry.domain != filters.domain:
        return False
    return not filters.text or matches_text(entry, filters.text)


class QueryEngine:
    """Materializes the ordered result list for a filter state.

    Tag and domain predicates narrow the candidate set through the index
    before the remaining predicates are checked entry by entry.
    """

    def __init__(self, *, tag_match_mode: str = "and") -> None:
        self.tag_match_mode = tag_match_mode

    def candidates(self, view: StoreView, filters: FilterState) -> Iterable[str]:
        if not filters.narrows_by_index:
            return view.entries.keys()
        sets: list[frozenset[str]] = []
        if filters.tags:
            tag_sets = [view.index.ids_for_tag(tag) for tag in filters.tags]
            if self.tag_match_mode == "or":
                sets.append(frozenset().union(*tag_sets))
            else:
                sets.extend(tag_sets)
        if filters.domain is not None:
            sets.append(view.index.ids_for_domain(filters.domain))
        return frozenset.intersection(*sets)

    def compute(self, view: StoreView, filters: FilterState) -> ResultList:
        matched = []
        for entry_id in self.candidates(view, filters):
            entry = view.get(entry_id)
            if entry is not None and entry_matches(entry, filters, tag_match_mode=self.tag_match_mode):
                matched.append(entry)
        matched.sort(key=entry_sort_key)
        return ResultList(ids=tuple(entry.id for entry in matched), generation=view.generation)


__all__ = [
    "QueryEngine",
    "ResultList",
    "apply_search_query",
    "entry_matches",
    "entry_sort_key",
    "escape_rich_text",
    "filter_pills",
    "filters_to_query",
    "highlight_text",
    "matches_text",
    "parse_content_type",
    "pill_label_for_token",
    "tokenize_query",
    "truncate_text",
]
