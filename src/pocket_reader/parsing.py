"""Parsing of Pocket API payloads into entry patches."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from datetime import datetime, timedelta
from typing import Any
from urllib.parse import urlsplit

from pocket_reader.models import ContentType, DeltaBatch, EntryPatch, EntryStats, Snapshot

logger = logging.getLogger(__name__)

# Pocket item status values
STATUS_UNREAD = "0"
STATUS_ARCHIVED = "1"
STATUS_DELETED = "2"

_WHITESPACE_RUN = re.compile(r"\s+")


# ============================================================================
# Field helpers
# ============================================================================


def extract_domain(url: str) -> str:
    """Return the host part of a URL without scheme, credentials, port or a leading ``www.``.

    >>> extract_domain("https://user@www.example.com:8080/a/b")
    'example.com'
    """
    text = url.strip()
    if "://" not in text:
        text = "//" + text
    try:
        host = urlsplit(text).hostname or ""
    except ValueError:
        logger.debug("Unparseable URL %r", url)
        return ""
    if host.startswith("www."):
        host = host[4:]
    return host


def detect_content_type(url: str, has_video: str | None = None) -> ContentType:
    """Classify an item from its URL, with Pocket's ``has_video`` as a hint."""
    lowered = url.lower()
    if "youtube.com" in lowered or has_video == "2":
        return ContentType.VIDEO
    if "pdf" in lowered:
        return ContentType.PDF
    return ContentType.ARTICLE


def normalize_title(text: str) -> str:
    """Collapse newlines and runs of whitespace typed into a title prompt."""
    return _WHITESPACE_RUN.sub(" ", text).strip()


def parse_tag_list(raw: str) -> tuple[str, ...]:
    """Parse a comma-separated tag string, dropping blanks and duplicates."""
    seen: list[str] = []
    for part in raw.split(","):
        tag = part.strip().lower()
        if tag and tag not in seen:
            seen.append(tag)
    return tuple(seen)


def format_timestamp(timestamp: int) -> str:
    """Format epoch seconds as a YYYY-MM-DD date (local time)."""
    if timestamp <= 0:
        return "----------"
    return datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d")


def parse_date_bound(text: str) -> int | None:
    """Return the local epoch second just after a typed day, month or year.

    Accepts ``YYYY-MM-DD``, ``YYYY-MM`` and ``YYYY``; anything else is ``None``.

    >>> parse_date_bound("2024-02") == int(datetime(2024, 3, 1).timestamp())
    True
    """
    value = text.strip()
    for fmt in ("%Y-%m-%d", "%Y-%m", "%Y"):
        try:
            start = datetime.strptime(value, fmt)
            if fmt == "%Y-%m-%d":
                end = start + timedelta(days=1)
            elif fmt == "%Y-%m":
                end = start.replace(year=start.year + start.month // 12, month=start.month % 12 + 1)
            else:
                end = start.replace(year=start.year + 1)
        except (ValueError, OverflowError):
            continue
        return int(end.timestamp())
    return None


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _first_text(item: Mapping[str, Any], *keys: str) -> str | None:
    for key in keys:
        value = item.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return None


# ============================================================================
# Item and response parsing
# ============================================================================


def parse_item(item: Mapping[str, Any], *, fallback_time: int = 0) -> EntryPatch | None:
    """Convert one Pocket item object into an :class:`EntryPatch`.

    Deleted items come back with little more than an id and a status; those
    are stamped with ``fallback_time`` (the response's ``since``) when they
    carry no ``time_updated``. Returns ``None`` for records without an id.
    """
    item_id = item.get("item_id")
    if item_id in (None, ""):
        logger.warning("Skipping Pocket record without item_id: %r", sorted(item))
        return None

    modified_at = _as_int(item.get("time_updated"), fallback_time) or fallback_time
    status = str(item.get("status", STATUS_UNREAD))
    patch = EntryPatch(id=str(item_id), modified_at=modified_at)

    if status == STATUS_DELETED:
        patch.deleted = True
        return patch

    patch.deleted = False
    patch.archived = status == STATUS_ARCHIVED
    if "favorite" in item:
        patch.favorite = str(item.get("favorite")) == "1"

    url = _first_text(item, "resolved_url", "given_url")
    if url is not None:
        patch.url = url
        patch.content_type = detect_content_type(url, str(item.get("has_video", "")))
    title = _first_text(item, "given_title", "resolved_title")
    if title is not None:
        patch.title = title
    elif url is not None:
        patch.title = ""

    added_at = _as_int(item.get("time_added"))
    if added_at > 0:
        patch.added_at = added_at

    tags = item.get("tags")
    if isinstance(tags, Mapping):
        patch.tags = tuple(str(tag) for tag in tags)
        patch.replace_tags = True
    elif "tags" in item or url is not None:
        # Pocket omits the key entirely for untagged items
        patch.tags = ()
        patch.replace_tags = True

    word_count = _as_int(item.get("word_count"))
    duration = _as_int(item.get("listen_duration_estimate")) or _as_int(item.get("time_to_read")) * 60
    if word_count or duration:
        patch.stats = EntryStats(word_count=word_count, duration_seconds=duration)
    return patch


def parse_item_list(payload: Mapping[str, Any], *, fallback_time: int = 0) -> list[EntryPatch]:
    """Parse the ``list`` member of a ``/v3/get`` response in sort order.

    Pocket returns the list as an object keyed by id (``sort_id`` gives the
    order) or as an empty array when nothing matched.
    """
    raw = payload.get("list") or {}
    if isinstance(raw, Mapping):
        items = sorted(raw.values(), key=lambda it: _as_int(it.get("sort_id"), 0))
    elif isinstance(raw, list):
        items = list(raw)
    else:
        logger.warning("Unexpected Pocket list payload type: %s", type(raw).__name__)
        return []
    records: list[EntryPatch] = []
    for item in items:
        if not isinstance(item, Mapping):
            continue
        patch = parse_item(item, fallback_time=fallback_time)
        if patch is not None:
            records.append(patch)
    return records


def parse_delta_response(payload: Mapping[str, Any], since: int | None) -> DeltaBatch:
    """Build a :class:`DeltaBatch` from a ``/v3/get?since=`` response."""
    end_cursor = _as_int(payload.get("since"), since or 0) or since
    records = parse_item_list(payload, fallback_time=end_cursor or 0)
    return DeltaBatch(records=records, since=since, end_cursor=end_cursor)


def build_snapshot(pages: list[Mapping[str, Any]]) -> Snapshot:
    """Merge paginated ``/v3/get`` responses into one :class:`Snapshot`."""
    cursor: int | None = None
    records: list[EntryPatch] = []
    for page in pages:
        since = _as_int(page.get("since"))
        if since:
            cursor = since if cursor is None else min(cursor, since)
        records.extend(parse_item_list(page, fallback_time=since))
    return Snapshot(records=records, cursor=cursor)


__all__ = [
    "STATUS_ARCHIVED",
    "STATUS_DELETED",
    "STATUS_UNREAD",
    "build_snapshot",
    "detect_content_type",
    "extract_domain",
    "format_timestamp",
    "normalize_title",
    "parse_date_bound",
    "parse_delta_response",
    "parse_item",
    "parse_item_list",
    "parse_tag_list",
]
