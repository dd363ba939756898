"""List rendering helpers for entry rows."""

from __future__ import annotations

from pocket_reader.models import READ_TAG, ContentType, Entry
from pocket_reader.parsing import format_timestamp
from pocket_reader.query import escape_rich_text, highlight_text, truncate_text
from pocket_reader.themes import THEME_COLORS, get_content_type_color, get_tag_color

TITLE_MAX_LEN = 90  # Longer titles are truncated in list rows

_ICON_SETS: dict[str, dict[str, str]] = {
    "unicode": {
        "favorite": "★",
        "archived": "▣",
        "read": "✓",
        ContentType.ARTICLE.value: "≡",
        ContentType.VIDEO.value: "▶",
        ContentType.PDF.value: "▤",
    },
    "ascii": {
        "favorite": "*",
        "archived": "A",
        "read": "v",
        ContentType.ARTICLE.value: "T",
        ContentType.VIDEO.value: "V",
        ContentType.PDF.value: "P",
    },
}
_ACTIVE_ICON_SET = _ICON_SETS["unicode"]


def set_ascii_icons(enabled: bool) -> None:
    """Switch list indicators between Unicode and ASCII modes."""
    global _ACTIVE_ICON_SET
    _ACTIVE_ICON_SET = _ICON_SETS["ascii"] if enabled else _ICON_SETS["unicode"]


def icon_for(name: str) -> str:
    return _ACTIVE_ICON_SET[name]


def _render_title_line(entry: Entry, highlight_terms: list[str]) -> str:
    """Build the title line with type, favorite and read indicators."""
    type_icon = f"[{get_content_type_color(entry.content_type)}]{icon_for(entry.content_type.value)}[/]"
    prefix_parts = [type_icon]
    if entry.favorite:
        prefix_parts.append(f"[{THEME_COLORS['yellow']}]{icon_for('favorite')}[/]")
    if entry.archived:
        prefix_parts.append(f"[{THEME_COLORS['muted']}]{icon_for('archived')}[/]")
    is_read = READ_TAG in entry.tags
    if is_read:
        prefix_parts.append(f"[{THEME_COLORS['muted']}]{icon_for('read')}[/]")

    title = truncate_text(entry.display_title, TITLE_MAX_LEN)
    if entry.title.strip():
        title_text = highlight_text(title, highlight_terms, THEME_COLORS["accent"])
    else:
        title_text = f"[italic {THEME_COLORS['muted']}]{escape_rich_text(title)}[/]"
    if is_read:
        title_text = f"[dim]{title_text}[/]"
    return f"{' '.join(prefix_parts)} {title_text}"


def _render_meta_line(entry: Entry) -> str:
    """Build the meta line with date, domain and tags."""
    parts = [
        f"[dim]{format_timestamp(entry.added_at)}[/]",
        f"[{THEME_COLORS['purple']}]{escape_rich_text(entry.domain or '-')}[/]",
    ]
    if entry.tags:
        parts.append(" ".join(f"[{get_tag_color(tag)}]#{escape_rich_text(tag)}[/]" for tag in entry.tags))
    return "  ".join(parts)


def render_entry_option(entry: Entry, highlight_terms: list[str] | None = None) -> str:
    """Render the two-line Rich markup used for one OptionList row."""
    terms = highlight_terms or []
    return f"{_render_title_line(entry, terms)}\n  {_render_meta_line(entry)}"


__all__ = [
    "TITLE_MAX_LEN",
    "icon_for",
    "render_entry_option",
    "set_ascii_icons",
]
