"""Help screen section builders derived from runtime key bindings."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from textual.binding import Binding

HELP_SECTION_ACTIONS: list[tuple[str, list[str]]] = [
    (
        "Navigation",
        ["cursor_down", "cursor_up", "page_down", "page_up", "go_prefix", "cursor_end"],
    ),
    (
        "Search & Filter",
        [
            "toggle_search",
            "clear_filter",
            "tag_browser",
            "type_browser",
            "filter_domain",
            "domain_browser",
            "toggle_show_archived",
        ],
    ),
    (
        "Entry Actions",
        [
            "open_entry",
            "favorite_archive",
            "toggle_favorite",
            "toggle_archive",
            "toggle_top",
            "edit_tags",
            "rename",
            "rename_blank",
            "delete_entry",
        ],
    ),
    (
        "Sync & Views",
        ["refresh", "full_refresh", "show_stats", "cycle_theme", "show_help", "request_quit"],
    ),
]

# Key chords with no single binding, listed after a section's bindings
HELP_SECTION_EXTRAS: dict[str, list[tuple[str, str]]] = {
    "Navigation": [("g d", "Jump to date (YYYY-MM-DD)")],
}

HELP_SEARCH_SYNTAX: list[tuple[str, str]] = [
    ("tag:rust", "Entries tagged rust (repeat for more tags)"),
    ("type:pdf", "article, video or pdf"),
    ("domain:lwn.net", "Entries from one site"),
    ("<text>", "Title or URL contains text"),
    ('"quoted phrase"', "Match words together"),
]

HELP_DESCRIPTION_OVERRIDES: dict[str, str] = {
    "go_prefix": "Jump to first entry (g g)",
    "clear_filter": "Clear most recent filter",
    "show_help": "Help overlay",
}


def _format_help_key(key: str) -> str:
    """Normalize Textual key names for user-facing help text."""
    replacements = {
        "slash": "/",
        "space": "Space",
        "question_mark": "?",
        "escape": "Esc",
    }
    key = replacements.get(key, key)
    if key.startswith("ctrl+"):
        return "Ctrl+" + key.removeprefix("ctrl+")
    return key


def _iter_binding_definitions(
    bindings: Sequence[Binding | tuple[Any, ...]],
) -> list[Binding]:
    """Normalize App.BINDINGS entries into Binding objects."""
    normalized: list[Binding] = []
    for binding_item in bindings:
        if isinstance(binding_item, Binding):
            normalized.append(binding_item)
            continue
        key = str(binding_item[0]) if len(binding_item) > 0 else ""
        action = str(binding_item[1]) if len(binding_item) > 1 else ""
        description = str(binding_item[2]) if len(binding_item) > 2 else ""
        normalized.append(Binding(key, action, description, show=False))
    return normalized


def _keys_for_help_action(
    bindings: Sequence[Binding | tuple[Any, ...]],
    action_name: str,
) -> tuple[list[str], str]:
    """Return every key bound to ``action_name`` and the first description."""
    keys: list[str] = []
    description = ""
    for binding in _iter_binding_definitions(bindings):
        if binding.action == action_name:
            keys.append(_format_help_key(binding.key))
            description = description or binding.description
    return keys, description


def build_help_sections(
    bindings: Sequence[Binding | tuple[Any, ...]],
) -> list[tuple[str, list[tuple[str, str]]]]:
    """Build help sections from runtime key bindings."""
    sections: list[tuple[str, list[tuple[str, str]]]] = []
    for section_name, actions in HELP_SECTION_ACTIONS:
        entries: list[tuple[str, str]] = []
        for action_name in actions:
            keys, description = _keys_for_help_action(bindings, action_name)
            if not keys:
                continue
            description = HELP_DESCRIPTION_OVERRIDES.get(action_name, description)
            entries.append((" / ".join(keys), description))
        entries.extend(HELP_SECTION_EXTRAS.get(section_name, []))
        sections.append((section_name, entries))

    sections.append(("Search Syntax", HELP_SEARCH_SYNTAX))
    return sections


__all__ = ["build_help_sections"]
