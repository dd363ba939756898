"""Internal UI constants for the PocketReader app."""

from __future__ import annotations

from textual.binding import Binding, BindingType

APP_CSS = """
Screen {
    background: $th-background;
}

Header {
    background: $th-panel-alt;
    color: $th-text;
}

#main-container {
    height: 1fr;
    border: tall $th-highlight;
    background: $th-panel;
}

#main-container:focus-within {
    border: tall $th-accent;
}

#list-header {
    padding: 0 1;
    background: $th-panel;
    color: $th-accent;
    text-style: bold;
}

#entry-list {
    height: 1fr;
    scrollbar-gutter: stable;
}

#search-container {
    height: auto;
    padding: 0 1;
    background: $th-panel;
    display: none;
}

#search-container.visible {
    display: block;
}

#search-input {
    width: 100%;
    border: tall $th-accent;
    background: $th-background;
}

#search-input:focus {
    border: tall $th-accent-alt;
}

#entry-list > .option-list--option-highlighted {
    background: $th-highlight;
}

#entry-list:focus > .option-list--option-highlighted {
    background: $th-highlight-focus;
}

#entry-list > .option-list--option-hover {
    background: $th-panel-alt;
}

VerticalScroll {
    scrollbar-background: $th-scrollbar-bg;
    scrollbar-color: $th-scrollbar-thumb;
    scrollbar-color-hover: $th-scrollbar-hover;
    scrollbar-color-active: $th-scrollbar-active;
}

#status-bar {
    padding: 0 1;
    color: $th-muted;
}

#status-bar.sync-failed {
    color: $th-pink;
}
"""

APP_BINDINGS: list[BindingType] = [
    Binding("q", "request_quit", "Quit", show=False),
    # Navigation
    Binding("j", "cursor_down", "Down", show=False),
    Binding("k", "cursor_up", "Up", show=False),
    Binding("ctrl+d", "page_down", "Page down", show=False),
    Binding("ctrl+u", "page_up", "Page up", show=False),
    Binding("g", "go_prefix", "First (gg)", show=False),
    Binding("G", "cursor_end", "Last", show=False),
    # Search & filter
    Binding("slash", "toggle_search", "Search", show=False),
    Binding("escape", "clear_filter", "Clear last filter", show=False),
    Binding("z", "tag_browser", "Browse tags", show=False),
    Binding("i", "type_browser", "Filter by type", show=False),
    Binding("s", "filter_domain", "Filter by domain", show=False),
    Binding("S", "domain_browser", "Domain stats", show=False),
    Binding("A", "toggle_show_archived", "Show archived", show=False),
    # Entry actions
    Binding("o", "open_entry", "Open", show=False),
    Binding("f", "favorite_archive", "Favorite + archive", show=False),
    Binding("F", "toggle_favorite", "Toggle favorite", show=False),
    Binding("a", "toggle_archive", "Toggle archive", show=False),
    Binding("t", "toggle_top", "Toggle top tag", show=False),
    Binding("e", "edit_tags", "Edit tags", show=False),
    Binding("r", "rename", "Rename (prefilled)", show=False),
    Binding("R", "rename_blank", "Rename from scratch", show=False),
    Binding("d", "delete_entry", "Delete", show=False),
    # Sync & views
    Binding("Q", "refresh", "Sync now", show=False),
    Binding("ctrl+r", "full_refresh", "Full refresh", show=False),
    Binding("T", "show_stats", "Reading stats", show=False),
    Binding("ctrl+t", "cycle_theme", "Theme", show=False),
    Binding("question_mark", "show_help", "Help (?)", show=False),
]

# Footer hints shown while browsing
BROWSE_FOOTER_BINDINGS: list[tuple[str, str]] = [
    ("j/k", "move"),
    ("o", "open"),
    ("/", "search"),
    ("z", "tags"),
    ("i", "type"),
    ("f", "fav"),
    ("d", "delete"),
    ("Q", "sync"),
    ("?", "help"),
]

SEARCH_FOOTER_BINDINGS: list[tuple[str, str]] = [
    ("Enter", "apply"),
    ("Esc", "cancel"),
    ("tag: type: domain:", ""),
]

# Delay before a pending "g" stops waiting for the second "g"
GO_PREFIX_TIMEOUT = 0.8
SEARCH_DEBOUNCE_DELAY = 0.2

__all__ = [
    "APP_BINDINGS",
    "APP_CSS",
    "BROWSE_FOOTER_BINDINGS",
    "GO_PREFIX_TIMEOUT",
    "SEARCH_DEBOUNCE_DELAY",
    "SEARCH_FOOTER_BINDINGS",
]
