"""Widget chrome: filter pills and the context footer."""

from __future__ import annotations

from textual.containers import Horizontal
from textual.message import Message
from textual.widgets import Label, Static

from pocket_reader.query import escape_rich_text
from pocket_reader.themes import THEME_COLORS


class ContextFooter(Static):
    """Context-sensitive footer showing relevant keybindings."""

    DEFAULT_CSS = """
    ContextFooter {
        dock: bottom;
        height: 1;
        background: $th-background;
        color: $th-muted;
        padding: 0 1;
        border-top: solid $th-panel-alt;
    }
    """

    def render_bindings(self, bindings: list[tuple[str, str]], mode_badge: str = "") -> None:
        """Update the footer with a list of (key, label) binding hints."""
        accent = THEME_COLORS["accent"]
        muted = THEME_COLORS["muted"]
        parts = []
        if mode_badge:
            parts.append(mode_badge)
        for key, label in bindings:
            safe_key = escape_rich_text(key)
            if key and label:
                parts.append(f"[bold {accent}]{safe_key}[/] [{muted}]{label}[/]")
            elif label:
                parts.append(f"[italic {muted}]{label}[/]")
            else:
                parts.append(f"[italic {muted}]{safe_key}[/]")
        self.update("  ".join(parts))


class FilterPillBar(Horizontal):
    """Horizontal bar displaying active filters as removable pills."""

    DEFAULT_CSS = """
    FilterPillBar {
        height: auto;
        padding: 0 1;
        background: $th-panel;
        display: none;
    }

    FilterPillBar.visible {
        display: block;
    }

    FilterPillBar .filter-pill {
        padding: 0 1;
        margin-right: 1;
        color: $th-accent;
    }

    FilterPillBar .filter-pill:hover {
        color: $th-text;
        text-style: bold;
    }

    FilterPillBar .filter-pill-archived {
        padding: 0 1;
        margin-right: 1;
        color: $th-orange;
    }
    """

    class RemoveFilter(Message):
        """Message sent when a filter pill is clicked to remove it."""

        def __init__(self, kind: str, label: str) -> None:
            super().__init__()
            self.kind = kind
            self.label = label

    def __init__(self) -> None:
        super().__init__()
        self._pills: list[tuple[str, str]] = []

    async def update_pills(self, pills: list[tuple[str, str]], show_archived: bool = False) -> None:
        """Update the displayed filter pills from (kind, label) pairs."""
        self._pills = list(pills)
        await self.remove_children()
        for i, (_, label) in enumerate(self._pills):
            self.mount(Label(f"{escape_rich_text(label)} ×", classes="filter-pill", id=f"pill-{i}"))
        if show_archived:
            self.mount(Label("+archived", classes="filter-pill-archived", id="pill-archived"))
        if self._pills or show_archived:
            self.add_class("visible")
        else:
            self.remove_class("visible")

    def on_click(self, event: object) -> None:
        """Handle click on a filter pill to remove it."""
        from textual.events import Click

        if not isinstance(event, Click):
            return
        widget = event.widget
        if not isinstance(widget, Label):
            return
        widget_id = widget.id or ""
        if not widget_id.startswith("pill-"):
            return
        try:
            kind, label = self._pills[int(widget_id.split("-", 1)[1])]
        except (ValueError, IndexError):
            return
        self.post_message(self.RemoveFilter(kind, label))


__all__ = [
    "ContextFooter",
    "FilterPillBar",
]
