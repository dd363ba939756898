"""Browser overlays for picking a tag, content type or domain filter."""

from __future__ import annotations

import logging

from textual import on
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Input, Label, OptionList, Static
from textual.widgets.option_list import Option

from pocket_reader.models import ContentType
from pocket_reader.query import escape_rich_text
from pocket_reader.themes import THEME_COLORS, get_tag_color

logger = logging.getLogger(__name__)

# Dismiss value meaning "clear the type filter"
ALL_TYPES = "all"

_BROWSER_CSS = """
{name} {{
    align: center middle;
}}

{name} > Vertical {{
    width: 60;
    max-height: 30;
    background: $th-panel;
    border: thick $th-accent;
    padding: 1 2;
}}

{name} OptionList {{
    height: auto;
    max-height: 22;
}}

{name} .browser-footer {{
    color: $th-muted;
    margin-top: 1;
}}
"""


# ============================================================================
# Tag Browser
# ============================================================================


class TagBrowserModal(ModalScreen[str | None]):
    """Type-to-filter list of tags, most used first."""

    BINDINGS = [
        Binding("escape", "cancel", "Close"),
    ]

    DEFAULT_CSS = _BROWSER_CSS.format(name="TagBrowserModal")

    def __init__(self, tag_counts: list[tuple[str, int]], active_tags: tuple[str, ...] = ()) -> None:
        super().__init__()
        self._tag_counts = tag_counts
        self._active = set(active_tags)
        self._filtered: list[tuple[str, int]] = list(tag_counts)

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Label(f"[bold {THEME_COLORS['accent']}]Tags[/]")
            yield Input(placeholder="Type to filter tags...", id="tag-browser-search")
            yield OptionList(id="tag-browser-results")
            yield Static("Toggle filter: Enter  Close: Esc", classes="browser-footer")

    def on_mount(self) -> None:
        self._populate("")
        self.query_one("#tag-browser-search", Input).focus()

    @on(Input.Changed, "#tag-browser-search")
    def _on_search_changed(self, event: Input.Changed) -> None:
        self._populate(event.value.strip())

    def _populate(self, query: str) -> None:
        option_list = self.query_one("#tag-browser-results", OptionList)
        option_list.clear_options()
        needle = query.lower()
        self._filtered = [(tag, count) for tag, count in self._tag_counts if needle in tag]
        if not self._filtered:
            message = "No tags yet." if not query else f'No tags match "{escape_rich_text(query)}".'
            option_list.add_option(Option(f"[dim]{message}[/]", disabled=True))
            return
        green = THEME_COLORS["green"]
        for tag, count in self._filtered:
            marker = f"[{green}]✓[/] " if tag in self._active else "  "
            option_list.add_option(
                Option(
                    f"{marker}[{get_tag_color(tag)}]{escape_rich_text(tag)}[/]  [dim]{count}[/]",
                    id=tag,
                )
            )
        option_list.highlighted = 0

    @on(OptionList.OptionSelected, "#tag-browser-results")
    def _on_option_selected(self, event: OptionList.OptionSelected) -> None:
        if event.option_id is not None:
            self.dismiss(str(event.option_id))

    @on(Input.Submitted, "#tag-browser-search")
    def _on_search_submitted(self) -> None:
        option_list = self.query_one("#tag-browser-results", OptionList)
        idx = option_list.highlighted
        if idx is not None and 0 <= idx < len(self._filtered):
            self.dismiss(self._filtered[idx][0])

    def key_down(self) -> None:
        self.query_one("#tag-browser-results", OptionList).action_cursor_down()

    def key_up(self) -> None:
        self.query_one("#tag-browser-results", OptionList).action_cursor_up()

    def action_cancel(self) -> None:
        self.dismiss(None)


# ============================================================================
# Type Browser
# ============================================================================


class TypeBrowserModal(ModalScreen[str | None]):
    """Pick a content type: 1 all, 2 articles, 3 videos, 4 PDFs."""

    CHOICES: list[tuple[str, str]] = [
        ("1", ALL_TYPES),
        ("2", ContentType.ARTICLE.value),
        ("3", ContentType.VIDEO.value),
        ("4", ContentType.PDF.value),
    ]

    BINDINGS = [
        Binding("1", "choose('all')", "All", show=False),
        Binding("2", "choose('article')", "Articles", show=False),
        Binding("3", "choose('video')", "Videos", show=False),
        Binding("4", "choose('pdf')", "PDFs", show=False),
        Binding("escape", "cancel", "Close"),
        Binding("q", "cancel", "Close", show=False),
    ]

    DEFAULT_CSS = _BROWSER_CSS.format(name="TypeBrowserModal")

    def __init__(self, counts: dict[ContentType, int], current: ContentType | None = None) -> None:
        super().__init__()
        self._counts = counts
        self._current = current

    def _label_for(self, value: str) -> str:
        if value == ALL_TYPES:
            return f"All ({sum(self._counts.values())})"
        content_type = ContentType(value)
        return f"{content_type.label} ({self._counts.get(content_type, 0)})"

    def compose(self) -> ComposeResult:
        current = self._current.value if self._current is not None else ALL_TYPES
        accent = THEME_COLORS["accent"]
        with Vertical():
            yield Label(f"[bold {accent}]Content type[/]")
            options = []
            for key, value in self.CHOICES:
                marker = "●" if value == current else " "
                options.append(Option(f"[{accent}]{key}[/] {marker} {self._label_for(value)}", id=value))
            yield OptionList(*options, id="type-browser-results")
            yield Static("Choose: 1-4 / Enter  Close: Esc", classes="browser-footer")

    def on_mount(self) -> None:
        self.query_one("#type-browser-results", OptionList).focus()

    @on(OptionList.OptionSelected, "#type-browser-results")
    def _on_option_selected(self, event: OptionList.OptionSelected) -> None:
        if event.option_id is not None:
            self.dismiss(str(event.option_id))

    def action_choose(self, value: str) -> None:
        self.dismiss(value)

    def action_cancel(self) -> None:
        self.dismiss(None)


# ============================================================================
# Domain Browser
# ============================================================================


class DomainBrowserModal(ModalScreen[str | None]):
    """Most saved domains with counts; Enter filters by the chosen domain."""

    BINDINGS = [
        Binding("escape", "cancel", "Close"),
        Binding("q", "cancel", "Close", show=False),
    ]

    DEFAULT_CSS = _BROWSER_CSS.format(name="DomainBrowserModal")

    def __init__(self, domain_counts: list[tuple[str, int]], *, ascii_only: bool = False) -> None:
        super().__init__()
        self._domain_counts = domain_counts
        self._ascii_only = ascii_only

    def compose(self) -> ComposeResult:
        glyph = "#" if self._ascii_only else "■"
        width = max((len(name) for name, _ in self._domain_counts), default=0)
        peak = max((count for _, count in self._domain_counts), default=1)
        with Vertical():
            yield Label(f"[bold {THEME_COLORS['accent']}]Top domains[/]")
            options: list[Option] = []
            for name, count in self._domain_counts:
                bar = glyph * max(1, round(20 * count / peak))
                options.append(
                    Option(
                        f"{escape_rich_text(name):<{width}} {count:4} [{THEME_COLORS['green']}]{bar}[/]",
                        id=name,
                    )
                )
            if not options:
                options.append(Option("[dim]No domains yet.[/]", disabled=True))
            yield OptionList(*options, id="domain-browser-results")
            yield Static("Filter: Enter  Close: Esc", classes="browser-footer")

    def on_mount(self) -> None:
        self.query_one("#domain-browser-results", OptionList).focus()

    @on(OptionList.OptionSelected, "#domain-browser-results")
    def _on_option_selected(self, event: OptionList.OptionSelected) -> None:
        if event.option_id is not None:
            self.dismiss(str(event.option_id))

    def action_cancel(self) -> None:
        self.dismiss(None)


__all__ = [
    "ALL_TYPES",
    "DomainBrowserModal",
    "TagBrowserModal",
    "TypeBrowserModal",
]
