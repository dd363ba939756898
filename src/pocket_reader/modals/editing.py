"""Entry editing modals: rename, tag editor and the jump-to-date prompt."""

from __future__ import annotations

import logging

from textual import on
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label

from pocket_reader.query import escape_rich_text, truncate_text
from pocket_reader.themes import get_tag_color

logger = logging.getLogger(__name__)


class RenameModal(ModalScreen[str | None]):
    """Single-line prompt for a new entry title."""

    BINDINGS = [
        Binding("ctrl+s", "save", "Save"),
        Binding("escape", "cancel", "Cancel"),
    ]

    CSS = """
    RenameModal {
        align: center middle;
    }

    #rename-dialog {
        width: 70%;
        height: auto;
        min-width: 50;
        background: $th-background;
        border: tall $th-accent;
        padding: 0 2;
    }

    #rename-title {
        text-style: bold;
        color: $th-accent-alt;
        margin-bottom: 1;
    }

    #rename-input {
        width: 100%;
        background: $th-panel;
        border: none;
    }

    #rename-input:focus {
        border-left: tall $th-accent;
    }

    #rename-buttons {
        height: auto;
        margin-top: 1;
        align: right middle;
    }

    #rename-buttons Button {
        margin-left: 1;
    }
    """

    def __init__(self, initial_text: str = "") -> None:
        super().__init__()
        self._initial_text = initial_text

    def compose(self) -> ComposeResult:
        with Vertical(id="rename-dialog"):
            yield Label("Rename entry", id="rename-title")
            yield Input(value=self._initial_text, placeholder="New title...", id="rename-input")
            with Horizontal(id="rename-buttons"):
                yield Button("Cancel", variant="default", id="cancel-btn")
                yield Button("Save (Enter)", variant="primary", id="save-btn")

    def on_mount(self) -> None:
        self.query_one("#rename-input", Input).focus()

    def action_save(self) -> None:
        self.dismiss(self.query_one("#rename-input", Input).value)

    def action_cancel(self) -> None:
        self.dismiss(None)

    @on(Button.Pressed, "#save-btn")
    def on_save_pressed(self) -> None:
        self.action_save()

    @on(Button.Pressed, "#cancel-btn")
    def on_cancel_pressed(self) -> None:
        self.action_cancel()

    @on(Input.Submitted, "#rename-input")
    def on_input_submitted(self) -> None:
        self.action_save()


class DatePromptModal(ModalScreen[str | None]):
    """Prompt for a date to jump to (``YYYY-MM-DD``, ``YYYY-MM`` or ``YYYY``)."""

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
    ]

    CSS = """
    DatePromptModal {
        align: center middle;
    }

    #date-dialog {
        width: 40;
        height: auto;
        background: $th-background;
        border: tall $th-accent;
        padding: 0 2;
    }

    #date-title {
        text-style: bold;
        color: $th-accent-alt;
        margin-bottom: 1;
    }

    #date-input {
        width: 100%;
        background: $th-panel;
        border: none;
    }
    """

    def compose(self) -> ComposeResult:
        with Vertical(id="date-dialog"):
            yield Label("Jump to date", id="date-title")
            yield Input(placeholder="YYYY-MM-DD", id="date-input")

    def on_mount(self) -> None:
        self.query_one("#date-input", Input).focus()

    def action_cancel(self) -> None:
        self.dismiss(None)

    @on(Input.Submitted, "#date-input")
    def on_input_submitted(self) -> None:
        self.dismiss(self.query_one("#date-input", Input).value)


class TagsModal(ModalScreen[str | None]):
    """Modal dialog for editing an entry's tags as comma-separated text.

    Dismisses with the raw text; parsing and normalization happen in the
    session so the same rules apply everywhere tags are entered.
    """

    BINDINGS = [
        Binding("ctrl+s", "save", "Save"),
        Binding("escape", "cancel", "Cancel"),
    ]

    CSS = """
    TagsModal {
        align: center middle;
    }

    #tags-dialog {
        width: 50%;
        height: auto;
        min-width: 40;
        background: $th-background;
        border: tall $th-green;
        padding: 0 2;
    }

    #tags-title {
        text-style: bold;
        color: $th-green;
        margin-bottom: 1;
    }

    #tags-help {
        color: $th-muted;
        margin-bottom: 1;
    }

    #tags-input {
        width: 100%;
        background: $th-panel;
        border: none;
    }

    #tags-input:focus {
        border-left: tall $th-green;
    }

    #tags-buttons {
        height: auto;
        margin-top: 1;
        align: right middle;
    }

    #tags-buttons Button {
        margin-left: 1;
    }

    #tags-suggestions {
        color: $th-muted;
        margin-bottom: 1;
    }
    """

    # Known tags shown as hints
    MAX_SUGGESTIONS = 12

    def __init__(
        self,
        entry_title: str,
        current_tags: str = "",
        known_tags: list[str] | None = None,
    ) -> None:
        super().__init__()
        self._entry_title = entry_title
        self._current_tags = current_tags
        self._known_tags = known_tags or []

    def _build_suggestions_markup(self) -> str:
        parts = [
            f"[{get_tag_color(tag)}]{escape_rich_text(tag)}[/]"
            for tag in self._known_tags[: self.MAX_SUGGESTIONS]
        ]
        return ", ".join(parts)

    def compose(self) -> ComposeResult:
        with Vertical(id="tags-dialog"):
            yield Label(
                f"Tags for {escape_rich_text(truncate_text(self._entry_title, 50))}",
                id="tags-title",
            )
            yield Label("Comma separated; replaces all current tags", id="tags-help")
            suggestions = self._build_suggestions_markup()
            if suggestions:
                yield Label(suggestions, id="tags-suggestions")
            yield Input(
                value=self._current_tags,
                placeholder="Enter tags...",
                id="tags-input",
            )
            with Horizontal(id="tags-buttons"):
                yield Button("Cancel", variant="default", id="cancel-btn")
                yield Button("Save (Ctrl+S)", variant="primary", id="save-btn")

    def on_mount(self) -> None:
        self.query_one("#tags-input", Input).focus()

    def action_save(self) -> None:
        self.dismiss(self.query_one("#tags-input", Input).value)

    def action_cancel(self) -> None:
        self.dismiss(None)

    @on(Button.Pressed, "#save-btn")
    def on_save_pressed(self) -> None:
        self.action_save()

    @on(Button.Pressed, "#cancel-btn")
    def on_cancel_pressed(self) -> None:
        self.action_cancel()

    @on(Input.Submitted, "#tags-input")
    def on_input_submitted(self) -> None:
        self.action_save()


__all__ = [
    "DatePromptModal",
    "RenameModal",
    "TagsModal",
]
