"""General-purpose modal dialogs: help, delete confirmation and reports."""

from __future__ import annotations

import logging

from textual import on
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, Label, Static

from pocket_reader.query import escape_rich_text
from pocket_reader.themes import THEME_COLORS

logger = logging.getLogger(__name__)

# ============================================================================
# Help Overlay
# ============================================================================


class HelpScreen(ModalScreen[None]):
    """Full-screen help overlay showing all keyboard shortcuts by category."""

    BINDINGS = [
        Binding("question_mark", "dismiss", "Close", show=False),
        Binding("escape", "dismiss", "Close"),
        Binding("q", "dismiss", "Close", show=False),
    ]

    CSS = """
    HelpScreen {
        align: center middle;
    }

    #help-dialog {
        width: 80%;
        height: 85%;
        min-width: 60;
        min-height: 20;
        background: $th-background;
        border: tall $th-accent;
        padding: 0 2;
        overflow-y: auto;
    }

    #help-title {
        text-style: bold;
        color: $th-accent-alt;
        text-align: center;
        margin-bottom: 1;
    }

    .help-section-title {
        text-style: bold;
        margin-bottom: 0;
    }

    .help-keys {
        padding-left: 2;
        margin-bottom: 1;
        color: $th-text;
    }

    #help-footer {
        text-align: center;
        color: $th-muted;
        margin-top: 1;
    }
    """

    def __init__(
        self,
        sections: list[tuple[str, list[tuple[str, str]]]],
        footer_note: str = "Close: ? / Esc / q",
    ) -> None:
        super().__init__()
        self._sections = sections
        self._footer_note = footer_note

    @staticmethod
    def _render_section_lines(entries: list[tuple[str, str]]) -> str:
        green = THEME_COLORS["green"]
        lines = [
            f"  [{green}]{escape_rich_text(key)}[/]  {escape_rich_text(description)}"
            for key, description in entries
        ]
        return "\n".join(lines)

    def compose(self) -> ComposeResult:
        with VerticalScroll(id="help-dialog"):
            yield Label("Keyboard Shortcuts", id="help-title")
            for section_name, entries in self._sections:
                if not entries:
                    continue
                yield Label(
                    f"[{THEME_COLORS['accent']}]{section_name}[/]",
                    classes="help-section-title",
                )
                yield Static(self._render_section_lines(entries), classes="help-keys")

            yield Label(self._footer_note, id="help-footer")

    def action_dismiss(self) -> None:
        """Close the help screen."""
        self.dismiss(None)


# ============================================================================
# Delete Confirmation
# ============================================================================


class ConfirmDeleteModal(ModalScreen[bool]):
    """Ask before deleting one entry; y/Y/d/D confirm, anything else cancels."""

    BINDINGS = [
        Binding("y", "confirm", "Confirm"),
        Binding("Y", "confirm", "Confirm", show=False),
        Binding("d", "confirm", "Confirm", show=False),
        Binding("D", "confirm", "Confirm", show=False),
        Binding("n", "cancel", "Cancel"),
        Binding("escape", "cancel", "Cancel"),
    ]

    CSS = """
    ConfirmDeleteModal {
        align: center middle;
    }

    #confirm-dialog {
        width: 50%;
        min-width: 40;
        height: auto;
        background: $th-background;
        border: tall $th-orange;
        padding: 0 2;
    }

    #confirm-message {
        text-style: bold;
        color: $th-accent-alt;
        margin-bottom: 1;
    }

    #confirm-buttons {
        height: auto;
        align: right middle;
    }

    #confirm-buttons Button {
        margin-left: 1;
    }

    #confirm-footer {
        color: $th-muted;
        margin-top: 1;
    }
    """

    def __init__(self, message: str) -> None:
        super().__init__()
        self._message = message

    def compose(self) -> ComposeResult:
        with Vertical(id="confirm-dialog"):
            yield Label(escape_rich_text(self._message), id="confirm-message")
            with Horizontal(id="confirm-buttons"):
                yield Button("Delete (y)", variant="warning", id="confirm-yes")
                yield Button("Cancel (Esc)", variant="default", id="confirm-no")
            yield Static("Delete: y / d  Cancel: n / Esc", id="confirm-footer")

    def action_confirm(self) -> None:
        self.dismiss(True)

    def action_cancel(self) -> None:
        self.dismiss(False)

    @on(Button.Pressed, "#confirm-yes")
    def on_yes(self) -> None:
        self.dismiss(True)

    @on(Button.Pressed, "#confirm-no")
    def on_no(self) -> None:
        self.dismiss(False)


# ============================================================================
# Report Screen
# ============================================================================


class ReportScreen(ModalScreen[None]):
    """Scrollable plain-text report, used for reading statistics."""

    BINDINGS = [
        Binding("escape", "dismiss", "Close"),
        Binding("q", "dismiss", "Close", show=False),
        Binding("T", "dismiss", "Close", show=False),
    ]

    CSS = """
    ReportScreen {
        align: center middle;
    }

    #report-dialog {
        width: 80%;
        height: 85%;
        min-width: 60;
        background: $th-background;
        border: tall $th-green;
        padding: 0 2;
    }

    #report-title {
        text-style: bold;
        color: $th-green;
        margin-bottom: 1;
    }

    #report-body {
        color: $th-text;
    }

    #report-footer {
        color: $th-muted;
        margin-top: 1;
    }
    """

    def __init__(self, title: str, body: str) -> None:
        super().__init__()
        self._title = title
        self._body = body

    def compose(self) -> ComposeResult:
        with VerticalScroll(id="report-dialog"):
            yield Label(self._title, id="report-title")
            yield Static(escape_rich_text(self._body), id="report-body")
            yield Static("Close: Esc / q", id="report-footer")

    def action_dismiss(self) -> None:
        self.dismiss(None)


__all__ = [
    "ConfirmDeleteModal",
    "HelpScreen",
    "ReportScreen",
]
