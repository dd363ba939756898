"""Pocket Reader TUI application.

Keyboard-driven reading list backed by a local entry store that is kept in
sync with Pocket in the background.

Key bindings:
    j/k        - Move down/up
    Ctrl+d/u   - Page down/up
    g g / G    - First / last entry
    o / Enter  - Open in browser (tags the entry "read")
    /          - Search (tag:, type:, domain:, free text)
    Esc        - Clear the most recent filter
    z / i / S  - Tag, type and domain browsers
    f / a / t  - Favorite + archive, archive, "top" tag
    d / r / e  - Delete, rename, edit tags
    Q          - Sync now
    T          - Reading stats
    ?          - Help
    q          - Quit
"""

from __future__ import annotations

import asyncio
import logging
import time
import webbrowser
from typing import Any

import httpx
from textual import on
from textual.app import App, ComposeResult
from textual.containers import Vertical
from textual.css.query import NoMatches
from textual.events import Resize
from textual.timer import Timer
from textual.widgets import Header, Input, Label, OptionList
from textual.widgets.option_list import Option

from pocket_reader.action_messages import (
    build_actionable_success,
    build_actionable_warning,
    build_condition_message,
    build_delete_confirmation_prompt,
    build_sync_failure_message,
    build_sync_success_message,
)
from pocket_reader.config import PersistedStore, save_config, save_persisted_store
from pocket_reader.errors import SyncTransportFailure
from pocket_reader.help_ui import build_help_sections
from pocket_reader.modals import (
    ALL_TYPES,
    ConfirmDeleteModal,
    DatePromptModal,
    DomainBrowserModal,
    HelpScreen,
    RenameModal,
    ReportScreen,
    TagBrowserModal,
    TagsModal,
    TypeBrowserModal,
)
from pocket_reader.models import ContentType, UserConfig, ViewMode
from pocket_reader.query import filter_pills
from pocket_reader.services.interfaces import AppServices, DefaultSyncTransport, build_default_app_services
from pocket_reader.session import ReaderSession
from pocket_reader.stats import render_stats_report
from pocket_reader.store import EntryStore
from pocket_reader.sync import SyncReconciler
from pocket_reader.themes import TEXTUAL_THEMES, THEME_NAMES, apply_theme
from pocket_reader.ui_constants import (
    APP_BINDINGS,
    APP_CSS,
    BROWSE_FOOTER_BINDINGS,
    GO_PREFIX_TIMEOUT,
    SEARCH_DEBOUNCE_DELAY,
    SEARCH_FOOTER_BINDINGS,
)
from pocket_reader.widgets import ContextFooter, FilterPillBar, render_entry_option, set_ascii_icons

logger = logging.getLogger(__name__)

# Each list row renders as two lines (title, meta)
ROW_HEIGHT = 2


def build_list_empty_message(*, filtered: bool, total: int, offline: bool) -> str:
    """Build the placeholder shown when the result list is empty."""
    if filtered:
        return "[dim]No entries match the active filters.[/]\n[dim]Next: press [bold]Esc[/bold] to clear the last filter.[/]"
    if total == 0 and not offline:
        return "[dim]Your reading list is empty.[/]\n[dim]Next: press [bold]Q[/bold] to sync with Pocket.[/]"
    return "[dim]Nothing to show.[/]\n[dim]Next: press [bold]A[/bold] to include archived entries.[/]"


class PocketReader(App):
    """A TUI application for a Pocket reading list."""

    TITLE = "Pocket Reader"

    CSS = APP_CSS

    BINDINGS = APP_BINDINGS

    def __init__(
        self,
        store: EntryStore,
        config: UserConfig | None = None,
        *,
        cursor: int | None = None,
        restore_session: bool = True,
        services: AppServices | None = None,
        offline: bool = False,
        full_refresh_on_start: bool = False,
        ascii_icons: bool = False,
    ) -> None:
        super().__init__()
        # Register all Textual themes so $th-* CSS variables resolve before compose()
        for textual_theme in TEXTUAL_THEMES.values():
            self.register_theme(textual_theme)
        self._config = config or UserConfig()
        self._config.theme_name = apply_theme(self._config.theme_name)
        self._services: AppServices = services or build_default_app_services(self._config.consumer_key)
        self._store = store
        self._offline = offline
        self._restore_session = restore_session
        self._full_refresh_on_start = full_refresh_on_start

        self._session = ReaderSession(
            store,
            tag_match_mode=self._config.tag_match_mode,
            page_size=self._config.page_size,
        )
        self._session.filters.show_archived = self._config.show_archived
        self._reconciler = SyncReconciler(
            store,
            None if offline else self._services.transport,
            None if offline else self._services.tokens,
            cursor=cursor,
        )

        self._rendered_ids: tuple[str, ...] | None = None
        self._search_timer: Timer | None = None
        self._pending_query: str = ""
        self._sync_timer: Timer | None = None
        self._go_timer: Timer | None = None
        self._go_pending: bool = False
        self._sync_task: asyncio.Task[None] | None = None
        self._last_sync_at: float | None = None
        self._persisted: bool = False

        # Background task tracking (prevent GC of fire-and-forget tasks)
        self._background_tasks: set[asyncio.Task[None]] = set()

        # Shared HTTP client for connection pooling (created in on_mount)
        self._http_client: httpx.AsyncClient | None = None

        set_ascii_icons(ascii_icons or self._config.ascii_icons)
        self._ascii_icons = ascii_icons or self._config.ascii_icons

    @property
    def session(self) -> ReaderSession:
        return self._session

    @property
    def reconciler(self) -> SyncReconciler:
        return self._reconciler

    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical(id="main-container"):
            yield Label(" Entries", id="list-header")
            yield FilterPillBar()
            with Vertical(id="search-container"):
                yield Input(
                    placeholder=" Search: text, tag:name, type:pdf, domain:example.com",
                    id="search-input",
                )
            yield OptionList(id="entry-list")
            yield Label("", id="status-bar")
        yield ContextFooter()

    def on_mount(self) -> None:
        """Restore the session, render the list and start background sync."""
        self._http_client = httpx.AsyncClient()
        transport = self._services.transport
        if isinstance(transport, DefaultSyncTransport) and transport.client is None:
            transport.client = self._http_client

        try:
            self.theme = self._config.theme_name
        except Exception as e:
            logger.debug("Skipping theme activation in current context: %s", e, exc_info=True)

        if self._restore_session:
            self._session.restore(self._config.session)
        self._refresh_list_view()

        if not self._offline:
            interval = self._config.sync_interval_minutes
            if interval > 0:
                self._sync_timer = self.set_interval(interval * 60, self._start_sync)
            self._start_sync(full=self._full_refresh_on_start)

        logger.debug(
            "App mounted: %d entries, offline=%s, cursor=%s",
            len(self._store),
            self._offline,
            self._reconciler.cursor,
        )
        try:
            self._get_entry_list_widget().focus()
        except NoMatches:
            pass

    async def on_unmount(self) -> None:
        """Stop timers, cancel background work and persist whatever is left.

        Uses atomic swap pattern to avoid race conditions with timer callbacks.
        """
        for name in ("_search_timer", "_sync_timer", "_go_timer"):
            timer = getattr(self, name)
            setattr(self, name, None)
            if timer is not None:
                timer.stop()

        self._reconciler.cancel()
        await self._cancel_background_tasks()
        self._persist_state()

        client = self._http_client
        self._http_client = None
        if client is not None:
            try:
                await client.aclose()
            except Exception as e:
                logger.debug("Failed to close shared HTTP client during shutdown: %s", e, exc_info=True)

    async def _cancel_background_tasks(self) -> None:
        pending = [task for task in self._background_tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            _, still_pending = await asyncio.wait(pending, timeout=0.5)
            for task in still_pending:
                logger.debug("Background task did not cancel before shutdown: %r", task)
        self._background_tasks.clear()

    def _track_task(self, coro: Any) -> asyncio.Task[None]:
        """Create an asyncio task and track it to prevent garbage collection."""
        task = asyncio.create_task(coro)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        task.add_done_callback(self._on_task_done)
        return task

    @staticmethod
    def _on_task_done(task: asyncio.Task[None]) -> None:
        """Log unhandled exceptions from background tasks."""
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Unhandled exception in background task: %s", exc, exc_info=exc)

    # ========================================================================
    # Widget access
    # ========================================================================

    def _get_entry_list_widget(self) -> OptionList:
        return self.query_one("#entry-list", OptionList)

    def _get_search_input_widget(self) -> Input:
        return self.query_one("#search-input", Input)

    def _get_search_container_widget(self) -> Vertical:
        return self.query_one("#search-container", Vertical)

    # ========================================================================
    # Rendering
    # ========================================================================

    def _highlight_terms(self) -> list[str]:
        return self._session.filters.text.split()

    def _refresh_list_view(self) -> None:
        """Rebuild the OptionList from the session's result list."""
        try:
            option_list = self._get_entry_list_widget()
        except NoMatches:
            return
        entries = self._session.result_entries()
        option_list.clear_options()
        if entries:
            terms = self._highlight_terms()
            option_list.add_options(
                [Option(render_entry_option(entry, terms), id=entry.id) for entry in entries]
            )
        else:
            message = build_list_empty_message(
                filtered=not self._session.filters.is_empty,
                total=len(self._store),
                offline=self._offline,
            )
            option_list.add_option(Option(message, disabled=True))
        self._rendered_ids = self._session.results.ids
        self._sync_highlight()
        self._update_chrome()

    def _update_current_row(self) -> None:
        """Re-render the selected row, or the whole list if membership changed."""
        if self._session.results.ids != self._rendered_ids:
            self._refresh_list_view()
            return
        cursor = self._session.nav.cursor
        entry = self._session.current_entry()
        if cursor is not None and entry is not None:
            try:
                self._get_entry_list_widget().replace_option_prompt_at_index(
                    cursor, render_entry_option(entry, self._highlight_terms())
                )
            except NoMatches:
                pass
        self._update_chrome()

    def _sync_highlight(self) -> None:
        cursor = self._session.nav.cursor
        try:
            option_list = self._get_entry_list_widget()
        except NoMatches:
            return
        if cursor is not None and option_list.highlighted != cursor:
            option_list.highlighted = cursor

    def _update_chrome(self) -> None:
        self._update_list_header()
        self._update_filter_pills()
        self._update_status_bar()
        self._update_footer()

    def _update_list_header(self) -> None:
        try:
            header = self.query_one("#list-header", Label)
        except NoMatches:
            return
        shown = len(self._session.results)
        if self._session.filters.is_empty:
            header.update(f" Entries ({shown})")
        else:
            header.update(f" Entries ({shown} matching)")

    def _update_filter_pills(self) -> None:
        try:
            pill_bar = self.query_one(FilterPillBar)
        except NoMatches:
            return
        filters = self._session.filters
        self._track_task(pill_bar.update_pills(filter_pills(filters), filters.show_archived))

    def _update_status_bar(self, message: str | None = None, *, failed: bool = False) -> None:
        try:
            status = self.query_one("#status-bar", Label)
        except NoMatches:
            return
        if message is None:
            parts = [f"{len(self._store)} saved"]
            pending = len(self._store.pending_mutations())
            if pending:
                parts.append(f"{pending} unsynced")
            if self._offline:
                parts.append("offline")
            elif self._reconciler.in_progress:
                parts.append("syncing...")
            elif self._last_sync_at is not None:
                parts.append(f"synced {time.strftime('%H:%M', time.localtime(self._last_sync_at))}")
            message = " · ".join(parts)
        status.update(message)
        status.set_class(failed, "sync-failed")

    def _update_footer(self) -> None:
        try:
            footer = self.query_one(ContextFooter)
        except NoMatches:
            return
        if self._session.mode is ViewMode.SEARCH_INPUT:
            footer.render_bindings(SEARCH_FOOTER_BINDINGS, "SEARCH")
        else:
            footer.render_bindings(BROWSE_FOOTER_BINDINGS)

    def _report_condition(self) -> None:
        condition = self._session.take_condition()
        if condition is not None:
            self.notify(build_condition_message(condition), severity="warning")

    def on_resize(self, event: Resize) -> None:
        try:
            height = self._get_entry_list_widget().size.height
        except NoMatches:
            return
        self._session.nav.set_viewport_height(max(1, height // ROW_HEIGHT))

    # ========================================================================
    # List events
    # ========================================================================

    @on(OptionList.OptionHighlighted, "#entry-list")
    def on_entry_highlighted(self, event: OptionList.OptionHighlighted) -> None:
        """Keep the navigator cursor on the row the list highlights."""
        idx = event.option_index
        if idx is not None and 0 <= idx < len(self._session.results):
            self._session.nav.select(idx)

    @on(OptionList.OptionSelected, "#entry-list")
    def on_entry_selected(self, event: OptionList.OptionSelected) -> None:
        """Enter opens the entry."""
        self.action_open_entry()

    @on(FilterPillBar.RemoveFilter)
    def on_remove_filter(self, event: FilterPillBar.RemoveFilter) -> None:
        self._session.remove_filter(event.kind, event.label)
        self._refresh_list_view()

    # ========================================================================
    # Navigation
    # ========================================================================

    def _after_move(self, moved: bool) -> None:
        if moved:
            self._sync_highlight()

    def action_cursor_down(self) -> None:
        self._after_move(self._session.nav.move(1))

    def action_cursor_up(self) -> None:
        self._after_move(self._session.nav.move(-1))

    def action_page_down(self) -> None:
        self._after_move(self._session.nav.page_down())

    def action_page_up(self) -> None:
        self._after_move(self._session.nav.page_up())

    def action_cursor_end(self) -> None:
        self._go_pending = False
        self._after_move(self._session.nav.end())

    def action_go_prefix(self) -> None:
        """First ``g`` arms the prefix; a second one within the timeout jumps to the top."""
        if self._take_go_prefix():
            self._after_move(self._session.nav.home())
            return
        self._go_pending = True
        self._go_timer = self.set_timer(GO_PREFIX_TIMEOUT, self._expire_go_prefix)

    def _take_go_prefix(self) -> bool:
        """Disarm the ``g`` prefix and return whether it was armed."""
        timer = self._go_timer
        self._go_timer = None
        if timer is not None:
            timer.stop()
        pending, self._go_pending = self._go_pending, False
        return pending

    def _expire_go_prefix(self) -> None:
        self._go_timer = None
        self._go_pending = False

    def action_jump_to_date(self) -> None:
        """Prompt for a date and select the newest entry added on or before it."""
        if not self._session.begin_jump_to_date():
            return

        def on_result(text: str | None) -> None:
            try:
                entry = self._session.submit_jump_to_date(text)
            except ValueError as e:
                self.notify(
                    build_actionable_warning(str(e), next_step="Use YYYY-MM-DD, YYYY-MM or YYYY"),
                    severity="warning",
                )
            else:
                if entry is None and text and text.strip():
                    self.notify(f"No entry on or before {text.strip()}", timeout=2)
            self._sync_highlight()

        self.push_screen(DatePromptModal(), on_result)

    # ========================================================================
    # Search & filters
    # ========================================================================

    def action_toggle_search(self) -> None:
        if not self._session.begin_search():
            return
        search_input = self._get_search_input_widget()
        search_input.value = ""
        self._get_search_container_widget().add_class("visible")
        search_input.focus()
        self._update_footer()

    def _close_search(self) -> None:
        timer = self._search_timer
        self._search_timer = None
        if timer is not None:
            timer.stop()
        self._get_search_container_widget().remove_class("visible")
        self._get_entry_list_widget().focus()

    @on(Input.Submitted, "#search-input")
    def on_search_submitted(self, event: Input.Submitted) -> None:
        """Apply the query and return to the list."""
        if self._session.mode is not ViewMode.SEARCH_INPUT:
            return
        self._close_search()
        self._session.submit_search(event.value)
        self._refresh_list_view()

    @on(Input.Changed, "#search-input")
    def on_search_changed(self, event: Input.Changed) -> None:
        """Live-filter with debouncing.

        Uses atomic swap pattern to avoid race conditions with timer callbacks.
        """
        if self._session.mode is not ViewMode.SEARCH_INPUT:
            return
        self._pending_query = event.value
        old_timer = self._search_timer
        self._search_timer = None
        if old_timer is not None:
            old_timer.stop()
        self._search_timer = self.set_timer(SEARCH_DEBOUNCE_DELAY, self._debounced_filter)

    def _debounced_filter(self) -> None:
        self._search_timer = None
        self._session.preview_search(self._pending_query)
        self._refresh_list_view()

    def action_clear_filter(self) -> None:
        """Esc: leave search, or drop the most recently activated filter."""
        if self._session.mode is ViewMode.SEARCH_INPUT:
            self._close_search()
            self._session.cancel_search()
            self._refresh_list_view()
            return
        if self._session.clear_last_filter() is not None:
            self._refresh_list_view()

    def action_filter_domain(self) -> None:
        domain = self._session.filter_by_current_domain()
        if domain is not None:
            self._refresh_list_view()

    def action_toggle_show_archived(self) -> None:
        shown = self._session.toggle_show_archived()
        self._refresh_list_view()
        self.notify("Showing archived entries" if shown else "Hiding archived entries", title="Filter")

    def action_tag_browser(self) -> None:
        if not self._session.open_mode(ViewMode.TAG_BROWSER):
            return

        def on_result(tag: str | None) -> None:
            self._session.dismiss()
            if tag:
                self._session.toggle_tag_filter(tag)
            self._refresh_list_view()

        self.push_screen(
            TagBrowserModal(self._session.tag_counts(), self._session.filters.tags),
            on_result,
        )

    def action_type_browser(self) -> None:
        if not self._session.open_mode(ViewMode.TYPE_BROWSER):
            return

        def on_result(value: str | None) -> None:
            self._session.dismiss()
            if value == ALL_TYPES:
                self._session.set_type_filter(None)
            elif value:
                self._session.set_type_filter(ContentType(value))
            self._refresh_list_view()

        self.push_screen(
            TypeBrowserModal(self._session.type_counts(), self._session.filters.content_type),
            on_result,
        )

    def action_domain_browser(self) -> None:
        if not self._session.open_mode(ViewMode.DOMAIN_BROWSER):
            return

        def on_result(domain: str | None) -> None:
            self._session.dismiss()
            if domain:
                self._session.set_domain_filter(domain)
            self._refresh_list_view()

        self.push_screen(
            DomainBrowserModal(self._session.domain_counts(), ascii_only=self._ascii_icons),
            on_result,
        )

    # ========================================================================
    # Entry actions
    # ========================================================================

    def action_open_entry(self) -> None:
        url = self._session.open_current()
        self._report_condition()
        if url is None:
            return
        try:
            webbrowser.open(url)
        except webbrowser.Error as e:
            logger.warning("Could not launch browser for %s: %s", url, e)
            self.notify(f"Could not open {url}", severity="error")
        self._update_current_row()

    def _apply_entry_action(self, result: object, message: str) -> None:
        self._report_condition()
        if result is None:
            return
        self._update_current_row()
        self.notify(message, timeout=2)

    def action_favorite_archive(self) -> None:
        self._apply_entry_action(self._session.favorite_and_archive(), "Favorited and archived")

    def action_toggle_favorite(self) -> None:
        entry = self._session.toggle_favorite()
        self._apply_entry_action(entry, "Favorited" if entry and entry.favorite else "Unfavorited")

    def action_toggle_archive(self) -> None:
        entry = self._session.toggle_archive()
        self._apply_entry_action(entry, "Archived" if entry and entry.archived else "Moved back to list")

    def action_toggle_top(self) -> None:
        entry = self._session.toggle_top_tag()
        self._apply_entry_action(entry, "Tagged top" if entry and entry.has_tag("top") else "Removed top tag")

    def action_delete_entry(self) -> None:
        if self._take_go_prefix():
            self.action_jump_to_date()
            return
        if not self._session.request_delete():
            return
        target = self._session.entry(self._session.nav.state.target_id)
        title = target.display_title if target is not None else ""

        def on_result(confirmed: bool | None) -> None:
            deleted = self._session.confirm_delete(bool(confirmed))
            self._report_condition()
            self._refresh_list_view()
            if deleted is not None:
                self.notify(build_actionable_success("Entry deleted"), timeout=2)

        self.push_screen(ConfirmDeleteModal(build_delete_confirmation_prompt(title)), on_result)

    def action_rename(self) -> None:
        self._open_rename(prefill=True)

    def action_rename_blank(self) -> None:
        self._open_rename(prefill=False)

    def _open_rename(self, *, prefill: bool) -> None:
        initial = self._session.begin_rename(prefill=prefill)
        if initial is None:
            return

        def on_result(text: str | None) -> None:
            renamed = self._session.submit_rename(text)
            self._report_condition()
            if renamed is not None:
                self._update_current_row()

        self.push_screen(RenameModal(initial), on_result)

    def action_edit_tags(self) -> None:
        current = self._session.begin_edit_tags()
        if current is None:
            return
        entry = self._session.current_entry()
        known = [tag for tag, _ in self._session.tag_counts()]

        def on_result(raw_tags: str | None) -> None:
            updated = self._session.submit_tags(raw_tags)
            self._report_condition()
            if updated is not None:
                self._update_current_row()

        self.push_screen(TagsModal(entry.display_title if entry else "", current, known), on_result)

    # ========================================================================
    # Views
    # ========================================================================

    def action_show_help(self) -> None:
        if not self._session.open_mode(ViewMode.HELP):
            return
        self.push_screen(
            HelpScreen(build_help_sections(self.BINDINGS)),
            lambda _: self._session.dismiss(),
        )

    def action_show_stats(self) -> None:
        if not self._session.open_mode(ViewMode.STATS):
            return
        report = render_stats_report(self._session.stats(), ascii_only=self._ascii_icons)
        self.push_screen(ReportScreen("Reading stats", report), lambda _: self._session.dismiss())

    def action_cycle_theme(self) -> None:
        """Cycle through available color themes."""
        try:
            idx = THEME_NAMES.index(self._config.theme_name)
        except ValueError:
            idx = 0
        name = apply_theme(THEME_NAMES[(idx + 1) % len(THEME_NAMES)])
        self._config.theme_name = name
        try:
            self.theme = name
        except Exception as e:
            logger.debug("Skipping theme activation in current context: %s", e, exc_info=True)
        self._refresh_list_view()
        self._save_config_or_warn("theme preference")
        self.notify(f"Theme: {name}", title="Theme")

    # ========================================================================
    # Sync
    # ========================================================================

    def action_refresh(self) -> None:
        self._start_sync(announce=True)

    def action_full_refresh(self) -> None:
        self._start_sync(full=True, announce=True)

    def _start_sync(self, *, full: bool = False, announce: bool = False) -> None:
        """Start a background sync, replacing any still in flight."""
        if self._offline:
            if announce:
                self.notify("Offline mode: sync is disabled.", severity="warning")
            return
        if self._session.mode is ViewMode.SHUTDOWN:
            return
        previous = self._sync_task
        if previous is not None and not previous.done():
            self._reconciler.cancel()
            previous.cancel()
        self._sync_task = self._track_task(self._run_sync(full=full, announce=announce))

    async def _run_sync(self, *, full: bool, announce: bool) -> None:
        pending_before = len(self._store.pending_mutations())
        self._update_status_bar("Syncing with Pocket...")
        try:
            report = await self._reconciler.sync(full=full)
        except SyncTransportFailure as exc:
            self._update_status_bar(f"Sync failed: {exc.message}", failed=True)
            self.notify(build_sync_failure_message(exc), severity="error", timeout=8)
            return
        if report.cancelled:
            return
        self._last_sync_at = time.time()
        pushed = pending_before - len(self._store.pending_mutations())
        if self._session.refresh():
            self._refresh_list_view()
        else:
            self._update_status_bar()
        if announce:
            self.notify(build_sync_success_message(report, max(0, pushed)), title="Sync")

    # ========================================================================
    # Shutdown
    # ========================================================================

    def _save_config_or_warn(self, context: str) -> bool:
        """Save config and notify the user on failure.

        Returns True on success, False on failure.
        """
        if not save_config(self._config):
            self.notify(f"Failed to save {context}.", severity="warning")
            return False
        return True

    def _persist_state(self) -> None:
        """Write the store replica, resume cursor and session; runs once."""
        if self._persisted:
            return
        self._persisted = True
        entries, outgoing = self._store.export_state()
        save_persisted_store(
            self._services.persistence,
            PersistedStore(entries=entries, cursor=self._reconciler.cursor, outgoing=outgoing),
        )
        self._config.session = self._session.session_state()
        if not save_config(self._config):
            logger.warning("Failed to save session state to config file")

    async def action_request_quit(self) -> None:
        """Graceful shutdown: stop syncing, push queued changes, persist, exit."""
        if self._session.mode is ViewMode.SHUTDOWN:
            return
        self._session.shutdown()
        self._update_status_bar("Saving...")
        timer = self._sync_timer
        self._sync_timer = None
        if timer is not None:
            timer.stop()
        self._reconciler.cancel()
        await self._cancel_background_tasks()
        if not self._offline:
            await self._reconciler.flush()
        self._persist_state()
        self.exit()


__all__ = [
    "PocketReader",
    "build_list_empty_message",
]
