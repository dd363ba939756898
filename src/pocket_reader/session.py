"""Interactive session: ties store, query engine and navigator together.

Every user intent arrives here. Mutations always resolve the target entry
by id (the selected id, or the id captured when a modal opened), never by
list position.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Callable
from datetime import datetime

from pocket_reader.errors import MalformedEntry, NotFound, ReaderError
from pocket_reader.models import (
    DEFAULT_PAGE_SIZE,
    DOMAIN_STATS_LIMIT,
    FILTER_TAG,
    READ_TAG,
    TOP_TAG,
    ContentType,
    Entry,
    FilterState,
    SessionState,
    ViewMode,
)
from pocket_reader.navigation import DEFAULT_VIEWPORT_HEIGHT, Navigator
from pocket_reader.parsing import normalize_title, parse_date_bound, parse_tag_list
from pocket_reader.query import QueryEngine, ResultList, apply_search_query, filters_to_query, tokenize_query
from pocket_reader.stats import ReadingStats, compute_stats
from pocket_reader.store import EntryStore, StoreView

logger = logging.getLogger(__name__)


class ReaderSession:
    """Interactive state over one entry store."""

    def __init__(
        self,
        store: EntryStore,
        *,
        filters: FilterState | None = None,
        tag_match_mode: str = "and",
        page_size: int = DEFAULT_PAGE_SIZE,
        viewport_height: int = DEFAULT_VIEWPORT_HEIGHT,
    ) -> None:
        self.store = store
        self.filters = filters or FilterState()
        self.engine = QueryEngine(tag_match_mode=tag_match_mode)
        self.nav = Navigator(viewport_height=viewport_height, page_size=page_size)
        self.last_condition: ReaderError | None = None
        self._view: StoreView = store.snapshot()
        self._seen_generation = -1
        self._search_anchor_filters: FilterState | None = None
        self.refresh(force=True)

    # ------------------------------------------------------------------
    # Result list
    # ------------------------------------------------------------------

    @property
    def mode(self) -> ViewMode:
        return self.nav.mode

    @property
    def results(self) -> ResultList:
        return self.nav.results

    def refresh(self, *, force: bool = False) -> bool:
        """Recompute results if the store published a new generation.

        Returns whether the result list was recomputed.
        """
        published = self.store.published_generation
        if not force and published == self._seen_generation:
            return False
        self._view = self.store.snapshot()
        self._seen_generation = published
        self.nav.set_results(self.engine.compute(self._view, self.filters))
        return True

    def entry(self, entry_id: str | None) -> Entry | None:
        if entry_id is None:
            return None
        return self._view.get(entry_id)

    def current_entry(self) -> Entry | None:
        return self.entry(self.nav.selected_id)

    def visible_entries(self) -> list[Entry]:
        rows = []
        for index in self.nav.visible_range():
            entry = self._view.get(self.results[index])
            if entry is not None:
                rows.append(entry)
        return rows

    def result_entries(self) -> list[Entry]:
        return [entry for entry_id in self.results.ids if (entry := self._view.get(entry_id)) is not None]

    def tag_counts(self) -> list[tuple[str, int]]:
        return self.store.counts_by_tag()

    def domain_counts(self, limit: int | None = DOMAIN_STATS_LIMIT) -> list[tuple[str, int]]:
        return self.store.counts_by_domain(limit)

    def type_counts(self) -> dict[ContentType, int]:
        counts = Counter(entry.content_type for entry in self._view.entries.values() if not entry.deleted)
        return {content_type: counts[content_type] for content_type in ContentType}

    def stats(self, now: datetime | None = None) -> ReadingStats:
        return compute_stats(self.store.all(), now)

    def take_condition(self) -> ReaderError | None:
        condition, self.last_condition = self.last_condition, None
        return condition

    # ------------------------------------------------------------------
    # Filters
    # ------------------------------------------------------------------

    def _refilter(self) -> None:
        self.refresh(force=True)

    def toggle_tag_filter(self, tag: str) -> None:
        self.filters.toggle_tag(tag)
        self._refilter()

    def set_type_filter(self, content_type: ContentType | None) -> None:
        self.filters.set_type(content_type)
        self._refilter()

    def set_domain_filter(self, domain: str | None) -> None:
        self.filters.set_domain(domain)
        self._refilter()

    def filter_by_current_domain(self) -> str | None:
        entry = self.current_entry()
        if entry is None or not entry.domain:
            return None
        self.set_domain_filter(entry.domain)
        return entry.domain

    def toggle_show_archived(self) -> bool:
        self.filters.show_archived = not self.filters.show_archived
        self._refilter()
        return self.filters.show_archived

    def clear_last_filter(self) -> str | None:
        kind = self.filters.clear_last()
        if kind is not None:
            self._refilter()
        return kind

    def clear_filters(self) -> None:
        self.filters.clear()
        self._refilter()

    def remove_filter(self, kind: str, label: str = "") -> None:
        """Drop one predicate; for tags only the tag named by the pill ``label``."""
        if kind == FILTER_TAG:
            tokens = tokenize_query(label)
            tag = tokens[0].value if tokens else ""
            if tag in self.filters.tags:
                self.filters.toggle_tag(tag)
        else:
            self.filters.clear_kind(kind)
        self._refilter()

    def session_state(self) -> SessionState:
        """Snapshot of what to restore on the next run."""
        content_type = self.filters.content_type
        return SessionState(
            selected_id=self.nav.selected_id,
            current_filter=filters_to_query(self.filters),
            type_filter=content_type.value if content_type is not None else None,
            show_archived=self.filters.show_archived,
        )

    def restore(self, state: SessionState) -> None:
        """Reapply a saved session: filters first, then the selected entry."""
        filters = FilterState(show_archived=state.show_archived)
        if state.type_filter:
            filters.set_type(ContentType(state.type_filter))
        apply_search_query(filters, state.current_filter)
        self.filters = filters
        self.refresh(force=True)
        if state.selected_id is not None:
            self.nav.set_results(self.results, follow_id=state.selected_id)

    # ------------------------------------------------------------------
    # Modes
    # ------------------------------------------------------------------

    def open_mode(self, mode: ViewMode) -> bool:
        return self.nav.open_modal(mode)

    def dismiss(self, *, restore: bool = True) -> ViewMode:
        return self.nav.dismiss(restore=restore)

    def begin_search(self) -> bool:
        if not self.nav.open_modal(ViewMode.SEARCH_INPUT):
            return False
        self._search_anchor_filters = _copy_filters(self.filters)
        return True

    def preview_search(self, text: str) -> None:
        """Live-filter while typing, starting from the pre-search filters."""
        if self.mode is not ViewMode.SEARCH_INPUT or self._search_anchor_filters is None:
            return
        filters = _copy_filters(self._search_anchor_filters)
        apply_search_query(filters, text)
        self.filters = filters
        self._refilter()

    def submit_search(self, text: str) -> None:
        base = self._search_anchor_filters or self.filters
        filters = _copy_filters(base)
        apply_search_query(filters, text)
        self.filters = filters
        self._search_anchor_filters = None
        self.nav.dismiss(restore=False)
        self._refilter()

    def cancel_search(self) -> None:
        """Leave search, restoring filters and the cursor to where they were."""
        if self._search_anchor_filters is not None:
            self.filters = self._search_anchor_filters
            self._search_anchor_filters = None
            self.refresh(force=True)
        self.nav.dismiss(restore=True)

    def shutdown(self) -> None:
        self.nav.shutdown()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def _mutate(self, entry_id: str | None, action: Callable[[str], Entry]) -> Entry | None:
        if entry_id is None or self.mode is ViewMode.SHUTDOWN:
            return None
        try:
            entry = action(entry_id)
        except NotFound as exc:
            logger.info("Ignoring intent for vanished entry: %s", exc)
            self.last_condition = exc
            self.refresh(force=True)
            return None
        self.refresh(force=True)
        return entry

    def toggle_favorite(self) -> Entry | None:
        entry = self.current_entry()
        if entry is None:
            return None
        return self._mutate(entry.id, lambda eid: self.store.set_flag(eid, "favorite", not entry.favorite))

    def favorite_and_archive(self) -> Entry | None:
        def _apply(entry_id: str) -> Entry:
            self.store.set_flag(entry_id, "favorite", True)
            return self.store.set_flag(entry_id, "archived", True)

        return self._mutate(self.nav.selected_id, _apply)

    def toggle_archive(self) -> Entry | None:
        entry = self.current_entry()
        if entry is None:
            return None
        return self._mutate(entry.id, lambda eid: self.store.set_flag(eid, "archived", not entry.archived))

    def toggle_top_tag(self) -> Entry | None:
        return self._mutate(self.nav.selected_id, lambda eid: self.store.toggle_tag(eid, TOP_TAG))

    def request_delete(self) -> bool:
        if self.nav.selected_id is None:
            return False
        return self.nav.open_modal(ViewMode.CONFIRM_DELETE)

    def confirm_delete(self, confirmed: bool) -> Entry | None:
        """Resolve the delete prompt; deletes the entry captured at open."""
        if self.mode is not ViewMode.CONFIRM_DELETE:
            return None
        target = self.nav.state.target_id
        self.nav.dismiss(restore=True)
        if not confirmed:
            return None
        return self._mutate(target, lambda eid: self.store.set_flag(eid, "deleted", True))

    def begin_rename(self, *, prefill: bool = True) -> str | None:
        """Enter the rename prompt and return the text to prefill it with.

        Without ``prefill`` the prompt starts empty.
        """
        entry = self.current_entry()
        if entry is None or not self.nav.open_modal(ViewMode.RENAME_PROMPT):
            return None
        if not prefill:
            return ""
        return entry.title if entry.title.strip() else entry.url

    def submit_rename(self, text: str | None) -> Entry | None:
        if self.mode is not ViewMode.RENAME_PROMPT:
            return None
        target = self.nav.state.target_id
        self.nav.dismiss(restore=True)
        title = normalize_title(text or "")
        if not title:
            return None
        return self._mutate(target, lambda eid: self.store.rename(eid, title))

    def begin_jump_to_date(self) -> bool:
        if self.nav.cursor is None:
            return False
        return self.nav.open_modal(ViewMode.DATE_PROMPT)

    def submit_jump_to_date(self, text: str | None) -> Entry | None:
        """Select the first result added on or before the typed date.

        Results are newest first, so that is the newest entry not after the
        date. ``None`` or blank text cancels; a match-less date leaves the
        cursor where it was. Raises ``ValueError`` for text that is not a date.
        """
        if self.mode is not ViewMode.DATE_PROMPT:
            return None
        self.nav.dismiss(restore=True)
        if text is None or not text.strip():
            return None
        bound = parse_date_bound(text)
        if bound is None:
            raise ValueError(f"Not a date: {text.strip()}")
        for index, entry_id in enumerate(self.results.ids):
            entry = self._view.get(entry_id)
            if entry is not None and entry.added_at < bound:
                self.nav.select(index)
                return entry
        return None

    def begin_edit_tags(self) -> str | None:
        """Enter the tag editor and return the current tags, comma separated."""
        entry = self.current_entry()
        if entry is None or not self.nav.open_modal(ViewMode.TAG_EDITOR):
            return None
        return ", ".join(entry.tags)

    def submit_tags(self, raw_tags: str | None) -> Entry | None:
        """Replace the target entry's tags; ``None`` cancels."""
        if self.mode is not ViewMode.TAG_EDITOR:
            return None
        target = self.nav.state.target_id
        self.nav.dismiss(restore=True)
        if raw_tags is None:
            return None
        tags = parse_tag_list(raw_tags)
        return self._mutate(target, lambda eid: self.store.set_tags(eid, tags))

    def open_current(self) -> str | None:
        """Return the URL to open for the selected entry and tag it as read.

        Entries with an empty title are flagged through ``last_condition``;
        the mode is left unchanged either way.
        """
        entry = self.current_entry()
        if entry is None:
            return None
        if not entry.title.strip():
            self.last_condition = MalformedEntry(entry.id, "title is empty")
        if not entry.url:
            self.last_condition = MalformedEntry(entry.id, "url is empty")
            return None
        self._mutate(entry.id, lambda eid: self.store.add_tag(eid, READ_TAG))
        return entry.url


def _copy_filters(filters: FilterState) -> FilterState:
    return FilterState(
        content_type=filters.content_type,
        tags=filters.tags,
        domain=filters.domain,
        text=filters.text,
        show_archived=filters.show_archived,
        order=list(filters.order),
    )


__all__ = ["ReaderSession"]
