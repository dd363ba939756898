"""View/navigation state machine: mode, cursor and viewport over a result list."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from pocket_reader.models import DEFAULT_PAGE_SIZE, ViewMode
from pocket_reader.query import ResultList

logger = logging.getLogger(__name__)

DEFAULT_VIEWPORT_HEIGHT = 20


@dataclass(slots=True)
class ScrollAnchor:
    """Browse position saved when a mode is entered."""

    cursor: int | None = None
    offset: int = 0
    entry_id: str | None = None


@dataclass(slots=True)
class ViewState:
    """What the user currently sees.

    ``cursor`` is ``None`` exactly when the result list is empty. When it is
    set, ``offset <= cursor < offset + viewport_height``.
    """

    mode: ViewMode = ViewMode.BROWSE
    cursor: int | None = None
    offset: int = 0
    viewport_height: int = DEFAULT_VIEWPORT_HEIGHT
    anchors: dict[ViewMode, ScrollAnchor] = field(default_factory=dict)
    # Entry the open modal acts on, captured when the modal opened
    target_id: str | None = None


class Navigator:
    """Owns the ViewState and keeps it consistent with the current results."""

    def __init__(
        self,
        *,
        viewport_height: int = DEFAULT_VIEWPORT_HEIGHT,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        self.state = ViewState(viewport_height=max(1, viewport_height))
        self.page_size = max(1, page_size)
        self.results = ResultList()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def mode(self) -> ViewMode:
        return self.state.mode

    @property
    def cursor(self) -> int | None:
        return self.state.cursor

    @property
    def selected_id(self) -> str | None:
        if self.state.cursor is None:
            return None
        return self.results[self.state.cursor]

    def visible_range(self) -> range:
        """Indices of result rows inside the viewport."""
        end = min(len(self.results), self.state.offset + self.state.viewport_height)
        return range(self.state.offset, end)

    # ------------------------------------------------------------------
    # Result list changes
    # ------------------------------------------------------------------

    def set_results(self, results: ResultList, *, follow_id: str | None = None) -> None:
        """Swap in a recomputed result list and re-clamp cursor and viewport.

        The cursor follows ``follow_id`` (default: the selected entry) when it
        is still listed; otherwise the old index is clamped to the new length.
        """
        target = follow_id if follow_id is not None else self.selected_id
        previous = self.state.cursor
        self.results = results
        position = results.position_of(target)
        if position is not None:
            self.state.cursor = position
        else:
            self.state.cursor = previous
        self._clamp()

    def _clamp(self) -> None:
        length = len(self.results)
        state = self.state
        if length == 0:
            state.cursor = None
            state.offset = 0
            return
        if state.cursor is None:
            state.cursor = 0
        state.cursor = max(0, min(state.cursor, length - 1))
        height = state.viewport_height
        if state.cursor < state.offset:
            state.offset = state.cursor
        elif state.cursor >= state.offset + height:
            state.offset = state.cursor - height + 1
        state.offset = max(0, min(state.offset, max(0, length - height)))

    def set_viewport_height(self, height: int) -> None:
        self.state.viewport_height = max(1, height)
        self._clamp()

    # ------------------------------------------------------------------
    # Cursor movement (browse mode only)
    # ------------------------------------------------------------------

    def move(self, delta: int) -> bool:
        """Move the cursor by ``delta`` rows. Returns whether it moved."""
        if self.state.mode is not ViewMode.BROWSE or self.state.cursor is None:
            return False
        before = self.state.cursor
        self.state.cursor = before + delta
        self._clamp()
        return self.state.cursor != before

    def page_down(self) -> bool:
        return self.move(self.page_size)

    def page_up(self) -> bool:
        return self.move(-self.page_size)

    def home(self) -> bool:
        if self.state.cursor is None:
            return False
        return self.move(-self.state.cursor)

    def end(self) -> bool:
        if self.state.cursor is None:
            return False
        return self.move(len(self.results) - 1 - self.state.cursor)

    def select(self, index: int) -> bool:
        if self.state.cursor is None:
            return False
        return self.move(index - self.state.cursor)

    # ------------------------------------------------------------------
    # Mode transitions
    # ------------------------------------------------------------------

    def open_modal(self, mode: ViewMode) -> bool:
        """Enter ``mode`` from browse, remembering where browse was."""
        if not mode.is_modal or self.state.mode is not ViewMode.BROWSE:
            logger.debug("Refused transition %s -> %s", self.state.mode.value, mode.value)
            return False
        self.state.anchors[mode] = ScrollAnchor(
            cursor=self.state.cursor,
            offset=self.state.offset,
            entry_id=self.selected_id,
        )
        self.state.target_id = self.selected_id
        self.state.mode = mode
        return True

    def dismiss(self, *, restore: bool = True) -> ViewMode:
        """Return to browse. With ``restore`` the saved anchor is reinstated."""
        mode = self.state.mode
        if not mode.is_modal:
            return mode
        anchor = self.state.anchors.pop(mode, None)
        self.state.mode = ViewMode.BROWSE
        self.state.target_id = None
        if restore and anchor is not None:
            position = self.results.position_of(anchor.entry_id)
            self.state.cursor = position if position is not None else anchor.cursor
            self.state.offset = anchor.offset
        self._clamp()
        return mode

    def shutdown(self) -> None:
        """Enter the terminal state; no further transitions are accepted."""
        self.state.anchors.clear()
        self.state.target_id = None
        self.state.mode = ViewMode.SHUTDOWN


__all__ = [
    "DEFAULT_VIEWPORT_HEIGHT",
    "Navigator",
    "ScrollAnchor",
    "ViewState",
]
