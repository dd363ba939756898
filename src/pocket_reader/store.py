"""Entry store: the canonical id -> entry mapping and its merge rule.

Every write goes through :func:`merge_patch`, which compares each incoming
field against the time that field was last written. Writes for a single id
are serialized by one store-wide re-entrant lock that is held only for the
duration of that entry's update, so a long sync never blocks the UI for
more than one entry at a time.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, replace

from pocket_reader.errors import NotFound, StaleWrite
from pocket_reader.index import TagDomainIndex
from pocket_reader.models import (
    FLAG_FIELDS,
    MERGE_FIELDS,
    Entry,
    EntryPatch,
    OutgoingMutation,
)
from pocket_reader.parsing import extract_domain

logger = logging.getLogger(__name__)

# Remote action names for local flag changes, keyed by (flag, new value)
_FLAG_ACTIONS: dict[tuple[str, bool], str] = {
    ("favorite", True): "favorite",
    ("favorite", False): "unfavorite",
    ("archived", True): "archive",
    ("archived", False): "readd",
    ("deleted", True): "delete",
    ("deleted", False): "readd",
}


@dataclass(slots=True, frozen=True)
class UpsertResult:
    """What a single merge did to one entry."""

    entry: Entry
    created: bool = False
    changed: bool = False
    stale: tuple[StaleWrite, ...] = ()


@dataclass(slots=True, frozen=True)
class StoreView:
    """Immutable, generation-stamped copy of the store for readers."""

    entries: Mapping[str, Entry]
    index: TagDomainIndex
    generation: int

    def get(self, entry_id: str) -> Entry | None:
        return self.entries.get(entry_id)

    def __len__(self) -> int:
        return len(self.entries)


def merge_patch(existing: Entry | None, patch: EntryPatch) -> tuple[Entry, list[str], list[str]]:
    """Merge ``patch`` into ``existing`` and return (entry, applied, stale).

    A field is applied when its incoming time is at least the time the field
    was last written. ``added_at`` is immutable once set, tags are unioned
    unless ``patch.replace_tags`` is set, and ``modified_at`` becomes the
    latest applied field time.
    """
    base = existing if existing is not None else Entry(id=patch.id, field_times=dict.fromkeys(MERGE_FIELDS, 0))
    values: dict[str, object] = {}
    times = dict(base.field_times)
    applied: list[str] = []
    stale: list[str] = []

    for name in patch.present_fields():
        if name == "tags":
            merged = _merge_tags(base, patch)
            if merged is None:
                stale.append(name)
                continue
            values[name], times[name] = merged
            applied.append(name)
            continue
        incoming_time = patch.time_of(name)
        if incoming_time < base.field_time(name):
            stale.append(name)
            continue
        values[name] = getattr(patch, name)
        times[name] = incoming_time
        applied.append(name)

    if "url" in values:
        values["domain"] = extract_domain(str(values["url"]))
    if not base.added_at and patch.added_at:
        values["added_at"] = patch.added_at
    modified_at = max([base.modified_at, *(times[name] for name in applied)])
    if existing is None:
        modified_at = max(modified_at, patch.modified_at)

    entry = replace(base, modified_at=modified_at, field_times=times, **values)
    return entry, applied, stale


def _merge_tags(base: Entry, patch: EntryPatch) -> tuple[tuple[str, ...], int] | None:
    """Replay the patch's tag steps over ``base``; ``None`` when every step is stale."""
    tags = base.tags
    tags_time = base.field_time("tags")
    hit = False
    for step_time, step_tags, replace_all in patch.tag_changes():
        if step_time < tags_time:
            continue
        if replace_all:
            tags = step_tags
        else:
            tags = tags + tuple(tag for tag in step_tags if tag not in tags)
        tags_time = step_time
        hit = True
    return (tags, tags_time) if hit else None


class _RestartableEntries:
    """Iterable over the store's entries; each iteration starts afresh."""

    def __init__(self, store: EntryStore) -> None:
        self._store = store

    def __iter__(self) -> Iterator[Entry]:
        with self._store._lock:
            values = list(self._store._entries.values())
        yield from values


class EntryStore:
    """Owns every entry; indices and views only ever hold ids."""

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        self._lock = threading.RLock()
        self._entries: dict[str, Entry] = {}
        self._index = TagDomainIndex()
        self._outgoing: list[OutgoingMutation] = []
        self._generation = 0
        self._published_generation = 0
        self._clock = clock

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, entry_id: str) -> Entry:
        with self._lock:
            entry = self._entries.get(entry_id)
        if entry is None:
            raise NotFound(entry_id)
        return entry

    def all(self) -> Iterable[Entry]:
        """Return a lazy, restartable view of all entries (order unspecified)."""
        return _RestartableEntries(self)

    def __contains__(self, entry_id: object) -> bool:
        with self._lock:
            return entry_id in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    @property
    def generation(self) -> int:
        """Write counter; bumps on every change, published or not."""
        with self._lock:
            return self._generation

    @property
    def published_generation(self) -> int:
        with self._lock:
            return self._published_generation

    def publish(self) -> int:
        """Make all writes so far visible to readers waiting on a new generation."""
        with self._lock:
            self._published_generation = self._generation
            return self._published_generation

    def snapshot(self) -> StoreView:
        """Return a consistent copy of entries and indices."""
        with self._lock:
            return StoreView(
                entries=dict(self._entries),
                index=self._index.copy(),
                generation=self._generation,
            )

    def counts_by_tag(self) -> list[tuple[str, int]]:
        with self._lock:
            return self._index.counts_by_tag()

    def counts_by_domain(self, limit: int | None = None) -> list[tuple[str, int]]:
        with self._lock:
            return self._index.counts_by_domain(limit)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def upsert(self, patch: EntryPatch) -> UpsertResult:
        """Create or merge one entry. Never removes anything."""
        with self._lock:
            existing = self._entries.get(patch.id)
            entry, applied, stale = merge_patch(existing, patch)
            stale_writes = tuple(StaleWrite(patch.id, name) for name in stale)
            for write in stale_writes:
                logger.debug("%s", write)
            changed = existing is None or entry != existing
            if changed:
                self._entries[patch.id] = entry
                self._index.update(existing, entry)
                self._generation += 1
            return UpsertResult(
                entry=self._entries[patch.id],
                created=existing is None,
                changed=changed,
                stale=stale_writes,
            )

    def set_flag(self, entry_id: str, flag: str, value: bool) -> Entry:
        """Set a flag as a local intent and queue it for the next sync."""
        if flag not in FLAG_FIELDS:
            raise ValueError(f"Unknown flag: {flag}")
        with self._lock:
            current = self.get(entry_id)
            stamp = self._stamp(current, flag)
            patch = EntryPatch(id=entry_id, modified_at=stamp)
            setattr(patch, flag, value)
            entry = self._apply_local(patch)
            self._queue(_FLAG_ACTIONS[(flag, value)], entry_id, stamp)
            return entry

    def rename(self, entry_id: str, title: str) -> Entry:
        with self._lock:
            current = self.get(entry_id)
            stamp = self._stamp(current, "title")
            entry = self._apply_local(EntryPatch(id=entry_id, modified_at=stamp, title=title))
            self._queue("add", entry_id, stamp, {"title": title, "url": entry.url})
            return entry

    def set_tags(self, entry_id: str, tags: Iterable[str]) -> Entry:
        """Replace an entry's tags as a local intent."""
        new_tags = tuple(dict.fromkeys(tag for tag in tags if tag))
        with self._lock:
            current = self.get(entry_id)
            stamp = self._stamp(current, "tags")
            patch = EntryPatch(id=entry_id, modified_at=stamp, tags=new_tags, replace_tags=True)
            entry = self._apply_local(patch)
            if new_tags:
                self._queue("tags_replace", entry_id, stamp, {"tags": ",".join(new_tags)})
            else:
                self._queue("tags_clear", entry_id, stamp)
            return entry

    def add_tag(self, entry_id: str, tag: str) -> Entry:
        with self._lock:
            current = self.get(entry_id)
            if tag in current.tags:
                return current
            return self.set_tags(entry_id, (*current.tags, tag))

    def toggle_tag(self, entry_id: str, tag: str) -> Entry:
        with self._lock:
            current = self.get(entry_id)
            if tag in current.tags:
                return self.set_tags(entry_id, (t for t in current.tags if t != tag))
            return self.set_tags(entry_id, (*current.tags, tag))

    def _stamp(self, current: Entry, name: str) -> int:
        return max(int(self._clock()), current.field_time(name) + 1, current.modified_at + 1)

    def _apply_local(self, patch: EntryPatch) -> Entry:
        result = self.upsert(patch)
        self.publish()
        return result.entry

    # ------------------------------------------------------------------
    # Outgoing mutations
    # ------------------------------------------------------------------

    def _queue(
        self,
        action: str,
        entry_id: str,
        stamp: int,
        args: Mapping[str, str] | None = None,
    ) -> None:
        self._outgoing.append(
            OutgoingMutation(action=action, item_id=entry_id, timestamp=stamp, args=dict(args or {}))
        )

    def pending_mutations(self) -> tuple[OutgoingMutation, ...]:
        with self._lock:
            return tuple(self._outgoing)

    def acknowledge(self, mutations: Iterable[OutgoingMutation]) -> None:
        """Drop mutations the remote service accepted; newer ones stay queued."""
        sent = list(mutations)
        with self._lock:
            for mutation in sent:
                try:
                    self._outgoing.remove(mutation)
                except ValueError:
                    continue

    # ------------------------------------------------------------------
    # Persistence support
    # ------------------------------------------------------------------

    def export_state(self) -> tuple[list[Entry], list[OutgoingMutation]]:
        with self._lock:
            return list(self._entries.values()), list(self._outgoing)

    def restore(self, entries: Iterable[Entry], outgoing: Iterable[OutgoingMutation] = ()) -> None:
        """Replace the store contents with previously persisted state."""
        with self._lock:
            self._entries = {entry.id: entry for entry in entries}
            self._index = TagDomainIndex()
            for entry in self._entries.values():
                self._index.update(None, entry)
            self._outgoing = list(outgoing)
            self._generation += 1
            self._published_generation = self._generation


__all__ = [
    "EntryStore",
    "StoreView",
    "UpsertResult",
    "merge_patch",
]
