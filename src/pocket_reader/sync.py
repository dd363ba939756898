"""Sync reconciler: bootstrap and delta ingestion into the entry store."""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Iterable
from dataclasses import replace

from pocket_reader.errors import SyncTransportFailure
from pocket_reader.models import (
    MERGE_FIELDS,
    Cursor,
    DeltaBatch,
    EntryPatch,
    MergeReport,
    Snapshot,
)
from pocket_reader.services.interfaces import SyncTransport, TokenProvider
from pocket_reader.store import EntryStore

logger = logging.getLogger(__name__)


# ============================================================================
# Batch folding
# ============================================================================


def fold_pair(left: EntryPatch, right: EntryPatch) -> EntryPatch:
    """Fold ``right`` onto ``left`` using the same per-field rule as the store.

    Tag changes are kept as timed steps so the store can drop the ones that
    are stale against its own tag time, exactly as if each record were merged
    in turn.
    """
    result = replace(left, field_times={})
    for name in MERGE_FIELDS:
        if getattr(left, name) is not None:
            result.field_times[name] = left.time_of(name)

    for name in right.present_fields():
        if name == "tags":
            _fold_tags(result, left, right)
            continue
        incoming_time = right.time_of(name)
        if getattr(result, name) is not None and incoming_time < result.field_times[name]:
            continue
        setattr(result, name, getattr(right, name))
        result.field_times[name] = incoming_time

    result.modified_at = max(left.modified_at, right.modified_at)
    if result.added_at is None:
        result.added_at = right.added_at
    return result


def _fold_tags(result: EntryPatch, left: EntryPatch, right: EntryPatch) -> None:
    steps = left.tag_changes()
    floor = steps[-1][0] if steps else None
    later = tuple(step for step in right.tag_changes() if floor is None or step[0] >= floor)
    if not later:
        return
    steps += later
    tags: tuple[str, ...] = ()
    for _, step_tags, replace_all in steps:
        tags = step_tags if replace_all else tags + tuple(tag for tag in step_tags if tag not in tags)
    result.tags = tags
    result.replace_tags = any(replace_all for _, _, replace_all in steps)
    result.tag_steps = steps
    result.field_times["tags"] = steps[-1][0]


def fold_records(records: Iterable[EntryPatch]) -> list[EntryPatch]:
    """Collapse records sharing an id, left to right, keeping first-seen order."""
    folded: dict[str, EntryPatch] = {}
    for record in records:
        prior = folded.get(record.id)
        folded[record.id] = record if prior is None else fold_pair(prior, record)
    return list(folded.values())


# ============================================================================
# Reconciler
# ============================================================================


class SyncReconciler:
    """Merges snapshots and deltas into the store and tracks the resume cursor.

    The cursor only moves after a whole batch merged without cancellation,
    so a retried batch is always safe to re-apply.
    """

    def __init__(
        self,
        store: EntryStore,
        transport: SyncTransport | None = None,
        tokens: TokenProvider | None = None,
        *,
        cursor: Cursor | None = None,
    ) -> None:
        self._store = store
        self._transport = transport
        self._tokens = tokens
        self._cursor = cursor
        self._cursor_lock = threading.Lock()
        self._active_cancel: threading.Event | None = None
        self.last_error: SyncTransportFailure | None = None
        self.last_report: MergeReport | None = None

    @property
    def cursor(self) -> Cursor | None:
        with self._cursor_lock:
            return self._cursor

    @property
    def in_progress(self) -> bool:
        return self._active_cancel is not None

    def reset_cursor(self) -> None:
        """Forget the resume point so the next sync fetches a full snapshot."""
        with self._cursor_lock:
            self._cursor = None

    # ------------------------------------------------------------------
    # Merging (runs on a worker thread during background syncs)
    # ------------------------------------------------------------------

    def bootstrap(self, snapshot: Snapshot, *, cancel_event: threading.Event | None = None) -> MergeReport:
        """Upsert every snapshot record and resume from the snapshot's cursor."""
        return self._merge(snapshot.records, snapshot.cursor, cancel_event)

    def apply_delta(self, batch: DeltaBatch, *, cancel_event: threading.Event | None = None) -> MergeReport:
        """Merge one delta batch; advances the cursor only when fully applied."""
        end_cursor = batch.end_cursor if batch.end_cursor is not None else self.cursor
        return self._merge(batch.records, end_cursor, cancel_event)

    def _merge(
        self,
        records: Iterable[EntryPatch],
        end_cursor: Cursor | None,
        cancel_event: threading.Event | None,
    ) -> MergeReport:
        report = MergeReport()
        for patch in fold_records(records):
            if cancel_event is not None and cancel_event.is_set():
                report.cancelled = True
                logger.info("Merge cancelled after %d change(s); cursor not advanced", report.changed)
                return report
            result = self._store.upsert(patch)
            if result.created:
                report.created += 1
            elif result.changed:
                report.updated += 1
            report.stale_fields += len(result.stale)

        with self._cursor_lock:
            if cancel_event is not None and cancel_event.is_set():
                report.cancelled = True
                return report
            self._cursor = end_cursor
            self._store.publish()
        logger.info(
            "Merged batch: created=%d updated=%d stale_fields=%d cursor=%s",
            report.created,
            report.updated,
            report.stale_fields,
            end_cursor,
        )
        self.last_report = report
        return report

    # ------------------------------------------------------------------
    # Network driven sync
    # ------------------------------------------------------------------

    def cancel(self) -> None:
        """Ask an in-flight sync to stop before its next entry."""
        if self._active_cancel is not None:
            self._active_cancel.set()

    def _require_collaborators(self) -> tuple[SyncTransport, TokenProvider]:
        if self._transport is None or self._tokens is None:
            raise SyncTransportFailure("Sync is not configured (offline mode)")
        return self._transport, self._tokens

    async def push_pending(self, credential: str) -> int:
        """Send queued local changes; they stay queued if the send fails."""
        transport, _ = self._require_collaborators()
        mutations = self._store.pending_mutations()
        if not mutations:
            return 0
        await transport.send_mutations(credential, mutations)
        self._store.acknowledge(mutations)
        logger.info("Pushed %d queued change(s)", len(mutations))
        return len(mutations)

    async def sync(self, *, full: bool = False) -> MergeReport:
        """Push local changes, then fetch and merge remote ones.

        A new call cancels any sync still in flight. Transport failures are
        recorded in ``last_error`` and re-raised; the cursor stays put.
        """
        transport, tokens = self._require_collaborators()
        self.cancel()
        cancel_event = threading.Event()
        self._active_cancel = cancel_event
        logger.info("Sync started (full=%s, cursor=%s)", full, self.cursor)
        try:
            credential = tokens.get_token()
            await self.push_pending(credential)
            requested = self.cursor
            if full or requested is None:
                snapshot = await transport.fetch_snapshot(credential)
                if cancel_event.is_set():
                    return MergeReport(cancelled=True)
                report = await asyncio.to_thread(self.bootstrap, snapshot, cancel_event=cancel_event)
            else:
                batch = await transport.fetch_delta(credential, requested)
                if cancel_event.is_set():
                    return MergeReport(cancelled=True)
                report = await asyncio.to_thread(self.apply_delta, batch, cancel_event=cancel_event)
        except SyncTransportFailure as exc:
            self.last_error = exc
            logger.warning("Sync failed: %s", exc)
            raise
        except asyncio.CancelledError:
            cancel_event.set()
            raise
        finally:
            if self._active_cancel is cancel_event:
                self._active_cancel = None
        if not report.cancelled:
            self.last_error = None
        return report

    async def full_refresh(self) -> MergeReport:
        return await self.sync(full=True)

    async def flush(self) -> bool:
        """Best-effort push of queued changes, used on shutdown."""
        if not self._store.pending_mutations():
            return True
        try:
            _, tokens = self._require_collaborators()
            await self.push_pending(tokens.get_token())
        except SyncTransportFailure as exc:
            logger.warning("Could not flush queued changes, keeping them for next run: %s", exc)
            return False
        return True


__all__ = [
    "SyncReconciler",
    "fold_pair",
    "fold_records",
]
