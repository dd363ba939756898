"""Reading statistics derived from the entry store on demand."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from pocket_reader.models import READ_TAG, ContentType, Entry

_WINDOW_DAYS = {"week": 7, "month": 30}
_BAR_CAP = 45
_RECENT_BUCKETS = 6
_BAR_LABELS = {
    ContentType.ARTICLE: "Text",
    ContentType.VIDEO: "Vids",
    ContentType.PDF: "PDFs",
}


@dataclass(slots=True)
class WindowStats:
    """Added and read counts per content type within one time window."""

    added: Counter[ContentType] = field(default_factory=Counter)
    read: Counter[ContentType] = field(default_factory=Counter)

    def track(self, content_type: ContentType, is_read: bool) -> None:
        self.added[content_type] += 1
        if is_read:
            self.read[content_type] += 1

    @property
    def total_added(self) -> int:
        return sum(self.added.values())

    @property
    def total_read(self) -> int:
        return sum(self.read.values())


@dataclass(slots=True)
class ReadingStats:
    """Calendar buckets and rolling windows over live entries."""

    by_day: Counter[str] = field(default_factory=Counter)
    by_week: Counter[str] = field(default_factory=Counter)
    by_month: Counter[str] = field(default_factory=Counter)
    by_type: Counter[ContentType] = field(default_factory=Counter)
    by_day_and_type: dict[str, Counter[ContentType]] = field(default_factory=dict)
    today: WindowStats = field(default_factory=WindowStats)
    week: WindowStats = field(default_factory=WindowStats)
    month: WindowStats = field(default_factory=WindowStats)
    total: int = 0


def day_key(moment: datetime) -> str:
    return moment.strftime("%Y-%m-%d")


def week_key(moment: datetime) -> str:
    year, week, _ = moment.isocalendar()
    return f"{year}-W{week:02d}"


def month_key(moment: datetime) -> str:
    return moment.strftime("%Y-%m")


def compute_stats(entries: Iterable[Entry], now: datetime | None = None) -> ReadingStats:
    """Bucket non-deleted entries by ``added_at`` and content type.

    Rolling windows follow calendar-day equality for "today" and whole days
    elapsed for the 7 and 30 day windows; each window includes the shorter
    ones.

    A naive ``now`` is taken as local time.
    """
    now = now or datetime.now(UTC)
    if now.tzinfo is None:
        now = now.astimezone()
    tz = now.tzinfo
    stats = ReadingStats()
    for entry in entries:
        if entry.deleted or entry.added_at <= 0:
            continue
        added = datetime.fromtimestamp(entry.added_at, tz)
        day = day_key(added)
        stats.total += 1
        stats.by_day[day] += 1
        stats.by_week[week_key(added)] += 1
        stats.by_month[month_key(added)] += 1
        stats.by_type[entry.content_type] += 1
        stats.by_day_and_type.setdefault(day, Counter())[entry.content_type] += 1

        is_read = READ_TAG in entry.tags
        elapsed_days = (now - added).days
        if added.date() == now.date():
            windows = (stats.today, stats.week, stats.month)
        elif elapsed_days <= _WINDOW_DAYS["week"]:
            windows = (stats.week, stats.month)
        elif elapsed_days <= _WINDOW_DAYS["month"]:
            windows = (stats.month,)
        else:
            windows = ()
        for window in windows:
            window.track(entry.content_type, is_read)
    return stats


def _bar(count: int, glyph: str) -> str:
    return glyph * min(count, _BAR_CAP)


def render_window(window: WindowStats, *, ascii_only: bool = False) -> str:
    """Render added/read bars for each content type."""
    glyph = "#" if ascii_only else "■"
    separator = "|" if ascii_only else "│"
    width = max([min(count, _BAR_CAP) for count in (*window.added.values(), *window.read.values())] or [0])
    lines: list[str] = []
    for content_type, label in _BAR_LABELS.items():
        added = window.added[content_type]
        read = window.read[content_type]
        lines.append(f"{label}: {_bar(added, glyph):<{width}} {separator} {added:3} added")
        lines.append(f"      {_bar(read, glyph):<{width}} {separator} {read:3} read")
    return "\n".join(lines)


def render_stats_report(stats: ReadingStats, *, ascii_only: bool = False) -> str:
    """Plain-text report used by the stats screen and ``--stats``."""
    sections = [
        ("Today", stats.today),
        ("Last 7 days", stats.week),
        ("Last 30 days", stats.month),
    ]
    parts = []
    for title, window in sections:
        parts.append(f"{title} ({window.total_added} added, {window.total_read} read)")
        parts.append(render_window(window, ascii_only=ascii_only))
        parts.append("")
    glyph = "#" if ascii_only else "■"
    for title, buckets in (("Recent weeks", stats.by_week), ("Recent months", stats.by_month)):
        recent = sorted(buckets.items(), reverse=True)[:_RECENT_BUCKETS]
        if not recent:
            continue
        parts.append(title)
        parts.extend(f"  {key:<8} {count:4} {_bar(count, glyph)}" for key, count in recent)
        parts.append("")
    distribution = ", ".join(f"{ct.label}: {stats.by_type[ct]}" for ct in ContentType)
    parts.append(f"All time: {stats.total} saved ({distribution})")
    return "\n".join(parts)


def render_domain_stats(counts: list[tuple[str, int]], *, ascii_only: bool = False) -> str:
    """Render one bar per domain, most saved first."""
    if not counts:
        return "No domains yet."
    glyph = "#" if ascii_only else "■"
    name_width = max(len(name) for name, _ in counts)
    return "\n".join(f"{name:<{name_width}} {count:4} {_bar(count, glyph)}" for name, count in counts)


__all__ = [
    "ReadingStats",
    "WindowStats",
    "compute_stats",
    "day_key",
    "month_key",
    "render_domain_stats",
    "render_stats_report",
    "render_window",
    "week_key",
]
