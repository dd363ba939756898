"""Tests for the stats aggregator and its text rendering."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from pocket_reader.models import ContentType
from pocket_reader.stats import (
    compute_stats,
    day_key,
    month_key,
    render_domain_stats,
    render_stats_report,
    render_window,
    week_key,
)

NOW = datetime(2024, 3, 15, 12, 0, tzinfo=UTC)


def _ts(moment: datetime) -> int:
    return int(moment.timestamp())


def test_bucket_keys():
    moment = datetime(2024, 1, 1, tzinfo=UTC)
    assert day_key(moment) == "2024-01-01"
    assert week_key(moment) == "2024-W01"
    assert month_key(moment) == "2024-01"
    assert week_key(datetime(2021, 1, 3, tzinfo=UTC)) == "2020-W53"


def test_windows_nest(make_entry):
    entries = [
        make_entry("today", added_at=_ts(NOW - timedelta(hours=1)), tags=("read",)),
        make_entry("week", added_at=_ts(NOW - timedelta(days=3)), content_type=ContentType.VIDEO),
        make_entry("month", added_at=_ts(NOW - timedelta(days=20)), content_type=ContentType.PDF),
        make_entry("old", added_at=_ts(NOW - timedelta(days=90))),
    ]
    stats = compute_stats(entries, now=NOW)

    assert stats.today.total_added == 1
    assert stats.today.total_read == 1
    assert stats.week.total_added == 2
    assert stats.month.total_added == 3
    assert stats.month.added[ContentType.PDF] == 1
    assert stats.total == 4
    assert stats.by_type[ContentType.ARTICLE] == 2


def test_deleted_and_undated_entries_are_skipped(make_entry):
    entries = [
        make_entry("a", added_at=_ts(NOW)),
        make_entry("b", added_at=_ts(NOW), deleted=True),
        make_entry("c", added_at=0),
    ]
    stats = compute_stats(entries, now=NOW)
    assert stats.total == 1
    assert stats.by_day == {"2024-03-15": 1}


def test_naive_now_is_local_time(make_entry):
    local_now = datetime(2024, 3, 15, 12, 0)
    entries = [make_entry("week", added_at=_ts(local_now - timedelta(days=3)))]
    stats = compute_stats(entries, now=local_now)
    assert stats.total == 1
    assert stats.today.total_added == 0
    assert stats.week.total_added == 1


def test_calendar_buckets(make_entry):
    entries = [
        make_entry("a", added_at=_ts(datetime(2024, 2, 28, tzinfo=UTC))),
        make_entry("b", added_at=_ts(datetime(2024, 2, 29, tzinfo=UTC)), content_type=ContentType.VIDEO),
        make_entry("c", added_at=_ts(datetime(2024, 3, 1, tzinfo=UTC))),
    ]
    stats = compute_stats(entries, now=NOW)
    assert stats.by_month == {"2024-02": 2, "2024-03": 1}
    assert stats.by_week == {"2024-W09": 3}
    assert stats.by_day_and_type["2024-02-29"] == {ContentType.VIDEO: 1}


def test_render_window_ascii(make_entry):
    stats = compute_stats([make_entry("a", added_at=_ts(NOW), tags=("read",))], now=NOW)
    text = render_window(stats.today, ascii_only=True)
    assert "Text: # |   1 added" in text
    assert "      # |   1 read" in text
    assert "■" not in text


def test_render_stats_report_sections(make_entry):
    stats = compute_stats([make_entry("a", added_at=_ts(NOW))], now=NOW)
    report = render_stats_report(stats)
    assert report.startswith("Today (1 added, 0 read)")
    assert "Last 7 days (1 added, 0 read)" in report
    assert "Recent weeks" in report
    assert "2024-W11" in report
    assert "Recent months" in report
    assert report.endswith("All time: 1 saved (Articles: 1, Videos: 0, PDFs: 0)")


def test_render_stats_report_empty():
    report = render_stats_report(compute_stats([], now=NOW), ascii_only=True)
    assert "Recent weeks" not in report
    assert report.endswith("All time: 0 saved (Articles: 0, Videos: 0, PDFs: 0)")


def test_render_domain_stats():
    text = render_domain_stats([("lwn.net", 3), ("python.org", 1)], ascii_only=True)
    assert text.splitlines() == [
        "lwn.net       3 ###",
        "python.org    1 #",
    ]
    assert render_domain_stats([]) == "No domains yet."


def test_bars_are_capped():
    text = render_domain_stats([("big.com", 500)], ascii_only=True)
    assert text.count("#") == 45
