"""Tests for Pocket payload parsing and field helpers."""

from __future__ import annotations

from datetime import datetime

import pytest

from pocket_reader.models import ContentType, EntryStats
from pocket_reader.parsing import (
    build_snapshot,
    detect_content_type,
    extract_domain,
    format_timestamp,
    normalize_title,
    parse_date_bound,
    parse_delta_response,
    parse_item,
    parse_item_list,
    parse_tag_list,
)


def _item(item_id: str = "101", **overrides):
    item = {
        "item_id": item_id,
        "given_url": f"https://example.com/{item_id}",
        "resolved_url": f"https://www.example.com/{item_id}",
        "given_title": "",
        "resolved_title": f"Title {item_id}",
        "favorite": "0",
        "status": "0",
        "time_added": "1700000000",
        "time_updated": "1700000100",
        "sort_id": 0,
        "word_count": "1200",
        "time_to_read": 6,
        "tags": {"rust": {"item_id": item_id, "tag": "rust"}},
    }
    item.update(overrides)
    return item


class TestFieldHelpers:
    @pytest.mark.parametrize(
        ("url", "domain"),
        [
            ("https://www.lwn.net/Articles/1", "lwn.net"),
            ("http://Example.COM?x=1", "example.com"),
            ("blog.rust-lang.org/2024/", "blog.rust-lang.org"),
            ("https://host.io#frag", "host.io"),
            ("https://user@host:8080/x", "host"),
            ("https://user:pw@www.Example.com:443/", "example.com"),
            ("", ""),
        ],
    )
    def test_extract_domain(self, url, domain):
        assert extract_domain(url) == domain

    @pytest.mark.parametrize(
        ("url", "has_video", "expected"),
        [
            ("https://www.youtube.com/watch?v=1", None, ContentType.VIDEO),
            ("https://vimeo.com/1", "2", ContentType.VIDEO),
            ("https://arxiv.org/pdf/2401.1", None, ContentType.PDF),
            ("https://lwn.net/a", "0", ContentType.ARTICLE),
        ],
    )
    def test_detect_content_type(self, url, has_video, expected):
        assert detect_content_type(url, has_video) is expected

    def test_normalize_title(self):
        assert normalize_title("  a\n\tb  c ") == "a b c"

    def test_parse_tag_list(self):
        assert parse_tag_list(" Rust, rust ,, Go ") == ("rust", "go")
        assert parse_tag_list("") == ()

    def test_format_timestamp(self):
        assert format_timestamp(0) == "----------"
        assert len(format_timestamp(1_700_000_000)) == 10

    @pytest.mark.parametrize(
        ("text", "end"),
        [
            ("2024-02-29", datetime(2024, 3, 1)),
            ("2024-12", datetime(2025, 1, 1)),
            ("2024", datetime(2025, 1, 1)),
        ],
    )
    def test_parse_date_bound(self, text, end):
        assert parse_date_bound(text) == int(end.timestamp())

    @pytest.mark.parametrize("text", ["2023-02-29", "soon", "", "9999"])
    def test_parse_date_bound_rejects(self, text):
        assert parse_date_bound(text) is None


class TestParseItem:
    def test_full_item(self):
        patch = parse_item(_item())
        assert patch.id == "101"
        assert patch.modified_at == 1700000100
        assert patch.url == "https://www.example.com/101"
        assert patch.title == "Title 101"
        assert patch.tags == ("rust",)
        assert patch.replace_tags is True
        assert patch.added_at == 1700000000
        assert patch.favorite is False
        assert patch.archived is False
        assert patch.deleted is False
        assert patch.content_type is ContentType.ARTICLE
        assert patch.stats == EntryStats(word_count=1200, duration_seconds=360)

    def test_given_title_preferred(self):
        assert parse_item(_item(given_title="My name")).title == "My name"

    def test_archived_and_favorite(self):
        patch = parse_item(_item(status="1", favorite="1"))
        assert patch.archived is True
        assert patch.favorite is True

    def test_untagged_item_clears_tags(self):
        item = _item()
        del item["tags"]
        patch = parse_item(item)
        assert patch.tags == ()
        assert patch.replace_tags is True

    def test_deleted_item_is_tombstone(self):
        patch = parse_item({"item_id": "9", "status": "2"}, fallback_time=555)
        assert patch.deleted is True
        assert patch.modified_at == 555
        assert patch.present_fields() == ["deleted"]

    def test_missing_id_is_skipped(self):
        assert parse_item({"status": "0"}) is None

    def test_missing_title_with_url_is_empty_string(self):
        patch = parse_item(_item(resolved_title="", given_title=""))
        assert patch.title == ""


class TestResponses:
    def test_item_list_sorted_by_sort_id(self):
        payload = {"list": {"a": _item("a", sort_id=2), "b": _item("b", sort_id=1)}}
        assert [p.id for p in parse_item_list(payload)] == ["b", "a"]

    def test_empty_list_array(self):
        assert parse_item_list({"list": []}) == []

    def test_unexpected_list_type(self):
        assert parse_item_list({"list": "nope"}) == []

    def test_delta_response_cursor(self):
        batch = parse_delta_response({"since": 1700000500, "list": {"a": _item("a")}}, since=1700000000)
        assert batch.since == 1700000000
        assert batch.end_cursor == 1700000500
        assert len(batch) == 1

    def test_delta_without_since_keeps_cursor(self):
        batch = parse_delta_response({"list": []}, since=42)
        assert batch.end_cursor == 42

    def test_snapshot_uses_earliest_page_cursor(self):
        snapshot = build_snapshot(
            [
                {"since": 200, "list": {"a": _item("a")}},
                {"since": 150, "list": {"b": _item("b")}},
            ]
        )
        assert snapshot.cursor == 150
        assert [p.id for p in snapshot.records] == ["a", "b"]
