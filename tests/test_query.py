"""Tests for search parsing, filter predicates and the query engine."""

from __future__ import annotations

import pytest

from pocket_reader.models import FILTER_DOMAIN, FILTER_TAG, FILTER_TEXT, FILTER_TYPE, ContentType, FilterState
from pocket_reader.query import (
    QueryEngine,
    ResultList,
    apply_search_query,
    entry_matches,
    filter_pills,
    filters_to_query,
    highlight_text,
    parse_content_type,
    pill_label_for_token,
    tokenize_query,
    truncate_text,
)


class TestTokenizeQuery:
    def test_fields_and_free_text(self):
        tokens = tokenize_query("tag:rust type:pdf borrow checker")
        assert [(t.field, t.value) for t in tokens] == [
            ("tag", "rust"),
            ("type", "pdf"),
            (None, "borrow"),
            (None, "checker"),
        ]

    def test_quoted_phrase_and_quoted_field(self):
        tokens = tokenize_query('"exact words" tag:"machine learning"')
        assert tokens[0].value == "exact words"
        assert tokens[0].phrase is True
        assert tokens[1].field == "tag"
        assert tokens[1].value == "machine learning"

    def test_unknown_field_is_free_text(self):
        (token,) = tokenize_query("https://lwn.net")
        assert token.field is None
        assert token.value == "https://lwn.net"

    def test_field_name_is_case_insensitive(self):
        (token,) = tokenize_query("TAG:Rust")
        assert token.field == "tag"
        assert token.value == "Rust"

    def test_empty(self):
        assert tokenize_query("   ") == []


class TestApplySearchQuery:
    def test_sets_each_predicate(self):
        filters = FilterState()
        apply_search_query(filters, "tag:rust domain:LWN.net type:video async io")
        assert filters.tags == ("rust",)
        assert filters.domain == "lwn.net"
        assert filters.content_type is ContentType.VIDEO
        assert filters.text == "async io"
        assert filters.order == [FILTER_TAG, FILTER_DOMAIN, FILTER_TYPE, FILTER_TEXT]

    def test_unknown_type_becomes_text(self):
        filters = FilterState()
        apply_search_query(filters, "type:podcast")
        assert filters.content_type is None
        assert filters.text == "podcast"

    def test_repeated_tag_is_not_toggled_off(self):
        filters = FilterState(tags=("rust",), order=[FILTER_TAG])
        apply_search_query(filters, "tag:rust tag:go")
        assert filters.tags == ("rust", "go")

    def test_type_aliases(self):
        assert parse_content_type("Videos") is ContentType.VIDEO
        assert parse_content_type("yt") is ContentType.VIDEO
        assert parse_content_type("pdfs") is ContentType.PDF
        assert parse_content_type("other") is None

    def test_filters_to_query_round_trip(self):
        filters = FilterState()
        apply_search_query(filters, 'tag:rust tag:"deep dive" domain:lwn.net kernel news')
        query = filters_to_query(filters)
        assert query == 'tag:rust tag:"deep dive" domain:lwn.net kernel news'
        again = FilterState()
        apply_search_query(again, query)
        assert again.tags == filters.tags
        assert again.domain == filters.domain
        assert again.text == filters.text


class TestFilterState:
    def test_clear_last_pops_most_recent(self):
        filters = FilterState()
        filters.set_type(ContentType.PDF)
        filters.set_domain("lwn.net")
        filters.toggle_tag("rust")
        assert filters.clear_last() == FILTER_TAG
        assert filters.clear_last() == FILTER_DOMAIN
        assert filters.content_type is ContentType.PDF
        assert filters.clear_last() == FILTER_TYPE
        assert filters.clear_last() is None
        assert filters.is_empty

    def test_reactivating_moves_kind_to_end(self):
        filters = FilterState()
        filters.set_type(ContentType.PDF)
        filters.set_text("x")
        filters.set_type(ContentType.VIDEO)
        assert filters.order == [FILTER_TEXT, FILTER_TYPE]

    def test_pills_follow_activation_order(self):
        filters = FilterState()
        filters.set_text("deep learning")
        filters.toggle_tag("ml")
        filters.set_type(ContentType.ARTICLE)
        assert filter_pills(filters) == [
            (FILTER_TEXT, '"deep learning"'),
            (FILTER_TAG, "tag:ml"),
            (FILTER_TYPE, "type:article"),
        ]


class TestEntryMatches:
    def test_default_excludes_deleted_and_archived(self, make_entry):
        filters = FilterState()
        assert entry_matches(make_entry("a"), filters)
        assert not entry_matches(make_entry("a", archived=True), filters)
        assert not entry_matches(make_entry("a", deleted=True), filters)
        filters.show_archived = True
        assert entry_matches(make_entry("a", archived=True), filters)
        assert not entry_matches(make_entry("a", deleted=True), filters)

    def test_text_matches_title_or_url_case_insensitively(self, make_entry):
        entry = make_entry("a", title="Borrow Checker", url="https://blog.rust-lang.org/x")
        assert entry_matches(entry, FilterState(text="borrow"))
        assert entry_matches(entry, FilterState(text="RUST-LANG"))
        assert not entry_matches(entry, FilterState(text="python"))

    def test_tag_modes(self, make_entry):
        entry = make_entry("a", tags=("rust",))
        filters = FilterState(tags=("rust", "go"))
        assert not entry_matches(entry, filters, tag_match_mode="and")
        assert entry_matches(entry, filters, tag_match_mode="or")


class TestQueryEngine:
    def test_default_results_sorted_newest_first(self, sample_store):
        results = QueryEngine().compute(sample_store.snapshot(), FilterState())
        assert results.ids == ("e1", "e2", "e3", "e4", "e5")
        assert results.generation == sample_store.snapshot().generation

    def test_ties_broken_by_id(self, make_entry, make_store):
        store = make_store(make_entry("b", added_at=10), make_entry("a", added_at=10))
        assert QueryEngine().compute(store.snapshot(), FilterState()).ids == ("a", "b")

    def test_tag_and_domain_use_index(self, sample_store):
        engine = QueryEngine()
        view = sample_store.snapshot()
        assert engine.compute(view, FilterState(tags=("rust",))).ids == ("e1", "e4")
        assert engine.compute(view, FilterState(tags=("rust", "talk"))).ids == ("e4",)
        assert engine.compute(view, FilterState(domain="lwn.net")).ids == ("e3", "e5")
        assert engine.compute(view, FilterState(domain="lwn.net", show_archived=True)).ids == ("e3", "e5", "e6")

    def test_or_mode_unions_tags(self, sample_store):
        engine = QueryEngine(tag_match_mode="or")
        results = engine.compute(sample_store.snapshot(), FilterState(tags=("linux", "python")))
        assert results.ids == ("e2", "e3")

    def test_type_and_text_combined(self, sample_store):
        engine = QueryEngine()
        view = sample_store.snapshot()
        assert engine.compute(view, FilterState(content_type=ContentType.VIDEO)).ids == ("e4",)
        assert engine.compute(view, FilterState(content_type=ContentType.PDF, text="spec")).ids == ("e5",)
        assert engine.compute(view, FilterState(text="nothing matches this")).ids == ()

    def test_type_and_tag_combined(self, sample_store):
        engine = QueryEngine()
        view = sample_store.snapshot()
        assert engine.compute(view, FilterState(content_type=ContentType.VIDEO, tags=("rust",))).ids == ("e4",)
        assert engine.compute(view, FilterState(content_type=ContentType.ARTICLE, tags=("rust",))).ids == ("e1",)
        assert engine.compute(view, FilterState(content_type=ContentType.PDF, tags=("rust",))).ids == ()

    def test_unknown_tag_yields_empty(self, sample_store):
        assert QueryEngine().compute(sample_store.snapshot(), FilterState(tags=("nope",))).ids == ()


class TestResultList:
    def test_position_of(self):
        results = ResultList(ids=("a", "b"))
        assert results.position_of("b") == 1
        assert results.position_of("z") is None
        assert results.position_of(None) is None
        assert len(results) == 2
        assert results[0] == "a"


class TestTextHelpers:
    def test_truncate(self):
        assert truncate_text("short", 10) == "short"
        assert truncate_text("abcdefghij", 4) == "abcd..."

    def test_highlight_escapes_markup(self):
        result = highlight_text("rust [bold] rust", ["rust"], "#fff")
        assert result.count("[bold #fff]rust[/]") == 2
        assert "\\[bold]" in result

    @pytest.mark.parametrize("terms", [[], ["a"], ["  "]])
    def test_highlight_ignores_short_terms(self, terms):
        assert highlight_text("a plain title", terms, "#fff") == "a plain title"

    def test_pill_label(self):
        (token,) = tokenize_query('tag:"two words"')
        assert pill_label_for_token(token) == 'tag:"two words"'
