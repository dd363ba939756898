"""Tests for the interactive session: filters, search, intents and modes."""

from __future__ import annotations

from datetime import datetime

import pytest

from pocket_reader.errors import MalformedEntry, NotFound
from pocket_reader.models import FILTER_DOMAIN, FILTER_TAG, ContentType, EntryPatch, SessionState, ViewMode
from pocket_reader.session import ReaderSession


def _session(store, **kwargs) -> ReaderSession:
    return ReaderSession(store, **kwargs)


class TestResults:
    def test_initial_results_and_selection(self, sample_store):
        session = _session(sample_store)
        assert session.results.ids == ("e1", "e2", "e3", "e4", "e5")
        assert session.current_entry().id == "e1"

    def test_refresh_only_on_new_published_generation(self, sample_store, make_patch):
        session = _session(sample_store)
        sample_store.upsert(make_patch("n1", modified_at=1_700_000_000))
        assert session.refresh() is False
        assert "n1" not in session.results.ids
        sample_store.publish()
        assert session.refresh() is True
        assert session.results.ids[0] == "n1"

    def test_selection_follows_entry_after_refresh(self, sample_store, make_patch):
        session = _session(sample_store)
        session.nav.select(2)
        sample_store.upsert(make_patch("n1", modified_at=1_700_000_000))
        sample_store.publish()
        session.refresh()
        assert session.current_entry().id == "e3"

    def test_visible_entries_respect_viewport(self, sample_store):
        session = _session(sample_store, viewport_height=2)
        assert [entry.id for entry in session.visible_entries()] == ["e1", "e2"]

    def test_type_counts_exclude_deleted(self, sample_store):
        counts = _session(sample_store).type_counts()
        assert counts == {ContentType.ARTICLE: 4, ContentType.VIDEO: 1, ContentType.PDF: 1}


class TestFilters:
    def test_toggle_tag_and_clear_last(self, sample_store):
        session = _session(sample_store)
        session.toggle_tag_filter("rust")
        assert session.results.ids == ("e1", "e4")
        session.set_domain_filter("blog.rust-lang.org")
        assert session.results.ids == ("e1",)
        assert session.clear_last_filter() == FILTER_DOMAIN
        assert session.results.ids == ("e1", "e4")
        assert session.clear_last_filter() == FILTER_TAG
        assert session.clear_last_filter() is None

    def test_filter_by_current_domain(self, sample_store):
        session = _session(sample_store)
        session.nav.select(2)
        assert session.filter_by_current_domain() == "lwn.net"
        assert session.results.ids == ("e3", "e5")

    def test_toggle_show_archived(self, sample_store):
        session = _session(sample_store)
        assert session.toggle_show_archived() is True
        assert "e6" in session.results.ids
        assert session.toggle_show_archived() is False
        assert "e6" not in session.results.ids

    def test_empty_result_has_no_selection(self, sample_store):
        session = _session(sample_store)
        session.toggle_tag_filter("nothing")
        assert session.results.ids == ()
        assert session.current_entry() is None
        assert session.toggle_favorite() is None

    def test_remove_filter_drops_one_tag(self, sample_store):
        session = _session(sample_store)
        session.toggle_tag_filter("rust")
        session.toggle_tag_filter("talk")
        session.remove_filter(FILTER_TAG, "tag:talk")
        assert session.filters.tags == ("rust",)
        session.set_type_filter(ContentType.VIDEO)
        session.remove_filter("type", "type:video")
        assert session.filters.content_type is None

    def test_clear_filters(self, sample_store):
        session = _session(sample_store)
        session.toggle_tag_filter("rust")
        session.set_type_filter(ContentType.VIDEO)
        session.clear_filters()
        assert session.filters.is_empty
        assert len(session.results) == 5


class TestSearch:
    def test_preview_then_submit(self, sample_store):
        session = _session(sample_store)
        assert session.begin_search() is True
        assert session.mode is ViewMode.SEARCH_INPUT
        session.preview_search("tag:rus")
        assert session.results.ids == ()
        session.preview_search("tag:rust")
        assert session.results.ids == ("e1", "e4")
        session.submit_search("tag:rust borrow")
        assert session.mode is ViewMode.BROWSE
        assert session.results.ids == ("e4",)

    def test_cancel_restores_filters_and_cursor(self, sample_store):
        session = _session(sample_store)
        session.set_type_filter(ContentType.ARTICLE)
        session.nav.select(1)
        selected = session.current_entry().id
        session.begin_search()
        session.preview_search("kernel")
        assert session.results.ids == ("e3",)
        session.cancel_search()
        assert session.mode is ViewMode.BROWSE
        assert session.filters.text == ""
        assert session.filters.content_type is ContentType.ARTICLE
        assert session.current_entry().id == selected

    def test_preview_ignored_outside_search(self, sample_store):
        session = _session(sample_store)
        session.preview_search("kernel")
        assert len(session.results) == 5

    def test_search_refused_while_modal_open(self, sample_store):
        session = _session(sample_store)
        session.open_mode(ViewMode.HELP)
        assert session.begin_search() is False
        assert session.mode is ViewMode.HELP


class TestIntents:
    def test_toggle_favorite_queues_mutation(self, sample_store):
        session = _session(sample_store)
        entry = session.toggle_favorite()
        assert entry.favorite is True
        assert sample_store.pending_mutations()[-1].action == "favorite"
        assert session.toggle_favorite().favorite is False

    def test_favorite_and_archive_hides_entry(self, sample_store):
        session = _session(sample_store)
        entry = session.favorite_and_archive()
        assert entry.favorite and entry.archived
        assert "e1" not in session.results.ids
        assert session.current_entry().id == "e2"
        assert [m.action for m in sample_store.pending_mutations()] == ["favorite", "archive"]

    def test_toggle_archive_and_top(self, sample_store):
        session = _session(sample_store)
        session.nav.select(1)
        assert session.toggle_top_tag().tags == ("python",)
        assert session.toggle_archive().archived is True

    def test_delete_targets_entry_captured_at_prompt(self, sample_store):
        session = _session(sample_store)
        session.nav.select(1)
        assert session.request_delete() is True
        assert session.mode is ViewMode.CONFIRM_DELETE
        # The list changes underneath the prompt
        sample_store.upsert(EntryPatch(id="n1", modified_at=1, title="new", url="https://x.org", added_at=1_800_000_000))
        sample_store.publish()
        session.refresh()
        deleted = session.confirm_delete(True)
        assert deleted.id == "e2"
        assert sample_store.get("e2").deleted is True
        assert session.mode is ViewMode.BROWSE

    def test_cancelled_delete_changes_nothing(self, sample_store):
        session = _session(sample_store)
        session.request_delete()
        assert session.confirm_delete(False) is None
        assert sample_store.pending_mutations() == ()
        assert session.mode is ViewMode.BROWSE

    def test_confirm_delete_outside_prompt_is_ignored(self, sample_store):
        assert _session(sample_store).confirm_delete(True) is None

    def test_rename_normalizes_title(self, sample_store):
        session = _session(sample_store)
        assert session.begin_rename() == "Rust ownership explained"
        renamed = session.submit_rename("  Ownership\n  in Rust ")
        assert renamed.title == "Ownership in Rust"
        assert session.mode is ViewMode.BROWSE

    def test_rename_prefills_url_for_empty_title(self, make_entry, make_store):
        session = _session(make_store(make_entry("a", title="", url="https://lwn.net/x")))
        assert session.begin_rename() == "https://lwn.net/x"

    def test_rename_without_prefill_starts_empty(self, sample_store):
        session = _session(sample_store)
        assert session.begin_rename(prefill=False) == ""
        assert session.mode is ViewMode.RENAME_PROMPT
        assert session.submit_rename("Fresh").title == "Fresh"

    def test_blank_rename_is_cancelled(self, sample_store):
        session = _session(sample_store)
        session.begin_rename()
        assert session.submit_rename("   ") is None
        assert session.submit_rename(None) is None
        assert sample_store.pending_mutations() == ()

    def test_edit_tags_replaces(self, sample_store):
        session = _session(sample_store)
        session.nav.select(1)
        assert session.begin_edit_tags() == "python, top"
        updated = session.submit_tags("Async, python, ,async")
        assert updated.tags == ("async", "python")

    def test_edit_tags_cancel(self, sample_store):
        session = _session(sample_store)
        session.begin_edit_tags()
        assert session.submit_tags(None) is None
        assert session.mode is ViewMode.BROWSE

    def test_vanished_entry_reports_not_found(self, sample_store, monkeypatch):
        session = _session(sample_store)
        session.begin_rename()

        def _missing(entry_id, title):
            raise NotFound(entry_id)

        monkeypatch.setattr(sample_store, "rename", _missing)
        assert session.submit_rename("New") is None
        condition = session.take_condition()
        assert isinstance(condition, NotFound)
        assert session.take_condition() is None

    def test_mutations_refused_after_shutdown(self, sample_store):
        session = _session(sample_store)
        session.shutdown()
        assert session.toggle_favorite() is None
        assert session.toggle_top_tag() is None
        assert sample_store.pending_mutations() == ()


def _local_ts(*parts: int) -> int:
    return int(datetime(*parts).timestamp())


class TestJumpToDate:
    @pytest.fixture
    def dated_store(self, make_entry, make_store):
        return make_store(
            make_entry("jan", added_at=_local_ts(2024, 1, 10, 12)),
            make_entry("feb", added_at=_local_ts(2024, 2, 20, 12)),
            make_entry("mar", added_at=_local_ts(2024, 3, 5, 12)),
        )

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("2024-02-20", "feb"),
            ("2024-02-19", "jan"),
            ("2024-02", "feb"),
            ("2024", "mar"),
            (" 2024-03-05 ", "mar"),
        ],
    )
    def test_selects_first_entry_on_or_before_date(self, dated_store, text, expected):
        session = _session(dated_store)
        assert session.begin_jump_to_date() is True
        assert session.mode is ViewMode.DATE_PROMPT
        assert session.submit_jump_to_date(text).id == expected
        assert session.current_entry().id == expected
        assert session.mode is ViewMode.BROWSE

    def test_date_before_every_entry_keeps_cursor(self, dated_store):
        session = _session(dated_store)
        session.nav.move(1)
        session.begin_jump_to_date()
        assert session.submit_jump_to_date("2023-12-31") is None
        assert session.current_entry().id == "feb"

    def test_invalid_date_raises_after_leaving_prompt(self, dated_store):
        session = _session(dated_store)
        session.begin_jump_to_date()
        with pytest.raises(ValueError, match="Not a date"):
            session.submit_jump_to_date("last week")
        assert session.mode is ViewMode.BROWSE

    def test_cancel_and_empty_list(self, dated_store, make_store):
        session = _session(dated_store)
        session.begin_jump_to_date()
        assert session.submit_jump_to_date(None) is None
        assert session.submit_jump_to_date("2024") is None
        assert _session(make_store()).begin_jump_to_date() is False


class TestOpenCurrent:
    def test_open_tags_entry_read(self, sample_store):
        session = _session(sample_store)
        assert session.open_current() == "https://blog.rust-lang.org/own"
        assert sample_store.get("e1").tags == ("rust", "read")
        assert session.mode is ViewMode.BROWSE

    def test_open_empty_title_reports_malformed(self, make_entry, make_store):
        session = _session(make_store(make_entry("a", title="  ", url="https://lwn.net/x")))
        assert session.open_current() == "https://lwn.net/x"
        condition = session.take_condition()
        assert isinstance(condition, MalformedEntry)
        assert condition.reason == "title is empty"

    def test_open_without_url_returns_none(self, make_entry, make_store):
        session = _session(make_store(make_entry("a", url="")))
        assert session.open_current() is None
        assert isinstance(session.take_condition(), MalformedEntry)


class TestSessionState:
    def test_round_trip(self, sample_store):
        session = _session(sample_store)
        session.toggle_tag_filter("rust")
        session.set_type_filter(ContentType.VIDEO)
        state = session.session_state()
        assert state == SessionState(
            selected_id="e4",
            current_filter="tag:rust",
            type_filter="video",
            show_archived=False,
        )

        fresh = _session(sample_store)
        fresh.restore(state)
        assert fresh.results.ids == ("e4",)
        assert fresh.current_entry().id == "e4"

    def test_restore_selects_saved_entry(self, sample_store):
        session = _session(sample_store)
        session.restore(SessionState(selected_id="e3", current_filter="", show_archived=True))
        assert session.current_entry().id == "e3"
        assert "e6" in session.results.ids

    def test_restore_with_vanished_selection(self, sample_store):
        session = _session(sample_store)
        session.restore(SessionState(selected_id="gone", current_filter="domain:lwn.net"))
        assert session.results.ids == ("e3", "e5")
        assert session.nav.cursor == 0


def test_stats_use_whole_store(sample_store):
    stats = _session(sample_store).stats()
    assert stats.total == 6
