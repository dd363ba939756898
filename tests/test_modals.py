"""Focused tests for modal dialogs: editing, confirmation, browsers and reports."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from textual.widgets import OptionList

from pocket_reader.help_ui import build_help_sections
from pocket_reader.models import ContentType
from pocket_reader.modals import (
    ALL_TYPES,
    ConfirmDeleteModal,
    DomainBrowserModal,
    HelpScreen,
    RenameModal,
    ReportScreen,
    TagBrowserModal,
    TagsModal,
    TypeBrowserModal,
)
from pocket_reader.ui_constants import APP_BINDINGS


@pytest.mark.asyncio
async def test_rename_modal_compose_and_actions(make_app):
    app = make_app()
    modal = RenameModal("Old title")

    async with app.run_test() as pilot:
        app.push_screen(modal)
        await pilot.pause(0.05)
        assert modal.query_one("#rename-dialog") is not None
        assert modal.query_one("#rename-input").value == "Old title"

    focus_target = MagicMock()
    modal.query_one = MagicMock(return_value=focus_target)
    modal.on_mount()
    focus_target.focus.assert_called_once_with()

    modal.dismiss = MagicMock()
    modal.query_one = MagicMock(return_value=SimpleNamespace(value="New title"))
    modal.action_save()
    modal.dismiss.assert_called_once_with("New title")

    modal.dismiss = MagicMock()
    modal.action_cancel()
    modal.dismiss.assert_called_once_with(None)

    modal.action_save = MagicMock()
    modal.on_input_submitted()
    modal.on_save_pressed()
    assert modal.action_save.call_count == 2

    modal.action_cancel = MagicMock()
    modal.on_cancel_pressed()
    modal.action_cancel.assert_called_once_with()


@pytest.mark.asyncio
async def test_tags_modal_compose_and_handlers(make_app):
    app = make_app()
    modal = TagsModal("Async Python patterns", "python, top", known_tags=["python", "rust", "top"])

    async with app.run_test() as pilot:
        app.push_screen(modal)
        await pilot.pause(0.05)
        assert modal.query_one("#tags-dialog") is not None
        assert modal.query_one("#tags-input").value == "python, top"
        assert modal.query_one("#tags-suggestions") is not None

    modal.dismiss = MagicMock()
    modal.query_one = MagicMock(return_value=SimpleNamespace(value="rust, go"))
    modal.action_save()
    modal.dismiss.assert_called_once_with("rust, go")

    modal.dismiss = MagicMock()
    modal.action_cancel()
    modal.dismiss.assert_called_once_with(None)


def test_tags_modal_suggestions_are_capped_and_escaped():
    known = [f"t{i}" for i in range(20)] + ["[b]"]
    modal = TagsModal("x", known_tags=known)
    markup = modal._build_suggestions_markup()
    assert markup.count(",") == TagsModal.MAX_SUGGESTIONS - 1
    assert "t11" in markup
    assert "t12" not in markup
    assert TagsModal("x", known_tags=["[b]"])._build_suggestions_markup().count("\\[b]") == 1


@pytest.mark.asyncio
async def test_tags_modal_without_known_tags_has_no_suggestions(make_app):
    app = make_app()
    modal = TagsModal("Untagged")

    async with app.run_test() as pilot:
        app.push_screen(modal)
        await pilot.pause(0.05)
        assert not modal.query("#tags-suggestions")


@pytest.mark.asyncio
async def test_confirm_delete_modal_results(make_app):
    app = make_app()
    modal = ConfirmDeleteModal("Delete “Kernel news”?")

    async with app.run_test() as pilot:
        app.push_screen(modal)
        await pilot.pause(0.05)
        assert modal.query_one("#confirm-message") is not None
        assert modal.query_one("#confirm-yes") is not None

    for method, expected in [
        ("action_confirm", True),
        ("action_cancel", False),
        ("on_yes", True),
        ("on_no", False),
    ]:
        modal.dismiss = MagicMock()
        getattr(modal, method)()
        modal.dismiss.assert_called_once_with(expected)


@pytest.mark.asyncio
async def test_help_screen_lists_sections(make_app):
    app = make_app()
    modal = HelpScreen(build_help_sections(APP_BINDINGS))

    async with app.run_test() as pilot:
        app.push_screen(modal)
        await pilot.pause(0.05)
        assert modal.query_one("#help-dialog") is not None
        titles = modal.query(".help-section-title")
        assert len(titles) == 5

    modal.dismiss = MagicMock()
    modal.action_dismiss()
    modal.dismiss.assert_called_once_with(None)


def test_help_screen_renders_escaped_lines():
    lines = HelpScreen._render_section_lines([("[", "Open [bracket]"), ("j", "Down")])
    assert lines.count("\n") == 1
    assert "\\[bracket]" in lines


@pytest.mark.asyncio
async def test_report_screen_compose_and_dismiss(make_app):
    app = make_app()
    modal = ReportScreen("Reading stats", "All time: 5 saved")

    async with app.run_test() as pilot:
        app.push_screen(modal)
        await pilot.pause(0.05)
        assert modal.query_one("#report-title") is not None
        assert modal.query_one("#report-body") is not None

    modal.dismiss = MagicMock()
    modal.action_dismiss()
    modal.dismiss.assert_called_once_with(None)


class TestTagBrowserModal:
    @pytest.mark.asyncio
    async def test_filters_as_you_type(self, make_app):
        app = make_app()
        modal = TagBrowserModal([("rust", 2), ("python", 1), ("top", 1)], active_tags=("rust",))

        async with app.run_test() as pilot:
            app.push_screen(modal)
            await pilot.pause(0.05)
            results = modal.query_one("#tag-browser-results", OptionList)
            assert results.option_count == 3
            assert results.highlighted == 0

            modal._populate("py")
            assert results.option_count == 1
            assert modal._filtered == [("python", 1)]

            modal._populate("zzz")
            assert results.option_count == 1
            assert modal._filtered == []
            assert results.get_option_at_index(0).disabled

    @pytest.mark.asyncio
    async def test_submit_picks_highlighted_tag(self, make_app):
        app = make_app()
        modal = TagBrowserModal([("rust", 2), ("python", 1)])

        async with app.run_test() as pilot:
            app.push_screen(modal)
            await pilot.pause(0.05)
            modal._populate("python")
            modal.dismiss = MagicMock()
            modal._on_search_submitted()
            modal.dismiss.assert_called_once_with("python")

    @pytest.mark.asyncio
    async def test_submit_with_no_match_does_nothing(self, make_app):
        app = make_app()
        modal = TagBrowserModal([("rust", 2)])

        async with app.run_test() as pilot:
            app.push_screen(modal)
            await pilot.pause(0.05)
            modal._populate("nothing")
            modal.dismiss = MagicMock()
            modal._on_search_submitted()
            modal.dismiss.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_tag_list(self, make_app):
        app = make_app()
        modal = TagBrowserModal([])

        async with app.run_test() as pilot:
            app.push_screen(modal)
            await pilot.pause(0.05)
            results = modal.query_one("#tag-browser-results", OptionList)
            assert results.option_count == 1
            assert results.get_option_at_index(0).disabled

    def test_cancel_dismisses_none(self):
        modal = TagBrowserModal([("rust", 1)])
        modal.dismiss = MagicMock()
        modal.action_cancel()
        modal.dismiss.assert_called_once_with(None)


class TestTypeBrowserModal:
    def test_labels_show_counts(self):
        modal = TypeBrowserModal({ContentType.ARTICLE: 3, ContentType.VIDEO: 1})
        assert modal._label_for(ALL_TYPES) == "All (4)"
        assert modal._label_for("video") == "Videos (1)"
        assert modal._label_for("pdf") == "PDFs (0)"

    @pytest.mark.asyncio
    async def test_compose_lists_all_choices(self, make_app):
        app = make_app()
        modal = TypeBrowserModal({ContentType.ARTICLE: 3}, current=ContentType.ARTICLE)

        async with app.run_test() as pilot:
            app.push_screen(modal)
            await pilot.pause(0.05)
            results = modal.query_one("#type-browser-results", OptionList)
            assert results.option_count == len(TypeBrowserModal.CHOICES)

    @pytest.mark.parametrize("value", ["all", "article", "video", "pdf"])
    def test_choose_dismisses_with_value(self, value):
        modal = TypeBrowserModal({})
        modal.dismiss = MagicMock()
        modal.action_choose(value)
        modal.dismiss.assert_called_once_with(value)

    def test_cancel(self):
        modal = TypeBrowserModal({})
        modal.dismiss = MagicMock()
        modal.action_cancel()
        modal.dismiss.assert_called_once_with(None)


class TestDomainBrowserModal:
    @pytest.mark.asyncio
    async def test_lists_domains(self, make_app):
        app = make_app()
        modal = DomainBrowserModal([("lwn.net", 3), ("youtube.com", 1)])

        async with app.run_test() as pilot:
            app.push_screen(modal)
            await pilot.pause(0.05)
            results = modal.query_one("#domain-browser-results", OptionList)
            assert results.option_count == 2
            assert results.get_option_at_index(0).id == "lwn.net"

    @pytest.mark.asyncio
    async def test_empty_domains_show_placeholder(self, make_app):
        app = make_app()
        modal = DomainBrowserModal([], ascii_only=True)

        async with app.run_test() as pilot:
            app.push_screen(modal)
            await pilot.pause(0.05)
            results = modal.query_one("#domain-browser-results", OptionList)
            assert results.option_count == 1
            assert results.get_option_at_index(0).disabled

    def test_option_selected_dismisses_with_domain(self):
        modal = DomainBrowserModal([("lwn.net", 3)])
        modal.dismiss = MagicMock()
        modal._on_option_selected(SimpleNamespace(option_id="lwn.net"))
        modal.dismiss.assert_called_once_with("lwn.net")

        modal.dismiss = MagicMock()
        modal._on_option_selected(SimpleNamespace(option_id=None))
        modal.dismiss.assert_not_called()
