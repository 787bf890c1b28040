"""Tests for the region selection state machine."""

import warnings
from pathlib import Path

import pytest

from thumbnail_ai.editor import selection
from thumbnail_ai.editor.selection import RegionSelector, SelectionArea, SelectionState
from thumbnail_ai.errors import ValidationError


def drag(selector, start, end):
    selector.pointer_down(*start)
    selector.pointer_move(*end)
    return selector.pointer_up()


@pytest.fixture
def selector():
    s = RegionSelector()
    s.enter_mode()
    return s


class TestSelectionArea:
    def test_box_normalizes_negative_extent(self):
        area = SelectionArea(start_x=100, start_y=50, width=-60, height=40)
        assert area.box() == (40, 50, 100, 90)

    def test_box_both_negative(self):
        area = SelectionArea(start_x=100, start_y=100, width=-30, height=-20)
        assert area.box() == (70, 80, 100, 100)

    @pytest.mark.parametrize(
        "width,height,valid",
        [(11, 11, True), (10, 50, False), (50, 10, False), (-11, -11, True), (-10, 40, False)],
    )
    def test_threshold(self, width, height, valid):
        assert SelectionArea(width=width, height=height).is_valid() is valid


class TestRegionSelector:
    def test_starts_idle(self):
        s = RegionSelector()
        assert s.state is SelectionState.IDLE
        assert not s.prompt_visible

    def test_pointer_ignored_outside_mode(self):
        s = RegionSelector()
        assert s.pointer_down(10, 10) is False
        assert s.state is SelectionState.IDLE

    def test_pointer_down_starts_selecting(self, selector):
        selector.pointer_down(30, 40)
        assert selector.state is SelectionState.SELECTING
        assert selector.area == SelectionArea(30, 40, 0, 0, True)

    def test_move_tracks_signed_extent(self, selector):
        selector.pointer_down(100, 100)
        selector.pointer_move(60, 130)
        assert selector.area.width == -40
        assert selector.area.height == 30

    def test_valid_drag_commits(self, selector):
        assert drag(selector, (10, 10), (60, 80)) is SelectionState.COMMITTED
        assert selector.prompt_visible
        assert selector.area.is_selecting is False

    @pytest.mark.parametrize("end", [(20, 80), (80, 20), (15, 15)])
    def test_small_drag_returns_to_idle(self, selector, end):
        assert drag(selector, (10, 10), end) is SelectionState.IDLE
        assert not selector.prompt_visible
        assert selector.area == SelectionArea()

    def test_submit_requires_commit(self, selector):
        with pytest.raises(ValidationError):
            selector.begin_submit("make it blue")

    def test_submit_rejects_blank_prompt(self, selector):
        drag(selector, (0, 0), (50, 50))
        with pytest.raises(ValidationError):
            selector.begin_submit("   ")
        assert selector.state is SelectionState.COMMITTED

    def test_submit_trims_prompt(self, selector):
        drag(selector, (0, 0), (50, 50))
        assert selector.begin_submit("  add a hat ") == "add a hat"
        assert selector.state is SelectionState.SUBMITTING
        assert not selector.prompt_visible

    def test_failure_returns_to_committed_with_same_area(self, selector):
        drag(selector, (0, 0), (50, 50))
        area = selector.area
        selector.begin_submit("add a hat")
        selector.submit_failed()
        assert selector.state is SelectionState.COMMITTED
        assert selector.prompt_visible
        assert selector.area == area

    def test_success_clears_selection(self, selector):
        drag(selector, (0, 0), (50, 50))
        selector.begin_submit("add a hat")
        selector.submit_succeeded()
        assert selector.state is SelectionState.IDLE
        assert selector.area == SelectionArea()

    def test_cancel_resets(self, selector):
        drag(selector, (0, 0), (50, 50))
        selector.cancel()
        assert selector.state is SelectionState.IDLE
        assert selector.area == SelectionArea()

    def test_cancel_ignored_while_submitting(self, selector):
        drag(selector, (0, 0), (50, 50))
        selector.begin_submit("add a hat")
        selector.cancel()
        assert selector.state is SelectionState.SUBMITTING

    def test_pointer_down_ignored_while_submitting(self, selector):
        drag(selector, (0, 0), (50, 50))
        selector.begin_submit("add a hat")
        assert selector.pointer_down(5, 5) is False

    def test_exit_mode_resets(self, selector):
        selector.pointer_down(0, 0)
        selector.pointer_move(40, 40)
        selector.exit_mode()
        assert not selector.mode_active
        assert selector.state is SelectionState.IDLE


def test_module_source_compiles_without_warnings():
    source = Path(selection.__file__).read_text()
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        compile(source, selection.__file__, "exec")
