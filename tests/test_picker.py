"""Tests for the interactive page picker."""

import pytest

from lineup_planner.errors import PickerStateError, UnknownRowError
from lineup_planner.picker import PagePicker, PickerState
from lineup_planner.store import AllocationStore
from schemas.lineup import LineupRow


@pytest.fixture
def store_with_page_5():
    """A store where another row already holds page 5."""
    return AllocationStore(
        20,
        rows=[
            LineupRow(id="target", content="Feature"),
            LineupRow(id="other", pages={5}, content="Editorial"),
        ],
    )


@pytest.fixture
def picker(store_with_page_5):
    picker = PagePicker(store_with_page_5)
    picker.open("target")
    return picker


class TestPickerLifecycle:
    """Tests for opening, confirming and cancelling."""

    def test_starts_idle(self, store_with_page_5):
        """A new picker has no open session."""
        picker = PagePicker(store_with_page_5)

        assert picker.state is PickerState.IDLE
        assert not picker.is_open

    def test_open_loads_current_pages(self, populated_store):
        """Opening selects the row's pages and disables the others' pages."""
        picker = PagePicker(populated_store)

        picker.open("c")

        assert picker.is_open
        assert picker.selection == {6, 7, 8, 9, 10}
        assert picker.occupied == frozenset(range(1, 6))

    def test_open_twice(self, picker):
        """Only one row can be edited at a time."""
        with pytest.raises(PickerStateError, match="already open"):
            picker.open("other")

    def test_open_unknown_row(self, store_with_page_5):
        """Opening a missing row fails and leaves the picker idle."""
        picker = PagePicker(store_with_page_5)

        with pytest.raises(UnknownRowError):
            picker.open("missing")

        assert picker.state is PickerState.IDLE

    @pytest.mark.parametrize(
        "operation",
        [
            lambda p: p.click(1),
            lambda p: p.drag_start(1),
            lambda p: p.drag_end(1),
            lambda p: p.confirm(),
            lambda p: p.cancel(),
        ],
    )
    def test_operations_require_open(self, store_with_page_5, operation):
        """Every editing operation needs an open session."""
        picker = PagePicker(store_with_page_5)

        with pytest.raises(PickerStateError, match="not open"):
            operation(picker)

    def test_confirm_writes_selection(self, picker, store_with_page_5):
        """Confirming stores the selection and closes the picker."""
        picker.click(2)
        picker.click(3)

        assert picker.confirm() is True

        assert store_with_page_5.get_row("target").pages == {2, 3}
        assert picker.state is PickerState.IDLE
        assert picker.selection == set()

    def test_cancel_leaves_row_unchanged(self, picker, store_with_page_5):
        """Cancelling discards the selection."""
        picker.click(2)

        picker.cancel()

        assert store_with_page_5.get_row("target").pages == set()
        assert picker.state is PickerState.IDLE

    def test_empty_selection_clears_row(self, populated_store):
        """Deselecting everything and confirming empties the row."""
        picker = PagePicker(populated_store)
        picker.open("b")
        picker.click(5)

        assert picker.confirm() is True
        assert populated_store.get_row("b").pages == set()

    def test_confirm_refuses_gaps(self, picker, store_with_page_5):
        """A selection with gaps is not written and the picker stays open."""
        picker.click(2)
        picker.click(4)

        assert picker.confirm() is False

        assert picker.is_open
        assert picker.selection == {2, 4}
        assert "not one continuous range" in picker.last_error
        assert store_with_page_5.get_row("target").pages == set()

    def test_confirm_after_fixing_gap(self, picker, store_with_page_5):
        """Filling the gap lets the selection be confirmed."""
        picker.click(2)
        picker.click(4)
        picker.confirm()

        picker.click(3)

        assert picker.confirm() is True
        assert store_with_page_5.get_row("target").pages == {2, 3, 4}
        assert picker.last_error is None

    def test_confirm_refuses_pages_taken_while_open(self, picker, store_with_page_5):
        """A page another row claimed after opening is not silently dropped."""
        picker.drag_start(6)
        picker.drag_end(8)
        store_with_page_5.assign_pages("other", {7})

        assert picker.confirm() is False

        assert picker.is_open
        assert picker.last_error == "Pages 7 were taken by another row"
        assert store_with_page_5.get_row("target").pages == set()

    def test_confirm_when_row_was_deleted(self, picker, store_with_page_5):
        """A row deleted while picking closes the picker without changes."""
        picker.click(2)
        store_with_page_5.delete_row("target")

        assert picker.confirm() is False
        assert picker.state is PickerState.IDLE


class TestPickerClicks:
    """Tests for single-page toggling."""

    def test_click_toggles(self, picker):
        """Clicking a page twice selects then deselects it."""
        assert picker.click(3) is True
        assert picker.selection == {3}

        assert picker.click(3) is True
        assert picker.selection == set()

    def test_click_occupied_page_is_ignored(self, picker):
        """Pages held by other rows cannot be clicked."""
        assert picker.click(5) is False
        assert picker.selection == set()

    def test_click_out_of_range_is_ignored(self, picker):
        """Pages outside the template cannot be clicked."""
        assert picker.click(0) is False
        assert picker.click(21) is False

    def test_occupied_set_is_fixed_for_session(self, picker, store_with_page_5):
        """Pages freed after opening stay disabled until the next session."""
        store_with_page_5.assign_pages("other", {6})

        assert picker.click(5) is False


class TestPickerDrag:
    """Tests for range drags."""

    def test_drag_skips_occupied_pages(self, picker):
        """With page 5 taken, dragging 3 to 6 selects 3, 4 and 6."""
        picker.drag_start(3)
        toggled = picker.drag_end(6)

        assert toggled == {3, 4, 6}
        assert picker.selection == {3, 4, 6}

    def test_second_drag_deselects_the_range(self, picker):
        """Dragging the same fully selected range again removes exactly it."""
        picker.click(10)
        picker.drag_start(3)
        picker.drag_end(6)

        picker.drag_start(3)
        toggled = picker.drag_end(6)

        assert toggled == {3, 4, 6}
        assert picker.selection == {10}

    def test_partial_overlap_selects_all(self, picker):
        """A partly selected range becomes fully selected."""
        picker.click(3)
        picker.drag_start(2)
        picker.drag_end(4)

        assert picker.selection == {2, 3, 4}

    def test_reverse_drag(self, picker):
        """A drag may run from a higher page to a lower one."""
        picker.drag_start(9)
        picker.drag_end(7)

        assert picker.selection == {7, 8, 9}

    def test_drag_from_occupied_page_is_ignored(self, picker):
        """A drag cannot start on a disabled page."""
        picker.drag_start(5)

        assert not picker.is_dragging
        assert picker.drag_end(8) == set()
        assert picker.selection == set()

    def test_drag_onto_occupied_page_is_dropped(self, picker):
        """A drag ending on a disabled page selects nothing."""
        picker.drag_start(3)

        assert picker.drag_end(5) == set()
        assert picker.selection == set()
        assert not picker.is_dragging

    def test_drag_end_without_start(self, picker):
        """Ending a drag that never started selects nothing."""
        assert picker.drag_end(4) == set()

    def test_drag_then_confirm(self, store):
        """Dragging a contiguous range and confirming assigns it."""
        row_id = store.add_row()
        picker = PagePicker(store)
        picker.open(row_id)
        picker.drag_start(6)
        picker.drag_end(10)

        assert picker.confirm() is True
        assert store.get_row(row_id).pages == {6, 7, 8, 9, 10}


class TestPickerSummary:
    """Tests for the selection summary."""

    def test_summary(self, picker):
        """The summary shows the range and page count."""
        assert picker.summary == "—"

        picker.click(7)
        assert picker.summary == "7 (1 page)"

        picker.click(8)
        picker.click(9)
        assert picker.summary == "7-9 (3 pages)"

    def test_is_confirmable(self, picker):
        """Only a gap-free selection can be confirmed."""
        picker.click(2)
        assert picker.is_confirmable

        picker.click(4)
        assert not picker.is_confirmable
