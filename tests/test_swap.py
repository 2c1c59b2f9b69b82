"""Tests for page-range swapping and flatplan moves."""

from lineup_planner.swap import SwapResult, drop, relocate, swap


class TestSwap:
    """Tests for swap."""

    def test_exchanges_pages(self, populated_store):
        """Each row ends up with the other's pages."""
        result = swap(populated_store, "a", "c")

        assert result
        assert populated_store.get_row("a").pages == {6, 7, 8, 9, 10}
        assert populated_store.get_row("c").pages == {1, 2, 3, 4}

    def test_keeps_order_and_fields(self, populated_store):
        """Only pages move; order and content stay put."""
        swap(populated_store, "a", "c")

        assert populated_store.row_ids == ["a", "b", "c"]
        assert populated_store.get_row("a").content == "Cover story"

    def test_twice_restores(self, populated_store):
        """Swapping the same pair twice is the identity."""
        swap(populated_store, "a", "b")
        swap(populated_store, "a", "b")

        assert populated_store.get_row("a").pages == {1, 2, 3, 4}
        assert populated_store.get_row("b").pages == {5}

    def test_with_empty_row(self, populated_store):
        """A row without pages can take another row's range."""
        row_id = populated_store.add_row()

        assert swap(populated_store, row_id, "b")
        assert populated_store.get_row(row_id).pages == {5}
        assert populated_store.get_row("b").pages == set()

    def test_rejects_same_row(self, populated_store, caplog):
        """A row cannot be swapped with itself."""
        result = swap(populated_store, "a", "a")

        assert not result
        assert result.reason == "cannot swap row a with itself"
        assert "Rejected page move" in caplog.text

    def test_rejects_missing_row(self, populated_store):
        """An unknown row rejects the swap and leaves the other row alone."""
        result = swap(populated_store, "a", "missing")

        assert result == SwapResult(ok=False, reason="no such row: missing")
        assert populated_store.get_row("a").pages == {1, 2, 3, 4}


class TestRelocate:
    """Tests for relocate."""

    def test_moves_to_free_space(self, populated_store):
        """A row moves onto free pages keeping its length."""
        assert relocate(populated_store, "c", 20)

        assert populated_store.get_row("c").pages == {20, 21, 22, 23, 24}

    def test_overlapping_own_pages(self, populated_store):
        """A row may shift onto pages it already holds."""
        assert relocate(populated_store, "c", 8)

        assert populated_store.get_row("c").pages == {8, 9, 10, 11, 12}

    def test_rejects_clash(self, populated_store):
        """Pages held by another row block the move."""
        result = relocate(populated_store, "c", 3)

        assert not result
        assert result.reason == "pages 3-5 are occupied"
        assert populated_store.get_row("c").pages == {6, 7, 8, 9, 10}

    def test_rejects_overflow(self, populated_store):
        """A range running past the last page is refused."""
        result = relocate(populated_store, "c", 50)

        assert not result
        assert "do not fit in 52 pages" in result.reason

    def test_rejects_row_without_pages(self, populated_store):
        """A row with no pages has nothing to move."""
        row_id = populated_store.add_row()

        result = relocate(populated_store, row_id, 30)

        assert not result
        assert "No pages selected" in result.reason


class TestDrop:
    """Tests for flatplan drops."""

    def test_drop_on_other_row_swaps(self, populated_store):
        """Dropping onto another row's page swaps the two ranges."""
        assert drop(populated_store, "b", 8)

        assert populated_store.get_row("b").pages == {6, 7, 8, 9, 10}
        assert populated_store.get_row("c").pages == {5}

    def test_drop_on_free_page_relocates(self, populated_store):
        """Dropping onto a free page moves the row there."""
        assert drop(populated_store, "b", 30)

        assert populated_store.get_row("b").pages == {30}

    def test_drop_on_itself(self, populated_store):
        """Dropping a row onto its own pages does nothing."""
        result = drop(populated_store, "c", 7)

        assert not result
        assert result.reason == "dropped onto itself"
        assert populated_store.get_row("c").pages == {6, 7, 8, 9, 10}
