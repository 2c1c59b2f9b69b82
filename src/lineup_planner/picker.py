"""Interactive page picker.

A picker edits one row's pages at a time. It is an explicit state machine:

    IDLE --open(row)--> OPEN --confirm()/cancel()--> IDLE

While OPEN, clicks toggle single pages and drags toggle whole ranges. Pages
held by other rows are disabled for the whole session. A drag anchor exists
only between drag_start and drag_end.
"""

import logging
from enum import Enum

from .errors import PickerStateError
from .pages import format_range, is_contiguous
from .store import AllocationStore

logger = logging.getLogger(__name__)


class PickerState(Enum):
    IDLE = "idle"
    OPEN = "open"


class PagePicker:
    """Click and drag page selection for a single lineup row.

    Attributes:
        store: The allocation store holding the rows
        state: Current picker state
        row_id: Row being edited (None while idle)
        selection: Pages selected in this session
        occupied: Pages held by other rows, fixed when the session opens
        anchor: Page where the current drag started, if dragging
        last_error: Why the last confirm was refused, if it was
    """

    def __init__(self, store: AllocationStore):
        self.store = store
        self.state = PickerState.IDLE
        self.row_id: str | None = None
        self.selection: set[int] = set()
        self.occupied: frozenset[int] = frozenset()
        self.anchor: int | None = None
        self.last_error: str | None = None

    def __repr__(self) -> str:
        return f"PagePicker({self.state.value}, row={self.row_id})"

    @property
    def is_open(self) -> bool:
        return self.state is PickerState.OPEN

    @property
    def is_dragging(self) -> bool:
        return self.anchor is not None

    def _require_open(self) -> None:
        if not self.is_open:
            raise PickerStateError("Page picker is not open")

    def is_available(self, page: int) -> bool:
        """True if the page may be selected in this session."""
        return 1 <= page <= self.store.template_pages and page not in self.occupied

    def open(self, row_id: str) -> None:
        """Start editing a row's pages.

        Raises:
            PickerStateError: If a session is already open
            UnknownRowError: If the row does not exist
        """
        if self.is_open:
            raise PickerStateError(f"Page picker is already open for {self.row_id}")
        row = self.store.get_row(row_id)
        self.row_id = row_id
        self.selection = set(row.pages)
        self.occupied = frozenset(self.store.occupied_pages(excluding_row_id=row_id))
        self.anchor = None
        self.last_error = None
        self.state = PickerState.OPEN

    def click(self, page: int) -> bool:
        """Toggle a single page.

        Returns:
            True if the selection changed, False if the page is disabled
        """
        self._require_open()
        if not self.is_available(page):
            return False
        self.selection ^= {page}
        return True

    def drag_start(self, page: int) -> None:
        """Anchor a range drag. Drags cannot start on a disabled page."""
        self._require_open()
        if not self.is_available(page):
            self.anchor = None
            return
        self.anchor = page

    def drag_end(self, page: int) -> set[int]:
        """Finish a range drag and toggle the range as a unit.

        The range runs from the anchor to ``page`` inclusive, skipping
        disabled pages. If every page in it is already selected the range is
        deselected; otherwise all of it is selected.

        Returns:
            The pages of the range that were toggled (empty if the drag was
            dropped)
        """
        self._require_open()
        anchor, self.anchor = self.anchor, None
        if anchor is None or not self.is_available(page):
            return set()

        start, end = min(anchor, page), max(anchor, page)
        available = {p for p in range(start, end + 1) if self.is_available(p)}
        if available <= self.selection:
            self.selection -= available
        else:
            self.selection |= available
        return available

    @property
    def is_confirmable(self) -> bool:
        return self.is_open and is_contiguous(self.selection)

    @property
    def summary(self) -> str:
        """Selection summary such as "3-5 (3 pages)"."""
        if not self.selection:
            return format_range(self.selection)
        count = len(self.selection)
        noun = "page" if count == 1 else "pages"
        return f"{format_range(self.selection)} ({count} {noun})"

    def confirm(self) -> bool:
        """Write the selection into the row and close.

        A selection with gaps cannot be stored as one page range, and pages
        another row took while the picker was open cannot be claimed. Both
        are refused: the picker stays open and last_error says why.

        Returns:
            True if the row was updated and the picker closed
        """
        self._require_open()
        assert self.row_id is not None
        # A save may have given the row its server id while the picker was open
        self.row_id = self.store.resolve_row_id(self.row_id)
        if not is_contiguous(self.selection):
            self.last_error = (
                f"Pages {format_range(self.selection)} are not one continuous range"
            )
            logger.warning(f"Row {self.row_id}: {self.last_error}")
            return False

        if not self.store.has_row(self.row_id):
            logger.warning(f"Row {self.row_id} was removed while picking pages")
            self._close()
            return False

        taken = self.selection & self.store.occupied_pages(excluding_row_id=self.row_id)
        if taken:
            self.last_error = f"Pages {format_range(taken)} were taken by another row"
            logger.warning(f"Row {self.row_id}: {self.last_error}")
            return False

        self.store.update_row(self.row_id, pages=self.selection)
        self._close()
        return True

    def cancel(self) -> None:
        """Discard the selection and close. The row is unchanged."""
        self._require_open()
        self._close()

    def _close(self) -> None:
        self.state = PickerState.IDLE
        self.row_id = None
        self.selection = set()
        self.occupied = frozenset()
        self.anchor = None
        self.last_error = None
