"""Page-range swapping and flatplan moves.

Exchanging two rows' whole page sets can never create an overlap, because
the union of claimed pages is unchanged. Relocating a row into free space is
checked against the template and the other rows before anything changes.
"""

import logging
from dataclasses import dataclass

from .errors import DiscontiguousPagesError
from .pages import expand_span, format_range, to_span
from .store import AllocationStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SwapResult:
    """Outcome of a swap, relocate or drop request.

    Attributes:
        ok: Whether the store was changed
        reason: Why the request was rejected (None on success)
    """

    ok: bool
    reason: str | None = None

    def __bool__(self) -> bool:
        return self.ok


def _rejected(reason: str) -> SwapResult:
    logger.warning(f"Rejected page move: {reason}")
    return SwapResult(ok=False, reason=reason)


def swap(store: AllocationStore, row_id_a: str, row_id_b: str) -> SwapResult:
    """Exchange the page sets of two rows.

    Only pages change; row order and every other field are untouched.

    Args:
        store: The allocation store
        row_id_a: First row
        row_id_b: Second row

    Returns:
        SwapResult, rejected if the ids are equal or either row is missing
    """
    if row_id_a == row_id_b:
        return _rejected(f"cannot swap row {row_id_a} with itself")
    if not store.has_row(row_id_a):
        return _rejected(f"no such row: {row_id_a}")
    if not store.has_row(row_id_b):
        return _rejected(f"no such row: {row_id_b}")

    row_a = store.get_row(row_id_a)
    row_b = store.get_row(row_id_b)
    row_a.pages, row_b.pages = row_b.pages, row_a.pages
    logger.debug(
        f"Swapped pages: {row_id_a} -> {format_range(row_a.pages)}, "
        f"{row_id_b} -> {format_range(row_b.pages)}"
    )
    return SwapResult(ok=True)


def relocate(store: AllocationStore, row_id: str, new_start: int) -> SwapResult:
    """Move a row's page range so it starts at new_start.

    The range keeps its length. The move is rejected if the row has no
    pages (or a broken range), if the new range runs past the template, or
    if any page of it belongs to another row.
    """
    if not store.has_row(row_id):
        return _rejected(f"no such row: {row_id}")
    row = store.get_row(row_id)
    try:
        start, end = to_span(row.pages)
    except DiscontiguousPagesError as e:
        return _rejected(f"row {row_id}: {e.message}")

    new_end = new_start + (end - start)
    if new_start < 1 or new_end > store.template_pages:
        return _rejected(
            f"pages {new_start}-{new_end} do not fit in {store.template_pages} pages"
        )

    target = expand_span(new_start, new_end)
    clash = target & store.occupied_pages(excluding_row_id=row_id)
    if clash:
        return _rejected(f"pages {format_range(clash)} are occupied")

    row.pages = target
    return SwapResult(ok=True)


def drop(store: AllocationStore, row_id: str, page: int) -> SwapResult:
    """Apply a flatplan drag-and-drop of a row onto a page.

    Dropping onto another row's page swaps the two rows' pages; dropping onto
    a free page relocates the row to start there; dropping onto the row
    itself does nothing.
    """
    target = store.owner_of(page)
    if target is None:
        return relocate(store, row_id, page)
    if target.id == row_id:
        return SwapResult(ok=False, reason="dropped onto itself")
    return swap(store, row_id, target.id)
