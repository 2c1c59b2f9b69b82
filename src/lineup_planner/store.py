"""In-memory allocation store for one issue's lineup.

The store is the single source of truth for the working set: an ordered list
of lineup rows and a parallel ordered list of inserts. It owns the page
uniqueness invariant: no two rows may claim the same page, and every page
lies in [1, template_pages]. The only way to change a row's pages is
assign_pages (or update_row with a pages field, which routes through it).
"""

import copy
import logging
from collections.abc import Iterable
from dataclasses import fields
from itertools import count

from schemas.lineup import InsertRow, LineupRow
from schemas.records import LineupItemRecord

from .errors import UnknownRowError
from .pages import expand_span, free_pages
from .pages import is_occupied as _is_occupied

logger = logging.getLogger(__name__)

ROW_FIELDS = frozenset(f.name for f in fields(LineupRow)) - {"id"}
INSERT_FIELDS = frozenset(f.name for f in fields(InsertRow)) - {"id"}


class AllocationStore:
    """Ordered lineup rows and inserts for a single issue.

    Attributes:
        template_pages: The issue's fixed page budget
        rows: Lineup rows in lineup order
        inserts: Inserts in display order
    """

    def __init__(
        self,
        template_pages: int,
        rows: Iterable[LineupRow] = (),
        inserts: Iterable[InsertRow] = (),
    ):
        if template_pages < 1:
            raise ValueError("template_pages must be positive")
        self.template_pages = template_pages
        self.rows: list[LineupRow] = []
        self.inserts: list[InsertRow] = list(inserts)
        self._ids = count(1)
        # Ids replaced by rekey_row and rekey_insert, mapped to their successors
        self._row_aliases: dict[str, str] = {}
        self._insert_aliases: dict[str, str] = {}

        for row in rows:
            pages = set(row.pages)
            row.pages = set()
            self.rows.append(row)
            self.assign_pages(row.id, pages)

    def __repr__(self) -> str:
        return (
            f"AllocationStore(template_pages={self.template_pages}, "
            f"rows={len(self.rows)}, inserts={len(self.inserts)})"
        )

    def _new_id(self, prefix: str) -> str:
        existing = set(self.row_ids) | {i.id for i in self.inserts}
        existing |= set(self._row_aliases) | set(self._insert_aliases)
        while True:
            candidate = f"{prefix}-{next(self._ids)}"
            if candidate not in existing:
                return candidate

    # Lineup rows

    @property
    def row_ids(self) -> list[str]:
        return [row.id for row in self.rows]

    def resolve_row_id(self, row_id: str) -> str:
        """The current id of a row, following ids replaced by rekey_row.

        A page picker opened before a save still holds the placeholder id of
        a row that the save created; this maps it to the server id.
        """
        while row_id in self._row_aliases:
            row_id = self._row_aliases[row_id]
        return row_id

    def get_row(self, row_id: str) -> LineupRow:
        row_id = self.resolve_row_id(row_id)
        for row in self.rows:
            if row.id == row_id:
                return row
        raise UnknownRowError(row_id)

    def has_row(self, row_id: str) -> bool:
        row_id = self.resolve_row_id(row_id)
        return any(row.id == row_id for row in self.rows)

    def index_of(self, row_id: str) -> int:
        row_id = self.resolve_row_id(row_id)
        for index, row in enumerate(self.rows):
            if row.id == row_id:
                return index
        raise UnknownRowError(row_id)

    def add_row(self) -> str:
        """Append an empty row at the end of the lineup.

        Returns:
            The new row's local id
        """
        row = LineupRow(id=self._new_id("new"))
        self.rows.append(row)
        logger.debug(f"Added row {row.id}")
        return row.id

    def update_row(self, row_id: str, **updates) -> LineupRow:
        """Shallow-merge fields into a row.

        A ``pages`` value is applied through assign_pages so the uniqueness
        invariant holds.

        Raises:
            UnknownRowError: If no row has this id
            ValueError: If a field name is not a row field
        """
        row = self.get_row(row_id)
        unknown = set(updates) - ROW_FIELDS
        if unknown:
            raise ValueError(f"Unknown row fields: {', '.join(sorted(unknown))}")

        pages = updates.pop("pages", None)
        for name, value in updates.items():
            setattr(row, name, value)
        if pages is not None:
            self.assign_pages(row_id, pages)
        return row

    def assign_pages(self, row_id: str, pages: Iterable[int]) -> set[int]:
        """Replace a row's pages, excluding pages it may not claim.

        Pages held by another row or outside [1, template_pages] are dropped
        from the request rather than raising.

        Returns:
            The pages actually assigned
        """
        row = self.get_row(row_id)
        requested = set(pages)
        occupied = self.occupied_pages(excluding_row_id=row_id)
        accepted = {
            p for p in requested
            if 1 <= p <= self.template_pages and p not in occupied
        }
        rejected = requested - accepted
        if rejected:
            logger.warning(
                f"Row {row_id}: excluded unavailable pages {sorted(rejected)}"
            )
        row.pages = accepted
        return set(accepted)

    def delete_row(self, row_id: str) -> LineupRow:
        """Remove a row from the lineup. Nothing is sent to the backend."""
        index = self.index_of(row_id)
        row = self.rows.pop(index)
        logger.debug(f"Deleted row {row_id}")
        return row

    def move_row(self, from_index: int, to_index: int) -> None:
        """Move a row to a new position, keeping the others in order.

        Raises:
            IndexError: If either index is out of range
        """
        _move(self.rows, from_index, to_index)

    def occupied_pages(self, excluding_row_id: str | None = None) -> set[int]:
        """Union of pages claimed by all rows except excluding_row_id."""
        if excluding_row_id is not None:
            excluding_row_id = self.resolve_row_id(excluding_row_id)
        occupied: set[int] = set()
        for row in self.rows:
            if row.id != excluding_row_id:
                occupied |= row.pages
        return occupied

    def is_occupied(self, page: int, excluding_row_id: str | None = None) -> bool:
        if excluding_row_id is not None:
            excluding_row_id = self.resolve_row_id(excluding_row_id)
        return _is_occupied(page, self.rows, excluding_row_id)

    def owner_of(self, page: int) -> LineupRow | None:
        """The row claiming a page, if any."""
        for row in self.rows:
            if page in row.pages:
                return row
        return None

    @property
    def total_defined_pages(self) -> int:
        return sum(len(row.pages) for row in self.rows)

    @property
    def free_pages(self) -> list[int]:
        return free_pages(self.template_pages, self.occupied_pages())

    def rekey_row(self, old_id: str, new_id: str) -> None:
        """Replace a placeholder id with the id the backend assigned.

        The old id keeps resolving to the row afterwards.
        """
        if old_id == new_id:
            return
        if self.has_row(new_id):
            raise ValueError(f"Row id already in use: {new_id}")
        row = self.get_row(old_id)
        self._row_aliases.pop(new_id, None)
        self._row_aliases[row.id] = new_id
        row.id = new_id

    def copy_from(self, records: Iterable[LineupItemRecord]) -> list[str]:
        """Append rows copied from another issue's lineup.

        Copied rows get placeholder ids, so they are created (not updated)
        when the lineup is saved. Production flags are not carried over.

        Returns:
            The ids of the appended rows
        """
        added = []
        for record in sorted(records, key=lambda r: r.page_start):
            row = LineupRow(
                id=self._new_id("copied"),
                content_type=record.content_type,
                content=record.content,
                notes=record.notes or "",
                source=record.source or "",
                supplier_ids=[record.supplier_id] if record.supplier_id else [],
                responsible_editor_id=record.responsible_editor_id,
            )
            self.rows.append(row)
            self.assign_pages(row.id, expand_span(record.page_start, record.page_end))
            added.append(row.id)
        logger.info(f"Copied {len(added)} rows into the lineup")
        return added

    # Inserts

    def get_insert(self, insert_id: str) -> InsertRow:
        while insert_id in self._insert_aliases:
            insert_id = self._insert_aliases[insert_id]
        for insert in self.inserts:
            if insert.id == insert_id:
                return insert
        raise UnknownRowError(insert_id)

    def add_insert(self) -> str:
        insert = InsertRow(id=self._new_id("insert"))
        self.inserts.append(insert)
        return insert.id

    def update_insert(self, insert_id: str, **updates) -> InsertRow:
        insert = self.get_insert(insert_id)
        unknown = set(updates) - INSERT_FIELDS
        if unknown:
            raise ValueError(f"Unknown insert fields: {', '.join(sorted(unknown))}")
        for name, value in updates.items():
            setattr(insert, name, value)
        return insert

    def delete_insert(self, insert_id: str) -> InsertRow:
        insert = self.get_insert(insert_id)
        self.inserts.remove(insert)
        return insert

    def move_insert(self, from_index: int, to_index: int) -> None:
        _move(self.inserts, from_index, to_index)

    def rekey_insert(self, old_id: str, new_id: str) -> None:
        if old_id == new_id:
            return
        insert = self.get_insert(old_id)
        self._insert_aliases.pop(new_id, None)
        self._insert_aliases[insert.id] = new_id
        insert.id = new_id

    def snapshot(self) -> tuple[list[LineupRow], list[InsertRow]]:
        """Deep copies of the rows and inserts."""
        return copy.deepcopy(self.rows), copy.deepcopy(self.inserts)


def _move(items: list, from_index: int, to_index: int) -> None:
    size = len(items)
    if not (0 <= from_index < size and 0 <= to_index < size):
        raise IndexError(f"Cannot move {from_index} -> {to_index} in {size} items")
    if from_index == to_index:
        return
    item = items.pop(from_index)
    items.insert(to_index, item)
