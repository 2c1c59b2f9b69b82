"""Reconciliation of a working set against the backend baseline.

Planning is a pure function of (baseline, working set): it decides which
records to delete, update and create, and never talks to the backend.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from schemas.lineup import InsertRow, LineupRow
from schemas.records import InsertRecord, LineupItemRecord

from .errors import DiscontiguousPagesError
from .pages import expand_span, to_span

logger = logging.getLogger(__name__)

R = TypeVar("R", LineupItemRecord, InsertRecord)


@dataclass
class ReconciliationPlan(Generic[R]):
    """Operations needed to bring the backend in line with the working set.

    A baseline row that is no longer persistable (its pages were cleared or
    its content blanked) is deleted on the backend. It stays in the working
    set and is created again once it is complete.

    Attributes:
        to_delete: Baseline ids missing from the working set or no longer
            persistable
        to_update: (id, record) pairs for rows whose record changed
        to_create: (local id, record) pairs for rows not in the baseline
        skipped: Working ids left out because they are not persistable
    """

    to_delete: list[str] = field(default_factory=list)
    to_update: list[tuple[str, R]] = field(default_factory=list)
    to_create: list[tuple[str, R]] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.to_delete or self.to_update or self.to_create)

    def __len__(self) -> int:
        return len(self.to_delete) + len(self.to_update) + len(self.to_create)


def is_persistable_row(row: LineupRow) -> bool:
    """A lineup row is saved only when it has both pages and content."""
    return bool(row.pages) and bool(row.content.strip())


def is_persistable_insert(insert: InsertRow) -> bool:
    return bool(insert.content.strip())


def lineup_record(row: LineupRow, issue_id: str | None = None) -> LineupItemRecord:
    """Convert a lineup row to its backend record.

    Raises:
        DiscontiguousPagesError: If the row's pages are empty or have gaps
    """
    page_start, page_end = to_span(row.pages)
    return LineupItemRecord(
        issue_id=issue_id,
        page_start=page_start,
        page_end=page_end,
        content=row.content,
        content_type=row.content_type,
        supplier_id=row.supplier_ids[0] if row.supplier_ids else None,
        source=row.source or None,
        notes=row.notes or None,
        responsible_editor_id=row.responsible_editor_id,
        text_ready=row.text_ready,
        files_ready=row.files_ready,
        is_designed=row.is_designed,
    )


def insert_record(insert: InsertRow, issue_id: str | None = None) -> InsertRecord:
    return InsertRecord(
        issue_id=issue_id,
        content=insert.content,
        content_type=insert.content_type,
        supplier_id=insert.supplier_ids[0] if insert.supplier_ids else None,
        source=insert.source or None,
        notes=insert.notes or None,
        responsible_editor_id=insert.responsible_editor_id,
        text_ready=insert.text_ready,
        files_ready=insert.files_ready,
        is_designed=insert.is_designed,
    )


def row_from_record(record: LineupItemRecord) -> LineupRow:
    """Build an editable row from a backend record."""
    if record.id is None:
        raise ValueError("Backend lineup record has no id")
    return LineupRow(
        id=record.id,
        pages=expand_span(record.page_start, record.page_end),
        content_type=record.content_type,
        content=record.content,
        notes=record.notes or "",
        source=record.source or "",
        supplier_ids=[record.supplier_id] if record.supplier_id else [],
        responsible_editor_id=record.responsible_editor_id,
        text_ready=record.text_ready,
        files_ready=record.files_ready,
        is_designed=record.is_designed,
    )


def insert_from_record(record: InsertRecord) -> InsertRow:
    if record.id is None:
        raise ValueError("Backend insert record has no id")
    return InsertRow(
        id=record.id,
        content_type=record.content_type,
        content=record.content,
        notes=record.notes or "",
        source=record.source or "",
        supplier_ids=[record.supplier_id] if record.supplier_id else [],
        responsible_editor_id=record.responsible_editor_id,
        text_ready=record.text_ready,
        files_ready=record.files_ready,
        is_designed=record.is_designed,
    )


def _normalised(record: R) -> dict:
    # The backend may store "" where a row holds no text; rows send None.
    return {k: (None if v == "" else v) for k, v in record.payload().items()}


def _same(record: R, baseline: R) -> bool:
    current = _normalised(record)
    stored = _normalised(baseline)
    stored["issue_id"] = current["issue_id"]
    return current == stored


def _plan(
    baseline: Mapping[str, R], working: Iterable[tuple[str, R | None]]
) -> ReconciliationPlan[R]:
    plan: ReconciliationPlan[R] = ReconciliationPlan()
    working_ids = set()

    for row_id, record in working:
        if record is None:
            plan.skipped.append(row_id)
            continue
        working_ids.add(row_id)
        if row_id in baseline:
            if not _same(record, baseline[row_id]):
                plan.to_update.append((row_id, record))
        else:
            plan.to_create.append((row_id, record))

    plan.to_delete = [row_id for row_id in baseline if row_id not in working_ids]
    return plan


def plan_lineup(
    baseline: Mapping[str, LineupItemRecord],
    rows: Iterable[LineupRow],
    issue_id: str | None = None,
) -> ReconciliationPlan[LineupItemRecord]:
    """Plan the lineup row operations for a save.

    Args:
        baseline: Records last known to be on the backend, by id
        rows: Working set in lineup order
        issue_id: Issue the records belong to (None before it is created)

    Returns:
        The plan; creates and updates follow lineup order

    Raises:
        DiscontiguousPagesError: If a persistable row has gaps in its pages
    """
    working = []
    for row in rows:
        if not is_persistable_row(row):
            working.append((row.id, None))
            continue
        try:
            working.append((row.id, lineup_record(row, issue_id)))
        except DiscontiguousPagesError as e:
            raise DiscontiguousPagesError(
                f"Row {row.id} ({row.content}): {e.message}", pages=row.pages
            ) from e

    plan = _plan(baseline, working)
    if plan.skipped:
        logger.debug(f"Skipping incomplete rows: {plan.skipped}")
    return plan


def plan_inserts(
    baseline: Mapping[str, InsertRecord],
    inserts: Iterable[InsertRow],
    issue_id: str | None = None,
) -> ReconciliationPlan[InsertRecord]:
    """Plan the insert operations for a save."""
    working = [
        (insert.id, insert_record(insert, issue_id) if is_persistable_insert(insert) else None)
        for insert in inserts
    ]
    return _plan(baseline, working)
