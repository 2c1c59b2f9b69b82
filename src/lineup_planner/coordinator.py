"""Save coordination between the working set and the backend.

The coordinator keeps the baseline (records last known to be on the
backend) next to the allocation store and turns their difference into
backend calls. Calls are issued one at a time in a fixed order:

    create issue (new issues only)
    lineup: deletes -> updates -> creates
    inserts: deletes -> updates -> creates
    editor associations: adds -> removals
    publish status change (existing draft issues only)

The first failing call aborts the save. Calls that already succeeded are
folded into the baseline, and rows created before the failure take their
server ids, so retrying never creates a row twice. Nothing is rolled back on
the backend.
"""

import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from schemas.issue import Issue
from schemas.records import InsertRecord, IssueEditorRecord, LineupItemRecord

from .clients.backend import LineupBackend
from .clients.exceptions import ClientError
from .errors import DiscontiguousPagesError, SaveError
from .reconcile import (
    ReconciliationPlan,
    insert_from_record,
    plan_inserts,
    plan_lineup,
    row_from_record,
)
from .store import AllocationStore

logger = logging.getLogger(__name__)


class ExitDecision(Enum):
    SAVE_AND_EXIT = "save"
    DISCARD_AND_EXIT = "discard"
    CANCEL = "cancel"


@dataclass
class SaveReport:
    """Counts of the backend calls a save made."""

    issue_id: str | None = None
    issue_created: bool = False
    published: bool = False
    rows_created: int = 0
    rows_updated: int = 0
    rows_deleted: int = 0
    rows_skipped: int = 0
    inserts_created: int = 0
    inserts_updated: int = 0
    inserts_deleted: int = 0
    editors_added: int = 0
    editors_removed: int = 0

    @property
    def calls(self) -> int:
        return (
            int(self.issue_created)
            + self.rows_created + self.rows_updated + self.rows_deleted
            + self.inserts_created + self.inserts_updated + self.inserts_deleted
            + self.editors_added + self.editors_removed
        )


class SaveCoordinator:
    """Reconciles an issue's working set with the backend.

    Attributes:
        backend: Persistence layer
        issue: The issue being edited (id is None until created)
        store: Working set
        editor_ids: Editors that should be associated with the issue
        baseline_lineup: Lineup records on the backend, by id
        baseline_inserts: Insert records on the backend, by id
        baseline_editors: Editor associations on the backend, by association id
        last_saved_at: Time of the last successful save (UTC)
        last_error: Message of the last failed save
    """

    def __init__(
        self,
        backend: LineupBackend,
        issue: Issue,
        store: AllocationStore | None = None,
        editor_ids: Iterable[str] = (),
        baseline_lineup: Iterable[LineupItemRecord] = (),
        baseline_inserts: Iterable[InsertRecord] = (),
        baseline_editors: Iterable[IssueEditorRecord] = (),
    ):
        self.backend = backend
        self.issue = issue
        self.store = store or AllocationStore(issue.template_pages)
        if self.store.template_pages != issue.template_pages:
            raise ValueError(
                f"Store has {self.store.template_pages} pages, "
                f"issue has {issue.template_pages}"
            )
        self.editor_ids: list[str] = list(dict.fromkeys(editor_ids))
        self.baseline_lineup: dict[str, LineupItemRecord] = {
            r.id: r for r in baseline_lineup if r.id is not None
        }
        self.baseline_inserts: dict[str, InsertRecord] = {
            r.id: r for r in baseline_inserts if r.id is not None
        }
        self.baseline_editors: dict[str, IssueEditorRecord] = {
            e.id: e for e in baseline_editors
        }
        self.last_saved_at: datetime | None = None
        self.last_error: str | None = None
        self._save_lock = threading.Lock()

    @classmethod
    def load(cls, backend: LineupBackend, issue_id: str) -> "SaveCoordinator":
        """Start a session on an issue that already exists on the backend."""
        snapshot = backend.fetch(issue_id)
        store = AllocationStore(
            snapshot.issue.template_pages,
            rows=[row_from_record(r) for r in snapshot.lineup],
            inserts=[insert_from_record(r) for r in snapshot.inserts],
        )
        logger.info(
            f"Loaded issue {issue_id} with {len(store.rows)} lineup rows "
            f"and {len(store.inserts)} inserts"
        )
        return cls(
            backend,
            snapshot.issue,
            store=store,
            editor_ids=[e.editor_id for e in snapshot.editors],
            baseline_lineup=snapshot.lineup,
            baseline_inserts=snapshot.inserts,
            baseline_editors=snapshot.editors,
        )

    def copy_lineup_from(self, source_issue_id: str) -> list[str]:
        """Append another issue's lineup to the working set as new rows."""
        records = self.backend.fetch_lineup(source_issue_id)
        return self.store.copy_from(records)

    @property
    def is_saving(self) -> bool:
        return self._save_lock.locked()

    def plan(
        self,
    ) -> tuple[ReconciliationPlan[LineupItemRecord], ReconciliationPlan[InsertRecord]]:
        """Plan the lineup and insert operations a save would make.

        Raises:
            DiscontiguousPagesError: If a row's pages cannot be saved
        """
        return (
            plan_lineup(self.baseline_lineup, self.store.rows, self.issue.id),
            plan_inserts(self.baseline_inserts, self.store.inserts, self.issue.id),
        )

    def editor_changes(self) -> tuple[list[str], list[IssueEditorRecord]]:
        """Editor ids to add and associations to remove."""
        current = {e.editor_id for e in self.baseline_editors.values()}
        wanted = set(self.editor_ids)
        to_add = [e for e in self.editor_ids if e not in current]
        to_remove = [e for e in self.baseline_editors.values() if e.editor_id not in wanted]
        return to_add, to_remove

    @property
    def is_dirty(self) -> bool:
        """True if the working set differs from what the backend holds.

        Recomputed on every access from the store and the baseline.
        """
        if not self.issue.is_created:
            return bool(self.store.rows or self.store.inserts)
        try:
            lineup_plan, insert_plan = self.plan()
        except DiscontiguousPagesError:
            return True
        to_add, to_remove = self.editor_changes()
        return not (
            lineup_plan.is_empty and insert_plan.is_empty and not to_add and not to_remove
        )

    @property
    def needs_exit_confirmation(self) -> bool:
        return self.is_dirty

    def request_exit(self, decision: ExitDecision) -> bool:
        """Resolve an attempt to leave the lineup.

        Returns:
            True if the caller may exit
        """
        if not self.needs_exit_confirmation:
            return True
        if decision is ExitDecision.CANCEL:
            return False
        if decision is ExitDecision.DISCARD_AND_EXIT:
            logger.warning(f"Discarding unsaved lineup changes for issue {self.issue.id}")
            return True
        try:
            self.save()
        except SaveError as e:
            logger.error(f"Save before exit failed: {e.message}")
            return False
        return True

    def save(self, publish: bool = False) -> SaveReport:
        """Save the working set as a draft, or publish it.

        Args:
            publish: Mark the issue in progress instead of leaving it a draft

        Returns:
            SaveReport describing the calls made

        Raises:
            SaveError: If a save is already running, a row cannot be saved,
                or a backend call fails
        """
        if not self._save_lock.acquire(blocking=False):
            raise SaveError("A save is already in progress", step="start")
        try:
            report = self._save(publish)
        except SaveError as e:
            self.last_error = e.message
            logger.error(f"Save failed: {e.message}")
            raise
        finally:
            self._save_lock.release()

        self.last_saved_at = datetime.now(timezone.utc)
        self.last_error = None
        logger.info(
            f"Saved issue {report.issue_id}: "
            f"{report.rows_created} created, {report.rows_updated} updated, "
            f"{report.rows_deleted} deleted, {report.rows_skipped} skipped"
        )
        return report

    def _call(self, step: str, func: Callable[..., Any], *args) -> Any:
        logger.debug(f"Save step: {step}")
        try:
            return func(*args)
        except ClientError as e:
            raise SaveError(f"Failed to {step}: {e.message}", step=step) from e

    def _save(self, publish: bool) -> SaveReport:
        try:
            lineup_plan, insert_plan = self.plan()
        except DiscontiguousPagesError as e:
            raise SaveError(e.message, step="plan") from e

        report = SaveReport(issue_id=self.issue.id)

        if not self.issue.is_created:
            status = "in_progress" if publish else "draft"
            fields = self.issue.to_fields()
            fields["status"] = status
            issue_id = self._call("create issue", self.backend.create_issue, fields)
            self.issue.id = issue_id
            self.issue.status = status
            report.issue_id = issue_id
            report.issue_created = True
            report.published = publish
        issue_id = self.issue.id
        assert issue_id is not None

        report.rows_skipped = len(lineup_plan.skipped)
        self._apply_lineup(issue_id, lineup_plan, report)
        self._apply_inserts(issue_id, insert_plan, report)
        self._apply_editors(issue_id, report)

        if publish and not report.issue_created and self.issue.status == "draft":
            self._call(
                "publish issue", self.backend.update_issue, issue_id, {"status": "in_progress"}
            )
            self.issue.status = "in_progress"
            report.published = True

        return report

    def _apply_lineup(
        self,
        issue_id: str,
        plan: ReconciliationPlan[LineupItemRecord],
        report: SaveReport,
    ) -> None:
        for row_id in plan.to_delete:
            self._call(f"delete lineup row {row_id}", self.backend.delete_lineup_row, row_id, issue_id)
            del self.baseline_lineup[row_id]
            report.rows_deleted += 1

        for row_id, record in plan.to_update:
            record = record.model_copy(update={"issue_id": issue_id})
            self._call(f"update lineup row {row_id}", self.backend.update_lineup_row, row_id, record)
            self.baseline_lineup[row_id] = record.model_copy(update={"id": row_id})
            report.rows_updated += 1

        for local_id, record in plan.to_create:
            record = record.model_copy(update={"issue_id": issue_id})
            new_id = self._call(
                f"create lineup row {local_id}", self.backend.create_lineup_row, issue_id, record
            )
            if self.store.has_row(local_id):
                self.store.rekey_row(local_id, new_id)
            self.baseline_lineup[new_id] = record.model_copy(update={"id": new_id})
            report.rows_created += 1

    def _apply_inserts(
        self,
        issue_id: str,
        plan: ReconciliationPlan[InsertRecord],
        report: SaveReport,
    ) -> None:
        for insert_id in plan.to_delete:
            self._call(f"delete insert {insert_id}", self.backend.delete_insert, insert_id, issue_id)
            del self.baseline_inserts[insert_id]
            report.inserts_deleted += 1

        for insert_id, record in plan.to_update:
            record = record.model_copy(update={"issue_id": issue_id})
            self._call(f"update insert {insert_id}", self.backend.update_insert, insert_id, record)
            self.baseline_inserts[insert_id] = record.model_copy(update={"id": insert_id})
            report.inserts_updated += 1

        for local_id, record in plan.to_create:
            record = record.model_copy(update={"issue_id": issue_id})
            new_id = self._call(
                f"create insert {local_id}", self.backend.create_insert, issue_id, record
            )
            if any(i.id == local_id for i in self.store.inserts):
                self.store.rekey_insert(local_id, new_id)
            self.baseline_inserts[new_id] = record.model_copy(update={"id": new_id})
            report.inserts_created += 1

    def _apply_editors(self, issue_id: str, report: SaveReport) -> None:
        to_add, to_remove = self.editor_changes()
        for editor_id in to_add:
            association_id = self._call(
                f"add editor {editor_id}", self.backend.add_issue_editor, issue_id, editor_id
            )
            self.baseline_editors[association_id] = IssueEditorRecord(
                id=association_id, issue_id=issue_id, editor_id=editor_id
            )
            report.editors_added += 1

        for association in to_remove:
            self._call(
                f"remove editor {association.editor_id}",
                self.backend.remove_issue_editor,
                association.id,
                issue_id,
            )
            del self.baseline_editors[association.id]
            report.editors_removed += 1
