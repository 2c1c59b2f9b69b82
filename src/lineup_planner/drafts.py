"""Reading and writing local lineup drafts.

A draft carries a lineup session between command invocations. The baseline
is never stored in it: when a draft for an existing issue is opened, the
baseline is fetched from the backend again.
"""

import copy
import json
import logging
from pathlib import Path

from schemas.draft import DraftDocument
from schemas.issue import Issue

from .clients.backend import LineupBackend
from .coordinator import SaveCoordinator
from .store import AllocationStore

logger = logging.getLogger(__name__)


def load_draft(draft_file: Path) -> DraftDocument:
    """Load a draft from a JSON file.

    Args:
        draft_file: Path to the JSON draft file

    Returns:
        The validated draft
    """
    with draft_file.open("r") as f:
        return DraftDocument.model_validate(json.load(f))


def dump_draft(draft: DraftDocument, destination: Path) -> None:
    """Save a draft to a JSON file.

    Args:
        draft: The draft to save
        destination: Path where the draft file should be written
    """
    destination.parent.mkdir(parents=True, exist_ok=True)
    with destination.open("w+") as f:
        json.dump(draft.model_dump(mode="json"), fp=f, indent=2)


def new_draft(issue: Issue, editor_ids: list[str] | None = None) -> DraftDocument:
    return DraftDocument(issue=issue, editor_ids=list(editor_ids or []))


def store_from_draft(draft: DraftDocument) -> AllocationStore:
    """Build an allocation store from a draft's rows.

    Rows are copied, so editing the store leaves the draft untouched.
    """
    return AllocationStore(
        draft.issue.template_pages,
        rows=copy.deepcopy(draft.rows),
        inserts=copy.deepcopy(draft.inserts),
    )


def open_session(backend: LineupBackend, draft: DraftDocument) -> SaveCoordinator:
    """Start a save session for a draft.

    For an issue that already exists, the baseline is fetched from the
    backend and the draft's rows become the working set.
    """
    store = store_from_draft(draft)
    issue = draft.issue.model_copy()
    if not issue.is_created:
        return SaveCoordinator(backend, issue, store=store, editor_ids=draft.editor_ids)

    snapshot = backend.fetch(issue.id)
    logger.debug(f"Fetched baseline for issue {issue.id}")
    return SaveCoordinator(
        backend,
        snapshot.issue,
        store=store,
        editor_ids=draft.editor_ids,
        baseline_lineup=snapshot.lineup,
        baseline_inserts=snapshot.inserts,
        baseline_editors=snapshot.editors,
    )


def draft_from_session(coordinator: SaveCoordinator) -> DraftDocument:
    """Capture a session's issue and working set as a draft."""
    rows, inserts = coordinator.store.snapshot()
    return DraftDocument(
        issue=coordinator.issue.model_copy(),
        editor_ids=list(coordinator.editor_ids),
        rows=rows,
        inserts=inserts,
        saved_at=coordinator.last_saved_at,
    )
