"""Schema definitions for the lineup planner."""

from .draft import DraftDocument
from .issue import Issue
from .lineup import InsertRow, LineupRow
from .records import InsertRecord, IssueEditorRecord, LineupItemRecord

__all__ = [
    "DraftDocument",
    "InsertRecord",
    "InsertRow",
    "Issue",
    "IssueEditorRecord",
    "LineupItemRecord",
    "LineupRow",
]
