"""Local lineup draft schema.

A draft is the on-disk form of an in-progress lineup session:

    drafts/
    └── {name}.json     # DraftDocument

It holds the issue being built (with its backend id once created) and the
working set of rows in lineup order. The backend remains the source of the
baseline; the draft never stores it.
"""

from datetime import datetime

from pydantic import BaseModel

from .issue import Issue
from .lineup import InsertRow, LineupRow


class DraftDocument(BaseModel):
    """Serialized lineup session.

    Attributes:
        version: Draft schema version
        issue: Issue under construction
        editor_ids: Editors to associate with the issue
        rows: Lineup rows in lineup order
        inserts: Inserts in display order
        saved_at: When the draft was last saved to the backend
    """

    version: str = "1.0"
    issue: Issue
    editor_ids: list[str] = []
    rows: list[LineupRow] = []
    inserts: list[InsertRow] = []
    saved_at: datetime | None = None

    model_config = {"extra": "allow"}
