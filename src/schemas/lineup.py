"""Lineup row domain objects.

These are the in-memory, editable rows of an issue's lineup. They become
backend records only when the lineup is saved.
"""

from dataclasses import dataclass, field


@dataclass
class LineupRow:
    """A paginated content item in an issue's lineup.

    Attributes:
        id: Server id once persisted, or a local placeholder id
        pages: Page numbers claimed by this row
        content_type: Content category
        content: Content title
        notes: Free-form notes
        source: Content source
        supplier_ids: Suppliers working on the item (first one is primary)
        responsible_editor_id: Team member responsible for the item
        text_ready: Text has been delivered
        files_ready: Files have been delivered
        is_designed: Design has been approved
    """

    id: str
    pages: set[int] = field(default_factory=set)
    content_type: str | None = None
    content: str = ""
    notes: str = ""
    source: str = ""
    supplier_ids: list[str] = field(default_factory=list)
    responsible_editor_id: str | None = None
    text_ready: bool = False
    files_ready: bool = False
    is_designed: bool = False


@dataclass
class InsertRow:
    """A non-paginated insert attached to an issue."""

    id: str
    content_type: str | None = None
    content: str = ""
    notes: str = ""
    source: str = ""
    supplier_ids: list[str] = field(default_factory=list)
    responsible_editor_id: str | None = None
    text_ready: bool = False
    files_ready: bool = False
    is_designed: bool = False
