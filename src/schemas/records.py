"""Backend record schemas.

These models describe rows exactly as the persistence layer stores them.
A lineup item's pages travel as a single inclusive ``(page_start, page_end)``
pair, so only contiguous page sets can be persisted.
"""

from pydantic import BaseModel, Field, model_validator


class LineupItemRecord(BaseModel):
    """A paginated lineup item as stored on the backend.

    Attributes:
        id: Backend identifier (None for a record not yet created)
        issue_id: Issue the item belongs to
        page_start: First page (inclusive)
        page_end: Last page (inclusive)
        content: Content title
        content_type: Content category
        supplier_id: Primary supplier
        source: Content source
        notes: Free-form notes
        responsible_editor_id: Team member responsible for the item
        text_ready: Text has been delivered
        files_ready: Files have been delivered
        is_designed: Design has been approved
    """

    id: str | None = None
    issue_id: str | None = None
    page_start: int = Field(ge=1)
    page_end: int = Field(ge=1)
    content: str = ""
    content_type: str | None = None
    supplier_id: str | None = None
    source: str | None = None
    notes: str | None = None
    responsible_editor_id: str | None = None
    text_ready: bool = False
    files_ready: bool = False
    is_designed: bool = False

    model_config = {"extra": "ignore"}

    @model_validator(mode="after")
    def check_span(self) -> "LineupItemRecord":
        if self.page_end < self.page_start:
            raise ValueError("page_end must not be before page_start")
        return self

    def payload(self) -> dict:
        """Fields sent on create/update (the id travels separately)."""
        return self.model_dump(mode="json", exclude={"id"})


class InsertRecord(BaseModel):
    """A non-paginated insert as stored on the backend."""

    id: str | None = None
    issue_id: str | None = None
    content: str = ""
    content_type: str | None = None
    supplier_id: str | None = None
    source: str | None = None
    notes: str | None = None
    responsible_editor_id: str | None = None
    text_ready: bool = False
    files_ready: bool = False
    is_designed: bool = False

    model_config = {"extra": "ignore"}

    def payload(self) -> dict:
        return self.model_dump(mode="json", exclude={"id"})


class IssueEditorRecord(BaseModel):
    """Association between an issue and an assigned editor."""

    id: str
    issue_id: str
    editor_id: str

    model_config = {"extra": "ignore"}
