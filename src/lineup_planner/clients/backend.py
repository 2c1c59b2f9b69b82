"""Persistence contract used by the save coordinator."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from schemas.issue import Issue
from schemas.records import InsertRecord, IssueEditorRecord, LineupItemRecord


@dataclass
class LineupSnapshot:
    """Everything the backend holds for one issue's lineup.

    Attributes:
        issue: The issue
        lineup: Lineup item records, ordered by first page
        inserts: Insert records
        editors: Editor associations
    """

    issue: Issue
    lineup: list[LineupItemRecord] = field(default_factory=list)
    inserts: list[InsertRecord] = field(default_factory=list)
    editors: list[IssueEditorRecord] = field(default_factory=list)


class LineupBackend(ABC):
    """Calls the lineup engine makes against the persistence layer.

    Every call is blocking and either succeeds or raises a ClientError.
    """

    @abstractmethod
    def fetch(self, issue_id: str) -> LineupSnapshot:
        """Load an issue with its lineup, inserts and editors."""

    @abstractmethod
    def fetch_lineup(self, issue_id: str) -> list[LineupItemRecord]:
        """Load only the lineup items of an issue."""

    @abstractmethod
    def create_issue(self, fields: dict) -> str:
        """Create an issue and return its id."""

    @abstractmethod
    def update_issue(self, issue_id: str, fields: dict) -> None:
        pass

    @abstractmethod
    def create_lineup_row(self, issue_id: str, record: LineupItemRecord) -> str:
        """Create a lineup item and return its id."""

    @abstractmethod
    def update_lineup_row(self, row_id: str, record: LineupItemRecord) -> None:
        pass

    @abstractmethod
    def delete_lineup_row(self, row_id: str, issue_id: str) -> None:
        pass

    @abstractmethod
    def create_insert(self, issue_id: str, record: InsertRecord) -> str:
        """Create an insert and return its id."""

    @abstractmethod
    def update_insert(self, insert_id: str, record: InsertRecord) -> None:
        pass

    @abstractmethod
    def delete_insert(self, insert_id: str, issue_id: str) -> None:
        pass

    @abstractmethod
    def add_issue_editor(self, issue_id: str, editor_id: str) -> str:
        """Associate an editor with an issue and return the association id."""

    @abstractmethod
    def remove_issue_editor(self, association_id: str, issue_id: str) -> None:
        pass
