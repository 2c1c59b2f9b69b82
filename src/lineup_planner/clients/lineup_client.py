"""REST client for the magazine production backend."""

import logging
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from schemas.issue import Issue
from schemas.records import InsertRecord, IssueEditorRecord, LineupItemRecord

from .backend import LineupBackend, LineupSnapshot
from .client import Client
from .exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class LineupClient(Client, LineupBackend):
    """Client for the PostgREST API in front of the production database.

    Rows are addressed with ``id=eq.<id>`` filters and writes ask for the
    written row back (``Prefer: return=representation``) so that new ids can
    be read from the response.

    Extra config keys:
        api_key: Project API key, sent as ``apikey`` and as a bearer token

    Example:
        config = {"base_url": "https://project.example.co", "api_key": "..."}
        with LineupClient(config) as client:
            snapshot = client.fetch("issue-id")
    """

    API_PATH = "/rest/v1"
    ISSUES = "issues"
    LINEUP_ITEMS = "lineup_items"
    INSERTS = "inserts"
    ISSUE_EDITORS = "issue_editors"

    @property
    def headers(self) -> dict[str, str]:
        headers = super().headers
        api_key = self._config.get("api_key")
        if api_key:
            headers.setdefault("apikey", api_key)
            headers.setdefault("Authorization", f"Bearer {api_key}")
        return headers

    def _path(self, table: str) -> str:
        return f"{self.API_PATH}/{table}"

    def _select(self, table: str, **filters: str) -> list[dict[str, Any]]:
        params = {"select": "*", **filters}
        response = self.get(self._path(table), params=params)
        return response.json()

    def _insert(self, table: str, payload: dict) -> str:
        response = self.post(
            self._path(table),
            json=payload,
            headers={"Prefer": "return=representation"},
        )
        rows = response.json()
        if not rows or "id" not in rows[0]:
            raise ValidationError(f"Create on {table} returned no id")
        return str(rows[0]["id"])

    def _update(self, table: str, row_id: str, payload: dict) -> None:
        payload = {k: v for k, v in payload.items() if k != "issue_id"}
        self.patch(self._path(table), params={"id": f"eq.{row_id}"}, json=payload)

    def _delete(self, table: str, row_id: str) -> None:
        self.delete(self._path(table), params={"id": f"eq.{row_id}"})

    def _validate(self, model: type[M], items: list[dict[str, Any]]) -> list[M]:
        """Validate backend rows against a schema.

        Raises:
            ValidationError: If any row fails validation
        """
        validated: list[M] = []
        for i, item in enumerate(items):
            try:
                validated.append(model.model_validate(item))
            except PydanticValidationError as e:
                item_id = item.get("id", f"index {i}")
                raise ValidationError(
                    f"{model.__name__} {item_id} failed validation",
                    errors=[str(err) for err in e.errors()],
                ) from e
        return validated

    def fetch_issue(self, issue_id: str) -> Issue:
        """Load a single issue.

        Raises:
            NotFoundError: If the issue does not exist
        """
        rows = self._select(self.ISSUES, id=f"eq.{issue_id}")
        if not rows:
            raise NotFoundError(f"Issue not found: {issue_id}")
        return self._validate(Issue, rows)[0]

    def fetch_lineup(self, issue_id: str) -> list[LineupItemRecord]:
        rows = self._select(
            self.LINEUP_ITEMS, issue_id=f"eq.{issue_id}", order="page_start"
        )
        return self._validate(LineupItemRecord, rows)

    def fetch_inserts(self, issue_id: str) -> list[InsertRecord]:
        rows = self._select(self.INSERTS, issue_id=f"eq.{issue_id}")
        return self._validate(InsertRecord, rows)

    def fetch_editors(self, issue_id: str) -> list[IssueEditorRecord]:
        rows = self._select(self.ISSUE_EDITORS, issue_id=f"eq.{issue_id}")
        return self._validate(IssueEditorRecord, rows)

    def fetch(self, issue_id: str) -> LineupSnapshot:
        """Load an issue with its lineup, inserts and editors."""
        issue = self.fetch_issue(issue_id)
        snapshot = LineupSnapshot(
            issue=issue,
            lineup=self.fetch_lineup(issue_id),
            inserts=self.fetch_inserts(issue_id),
            editors=self.fetch_editors(issue_id),
        )
        logger.debug(
            f"Fetched issue {issue_id}: {len(snapshot.lineup)} lineup items, "
            f"{len(snapshot.inserts)} inserts"
        )
        return snapshot

    def create_issue(self, fields: dict) -> str:
        return self._insert(self.ISSUES, fields)

    def update_issue(self, issue_id: str, fields: dict) -> None:
        self._update(self.ISSUES, issue_id, fields)

    def create_lineup_row(self, issue_id: str, record: LineupItemRecord) -> str:
        payload = record.payload()
        payload["issue_id"] = issue_id
        return self._insert(self.LINEUP_ITEMS, payload)

    def update_lineup_row(self, row_id: str, record: LineupItemRecord) -> None:
        self._update(self.LINEUP_ITEMS, row_id, record.payload())

    def delete_lineup_row(self, row_id: str, issue_id: str) -> None:
        logger.debug(f"Deleting lineup item {row_id} of issue {issue_id}")
        self._delete(self.LINEUP_ITEMS, row_id)

    def create_insert(self, issue_id: str, record: InsertRecord) -> str:
        payload = record.payload()
        payload["issue_id"] = issue_id
        return self._insert(self.INSERTS, payload)

    def update_insert(self, insert_id: str, record: InsertRecord) -> None:
        self._update(self.INSERTS, insert_id, record.payload())

    def delete_insert(self, insert_id: str, issue_id: str) -> None:
        logger.debug(f"Deleting insert {insert_id} of issue {issue_id}")
        self._delete(self.INSERTS, insert_id)

    def add_issue_editor(self, issue_id: str, editor_id: str) -> str:
        return self._insert(
            self.ISSUE_EDITORS, {"issue_id": issue_id, "editor_id": editor_id}
        )

    def remove_issue_editor(self, association_id: str, issue_id: str) -> None:
        logger.debug(f"Removing editor association {association_id} of issue {issue_id}")
        self._delete(self.ISSUE_EDITORS, association_id)
