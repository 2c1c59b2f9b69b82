"""Tests for the LineupClient class."""

from unittest.mock import MagicMock

import pytest

from lineup_planner.clients import LineupClient, NotFoundError, ValidationError
from schemas.records import InsertRecord, LineupItemRecord


def make_response(payload):
    """Create a mock successful REST response."""
    response = MagicMock()
    response.is_success = True
    response.json.return_value = payload
    return response


@pytest.fixture
def client_config():
    """Configuration for LineupClient."""
    return {"base_url": "https://project.example.co", "api_key": "anon-key"}


@pytest.fixture
def client(client_config):
    client = LineupClient(client_config)
    client._client = MagicMock()
    return client


def request_args(client, index=0):
    """(method, path, kwargs) of a recorded request."""
    recorded = client._client.request.call_args_list[index]
    return recorded.args[0], recorded.args[1], recorded.kwargs


class TestLineupClientConfig:
    """Tests for LineupClient headers."""

    def test_api_key_headers(self, client_config):
        client = LineupClient(client_config)

        assert client.headers["apikey"] == "anon-key"
        assert client.headers["Authorization"] == "Bearer anon-key"

    def test_explicit_headers_win(self, client_config):
        client_config["headers"] = {"Authorization": "Bearer user-token"}
        client = LineupClient(client_config)

        assert client.headers["Authorization"] == "Bearer user-token"
        assert client.headers["apikey"] == "anon-key"

    def test_no_api_key(self):
        client = LineupClient({"base_url": "https://project.example.co"})

        assert "apikey" not in client.headers


class TestLineupClientFetch:
    """Tests for reading issues and lineups."""

    def test_fetch_issue(self, client, sample_issue_row):
        client._client.request.return_value = make_response([sample_issue_row])

        issue = client.fetch_issue("issue-1")

        method, path, kwargs = request_args(client)
        assert (method, path) == ("GET", "/rest/v1/issues")
        assert kwargs["params"] == {"select": "*", "id": "eq.issue-1"}
        assert issue.id == "issue-1"
        assert issue.template_pages == 52

    def test_fetch_missing_issue(self, client):
        client._client.request.return_value = make_response([])

        with pytest.raises(NotFoundError, match="Issue not found: issue-9"):
            client.fetch_issue("issue-9")

    def test_fetch_lineup_ordered_by_first_page(self, client, sample_lineup_rows):
        client._client.request.return_value = make_response(sample_lineup_rows)

        records = client.fetch_lineup("issue-1")

        _, path, kwargs = request_args(client)
        assert path == "/rest/v1/lineup_items"
        assert kwargs["params"]["order"] == "page_start"
        assert kwargs["params"]["issue_id"] == "eq.issue-1"
        assert [r.id for r in records] == ["row-1", "row-2"]
        assert isinstance(records[0], LineupItemRecord)

    def test_invalid_row_raises_validation_error(self, client, sample_lineup_rows):
        sample_lineup_rows[1]["page_end"] = 2
        client._client.request.return_value = make_response(sample_lineup_rows)

        with pytest.raises(ValidationError, match="LineupItemRecord row-2 failed validation") as exc_info:
            client.fetch_lineup("issue-1")

        assert exc_info.value.errors

    def test_fetch_snapshot(self, client, sample_issue_row, sample_lineup_rows):
        client._client.request.side_effect = [
            make_response([sample_issue_row]),
            make_response(sample_lineup_rows),
            make_response([{"id": "ins-1", "issue_id": "issue-1", "content": "Poster"}]),
            make_response([{"id": "assoc-1", "issue_id": "issue-1", "editor_id": "ed-1"}]),
        ]

        snapshot = client.fetch("issue-1")

        paths = [c.args[1] for c in client._client.request.call_args_list]
        assert paths == [
            "/rest/v1/issues",
            "/rest/v1/lineup_items",
            "/rest/v1/inserts",
            "/rest/v1/issue_editors",
        ]
        assert snapshot.issue.theme == "Summer"
        assert len(snapshot.lineup) == 2
        assert snapshot.inserts[0].content == "Poster"
        assert snapshot.editors[0].editor_id == "ed-1"


class TestLineupClientWrites:
    """Tests for creating, updating and deleting rows."""

    def test_create_issue_returns_id(self, client):
        client._client.request.return_value = make_response([{"id": "issue-7"}])

        issue_id = client.create_issue({"template_pages": 52, "status": "draft"})

        method, path, kwargs = request_args(client)
        assert (method, path) == ("POST", "/rest/v1/issues")
        assert kwargs["headers"] == {"Prefer": "return=representation"}
        assert kwargs["json"] == {"template_pages": 52, "status": "draft"}
        assert issue_id == "issue-7"

    def test_numeric_ids_become_strings(self, client):
        client._client.request.return_value = make_response([{"id": 42}])

        assert client.create_issue({}) == "42"

    def test_create_without_returned_id(self, client):
        client._client.request.return_value = make_response([])

        with pytest.raises(ValidationError, match="returned no id"):
            client.create_issue({})

    def test_create_lineup_row(self, client):
        client._client.request.return_value = make_response([{"id": "row-9"}])
        record = LineupItemRecord(page_start=6, page_end=10, content="Interview")

        row_id = client.create_lineup_row("issue-1", record)

        _, path, kwargs = request_args(client)
        assert path == "/rest/v1/lineup_items"
        assert kwargs["json"]["issue_id"] == "issue-1"
        assert kwargs["json"]["page_start"] == 6
        assert kwargs["json"]["page_end"] == 10
        assert "id" not in kwargs["json"]
        assert row_id == "row-9"

    def test_update_lineup_row(self, client):
        client._client.request.return_value = make_response([])
        record = LineupItemRecord(issue_id="issue-1", page_start=1, page_end=4, content="Cover")

        client.update_lineup_row("row-1", record)

        method, path, kwargs = request_args(client)
        assert (method, path) == ("PATCH", "/rest/v1/lineup_items")
        assert kwargs["params"] == {"id": "eq.row-1"}
        assert "issue_id" not in kwargs["json"]
        assert kwargs["json"]["content"] == "Cover"

    def test_delete_lineup_row(self, client):
        client._client.request.return_value = make_response([])

        client.delete_lineup_row("row-1", "issue-1")

        method, path, kwargs = request_args(client)
        assert (method, path) == ("DELETE", "/rest/v1/lineup_items")
        assert kwargs["params"] == {"id": "eq.row-1"}

    def test_update_issue(self, client):
        client._client.request.return_value = make_response([])

        client.update_issue("issue-1", {"status": "in_progress"})

        method, path, kwargs = request_args(client)
        assert (method, path) == ("PATCH", "/rest/v1/issues")
        assert kwargs["json"] == {"status": "in_progress"}

    def test_insert_calls(self, client):
        client._client.request.return_value = make_response([{"id": "ins-3"}])

        assert client.create_insert("issue-1", InsertRecord(content="Poster")) == "ins-3"
        client.update_insert("ins-3", InsertRecord(content="Poster A2"))
        client.delete_insert("ins-3", "issue-1")

        calls = [(c.args[0], c.args[1]) for c in client._client.request.call_args_list]
        assert calls == [
            ("POST", "/rest/v1/inserts"),
            ("PATCH", "/rest/v1/inserts"),
            ("DELETE", "/rest/v1/inserts"),
        ]

    def test_editor_associations(self, client):
        client._client.request.return_value = make_response([{"id": "assoc-5"}])

        association_id = client.add_issue_editor("issue-1", "ed-2")
        client.remove_issue_editor(association_id, "issue-1")

        _, path, kwargs = request_args(client, 0)
        assert path == "/rest/v1/issue_editors"
        assert kwargs["json"] == {"issue_id": "issue-1", "editor_id": "ed-2"}
        method, _, kwargs = request_args(client, 1)
        assert method == "DELETE"
        assert kwargs["params"] == {"id": "eq.assoc-5"}
