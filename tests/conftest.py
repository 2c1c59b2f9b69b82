"""Pytest fixtures for lineup-planner tests."""

from datetime import date
from itertools import count
from unittest.mock import MagicMock

import pytest

from lineup_planner.clients import LineupBackend
from lineup_planner.store import AllocationStore
from schemas.issue import Issue
from schemas.lineup import LineupRow
from schemas.records import InsertRecord, LineupItemRecord


@pytest.fixture
def issue():
    """A new (not yet created) 52-page issue."""
    return Issue(
        magazine_id="mag-1",
        issue_number=12,
        template_pages=52,
        theme="Summer",
        distribution_month=date(2026, 7, 1),
        design_start_date=date(2026, 5, 1),
        sketch_close_date=date(2026, 5, 20),
        print_date=date(2026, 6, 10),
    )


@pytest.fixture
def created_issue(issue):
    """The same issue after it exists on the backend."""
    return issue.model_copy(update={"id": "issue-1"})


@pytest.fixture
def store():
    """An empty 52-page allocation store."""
    return AllocationStore(52)


@pytest.fixture
def populated_store():
    """A 52-page store with three rows at 1-4, 5 and 6-10."""
    return AllocationStore(
        52,
        rows=[
            LineupRow(id="a", pages={1, 2, 3, 4}, content="Cover story", content_type="cover"),
            LineupRow(id="b", pages={5}, content="Editorial", content_type="editorial"),
            LineupRow(id="c", pages={6, 7, 8, 9, 10}, content="Interview", content_type="interview"),
        ],
    )


@pytest.fixture
def make_record():
    """Factory for baseline lineup records."""

    def _make(row_id, page_start, page_end=None, content="Item", **fields):
        return LineupItemRecord(
            id=row_id,
            issue_id=fields.pop("issue_id", "issue-1"),
            page_start=page_start,
            page_end=page_end if page_end is not None else page_start,
            content=content,
            **fields,
        )

    return _make


@pytest.fixture
def make_insert_record():
    """Factory for baseline insert records."""

    def _make(insert_id, content="Insert", **fields):
        return InsertRecord(
            id=insert_id,
            issue_id=fields.pop("issue_id", "issue-1"),
            content=content,
            **fields,
        )

    return _make


@pytest.fixture
def mock_backend():
    """A backend mock whose create calls hand out sequential server ids."""
    backend = MagicMock(spec=LineupBackend)
    ids = count(100)
    backend.create_issue.return_value = "issue-1"
    backend.create_lineup_row.side_effect = lambda issue_id, record: f"srv-{next(ids)}"
    backend.create_insert.side_effect = lambda issue_id, record: f"srv-ins-{next(ids)}"
    backend.add_issue_editor.side_effect = lambda issue_id, editor_id: f"assoc-{next(ids)}"
    return backend


@pytest.fixture
def sample_issue_row():
    """An issues row as returned by the REST API."""
    return {
        "id": "issue-1",
        "magazine_id": "mag-1",
        "issue_number": 12,
        "template_pages": 52,
        "theme": "Summer",
        "distribution_month": "2026-07-01",
        "design_start_date": "2026-05-01",
        "sketch_close_date": "2026-05-20",
        "print_date": "2026-06-10",
        "status": "draft",
        "created_at": "2026-04-01T09:00:00+00:00",
    }


@pytest.fixture
def sample_lineup_rows():
    """lineup_items rows as returned by the REST API, ordered by page_start."""
    return [
        {
            "id": "row-1",
            "issue_id": "issue-1",
            "page_start": 1,
            "page_end": 4,
            "content": "Cover story",
            "content_type": "cover",
            "supplier_id": "sup-1",
            "source": "",
            "notes": None,
            "responsible_editor_id": None,
            "text_ready": True,
            "files_ready": False,
            "is_designed": False,
        },
        {
            "id": "row-2",
            "issue_id": "issue-1",
            "page_start": 5,
            "page_end": 5,
            "content": "Editorial",
            "content_type": "editorial",
            "supplier_id": None,
            "source": None,
            "notes": "Short",
            "responsible_editor_id": "ed-1",
            "text_ready": False,
            "files_ready": False,
            "is_designed": False,
        },
    ]
