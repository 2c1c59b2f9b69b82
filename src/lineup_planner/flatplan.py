"""Flatplan export for an issue's lineup.

Renders the issue as printable spreads: page 1 (the cover) stands alone and
the remaining pages follow in pairs. Each page shows the row that claims it,
with the row's details on its first page only.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from schemas.issue import Issue
from schemas.lineup import LineupRow

from .filters import CONTENT_TYPE_LABELS, FILTERS
from .pages import spreads
from .store import AllocationStore

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"

# Spreads per printed A4 sheet
SPREADS_PER_SHEET = 8


@dataclass
class FlatplanPage:
    """One page of the flatplan and the row claiming it, if any."""

    number: int
    row: LineupRow | None = None

    @property
    def is_empty(self) -> bool:
        return self.row is None

    @property
    def starts_row(self) -> bool:
        return self.row is not None and self.number == min(self.row.pages)


@dataclass
class Spread:
    right: FlatplanPage
    left: FlatplanPage | None = None


def page_map(store: AllocationStore) -> dict[int, LineupRow]:
    """Map each claimed page number to the row claiming it."""
    return {page: row for row in store.rows for page in row.pages}


def build_spreads(store: AllocationStore) -> list[Spread]:
    owners = page_map(store)
    result = []
    for right, left in spreads(store.template_pages):
        result.append(
            Spread(
                right=FlatplanPage(right, owners.get(right)),
                left=FlatplanPage(left, owners.get(left)) if left is not None else None,
            )
        )
    return result


def paginate(items: list[Spread], per_sheet: int = SPREADS_PER_SHEET) -> list[list[Spread]]:
    if per_sheet < 1:
        raise ValueError("per_sheet must be positive")
    return [items[i : i + per_sheet] for i in range(0, len(items), per_sheet)]


class FlatplanRenderer:
    """Render an issue's lineup as a printable HTML flatplan.

    Attributes:
        template_name: Name of the Jinja2 template file
        spreads_per_sheet: Spreads laid out on each printed sheet
    """

    def __init__(
        self,
        template_name: str = "flatplan.html.j2",
        templates_dir: Path | None = None,
        spreads_per_sheet: int = SPREADS_PER_SHEET,
    ):
        self.template_name = template_name
        self.templates_dir = templates_dir or TEMPLATES_DIR
        self.spreads_per_sheet = spreads_per_sheet

        self._env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=True,
        )
        for name, func in FILTERS.items():
            self._env.filters[name] = func

    def render(self, issue: Issue, store: AllocationStore) -> str:
        if store.template_pages != issue.template_pages:
            raise ValueError(
                f"Store has {store.template_pages} pages, issue has {issue.template_pages}"
            )
        sheets = paginate(build_spreads(store), self.spreads_per_sheet)
        used_types = sorted({row.content_type for row in store.rows if row.content_type})
        template = self._env.get_template(self.template_name)
        return template.render(
            issue=issue,
            sheets=sheets,
            rows=store.rows,
            inserts=store.inserts,
            content_types=used_types or sorted(CONTENT_TYPE_LABELS),
            total_defined_pages=store.total_defined_pages,
            free_pages=len(store.free_pages),
        )

    def export(self, issue: Issue, store: AllocationStore, destination: Path) -> Path:
        """Write the rendered flatplan to an HTML file.

        Returns:
            The path written
        """
        html = self.render(issue, store)
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_text(html, encoding="utf-8")
        logger.info(f"Wrote flatplan for issue {issue.issue_number} to {destination}")
        return destination
