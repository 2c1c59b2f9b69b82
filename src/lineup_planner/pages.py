"""Page-set helpers.

Pure functions over sets of page numbers: range formatting and parsing,
contiguity checks, occupancy tests and flatplan spreads.
"""

from collections.abc import Iterable

from schemas.lineup import LineupRow

from .errors import DiscontiguousPagesError

EMPTY_RANGE = "—"


def runs(pages: Iterable[int]) -> list[tuple[int, int]]:
    """Collapse page numbers into maximal consecutive runs.

    Examples:
        >>> runs({9, 3, 4, 5})
        [(3, 5), (9, 9)]
    """
    result: list[tuple[int, int]] = []
    for page in sorted(set(pages)):
        if result and page == result[-1][1] + 1:
            result[-1] = (result[-1][0], page)
        else:
            result.append((page, page))
    return result


def format_range(pages: Iterable[int]) -> str:
    """Format page numbers as a compact range string.

    Args:
        pages: Page numbers in any order

    Returns:
        Comma-separated runs such as "3-5, 9", or EMPTY_RANGE for no pages

    Examples:
        >>> format_range({3, 4, 5, 9})
        '3-5, 9'
        >>> format_range({7})
        '7'
    """
    tokens = [
        str(start) if start == end else f"{start}-{end}"
        for start, end in runs(pages)
    ]
    if not tokens:
        return EMPTY_RANGE
    return ", ".join(tokens)


def parse_range(text: str) -> set[int]:
    """Parse a range string produced by format_range.

    Raises:
        ValueError: If a token is not a page number or an ascending range
    """
    text = text.strip()
    if not text or text == EMPTY_RANGE:
        return set()

    pages: set[int] = set()
    for token in text.split(","):
        token = token.strip()
        if "-" in token:
            start_str, end_str = token.split("-", 1)
            start, end = int(start_str), int(end_str)
            if end < start:
                raise ValueError(f"Descending page range: {token}")
            pages.update(range(start, end + 1))
        else:
            pages.add(int(token))
    return pages


def is_contiguous(pages: Iterable[int]) -> bool:
    """True for an empty set or a single unbroken run."""
    return len(runs(pages)) <= 1


def to_span(pages: Iterable[int]) -> tuple[int, int]:
    """Convert a contiguous page set to an inclusive (start, end) pair.

    Raises:
        DiscontiguousPagesError: If the set is empty or has gaps
    """
    pages = set(pages)
    page_runs = runs(pages)
    if not page_runs:
        raise DiscontiguousPagesError("No pages selected")
    if len(page_runs) > 1:
        raise DiscontiguousPagesError(
            f"Pages {format_range(pages)} are not one continuous range",
            pages=set(pages),
        )
    return page_runs[0]


def expand_span(start: int, end: int) -> set[int]:
    """All pages of an inclusive (start, end) pair."""
    return set(range(start, end + 1))


def all_pages(template_pages: int) -> range:
    return range(1, template_pages + 1)


def free_pages(template_pages: int, occupied: Iterable[int]) -> list[int]:
    """Pages of the template not in the occupied set."""
    taken = set(occupied)
    return [p for p in all_pages(template_pages) if p not in taken]


def is_occupied(
    page: int, rows: Iterable[LineupRow], excluding_row_id: str | None = None
) -> bool:
    """True if a row other than excluding_row_id claims the page."""
    return any(
        page in row.pages for row in rows if row.id != excluding_row_id
    )


def spreads(template_pages: int) -> list[tuple[int, int | None]]:
    """Lay the template out as flatplan spreads.

    The cover (page 1) stands alone; the rest pair up as (2, 3), (4, 5), ...
    and a trailing odd page stands alone.

    Examples:
        >>> spreads(5)
        [(1, None), (2, 3), (4, 5)]
    """
    if template_pages < 1:
        return []
    result: list[tuple[int, int | None]] = [(1, None)]
    for first in range(2, template_pages + 1, 2):
        second = first + 1 if first + 1 <= template_pages else None
        result.append((first, second))
    return result
