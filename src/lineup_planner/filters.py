"""Jinja2 filters for flatplan rendering.

These filters are used in flatplan.html.j2 to format lineup rows.
"""

import re
from collections.abc import Iterable
from datetime import date

from .pages import format_range

CONTENT_TYPE_LABELS = {
    "cover": "Cover",
    "editorial": "Editorial",
    "article": "Article",
    "feature": "Feature",
    "interview": "Interview",
    "column": "Column",
    "news": "News",
    "photo_story": "Photo story",
    "advertisement": "Advertisement",
    "advertorial": "Advertorial",
}

UNASSIGNED_LABEL = "Unassigned"


def page_range(pages: Iterable[int]) -> str:
    """Format a row's pages for display.

    Examples:
        >>> page_range({3, 4, 5, 9})
        '3-5, 9'
    """
    return format_range(pages)


def content_type_label(content_type: str | None) -> str:
    """Human-readable label for a content type.

    Unknown types are shown with underscores replaced and the first letter
    capitalized.

    Examples:
        >>> content_type_label("photo_story")
        'Photo story'
        >>> content_type_label("recipe_card")
        'Recipe card'
    """
    if not content_type:
        return UNASSIGNED_LABEL
    if content_type in CONTENT_TYPE_LABELS:
        return CONTENT_TYPE_LABELS[content_type]
    return content_type.replace("_", " ").strip().capitalize()


def content_type_class(content_type: str | None) -> str:
    """CSS class name for a content type.

    Examples:
        >>> content_type_class("Photo Story")
        'type-photo-story'
    """
    if not content_type:
        return "type-none"
    slug = re.sub(r"[^a-z0-9]+", "-", content_type.lower()).strip("-")
    return f"type-{slug or 'none'}"


def format_date(value: date | None) -> str:
    """Format a schedule date like "January 29, 2026"."""
    if value is None:
        return ""
    return value.strftime("%B %d, %Y").replace(" 0", " ")


FILTERS = {
    "page_range": page_range,
    "content_type_label": content_type_label,
    "content_type_class": content_type_class,
    "format_date": format_date,
}
