"""Translate UI search input into CrossRef /works request parameters."""

from __future__ import annotations

import os

from models import SearchFilters

# CrossRef routes requests carrying a contact address to its "polite" pool.
CROSSREF_MAILTO = os.getenv("CROSSREF_MAILTO", "research-search@example.org")

# Only the fields the normalizer reads; keeps responses small.
SELECT_FIELDS: tuple[str, ...] = (
    "DOI",
    "title",
    "author",
    "abstract",
    "published-print",
    "published-online",
    "is-referenced-by-count",
    "container-title",
    "URL",
    "link",
    "subject",
)

# sort_by -> (sort, order). "relevance" is absent: CrossRef ranks by score by default.
_SORT_PARAMS: dict[str, tuple[str, str]] = {
    "newest": ("published", "desc"),
    "oldest": ("published", "asc"),
    "citations": ("is-referenced-by-count", "desc"),
}


def build_query_params(
    query: str,
    filters: SearchFilters,
    page: int,
    page_size: int,
) -> dict[str, str | int]:
    """Build the CrossRef request parameters for one page of results.

    Args:
        query: Free-text query, passed through as-is.
        filters: Year range and sort order. Year bounds may be open-ended.
        page: One-based page number. Values below 1 are treated as 1.
        page_size: Number of rows to request.
    """
    page = max(page, 1)
    params: dict[str, str | int] = {
        "query": query,
        "rows": page_size,
        "offset": (page - 1) * page_size,
        "mailto": CROSSREF_MAILTO,
        "select": ",".join(SELECT_FIELDS),
    }

    sort = _SORT_PARAMS.get(filters.sort_by)
    if sort is not None:
        params["sort"], params["order"] = sort

    year_filter = _year_filter(filters.year_from, filters.year_to)
    if year_filter:
        params["filter"] = year_filter

    return params


def _year_filter(year_from: int | None, year_to: int | None) -> str | None:
    if year_from is None and year_to is None:
        return None
    lower = "" if year_from is None else str(year_from)
    upper = "" if year_to is None else str(year_to)
    return f"from-pub-date:{lower}-{upper}"
