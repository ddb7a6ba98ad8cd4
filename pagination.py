"""Page arithmetic and prev/next transitions over a result set."""

from __future__ import annotations

import math

FIRST_PAGE = 1


def compute_total_pages(total_results: int, page_size: int) -> int:
    """Number of pages needed to show ``total_results`` at ``page_size`` per page."""
    if total_results <= 0 or page_size <= 0:
        return 0
    return math.ceil(total_results / page_size)


def clamp_page(page: int, total_pages: int) -> int:
    """Clamp into [1, max(1, total_pages)]."""
    return min(max(page, FIRST_PAGE), max(FIRST_PAGE, total_pages))


def can_go_previous(current_page: int) -> bool:
    return current_page > FIRST_PAGE


def can_go_next(current_page: int, total_pages: int) -> bool:
    return current_page < total_pages


def previous_page(current_page: int, total_pages: int) -> int:
    """Page before ``current_page``; unchanged when already on the first page."""
    if can_go_previous(current_page):
        return clamp_page(current_page - 1, total_pages)
    return current_page


def next_page(current_page: int, total_pages: int) -> int:
    """Page after ``current_page``; unchanged when already on the last page."""
    if can_go_next(current_page, total_pages):
        return current_page + 1
    return current_page


def page_window(current_page: int, page_size: int, total_results: int) -> tuple[int, int]:
    """One-based inclusive (start, end) positions shown on ``current_page``.

    Returns (0, 0) when there is nothing to show.
    """
    if total_results <= 0 or page_size <= 0:
        return 0, 0
    start = (current_page - 1) * page_size + 1
    if start > total_results:
        return 0, 0
    end = min(start + page_size - 1, total_results)
    return start, end
