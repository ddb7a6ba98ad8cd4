"""Plain-text rendering of search sessions, papers and history."""

from __future__ import annotations

from models import HistoryEntry, PaperRecord, SearchFilters, SearchSession
from pagination import page_window

EMPTY_STATE_TEXT = "No Results Found. Try different keywords or adjust your filters."
ABSTRACT_PREVIEW_CHARS = 300


def results_summary(session: SearchSession) -> str:
    """e.g. 'Showing 11-20 of 42 papers'."""
    start, end = page_window(
        session.current_page, session.filters.results_per_page, session.total_results
    )
    if not start:
        return f"Showing 0 of {session.total_results} papers"
    return f"Showing {start}-{end} of {session.total_results} papers"


def page_label(session: SearchSession) -> str:
    return f"Page {session.current_page} of {max(session.total_pages, 1)}"


def filter_tags(filters: SearchFilters) -> list[str]:
    """Human-readable tags for the filters that narrow or reorder results."""
    tags: list[str] = []
    if filters.year_from is not None or filters.year_to is not None:
        lower = filters.year_from if filters.year_from is not None else "Any"
        upper = filters.year_to if filters.year_to is not None else "Any"
        tags.append(f"Years: {lower} - {upper}")
    if filters.sort_by != "relevance":
        tags.append(f"Sorted by: {filters.sort_by}")
    return tags


def format_result_line(position: int, paper: PaperRecord) -> str:
    """Compact multi-line card for one result."""
    return (
        f"{position}. {paper.title}\n"
        f"   {paper.authors}\n"
        f"   {paper.year} | {paper.citation_count} citations | {paper.journal}\n"
        f"   {_truncate(paper.abstract, ABSTRACT_PREVIEW_CHARS)}"
    )


def format_paper_details(paper: PaperRecord) -> str:
    lines = [
        f"Title: {paper.title}",
        f"Authors: {paper.authors}",
        f"Abstract: {paper.abstract}",
        f"Year: {paper.year}",
        f"Citations: {paper.citation_count}",
        f"Journal: {paper.journal}",
        f"DOI: {paper.doi}",
    ]
    if paper.url:
        lines.append(f"Source page: {paper.url}")
    if paper.pdf_url:
        lines.append(f"PDF: {paper.pdf_url}")
    if paper.subjects:
        lines.append(f"Subjects: {', '.join(paper.subjects)}")
    return "\n".join(lines)


def format_session(session: SearchSession) -> str:
    """Header, filter tags, result cards and page label for one session."""
    lines = [f'Search Results for "{session.query}"', results_summary(session)]
    tags = filter_tags(session.filters)
    if tags:
        lines.append("Filters: " + "; ".join(tags))
    if not session.results:
        lines.append(EMPTY_STATE_TEXT)
        return "\n".join(lines)

    first_position = (session.current_page - 1) * session.filters.results_per_page + 1
    for offset, paper in enumerate(session.results):
        lines.append(format_result_line(first_position + offset, paper))
    lines.append(page_label(session))
    return "\n".join(lines)


def format_history(entries: tuple[HistoryEntry, ...] | list[HistoryEntry]) -> str:
    if not entries:
        return "No searches yet."
    return "\n".join(f"{entry.timestamp}  {entry.query}" for entry in entries)


def _truncate(text: str, max_len: int) -> str:
    if len(text) > max_len:
        return text[: max_len - 1] + "…"
    return text
