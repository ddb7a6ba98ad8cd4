"""Shared typed models for the search front end."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

SortBy = Literal["relevance", "newest", "oldest", "citations"]
MessageCategory = Literal["validation", "timeout", "api"]

SORT_OPTIONS: tuple[str, ...] = ("relevance", "newest", "oldest", "citations")
NO_DOI = "No DOI available"


@dataclass(frozen=True, slots=True)
class SearchFilters:
    """User-selected narrowing and ordering for one search."""

    year_from: int | None = None
    year_to: int | None = None
    sort_by: SortBy = "relevance"
    results_per_page: int = 10


@dataclass(frozen=True, slots=True)
class PaperRecord:
    """Normalized paper record consumed by rendering."""

    id: str
    title: str
    authors: str
    abstract: str
    year: int | str
    citation_count: int
    journal: str
    doi: str
    url: str
    pdf_url: str
    subjects: tuple[str, ...] = ()

    @property
    def has_doi(self) -> bool:
        return self.doi != NO_DOI


@dataclass(frozen=True, slots=True)
class SearchSession:
    """One page of results for one query. Replaced wholesale, never mutated."""

    query: str
    filters: SearchFilters
    current_page: int = 1
    total_results: int = 0
    total_pages: int = 0
    results: tuple[PaperRecord, ...] = ()

    @classmethod
    def empty(cls, filters: SearchFilters | None = None) -> SearchSession:
        return cls(query="", filters=filters or SearchFilters())

    @property
    def is_active(self) -> bool:
        return bool(self.query)


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    query: str
    timestamp: str


@dataclass(frozen=True, slots=True)
class UserMessage:
    """User-facing notice; the only error shape that reaches presentation."""

    category: MessageCategory
    text: str


@dataclass(frozen=True, slots=True)
class SearchOutcome:
    """Result of one controller operation.

    fetched is True when a request was made and its response applied.
    stale is True when the response arrived after a newer request was issued
    and was therefore discarded.
    """

    session: SearchSession
    message: UserMessage | None = None
    fetched: bool = False
    stale: bool = False
