"""Error taxonomy for the search pipeline."""

from __future__ import annotations


class SearchError(Exception):
    """Base class for every error the search pipeline raises."""


class ValidationError(SearchError):
    """User input cannot be searched (empty query, inverted year range, ...)."""


class SearchTimeoutError(SearchError, TimeoutError):
    """The CrossRef request exceeded the configured timeout."""

    def __init__(self, timeout_seconds: float) -> None:
        super().__init__(f"CrossRef request timed out after {timeout_seconds:g}s")
        self.timeout_seconds = timeout_seconds


class ApiError(SearchError):
    """CrossRef answered with a non-success status or could not be reached.

    status_code is None when no HTTP response was received at all.
    """

    def __init__(self, status_code: int | None, reason: str) -> None:
        detail = f"{status_code} {reason}" if status_code is not None else reason
        super().__init__(f"CrossRef API error: {detail}")
        self.status_code = status_code
        self.reason = reason


class ParseError(ApiError):
    """The response body was not the JSON shape CrossRef documents."""

    def __init__(self, reason: str, status_code: int | None = None) -> None:
        super().__init__(status_code, reason)


class StorageError(SearchError):
    """Reading or writing persisted search history failed."""
