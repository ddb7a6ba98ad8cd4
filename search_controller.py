"""Search session lifecycle: validate, fetch, normalize, paginate, notify."""

from __future__ import annotations

import dataclasses
import itertools
import logging
import threading
from typing import Any, Callable

import pagination
from crossref_client import REQUEST_TIMEOUT_SECONDS, search_works
from errors import ApiError, ParseError, SearchError, SearchTimeoutError, ValidationError
from history import SearchHistoryLog
from models import SORT_OPTIONS, SearchFilters, SearchOutcome, SearchSession, UserMessage
from normalizer import normalize_items
from query_builder import build_query_params

FetchFn = Callable[[dict[str, str | int], float], tuple[list[Any], int]]
UpdateFn = Callable[[SearchOutcome], None]

EMPTY_QUERY_TEXT = "Please enter a search term."
TIMEOUT_TEXT = "The search timed out. Please try again."
UNREACHABLE_TEXT = "Could not reach CrossRef. Check your connection and try again."
UNREADABLE_TEXT = "Search failed: CrossRef sent a response that could not be read."

LOGGER = logging.getLogger(__name__)


class SearchController:
    """Owns the current SearchSession and every transition of it.

    The session is an immutable value replaced wholesale after each fetch.
    Each fetch takes a ticket; a response whose ticket has been superseded by
    a newer request is discarded, so a slow earlier request can never
    overwrite the results of a later one. Commits and their on_update
    callbacks run one at a time, in commit order, so the presentation layer
    never renders a session older than the one it last saw.

    Args:
        history: Log that receives every validated query. Optional.
        fetch: Callable issuing the HTTP request; ``search_works`` by default.
        timeout: Per-request timeout in seconds.
        on_update: Called with every applied outcome (not with stale or
            no-op ones) so the presentation layer can re-render.
        filters: Initial filters for the empty session.
    """

    def __init__(
        self,
        history: SearchHistoryLog | None = None,
        fetch: FetchFn = search_works,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        on_update: UpdateFn | None = None,
        filters: SearchFilters | None = None,
    ) -> None:
        self.history = history
        self.fetch = fetch
        self.timeout = timeout
        self.on_update = on_update
        self._session = SearchSession.empty(filters)
        self._lock = threading.Lock()
        self._notify_lock = threading.RLock()
        self._tickets = itertools.count(1)
        self._latest_ticket = 0
        self._last_attempt: tuple[str, SearchFilters, int] | None = None

    @property
    def session(self) -> SearchSession:
        with self._lock:
            return self._session

    def execute_search(self, query: str, filters: SearchFilters | None = None) -> SearchOutcome:
        """Start a new search from page 1.

        An empty query or invalid filters produce a validation message and
        leave the session untouched; no request is made.
        """
        query = query.strip() if isinstance(query, str) else ""
        if filters is None:
            filters = self.session.filters

        try:
            _validate(query, filters)
        except ValidationError as exc:
            LOGGER.info("Search rejected: %s", exc)
            return self._notify(SearchOutcome(session=self.session, message=UserMessage("validation", str(exc))))

        if self.history is not None:
            self.history.record(query)
        return self._fetch(query, filters, pagination.FIRST_PAGE)

    def execute_search_with_current_params(self, page: int | None = None) -> SearchOutcome:
        """Repeat the active query and filters at ``page`` (default: current page)."""
        session = self.session
        if not session.is_active:
            return SearchOutcome(session=session)
        return self._fetch(session.query, session.filters, session.current_page if page is None else page)

    def previous_page(self) -> SearchOutcome:
        session = self.session
        target = pagination.previous_page(session.current_page, session.total_pages)
        if target == session.current_page:
            return SearchOutcome(session=session)
        return self.execute_search_with_current_params(page=target)

    def next_page(self) -> SearchOutcome:
        session = self.session
        target = pagination.next_page(session.current_page, session.total_pages)
        if target == session.current_page:
            return SearchOutcome(session=session)
        return self.execute_search_with_current_params(page=target)

    def change_page_size(self, results_per_page: int) -> SearchOutcome:
        """Switch page size and go back to page 1, re-fetching only for an active query."""
        session = self.session
        filters = dataclasses.replace(session.filters, results_per_page=results_per_page)
        try:
            _validate_filters(filters)
        except ValidationError as exc:
            return self._notify(SearchOutcome(session=session, message=UserMessage("validation", str(exc))))

        if session.is_active:
            return self._fetch(session.query, filters, pagination.FIRST_PAGE)
        return self._replace_idle_filters(filters)

    def remove_year_filter(self) -> SearchOutcome:
        filters = dataclasses.replace(self.session.filters, year_from=None, year_to=None)
        return self._rerun_with(filters)

    def remove_sort_filter(self) -> SearchOutcome:
        filters = dataclasses.replace(self.session.filters, sort_by="relevance")
        return self._rerun_with(filters)

    def retry(self) -> SearchOutcome:
        """Re-issue the most recently attempted request, e.g. after a failed page change."""
        with self._lock:
            attempt = self._last_attempt
        if attempt is None:
            return SearchOutcome(session=self.session)
        return self._fetch(*attempt)

    def _rerun_with(self, filters: SearchFilters) -> SearchOutcome:
        session = self.session
        if session.is_active:
            return self.execute_search(session.query, filters)
        return self._replace_idle_filters(filters)

    def _replace_idle_filters(self, filters: SearchFilters) -> SearchOutcome:
        with self._notify_lock:
            with self._lock:
                self._session = dataclasses.replace(
                    self._session, filters=filters, current_page=pagination.FIRST_PAGE
                )
                outcome = SearchOutcome(session=self._session)
            return self._notify(outcome)

    def _fetch(self, query: str, filters: SearchFilters, page: int) -> SearchOutcome:
        with self._lock:
            ticket = next(self._tickets)
            self._latest_ticket = ticket
            self._last_attempt = (query, filters, page)

        page_size = filters.results_per_page
        params = build_query_params(query, filters, page, page_size)

        try:
            items, total = self.fetch(params, self.timeout)
        except SearchError as exc:
            LOGGER.warning("Search failed: query=%r page=%s error=%s", query, page, exc)
            failed = SearchSession(query=query, filters=filters)
            return self._commit(ticket, SearchOutcome(session=failed, message=_message_for(exc)))

        total_pages = pagination.compute_total_pages(total, page_size)
        session = SearchSession(
            query=query,
            filters=filters,
            current_page=pagination.clamp_page(page, total_pages),
            total_results=total,
            total_pages=total_pages,
            results=tuple(normalize_items(items, offset=int(params["offset"]))),
        )
        LOGGER.info(
            "Search complete: query=%r page=%s/%s total_results=%s",
            query,
            session.current_page,
            total_pages,
            total,
        )
        return self._commit(ticket, SearchOutcome(session=session, fetched=True))

    def _commit(self, ticket: int, outcome: SearchOutcome) -> SearchOutcome:
        # _notify_lock spans the swap and the callback; _lock alone is never
        # held while user code runs, so new tickets can still be issued.
        with self._notify_lock:
            with self._lock:
                if ticket != self._latest_ticket:
                    LOGGER.info(
                        "Discarding stale response: ticket=%s latest=%s", ticket, self._latest_ticket
                    )
                    return SearchOutcome(session=self._session, stale=True)
                self._session = outcome.session
            return self._notify(outcome)

    def _notify(self, outcome: SearchOutcome) -> SearchOutcome:
        with self._notify_lock:
            if self.on_update is not None:
                self.on_update(outcome)
        return outcome


def _validate(query: str, filters: SearchFilters) -> None:
    if not query:
        raise ValidationError(EMPTY_QUERY_TEXT)
    _validate_filters(filters)


def _validate_filters(filters: SearchFilters) -> None:
    if filters.sort_by not in SORT_OPTIONS:
        raise ValidationError(f"Unknown sort order: {filters.sort_by}.")
    rows = filters.results_per_page
    if isinstance(rows, bool) or not isinstance(rows, int) or rows <= 0:
        raise ValidationError("Results per page must be a positive number.")
    if (
        filters.year_from is not None
        and filters.year_to is not None
        and filters.year_from > filters.year_to
    ):
        raise ValidationError("The start year must not be later than the end year.")


def _message_for(exc: SearchError) -> UserMessage:
    """Convert a fetch-path error into a user-facing message without raw detail."""
    if isinstance(exc, SearchTimeoutError):
        return UserMessage("timeout", TIMEOUT_TEXT)
    if isinstance(exc, ParseError):
        return UserMessage("api", UNREADABLE_TEXT)
    if isinstance(exc, ApiError) and exc.status_code is not None:
        return UserMessage(
            "api",
            f"Search failed: CrossRef returned {exc.status_code} {exc.reason}. Please try again later.",
        )
    return UserMessage("api", UNREACHABLE_TEXT)
