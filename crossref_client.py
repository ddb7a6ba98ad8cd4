"""CrossRef works API client."""

from __future__ import annotations

import logging
import os
from typing import Any

import requests

from errors import ApiError, ParseError, SearchTimeoutError

CROSSREF_API_URL = os.getenv("CROSSREF_API_URL", "https://api.crossref.org/works")
REQUEST_TIMEOUT_SECONDS = float(os.getenv("CROSSREF_TIMEOUT_SECONDS", "10"))
USER_AGENT = "research-search/1.0 (+https://api.crossref.org)"

LOGGER = logging.getLogger(__name__)


def search_works(
    params: dict[str, str | int],
    timeout: float = REQUEST_TIMEOUT_SECONDS,
) -> tuple[list[Any], int]:
    """Issue one GET against the works endpoint.

    Returns the raw ``message.items`` list and ``message.total-results``.

    Raises:
        SearchTimeoutError: the request did not complete within ``timeout``.
        ApiError: non-2xx status, or the server could not be reached.
        ParseError: the body is not JSON or lacks the ``message`` block.
    """
    LOGGER.info(
        "CrossRef fetch: query=%r rows=%s offset=%s sort=%s filter=%s",
        params.get("query"),
        params.get("rows"),
        params.get("offset"),
        params.get("sort"),
        params.get("filter"),
    )

    try:
        response = requests.get(
            CROSSREF_API_URL,
            params=params,
            headers={"User-Agent": USER_AGENT},
            timeout=timeout,
        )
        response.raise_for_status()
    except requests.Timeout as exc:
        LOGGER.warning("CrossRef fetch: timed out after %ss", timeout)
        raise SearchTimeoutError(timeout) from exc
    except requests.HTTPError as exc:
        status = exc.response.status_code if exc.response is not None else None
        reason = (exc.response.reason if exc.response is not None else None) or "HTTP error"
        LOGGER.warning("CrossRef fetch: status=%s reason=%s", status, reason)
        raise ApiError(status, reason) from exc
    except requests.RequestException as exc:
        LOGGER.warning("CrossRef fetch: request failed: %s", exc)
        raise ApiError(None, "Could not reach CrossRef") from exc

    try:
        payload = response.json()
    except ValueError as exc:
        raise ParseError("Response body is not valid JSON", response.status_code) from exc

    items, total = _parse_works_payload(payload)
    LOGGER.info("CrossRef fetch: total_results=%s returned=%s", total, len(items))
    return items, total


def _parse_works_payload(payload: Any) -> tuple[list[Any], int]:
    """Pull items and the reported total out of a works response."""
    if not isinstance(payload, dict) or not isinstance(payload.get("message"), dict):
        raise ParseError("Unexpected CrossRef payload shape: expected a 'message' object")

    message = payload["message"]
    items = message.get("items")
    if items is None:
        items = []
    if not isinstance(items, list):
        raise ParseError("Unexpected CrossRef payload shape: 'items' is not a list")

    total = message.get("total-results")
    if isinstance(total, bool) or not isinstance(total, int) or total < 0:
        LOGGER.warning("CrossRef fetch: missing total-results, using item count")
        total = len(items)

    return items, total
