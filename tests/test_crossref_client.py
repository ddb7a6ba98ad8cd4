from unittest.mock import MagicMock, patch

import pytest
import requests

from crossref_client import CROSSREF_API_URL, _parse_works_payload, search_works
from errors import ApiError, ParseError, SearchTimeoutError

PARAMS = {"query": "graphs", "rows": 10, "offset": 0}


def _mock_resp(payload: object, status_code: int = 200) -> MagicMock:
    """Return a mock requests.Response for the given payload."""
    mock = MagicMock()
    mock.status_code = status_code
    mock.json.return_value = payload
    return mock


def test_search_works_returns_items_and_total() -> None:
    payload = {"status": "ok", "message": {"total-results": 42, "items": [{"DOI": "10.1/a"}]}}

    with patch("crossref_client.requests.get", return_value=_mock_resp(payload)) as mock_get:
        items, total = search_works(PARAMS, timeout=3)

    assert items == [{"DOI": "10.1/a"}]
    assert total == 42
    args, kwargs = mock_get.call_args
    assert args[0] == CROSSREF_API_URL
    assert kwargs["params"] == PARAMS
    assert kwargs["timeout"] == 3


def test_timeout_maps_to_search_timeout_error() -> None:
    with patch("crossref_client.requests.get", side_effect=requests.Timeout("slow")):
        with pytest.raises(SearchTimeoutError) as exc_info:
            search_works(PARAMS, timeout=10)

    assert isinstance(exc_info.value, TimeoutError)
    assert exc_info.value.timeout_seconds == 10


def test_http_error_maps_to_api_error_with_status() -> None:
    error_response = MagicMock(status_code=503, reason="Service Unavailable")
    resp = _mock_resp({})
    resp.raise_for_status.side_effect = requests.HTTPError("503", response=error_response)

    with patch("crossref_client.requests.get", return_value=resp):
        with pytest.raises(ApiError) as exc_info:
            search_works(PARAMS)

    assert exc_info.value.status_code == 503
    assert exc_info.value.reason == "Service Unavailable"


def test_connection_error_maps_to_api_error_without_status() -> None:
    with patch("crossref_client.requests.get", side_effect=requests.ConnectionError("dns")):
        with pytest.raises(ApiError) as exc_info:
            search_works(PARAMS)

    assert exc_info.value.status_code is None


def test_invalid_json_body_raises_parse_error() -> None:
    resp = _mock_resp(None)
    resp.json.side_effect = ValueError("Expecting value")

    with patch("crossref_client.requests.get", return_value=resp):
        with pytest.raises(ParseError):
            search_works(PARAMS)


@pytest.mark.parametrize("payload", [[], "text", {"status": "ok"}, {"message": {"items": "nope"}}])
def test_unexpected_payload_shapes_raise_parse_error(payload: object) -> None:
    with pytest.raises(ParseError):
        _parse_works_payload(payload)


def test_missing_total_falls_back_to_item_count() -> None:
    items, total = _parse_works_payload({"message": {"items": [{}, {}]}})
    assert len(items) == 2
    assert total == 2


def test_missing_items_is_an_empty_page() -> None:
    assert _parse_works_payload({"message": {"total-results": 0}}) == ([], 0)
