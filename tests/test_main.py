from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

import main
from errors import ApiError, SearchTimeoutError
from history import JsonFileStore, SearchHistoryLog
from search_controller import SearchController


def _items(count: int) -> list[dict[str, Any]]:
    return [{"DOI": f"10.1000/{i}", "title": [f"Paper {i}"]} for i in range(count)]


def test_parse_args_defaults() -> None:
    args = main.parse_args(["graph theory"])
    assert args.query == "graph theory"
    assert args.sort == "relevance"
    assert args.page == 1
    assert args.interactive is False


def test_parse_args_rejects_unknown_sort() -> None:
    with pytest.raises(SystemExit):
        main.parse_args(["q", "--sort", "popularity"])


def test_interactive_session_pages_and_shows_details(tmp_path: Path) -> None:
    output: list[str] = []
    calls: list[dict[str, Any]] = []

    def fetch(params: dict[str, Any], timeout: float) -> tuple[list[Any], int]:
        calls.append(params)
        return _items(10), 15

    history = SearchHistoryLog(JsonFileStore(tmp_path / "history.json"))
    controller = SearchController(
        history=history,
        fetch=fetch,
        on_update=lambda outcome: main.render_outcome(outcome, output.append),
    )
    commands = iter(["s graphs", "n", "n", "p", "d 2", "d 99", "h", "q"])

    main.run_interactive(controller, history, read=lambda _: next(commands), echo=output.append)

    assert [c["offset"] for c in calls] == [0, 10, 0]
    assert "Already on the last page." in output
    assert any(line.startswith("Title: Paper 1") for line in output)
    assert "No result number 99 on this page." in output
    assert any(line.endswith("graphs") for line in output)


def test_interactive_blank_search_prints_validation(tmp_path: Path) -> None:
    output: list[str] = []
    history = SearchHistoryLog(JsonFileStore(tmp_path / "history.json"))
    controller = SearchController(
        history=history,
        fetch=lambda p, t: ([], 0),
        on_update=lambda outcome: main.render_outcome(outcome, output.append),
    )

    def read(_: str) -> str:
        if output and output[-1].startswith("[validation]"):
            raise EOFError
        return "s"

    main.run_interactive(controller, history, read=read, echo=output.append)

    assert output[-1] == "[validation] Please enter a search term."


class PagedFetch:
    """Serves one response (or error) per offset and records offsets requested."""

    def __init__(self, pages: dict[int, tuple[list[Any], int] | Exception]) -> None:
        self.pages = pages
        self.offsets: list[int] = []

    def __call__(self, params: dict[str, Any], timeout: float) -> tuple[list[Any], int]:
        self.offsets.append(params["offset"])
        response = self.pages[params["offset"]]
        if isinstance(response, Exception):
            raise response
        return response


def _titled(prefix: str, count: int) -> list[dict[str, Any]]:
    return [{"DOI": f"10.1000/{prefix}{i}", "title": [f"{prefix} paper {i}"]} for i in range(count)]


@pytest.fixture
def history_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point SEARCH_HISTORY_PATH at a temp file for every run() test."""
    path = tmp_path / "history.json"
    monkeypatch.setattr(main, "SEARCH_HISTORY_PATH", str(path))
    return path


def test_run_renders_first_page_and_exits_zero(history_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    fetch = PagedFetch({0: (_titled("First", 10), 42)})

    code = main.run(main.parse_args(["graphs"]), fetch=fetch)

    out = capsys.readouterr().out
    assert code == 0
    assert fetch.offsets == [0]
    assert "1. First paper 0" in out
    assert "Showing 1-10 of 42 papers" in out


def test_run_page_renders_only_requested_page(history_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    fetch = PagedFetch({0: (_titled("First", 20), 42), 40: (_titled("Third", 2), 42)})

    code = main.run(main.parse_args(["graphs", "--rows", "20", "--page", "3"]), fetch=fetch)

    out = capsys.readouterr().out
    assert code == 0
    assert fetch.offsets == [0, 40]
    assert "First paper" not in out
    assert "41. Third paper 0" in out
    assert "Page 3 of 3" in out


def test_run_failed_page_fetch_exits_one(history_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    fetch = PagedFetch({0: (_titled("First", 20), 42), 40: SearchTimeoutError(10)})

    code = main.run(main.parse_args(["graphs", "--rows", "20", "--page", "3"]), fetch=fetch)

    out = capsys.readouterr().out
    assert code == 1
    assert "First paper" not in out
    assert "[timeout] The search timed out. Please try again." in out


def test_run_page_out_of_range_exits_one(history_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    fetch = PagedFetch({0: (_titled("First", 10), 15)})

    code = main.run(main.parse_args(["graphs", "--page", "9", "--details", "1"]), fetch=fetch)

    out = capsys.readouterr().out
    assert code == 1
    assert fetch.offsets == [0]
    assert "Page 9 is out of range (2 pages)." in out
    assert "First paper" not in out


def test_run_failed_search_exits_one(history_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    fetch = PagedFetch({0: ApiError(503, "Service Unavailable")})

    code = main.run(main.parse_args(["graphs"]), fetch=fetch)

    assert code == 1
    assert "[api] Search failed: CrossRef returned 503 Service Unavailable" in capsys.readouterr().out


def test_run_details_prints_selected_result(history_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    fetch = PagedFetch({0: (_titled("First", 3), 3)})

    code = main.run(main.parse_args(["graphs", "--details", "2"]), fetch=fetch)

    out = capsys.readouterr().out
    assert code == 0
    assert "Title: First paper 1" in out
    assert "DOI: 10.1000/First1" in out


def test_run_without_query_exits_two(history_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    fetch = PagedFetch({})

    code = main.run(main.parse_args([]), fetch=fetch)

    assert code == 2
    assert fetch.offsets == []
    assert "Nothing to search for" in capsys.readouterr().out


def test_run_history_lists_previous_searches(history_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    fetch = PagedFetch({0: (_titled("First", 1), 1)})
    main.run(main.parse_args(["graphs"]), fetch=fetch)
    main.run(main.parse_args(["trees"]), fetch=fetch)
    capsys.readouterr()

    code = main.run(main.parse_args(["--history"]), fetch=fetch)

    lines = capsys.readouterr().out.splitlines()
    assert code == 0
    assert lines[0].endswith("trees")
    assert lines[1].endswith("graphs")
