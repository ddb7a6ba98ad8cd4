"""CLI entrypoint: search CrossRef, page through results and inspect papers."""

from __future__ import annotations

import argparse
import logging
import os
from typing import Callable

from dotenv import load_dotenv

import presenter
from crossref_client import search_works
from history import SEARCH_HISTORY_PATH, JsonFileStore, SearchHistoryLog
from models import SORT_OPTIONS, SearchFilters, SearchOutcome
from search_controller import FetchFn, SearchController

DEFAULT_RESULTS_PER_PAGE = int(os.getenv("DEFAULT_RESULTS_PER_PAGE", "10"))

INTERACTIVE_HELP = """Commands:
  n            next page
  p            previous page
  d <n>        details for result number n on this page
  s <query>    new search with the current filters
  rows <n>     change results per page
  noyears      remove the year filter
  nosort       sort by relevance
  r            retry the last request
  h            search history
  q            quit"""


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line flags."""
    parser = argparse.ArgumentParser(description="Search academic papers indexed by CrossRef")
    parser.add_argument("query", nargs="?", default="", help="Free-text search query")
    parser.add_argument("--year-from", type=int, default=None, help="Earliest publication year")
    parser.add_argument("--year-to", type=int, default=None, help="Latest publication year")
    parser.add_argument("--sort", choices=SORT_OPTIONS, default="relevance", help="Result ordering")
    parser.add_argument(
        "--rows",
        type=int,
        default=DEFAULT_RESULTS_PER_PAGE,
        help="Results per page (DEFAULT_RESULTS_PER_PAGE env var, default 10)",
    )
    parser.add_argument("--page", type=int, default=1, help="Page to show after searching")
    parser.add_argument("--details", type=int, default=None, metavar="N", help="Print full details of result N")
    parser.add_argument("--history", action="store_true", help="Print past searches and exit")
    parser.add_argument(
        "--interactive",
        action="store_true",
        help="Keep a prompt open for paging and inspecting results",
    )
    return parser.parse_args(argv)


def render_outcome(outcome: SearchOutcome, echo: Callable[[str], None] = print) -> None:
    """Print whatever the controller just applied."""
    if outcome.message is not None:
        echo(f"[{outcome.message.category}] {outcome.message.text}")
        return
    if outcome.session.is_active:
        echo(presenter.format_session(outcome.session))


def print_details(controller: SearchController, position: int, echo: Callable[[str], None] = print) -> None:
    """Print details for the result at one-based ``position`` on the current page."""
    results = controller.session.results
    if not 1 <= position <= len(results):
        echo(f"No result number {position} on this page.")
        return
    echo(presenter.format_paper_details(results[position - 1]))


def run_interactive(
    controller: SearchController,
    history: SearchHistoryLog,
    read: Callable[[str], str] = input,
    echo: Callable[[str], None] = print,
) -> None:
    """Read commands until 'q' or end of input."""
    echo(INTERACTIVE_HELP)
    while True:
        try:
            line = read("> ").strip()
        except EOFError:
            break

        command, _, arg = line.partition(" ")
        arg = arg.strip()
        if command == "q":
            break
        if command == "n":
            outcome = controller.next_page()
            if not outcome.fetched and outcome.message is None:
                echo("Already on the last page.")
        elif command == "p":
            outcome = controller.previous_page()
            if not outcome.fetched and outcome.message is None:
                echo("Already on the first page.")
        elif command == "d" and arg.isdigit():
            print_details(controller, int(arg), echo)
        elif command == "s":
            controller.execute_search(arg)
        elif command == "rows" and arg.isdigit():
            controller.change_page_size(int(arg))
        elif command == "noyears":
            controller.remove_year_filter()
        elif command == "nosort":
            controller.remove_sort_filter()
        elif command == "r":
            controller.retry()
        elif command == "h":
            echo(presenter.format_history(history.entries))
        elif command:
            echo(INTERACTIVE_HELP)


def run(args: argparse.Namespace, fetch: FetchFn = search_works) -> int:
    """Run one CLI invocation. Returns the process exit code.

    Only the page the user asked for is rendered; the exit code reflects the
    last request actually applied.
    """
    history = SearchHistoryLog(JsonFileStore(SEARCH_HISTORY_PATH))
    history.load()

    if args.history:
        print(presenter.format_history(history.entries))
        return 0

    if not args.query and not args.interactive:
        print("Nothing to search for. Pass a query or use --interactive.")
        return 2

    filters = SearchFilters(
        year_from=args.year_from,
        year_to=args.year_to,
        sort_by=args.sort,
        results_per_page=args.rows,
    )
    controller = SearchController(history=history, fetch=fetch, filters=filters)

    failed = False
    if args.query:
        outcome = controller.execute_search(args.query, filters)
        out_of_range = False
        if outcome.message is None and args.page > 1:
            if args.page > controller.session.total_pages:
                out_of_range = True
            else:
                outcome = controller.execute_search_with_current_params(page=args.page)

        if out_of_range:
            print(f"Page {args.page} is out of range ({controller.session.total_pages} pages).")
        else:
            render_outcome(outcome)
        if args.details is not None and outcome.message is None and not out_of_range:
            print_details(controller, args.details)
        failed = outcome.message is not None or out_of_range

    if args.interactive:
        controller.on_update = render_outcome
        run_interactive(controller, history)
        return 0
    return 1 if failed else 0


def main() -> None:
    """Initialize config and run the CLI."""
    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    raise SystemExit(run(parse_args()))


if __name__ == "__main__":
    main()
