#!/usr/bin/env python3
"""
Journal Viewer - Main Entry Point
Run one journal query from the command line and print the matching entries
"""
import sys
from argparse import ArgumentParser
from typing import List, Optional

from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from journal_viewer.config import Settings, setup_logging
from journal_viewer.journal import (
    EntriesObserver,
    FilterController,
    JournalError,
    QueryExecutor,
    QuerySpecification,
)


class ConsoleObserver(EntriesObserver):
    """Collects controller errors and prints them as they arrive"""

    def __init__(self, console: Console):
        self.console = console
        self.errors: List[JournalError] = []

    def on_error(self, error: JournalError) -> None:
        self.errors.append(error)
        self.console.print(f"[bold red]Error:[/bold red] {escape(str(error))}")


def build_parser() -> ArgumentParser:
    """Build the CLI argument parser."""
    parser = ArgumentParser(
        prog="journal-viewer",
        description="Display systemd journal entries with filtering and search.",
    )
    parser.add_argument("--since", help="Start of the interval (e.g. '2024-03-01 10:00', 'yesterday')")
    parser.add_argument("--until", help="End of the interval")
    parser.add_argument("--boot", default="0", help="Boot id or offset (default: current boot)")
    parser.add_argument("--all-boots", action="store_true", help="Do not restrict entries to a boot")
    parser.add_argument("--unit", action="append", default=[], help="Systemd unit (repeatable)")
    parser.add_argument("--identifier", action="append", default=[], help="Syslog identifier (repeatable)")
    parser.add_argument("--priority", help="Priority level or range (e.g. err, warning..emerg)")
    parser.add_argument("--match", action="append", default=[], help="Journal field match FIELD=VALUE (repeatable)")
    parser.add_argument("--search", default="", help="Only show entries matching this regular expression")
    parser.add_argument("--json", action="store_true", help="Print the entries as a JSON array instead of a table")
    return parser


def spec_from_args(args) -> QuerySpecification:
    filters = {
        "unit": args.unit,
        "identifier": args.identifier,
        "priority": args.priority,
        "match": args.match,
    }
    if not args.all_boots:
        filters["boot"] = args.boot

    return QuerySpecification(since=args.since, until=args.until, filters=filters)


def render_entries(console: Console, controller: FilterController) -> None:
    """Print the query description and the visible entries"""
    console.print(f" - {escape(controller.spec.interval_description())}")
    console.print(f" - {escape(controller.spec.filters_description())}")
    if controller.search:
        console.print(f" - Displaying entries with the following text: {escape(controller.search)}")

    table = Table(title="Journal entries")
    table.add_column("Time", no_wrap=True)
    table.add_column("Process")
    table.add_column("Message")

    for entry in controller.visible_entries:
        table.add_row(entry.formatted_timestamp, entry.process_name, entry.message)

    console.print(table)
    console.print(f"{len(controller.visible_entries)} of {len(controller.store)} entries shown")


def render_json(console: Console, controller: FilterController) -> None:
    console.print_json(data=[entry.to_dict() for entry in controller.visible_entries])


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    console = Console()

    try:
        settings = Settings.from_env()
    except ValidationError as e:
        console.print(f"[bold red]Invalid configuration:[/bold red] {escape(str(e))}")
        return 2

    setup_logging(settings)

    # Errors go to stderr when stdout carries JSON
    observer = ConsoleObserver(Console(stderr=True) if args.json else console)
    controller = FilterController(QueryExecutor(settings), observer, spec_from_args(args))
    if args.search:
        controller.on_search_change(args.search)

    if args.json:
        render_json(console, controller)
    else:
        render_entries(console, controller)
    return 1 if observer.errors else 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        sys.exit(130)
