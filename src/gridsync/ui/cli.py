# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from gridsync.adapters.grid import CsvGrid
from gridsync.adapters.sqlalchemy import create_local_store
from gridsync.adapters.store import HttpRecordStore
from gridsync.app import (
    delete_selected_records,
    get_selected_records,
    list_tables,
    refresh_records,
    send_selected_records,
)
from gridsync.config import ConfigurationError, configure_logging
from gridsync.domain.catalog import UnknownTableError, group_by_type
from gridsync.domain.errors import GridSyncError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from gridsync.app import ActionResult
    from gridsync.domain.ports.store import RecordStore
    from gridsync.domain.refresh import GridUpdate

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile grid files with the record store")
    parser.add_argument(
        "--local",
        action="store_true",
        help="Use the local SQLite record store instead of the remote one",
    )
    parser.add_argument(
        "--database-uri",
        type=str,
        help="Database URI of the local store (implies --local)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Debug logging; repeat to include HTTP traffic",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    tables = subparsers.add_parser("tables", help="List the tables of the catalog")
    tables.add_argument("--add", type=str, metavar="TABLE", help="Register a table (local only)")
    tables.add_argument("--type", type=str, dest="table_type", help="Type of the new table")
    tables.add_argument(
        "--unique-keys",
        type=str,
        default="",
        help="Comma-separated unique key columns of the new table",
    )

    for name, help_text in (
        ("fetch", "Load every active record of a table into the grid file"),
        ("pull", "Overwrite the selected rows with the store's values"),
        ("send", "Insert or update the selected rows"),
        ("delete", "Soft-delete the selected rows that carry an id"),
    ):
        command = subparsers.add_parser(name, help=help_text)
        command.add_argument("--table", type=str, required=True, help="Target table name")
        command.add_argument("--grid", type=Path, required=True, help="CSV file holding the grid")
        if name == "fetch":
            continue
        command.add_argument(
            "--rows",
            type=str,
            help="Sheet rows to select, e.g. '2-5,8' (header is row 1; default: all)",
        )
        if name in {"send", "delete"}:
            command.add_argument(
                "--no-refresh",
                action="store_true",
                help="Keep the grid as written back instead of reloading the table",
            )

    return parser.parse_args(list(argv))


def _parse_rows(value: str) -> list[range]:
    """Turn ``"2-5,8"`` (1-based sheet rows) into 0-based position ranges."""

    areas: list[range] = []
    for part in value.split(","):
        text = part.strip()
        if not text:
            continue
        start_text, _, end_text = text.partition("-")
        try:
            start = int(start_text)
            end = int(end_text) if end_text else start
        except ValueError as exc:
            raise ValueError(f"Invalid row range: {text}") from exc
        if start < 1 or end < start:
            raise ValueError(f"Invalid row range: {text}")
        areas.append(range(start - 1, end))
    if not areas:
        raise ValueError("Empty row selection")
    return areas


def _build_store(args: argparse.Namespace) -> RecordStore:
    if args.local or args.database_uri:
        return create_local_store(database_uri=args.database_uri)
    return HttpRecordStore()


def _load_grid(args: argparse.Namespace) -> CsvGrid:
    grid = CsvGrid.load(args.grid)
    if getattr(args, "rows", None):
        grid.select(*_parse_rows(args.rows))
    else:
        grid.select_all()
    return grid


def _print_update(update: GridUpdate) -> None:
    print(f"{update.summary.title}: {update.summary.message}")


def _print_action(result: ActionResult) -> None:
    summary = result.report.summary
    print(f"{summary.title}: {summary.message}")
    for error in result.report.errors:
        print(f"  {error.describe()}")
    if result.refresh is not None:
        _print_update(result.refresh)


def _run_tables(args: argparse.Namespace, store: RecordStore) -> None:
    if args.add:
        add_table = getattr(store, "add_table", None)
        if add_table is None:
            raise ValueError("--add is only supported with --local")
        if not args.table_type:
            raise ValueError("--add requires --type")
        keys = [key.strip() for key in args.unique_keys.split(",") if key.strip()]
        add_table(args.add, table_type=args.table_type, unique_keys=keys)
        log.info("Registered table %s", args.add)

    for table_type, tables in group_by_type(list_tables(store=store)).items():
        print(table_type)
        for table in tables:
            keys = ", ".join(table.unique_keys) or "-"
            print(f"  {table.table_name:<32} {table.display_name:<32} keys: {keys}")


def _run(args: argparse.Namespace, store: RecordStore) -> int:
    """Execute one command; return the process exit code."""

    if args.command == "tables":
        _run_tables(args, store)
        return 0

    grid = _load_grid(args)
    exit_code = 0
    if args.command == "fetch":
        _print_update(refresh_records(grid, args.table, store=store))
    elif args.command == "pull":
        _print_update(get_selected_records(grid, args.table, store=store))
    elif args.command in {"send", "delete"}:
        action = send_selected_records if args.command == "send" else delete_selected_records
        result = action(grid, args.table, store=store, refresh=not args.no_refresh)
        _print_action(result)
        exit_code = 1 if result.report.errors else 0
    else:
        raise ValueError(f"Unsupported command: {args.command}")
    grid.save()
    return exit_code


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        if getattr(parsed_args, "rows", None):
            _parse_rows(parsed_args.rows)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)

    configure_logging(verbosity=parsed_args.verbose)

    try:
        exit_code = _run(parsed_args, _build_store(parsed_args))
    except (GridSyncError, ConfigurationError, UnknownTableError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)
    if exit_code:
        sys.exit(exit_code)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    print("\nClosed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
