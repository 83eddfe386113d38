"""CLI entry point for sheetfeed.

Usage:
    python -m sheetfeed receive <spreadsheet> <worksheet> [--values] [--query k=v]...
    python -m sheetfeed metadata <spreadsheet> <worksheet>

<spreadsheet> and <worksheet> are ids, or names with --by-name. Credentials
come from SHEETFEED_* environment variables (see sheetfeed.config.Settings).
"""

from __future__ import annotations

import argparse
import asyncio
import json
import re
import sys
from dataclasses import asdict
from typing import Any

from sheetfeed.config import Settings, get_settings
from sheetfeed.exceptions import SheetFeedError
from sheetfeed.logging import setup_logging
from sheetfeed.spreadsheet import Spreadsheet, create


def parse_spreadsheet_id(id_or_url: str) -> str:
    """Extract a spreadsheet key from a URL or return as-is.

    Supports URLs like:
      https://docs.google.com/spreadsheets/d/KEY/edit
      https://docs.google.com/spreadsheet/ccc?key=KEY
    """
    patterns = [
        r"docs\.google\.com/spreadsheets/d/([a-zA-Z0-9_-]+)",
        r"[?&]key=([a-zA-Z0-9_-]+)",
    ]
    for pattern in patterns:
        match = re.search(pattern, id_or_url)
        if match:
            return match.group(1)
    return id_or_url


def parse_query(pairs: list[str]) -> dict[str, str]:
    """Turn ``["min-row=2", "max-col=4"]`` into a query mapping."""
    query: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"Invalid query parameter '{pair}', expected key=value")
        query[key] = value
    return query


def _options(args: argparse.Namespace, settings: Settings) -> dict[str, Any]:
    options: dict[str, Any] = {
        "use_https": settings.use_https,
        "use_cell_text_values": settings.use_cell_text_values,
    }
    if args.by_name:
        options["spreadsheet_name"] = args.spreadsheet
        options["worksheet_name"] = args.worksheet
    else:
        options["spreadsheet_id"] = parse_spreadsheet_id(args.spreadsheet)
        options["worksheet_id"] = args.worksheet

    if settings.oauth2_refresh_token:
        options["oauth2"] = {
            "client_id": settings.oauth2_client_id,
            "client_secret": settings.oauth2_client_secret,
            "refresh_token": settings.oauth2_refresh_token,
        }
    elif settings.service_account_path:
        options["oauth"] = {"key_file": settings.service_account_path}
    elif settings.access_token:
        options["access_token"] = settings.access_token
    return options


async def _open(args: argparse.Namespace) -> Spreadsheet:
    settings = get_settings()
    return await create(_options(args, settings), settings=settings)


# --- Command handlers ---


async def cmd_receive(args: argparse.Namespace) -> int:
    """Print the worksheet's rows and feed info as JSON."""
    try:
        query = parse_query(args.query)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        async with await _open(args) as sheet:
            rows, info = await sheet.receive(query or None, get_values=args.values)
    except SheetFeedError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(json.dumps({"info": asdict(info), "rows": rows}, indent=2, default=str))
    return 0


async def cmd_metadata(args: argparse.Namespace) -> int:
    """Print the worksheet's title, update time and dimensions."""
    try:
        async with await _open(args) as sheet:
            metadata = await sheet.metadata()
    except SheetFeedError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(json.dumps(asdict(metadata), indent=2, default=str))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sheetfeed",
        description="Read worksheets from the spreadsheet feed service",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_target(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("spreadsheet", help="Spreadsheet id, URL or name")
        sub.add_argument("worksheet", help="Worksheet id or name")
        sub.add_argument(
            "--by-name",
            action="store_true",
            help="Treat spreadsheet and worksheet as names",
        )

    receive = subparsers.add_parser("receive", help="Read cells as rows")
    add_target(receive)
    receive.add_argument(
        "--values", action="store_true", help="Computed values instead of formulas"
    )
    receive.add_argument(
        "--query",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Feed query parameter (repeatable), e.g. min-row=2",
    )
    receive.set_defaults(handler=cmd_receive)

    metadata = subparsers.add_parser("metadata", help="Show worksheet metadata")
    add_target(metadata)
    metadata.set_defaults(handler=cmd_metadata)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    setup_logging(
        json_logs=settings.json_logs,
        log_level="DEBUG" if args.verbose else settings.log_level,
    )
    return asyncio.run(args.handler(args))


if __name__ == "__main__":
    sys.exit(main())
