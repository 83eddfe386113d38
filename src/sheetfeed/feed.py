"""Projection of coerced feed trees onto spreadsheet structures.

Works on the output of ``sheetfeed.xml_coerce.parse`` and knows the layout of
the cells feed, the worksheets feed and the spreadsheets feed.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sheetfeed.exceptions import MalformedFeedError
from sheetfeed.xml_coerce import CoercedValue, Scalar, as_list, text_of

FEED = "feed"
ENTRY = "entry"
CELL = "gs:cell"

RowsGrid = dict[int, dict[int, Scalar]]


@dataclass(frozen=True)
class FeedInfo:
    """Worksheet metadata derived from a cells feed.

    ``total_cells`` and ``total_rows`` count the non-empty cells and rows that
    the feed returned; ``row_count``/``col_count`` are the worksheet's declared
    dimensions.
    """

    spreadsheet_id: str
    worksheet_id: str
    worksheet_title: str
    worksheet_updated: datetime | None
    authors: str
    total_cells: int
    total_rows: int
    last_row: int
    next_row: int
    row_count: int | None = None
    col_count: int | None = None


@dataclass(frozen=True)
class WorksheetMetadata:
    """A worksheet entry from the worksheets feed."""

    title: str
    updated: datetime | None
    row_count: int | None
    col_count: int | None


def extract_cells(
    tree: dict[str, CoercedValue],
    spreadsheet_id: str,
    worksheet_id: str,
    *,
    get_values: bool = False,
) -> tuple[RowsGrid, FeedInfo]:
    """Build the row grid and feed info from a cells feed tree.

    Args:
        tree: Parsed cells feed
        spreadsheet_id: Spreadsheet the feed belongs to
        worksheet_id: Worksheet the feed belongs to
        get_values: Use the computed cell values instead of the input
            (formula) text

    Raises:
        MalformedFeedError: If the tree has no feed element or a cell lacks
            its coordinates.
    """
    feed = tree.get(FEED)
    if not isinstance(feed, dict):
        raise MalformedFeedError()

    entries = as_list(feed.get(ENTRY))
    rows: RowsGrid = {}
    for entry in entries:
        cell = entry.get(CELL) if isinstance(entry, dict) else None
        if not isinstance(cell, dict):
            raise MalformedFeedError()
        row, col = cell.get("row"), cell.get("col")
        if not isinstance(row, int) or not isinstance(col, int):
            raise MalformedFeedError()
        rows.setdefault(row, {})[col] = _cell_value(cell, get_values)

    last_row = max(rows, default=0)
    info = FeedInfo(
        spreadsheet_id=spreadsheet_id,
        worksheet_id=worksheet_id,
        worksheet_title=_text(feed.get("title")),
        worksheet_updated=_timestamp(feed.get("updated")),
        authors=_authors(feed.get("author")),
        total_cells=len(entries),
        total_rows=len(rows),
        last_row=last_row,
        next_row=last_row + 1,
        row_count=_int_or_none(feed.get("gs:rowCount")),
        col_count=_int_or_none(feed.get("gs:colCount")),
    )
    return rows, info


def extract_worksheet(tree: dict[str, CoercedValue]) -> WorksheetMetadata:
    """Read a single worksheet entry (``worksheets/<ss>/private/full/<ws>``)."""
    entry = tree.get(ENTRY)
    if not isinstance(entry, dict):
        raise MalformedFeedError()
    return WorksheetMetadata(
        title=_text(entry.get("title")),
        updated=_timestamp(entry.get("updated")),
        row_count=_int_or_none(entry.get("gs:rowCount")),
        col_count=_int_or_none(entry.get("gs:colCount")),
    )


def find_entry_id(tree: dict[str, CoercedValue], title: str) -> str | None:
    """Return the id of the first feed entry titled ``title``.

    The id is the last path segment of the entry's ``<id>`` URL.
    """
    feed = tree.get(FEED)
    if not isinstance(feed, dict):
        raise MalformedFeedError()
    for entry in as_list(feed.get(ENTRY)):
        if not isinstance(entry, dict) or _text(entry.get("title")) != title:
            continue
        entry_id = _text(entry.get("id"))
        if entry_id:
            return entry_id.rstrip("/").rsplit("/", 1)[-1]
    return None


def _cell_value(cell: dict[str, Any], get_values: bool) -> Scalar:
    text = cell.get("$t", "")
    if get_values:
        return cell.get("numericValue", text)
    return cell.get("inputValue", text)


def _text(value: CoercedValue | None) -> str:
    text = text_of(value)
    return "" if text is None else str(text)


def _authors(value: CoercedValue | None) -> str:
    names = []
    for author in as_list(value):
        name = author.get("name") if isinstance(author, dict) else author
        if name is not None:
            names.append(_text(name))
    return ", ".join(names)


def _timestamp(value: CoercedValue | None) -> datetime | None:
    text = _text(value)
    if not text:
        return None
    try:
        return datetime.fromisoformat(text)
    except ValueError as e:
        raise MalformedFeedError(f"Invalid timestamp: {text}") from e


def _int_or_none(value: CoercedValue | None) -> int | None:
    text = text_of(value)
    return text if isinstance(text, int) else None
