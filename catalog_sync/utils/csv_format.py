"""Utilities for reading and writing the flat catalog export."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Iterator, List, Tuple

from catalog_sync.utils.resource_models import normalise_string_list


logger = logging.getLogger(__name__)

EXPORT_HEADERS = ["category", "subcategory", "title", "description", "url", "tags"]
TAGS_COLUMN = "tags"

QUOTE = '"'
ESCAPE = "\\"
SEPARATOR = ","


class ParseError(ValueError):
    """Raised when the export cannot be read as a table at all."""


def split_line(line: str) -> List[str]:
    """Split one line into trimmed, unwrapped field values.

    A double quote toggles the quoted state unless a backslash precedes it.
    Commas only separate fields outside quotes. An unterminated quote is
    not an error: whatever was accumulated is flushed as the last field.
    """

    values: List[str] = []
    current: List[str] = []
    inside_quotes = False
    previous = ""

    for char in line:
        if char == QUOTE and previous != ESCAPE:
            inside_quotes = not inside_quotes
            current.append(char)
        elif char == SEPARATOR and not inside_quotes:
            values.append(_clean_field("".join(current)))
            current = []
        else:
            current.append(char)
        previous = char

    values.append(_clean_field("".join(current)))
    return values


def _clean_field(raw: str) -> str:
    value = raw.strip()
    if len(value) >= 2 and value[0] == QUOTE and value[-1] == QUOTE:
        # Doubled quotes inside a wrapped field stand for one literal quote.
        return value[1:-1].replace(QUOTE * 2, QUOTE)
    return value


def split_tags(value: str) -> List[str]:
    return normalise_string_list(value.split(SEPARATOR))


class TabularRows:
    """Lazy, restartable view over the data lines of an export.

    The header is read eagerly so an unusable input fails before any
    consumer starts iterating. Each iteration re-scans the source text.
    """

    def __init__(self, text: str) -> None:
        if text.startswith("\ufeff"):
            text = text[1:]
        self._lines = text.split("\n")
        self._header_index, self.headers = self._read_header(self._lines)

    @staticmethod
    def _read_header(lines: List[str]) -> Tuple[int, List[str]]:
        for index, line in enumerate(lines):
            if not line.strip():
                continue
            headers = split_line(line)
            if not any(headers):
                raise ParseError(f"Header on line {index + 1} has no column names")
            return index, headers
        raise ParseError("Input is empty; expected a header line")

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        for _, row in self.iter_numbered():
            yield row

    def iter_numbered(self) -> Iterator[Tuple[int, Dict[str, Any]]]:
        """Yield ``(line_number, row)`` pairs with 1-based line numbers."""
        for index in range(self._header_index + 1, len(self._lines)):
            line = self._lines[index]
            if not line.strip():
                continue
            yield index + 1, self._build_row(line, index + 1)

    def _build_row(self, line: str, line_number: int) -> Dict[str, Any]:
        values = split_line(line)
        if len(values) > len(self.headers):
            logger.debug(
                "Line %s has %s values for %s columns; extra values ignored",
                line_number,
                len(values),
                len(self.headers),
            )

        row: Dict[str, Any] = {}
        for position, header in enumerate(self.headers):
            row[header] = values[position] if position < len(values) else ""

        if TAGS_COLUMN in row:
            row[TAGS_COLUMN] = split_tags(row[TAGS_COLUMN])
        return row


def parse_rows(text: str) -> TabularRows:
    return TabularRows(text)


# --- Export side ---------------------------------------------------------
def flatten_category(document: Dict[str, Any]) -> List[Dict[str, str]]:
    """Flatten one hierarchical category document into export rows."""

    rows: List[Dict[str, str]] = []
    category_id = document.get("id", "")
    for subcategory in document.get("subcategories", []):
        for item in subcategory.get("items", []):
            rows.append(
                {
                    "category": category_id,
                    "subcategory": subcategory.get("id", ""),
                    "title": item.get("title", ""),
                    "description": item.get("description", ""),
                    "url": item.get("url", ""),
                    "tags": SEPARATOR.join(item.get("tags", [])),
                }
            )
    return rows


def _quote(value: str) -> str:
    return QUOTE + value.replace(QUOTE, QUOTE * 2) + QUOTE


def render_csv(rows: Iterable[Dict[str, str]]) -> str:
    lines = [SEPARATOR.join(EXPORT_HEADERS)]
    for row in rows:
        lines.append(
            SEPARATOR.join(
                [
                    row["category"],
                    row["subcategory"],
                    _quote(row["title"]),
                    _quote(row["description"]),
                    row["url"],
                    _quote(row["tags"]),
                ]
            )
        )
    return "\n".join(lines)
