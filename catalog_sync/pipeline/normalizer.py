"""Turn parsed export rows into canonical resource rows."""

from __future__ import annotations

import re
from typing import Any, List, Mapping

from catalog_sync.utils.resource_models import Row, normalise_string_list


REQUIRED_FIELDS = ("category", "subcategory", "title", "url")
WORD_DELIMITER = "-"

_WHITESPACE = re.compile(r"\s+")


class InvalidRowError(ValueError):
    """Raised when a row lacks a field every resource needs."""

    def __init__(self, missing: List[str], *, line: int = 0, url: str = "") -> None:
        self.missing = missing
        self.line = line
        self.url = url
        location = f"line {line}" if line else "row"
        super().__init__(f"{location}: missing {', '.join(missing)}")


def canonical_key(value: str) -> str:
    """Lower-case, trimmed key with inner whitespace collapsed to dashes."""
    return _WHITESPACE.sub(WORD_DELIMITER, value.strip().lower())


def _capitalise(word: str) -> str:
    return word[:1].upper() + word[1:]


def category_title(key: str) -> str:
    return _capitalise(key)


def subcategory_title(key: str) -> str:
    return " ".join(_capitalise(word) for word in key.split(WORD_DELIMITER))


def _text(row: Mapping[str, Any], name: str) -> str:
    value = row.get(name)
    if value is None:
        return ""
    return str(value).strip()


def normalize(row: Mapping[str, Any], *, line: int = 0) -> Row:
    missing = [name for name in REQUIRED_FIELDS if not _text(row, name)]
    if missing:
        raise InvalidRowError(missing, line=line, url=_text(row, "url"))

    category = canonical_key(_text(row, "category"))
    subcategory = canonical_key(_text(row, "subcategory"))

    tags = row.get("tags") or []
    if isinstance(tags, str):
        tags = tags.split(",")

    return Row(
        category=category,
        subcategory=subcategory,
        title=_text(row, "title"),
        description=_text(row, "description"),
        url=_text(row, "url"),
        tags=normalise_string_list(tags),
        category_title=category_title(category),
        subcategory_title=subcategory_title(subcategory),
        line=line,
    )
