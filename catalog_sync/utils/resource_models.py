"""Shared catalog data models and helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional


@dataclass(slots=True)
class Row:
    """One normalized resource line from the tabular export."""

    category: str
    subcategory: str
    title: str
    description: str
    url: str
    tags: List[str] = field(default_factory=list)
    category_title: str = ""
    subcategory_title: str = ""
    line: int = 0


@dataclass(slots=True)
class CategoryRecord:
    id: str
    title: str
    icon: str
    description: str

    def to_payload(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "icon": self.icon,
            "description": self.description,
        }


@dataclass(slots=True)
class SubcategoryRecord:
    id: str
    category_id: str
    title: str

    @property
    def key(self) -> tuple[str, str]:
        return (self.category_id, self.id)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "category_id": self.category_id,
            "title": self.title,
        }


@dataclass(slots=True)
class ResourceRecord:
    """Representation of a resource row as written to the store."""

    title: str
    description: str
    url: str
    tags: List[str]
    category_id: str
    subcategory_id: str

    @property
    def parent_key(self) -> tuple[str, str]:
        return (self.category_id, self.subcategory_id)

    def to_payload(self, *, include_url: bool = True) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "title": self.title,
            "description": self.description,
            "tags": list(self.tags),
            "category_id": self.category_id,
            "subcategory_id": self.subcategory_id,
        }
        if include_url:
            payload["url"] = self.url
        return payload


def normalise_string_list(values: Optional[Iterable[str]]) -> List[str]:
    if not values:
        return []
    normalised: List[str] = []
    for value in values:
        text = (value or "").strip()
        if text:
            normalised.append(text)
    return normalised

