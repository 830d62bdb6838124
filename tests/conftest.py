from __future__ import annotations

import threading
from typing import Any, Dict, List, Set, Tuple

import pytest

from catalog_sync.tools.supabase_client import (
    Found,
    LookupFailed,
    LookupResult,
    NotFound,
    StoreLookupError,
    StoreWriteError,
)
from catalog_sync.utils.resource_models import (
    CategoryRecord,
    ResourceRecord,
    SubcategoryRecord,
)


class InMemoryCatalogStore:
    """Dict-backed stand-in for the Supabase tables.

    ``failing_lookups`` and ``failing_writes`` hold ``(table, key)`` pairs
    whose calls should fail; every call is appended to ``calls``.
    """

    def __init__(self) -> None:
        self.categories: Dict[str, Dict[str, Any]] = {}
        self.subcategories: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self.resources: Dict[str, Dict[str, Any]] = {}
        self.failing_lookups: Set[Tuple[str, Any]] = set()
        self.failing_writes: Set[Tuple[str, Any]] = set()
        self.calls: List[Tuple[str, str, Any]] = []
        self._next_id = 1
        self._lock = threading.Lock()

    def _log(self, action: str, table: str, key: Any) -> None:
        with self._lock:
            self.calls.append((action, table, key))

    def _find(self, table: str, key: Any, rows: Dict[Any, Dict[str, Any]]) -> LookupResult:
        self._log("find", table, key)
        if (table, key) in self.failing_lookups:
            return LookupFailed(StoreLookupError(f"lookup of {key} timed out"))
        row = rows.get(key)
        if row is None:
            return NotFound()
        return Found(dict(row))

    def _check_write(self, table: str, key: Any, action: str) -> None:
        self._log(action, table, key)
        if (table, key) in self.failing_writes:
            raise StoreWriteError(f"{action} of {key} rejected")

    def writes(self) -> List[Tuple[str, str, Any]]:
        return [call for call in self.calls if call[0] in ("insert", "update")]

    def snapshot(self) -> Dict[str, Any]:
        return {
            "categories": dict(self.categories),
            "subcategories": dict(self.subcategories),
            "resources": {url: dict(row) for url, row in self.resources.items()},
        }

    # --- CatalogStore -------------------------------------------------
    def find_category(self, category_id: str) -> LookupResult:
        return self._find("categories", category_id, self.categories)

    def find_subcategory(self, category_id: str, subcategory_id: str) -> LookupResult:
        return self._find(
            "subcategories", (category_id, subcategory_id), self.subcategories
        )

    def find_resource(self, url: str) -> LookupResult:
        return self._find("resources", url, self.resources)

    def insert_category(self, record: CategoryRecord) -> None:
        self._check_write("categories", record.id, "insert")
        self.categories[record.id] = record.to_payload()

    def update_category(self, existing: Dict[str, Any], record: CategoryRecord) -> None:
        self._check_write("categories", record.id, "update")
        self.categories[existing["id"]] = record.to_payload()

    def insert_subcategory(self, record: SubcategoryRecord) -> None:
        self._check_write("subcategories", record.key, "insert")
        self.subcategories[record.key] = record.to_payload()

    def update_subcategory(
        self, existing: Dict[str, Any], record: SubcategoryRecord
    ) -> None:
        self._check_write("subcategories", record.key, "update")
        self.subcategories[record.key] = record.to_payload()

    def insert_resource(self, record: ResourceRecord) -> None:
        self._check_write("resources", record.url, "insert")
        with self._lock:
            row_id = self._next_id
            self._next_id += 1
        self.resources[record.url] = {"id": row_id, **record.to_payload()}

    def update_resource(self, existing: Dict[str, Any], record: ResourceRecord) -> None:
        self._check_write("resources", record.url, "update")
        self.resources[record.url] = {
            "id": existing["id"],
            "url": record.url,
            **record.to_payload(include_url=False),
        }


@pytest.fixture
def store() -> InMemoryCatalogStore:
    return InMemoryCatalogStore()


SAMPLE_CSV = "\n".join(
    [
        "category,subcategory,title,description,url,tags",
        'design,ui-kits,"Kit One","Components, tokens",https://kit.one,"ui,ux"',
        'design,color-tools,"Palette","Pick colors",https://palette.test,"color"',
        'ai,ui-kits,"Prompt Kit","Prompts",https://prompt.kit,"llm, prompts"',
        'ai,chat-bots,"Bot","Chat",https://bot.test,""',
    ]
)


@pytest.fixture
def sample_csv() -> str:
    return SAMPLE_CSV

