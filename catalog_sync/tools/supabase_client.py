"""Supabase-backed access to the catalog tables."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Union, cast

from postgrest.exceptions import APIError
from supabase import Client, create_client

from catalog_sync.core.config import settings
from catalog_sync.utils.resource_models import (
    CategoryRecord,
    ResourceRecord,
    SubcategoryRecord,
)


logger = logging.getLogger(__name__)

# PostgREST reports "no rows" for single-row selects with this code.
NO_ROWS_CODE = "PGRST116"


class StoreError(RuntimeError):
    """Base class for failures talking to the remote store."""


class StoreLookupError(StoreError):
    """Raised when an existence check could not be answered."""


class StoreWriteError(StoreError):
    """Raised when an insert or update was rejected."""


@dataclass(slots=True)
class Found:
    record: Dict[str, Any]


@dataclass(slots=True)
class NotFound:
    pass


@dataclass(slots=True)
class LookupFailed:
    error: StoreLookupError


LookupResult = Union[Found, NotFound, LookupFailed]


class CatalogStore(Protocol):
    """Operations the sync engine needs from the remote store."""

    def find_category(self, category_id: str) -> LookupResult: ...

    def find_subcategory(
        self, category_id: str, subcategory_id: str
    ) -> LookupResult: ...

    def find_resource(self, url: str) -> LookupResult: ...

    def insert_category(self, record: CategoryRecord) -> None: ...

    def update_category(self, existing: Dict[str, Any], record: CategoryRecord) -> None: ...

    def insert_subcategory(self, record: SubcategoryRecord) -> None: ...

    def update_subcategory(
        self, existing: Dict[str, Any], record: SubcategoryRecord
    ) -> None: ...

    def insert_resource(self, record: ResourceRecord) -> None: ...

    def update_resource(self, existing: Dict[str, Any], record: ResourceRecord) -> None: ...


def extract_error_message(error: Exception) -> str:
    details: List[str] = []

    if isinstance(error, APIError):
        for attr in ("message", "code", "hint"):
            value = getattr(error, attr, None)
            if value:
                details.append(str(value))

    raw = " - ".join(details) if details else str(error).strip()
    if not raw:
        raw = error.__class__.__name__

    cleaned = re.sub(r"\s+", " ", raw)
    if len(cleaned) > 200:
        return cleaned[:199] + "…"
    return cleaned


def _is_no_rows(error: Exception) -> bool:
    return isinstance(error, APIError) and getattr(error, "code", None) == NO_ROWS_CODE


def rows_to_result(rows: List[Any], *, description: str) -> LookupResult:
    """Map a lookup response to the three-way result.

    Anything other than zero or exactly one match is reported as a failure.
    """

    if not rows:
        return NotFound()
    if len(rows) > 1:
        return LookupFailed(
            StoreLookupError(f"{description} matched {len(rows)} rows, expected one")
        )
    row = rows[0]
    if not isinstance(row, dict):
        return LookupFailed(
            StoreLookupError(f"{description} returned an unexpected row shape")
        )
    return Found(cast(Dict[str, Any], row))


class SupabaseCatalogClient:
    """Wrapper around Supabase for the category, subcategory and resource tables."""

    def __init__(
        self,
        *,
        client: Optional[Client] = None,
        categories_table: Optional[str] = None,
        subcategories_table: Optional[str] = None,
        resources_table: Optional[str] = None,
    ) -> None:
        if client is None:
            settings.validate_supabase_config()
            client = create_client(
                cast(str, settings.supabase_url),
                settings.supabase_key.get_secret_value(),  # type: ignore[union-attr]
            )
        self._client = client
        self._categories = categories_table or settings.supabase_categories_table
        self._subcategories = (
            subcategories_table or settings.supabase_subcategories_table
        )
        self._resources = resources_table or settings.supabase_resources_table

    # --- Lookups ------------------------------------------------------
    def find_category(self, category_id: str) -> LookupResult:
        return self._lookup(
            self._categories,
            {"id": category_id},
            description=f"category {category_id}",
        )

    def find_subcategory(self, category_id: str, subcategory_id: str) -> LookupResult:
        return self._lookup(
            self._subcategories,
            {"id": subcategory_id, "category_id": category_id},
            description=f"subcategory {category_id}/{subcategory_id}",
        )

    def find_resource(self, url: str) -> LookupResult:
        return self._lookup(
            self._resources,
            {"url": url},
            description=f"resource {url}",
        )

    def _lookup(
        self, table: str, filters: Dict[str, str], *, description: str
    ) -> LookupResult:
        try:
            builder = self._client.table(table).select("*")
            for column, value in filters.items():
                builder = builder.eq(column, value)
            # Two rows is enough to tell "one" from "more than one".
            response = builder.limit(2).execute()
        except Exception as exc:
            if _is_no_rows(exc):
                return NotFound()
            logger.debug("Lookup of %s failed", description, exc_info=True)
            return LookupFailed(
                StoreLookupError(
                    f"Lookup of {description} failed: {extract_error_message(exc)}"
                )
            )

        rows = cast(List[Any], response.data or [])
        return rows_to_result(rows, description=description)

    # --- Writes -------------------------------------------------------
    def insert_category(self, record: CategoryRecord) -> None:
        self._insert(self._categories, record.to_payload(), f"category {record.id}")

    def update_category(self, existing: Dict[str, Any], record: CategoryRecord) -> None:
        payload = record.to_payload()
        payload.pop("id")
        self._update(
            self._categories,
            payload,
            {"id": existing.get("id", record.id)},
            f"category {record.id}",
        )

    def insert_subcategory(self, record: SubcategoryRecord) -> None:
        self._insert(
            self._subcategories,
            record.to_payload(),
            f"subcategory {record.category_id}/{record.id}",
        )

    def update_subcategory(
        self, existing: Dict[str, Any], record: SubcategoryRecord
    ) -> None:
        self._update(
            self._subcategories,
            {"title": record.title},
            {
                "id": existing.get("id", record.id),
                "category_id": existing.get("category_id", record.category_id),
            },
            f"subcategory {record.category_id}/{record.id}",
        )

    def insert_resource(self, record: ResourceRecord) -> None:
        self._insert(self._resources, record.to_payload(), f"resource {record.url}")

    def update_resource(self, existing: Dict[str, Any], record: ResourceRecord) -> None:
        if existing.get("id") is None:
            raise StoreWriteError(
                f"Cannot update resource {record.url}: stored row has no id"
            )
        self._update(
            self._resources,
            record.to_payload(include_url=False),
            {"id": existing["id"]},
            f"resource {record.url}",
        )

    def _insert(self, table: str, payload: Dict[str, Any], description: str) -> None:
        try:
            self._client.table(table).insert(payload).execute()
        except Exception as exc:
            logger.debug("Insert of %s failed", description, exc_info=True)
            raise StoreWriteError(
                f"Insert of {description} failed: {extract_error_message(exc)}"
            ) from exc

    def _update(
        self,
        table: str,
        payload: Dict[str, Any],
        filters: Dict[str, Any],
        description: str,
    ) -> None:
        try:
            builder = self._client.table(table).update(payload)
            for column, value in filters.items():
                builder = builder.eq(column, value)
            builder.execute()
        except Exception as exc:
            logger.debug("Update of %s failed", description, exc_info=True)
            raise StoreWriteError(
                f"Update of {description} failed: {extract_error_message(exc)}"
            ) from exc
