"""Idempotent create-or-update of a sync plan against the remote store.

Phases run strictly in dependency order: every category resolves before
any subcategory is attempted, and every subcategory before any resource.
Failed parents are threaded forward as blocked keys so their children are
reported as failed without ever touching the store.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, Iterable, Optional, Set, Tuple, TypeVar

from catalog_sync.core.config import settings
from catalog_sync.pipeline.planner import SyncPlan
from catalog_sync.pipeline.reporter import Entity, Outcome, RunReporter, SyncSummary
from catalog_sync.tools.supabase_client import (
    CatalogStore,
    Found,
    LookupFailed,
    LookupResult,
    StoreError,
    extract_error_message,
)
from catalog_sync.utils.resource_models import (
    CategoryRecord,
    ResourceRecord,
    SubcategoryRecord,
)


logger = logging.getLogger(__name__)

BLOCKED_BY_PARENT = "blocked-by-parent"

K = TypeVar("K")
T = TypeVar("T")


class BlockedByParentError(RuntimeError):
    """Assigned to items whose parent failed in an earlier phase."""

    def __init__(self, parent: str) -> None:
        self.parent = parent
        super().__init__(BLOCKED_BY_PARENT)


def _upsert(
    lookup: Callable[[], LookupResult],
    insert: Callable[[], None],
    update: Callable[[dict], None],
) -> Outcome:
    result = lookup()
    if isinstance(result, LookupFailed):
        raise result.error
    if isinstance(result, Found):
        update(result.record)
        return Outcome.UPDATED
    insert()
    return Outcome.CREATED


class SyncEngine:
    def __init__(
        self,
        store: CatalogStore,
        *,
        reporter: Optional[RunReporter] = None,
        max_workers: Optional[int] = None,
    ) -> None:
        self._store = store
        self._reporter = reporter or RunReporter()
        self._max_workers = max(1, max_workers or settings.sync_max_workers)

    @property
    def reporter(self) -> RunReporter:
        return self._reporter

    def run(self, plan: SyncPlan) -> SyncSummary:
        failed_categories = self.sync_categories(plan.categories)
        failed_subcategories = self.sync_subcategories(
            plan.subcategories, blocked=failed_categories
        )
        self.sync_resources(plan.resources, blocked=failed_subcategories)
        return self._reporter.summary()

    # --- Phases -------------------------------------------------------
    def sync_categories(self, categories: Dict[str, CategoryRecord]) -> Set[str]:
        def handle(record: CategoryRecord) -> Outcome:
            return _upsert(
                lambda: self._store.find_category(record.id),
                lambda: self._store.insert_category(record),
                lambda existing: self._store.update_category(existing, record),
            )

        return self._run_phase(
            Entity.CATEGORY, categories.items(), handle, lambda key: key
        )

    def sync_subcategories(
        self,
        subcategories: Dict[Tuple[str, str], SubcategoryRecord],
        *,
        blocked: Set[str],
    ) -> Set[Tuple[str, str]]:
        def handle(record: SubcategoryRecord) -> Outcome:
            if record.category_id in blocked:
                raise BlockedByParentError(record.category_id)
            return _upsert(
                lambda: self._store.find_subcategory(record.category_id, record.id),
                lambda: self._store.insert_subcategory(record),
                lambda existing: self._store.update_subcategory(existing, record),
            )

        return self._run_phase(
            Entity.SUBCATEGORY,
            subcategories.items(),
            handle,
            lambda key: "/".join(key),
        )

    def sync_resources(
        self,
        resources: Dict[str, ResourceRecord],
        *,
        blocked: Set[Tuple[str, str]],
    ) -> Set[str]:
        def handle(record: ResourceRecord) -> Outcome:
            if record.parent_key in blocked:
                raise BlockedByParentError("/".join(record.parent_key))
            return _upsert(
                lambda: self._store.find_resource(record.url),
                lambda: self._store.insert_resource(record),
                lambda existing: self._store.update_resource(existing, record),
            )

        return self._run_phase(
            Entity.RESOURCE, resources.items(), handle, lambda key: key
        )

    # --- Internals ----------------------------------------------------
    def _run_phase(
        self,
        entity: Entity,
        items: Iterable[Tuple[K, T]],
        handle: Callable[[T], Outcome],
        label: Callable[[K], str],
    ) -> Set[K]:
        """Process every item of one phase and return the keys that failed.

        Returns only after every item, including concurrently dispatched
        ones, has resolved.
        """

        pending = list(items)
        if self._max_workers == 1 or len(pending) <= 1:
            results = [
                self._run_item(entity, key, record, handle, label)
                for key, record in pending
            ]
        else:
            with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
                results = list(
                    executor.map(
                        lambda pair: self._run_item(
                            entity, pair[0], pair[1], handle, label
                        ),
                        pending,
                    )
                )

        failed: Set[K] = set()
        for (key, _), succeeded in zip(pending, results):
            if not succeeded:
                failed.add(key)

        logger.info(
            "Finished %s phase: %s items, %s failed",
            entity.value,
            len(pending),
            len(failed),
        )
        return failed

    def _run_item(
        self,
        entity: Entity,
        key: K,
        record: T,
        handle: Callable[[T], Outcome],
        label: Callable[[K], str],
    ) -> bool:
        name = label(key)
        try:
            outcome = handle(record)
        except BlockedByParentError as exc:
            logger.warning(
                "Skipped %s %s: parent %s failed", entity.value, name, exc.parent
            )
            self._reporter.record_failure(entity, name, BLOCKED_BY_PARENT)
            return False
        except StoreError as exc:
            logger.warning("Failed %s %s: %s", entity.value, name, exc)
            self._reporter.record_failure(entity, name, str(exc))
            return False
        except Exception as exc:
            logger.warning("Failed %s %s: %s", entity.value, name, exc)
            logger.debug(
                "Unexpected error syncing %s %s", entity.value, name, exc_info=True
            )
            self._reporter.record_failure(entity, name, extract_error_message(exc))
            return False

        logger.info("%s %s: %s", outcome.value.capitalize(), entity.value, name)
        self._reporter.record(entity, outcome)
        return True

