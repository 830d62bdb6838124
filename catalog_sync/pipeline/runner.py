"""End-to-end ingestion: parse, normalize, plan, sync, report."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Tuple

from catalog_sync.pipeline.normalizer import InvalidRowError, normalize
from catalog_sync.pipeline.planner import SyncPlan, build_plan
from catalog_sync.pipeline.reporter import RunReporter, SyncSummary
from catalog_sync.pipeline.sync_engine import SyncEngine
from catalog_sync.tools.supabase_client import CatalogStore, SupabaseCatalogClient
from catalog_sync.utils.csv_format import ParseError, parse_rows
from catalog_sync.utils.resource_models import Row


logger = logging.getLogger(__name__)


def load_rows(path: str | Path) -> str:
    # utf-8-sig drops the byte-order mark spreadsheet exports often carry.
    return Path(path).read_text(encoding="utf-8-sig")


def normalize_rows(
    text: str, reporter: Optional[RunReporter] = None
) -> Tuple[List[Row], int]:
    """Parse ``text`` and return the valid rows plus the count of data lines.

    Invalid rows are logged, recorded on ``reporter`` and dropped.
    """

    table = parse_rows(text)
    rows: List[Row] = []
    seen = 0
    for line, raw in table.iter_numbered():
        seen += 1
        try:
            rows.append(normalize(raw, line=line))
        except InvalidRowError as exc:
            logger.warning("Dropping invalid row: %s", exc)
            if reporter is not None:
                reporter.record_invalid_row(str(exc))
    return rows, seen


def plan_from_text(
    text: str, reporter: Optional[RunReporter] = None
) -> SyncPlan:
    rows, seen = normalize_rows(text, reporter)
    plan = build_plan(rows)
    if seen and plan.is_empty():
        raise ParseError(
            f"No categories could be planned from {seen} data rows; "
            "check the header and required columns"
        )
    return plan


def run_sync(
    text: str,
    store: Optional[CatalogStore] = None,
    *,
    max_workers: Optional[int] = None,
) -> SyncSummary:
    """Synchronise the export in ``text`` with the remote store.

    Only ``ParseError`` escapes; every per-item problem ends up in the
    returned summary.
    """

    reporter = RunReporter()
    plan = plan_from_text(text, reporter)
    return sync_plan(
        plan,
        store if store is not None else SupabaseCatalogClient(),
        reporter=reporter,
        max_workers=max_workers,
    )


def sync_plan(
    plan: SyncPlan,
    store: CatalogStore,
    *,
    reporter: Optional[RunReporter] = None,
    max_workers: Optional[int] = None,
) -> SyncSummary:
    engine = SyncEngine(store, reporter=reporter, max_workers=max_workers)
    summary = engine.run(plan)
    logger.info("Sync finished with %s failures", summary.total_failed)
    return summary
