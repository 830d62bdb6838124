from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from catalog_sync.core.config import settings
from catalog_sync.pipeline.reporter import RunReporter
from catalog_sync.pipeline.runner import load_rows, plan_from_text, sync_plan
from catalog_sync.tools.supabase_client import SupabaseCatalogClient
from catalog_sync.utils.csv_format import ParseError


EXIT_FAILURES = 1
EXIT_PARSE_ERROR = 2
EXIT_CONFIG_ERROR = 3


def positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"{value!r} is not an integer") from exc
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Sync the flat resource export into the Supabase catalog"
    )
    parser.add_argument(
        "--csv",
        default=settings.sync_csv_path,
        help="Path to the exported CSV (default: %(default)s)",
    )
    parser.add_argument(
        "--workers",
        type=positive_int,
        default=settings.sync_max_workers,
        help="Concurrent store calls per phase",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Parse and plan only; do not contact the store",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit non-zero when any item failed",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=settings.log_level.upper())

    print(f"Reading {args.csv}...")
    reporter = RunReporter()
    try:
        plan = plan_from_text(load_rows(args.csv), reporter)
    except ParseError as exc:
        print(f"Could not parse {args.csv}: {exc}", file=sys.stderr)
        return EXIT_PARSE_ERROR

    if args.dry_run:
        for entity, count in plan.counts().items():
            print(f"{entity}: {count} planned")
        return 0

    try:
        store = SupabaseCatalogClient()
    except ValueError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    summary = sync_plan(plan, store, reporter=reporter, max_workers=args.workers)
    for line in summary.format_lines():
        print(line)

    if args.strict and not summary.ok:
        return EXIT_FAILURES
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:  # pragma: no cover - graceful exit
        sys.exit(1)
