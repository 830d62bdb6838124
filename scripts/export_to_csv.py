from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Dict, List

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from catalog_sync.utils.csv_format import flatten_category, render_csv  # noqa: E402

DEFAULT_CATEGORIES = ["design", "typography", "tools", "ai", "3d"]


def export_categories(data_dir: Path, categories: List[str]) -> List[Dict[str, str]]:
    rows: List[Dict[str, str]] = []
    for category in categories:
        path = data_dir / f"{category}.json"
        try:
            document = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            print(f"Skipping {path}: {exc}", file=sys.stderr)
            continue
        rows.extend(flatten_category(document))
    return rows


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Flatten per-category JSON files into the CSV export"
    )
    parser.add_argument("--data-dir", default="data", help="Directory of <category>.json")
    parser.add_argument(
        "--output",
        default="database-content.csv",
        help="Where to write the CSV",
    )
    parser.add_argument(
        "categories",
        nargs="*",
        default=DEFAULT_CATEGORIES,
        help="Category ids to export",
    )
    args = parser.parse_args()

    rows = export_categories(Path(args.data_dir), args.categories)
    Path(args.output).write_text(render_csv(rows), encoding="utf-8")
    print(f"Exported {len(rows)} resources to {args.output}")


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:  # pragma: no cover - graceful exit
        sys.exit(1)
