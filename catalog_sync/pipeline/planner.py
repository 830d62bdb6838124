"""Collapse normalized rows into the records each sync phase reconciles."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from catalog_sync.core.config import settings
from catalog_sync.utils.resource_models import (
    CategoryRecord,
    ResourceRecord,
    Row,
    SubcategoryRecord,
)


logger = logging.getLogger(__name__)


class PlanIntegrityError(AssertionError):
    """Raised when a planned resource points at an unplanned subcategory."""


@dataclass
class SyncPlan:
    """Ordered, de-duplicated records keyed by natural key."""

    categories: Dict[str, CategoryRecord] = field(default_factory=dict)
    subcategories: Dict[Tuple[str, str], SubcategoryRecord] = field(
        default_factory=dict
    )
    resources: Dict[str, ResourceRecord] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not self.categories

    def counts(self) -> Dict[str, int]:
        return {
            "category": len(self.categories),
            "subcategory": len(self.subcategories),
            "resource": len(self.resources),
        }


def _category_from_row(
    row: Row, *, icon_template: str, description_template: str
) -> CategoryRecord:
    return CategoryRecord(
        id=row.category,
        title=row.category_title,
        icon=icon_template.format(id=row.category),
        description=description_template.format(id=row.category),
    )


def _resource_from_row(row: Row) -> ResourceRecord:
    return ResourceRecord(
        title=row.title,
        description=row.description,
        url=row.url,
        tags=list(row.tags),
        category_id=row.category,
        subcategory_id=row.subcategory,
    )


def build_plan(
    rows: Iterable[Row],
    *,
    icon_template: Optional[str] = None,
    description_template: Optional[str] = None,
) -> SyncPlan:
    icon_template = icon_template or settings.category_icon_template
    description_template = (
        description_template or settings.category_description_template
    )

    plan = SyncPlan()
    for row in rows:
        if row.category not in plan.categories:
            plan.categories[row.category] = _category_from_row(
                row,
                icon_template=icon_template,
                description_template=description_template,
            )

        sub_key = (row.category, row.subcategory)
        if sub_key not in plan.subcategories:
            plan.subcategories[sub_key] = SubcategoryRecord(
                id=row.subcategory,
                category_id=row.category,
                title=row.subcategory_title,
            )

        if row.url in plan.resources:
            # Later rows overwrite earlier ones, as a sequential re-write would.
            logger.warning(
                "Duplicate url %s on line %s replaces an earlier row",
                row.url,
                row.line,
            )
        plan.resources[row.url] = _resource_from_row(row)

    verify_plan(plan)
    logger.info(
        "Planned %s categories, %s subcategories, %s resources",
        len(plan.categories),
        len(plan.subcategories),
        len(plan.resources),
    )
    return plan


def verify_plan(plan: SyncPlan) -> None:
    orphans: List[str] = [
        resource.url
        for resource in plan.resources.values()
        if resource.parent_key not in plan.subcategories
    ]
    if orphans:
        raise PlanIntegrityError(
            f"Resources reference unplanned subcategories: {', '.join(orphans)}"
        )

    for category_id, _ in plan.subcategories:
        if category_id not in plan.categories:
            raise PlanIntegrityError(
                f"Subcategory references unplanned category {category_id}"
            )
