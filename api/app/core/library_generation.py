"""Populate the risk libraries from the shared seed catalog.

A seed item is selected when one of its category hints matches a selected
taxonomy category (case-insensitive substring, either direction), or when it
carries no category hints and is tagged for the organization's industry or as
``universal``. Selected items are upserted by code: an existing library row
with the same code is overwritten. The first hint becomes the library
category; root causes also keep the second hint as their subcategory.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy.orm import Session

from app.core.exceptions import ValidationFailed
from app.models.library import (
    ControlLibrary,
    ImpactLibrary,
    IndicatorLibrary,
    LibraryGenerationLog,
    RootCauseLibrary,
    SeedLibraryItem,
)

logger = logging.getLogger(__name__)

UNIVERSAL_INDUSTRY = "universal"
DEFAULT_LIBRARY_CATEGORY = "General"


@dataclass
class GenerationResult:
    log_id: int
    categories_used: List[str]
    industry_type: Optional[str]
    counts: Dict[str, int] = field(default_factory=dict)


def _overlaps(a: str, b: str) -> bool:
    a, b = a.lower(), b.lower()
    return a in b or b in a


def category_matches(category_hints: Sequence[str], selected: Sequence[str]) -> bool:
    return any(_overlaps(hint, category) for hint in category_hints or [] for category in selected)


def industry_matches(industry_tags: Sequence[str], industry_type: Optional[str]) -> bool:
    tags = {tag.lower() for tag in industry_tags or []}
    if UNIVERSAL_INDUSTRY in tags:
        return True
    return bool(industry_type) and industry_type.lower() in tags


def select_seed_items(items: Iterable[SeedLibraryItem], selected_categories: Sequence[str],
                      industry_type: Optional[str]) -> List[SeedLibraryItem]:
    selected = []
    for item in items:
        if category_matches(item.category_hints, selected_categories):
            selected.append(item)
        elif not item.category_hints and industry_matches(item.industry_tags, industry_type):
            selected.append(item)
    return selected


def _library_category(item: SeedLibraryItem) -> str:
    hints = item.category_hints or []
    return hints[0] if hints else DEFAULT_LIBRARY_CATEGORY


def _library_subcategory(item: SeedLibraryItem) -> Optional[str]:
    hints = item.category_hints or []
    return hints[1] if len(hints) > 1 else None


def _upsert(db: Session, model, code: str, values: dict) -> None:
    row = db.query(model).filter(model.code == code).first()
    if row is None:
        db.add(model(code=code, **values))
        return
    for key, value in values.items():
        setattr(row, key, value)


def _upsert_item(db: Session, item: SeedLibraryItem) -> None:
    attributes = item.attributes or {}
    common = {
        "name": item.name,
        "description": item.description,
        "category": _library_category(item),
    }
    if item.item_type == "root_cause":
        _upsert(db, RootCauseLibrary, item.code, {**common, "subcategory": _library_subcategory(item)})
    elif item.item_type == "impact":
        _upsert(db, ImpactLibrary, item.code, common)
    elif item.item_type == "control":
        _upsert(db, ControlLibrary, item.code,
                {**common, "control_type": attributes.get("control_type", "preventive")})
    elif item.item_type in ("kri", "kci"):
        _upsert(db, IndicatorLibrary, item.code,
                {**common, "indicator_type": item.item_type.upper(),
                 "unit": attributes.get("unit")})
    else:
        raise ValidationFailed(f"Unknown seed item type '{item.item_type}' for {item.code}")


def generate_library(
    db: Session,
    organization_id: int,
    selected_categories: Sequence[str],
    industry_type: Optional[str],
    actor_id: Optional[int],
) -> GenerationResult:
    categories = [c.strip() for c in selected_categories if c and c.strip()]
    if not categories:
        raise ValidationFailed("Select at least one risk category")

    active_items = db.query(SeedLibraryItem).filter(
        SeedLibraryItem.is_active.is_(True)
    ).order_by(SeedLibraryItem.code).all()
    selected = select_seed_items(active_items, categories, industry_type)

    counts = {"root_cause": 0, "impact": 0, "control": 0, "kri": 0, "kci": 0}
    for item in selected:
        _upsert_item(db, item)
        counts[item.item_type] += 1
    db.flush()

    log = LibraryGenerationLog(
        organization_id=organization_id,
        generated_by_id=actor_id,
        industry_type=industry_type,
        categories_used=categories,
        root_causes_count=counts["root_cause"],
        impacts_count=counts["impact"],
        controls_count=counts["control"],
        kris_count=counts["kri"],
        kcis_count=counts["kci"],
    )
    db.add(log)
    db.flush()
    logger.info("Library generated for organization %s from %d of %d seed items: %s",
                organization_id, len(selected), len(active_items), counts)
    return GenerationResult(
        log_id=log.log_id,
        categories_used=categories,
        industry_type=industry_type,
        counts=counts,
    )
