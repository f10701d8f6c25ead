"""Appetite chain validation.

The chain runs taxonomy risk category -> appetite category (in the statement
being examined) -> active tolerance metric -> KRI. A category whose chain stops
early is reported as a gap:

- CRITICAL: no appetite category exists for the risk category.
- WARNING: an appetite category exists but none of its metrics is active.

``is_valid`` is true only when there are no gaps at all. Data-quality findings
that do not break the chain (stale KRIs, appetite entries with no matching
taxonomy category) are returned as advisories and never affect validity.

Validation is read-only. If the inputs cannot be read, ``ChainDataUnavailable``
is raised so that a failed fetch is never mistaken for a clean result.
"""
import enum
import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import ChainDataUnavailable, EntityNotFound
from app.core.time import utc_today
from app.models.appetite import (
    RiskAppetiteCategory,
    RiskAppetiteStatement,
    StatementStatus,
    ToleranceMetric,
)
from app.models.kri import KriDefinition, KriValue
from app.models.risk_taxonomy import RiskCategory

logger = logging.getLogger(__name__)


class GapSeverity(str, enum.Enum):
    CRITICAL = "CRITICAL"
    WARNING = "WARNING"


@dataclass
class ChainGap:
    category: str
    severity: GapSeverity
    issue: str
    detail: str


@dataclass
class ChainAdvisory:
    category: str
    issue: str
    detail: str


@dataclass
class ChainValidationResult:
    is_valid: bool
    statement_id: Optional[int]
    statement_version: Optional[int]
    categories_checked: int
    gaps: List[ChainGap] = field(default_factory=list)
    advisories: List[ChainAdvisory] = field(default_factory=list)


def _normalize(name: str) -> str:
    return (name or "").strip().lower()


def _resolve_statement(db: Session, organization_id: int,
                       statement_id: Optional[int]) -> Optional[RiskAppetiteStatement]:
    query = db.query(RiskAppetiteStatement).filter(
        RiskAppetiteStatement.organization_id == organization_id
    )
    if statement_id is not None:
        statement = query.filter(RiskAppetiteStatement.statement_id == statement_id).first()
        if statement is None:
            raise EntityNotFound("Appetite statement", statement_id)
        return statement
    return query.filter(RiskAppetiteStatement.status == StatementStatus.APPROVED.value).first()


def evaluate_chain(
    risk_category_names: List[str],
    appetite_categories: Dict[str, str],
    active_metric_counts: Dict[str, int],
    statement_version: Optional[int] = None,
) -> List[ChainGap]:
    """Compute gaps from already-fetched rows.

    ``appetite_categories`` maps normalized name to appetite level and
    ``active_metric_counts`` maps normalized name to the number of active
    metrics under that appetite category.
    """
    where = f"statement v{statement_version}" if statement_version else "the approved statement"
    gaps: List[ChainGap] = []
    for name in risk_category_names:
        key = _normalize(name)
        if key not in appetite_categories:
            gaps.append(ChainGap(
                category=name,
                severity=GapSeverity.CRITICAL,
                issue="No appetite defined",
                detail=f"Risk category '{name}' has no appetite category in {where}",
            ))
        elif not active_metric_counts.get(key):
            gaps.append(ChainGap(
                category=name,
                severity=GapSeverity.WARNING,
                issue="No active tolerance metric",
                detail=(
                    f"Appetite for '{name}' is {appetite_categories[key]} but no tolerance "
                    "metric is active to measure it"
                ),
            ))
    return gaps


def validate_chain(
    db: Session,
    organization_id: int,
    statement_id: Optional[int] = None,
) -> ChainValidationResult:
    """Validate the appetite chain for an organization.

    By default the current APPROVED statement is examined; pass ``statement_id``
    to check a draft before approving it.
    """
    try:
        risk_category_names = [
            row.name for row in db.query(RiskCategory.name).filter(
                RiskCategory.organization_id == organization_id
            ).order_by(RiskCategory.name).all()
        ]
        statement = _resolve_statement(db, organization_id, statement_id)

        appetite_rows = []
        metric_rows = []
        if statement is not None:
            appetite_rows = db.query(RiskAppetiteCategory).filter(
                RiskAppetiteCategory.statement_id == statement.statement_id
            ).all()
            appetite_ids = [row.appetite_category_id for row in appetite_rows]
            if appetite_ids:
                metric_rows = db.query(ToleranceMetric).filter(
                    ToleranceMetric.appetite_category_id.in_(appetite_ids),
                    ToleranceMetric.is_active.is_(True),
                ).all()

        kri_ids = {metric.kri_id for metric in metric_rows if metric.kri_id is not None}
        latest_by_kri = {}
        kri_codes = {}
        if kri_ids:
            latest_by_kri = dict(
                db.query(KriValue.kri_id, func.max(KriValue.measurement_date)).filter(
                    KriValue.kri_id.in_(kri_ids)
                ).group_by(KriValue.kri_id).all()
            )
            kri_codes = dict(
                db.query(KriDefinition.kri_id, KriDefinition.kri_code).filter(
                    KriDefinition.kri_id.in_(kri_ids)
                ).all()
            )
    except SQLAlchemyError as exc:
        logger.exception("Appetite chain data could not be read for organization %s", organization_id)
        raise ChainDataUnavailable(
            "Appetite chain could not be validated: risk data is unavailable"
        ) from exc

    name_by_id = {row.appetite_category_id: row.risk_category for row in appetite_rows}
    appetite_levels = {_normalize(row.risk_category): row.appetite_level for row in appetite_rows}
    active_counts: Dict[str, int] = {}
    for metric in metric_rows:
        key = _normalize(name_by_id[metric.appetite_category_id])
        active_counts[key] = active_counts.get(key, 0) + 1

    version = statement.version_number if statement else None
    gaps = evaluate_chain(risk_category_names, appetite_levels, active_counts, version)

    advisories: List[ChainAdvisory] = []
    taxonomy_keys = {_normalize(name) for name in risk_category_names}
    for row in appetite_rows:
        if _normalize(row.risk_category) not in taxonomy_keys:
            advisories.append(ChainAdvisory(
                category=row.risk_category,
                issue="Not in taxonomy",
                detail=f"Appetite category '{row.risk_category}' does not match any risk category",
            ))

    cutoff = utc_today() - timedelta(days=settings.KRI_DATA_RECENCY_DAYS)
    for metric in metric_rows:
        category = name_by_id[metric.appetite_category_id]
        if metric.kri_id is None:
            advisories.append(ChainAdvisory(
                category=category,
                issue="Active metric without KRI",
                detail=f"Tolerance metric '{metric.metric_name}' is active but has no linked KRI",
            ))
            continue
        latest = latest_by_kri.get(metric.kri_id)
        if latest is None or latest < cutoff:
            code = kri_codes.get(metric.kri_id, metric.kri_id)
            advisories.append(ChainAdvisory(
                category=category,
                issue="Stale KRI data",
                detail=(
                    f"KRI {code} linked to '{metric.metric_name}' has no data in the last "
                    f"{settings.KRI_DATA_RECENCY_DAYS} days"
                ),
            ))

    return ChainValidationResult(
        is_valid=not gaps,
        statement_id=statement.statement_id if statement else None,
        statement_version=version,
        categories_checked=len(risk_category_names),
        gaps=gaps,
        advisories=advisories,
    )
