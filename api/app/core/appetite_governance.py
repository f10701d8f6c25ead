"""Lifecycle rules for risk appetite statements and tolerance metrics.

Statements
    DRAFT -> APPROVED -> SUPERSEDED. Only DRAFT statements can be edited,
    approved or deleted. At most one statement per organization is APPROVED.
    Superseding closes the approved statement and opens a new DRAFT version in
    the same transaction, moving its appetite categories across.

Appetite categories
    Locked once their statement leaves DRAFT. Deletable only while the parent
    is DRAFT and no tolerance metric references them.

Tolerance metrics
    Always created inactive. Activation needs a linked KRI. An activated metric
    is never hard-deleted: it is deactivated (soft close) or superseded by a
    new inactive version with the same thresholds.

The services only flush; the calling route commits, so every operation either
lands completely or not at all.
"""
from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Iterable, List, Optional, Tuple

from dateutil.relativedelta import relativedelta
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.audit import create_audit_log
from app.core.config import settings
from app.core.exceptions import (
    CannotDelete,
    EntityNotFound,
    GovernanceViolation,
    MissingKRILink,
    ValidationFailed,
)
from app.core.time import utc_now, utc_today, utc_tomorrow
from app.models.appetite import (
    MetricLifecycle,
    MetricType,
    RiskAppetiteCategory,
    RiskAppetiteStatement,
    StatementStatus,
    ToleranceMetric,
)
from app.models.kri import KriDefinition

logger = logging.getLogger(__name__)

THRESHOLD_FIELDS = ("green_min", "green_max", "amber_min", "amber_max", "red_min", "red_max")

# Copied verbatim from a metric to its superseding version
METRIC_CARRY_OVER_FIELDS = THRESHOLD_FIELDS + (
    "metric_name",
    "metric_description",
    "metric_type",
    "unit",
    "materiality_type",
    "directional_config",
    "kri_id",
    "appetite_category_id",
)

METRIC_EDITABLE_FIELDS = THRESHOLD_FIELDS + (
    "metric_name",
    "metric_description",
    "metric_type",
    "unit",
    "materiality_type",
    "directional_config",
    "kri_id",
)

DIRECTIONAL_TRENDS = ("INCREASING_IS_BAD", "DECREASING_IS_BAD")


# ---------------------------------------------------------------------------
# Delete-eligibility predicates
# ---------------------------------------------------------------------------

def statement_delete_block_reason(statement: RiskAppetiteStatement) -> Optional[str]:
    """Return why a statement cannot be deleted, or None if it can."""
    if statement.status == StatementStatus.APPROVED.value:
        return "Cannot delete approved appetite statement; supersede it to create a new version"
    if statement.status == StatementStatus.SUPERSEDED.value:
        return "Cannot delete superseded appetite statement; it is retained as governance history"
    return None


def category_delete_block_reason(
    statement_status: str, referencing_metric_count: int
) -> Optional[str]:
    if statement_status != StatementStatus.DRAFT.value:
        return (
            f"Cannot delete appetite category: parent statement is {statement_status}. "
            "Categories are locked once the statement is approved"
        )
    if referencing_metric_count > 0:
        return (
            f"Cannot delete appetite category: {referencing_metric_count} tolerance "
            "metric(s) reference it"
        )
    return None


def metric_delete_block_reason(is_active: bool, never_activated: bool) -> Optional[str]:
    """A metric is deletable iff it is inactive and has never been activated."""
    if is_active:
        return "Cannot delete an active tolerance metric; deactivate or supersede it instead"
    if not never_activated:
        return (
            "Cannot delete a tolerance metric that has been activated; "
            "it is retained for historical breach interpretation"
        )
    return None


# ---------------------------------------------------------------------------
# Threshold validation
# ---------------------------------------------------------------------------

def _assert_ordered(values: Iterable[Tuple[str, Optional[float]]], metric_type: str) -> None:
    present = [(name, value) for name, value in values if value is not None]
    for (low_name, low), (high_name, high) in zip(present, present[1:]):
        if low > high:
            raise ValidationFailed(
                f"{metric_type} thresholds out of order: {low_name} ({low}) must not exceed "
                f"{high_name} ({high})"
            )


def validate_thresholds(metric_type: str, values: dict) -> None:
    """Check that a metric's thresholds describe a coherent GREEN/AMBER/RED scale."""
    if metric_type not in MetricType._value2member_map_:
        raise ValidationFailed(f"Unknown metric type: {metric_type}")

    get = values.get
    if metric_type == MetricType.MAXIMUM.value:
        red = get("red_max") if get("red_max") is not None else get("red_min")
        if get("amber_max") is None and red is None:
            raise ValidationFailed("MAXIMUM metrics need an amber_max or red threshold")
        _assert_ordered(
            [("green_max", get("green_max")), ("amber_max", get("amber_max")), ("red", red)],
            metric_type,
        )
    elif metric_type == MetricType.MINIMUM.value:
        if get("amber_min") is None and get("red_min") is None:
            raise ValidationFailed("MINIMUM metrics need an amber_min or red_min threshold")
        _assert_ordered(
            [("red_min", get("red_min")), ("amber_min", get("amber_min")), ("green_min", get("green_min"))],
            metric_type,
        )
    elif metric_type == MetricType.RANGE.value:
        if all(get(field) is None for field in THRESHOLD_FIELDS):
            raise ValidationFailed("RANGE metrics need at least one threshold")
        _assert_ordered(
            [
                ("red_min", get("red_min")),
                ("amber_min", get("amber_min")),
                ("green_min", get("green_min")),
                ("green_max", get("green_max")),
                ("amber_max", get("amber_max")),
                ("red_max", get("red_max")),
            ],
            metric_type,
        )
    else:
        config = get("directional_config") or {}
        if not config:
            raise ValidationFailed("DIRECTIONAL metrics need a directional_config")
        lookback = config.get("lookback_days")
        allowed = config.get("allowed_change_pct")
        if not isinstance(lookback, int) or lookback <= 0:
            raise ValidationFailed("directional_config.lookback_days must be a positive integer")
        if not isinstance(allowed, (int, float)) or allowed <= 0:
            raise ValidationFailed("directional_config.allowed_change_pct must be positive")
        if config.get("trend") not in DIRECTIONAL_TRENDS:
            raise ValidationFailed(
                f"directional_config.trend must be one of {', '.join(DIRECTIONAL_TRENDS)}"
            )


# ---------------------------------------------------------------------------
# Statements and appetite categories
# ---------------------------------------------------------------------------

class AppetiteStatementService:
    """Statement and appetite-category lifecycle for one organization."""

    def __init__(self, db: Session, organization_id: int):
        self.db = db
        self.organization_id = organization_id

    def get_statement(self, statement_id: int, for_update: bool = False) -> RiskAppetiteStatement:
        query = self.db.query(RiskAppetiteStatement).filter(
            RiskAppetiteStatement.statement_id == statement_id,
            RiskAppetiteStatement.organization_id == self.organization_id,
        )
        if for_update:
            query = query.with_for_update()
        statement = query.first()
        if not statement:
            raise EntityNotFound("Appetite statement", statement_id)
        return statement

    def get_category(self, appetite_category_id: int) -> RiskAppetiteCategory:
        category = self.db.query(RiskAppetiteCategory).filter(
            RiskAppetiteCategory.appetite_category_id == appetite_category_id,
            RiskAppetiteCategory.organization_id == self.organization_id,
        ).first()
        if not category:
            raise EntityNotFound("Appetite category", appetite_category_id)
        return category

    def current_approved(self) -> Optional[RiskAppetiteStatement]:
        return self.db.query(RiskAppetiteStatement).filter(
            RiskAppetiteStatement.organization_id == self.organization_id,
            RiskAppetiteStatement.status == StatementStatus.APPROVED.value,
        ).first()

    def _next_version(self) -> int:
        current = self.db.query(func.max(RiskAppetiteStatement.version_number)).filter(
            RiskAppetiteStatement.organization_id == self.organization_id
        ).scalar()
        return (current or 0) + 1

    def _lock_organization_statements(self) -> List[RiskAppetiteStatement]:
        return self.db.query(RiskAppetiteStatement).filter(
            RiskAppetiteStatement.organization_id == self.organization_id
        ).order_by(RiskAppetiteStatement.statement_id.asc()).with_for_update().all()

    def _audit(self, entity_type: str, entity_id: int, action: str, actor_id: Optional[int],
               changes: Optional[dict] = None, entity_code: Optional[str] = None) -> None:
        create_audit_log(
            self.db, entity_type, entity_id, action, actor_id, changes,
            organization_id=self.organization_id, entity_code=entity_code,
        )

    # Statements ------------------------------------------------------------

    def create_statement(
        self,
        statement_text: str,
        effective_from: Optional[date],
        actor_id: Optional[int],
        next_review_date: Optional[date] = None,
    ) -> RiskAppetiteStatement:
        if not statement_text or not statement_text.strip():
            raise ValidationFailed("Statement text is required")

        effective_from = effective_from or utc_today()
        statement = RiskAppetiteStatement(
            organization_id=self.organization_id,
            version_number=self._next_version(),
            statement_text=statement_text.strip(),
            status=StatementStatus.DRAFT.value,
            effective_from=effective_from,
            next_review_date=next_review_date or (
                effective_from + relativedelta(months=settings.STATEMENT_REVIEW_MONTHS)),
            created_by_id=actor_id,
        )
        self.db.add(statement)
        self.db.flush()
        self._audit("AppetiteStatement", statement.statement_id, "CREATE", actor_id,
                    {"version_number": statement.version_number},
                    entity_code=f"v{statement.version_number}")
        return statement

    def update_statement(self, statement_id: int, updates: dict, actor_id: Optional[int]) -> RiskAppetiteStatement:
        statement = self.get_statement(statement_id, for_update=True)
        if statement.status != StatementStatus.DRAFT.value:
            raise GovernanceViolation(
                f"Only DRAFT statements can be edited (version {statement.version_number} "
                f"is {statement.status}); supersede it to make changes"
            )
        if "statement_text" in updates:
            text = updates["statement_text"]
            if not text or not text.strip():
                raise ValidationFailed("Statement text is required")
            updates["statement_text"] = text.strip()

        changes = {}
        for field, value in updates.items():
            old_value = getattr(statement, field)
            if old_value != value:
                changes[field] = {"old": str(old_value) if old_value is not None else None,
                                  "new": str(value) if value is not None else None}
                setattr(statement, field, value)
        if changes:
            self.db.flush()
            self._audit("AppetiteStatement", statement.statement_id, "UPDATE", actor_id, changes,
                        entity_code=f"v{statement.version_number}")
        return statement

    def approve(self, statement_id: int, approver_id: int) -> RiskAppetiteStatement:
        # Serialize approvals per organization before checking the single-approved rule
        self._lock_organization_statements()
        statement = self.get_statement(statement_id)

        if statement.status != StatementStatus.DRAFT.value:
            raise GovernanceViolation(
                f"Only DRAFT statements can be approved (version {statement.version_number} "
                f"is {statement.status})"
            )

        already_approved = self.current_approved()
        if already_approved is not None:
            raise GovernanceViolation(
                f"Appetite statement version {already_approved.version_number} is already "
                "approved; supersede it before approving another version"
            )

        if settings.APPETITE_APPROVAL_REQUIRES_VALID_CHAIN:
            from app.core.appetite_chain import validate_chain, GapSeverity

            result = validate_chain(self.db, self.organization_id, statement_id=statement.statement_id)
            critical = [gap for gap in result.gaps if gap.severity == GapSeverity.CRITICAL]
            if critical:
                names = ", ".join(gap.category for gap in critical)
                raise GovernanceViolation(
                    f"Cannot approve statement with critical appetite chain gaps: {names}"
                )

        statement.status = StatementStatus.APPROVED.value
        statement.approved_by_id = approver_id
        statement.approved_at = utc_now()
        self.db.flush()
        self._audit("AppetiteStatement", statement.statement_id, "APPROVE", approver_id,
                    {"status": {"old": StatementStatus.DRAFT.value, "new": StatementStatus.APPROVED.value}},
                    entity_code=f"v{statement.version_number}")
        logger.info("Organization %s approved appetite statement v%s",
                    self.organization_id, statement.version_number)
        return statement

    def supersede(
        self,
        statement_id: int,
        new_effective_from: Optional[date],
        actor_id: Optional[int],
    ) -> RiskAppetiteStatement:
        """Close an APPROVED statement and return its new DRAFT successor."""
        self._lock_organization_statements()
        old = self.get_statement(statement_id)
        if old.status != StatementStatus.APPROVED.value:
            raise GovernanceViolation(
                f"Only APPROVED statements can be superseded (version {old.version_number} "
                f"is {old.status})"
            )

        new_effective_from = new_effective_from or utc_tomorrow()
        old.status = StatementStatus.SUPERSEDED.value
        old.superseded_at = utc_now()
        old.effective_to = utc_today()
        self.db.flush()

        successor = RiskAppetiteStatement(
            organization_id=self.organization_id,
            version_number=self._next_version(),
            statement_text=old.statement_text,
            status=StatementStatus.DRAFT.value,
            effective_from=new_effective_from,
            next_review_date=new_effective_from + relativedelta(months=settings.STATEMENT_REVIEW_MONTHS),
            supersedes_statement_id=old.statement_id,
            created_by_id=actor_id,
        )
        self.db.add(successor)
        self.db.flush()

        migrated = self.db.query(RiskAppetiteCategory).filter(
            RiskAppetiteCategory.statement_id == old.statement_id
        ).update({"statement_id": successor.statement_id}, synchronize_session=False)
        self.db.expire(old, ["categories"])

        self._audit("AppetiteStatement", old.statement_id, "SUPERSEDE", actor_id,
                    {"superseded_by_statement_id": successor.statement_id,
                     "categories_migrated": migrated},
                    entity_code=f"v{old.version_number}")
        self._audit("AppetiteStatement", successor.statement_id, "CREATE", actor_id,
                    {"version_number": successor.version_number,
                     "supersedes_statement_id": old.statement_id},
                    entity_code=f"v{successor.version_number}")
        logger.info("Organization %s superseded appetite statement v%s with v%s (%s categories moved)",
                    self.organization_id, old.version_number, successor.version_number, migrated)
        return successor

    def can_delete_statement(self, statement_id: int) -> Tuple[bool, Optional[str]]:
        statement = self.get_statement(statement_id)
        reason = statement_delete_block_reason(statement)
        if reason is None:
            metric_count = self._metric_count_for_statement(statement.statement_id)
            if metric_count:
                reason = (
                    f"Cannot delete appetite statement: {metric_count} tolerance metric(s) "
                    "reference its categories"
                )
        return reason is None, reason

    def _metric_count_for_statement(self, statement_id: int) -> int:
        return self.db.query(func.count(ToleranceMetric.metric_id)).join(
            RiskAppetiteCategory,
            ToleranceMetric.appetite_category_id == RiskAppetiteCategory.appetite_category_id,
        ).filter(RiskAppetiteCategory.statement_id == statement_id).scalar() or 0

    def delete_statement(self, statement_id: int, actor_id: Optional[int]) -> None:
        statement = self.get_statement(statement_id, for_update=True)
        allowed, reason = self.can_delete_statement(statement_id)
        if not allowed:
            raise CannotDelete(reason)

        version = statement.version_number
        self.db.query(RiskAppetiteCategory).filter(
            RiskAppetiteCategory.statement_id == statement.statement_id
        ).delete(synchronize_session=False)
        self.db.delete(statement)
        self.db.flush()
        self._audit("AppetiteStatement", statement_id, "DELETE", actor_id,
                    {"version_number": version}, entity_code=f"v{version}")
        logger.info("Organization %s deleted draft appetite statement v%s", self.organization_id, version)

    # Categories ------------------------------------------------------------

    def create_category(
        self,
        statement_id: int,
        risk_category: str,
        appetite_level: str,
        rationale: Optional[str],
        actor_id: Optional[int],
    ) -> RiskAppetiteCategory:
        statement = self.get_statement(statement_id)
        if not risk_category or not risk_category.strip():
            raise ValidationFailed("Risk category is required")
        name = risk_category.strip()
        duplicate = self.db.query(RiskAppetiteCategory.appetite_category_id).filter(
            RiskAppetiteCategory.statement_id == statement.statement_id,
            func.lower(func.trim(RiskAppetiteCategory.risk_category)) == name.lower(),
        ).first()
        if duplicate:
            raise ValidationFailed(
                f"Appetite statement v{statement.version_number} already has an appetite for '{name}'"
            )
        category = RiskAppetiteCategory(
            organization_id=self.organization_id,
            statement_id=statement.statement_id,
            risk_category=name,
            appetite_level=appetite_level,
            rationale=rationale,
        )
        self.db.add(category)
        self.db.flush()
        self._audit("AppetiteCategory", category.appetite_category_id, "CREATE", actor_id,
                    {"statement_id": statement.statement_id, "appetite_level": appetite_level},
                    entity_code=category.risk_category)
        return category

    def update_category(self, appetite_category_id: int, updates: dict,
                        actor_id: Optional[int]) -> RiskAppetiteCategory:
        category = self.get_category(appetite_category_id)
        if category.statement.status != StatementStatus.DRAFT.value:
            raise GovernanceViolation(
                f"Appetite category is locked: parent statement is {category.statement.status}"
            )
        changes = {}
        for field, value in updates.items():
            old_value = getattr(category, field)
            if old_value != value:
                changes[field] = {"old": old_value, "new": value}
                setattr(category, field, value)
        if changes:
            self.db.flush()
            self._audit("AppetiteCategory", category.appetite_category_id, "UPDATE", actor_id,
                        changes, entity_code=category.risk_category)
        return category

    def can_delete_category(self, appetite_category_id: int) -> Tuple[bool, Optional[str]]:
        category = self.get_category(appetite_category_id)
        metric_count = self.db.query(func.count(ToleranceMetric.metric_id)).filter(
            ToleranceMetric.appetite_category_id == category.appetite_category_id
        ).scalar() or 0
        reason = category_delete_block_reason(category.statement.status, metric_count)
        return reason is None, reason

    def delete_category(self, appetite_category_id: int, actor_id: Optional[int]) -> None:
        allowed, reason = self.can_delete_category(appetite_category_id)
        if not allowed:
            raise CannotDelete(reason)
        category = self.get_category(appetite_category_id)
        name = category.risk_category
        self.db.delete(category)
        self.db.flush()
        self._audit("AppetiteCategory", appetite_category_id, "DELETE", actor_id, entity_code=name)


# ---------------------------------------------------------------------------
# Tolerance metrics
# ---------------------------------------------------------------------------

class ToleranceMetricService:
    """Tolerance metric lifecycle for one organization."""

    def __init__(self, db: Session, organization_id: int):
        self.db = db
        self.organization_id = organization_id

    def get_metric(self, metric_id: int, for_update: bool = False) -> ToleranceMetric:
        query = self.db.query(ToleranceMetric).filter(
            ToleranceMetric.metric_id == metric_id,
            ToleranceMetric.organization_id == self.organization_id,
        )
        if for_update:
            query = query.with_for_update()
        metric = query.first()
        if not metric:
            raise EntityNotFound("Tolerance metric", metric_id)
        return metric

    def _assert_category(self, appetite_category_id: int) -> RiskAppetiteCategory:
        category = self.db.query(RiskAppetiteCategory).filter(
            RiskAppetiteCategory.appetite_category_id == appetite_category_id,
            RiskAppetiteCategory.organization_id == self.organization_id,
        ).first()
        if not category:
            raise EntityNotFound("Appetite category", appetite_category_id)
        return category

    def _assert_kri(self, kri_id: Optional[int]) -> None:
        if kri_id is None:
            return
        exists = self.db.query(KriDefinition.kri_id).filter(
            KriDefinition.kri_id == kri_id,
            KriDefinition.organization_id == self.organization_id,
        ).first()
        if not exists:
            raise EntityNotFound("KRI", kri_id)

    def _audit(self, metric: ToleranceMetric, action: str, actor_id: Optional[int],
               changes: Optional[dict] = None) -> None:
        create_audit_log(
            self.db, "ToleranceMetric", metric.metric_id, action, actor_id, changes,
            organization_id=self.organization_id,
            entity_code=f"{metric.metric_name} v{metric.version}",
        )

    def create_metric(self, data: dict, actor_id: Optional[int]) -> ToleranceMetric:
        """Create a metric. Any requested activation is ignored: new metrics start inactive."""
        self._assert_category(data["appetite_category_id"])
        self._assert_kri(data.get("kri_id"))
        validate_thresholds(data["metric_type"], data)

        metric = ToleranceMetric(
            organization_id=self.organization_id,
            appetite_category_id=data["appetite_category_id"],
            metric_key=uuid.uuid4().hex,
            version=1,
            is_active=False,
            never_activated=True,
            effective_from=data.get("effective_from"),
            created_by_id=actor_id,
            **{field: data.get(field) for field in METRIC_EDITABLE_FIELDS if field in data},
        )
        self.db.add(metric)
        self.db.flush()
        self._audit(metric, "CREATE", actor_id, {"metric_type": metric.metric_type})
        return metric

    def update_metric(self, metric_id: int, updates: dict, actor_id: Optional[int]) -> ToleranceMetric:
        metric = self.get_metric(metric_id, for_update=True)
        if not metric.never_activated:
            raise GovernanceViolation(
                "Tolerance metric has been activated and can no longer be edited; "
                "supersede it to change thresholds"
            )
        unknown = set(updates) - set(METRIC_EDITABLE_FIELDS)
        if unknown:
            raise ValidationFailed(f"Fields cannot be edited: {', '.join(sorted(unknown))}")
        if "kri_id" in updates:
            self._assert_kri(updates["kri_id"])

        merged = {field: getattr(metric, field) for field in METRIC_EDITABLE_FIELDS}
        merged.update(updates)
        validate_thresholds(merged["metric_type"], merged)

        changes = {}
        for field, value in updates.items():
            old_value = getattr(metric, field)
            if old_value != value:
                changes[field] = {"old": old_value, "new": value}
                setattr(metric, field, value)
        if changes:
            self.db.flush()
            self._audit(metric, "UPDATE", actor_id, changes)
        return metric

    def activate(self, metric_id: int, actor_id: int) -> ToleranceMetric:
        metric = self.get_metric(metric_id, for_update=True)
        if metric.kri_id is None:
            raise MissingKRILink(
                "Tolerance metric cannot be activated without a linked KRI"
            )
        if metric.is_active:
            raise GovernanceViolation("Tolerance metric is already active")
        if metric.lifecycle == MetricLifecycle.HISTORICAL:
            raise GovernanceViolation(
                "Historical tolerance metrics cannot be re-activated; supersede the current version instead"
            )
        self._assert_kri(metric.kri_id)

        other_active = self.db.query(ToleranceMetric).filter(
            ToleranceMetric.organization_id == self.organization_id,
            ToleranceMetric.metric_key == metric.metric_key,
            ToleranceMetric.metric_id != metric.metric_id,
            ToleranceMetric.is_active.is_(True),
        ).with_for_update().first()
        if other_active:
            raise GovernanceViolation(
                f"Version {other_active.version} of this metric is already active"
            )

        metric.is_active = True
        metric.never_activated = False
        metric.activated_by_id = actor_id
        metric.activated_at = utc_now()
        metric.effective_to = None
        if metric.effective_from is None:
            metric.effective_from = utc_today()
        self.db.flush()
        self._audit(metric, "ACTIVATE", actor_id, {"kri_id": metric.kri_id})
        logger.info("Activated tolerance metric %s v%s", metric.metric_id, metric.version)
        return metric

    def _close(self, metric: ToleranceMetric) -> None:
        metric.is_active = False
        metric.effective_to = utc_today()
        metric.deactivated_at = utc_now()

    def deactivate(self, metric_id: int, actor_id: Optional[int]) -> ToleranceMetric:
        metric = self.get_metric(metric_id, for_update=True)
        if not metric.is_active:
            raise GovernanceViolation("Only active tolerance metrics can be deactivated")
        self._close(metric)
        self.db.flush()
        self._audit(metric, "DEACTIVATE", actor_id, {"effective_to": str(metric.effective_to)})
        logger.info("Deactivated tolerance metric %s v%s", metric.metric_id, metric.version)
        return metric

    def supersede(
        self,
        metric_id: int,
        new_effective_from: Optional[date],
        actor_id: Optional[int],
    ) -> ToleranceMetric:
        """Deactivate an active metric and return a new inactive version with the same thresholds."""
        old = self.get_metric(metric_id, for_update=True)
        if not old.is_active:
            raise GovernanceViolation("Only active tolerance metrics can be superseded")

        self._close(old)
        self.db.flush()

        latest_version = self.db.query(func.max(ToleranceMetric.version)).filter(
            ToleranceMetric.organization_id == self.organization_id,
            ToleranceMetric.metric_key == old.metric_key,
        ).scalar() or old.version

        successor = ToleranceMetric(
            organization_id=self.organization_id,
            metric_key=old.metric_key,
            version=latest_version + 1,
            is_active=False,
            never_activated=True,
            effective_from=new_effective_from or utc_tomorrow(),
            supersedes_metric_id=old.metric_id,
            created_by_id=actor_id,
            **{field: getattr(old, field) for field in METRIC_CARRY_OVER_FIELDS},
        )
        if successor.directional_config is not None:
            successor.directional_config = dict(successor.directional_config)
        self.db.add(successor)
        self.db.flush()

        self._audit(old, "SUPERSEDE", actor_id, {"superseded_by_metric_id": successor.metric_id})
        self._audit(successor, "CREATE", actor_id, {"supersedes_metric_id": old.metric_id})
        logger.info("Superseded tolerance metric %s v%s with v%s",
                    old.metric_id, old.version, successor.version)
        return successor

    def can_delete(self, metric_id: int) -> Tuple[bool, Optional[str]]:
        metric = self.get_metric(metric_id)
        reason = metric_delete_block_reason(metric.is_active, metric.never_activated)
        return reason is None, reason

    def delete(self, metric_id: int, actor_id: Optional[int]) -> None:
        metric = self.get_metric(metric_id, for_update=True)
        reason = metric_delete_block_reason(metric.is_active, metric.never_activated)
        if reason:
            raise CannotDelete(reason)
        self._audit(metric, "DELETE", actor_id)
        self.db.delete(metric)
        self.db.flush()
