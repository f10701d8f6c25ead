"""RAG evaluation of KRI observations against tolerance metrics."""
import enum
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from app.models.appetite import (
    MetricType,
    RiskAppetiteCategory,
    RiskAppetiteStatement,
    StatementStatus,
    ToleranceMetric,
)
from app.models.kri import KriValue


class RagStatus(str, enum.Enum):
    GREEN = "GREEN"
    AMBER = "AMBER"
    RED = "RED"
    UNKNOWN = "UNKNOWN"


@dataclass
class ThresholdResult:
    status: RagStatus
    threshold: str
    explanation: str


def _fmt(value: Optional[float], missing: str) -> str:
    return missing if value is None else f"{value:g}"


def evaluate_maximum(metric: ToleranceMetric, value: float) -> ThresholdResult:
    """Lower is better. Red starts above red_max, or at red_min when only that is set."""
    if metric.red_max is not None:
        if value > metric.red_max:
            return ThresholdResult(RagStatus.RED, f">{metric.red_max:g}",
                                   f"Value {value:g} exceeds maximum limit {metric.red_max:g}")
    elif metric.red_min is not None and value >= metric.red_min:
        return ThresholdResult(RagStatus.RED, f">={metric.red_min:g}",
                               f"Value {value:g} exceeds maximum limit {metric.red_min:g}")
    if metric.amber_max is not None and value > metric.amber_max:
        return ThresholdResult(RagStatus.AMBER, f">{metric.amber_max:g}",
                               f"Value {value:g} approaching maximum limit")
    limit = metric.green_max if metric.green_max is not None else metric.amber_max
    return ThresholdResult(RagStatus.GREEN, f"<={_fmt(limit, 'n/a')}",
                           f"Value {value:g} within acceptable limit")


def evaluate_minimum(metric: ToleranceMetric, value: float) -> ThresholdResult:
    """Higher is better."""
    if metric.red_min is not None and value < metric.red_min:
        return ThresholdResult(RagStatus.RED, f"<{metric.red_min:g}",
                               f"Value {value:g} below minimum requirement {metric.red_min:g}")
    if metric.amber_min is not None and value < metric.amber_min:
        return ThresholdResult(RagStatus.AMBER, f"<{metric.amber_min:g}",
                               f"Value {value:g} approaching minimum requirement")
    limit = metric.green_min if metric.green_min is not None else metric.amber_min
    return ThresholdResult(RagStatus.GREEN, f">={_fmt(limit, 'n/a')}",
                           f"Value {value:g} meets requirement")


def evaluate_range(metric: ToleranceMetric, value: float) -> ThresholdResult:
    if ((metric.red_min is not None and value < metric.red_min)
            or (metric.red_max is not None and value > metric.red_max)):
        return ThresholdResult(
            RagStatus.RED,
            f"outside {_fmt(metric.red_min, '-inf')} to {_fmt(metric.red_max, 'inf')}",
            f"Value {value:g} exceeds red boundaries",
        )
    if ((metric.amber_min is not None and value < metric.amber_min)
            or (metric.amber_max is not None and value > metric.amber_max)):
        return ThresholdResult(
            RagStatus.AMBER,
            f"outside {_fmt(metric.amber_min, '-inf')} to {_fmt(metric.amber_max, 'inf')}",
            f"Value {value:g} approaching limits",
        )
    return ThresholdResult(
        RagStatus.GREEN,
        f"{_fmt(metric.green_min, '-inf')} to {_fmt(metric.green_max, 'inf')}",
        f"Value {value:g} within acceptable range",
    )


def evaluate_directional(config: Optional[dict], current: float,
                         baseline: Optional[float]) -> ThresholdResult:
    """Compare the % change from ``baseline`` with the allowed adverse change.

    An adverse change above twice the allowance is RED, above the allowance AMBER.
    """
    if not config:
        return ThresholdResult(RagStatus.UNKNOWN, "No configuration",
                               "DIRECTIONAL metric missing config")
    if baseline is None:
        return ThresholdResult(RagStatus.UNKNOWN, "Insufficient history",
                               f"No data found for {config['lookback_days']} days ago")
    if baseline == 0:
        return ThresholdResult(RagStatus.UNKNOWN, "Zero baseline",
                               "Cannot calculate % change from zero baseline")

    change_pct = (current - baseline) / baseline * 100
    allowed = float(config["allowed_change_pct"])
    adverse = (
        (config["trend"] == "INCREASING_IS_BAD" and change_pct > 0)
        or (config["trend"] == "DECREASING_IS_BAD" and change_pct < 0)
    )
    if not adverse:
        return ThresholdResult(RagStatus.GREEN, "Favorable trend",
                               f"{change_pct:.1f}% change (favorable direction)")
    magnitude = abs(change_pct)
    if magnitude > allowed * 2:
        return ThresholdResult(RagStatus.RED, f">{allowed * 2:g}% change",
                               f"{change_pct:.1f}% adverse change (critical)")
    if magnitude > allowed:
        return ThresholdResult(RagStatus.AMBER, f"{allowed:g} to {allowed * 2:g}% change",
                               f"{change_pct:.1f}% adverse change (warning)")
    return ThresholdResult(RagStatus.GREEN, f"<={allowed:g}% change",
                           f"{change_pct:.1f}% change (acceptable)")


def evaluate_value(metric: ToleranceMetric, value: float,
                   baseline: Optional[float] = None) -> ThresholdResult:
    if metric.metric_type == MetricType.MAXIMUM.value:
        return evaluate_maximum(metric, value)
    if metric.metric_type == MetricType.MINIMUM.value:
        return evaluate_minimum(metric, value)
    if metric.metric_type == MetricType.RANGE.value:
        return evaluate_range(metric, value)
    if metric.metric_type == MetricType.DIRECTIONAL.value:
        return evaluate_directional(metric.directional_config, value, baseline)
    raise ValueError(f"Unknown metric_type: {metric.metric_type}")


def aggregate_status(statuses: Iterable[RagStatus]) -> RagStatus:
    """Worst status wins: RED, then AMBER, then UNKNOWN. Nothing to aggregate is UNKNOWN."""
    seen = set(statuses)
    if not seen:
        return RagStatus.UNKNOWN
    for status in (RagStatus.RED, RagStatus.AMBER, RagStatus.UNKNOWN):
        if status in seen:
            return status
    return RagStatus.GREEN


# ---------------------------------------------------------------------------
# Database-backed evaluation
# ---------------------------------------------------------------------------

@dataclass
class MetricEvaluation:
    metric_id: int
    metric_name: str
    kri_id: Optional[int]
    value: Optional[float]
    measurement_date: Optional[date]
    status: RagStatus
    threshold: str
    explanation: str


@dataclass
class CategoryEvaluation:
    appetite_category_id: int
    risk_category: str
    appetite_level: str
    status: RagStatus
    metrics: List[MetricEvaluation]


@dataclass
class EnterpriseEvaluation:
    statement_id: Optional[int]
    status: RagStatus
    categories: List[CategoryEvaluation]
    red_count: int
    amber_count: int
    green_count: int
    unknown_count: int


def _baseline(db: Session, kri_id: int, as_of: date, lookback_days: int) -> Optional[float]:
    cutoff = as_of - timedelta(days=lookback_days)
    row = db.query(KriValue.value).filter(
        KriValue.kri_id == kri_id,
        KriValue.measurement_date <= cutoff,
    ).order_by(KriValue.measurement_date.desc()).first()
    return row[0] if row else None


def evaluate_metric(db: Session, metric: ToleranceMetric) -> MetricEvaluation:
    """Evaluate a metric against the latest observation of its linked KRI."""
    latest = None
    if metric.kri_id is not None:
        latest = db.query(KriValue).filter(
            KriValue.kri_id == metric.kri_id
        ).order_by(KriValue.measurement_date.desc(), KriValue.value_id.desc()).first()

    if latest is None:
        return MetricEvaluation(
            metric_id=metric.metric_id, metric_name=metric.metric_name, kri_id=metric.kri_id,
            value=None, measurement_date=None, status=RagStatus.UNKNOWN,
            threshold="No data", explanation="No KRI observation recorded",
        )

    baseline = None
    if metric.metric_type == MetricType.DIRECTIONAL.value and metric.directional_config:
        baseline = _baseline(db, metric.kri_id, latest.measurement_date,
                             int(metric.directional_config["lookback_days"]))
    result = evaluate_value(metric, latest.value, baseline)
    return MetricEvaluation(
        metric_id=metric.metric_id, metric_name=metric.metric_name, kri_id=metric.kri_id,
        value=latest.value, measurement_date=latest.measurement_date, status=result.status,
        threshold=result.threshold, explanation=result.explanation,
    )


def evaluate_enterprise(db: Session, organization_id: int) -> EnterpriseEvaluation:
    """Status of every appetite category in the approved statement, from its active metrics."""
    statement = db.query(RiskAppetiteStatement).filter(
        RiskAppetiteStatement.organization_id == organization_id,
        RiskAppetiteStatement.status == StatementStatus.APPROVED.value,
    ).first()
    if statement is None:
        return EnterpriseEvaluation(None, RagStatus.UNKNOWN, [], 0, 0, 0, 0)

    categories = db.query(RiskAppetiteCategory).filter(
        RiskAppetiteCategory.statement_id == statement.statement_id
    ).order_by(RiskAppetiteCategory.risk_category).all()

    results = []
    for category in categories:
        metrics = db.query(ToleranceMetric).filter(
            ToleranceMetric.appetite_category_id == category.appetite_category_id,
            ToleranceMetric.is_active.is_(True),
        ).order_by(ToleranceMetric.metric_name).all()
        evaluations = [evaluate_metric(db, metric) for metric in metrics]
        results.append(CategoryEvaluation(
            appetite_category_id=category.appetite_category_id,
            risk_category=category.risk_category,
            appetite_level=category.appetite_level,
            status=aggregate_status(e.status for e in evaluations),
            metrics=evaluations,
        ))

    category_statuses = [c.status for c in results]
    return EnterpriseEvaluation(
        statement_id=statement.statement_id,
        status=aggregate_status(category_statuses),
        categories=results,
        red_count=category_statuses.count(RagStatus.RED),
        amber_count=category_statuses.count(RagStatus.AMBER),
        green_count=category_statuses.count(RagStatus.GREEN),
        unknown_count=category_statuses.count(RagStatus.UNKNOWN),
    )
