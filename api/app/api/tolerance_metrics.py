"""Tolerance metric routes."""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.appetite_governance import ToleranceMetricService
from app.core.database import get_db
from app.core.deps import require_governance_editor, require_org_member
from app.core.tolerance_evaluation import evaluate_metric
from app.models.appetite import MetricLifecycle, ToleranceMetric
from app.models.user import User
from app.schemas.appetite import (
    CanDeleteResponse,
    MetricActivateRequest,
    MetricCreate,
    MetricEvaluationResponse,
    MetricResponse,
    MetricUpdate,
    SupersedeRequest,
)

router = APIRouter()


@router.get("/", response_model=List[MetricResponse])
def list_metrics(
    appetite_category_id: Optional[int] = Query(None),
    lifecycle: Optional[MetricLifecycle] = Query(None, description="INACTIVE, ACTIVE or HISTORICAL"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_member)
):
    query = db.query(ToleranceMetric).filter(
        ToleranceMetric.organization_id == current_user.organization_id
    )
    if appetite_category_id is not None:
        query = query.filter(ToleranceMetric.appetite_category_id == appetite_category_id)
    if lifecycle == MetricLifecycle.ACTIVE:
        query = query.filter(ToleranceMetric.is_active.is_(True))
    elif lifecycle == MetricLifecycle.INACTIVE:
        query = query.filter(ToleranceMetric.is_active.is_(False), ToleranceMetric.never_activated.is_(True))
    elif lifecycle == MetricLifecycle.HISTORICAL:
        query = query.filter(ToleranceMetric.is_active.is_(False), ToleranceMetric.never_activated.is_(False))
    return query.order_by(ToleranceMetric.metric_name.asc(), ToleranceMetric.version.desc()).all()


@router.post("/", response_model=MetricResponse, status_code=status.HTTP_201_CREATED)
def create_metric(
    data: MetricCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_governance_editor)
):
    """Create a tolerance metric. It starts inactive whatever the request says."""
    metric = ToleranceMetricService(db, current_user.organization_id).create_metric(
        data.to_service_dict(), current_user.user_id)
    db.commit()
    db.refresh(metric)
    return metric


@router.get("/{metric_id}", response_model=MetricResponse)
def get_metric(
    metric_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_member)
):
    return ToleranceMetricService(db, current_user.organization_id).get_metric(metric_id)


@router.get("/{metric_id}/history", response_model=List[MetricResponse])
def get_metric_history(
    metric_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_member)
):
    """Every version of this metric, newest first."""
    metric = ToleranceMetricService(db, current_user.organization_id).get_metric(metric_id)
    return db.query(ToleranceMetric).filter(
        ToleranceMetric.organization_id == current_user.organization_id,
        ToleranceMetric.metric_key == metric.metric_key
    ).order_by(ToleranceMetric.version.desc()).all()


@router.patch("/{metric_id}", response_model=MetricResponse)
def update_metric(
    metric_id: int,
    data: MetricUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_governance_editor)
):
    metric = ToleranceMetricService(db, current_user.organization_id).update_metric(
        metric_id, data.model_dump(exclude_unset=True, mode="json"), current_user.user_id)
    db.commit()
    db.refresh(metric)
    return metric


@router.post("/{metric_id}/activate", response_model=MetricResponse)
def activate_metric(
    metric_id: int,
    data: Optional[MetricActivateRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_governance_editor)
):
    service = ToleranceMetricService(db, current_user.organization_id)
    if data is not None and data.kri_id is not None:
        service.update_metric(metric_id, {"kri_id": data.kri_id}, current_user.user_id)
    metric = service.activate(metric_id, current_user.user_id)
    db.commit()
    db.refresh(metric)
    return metric


@router.post("/{metric_id}/deactivate", response_model=MetricResponse)
def deactivate_metric(
    metric_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_governance_editor)
):
    metric = ToleranceMetricService(db, current_user.organization_id).deactivate(
        metric_id, current_user.user_id)
    db.commit()
    db.refresh(metric)
    return metric


@router.post("/{metric_id}/supersede", response_model=MetricResponse)
def supersede_metric(
    metric_id: int,
    data: SupersedeRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_governance_editor)
):
    """Deactivate the metric and return its new, inactive successor."""
    successor = ToleranceMetricService(db, current_user.organization_id).supersede(
        metric_id, data.new_effective_from, current_user.user_id)
    db.commit()
    db.refresh(successor)
    return successor


@router.get("/{metric_id}/can-delete", response_model=CanDeleteResponse)
def can_delete_metric(
    metric_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_member)
):
    allowed, reason = ToleranceMetricService(db, current_user.organization_id).can_delete(metric_id)
    return {"can_delete": allowed, "reason": reason}


@router.delete("/{metric_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_metric(
    metric_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_governance_editor)
):
    ToleranceMetricService(db, current_user.organization_id).delete(metric_id, current_user.user_id)
    db.commit()
    return None


@router.get("/{metric_id}/evaluation", response_model=MetricEvaluationResponse)
def evaluate_metric_status(
    metric_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_member)
):
    """RAG status of the metric against its KRI's latest observation."""
    metric = ToleranceMetricService(db, current_user.organization_id).get_metric(metric_id)
    return evaluate_metric(db, metric)
