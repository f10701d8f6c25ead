"""Audit logs routes."""
from datetime import date, datetime, time, timedelta
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_
from sqlalchemy.orm import Query as OrmQuery, Session, joinedload
from app.core.database import get_db
from app.core.deps import require_org_member
from app.models.user import User
from app.models.audit_log import AuditLog
from app.schemas.audit_log import AuditLogResponse

router = APIRouter()


def _split_csv(value: Optional[str]) -> List[str]:
    return [part.strip() for part in (value or "").split(",") if part.strip()]


def filter_audit_logs(
    query: OrmQuery,
    entity_type: Optional[str] = None,
    exclude_entity_types: Optional[str] = None,
    entity_id: Optional[int] = None,
    entity_code: Optional[str] = None,
    action: Optional[str] = None,
    user_id: Optional[int] = None,
    user_email: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    search: Optional[str] = None,
) -> OrmQuery:
    """Apply the audit trail filters shared by the organization and platform views.

    ``end_date`` is inclusive. ``search`` matches action, entity code or the
    acting user's email, case-insensitively.
    """
    needs_user = bool(user_email or search)
    if needs_user:
        query = query.outerjoin(User, User.user_id == AuditLog.user_id)

    if entity_type:
        query = query.filter(AuditLog.entity_type == entity_type)
    excluded = _split_csv(exclude_entity_types)
    if excluded:
        query = query.filter(AuditLog.entity_type.notin_(excluded))
    if entity_id is not None:
        query = query.filter(AuditLog.entity_id == entity_id)
    if entity_code:
        query = query.filter(AuditLog.entity_code.ilike(f"%{entity_code}%"))
    if action:
        query = query.filter(AuditLog.action == action)
    if user_id is not None:
        query = query.filter(AuditLog.user_id == user_id)
    if user_email:
        query = query.filter(User.email.ilike(f"%{user_email}%"))
    if start_date:
        query = query.filter(AuditLog.timestamp >= datetime.combine(start_date, time.min))
    if end_date:
        query = query.filter(AuditLog.timestamp < datetime.combine(end_date + timedelta(days=1), time.min))
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            AuditLog.action.ilike(pattern),
            AuditLog.entity_code.ilike(pattern),
            User.email.ilike(pattern),
        ))
    return query


@router.get("/", response_model=List[AuditLogResponse])
def list_audit_logs(
    entity_type: Optional[str] = Query(None, description="Filter by entity type (e.g., AppetiteStatement)"),
    exclude_entity_types: Optional[str] = Query(None, description="Comma-separated entity types to hide"),
    entity_id: Optional[int] = Query(None, description="Filter by specific entity ID"),
    entity_code: Optional[str] = Query(None, description="Partial match on entity code"),
    action: Optional[str] = Query(None, description="Filter by action (CREATE, UPDATE, DELETE)"),
    user_id: Optional[int] = Query(None, description="Filter by user who made the change"),
    user_email: Optional[str] = Query(None, description="Partial match on the acting user's email"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None, description="Inclusive"),
    search: Optional[str] = Query(None, description="Search action, entity code and user email"),
    limit: int = Query(100, ge=1, le=1000, description="Maximum number of results"),
    offset: int = Query(0, ge=0, description="Number of results to skip"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_member)
):
    """List the caller's organization audit trail, most recent first."""
    query = db.query(AuditLog).options(joinedload(AuditLog.user)).filter(
        AuditLog.organization_id == current_user.organization_id
    )
    query = filter_audit_logs(
        query, entity_type, exclude_entity_types, entity_id, entity_code, action,
        user_id, user_email, start_date, end_date, search,
    )
    return query.order_by(AuditLog.timestamp.desc(), AuditLog.log_id.desc()).offset(offset).limit(limit).all()


@router.get("/entity-types", response_model=List[str])
def get_entity_types(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_member)
):
    """Get all unique entity types from the organization's audit logs."""
    result = db.query(AuditLog.entity_type).filter(
        AuditLog.organization_id == current_user.organization_id
    ).distinct().order_by(AuditLog.entity_type).all()
    return [r[0] for r in result]


@router.get("/actions", response_model=List[str])
def get_actions(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_member)
):
    result = db.query(AuditLog.action).filter(
        AuditLog.organization_id == current_user.organization_id
    ).distinct().order_by(AuditLog.action).all()
    return [r[0] for r in result]
