"""Platform (super admin) routes: tenants, metrics, sessions and seed library."""
import logging
from datetime import date, timedelta
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from app.api.audit_logs import filter_audit_logs
from app.core.audit import create_audit_log
from app.core.config import settings
from app.core.database import get_db
from app.core.deps import require_super_admin
from app.core.invitations import create_invitation
from app.core.roles import RoleCode
from app.core.time import utc_now
from app.models.audit_log import AuditLog
from app.models.invitation import InvitationStatus, UserInvitation
from app.models.library import SeedLibraryItem
from app.models.organization import Organization, OrganizationStatus
from app.models.user import User
from app.schemas.audit_log import AuditLogResponse
from app.schemas.invitation import InvitationResponse
from app.schemas.library import SeedItemCreate, SeedItemResponse
from app.schemas.organization import (
    ActiveSessionResponse,
    OrganizationAdminListItem,
    OrganizationCreate,
    OrganizationResponse,
    OrganizationUpdate,
    PlatformMetrics,
    PrimaryAdminInviteRequest,
    SuspensionResult,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def get_organization(db: Session, organization_id: int) -> Organization:
    org = db.query(Organization).filter(Organization.organization_id == organization_id).first()
    if not org:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Organization not found"
        )
    return org


def _count_users(db: Session, organization_id: int) -> int:
    return db.query(User).filter(User.organization_id == organization_id).count()


# ==================== ORGANIZATIONS ====================

@router.get("/organizations", response_model=List[OrganizationAdminListItem])
def list_organizations(
    status_filter: Optional[OrganizationStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_super_admin)
):
    """All tenants with their user counts, newest first."""
    user_counts = db.query(
        User.organization_id, func.count(User.user_id).label("user_count")
    ).filter(User.organization_id.isnot(None)).group_by(User.organization_id).subquery()

    query = db.query(Organization, func.coalesce(user_counts.c.user_count, 0)).outerjoin(
        user_counts, user_counts.c.organization_id == Organization.organization_id
    )
    if status_filter:
        query = query.filter(Organization.status == status_filter.value)
    rows = query.order_by(Organization.created_at.desc(), Organization.organization_id.desc()).all()

    result = []
    for org, user_count in rows:
        item = OrganizationResponse.model_validate(org).model_dump()
        item["user_count"] = user_count
        result.append(item)
    return result


@router.post("/organizations", response_model=OrganizationResponse, status_code=status.HTTP_201_CREATED)
def create_organization(
    data: OrganizationCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_super_admin)
):
    code = data.code.strip().upper()
    if db.query(Organization.organization_id).filter(Organization.code == code).first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Organization with this code already exists"
        )
    org = Organization(code=code, **data.model_dump(exclude={"code"}))
    db.add(org)
    db.flush()
    create_audit_log(db, "Organization", org.organization_id, "CREATE", current_user.user_id,
                     {"name": org.name}, entity_code=code)
    db.commit()
    db.refresh(org)
    logger.info("Organization %s created by user %s", code, current_user.user_id)
    return org


@router.get("/organizations/{organization_id}", response_model=OrganizationAdminListItem)
def get_organization_detail(
    organization_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_super_admin)
):
    org = get_organization(db, organization_id)
    item = OrganizationResponse.model_validate(org).model_dump()
    item["user_count"] = _count_users(db, organization_id)
    return item


@router.patch("/organizations/{organization_id}", response_model=OrganizationResponse)
def update_organization(
    organization_id: int,
    data: OrganizationUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_super_admin)
):
    org = get_organization(db, organization_id)
    changes = {}
    for field, value in data.model_dump(exclude_unset=True).items():
        if getattr(org, field) != value:
            changes[field] = {"old": getattr(org, field), "new": value}
            setattr(org, field, value)
    if changes:
        create_audit_log(db, "Organization", org.organization_id, "UPDATE", current_user.user_id,
                         changes, entity_code=org.code)
        db.commit()
        db.refresh(org)
    return org


@router.post("/organizations/{organization_id}/suspend", response_model=SuspensionResult)
def suspend_organization(
    organization_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_super_admin)
):
    """Suspend a tenant. Its members can no longer log in or call the API."""
    org = get_organization(db, organization_id)
    if org.status == OrganizationStatus.SUSPENDED.value:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Organization is already suspended"
        )
    org.status = OrganizationStatus.SUSPENDED.value
    org.suspended_at = utc_now()
    org.suspended_by_id = current_user.user_id
    users_affected = _count_users(db, organization_id)
    create_audit_log(db, "Organization", org.organization_id, "SUSPEND", current_user.user_id,
                     {"users_affected": users_affected}, entity_code=org.code)
    db.commit()
    logger.warning("Organization %s suspended (%d users affected)", org.code, users_affected)
    return {"organization_id": org.organization_id, "status": org.status,
            "users_affected": users_affected}


@router.post("/organizations/{organization_id}/reactivate", response_model=SuspensionResult)
def reactivate_organization(
    organization_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_super_admin)
):
    org = get_organization(db, organization_id)
    if org.status != OrganizationStatus.SUSPENDED.value:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Organization is not suspended"
        )
    org.status = OrganizationStatus.ACTIVE.value
    org.suspended_at = None
    org.suspended_by_id = None
    users_affected = _count_users(db, organization_id)
    create_audit_log(db, "Organization", org.organization_id, "REACTIVATE", current_user.user_id,
                     {"users_affected": users_affected}, entity_code=org.code)
    db.commit()
    return {"organization_id": org.organization_id, "status": org.status,
            "users_affected": users_affected}


@router.post("/organizations/{organization_id}/invite-admin", response_model=InvitationResponse,
             status_code=status.HTTP_201_CREATED)
def invite_primary_admin(
    organization_id: int,
    data: PrimaryAdminInviteRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_super_admin)
):
    """Issue an invitation that registers its holder as the organization's primary admin."""
    org = get_organization(db, organization_id)
    invitation = create_invitation(
        db, org.organization_id, data.email, RoleCode.PRIMARY_ADMIN.value, current_user.user_id,
        expires_in_days=data.expires_in_days, notes=data.notes,
    )
    create_audit_log(db, "UserInvitation", invitation.invitation_id, "INVITE_PRIMARY_ADMIN",
                     current_user.user_id, {"email": invitation.email},
                     organization_id=org.organization_id, entity_code=invitation.invite_code)
    db.commit()
    db.refresh(invitation)
    return invitation


# ==================== METRICS & SESSIONS ====================

@router.get("/metrics", response_model=PlatformMetrics)
def get_platform_metrics(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_super_admin)
):
    org_counts = dict(db.query(Organization.status, func.count(Organization.organization_id)).group_by(
        Organization.status).all())
    users_by_status = dict(db.query(User.status, func.count(User.user_id)).group_by(User.status).all())
    users_by_role = dict(db.query(User.role, func.count(User.user_id)).group_by(User.role).all())
    pending_invitations = db.query(UserInvitation).filter(
        UserInvitation.status == InvitationStatus.PENDING.value,
        UserInvitation.expires_at > utc_now()
    ).count()
    window_start = utc_now() - timedelta(minutes=settings.ACTIVE_SESSION_WINDOW_MINUTES)
    active_users = db.query(User).filter(User.last_active_at >= window_start).count()

    return {
        "total_organizations": sum(org_counts.values()),
        "active_organizations": org_counts.get(OrganizationStatus.ACTIVE.value, 0),
        "suspended_organizations": org_counts.get(OrganizationStatus.SUSPENDED.value, 0),
        "total_users": sum(users_by_status.values()),
        "users_by_status": users_by_status,
        "users_by_role": users_by_role,
        "pending_invitations": pending_invitations,
        "active_users": active_users,
    }


@router.get("/active-sessions", response_model=List[ActiveSessionResponse])
def list_active_sessions(
    window_minutes: Optional[int] = Query(None, ge=1, le=1440),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_super_admin)
):
    """Users whose last heartbeat falls inside the window, most recent first."""
    minutes = window_minutes or settings.ACTIVE_SESSION_WINDOW_MINUTES
    window_start = utc_now() - timedelta(minutes=minutes)
    users = db.query(User).options(joinedload(User.organization)).filter(
        User.last_active_at >= window_start
    ).order_by(User.last_active_at.desc()).all()
    return [
        {
            "user_id": user.user_id,
            "email": user.email,
            "full_name": user.full_name,
            "role": user.role,
            "organization_id": user.organization_id,
            "organization_name": user.organization.name if user.organization else None,
            "last_active_at": user.last_active_at,
        }
        for user in users
    ]


@router.get("/audit-logs", response_model=List[AuditLogResponse])
def list_platform_audit_logs(
    organization_id: Optional[int] = Query(None, description="Restrict to one organization"),
    platform_only: bool = Query(False, description="Only actions not tied to an organization"),
    entity_type: Optional[str] = Query(None),
    exclude_entity_types: Optional[str] = Query(None),
    entity_id: Optional[int] = Query(None),
    entity_code: Optional[str] = Query(None),
    action: Optional[str] = Query(None),
    user_id: Optional[int] = Query(None),
    user_email: Optional[str] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    search: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_super_admin)
):
    query = db.query(AuditLog).options(joinedload(AuditLog.user))
    if platform_only:
        query = query.filter(AuditLog.organization_id.is_(None))
    elif organization_id is not None:
        query = query.filter(AuditLog.organization_id == organization_id)
    query = filter_audit_logs(
        query, entity_type, exclude_entity_types, entity_id, entity_code, action,
        user_id, user_email, start_date, end_date, search,
    )
    return query.order_by(AuditLog.timestamp.desc(), AuditLog.log_id.desc()).offset(offset).limit(limit).all()


# ==================== SEED LIBRARY ====================

@router.get("/seed-items", response_model=List[SeedItemResponse])
def list_seed_items(
    item_type: Optional[str] = Query(None),
    include_inactive: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_super_admin)
):
    query = db.query(SeedLibraryItem)
    if item_type:
        query = query.filter(SeedLibraryItem.item_type == item_type)
    if not include_inactive:
        query = query.filter(SeedLibraryItem.is_active.is_(True))
    return query.order_by(SeedLibraryItem.item_type, SeedLibraryItem.code).all()


@router.post("/seed-items", response_model=SeedItemResponse, status_code=status.HTTP_201_CREATED)
def create_seed_item(
    data: SeedItemCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_super_admin)
):
    code = data.code.strip().upper()
    if db.query(SeedLibraryItem.seed_id).filter(SeedLibraryItem.code == code).first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Seed item with this code already exists"
        )
    item = SeedLibraryItem(**{**data.model_dump(), "code": code})
    db.add(item)
    db.flush()
    create_audit_log(db, "SeedLibraryItem", item.seed_id, "CREATE", current_user.user_id,
                     {"item_type": item.item_type}, entity_code=code)
    db.commit()
    db.refresh(item)
    return item


@router.delete("/seed-items/{seed_id}", status_code=status.HTTP_204_NO_CONTENT)
def deactivate_seed_item(
    seed_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_super_admin)
):
    """Retire a seed item. Libraries already generated from it are untouched."""
    item = db.query(SeedLibraryItem).filter(SeedLibraryItem.seed_id == seed_id).first()
    if not item:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Seed item not found"
        )
    item.is_active = False
    create_audit_log(db, "SeedLibraryItem", item.seed_id, "DEACTIVATE", current_user.user_id,
                     entity_code=item.code)
    db.commit()
    return None
