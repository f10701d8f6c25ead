"""Invitation management routes."""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.core.audit import create_audit_log
from app.core.database import get_db
from app.core.deps import require_org_admin
from app.core.invitations import (
    create_invitation,
    expire_stale_invitations,
    revoke_invitation,
    validate_invitation,
)
from app.core.roles import RoleCode, is_primary_admin
from app.models.invitation import UserInvitation
from app.models.user import User
from app.schemas.invitation import (
    CleanupResponse,
    InvitationCreate,
    InvitationResponse,
    InvitationRevokeRequest,
    InvitationValidateRequest,
    InvitationValidateResponse,
)

router = APIRouter()


@router.get("/", response_model=List[InvitationResponse])
def list_invitations(
    status_filter: Optional[str] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_admin)
):
    """List the organization's invitations, newest first."""
    query = db.query(UserInvitation).filter(
        UserInvitation.organization_id == current_user.organization_id
    )
    if status_filter:
        query = query.filter(UserInvitation.status == status_filter)
    return query.order_by(UserInvitation.created_at.desc(), UserInvitation.invitation_id.desc()).all()


@router.post("/", response_model=InvitationResponse, status_code=status.HTTP_201_CREATED)
def create_org_invitation(
    data: InvitationCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_admin)
):
    if data.role == RoleCode.PRIMARY_ADMIN.value and not is_primary_admin(current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only a primary admin can invite another primary admin"
        )
    invitation = create_invitation(
        db,
        organization_id=current_user.organization_id,
        email=data.email,
        role=data.role,
        created_by_id=current_user.user_id,
        expires_in_days=data.expires_in_days,
        notes=data.notes,
    )
    create_audit_log(db, "Invitation", invitation.invitation_id, "CREATE", current_user.user_id,
                     {"email": invitation.email, "role": invitation.role},
                     organization_id=current_user.organization_id, entity_code=invitation.invite_code)
    db.commit()
    db.refresh(invitation)
    return invitation


@router.post("/validate", response_model=InvitationValidateResponse)
def validate_invitation_code(data: InvitationValidateRequest, db: Session = Depends(get_db)):
    """Public check used by the signup form before an account exists."""
    result = validate_invitation(db, data.invite_code, data.email)
    db.commit()
    return result


@router.post("/cleanup", response_model=CleanupResponse)
def cleanup_expired_invitations(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_admin)
):
    """Mark the organization's past-due pending invitations as expired."""
    count = expire_stale_invitations(db, current_user.organization_id)
    db.commit()
    return {"expired_count": count}


@router.post("/{invitation_id}/revoke", response_model=InvitationResponse)
def revoke_org_invitation(
    invitation_id: int,
    data: InvitationRevokeRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_admin)
):
    invitation = revoke_invitation(
        db, current_user.organization_id, invitation_id, current_user.user_id, data.reason)
    create_audit_log(db, "Invitation", invitation.invitation_id, "REVOKE", current_user.user_id,
                     {"reason": data.reason},
                     organization_id=current_user.organization_id, entity_code=invitation.invite_code)
    db.commit()
    db.refresh(invitation)
    return invitation


@router.delete("/{invitation_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_invitation(
    invitation_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_admin)
):
    invitation = db.query(UserInvitation).filter(
        UserInvitation.invitation_id == invitation_id,
        UserInvitation.organization_id == current_user.organization_id
    ).first()
    if not invitation:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Invitation not found"
        )
    create_audit_log(db, "Invitation", invitation.invitation_id, "DELETE", current_user.user_id,
                     organization_id=current_user.organization_id, entity_code=invitation.invite_code)
    db.delete(invitation)
    db.commit()
    return None
