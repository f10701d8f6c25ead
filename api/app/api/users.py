"""Organization user administration: approval, roles and status."""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.core.audit import create_audit_log
from app.core.database import get_db
from app.core.deps import require_org_admin, require_org_member
from app.core.roles import ORG_ASSIGNABLE_ROLES, RoleCode, is_primary_admin, normalize_role_code
from app.core.time import utc_now
from app.models.user import User, UserStatus
from app.schemas.user import UserResponse, UserRoleUpdate, UserStatusUpdate

router = APIRouter()


def get_org_user(db: Session, organization_id: int, user_id: int) -> User:
    user = db.query(User).filter(
        User.user_id == user_id,
        User.organization_id == organization_id
    ).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return user


@router.get("/", response_model=List[UserResponse])
def list_users(
    status_filter: Optional[str] = Query(None, alias="status", description="pending, approved or suspended"),
    search: Optional[str] = Query(None, description="Match on email or name"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_member)
):
    """List users in the caller's organization."""
    query = db.query(User).filter(User.organization_id == current_user.organization_id)
    if status_filter:
        query = query.filter(User.status == status_filter)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter((User.email.ilike(pattern)) | (User.full_name.ilike(pattern)))
    return query.order_by(User.full_name.asc()).all()


@router.get("/pending", response_model=List[UserResponse])
def list_pending_users(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_admin)
):
    """Self-service signups awaiting approval, oldest first."""
    return db.query(User).filter(
        User.organization_id == current_user.organization_id,
        User.status == UserStatus.PENDING.value
    ).order_by(User.created_at.asc()).all()


@router.post("/{user_id}/approve", response_model=UserResponse)
def approve_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_admin)
):
    user = get_org_user(db, current_user.organization_id, user_id)
    if user.status != UserStatus.PENDING.value:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Only pending users can be approved (status: {user.status})"
        )
    user.status = UserStatus.APPROVED.value
    user.approved_by_id = current_user.user_id
    user.approved_at = utc_now()
    create_audit_log(db, "User", user.user_id, "APPROVE", current_user.user_id,
                     organization_id=current_user.organization_id, entity_code=user.email)
    db.commit()
    db.refresh(user)
    return user


@router.post("/{user_id}/reject", response_model=UserResponse)
def reject_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_admin)
):
    """Reject a pending signup. The account is kept, suspended, for the audit trail."""
    user = get_org_user(db, current_user.organization_id, user_id)
    if user.status != UserStatus.PENDING.value:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Only pending users can be rejected (status: {user.status})"
        )
    user.status = UserStatus.SUSPENDED.value
    create_audit_log(db, "User", user.user_id, "REJECT", current_user.user_id,
                     organization_id=current_user.organization_id, entity_code=user.email)
    db.commit()
    db.refresh(user)
    return user


@router.patch("/{user_id}/role", response_model=UserResponse)
def update_user_role(
    user_id: int,
    role_data: UserRoleUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_admin)
):
    user = get_org_user(db, current_user.organization_id, user_id)
    new_role = normalize_role_code(role_data.role) or role_data.role
    if new_role not in ORG_ASSIGNABLE_ROLES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Role cannot be assigned within an organization: {new_role}"
        )
    touches_primary = RoleCode.PRIMARY_ADMIN.value in (new_role, user.role)
    if touches_primary and not is_primary_admin(current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only a primary admin can grant or revoke the primary admin role"
        )
    if user.user_id == current_user.user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot change your own role"
        )

    old_role = user.role
    if old_role != new_role:
        user.role = new_role
        create_audit_log(db, "User", user.user_id, "UPDATE_ROLE", current_user.user_id,
                         {"role": {"old": old_role, "new": new_role}},
                         organization_id=current_user.organization_id, entity_code=user.email)
        db.commit()
        db.refresh(user)
    return user


@router.patch("/{user_id}/status", response_model=UserResponse)
def update_user_status(
    user_id: int,
    status_data: UserStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_admin)
):
    if status_data.status not in UserStatus._value2member_map_:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid status: {status_data.status}"
        )
    user = get_org_user(db, current_user.organization_id, user_id)
    if user.user_id == current_user.user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot change your own status"
        )

    old_status = user.status
    if old_status != status_data.status:
        user.status = status_data.status
        if status_data.status == UserStatus.SUSPENDED.value:
            user.current_session_id = None
        create_audit_log(db, "User", user.user_id, "UPDATE_STATUS", current_user.user_id,
                         {"status": {"old": old_status, "new": status_data.status}},
                         organization_id=current_user.organization_id, entity_code=user.email)
        db.commit()
        db.refresh(user)
    return user


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_admin)
):
    if user_id == current_user.user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot delete your own account"
        )
    user = get_org_user(db, current_user.organization_id, user_id)
    if user.role == RoleCode.PRIMARY_ADMIN.value and not is_primary_admin(current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only a primary admin can delete a primary admin"
        )
    create_audit_log(db, "User", user.user_id, "DELETE", current_user.user_id,
                     organization_id=current_user.organization_id, entity_code=user.email)
    db.delete(user)
    db.commit()
    return None
