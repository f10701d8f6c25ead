"""Request dependencies: authentication and role gates."""
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from app.core.database import get_db
from app.core.roles import RoleCode, is_org_admin, can_edit_governance
from app.core.security import decode_token
from app.models.organization import Organization, OrganizationStatus
from app.models.user import User, UserStatus

security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """Resolve the bearer token to an approved user of a non-suspended organization."""
    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise unauthorized

    payload = decode_token(credentials.credentials)
    if payload is None or not payload.get("sub"):
        raise unauthorized

    user = db.query(User).filter(User.email == payload["sub"]).first()
    if user is None:
        raise unauthorized

    if user.status != UserStatus.APPROVED.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Account is {user.status}"
        )
    if user.organization_id is not None:
        org = db.query(Organization).filter(
            Organization.organization_id == user.organization_id
        ).first()
        if org and org.status == OrganizationStatus.SUSPENDED.value:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Organization is suspended"
            )
    return user


def require_org_member(current_user: User = Depends(get_current_user)) -> User:
    """Any user that belongs to an organization (excludes super admins and regulators)."""
    if current_user.organization_id is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="This action requires organization membership"
        )
    return current_user


def require_governance_editor(current_user: User = Depends(require_org_member)) -> User:
    if not can_edit_governance(current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Read-only role cannot modify governance records"
        )
    return current_user


def require_org_admin(current_user: User = Depends(require_org_member)) -> User:
    if not is_org_admin(current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Organization admin access required"
        )
    return current_user


def require_super_admin(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != RoleCode.SUPER_ADMIN.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Super admin access required"
        )
    return current_user


def require_regulator(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != RoleCode.REGULATOR.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Regulator access required"
        )
    return current_user
