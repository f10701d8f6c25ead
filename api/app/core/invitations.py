"""Invitation codes: issue, validate, redeem, revoke and expire."""
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import EntityNotFound, GovernanceViolation, ValidationFailed
from app.core.roles import ORG_ASSIGNABLE_ROLES
from app.core.security import generate_invite_code
from app.core.time import utc_now
from app.models.invitation import InvitationStatus, UserInvitation

logger = logging.getLogger(__name__)

MAX_CODE_ATTEMPTS = 10


@dataclass
class InvitationCheck:
    is_valid: bool
    invitation_id: Optional[int] = None
    organization_id: Optional[int] = None
    role: Optional[str] = None
    error_message: Optional[str] = None


def _unique_code(db: Session) -> str:
    for _ in range(MAX_CODE_ATTEMPTS):
        code = generate_invite_code()
        taken = db.query(UserInvitation.invitation_id).filter(
            UserInvitation.invite_code == code
        ).first()
        if not taken:
            return code
    raise GovernanceViolation("Could not generate a unique invitation code; try again")


def create_invitation(
    db: Session,
    organization_id: int,
    email: str,
    role: str,
    created_by_id: Optional[int],
    expires_in_days: Optional[int] = None,
    notes: Optional[str] = None,
) -> UserInvitation:
    if role not in ORG_ASSIGNABLE_ROLES:
        raise ValidationFailed(f"Invalid role for invitation: {role}")
    days = expires_in_days if expires_in_days is not None else settings.INVITATION_EXPIRY_DAYS
    if days < 1:
        raise ValidationFailed("Invitation must be valid for at least one day")

    invitation = UserInvitation(
        invite_code=_unique_code(db),
        email=email.strip().lower(),
        organization_id=organization_id,
        role=role,
        status=InvitationStatus.PENDING.value,
        expires_at=utc_now() + timedelta(days=days),
        created_by_id=created_by_id,
        notes=notes,
    )
    db.add(invitation)
    db.flush()
    return invitation


def _find(db: Session, invite_code: str, email: str) -> Optional[UserInvitation]:
    return db.query(UserInvitation).filter(
        UserInvitation.invite_code == invite_code.strip().upper(),
        UserInvitation.email == email.strip().lower(),
    ).first()


def validate_invitation(db: Session, invite_code: str, email: str) -> InvitationCheck:
    """Check a code/email pair. A pending invitation found past its expiry is marked expired."""
    invitation = _find(db, invite_code, email)
    if invitation is None:
        return InvitationCheck(False, error_message="Invalid invitation code or email")
    if invitation.status != InvitationStatus.PENDING.value:
        return InvitationCheck(False, invitation_id=invitation.invitation_id,
                               error_message=f"Invitation has already been {invitation.status}")
    if invitation.expires_at < utc_now():
        invitation.status = InvitationStatus.EXPIRED.value
        db.flush()
        return InvitationCheck(False, invitation_id=invitation.invitation_id,
                               error_message="Invitation has expired")
    return InvitationCheck(
        True,
        invitation_id=invitation.invitation_id,
        organization_id=invitation.organization_id,
        role=invitation.role,
    )


def use_invitation(db: Session, invitation_id: int, user_id: int) -> bool:
    """Mark a pending, unexpired invitation as used. Returns False if it cannot be redeemed."""
    invitation = db.query(UserInvitation).filter(
        UserInvitation.invitation_id == invitation_id
    ).with_for_update().first()
    if invitation is None or invitation.status != InvitationStatus.PENDING.value:
        return False
    if invitation.expires_at < utc_now():
        return False
    invitation.status = InvitationStatus.USED.value
    invitation.used_by_id = user_id
    invitation.used_at = utc_now()
    db.flush()
    return True


def revoke_invitation(db: Session, organization_id: int, invitation_id: int,
                      revoked_by_id: int, reason: Optional[str] = None) -> UserInvitation:
    invitation = db.query(UserInvitation).filter(
        UserInvitation.invitation_id == invitation_id,
        UserInvitation.organization_id == organization_id,
    ).first()
    if invitation is None:
        raise EntityNotFound("Invitation", invitation_id)
    if invitation.status != InvitationStatus.PENDING.value:
        raise GovernanceViolation(f"Only pending invitations can be revoked (status: {invitation.status})")
    invitation.status = InvitationStatus.REVOKED.value
    invitation.revoked_by_id = revoked_by_id
    invitation.revoked_at = utc_now()
    invitation.revoke_reason = reason
    db.flush()
    return invitation


def expire_stale_invitations(db: Session, organization_id: Optional[int] = None) -> int:
    query = db.query(UserInvitation).filter(
        UserInvitation.status == InvitationStatus.PENDING.value,
        UserInvitation.expires_at < utc_now(),
    )
    if organization_id is not None:
        query = query.filter(UserInvitation.organization_id == organization_id)
    count = query.update({"status": InvitationStatus.EXPIRED.value}, synchronize_session=False)
    if count:
        logger.info("Expired %d stale invitation(s)", count)
    return count
