"""Authentication routes."""
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from app.core.audit import create_audit_log
from app.core.database import get_db
from app.core.deps import get_current_user, security
from app.core.invitations import use_invitation, validate_invitation
from app.core.roles import build_capabilities, get_role_display, RoleCode
from app.core.security import (
    create_access_token,
    decode_token,
    get_password_hash,
    new_session_id,
    verify_password,
)
from app.core.time import utc_now
from app.models.organization import Organization, OrganizationStatus
from app.models.user import User, UserStatus
from app.schemas.user import (
    CurrentUserResponse,
    HeartbeatResponse,
    LoginRequest,
    RegisterWithInvitationRequest,
    SignupRequest,
    Token,
    UserResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _email_taken(db: Session, email: str) -> bool:
    return db.query(User.user_id).filter(User.email == email.lower()).first() is not None


@router.post("/login", response_model=Token)
def login(login_data: LoginRequest, db: Session = Depends(get_db)):
    """Login endpoint. Starts a new session, replacing any previous one."""
    user = db.query(User).filter(User.email == login_data.email.lower()).first()

    if not user or not verify_password(login_data.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password"
        )

    if user.status == UserStatus.PENDING.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is awaiting administrator approval"
        )
    if user.status == UserStatus.SUSPENDED.value:
        logger.info("Rejected login for suspended user %s", user.user_id)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is suspended"
        )
    if user.organization and user.organization.status == OrganizationStatus.SUSPENDED.value:
        logger.info("Rejected login for user %s of suspended organization %s",
                    user.user_id, user.organization_id)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Organization is suspended"
        )

    session_id = new_session_id()
    user.current_session_id = session_id
    user.last_active_at = utc_now()
    db.commit()

    access_token = create_access_token(data={"sub": user.email}, session_id=session_id)
    return {"access_token": access_token, "token_type": "bearer", "session_id": session_id}


@router.get("/me", response_model=CurrentUserResponse)
def get_me(current_user: User = Depends(get_current_user)):
    """Get current user with role capabilities."""
    response = CurrentUserResponse.model_validate(current_user)
    response.role_display = get_role_display(current_user.role)
    response.organization_name = current_user.organization.name if current_user.organization else None
    response.capabilities = build_capabilities(current_user.role)
    return response


@router.post("/signup", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def signup(signup_data: SignupRequest, db: Session = Depends(get_db)):
    """Self-service signup with an organization code. The account stays pending until approved."""
    org = db.query(Organization).filter(
        Organization.code == signup_data.organization_code.strip().upper()
    ).first()
    if not org:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Organization not found"
        )
    if org.status == OrganizationStatus.SUSPENDED.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Organization is suspended"
        )
    if _email_taken(db, signup_data.email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )

    user = User(
        email=signup_data.email.lower(),
        full_name=signup_data.full_name,
        password_hash=get_password_hash(signup_data.password),
        role=RoleCode.USER.value,
        status=UserStatus.PENDING.value,
        organization_id=org.organization_id,
    )
    db.add(user)
    db.flush()
    create_audit_log(db, "User", user.user_id, "SIGNUP", user.user_id,
                     organization_id=org.organization_id, entity_code=user.email)
    db.commit()
    db.refresh(user)
    return user


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register_with_invitation(data: RegisterWithInvitationRequest, db: Session = Depends(get_db)):
    """Sign up with an invitation code. The account is approved with the invited role."""
    check = validate_invitation(db, data.invite_code, data.email)
    if not check.is_valid:
        # Persist an expiry detected during validation
        db.commit()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=check.error_message
        )
    if _email_taken(db, data.email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )

    user = User(
        email=data.email.lower(),
        full_name=data.full_name,
        password_hash=get_password_hash(data.password),
        role=check.role,
        status=UserStatus.APPROVED.value,
        organization_id=check.organization_id,
        approved_at=utc_now(),
    )
    db.add(user)
    db.flush()
    if not use_invitation(db, check.invitation_id, user.user_id):
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Invitation could not be redeemed"
        )
    create_audit_log(db, "User", user.user_id, "REGISTER", user.user_id,
                     {"invitation_id": check.invitation_id, "role": check.role},
                     organization_id=check.organization_id, entity_code=user.email)
    db.commit()
    db.refresh(user)
    return user


@router.post("/heartbeat", response_model=HeartbeatResponse)
def heartbeat(
    credentials=Depends(security),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Record activity and report whether this token's session is still the current one.

    A user with no recorded session adopts the presented one.
    """
    payload = decode_token(credentials.credentials) or {}
    session_id = payload.get("sid")

    if current_user.current_session_id is None and session_id:
        current_user.current_session_id = session_id
    session_valid = session_id is not None and session_id == current_user.current_session_id

    current_user.last_active_at = utc_now()
    db.commit()
    return {"session_valid": session_valid, "last_active_at": current_user.last_active_at}
