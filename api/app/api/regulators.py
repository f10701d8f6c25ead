"""Regulator catalog, organization assignment and regulator-user access."""
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session, joinedload

from app.core.audit import create_audit_log
from app.core.database import get_db
from app.core.deps import get_current_user, require_regulator, require_super_admin
from app.core.roles import RoleCode, is_super_admin
from app.core.security import get_password_hash
from app.core.time import utc_now
from app.models.organization import Organization
from app.models.regulator import (
    OrganizationRegulator,
    Regulator,
    RegulatorAccess,
    default_alert_thresholds,
)
from app.models.user import User, UserStatus
from app.schemas.regulator import (
    OrganizationRegulatorAssignment,
    OrganizationRegulatorResponse,
    RegulatedOrganization,
    RegulatorAccessUpdate,
    RegulatorCreate,
    RegulatorResponse,
    RegulatorUpdate,
    RegulatorUserCreate,
    RegulatorUserResponse,
)

router = APIRouter()


def get_regulator(db: Session, regulator_id: int) -> Regulator:
    regulator = db.query(Regulator).filter(Regulator.regulator_id == regulator_id).first()
    if not regulator:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Regulator not found"
        )
    return regulator


def _load_regulators(db: Session, regulator_ids: List[int]) -> List[Regulator]:
    wanted = sorted(set(regulator_ids))
    regulators = db.query(Regulator).filter(Regulator.regulator_id.in_(wanted)).all() if wanted else []
    missing = set(wanted) - {r.regulator_id for r in regulators}
    if missing:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Regulator not found: {', '.join(str(m) for m in sorted(missing))}"
        )
    return regulators


def _regulated_organizations(db: Session, regulator_ids: List[int]) -> List[dict]:
    if not regulator_ids:
        return []
    rows = db.query(OrganizationRegulator, Organization, Regulator).join(
        Organization, Organization.organization_id == OrganizationRegulator.organization_id
    ).join(
        Regulator, Regulator.regulator_id == OrganizationRegulator.regulator_id
    ).filter(
        OrganizationRegulator.regulator_id.in_(regulator_ids)
    ).order_by(Organization.name.asc()).all()
    return [
        {
            "organization_id": org.organization_id,
            "name": org.name,
            "code": org.code,
            "status": org.status,
            "industry_type": org.industry_type,
            "regulator_id": regulator.regulator_id,
            "regulator_code": regulator.code,
            "is_primary": link.is_primary,
        }
        for link, org, regulator in rows
    ]


def _regulator_user_response(db: Session, user: User) -> dict:
    grants = db.query(RegulatorAccess).options(joinedload(RegulatorAccess.regulator)).filter(
        RegulatorAccess.user_id == user.user_id
    ).all()
    return {
        "user_id": user.user_id,
        "email": user.email,
        "full_name": user.full_name,
        "status": user.status,
        "regulators": [grant.regulator for grant in grants],
    }


def _replace_access(db: Session, user: User, regulator_ids: List[int], granted_by_id: int) -> None:
    regulators = _load_regulators(db, regulator_ids)
    db.query(RegulatorAccess).filter(RegulatorAccess.user_id == user.user_id).delete(
        synchronize_session=False)
    for regulator in regulators:
        db.add(RegulatorAccess(user_id=user.user_id, regulator_id=regulator.regulator_id,
                               granted_by_id=granted_by_id))


# ==================== CATALOG ====================

@router.get("/", response_model=List[RegulatorResponse])
def list_regulators(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return db.query(Regulator).order_by(Regulator.code.asc()).all()


@router.post("/", response_model=RegulatorResponse, status_code=status.HTTP_201_CREATED)
def create_regulator(
    data: RegulatorCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_super_admin)
):
    if db.query(Regulator).filter(Regulator.code == data.code).first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Regulator with this code already exists"
        )
    thresholds = default_alert_thresholds()
    thresholds.update(data.alert_thresholds or {})
    regulator = Regulator(**{**data.model_dump(), "alert_thresholds": thresholds})
    db.add(regulator)
    db.flush()
    create_audit_log(db, "Regulator", regulator.regulator_id, "CREATE", current_user.user_id,
                     entity_code=regulator.code)
    db.commit()
    db.refresh(regulator)
    return regulator


# ==================== REGULATOR USERS ====================

@router.get("/users", response_model=List[RegulatorUserResponse])
def list_regulator_users(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_super_admin)
):
    users = db.query(User).filter(User.role == RoleCode.REGULATOR.value).order_by(User.email.asc()).all()
    return [_regulator_user_response(db, user) for user in users]


@router.post("/users", response_model=RegulatorUserResponse, status_code=status.HTTP_201_CREATED)
def create_regulator_user(
    data: RegulatorUserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_super_admin)
):
    email = data.email.lower()
    if db.query(User.user_id).filter(User.email == email).first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )
    user = User(
        email=email,
        full_name=data.full_name,
        password_hash=get_password_hash(data.password),
        role=RoleCode.REGULATOR.value,
        status=UserStatus.APPROVED.value,
        organization_id=None,
        approved_by_id=current_user.user_id,
        approved_at=utc_now(),
    )
    db.add(user)
    db.flush()
    _replace_access(db, user, data.regulator_ids, current_user.user_id)
    create_audit_log(db, "User", user.user_id, "CREATE_REGULATOR_USER", current_user.user_id,
                     {"regulator_ids": sorted(set(data.regulator_ids))}, entity_code=email)
    db.commit()
    db.refresh(user)
    return _regulator_user_response(db, user)


@router.put("/users/{user_id}/access", response_model=RegulatorUserResponse)
def update_regulator_access(
    user_id: int,
    data: RegulatorAccessUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_super_admin)
):
    """Replace the set of regulators a regulator user can see."""
    user = db.query(User).filter(User.user_id == user_id, User.role == RoleCode.REGULATOR.value).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Regulator user not found"
        )
    _replace_access(db, user, data.regulator_ids, current_user.user_id)
    create_audit_log(db, "User", user.user_id, "UPDATE_REGULATOR_ACCESS", current_user.user_id,
                     {"regulator_ids": sorted(set(data.regulator_ids))}, entity_code=user.email)
    db.commit()
    return _regulator_user_response(db, user)


@router.get("/me/organizations", response_model=List[RegulatedOrganization])
def list_my_regulated_organizations(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_regulator)
):
    """Organizations visible to the calling regulator user through their grants."""
    regulator_ids = [
        row.regulator_id for row in db.query(RegulatorAccess.regulator_id).filter(
            RegulatorAccess.user_id == current_user.user_id
        ).all()
    ]
    return _regulated_organizations(db, regulator_ids)


# ==================== ORGANIZATION ASSIGNMENT ====================

@router.get("/organizations/{organization_id}", response_model=List[OrganizationRegulatorResponse])
def list_organization_regulators(
    organization_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    if not is_super_admin(current_user) and current_user.organization_id != organization_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to view this organization's regulators"
        )
    return db.query(OrganizationRegulator).options(joinedload(OrganizationRegulator.regulator)).filter(
        OrganizationRegulator.organization_id == organization_id
    ).order_by(OrganizationRegulator.is_primary.desc(), OrganizationRegulator.regulator_id.asc()).all()


@router.put("/organizations/{organization_id}", response_model=List[OrganizationRegulatorResponse])
def assign_organization_regulators(
    organization_id: int,
    data: OrganizationRegulatorAssignment,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_super_admin)
):
    """Replace an organization's regulators. The primary one is also recorded on the organization."""
    org = db.query(Organization).filter(Organization.organization_id == organization_id).first()
    if not org:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Organization not found"
        )
    if data.primary_regulator_id is not None and data.primary_regulator_id not in data.regulator_ids:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Primary regulator must be one of the assigned regulators"
        )
    regulators = _load_regulators(db, data.regulator_ids)

    db.query(OrganizationRegulator).filter(
        OrganizationRegulator.organization_id == organization_id
    ).delete(synchronize_session=False)
    for regulator in regulators:
        db.add(OrganizationRegulator(
            organization_id=organization_id,
            regulator_id=regulator.regulator_id,
            is_primary=regulator.regulator_id == data.primary_regulator_id,
            assigned_by_id=current_user.user_id,
        ))
    org.primary_regulator_id = data.primary_regulator_id
    create_audit_log(db, "Organization", organization_id, "ASSIGN_REGULATORS", current_user.user_id,
                     {"regulator_ids": sorted({r.regulator_id for r in regulators}),
                      "primary_regulator_id": data.primary_regulator_id},
                     organization_id=organization_id, entity_code=org.code)
    db.commit()
    return list_organization_regulators(organization_id, db, current_user)


# ==================== SINGLE REGULATOR ====================

@router.get("/{regulator_id}", response_model=RegulatorResponse)
def get_regulator_detail(
    regulator_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return get_regulator(db, regulator_id)


@router.patch("/{regulator_id}", response_model=RegulatorResponse)
def update_regulator(
    regulator_id: int,
    data: RegulatorUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_super_admin)
):
    regulator = get_regulator(db, regulator_id)
    update_data = data.model_dump(exclude_unset=True)
    if "alert_thresholds" in update_data:
        thresholds = dict(regulator.alert_thresholds or {})
        thresholds.update(update_data["alert_thresholds"] or {})
        update_data["alert_thresholds"] = thresholds
    for field, value in update_data.items():
        setattr(regulator, field, value)
    create_audit_log(db, "Regulator", regulator.regulator_id, "UPDATE", current_user.user_id,
                     update_data, entity_code=regulator.code)
    db.commit()
    db.refresh(regulator)
    return regulator


@router.delete("/{regulator_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_regulator(
    regulator_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_super_admin)
):
    regulator = get_regulator(db, regulator_id)
    assigned = db.query(OrganizationRegulator).filter(
        OrganizationRegulator.regulator_id == regulator_id
    ).count()
    if assigned:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Regulator is assigned to {assigned} organization(s); unassign it first"
        )
    db.query(RegulatorAccess).filter(RegulatorAccess.regulator_id == regulator_id).delete(
        synchronize_session=False)
    create_audit_log(db, "Regulator", regulator.regulator_id, "DELETE", current_user.user_id,
                     entity_code=regulator.code)
    db.delete(regulator)
    db.commit()
    return None


@router.get("/{regulator_id}/organizations", response_model=List[RegulatedOrganization])
def list_regulator_organizations(
    regulator_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_super_admin)
):
    get_regulator(db, regulator_id)
    return _regulated_organizations(db, [regulator_id])
