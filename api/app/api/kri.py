"""KRI register routes."""
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.core.audit import create_audit_log
from app.core.database import get_db
from app.core.deps import require_governance_editor, require_org_member
from app.models.kri import KriDefinition, KriValue
from app.models.user import User
from app.schemas.kri import KriCreate, KriResponse, KriValueCreate, KriValueResponse

router = APIRouter()


def get_kri(db: Session, organization_id: int, kri_id: int) -> KriDefinition:
    kri = db.query(KriDefinition).filter(
        KriDefinition.kri_id == kri_id,
        KriDefinition.organization_id == organization_id
    ).first()
    if not kri:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="KRI not found"
        )
    return kri


@router.get("/", response_model=List[KriResponse])
def list_kris(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_member)
):
    return db.query(KriDefinition).filter(
        KriDefinition.organization_id == current_user.organization_id
    ).order_by(KriDefinition.kri_code.asc()).all()


@router.post("/", response_model=KriResponse, status_code=status.HTTP_201_CREATED)
def create_kri(
    data: KriCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_governance_editor)
):
    code = data.kri_code.strip().upper()
    existing = db.query(KriDefinition).filter(
        KriDefinition.organization_id == current_user.organization_id,
        KriDefinition.kri_code == code
    ).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="KRI with this code already exists"
        )
    kri = KriDefinition(organization_id=current_user.organization_id,
                        **{**data.model_dump(), "kri_code": code})
    db.add(kri)
    db.flush()
    create_audit_log(db, "KRI", kri.kri_id, "CREATE", current_user.user_id,
                     organization_id=current_user.organization_id, entity_code=code)
    db.commit()
    db.refresh(kri)
    return kri


@router.get("/{kri_id}", response_model=KriResponse)
def get_kri_definition(
    kri_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_member)
):
    return get_kri(db, current_user.organization_id, kri_id)


@router.get("/{kri_id}/values", response_model=List[KriValueResponse])
def list_kri_values(
    kri_id: int,
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_member)
):
    """Observations, most recent first."""
    get_kri(db, current_user.organization_id, kri_id)
    return db.query(KriValue).filter(KriValue.kri_id == kri_id).order_by(
        KriValue.measurement_date.desc(), KriValue.value_id.desc()
    ).limit(limit).all()


@router.post("/{kri_id}/values", response_model=KriValueResponse, status_code=status.HTTP_201_CREATED)
def record_kri_value(
    kri_id: int,
    data: KriValueCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_governance_editor)
):
    kri = get_kri(db, current_user.organization_id, kri_id)
    value = KriValue(kri_id=kri.kri_id, recorded_by_id=current_user.user_id, **data.model_dump())
    db.add(value)
    db.commit()
    db.refresh(value)
    return value
