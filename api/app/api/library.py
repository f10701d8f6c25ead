"""Risk library generation routes."""
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.core.audit import create_audit_log
from app.core.database import get_db
from app.core.deps import require_org_admin, require_org_member
from app.core.library_generation import generate_library
from app.models.library import (
    ControlLibrary,
    ImpactLibrary,
    IndicatorLibrary,
    LibraryGenerationLog,
    RootCauseLibrary,
)
from app.models.organization import Organization
from app.models.user import User
from app.schemas.library import (
    GenerationLogResponse,
    LibraryEntryResponse,
    LibraryGenerateRequest,
    LibraryGenerateResponse,
)

router = APIRouter()

LIBRARY_TABLES = {
    "root-causes": RootCauseLibrary,
    "impacts": ImpactLibrary,
    "controls": ControlLibrary,
    "indicators": IndicatorLibrary,
}


@router.post("/generate", response_model=LibraryGenerateResponse, status_code=status.HTTP_201_CREATED)
def generate(
    data: LibraryGenerateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_admin)
):
    """Populate the libraries from seed items matching the selected categories."""
    industry_type = data.industry_type
    if industry_type is None:
        org = db.query(Organization).filter(
            Organization.organization_id == current_user.organization_id
        ).first()
        industry_type = org.industry_type if org else None

    result = generate_library(db, current_user.organization_id, data.categories, industry_type,
                              current_user.user_id)
    create_audit_log(db, "LibraryGeneration", result.log_id, "GENERATE", current_user.user_id,
                     {"categories": result.categories_used, "counts": result.counts},
                     organization_id=current_user.organization_id)
    db.commit()
    return result


@router.get("/logs", response_model=List[GenerationLogResponse])
def list_generation_logs(
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_member)
):
    return db.query(LibraryGenerationLog).filter(
        LibraryGenerationLog.organization_id == current_user.organization_id
    ).order_by(LibraryGenerationLog.created_at.desc(), LibraryGenerationLog.log_id.desc()).limit(limit).all()


@router.get("/{library}", response_model=List[LibraryEntryResponse])
def list_library(
    library: str,
    category: str | None = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_member)
):
    model = LIBRARY_TABLES.get(library)
    if model is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown library '{library}'"
        )
    query = db.query(model)
    if category:
        query = query.filter(model.category == category)
    return query.order_by(model.category, model.code).all()
