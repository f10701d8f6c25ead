"""Risk appetite statement and appetite category routes."""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.core.appetite_chain import validate_chain
from app.core.appetite_governance import AppetiteStatementService
from app.core.database import get_db
from app.core.deps import require_governance_editor, require_org_admin, require_org_member
from app.core.tolerance_evaluation import evaluate_enterprise
from app.models.appetite import RiskAppetiteStatement, StatementStatus
from app.models.user import User
from app.schemas.appetite import (
    AppetiteCategoryCreate,
    AppetiteCategoryResponse,
    AppetiteCategoryUpdate,
    CanDeleteResponse,
    ChainValidationResponse,
    EnterpriseEvaluationResponse,
    StatementCreate,
    StatementDetailResponse,
    StatementResponse,
    StatementUpdate,
    SupersedeRequest,
)

router = APIRouter()


# ==================== STATEMENTS ====================

@router.get("/statements", response_model=List[StatementResponse])
def list_statements(
    status_filter: Optional[StatementStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_member)
):
    """List appetite statements, newest version first."""
    query = db.query(RiskAppetiteStatement).filter(
        RiskAppetiteStatement.organization_id == current_user.organization_id
    )
    if status_filter:
        query = query.filter(RiskAppetiteStatement.status == status_filter.value)
    return query.order_by(RiskAppetiteStatement.version_number.desc()).all()


@router.post("/statements", response_model=StatementResponse, status_code=status.HTTP_201_CREATED)
def create_statement(
    data: StatementCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_governance_editor)
):
    service = AppetiteStatementService(db, current_user.organization_id)
    statement = service.create_statement(
        data.statement_text, data.effective_from, current_user.user_id,
        next_review_date=data.next_review_date,
    )
    db.commit()
    db.refresh(statement)
    return statement


@router.get("/statements/current", response_model=StatementDetailResponse)
def get_current_statement(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_member)
):
    """The organization's APPROVED statement."""
    statement = AppetiteStatementService(db, current_user.organization_id).current_approved()
    if not statement:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No approved appetite statement"
        )
    return statement


@router.get("/statements/{statement_id}", response_model=StatementDetailResponse)
def get_statement(
    statement_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_member)
):
    return AppetiteStatementService(db, current_user.organization_id).get_statement(statement_id)


@router.patch("/statements/{statement_id}", response_model=StatementResponse)
def update_statement(
    statement_id: int,
    data: StatementUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_governance_editor)
):
    service = AppetiteStatementService(db, current_user.organization_id)
    statement = service.update_statement(
        statement_id, data.model_dump(exclude_unset=True), current_user.user_id)
    db.commit()
    db.refresh(statement)
    return statement


@router.post("/statements/{statement_id}/approve", response_model=StatementResponse)
def approve_statement(
    statement_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_admin)
):
    statement = AppetiteStatementService(db, current_user.organization_id).approve(
        statement_id, current_user.user_id)
    db.commit()
    db.refresh(statement)
    return statement


@router.post("/statements/{statement_id}/supersede", response_model=StatementDetailResponse)
def supersede_statement(
    statement_id: int,
    data: SupersedeRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_admin)
):
    """Supersede an approved statement; returns the new DRAFT version."""
    successor = AppetiteStatementService(db, current_user.organization_id).supersede(
        statement_id, data.new_effective_from, current_user.user_id)
    db.commit()
    db.refresh(successor)
    return successor


@router.get("/statements/{statement_id}/can-delete", response_model=CanDeleteResponse)
def can_delete_statement(
    statement_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_member)
):
    allowed, reason = AppetiteStatementService(db, current_user.organization_id).can_delete_statement(
        statement_id)
    return {"can_delete": allowed, "reason": reason}


@router.delete("/statements/{statement_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_statement(
    statement_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_governance_editor)
):
    AppetiteStatementService(db, current_user.organization_id).delete_statement(
        statement_id, current_user.user_id)
    db.commit()
    return None


# ==================== APPETITE CATEGORIES ====================

@router.get("/statements/{statement_id}/categories", response_model=List[AppetiteCategoryResponse])
def list_statement_categories(
    statement_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_member)
):
    return AppetiteStatementService(db, current_user.organization_id).get_statement(statement_id).categories


@router.post("/statements/{statement_id}/categories", response_model=AppetiteCategoryResponse,
             status_code=status.HTTP_201_CREATED)
def create_appetite_category(
    statement_id: int,
    data: AppetiteCategoryCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_governance_editor)
):
    category = AppetiteStatementService(db, current_user.organization_id).create_category(
        statement_id, data.risk_category, data.appetite_level.value, data.rationale,
        current_user.user_id)
    db.commit()
    db.refresh(category)
    return category


@router.patch("/categories/{appetite_category_id}", response_model=AppetiteCategoryResponse)
def update_appetite_category(
    appetite_category_id: int,
    data: AppetiteCategoryUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_governance_editor)
):
    updates = data.model_dump(exclude_unset=True, mode="json")
    category = AppetiteStatementService(db, current_user.organization_id).update_category(
        appetite_category_id, updates, current_user.user_id)
    db.commit()
    db.refresh(category)
    return category


@router.get("/categories/{appetite_category_id}/can-delete", response_model=CanDeleteResponse)
def can_delete_appetite_category(
    appetite_category_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_member)
):
    allowed, reason = AppetiteStatementService(db, current_user.organization_id).can_delete_category(
        appetite_category_id)
    return {"can_delete": allowed, "reason": reason}


@router.delete("/categories/{appetite_category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_appetite_category(
    appetite_category_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_governance_editor)
):
    AppetiteStatementService(db, current_user.organization_id).delete_category(
        appetite_category_id, current_user.user_id)
    db.commit()
    return None


# ==================== CHAIN & STATUS ====================

@router.get("/chain-validation", response_model=ChainValidationResponse)
def validate_appetite_chain(
    statement_id: Optional[int] = Query(None, description="Defaults to the approved statement"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_member)
):
    """Check that every taxonomy risk category has an appetite and an active tolerance metric."""
    return validate_chain(db, current_user.organization_id, statement_id=statement_id)


@router.get("/status", response_model=EnterpriseEvaluationResponse)
def get_enterprise_status(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_member)
):
    """RAG status per appetite category from the latest KRI observations."""
    return evaluate_enterprise(db, current_user.organization_id)
