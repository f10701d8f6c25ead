"""Risk taxonomy routes: categories, subcategories, import and export."""
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session, selectinload

from app.core.audit import create_audit_log
from app.core.database import get_db
from app.core.deps import require_org_admin, require_org_member
from app.models.risk_taxonomy import RiskCategory, RiskSubcategory
from app.models.user import User
from app.schemas.risk_taxonomy import (
    RiskCategoryCreate,
    RiskCategoryResponse,
    RiskCategoryUpdate,
    RiskSubcategoryCreate,
    RiskSubcategoryResponse,
    RiskSubcategoryUpdate,
    TaxonomyImportRequest,
    TaxonomyImportResult,
    TaxonomyImportRow,
)

router = APIRouter()


def get_category(db: Session, organization_id: int, category_id: int) -> RiskCategory:
    category = db.query(RiskCategory).filter(
        RiskCategory.category_id == category_id,
        RiskCategory.organization_id == organization_id
    ).first()
    if not category:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Risk category not found"
        )
    return category


def get_subcategory(db: Session, organization_id: int, subcategory_id: int) -> RiskSubcategory:
    subcategory = db.query(RiskSubcategory).join(RiskCategory).filter(
        RiskSubcategory.subcategory_id == subcategory_id,
        RiskCategory.organization_id == organization_id
    ).first()
    if not subcategory:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Risk subcategory not found"
        )
    return subcategory


def _category_name_taken(db: Session, organization_id: int, name: str, exclude_id: int | None = None) -> bool:
    query = db.query(RiskCategory.category_id).filter(
        RiskCategory.organization_id == organization_id,
        RiskCategory.name == name
    )
    if exclude_id is not None:
        query = query.filter(RiskCategory.category_id != exclude_id)
    return query.first() is not None


@router.get("/categories", response_model=List[RiskCategoryResponse])
def list_categories(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_member)
):
    return db.query(RiskCategory).options(selectinload(RiskCategory.subcategories)).filter(
        RiskCategory.organization_id == current_user.organization_id
    ).order_by(RiskCategory.name.asc()).all()


@router.get("/categories/{category_id}", response_model=RiskCategoryResponse)
def get_risk_category(
    category_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_member)
):
    return get_category(db, current_user.organization_id, category_id)


@router.post("/categories", response_model=RiskCategoryResponse, status_code=status.HTTP_201_CREATED)
def create_category(
    data: RiskCategoryCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_admin)
):
    name = data.name.strip()
    if _category_name_taken(db, current_user.organization_id, name):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Risk category with this name already exists"
        )
    category = RiskCategory(
        organization_id=current_user.organization_id,
        name=name,
        description=data.description,
    )
    db.add(category)
    db.flush()
    create_audit_log(db, "RiskCategory", category.category_id, "CREATE", current_user.user_id,
                     organization_id=current_user.organization_id, entity_code=name)
    db.commit()
    db.refresh(category)
    return category


@router.patch("/categories/{category_id}", response_model=RiskCategoryResponse)
def update_category(
    category_id: int,
    data: RiskCategoryUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_admin)
):
    category = get_category(db, current_user.organization_id, category_id)
    update_data = data.model_dump(exclude_unset=True)
    if update_data.get("name"):
        update_data["name"] = update_data["name"].strip()
        if _category_name_taken(db, current_user.organization_id, update_data["name"], exclude_id=category_id):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Risk category with this name already exists"
            )

    changes = {}
    for field, value in update_data.items():
        if getattr(category, field) != value:
            changes[field] = {"old": getattr(category, field), "new": value}
            setattr(category, field, value)
    if changes:
        create_audit_log(db, "RiskCategory", category.category_id, "UPDATE", current_user.user_id,
                         changes, organization_id=current_user.organization_id,
                         entity_code=category.name)
        db.commit()
        db.refresh(category)
    return category


@router.delete("/categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(
    category_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_admin)
):
    category = get_category(db, current_user.organization_id, category_id)
    if category.subcategories:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Cannot delete risk category with {len(category.subcategories)} subcategories"
        )
    create_audit_log(db, "RiskCategory", category.category_id, "DELETE", current_user.user_id,
                     organization_id=current_user.organization_id, entity_code=category.name)
    db.delete(category)
    db.commit()
    return None


@router.post("/categories/{category_id}/subcategories", response_model=RiskSubcategoryResponse,
             status_code=status.HTTP_201_CREATED)
def create_subcategory(
    category_id: int,
    data: RiskSubcategoryCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_admin)
):
    category = get_category(db, current_user.organization_id, category_id)
    name = data.name.strip()
    if any(sub.name == name for sub in category.subcategories):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Subcategory with this name already exists in the category"
        )
    subcategory = RiskSubcategory(category_id=category.category_id, name=name, description=data.description)
    db.add(subcategory)
    db.flush()
    create_audit_log(db, "RiskSubcategory", subcategory.subcategory_id, "CREATE", current_user.user_id,
                     {"category_id": category.category_id},
                     organization_id=current_user.organization_id, entity_code=name)
    db.commit()
    db.refresh(subcategory)
    return subcategory


@router.patch("/subcategories/{subcategory_id}", response_model=RiskSubcategoryResponse)
def update_subcategory(
    subcategory_id: int,
    data: RiskSubcategoryUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_admin)
):
    subcategory = get_subcategory(db, current_user.organization_id, subcategory_id)
    update_data = data.model_dump(exclude_unset=True)
    if update_data.get("name"):
        update_data["name"] = update_data["name"].strip()
    for field, value in update_data.items():
        setattr(subcategory, field, value)
    create_audit_log(db, "RiskSubcategory", subcategory.subcategory_id, "UPDATE", current_user.user_id,
                     update_data, organization_id=current_user.organization_id,
                     entity_code=subcategory.name)
    db.commit()
    db.refresh(subcategory)
    return subcategory


@router.delete("/subcategories/{subcategory_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_subcategory(
    subcategory_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_admin)
):
    subcategory = get_subcategory(db, current_user.organization_id, subcategory_id)
    create_audit_log(db, "RiskSubcategory", subcategory.subcategory_id, "DELETE", current_user.user_id,
                     organization_id=current_user.organization_id, entity_code=subcategory.name)
    db.delete(subcategory)
    db.commit()
    return None


@router.get("/export", response_model=List[TaxonomyImportRow])
def export_taxonomy(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_member)
):
    """Flatten the taxonomy into import-compatible rows."""
    rows = []
    categories = db.query(RiskCategory).options(selectinload(RiskCategory.subcategories)).filter(
        RiskCategory.organization_id == current_user.organization_id
    ).order_by(RiskCategory.name.asc()).all()
    for category in categories:
        if not category.subcategories:
            rows.append({"category": category.name, "subcategory": None,
                         "description": category.description})
        for sub in category.subcategories:
            rows.append({"category": category.name, "subcategory": sub.name,
                         "description": sub.description})
    return rows


@router.post("/import", response_model=TaxonomyImportResult)
def import_taxonomy(
    data: TaxonomyImportRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_admin)
):
    """Create missing categories and subcategories. Existing entries are left untouched."""
    existing = {
        category.name.lower(): category
        for category in db.query(RiskCategory).filter(
            RiskCategory.organization_id == current_user.organization_id
        ).all()
    }
    categories_created = subcategories_created = skipped = 0

    for row in data.rows:
        category_name = row.category.strip()
        category = existing.get(category_name.lower())
        if category is None:
            category = RiskCategory(
                organization_id=current_user.organization_id,
                name=category_name,
                description=None if row.subcategory else row.description,
            )
            db.add(category)
            db.flush()
            existing[category_name.lower()] = category
            categories_created += 1
        elif not row.subcategory:
            skipped += 1

        if row.subcategory:
            sub_name = row.subcategory.strip()
            if any(sub.name.lower() == sub_name.lower() for sub in category.subcategories):
                skipped += 1
                continue
            category.subcategories.append(
                RiskSubcategory(name=sub_name, description=row.description))
            db.flush()
            subcategories_created += 1

    create_audit_log(db, "RiskCategory", 0, "IMPORT", current_user.user_id,
                     {"categories_created": categories_created,
                      "subcategories_created": subcategories_created, "skipped": skipped},
                     organization_id=current_user.organization_id)
    db.commit()
    return {
        "categories_created": categories_created,
        "subcategories_created": subcategories_created,
        "skipped": skipped,
    }
