"""Division and department routes."""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session, selectinload

from app.core.audit import create_audit_log
from app.core.database import get_db
from app.core.deps import require_org_admin, require_org_member
from app.models.org_structure import Department, Division
from app.models.user import User
from app.schemas.org_structure import (
    DepartmentAssign,
    DepartmentCreate,
    DepartmentResponse,
    DepartmentUpdate,
    DivisionCreate,
    DivisionResponse,
    DivisionUpdate,
    DivisionWithDepartments,
)

router = APIRouter()


def get_division(db: Session, organization_id: int, division_id: int) -> Division:
    division = db.query(Division).filter(
        Division.division_id == division_id,
        Division.organization_id == organization_id
    ).first()
    if not division:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Division not found"
        )
    return division


def get_department(db: Session, organization_id: int, department_id: int) -> Department:
    department = db.query(Department).filter(
        Department.department_id == department_id,
        Department.organization_id == organization_id
    ).first()
    if not department:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Department not found"
        )
    return department


def _check_division_name(db: Session, organization_id: int, name: str, exclude_id: int | None = None):
    query = db.query(Division).filter(
        Division.organization_id == organization_id,
        Division.name == name
    )
    if exclude_id is not None:
        query = query.filter(Division.division_id != exclude_id)
    if query.first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Division with this name already exists"
        )


def _check_department_name(db: Session, organization_id: int, name: str, exclude_id: int | None = None):
    query = db.query(Department).filter(
        Department.organization_id == organization_id,
        Department.name == name
    )
    if exclude_id is not None:
        query = query.filter(Department.department_id != exclude_id)
    if query.first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Department with this name already exists"
        )


# ==================== DIVISIONS ====================

@router.get("/divisions", response_model=List[DivisionWithDepartments])
def list_divisions(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_member)
):
    """List divisions with their departments."""
    return db.query(Division).options(selectinload(Division.departments)).filter(
        Division.organization_id == current_user.organization_id
    ).order_by(Division.name.asc()).all()


@router.post("/divisions", response_model=DivisionResponse, status_code=status.HTTP_201_CREATED)
def create_division(
    data: DivisionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_admin)
):
    name = data.name.strip()
    _check_division_name(db, current_user.organization_id, name)
    division = Division(organization_id=current_user.organization_id, name=name)
    db.add(division)
    db.flush()
    create_audit_log(db, "Division", division.division_id, "CREATE", current_user.user_id,
                     organization_id=current_user.organization_id, entity_code=name)
    db.commit()
    db.refresh(division)
    return division


@router.patch("/divisions/{division_id}", response_model=DivisionResponse)
def rename_division(
    division_id: int,
    data: DivisionUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_admin)
):
    division = get_division(db, current_user.organization_id, division_id)
    name = data.name.strip()
    if name != division.name:
        _check_division_name(db, current_user.organization_id, name, exclude_id=division_id)
        create_audit_log(db, "Division", division.division_id, "UPDATE", current_user.user_id,
                         {"name": {"old": division.name, "new": name}},
                         organization_id=current_user.organization_id, entity_code=name)
        division.name = name
        db.commit()
        db.refresh(division)
    return division


@router.delete("/divisions/{division_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_division(
    division_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_admin)
):
    """Delete a division. Its departments are kept and become unassigned."""
    division = get_division(db, current_user.organization_id, division_id)
    db.query(Department).filter(Department.division_id == division_id).update(
        {"division_id": None}, synchronize_session=False)
    create_audit_log(db, "Division", division.division_id, "DELETE", current_user.user_id,
                     organization_id=current_user.organization_id, entity_code=division.name)
    db.delete(division)
    db.commit()
    return None


# ==================== DEPARTMENTS ====================

@router.get("/departments", response_model=List[DepartmentResponse])
def list_departments(
    division_id: Optional[int] = Query(None, description="Only departments in this division"),
    unassigned: bool = Query(False, description="Only departments without a division"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_member)
):
    query = db.query(Department).filter(Department.organization_id == current_user.organization_id)
    if unassigned:
        query = query.filter(Department.division_id.is_(None))
    elif division_id is not None:
        query = query.filter(Department.division_id == division_id)
    return query.order_by(Department.name.asc()).all()


@router.post("/departments", response_model=DepartmentResponse, status_code=status.HTTP_201_CREATED)
def create_department(
    data: DepartmentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_admin)
):
    name = data.name.strip()
    _check_department_name(db, current_user.organization_id, name)
    if data.division_id is not None:
        get_division(db, current_user.organization_id, data.division_id)
    department = Department(
        organization_id=current_user.organization_id,
        division_id=data.division_id,
        name=name,
        description=data.description,
    )
    db.add(department)
    db.flush()
    create_audit_log(db, "Department", department.department_id, "CREATE", current_user.user_id,
                     {"division_id": data.division_id},
                     organization_id=current_user.organization_id, entity_code=name)
    db.commit()
    db.refresh(department)
    return department


@router.patch("/departments/{department_id}", response_model=DepartmentResponse)
def update_department(
    department_id: int,
    data: DepartmentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_admin)
):
    department = get_department(db, current_user.organization_id, department_id)
    update_data = data.model_dump(exclude_unset=True)
    if "name" in update_data and update_data["name"] is not None:
        update_data["name"] = update_data["name"].strip()
        if update_data["name"] != department.name:
            _check_department_name(db, current_user.organization_id, update_data["name"],
                                   exclude_id=department_id)

    changes = {}
    for field, value in update_data.items():
        if getattr(department, field) != value:
            changes[field] = {"old": getattr(department, field), "new": value}
            setattr(department, field, value)
    if changes:
        create_audit_log(db, "Department", department.department_id, "UPDATE", current_user.user_id,
                         changes, organization_id=current_user.organization_id,
                         entity_code=department.name)
        db.commit()
        db.refresh(department)
    return department


@router.put("/departments/{department_id}/division", response_model=DepartmentResponse)
def assign_department(
    department_id: int,
    data: DepartmentAssign,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_admin)
):
    """Move a department to a division, or unassign it with a null division_id."""
    department = get_department(db, current_user.organization_id, department_id)
    if data.division_id is not None:
        get_division(db, current_user.organization_id, data.division_id)
    old_division_id = department.division_id
    department.division_id = data.division_id
    create_audit_log(db, "Department", department.department_id, "ASSIGN", current_user.user_id,
                     {"division_id": {"old": old_division_id, "new": data.division_id}},
                     organization_id=current_user.organization_id, entity_code=department.name)
    db.commit()
    db.refresh(department)
    return department


@router.delete("/departments/{department_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_department(
    department_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_org_admin)
):
    department = get_department(db, current_user.organization_id, department_id)
    create_audit_log(db, "Department", department.department_id, "DELETE", current_user.user_id,
                     organization_id=current_user.organization_id, entity_code=department.name)
    db.delete(department)
    db.commit()
    return None
