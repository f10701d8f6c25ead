"""Division and department schemas."""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class DivisionCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)


class DivisionUpdate(BaseModel):
    name: str = Field(min_length=1, max_length=255)


class DepartmentCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    division_id: Optional[int] = None


class DepartmentUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None


class DepartmentAssign(BaseModel):
    division_id: Optional[int] = None


class DepartmentResponse(BaseModel):
    department_id: int
    organization_id: int
    division_id: Optional[int] = None
    name: str
    description: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DivisionResponse(BaseModel):
    division_id: int
    organization_id: int
    name: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DivisionWithDepartments(DivisionResponse):
    departments: List[DepartmentResponse] = []
