"""Regulator schemas."""
from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field


class RegulatorBase(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    jurisdiction: Optional[str] = None
    sector: Optional[str] = None
    description: Optional[str] = None


class RegulatorCreate(RegulatorBase):
    code: str = Field(pattern=r"^[A-Z0-9_-]+$", max_length=20)
    alert_thresholds: Optional[Dict[str, float]] = None


class RegulatorUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    jurisdiction: Optional[str] = None
    sector: Optional[str] = None
    description: Optional[str] = None
    alert_thresholds: Optional[Dict[str, float]] = None
    is_active: Optional[bool] = None


class RegulatorResponse(RegulatorBase):
    regulator_id: int
    code: str
    alert_thresholds: Dict[str, float]
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrganizationRegulatorAssignment(BaseModel):
    regulator_ids: List[int]
    primary_regulator_id: Optional[int] = None


class OrganizationRegulatorResponse(BaseModel):
    regulator_id: int
    is_primary: bool
    assigned_at: datetime
    regulator: RegulatorResponse

    model_config = ConfigDict(from_attributes=True)


class RegulatedOrganization(BaseModel):
    organization_id: int
    name: str
    code: str
    status: str
    industry_type: Optional[str] = None
    regulator_id: int
    regulator_code: str
    is_primary: bool


class RegulatorUserCreate(BaseModel):
    email: EmailStr
    full_name: str
    password: str = Field(min_length=8)
    regulator_ids: List[int] = []


class RegulatorAccessUpdate(BaseModel):
    regulator_ids: List[int]


class RegulatorUserResponse(BaseModel):
    user_id: int
    email: str
    full_name: str
    status: str
    regulators: List[RegulatorResponse] = []
