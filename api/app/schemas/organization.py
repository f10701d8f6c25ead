"""Organization schemas."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field


class OrganizationBase(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    industry_type: Optional[str] = None
    institution_type: Optional[str] = None


class OrganizationCreate(OrganizationBase):
    code: str = Field(min_length=2, max_length=50)


class OrganizationUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    industry_type: Optional[str] = None
    institution_type: Optional[str] = None


class OrganizationResponse(OrganizationBase):
    organization_id: int
    code: str
    status: str
    suspended_at: Optional[datetime] = None
    primary_regulator_id: Optional[int] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrganizationAdminListItem(OrganizationResponse):
    user_count: int


class SuspensionResult(BaseModel):
    organization_id: int
    status: str
    users_affected: int


class PrimaryAdminInviteRequest(BaseModel):
    email: EmailStr
    expires_in_days: Optional[int] = Field(default=None, ge=1, le=90)
    notes: Optional[str] = None


class PlatformMetrics(BaseModel):
    total_organizations: int
    active_organizations: int
    suspended_organizations: int
    total_users: int
    users_by_status: dict
    users_by_role: dict
    pending_invitations: int
    active_users: int


class ActiveSessionResponse(BaseModel):
    user_id: int
    email: str
    full_name: str
    role: str
    organization_id: Optional[int] = None
    organization_name: Optional[str] = None
    last_active_at: datetime
