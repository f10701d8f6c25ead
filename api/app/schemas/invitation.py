"""Invitation schemas."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field


class InvitationCreate(BaseModel):
    email: EmailStr
    role: str = "user"
    expires_in_days: Optional[int] = Field(default=None, ge=1, le=90)
    notes: Optional[str] = None


class InvitationResponse(BaseModel):
    invitation_id: int
    invite_code: str
    email: str
    organization_id: int
    role: str
    status: str
    expires_at: datetime
    notes: Optional[str] = None
    created_by_id: Optional[int] = None
    created_at: datetime
    used_by_id: Optional[int] = None
    used_at: Optional[datetime] = None
    revoked_by_id: Optional[int] = None
    revoked_at: Optional[datetime] = None
    revoke_reason: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class InvitationValidateRequest(BaseModel):
    invite_code: str
    email: EmailStr


class InvitationValidateResponse(BaseModel):
    is_valid: bool
    invitation_id: Optional[int] = None
    organization_id: Optional[int] = None
    role: Optional[str] = None
    error_message: Optional[str] = None


class InvitationRevokeRequest(BaseModel):
    reason: Optional[str] = None


class CleanupResponse(BaseModel):
    expired_count: int
