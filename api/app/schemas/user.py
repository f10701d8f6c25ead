"""User and authentication schemas."""
from datetime import datetime
from typing import Dict, Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserBase(BaseModel):
    email: EmailStr
    full_name: str


class UserResponse(UserBase):
    user_id: int
    role: str
    status: str
    organization_id: Optional[int] = None
    approved_at: Optional[datetime] = None
    last_active_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CurrentUserResponse(UserResponse):
    role_display: Optional[str] = None
    organization_name: Optional[str] = None
    capabilities: Dict[str, bool] = {}


class UserRoleUpdate(BaseModel):
    role: str


class UserStatusUpdate(BaseModel):
    status: str


class Token(BaseModel):
    access_token: str
    token_type: str
    session_id: str


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class SignupRequest(UserBase):
    """Self-service signup. Creates a pending account awaiting admin approval."""
    password: str = Field(min_length=8)
    organization_code: str


class RegisterWithInvitationRequest(UserBase):
    password: str = Field(min_length=8)
    invite_code: str


class HeartbeatResponse(BaseModel):
    session_valid: bool
    last_active_at: datetime
