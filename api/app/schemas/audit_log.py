"""Audit log schemas."""
from datetime import datetime
from typing import Optional, Any, Dict
from pydantic import BaseModel, ConfigDict


class AuditLogUser(BaseModel):
    user_id: int
    email: str
    full_name: str

    model_config = ConfigDict(from_attributes=True)


class AuditLogResponse(BaseModel):
    log_id: int
    organization_id: Optional[int] = None
    entity_type: str
    entity_id: int
    entity_code: Optional[str] = None
    action: str
    user_id: Optional[int] = None
    changes: Optional[Dict[str, Any]] = None
    timestamp: datetime
    user: Optional[AuditLogUser] = None

    model_config = ConfigDict(from_attributes=True)
