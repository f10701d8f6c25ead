"""Audit trail helper shared by routers and governance services."""
from typing import Optional
from sqlalchemy.orm import Session
from app.models.audit_log import AuditLog


def create_audit_log(
    db: Session,
    entity_type: str,
    entity_id: int,
    action: str,
    user_id: Optional[int],
    changes: Optional[dict] = None,
    organization_id: Optional[int] = None,
    entity_code: Optional[str] = None,
) -> AuditLog:
    """Add an audit row to the current transaction. The caller commits."""
    audit_log = AuditLog(
        organization_id=organization_id,
        entity_type=entity_type,
        entity_id=entity_id,
        entity_code=entity_code,
        action=action,
        user_id=user_id,
        changes=changes
    )
    db.add(audit_log)
    return audit_log
