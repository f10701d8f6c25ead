"""Role codes, display names and permission helpers."""
from __future__ import annotations

import enum
from typing import Dict, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from app.models.user import User


class RoleCode(str, enum.Enum):
    SUPER_ADMIN = "super_admin"
    PRIMARY_ADMIN = "primary_admin"
    SECONDARY_ADMIN = "secondary_admin"
    USER = "user"
    VIEWER = "viewer"
    REGULATOR = "regulator"


ROLE_CODE_TO_DISPLAY: Dict[str, str] = {
    RoleCode.SUPER_ADMIN.value: "Super Admin",
    RoleCode.PRIMARY_ADMIN.value: "Primary Admin",
    RoleCode.SECONDARY_ADMIN.value: "Secondary Admin",
    RoleCode.USER.value: "User",
    RoleCode.VIEWER.value: "Viewer",
    RoleCode.REGULATOR.value: "Regulator",
}

# Roles an organization admin may hand out, either directly or by invitation
ORG_ASSIGNABLE_ROLES: List[str] = [
    RoleCode.PRIMARY_ADMIN.value,
    RoleCode.SECONDARY_ADMIN.value,
    RoleCode.USER.value,
    RoleCode.VIEWER.value,
]

ORG_ADMIN_ROLES = {RoleCode.PRIMARY_ADMIN.value, RoleCode.SECONDARY_ADMIN.value}


def normalize_role_code(value: str | None) -> Optional[str]:
    """Accept either a role code or its display name ("Primary Admin")."""
    if not value:
        return None
    normalized = value.strip().lower().replace(" ", "_").replace("-", "_")
    if not normalized:
        return None
    if normalized in ROLE_CODE_TO_DISPLAY:
        return normalized
    return None


def get_role_display(role_code: str | None, fallback: str | None = None) -> Optional[str]:
    if not role_code:
        return fallback
    return ROLE_CODE_TO_DISPLAY.get(role_code, fallback)


def is_super_admin(user: "User") -> bool:
    return user.role == RoleCode.SUPER_ADMIN.value


def is_org_admin(user: "User") -> bool:
    return user.role in ORG_ADMIN_ROLES


def is_primary_admin(user: "User") -> bool:
    return user.role == RoleCode.PRIMARY_ADMIN.value


def can_edit_governance(user: "User") -> bool:
    """Viewers and regulators are read-only on appetite and tolerance records."""
    return user.role in ORG_ADMIN_ROLES or user.role == RoleCode.USER.value


def build_capabilities(role_code: str | None) -> Dict[str, bool]:
    is_super = role_code == RoleCode.SUPER_ADMIN.value
    is_admin = role_code in ORG_ADMIN_ROLES
    return {
        "is_super_admin": is_super,
        "is_org_admin": is_admin,
        "can_manage_users": is_admin,
        "can_manage_invitations": is_admin,
        "can_manage_org_structure": is_admin,
        "can_approve_appetite": is_admin,
        "can_edit_governance": is_admin or role_code == RoleCode.USER.value,
        "can_generate_library": is_admin,
        "can_manage_platform": is_super,
        "is_regulator": role_code == RoleCode.REGULATOR.value,
    }
