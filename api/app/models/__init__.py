"""Models package."""
from app.models.base import Base
from app.models.organization import Organization, OrganizationStatus
from app.models.user import User, UserStatus
from app.models.invitation import UserInvitation, InvitationStatus
from app.models.org_structure import Division, Department
from app.models.risk_taxonomy import RiskCategory, RiskSubcategory
from app.models.kri import KriDefinition, KriValue
from app.models.appetite import (
    RiskAppetiteStatement,
    RiskAppetiteCategory,
    ToleranceMetric,
    StatementStatus,
    AppetiteLevel,
    MetricType,
    MaterialityType,
    MetricLifecycle,
)
from app.models.regulator import Regulator, OrganizationRegulator, RegulatorAccess
from app.models.audit_log import AuditLog
from app.models.library import (
    SeedLibraryItem,
    RootCauseLibrary,
    ImpactLibrary,
    ControlLibrary,
    IndicatorLibrary,
    LibraryGenerationLog,
)

__all__ = [
    "Base",
    "Organization",
    "OrganizationStatus",
    "User",
    "UserStatus",
    "UserInvitation",
    "InvitationStatus",
    "Division",
    "Department",
    "RiskCategory",
    "RiskSubcategory",
    "KriDefinition",
    "KriValue",
    "RiskAppetiteStatement",
    "RiskAppetiteCategory",
    "ToleranceMetric",
    "StatementStatus",
    "AppetiteLevel",
    "MetricType",
    "MaterialityType",
    "MetricLifecycle",
    "Regulator",
    "OrganizationRegulator",
    "RegulatorAccess",
    "AuditLog",
    "SeedLibraryItem",
    "RootCauseLibrary",
    "ImpactLibrary",
    "ControlLibrary",
    "IndicatorLibrary",
    "LibraryGenerationLog",
]
