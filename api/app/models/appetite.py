"""Risk appetite statements, appetite categories and tolerance metrics.

Governance records follow an append-only history: once a statement is approved
or a metric activated, changes are made by superseding it with a new version
rather than editing or deleting the row. The rules live in
``app.core.appetite_governance``; the partial unique indexes below back up the
two "at most one" invariants at the database level.
"""
import enum
from datetime import date, datetime
from typing import List, Optional, TYPE_CHECKING
from sqlalchemy import (
    String, Integer, Text, Date, DateTime, Boolean, Float, JSON, ForeignKey,
    Index, UniqueConstraint, text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.models.base import Base
from app.core.time import utc_now

if TYPE_CHECKING:
    from app.models.kri import KriDefinition
    from app.models.user import User


class StatementStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    APPROVED = "APPROVED"
    SUPERSEDED = "SUPERSEDED"


class AppetiteLevel(str, enum.Enum):
    ZERO = "ZERO"
    LOW = "LOW"
    MODERATE = "MODERATE"
    HIGH = "HIGH"


class MetricType(str, enum.Enum):
    MAXIMUM = "MAXIMUM"
    MINIMUM = "MINIMUM"
    RANGE = "RANGE"
    DIRECTIONAL = "DIRECTIONAL"


class MaterialityType(str, enum.Enum):
    INTERNAL = "INTERNAL"
    EXTERNAL = "EXTERNAL"
    DUAL = "DUAL"


class MetricLifecycle(str, enum.Enum):
    """Derived from is_active and never_activated; not stored."""
    INACTIVE = "INACTIVE"
    ACTIVE = "ACTIVE"
    HISTORICAL = "HISTORICAL"


class RiskAppetiteStatement(Base):
    __tablename__ = "risk_appetite_statements"
    __table_args__ = (
        UniqueConstraint("organization_id", "version_number", name="uq_appetite_statement_version"),
        Index(
            "uq_appetite_statement_one_approved",
            "organization_id",
            unique=True,
            postgresql_where=text("status = 'APPROVED'"),
            sqlite_where=text("status = 'APPROVED'"),
        ),
    )

    statement_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    organization_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("organizations.organization_id", ondelete="CASCADE"),
        nullable=False, index=True)
    version_number: Mapped[int] = mapped_column(
        Integer, nullable=False, comment="Monotonically increasing per organization")
    statement_text: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=StatementStatus.DRAFT.value, index=True)
    effective_from: Mapped[date] = mapped_column(Date, nullable=False)
    effective_to: Mapped[Optional[date]] = mapped_column(
        Date, nullable=True, comment="Set when the statement is superseded")
    next_review_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    approved_by_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    supersedes_statement_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("risk_appetite_statements.statement_id", ondelete="SET NULL"),
        nullable=True)
    superseded_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    created_by_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    categories: Mapped[List["RiskAppetiteCategory"]] = relationship(
        "RiskAppetiteCategory", back_populates="statement",
        order_by="RiskAppetiteCategory.risk_category")
    approved_by: Mapped[Optional["User"]] = relationship("User", foreign_keys=[approved_by_id])


class RiskAppetiteCategory(Base):
    __tablename__ = "risk_appetite_categories"
    __table_args__ = (
        UniqueConstraint("statement_id", "risk_category", name="uq_appetite_category_per_statement"),
    )

    appetite_category_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    organization_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("organizations.organization_id", ondelete="CASCADE"),
        nullable=False, index=True)
    statement_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("risk_appetite_statements.statement_id", ondelete="CASCADE"),
        nullable=False, index=True)
    risk_category: Mapped[str] = mapped_column(
        String(255), nullable=False, comment="Name of the taxonomy risk category")
    appetite_level: Mapped[str] = mapped_column(String(20), nullable=False)
    rationale: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)

    statement: Mapped[RiskAppetiteStatement] = relationship(
        "RiskAppetiteStatement", back_populates="categories")
    metrics: Mapped[List["ToleranceMetric"]] = relationship(
        "ToleranceMetric", back_populates="appetite_category")


class ToleranceMetric(Base):
    __tablename__ = "tolerance_metrics"
    __table_args__ = (
        Index(
            "uq_tolerance_metric_one_active_version",
            "organization_id", "metric_key",
            unique=True,
            postgresql_where=text("is_active = true"),
            sqlite_where=text("is_active = 1"),
        ),
    )

    metric_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    organization_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("organizations.organization_id", ondelete="CASCADE"),
        nullable=False, index=True)
    appetite_category_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("risk_appetite_categories.appetite_category_id", ondelete="RESTRICT"),
        nullable=False, index=True)
    metric_key: Mapped[str] = mapped_column(
        String(32), nullable=False, index=True,
        comment="Shared by every version of the same metric")
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    metric_name: Mapped[str] = mapped_column(String(255), nullable=False)
    metric_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    metric_type: Mapped[str] = mapped_column(String(20), nullable=False)
    unit: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    materiality_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default=MaterialityType.INTERNAL.value)

    green_min: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    green_max: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    amber_min: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    amber_max: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    red_min: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    red_max: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    directional_config: Mapped[Optional[dict]] = mapped_column(
        JSON, nullable=True,
        comment="DIRECTIONAL only: lookback_days, allowed_change_pct, trend")

    kri_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("kri_definitions.kri_id", ondelete="SET NULL"), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    never_activated: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True,
        comment="Cleared on first activation; only never-activated metrics may be deleted")
    effective_from: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    effective_to: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    activated_by_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)
    activated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    deactivated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    supersedes_metric_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("tolerance_metrics.metric_id", ondelete="SET NULL"), nullable=True)

    created_by_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)

    appetite_category: Mapped[RiskAppetiteCategory] = relationship(
        "RiskAppetiteCategory", back_populates="metrics")
    kri: Mapped[Optional["KriDefinition"]] = relationship("KriDefinition")

    @property
    def lifecycle(self) -> MetricLifecycle:
        if self.is_active:
            return MetricLifecycle.ACTIVE
        if self.never_activated:
            return MetricLifecycle.INACTIVE
        return MetricLifecycle.HISTORICAL
