"""Regulators, their assignment to organizations and regulator-user grants."""
from datetime import datetime
from typing import Optional
from sqlalchemy import String, Integer, Text, DateTime, Boolean, JSON, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.models.base import Base
from app.core.time import utc_now

# Per risk-category alert thresholds (percent) used when none are supplied
DEFAULT_ALERT_THRESHOLDS = {
    "liquidity": 20,
    "market": 25,
    "operational": 15,
    "credit": 20,
    "legal": 20,
    "strategic": 20,
    "esg": 20,
}


def default_alert_thresholds() -> dict:
    return dict(DEFAULT_ALERT_THRESHOLDS)


class Regulator(Base):
    __tablename__ = "regulators"

    regulator_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    code: Mapped[str] = mapped_column(
        String(20), nullable=False, unique=True, comment="Upper-case letters, digits, _ or -")
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    jurisdiction: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    sector: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    alert_thresholds: Mapped[dict] = mapped_column(
        JSON, nullable=False, default=default_alert_thresholds)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)


class OrganizationRegulator(Base):
    __tablename__ = "organization_regulators"
    __table_args__ = (
        UniqueConstraint("organization_id", "regulator_id", name="uq_org_regulator"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    organization_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("organizations.organization_id", ondelete="CASCADE"),
        nullable=False, index=True)
    regulator_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("regulators.regulator_id", ondelete="CASCADE"),
        nullable=False, index=True)
    is_primary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    assigned_by_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)
    assigned_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)

    regulator: Mapped[Regulator] = relationship("Regulator")


class RegulatorAccess(Base):
    """Grants a regulator-role user read access to one regulator's organizations."""
    __tablename__ = "regulator_access"
    __table_args__ = (
        UniqueConstraint("user_id", "regulator_id", name="uq_regulator_access"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    regulator_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("regulators.regulator_id", ondelete="CASCADE"),
        nullable=False, index=True)
    granted_by_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)
    granted_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)

    regulator: Mapped[Regulator] = relationship("Regulator")
