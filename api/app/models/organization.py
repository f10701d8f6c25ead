"""Organization (tenant) model."""
import enum
from datetime import datetime
from typing import Optional
from sqlalchemy import String, Integer, Text, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from app.models.base import Base
from app.core.time import utc_now


class OrganizationStatus(str, enum.Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"


class Organization(Base):
    """A tenant. Every governance record is scoped to exactly one organization."""
    __tablename__ = "organizations"

    organization_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str] = mapped_column(
        String(50), nullable=False, unique=True, index=True,
        comment="Short code used at self-service signup")
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    industry_type: Mapped[Optional[str]] = mapped_column(
        String(100), nullable=True,
        comment="Matched against seed library industry tags")
    institution_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=OrganizationStatus.ACTIVE.value)
    suspended_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    suspended_by_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.user_id", ondelete="SET NULL", use_alter=True), nullable=True)
    primary_regulator_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("regulators.regulator_id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)
