"""Divisions and departments."""
from datetime import datetime
from typing import List, Optional
from sqlalchemy import String, Integer, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.models.base import Base
from app.core.time import utc_now


class Division(Base):
    __tablename__ = "divisions"
    __table_args__ = (
        UniqueConstraint("organization_id", "name", name="uq_division_org_name"),
    )

    division_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    organization_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("organizations.organization_id", ondelete="CASCADE"),
        nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)

    departments: Mapped[List["Department"]] = relationship(
        "Department", back_populates="division", order_by="Department.name")


class Department(Base):
    __tablename__ = "departments"
    __table_args__ = (
        UniqueConstraint("organization_id", "name", name="uq_department_org_name"),
    )

    department_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    organization_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("organizations.organization_id", ondelete="CASCADE"),
        nullable=False, index=True)
    division_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("divisions.division_id", ondelete="SET NULL"),
        nullable=True, index=True,
        comment="NULL means unassigned; cleared when the division is deleted")
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)

    division: Mapped[Optional[Division]] = relationship("Division", back_populates="departments")
