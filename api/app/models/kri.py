"""Key risk / key control indicators and their observations."""
from datetime import date, datetime
from typing import List, Optional
from sqlalchemy import String, Integer, Text, Date, DateTime, Float, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.models.base import Base
from app.core.time import utc_now


class KriDefinition(Base):
    __tablename__ = "kri_definitions"
    __table_args__ = (
        UniqueConstraint("organization_id", "kri_code", name="uq_kri_org_code"),
    )

    kri_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    organization_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("organizations.organization_id", ondelete="CASCADE"),
        nullable=False, index=True)
    kri_code: Mapped[str] = mapped_column(String(50), nullable=False)
    kri_name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    indicator_type: Mapped[str] = mapped_column(
        String(10), nullable=False, default="KRI", comment="KRI or KCI")
    unit: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)

    values: Mapped[List["KriValue"]] = relationship(
        "KriValue", back_populates="kri", cascade="all, delete-orphan",
        order_by="desc(KriValue.measurement_date)")


class KriValue(Base):
    __tablename__ = "kri_values"

    value_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    kri_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("kri_definitions.kri_id", ondelete="CASCADE"),
        nullable=False, index=True)
    measurement_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    value: Mapped[float] = mapped_column(Float, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    recorded_by_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)

    kri: Mapped[KriDefinition] = relationship("KriDefinition", back_populates="values")
