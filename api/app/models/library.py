"""Shared seed catalog and the risk libraries populated from it."""
from datetime import datetime
from typing import List, Optional
from sqlalchemy import String, Integer, Text, DateTime, Boolean, JSON, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from app.models.base import Base
from app.core.time import utc_now

LIBRARY_ITEM_TYPES = ("root_cause", "impact", "control", "kri", "kci")


class SeedLibraryItem(Base):
    """Catalog row copied into the libraries by the generator."""
    __tablename__ = "seed_library_items"

    seed_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    item_type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    code: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category_hints: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    industry_tags: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    attributes: Mapped[Optional[dict]] = mapped_column(
        JSON, nullable=True, comment="Type specific extras, e.g. control_type or unit")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)


class RootCauseLibrary(Base):
    __tablename__ = "root_cause_library"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    code: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(255), nullable=False, default="General")
    subcategory: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utc_now, onupdate=utc_now, nullable=False)


class ImpactLibrary(Base):
    __tablename__ = "impact_library"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    code: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(255), nullable=False, default="General")
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utc_now, onupdate=utc_now, nullable=False)


class ControlLibrary(Base):
    __tablename__ = "control_library"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    code: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(255), nullable=False, default="General")
    control_type: Mapped[Optional[str]] = mapped_column(
        String(50), nullable=True, comment="preventive, detective or corrective")
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utc_now, onupdate=utc_now, nullable=False)


class IndicatorLibrary(Base):
    """KRIs and KCIs share one table, told apart by indicator_type."""
    __tablename__ = "indicator_library"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    code: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    indicator_type: Mapped[str] = mapped_column(String(10), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(255), nullable=False, default="General")
    unit: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utc_now, onupdate=utc_now, nullable=False)


class LibraryGenerationLog(Base):
    __tablename__ = "library_generation_logs"

    log_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    organization_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("organizations.organization_id", ondelete="CASCADE"),
        nullable=False, index=True)
    generated_by_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)
    industry_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    categories_used: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    root_causes_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    impacts_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    controls_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    kris_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    kcis_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)
