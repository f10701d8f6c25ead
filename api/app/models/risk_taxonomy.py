"""Organization risk taxonomy: categories and subcategories."""
from datetime import datetime
from typing import List, Optional
from sqlalchemy import String, Integer, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.models.base import Base
from app.core.time import utc_now


class RiskCategory(Base):
    """Top level of the taxonomy; the chain validator expects one appetite entry per row."""
    __tablename__ = "risk_categories"
    __table_args__ = (
        UniqueConstraint("organization_id", "name", name="uq_risk_category_org_name"),
    )

    category_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    organization_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("organizations.organization_id", ondelete="CASCADE"),
        nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)

    subcategories: Mapped[List["RiskSubcategory"]] = relationship(
        "RiskSubcategory", back_populates="category", order_by="RiskSubcategory.name")


class RiskSubcategory(Base):
    __tablename__ = "risk_subcategories"
    __table_args__ = (
        UniqueConstraint("category_id", "name", name="uq_risk_subcategory_category_name"),
    )

    subcategory_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    category_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("risk_categories.category_id", ondelete="RESTRICT"),
        nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)

    category: Mapped[RiskCategory] = relationship("RiskCategory", back_populates="subcategories")
