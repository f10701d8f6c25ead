"""User model."""
import enum
from datetime import datetime
from typing import Optional, TYPE_CHECKING
from sqlalchemy import String, Integer, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.models.base import Base
from app.core.roles import RoleCode
from app.core.time import utc_now

if TYPE_CHECKING:
    from app.models.organization import Organization


class UserStatus(str, enum.Enum):
    """Account status. Self-service signups start as pending until an admin approves."""
    PENDING = "pending"
    APPROVED = "approved"
    SUSPENDED = "suspended"


class User(Base):
    """User model."""
    __tablename__ = "users"

    user_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(50), nullable=False, default=RoleCode.USER.value)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=UserStatus.PENDING.value, index=True)

    # Super admins and regulator users are not members of any organization
    organization_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("organizations.organization_id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )

    approved_by_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Single active session per user; a new login replaces it
    current_session_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    last_active_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)

    organization: Mapped[Optional["Organization"]] = relationship(
        "Organization", foreign_keys=[organization_id])
