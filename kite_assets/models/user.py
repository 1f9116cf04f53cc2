"""
User Model

Users belong to an organization and carry one of four roles.

IMPORTANT: organization_id is the critical field for data isolation.
Email addresses are unique across ALL organizations because login is
by email alone.
"""
from sqlalchemy import Column, String, DateTime, ForeignKey, Index, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
from kite_assets.database import Base
import uuid
import enum


class UserRole(str, enum.Enum):
    """
    User roles for RBAC.

    PLATFORM_ADMIN: Operates the platform, sees every organization
    ADMIN: Full access inside one organization, manages users and settings
    MANAGER: Adds and edits assets
    STAFF: Read-only access to assets, dashboard and reports

    What each role may do lives in kite_assets.core.permissions.
    """
    PLATFORM_ADMIN = "PlatformAdmin"
    ADMIN = "Admin"
    MANAGER = "Manager"
    STAFF = "Staff"


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # CRITICAL: Organization foreign key for data isolation
    organization_id = Column(
        String(36),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    hashed_password = Column(String(255), nullable=False)

    role = Column(
        SQLEnum(UserRole),
        default=UserRole.STAFF,
        nullable=False,
        index=True
    )

    department_id = Column(
        String(36),
        ForeignKey("departments.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    organization = relationship("Organization", back_populates="users")
    department = relationship("Department", back_populates="users")

    __table_args__ = (
        # Admin counting for the last-admin rule
        Index('idx_user_organization_role', 'organization_id', 'role'),
        Index('idx_user_organization_name', 'organization_id', 'name'),
    )

    def __repr__(self):
        return f"<User {self.email} (organization={self.organization_id})>"

    @property
    def department_name(self):
        return self.department.name if self.department else None

    @property
    def is_platform_admin(self) -> bool:
        return self.role == UserRole.PLATFORM_ADMIN
