"""
Asset Model

A physical asset owned by an organization.

The asset tag is unique per organization, not globally: two tenants may
both label something "X1".
"""
from sqlalchemy import Column, String, Float, Date, DateTime, ForeignKey, Index, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime, date
from kite_assets.database import Base
import uuid
import enum
import re


class AssetStatus(str, enum.Enum):
    IN_USE = "InUse"
    IN_STORAGE = "InStorage"
    UNDER_MAINTENANCE = "UnderMaintenance"
    RETIRED = "Retired"

    @property
    def label(self) -> str:
        """Display form, e.g. "UnderMaintenance" -> "Under Maintenance"."""
        return re.sub(r"(?<!^)([A-Z])", r" \1", self.value)


class Asset(Base):
    __tablename__ = "assets"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # CRITICAL: Organization foreign key for isolation
    organization_id = Column(
        String(36),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    name = Column(String(255), nullable=False)
    asset_tag = Column(String(100), nullable=False)

    # RESTRICT: a category or location cannot disappear under its assets
    category_id = Column(
        String(36),
        ForeignKey("asset_categories.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )
    location_id = Column(
        String(36),
        ForeignKey("asset_locations.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )

    value = Column(Float, default=0.0, nullable=False)
    status = Column(
        SQLEnum(AssetStatus),
        default=AssetStatus.IN_USE,
        nullable=False,
        index=True
    )
    purchase_date = Column(Date, default=date.today, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    organization = relationship("Organization", back_populates="assets")
    category = relationship("AssetCategory", back_populates="assets")
    location = relationship("AssetLocation", back_populates="assets")

    __table_args__ = (
        UniqueConstraint('organization_id', 'asset_tag', name='uq_asset_org_tag'),
        # Dashboard and report queries
        Index('idx_asset_organization_status', 'organization_id', 'status'),
        Index('idx_asset_organization_created', 'organization_id', 'created_at'),
    )

    def __repr__(self):
        return f"<Asset {self.asset_tag} (organization={self.organization_id})>"

    @property
    def category_name(self):
        return self.category.name if self.category else None

    @property
    def location_name(self):
        return self.location.name if self.location else None
