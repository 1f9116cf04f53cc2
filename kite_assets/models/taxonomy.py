"""
Taxonomy Models

Departments, asset categories and asset locations are small per-organization
lookup tables. Names are unique within an organization, enforced by the
database so concurrent inserts cannot both succeed.

Assets and users reference these rows by foreign key, so a rename shows up
everywhere at once.
"""
from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship, declared_attr
from datetime import datetime
from kite_assets.database import Base
import uuid


class TaxonomyMixin:
    """Shared columns for organization-scoped named lookups."""

    # Human label used in error messages
    label = "Item"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    @declared_attr
    def organization_id(cls):
        return Column(
            String(36),
            ForeignKey("organizations.id", ondelete="CASCADE"),
            nullable=False,
            index=True
        )

    @declared_attr
    def __table_args__(cls):
        return (
            UniqueConstraint('organization_id', 'name', name=f"uq_{cls.__tablename__}_org_name"),
        )

    def __repr__(self):
        return f"<{type(self).__name__} {self.name} (organization={self.organization_id})>"


class Department(TaxonomyMixin, Base):
    __tablename__ = "departments"
    label = "Department"

    organization = relationship("Organization", back_populates="departments")
    users = relationship("User", back_populates="department")


class AssetCategory(TaxonomyMixin, Base):
    __tablename__ = "asset_categories"
    label = "Category"

    organization = relationship("Organization", back_populates="asset_categories")
    assets = relationship("Asset", back_populates="category")


class AssetLocation(TaxonomyMixin, Base):
    __tablename__ = "asset_locations"
    label = "Location"

    organization = relationship("Organization", back_populates="asset_locations")
    assets = relationship("Asset", back_populates="location")
