"""
Organization Model

The organization is the tenant boundary. Every other entity carries an
organization_id and is only ever read or mutated on behalf of a member
of that organization.
"""
from sqlalchemy import Column, String, DateTime, Index
from sqlalchemy.orm import relationship
from datetime import datetime
from kite_assets.database import Base
import uuid


class Organization(Base):
    __tablename__ = "organizations"

    # UUIDs keep ids from being trivially enumerable across tenants
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    name = Column(String(255), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    users = relationship("User", back_populates="organization", cascade="all, delete-orphan")
    assets = relationship("Asset", back_populates="organization", cascade="all, delete-orphan")
    departments = relationship("Department", back_populates="organization", cascade="all, delete-orphan")
    asset_categories = relationship("AssetCategory", back_populates="organization", cascade="all, delete-orphan")
    asset_locations = relationship("AssetLocation", back_populates="organization", cascade="all, delete-orphan")

    __table_args__ = (
        Index('idx_organization_created', 'created_at'),
    )

    def __repr__(self):
        return f"<Organization {self.name} ({self.id})>"
