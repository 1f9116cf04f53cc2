"""
Database Models

Every model except Organization carries organization_id for tenant isolation.
"""
from kite_assets.models.organization import Organization
from kite_assets.models.user import User, UserRole
from kite_assets.models.taxonomy import Department, AssetCategory, AssetLocation
from kite_assets.models.asset import Asset, AssetStatus

__all__ = [
    "Organization",
    "User",
    "UserRole",
    "Department",
    "AssetCategory",
    "AssetLocation",
    "Asset",
    "AssetStatus",
]
