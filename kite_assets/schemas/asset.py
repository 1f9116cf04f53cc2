"""
Asset Schemas

Request/response models for asset operations and the dashboard summary.
Categories and locations are referenced by name; the server resolves
them inside the caller's organization.
"""
from pydantic import BaseModel, Field
from typing import Optional, Dict
from datetime import date, datetime
from kite_assets.models.asset import AssetStatus


class AssetBase(BaseModel):
    """Base asset schema."""
    name: str = Field(..., min_length=2, max_length=255)
    category_name: str = Field(..., min_length=1, max_length=255)
    location_name: str = Field(..., min_length=1, max_length=255)
    value: float = Field(0.0, ge=0)
    status: AssetStatus


class AssetCreate(AssetBase):
    """Schema for creating an asset."""
    asset_tag: str = Field(..., min_length=1, max_length=100)
    purchase_date: Optional[date] = None


class AssetUpdate(BaseModel):
    """Schema for updating an asset. The tag cannot change."""
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    category_name: Optional[str] = Field(None, min_length=1, max_length=255)
    location_name: Optional[str] = Field(None, min_length=1, max_length=255)
    value: Optional[float] = Field(None, ge=0)
    status: Optional[AssetStatus] = None


class AssetResponse(AssetBase):
    """Asset response schema."""
    id: str
    organization_id: str
    asset_tag: str
    purchase_date: date
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class AssetListResponse(BaseModel):
    """Paginated list of assets."""
    assets: list[AssetResponse]
    total: int
    page: int
    page_size: int


class DashboardSummary(BaseModel):
    """Headline numbers and distributions for the overview page."""
    total_assets: int
    total_value: float
    in_maintenance: int
    retired: int
    by_status: Dict[str, int]
    by_category: Dict[str, int]
