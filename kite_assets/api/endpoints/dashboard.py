"""
Dashboard Endpoints

Headline numbers for the overview page, computed in the database.
"""
from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from kite_assets.database import get_db
from kite_assets.models.user import User
from kite_assets.models.asset import Asset, AssetStatus
from kite_assets.models.taxonomy import AssetCategory
from kite_assets.schemas.asset import DashboardSummary
from kite_assets.api.deps import require_viewer

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/summary", response_model=DashboardSummary)
def get_summary(
    current_user: User = Depends(require_viewer),
    db: Session = Depends(get_db)
):
    """
    Totals plus asset counts by status and by category.

    by_status always lists all four statuses, keyed by display label.
    """
    organization_id = current_user.organization_id

    status_rows = db.query(Asset.status, func.count(Asset.id)).filter(
        Asset.organization_id == organization_id
    ).group_by(Asset.status).all()
    status_counts = {status: count for status, count in status_rows}

    category_rows = db.query(AssetCategory.name, func.count(Asset.id)).join(
        Asset, Asset.category_id == AssetCategory.id
    ).filter(
        Asset.organization_id == organization_id
    ).group_by(AssetCategory.name).order_by(AssetCategory.name).all()

    total_value = db.query(func.coalesce(func.sum(Asset.value), 0.0)).filter(
        Asset.organization_id == organization_id
    ).scalar()

    return DashboardSummary(
        total_assets=sum(status_counts.values()),
        total_value=float(total_value or 0.0),
        in_maintenance=status_counts.get(AssetStatus.UNDER_MAINTENANCE, 0),
        retired=status_counts.get(AssetStatus.RETIRED, 0),
        by_status={status.label: status_counts.get(status, 0) for status in AssetStatus},
        by_category={name: count for name, count in category_rows},
    )
