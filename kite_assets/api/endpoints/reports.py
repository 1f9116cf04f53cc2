"""
Report Endpoints

PDF exports of the caller's inventory. Every role may download reports.
"""
from datetime import datetime

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.orm import Session

from kite_assets.database import get_db
from kite_assets.models.user import User
from kite_assets.models.asset import Asset
from kite_assets.models.organization import Organization
from kite_assets.api.deps import require_viewer, get_current_organization
from kite_assets.utils.reports import ReportKind, REPORTS, render_report, report_filename
from kite_assets.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get(
    "/{kind}",
    response_class=Response,
    responses={200: {"content": {"application/pdf": {}}}},
)
def download_report(
    kind: ReportKind,
    current_user: User = Depends(require_viewer),
    organization: Organization = Depends(get_current_organization),
    db: Session = Depends(get_db)
):
    """Render a full inventory, maintenance or retired assets report."""
    query = db.query(Asset).filter(Asset.organization_id == organization.id)
    status = REPORTS[kind].status
    if status is not None:
        query = query.filter(Asset.status == status)
    assets = query.order_by(Asset.asset_tag.asc()).all()

    generated_at = datetime.now()
    pdf = render_report(kind, assets, organization.name, generated_at=generated_at)
    filename = report_filename(kind, generated_at)

    logger.info(
        f"Report generated: {filename} ({len(assets)} assets) by {current_user.id}",
        extra={"organization_id": organization.id}
    )

    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )
