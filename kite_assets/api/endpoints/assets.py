"""
Asset Endpoints

CRUD operations for assets within an organization, plus printable QR labels.

RBAC:
- List / get / label: every role
- Create / update: Admin, Manager
- Delete: Admin

Asset tags are unique per organization. The friendly pre-check gives the
usual message; the database constraint catches the concurrent case.
"""
from fastapi import APIRouter, Depends, status, Query
from fastapi.responses import Response
from sqlalchemy import or_
from sqlalchemy.orm import Session
from typing import Optional
from datetime import date

from kite_assets.database import get_db
from kite_assets.models.user import User
from kite_assets.models.asset import Asset, AssetStatus
from kite_assets.models.taxonomy import AssetCategory, AssetLocation
from kite_assets.schemas.asset import (
    AssetResponse,
    AssetCreate,
    AssetUpdate,
    AssetListResponse
)
from kite_assets.api.deps import require_viewer, require_asset_editor, require_asset_deleter
from kite_assets.core.exceptions import AssetNotFoundError, DuplicateResourceError, InvalidInputError
from kite_assets.core.tenancy import get_owned_or_404, commit_or_raise, resolve_by_name
from kite_assets.utils.labels import render_asset_label, label_filename
from kite_assets.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/assets", tags=["assets"])


def duplicate_tag_message(asset_tag: str) -> str:
    return f'An asset with tag "{asset_tag}" already exists.'


def _clean_text(value: str, min_length: int, message: str) -> str:
    # Length rules apply to the trimmed value
    value = value.strip()
    if len(value) < min_length:
        raise InvalidInputError(message)
    return value


def clean_asset_tag(asset_tag: str) -> str:
    return _clean_text(asset_tag, 1, "Please enter an asset tag.")


def clean_asset_name(name: str) -> str:
    return _clean_text(name, 2, "Asset names need at least 2 characters.")


@router.get("", response_model=AssetListResponse)
def list_assets(
    status_filter: Optional[AssetStatus] = Query(None, alias="status"),
    category_name: Optional[str] = None,
    location_name: Optional[str] = None,
    search: Optional[str] = Query(None, max_length=255),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=500),
    current_user: User = Depends(require_viewer),
    db: Session = Depends(get_db)
):
    """
    List assets of the caller's organization, newest first.

    TENANT_ISOLATION: filtered by organization before any other filter.
    """
    query = db.query(Asset).filter(Asset.organization_id == current_user.organization_id)

    if status_filter:
        query = query.filter(Asset.status == status_filter)
    if category_name:
        query = query.join(Asset.category).filter(AssetCategory.name == category_name)
    if location_name:
        query = query.join(Asset.location).filter(AssetLocation.name == location_name)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(Asset.name.ilike(pattern), Asset.asset_tag.ilike(pattern)))

    total = query.count()

    offset = (page - 1) * page_size
    assets = query.order_by(
        Asset.created_at.desc()
    ).offset(offset).limit(page_size).all()

    logger.debug(f"Listed {len(assets)} assets for organization {current_user.organization_id}")

    return AssetListResponse(
        assets=assets,
        total=total,
        page=page,
        page_size=page_size
    )


@router.get("/{asset_id}", response_model=AssetResponse)
def get_asset(
    asset_id: str,
    current_user: User = Depends(require_viewer),
    db: Session = Depends(get_db)
):
    """Get asset by ID within the caller's organization."""
    asset = db.query(Asset).filter(
        Asset.id == asset_id,
        Asset.organization_id == current_user.organization_id  # CRITICAL
    ).first()

    if not asset:
        raise AssetNotFoundError(asset_id)

    return asset


@router.post("", response_model=AssetResponse, status_code=status.HTTP_201_CREATED)
def create_asset(
    asset_data: AssetCreate,
    current_user: User = Depends(require_asset_editor),
    db: Session = Depends(get_db)
):
    """Create an asset in the caller's organization."""
    organization_id = current_user.organization_id
    asset_tag = clean_asset_tag(asset_data.asset_tag)
    name = clean_asset_name(asset_data.name)

    existing = db.query(Asset).filter(
        Asset.organization_id == organization_id,
        Asset.asset_tag == asset_tag
    ).first()
    if existing:
        raise DuplicateResourceError(duplicate_tag_message(asset_tag))

    category = resolve_by_name(db, AssetCategory, asset_data.category_name, organization_id)
    location = resolve_by_name(db, AssetLocation, asset_data.location_name, organization_id)

    new_asset = Asset(
        organization_id=organization_id,  # CRITICAL: never from the request
        name=name,
        asset_tag=asset_tag,
        category_id=category.id,
        location_id=location.id,
        value=asset_data.value,
        status=asset_data.status,
        purchase_date=asset_data.purchase_date or date.today(),
    )

    db.add(new_asset)
    commit_or_raise(db, "create the asset", duplicate_tag_message(asset_tag))
    db.refresh(new_asset)

    logger.info(
        f"Asset created: {new_asset.id} ({asset_tag}) by {current_user.id}",
        extra={"organization_id": organization_id}
    )

    return new_asset


@router.patch("/{asset_id}", response_model=AssetResponse)
def update_asset(
    asset_id: str,
    asset_data: AssetUpdate,
    current_user: User = Depends(require_asset_editor),
    db: Session = Depends(get_db)
):
    """
    Update an asset. The asset tag is immutable.

    SECURITY: the row is loaded by id and its organization compared with
    the caller's before anything changes.
    """
    organization_id = current_user.organization_id
    asset = get_owned_or_404(db, Asset, asset_id, organization_id, kind="Asset", user_id=current_user.id)

    update_data = asset_data.model_dump(exclude_unset=True)

    if update_data.get("name") is not None:
        update_data["name"] = clean_asset_name(update_data["name"])

    if update_data.get("category_name") is not None:
        asset.category_id = resolve_by_name(db, AssetCategory, update_data.pop("category_name"), organization_id).id
    if update_data.get("location_name") is not None:
        asset.location_id = resolve_by_name(db, AssetLocation, update_data.pop("location_name"), organization_id).id

    for field, value in update_data.items():
        if value is not None:
            setattr(asset, field, value)

    commit_or_raise(db, "update the asset")
    db.refresh(asset)

    logger.info(f"Asset updated: {asset.id} by {current_user.id}")

    return asset


@router.delete("/{asset_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_asset(
    asset_id: str,
    current_user: User = Depends(require_asset_deleter),
    db: Session = Depends(get_db)
):
    """Delete an asset (hard delete)."""
    asset = get_owned_or_404(
        db, Asset, asset_id, current_user.organization_id, kind="Asset", user_id=current_user.id
    )

    db.delete(asset)
    commit_or_raise(db, "delete the asset")

    logger.info(
        f"Asset deleted: {asset_id} by {current_user.id}",
        extra={"organization_id": current_user.organization_id}
    )

    return None


@router.get(
    "/{asset_id}/label",
    response_class=Response,
    responses={200: {"content": {"image/png": {}}}},
)
def get_asset_label(
    asset_id: str,
    current_user: User = Depends(require_viewer),
    db: Session = Depends(get_db)
):
    """Printable PNG label with a QR code identifying the asset."""
    asset = db.query(Asset).filter(
        Asset.id == asset_id,
        Asset.organization_id == current_user.organization_id
    ).first()

    if not asset:
        raise AssetNotFoundError(asset_id)

    png = render_asset_label(asset.asset_tag, asset.name)
    return Response(
        content=png,
        media_type="image/png",
        headers={"Content-Disposition": f'inline; filename="{label_filename(asset.asset_tag)}"'}
    )
