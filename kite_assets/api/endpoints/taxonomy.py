"""
Organization Settings Endpoints

Departments, asset categories and asset locations are managed the same way,
so one router factory builds all three:

    GET    /departments          list (every role; forms need the options)
    POST   /departments          create (Admin)
    PATCH  /departments/{id}     rename (Admin)
    DELETE /departments/{id}     delete (Admin)

Names are unique per organization. Categories and locations still used by
assets cannot be deleted; deleting a department clears it from its users.
"""
from typing import List, Optional, Type

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from kite_assets.database import get_db
from kite_assets.models.user import User
from kite_assets.models.asset import Asset
from kite_assets.models.taxonomy import Department, AssetCategory, AssetLocation
from kite_assets.schemas.taxonomy import TaxonomyItemCreate, TaxonomyItemUpdate, TaxonomyItemResponse
from kite_assets.api.deps import require_viewer, require_settings_admin
from kite_assets.core.exceptions import DuplicateResourceError, ConflictError, InvalidInputError
from kite_assets.core.tenancy import get_owned_or_404, commit_or_raise
from kite_assets.utils.logging import get_logger

logger = get_logger(__name__)


def _clean_name(name: str) -> str:
    name = name.strip()
    if not name:
        raise InvalidInputError("Please enter a name.")
    return name


def _duplicate_message(name: str) -> str:
    return f'"{name}" already exists.'


def _ensure_name_available(db: Session, model, organization_id: str, name: str, exclude_id: Optional[str] = None):
    query = db.query(model).filter(
        model.organization_id == organization_id,
        model.name == name
    )
    if exclude_id:
        query = query.filter(model.id != exclude_id)
    if query.first():
        raise DuplicateResourceError(_duplicate_message(name))


def build_taxonomy_router(model: Type, prefix: str, tag: str, asset_column=None) -> APIRouter:
    """
    Build CRUD routes for one taxonomy model.

    asset_column: Asset FK column referencing this model, if assets use it.
    Deleting a row still referenced through it is refused.
    """
    router = APIRouter(prefix=prefix, tags=[tag])
    noun = model.label.lower()

    @router.get("", response_model=List[TaxonomyItemResponse])
    def list_items(
        current_user: User = Depends(require_viewer),
        db: Session = Depends(get_db)
    ):
        return db.query(model).filter(
            model.organization_id == current_user.organization_id
        ).order_by(model.name.asc()).all()

    @router.post("", response_model=TaxonomyItemResponse, status_code=status.HTTP_201_CREATED)
    def create_item(
        item: TaxonomyItemCreate,
        current_user: User = Depends(require_settings_admin),
        db: Session = Depends(get_db)
    ):
        name = _clean_name(item.name)
        _ensure_name_available(db, model, current_user.organization_id, name)

        obj = model(name=name, organization_id=current_user.organization_id)
        db.add(obj)
        commit_or_raise(db, f"add the {noun}", _duplicate_message(name))
        db.refresh(obj)

        logger.info(
            f"{model.label} created: {obj.id} ({name}) by {current_user.id}",
            extra={"organization_id": current_user.organization_id}
        )
        return obj

    @router.patch("/{item_id}", response_model=TaxonomyItemResponse)
    def rename_item(
        item_id: str,
        item: TaxonomyItemUpdate,
        current_user: User = Depends(require_settings_admin),
        db: Session = Depends(get_db)
    ):
        obj = get_owned_or_404(db, model, item_id, current_user.organization_id, user_id=current_user.id)
        name = _clean_name(item.name)
        _ensure_name_available(db, model, current_user.organization_id, name, exclude_id=obj.id)

        obj.name = name
        commit_or_raise(db, f"rename the {noun}", _duplicate_message(name))
        db.refresh(obj)

        logger.info(f"{model.label} renamed: {obj.id} -> {name} by {current_user.id}")
        return obj

    @router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_item(
        item_id: str,
        current_user: User = Depends(require_settings_admin),
        db: Session = Depends(get_db)
    ):
        obj = get_owned_or_404(db, model, item_id, current_user.organization_id, user_id=current_user.id)

        if asset_column is not None:
            in_use = db.query(Asset).filter(asset_column == obj.id).count()
            if in_use:
                raise ConflictError(
                    f'Cannot remove {noun} "{obj.name}": it is in use by {in_use} asset(s).'
                )

        db.delete(obj)
        commit_or_raise(db, f"remove the {noun}", f'Cannot remove {noun} "{obj.name}": it is in use.')

        logger.info(f"{model.label} deleted: {item_id} by {current_user.id}")
        return None

    return router


departments_router = build_taxonomy_router(Department, "/departments", "departments")
categories_router = build_taxonomy_router(AssetCategory, "/categories", "categories", Asset.category_id)
locations_router = build_taxonomy_router(AssetLocation, "/locations", "locations", Asset.location_id)
