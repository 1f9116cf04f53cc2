"""
Tenant Scoping Helpers

Two rules apply to every data operation:

1. Reads filter by the caller's organization_id.
2. Updates and deletes first load the target by primary key ALONE and then
   compare its stored organization_id with the caller's. Ids can be guessed,
   so a mismatch is a security event, not just an empty result.

commit_or_raise() turns database failures into the API's error taxonomy.
Uniqueness is enforced by constraints; the friendly pre-checks in the
handlers can lose a race, and the IntegrityError that follows still comes
back as a 409 instead of a 500.
"""
import logging
from typing import Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from kite_assets.core.exceptions import (
    NotFoundError,
    TenantIsolationError,
    DuplicateResourceError,
    DatabaseOperationError,
    InvalidInputError,
)
from kite_assets.utils.logging import log_security_event

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")


def get_owned_or_404(
    db: Session,
    model: Type[ModelT],
    object_id: str,
    organization_id: str,
    kind: Optional[str] = None,
    user_id: Optional[str] = None,
) -> ModelT:
    """
    Load a row and verify it belongs to organization_id.

    Raises NotFoundError when the row does not exist and
    TenantIsolationError when it belongs to another organization.
    """
    kind = kind or getattr(model, "label", None) or model.__name__
    if not organization_id:
        raise TenantIsolationError("An organization is required for this operation")

    obj = db.get(model, object_id)
    if obj is None:
        raise NotFoundError(kind, object_id)

    if obj.organization_id != organization_id:
        log_security_event(
            "tenant_isolation_violation",
            {
                "model": model.__name__,
                "object_id": object_id,
                "owner_organization_id": obj.organization_id,
                "caller_organization_id": organization_id,
                "user_id": user_id,
            },
            logger,
        )
        raise TenantIsolationError(
            f"{kind} not found or you do not have permission to modify it."
        )

    return obj


def commit_or_raise(db: Session, action: str, duplicate_detail: Optional[str] = None) -> None:
    """
    Commit the session, rolling back on failure.

    IntegrityError -> DuplicateResourceError (409) with duplicate_detail
    Other SQLAlchemyError -> DatabaseOperationError (500, generic message)
    """
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Integrity error while trying to {action}: {e.orig}")
        raise DuplicateResourceError(duplicate_detail or f"Could not {action}: a conflicting record exists.")
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Database error while trying to {action}")
        raise DatabaseOperationError(action)


def resolve_by_name(db: Session, model: Type[ModelT], name: str, organization_id: str) -> ModelT:
    """
    Look up a department, category or location by name inside one organization.

    Unknown names are a client error: requests may only reference entries
    the organization has defined.
    """
    obj = db.query(model).filter(
        model.organization_id == organization_id,
        model.name == name.strip()
    ).first()
    if obj is None:
        raise InvalidInputError(f'{model.label} "{name}" does not exist in your organization.')
    return obj
