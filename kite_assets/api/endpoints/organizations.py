"""
Organization and Platform Endpoints

/organizations/current is for every user. Everything under /platform is
for the PlatformAdmin only: listing all organizations and their users and
resetting passwords.

Password resets hand out a freshly generated temporary password, shown
once in the response and never logged.
"""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from kite_assets.database import get_db
from kite_assets.models.user import User
from kite_assets.models.organization import Organization
from kite_assets.schemas.organization import OrganizationResponse
from kite_assets.schemas.user import UserResponse, PasswordResetResponse
from kite_assets.api.deps import get_current_organization, require_platform_admin
from kite_assets.core.security import get_password_hash, generate_temporary_password
from kite_assets.core.exceptions import OrganizationNotFoundError, UserNotFoundError
from kite_assets.core.tenancy import commit_or_raise
from kite_assets.utils.logging import get_logger, log_security_event

logger = get_logger(__name__)

router = APIRouter(tags=["organizations"])


@router.get("/organizations/current", response_model=OrganizationResponse)
def get_my_organization(organization: Organization = Depends(get_current_organization)):
    return organization


@router.get("/platform/organizations", response_model=List[OrganizationResponse])
def list_organizations(
    current_user: User = Depends(require_platform_admin),
    db: Session = Depends(get_db)
):
    """All organizations, newest first."""
    return db.query(Organization).order_by(Organization.created_at.desc()).all()


@router.get("/platform/organizations/{organization_id}/users", response_model=List[UserResponse])
def list_organization_users(
    organization_id: str,
    current_user: User = Depends(require_platform_admin),
    db: Session = Depends(get_db)
):
    if db.get(Organization, organization_id) is None:
        raise OrganizationNotFoundError(organization_id)

    return db.query(User).filter(
        User.organization_id == organization_id
    ).order_by(User.name.asc()).all()


@router.post("/platform/users/{user_id}/reset-password", response_model=PasswordResetResponse)
def reset_user_password(
    user_id: str,
    current_user: User = Depends(require_platform_admin),
    db: Session = Depends(get_db)
):
    """Replace a user's password with a random temporary one."""
    user = db.get(User, user_id)
    if user is None:
        raise UserNotFoundError(user_id)

    temporary_password = generate_temporary_password()
    user.hashed_password = get_password_hash(temporary_password)
    commit_or_raise(db, "update the password")

    log_security_event(
        "password_reset",
        {
            "target_user_id": user.id,
            "target_organization_id": user.organization_id,
            "performed_by": current_user.id,
        },
        logger
    )

    return PasswordResetResponse(
        user_id=user.id,
        email=user.email,
        temporary_password=temporary_password
    )
