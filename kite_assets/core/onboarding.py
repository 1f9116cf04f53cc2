"""
Organization Onboarding

Registering creates an organization, its default departments, its first
user and (for ordinary organizations) default categories and locations.
All of it is flushed in one transaction: either the organization comes
out fully initialized or nothing is written.
"""
import logging
from typing import Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from kite_assets.config import get_settings
from kite_assets.core.exceptions import DuplicateResourceError, DatabaseOperationError
from kite_assets.core.security import get_password_hash
from kite_assets.core.tenancy import commit_or_raise
from kite_assets.models import (
    Organization,
    User,
    UserRole,
    Department,
    AssetCategory,
    AssetLocation,
)

logger = logging.getLogger(__name__)

ADMIN_DEPARTMENT = "Administration"
DEFAULT_DEPARTMENTS = (ADMIN_DEPARTMENT, "Engineering", "Marketing", "Finance")
DEFAULT_CATEGORIES = ("Electronics", "Furniture", "Peripherals")
DEFAULT_LOCATIONS = ("Main Office", "Warehouse", "Remote")


def is_platform_admin_email(email: str) -> bool:
    configured = get_settings().PLATFORM_ADMIN_EMAIL
    return bool(configured) and email.lower() == configured.lower()


def duplicate_email_message(email: str) -> str:
    return f"User with email {email} already exists."


def create_organization_with_admin(
    db: Session,
    org_name: str,
    user_name: str,
    user_email: str,
    user_password: str,
) -> Tuple[Organization, User]:
    """
    Create an organization and its first user.

    The first user is a PlatformAdmin when user_email matches
    PLATFORM_ADMIN_EMAIL, otherwise an Admin.
    """
    if db.query(User).filter(User.email == user_email).first():
        raise DuplicateResourceError(duplicate_email_message(user_email))

    platform_admin = is_platform_admin_email(user_email)

    try:
        organization = Organization(name=org_name)
        db.add(organization)
        db.flush()

        departments = {
            name: Department(name=name, organization_id=organization.id)
            for name in DEFAULT_DEPARTMENTS
        }
        db.add_all(departments.values())
        db.flush()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Organization setup failed before the first user was created")
        raise DatabaseOperationError("set up the organization")

    user = User(
        organization_id=organization.id,
        name=user_name,
        email=user_email,
        hashed_password=get_password_hash(user_password),
        role=UserRole.PLATFORM_ADMIN if platform_admin else UserRole.ADMIN,
        department_id=departments[ADMIN_DEPARTMENT].id,
    )
    db.add(user)

    # The platform operator's own organization does not hold inventory
    if not platform_admin:
        db.add_all(
            AssetCategory(name=name, organization_id=organization.id)
            for name in DEFAULT_CATEGORIES
        )
        db.add_all(
            AssetLocation(name=name, organization_id=organization.id)
            for name in DEFAULT_LOCATIONS
        )

    commit_or_raise(db, "set up the organization", duplicate_email_message(user_email))
    db.refresh(user)

    logger.info(
        f"Organization created: {organization.id} with first user {user.id} ({user.role.value})",
        extra={"organization_id": organization.id, "user_id": user.id}
    )
    return organization, user
