"""
User Management Endpoints

CRUD operations for users within an organization.

RBAC:
- List / get / create / update / delete users: Admin only
- Update own profile: any authenticated user

INVARIANT: every organization keeps at least one Admin. Deleting or
demoting the last Admin is refused.
"""
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from typing import Optional

from kite_assets.database import get_db
from kite_assets.models.user import User, UserRole
from kite_assets.models.taxonomy import Department
from kite_assets.schemas.user import (
    UserResponse,
    UserCreate,
    UserUpdate,
    ProfileUpdate,
    UserListResponse
)
from kite_assets.api.deps import get_current_user, require_admin
from kite_assets.core.security import get_password_hash
from kite_assets.core.permissions import ASSIGNABLE_ROLES
from kite_assets.core.exceptions import (
    UserNotFoundError,
    DuplicateResourceError,
    ConflictError,
    InvalidInputError,
)
from kite_assets.core.onboarding import duplicate_email_message
from kite_assets.core.tenancy import get_owned_or_404, commit_or_raise, resolve_by_name
from kite_assets.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


def admin_rows_query(db: Session, organization_id: str):
    """
    The organization's Admin rows, locked FOR UPDATE until commit.

    Two Admins deleting or demoting each other at once serialize on these
    locks, so the second count sees the first change. SQLite has no row
    locks and ignores FOR UPDATE.
    """
    return db.query(User.id).filter(
        User.organization_id == organization_id,
        User.role == UserRole.ADMIN
    ).with_for_update()


def count_admins(db: Session, organization_id: str) -> int:
    return len(admin_rows_query(db, organization_id).all())


def ensure_not_last_admin(db: Session, user: User, message: str) -> None:
    """Raise ConflictError if user is an Admin and no other Admin remains."""
    if user.role == UserRole.ADMIN and count_admins(db, user.organization_id) <= 1:
        logger.info(
            f"Refused to remove last admin {user.id}",
            extra={"organization_id": user.organization_id, "user_id": user.id}
        )
        raise ConflictError(message)


def ensure_assignable_role(role: UserRole) -> None:
    if role not in ASSIGNABLE_ROLES:
        raise InvalidInputError(f"Role {role.value} cannot be assigned by an organization admin")


@router.get("", response_model=UserListResponse)
def list_users(
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    role: Optional[UserRole] = Query(None),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    List users in the caller's organization, ordered by name.

    TENANT_ISOLATION: filtered by the caller's organization.
    """
    query = db.query(User).filter(User.organization_id == current_user.organization_id)

    if role:
        query = query.filter(User.role == role)

    total = query.count()

    offset = (page - 1) * page_size
    users = query.order_by(User.name.asc()).offset(offset).limit(page_size).all()

    return UserListResponse(
        users=users,
        total=total,
        page=page,
        page_size=page_size
    )


@router.patch("/me", response_model=UserResponse)
def update_profile(
    profile: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update the caller's own name and/or password."""
    if profile.name is not None:
        current_user.name = profile.name
    if profile.password:
        current_user.hashed_password = get_password_hash(profile.password)

    commit_or_raise(db, "update the user profile")
    db.refresh(current_user)

    logger.info(f"Profile updated: {current_user.id}", extra={"user_id": current_user.id})

    return current_user


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: str,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Get user by ID.

    TENANT_ISOLATION: only users of the caller's organization.
    """
    user = db.query(User).filter(
        User.id == user_id,
        User.organization_id == current_user.organization_id  # CRITICAL
    ).first()

    if not user:
        raise UserNotFoundError(user_id)

    return user


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    user_data: UserCreate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Create a user in the caller's organization.

    Emails are unique across ALL organizations.
    """
    ensure_assignable_role(user_data.role)

    if db.query(User).filter(User.email == user_data.email).first():
        raise DuplicateResourceError(duplicate_email_message(user_data.email))

    department = resolve_by_name(db, Department, user_data.department_name, current_user.organization_id)

    new_user = User(
        organization_id=current_user.organization_id,  # CRITICAL: never from the request
        name=user_data.name,
        email=user_data.email,
        hashed_password=get_password_hash(user_data.password),
        role=user_data.role,
        department_id=department.id,
    )

    db.add(new_user)
    commit_or_raise(db, "create the user", duplicate_email_message(user_data.email))
    db.refresh(new_user)

    logger.info(
        f"User created: {new_user.id} by {current_user.id}",
        extra={"organization_id": current_user.organization_id}
    )

    return new_user


@router.patch("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: str,
    user_data: UserUpdate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Update a user's name, role, department or password."""
    user = get_owned_or_404(
        db, User, user_id, current_user.organization_id, kind="User", user_id=current_user.id
    )

    update_data = user_data.model_dump(exclude_unset=True)

    new_role = update_data.get("role")
    if new_role is not None and new_role != user.role:
        ensure_assignable_role(new_role)
        if user.is_platform_admin:
            raise InvalidInputError("The platform admin's role cannot be changed")
        ensure_not_last_admin(db, user, "Cannot demote the last admin of an organization.")
        user.role = new_role

    if update_data.get("name") is not None:
        user.name = update_data["name"]

    if update_data.get("department_name") is not None:
        user.department_id = resolve_by_name(
            db, Department, update_data["department_name"], current_user.organization_id
        ).id

    if update_data.get("password"):
        user.hashed_password = get_password_hash(update_data["password"])

    commit_or_raise(db, "update the user")
    db.refresh(user)

    logger.info(f"User updated: {user.id} by {current_user.id}")

    return user


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: str,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Delete a user from the caller's organization.

    The target is loaded by id and its organization verified before
    anything is mutated. Deleting the last Admin is refused; an Admin may
    delete their own account while another Admin remains.
    """
    user = get_owned_or_404(
        db, User, user_id, current_user.organization_id, kind="User", user_id=current_user.id
    )

    ensure_not_last_admin(db, user, "Cannot delete the last admin of an organization.")

    db.delete(user)
    commit_or_raise(db, "delete the user")

    logger.info(
        f"User deleted: {user_id} by {current_user.id}",
        extra={"organization_id": current_user.organization_id}
    )

    return None
