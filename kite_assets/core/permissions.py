"""
Permission System (RBAC)

Roles are not a strict hierarchy: a PlatformAdmin runs the platform but
does not manage the users or settings of an individual organization, and
a Manager may edit assets but not delete them. So instead of ranking
roles we keep an explicit table of which roles hold which permission.

Every check here runs server-side against the role stored in the
database, never a role the client claims.
"""
import enum
from typing import FrozenSet
from kite_assets.models.user import User, UserRole
from kite_assets.core.exceptions import PermissionDenied


class Permission(str, enum.Enum):
    VIEW_ASSETS = "view_assets"
    MANAGE_ASSETS = "manage_assets"
    DELETE_ASSETS = "delete_assets"
    MANAGE_USERS = "manage_users"
    MANAGE_SETTINGS = "manage_settings"
    MANAGE_PLATFORM = "manage_platform"


ALL_ROLES: FrozenSet[UserRole] = frozenset(UserRole)

ROLE_PERMISSIONS = {
    Permission.VIEW_ASSETS: ALL_ROLES,
    Permission.MANAGE_ASSETS: frozenset({UserRole.ADMIN, UserRole.MANAGER}),
    Permission.DELETE_ASSETS: frozenset({UserRole.ADMIN}),
    Permission.MANAGE_USERS: frozenset({UserRole.ADMIN}),
    Permission.MANAGE_SETTINGS: frozenset({UserRole.ADMIN}),
    Permission.MANAGE_PLATFORM: frozenset({UserRole.PLATFORM_ADMIN}),
}

# Roles an organization Admin may hand out
ASSIGNABLE_ROLES: FrozenSet[UserRole] = frozenset({UserRole.ADMIN, UserRole.MANAGER, UserRole.STAFF})

_DENIED_MESSAGES = {
    Permission.VIEW_ASSETS: "You do not have access to assets",
    Permission.MANAGE_ASSETS: "Only Admins and Managers can add or edit assets",
    Permission.DELETE_ASSETS: "Only Admins can delete assets",
    Permission.MANAGE_USERS: "Only Admins can manage users",
    Permission.MANAGE_SETTINGS: "Only Admins can manage organization settings",
    Permission.MANAGE_PLATFORM: "Platform administrator privileges required",
}


def has_permission(user: User, permission: Permission) -> bool:
    return user.role in ROLE_PERMISSIONS[permission]


def require_permission(user: User, permission: Permission) -> None:
    """Raise PermissionDenied unless user's role holds permission."""
    if not has_permission(user, permission):
        raise PermissionDenied(detail=_DENIED_MESSAGES[permission])
