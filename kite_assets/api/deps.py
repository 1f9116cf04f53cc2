"""
API Dependencies

Reusable FastAPI dependencies for authentication and authorization.

Every authenticated request:
1. verifies the bearer token signature and expiry
2. reloads the user from the database
3. checks the token's organization_id against the stored user
4. (for gated routes) checks the stored role against the permission table

These dependencies and the route handlers are plain functions: they use a
synchronous Session and bcrypt, so FastAPI runs them in its threadpool
instead of on the event loop.
"""
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from kite_assets.database import get_db
from kite_assets.models.user import User
from kite_assets.models.organization import Organization
from kite_assets.core.security import decode_access_token
from kite_assets.core.permissions import Permission, has_permission, require_permission as check_permission
from kite_assets.core.exceptions import AuthenticationError, TenantIsolationError
from kite_assets.utils.logging import log_security_event
import logging

logger = logging.getLogger(__name__)

# auto_error=False so a missing header becomes our 401, not Starlette's 403
security = HTTPBearer(auto_error=False)


def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """
    Get the authenticated user.

    The role and organization in the token are never trusted on their own;
    the stored user is authoritative.
    """
    if credentials is None:
        raise AuthenticationError("Not authenticated")

    payload = decode_access_token(credentials.credentials)
    if not payload:
        raise AuthenticationError("Invalid or expired token")

    user_id = payload.get("sub")
    token_organization_id = payload.get("organization_id")

    if not user_id or not token_organization_id:
        raise AuthenticationError("Invalid token payload")

    user = db.get(User, user_id)
    if not user:
        logger.warning(f"Token for unknown user: {user_id}")
        raise AuthenticationError("User not found")

    # CRITICAL SECURITY CHECK: token must match the user's organization
    if user.organization_id != token_organization_id:
        log_security_event(
            "tenant_isolation_violation",
            {
                "reason": "token_organization_mismatch",
                "user_id": user.id,
                "token_organization_id": token_organization_id,
                "user_organization_id": user.organization_id,
            },
            logger
        )
        raise TenantIsolationError("Token organization mismatch")

    request.state.user_id = user.id
    request.state.organization_id = user.organization_id
    return user


def get_current_organization(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Organization:
    organization = db.get(Organization, current_user.organization_id)
    if organization is None:
        # FK cascade makes this unreachable unless rows were edited by hand
        logger.error(f"User {current_user.id} has no organization")
        raise TenantIsolationError("Organization context not available")
    return organization


def require_permission(permission: Permission):
    """
    Build a dependency that returns the current user if their role holds permission.

    Usage:
        current_user: User = Depends(require_permission(Permission.MANAGE_ASSETS))
    """
    def dependency(current_user: User = Depends(get_current_user)) -> User:
        if not has_permission(current_user, permission):
            log_security_event(
                "permission_denied",
                {
                    "user_id": current_user.id,
                    "organization_id": current_user.organization_id,
                    "role": current_user.role.value,
                    "permission": permission.value,
                },
                logger
            )
            check_permission(current_user, permission)
        return current_user

    return dependency


require_viewer = require_permission(Permission.VIEW_ASSETS)
require_asset_editor = require_permission(Permission.MANAGE_ASSETS)
require_asset_deleter = require_permission(Permission.DELETE_ASSETS)
require_admin = require_permission(Permission.MANAGE_USERS)
require_settings_admin = require_permission(Permission.MANAGE_SETTINGS)
require_platform_admin = require_permission(Permission.MANAGE_PLATFORM)
