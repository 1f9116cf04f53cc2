"""
Permission table, password helpers and organization onboarding.
"""
import inspect
from types import SimpleNamespace

import pytest
from fastapi.routing import APIRoute
from sqlalchemy.exc import OperationalError

from kite_assets.core.exceptions import DatabaseOperationError, PermissionDenied
from kite_assets.core.onboarding import create_organization_with_admin, is_platform_admin_email
from kite_assets.core.permissions import Permission, has_permission, require_permission
from kite_assets.core.security import (
    generate_temporary_password,
    get_password_hash,
    verify_password,
    TEMPORARY_PASSWORD_ALPHABET,
)
from kite_assets.models import Organization, User, Department, UserRole
from kite_assets.main import app
from kite_assets.api import deps


def as_role(role):
    return SimpleNamespace(role=role)


@pytest.mark.parametrize("role, allowed", [
    (UserRole.ADMIN, {
        Permission.VIEW_ASSETS, Permission.MANAGE_ASSETS, Permission.DELETE_ASSETS,
        Permission.MANAGE_USERS, Permission.MANAGE_SETTINGS,
    }),
    (UserRole.MANAGER, {Permission.VIEW_ASSETS, Permission.MANAGE_ASSETS}),
    (UserRole.STAFF, {Permission.VIEW_ASSETS}),
    (UserRole.PLATFORM_ADMIN, {Permission.VIEW_ASSETS, Permission.MANAGE_PLATFORM}),
])
def test_role_permissions(role, allowed):
    granted = {p for p in Permission if has_permission(as_role(role), p)}

    assert granted == allowed


def test_require_permission_raises():
    with pytest.raises(PermissionDenied) as exc_info:
        require_permission(as_role(UserRole.MANAGER), Permission.DELETE_ASSETS)

    assert exc_info.value.status_code == 403


def test_password_hashing():
    hashed = get_password_hash("hunter22hunter")

    assert hashed != "hunter22hunter"
    assert verify_password("hunter22hunter", hashed)
    assert not verify_password("wrong", hashed)


def test_temporary_password():
    password = generate_temporary_password(20)

    assert len(password) == 20
    assert set(password) <= set(TEMPORARY_PASSWORD_ALPHABET)
    assert not set(password) & set("0O1lI")


def test_platform_admin_email_is_case_insensitive():
    assert is_platform_admin_email("OPS@Kite.io")
    assert not is_platform_admin_email("ops@kite.io.evil.io")


def test_onboarding_rolls_back_when_commit_fails(db, monkeypatch):
    def failing_commit():
        raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db, "commit", failing_commit)

    with pytest.raises(DatabaseOperationError):
        create_organization_with_admin(db, "Acme", "Ada Admin", "ada@acme.io", "long-enough-password")

    monkeypatch.undo()
    assert db.query(Organization).count() == 0
    assert db.query(Department).count() == 0
    assert db.query(User).count() == 0


def test_onboarding_creates_admin_in_administration(db):
    organization, user = create_organization_with_admin(
        db, "Acme", "Ada Admin", "ada@acme.io", "long-enough-password"
    )

    assert user.organization_id == organization.id
    assert user.role == UserRole.ADMIN
    assert user.department_name == "Administration"


def test_api_handlers_run_in_threadpool():
    api_routes = [r for r in app.routes if isinstance(r, APIRoute) and r.path.startswith("/api/v1")]

    assert api_routes
    blocking = [r.path for r in api_routes if inspect.iscoroutinefunction(r.endpoint)]
    assert blocking == []
    assert not inspect.iscoroutinefunction(deps.get_current_user)
    assert not inspect.iscoroutinefunction(deps.require_permission(Permission.VIEW_ASSETS))
