"""
User management: RBAC, global email uniqueness and the last-admin rule.
"""
from sqlalchemy.dialects import postgresql

from conftest import API
from kite_assets.api.endpoints import users as users_endpoint
from kite_assets.database import SessionLocal
from kite_assets.models import User, UserRole


def test_admin_creates_user_in_own_organization(client, acme):
    user = acme.add_user("sam@acme.io", role="Manager", name="Sam Manager")

    assert user["organization_id"] == acme.organization_id
    assert user["role"] == "Manager"
    assert user["department_name"] == "Engineering"


def test_organization_id_in_body_is_ignored(client, acme, globex):
    response = client.post(f"{API}/users", headers=acme.headers, json={
        "name": "Sneaky",
        "email": "sneaky@acme.io",
        "password": "long-enough-password",
        "role": "Staff",
        "department_name": "Engineering",
        "organization_id": globex.organization_id,
    })

    assert response.status_code == 201
    assert response.json()["organization_id"] == acme.organization_id


def test_duplicate_email_in_same_organization(client, acme):
    acme.add_user("sam@acme.io")

    response = client.post(f"{API}/users", headers=acme.headers, json={
        "name": "Sam Again",
        "email": "sam@acme.io",
        "password": "long-enough-password",
        "department_name": "Engineering",
    })

    assert response.status_code == 409
    assert response.json()["detail"] == "User with email sam@acme.io already exists."


def test_duplicate_email_across_organizations(client, acme, globex, db):
    acme.add_user("shared@corp.io")

    response = client.post(f"{API}/users", headers=globex.headers, json={
        "name": "Other Shared",
        "email": "shared@corp.io",
        "password": "long-enough-password",
        "department_name": "Engineering",
    })

    assert response.status_code == 409
    assert db.query(User).filter(User.email == "shared@corp.io").count() == 1


def test_unknown_department_is_rejected(client, acme):
    response = client.post(f"{API}/users", headers=acme.headers, json={
        "name": "Lost Person",
        "email": "lost@acme.io",
        "password": "long-enough-password",
        "department_name": "Skunkworks",
    })

    assert response.status_code == 400
    assert response.json()["detail"] == 'Department "Skunkworks" does not exist in your organization.'


def test_platform_admin_role_cannot_be_assigned(client, acme):
    response = client.post(f"{API}/users", headers=acme.headers, json={
        "name": "Wannabe",
        "email": "wannabe@acme.io",
        "password": "long-enough-password",
        "role": "PlatformAdmin",
        "department_name": "Engineering",
    })

    assert response.status_code == 400


def test_non_admins_cannot_manage_users(client, acme):
    acme.add_user("max@acme.io", role="Manager")
    acme.add_user("sam@acme.io", role="Staff")

    for email in ("max@acme.io", "sam@acme.io"):
        headers = acme.login(email)
        assert client.get(f"{API}/users", headers=headers).status_code == 403
        response = client.post(f"{API}/users", headers=headers, json={
            "name": "New Person",
            "email": "new@acme.io",
            "password": "long-enough-password",
            "department_name": "Engineering",
        })
        assert response.status_code == 403
        assert response.json()["detail"] == "Only Admins can manage users"


def test_list_users_is_scoped_to_organization(client, acme, globex):
    acme.add_user("sam@acme.io")
    globex.add_user("homer@globex.io")

    response = client.get(f"{API}/users", headers=acme.headers)

    assert response.status_code == 200
    emails = {u["email"] for u in response.json()["users"]}
    assert emails == {"ada@acme.io", "sam@acme.io"}
    assert response.json()["total"] == 2


def test_list_users_filters_by_role(client, acme):
    acme.add_user("max@acme.io", role="Manager")
    acme.add_user("sam@acme.io", role="Staff")

    response = client.get(f"{API}/users", headers=acme.headers, params={"role": "Manager"})

    assert [u["email"] for u in response.json()["users"]] == ["max@acme.io"]


def test_get_user_from_other_organization_is_not_found(client, acme, globex):
    response = client.get(f"{API}/users/{globex.admin['id']}", headers=acme.headers)

    assert response.status_code == 404


def test_update_user_role_and_department(client, acme):
    user = acme.add_user("sam@acme.io")

    response = client.patch(f"{API}/users/{user['id']}", headers=acme.headers, json={
        "role": "Manager",
        "department_name": "Finance",
    })

    assert response.status_code == 200
    assert response.json()["role"] == "Manager"
    assert response.json()["department_name"] == "Finance"


def test_update_own_profile(client, acme):
    acme.add_user("sam@acme.io")
    headers = acme.login("sam@acme.io")

    response = client.patch(f"{API}/users/me", headers=headers, json={
        "name": "Samantha",
        "password": "a-brand-new-password",
    })

    assert response.status_code == 200
    assert response.json()["name"] == "Samantha"
    login = client.post(f"{API}/auth/login", json={"email": "sam@acme.io", "password": "a-brand-new-password"})
    assert login.status_code == 200


def test_cannot_delete_last_admin(client, acme, db):
    response = client.delete(f"{API}/users/{acme.admin['id']}", headers=acme.headers)

    assert response.status_code == 409
    assert response.json() == {
        "detail": "Cannot delete the last admin of an organization.",
        "type": "conflict",
    }
    assert db.query(User).filter(User.organization_id == acme.organization_id).count() == 1


def test_cannot_demote_last_admin(client, acme, db):
    response = client.patch(f"{API}/users/{acme.admin['id']}", headers=acme.headers, json={"role": "Manager"})

    assert response.status_code == 409
    assert response.json()["detail"] == "Cannot demote the last admin of an organization."
    assert db.get(User, acme.admin["id"]).role.value == "Admin"


def test_admin_may_delete_the_other_admin(client, acme, db):
    other = acme.add_user("bea@acme.io", role="Admin")

    response = client.delete(f"{API}/users/{other['id']}", headers=acme.headers)

    assert response.status_code == 204
    assert db.get(User, other["id"]) is None

    # Ada is now the last admin and cannot go
    response = client.delete(f"{API}/users/{acme.admin['id']}", headers=acme.headers)
    assert response.status_code == 409


def test_admin_may_delete_self_while_another_admin_remains(client, acme, db):
    acme.add_user("bea@acme.io", role="Admin")

    response = client.delete(f"{API}/users/{acme.admin['id']}", headers=acme.headers)

    assert response.status_code == 204
    assert db.query(User).filter(User.organization_id == acme.organization_id).count() == 1


def test_deleting_staff_is_unaffected_by_admin_rule(client, acme):
    staff = acme.add_user("sam@acme.io")

    response = client.delete(f"{API}/users/{staff['id']}", headers=acme.headers)

    assert response.status_code == 204


def test_duplicate_email_committed_after_precheck_is_still_a_conflict(client, acme, globex, db, monkeypatch):
    resolve_by_name = users_endpoint.resolve_by_name

    def resolve_after_rival_commit(session, model, name, organization_id):
        # Runs after the email pre-check and before the insert
        rival = SessionLocal()
        try:
            rival.add(User(
                organization_id=globex.organization_id,
                name="Rival Signup",
                email="race@corp.io",
                hashed_password="not-a-real-hash",
                role=UserRole.STAFF,
            ))
            rival.commit()
        finally:
            rival.close()
        return resolve_by_name(session, model, name, organization_id)

    monkeypatch.setattr(users_endpoint, "resolve_by_name", resolve_after_rival_commit)

    response = client.post(f"{API}/users", headers=acme.headers, json={
        "name": "Late Signup",
        "email": "race@corp.io",
        "password": "long-enough-password",
        "department_name": "Engineering",
    })

    assert response.status_code == 409
    assert response.json() == {
        "detail": "User with email race@corp.io already exists.",
        "type": "duplicate_resource",
    }
    assert [u.name for u in db.query(User).filter(User.email == "race@corp.io")] == ["Rival Signup"]


def test_admin_count_locks_admin_rows(db):
    query = users_endpoint.admin_rows_query(db, "org-1")

    sql = str(query.statement.compile(dialect=postgresql.dialect()))

    assert "FOR UPDATE" in sql
    assert users_endpoint.count_admins(db, "org-1") == 0
