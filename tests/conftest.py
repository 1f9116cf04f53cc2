"""
Shared fixtures.

The environment is configured before kite_assets is imported: the engine
and settings are built at import time.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["PLATFORM_ADMIN_EMAIL"] = "ops@kite.io"

import pytest
from fastapi.testclient import TestClient

from kite_assets.database import Base, engine, SessionLocal
from kite_assets.main import app
import kite_assets.models  # noqa: F401

API = "/api/v1"
PASSWORD = "correct-horse-battery"


@pytest.fixture(autouse=True)
def fresh_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


class Tenant:
    """An organization registered through the API, with helpers to act in it."""

    def __init__(self, client: TestClient, org_name: str, admin_email: str):
        self.client = client
        response = client.post(f"{API}/auth/register", json={
            "org_name": org_name,
            "user_name": f"{org_name} Admin",
            "user_email": admin_email,
            "user_password": PASSWORD,
        })
        assert response.status_code == 201, response.text
        body = response.json()
        self.admin = body["user"]
        self.organization_id = self.admin["organization_id"]
        self.headers = auth_headers(body["access_token"])

    def add_user(self, email: str, role: str = "Staff", name: str = "Team Member") -> dict:
        response = self.client.post(f"{API}/users", headers=self.headers, json={
            "name": name,
            "email": email,
            "password": PASSWORD,
            "role": role,
            "department_name": "Engineering",
        })
        assert response.status_code == 201, response.text
        return response.json()

    def login(self, email: str) -> dict:
        response = self.client.post(f"{API}/auth/login", json={"email": email, "password": PASSWORD})
        assert response.status_code == 200, response.text
        return auth_headers(response.json()["access_token"])

    def add_asset(self, asset_tag: str, status: str = "InUse", headers: dict = None, **fields):
        payload = {
            "name": fields.pop("name", f"Asset {asset_tag}"),
            "asset_tag": asset_tag,
            "category_name": fields.pop("category_name", "Electronics"),
            "location_name": fields.pop("location_name", "Main Office"),
            "value": fields.pop("value", 100.0),
            "status": status,
        }
        payload.update(fields)
        return self.client.post(f"{API}/assets", headers=headers or self.headers, json=payload)


@pytest.fixture
def acme(client):
    return Tenant(client, "Acme", "ada@acme.io")


@pytest.fixture
def globex(client):
    return Tenant(client, "Globex", "hank@globex.io")
