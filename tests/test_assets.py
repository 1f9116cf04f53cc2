"""
Asset CRUD, per-organization tag uniqueness and role gates.
"""
from datetime import date

from conftest import API
from kite_assets.api.endpoints import assets as assets_endpoint
from kite_assets.database import SessionLocal
from kite_assets.models import Asset, AssetStatus, AssetCategory, AssetLocation


def test_create_asset(client, acme):
    response = acme.add_asset("X1", name="Laptop", value=1299.5, purchase_date="2024-03-01")

    assert response.status_code == 201
    body = response.json()
    assert body["asset_tag"] == "X1"
    assert body["category_name"] == "Electronics"
    assert body["location_name"] == "Main Office"
    assert body["status"] == "InUse"
    assert body["purchase_date"] == "2024-03-01"
    assert body["organization_id"] == acme.organization_id


def test_purchase_date_defaults_to_today(client, acme):
    response = acme.add_asset("X1")

    assert response.json()["purchase_date"] == date.today().isoformat()


def test_duplicate_tag_in_same_organization_fails(client, acme, globex, db):
    assert acme.add_asset("X1").status_code == 201

    duplicate = acme.add_asset("X1", name="Second Laptop")
    assert duplicate.status_code == 409
    assert duplicate.json() == {
        "detail": 'An asset with tag "X1" already exists.',
        "type": "duplicate_resource",
    }

    assert globex.add_asset("X1").status_code == 201
    assert db.query(Asset).filter(Asset.asset_tag == "X1").count() == 2


def test_tag_is_trimmed_before_uniqueness_check(client, acme):
    acme.add_asset("X1")

    assert acme.add_asset("  X1 ").status_code == 409


def test_blank_tag_is_rejected(client, acme, db):
    response = acme.add_asset("   ")

    assert response.status_code == 400
    assert response.json()["detail"] == "Please enter an asset tag."
    assert db.query(Asset).count() == 0


def test_blank_name_is_rejected(client, acme, db):
    response = acme.add_asset("X1", name="  ")

    assert response.status_code == 400
    assert response.json()["detail"] == "Asset names need at least 2 characters."
    assert db.query(Asset).count() == 0


def test_name_is_trimmed(client, acme):
    response = acme.add_asset(" X1", name="  Laptop  ")

    assert response.json()["asset_tag"] == "X1"
    assert response.json()["name"] == "Laptop"


def test_update_rejects_blank_name(client, acme, db):
    asset_id = acme.add_asset("X1", name="Laptop").json()["id"]

    response = client.patch(f"{API}/assets/{asset_id}", headers=acme.headers, json={"name": "   "})

    assert response.status_code == 400
    assert db.get(Asset, asset_id).name == "Laptop"


def insert_rival_asset(organization_id, asset_tag):
    """Commit an asset from another session, as a concurrent request would."""
    session = SessionLocal()
    try:
        category = session.query(AssetCategory).filter_by(organization_id=organization_id, name="Electronics").one()
        location = session.query(AssetLocation).filter_by(organization_id=organization_id, name="Main Office").one()
        session.add(Asset(
            organization_id=organization_id,
            name="Rival Asset",
            asset_tag=asset_tag,
            category_id=category.id,
            location_id=location.id,
            value=0,
            status=AssetStatus.IN_USE,
        ))
        session.commit()
    finally:
        session.close()


def test_duplicate_tag_committed_after_precheck_is_still_a_conflict(client, acme, db, monkeypatch):
    resolve_by_name = assets_endpoint.resolve_by_name

    def resolve_after_rival_commit(session, model, name, organization_id):
        # Runs after the tag pre-check and before the insert
        if model is AssetCategory:
            insert_rival_asset(organization_id, "R1")
        return resolve_by_name(session, model, name, organization_id)

    monkeypatch.setattr(assets_endpoint, "resolve_by_name", resolve_after_rival_commit)

    response = acme.add_asset("R1")

    assert response.status_code == 409
    assert response.json() == {
        "detail": 'An asset with tag "R1" already exists.',
        "type": "duplicate_resource",
    }
    assert [a.name for a in db.query(Asset).filter(Asset.asset_tag == "R1")] == ["Rival Asset"]


def test_unknown_category_is_rejected(client, acme):
    response = acme.add_asset("X1", category_name="Spaceships")

    assert response.status_code == 400
    assert response.json()["detail"] == 'Category "Spaceships" does not exist in your organization.'


def test_category_of_another_organization_is_not_usable(client, acme, globex):
    client.post(f"{API}/categories", headers=globex.headers, json={"name": "Forklifts"})

    response = acme.add_asset("X1", category_name="Forklifts")

    assert response.status_code == 400


def test_invalid_status_is_rejected(client, acme):
    response = acme.add_asset("X1", status="Lost")

    assert response.status_code == 422


def test_negative_value_is_rejected(client, acme):
    response = acme.add_asset("X1", value=-1)

    assert response.status_code == 422


def test_manager_can_add_and_edit_but_not_delete(client, acme):
    acme.add_user("max@acme.io", role="Manager")
    headers = acme.login("max@acme.io")

    created = acme.add_asset("M1", headers=headers)
    assert created.status_code == 201
    asset_id = created.json()["id"]

    updated = client.patch(f"{API}/assets/{asset_id}", headers=headers, json={"status": "UnderMaintenance"})
    assert updated.status_code == 200
    assert updated.json()["status"] == "UnderMaintenance"

    deleted = client.delete(f"{API}/assets/{asset_id}", headers=headers)
    assert deleted.status_code == 403
    assert deleted.json()["detail"] == "Only Admins can delete assets"


def test_staff_is_read_only(client, acme):
    asset_id = acme.add_asset("S1").json()["id"]
    acme.add_user("sam@acme.io", role="Staff")
    headers = acme.login("sam@acme.io")

    assert client.get(f"{API}/assets", headers=headers).status_code == 200
    assert client.get(f"{API}/assets/{asset_id}", headers=headers).status_code == 200

    created = acme.add_asset("S2", headers=headers)
    assert created.status_code == 403
    assert created.json()["detail"] == "Only Admins and Managers can add or edit assets"
    assert client.patch(f"{API}/assets/{asset_id}", headers=headers, json={"value": 1}).status_code == 403
    assert client.delete(f"{API}/assets/{asset_id}", headers=headers).status_code == 403


def test_update_moves_asset_and_keeps_tag(client, acme):
    asset_id = acme.add_asset("X1").json()["id"]

    response = client.patch(f"{API}/assets/{asset_id}", headers=acme.headers, json={
        "location_name": "Warehouse",
        "category_name": "Furniture",
        "asset_tag": "Y9",
    })

    assert response.status_code == 200
    assert response.json()["location_name"] == "Warehouse"
    assert response.json()["category_name"] == "Furniture"
    assert response.json()["asset_tag"] == "X1"


def test_admin_deletes_asset(client, acme, db):
    asset_id = acme.add_asset("X1").json()["id"]

    response = client.delete(f"{API}/assets/{asset_id}", headers=acme.headers)

    assert response.status_code == 204
    assert db.get(Asset, asset_id) is None
    assert client.get(f"{API}/assets/{asset_id}", headers=acme.headers).status_code == 404


def test_list_assets_filters(client, acme):
    acme.add_asset("A1", name="Office Chair", category_name="Furniture")
    acme.add_asset("A2", name="Monitor", status="UnderMaintenance")
    acme.add_asset("A3", name="Old Monitor", status="Retired", location_name="Warehouse")

    def tags(**params):
        response = client.get(f"{API}/assets", headers=acme.headers, params=params)
        assert response.status_code == 200
        return sorted(a["asset_tag"] for a in response.json()["assets"])

    assert tags() == ["A1", "A2", "A3"]
    assert tags(status="UnderMaintenance") == ["A2"]
    assert tags(category_name="Furniture") == ["A1"]
    assert tags(location_name="Warehouse") == ["A3"]
    assert tags(search="monitor") == ["A2", "A3"]
    assert tags(search="a1") == ["A1"]


def test_list_assets_pagination(client, acme):
    for i in range(5):
        acme.add_asset(f"P{i}")

    response = client.get(f"{API}/assets", headers=acme.headers, params={"page": 2, "page_size": 2})

    body = response.json()
    assert body["total"] == 5
    assert body["page"] == 2
    assert len(body["assets"]) == 2


def test_rename_category_shows_on_assets(client, acme):
    asset_id = acme.add_asset("X1").json()["id"]
    categories = client.get(f"{API}/categories", headers=acme.headers).json()
    electronics = next(c for c in categories if c["name"] == "Electronics")

    client.patch(f"{API}/categories/{electronics['id']}", headers=acme.headers, json={"name": "IT Equipment"})

    response = client.get(f"{API}/assets/{asset_id}", headers=acme.headers)
    assert response.json()["category_name"] == "IT Equipment"
