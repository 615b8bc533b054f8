from unittest.mock import patch

from backoffice.database.models import InventoryItem
from backoffice.models.inventory import InventoryItemCreate
from backoffice.services.inventory import InventoryService
from tests.conftest import register

def items(*names):
    return [InventoryItemCreate(name=name, category="Feed") for name in names]

def test_bulk_import_continues_past_failures(db_session, tenant):
    service = InventoryService(db_session, tenant.organization_id, tenant.user_id)
    create_item = service.create_item

    def flaky_create(data):
        if data.name == "Broken Bag":
            raise ValueError("bad row")
        return create_item(data)

    with patch.object(service, "create_item", side_effect=flaky_create):
        result = service.bulk_import(items("Hay Bale", "Broken Bag", "Oats"))

    assert result.success_count == 2
    assert result.error_count == 1
    assert result.errors == ['Failed to import "Broken Bag"']
    names = {row.name for row in db_session.query(InventoryItem).all()}
    assert names == {"Hay Bale", "Oats"}

def test_bulk_import_serializes_camel_case(db_session, tenant):
    result = InventoryService(db_session, tenant.organization_id).bulk_import(items("Hay Bale"))

    assert result.model_dump(by_alias=True) == {
        "success": True,
        "successCount": 1,
        "errorCount": 0,
        "errors": []
    }

def test_create_item_endpoint(client, auth_headers):
    response = client.post(
        "/api/inventory",
        json={"name": "Fence Posts", "category": "Hardware", "current_quantity": 40},
        headers=auth_headers
    )

    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Fence Posts"
    assert data["current_quantity"] == 40
    assert data["status"] == "active"

def test_bulk_import_endpoint(client, auth_headers):
    response = client.post(
        "/api/inventory/bulk-import",
        json=[
            {"name": "Hay Bale", "category": "Feed"},
            {"name": "Salt Block", "category": "Feed"},
        ],
        headers=auth_headers
    )

    assert response.status_code == 200
    assert response.json() == {"success": True, "successCount": 2, "errorCount": 0, "errors": []}

def test_alerts_rank_out_of_stock_first(db_session, tenant):
    service = InventoryService(db_session, tenant.organization_id)
    for name, quantity, threshold in (
        ("Salt Block", 2, 5),
        ("Hay Bale", 50, 10),
        ("Oats", 0, 5),
        ("Barley", 5, 5),
    ):
        service.create_item(InventoryItemCreate(
            name=name, category="Feed", current_quantity=quantity, minimum_threshold=threshold
        ))
    retired = service.create_item(InventoryItemCreate(name="Old Feed", category="Feed"))
    retired.status = "discontinued"
    db_session.commit()

    alerts = [(a.item_name, a.alert_type, a.priority) for a in service.get_alerts()]

    assert alerts == [
        ("Oats", "out_of_stock", "high"),
        ("Barley", "low_stock", "medium"),
        ("Salt Block", "low_stock", "medium"),
    ]

def test_item_endpoints(client, auth_headers):
    created = client.post(
        "/api/inventory",
        json={"name": "Fence Posts", "category": "Hardware", "current_quantity": 40, "minimum_threshold": 10},
        headers=auth_headers
    ).json()
    client.post("/api/inventory", json={"name": "Barbed Wire", "category": "Hardware"}, headers=auth_headers)

    listed = client.get("/api/inventory", headers=auth_headers).json()
    assert [item["name"] for item in listed] == ["Barbed Wire", "Fence Posts"]
    assert [a["item_name"] for a in client.get("/api/inventory/alerts", headers=auth_headers).json()] == ["Barbed Wire"]

    response = client.put(f"/api/inventory/{created['id']}", json={"current_quantity": 3}, headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["current_quantity"] == 3
    assert response.json()["name"] == "Fence Posts"

    alerts = client.get("/api/inventory/alerts", headers=auth_headers).json()
    assert [(a["item_name"], a["alert_type"]) for a in alerts] == [
        ("Barbed Wire", "out_of_stock"), ("Fence Posts", "low_stock")
    ]

    response = client.delete(f"/api/inventory/{created['id']}", headers=auth_headers)
    assert response.json() == {"success": True, "message": "Inventory item deleted"}
    assert [item["name"] for item in client.get("/api/inventory", headers=auth_headers).json()] == ["Barbed Wire"]
    assert client.delete(f"/api/inventory/{created['id']}", headers=auth_headers).status_code == 404

def test_items_of_other_organizations_are_hidden(client):
    first, _ = register(client, email="first@example.com", organization_name="First Org")
    second, _ = register(client, email="second@example.com", organization_name="Second Org")
    item = client.post("/api/inventory", json={"name": "Hay Bale", "category": "Feed"}, headers=first).json()

    assert client.get("/api/inventory", headers=second).json() == []
    assert client.put(f"/api/inventory/{item['id']}", json={"name": "Mine"}, headers=second).status_code == 404
