from utils import constants as c

from tests.conftest import auth_headers, fetch


ORDER = {
    "customerName": "Ayesha",
    "phone": "03331234567",
    "address": "House 4, Model Town",
    "items": [{"name": "Daal Moth", "price": 120, "quantity": 2}],
    "totalAmount": 240,
}


def test_public_order_notifies_admins(client, db, make_user):
    admin = make_user(c.ROLE_ADMIN)

    response = client.post("/api/orders", json=ORDER)

    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Order placed successfully!"
    stored = fetch(db, c.ORDERS, {"customerName": "Ayesha"})
    assert str(stored["_id"]) == data["orderId"]
    assert stored["status"] == "Pending"

    notification = fetch(db, c.NOTIFICATIONS, {"relatedEntity": stored["_id"]})
    assert notification["priority"] == "high"
    assert admin["_id"] in notification["targetUsers"]


def test_order_needs_items(client):
    response = client.post("/api/orders", json={**ORDER, "items": []})

    assert response.status_code == 400


def test_management_is_admin_only(client, make_user):
    salesman = make_user(c.ROLE_SALESMAN)

    assert client.get("/api/orders", headers=auth_headers(salesman)).status_code == 403


def test_status_update(client, make_user):
    admin = make_user(c.ROLE_ADMIN)
    order_id = client.post("/api/orders", json=ORDER).json()["orderId"]

    ok = client.put(f"/api/orders/{order_id}/status", json={"status": "Shipped"}, headers=auth_headers(admin))
    bad = client.put(f"/api/orders/{order_id}/status", json={"status": "Lost"}, headers=auth_headers(admin))

    assert ok.json()["order"]["status"] == "Shipped"
    assert bad.status_code == 400
