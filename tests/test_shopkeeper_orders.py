import pytest

from utils import constants as c

from tests.conftest import auth_headers, fetch, run


@pytest.fixture
def parties(make_user, assign):
    admin = make_user(c.ROLE_SUPERADMIN)
    salesman = make_user(c.ROLE_SALESMAN, commissionRate=10)
    shopkeeper = make_user(c.ROLE_SHOPKEEPER, pendingAmount=20)
    assign(salesman, shopkeeper, admin["_id"])
    return admin, salesman, shopkeeper


def _place(client, user, body):
    return client.post("/api/shopkeeper-orders", json=body, headers=auth_headers(user))


def test_partial_payment_example(client, db, parties, make_product):
    admin, salesman, shopkeeper = parties
    product = make_product(price=100, stock=50)

    response = _place(client, shopkeeper, {
        "items": [{"productId": str(product["_id"]), "quantity": 3}],
        "amountPaid": 150,
    })

    assert response.status_code == 201
    order = response.json()["order"]
    assert order["totalAmount"] == 300
    assert order["amountPaid"] == 150
    assert order["pendingAmount"] == 150
    assert order["paymentStatus"] == "partial"
    assert order["commission"] == 30
    assert order["placedBy"] == "shopkeeper"
    assert order["status"] == "pending"
    assert order["items"][0]["unitPrice"] == 100
    assert order["items"][0]["product"]["name"] == product["name"]

    assert fetch(db, c.USERS, {"_id": shopkeeper["_id"]})["pendingAmount"] == 170
    # Stock is not decremented on placement
    assert fetch(db, c.PRODUCTS, {"_id": product["_id"]})["stock"] == 50


def test_notification_after_placement(client, db, parties, make_product):
    admin, salesman, shopkeeper = parties
    product = make_product()

    _place(client, shopkeeper, {"items": [{"productId": str(product["_id"]), "quantity": 1}]})

    notification = fetch(db, c.NOTIFICATIONS, {"type": "order"})
    assert notification is not None
    assert notification["priority"] == "urgent"
    assert admin["_id"] in notification["targetUsers"]
    assert notification["relatedEntityType"] == "ShopkeeperOrder"


def test_paid_in_full_is_high_priority(client, db, parties, make_product):
    _, _, shopkeeper = parties
    product = make_product(price=50)

    response = _place(client, shopkeeper, {
        "items": [{"productId": str(product["_id"]), "quantity": 2}],
        "amountPaid": 100,
    })

    order = response.json()["order"]
    assert order["paymentStatus"] == "paid"
    assert order["pendingAmount"] == 0
    assert fetch(db, c.USERS, {"_id": shopkeeper["_id"]})["pendingAmount"] == 20
    assert fetch(db, c.NOTIFICATIONS, {"type": "order"})["priority"] == "high"


def test_overpayment_reduces_balance(client, db, make_user, assign, make_product):
    salesman = make_user(c.ROLE_SALESMAN)
    shopkeeper = make_user(c.ROLE_SHOPKEEPER, pendingAmount=1000)
    assign(salesman, shopkeeper)
    product = make_product(price=100)

    response = _place(client, shopkeeper, {
        "items": [{"productId": str(product["_id"]), "quantity": 3}],
        "amountPaid": 500,
    })

    order = response.json()["order"]
    assert order["paymentStatus"] == "paid"
    assert order["pendingAmount"] == -200
    assert fetch(db, c.USERS, {"_id": shopkeeper["_id"]})["pendingAmount"] == 800


def test_mixed_custom_and_catalog_prices(client, db, parties, make_product):
    _, salesman, shopkeeper = parties
    nimko = make_product(name="Nimko", price=100)
    chips = make_product(name="Chips", price=30)

    response = _place(client, salesman, {
        "shopkeeperId": str(shopkeeper["_id"]),
        "items": [
            {"productId": str(nimko["_id"]), "quantity": 2, "customPrice": 90},
            {"productId": str(chips["_id"]), "quantity": 5},
        ],
        "amountPaid": 0,
    })

    assert response.status_code == 201
    order = response.json()["order"]
    assert [item["unitPrice"] for item in order["items"]] == [90, 30]
    assert [item["totalPrice"] for item in order["items"]] == [180, 150]
    assert order["totalAmount"] == 330
    assert order["pendingAmount"] == 330
    assert order["paymentStatus"] == "pending"
    assert order["commission"] == pytest.approx(33)
    assert fetch(db, c.USERS, {"_id": shopkeeper["_id"]})["pendingAmount"] == 350


def test_insufficient_stock_creates_nothing(client, db, parties, make_product):
    _, _, shopkeeper = parties
    plenty = make_product(name="Plenty", stock=100)
    scarce = make_product(name="Scarce", stock=2)

    response = _place(client, shopkeeper, {
        "items": [
            {"productId": str(plenty["_id"]), "quantity": 1},
            {"productId": str(scarce["_id"]), "quantity": 3},
        ],
    })

    assert response.status_code == 400
    assert response.json()["error"] == "Insufficient stock for Scarce"
    assert run(db[c.SHOPKEEPER_ORDERS].count_documents({})) == 0
    assert fetch(db, c.USERS, {"_id": shopkeeper["_id"]})["pendingAmount"] == 20


def test_unknown_product(client, parties):
    _, _, shopkeeper = parties

    response = _place(client, shopkeeper, {"items": [{"productId": "64b7f0c2a1b2c3d4e5f60718", "quantity": 1}]})

    assert response.status_code == 404


def test_empty_order_rejected(client, parties):
    _, _, shopkeeper = parties

    response = _place(client, shopkeeper, {"items": []})

    assert response.status_code == 400
    assert response.json()["error"] == "Order must contain at least one item"


def test_shopkeeper_without_salesman(client, make_user, make_product):
    loner = make_user(c.ROLE_SHOPKEEPER)
    product = make_product()

    response = _place(client, loner, {"items": [{"productId": str(product["_id"]), "quantity": 1}]})

    assert response.status_code == 400
    assert response.json()["error"] == "No salesman assigned to you"


def test_salesman_must_be_assigned(client, make_user, make_product, parties):
    _, _, shopkeeper = parties
    outsider = make_user(c.ROLE_SALESMAN)
    product = make_product()

    response = _place(client, outsider, {
        "shopkeeperId": str(shopkeeper["_id"]),
        "items": [{"productId": str(product["_id"]), "quantity": 1}],
    })

    assert response.status_code == 403


def test_salesman_needs_shopkeeper_id(client, parties, make_product):
    _, salesman, _ = parties
    product = make_product()

    response = _place(client, salesman, {"items": [{"productId": str(product["_id"]), "quantity": 1}]})

    assert response.status_code == 400


def test_salesman_custom_price_and_default_commission(client, db, make_user, assign, make_product):
    salesman = make_user(c.ROLE_SALESMAN, commissionRate=0)
    shopkeeper = make_user(c.ROLE_SHOPKEEPER)
    assign(salesman, shopkeeper)
    product = make_product(price=100)

    response = _place(client, salesman, {
        "shopkeeperId": str(shopkeeper["_id"]),
        "items": [{"productId": str(product["_id"]), "quantity": 2, "customPrice": 80}],
    })

    assert response.status_code == 201
    order = response.json()["order"]
    assert order["totalAmount"] == 160
    # A rate of zero falls back to the default 5%
    assert order["commission"] == pytest.approx(8)
    assert order["placedBy"] == "salesman"
    assert order["placedBySalesman"]["_id"] == str(salesman["_id"])


def test_admin_places_for_unassigned_shopkeeper(client, make_user, make_product):
    admin = make_user(c.ROLE_SUPERADMIN)
    shopkeeper = make_user(c.ROLE_SHOPKEEPER)
    product = make_product(price=40)

    response = _place(client, admin, {
        "shopkeeperId": str(shopkeeper["_id"]),
        "items": [{"productId": str(product["_id"]), "quantity": 1}],
    })

    assert response.status_code == 201
    order = response.json()["order"]
    assert order["salesman"] is None
    assert order["commission"] == 0


def test_listing_is_scoped(client, parties, make_user, assign, make_product):
    _, salesman, shopkeeper = parties
    other = make_user(c.ROLE_SHOPKEEPER)
    assign(salesman, other)
    product = make_product()
    item = [{"productId": str(product["_id"]), "quantity": 1}]
    _place(client, shopkeeper, {"items": item})
    _place(client, other, {"items": item})

    mine = client.get("/api/shopkeeper-orders", headers=auth_headers(shopkeeper)).json()
    assert mine["pagination"]["total"] == 1
    assert mine["orders"][0]["shopkeeper"]["_id"] == str(shopkeeper["_id"])

    theirs = client.get("/api/shopkeeper-orders", headers=auth_headers(salesman)).json()
    assert theirs["pagination"]["total"] == 2


def test_other_shopkeepers_order_is_forbidden(client, parties, make_user, assign, make_product):
    _, salesman, shopkeeper = parties
    other = make_user(c.ROLE_SHOPKEEPER)
    assign(salesman, other)
    product = make_product()
    order_id = _place(client, other, {"items": [{"productId": str(product["_id"]), "quantity": 1}]}).json()["order"]["_id"]

    response = client.get(f"/api/shopkeeper-orders/{order_id}", headers=auth_headers(shopkeeper))

    assert response.status_code == 403


def test_payment_update_moves_balance(client, db, parties, make_product):
    _, salesman, shopkeeper = parties
    product = make_product(price=100)
    order_id = _place(client, shopkeeper, {
        "items": [{"productId": str(product["_id"]), "quantity": 3}],
        "amountPaid": 150,
    }).json()["order"]["_id"]

    response = client.put(
        f"/api/shopkeeper-orders/{order_id}/payment",
        json={"amountPaid": 300},
        headers=auth_headers(salesman),
    )

    assert response.status_code == 200
    order = response.json()["order"]
    assert order["paymentStatus"] == "paid"
    assert order["pendingAmount"] == 0
    assert fetch(db, c.USERS, {"_id": shopkeeper["_id"]})["pendingAmount"] == 20


def test_status_update_records_delivery(client, db, parties, make_product):
    admin, _, shopkeeper = parties
    product = make_product()
    order_id = _place(client, shopkeeper, {"items": [{"productId": str(product["_id"]), "quantity": 1}]}).json()["order"]["_id"]

    response = client.put(
        f"/api/shopkeeper-orders/{order_id}/status",
        json={"status": "delivered"},
        headers=auth_headers(admin),
    )

    assert response.status_code == 200
    assert response.json()["order"]["status"] == "delivered"
    assert response.json()["order"]["deliveredAt"]

    bad = client.put(
        f"/api/shopkeeper-orders/{order_id}/status",
        json={"status": "teleported"},
        headers=auth_headers(admin),
    )
    assert bad.status_code == 400


def test_admin_sees_orders_they_placed(client, make_user, make_product):
    admin = make_user(c.ROLE_ADMIN)
    shopkeeper = make_user(c.ROLE_SHOPKEEPER)
    product = make_product()

    placed = _place(client, admin, {
        "shopkeeperId": str(shopkeeper["_id"]),
        "items": [{"productId": str(product["_id"]), "quantity": 1}],
    })
    assert placed.status_code == 201
    order_id = placed.json()["order"]["_id"]

    listing = client.get("/api/shopkeeper-orders", headers=auth_headers(admin)).json()
    assert listing["pagination"]["total"] == 1
    assert listing["orders"][0]["_id"] == order_id

    dashboard = client.get("/api/shopkeeper-orders/stats/dashboard", headers=auth_headers(admin))
    assert dashboard.status_code == 200

    single = client.get(f"/api/shopkeeper-orders/{order_id}", headers=auth_headers(admin))
    assert single.status_code == 200


def test_admin_sees_orders_of_own_salesmen(client, make_user, assign, make_product):
    admin = make_user(c.ROLE_ADMIN)
    salesman = make_user(c.ROLE_SALESMAN, assigned_by=admin["_id"])
    shopkeeper = make_user(c.ROLE_SHOPKEEPER)
    assign(salesman, shopkeeper)
    product = make_product()
    _place(client, shopkeeper, {"items": [{"productId": str(product["_id"]), "quantity": 1}]})

    listing = client.get("/api/shopkeeper-orders", headers=auth_headers(admin)).json()

    assert listing["pagination"]["total"] == 1


def test_admin_cannot_reach_other_admins_orders(client, parties, make_user, make_product):
    _, _, shopkeeper = parties
    outsider = make_user(c.ROLE_ADMIN)
    product = make_product()
    order_id = _place(client, shopkeeper, {
        "items": [{"productId": str(product["_id"]), "quantity": 1}],
    }).json()["order"]["_id"]

    listing = client.get("/api/shopkeeper-orders", headers=auth_headers(outsider)).json()
    single = client.get(f"/api/shopkeeper-orders/{order_id}", headers=auth_headers(outsider))
    payment = client.put(
        f"/api/shopkeeper-orders/{order_id}/payment",
        json={"amountPaid": 1},
        headers=auth_headers(outsider),
    )

    assert listing["pagination"]["total"] == 0
    assert single.status_code == 403
    assert payment.status_code == 403
