import pytest

from app.models.distribution import can_transition
from utils import constants as c

from tests.conftest import auth_headers


@pytest.mark.parametrize("current,target,allowed", [
    ("pending", "dispatched", True),
    ("pending", "cancelled", True),
    ("pending", "delivered", False),
    ("dispatched", "delivered", True),
    ("delivered", "cancelled", False),
    ("cancelled", "pending", False),
])
def test_distribution_transitions(current, target, allowed):
    assert can_transition(current, target) is allowed


def test_distribution_lifecycle(client, make_user, make_product):
    admin = make_user(c.ROLE_ADMIN)
    salesman = make_user(c.ROLE_SALESMAN)
    product = make_product()

    created = client.post(
        "/api/distribution",
        json={"salesmanId": str(salesman["_id"]), "items": [{"productId": str(product["_id"]), "quantity": 12}]},
        headers=auth_headers(admin),
    )
    assert created.status_code == 201
    distribution = created.json()["distribution"]
    assert distribution["status"] == "pending"
    assert distribution["totalQuantity"] == 12

    url = f"/api/distribution/{distribution['_id']}/status"
    skip = client.put(url, json={"status": "delivered"}, headers=auth_headers(salesman))
    assert skip.status_code == 400

    dispatched = client.put(url, json={"status": "dispatched"}, headers=auth_headers(admin))
    assert dispatched.json()["distribution"]["dispatchedAt"]

    listed = client.get("/api/distribution", headers=auth_headers(salesman)).json()
    assert listed["pagination"]["total"] == 1


def test_distribution_needs_salesman(client, make_user, make_product):
    admin = make_user(c.ROLE_ADMIN)
    shopkeeper = make_user(c.ROLE_SHOPKEEPER)
    product = make_product()

    response = client.post(
        "/api/distribution",
        json={"salesmanId": str(shopkeeper["_id"]), "items": [{"productId": str(product["_id"]), "quantity": 1}]},
        headers=auth_headers(admin),
    )

    assert response.status_code == 400


def test_sale_priced_like_orders(client, make_user, assign, make_product):
    salesman = make_user(c.ROLE_SALESMAN, commissionRate=10)
    shopkeeper = make_user(c.ROLE_SHOPKEEPER)
    assign(salesman, shopkeeper)
    product = make_product(price=60)

    response = client.post(
        "/api/sales",
        json={
            "shopkeeperId": str(shopkeeper["_id"]),
            "items": [
                {"productId": str(product["_id"]), "quantity": 2},
                {"productId": str(product["_id"]), "quantity": 1, "unitPrice": 50},
            ],
        },
        headers=auth_headers(salesman),
    )

    assert response.status_code == 201
    sale = response.json()["sale"]
    assert sale["totalAmount"] == 170
    assert sale["commission"] == pytest.approx(17)


def test_sale_for_unassigned_shopkeeper(client, make_user, make_product):
    salesman = make_user(c.ROLE_SALESMAN)
    shopkeeper = make_user(c.ROLE_SHOPKEEPER)
    product = make_product()

    response = client.post(
        "/api/sales",
        json={"shopkeeperId": str(shopkeeper["_id"]), "items": [{"productId": str(product["_id"]), "quantity": 1}]},
        headers=auth_headers(salesman),
    )

    assert response.status_code == 403
