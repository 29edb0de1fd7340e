import pytest

from app.services.recovery_service import balance_reduction
from utils import constants as c

from tests.conftest import auth_headers, fetch, run


@pytest.fixture
def field(make_user, assign):
    admin = make_user(c.ROLE_SUPERADMIN)
    salesman = make_user(c.ROLE_SALESMAN)
    shopkeeper = make_user(c.ROLE_SHOPKEEPER, pendingAmount=500)
    assign(salesman, shopkeeper)
    return admin, salesman, shopkeeper


def _record(client, user, body):
    return client.post("/api/recoveries", json=body, headers=auth_headers(user))


def test_balance_reduction_clamps_at_zero():
    assert balance_reduction(500, 200) == -200
    assert balance_reduction(100, 250) == -100
    assert balance_reduction(0, 50) == 0
    # Goods worth more than the cash raise the balance
    assert balance_reduction(100, -40) == 40


def test_payment_only_reduces_balance(client, db, field):
    _, salesman, shopkeeper = field

    response = _record(client, salesman, {"shopkeeperId": str(shopkeeper["_id"]), "amountCollected": 200})

    assert response.status_code == 201
    recovery = response.json()["recovery"]
    assert recovery["netPayment"] == 200
    assert recovery["itemsValue"] == 0
    assert recovery["status"] == "completed"
    assert recovery["previousPendingAmount"] == 500
    assert fetch(db, c.USERS, {"_id": shopkeeper["_id"]})["pendingAmount"] == 300


def test_payment_with_items(client, db, field, make_product):
    _, salesman, shopkeeper = field
    product = make_product()

    response = _record(client, salesman, {
        "shopkeeperId": str(shopkeeper["_id"]),
        "recoveryType": "payment_with_items",
        "amountCollected": 300,
        "items": [{"product": str(product["_id"]), "quantity": 2, "unitPrice": 50}],
    })

    assert response.status_code == 201
    recovery = response.json()["recovery"]
    assert recovery["itemsValue"] == 100
    assert recovery["netPayment"] == 200
    assert fetch(db, c.USERS, {"_id": shopkeeper["_id"]})["pendingAmount"] == 300


def test_items_required_for_item_recovery(client, field):
    _, salesman, shopkeeper = field

    response = _record(client, salesman, {
        "shopkeeperId": str(shopkeeper["_id"]),
        "recoveryType": "payment_with_items",
        "amountCollected": 10,
    })

    assert response.status_code == 400


def test_unassigned_salesman_forbidden(client, field, make_user):
    _, _, shopkeeper = field
    outsider = make_user(c.ROLE_SALESMAN)

    response = _record(client, outsider, {"shopkeeperId": str(shopkeeper["_id"]), "amountCollected": 10})

    assert response.status_code == 403


def test_recovery_notifies_admins(client, db, field):
    admin, salesman, shopkeeper = field

    _record(client, salesman, {"shopkeeperId": str(shopkeeper["_id"]), "amountCollected": 75})

    notification = fetch(db, c.NOTIFICATIONS, {"type": "recovery"})
    assert notification is not None
    assert admin["_id"] in notification["targetUsers"]
    assert notification["data"]["amountCollected"] == 75


def test_cancel_restores_exact_adjustment(client, db, make_user, assign):
    salesman = make_user(c.ROLE_SALESMAN)
    shopkeeper = make_user(c.ROLE_SHOPKEEPER, pendingAmount=100)
    assign(salesman, shopkeeper)

    recovery = _record(client, salesman, {
        "shopkeeperId": str(shopkeeper["_id"]),
        "amountCollected": 250,
    }).json()["recovery"]
    assert fetch(db, c.USERS, {"_id": shopkeeper["_id"]})["pendingAmount"] == 0

    response = client.put(
        f"/api/recoveries/{recovery['_id']}",
        json={"status": "cancelled"},
        headers=auth_headers(salesman),
    )

    assert response.status_code == 200
    assert fetch(db, c.USERS, {"_id": shopkeeper["_id"]})["pendingAmount"] == 100

    # Cancelling twice does not restore twice
    client.put(f"/api/recoveries/{recovery['_id']}", json={"status": "cancelled"}, headers=auth_headers(salesman))
    assert fetch(db, c.USERS, {"_id": shopkeeper["_id"]})["pendingAmount"] == 100

    reopen = client.put(
        f"/api/recoveries/{recovery['_id']}",
        json={"status": "completed"},
        headers=auth_headers(salesman),
    )
    assert reopen.status_code == 400


def test_listing_scoped_to_salesman(client, field, make_user, assign):
    _, salesman, shopkeeper = field
    other_salesman = make_user(c.ROLE_SALESMAN)
    assign(other_salesman, shopkeeper)
    _record(client, salesman, {"shopkeeperId": str(shopkeeper["_id"]), "amountCollected": 10})
    _record(client, other_salesman, {"shopkeeperId": str(shopkeeper["_id"]), "amountCollected": 20})

    mine = client.get("/api/recoveries", headers=auth_headers(salesman)).json()

    assert mine["pagination"]["total"] == 1
    assert mine["recoveries"][0]["amountCollected"] == 10


def test_delete_requires_admin(client, db, field):
    admin, salesman, shopkeeper = field
    recovery_id = _record(client, salesman, {
        "shopkeeperId": str(shopkeeper["_id"]),
        "amountCollected": 10,
    }).json()["recovery"]["_id"]

    assert client.delete(f"/api/recoveries/{recovery_id}", headers=auth_headers(salesman)).status_code == 403
    assert client.delete(f"/api/recoveries/{recovery_id}", headers=auth_headers(admin)).status_code == 200
    assert run(db[c.RECOVERIES].count_documents({})) == 0
