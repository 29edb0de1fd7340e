from datetime import datetime

import pytest

from app.models.receipt import ReceiptType, format_receipt_number
from app.services.receipt_service import next_receipt_number
from utils import constants as c
from utils.time_utils import receipt_date_stamp, utc_now

from tests.conftest import auth_headers, run


def test_format_receipt_number():
    issued = datetime(2024, 10, 17, 9, 30)
    assert format_receipt_number(ReceiptType.ORDER, issued, 42) == "ORD2410170042"
    assert format_receipt_number(ReceiptType.RECOVERY, issued, 1) == "REC2410170001"
    assert format_receipt_number(ReceiptType.ORDER, issued, 12345) == "ORD24101712345"


def test_sequence_is_per_prefix_and_day(db):
    day = datetime(2024, 10, 17)
    next_day = datetime(2024, 10, 18)

    assert run(next_receipt_number(db, ReceiptType.ORDER, day)) == "ORD2410170001"
    assert run(next_receipt_number(db, ReceiptType.ORDER, day)) == "ORD2410170002"
    assert run(next_receipt_number(db, ReceiptType.RECOVERY, day)) == "REC2410170001"
    assert run(next_receipt_number(db, ReceiptType.ORDER, next_day)) == "ORD2410180001"


@pytest.fixture
def order(db, make_user):
    salesman = make_user(c.ROLE_SALESMAN)
    shopkeeper = make_user(c.ROLE_SHOPKEEPER)
    doc = {"shopkeeper": shopkeeper["_id"], "salesman": salesman["_id"], "totalAmount": 300}
    doc["_id"] = run(db[c.SHOPKEEPER_ORDERS].insert_one(doc)).inserted_id
    return doc, salesman


def test_generate_order_receipt(client, order):
    doc, salesman = order
    body = {
        "receiptType": "order",
        "orderId": str(doc["_id"]),
        "receiptContent": "<html>receipt</html>",
        "totalAmount": 300,
    }

    first = client.post("/api/receipts", json=body, headers=auth_headers(salesman))
    second = client.post("/api/receipts", json=body, headers=auth_headers(salesman))

    assert first.status_code == 201
    stamp = receipt_date_stamp(utc_now())
    assert first.json()["receipt"]["receiptNumber"] == f"ORD{stamp}0001"
    assert second.json()["receipt"]["receiptNumber"] == f"ORD{stamp}0002"
    assert first.json()["receipt"]["salesman"] == str(salesman["_id"])
    assert first.json()["receipt"]["status"] == "generated"


def test_receipt_requires_matching_source_id(client, order):
    _, salesman = order

    response = client.post(
        "/api/receipts",
        json={"receiptType": "recovery", "receiptContent": "x", "totalAmount": 10},
        headers=auth_headers(salesman),
    )

    assert response.status_code == 400


def test_receipt_for_missing_order(client, order):
    _, salesman = order

    response = client.post(
        "/api/receipts",
        json={
            "receiptType": "order",
            "orderId": "64b7f0c2a1b2c3d4e5f60718",
            "receiptContent": "x",
            "totalAmount": 10,
        },
        headers=auth_headers(salesman),
    )

    assert response.status_code == 404


def test_status_update(client, order):
    doc, salesman = order
    receipt = client.post(
        "/api/receipts",
        json={"receiptType": "order", "orderId": str(doc["_id"]), "receiptContent": "x", "totalAmount": 300},
        headers=auth_headers(salesman),
    ).json()["receipt"]

    response = client.put(
        f"/api/receipts/{receipt['_id']}/status",
        json={"status": "printed"},
        headers=auth_headers(salesman),
    )

    assert response.status_code == 200
    assert response.json()["receipt"]["status"] == "printed"
