from datetime import datetime

from app.services.analytics_service import (
    SHOPKEEPER_PAYER,
    WEBSITE_PAYER,
    merge_monthly,
    merge_payer_rows,
    payer_key,
    summarize_payers,
)
from utils import constants as c

from tests.conftest import auth_headers


def test_merge_monthly_combines_sources():
    website = [{"_id": {"year": 2024, "month": 2}, "revenue": 100, "orders": 1}]
    shop = [
        {"_id": {"year": 2024, "month": 2}, "revenue": 300, "orders": 2},
        {"_id": {"year": 2024, "month": 1}, "revenue": 50, "orders": 1},
    ]

    assert merge_monthly(website, shop) == [
        {"month": "2024-01", "revenue": 50, "orders": 1},
        {"month": "2024-02", "revenue": 400, "orders": 3},
    ]


def test_payer_key():
    assert payer_key(WEBSITE_PAYER, None, "Ayesha") == "customer:Ayesha"
    assert payer_key(SHOPKEEPER_PAYER, "abc", "Corner Store") == "shopkeeper:abc"
    assert payer_key(SHOPKEEPER_PAYER, None, "Corner Store") == "shopkeeper:Corner Store"


def test_merge_payer_rows_sums_and_sorts():
    key = payer_key(SHOPKEEPER_PAYER, "s1", "Corner Store")
    orders = [{
        "payerKey": key, "payerName": "Corner Store", "payerType": SHOPKEEPER_PAYER,
        "shopkeeperOrderPaid": 150, "transactionCount": 1, "lastReceivedDate": datetime(2024, 1, 5),
    }]
    recoveries = [{
        "payerKey": key, "recoveriesCollected": 200, "transactionCount": 2,
        "lastReceivedDate": datetime(2024, 1, 9),
    }]
    website = [{
        "payerKey": "customer:Ayesha", "payerName": "Ayesha", "payerType": WEBSITE_PAYER,
        "websiteReceived": 500, "transactionCount": 1, "lastReceivedDate": None,
    }]

    payers = merge_payer_rows(website, orders, recoveries)

    assert [p["payerKey"] for p in payers] == ["customer:Ayesha", key]
    shop = payers[1]
    assert shop["totalReceived"] == 350
    assert shop["transactionCount"] == 3
    assert shop["lastReceivedDate"] == datetime(2024, 1, 9)

    summary = summarize_payers(payers)
    assert summary["totalReceived"] == 850
    assert summary["totalTransactions"] == 4


def test_analytics_admin_only(client, make_user):
    salesman = make_user(c.ROLE_SALESMAN)

    assert client.get("/api/analytics/dashboard", headers=auth_headers(salesman)).status_code == 403
