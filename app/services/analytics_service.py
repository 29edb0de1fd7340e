"""
app/services/analytics_service.py

Purpose: Reporting over orders, recoveries and receipts

- Aggregation pipelines run concurrently, each against its own snapshot
- Per-source rows merged in memory (monthly series, payers)
- Read-only; nothing here writes
"""

import asyncio
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.models.recovery import RecoveryStatus
from utils import constants as c
from utils.time_utils import month_key

WEBSITE_PAYER = "Website Customer"
SHOPKEEPER_PAYER = "Shopkeeper"


# ============================================================
# PURE HELPERS
# ============================================================

def first_or(rows: List[Dict[str, Any]], field: str, default: float = 0) -> Any:
    """Reads a field from a single-group aggregation result."""
    if not rows:
        return default
    value = rows[0].get(field)
    return default if value is None else value


def monthly_pipeline(match: Dict[str, Any], date_field: str = "orderDate") -> List[Dict[str, Any]]:
    return [
        {"$match": match},
        {
            "$group": {
                "_id": {"year": {"$year": f"${date_field}"}, "month": {"$month": f"${date_field}"}},
                "revenue": {"$sum": "$totalAmount"},
                "orders": {"$sum": 1},
            }
        },
        {"$sort": {"_id.year": 1, "_id.month": 1}},
    ]


def merge_monthly(*series: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Combines monthly rows from several sources into one YYYY-MM series.

    Rows are shaped ``{"_id": {"year", "month"}, "revenue", "orders"}``.
    """
    months: Dict[str, Dict[str, Any]] = {}
    for rows in series:
        for row in rows:
            key = month_key(row["_id"]["year"], row["_id"]["month"])
            entry = months.setdefault(key, {"month": key, "revenue": 0, "orders": 0})
            entry["revenue"] += row.get("revenue") or 0
            entry["orders"] += row.get("orders") or 0
    return [months[k] for k in sorted(months)]


def payer_key(payer_type: str, payer_id: Any, payer_name: Optional[str]) -> str:
    """
    Key used to merge rows for the same payer across sources.

    Website customers are keyed by name; shopkeepers by id, falling back to
    name when the shopkeeper no longer exists.
    """
    if payer_type == WEBSITE_PAYER:
        return f"customer:{payer_name}"
    return f"shopkeeper:{payer_id if payer_id is not None else payer_name}"


def _later(a: Optional[datetime], b: Optional[datetime]) -> Optional[datetime]:
    if a is None:
        return b
    if b is None:
        return a
    return max(a, b)


def merge_payer_rows(*sources: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Merges per-source payer rows into one row per payer, sorted by total received.
    """
    payers: Dict[str, Dict[str, Any]] = {}
    for rows in sources:
        for row in rows:
            key = row["payerKey"]
            payer = payers.get(key)
            if payer is None:
                payer = payers[key] = {
                    "payerKey": key,
                    "payerId": row.get("payerId"),
                    "payerName": row.get("payerName") or "Unknown",
                    "payerType": row.get("payerType") or "Unknown",
                    "payerEmail": row.get("payerEmail") or "",
                    "payerPhone": row.get("payerPhone") or "",
                    "websiteReceived": 0,
                    "shopkeeperOrderPaid": 0,
                    "recoveriesCollected": 0,
                    "transactionCount": 0,
                    "lastReceivedDate": None,
                }
            payer["websiteReceived"] += float(row.get("websiteReceived") or 0)
            payer["shopkeeperOrderPaid"] += float(row.get("shopkeeperOrderPaid") or 0)
            payer["recoveriesCollected"] += float(row.get("recoveriesCollected") or 0)
            payer["transactionCount"] += int(row.get("transactionCount") or 0)
            payer["lastReceivedDate"] = _later(payer["lastReceivedDate"], row.get("lastReceivedDate"))

    merged = []
    for payer in payers.values():
        payer["totalReceived"] = payer["websiteReceived"] + payer["shopkeeperOrderPaid"] + payer["recoveriesCollected"]
        merged.append(payer)
    merged.sort(key=lambda p: p["totalReceived"], reverse=True)
    return merged


def summarize_payers(payers: List[Dict[str, Any]]) -> Dict[str, float]:
    summary = {
        "websiteReceived": 0,
        "shopkeeperOrderPaid": 0,
        "recoveriesCollected": 0,
        "totalReceived": 0,
        "totalTransactions": 0,
    }
    for payer in payers:
        summary["websiteReceived"] += payer["websiteReceived"]
        summary["shopkeeperOrderPaid"] += payer["shopkeeperOrderPaid"]
        summary["recoveriesCollected"] += payer["recoveriesCollected"]
        summary["totalReceived"] += payer["totalReceived"]
        summary["totalTransactions"] += payer["transactionCount"]
    return summary


# ============================================================
# QUERIES
# ============================================================

async def _aggregate(collection, pipeline: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return await collection.aggregate(pipeline).to_list(length=None)


async def _names(db: AsyncIOMotorDatabase, collection: str, ids: Iterable[Any], projection=None) -> Dict[Any, Dict[str, Any]]:
    ids = [i for i in ids if i is not None]
    if not ids:
        return {}
    cursor = db[collection].find({"_id": {"$in": ids}}, projection or {"name": 1, "email": 1, "phone": 1})
    return {doc["_id"]: doc async for doc in cursor}


def _performance_pipeline(match: Dict[str, Any], field: str) -> List[Dict[str, Any]]:
    return [
        {"$match": match},
        {
            "$group": {
                "_id": f"${field}",
                "totalOrders": {"$sum": 1},
                "totalRevenue": {"$sum": "$totalAmount"},
                "averageOrderValue": {"$avg": "$totalAmount"},
            }
        },
        {"$sort": {"totalRevenue": -1}},
        {"$limit": 10},
    ]


def _quantity_pipeline(match: Dict[str, Any]) -> List[Dict[str, Any]]:
    return [
        {"$match": match},
        {"$unwind": "$items"},
        {"$group": {"_id": None, "totalQuantity": {"$sum": "$items.quantity"}}},
    ]


async def dashboard(db: AsyncIOMotorDatabase, start: datetime, end: datetime) -> Dict[str, Any]:
    order_match = {"orderDate": {"$gte": start, "$lte": end}}
    recovery_match = {"recoveryDate": {"$gte": start, "$lte": end}}
    receipt_match = {"createdAt": {"$gte": start, "$lte": end}}

    orders = db[c.ORDERS]
    shop_orders = db[c.SHOPKEEPER_ORDERS]
    recoveries = db[c.RECOVERIES]

    (
        total_users, total_products, total_orders, total_shop_orders, total_recoveries, total_receipts,
        website_revenue, shop_revenue, recovery_stats,
        website_monthly, shop_monthly, role_stats,
        top_products, salesman_perf, shopkeeper_perf,
        website_qty, shop_qty,
    ) = await asyncio.gather(
        db[c.USERS].count_documents({"role": {"$in": [c.ROLE_SHOPKEEPER, c.ROLE_SALESMAN]}}),
        db[c.PRODUCTS].count_documents({}),
        orders.count_documents(order_match),
        shop_orders.count_documents(order_match),
        recoveries.count_documents(recovery_match),
        db[c.RECEIPTS].count_documents(receipt_match),
        _aggregate(orders, [
            {"$match": order_match},
            {"$group": {"_id": None, "totalRevenue": {"$sum": "$totalAmount"}}},
        ]),
        _aggregate(shop_orders, [
            {"$match": order_match},
            {
                "$group": {
                    "_id": None,
                    "totalRevenue": {"$sum": "$totalAmount"},
                    "totalAmountPaid": {"$sum": "$amountPaid"},
                    "totalPendingAmount": {"$sum": "$pendingAmount"},
                    "totalCommission": {"$sum": "$commission"},
                }
            },
        ]),
        _aggregate(recoveries, [
            {"$match": {**recovery_match, "status": {"$ne": RecoveryStatus.CANCELLED.value}}},
            {
                "$group": {
                    "_id": None,
                    "totalAmountCollected": {"$sum": "$amountCollected"},
                    "totalNetPayment": {"$sum": "$netPayment"},
                    "totalItemsValue": {"$sum": "$itemsValue"},
                }
            },
        ]),
        _aggregate(orders, monthly_pipeline(order_match)),
        _aggregate(shop_orders, monthly_pipeline(order_match)),
        _aggregate(db[c.USERS], [{"$group": {"_id": "$role", "count": {"$sum": 1}}}]),
        _aggregate(shop_orders, [
            {"$match": order_match},
            {"$unwind": "$items"},
            {
                "$group": {
                    "_id": "$items.product",
                    "totalQuantity": {"$sum": "$items.quantity"},
                    "totalRevenue": {"$sum": "$items.totalPrice"},
                }
            },
            {"$sort": {"totalQuantity": -1}},
            {"$limit": 10},
        ]),
        _aggregate(shop_orders, _performance_pipeline(order_match, "salesman")),
        _aggregate(shop_orders, _performance_pipeline(order_match, "shopkeeper")),
        _aggregate(orders, _quantity_pipeline(order_match)),
        _aggregate(shop_orders, _quantity_pipeline(order_match)),
    )

    products = await _names(db, c.PRODUCTS, [p["_id"] for p in top_products], {"name": 1})
    people = await _names(
        db, c.USERS,
        [p["_id"] for p in salesman_perf] + [p["_id"] for p in shopkeeper_perf],
    )

    website_total = first_or(website_revenue, "totalRevenue")
    shop_total = first_or(shop_revenue, "totalRevenue")
    recovered = first_or(recovery_stats, "totalAmountCollected")
    shop_paid = first_or(shop_revenue, "totalAmountPaid")
    net_payment = first_or(recovery_stats, "totalNetPayment")
    all_orders = total_orders + total_shop_orders
    order_value = website_total + shop_total
    total_received = website_total + shop_paid + recovered

    def performance(rows, label):
        return [
            {
                label: people[row["_id"]].get("name"),
                "totalOrders": row["totalOrders"],
                "totalRevenue": row["totalRevenue"],
                "averageOrderValue": row["averageOrderValue"],
            }
            for row in rows if row["_id"] in people
        ]

    return {
        "overview": {
            "totalRevenue": website_total + shop_total + recovered,
            "totalSalesRevenue": order_value,
            "totalReceived": total_received,
            "totalProfit": net_payment,
            "totalOrders": all_orders,
            "averageOrderValue": order_value / all_orders if all_orders else 0,
            "totalUsers": total_users,
            "totalProducts": total_products,
            "totalRecoveries": total_recoveries,
            "totalReceipts": total_receipts,
        },
        "revenue": {
            "websiteOrders": website_total,
            "shopkeeperOrders": shop_total,
            "recoveries": recovered,
            "netPayment": net_payment,
            "itemsValue": first_or(recovery_stats, "totalItemsValue"),
        },
        "payments": {
            "websiteReceived": website_total,
            "shopkeeperAmountPaid": shop_paid,
            "recoveriesCollected": recovered,
            "totalReceived": total_received,
            "outstandingAmount": first_or(shop_revenue, "totalPendingAmount"),
            "totalCommission": first_or(shop_revenue, "totalCommission"),
            "totalQuantity": first_or(website_qty, "totalQuantity") + first_or(shop_qty, "totalQuantity"),
        },
        "monthlyStats": merge_monthly(website_monthly, shop_monthly),
        "userRoleStats": role_stats,
        "topProducts": [
            {
                "productName": products[row["_id"]].get("name"),
                "totalQuantity": row["totalQuantity"],
                "totalRevenue": row["totalRevenue"],
            }
            for row in top_products if row["_id"] in products
        ],
        "salesmanPerformance": performance(salesman_perf, "salesmanName"),
        "shopkeeperPerformance": performance(shopkeeper_perf, "shopkeeperName"),
    }


async def received_details(db: AsyncIOMotorDatabase, start: datetime, end: datetime) -> Dict[str, Any]:
    order_match = {"orderDate": {"$gte": start, "$lte": end}}
    recovery_match = {
        "recoveryDate": {"$gte": start, "$lte": end},
        "amountCollected": {"$gt": 0},
        "status": {"$ne": RecoveryStatus.CANCELLED.value},
    }

    website_rows, shop_rows, recovery_rows = await asyncio.gather(
        _aggregate(db[c.ORDERS], [
            {"$match": order_match},
            {
                "$group": {
                    "_id": {"$ifNull": ["$customerName", "Unknown Customer"]},
                    "websiteReceived": {"$sum": "$totalAmount"},
                    "transactionCount": {"$sum": 1},
                    "lastReceivedDate": {"$max": "$orderDate"},
                }
            },
        ]),
        _aggregate(db[c.SHOPKEEPER_ORDERS], [
            {"$match": {**order_match, "amountPaid": {"$gt": 0}}},
            {
                "$group": {
                    "_id": "$shopkeeper",
                    "shopkeeperOrderPaid": {"$sum": "$amountPaid"},
                    "transactionCount": {"$sum": 1},
                    "lastReceivedDate": {"$max": "$orderDate"},
                }
            },
        ]),
        _aggregate(db[c.RECOVERIES], [
            {"$match": recovery_match},
            {
                "$group": {
                    "_id": "$shopkeeper",
                    "recoveriesCollected": {"$sum": "$amountCollected"},
                    "transactionCount": {"$sum": 1},
                    "lastReceivedDate": {"$max": "$recoveryDate"},
                }
            },
        ]),
    )

    shopkeepers = await _names(db, c.USERS, [r["_id"] for r in shop_rows + recovery_rows])

    def customer_row(row):
        return {
            "payerKey": payer_key(WEBSITE_PAYER, None, row["_id"]),
            "payerId": None,
            "payerName": row["_id"],
            "payerType": WEBSITE_PAYER,
            "websiteReceived": row["websiteReceived"],
            "transactionCount": row["transactionCount"],
            "lastReceivedDate": row.get("lastReceivedDate"),
        }

    def shopkeeper_row(row, amount_field):
        person = shopkeepers.get(row["_id"])
        payer_id = person["_id"] if person else None
        name = person.get("name") if person else "Unknown Shopkeeper"
        return {
            "payerKey": payer_key(SHOPKEEPER_PAYER, payer_id, name),
            "payerId": payer_id,
            "payerName": name,
            "payerType": SHOPKEEPER_PAYER,
            "payerEmail": person.get("email", "") if person else "",
            "payerPhone": person.get("phone", "") if person else "",
            amount_field: row[amount_field],
            "transactionCount": row["transactionCount"],
            "lastReceivedDate": row.get("lastReceivedDate"),
        }

    payers = merge_payer_rows(
        [customer_row(r) for r in website_rows],
        [shopkeeper_row(r, "shopkeeperOrderPaid") for r in shop_rows],
        [shopkeeper_row(r, "recoveriesCollected") for r in recovery_rows],
    )
    return {
        "startDate": start,
        "endDate": end,
        "summary": summarize_payers(payers),
        "payers": payers,
    }


async def outstanding_details(db: AsyncIOMotorDatabase, start: datetime, end: datetime) -> Dict[str, Any]:
    rows = await _aggregate(db[c.SHOPKEEPER_ORDERS], [
        {"$match": {"orderDate": {"$gte": start, "$lte": end}, "pendingAmount": {"$gt": 0}}},
        {
            "$group": {
                "_id": "$shopkeeper",
                "outstandingAmount": {"$sum": "$pendingAmount"},
                "ordersWithOutstanding": {"$sum": 1},
                "totalOrderAmount": {"$sum": "$totalAmount"},
                "lastOrderDate": {"$max": "$orderDate"},
            }
        },
        {"$sort": {"outstandingAmount": -1}},
    ])
    people = await _names(db, c.USERS, [r["_id"] for r in rows])

    shopkeepers = []
    for row in rows:
        person = people.get(row["_id"]) or {}
        shopkeepers.append({
            "shopkeeperId": row["_id"],
            "shopkeeperName": person.get("name", "Unknown Shopkeeper"),
            "shopkeeperEmail": person.get("email", ""),
            "shopkeeperPhone": person.get("phone", ""),
            "outstandingAmount": row["outstandingAmount"],
            "ordersWithOutstanding": row["ordersWithOutstanding"],
            "totalOrderAmount": row["totalOrderAmount"],
            "lastOrderDate": row.get("lastOrderDate"),
        })

    summary = {
        "totalOutstanding": sum(s["outstandingAmount"] for s in shopkeepers),
        "totalOrdersWithOutstanding": sum(s["ordersWithOutstanding"] for s in shopkeepers),
        "shopkeepersWithOutstanding": len(shopkeepers),
    }
    return {"startDate": start, "endDate": end, "summary": summary, "shopkeepers": shopkeepers}


async def salesman_report(db: AsyncIOMotorDatabase, salesman_id: ObjectId, start: datetime, end: datetime) -> Dict[str, Any]:
    order_match = {"salesman": salesman_id, "orderDate": {"$gte": start, "$lte": end}}
    recovery_match = {"salesman": salesman_id, "recoveryDate": {"$gte": start, "$lte": end}}

    order_stats, recovery_stats, monthly = await asyncio.gather(
        _aggregate(db[c.SHOPKEEPER_ORDERS], [
            {"$match": order_match},
            {
                "$group": {
                    "_id": None,
                    "totalOrders": {"$sum": 1},
                    "totalRevenue": {"$sum": "$totalAmount"},
                    "averageOrderValue": {"$avg": "$totalAmount"},
                }
            },
        ]),
        _aggregate(db[c.RECOVERIES], [
            {"$match": recovery_match},
            {
                "$group": {
                    "_id": None,
                    "totalRecoveries": {"$sum": 1},
                    "totalAmountCollected": {"$sum": "$amountCollected"},
                    "totalNetPayment": {"$sum": "$netPayment"},
                }
            },
        ]),
        _aggregate(db[c.SHOPKEEPER_ORDERS], monthly_pipeline(order_match)),
    )

    return {
        "overview": {
            "totalOrders": first_or(order_stats, "totalOrders"),
            "totalRevenue": first_or(order_stats, "totalRevenue"),
            "averageOrderValue": first_or(order_stats, "averageOrderValue"),
            "totalRecoveries": first_or(recovery_stats, "totalRecoveries"),
            "totalAmountCollected": first_or(recovery_stats, "totalAmountCollected"),
            "totalNetPayment": first_or(recovery_stats, "totalNetPayment"),
        },
        "monthlyPerformance": merge_monthly(monthly),
    }
