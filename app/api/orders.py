"""
app/api/orders.py

Purpose: /api/orders (website customer orders)

- Public order placement with an admin notification
- Order management and dashboard statistics (admins)
"""

from datetime import timedelta
from typing import Any, Dict, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from app.api.deps import require_admin
from app.core.logging import get_logger
from app.db.mongo import get_database
from app.models.order import WebsiteOrderStatus
from app.schemas.orders import WebsiteOrderCreate, WebsiteOrderStatusUpdate, WebsiteOrderUpdate
from app.services.analytics_service import first_or
from app.services.lookup_service import get_or_404
from app.services.notification_service import notify_new_website_order
from utils import constants as c
from utils.time_utils import optional_date_range, utc_now
from utils.validation_utils import normalize_pagination, pagination_block, search_regex, serialize_document

logger = get_logger(__name__)
router = APIRouter()

SORTABLE_FIELDS = ("createdAt", "orderDate", "totalAmount", "customerName", "status")
EMPTY_STATS = {"totalOrders": 0, "totalRevenue": 0, "averageOrderValue": 0}


def _totals_stage() -> Dict[str, Any]:
    return {
        "$group": {
            "_id": None,
            "totalOrders": {"$sum": 1},
            "totalRevenue": {"$sum": "$totalAmount"},
            "averageOrderValue": {"$avg": "$totalAmount"},
        }
    }


def _stats(rows) -> Dict[str, Any]:
    if not rows:
        return dict(EMPTY_STATS)
    return {key: first_or(rows, key) for key in EMPTY_STATS}


@router.post("")
async def place_website_order(
    payload: WebsiteOrderCreate,
    background_tasks: BackgroundTasks,
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    now = utc_now()
    order = {
        **payload.to_document(exclude_unset=False),
        "status": WebsiteOrderStatus.PENDING.value,
        "orderDate": now,
        "createdAt": now,
        "updatedAt": now,
    }
    result = await db[c.ORDERS].insert_one(order)
    order["_id"] = result.inserted_id
    logger.info("Website order placed", extra={"order_id": str(order["_id"])})

    background_tasks.add_task(notify_new_website_order, db, order)
    return {"success": True, "message": "Order placed successfully!", "orderId": str(order["_id"])}


@router.get("")
async def list_website_orders(
    status: Optional[str] = None,
    search: Optional[str] = None,
    startDate: Optional[str] = None,
    endDate: Optional[str] = None,
    sortBy: str = "createdAt",
    sortOrder: str = "desc",
    page: int = Query(1),
    limit: int = Query(10),
    _: Dict[str, Any] = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    query: Dict[str, Any] = {}
    if status:
        query["status"] = status
    if search:
        regex = search_regex(search)
        query["$or"] = [{"customerName": regex}, {"phone": regex}, {"address": regex}]
    date_range = optional_date_range(startDate, endDate)
    if date_range:
        query["orderDate"] = date_range

    sort_field = sortBy if sortBy in SORTABLE_FIELDS else "createdAt"
    direction = -1 if sortOrder == "desc" else 1

    page, limit, skip = normalize_pagination(page, limit)
    orders = await (
        db[c.ORDERS].find(query).sort(sort_field, direction).skip(skip).limit(limit).to_list(length=limit)
    )
    total = await db[c.ORDERS].count_documents(query)
    stats = await db[c.ORDERS].aggregate([_totals_stage()]).to_list(length=None)
    status_stats = await db[c.ORDERS].aggregate(
        [{"$group": {"_id": "$status", "count": {"$sum": 1}}}]
    ).to_list(length=None)

    return {
        "orders": serialize_document(orders),
        "pagination": pagination_block(page, limit, total),
        "stats": _stats(stats),
        "statusStats": status_stats,
    }


@router.get("/stats/dashboard")
async def website_order_dashboard(
    period: int = Query(30, ge=1),
    _: Dict[str, Any] = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    match = {"$match": {"orderDate": {"$gte": utc_now() - timedelta(days=period)}}}
    orders = db[c.ORDERS]

    stats = await orders.aggregate([match, _totals_stage()]).to_list(length=None)
    daily = await orders.aggregate([
        match,
        {
            "$group": {
                "_id": {
                    "year": {"$year": "$orderDate"},
                    "month": {"$month": "$orderDate"},
                    "day": {"$dayOfMonth": "$orderDate"},
                },
                "orders": {"$sum": 1},
                "revenue": {"$sum": "$totalAmount"},
            }
        },
        {"$sort": {"_id.year": 1, "_id.month": 1, "_id.day": 1}},
    ]).to_list(length=None)
    status_stats = await orders.aggregate(
        [match, {"$group": {"_id": "$status", "count": {"$sum": 1}}}]
    ).to_list(length=None)

    return {"success": True, "stats": _stats(stats), "dailyStats": daily, "statusStats": status_stats}


@router.get("/{order_id}")
async def get_website_order(
    order_id: str,
    _: Dict[str, Any] = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    return serialize_document(await get_or_404(db[c.ORDERS], order_id, "Order not found"))


@router.put("/{order_id}/status")
async def update_website_order_status(
    order_id: str,
    payload: WebsiteOrderStatusUpdate,
    _: Dict[str, Any] = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    order = await get_or_404(db[c.ORDERS], order_id, "Order not found")
    updated = await db[c.ORDERS].find_one_and_update(
        {"_id": order["_id"]},
        {"$set": {"status": payload.status.value, "updatedAt": utc_now()}},
        return_document=ReturnDocument.AFTER,
    )
    return {"success": True, "message": "Order status updated successfully", "order": serialize_document(updated)}


@router.put("/{order_id}")
async def update_website_order(
    order_id: str,
    payload: WebsiteOrderUpdate,
    _: Dict[str, Any] = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    order = await get_or_404(db[c.ORDERS], order_id, "Order not found")
    changes = {k: v for k, v in payload.to_document().items() if v not in (None, "", [])}
    changes["updatedAt"] = utc_now()
    updated = await db[c.ORDERS].find_one_and_update(
        {"_id": order["_id"]}, {"$set": changes}, return_document=ReturnDocument.AFTER
    )
    return {"success": True, "message": "Order updated successfully", "order": serialize_document(updated)}


@router.delete("/{order_id}")
async def delete_website_order(
    order_id: str,
    _: Dict[str, Any] = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    order = await get_or_404(db[c.ORDERS], order_id, "Order not found")
    await db[c.ORDERS].delete_one({"_id": order["_id"]})
    return {"success": True, "message": "Order deleted successfully"}
