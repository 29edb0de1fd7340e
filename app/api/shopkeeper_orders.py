"""
app/api/shopkeeper_orders.py

Purpose: /api/shopkeeper-orders

- Order placement by shopkeepers, salesmen and admins
- Role-scoped listings and single-order access
- Status and payment updates by staff
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.api.deps import get_current_user, require_admin, require_order_placer, require_staff
from app.db.mongo import get_database
from app.models.order import OrderStatus, PaymentStatus
from app.models.user import CONTACT_PROJECTION, SHOPKEEPER_PROJECTION
from app.schemas.orders import OrderPaymentUpdate, OrderStatusUpdate, ShopkeeperOrderCreate
from app.services import order_service
from app.services.assignment_service import reachable_shopkeeper_ids
from app.services.lookup_service import get_or_404, populate
from app.services.notification_service import notify_new_shopkeeper_order
from utils import constants as c
from utils.time_utils import optional_date_range
from utils.validation_utils import normalize_pagination, pagination_block, serialize_document

router = APIRouter()

PRODUCT_PROJECTION = {"name": 1, "category": 1, "imageURL": 1, "price": 1}


async def _populate_orders(db: AsyncIOMotorDatabase, orders: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    await populate(db, orders, "shopkeeper", c.USERS, SHOPKEEPER_PROJECTION)
    await populate(db, orders, "salesman", c.USERS, CONTACT_PROJECTION)
    await populate(db, orders, "placedBySalesman", c.USERS, CONTACT_PROJECTION)
    await populate(db, orders, "items.product", c.PRODUCTS, PRODUCT_PROJECTION)
    return orders


@router.post("", status_code=201)
async def place_order(
    payload: ShopkeeperOrderCreate,
    background_tasks: BackgroundTasks,
    user: Dict[str, Any] = Depends(require_order_placer),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    order, shopkeeper, salesman = await order_service.place_order(db, user, payload)

    background_tasks.add_task(
        notify_new_shopkeeper_order,
        db,
        dict(order),
        shopkeeper.get("name"),
        salesman.get("name") if salesman else None,
    )

    await _populate_orders(db, [order])
    return {"success": True, "message": "Order placed successfully", "order": serialize_document(order)}


@router.get("")
async def list_orders(
    status: Optional[str] = None,
    paymentStatus: Optional[str] = None,
    startDate: Optional[str] = None,
    endDate: Optional[str] = None,
    page: int = Query(1),
    limit: int = Query(10),
    user: Dict[str, Any] = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    query = await order_service.orders_scope(db, user)
    if status:
        query["status"] = status
    if paymentStatus:
        query["paymentStatus"] = paymentStatus
    date_range = optional_date_range(startDate, endDate)
    if date_range:
        query["orderDate"] = date_range

    page, limit, skip = normalize_pagination(page, limit)
    orders = await (
        db[c.SHOPKEEPER_ORDERS].find(query).sort("orderDate", -1).skip(skip).limit(limit).to_list(length=limit)
    )
    total = await db[c.SHOPKEEPER_ORDERS].count_documents(query)
    await _populate_orders(db, orders)
    return {"orders": serialize_document(orders), "pagination": pagination_block(page, limit, total)}


@router.get("/shopkeepers")
async def list_reachable_shopkeepers(
    user: Dict[str, Any] = Depends(require_staff),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    """Shopkeepers the caller can place orders for."""
    query: Dict[str, Any] = {"role": c.ROLE_SHOPKEEPER}
    ids = await reachable_shopkeeper_ids(db, user)
    if ids is not None:
        query["_id"] = {"$in": ids}
    shopkeepers = await db[c.USERS].find(
        query, {"name": 1, "email": 1, "phone": 1, "address": 1, "pendingAmount": 1}
    ).to_list(length=None)
    return {"shopkeepers": serialize_document(shopkeepers)}


@router.get("/stats/dashboard")
async def order_dashboard(
    startDate: Optional[str] = None,
    endDate: Optional[str] = None,
    user: Dict[str, Any] = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    match = await order_service.orders_scope(db, user)
    date_range = optional_date_range(startDate, endDate)
    if date_range:
        match["orderDate"] = date_range

    def count_where(field, value):
        return {"$sum": {"$cond": [{"$eq": [f"${field}", value]}, 1, 0]}}

    rows = await db[c.SHOPKEEPER_ORDERS].aggregate([
        {"$match": match},
        {
            "$group": {
                "_id": None,
                "totalOrders": {"$sum": 1},
                "totalAmount": {"$sum": "$totalAmount"},
                "totalAmountPaid": {"$sum": "$amountPaid"},
                "totalPendingAmount": {"$sum": "$pendingAmount"},
                "totalCommission": {"$sum": "$commission"},
                "pendingOrders": count_where("status", OrderStatus.PENDING.value),
                "confirmedOrders": count_where("status", OrderStatus.CONFIRMED.value),
                "deliveredOrders": count_where("status", OrderStatus.DELIVERED.value),
                "cancelledOrders": count_where("status", OrderStatus.CANCELLED.value),
                "paidOrders": count_where("paymentStatus", PaymentStatus.PAID.value),
            }
        },
    ]).to_list(length=None)

    stats = {
        "totalOrders": 0, "totalAmount": 0, "totalAmountPaid": 0, "totalPendingAmount": 0,
        "totalCommission": 0, "pendingOrders": 0, "confirmedOrders": 0, "deliveredOrders": 0,
        "cancelledOrders": 0, "paidOrders": 0,
    }
    if rows:
        stats.update({k: v for k, v in rows[0].items() if k != "_id"})
    return {"stats": stats}


@router.get("/{order_id}")
async def get_order(
    order_id: str,
    user: Dict[str, Any] = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    order = await get_or_404(db[c.SHOPKEEPER_ORDERS], order_id, "Order not found")
    await order_service.check_order_access(db, order, user)
    await _populate_orders(db, [order])
    return {"order": serialize_document(order)}


@router.put("/{order_id}/status")
async def update_order_status(
    order_id: str,
    payload: OrderStatusUpdate,
    user: Dict[str, Any] = Depends(require_staff),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    order = await get_or_404(db[c.SHOPKEEPER_ORDERS], order_id, "Order not found")
    await order_service.check_order_access(db, order, user)
    order = await order_service.update_status(db, order, payload.status, payload.notes)
    return {"success": True, "message": "Order status updated successfully", "order": serialize_document(order)}


@router.put("/{order_id}/payment")
async def update_order_payment(
    order_id: str,
    payload: OrderPaymentUpdate,
    user: Dict[str, Any] = Depends(require_staff),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    order = await get_or_404(db[c.SHOPKEEPER_ORDERS], order_id, "Order not found")
    await order_service.check_order_access(db, order, user)
    order = await order_service.update_payment(db, order, payload)
    return {"success": True, "message": "Payment status updated successfully", "order": serialize_document(order)}
