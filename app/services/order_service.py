"""
app/services/order_service.py

Purpose: Shopkeeper order placement and balance accounting

- Resolves shopkeeper and salesman for the acting user
- Prices items, checks stock, computes commission
- Records partial payment and adjusts the shopkeeper's running balance
- Payment updates re-apply the balance delta

The order insert and the balance update are separate writes. A failure
between them leaves the order in place without its balance change.
"""

from typing import Any, Dict, List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.core.config import settings
from app.core.exceptions import PermissionDeniedError, ResourceNotFoundError, ValidationError
from app.core.logging import get_logger, LogContext
from app.models.order import OrderStatus, PlacedBy
from app.models.user import Role
from app.schemas.orders import OrderPaymentUpdate, ShopkeeperOrderCreate
from app.services.assignment_service import find_active_assignment, salesman_ids_of_admin
from app.services.lookup_service import get_or_404
from app.services.pricing_service import compute_commission, order_total, payment_breakdown, price_line
from utils import constants as c
from utils.time_utils import utc_now
from utils.validation_utils import parse_object_id

logger = get_logger(__name__)


async def resolve_parties(
    db: AsyncIOMotorDatabase,
    user: Dict[str, Any],
    shopkeeper_id: Optional[str],
) -> Tuple[Dict[str, Any], Optional[Dict[str, Any]], PlacedBy]:
    """
    Works out who the order is for and which salesman earns on it.

    Returns:
        (shopkeeper, salesman or None, placedBy)

    Raises:
        ValidationError: Shopkeeper has no salesman, or shopkeeperId missing/invalid
        ResourceNotFoundError: Shopkeeper does not exist
        PermissionDeniedError: Salesman is not assigned to the shopkeeper
    """
    role = user.get("role")

    if role == Role.SHOPKEEPER.value:
        assignment = await find_active_assignment(db, shopkeeper_id=user["_id"])
        if not assignment:
            raise ValidationError("No salesman assigned to you")
        salesman = await db[c.USERS].find_one({"_id": assignment["salesmanId"]}, {"password": 0})
        if not salesman:
            raise ValidationError("No salesman assigned to you")
        shopkeeper = await db[c.USERS].find_one({"_id": user["_id"]}, {"password": 0})
        return shopkeeper or user, salesman, PlacedBy.SHOPKEEPER

    if not shopkeeper_id:
        raise ValidationError("shopkeeperId is required when placing order on behalf of shopkeeper")

    shopkeeper = await get_or_404(db[c.USERS], shopkeeper_id, "Shopkeeper not found", {"password": 0})
    if shopkeeper.get("role") != Role.SHOPKEEPER.value:
        raise ValidationError("Invalid shopkeeper ID")

    if role == Role.SALESMAN.value:
        if not await find_active_assignment(db, salesman_id=user["_id"], shopkeeper_id=shopkeeper["_id"]):
            raise PermissionDeniedError("You can only place orders for your assigned shopkeepers")
        return shopkeeper, user, PlacedBy.SALESMAN

    # Admins placing on behalf credit the shopkeeper's assigned salesman, if any
    salesman = None
    assignment = await find_active_assignment(db, shopkeeper_id=shopkeeper["_id"])
    if assignment:
        salesman = await db[c.USERS].find_one({"_id": assignment["salesmanId"]}, {"password": 0})
    return shopkeeper, salesman, PlacedBy.SALESMAN


async def price_order_items(db: AsyncIOMotorDatabase, payload: ShopkeeperOrderCreate) -> List[Dict[str, Any]]:
    """
    Loads every product and prices each line.

    All lines are checked before anything is written, so a stock failure
    leaves no order behind. Stock itself is not decremented here.
    """
    lines = []
    for item in payload.items:
        oid = parse_object_id(item.product_id)
        product = await db[c.PRODUCTS].find_one({"_id": oid}) if oid else None
        if not product:
            raise ResourceNotFoundError(f"Product {item.product_id} not found")
        if product.get("stock", 0) < item.quantity:
            raise ValidationError(f"Insufficient stock for {product.get('name')}")
        lines.append(price_line(product, item.quantity, item.custom_price))
    return lines


async def place_order(
    db: AsyncIOMotorDatabase,
    user: Dict[str, Any],
    payload: ShopkeeperOrderCreate,
) -> Tuple[Dict[str, Any], Dict[str, Any], Optional[Dict[str, Any]]]:
    """
    Places a shopkeeper order.

    Returns:
        (order, shopkeeper, salesman) so callers can notify and respond
    """
    if not payload.items:
        raise ValidationError("Order must contain at least one item")

    with LogContext(user_id=str(user["_id"]), role=user.get("role")):
        shopkeeper, salesman, placed_by = await resolve_parties(db, user, payload.shopkeeper_id)

        lines = await price_order_items(db, payload)
        total = order_total(lines)

        commission = 0.0
        if salesman:
            commission = compute_commission(total, salesman.get("commissionRate"), settings.DEFAULT_COMMISSION_RATE)

        amount_paid = float(payload.amount_paid or 0)
        pending, payment_status = payment_breakdown(total, amount_paid)

        now = utc_now()
        order = {
            "shopkeeper": shopkeeper["_id"],
            "salesman": salesman["_id"] if salesman else None,
            "placedBy": placed_by.value,
            "placedBySalesman": user["_id"] if user.get("role") != Role.SHOPKEEPER.value else None,
            "items": lines,
            "totalAmount": total,
            "amountPaid": amount_paid,
            "pendingAmount": pending,
            "commission": commission,
            "status": OrderStatus.PENDING.value,
            "paymentStatus": payment_status.value,
            "paymentMethod": payload.payment_method.value,
            "deliveryAddress": payload.delivery_address or "",
            "notes": payload.notes,
            "orderDate": now,
            "createdAt": now,
            "updatedAt": now,
        }
        result = await db[c.SHOPKEEPER_ORDERS].insert_one(order)
        order["_id"] = result.inserted_id

        await db[c.USERS].update_one(
            {"_id": shopkeeper["_id"]},
            {"$inc": {"pendingAmount": pending}, "$set": {"updatedAt": now}},
        )

        logger.info(
            f"Order placed: total={total} paid={amount_paid} pending={pending}",
            extra={"order_id": str(order["_id"]), "shopkeeper_id": str(shopkeeper["_id"])},
        )
        return order, shopkeeper, salesman


async def orders_scope(db: AsyncIOMotorDatabase, user: Dict[str, Any]) -> Dict[str, Any]:
    """
    Mongo filter restricting shopkeeper orders to what the caller may see.

    Admins see orders of the salesmen they assigned plus orders they placed
    themselves; superadmins see everything.
    """
    role = user.get("role")
    if role == Role.SHOPKEEPER.value:
        return {"shopkeeper": user["_id"]}
    if role == Role.SALESMAN.value:
        return {"salesman": user["_id"]}
    if role == Role.ADMIN.value:
        return {"$or": [
            {"salesman": {"$in": await salesman_ids_of_admin(db, user["_id"])}},
            {"placedBySalesman": user["_id"]},
        ]}
    return {}


async def check_order_access(db: AsyncIOMotorDatabase, order: Dict[str, Any], user: Dict[str, Any]) -> None:
    """Raises unless the order falls inside the caller's listing scope."""
    role = user.get("role")
    if role == Role.SHOPKEEPER.value and _ref_id(order.get("shopkeeper")) != user["_id"]:
        raise PermissionDeniedError()
    if role == Role.SALESMAN.value and _ref_id(order.get("salesman")) != user["_id"]:
        raise PermissionDeniedError()
    if role == Role.ADMIN.value:
        if _ref_id(order.get("placedBySalesman")) == user["_id"]:
            return
        if _ref_id(order.get("salesman")) not in await salesman_ids_of_admin(db, user["_id"]):
            raise PermissionDeniedError()


def _ref_id(value: Any) -> Any:
    return value.get("_id") if isinstance(value, dict) else value


async def update_status(
    db: AsyncIOMotorDatabase,
    order: Dict[str, Any],
    status: OrderStatus,
    notes: Optional[str],
) -> Dict[str, Any]:
    now = utc_now()
    changes: Dict[str, Any] = {"status": status.value, "updatedAt": now}
    if notes:
        changes["notes"] = notes
    if status == OrderStatus.CONFIRMED:
        changes["confirmedAt"] = now
    elif status == OrderStatus.DELIVERED:
        changes["deliveredAt"] = now

    await db[c.SHOPKEEPER_ORDERS].update_one({"_id": order["_id"]}, {"$set": changes})
    order.update(changes)
    return order


async def update_payment(
    db: AsyncIOMotorDatabase,
    order: Dict[str, Any],
    payload: OrderPaymentUpdate,
) -> Dict[str, Any]:
    """
    Updates payment fields of an order.

    When amountPaid is supplied the outstanding amount and payment status are
    recomputed and the shopkeeper balance moves by the change in outstanding.
    """
    now = utc_now()
    changes: Dict[str, Any] = {"updatedAt": now}
    if payload.payment_status is not None:
        changes["paymentStatus"] = payload.payment_status.value
    if payload.payment_method is not None:
        changes["paymentMethod"] = payload.payment_method.value

    delta = 0.0
    if payload.amount_paid is not None:
        pending, payment_status = payment_breakdown(order.get("totalAmount", 0), payload.amount_paid)
        delta = pending - order.get("pendingAmount", 0)
        changes.update({
            "amountPaid": payload.amount_paid,
            "pendingAmount": pending,
            "paymentStatus": payment_status.value,
        })

    if len(changes) == 1:
        raise ValidationError("Nothing to update")

    await db[c.SHOPKEEPER_ORDERS].update_one({"_id": order["_id"]}, {"$set": changes})
    if delta:
        await db[c.USERS].update_one(
            {"_id": _ref_id(order["shopkeeper"])},
            {"$inc": {"pendingAmount": delta}, "$set": {"updatedAt": now}},
        )
        logger.info(
            f"Shopkeeper balance adjusted by {delta}",
            extra={"order_id": str(order["_id"]), "shopkeeper_id": str(_ref_id(order["shopkeeper"]))},
        )
    order.update(changes)
    return order
