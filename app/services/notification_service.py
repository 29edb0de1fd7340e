"""
app/services/notification_service.py

Purpose: Notification fan-out

- Creates notification documents for admins after order and recovery writes
- Runs as a background task once the response is sent
- Best effort: failures are logged, never raised to the caller
"""

from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.core.logging import get_logger
from app.models.notification import (
    NotificationPriority,
    NotificationStatus,
    NotificationType,
    RelatedEntityType,
)
from app.models.order import PaymentStatus
from utils import constants as c
from utils.time_utils import utc_now

logger = get_logger(__name__)


def build_notification(
    type: NotificationType,
    title: str,
    message: str,
    target_users: List[Any],
    target_roles: List[str],
    priority: NotificationPriority = NotificationPriority.MEDIUM,
    related_entity: Any = None,
    related_entity_type: Optional[RelatedEntityType] = None,
    data: Optional[Dict[str, Any]] = None,
    created_by: Any = None,
    expires_at=None,
) -> Dict[str, Any]:
    now = utc_now()
    return {
        "type": NotificationType(type).value,
        "title": title,
        "message": message,
        "relatedEntity": related_entity,
        "relatedEntityType": RelatedEntityType(related_entity_type).value if related_entity_type else None,
        "targetUsers": target_users,
        "targetRoles": target_roles,
        "readBy": [],
        "priority": NotificationPriority(priority).value,
        "status": NotificationStatus.ACTIVE.value,
        "data": data or {},
        "createdBy": created_by,
        "expiresAt": expires_at,
        "createdAt": now,
        "updatedAt": now,
    }


async def _admin_ids(db: AsyncIOMotorDatabase) -> List[Any]:
    cursor = db[c.USERS].find({"role": {"$in": list(c.ADMIN_ROLES)}}, {"_id": 1})
    return [u["_id"] async for u in cursor]


def short_id(oid: Any) -> str:
    return str(oid)[-8:]


async def _notify_admins(db: AsyncIOMotorDatabase, **fields) -> None:
    admins = await _admin_ids(db)
    if not admins:
        logger.info("No admin users to notify")
        return
    doc = build_notification(target_users=admins, target_roles=list(c.ADMIN_ROLES), **fields)
    await db[c.NOTIFICATIONS].insert_one(doc)


async def notify_new_website_order(db: AsyncIOMotorDatabase, order: Dict[str, Any]) -> None:
    try:
        await _notify_admins(
            db,
            type=NotificationType.ORDER,
            title="New Order Received",
            message=f"New order #{short_id(order['_id'])} from {order.get('customerName')} for ₹{order.get('totalAmount')}",
            priority=NotificationPriority.HIGH,
            related_entity=order["_id"],
            related_entity_type=RelatedEntityType.ORDER,
            data={
                "orderId": order["_id"],
                "customerName": order.get("customerName"),
                "totalAmount": order.get("totalAmount"),
                "itemCount": len(order.get("items") or []),
            },
        )
    except Exception as e:
        logger.error(f"Error creating order notification: {e}", exc_info=True)


async def notify_new_shopkeeper_order(
    db: AsyncIOMotorDatabase,
    order: Dict[str, Any],
    shopkeeper_name: Optional[str],
    salesman_name: Optional[str],
) -> None:
    try:
        payment_status = order.get("paymentStatus")
        status_text = "Paid" if payment_status == PaymentStatus.PAID.value else "Pending Payment"
        priority = NotificationPriority.URGENT if payment_status == PaymentStatus.PENDING.value else NotificationPriority.HIGH
        await _notify_admins(
            db,
            type=NotificationType.ORDER,
            title="New Shopkeeper Order",
            message=(
                f"New order #{short_id(order['_id'])} from {shopkeeper_name or 'Shopkeeper'} "
                f"for ₹{order.get('totalAmount')} ({status_text})"
            ),
            priority=priority,
            related_entity=order["_id"],
            related_entity_type=RelatedEntityType.SHOPKEEPER_ORDER,
            data={
                "orderId": order["_id"],
                "shopkeeperName": shopkeeper_name,
                "salesmanName": salesman_name,
                "totalAmount": order.get("totalAmount"),
                "itemCount": len(order.get("items") or []),
                "paymentStatus": payment_status,
                "paymentMethod": order.get("paymentMethod"),
            },
        )
    except Exception as e:
        logger.error(f"Error creating shopkeeper order notification: {e}", exc_info=True)


async def notify_new_recovery(
    db: AsyncIOMotorDatabase,
    recovery: Dict[str, Any],
    shopkeeper_name: Optional[str],
    salesman_name: Optional[str],
) -> None:
    try:
        await _notify_admins(
            db,
            type=NotificationType.RECOVERY,
            title="New Recovery Recorded",
            message=(
                f"{salesman_name or 'Salesman'} collected ₹{recovery.get('amountCollected')} "
                f"from {shopkeeper_name or 'Shopkeeper'}"
            ),
            priority=NotificationPriority.MEDIUM,
            related_entity=recovery["_id"],
            related_entity_type=RelatedEntityType.RECOVERY,
            data={
                "recoveryId": recovery["_id"],
                "shopkeeperName": shopkeeper_name,
                "salesmanName": salesman_name,
                "amountCollected": recovery.get("amountCollected"),
                "netPayment": recovery.get("netPayment"),
                "recoveryType": recovery.get("recoveryType"),
            },
        )
    except Exception as e:
        logger.error(f"Error creating recovery notification: {e}", exc_info=True)
