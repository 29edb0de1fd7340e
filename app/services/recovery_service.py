"""
app/services/recovery_service.py

Purpose: Recovery accounting

- Records a collection from a shopkeeper, optionally part-settled in goods
- Applies the net payment to the shopkeeper's pending balance
- Cancelling a recovery reverses the balance change it made
"""

from typing import Any, Dict, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.core.exceptions import PermissionDeniedError, ValidationError
from app.core.logging import get_logger, LogContext
from app.models.recovery import RecoveryStatus, RecoveryType
from app.models.user import Role
from app.schemas.recoveries import RecoveryCreate, RecoveryUpdate
from app.services.assignment_service import find_active_assignment
from app.services.lookup_service import get_or_404
from app.services.pricing_service import items_value
from utils import constants as c
from utils.time_utils import utc_now
from utils.validation_utils import parse_object_id

logger = get_logger(__name__)


def balance_reduction(current_pending: float, net_payment: float) -> float:
    """
    Amount to add to a shopkeeper's pending balance after a recovery.

    The resulting balance is max(0, pending - netPayment); the return value
    is the difference, suitable for an $inc.
    """
    current_pending = current_pending or 0
    return max(0.0, current_pending - net_payment) - current_pending


async def create_recovery(
    db: AsyncIOMotorDatabase,
    user: Dict[str, Any],
    payload: RecoveryCreate,
) -> Dict[str, Any]:
    """
    Records a recovery and adjusts the shopkeeper balance.

    Raises:
        ResourceNotFoundError: Shopkeeper does not exist
        ValidationError: Target is not a shopkeeper
        PermissionDeniedError: Salesman is not assigned to the shopkeeper
    """
    shopkeeper = await get_or_404(db[c.USERS], payload.shopkeeper_id, "Shopkeeper not found", {"password": 0})
    if shopkeeper.get("role") != Role.SHOPKEEPER.value:
        raise ValidationError("Invalid shopkeeper ID")

    if user.get("role") == Role.SALESMAN.value:
        if not await find_active_assignment(db, salesman_id=user["_id"], shopkeeper_id=shopkeeper["_id"]):
            raise PermissionDeniedError("You can only record recoveries for your assigned shopkeepers")

    items = []
    if payload.recovery_type == RecoveryType.PAYMENT_WITH_ITEMS:
        for item in payload.items:
            product_id = parse_object_id(item.product)
            if product_id is None:
                raise ValidationError(f"Invalid product id {item.product}")
            items.append({
                "product": product_id,
                "quantity": item.quantity,
                "unitPrice": item.unit_price,
                "totalPrice": item.quantity * item.unit_price,
            })

    value = items_value(items)
    net_payment = payload.amount_collected - value

    with LogContext(user_id=str(user["_id"]), shopkeeper_id=str(shopkeeper["_id"])):
        now = utc_now()
        recovery = {
            "salesman": user["_id"],
            "shopkeeper": shopkeeper["_id"],
            "recoveryType": payload.recovery_type.value,
            "amountCollected": payload.amount_collected,
            "itemsValue": value,
            "netPayment": net_payment,
            "paymentMethod": payload.payment_method.value,
            "items": items,
            "notes": payload.notes,
            "recoveryLocation": payload.recovery_location,
            "bankDetails": payload.bank_details.to_document() if payload.bank_details else None,
            "previousPendingAmount": shopkeeper.get("pendingAmount", 0),
            "balanceAdjustment": balance_reduction(shopkeeper.get("pendingAmount", 0), net_payment),
            "status": RecoveryStatus.COMPLETED.value,
            "recoveryDate": now,
            "createdAt": now,
            "updatedAt": now,
        }
        result = await db[c.RECOVERIES].insert_one(recovery)
        recovery["_id"] = result.inserted_id

        await db[c.USERS].update_one(
            {"_id": shopkeeper["_id"]},
            {"$inc": {"pendingAmount": recovery["balanceAdjustment"]}, "$set": {"updatedAt": now}},
        )
        logger.info(f"Recovery recorded: collected={payload.amount_collected} net={net_payment}")

    return recovery


def recoveries_scope(user: Dict[str, Any]) -> Dict[str, Any]:
    role = user.get("role")
    if role == Role.SALESMAN.value:
        return {"salesman": user["_id"]}
    if role == Role.SHOPKEEPER.value:
        return {"shopkeeper": user["_id"]}
    return {}


def check_recovery_access(recovery: Dict[str, Any], user: Dict[str, Any]) -> None:
    scope = recoveries_scope(user)
    for field, value in scope.items():
        if recovery.get(field) != value:
            raise PermissionDeniedError()


async def update_recovery(
    db: AsyncIOMotorDatabase,
    recovery: Dict[str, Any],
    payload: RecoveryUpdate,
) -> Dict[str, Any]:
    now = utc_now()
    changes: Dict[str, Any] = {"updatedAt": now}
    if payload.notes is not None:
        changes["notes"] = payload.notes

    previous: Optional[str] = recovery.get("status")
    if payload.status is not None:
        if previous == RecoveryStatus.CANCELLED.value and payload.status != RecoveryStatus.CANCELLED:
            raise ValidationError("A cancelled recovery cannot be reopened")
        changes["status"] = payload.status.value

    await db[c.RECOVERIES].update_one({"_id": recovery["_id"]}, {"$set": changes})

    if payload.status == RecoveryStatus.CANCELLED and previous != RecoveryStatus.CANCELLED.value:
        # Reverse exactly what the recovery took off the balance
        adjustment = recovery.get("balanceAdjustment", 0)
        if adjustment:
            await db[c.USERS].update_one(
                {"_id": recovery["shopkeeper"]},
                {"$inc": {"pendingAmount": -adjustment}, "$set": {"updatedAt": now}},
            )
        logger.info(
            "Recovery cancelled",
            extra={"shopkeeper_id": str(recovery["shopkeeper"])},
        )

    recovery.update(changes)
    return recovery
