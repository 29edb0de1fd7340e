"""
app/services/receipt_service.py

Purpose: Receipt generation

- Reserves receipt sequence numbers from an atomic counter per prefix and day
- Builds receipts from an order or a recovery
"""

from typing import Any, Dict

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from app.core.logging import get_logger
from app.models.receipt import RECEIPT_PREFIXES, ReceiptStatus, ReceiptType, format_receipt_number
from app.schemas.recoveries import ReceiptCreate
from app.services.lookup_service import get_or_404
from utils import constants as c
from utils.time_utils import receipt_date_stamp, utc_now

logger = get_logger(__name__)


async def next_receipt_number(db: AsyncIOMotorDatabase, receipt_type: ReceiptType, issued_at=None) -> str:
    """
    Reserves the next receipt number.

    The counter is incremented with a single find_one_and_update, so two
    concurrent callers never get the same sequence.
    """
    issued_at = issued_at or utc_now()
    key = f"receipt:{RECEIPT_PREFIXES[ReceiptType(receipt_type)]}{receipt_date_stamp(issued_at)}"
    counter = await db[c.COUNTERS].find_one_and_update(
        {"_id": key},
        {"$inc": {"seq": 1}},
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )
    return format_receipt_number(receipt_type, issued_at, counter["seq"])


async def create_receipt(
    db: AsyncIOMotorDatabase,
    user: Dict[str, Any],
    payload: ReceiptCreate,
) -> Dict[str, Any]:
    """
    Creates a receipt for an order or a recovery.

    Shopkeeper and salesman come from the source record; the printer stands
    in when the source has no salesman.
    """
    if payload.receipt_type == ReceiptType.ORDER:
        source = await get_or_404(db[c.SHOPKEEPER_ORDERS], payload.order_id, "Order not found")
    else:
        source = await get_or_404(db[c.RECOVERIES], payload.recovery_id, "Recovery not found")

    now = utc_now()
    receipt = {
        "receiptType": payload.receipt_type.value,
        "orderId": source["_id"] if payload.receipt_type == ReceiptType.ORDER else None,
        "recoveryId": source["_id"] if payload.receipt_type == ReceiptType.RECOVERY else None,
        "receiptNumber": await next_receipt_number(db, payload.receipt_type, now),
        "shopkeeper": source.get("shopkeeper"),
        "salesman": source.get("salesman") or user["_id"],
        "receiptContent": payload.receipt_content,
        "totalAmount": payload.total_amount,
        "printedBy": user["_id"],
        "printedAt": now,
        "status": ReceiptStatus.GENERATED.value,
        "notes": payload.notes,
        "createdAt": now,
        "updatedAt": now,
    }
    result = await db[c.RECEIPTS].insert_one(receipt)
    receipt["_id"] = result.inserted_id
    logger.info(f"Receipt {receipt['receiptNumber']} generated", extra={"user_id": str(user["_id"])})
    return receipt
