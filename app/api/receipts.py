"""
app/api/receipts.py

Purpose: /api/receipts
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from app.api.deps import require_staff
from app.core.exceptions import PermissionDeniedError
from app.db.mongo import get_database
from app.models.receipt import ReceiptStatus
from app.models.user import CONTACT_PROJECTION
from app.schemas.recoveries import ReceiptCreate, ReceiptStatusUpdate
from app.services.lookup_service import get_or_404, populate
from app.services.receipt_service import create_receipt
from utils import constants as c
from utils.time_utils import utc_now
from utils.validation_utils import normalize_pagination, pagination_block, serialize_document

router = APIRouter()


def _scope(user: Dict[str, Any]) -> Dict[str, Any]:
    if user.get("role") == c.ROLE_SALESMAN:
        return {"salesman": user["_id"]}
    return {}


@router.post("", status_code=201)
async def generate_receipt(
    payload: ReceiptCreate,
    user: Dict[str, Any] = Depends(require_staff),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    receipt = await create_receipt(db, user, payload)
    return {"success": True, "message": "Receipt generated successfully", "receipt": serialize_document(receipt)}


@router.get("")
async def list_receipts(
    receiptType: Optional[str] = None,
    status: Optional[str] = None,
    page: int = Query(1),
    limit: int = Query(10),
    user: Dict[str, Any] = Depends(require_staff),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    query = _scope(user)
    if receiptType:
        query["receiptType"] = receiptType
    if status:
        query["status"] = status

    page, limit, skip = normalize_pagination(page, limit)
    receipts = await (
        db[c.RECEIPTS].find(query, {"receiptContent": 0})
        .sort("createdAt", -1).skip(skip).limit(limit)
        .to_list(length=limit)
    )
    total = await db[c.RECEIPTS].count_documents(query)
    await populate(db, receipts, "shopkeeper", c.USERS, CONTACT_PROJECTION)
    await populate(db, receipts, "salesman", c.USERS, CONTACT_PROJECTION)
    return {"receipts": serialize_document(receipts), "pagination": pagination_block(page, limit, total)}


@router.get("/stats/summary")
async def receipt_summary(
    user: Dict[str, Any] = Depends(require_staff),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    match = _scope(user)
    match["status"] = {"$ne": ReceiptStatus.CANCELLED.value}
    by_type = await db[c.RECEIPTS].aggregate([
        {"$match": match},
        {"$group": {"_id": "$receiptType", "count": {"$sum": 1}, "totalAmount": {"$sum": "$totalAmount"}}},
    ]).to_list(length=None)

    return {
        "success": True,
        "stats": {
            "totalReceipts": sum(row["count"] for row in by_type),
            "totalAmount": sum(row["totalAmount"] for row in by_type),
        },
        "typeStats": by_type,
    }


@router.get("/{receipt_id}")
async def get_receipt(
    receipt_id: str,
    user: Dict[str, Any] = Depends(require_staff),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    receipt = await get_or_404(db[c.RECEIPTS], receipt_id, "Receipt not found")
    if user.get("role") == c.ROLE_SALESMAN and receipt.get("salesman") != user["_id"]:
        raise PermissionDeniedError()
    await populate(db, [receipt], "shopkeeper", c.USERS, CONTACT_PROJECTION)
    await populate(db, [receipt], "salesman", c.USERS, CONTACT_PROJECTION)
    await populate(db, [receipt], "printedBy", c.USERS, {"name": 1})
    return {"receipt": serialize_document(receipt)}


@router.put("/{receipt_id}/status")
async def update_receipt_status(
    receipt_id: str,
    payload: ReceiptStatusUpdate,
    user: Dict[str, Any] = Depends(require_staff),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    receipt = await get_or_404(db[c.RECEIPTS], receipt_id, "Receipt not found", {"salesman": 1})
    if user.get("role") == c.ROLE_SALESMAN and receipt.get("salesman") != user["_id"]:
        raise PermissionDeniedError()

    changes: Dict[str, Any] = {"status": payload.status.value, "updatedAt": utc_now()}
    if payload.status == ReceiptStatus.PRINTED:
        changes["printedAt"] = changes["updatedAt"]
    updated = await db[c.RECEIPTS].find_one_and_update(
        {"_id": receipt["_id"]}, {"$set": changes}, return_document=ReturnDocument.AFTER
    )
    return {"success": True, "message": "Receipt status updated", "receipt": serialize_document(updated)}
