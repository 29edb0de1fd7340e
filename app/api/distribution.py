"""
app/api/distribution.py

Purpose: /api/distribution

- Admins hand stock to salesmen
- Status moves pending -> dispatched -> delivered, or to cancelled
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from app.api.deps import require_admin, require_staff
from app.core.exceptions import PermissionDeniedError, ResourceNotFoundError, ValidationError
from app.core.logging import get_logger
from app.db.mongo import get_database
from app.models.distribution import DistributionStatus, can_transition
from app.models.user import CONTACT_PROJECTION
from app.schemas.staff import DistributionCreate, DistributionStatusUpdate
from app.services.lookup_service import get_or_404, populate
from utils import constants as c
from utils.time_utils import utc_now
from utils.validation_utils import normalize_pagination, pagination_block, parse_object_id, serialize_document

logger = get_logger(__name__)

router = APIRouter()

# Timestamp recorded when a distribution reaches each status
STATUS_TIMESTAMPS = {
    DistributionStatus.DISPATCHED: "dispatchedAt",
    DistributionStatus.DELIVERED: "deliveredAt",
    DistributionStatus.CANCELLED: "cancelledAt",
}


@router.post("", status_code=201)
async def create_distribution(
    payload: DistributionCreate,
    user: Dict[str, Any] = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    salesman = await get_or_404(db[c.USERS], payload.salesman_id, "Salesman not found", {"role": 1, "name": 1})
    if salesman.get("role") != c.ROLE_SALESMAN:
        raise ValidationError("Selected user is not a salesman")

    items = []
    for item in payload.items:
        oid = parse_object_id(item.product_id)
        product = await db[c.PRODUCTS].find_one({"_id": oid}, {"name": 1, "price": 1}) if oid else None
        if not product:
            raise ResourceNotFoundError(f"Product {item.product_id} not found")
        items.append({"product": product["_id"], "quantity": item.quantity})

    now = utc_now()
    distribution = {
        "salesman": salesman["_id"],
        "distributedBy": user["_id"],
        "items": items,
        "totalQuantity": sum(i["quantity"] for i in items),
        "notes": payload.notes,
        "status": DistributionStatus.PENDING.value,
        "distributionDate": now,
        "createdAt": now,
        "updatedAt": now,
    }
    result = await db[c.DISTRIBUTIONS].insert_one(distribution)
    distribution["_id"] = result.inserted_id
    logger.info(
        f"Distributed {distribution['totalQuantity']} units to salesman {salesman.get('name')}",
        extra={"user_id": str(user["_id"])},
    )

    await populate(db, [distribution], "items.product", c.PRODUCTS, {"name": 1, "price": 1})
    return {
        "success": True,
        "message": "Distribution created successfully",
        "distribution": serialize_document(distribution),
    }


@router.get("")
async def list_distributions(
    status: Optional[str] = None,
    salesmanId: Optional[str] = None,
    page: int = Query(1),
    limit: int = Query(10),
    user: Dict[str, Any] = Depends(require_staff),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    query: Dict[str, Any] = {}
    if user.get("role") == c.ROLE_SALESMAN:
        query["salesman"] = user["_id"]
    elif salesmanId:
        query["salesman"] = parse_object_id(salesmanId)
    if status:
        query["status"] = status

    page, limit, skip = normalize_pagination(page, limit)
    distributions = await (
        db[c.DISTRIBUTIONS].find(query).sort("distributionDate", -1).skip(skip).limit(limit).to_list(length=limit)
    )
    total = await db[c.DISTRIBUTIONS].count_documents(query)

    await populate(db, distributions, "salesman", c.USERS, CONTACT_PROJECTION)
    await populate(db, distributions, "distributedBy", c.USERS, {"name": 1})
    await populate(db, distributions, "items.product", c.PRODUCTS, {"name": 1, "price": 1})
    return {"distributions": serialize_document(distributions), "pagination": pagination_block(page, limit, total)}


@router.put("/{distribution_id}/status")
async def update_distribution_status(
    distribution_id: str,
    payload: DistributionStatusUpdate,
    user: Dict[str, Any] = Depends(require_staff),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    distribution = await get_or_404(db[c.DISTRIBUTIONS], distribution_id, "Distribution not found")
    if user.get("role") == c.ROLE_SALESMAN and distribution.get("salesman") != user["_id"]:
        raise PermissionDeniedError()

    current = distribution.get("status", DistributionStatus.PENDING.value)
    if not can_transition(current, payload.status):
        raise ValidationError(f"Cannot change distribution status from {current} to {payload.status.value}")

    now = utc_now()
    changes: Dict[str, Any] = {"status": payload.status.value, "updatedAt": now}
    if payload.status in STATUS_TIMESTAMPS:
        changes[STATUS_TIMESTAMPS[payload.status]] = now
    if payload.notes:
        changes["notes"] = payload.notes

    updated = await db[c.DISTRIBUTIONS].find_one_and_update(
        {"_id": distribution["_id"]}, {"$set": changes}, return_document=ReturnDocument.AFTER
    )
    return {
        "success": True,
        "message": "Distribution status updated successfully",
        "distribution": serialize_document(updated),
    }
