"""
app/api/recoveries.py

Purpose: /api/recoveries

- Salesmen record payments collected from shopkeepers
- Listings scoped by role, summary totals, cancellation
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.api.deps import get_current_user, is_admin, require_admin, require_staff
from app.core.exceptions import PermissionDeniedError
from app.db.mongo import get_database
from app.models.recovery import RecoveryStatus
from app.models.user import CONTACT_PROJECTION, SHOPKEEPER_PROJECTION
from app.schemas.recoveries import RecoveryCreate, RecoveryUpdate
from app.services import recovery_service
from app.services.assignment_service import assigned_shopkeeper_ids
from app.services.lookup_service import get_or_404, populate
from app.services.notification_service import notify_new_recovery
from utils import constants as c
from utils.time_utils import optional_date_range
from utils.validation_utils import normalize_pagination, pagination_block, parse_object_id, serialize_document

router = APIRouter()


async def _populate_recoveries(db: AsyncIOMotorDatabase, recoveries: List[Dict[str, Any]]):
    await populate(db, recoveries, "shopkeeper", c.USERS, SHOPKEEPER_PROJECTION)
    await populate(db, recoveries, "salesman", c.USERS, CONTACT_PROJECTION)
    await populate(db, recoveries, "items.product", c.PRODUCTS, {"name": 1, "price": 1})
    return recoveries


@router.post("", status_code=201)
async def create_recovery(
    payload: RecoveryCreate,
    background_tasks: BackgroundTasks,
    user: Dict[str, Any] = Depends(require_staff),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    recovery = await recovery_service.create_recovery(db, user, payload)
    shopkeeper = await db[c.USERS].find_one({"_id": recovery["shopkeeper"]}, {"name": 1})

    background_tasks.add_task(
        notify_new_recovery,
        db,
        dict(recovery),
        (shopkeeper or {}).get("name"),
        user.get("name"),
    )

    await _populate_recoveries(db, [recovery])
    return {"success": True, "message": "Recovery recorded successfully", "recovery": serialize_document(recovery)}


@router.get("")
async def list_recoveries(
    status: Optional[str] = None,
    shopkeeperId: Optional[str] = None,
    startDate: Optional[str] = None,
    endDate: Optional[str] = None,
    page: int = Query(1),
    limit: int = Query(10),
    user: Dict[str, Any] = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    query = recovery_service.recoveries_scope(user)
    if status:
        query["status"] = status
    if shopkeeperId and "shopkeeper" not in query:
        query["shopkeeper"] = parse_object_id(shopkeeperId)
    date_range = optional_date_range(startDate, endDate)
    if date_range:
        query["recoveryDate"] = date_range

    page, limit, skip = normalize_pagination(page, limit)
    recoveries = await (
        db[c.RECOVERIES].find(query).sort("recoveryDate", -1).skip(skip).limit(limit).to_list(length=limit)
    )
    total = await db[c.RECOVERIES].count_documents(query)
    await _populate_recoveries(db, recoveries)
    return {"recoveries": serialize_document(recoveries), "pagination": pagination_block(page, limit, total)}


@router.get("/stats/summary")
async def recovery_summary(
    startDate: Optional[str] = None,
    endDate: Optional[str] = None,
    user: Dict[str, Any] = Depends(require_staff),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    match = recovery_service.recoveries_scope(user)
    match["status"] = {"$ne": RecoveryStatus.CANCELLED.value}
    date_range = optional_date_range(startDate, endDate)
    if date_range:
        match["recoveryDate"] = date_range

    rows = await db[c.RECOVERIES].aggregate([
        {"$match": match},
        {
            "$group": {
                "_id": None,
                "totalRecoveries": {"$sum": 1},
                "totalCollected": {"$sum": "$amountCollected"},
                "totalItemsValue": {"$sum": "$itemsValue"},
                "totalNetPayment": {"$sum": "$netPayment"},
            }
        },
    ]).to_list(length=None)

    stats = {"totalRecoveries": 0, "totalCollected": 0, "totalItemsValue": 0, "totalNetPayment": 0}
    if rows:
        stats.update({k: v for k, v in rows[0].items() if k != "_id"})
    return {"success": True, "stats": stats}


@router.get("/shopkeepers/{salesman_id}")
async def shopkeepers_for_recovery(
    salesman_id: str,
    user: Dict[str, Any] = Depends(require_staff),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    """Shopkeepers a salesman can collect from, with their outstanding balances."""
    if not is_admin(user) and str(user["_id"]) != salesman_id:
        raise PermissionDeniedError()

    salesman_oid = parse_object_id(salesman_id)
    ids = await assigned_shopkeeper_ids(db, [salesman_oid]) if salesman_oid else []
    shopkeepers = await db[c.USERS].find(
        {"_id": {"$in": ids}, "role": c.ROLE_SHOPKEEPER}, SHOPKEEPER_PROJECTION
    ).sort("name", 1).to_list(length=None)
    return {"success": True, "shopkeepers": serialize_document(shopkeepers)}


@router.get("/{recovery_id}")
async def get_recovery(
    recovery_id: str,
    user: Dict[str, Any] = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    recovery = await get_or_404(db[c.RECOVERIES], recovery_id, "Recovery not found")
    recovery_service.check_recovery_access(recovery, user)
    await _populate_recoveries(db, [recovery])
    return {"recovery": serialize_document(recovery)}


@router.put("/{recovery_id}")
async def update_recovery(
    recovery_id: str,
    payload: RecoveryUpdate,
    user: Dict[str, Any] = Depends(require_staff),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    recovery = await get_or_404(db[c.RECOVERIES], recovery_id, "Recovery not found")
    recovery_service.check_recovery_access(recovery, user)
    recovery = await recovery_service.update_recovery(db, recovery, payload)
    return {"success": True, "message": "Recovery updated successfully", "recovery": serialize_document(recovery)}


@router.delete("/{recovery_id}")
async def delete_recovery(
    recovery_id: str,
    _: Dict[str, Any] = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    recovery = await get_or_404(db[c.RECOVERIES], recovery_id, "Recovery not found", {"_id": 1})
    await db[c.RECOVERIES].delete_one({"_id": recovery["_id"]})
    return {"success": True, "message": "Recovery deleted successfully"}
