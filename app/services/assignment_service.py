"""
app/services/assignment_service.py

Purpose: Salesman-shopkeeper assignments

- Active assignment lookups used by order placement and recoveries
- Scope resolution: which shopkeepers and salesmen a caller may see
- Creating and deactivating assignments while keeping the shopkeeper's
  assignedSalesman field in step
"""

from typing import Any, Dict, List, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.core.exceptions import ConflictError, ValidationError
from app.core.logging import get_logger
from app.services.lookup_service import get_or_404
from utils import constants as c
from utils.time_utils import utc_now

logger = get_logger(__name__)


async def find_active_assignment(
    db: AsyncIOMotorDatabase,
    salesman_id: Optional[ObjectId] = None,
    shopkeeper_id: Optional[ObjectId] = None,
) -> Optional[Dict[str, Any]]:
    query: Dict[str, Any] = {"isActive": True}
    if salesman_id is not None:
        query["salesmanId"] = salesman_id
    if shopkeeper_id is not None:
        query["shopkeeperId"] = shopkeeper_id
    return await db[c.ASSIGNMENTS].find_one(query)


async def assigned_shopkeeper_ids(db: AsyncIOMotorDatabase, salesman_ids: List[ObjectId]) -> List[ObjectId]:
    cursor = db[c.ASSIGNMENTS].find(
        {"salesmanId": {"$in": salesman_ids}, "isActive": True},
        {"shopkeeperId": 1},
    )
    return [a["shopkeeperId"] async for a in cursor]


async def salesman_ids_of_admin(db: AsyncIOMotorDatabase, admin_id: ObjectId) -> List[ObjectId]:
    """Salesmen created (assignedBy) by the given admin."""
    cursor = db[c.USERS].find({"assignedBy": admin_id, "role": c.ROLE_SALESMAN}, {"_id": 1})
    return [u["_id"] async for u in cursor]


async def reachable_shopkeeper_ids(db: AsyncIOMotorDatabase, user: Dict[str, Any]) -> Optional[List[ObjectId]]:
    """
    Shopkeepers a staff member may act on.

    Returns None when the caller is unrestricted (superadmin).
    """
    role = user.get("role")
    if role == c.ROLE_SUPERADMIN:
        return None
    if role == c.ROLE_SALESMAN:
        return await assigned_shopkeeper_ids(db, [user["_id"]])
    if role == c.ROLE_ADMIN:
        salesmen = await salesman_ids_of_admin(db, user["_id"])
        return await assigned_shopkeeper_ids(db, salesmen) if salesmen else []
    return [user["_id"]]


async def create_assignment(
    db: AsyncIOMotorDatabase,
    salesman_id: ObjectId,
    shopkeeper_id: ObjectId,
    assigned_by: ObjectId,
    notes: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Assigns a shopkeeper to a salesman.

    Raises:
        ResourceNotFoundError: Either user does not exist
        ValidationError: The users do not have the expected roles
        ConflictError: The pair is already actively assigned
    """
    salesman = await get_or_404(db[c.USERS], salesman_id, "Salesman not found")
    shopkeeper = await get_or_404(db[c.USERS], shopkeeper_id, "Shopkeeper not found")
    if salesman.get("role") != c.ROLE_SALESMAN:
        raise ValidationError("Selected user is not a salesman")
    if shopkeeper.get("role") != c.ROLE_SHOPKEEPER:
        raise ValidationError("Selected user is not a shopkeeper")

    if await find_active_assignment(db, salesman["_id"], shopkeeper["_id"]):
        raise ConflictError("This shopkeeper is already assigned to this salesman")

    now = utc_now()
    assignment = {
        "salesmanId": salesman["_id"],
        "shopkeeperId": shopkeeper["_id"],
        "assignedBy": assigned_by,
        "notes": notes,
        "isActive": True,
        "assignedAt": now,
        "createdAt": now,
        "updatedAt": now,
    }
    result = await db[c.ASSIGNMENTS].insert_one(assignment)
    assignment["_id"] = result.inserted_id

    await db[c.USERS].update_one(
        {"_id": shopkeeper["_id"]},
        {"$set": {"assignedSalesman": salesman["_id"], "updatedAt": now}},
    )
    logger.info(
        "Shopkeeper assigned to salesman",
        extra={"shopkeeper_id": str(shopkeeper["_id"]), "user_id": str(salesman["_id"])},
    )
    return assignment


async def deactivate_assignment(db: AsyncIOMotorDatabase, assignment: Dict[str, Any]) -> None:
    """Marks an assignment inactive and clears the shopkeeper's salesman if it still points here."""
    now = utc_now()
    await db[c.ASSIGNMENTS].update_one(
        {"_id": assignment["_id"]},
        {"$set": {"isActive": False, "updatedAt": now}},
    )
    await db[c.USERS].update_one(
        {"_id": assignment["shopkeeperId"], "assignedSalesman": assignment["salesmanId"]},
        {"$set": {"assignedSalesman": None, "updatedAt": now}},
    )
