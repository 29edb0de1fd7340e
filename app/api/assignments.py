"""
app/api/assignments.py

Purpose: /api/assignments

- Superadmin management of salesman-shopkeeper pairs
- Salesman views of their own shopkeepers
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.api.deps import get_current_user, require_superadmin
from app.core.exceptions import PermissionDeniedError, ValidationError
from app.db.mongo import get_database
from app.schemas.staff import AssignmentCreate, AssignmentUpdate
from app.services import assignment_service
from app.services.lookup_service import get_or_404, populate
from utils import constants as c
from utils.time_utils import utc_now
from utils.validation_utils import normalize_pagination, pagination_block, parse_object_id, serialize_document

router = APIRouter()

PARTY_PROJECTION = {"name": 1, "email": 1, "role": 1}


async def _populate_assignments(db: AsyncIOMotorDatabase, assignments: List[Dict[str, Any]]):
    await populate(db, assignments, "salesmanId", c.USERS, PARTY_PROJECTION)
    await populate(db, assignments, "shopkeeperId", c.USERS, PARTY_PROJECTION)
    await populate(db, assignments, "assignedBy", c.USERS, {"name": 1, "email": 1})
    return assignments


def _matches(assignment: Dict[str, Any], needle: str) -> bool:
    for party in ("salesmanId", "shopkeeperId"):
        ref = assignment.get(party) or {}
        if needle in (ref.get("name") or "").lower() or needle in (ref.get("email") or "").lower():
            return True
    return False


def _check_self_or_superadmin(user: Dict[str, Any], salesman_id: str):
    if str(user["_id"]) != salesman_id and user.get("role") != c.ROLE_SUPERADMIN:
        raise PermissionDeniedError("Access denied.")


@router.get("")
async def list_assignments(
    search: Optional[str] = None,
    salesmanId: Optional[str] = None,
    shopkeeperId: Optional[str] = None,
    page: int = Query(1),
    limit: int = Query(20),
    _: Dict[str, Any] = Depends(require_superadmin),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    query: Dict[str, Any] = {"isActive": True}
    if salesmanId:
        query["salesmanId"] = parse_object_id(salesmanId)
    if shopkeeperId:
        query["shopkeeperId"] = parse_object_id(shopkeeperId)

    assignments = await db[c.ASSIGNMENTS].find(query).sort("assignedAt", -1).to_list(length=None)
    await _populate_assignments(db, assignments)

    # Search runs over populated names, so filtering and paging happen in memory
    if search and search.strip():
        needle = search.strip().lower()
        assignments = [a for a in assignments if _matches(a, needle)]

    page, limit, skip = normalize_pagination(page, limit, default_limit=20)
    return {
        "assignments": serialize_document(assignments[skip:skip + limit]),
        "pagination": pagination_block(page, limit, len(assignments)),
    }


@router.get("/available/salesmen")
async def available_salesmen(
    _: Dict[str, Any] = Depends(require_superadmin),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    salesmen = await db[c.USERS].find(
        {"role": c.ROLE_SALESMAN}, {"name": 1, "email": 1, "phone": 1}
    ).sort("name", 1).to_list(length=None)
    return {"success": True, "salesmen": serialize_document(salesmen)}


@router.get("/available/shopkeepers")
async def available_shopkeepers(
    _: Dict[str, Any] = Depends(require_superadmin),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    shopkeepers = await db[c.USERS].find(
        {"role": c.ROLE_SHOPKEEPER}, {"name": 1, "email": 1, "phone": 1, "address": 1}
    ).sort("name", 1).to_list(length=None)
    return {"success": True, "shopkeepers": serialize_document(shopkeepers)}


@router.get("/salesman/{salesman_id}")
async def salesman_assignments(
    salesman_id: str,
    user: Dict[str, Any] = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    _check_self_or_superadmin(user, salesman_id)
    assignments = await db[c.ASSIGNMENTS].find(
        {"salesmanId": parse_object_id(salesman_id), "isActive": True}
    ).sort("assignedAt", -1).to_list(length=None)
    await populate(db, assignments, "shopkeeperId", c.USERS, {"name": 1, "email": 1, "phone": 1, "address": 1})
    await populate(db, assignments, "assignedBy", c.USERS, {"name": 1, "email": 1})
    return {"success": True, "assignments": serialize_document(assignments)}


@router.get("/salesman/{salesman_id}/shopkeepers")
async def salesman_shopkeepers(
    salesman_id: str,
    city: Optional[str] = None,
    user: Dict[str, Any] = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    _check_self_or_superadmin(user, salesman_id)
    assignments = await db[c.ASSIGNMENTS].find(
        {"salesmanId": parse_object_id(salesman_id), "isActive": True}
    ).sort("assignedAt", -1).to_list(length=None)
    await populate(
        db, assignments, "shopkeeperId", c.USERS,
        {"name": 1, "email": 1, "phone": 1, "address": 1, "pendingAmount": 1, "creditLimit": 1, "city": 1},
    )

    shopkeepers = [a["shopkeeperId"] for a in assignments if isinstance(a.get("shopkeeperId"), dict)]
    if city:
        shopkeepers = [s for s in shopkeepers if str(s.get("city")) == city]
    await populate(db, shopkeepers, "city", c.CITIES, {"name": 1})
    return {"success": True, "shopkeepers": serialize_document(shopkeepers)}


@router.post("", status_code=201)
async def create_assignment(
    payload: AssignmentCreate,
    user: Dict[str, Any] = Depends(require_superadmin),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    salesman_id = parse_object_id(payload.salesman_id)
    shopkeeper_id = parse_object_id(payload.shopkeeper_id)
    if not salesman_id or not shopkeeper_id:
        raise ValidationError("Invalid salesman or shopkeeper ID")

    assignment = await assignment_service.create_assignment(
        db, salesman_id, shopkeeper_id, user["_id"], payload.notes
    )
    await _populate_assignments(db, [assignment])
    return {
        "success": True,
        "message": "Assignment created successfully",
        "assignment": serialize_document(assignment),
    }


@router.put("/{assignment_id}")
async def update_assignment(
    assignment_id: str,
    payload: AssignmentUpdate,
    _: Dict[str, Any] = Depends(require_superadmin),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    assignment = await get_or_404(db[c.ASSIGNMENTS], assignment_id, "Assignment not found.")

    if payload.is_active is False and assignment.get("isActive"):
        await assignment_service.deactivate_assignment(db, assignment)
    elif payload.is_active and not assignment.get("isActive"):
        await db[c.USERS].update_one(
            {"_id": assignment["shopkeeperId"]},
            {"$set": {"assignedSalesman": assignment["salesmanId"], "updatedAt": utc_now()}},
        )

    changes = payload.to_document()
    changes["updatedAt"] = utc_now()
    await db[c.ASSIGNMENTS].update_one({"_id": assignment["_id"]}, {"$set": changes})

    updated = await db[c.ASSIGNMENTS].find_one({"_id": assignment["_id"]})
    await _populate_assignments(db, [updated])
    return {
        "success": True,
        "message": "Assignment updated successfully",
        "assignment": serialize_document(updated),
    }


@router.delete("/{assignment_id}")
async def deactivate_assignment(
    assignment_id: str,
    _: Dict[str, Any] = Depends(require_superadmin),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    assignment = await get_or_404(db[c.ASSIGNMENTS], assignment_id, "Assignment not found.")
    await assignment_service.deactivate_assignment(db, assignment)
    return {"success": True, "message": "Assignment deactivated successfully"}
