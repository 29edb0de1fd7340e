"""
app/api/users.py

Purpose: /api/users

- Login and profile for every role
- User management (superadmin), listings for admins
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.api.deps import get_current_user, require_admin, require_superadmin
from app.core.exceptions import ResourceNotFoundError
from app.db.mongo import get_database
from app.models.user import CONTACT_PROJECTION
from app.schemas.users import LoginRequest, UserCreate, UserUpdate
from app.services import user_service
from app.services.lookup_service import get_or_404, populate
from utils import constants as c
from utils.validation_utils import (
    normalize_pagination,
    pagination_block,
    parse_object_id,
    search_regex,
    serialize_document,
)

router = APIRouter()


@router.post("/login")
async def login(payload: LoginRequest, db: AsyncIOMotorDatabase = Depends(get_database)):
    return serialize_document(await user_service.login_user(db, payload.email, payload.password))


@router.get("/profile")
async def get_profile(
    user: Dict[str, Any] = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    collection = c.ADMINS if user.get("isLegacyAdmin") else c.USERS
    doc = await db[collection].find_one({"_id": user["_id"]}, {"password": 0})
    if not doc:
        raise ResourceNotFoundError("User not found")
    return {"user": serialize_document(doc)}


@router.get("/salesmen")
async def list_my_salesmen(
    user: Dict[str, Any] = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    """Active salesmen created by the calling admin."""
    cursor = db[c.USERS].find(
        {"role": c.ROLE_SALESMAN, "assignedBy": user["_id"], "isActive": True},
        {"name": 1, "email": 1, "phone": 1, "territory": 1, "commissionRate": 1},
    )
    return {"salesmen": serialize_document(await cursor.to_list(length=None))}


@router.get("")
async def list_users(
    role: Optional[str] = None,
    search: Optional[str] = None,
    city: Optional[str] = None,
    page: int = Query(1),
    limit: int = Query(10),
    user: Dict[str, Any] = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    query: Dict[str, Any] = {}
    if user.get("role") == c.ROLE_ADMIN:
        query["role"] = {"$in": [c.ROLE_SALESMAN, c.ROLE_SHOPKEEPER]}
    if role:
        if user.get("role") == c.ROLE_ADMIN and role not in (c.ROLE_SALESMAN, c.ROLE_SHOPKEEPER):
            query["role"] = {"$in": []}
        else:
            query["role"] = role
    if search:
        regex = search_regex(search)
        query["$or"] = [{"name": regex}, {"email": regex}, {"phone": regex}]
    if city:
        query["city"] = parse_object_id(city) or city

    page, limit, skip = normalize_pagination(page, limit)
    users = await (
        db[c.USERS].find(query, {"password": 0})
        .sort("createdAt", -1).skip(skip).limit(limit)
        .to_list(length=limit)
    )
    total = await db[c.USERS].count_documents(query)

    await populate(db, users, "assignedBy", c.USERS, {"name": 1, "email": 1})
    await populate(db, users, "assignedSalesman", c.USERS, {"name": 1, "email": 1})
    await populate(db, users, "city", c.CITIES, {"name": 1})

    return {"users": serialize_document(users), "pagination": pagination_block(page, limit, total)}


@router.post("", status_code=201)
async def create_user(
    payload: UserCreate,
    user: Dict[str, Any] = Depends(require_superadmin),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    created = await user_service.create_user(db, payload, user["_id"])
    return {"success": True, "message": "User created successfully", "user": serialize_document(created)}


@router.put("/{user_id}/toggle-status")
async def toggle_status(
    user_id: str,
    _: Dict[str, Any] = Depends(require_superadmin),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    toggled = await user_service.toggle_user_status(db, user_id)
    state = "activated" if toggled["isActive"] else "deactivated"
    return {"success": True, "message": f"User {state} successfully", "user": serialize_document(toggled)}


@router.put("/{user_id}")
async def update_user(
    user_id: str,
    payload: UserUpdate,
    _: Dict[str, Any] = Depends(require_superadmin),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    updated = await user_service.update_user(db, user_id, payload)
    return {"success": True, "message": "User updated successfully", "user": serialize_document(updated)}


@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    _: Dict[str, Any] = Depends(require_superadmin),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    target = await get_or_404(db[c.USERS], user_id, "User not found", CONTACT_PROJECTION)
    await db[c.USERS].delete_one({"_id": target["_id"]})
    return {"success": True, "message": "User deleted successfully"}
