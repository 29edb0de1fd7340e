"""
app/api/cities.py

Purpose: /api/cities
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from app.api.deps import get_current_user, require_superadmin
from app.core.exceptions import ConflictError, ValidationError
from app.db.mongo import get_database
from app.schemas.catalog import CityCreate, CityUpdate
from app.services.lookup_service import get_or_404
from utils import constants as c
from utils.time_utils import utc_now
from utils.validation_utils import exact_name_regex, serialize_document

router = APIRouter()


async def _ensure_unique(db: AsyncIOMotorDatabase, name: str, exclude_id=None):
    query: Dict[str, Any] = {"name": exact_name_regex(name)}
    if exclude_id is not None:
        query["_id"] = {"$ne": exclude_id}
    if await db[c.CITIES].find_one(query, {"_id": 1}):
        raise ConflictError("City already exists")


@router.get("")
async def list_cities(
    includeInactive: Optional[str] = None,
    _: Dict[str, Any] = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    query = {} if includeInactive else {"isActive": True}
    cities = await db[c.CITIES].find(query).sort("name", 1).to_list(length=None)
    return {"cities": serialize_document(cities)}


@router.post("", status_code=201)
async def create_city(
    payload: CityCreate,
    _: Dict[str, Any] = Depends(require_superadmin),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    name = (payload.name or "").strip()
    if not name:
        raise ValidationError("City name is required")
    await _ensure_unique(db, name)

    now = utc_now()
    city = {"name": name, "isActive": True, "createdAt": now, "updatedAt": now}
    try:
        result = await db[c.CITIES].insert_one(city)
    except DuplicateKeyError:
        raise ConflictError("City already exists")
    city["_id"] = result.inserted_id
    return {"success": True, "city": serialize_document(city)}


@router.put("/{city_id}")
async def update_city(
    city_id: str,
    payload: CityUpdate,
    _: Dict[str, Any] = Depends(require_superadmin),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    city = await get_or_404(db[c.CITIES], city_id, "City not found")
    changes = payload.to_document()
    if "name" in changes:
        await _ensure_unique(db, changes["name"], city["_id"])
    changes["updatedAt"] = utc_now()

    try:
        updated = await db[c.CITIES].find_one_and_update(
            {"_id": city["_id"]}, {"$set": changes}, return_document=ReturnDocument.AFTER
        )
    except DuplicateKeyError:
        raise ConflictError("City already exists")
    return {"success": True, "city": serialize_document(updated)}


@router.delete("/{city_id}")
async def delete_city(
    city_id: str,
    _: Dict[str, Any] = Depends(require_superadmin),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    city = await get_or_404(db[c.CITIES], city_id, "City not found")
    await db[c.CITIES].delete_one({"_id": city["_id"]})
    return {"success": True}
