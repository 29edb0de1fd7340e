"""
app/api/shopkeepers.py

Purpose: /api/shopkeepers
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.api.deps import get_current_user
from app.db.mongo import get_database
from app.models.user import SHOPKEEPER_PROJECTION
from app.services.assignment_service import salesman_ids_of_admin
from app.services.lookup_service import populate
from utils import constants as c
from utils.validation_utils import parse_object_id, serialize_document

router = APIRouter()


@router.get("")
async def list_shopkeepers(
    city: Optional[str] = None,
    user: Dict[str, Any] = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    """
    Shopkeepers visible to the caller: a salesman's assigned shopkeepers,
    the shopkeepers of an admin's salesmen, or everyone for a superadmin.
    """
    query: Dict[str, Any] = {"role": c.ROLE_SHOPKEEPER}
    role = user.get("role")
    if role == c.ROLE_SALESMAN:
        query["assignedSalesman"] = user["_id"]
    elif role == c.ROLE_ADMIN:
        query["assignedSalesman"] = {"$in": await salesman_ids_of_admin(db, user["_id"])}
    elif role == c.ROLE_SHOPKEEPER:
        query["_id"] = user["_id"]
    if city:
        query["city"] = parse_object_id(city) or city

    shopkeepers = await db[c.USERS].find(query, SHOPKEEPER_PROJECTION).to_list(length=None)
    await populate(db, shopkeepers, "city", c.CITIES, {"name": 1})
    return {"shopkeepers": serialize_document(shopkeepers)}
