"""
app/api/categories.py

Purpose: /api/categories

- Public list of active categories
- Category management (superadmin); categories in use by products
  cannot be deleted or deactivated
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from app.api.deps import require_superadmin
from app.core.exceptions import ConflictError, ValidationError
from app.db.mongo import get_database
from app.schemas.catalog import CategoryCreate, CategoryReorderRequest, CategoryUpdate
from app.services.lookup_service import get_or_404, populate
from utils import constants as c
from utils.time_utils import utc_now
from utils.validation_utils import (
    exact_name_regex,
    normalize_pagination,
    pagination_block,
    parse_object_id,
    search_regex,
    serialize_document,
)

router = APIRouter()

DUPLICATE_NAME = "Category with this name already exists"
ORDERING = [("sortOrder", 1), ("name", 1)]


async def _name_taken(db: AsyncIOMotorDatabase, name: str, exclude_id=None) -> bool:
    query: Dict[str, Any] = {"name": exact_name_regex(name), "isActive": True}
    if exclude_id is not None:
        query["_id"] = {"$ne": exclude_id}
    return await db[c.CATEGORIES].find_one(query, {"_id": 1}) is not None


async def _products_using(db: AsyncIOMotorDatabase, category: Dict[str, Any]) -> int:
    return await db[c.PRODUCTS].count_documents({"category": category["name"]})


@router.get("")
async def list_active_categories(db: AsyncIOMotorDatabase = Depends(get_database)):
    categories = await (
        db[c.CATEGORIES].find({"isActive": True}, {"name": 1, "description": 1, "icon": 1, "color": 1})
        .sort(ORDERING).to_list(length=None)
    )
    return {"success": True, "categories": serialize_document(categories)}


@router.get("/all")
async def list_all_categories(
    search: Optional[str] = None,
    page: int = Query(1),
    limit: int = Query(10),
    _: Dict[str, Any] = Depends(require_superadmin),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    query = {"name": search_regex(search)} if search else {}
    page, limit, skip = normalize_pagination(page, limit)
    categories = await (
        db[c.CATEGORIES].find(query).sort(ORDERING).skip(skip).limit(limit).to_list(length=limit)
    )
    total = await db[c.CATEGORIES].count_documents(query)
    await populate(db, categories, "createdBy", c.USERS, {"name": 1, "email": 1})

    pagination = pagination_block(page, limit, total)
    pagination["pages"] = pagination["pages"] or 1
    pagination["limit"] = limit
    return {"success": True, "categories": serialize_document(categories), "pagination": pagination}


@router.post("", status_code=201)
async def create_category(
    payload: CategoryCreate,
    user: Dict[str, Any] = Depends(require_superadmin),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    if await _name_taken(db, payload.name):
        raise ConflictError(DUPLICATE_NAME)

    now = utc_now()
    category = {
        **payload.to_document(exclude_unset=False),
        "isActive": True,
        "createdBy": user["_id"],
        "createdAt": now,
        "updatedAt": now,
    }
    try:
        result = await db[c.CATEGORIES].insert_one(category)
    except DuplicateKeyError:
        raise ConflictError(DUPLICATE_NAME)
    category["_id"] = result.inserted_id
    return {"success": True, "message": "Category created successfully", "category": serialize_document(category)}


@router.put("/reorder")
async def reorder_categories(
    payload: CategoryReorderRequest,
    _: Dict[str, Any] = Depends(require_superadmin),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    now = utc_now()
    for entry in payload.category_orders:
        oid = parse_object_id(entry.id)
        if oid is None:
            continue
        await db[c.CATEGORIES].update_one(
            {"_id": oid}, {"$set": {"sortOrder": entry.sort_order, "updatedAt": now}}
        )
    return {"success": True, "message": "Categories reordered successfully"}


@router.put("/{category_id}/toggle")
async def toggle_category(
    category_id: str,
    _: Dict[str, Any] = Depends(require_superadmin),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    category = await get_or_404(db[c.CATEGORIES], category_id, "Category not found")
    if category.get("isActive"):
        in_use = await _products_using(db, category)
        if in_use:
            raise ValidationError(f"Cannot deactivate category. It is being used by {in_use} product(s).")
    elif await _name_taken(db, category["name"], category["_id"]):
        raise ConflictError(DUPLICATE_NAME)

    is_active = not category.get("isActive", False)
    updated = await db[c.CATEGORIES].find_one_and_update(
        {"_id": category["_id"]},
        {"$set": {"isActive": is_active, "updatedAt": utc_now()}},
        return_document=ReturnDocument.AFTER,
    )
    state = "activated" if is_active else "deactivated"
    return {"success": True, "message": f"Category {state} successfully", "category": serialize_document(updated)}


@router.put("/{category_id}")
async def update_category(
    category_id: str,
    payload: CategoryUpdate,
    _: Dict[str, Any] = Depends(require_superadmin),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    category = await get_or_404(db[c.CATEGORIES], category_id, "Category not found")
    changes = payload.to_document()
    name = changes.get("name")
    if name and name != category["name"] and await _name_taken(db, name, category["_id"]):
        raise ConflictError(DUPLICATE_NAME)
    changes["updatedAt"] = utc_now()

    try:
        updated = await db[c.CATEGORIES].find_one_and_update(
            {"_id": category["_id"]}, {"$set": changes}, return_document=ReturnDocument.AFTER
        )
    except DuplicateKeyError:
        raise ConflictError(DUPLICATE_NAME)
    await populate(db, [updated], "createdBy", c.USERS, {"name": 1, "email": 1})
    return {"success": True, "message": "Category updated successfully", "category": serialize_document(updated)}


@router.delete("/{category_id}")
async def delete_category(
    category_id: str,
    _: Dict[str, Any] = Depends(require_superadmin),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    category = await get_or_404(db[c.CATEGORIES], category_id, "Category not found")
    in_use = await _products_using(db, category)
    if in_use:
        raise ValidationError(
            f"Cannot delete category. It is being used by {in_use} product(s). Please deactivate instead."
        )
    await db[c.CATEGORIES].delete_one({"_id": category["_id"]})
    return {"success": True, "message": "Category deleted successfully"}
