"""
app/api/products.py

Purpose: /api/products

- Public catalogue browsing
- Product management and bulk delete (admins)
- Stock decrement for recorded sales
- Image uploads to the image host
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from app.api.deps import require_admin, require_staff
from app.core.exceptions import ValidationError
from app.core.logging import get_logger
from app.db.mongo import get_database
from app.schemas.catalog import BulkDeleteRequest, ProductCreate, ProductUpdate, StockUpdate
from app.services.image_service import check_image, get_image_service
from app.services.lookup_service import get_or_404
from utils import constants as c
from utils.time_utils import utc_now
from utils.validation_utils import (
    normalize_pagination,
    pagination_block,
    parse_object_ids,
    search_regex,
    serialize_document,
)

logger = get_logger(__name__)
router = APIRouter()


async def _read_image(upload: UploadFile) -> Dict[str, Any]:
    content = await upload.read()
    check_image(upload.filename, upload.content_type, len(content))
    return {"content": content, "filename": upload.filename}


@router.get("")
async def list_products(
    category: Optional[str] = None,
    featured: Optional[str] = None,
    search: Optional[str] = None,
    page: int = Query(1),
    limit: int = Query(10),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    query: Dict[str, Any] = {}
    if category:
        query["category"] = category
    if featured == "true":
        query["featured"] = True
    if search:
        regex = search_regex(search)
        query["$or"] = [{"name": regex}, {"description": regex}]

    page, limit, skip = normalize_pagination(page, limit)
    products = await (
        db[c.PRODUCTS].find(query).sort("createdAt", -1).skip(skip).limit(limit).to_list(length=limit)
    )
    total = await db[c.PRODUCTS].count_documents(query)
    return {"products": serialize_document(products), "pagination": pagination_block(page, limit, total)}


@router.get("/categories/list")
async def list_product_categories(db: AsyncIOMotorDatabase = Depends(get_database)):
    return sorted(await db[c.PRODUCTS].distinct("category"))


@router.get("/test-cloudinary")
async def test_cloudinary(_: Dict[str, Any] = Depends(require_admin)):
    return await get_image_service().diagnostics()


@router.post("/upload-image")
async def upload_image(
    image: Optional[UploadFile] = File(None),
    _: Dict[str, Any] = Depends(require_admin),
):
    if image is None:
        raise ValidationError("No file uploaded")
    file = await _read_image(image)
    url = await get_image_service().upload(file["content"], file["filename"])
    return {"success": True, "message": "Image uploaded successfully", "imageUrl": url}


@router.post("/upload-images")
async def upload_images(
    images: Optional[List[UploadFile]] = File(None),
    _: Dict[str, Any] = Depends(require_admin),
):
    if not images:
        raise ValidationError("No files uploaded")
    if len(images) > c.MAX_IMAGES_PER_UPLOAD:
        raise ValidationError(f"At most {c.MAX_IMAGES_PER_UPLOAD} images can be uploaded at once")
    files = [await _read_image(upload) for upload in images]
    urls = await get_image_service().upload_many(files)
    return {"success": True, "message": "Images uploaded successfully", "imageUrls": urls}


@router.post("", status_code=201)
async def create_product(
    payload: ProductCreate,
    _: Dict[str, Any] = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    now = utc_now()
    product = {**payload.to_document(exclude_unset=False), "createdAt": now, "updatedAt": now}
    result = await db[c.PRODUCTS].insert_one(product)
    product["_id"] = result.inserted_id
    return {"success": True, "message": "Product created successfully", "product": serialize_document(product)}


@router.delete("")
async def bulk_delete_products(
    payload: BulkDeleteRequest,
    _: Dict[str, Any] = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    if not payload.product_ids:
        raise ValidationError("Product IDs array is required")
    result = await db[c.PRODUCTS].delete_many({"_id": {"$in": parse_object_ids(payload.product_ids)}})
    logger.info(f"Bulk deleted {result.deleted_count} products")
    return {"success": True, "message": f"{result.deleted_count} products deleted successfully"}


@router.get("/{product_id}")
async def get_product(product_id: str, db: AsyncIOMotorDatabase = Depends(get_database)):
    return serialize_document(await get_or_404(db[c.PRODUCTS], product_id, "Product not found"))


@router.put("/{product_id}/stock")
async def update_stock(
    product_id: str,
    payload: StockUpdate,
    _: Dict[str, Any] = Depends(require_staff),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    """Decrements stock only if enough is left, in a single conditional update."""
    quantity = payload.quantity_sold
    if not quantity or quantity <= 0:
        raise ValidationError("Valid quantity sold is required")

    product = await get_or_404(db[c.PRODUCTS], product_id, "Product not found")
    updated = await db[c.PRODUCTS].find_one_and_update(
        {"_id": product["_id"], "stock": {"$gte": quantity}},
        {"$inc": {"stock": -quantity}, "$set": {"updatedAt": utc_now()}},
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        current = await db[c.PRODUCTS].find_one({"_id": product["_id"]}, {"stock": 1}) or {}
        raise ValidationError(f"Insufficient stock. Available: {current.get('stock', 0)}, Requested: {quantity}")

    return {
        "success": True,
        "message": "Product stock updated successfully",
        "product": serialize_document({"id": updated["_id"], "name": updated.get("name"), "stock": updated["stock"]}),
    }


@router.put("/{product_id}")
async def update_product(
    product_id: str,
    payload: ProductUpdate,
    _: Dict[str, Any] = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    product = await get_or_404(db[c.PRODUCTS], product_id, "Product not found")
    changes = {**payload.to_document(), "updatedAt": utc_now()}
    updated = await db[c.PRODUCTS].find_one_and_update(
        {"_id": product["_id"]}, {"$set": changes}, return_document=ReturnDocument.AFTER
    )
    return {"success": True, "message": "Product updated successfully", "product": serialize_document(updated)}


@router.delete("/{product_id}")
async def delete_product(
    product_id: str,
    _: Dict[str, Any] = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    product = await get_or_404(db[c.PRODUCTS], product_id, "Product not found")
    await db[c.PRODUCTS].delete_one({"_id": product["_id"]})
    return {"success": True, "message": "Product deleted successfully"}
