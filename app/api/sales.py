"""
app/api/sales.py

Purpose: /api/sales

- Direct sales booked by salesmen, priced like orders
- Totals with a per-salesman breakdown
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.api.deps import require_staff
from app.core.config import settings
from app.core.exceptions import PermissionDeniedError, ResourceNotFoundError, ValidationError
from app.db.mongo import get_database
from app.models.user import CONTACT_PROJECTION
from app.schemas.staff import SaleCreate
from app.services.assignment_service import find_active_assignment
from app.services.lookup_service import get_or_404, populate
from app.services.pricing_service import compute_commission, order_total, price_line
from utils import constants as c
from utils.time_utils import optional_date_range, utc_now
from utils.validation_utils import normalize_pagination, pagination_block, parse_object_id, serialize_document

router = APIRouter()


def _scope(user: Dict[str, Any]) -> Dict[str, Any]:
    if user.get("role") == c.ROLE_SALESMAN:
        return {"salesman": user["_id"]}
    return {}


@router.post("", status_code=201)
async def record_sale(
    payload: SaleCreate,
    user: Dict[str, Any] = Depends(require_staff),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    shopkeeper_id = None
    if payload.shopkeeper_id:
        shopkeeper = await get_or_404(db[c.USERS], payload.shopkeeper_id, "Shopkeeper not found", {"role": 1})
        if shopkeeper.get("role") != c.ROLE_SHOPKEEPER:
            raise ValidationError("Invalid shopkeeper ID")
        if user.get("role") == c.ROLE_SALESMAN and not await find_active_assignment(
            db, salesman_id=user["_id"], shopkeeper_id=shopkeeper["_id"]
        ):
            raise PermissionDeniedError("You can only record sales for your assigned shopkeepers")
        shopkeeper_id = shopkeeper["_id"]

    lines = []
    for item in payload.items:
        oid = parse_object_id(item.product_id)
        product = await db[c.PRODUCTS].find_one({"_id": oid}) if oid else None
        if not product:
            raise ResourceNotFoundError(f"Product {item.product_id} not found")
        lines.append(price_line(product, item.quantity, item.unit_price))

    total = order_total(lines)
    commission = 0.0
    if user.get("role") == c.ROLE_SALESMAN:
        commission = compute_commission(total, user.get("commissionRate"), settings.DEFAULT_COMMISSION_RATE)

    now = utc_now()
    sale = {
        "salesman": user["_id"],
        "shopkeeper": shopkeeper_id,
        "items": lines,
        "totalAmount": total,
        "commission": commission,
        "paymentMethod": payload.payment_method.value,
        "notes": payload.notes,
        "saleDate": now,
        "createdAt": now,
        "updatedAt": now,
    }
    result = await db[c.SALES_RECORDS].insert_one(sale)
    sale["_id"] = result.inserted_id
    return {"success": True, "message": "Sale recorded successfully", "sale": serialize_document(sale)}


@router.get("")
async def list_sales(
    startDate: Optional[str] = None,
    endDate: Optional[str] = None,
    page: int = Query(1),
    limit: int = Query(10),
    user: Dict[str, Any] = Depends(require_staff),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    query = _scope(user)
    date_range = optional_date_range(startDate, endDate)
    if date_range:
        query["saleDate"] = date_range

    page, limit, skip = normalize_pagination(page, limit)
    sales = await (
        db[c.SALES_RECORDS].find(query).sort("saleDate", -1).skip(skip).limit(limit).to_list(length=limit)
    )
    total = await db[c.SALES_RECORDS].count_documents(query)

    await populate(db, sales, "salesman", c.USERS, CONTACT_PROJECTION)
    await populate(db, sales, "shopkeeper", c.USERS, CONTACT_PROJECTION)
    await populate(db, sales, "items.product", c.PRODUCTS, {"name": 1, "price": 1})
    return {"sales": serialize_document(sales), "pagination": pagination_block(page, limit, total)}


@router.get("/stats/dashboard")
async def sales_dashboard(
    startDate: Optional[str] = None,
    endDate: Optional[str] = None,
    user: Dict[str, Any] = Depends(require_staff),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    match = _scope(user)
    date_range = optional_date_range(startDate, endDate)
    if date_range:
        match["saleDate"] = date_range

    by_salesman = await db[c.SALES_RECORDS].aggregate([
        {"$match": match},
        {
            "$group": {
                "_id": "$salesman",
                "totalSales": {"$sum": 1},
                "totalAmount": {"$sum": "$totalAmount"},
                "totalCommission": {"$sum": "$commission"},
            }
        },
        {"$sort": {"totalAmount": -1}},
    ]).to_list(length=None)

    for row in by_salesman:
        row["salesman"] = row["_id"]
    await populate(db, by_salesman, "salesman", c.USERS, {"name": 1, "email": 1})

    return {
        "stats": {
            "totalSales": sum(row["totalSales"] for row in by_salesman),
            "totalAmount": sum(row["totalAmount"] for row in by_salesman),
            "totalCommission": sum(row["totalCommission"] for row in by_salesman),
        },
        "salesmanBreakdown": serialize_document(by_salesman),
    }
