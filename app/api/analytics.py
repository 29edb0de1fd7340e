"""
app/api/analytics.py

Purpose: /api/analytics (admin and superadmin)

All endpoints take optional startDate/endDate (YYYY-MM-DD, UTC). The range
defaults to the current month up to now.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.api.deps import require_admin
from app.core.exceptions import ResourceNotFoundError
from app.db.mongo import get_database
from app.services import analytics_service
from utils.time_utils import resolve_date_range
from utils.validation_utils import parse_object_id, serialize_document

router = APIRouter()


@router.get("/dashboard")
async def dashboard(
    startDate: Optional[str] = None,
    endDate: Optional[str] = None,
    _: Dict[str, Any] = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    start, end = resolve_date_range(startDate, endDate)
    analytics = await analytics_service.dashboard(db, start, end)
    return {"success": True, "analytics": serialize_document(analytics)}


@router.get("/payments/received-details")
async def received_details(
    startDate: Optional[str] = None,
    endDate: Optional[str] = None,
    _: Dict[str, Any] = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    start, end = resolve_date_range(startDate, endDate)
    details = await analytics_service.received_details(db, start, end)
    return {"success": True, "details": serialize_document(details)}


@router.get("/payments/outstanding-details")
async def outstanding_details(
    startDate: Optional[str] = None,
    endDate: Optional[str] = None,
    _: Dict[str, Any] = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    start, end = resolve_date_range(startDate, endDate)
    details = await analytics_service.outstanding_details(db, start, end)
    return {"success": True, "details": serialize_document(details)}


@router.get("/salesman/{salesman_id}")
async def salesman_analytics(
    salesman_id: str,
    startDate: Optional[str] = None,
    endDate: Optional[str] = None,
    _: Dict[str, Any] = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    salesman_oid = parse_object_id(salesman_id)
    if salesman_oid is None:
        raise ResourceNotFoundError("Salesman not found")
    start, end = resolve_date_range(startDate, endDate)
    analytics = await analytics_service.salesman_report(db, salesman_oid, start, end)
    return {"success": True, "analytics": serialize_document(analytics)}
