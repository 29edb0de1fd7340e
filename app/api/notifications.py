"""
app/api/notifications.py

Purpose: /api/notifications

- Per-user inbox built from targetUsers and targetRoles
- Read receipts, bulk mark-as-read and summary counts
- Manual creation and deletion by admins
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.api.deps import get_current_user, require_admin
from app.core.exceptions import PermissionDeniedError
from app.core.logging import get_logger
from app.db.mongo import get_database
from app.models.notification import audience_query, has_access, is_read_by
from app.schemas.notifications import NotificationCreate
from app.services.lookup_service import get_or_404, populate
from app.services.notification_service import build_notification
from utils import constants as c
from utils.time_utils import utc_now
from utils.validation_utils import (
    normalize_pagination,
    pagination_block,
    parse_object_id,
    parse_object_ids,
    serialize_document,
)

logger = get_logger(__name__)

router = APIRouter()


def _with_read_flag(doc: Dict[str, Any], user_id: Any) -> Dict[str, Any]:
    return {**doc, "isRead": is_read_by(doc, user_id)}


async def _mark_read(db: AsyncIOMotorDatabase, query: Dict[str, Any], user_id: Any) -> int:
    """Adds a read receipt for the user to every matching notification not yet read."""
    result = await db[c.NOTIFICATIONS].update_many(
        {**query, "readBy.user": {"$ne": user_id}},
        {"$push": {"readBy": {"user": user_id, "readAt": utc_now()}}},
    )
    return result.modified_count


@router.get("")
async def list_notifications(
    type: Optional[str] = None,
    status: str = "active",
    page: int = Query(1),
    limit: int = Query(20),
    user: Dict[str, Any] = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    query = audience_query(user["_id"], user.get("role"), status)
    if type:
        query["type"] = type

    page, limit, skip = normalize_pagination(page, limit, default_limit=20)
    notifications = await (
        db[c.NOTIFICATIONS].find(query).sort("createdAt", -1).skip(skip).limit(limit).to_list(length=limit)
    )
    total = await db[c.NOTIFICATIONS].count_documents(query)

    unread_count = 0
    async for doc in db[c.NOTIFICATIONS].find(query, {"readBy": 1}):
        if not is_read_by(doc, user["_id"]):
            unread_count += 1

    items = [_with_read_flag(doc, user["_id"]) for doc in notifications]
    await populate(db, items, "readBy.user", c.USERS, {"name": 1, "email": 1})
    return {
        "success": True,
        "notifications": serialize_document(items),
        "unreadCount": unread_count,
        "pagination": pagination_block(page, limit, total),
    }


@router.put("/read-all")
async def mark_all_read(
    user: Dict[str, Any] = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    count = await _mark_read(db, audience_query(user["_id"], user.get("role")), user["_id"])
    return {"success": True, "message": f"{count} notifications marked as read"}


@router.get("/stats/summary")
async def notification_summary(
    user: Dict[str, Any] = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    total = 0
    unread = 0
    by_type: Dict[str, Dict[str, Any]] = {}
    async for doc in db[c.NOTIFICATIONS].find(audience_query(user["_id"], user.get("role")), {"type": 1, "readBy": 1}):
        row = by_type.setdefault(doc.get("type"), {"_id": doc.get("type"), "count": 0, "unread": 0})
        row["count"] += 1
        total += 1
        if not is_read_by(doc, user["_id"]):
            row["unread"] += 1
            unread += 1

    return {
        "success": True,
        "stats": {"total": total, "unread": unread, "read": total - unread},
        "typeStats": list(by_type.values()),
    }


@router.get("/{notification_id}")
async def get_notification(
    notification_id: str,
    user: Dict[str, Any] = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    notification = await get_or_404(db[c.NOTIFICATIONS], notification_id, "Notification not found")
    if not has_access(notification, user["_id"], user.get("role")):
        raise PermissionDeniedError()

    item = _with_read_flag(notification, user["_id"])
    await populate(db, [item], "targetUsers", c.USERS, {"name": 1, "email": 1, "role": 1})
    await populate(db, [item], "readBy.user", c.USERS, {"name": 1, "email": 1})
    return {"success": True, "notification": serialize_document(item)}


@router.put("/{notification_id}/read")
async def mark_read(
    notification_id: str,
    user: Dict[str, Any] = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    notification = await get_or_404(db[c.NOTIFICATIONS], notification_id, "Notification not found")
    if not has_access(notification, user["_id"], user.get("role")):
        raise PermissionDeniedError()

    await _mark_read(db, {"_id": notification["_id"]}, user["_id"])
    return {"success": True, "message": "Notification marked as read"}


@router.post("", status_code=201)
async def create_notification(
    payload: NotificationCreate,
    user: Dict[str, Any] = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    notification = build_notification(
        type=payload.type,
        title=payload.title,
        message=payload.message,
        target_users=parse_object_ids(payload.target_users),
        target_roles=payload.target_roles,
        priority=payload.priority,
        related_entity=parse_object_id(payload.related_entity),
        related_entity_type=payload.related_entity_type,
        data=payload.data,
        created_by=user["_id"],
        expires_at=payload.expires_at,
    )
    result = await db[c.NOTIFICATIONS].insert_one(notification)
    notification["_id"] = result.inserted_id
    logger.info("Notification created", extra={"user_id": str(user["_id"])})
    return {
        "success": True,
        "message": "Notification created successfully",
        "notification": serialize_document(notification),
    }


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: str,
    _: Dict[str, Any] = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    notification = await get_or_404(db[c.NOTIFICATIONS], notification_id, "Notification not found", {"_id": 1})
    await db[c.NOTIFICATIONS].delete_one({"_id": notification["_id"]})
    return {"success": True, "message": "Notification deleted successfully"}
