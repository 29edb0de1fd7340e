"""
app/models/notification.py

Purpose: Notification document model

- Targeted at explicit users and/or whole roles
- Per-user read receipts in readBy
- Optional expiry (TTL index on expiresAt)
"""

from enum import Enum
from typing import Any, Dict, Iterable, Optional

from bson import ObjectId


class NotificationType(str, Enum):
    ORDER = "order"
    RECOVERY = "recovery"
    RECEIPT = "receipt"
    SYSTEM = "system"


class NotificationPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class NotificationStatus(str, Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"
    DELETED = "deleted"


class RelatedEntityType(str, Enum):
    ORDER = "Order"
    SHOPKEEPER_ORDER = "ShopkeeperOrder"
    RECOVERY = "Recovery"
    RECEIPT = "Receipt"


# Types that must point at the record they announce
ENTITY_BACKED_TYPES = {
    NotificationType.ORDER,
    NotificationType.RECOVERY,
    NotificationType.RECEIPT,
}


def _same_id(a: Any, b: Any) -> bool:
    return a is not None and b is not None and str(a) == str(b)


def is_read_by(doc: Dict[str, Any], user_id: Any) -> bool:
    """True if the user appears in the notification's readBy list."""
    if not user_id:
        return False
    return any(_same_id((entry or {}).get("user"), user_id) for entry in doc.get("readBy") or [])


def has_access(doc: Dict[str, Any], user_id: Any, role: Optional[str]) -> bool:
    """True if the notification targets the user directly or through their role."""
    targeted = any(_same_id(target, user_id) for target in _ids(doc.get("targetUsers")))
    return targeted or (role in (doc.get("targetRoles") or []))


def _ids(values: Optional[Iterable[Any]]) -> Iterable[Any]:
    for value in values or []:
        # Populated entries are dicts carrying their own _id
        yield value.get("_id") if isinstance(value, dict) else value


def audience_query(user_id: ObjectId, role: str, status: Optional[str] = NotificationStatus.ACTIVE.value) -> Dict[str, Any]:
    """Mongo filter for notifications visible to a user."""
    query: Dict[str, Any] = {
        "$or": [
            {"targetUsers": user_id},
            {"targetRoles": role},
        ]
    }
    if status:
        query["status"] = status
    return query
