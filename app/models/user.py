"""
app/models/user.py

Purpose: User document model

- Role-tagged identity (superadmin/admin/salesman/shopkeeper)
- Shopkeeper balance fields (pendingAmount, creditLimit)
- assignedBy / assignedSalesman back-references
- Salesman commission rate
"""

from enum import Enum
from typing import Any, Dict, Optional

from bson import ObjectId

from utils.time_utils import utc_now


class Role(str, Enum):
    SUPERADMIN = "superadmin"
    ADMIN = "admin"
    SALESMAN = "salesman"
    SHOPKEEPER = "shopkeeper"


# Fields returned by login and create responses
PROFILE_FIELDS = (
    "_id", "name", "email", "role", "phone", "address", "territory", "city",
    "pendingAmount", "creditLimit", "commissionRate", "isActive",
)

# Projections used when a user is embedded in another resource
CONTACT_PROJECTION = {"name": 1, "email": 1, "phone": 1}
SHOPKEEPER_PROJECTION = {
    "name": 1, "email": 1, "phone": 1, "address": 1,
    "pendingAmount": 1, "creditLimit": 1, "city": 1,
}


def new_user_document(data: Dict[str, Any], password_hash: str, assigned_by: Optional[ObjectId]) -> Dict[str, Any]:
    """
    Builds a user document with defaults applied.

    Args:
        data: Validated creation payload (camelCase keys, no password)
        password_hash: bcrypt hash of the initial password
        assigned_by: Id of the superadmin creating the user
    """
    now = utc_now()
    return {
        "name": data["name"].strip(),
        "email": data["email"].strip().lower(),
        "password": password_hash,
        "role": Role(data["role"]).value,
        "phone": data["phone"],
        "address": data["address"],
        "isActive": data.get("isActive", True),
        "assignedBy": assigned_by,
        "assignedSalesman": data.get("assignedSalesman"),
        "commissionRate": data.get("commissionRate", 0),
        "territory": data.get("territory") or "",
        "city": data.get("city"),
        "pendingAmount": data.get("pendingAmount", 0),
        "creditLimit": data.get("creditLimit", 0),
        "createdAt": now,
        "updatedAt": now,
    }


def profile(doc: Dict[str, Any]) -> Dict[str, Any]:
    """Subset of a user document that is safe to hand back to clients."""
    return {field: doc.get(field) for field in PROFILE_FIELDS}
