"""
app/api/deps.py

Purpose: Shared route dependencies

- Bearer token authentication
- Acting-user resolution across users and legacy admins
- Role gates used by every router
"""

from typing import Any, Dict, Optional

from fastapi import Depends, Header
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.core.exceptions import AuthenticationError, InvalidTokenError, PermissionDeniedError
from app.core.logging import get_logger
from app.core.security import decode_access_token
from app.db.mongo import get_database
from app.models.user import Role
from utils import constants as c
from utils.validation_utils import parse_object_id

logger = get_logger(__name__)


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def _load_identity(db: AsyncIOMotorDatabase, subject_id: Any) -> Optional[Dict[str, Any]]:
    """
    Looks the token subject up in users, then in the legacy admins collection.
    Legacy admins are mapped onto the user shape and are always active.
    """
    oid = parse_object_id(subject_id)
    if oid is None:
        return None

    user = await db[c.USERS].find_one({"_id": oid}, {"password": 0})
    if user:
        return user

    admin = await db[c.ADMINS].find_one({"_id": oid}, {"password": 0})
    if not admin:
        return None

    role = Role.SUPERADMIN.value if admin.get("role") == Role.SUPERADMIN.value else Role.ADMIN.value
    return {
        **admin,
        "name": admin.get("username"),
        "role": role,
        "isActive": True,
        "isLegacyAdmin": True,
    }


async def get_current_user(
    authorization: Optional[str] = Header(default=None),
    db: AsyncIOMotorDatabase = Depends(get_database),
) -> Dict[str, Any]:
    """
    Resolves the acting user from the Authorization header.

    Raises:
        AuthenticationError: Missing token, unknown subject or inactive user (401)
        InvalidTokenError: Token cannot be verified or has expired (403)
    """
    token = _bearer_token(authorization)
    if not token:
        raise AuthenticationError(c.ACCESS_TOKEN_REQUIRED)

    payload = decode_access_token(token)
    subject_id = payload.get("id")
    if not subject_id:
        raise InvalidTokenError(c.INVALID_TOKEN)

    user = await _load_identity(db, subject_id)
    if not user or not user.get("isActive", False):
        logger.warning("Rejected token for unknown or inactive user", extra={"user_id": str(subject_id)})
        raise AuthenticationError(c.INVALID_USER)

    return user


def require_roles(*allowed: str, message: str = c.ACCESS_DENIED):
    """Builds a dependency that only lets the given roles through."""
    def _dep(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
        if user.get("role") not in allowed:
            raise PermissionDeniedError(message)
        return user

    return _dep


require_superadmin = require_roles(c.ROLE_SUPERADMIN, message=c.SUPERADMIN_REQUIRED)
require_admin = require_roles(*c.ADMIN_ROLES, message=c.ADMIN_REQUIRED)
require_staff = require_roles(
    *c.STAFF_ROLES, message="Access denied. Salesman, admin or super admin required."
)
require_order_placer = require_roles(
    *c.ORDER_PLACER_ROLES,
    message="Access denied. Shopkeeper, salesman, admin or super admin required.",
)


def is_admin(user: Dict[str, Any]) -> bool:
    return user.get("role") in c.ADMIN_ROLES
