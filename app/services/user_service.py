"""
app/services/user_service.py

Purpose: User and legacy admin management

- Login for users and legacy admins
- Create, update and delete users with hashed passwords
- Legacy admin profile and password changes
"""

from typing import Any, Dict, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from app.core.config import settings
from app.core.exceptions import AuthenticationError, ConflictError, ValidationError
from app.core.logging import get_logger, LogContext
from app.core.security import create_access_token, hash_password, verify_password
from app.models.user import new_user_document, profile
from app.schemas.users import AdminCreate, UserCreate, UserUpdate
from app.services.lookup_service import get_or_404
from utils import constants as c
from utils.time_utils import utc_now
from utils.validation_utils import exact_name_regex, parse_object_id

logger = get_logger(__name__)


async def login_user(db: AsyncIOMotorDatabase, email: str, password: str) -> Dict[str, Any]:
    """
    Authenticates an active user by email (case-insensitive) and password.

    Returns:
        Profile fields plus a signed token

    Raises:
        AuthenticationError: Unknown email, inactive user or wrong password
    """
    user = await db[c.USERS].find_one({"email": exact_name_regex(email), "isActive": True})
    if not user or not verify_password(password, user.get("password")):
        logger.warning("Failed login attempt")
        raise AuthenticationError(c.INVALID_CREDENTIALS)

    with LogContext(user_id=str(user["_id"]), role=user.get("role")):
        logger.info("User logged in")
    return {
        **profile(user),
        "token": create_access_token(user["_id"], settings.JWT_EXPIRES_MINUTES_USER),
    }


async def _email_taken(db: AsyncIOMotorDatabase, collection: str, email: str, exclude_id=None) -> bool:
    query: Dict[str, Any] = {"email": exact_name_regex(email)}
    if exclude_id is not None:
        query["_id"] = {"$ne": exclude_id}
    return await db[collection].find_one(query, {"_id": 1}) is not None


async def create_user(db: AsyncIOMotorDatabase, payload: UserCreate, creator_id) -> Dict[str, Any]:
    """
    Creates a user. ``assignedBy`` is set to the creating superadmin.

    Raises:
        ConflictError: Email already exists
    """
    if await _email_taken(db, c.USERS, payload.email):
        raise ConflictError("Email already exists")

    data = payload.to_document(exclude_unset=False)
    data.pop("password", None)
    data["city"] = parse_object_id(data.get("city"))
    data["assignedSalesman"] = parse_object_id(data.get("assignedSalesman"))

    doc = new_user_document(data, hash_password(payload.password), creator_id)
    try:
        result = await db[c.USERS].insert_one(doc)
    except DuplicateKeyError:
        raise ConflictError("Email already exists")
    doc["_id"] = result.inserted_id

    logger.info(f"User created with role {doc['role']}", extra={"user_id": str(doc["_id"])})
    return profile(doc)


async def update_user(db: AsyncIOMotorDatabase, user_id: Any, payload: UserUpdate) -> Dict[str, Any]:
    """
    Partially updates a user. A new password is re-hashed.

    Raises:
        ResourceNotFoundError: No such user
        ConflictError: Email belongs to another user
    """
    user = await get_or_404(db[c.USERS], user_id, "User not found")

    changes = payload.to_document()
    if "email" in changes and await _email_taken(db, c.USERS, changes["email"], user["_id"]):
        raise ConflictError("Email already exists")
    if "password" in changes:
        changes["password"] = hash_password(changes["password"])
    for ref in ("city", "assignedSalesman"):
        if ref in changes:
            changes[ref] = parse_object_id(changes[ref])
    changes["updatedAt"] = utc_now()

    await db[c.USERS].update_one({"_id": user["_id"]}, {"$set": changes})
    return await db[c.USERS].find_one({"_id": user["_id"]}, {"password": 0})


async def toggle_user_status(db: AsyncIOMotorDatabase, user_id: Any) -> Dict[str, Any]:
    user = await get_or_404(db[c.USERS], user_id, "User not found")
    is_active = not user.get("isActive", True)
    await db[c.USERS].update_one(
        {"_id": user["_id"]},
        {"$set": {"isActive": is_active, "updatedAt": utc_now()}},
    )
    return {"_id": user["_id"], "name": user.get("name"), "email": user.get("email"), "isActive": is_active}


# ============================================================
# LEGACY ADMINS
# ============================================================

def admin_summary(admin: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": admin["_id"],
        "username": admin.get("username"),
        "email": admin.get("email"),
        "role": admin.get("role"),
    }


async def login_admin(db: AsyncIOMotorDatabase, email: Optional[str], password: Optional[str]) -> Dict[str, Any]:
    """
    Authenticates a legacy admin and records the login time.

    Raises:
        ValidationError: Email or password missing
        AuthenticationError: Unknown, inactive or wrong password
    """
    if not email or not password:
        raise ValidationError("Email and password are required")

    admin = await db[c.ADMINS].find_one({"email": exact_name_regex(email)})
    if not admin or not admin.get("isActive", True) or not verify_password(password, admin.get("password")):
        raise AuthenticationError("Invalid credentials")

    await db[c.ADMINS].update_one({"_id": admin["_id"]}, {"$set": {"lastLogin": utc_now()}})
    token = create_access_token(
        admin["_id"], settings.JWT_EXPIRES_MINUTES_ADMIN, extra_claims={"role": admin.get("role")}
    )
    logger.info("Legacy admin logged in", extra={"user_id": str(admin["_id"])})
    return {"success": True, "message": "Login successful", "token": token, "admin": admin_summary(admin)}


async def create_admin(db: AsyncIOMotorDatabase, payload: AdminCreate) -> Dict[str, Any]:
    if await _email_taken(db, c.ADMINS, payload.email):
        raise ConflictError("Email already exists")

    now = utc_now()
    admin = {
        "username": payload.username,
        "email": payload.email.strip().lower(),
        "password": hash_password(payload.password),
        "role": payload.role,
        "isActive": True,
        "lastLogin": None,
        "createdAt": now,
        "updatedAt": now,
    }
    result = await db[c.ADMINS].insert_one(admin)
    admin["_id"] = result.inserted_id
    return admin_summary(admin)


async def change_admin_password(
    db: AsyncIOMotorDatabase,
    admin_id: Any,
    current_password: Optional[str],
    new_password: Optional[str],
) -> None:
    """
    Raises:
        ValidationError: A password is missing or the current one is wrong
    """
    if not current_password or not new_password:
        raise ValidationError("Current and new passwords are required")

    admin = await get_or_404(db[c.ADMINS], admin_id, "Admin not found")
    if not verify_password(current_password, admin.get("password")):
        raise ValidationError("Current password is incorrect")

    await db[c.ADMINS].update_one(
        {"_id": admin["_id"]},
        {"$set": {"password": hash_password(new_password), "updatedAt": utc_now()}},
    )
