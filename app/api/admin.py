"""
app/api/admin.py

Purpose: /api/admin (legacy admin identities)

- Login with a long-lived token
- Own profile and password
- Admin management for superadmins
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.api.deps import get_current_user, require_superadmin
from app.core.exceptions import ConflictError, PermissionDeniedError, ResourceNotFoundError, ValidationError
from app.db.mongo import get_database
from app.schemas.users import (
    AdminCreate,
    AdminLoginRequest,
    AdminProfileUpdate,
    AdminUpdate,
    ChangePasswordRequest,
)
from app.services import user_service
from app.services.lookup_service import get_or_404
from utils import constants as c
from utils.time_utils import utc_now
from utils.validation_utils import exact_name_regex, serialize_document

router = APIRouter()


def require_legacy_admin(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    if not user.get("isLegacyAdmin"):
        raise PermissionDeniedError("Admin account required")
    return user


@router.post("/login")
async def login(payload: AdminLoginRequest, db: AsyncIOMotorDatabase = Depends(get_database)):
    return serialize_document(await user_service.login_admin(db, payload.email, payload.password))


@router.get("/profile")
async def get_profile(admin: Dict[str, Any] = Depends(require_legacy_admin)):
    fields = ("_id", "username", "email", "role", "isActive", "lastLogin", "createdAt")
    return {"success": True, "admin": serialize_document({k: admin.get(k) for k in fields})}


@router.put("/profile")
async def update_profile(
    payload: AdminProfileUpdate,
    admin: Dict[str, Any] = Depends(require_legacy_admin),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    changes = payload.to_document()
    if "email" in changes:
        taken = await db[c.ADMINS].find_one(
            {"email": exact_name_regex(changes["email"]), "_id": {"$ne": admin["_id"]}}, {"_id": 1}
        )
        if taken:
            raise ConflictError("Email already exists")
        changes["email"] = changes["email"].lower()
    changes["updatedAt"] = utc_now()

    await db[c.ADMINS].update_one({"_id": admin["_id"]}, {"$set": changes})
    updated = await db[c.ADMINS].find_one({"_id": admin["_id"]}, {"password": 0})
    return {"success": True, "message": "Profile updated successfully", "admin": serialize_document(updated)}


@router.put("/change-password")
async def change_password(
    payload: ChangePasswordRequest,
    admin: Dict[str, Any] = Depends(require_legacy_admin),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    await user_service.change_admin_password(db, admin["_id"], payload.current_password, payload.new_password)
    return {"success": True, "message": "Password changed successfully"}


@router.get("")
async def list_admins(
    _: Dict[str, Any] = Depends(require_superadmin),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    admins = await db[c.ADMINS].find({}, {"password": 0}).sort("createdAt", -1).to_list(length=None)
    return {"success": True, "admins": serialize_document(admins)}


@router.post("", status_code=201)
async def create_admin(
    payload: AdminCreate,
    _: Dict[str, Any] = Depends(require_superadmin),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    admin = await user_service.create_admin(db, payload)
    return {"success": True, "message": "Admin created successfully", "admin": serialize_document(admin)}


@router.put("/{admin_id}")
async def update_admin(
    admin_id: str,
    payload: AdminUpdate,
    _: Dict[str, Any] = Depends(require_superadmin),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    admin = await get_or_404(db[c.ADMINS], admin_id, "Admin not found")
    changes = payload.to_document()
    if "email" in changes:
        changes["email"] = changes["email"].lower()
    changes["updatedAt"] = utc_now()

    await db[c.ADMINS].update_one({"_id": admin["_id"]}, {"$set": changes})
    updated = await db[c.ADMINS].find_one({"_id": admin["_id"]}, {"password": 0})
    return {"success": True, "message": "Admin updated successfully", "admin": serialize_document(updated)}


@router.delete("/{admin_id}")
async def delete_admin(
    admin_id: str,
    user: Dict[str, Any] = Depends(require_superadmin),
    db: AsyncIOMotorDatabase = Depends(get_database),
):
    if admin_id == str(user["_id"]):
        raise ValidationError("Cannot delete your own account")

    admin = await get_or_404(db[c.ADMINS], admin_id, "Admin not found")
    result = await db[c.ADMINS].delete_one({"_id": admin["_id"]})
    if not result.deleted_count:
        raise ResourceNotFoundError("Admin not found")
    return {"success": True, "message": "Admin deleted successfully"}
