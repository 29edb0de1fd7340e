"""
app/schemas/users.py

Request bodies for /api/users and /api/admin.
"""

from typing import Optional

from pydantic import Field, field_validator

from app.models.user import Role
from app.schemas.base import CamelModel


def _normalize_email(value: str) -> str:
    value = value.strip().lower()
    if "@" not in value or value.startswith("@") or value.endswith("@"):
        raise ValueError("Invalid email address")
    return value


class LoginRequest(CamelModel):
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)


class UserCreate(CamelModel):
    name: str = Field(..., min_length=1)
    email: str
    password: str = Field(..., min_length=6)
    role: Role
    phone: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    is_active: bool = True
    commission_rate: float = Field(default=0, ge=0, le=100)
    territory: str = ""
    city: Optional[str] = None
    assigned_salesman: Optional[str] = None
    pending_amount: float = Field(default=0, ge=0)
    credit_limit: float = Field(default=0, ge=0)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _normalize_email(v)


class UserUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[str] = None
    password: Optional[str] = Field(default=None, min_length=6)
    role: Optional[Role] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    is_active: Optional[bool] = None
    commission_rate: Optional[float] = Field(default=None, ge=0, le=100)
    territory: Optional[str] = None
    city: Optional[str] = None
    assigned_salesman: Optional[str] = None
    pending_amount: Optional[float] = Field(default=None, ge=0)
    credit_limit: Optional[float] = Field(default=None, ge=0)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_email(v) if v is not None else v


class AdminLoginRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class AdminCreate(CamelModel):
    username: str = Field(..., min_length=1)
    email: str
    password: str = Field(..., min_length=6)
    role: str = "admin"

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: str) -> str:
        """Legacy admins are either admin or superadmin."""
        v = v.strip().lower().replace("_", "")
        if v not in (Role.ADMIN.value, Role.SUPERADMIN.value):
            raise ValueError("Role must be 'admin' or 'superadmin'")
        return v


class AdminUpdate(CamelModel):
    username: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip().lower().replace("_", "")
        if v not in (Role.ADMIN.value, Role.SUPERADMIN.value):
            raise ValueError("Role must be 'admin' or 'superadmin'")
        return v


class AdminProfileUpdate(CamelModel):
    username: Optional[str] = None
    email: Optional[str] = None


class ChangePasswordRequest(CamelModel):
    current_password: Optional[str] = None
    new_password: Optional[str] = Field(default=None, min_length=6)
