"""
app/core/config.py

Purpose: Application configuration

- Loads environment variables from layered .env files
- Centralizes config values (DB URI, JWT secret, CORS, image host)
- Validates configuration on startup
- Environment-specific settings
"""

import os
from pathlib import Path
from typing import List, Literal, Optional

from pydantic import Field, field_validator, ValidationInfo
from pydantic_settings import BaseSettings, SettingsConfigDict

from utils.constants import DEFAULT_CORS_ORIGINS


PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


def normalize_environment(value: Optional[str]) -> str:
    """Maps loose environment names (prod, stage, ...) onto the three supported ones."""
    normalized = str(value or "").strip().lower()
    if normalized in ("prod", "production"):
        return "production"
    if normalized in ("stage", "staging"):
        return "staging"
    return "development"


def resolve_env_files(environment: str, root: Path = PROJECT_ROOT) -> tuple:
    """
    Returns the env files to load, lowest priority first.

    pydantic-settings lets later files override earlier ones, so the order is
    .env, .env.local, .env.<env>, .env.<env>.local. Process environment
    variables always win over every file.
    """
    names = [
        ".env",
        ".env.local",
        f".env.{environment}",
        f".env.{environment}.local",
    ]
    return tuple(str(root / name) for name in names if (root / name).exists())


APP_ENV = normalize_environment(
    os.getenv("APP_ENV") or os.getenv("ENVIRONMENT") or "development"
)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Validates all required configs on startup.
    """

    model_config = SettingsConfigDict(
        env_file=resolve_env_files(APP_ENV),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Environment
    ENVIRONMENT: Literal["development", "staging", "production"] = APP_ENV

    # MongoDB
    MONGODB_URL: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URI"
    )
    MONGODB_DB_NAME: str = Field(
        default="orderdesk",
        description="MongoDB database name"
    )

    # Auth
    JWT_SECRET: str = Field(
        default="change-me-in-production",
        description="Signing secret for access tokens"
    )
    JWT_ALGORITHM: str = Field(default="HS256")
    JWT_EXPIRES_MINUTES_USER: int = Field(
        default=60,
        description="Token lifetime for users logging in through /api/users/login"
    )
    JWT_EXPIRES_MINUTES_ADMIN: int = Field(
        default=1440,
        description="Token lifetime for legacy admins logging in through /api/admin/login"
    )
    BCRYPT_ROUNDS: int = Field(default=10, ge=4, le=16)

    # Business rules
    DEFAULT_COMMISSION_RATE: float = Field(
        default=5.0,
        description="Commission percentage used when a salesman has no rate set"
    )

    # Image hosting (Cloudinary)
    CLOUDINARY_CLOUD_NAME: Optional[str] = None
    CLOUDINARY_API_KEY: Optional[str] = None
    CLOUDINARY_API_SECRET: Optional[str] = None
    CLOUDINARY_FOLDER: str = "orderdesk/products"
    CLOUDINARY_TIMEOUT: int = Field(default=30, description="Upload timeout in seconds")

    # Application
    DEBUG: bool = False
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    HOST: str = "0.0.0.0"
    PORT: int = 5000
    API_PREFIX: str = "/api"
    CORS_ORIGINS: str = Field(
        default="",
        description="Comma-separated origins allowed in addition to the defaults"
    )

    @field_validator("ENVIRONMENT", mode="before")
    @classmethod
    def validate_environment(cls, v):
        return normalize_environment(v)

    @field_validator("JWT_SECRET")
    @classmethod
    def validate_jwt_secret(cls, v: str, info: ValidationInfo) -> str:
        """Ensure the signing secret is changed outside development."""
        if info.data.get("ENVIRONMENT") in ("staging", "production") and v == "change-me-in-production":
            raise ValueError("JWT_SECRET must be changed outside development")
        return v

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def is_production_like(self) -> bool:
        return self.ENVIRONMENT in ("staging", "production")

    @property
    def cors_origins(self) -> List[str]:
        """Default origins plus the comma-separated CORS_ORIGINS list, de-duplicated."""
        origins = list(DEFAULT_CORS_ORIGINS)
        for origin in self.CORS_ORIGINS.split(","):
            origin = origin.strip().rstrip("/")
            if origin and origin not in origins:
                origins.append(origin)
        return origins

    @property
    def cloudinary_configured(self) -> bool:
        return bool(
            self.CLOUDINARY_CLOUD_NAME
            and self.CLOUDINARY_API_KEY
            and self.CLOUDINARY_API_SECRET
        )


# Global settings instance
settings = Settings()


def validate_settings():
    """
    Validates critical settings on application startup.
    Raises ValueError if any required setting is missing or invalid.
    """
    errors = []

    if not settings.MONGODB_URL:
        errors.append("MONGODB_URL is required")

    if not settings.JWT_SECRET:
        errors.append("JWT_SECRET is required")

    if settings.is_production_like and not settings.cloudinary_configured:
        errors.append(
            "CLOUDINARY_CLOUD_NAME, CLOUDINARY_API_KEY and CLOUDINARY_API_SECRET are required"
        )

    if errors:
        raise ValueError(f"Configuration validation failed: {', '.join(errors)}")

    return True
