"""
app/core/security.py

Purpose: Password hashing and access tokens

- bcrypt password hashing and verification
- Signed JWT access tokens carrying the user id
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
import jwt

from app.core.config import settings
from app.core.exceptions import InvalidTokenError


def hash_password(password: str) -> str:
    """Hash password using bcrypt."""
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify a plain password against a hashed password."""
    if not plain_password or not hashed_password:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def create_access_token(subject_id: Any, expires_minutes: int, extra_claims: Optional[Dict[str, Any]] = None) -> str:
    """
    Creates a signed access token.

    Args:
        subject_id: Id of the user or legacy admin the token is issued to
        expires_minutes: Token lifetime
        extra_claims: Additional claims (role for legacy admins)

    Returns:
        Encoded JWT
    """
    payload = {
        "id": str(subject_id),
        "exp": datetime.now(timezone.utc) + timedelta(minutes=expires_minutes),
    }
    if extra_claims:
        payload.update(extra_claims)
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Verifies and decodes an access token.

    Raises:
        InvalidTokenError: If the token is malformed, tampered with or expired
    """
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.PyJWTError as e:
        raise InvalidTokenError(details=str(e))
