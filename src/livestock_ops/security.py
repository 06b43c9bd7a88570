"""Password hashing and bearer token helpers."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

import bcrypt
import jwt

from livestock_ops.calculators.user_rules import MAX_PASSWORD_BYTES
from livestock_ops.config import get_settings
from livestock_ops.errors import AppError


def hash_password(password: str) -> str:
    """Hash a plain-text password with bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str | None) -> bool:
    """Check a plain-text password against a stored bcrypt hash.

    Passwords longer than bcrypt accepts never match.
    """
    encoded = password.encode("utf-8")
    if not password_hash or len(encoded) > MAX_PASSWORD_BYTES:
        return False
    return bcrypt.checkpw(encoded, password_hash.encode("utf-8"))


def create_access_token(
    user_id: UUID,
    role: str,
    expires_in: timedelta | None = None,
) -> str:
    """Issue a signed access token for a user."""
    settings = get_settings()
    if expires_in is None:
        expires_in = timedelta(minutes=settings.access_token_minutes)
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "role": role,
        "iat": now,
        "exp": now + expires_in,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode and validate an access token.

    Raises AppError SESSION_EXPIRED for an expired token and UNAUTHORIZED for
    anything else that fails validation.
    """
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
        )
    except jwt.ExpiredSignatureError:
        raise AppError("SESSION_EXPIRED")
    except jwt.InvalidTokenError:
        raise AppError("UNAUTHORIZED", "Invalid access token")

    if "sub" not in payload:
        raise AppError("UNAUTHORIZED", "Invalid access token")
    return payload
