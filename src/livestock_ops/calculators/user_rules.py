"""Input and permission rules for user administration."""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import datetime
from typing import Any
from uuid import UUID

from livestock_ops.calculators.types import ValidationResult

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_BYTES = 72
MAX_NAME_LENGTH = 255
ROLES = ("admin", "user")


def _validate_password(password: str) -> ValidationResult | None:
    if len(password) < MIN_PASSWORD_LENGTH:
        return ValidationResult.fail(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
        )
    # bcrypt only reads the first 72 bytes
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        return ValidationResult.fail(
            f"Password must be at most {MAX_PASSWORD_BYTES} bytes"
        )
    return None


def _validate_user_id(value: Any) -> ValidationResult | None:
    if value is None or str(value).strip() == "":
        return ValidationResult.fail("User ID is required")
    try:
        UUID(str(value))
    except ValueError:
        return ValidationResult.fail("Invalid user ID format")
    return None


def validate_create_user_input(data: Mapping[str, Any]) -> ValidationResult:
    email = (data.get("email") or "").strip()
    if not email:
        return ValidationResult.fail("Email is required")
    if not EMAIL_PATTERN.match(email):
        return ValidationResult.fail("Invalid email format")

    failure = _validate_password(data.get("password") or "")
    if failure:
        return failure

    name = (data.get("name") or "").strip()
    if not name:
        return ValidationResult.fail("Name is required")
    if len(name) >= MAX_NAME_LENGTH:
        return ValidationResult.fail(f"Name must be less than {MAX_NAME_LENGTH} characters")

    role = data.get("role")
    if role is not None and role not in ROLES:
        return ValidationResult.fail("Role must be admin or user")
    return ValidationResult.ok()


def validate_set_password_input(data: Mapping[str, Any]) -> ValidationResult:
    failure = _validate_user_id(data.get("user_id"))
    if failure:
        return failure
    failure = _validate_password(data.get("new_password") or "")
    if failure:
        return failure
    return ValidationResult.ok()


def validate_ban_user_input(data: Mapping[str, Any]) -> ValidationResult:
    failure = _validate_user_id(data.get("user_id"))
    if failure:
        return failure
    expires_at = data.get("expires_at")
    if expires_at is not None and not isinstance(expires_at, datetime):
        try:
            datetime.fromisoformat(str(expires_at))
        except ValueError:
            return ValidationResult.fail("Invalid expiration date format")
    return ValidationResult.ok()


def validate_update_role_input(data: Mapping[str, Any]) -> ValidationResult:
    failure = _validate_user_id(data.get("user_id"))
    if failure:
        return failure
    if data.get("role") not in ROLES:
        return ValidationResult.fail("Role must be admin or user")
    return ValidationResult.ok()


def can_ban_user(admin_id: UUID | str, target: Any) -> ValidationResult:
    if str(admin_id) == str(target.user_id):
        return ValidationResult.fail("Cannot ban yourself")
    if target.role == "admin":
        return ValidationResult.fail("Cannot ban admin users")
    return ValidationResult.ok()


def can_delete_user(
    admin_id: UUID | str,
    target: Any,
    sole_owned_farm_count: int = 0,
) -> ValidationResult:
    """Deleting must not leave a farm without an owner."""
    if str(admin_id) == str(target.user_id):
        return ValidationResult.fail("Cannot delete yourself")
    if target.role == "admin":
        return ValidationResult.fail("Cannot delete admin users")
    if sole_owned_farm_count > 0:
        return ValidationResult.fail(
            f"Cannot delete user who is the last owner of {sole_owned_farm_count} farm(s)"
        )
    return ValidationResult.ok()


def can_change_role(admin_id: UUID | str, target_id: UUID | str) -> ValidationResult:
    if str(admin_id) == str(target_id):
        return ValidationResult.fail("Cannot change your own role")
    return ValidationResult.ok()
