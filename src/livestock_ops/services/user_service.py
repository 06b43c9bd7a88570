"""Authentication and user administration."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from livestock_ops.calculators.user_rules import (
    can_ban_user,
    can_change_role,
    can_delete_user,
    validate_ban_user_input,
    validate_create_user_input,
    validate_set_password_input,
    validate_update_role_input,
)
from livestock_ops.errors import AppError
from livestock_ops.models import Farm, FarmMembership, User, utcnow
from livestock_ops.security import hash_password, verify_password
from livestock_ops.services.audit_service import AuditService
from livestock_ops.services.pagination import paginate

logger = logging.getLogger(__name__)


class UserService:
    """Login plus the admin-only user operations.

    Every mutation is audited against the acting admin.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.audit = AuditService(session)

    async def authenticate(self, email: str, password: str) -> User:
        """Return the user for valid credentials.

        Raises:
            AppError: INVALID_CREDENTIALS, or BANNED for an active ban.
        """
        result = await self.session.execute(
            select(User).where(func.lower(User.email) == email.strip().lower())
        )
        user = result.scalar_one_or_none()
        if user is None or not verify_password(password, user.password_hash):
            raise AppError("INVALID_CREDENTIALS")
        if user.is_banned(utcnow()):
            raise AppError("BANNED", metadata={"reason": user.ban_reason})
        return user

    async def list_users(
        self,
        search: str | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[User], int]:
        query = select(User)
        if search:
            pattern = f"%{search.lower()}%"
            query = query.where(
                or_(func.lower(User.email).like(pattern), func.lower(User.name).like(pattern))
            )
        query = query.order_by(User.created_at.desc())
        return await paginate(self.session, query, page, page_size)

    async def get_user(self, user_id: UUID) -> User:
        user = await self.session.get(User, user_id)
        if user is None:
            raise AppError("USER_NOT_FOUND", metadata={"resource": "User", "id": str(user_id)})
        return user

    async def get_farm_assignments(self, user_id: UUID) -> list[dict[str, Any]]:
        result = await self.session.execute(
            select(FarmMembership.farm_id, Farm.name, FarmMembership.role)
            .join(Farm, Farm.farm_id == FarmMembership.farm_id)
            .where(FarmMembership.user_id == user_id)
            .order_by(Farm.name)
        )
        return [
            {"farm_id": farm_id, "farm_name": name, "role": role}
            for farm_id, name, role in result.all()
        ]

    async def create_user(self, admin: User, data: dict[str, Any]) -> User:
        user = await self._insert_user(data)
        await self.audit.record_audit(
            admin.user_id, "create", "user", user.user_id, {"email": user.email, "role": user.role}
        )
        return user

    async def bootstrap_admin(self, email: str, name: str, password: str) -> User:
        """Create the first admin account; audited against itself."""
        user = await self._insert_user(
            {"email": email, "name": name, "password": password, "role": "admin"}
        )
        await self.audit.record_audit(
            user.user_id, "create", "user", user.user_id, {"email": user.email, "role": "admin"}
        )
        logger.info("Bootstrapped admin %s", user.email)
        return user

    async def _insert_user(self, data: dict[str, Any]) -> User:
        validation = validate_create_user_input(data)
        if not validation.valid:
            raise AppError("VALIDATION_ERROR", validation.error)

        email = data["email"].strip().lower()
        existing = await self.session.scalar(
            select(User.user_id).where(func.lower(User.email) == email)
        )
        if existing is not None:
            raise AppError(
                "ALREADY_EXISTS",
                "Email already exists",
                metadata={"resource": "User", "field": "email", "value": email},
            )

        user = User(
            email=email,
            name=data["name"].strip(),
            password_hash=hash_password(data["password"]),
            role=data.get("role") or "user",
        )
        self.session.add(user)
        await self.session.flush()
        return user

    async def set_password(self, admin: User, user_id: UUID, new_password: str) -> None:
        validation = validate_set_password_input(
            {"user_id": user_id, "new_password": new_password}
        )
        if not validation.valid:
            raise AppError("VALIDATION_ERROR", validation.error)

        user = await self.get_user(user_id)
        user.password_hash = hash_password(new_password)
        await self.audit.record_audit(admin.user_id, "set_password", "user", user_id)
        await self.session.flush()

    async def ban_user(
        self,
        admin: User,
        user_id: UUID,
        reason: str | None = None,
        expires_at: datetime | str | None = None,
    ) -> User:
        validation = validate_ban_user_input({"user_id": user_id, "expires_at": expires_at})
        if not validation.valid:
            raise AppError("VALIDATION_ERROR", validation.error)

        user = await self.get_user(user_id)
        check = can_ban_user(admin.user_id, user)
        if not check.valid:
            raise AppError("VALIDATION_ERROR", check.error)

        if isinstance(expires_at, str):
            expires_at = datetime.fromisoformat(expires_at)

        user.banned = True
        user.ban_reason = reason
        user.ban_expires_at = expires_at
        await self.audit.record_audit(
            admin.user_id, "ban", "user", user_id, {"reason": reason, "expires_at": expires_at}
        )
        await self.session.flush()
        logger.info("User %s banned by %s", user_id, admin.user_id)
        return user

    async def unban_user(self, admin: User, user_id: UUID) -> User:
        user = await self.get_user(user_id)
        user.banned = False
        user.ban_reason = None
        user.ban_expires_at = None
        await self.audit.record_audit(admin.user_id, "unban", "user", user_id)
        await self.session.flush()
        logger.info("User %s unbanned by %s", user_id, admin.user_id)
        return user

    async def count_sole_owned_farms(self, user_id: UUID) -> int:
        """Farms where ``user_id`` is the only owner."""
        other = aliased(FarmMembership)
        other_owners = (
            select(func.count())
            .select_from(other)
            .where(
                other.farm_id == FarmMembership.farm_id,
                other.role == "owner",
                other.user_id != user_id,
            )
            .scalar_subquery()
        )
        count = await self.session.scalar(
            select(func.count())
            .select_from(FarmMembership)
            .where(
                FarmMembership.user_id == user_id,
                FarmMembership.role == "owner",
                other_owners == 0,
            )
        )
        return count or 0

    async def remove_user(self, admin: User, user_id: UUID) -> None:
        user = await self.get_user(user_id)
        check = can_delete_user(admin.user_id, user, await self.count_sole_owned_farms(user_id))
        if not check.valid:
            raise AppError("VALIDATION_ERROR", check.error)

        await self.audit.record_audit(
            admin.user_id, "delete", "user", user_id, {"email": user.email}
        )
        await self.session.execute(delete(FarmMembership).where(FarmMembership.user_id == user_id))
        await self.session.delete(user)
        await self.session.flush()
        logger.info("User %s removed by %s", user_id, admin.user_id)

    async def update_role(self, admin: User, user_id: UUID, role: str) -> User:
        validation = validate_update_role_input({"user_id": user_id, "role": role})
        if not validation.valid:
            raise AppError("VALIDATION_ERROR", validation.error)
        check = can_change_role(admin.user_id, user_id)
        if not check.valid:
            raise AppError("VALIDATION_ERROR", check.error)

        user = await self.get_user(user_id)
        old_role = user.role
        user.role = role
        await self.audit.record_audit(
            admin.user_id, "update_role", "user", user_id, {"from": old_role, "to": role}
        )
        await self.session.flush()
        return user
