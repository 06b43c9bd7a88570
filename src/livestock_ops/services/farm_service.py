"""Farms and farm membership."""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from livestock_ops.errors import AppError
from livestock_ops.models import Farm, FarmMembership, User
from livestock_ops.services.access import (
    FARM_ROLES,
    MANAGE_ROLES,
    get_membership,
    require_farm_access,
)
from livestock_ops.services.audit_service import AuditService

logger = logging.getLogger(__name__)


class FarmService:
    """Farm creation, lookup and membership management."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.audit = AuditService(session)

    async def create_farm(
        self,
        user: User,
        name: str,
        location: str = "",
        farm_type: str = "mixed",
        district_id: UUID | None = None,
    ) -> Farm:
        """Create a farm; the creator becomes its owner."""
        if not name.strip():
            raise AppError("VALIDATION_ERROR", "Farm name is required")

        farm = Farm(
            name=name.strip(),
            location=location,
            farm_type=farm_type,
            district_id=district_id,
        )
        self.session.add(farm)
        await self.session.flush()

        self.session.add(FarmMembership(user_id=user.user_id, farm_id=farm.farm_id, role="owner"))
        await self.audit.record_audit(
            user.user_id, "create", "farm", farm.farm_id, {"name": farm.name}
        )
        await self.session.flush()
        return farm

    async def list_farms(self, user: User) -> list[tuple[Farm, str]]:
        """Farms of ``user`` with the user's role (admins see every farm)."""
        if user.is_admin:
            result = await self.session.execute(select(Farm).order_by(Farm.name))
            return [(farm, "admin") for farm in result.scalars().all()]

        result = await self.session.execute(
            select(Farm, FarmMembership.role)
            .join(FarmMembership, FarmMembership.farm_id == Farm.farm_id)
            .where(FarmMembership.user_id == user.user_id)
            .order_by(Farm.name)
        )
        return [(farm, role) for farm, role in result.all()]

    async def get_farm(self, user: User, farm_id: UUID) -> Farm:
        return await require_farm_access(self.session, user, farm_id)

    async def list_members(self, user: User, farm_id: UUID) -> list[dict[str, Any]]:
        await require_farm_access(self.session, user, farm_id)
        result = await self.session.execute(
            select(FarmMembership, User.name, User.email)
            .join(User, User.user_id == FarmMembership.user_id)
            .where(FarmMembership.farm_id == farm_id)
            .order_by(User.name)
        )
        return [
            {
                "membership_id": m.membership_id,
                "user_id": m.user_id,
                "name": name,
                "email": email,
                "role": m.role,
            }
            for m, name, email in result.all()
        ]

    async def add_member(
        self,
        user: User,
        farm_id: UUID,
        member_user_id: UUID,
        role: str,
    ) -> FarmMembership:
        await require_farm_access(self.session, user, farm_id, MANAGE_ROLES)
        if role not in FARM_ROLES:
            raise AppError("VALIDATION_ERROR", f"Invalid farm role: {role}")
        if await self.session.get(User, member_user_id) is None:
            raise AppError("USER_NOT_FOUND", metadata={"user_id": str(member_user_id)})
        if await get_membership(self.session, member_user_id, farm_id) is not None:
            raise AppError(
                "ALREADY_EXISTS",
                "User is already a member of this farm",
                metadata={"resource": "FarmMembership", "user_id": str(member_user_id)},
            )

        membership = FarmMembership(user_id=member_user_id, farm_id=farm_id, role=role)
        self.session.add(membership)
        await self.audit.record_audit(
            user.user_id,
            "add_member",
            "farm",
            farm_id,
            {"member_user_id": member_user_id, "role": role},
        )
        await self.session.flush()
        return membership

    async def remove_member(self, user: User, farm_id: UUID, member_user_id: UUID) -> None:
        await require_farm_access(self.session, user, farm_id, MANAGE_ROLES)
        membership = await get_membership(self.session, member_user_id, farm_id)
        if membership is None:
            raise AppError("NOT_FOUND", "Farm member not found")

        if membership.role == "owner":
            owners = await self.session.scalar(
                select(func.count())
                .select_from(FarmMembership)
                .where(FarmMembership.farm_id == farm_id, FarmMembership.role == "owner")
            )
            if (owners or 0) <= 1:
                raise AppError("VALIDATION_ERROR", "Cannot remove the last owner of a farm")

        await self.session.delete(membership)
        await self.audit.record_audit(
            user.user_id,
            "remove_member",
            "farm",
            farm_id,
            {"member_user_id": member_user_id},
        )
        await self.session.flush()
