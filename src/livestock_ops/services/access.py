"""Farm-scoped authorization checks."""

from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from livestock_ops.errors import AppError
from livestock_ops.models import Farm, FarmMembership, User

FARM_ROLES = ("owner", "manager", "viewer", "worker")
MANAGE_ROLES = ("owner", "manager")


async def get_membership(
    session: AsyncSession,
    user_id: UUID,
    farm_id: UUID,
) -> FarmMembership | None:
    result = await session.execute(
        select(FarmMembership).where(
            FarmMembership.user_id == user_id,
            FarmMembership.farm_id == farm_id,
        )
    )
    return result.scalar_one_or_none()


async def require_farm_access(
    session: AsyncSession,
    user: User,
    farm_id: UUID,
    roles: Iterable[str] | None = None,
) -> Farm:
    """Return the farm if ``user`` may act on it.

    Admins pass every check. Other users need a membership, and one of
    ``roles`` when given.

    Raises:
        AppError: FARM_NOT_FOUND or ACCESS_DENIED.
    """
    farm = await session.get(Farm, farm_id)
    if farm is None:
        raise AppError("FARM_NOT_FOUND", metadata={"farm_id": str(farm_id)})

    if user.is_admin:
        return farm

    membership = await get_membership(session, user.user_id, farm_id)
    if membership is None:
        raise AppError("ACCESS_DENIED", "You do not have access to this farm")
    if roles is not None and membership.role not in set(roles):
        raise AppError(
            "ACCESS_DENIED",
            "Your farm role does not allow this action",
            metadata={"role": membership.role},
        )
    return farm


async def get_user_farm_ids(session: AsyncSession, user: User) -> list[UUID]:
    """Farms visible to ``user`` (all farms for admins)."""
    if user.is_admin:
        result = await session.execute(select(Farm.farm_id))
    else:
        result = await session.execute(
            select(FarmMembership.farm_id).where(FarmMembership.user_id == user.user_id)
        )
    return list(result.scalars().all())
