"""Audit trail and in-app notifications."""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from livestock_ops.errors import AppError
from livestock_ops.models import AuditLog, FarmMembership, Notification
from livestock_ops.services.pagination import paginate

logger = logging.getLogger(__name__)


class AuditService:
    """Records who did what to which entity.

    Audit rows are written in the caller's transaction, so a rolled-back
    operation leaves no trail.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def record_audit(
        self,
        user_id: UUID | None,
        action: str,
        entity_type: str,
        entity_id: UUID | str | None = None,
        details: dict[str, Any] | None = None,
    ) -> AuditLog:
        entry = AuditLog(
            user_id=user_id,
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id) if entity_id is not None else None,
            details=_jsonable(details) if details else None,
        )
        self.session.add(entry)
        await self.session.flush()
        logger.debug("audit %s %s %s by %s", action, entity_type, entity_id, user_id)
        return entry

    async def list_audit_logs(
        self,
        user_id: UUID | None = None,
        entity_type: str | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[AuditLog], int]:
        """List entries, newest first. ``user_id`` None lists everyone's."""
        query = select(AuditLog)
        if user_id is not None:
            query = query.where(AuditLog.user_id == user_id)
        if entity_type:
            query = query.where(AuditLog.entity_type == entity_type)
        query = query.order_by(AuditLog.created_at.desc())
        return await paginate(self.session, query, page, page_size)


class NotificationService:
    """In-app notifications for farm events."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def notify(
        self,
        user_id: UUID,
        type: str,
        title: str,
        message: str,
        farm_id: UUID | None = None,
        action_url: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Notification:
        notification = Notification(
            user_id=user_id,
            farm_id=farm_id,
            type=type,
            title=title,
            message=message,
            action_url=action_url,
            extra=_jsonable(metadata) if metadata else None,
        )
        self.session.add(notification)
        await self.session.flush()
        return notification

    async def notify_farm_owners(
        self,
        farm_id: UUID,
        type: str,
        title: str,
        message: str,
        action_url: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> list[Notification]:
        result = await self.session.execute(
            select(FarmMembership.user_id).where(
                FarmMembership.farm_id == farm_id,
                FarmMembership.role == "owner",
            )
        )
        return [
            await self.notify(owner_id, type, title, message, farm_id, action_url, metadata)
            for owner_id in result.scalars().all()
        ]

    async def list_notifications(
        self,
        user_id: UUID,
        unread_only: bool = False,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Notification], int]:
        query = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            query = query.where(Notification.read.is_(False))
        query = query.order_by(Notification.created_at.desc())
        return await paginate(self.session, query, page, page_size)

    async def mark_read(self, user_id: UUID, notification_id: UUID) -> Notification:
        notification = await self.session.get(Notification, notification_id)
        if notification is None or notification.user_id != user_id:
            raise AppError(
                "NOTIFICATION_NOT_FOUND",
                metadata={"notification_id": str(notification_id)},
            )
        notification.read = True
        await self.session.flush()
        return notification

    async def mark_all_read(self, user_id: UUID) -> int:
        result = await self.session.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.read.is_(False))
            .values(read=True)
        )
        return result.rowcount or 0


def _jsonable(data: dict[str, Any]) -> dict[str, Any]:
    """Stringify values JSON columns cannot store (UUID, Decimal, dates)."""
    return {key: _jsonable_value(value) for key, value in data.items()}


def _jsonable_value(value: Any) -> Any:
    if isinstance(value, dict):
        return _jsonable(value)
    if isinstance(value, (list, tuple)):
        return [_jsonable_value(v) for v in value]
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)
