"""Notification and audit log endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query

from livestock_ops.api.dependencies import CurrentUser, DbSession
from livestock_ops.api.schemas import (
    AuditLogListResponse,
    AuditLogResponse,
    ErrorResponse,
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationResponse,
)
from livestock_ops.services.audit_service import AuditService, NotificationService

router = APIRouter(tags=["notifications"])


@router.get("/notifications", response_model=NotificationListResponse)
async def list_notifications(
    db: DbSession,
    user: CurrentUser,
    unread_only: bool = False,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 20,
) -> NotificationListResponse:
    items, total = await NotificationService(db).list_notifications(
        user.user_id, unread_only, page, page_size
    )
    return NotificationListResponse(
        items=[NotificationResponse.model_validate(n) for n in items],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.post(
    "/notifications/{notification_id}/read",
    response_model=NotificationResponse,
    responses={404: {"model": ErrorResponse}},
)
async def mark_read(
    db: DbSession,
    user: CurrentUser,
    notification_id: Annotated[UUID, Path()],
) -> NotificationResponse:
    notification = await NotificationService(db).mark_read(user.user_id, notification_id)
    return NotificationResponse.model_validate(notification)


@router.post("/notifications/read-all", response_model=MarkAllReadResponse)
async def mark_all_read(db: DbSession, user: CurrentUser) -> MarkAllReadResponse:
    updated = await NotificationService(db).mark_all_read(user.user_id)
    return MarkAllReadResponse(updated=updated)


@router.get("/audit-logs", response_model=AuditLogListResponse)
async def list_audit_logs(
    db: DbSession,
    user: CurrentUser,
    entity_type: str | None = None,
    user_id: UUID | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 20,
) -> AuditLogListResponse:
    """Audit trail: admins see everyone's entries, other users their own."""
    if not user.is_admin:
        user_id = user.user_id
    items, total = await AuditService(db).list_audit_logs(user_id, entity_type, page, page_size)
    return AuditLogListResponse(
        items=[AuditLogResponse.model_validate(entry) for entry in items],
        total=total,
        page=page,
        page_size=page_size,
    )
