"""Check-in, check-out and attendance endpoints."""

from datetime import date as date_type
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, status

from livestock_ops.api.dependencies import CurrentUser, DbSession
from livestock_ops.api.schemas import (
    CheckInRequest,
    CheckInResponse,
    CheckOutRequest,
    ErrorResponse,
    OpenCheckInResponse,
    SyncRequest,
    SyncResponse,
    SyncResultResponse,
)
from livestock_ops.services.access import MANAGE_ROLES, require_farm_access
from livestock_ops.services.attendance_service import AttendanceService

router = APIRouter(prefix="/farms/{farm_id}", tags=["attendance"])


@router.get(
    "/attendance",
    response_model=list[CheckInResponse],
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def get_attendance(
    db: DbSession,
    user: CurrentUser,
    farm_id: Annotated[UUID, Path()],
    day: Annotated[date_type | None, Query(alias="date")] = None,
) -> list[CheckInResponse]:
    """Check-ins on one day (default today), newest first."""
    records = await AttendanceService(db).get_attendance_by_farm(user, farm_id, day)
    items = []
    for check_in, name in records:
        response = CheckInResponse.model_validate(check_in)
        response.worker_name = name
        items.append(response)
    return items


@router.post(
    "/check-in",
    response_model=CheckInResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def check_in(
    db: DbSession,
    user: CurrentUser,
    farm_id: Annotated[UUID, Path()],
    payload: CheckInRequest,
) -> CheckInResponse:
    """Check the caller in, verifying the location against the farm geofence."""
    record = await AttendanceService(db).check_in(
        user, farm_id, payload.latitude, payload.longitude, payload.accuracy
    )
    return CheckInResponse.model_validate(record)


@router.get("/check-in", response_model=OpenCheckInResponse | None)
async def get_open_check_in(
    db: DbSession,
    user: CurrentUser,
    farm_id: Annotated[UUID, Path()],
) -> OpenCheckInResponse | None:
    """The caller's open check-in on this farm, if any."""
    await require_farm_access(db, user, farm_id)
    open_check_in = await AttendanceService(db).get_open_check_in(user, farm_id)
    if open_check_in is None:
        return None
    return OpenCheckInResponse(**open_check_in)


@router.post(
    "/check-outs",
    response_model=CheckInResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def check_out(
    db: DbSession,
    user: CurrentUser,
    farm_id: Annotated[UUID, Path()],
    payload: CheckOutRequest,
) -> CheckInResponse:
    record = await AttendanceService(db).check_out(
        user, payload.check_in_id, payload.latitude, payload.longitude, payload.accuracy,
        farm_id=farm_id,
    )
    return CheckInResponse.model_validate(record)


@router.post("/attendance/sync", response_model=SyncResponse)
async def sync_offline(
    db: DbSession,
    user: CurrentUser,
    farm_id: Annotated[UUID, Path()],
    payload: SyncRequest,
) -> SyncResponse:
    """Upload check-ins recorded offline; each item reports its own outcome."""
    items = [{**item.model_dump(), "farm_id": farm_id} for item in payload.items]
    results = await AttendanceService(db).sync_offline_check_ins(user, items)
    synced = sum(1 for r in results if r.success)
    return SyncResponse(
        results=[SyncResultResponse.model_validate(r, from_attributes=True) for r in results],
        synced=synced,
        failed=len(results) - synced,
    )


@router.post(
    "/attendance/auto-check-out",
    response_model=list[CheckInResponse],
    responses={403: {"model": ErrorResponse}},
)
async def auto_check_out(
    db: DbSession,
    user: CurrentUser,
    farm_id: Annotated[UUID, Path()],
) -> list[CheckInResponse]:
    """Close check-ins left open from previous days (owner or manager)."""
    await require_farm_access(db, user, farm_id, MANAGE_ROLES)
    closed = await AttendanceService(db).auto_check_out_stale(farm_id)
    return [CheckInResponse.model_validate(c) for c in closed]
