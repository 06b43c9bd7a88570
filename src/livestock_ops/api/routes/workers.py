"""Worker profile and geofence endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, status

from livestock_ops.api.dependencies import CurrentUser, DbSession
from livestock_ops.api.schemas import (
    ErrorResponse,
    GeofenceResponse,
    GeofenceSave,
    WorkerCreate,
    WorkerResponse,
    WorkerUpdate,
)
from livestock_ops.errors import AppError
from livestock_ops.services.access import require_farm_access
from livestock_ops.services.worker_service import WorkerService

router = APIRouter(tags=["workers"])


# ============================================================================
# Worker profiles
# ============================================================================


@router.get(
    "/farms/{farm_id}/workers",
    response_model=list[WorkerResponse],
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def list_workers(
    db: DbSession,
    user: CurrentUser,
    farm_id: Annotated[UUID, Path()],
) -> list[WorkerResponse]:
    items = []
    for profile, name in await WorkerService(db).list_workers(user, farm_id):
        response = WorkerResponse.model_validate(profile)
        response.name = name
        items.append(response)
    return items


@router.post(
    "/farms/{farm_id}/workers",
    response_model=WorkerResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def create_worker(
    db: DbSession,
    user: CurrentUser,
    farm_id: Annotated[UUID, Path()],
    payload: WorkerCreate,
) -> WorkerResponse:
    """Create a worker profile for an existing user."""
    data = payload.model_dump()
    data["farm_id"] = farm_id
    profile = await WorkerService(db).create_worker_profile(user, data)
    return WorkerResponse.model_validate(profile)


@router.patch(
    "/workers/{worker_id}",
    response_model=WorkerResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def update_worker(
    db: DbSession,
    user: CurrentUser,
    worker_id: Annotated[UUID, Path()],
    payload: WorkerUpdate,
) -> WorkerResponse:
    profile = await WorkerService(db).update_worker_profile(
        user, worker_id, payload.model_dump(exclude_unset=True)
    )
    return WorkerResponse.model_validate(profile)


@router.delete(
    "/workers/{worker_id}",
    response_model=WorkerResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def remove_worker(
    db: DbSession,
    user: CurrentUser,
    worker_id: Annotated[UUID, Path()],
) -> WorkerResponse:
    """Terminate a worker and remove their farm membership."""
    profile = await WorkerService(db).remove_worker(user, worker_id)
    return WorkerResponse.model_validate(profile)


# ============================================================================
# Geofence
# ============================================================================


@router.get(
    "/farms/{farm_id}/geofence",
    response_model=GeofenceResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_geofence(
    db: DbSession,
    user: CurrentUser,
    farm_id: Annotated[UUID, Path()],
) -> GeofenceResponse:
    await require_farm_access(db, user, farm_id)
    geofence = await WorkerService(db).get_geofence(farm_id)
    if geofence is None:
        raise AppError("GEOFENCE_NOT_FOUND", metadata={"farm_id": str(farm_id)})
    return GeofenceResponse.model_validate(geofence)


@router.put(
    "/farms/{farm_id}/geofence",
    response_model=GeofenceResponse,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def save_geofence(
    db: DbSession,
    user: CurrentUser,
    farm_id: Annotated[UUID, Path()],
    payload: GeofenceSave,
) -> GeofenceResponse:
    """Create or replace the farm geofence."""
    geofence = await WorkerService(db).save_geofence(user, farm_id, payload.model_dump())
    return GeofenceResponse.model_validate(geofence)
