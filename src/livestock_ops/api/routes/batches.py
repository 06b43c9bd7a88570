"""Batch and mortality endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, status

from livestock_ops.api.dependencies import CurrentUser, DbSession
from livestock_ops.api.schemas import (
    BatchCreate,
    BatchHealthResponse,
    BatchResponse,
    BatchUpdate,
    ErrorResponse,
    MortalityCreate,
    MortalityResponse,
)
from livestock_ops.services.batch_service import BatchHealth, BatchService

router = APIRouter(tags=["batches"])


def health_response(health: BatchHealth) -> BatchHealthResponse:
    return BatchHealthResponse(
        **BatchResponse.model_validate(health.batch).model_dump(),
        total_deaths=health.total_deaths,
        mortality_rate=health.mortality_rate,
        health_status=health.health_status,
    )


@router.get("/farms/{farm_id}/batches", response_model=list[BatchHealthResponse])
async def list_batches(
    db: DbSession,
    user: CurrentUser,
    farm_id: Annotated[UUID, Path()],
    batch_status: Annotated[str | None, Query(alias="status")] = None,
) -> list[BatchHealthResponse]:
    batches = await BatchService(db).list_batches(user, farm_id, batch_status)
    return [health_response(b) for b in batches]


@router.post(
    "/farms/{farm_id}/batches",
    response_model=BatchResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def create_batch(
    db: DbSession,
    user: CurrentUser,
    farm_id: Annotated[UUID, Path()],
    payload: BatchCreate,
) -> BatchResponse:
    batch = await BatchService(db).create_batch(user, farm_id, payload.model_dump())
    return BatchResponse.model_validate(batch)


@router.get(
    "/batches/{batch_id}",
    response_model=BatchHealthResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_batch(
    db: DbSession,
    user: CurrentUser,
    batch_id: Annotated[UUID, Path()],
) -> BatchHealthResponse:
    """A batch with its mortality rate and regional health status."""
    return health_response(await BatchService(db).get_batch(user, batch_id))


@router.patch(
    "/batches/{batch_id}",
    response_model=BatchResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def update_batch(
    db: DbSession,
    user: CurrentUser,
    batch_id: Annotated[UUID, Path()],
    payload: BatchUpdate,
) -> BatchResponse:
    batch = await BatchService(db).update_batch(
        user, batch_id, payload.model_dump(exclude_unset=True)
    )
    return BatchResponse.model_validate(batch)


@router.delete(
    "/batches/{batch_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def delete_batch(
    db: DbSession,
    user: CurrentUser,
    batch_id: Annotated[UUID, Path()],
) -> None:
    await BatchService(db).delete_batch(user, batch_id)


@router.get("/batches/{batch_id}/mortality", response_model=list[MortalityResponse])
async def list_mortality(
    db: DbSession,
    user: CurrentUser,
    batch_id: Annotated[UUID, Path()],
) -> list[MortalityResponse]:
    records = await BatchService(db).list_mortality(user, batch_id)
    return [MortalityResponse.model_validate(r) for r in records]


@router.post(
    "/batches/{batch_id}/mortality",
    response_model=MortalityResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def record_mortality(
    db: DbSession,
    user: CurrentUser,
    batch_id: Annotated[UUID, Path()],
    payload: MortalityCreate,
) -> MortalityResponse:
    record = await BatchService(db).record_mortality(user, batch_id, payload.model_dump())
    return MortalityResponse.model_validate(record)


@router.delete(
    "/mortality/{record_id}",
    response_model=BatchResponse,
    responses={404: {"model": ErrorResponse}},
)
async def delete_mortality(
    db: DbSession,
    user: CurrentUser,
    record_id: Annotated[UUID, Path()],
) -> BatchResponse:
    """Delete a mortality record; returns the restocked batch."""
    batch = await BatchService(db).delete_mortality(user, record_id)
    return BatchResponse.model_validate(batch)
