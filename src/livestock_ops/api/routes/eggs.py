"""Egg collection endpoints."""

from datetime import date as date_type
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, status

from livestock_ops.api.dependencies import CurrentUser, DbSession
from livestock_ops.api.schemas import (
    EggRecordCreate,
    EggRecordListResponse,
    EggRecordResponse,
    EggRecordUpdate,
    EggSummaryResponse,
    ErrorResponse,
)
from livestock_ops.services.egg_service import EggService

router = APIRouter(tags=["eggs"])


@router.get("/farms/{farm_id}/eggs", response_model=EggRecordListResponse)
async def list_egg_records(
    db: DbSession,
    user: CurrentUser,
    farm_id: Annotated[UUID, Path()],
    batch_id: UUID | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 20,
) -> EggRecordListResponse:
    records, total = await EggService(db).list_egg_records(
        user, farm_id, batch_id, page, page_size
    )
    return EggRecordListResponse(
        items=[EggRecordResponse.model_validate(r) for r in records],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.post(
    "/farms/{farm_id}/eggs",
    response_model=EggRecordResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def create_egg_record(
    db: DbSession,
    user: CurrentUser,
    farm_id: Annotated[UUID, Path()],
    payload: EggRecordCreate,
) -> EggRecordResponse:
    """Record a day's collection for a poultry batch."""
    data = payload.model_dump()
    data["farm_id"] = farm_id
    record = await EggService(db).create_egg_record(user, data)
    return EggRecordResponse.model_validate(record)


@router.patch(
    "/eggs/{record_id}",
    response_model=EggRecordResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def update_egg_record(
    db: DbSession,
    user: CurrentUser,
    record_id: Annotated[UUID, Path()],
    payload: EggRecordUpdate,
) -> EggRecordResponse:
    record = await EggService(db).update_egg_record(
        user, record_id, payload.model_dump(exclude_unset=True)
    )
    return EggRecordResponse.model_validate(record)


@router.delete(
    "/eggs/{record_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
async def delete_egg_record(
    db: DbSession,
    user: CurrentUser,
    record_id: Annotated[UUID, Path()],
) -> None:
    await EggService(db).delete_egg_record(user, record_id)


@router.get(
    "/batches/{batch_id}/egg-summary",
    response_model=EggSummaryResponse,
    responses={404: {"model": ErrorResponse}},
)
async def batch_egg_summary(
    db: DbSession,
    user: CurrentUser,
    batch_id: Annotated[UUID, Path()],
    start: date_type | None = None,
    end: date_type | None = None,
) -> EggSummaryResponse:
    result = await EggService(db).get_batch_summary(user, batch_id, start, end)
    summary = result.summary
    return EggSummaryResponse(
        batch_id=batch_id,
        total_collected=summary.total_collected,
        total_broken=summary.total_broken,
        total_sold=summary.total_sold,
        current_inventory=summary.current_inventory,
        record_count=summary.record_count,
        flock_size=result.flock_size,
        laying_percentage=result.laying_percentage,
    )
