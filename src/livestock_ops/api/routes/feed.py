"""Feed record and feed inventory endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, status

from livestock_ops.api.dependencies import CurrentUser, DbSession
from livestock_ops.api.schemas import (
    ErrorResponse,
    FeedRecordCreate,
    FeedRecordListResponse,
    FeedRecordResponse,
    FeedRecordUpdate,
    FeedSummaryResponse,
    InventoryCreate,
    InventoryResponse,
    InventoryUpdate,
)
from livestock_ops.services.feed_service import FeedService, InventoryItem

router = APIRouter(tags=["feed"])


def inventory_response(item: InventoryItem) -> InventoryResponse:
    response = InventoryResponse.model_validate(item.inventory)
    response.low_stock = item.low_stock
    return response


# ============================================================================
# Feed records
# ============================================================================


@router.get("/farms/{farm_id}/feed", response_model=FeedRecordListResponse)
async def list_feed_records(
    db: DbSession,
    user: CurrentUser,
    farm_id: Annotated[UUID, Path()],
    batch_id: UUID | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 20,
) -> FeedRecordListResponse:
    records, total = await FeedService(db).list_feed_records(
        user, farm_id, batch_id, page, page_size
    )
    return FeedRecordListResponse(
        items=[FeedRecordResponse.model_validate(r) for r in records],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/farms/{farm_id}/feed/summary", response_model=FeedSummaryResponse)
async def feed_summary(
    db: DbSession,
    user: CurrentUser,
    farm_id: Annotated[UUID, Path()],
) -> FeedSummaryResponse:
    summary = await FeedService(db).get_feed_summary(user, farm_id)
    return FeedSummaryResponse.model_validate(summary)


@router.post(
    "/farms/{farm_id}/feed",
    response_model=FeedRecordResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def create_feed_record(
    db: DbSession,
    user: CurrentUser,
    farm_id: Annotated[UUID, Path()],
    payload: FeedRecordCreate,
) -> FeedRecordResponse:
    """Log feed given to a batch, deducting from inventory when one is named."""
    data = payload.model_dump()
    data["farm_id"] = farm_id
    record = await FeedService(db).create_feed_record(user, data)
    return FeedRecordResponse.model_validate(record)


@router.patch(
    "/feed/{record_id}",
    response_model=FeedRecordResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def update_feed_record(
    db: DbSession,
    user: CurrentUser,
    record_id: Annotated[UUID, Path()],
    payload: FeedRecordUpdate,
) -> FeedRecordResponse:
    record = await FeedService(db).update_feed_record(
        user, record_id, payload.model_dump(exclude_unset=True)
    )
    return FeedRecordResponse.model_validate(record)


@router.delete(
    "/feed/{record_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
async def delete_feed_record(
    db: DbSession,
    user: CurrentUser,
    record_id: Annotated[UUID, Path()],
) -> None:
    await FeedService(db).delete_feed_record(user, record_id)


# ============================================================================
# Feed inventory
# ============================================================================


@router.get("/farms/{farm_id}/feed-inventory", response_model=list[InventoryResponse])
async def list_inventory(
    db: DbSession,
    user: CurrentUser,
    farm_id: Annotated[UUID, Path()],
) -> list[InventoryResponse]:
    items = await FeedService(db).list_inventory(user, farm_id)
    return [inventory_response(item) for item in items]


@router.post(
    "/farms/{farm_id}/feed-inventory",
    response_model=InventoryResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def create_inventory(
    db: DbSession,
    user: CurrentUser,
    farm_id: Annotated[UUID, Path()],
    payload: InventoryCreate,
) -> InventoryResponse:
    inventory = await FeedService(db).create_inventory(
        user, farm_id, payload.feed_type, payload.quantity_kg, payload.min_threshold_kg
    )
    return inventory_response(InventoryItem(inventory))


@router.patch(
    "/feed-inventory/{inventory_id}",
    response_model=InventoryResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def update_inventory(
    db: DbSession,
    user: CurrentUser,
    inventory_id: Annotated[UUID, Path()],
    payload: InventoryUpdate,
) -> InventoryResponse:
    inventory = await FeedService(db).update_inventory(
        user, inventory_id, payload.quantity_kg, payload.min_threshold_kg
    )
    return inventory_response(InventoryItem(inventory))


@router.delete(
    "/feed-inventory/{inventory_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
async def delete_inventory(
    db: DbSession,
    user: CurrentUser,
    inventory_id: Annotated[UUID, Path()],
) -> None:
    await FeedService(db).delete_inventory(user, inventory_id)
