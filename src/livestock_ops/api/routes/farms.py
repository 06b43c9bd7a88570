"""Farm and membership endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, status

from livestock_ops.api.dependencies import CurrentUser, DbSession
from livestock_ops.api.schemas import (
    ErrorResponse,
    FarmCreate,
    FarmResponse,
    MemberCreate,
    MemberResponse,
)
from livestock_ops.services.access import get_membership
from livestock_ops.services.farm_service import FarmService

router = APIRouter(prefix="/farms", tags=["farms"])


@router.post(
    "",
    response_model=FarmResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
async def create_farm(db: DbSession, user: CurrentUser, payload: FarmCreate) -> FarmResponse:
    """Create a farm owned by the caller."""
    farm = await FarmService(db).create_farm(
        user,
        name=payload.name,
        location=payload.location,
        farm_type=payload.farm_type,
        district_id=payload.district_id,
    )
    response = FarmResponse.model_validate(farm)
    response.role = "owner"
    return response


@router.get("", response_model=list[FarmResponse])
async def list_farms(db: DbSession, user: CurrentUser) -> list[FarmResponse]:
    """Farms the caller belongs to, with the caller's role."""
    items = []
    for farm, role in await FarmService(db).list_farms(user):
        response = FarmResponse.model_validate(farm)
        response.role = role
        items.append(response)
    return items


@router.get(
    "/{farm_id}",
    response_model=FarmResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def get_farm(
    db: DbSession,
    user: CurrentUser,
    farm_id: Annotated[UUID, Path()],
) -> FarmResponse:
    farm = await FarmService(db).get_farm(user, farm_id)
    response = FarmResponse.model_validate(farm)
    membership = await get_membership(db, user.user_id, farm_id)
    response.role = membership.role if membership else "admin"
    return response


@router.get(
    "/{farm_id}/members",
    response_model=list[MemberResponse],
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def list_members(
    db: DbSession,
    user: CurrentUser,
    farm_id: Annotated[UUID, Path()],
) -> list[MemberResponse]:
    members = await FarmService(db).list_members(user, farm_id)
    return [MemberResponse(**member) for member in members]


@router.post(
    "/{farm_id}/members",
    response_model=MemberResponse,
    status_code=status.HTTP_201_CREATED,
    responses={403: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def add_member(
    db: DbSession,
    user: CurrentUser,
    farm_id: Annotated[UUID, Path()],
    payload: MemberCreate,
) -> MemberResponse:
    """Add an existing user to the farm (owner or manager only)."""
    service = FarmService(db)
    membership = await service.add_member(user, farm_id, payload.user_id, payload.role)
    members = await service.list_members(user, farm_id)
    match = next(m for m in members if m["membership_id"] == membership.membership_id)
    return MemberResponse(**match)


@router.delete(
    "/{farm_id}/members/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def remove_member(
    db: DbSession,
    user: CurrentUser,
    farm_id: Annotated[UUID, Path()],
    user_id: Annotated[UUID, Path()],
) -> None:
    await FarmService(db).remove_member(user, farm_id, user_id)
