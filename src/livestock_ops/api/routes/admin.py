"""Admin endpoints: users, regions, district agents and species thresholds."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, status

from livestock_ops.api.dependencies import AdminUser, DbSession
from livestock_ops.api.schemas import (
    BanRequest,
    CountryNodeResponse,
    DistrictAssignmentCreate,
    DistrictAssignmentsResponse,
    ErrorResponse,
    FarmAssignment,
    MessageResponse,
    RegionCreate,
    RegionResponse,
    RegionUpdate,
    RoleUpdate,
    SetPasswordRequest,
    SpeciesThresholdsResponse,
    ThresholdResponse,
    ThresholdUpsert,
    UserCreate,
    UserDetailResponse,
    UserDistrictResponse,
    UserListResponse,
    UserResponse,
)
from livestock_ops.services.extension_service import ExtensionService
from livestock_ops.services.user_service import UserService

router = APIRouter(prefix="/admin", tags=["admin"])


# ============================================================================
# Users
# ============================================================================


@router.get("/users", response_model=UserListResponse)
async def list_users(
    db: DbSession,
    admin: AdminUser,
    search: str | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 20,
) -> UserListResponse:
    users, total = await UserService(db).list_users(search, page, page_size)
    return UserListResponse(
        items=[UserResponse.model_validate(u) for u in users],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.post(
    "/users",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def create_user(db: DbSession, admin: AdminUser, payload: UserCreate) -> UserResponse:
    user = await UserService(db).create_user(admin, payload.model_dump())
    return UserResponse.model_validate(user)


@router.get(
    "/users/{user_id}",
    response_model=UserDetailResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_user(
    db: DbSession,
    admin: AdminUser,
    user_id: Annotated[UUID, Path()],
) -> UserDetailResponse:
    service = UserService(db)
    user = await service.get_user(user_id)
    response = UserDetailResponse.model_validate(user)
    response.farms = [FarmAssignment(**f) for f in await service.get_farm_assignments(user_id)]
    return response


@router.post(
    "/users/{user_id}/password",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def set_password(
    db: DbSession,
    admin: AdminUser,
    user_id: Annotated[UUID, Path()],
    payload: SetPasswordRequest,
) -> MessageResponse:
    await UserService(db).set_password(admin, user_id, payload.new_password)
    return MessageResponse(message="Password updated")


@router.post(
    "/users/{user_id}/ban",
    response_model=UserResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def ban_user(
    db: DbSession,
    admin: AdminUser,
    user_id: Annotated[UUID, Path()],
    payload: BanRequest,
) -> UserResponse:
    """Ban a user, permanently or until ``expires_at``."""
    user = await UserService(db).ban_user(admin, user_id, payload.reason, payload.expires_at)
    return UserResponse.model_validate(user)


@router.post(
    "/users/{user_id}/unban",
    response_model=UserResponse,
    responses={404: {"model": ErrorResponse}},
)
async def unban_user(
    db: DbSession,
    admin: AdminUser,
    user_id: Annotated[UUID, Path()],
) -> UserResponse:
    user = await UserService(db).unban_user(admin, user_id)
    return UserResponse.model_validate(user)


@router.patch(
    "/users/{user_id}/role",
    response_model=UserResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def update_role(
    db: DbSession,
    admin: AdminUser,
    user_id: Annotated[UUID, Path()],
    payload: RoleUpdate,
) -> UserResponse:
    user = await UserService(db).update_role(admin, user_id, payload.role)
    return UserResponse.model_validate(user)


@router.delete(
    "/users/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def remove_user(
    db: DbSession,
    admin: AdminUser,
    user_id: Annotated[UUID, Path()],
) -> None:
    await UserService(db).remove_user(admin, user_id)


# ============================================================================
# Regions
# ============================================================================


@router.get("/regions", response_model=list[CountryNodeResponse])
async def region_tree(db: DbSession, admin: AdminUser) -> list[CountryNodeResponse]:
    """Countries, their regions and each region's districts."""
    tree = await ExtensionService(db).get_region_tree()
    return [CountryNodeResponse.model_validate(node, from_attributes=True) for node in tree]


@router.post(
    "/regions",
    response_model=RegionResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def create_region(
    db: DbSession,
    admin: AdminUser,
    payload: RegionCreate,
) -> RegionResponse:
    region = await ExtensionService(db).create_region(admin, payload.model_dump())
    return RegionResponse.model_validate(region)


@router.patch(
    "/regions/{region_id}",
    response_model=RegionResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def update_region(
    db: DbSession,
    admin: AdminUser,
    region_id: Annotated[UUID, Path()],
    payload: RegionUpdate,
) -> RegionResponse:
    region = await ExtensionService(db).update_region(
        admin, region_id, payload.name, payload.slug
    )
    return RegionResponse.model_validate(region)


@router.post(
    "/regions/{region_id}/deactivate",
    response_model=RegionResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def deactivate_region(
    db: DbSession,
    admin: AdminUser,
    region_id: Annotated[UUID, Path()],
) -> RegionResponse:
    """Deactivate a region without active children or assigned farms."""
    region = await ExtensionService(db).deactivate_region(admin, region_id)
    return RegionResponse.model_validate(region)


# ============================================================================
# District agents
# ============================================================================


@router.get("/districts", response_model=DistrictAssignmentsResponse)
async def district_assignments(db: DbSession, admin: AdminUser) -> DistrictAssignmentsResponse:
    assignments, districts = await ExtensionService(db).get_district_assignments()
    return DistrictAssignmentsResponse(
        assignments=assignments,
        districts=[RegionResponse.model_validate(d) for d in districts],
    )


@router.post(
    "/districts/assignments",
    response_model=UserDistrictResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def assign_district(
    db: DbSession,
    admin: AdminUser,
    payload: DistrictAssignmentCreate,
) -> UserDistrictResponse:
    assignment = await ExtensionService(db).assign_user_to_district(
        admin, payload.user_id, payload.district_id, payload.is_supervisor
    )
    return UserDistrictResponse.model_validate(assignment)


@router.delete(
    "/districts/{district_id}/users/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
async def remove_district_assignment(
    db: DbSession,
    admin: AdminUser,
    district_id: Annotated[UUID, Path()],
    user_id: Annotated[UUID, Path()],
) -> None:
    await ExtensionService(db).remove_user_from_district(admin, user_id, district_id)


@router.post(
    "/districts/{district_id}/users/{user_id}/supervisor",
    response_model=UserDistrictResponse,
    responses={404: {"model": ErrorResponse}},
)
async def toggle_supervisor(
    db: DbSession,
    admin: AdminUser,
    district_id: Annotated[UUID, Path()],
    user_id: Annotated[UUID, Path()],
) -> UserDistrictResponse:
    assignment = await ExtensionService(db).toggle_supervisor_status(
        admin, user_id, district_id
    )
    return UserDistrictResponse.model_validate(assignment)


# ============================================================================
# Species thresholds
# ============================================================================


@router.get("/thresholds", response_model=list[SpeciesThresholdsResponse])
async def list_thresholds(db: DbSession, admin: AdminUser) -> list[SpeciesThresholdsResponse]:
    """Default mortality thresholds per species with regional overrides."""
    thresholds = await ExtensionService(db).get_species_thresholds()
    return [SpeciesThresholdsResponse.model_validate(t) for t in thresholds]


@router.put(
    "/thresholds",
    response_model=ThresholdResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def upsert_threshold(
    db: DbSession,
    admin: AdminUser,
    payload: ThresholdUpsert,
) -> ThresholdResponse:
    threshold = await ExtensionService(db).upsert_species_threshold(
        admin,
        payload.species,
        payload.amber_threshold,
        payload.red_threshold,
        payload.region_id,
    )
    return ThresholdResponse.model_validate(threshold)


@router.delete(
    "/thresholds/{threshold_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
async def delete_threshold(
    db: DbSession,
    admin: AdminUser,
    threshold_id: Annotated[UUID, Path()],
) -> None:
    await ExtensionService(db).delete_species_threshold(admin, threshold_id)
