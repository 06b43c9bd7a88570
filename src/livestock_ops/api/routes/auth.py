"""Login and current-user endpoints."""

from fastapi import APIRouter

from livestock_ops.api.dependencies import CurrentUser, DbSession
from livestock_ops.api.schemas import (
    ErrorResponse,
    FarmAssignment,
    LoginRequest,
    TokenResponse,
    UserDetailResponse,
    UserResponse,
)
from livestock_ops.security import create_access_token
from livestock_ops.services.user_service import UserService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def login(db: DbSession, payload: LoginRequest) -> TokenResponse:
    """Exchange email and password for a bearer token."""
    user = await UserService(db).authenticate(payload.email, payload.password)
    return TokenResponse(
        access_token=create_access_token(user.user_id, user.role),
        user=UserResponse.model_validate(user),
    )


@router.get(
    "/me",
    response_model=UserDetailResponse,
    responses={401: {"model": ErrorResponse}},
)
async def me(db: DbSession, user: CurrentUser) -> UserDetailResponse:
    """The authenticated user with their farm roles."""
    farms = await UserService(db).get_farm_assignments(user.user_id)
    response = UserDetailResponse.model_validate(user)
    response.farms = [FarmAssignment(**farm) for farm in farms]
    return response
