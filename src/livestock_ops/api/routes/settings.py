"""User settings endpoints."""

from fastapi import APIRouter

from livestock_ops.api.dependencies import CurrentUser, DbSession
from livestock_ops.api.schemas import ErrorResponse, SettingsResponse, SettingsUpdate
from livestock_ops.services.settings_service import SettingsService

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("", response_model=SettingsResponse)
async def get_settings(db: DbSession, user: CurrentUser) -> SettingsResponse:
    """The caller's settings; defaults when nothing has been saved."""
    settings = await SettingsService(db).get_user_settings(user)
    return SettingsResponse.model_validate(settings)


@router.patch(
    "",
    response_model=SettingsResponse,
    responses={400: {"model": ErrorResponse}},
)
async def update_settings(
    db: DbSession,
    user: CurrentUser,
    payload: SettingsUpdate,
) -> SettingsResponse:
    settings = await SettingsService(db).update_user_settings(
        user, payload.model_dump(exclude_unset=True)
    )
    return SettingsResponse.model_validate(settings)


@router.post("/reset", response_model=SettingsResponse)
async def reset_settings(db: DbSession, user: CurrentUser) -> SettingsResponse:
    settings = await SettingsService(db).reset_user_settings(user)
    return SettingsResponse.model_validate(settings)
