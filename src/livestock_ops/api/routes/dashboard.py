"""Dashboard endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path

from livestock_ops.api.dependencies import CurrentUser, DbSession
from livestock_ops.api.schemas import DashboardResponse, ErrorResponse
from livestock_ops.services.dashboard_service import DashboardService

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(db: DbSession, user: CurrentUser) -> DashboardResponse:
    """Summary across every farm the caller belongs to."""
    summary = await DashboardService(db).get_dashboard_summary(user)
    return DashboardResponse.model_validate(summary)


@router.get(
    "/farms/{farm_id}/dashboard",
    response_model=DashboardResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def farm_dashboard(
    db: DbSession,
    user: CurrentUser,
    farm_id: Annotated[UUID, Path()],
) -> DashboardResponse:
    summary = await DashboardService(db).get_dashboard_summary(user, farm_id)
    return DashboardResponse.model_validate(summary)
