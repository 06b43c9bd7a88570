"""Health check endpoints."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Response, status
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from livestock_ops.api.dependencies import DbSession
from livestock_ops.config import get_settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    timestamp: datetime
    database: str


async def _database_status(db: AsyncSession) -> str:
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.warning("Database health check failed", exc_info=True)
        return "unhealthy"
    return "healthy"


@router.get("/health", response_model=HealthResponse)
async def health_check(db: DbSession) -> HealthResponse:
    """Report API version and database reachability."""
    db_status = await _database_status(db)
    return HealthResponse(
        status="healthy" if db_status == "healthy" else "degraded",
        version=get_settings().app_version,
        timestamp=datetime.now(timezone.utc),
        database=db_status,
    )


@router.get("/ready")
async def readiness_check(db: DbSession, response: Response) -> dict[str, str]:
    """Ready once the database answers; 503 otherwise."""
    if await _database_status(db) != "healthy":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return {"status": "not_ready"}
    return {"status": "ready"}


@router.get("/live")
async def liveness_check() -> dict[str, str]:
    return {"status": "alive"}
