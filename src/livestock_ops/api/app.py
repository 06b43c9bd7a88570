"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from livestock_ops.api.routes import (
    admin_router,
    attendance_router,
    auth_router,
    batches_router,
    dashboard_router,
    eggs_router,
    exports_router,
    farms_router,
    feed_router,
    finance_router,
    health_router,
    notifications_router,
    payroll_router,
    settings_router,
    tasks_router,
    workers_router,
)
from livestock_ops.config import get_settings
from livestock_ops.database import dispose_db, init_db
from livestock_ops.errors import AppError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup
    init_db()
    yield
    # Shutdown
    await dispose_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    app = FastAPI(
        title="Livestock Ops API",
        description="Farm operations: workforce, tasks, payroll, eggs, feed and extension",
        version=settings.app_version,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        """Render expected service failures with their error code."""
        return JSONResponse(status_code=exc.http_status, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            },
        )

    # Include routers
    app.include_router(health_router)
    for router in (
        auth_router,
        farms_router,
        workers_router,
        attendance_router,
        tasks_router,
        payroll_router,
        batches_router,
        eggs_router,
        feed_router,
        finance_router,
        settings_router,
        notifications_router,
        admin_router,
        dashboard_router,
        exports_router,
    ):
        app.include_router(router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
