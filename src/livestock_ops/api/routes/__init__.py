"""API routes."""

from livestock_ops.api.routes.admin import router as admin_router
from livestock_ops.api.routes.attendance import router as attendance_router
from livestock_ops.api.routes.auth import router as auth_router
from livestock_ops.api.routes.batches import router as batches_router
from livestock_ops.api.routes.dashboard import router as dashboard_router
from livestock_ops.api.routes.eggs import router as eggs_router
from livestock_ops.api.routes.exports import router as exports_router
from livestock_ops.api.routes.farms import router as farms_router
from livestock_ops.api.routes.feed import router as feed_router
from livestock_ops.api.routes.finance import router as finance_router
from livestock_ops.api.routes.health import router as health_router
from livestock_ops.api.routes.notifications import router as notifications_router
from livestock_ops.api.routes.payroll import router as payroll_router
from livestock_ops.api.routes.settings import router as settings_router
from livestock_ops.api.routes.tasks import router as tasks_router
from livestock_ops.api.routes.workers import router as workers_router

__all__ = [
    "admin_router",
    "attendance_router",
    "auth_router",
    "batches_router",
    "dashboard_router",
    "eggs_router",
    "exports_router",
    "farms_router",
    "feed_router",
    "finance_router",
    "health_router",
    "notifications_router",
    "payroll_router",
    "settings_router",
    "tasks_router",
    "workers_router",
]
