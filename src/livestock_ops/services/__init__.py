"""Livestock ops services."""

from livestock_ops.services.attendance_service import AttendanceService
from livestock_ops.services.audit_service import AuditService, NotificationService
from livestock_ops.services.dashboard_service import DashboardService
from livestock_ops.services.egg_service import EggService
from livestock_ops.services.export_service import ExportService
from livestock_ops.services.extension_service import ExtensionService
from livestock_ops.services.farm_service import FarmService
from livestock_ops.services.feed_service import FeedService
from livestock_ops.services.payroll_service import PayrollService
from livestock_ops.services.settings_service import SettingsService
from livestock_ops.services.state_machine import (
    InvalidTransitionError,
    TaskAssignmentStateMachine,
    TaskAssignmentStatus,
)
from livestock_ops.services.task_service import TaskService
from livestock_ops.services.user_service import UserService
from livestock_ops.services.worker_service import WorkerService

__all__ = [
    "TaskAssignmentStateMachine",
    "TaskAssignmentStatus",
    "InvalidTransitionError",
    "AttendanceService",
    "AuditService",
    "NotificationService",
    "DashboardService",
    "EggService",
    "ExportService",
    "ExtensionService",
    "FarmService",
    "FeedService",
    "PayrollService",
    "SettingsService",
    "TaskService",
    "UserService",
    "WorkerService",
]
