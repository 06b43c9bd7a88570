"""Application error codes and the exception carrying them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ErrorDefinition:
    """Static description of an error code."""

    code: int
    http_status: int
    category: str
    message: str


ERROR_CODES: dict[str, ErrorDefinition] = {
    # Auth (401xx)
    "UNAUTHORIZED": ErrorDefinition(40100, 401, "AUTH", "Not authenticated"),
    "SESSION_EXPIRED": ErrorDefinition(40101, 401, "AUTH", "Session expired"),
    "INVALID_CREDENTIALS": ErrorDefinition(40102, 401, "AUTH", "Invalid credentials"),
    # Forbidden (403xx)
    "ACCESS_DENIED": ErrorDefinition(40300, 403, "FORBIDDEN", "Access denied"),
    "BANNED": ErrorDefinition(40301, 403, "FORBIDDEN", "User is banned"),
    "NOT_TASK_ASSIGNEE": ErrorDefinition(40302, 403, "FORBIDDEN", "Not assigned to this task"),
    # Not found (404xx)
    "NOT_FOUND": ErrorDefinition(40400, 404, "NOT_FOUND", "Resource not found"),
    "FARM_NOT_FOUND": ErrorDefinition(40401, 404, "NOT_FOUND", "Farm not found"),
    "BATCH_NOT_FOUND": ErrorDefinition(40402, 404, "NOT_FOUND", "Batch not found"),
    "SALE_NOT_FOUND": ErrorDefinition(40407, 404, "NOT_FOUND", "Sale not found"),
    "FEED_RECORD_NOT_FOUND": ErrorDefinition(40408, 404, "NOT_FOUND", "Feed record not found"),
    "EGG_RECORD_NOT_FOUND": ErrorDefinition(40413, 404, "NOT_FOUND", "Egg record not found"),
    "EXPENSE_NOT_FOUND": ErrorDefinition(40414, 404, "NOT_FOUND", "Expense not found"),
    "MORTALITY_RECORD_NOT_FOUND": ErrorDefinition(
        40415, 404, "NOT_FOUND", "Mortality record not found"
    ),
    "USER_NOT_FOUND": ErrorDefinition(40416, 404, "NOT_FOUND", "User not found"),
    "FEED_INVENTORY_NOT_FOUND": ErrorDefinition(
        40418, 404, "NOT_FOUND", "Feed inventory not found"
    ),
    "WORKER_PROFILE_NOT_FOUND": ErrorDefinition(
        40426, 404, "NOT_FOUND", "Worker profile not found"
    ),
    "GEOFENCE_NOT_FOUND": ErrorDefinition(40427, 404, "NOT_FOUND", "Geofence not found"),
    "TASK_ASSIGNMENT_NOT_FOUND": ErrorDefinition(
        40428, 404, "NOT_FOUND", "Task assignment not found"
    ),
    "PAYROLL_PERIOD_NOT_FOUND": ErrorDefinition(
        40429, 404, "NOT_FOUND", "Payroll period not found"
    ),
    "CHECK_IN_NOT_FOUND": ErrorDefinition(40430, 404, "NOT_FOUND", "Check-in record not found"),
    "REGION_NOT_FOUND": ErrorDefinition(40434, 404, "NOT_FOUND", "Region not found"),
    "TASK_NOT_FOUND": ErrorDefinition(40441, 404, "NOT_FOUND", "Task not found"),
    "NOTIFICATION_NOT_FOUND": ErrorDefinition(40442, 404, "NOT_FOUND", "Notification not found"),
    # Validation (400xx / 409xx)
    "VALIDATION_ERROR": ErrorDefinition(40000, 400, "VALIDATION", "Validation failed"),
    "INSUFFICIENT_STOCK": ErrorDefinition(40002, 400, "VALIDATION", "Insufficient stock"),
    "NO_OPEN_CHECK_IN": ErrorDefinition(40005, 400, "VALIDATION", "No open check-in found"),
    "PHOTO_REQUIRED": ErrorDefinition(
        40007, 400, "VALIDATION", "Photo is required for this action"
    ),
    "ALREADY_EXISTS": ErrorDefinition(40900, 409, "VALIDATION", "Resource already exists"),
    "DUPLICATE_CHECK_IN": ErrorDefinition(
        40902, 409, "VALIDATION", "Check-in already exists for this time period"
    ),
    "OVERLAPPING_PAYROLL_PERIOD": ErrorDefinition(
        40903, 409, "VALIDATION", "Payroll period overlaps with existing period"
    ),
    "REGION_HAS_CHILDREN": ErrorDefinition(
        40906, 409, "CONFLICT", "Cannot delete region with child regions"
    ),
    "REGION_HAS_FARMS": ErrorDefinition(
        40907, 409, "CONFLICT", "Cannot delete region with assigned farms"
    ),
    # Server (500xx)
    "INTERNAL_ERROR": ErrorDefinition(50000, 500, "SERVER", "Internal server error"),
    "DATABASE_ERROR": ErrorDefinition(50001, 500, "SERVER", "Database operation failed"),
}


class AppError(Exception):
    """Raised by services for any expected failure.

    The error name selects an entry of ERROR_CODES which fixes the HTTP status
    and category; ``message`` overrides the default text.
    """

    def __init__(
        self,
        name: str,
        message: str | None = None,
        metadata: dict[str, Any] | None = None,
    ):
        if name not in ERROR_CODES:
            raise KeyError(f"Unknown error code '{name}'")
        self.name = name
        self.definition = ERROR_CODES[name]
        self.message = message or self.definition.message
        self.metadata = metadata or {}
        super().__init__(self.message)

    @property
    def http_status(self) -> int:
        return self.definition.http_status

    @property
    def reason_code(self) -> int:
        return self.definition.code

    @property
    def category(self) -> str:
        return self.definition.category

    def to_dict(self) -> dict[str, Any]:
        """Render the error as an API response body."""
        return {
            "detail": self.message,
            "code": self.name,
            "reason_code": self.reason_code,
            "category": self.category,
            "metadata": self.metadata,
        }
