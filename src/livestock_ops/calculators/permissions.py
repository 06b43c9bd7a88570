"""Module permissions granted to farm workers."""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum


class ModulePermission(str, Enum):
    """Record types a worker may log or view."""

    FEED_LOG = "feed:log"
    MORTALITY_LOG = "mortality:log"
    WEIGHT_LOG = "weight:log"
    VACCINATION_LOG = "vaccination:log"
    WATER_QUALITY_LOG = "water_quality:log"
    EGG_LOG = "egg:log"
    SALES_VIEW = "sales:view"
    TASK_COMPLETE = "task:complete"
    BATCH_VIEW = "batch:view"


ALL_PERMISSIONS: tuple[str, ...] = tuple(p.value for p in ModulePermission)

PERMISSION_TEMPLATES: dict[str, tuple[str, ...]] = {
    "feed_handler": (
        ModulePermission.FEED_LOG.value,
        ModulePermission.TASK_COMPLETE.value,
        ModulePermission.BATCH_VIEW.value,
    ),
    "health_monitor": (
        ModulePermission.MORTALITY_LOG.value,
        ModulePermission.VACCINATION_LOG.value,
        ModulePermission.WATER_QUALITY_LOG.value,
    ),
    "egg_collector": (
        ModulePermission.EGG_LOG.value,
        ModulePermission.BATCH_VIEW.value,
        ModulePermission.TASK_COMPLETE.value,
    ),
    "full_access": ALL_PERMISSIONS,
}


def has_permission(permissions: Iterable[str], permission: str | ModulePermission) -> bool:
    value = permission.value if isinstance(permission, ModulePermission) else permission
    return value in set(permissions)


def validate_permissions(permissions: Iterable[str]) -> str | None:
    """Return an error naming unknown permissions, or None."""
    invalid = [p for p in permissions if p not in ALL_PERMISSIONS]
    if invalid:
        return f"Invalid permissions: {', '.join(invalid)}"
    return None


def get_permissions_from_template(name: str) -> list[str]:
    """A fresh list for the named template (empty when unknown)."""
    return list(PERMISSION_TEMPLATES.get(name, ()))
