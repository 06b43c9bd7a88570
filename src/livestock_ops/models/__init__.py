"""SQLAlchemy ORM models."""

from livestock_ops.models.accounts import (
    DEFAULT_NOTIFICATIONS,
    AuditLog,
    Farm,
    FarmMembership,
    Notification,
    User,
    UserSettings,
)
from livestock_ops.models.base import Base, TimestampMixin, utcnow
from livestock_ops.models.extension import Country, Region, SpeciesThreshold, UserDistrict
from livestock_ops.models.livestock import (
    LIVESTOCK_TYPES,
    MORTALITY_CAUSES,
    Batch,
    EggRecord,
    Expense,
    FeedInventory,
    FeedRecord,
    MortalityRecord,
    Sale,
)
from livestock_ops.models.workforce import (
    FarmGeofence,
    PayrollPeriod,
    Task,
    TaskAssignment,
    TaskPhoto,
    WagePayment,
    WorkerCheckIn,
    WorkerProfile,
)

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "utcnow",
    # Accounts
    "User",
    "Farm",
    "FarmMembership",
    "UserSettings",
    "AuditLog",
    "Notification",
    "DEFAULT_NOTIFICATIONS",
    # Livestock
    "Batch",
    "EggRecord",
    "FeedInventory",
    "FeedRecord",
    "MortalityRecord",
    "Sale",
    "Expense",
    "LIVESTOCK_TYPES",
    "MORTALITY_CAUSES",
    # Workforce
    "WorkerProfile",
    "FarmGeofence",
    "WorkerCheckIn",
    "Task",
    "TaskAssignment",
    "TaskPhoto",
    "PayrollPeriod",
    "WagePayment",
    # Extension
    "Country",
    "Region",
    "UserDistrict",
    "SpeciesThreshold",
]
