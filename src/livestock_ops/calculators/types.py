"""Type definitions shared by the calculators."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID


class VerificationStatus(str, Enum):
    """Outcome of checking a location against a geofence."""

    VERIFIED = "verified"
    WITHIN_TOLERANCE = "within_tolerance"
    OUTSIDE_GEOFENCE = "outside_geofence"
    MANUAL = "manual"
    PENDING_SYNC = "pending_sync"


class GeofenceType(str, Enum):
    CIRCLE = "circle"
    POLYGON = "polygon"


class WageRateType(str, Enum):
    HOURLY = "hourly"
    DAILY = "daily"
    MONTHLY = "monthly"


@dataclass(frozen=True)
class Point:
    """A WGS84 coordinate in decimal degrees."""

    lat: float
    lng: float

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Point:
        return cls(lat=float(data["lat"]), lng=float(data["lng"]))

    def to_dict(self) -> dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}


@dataclass
class GeofenceConfig:
    """Circle (center + radius) or polygon (vertices) boundary."""

    geofence_type: GeofenceType
    tolerance_meters: float = 100.0
    center: Point | None = None
    radius_meters: float | None = None
    vertices: list[Point] = field(default_factory=list)


@dataclass(frozen=True)
class GeofenceResult:
    verified: bool
    within_tolerance: bool
    distance_meters: float
    status: VerificationStatus


@dataclass
class AttendanceRecord:
    """Minimal view of a check-in used by the attendance calculators."""

    check_in_time: datetime
    check_out_time: datetime | None = None
    hours_worked: Decimal | None = None


@dataclass
class AttendanceSummary:
    total_hours: Decimal
    total_days: int
    check_in_count: int
    flagged_check_ins: int


@dataclass
class WageConfig:
    rate_type: WageRateType
    rate_amount: Decimal


@dataclass
class AssignmentView:
    """Minimal view of a task assignment used by the task calculators."""

    worker_id: UUID | str
    status: str
    requires_photo: bool = False
    due_date: datetime | None = None


@dataclass
class TaskMetrics:
    total: int = 0
    completed: int = 0
    pending: int = 0
    overdue: int = 0
    completion_rate: float = 0.0


@dataclass
class ValidationResult:
    """Outcome of a rule check with an optional message."""

    valid: bool
    error: str | None = None

    @classmethod
    def ok(cls) -> ValidationResult:
        return cls(valid=True)

    @classmethod
    def fail(cls, error: str) -> ValidationResult:
        return cls(valid=False, error=error)
