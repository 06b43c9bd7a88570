"""Pure business calculations (no database access)."""

from livestock_ops.calculators.attendance import (
    calculate_attendance_summary,
    calculate_hours_worked,
    is_duplicate_check_in,
    should_auto_check_out,
)
from livestock_ops.calculators.geofence import (
    haversine_distance,
    validate_coordinates,
    validate_geofence,
    verify_location_in_geofence,
)
from livestock_ops.calculators.payroll import (
    calculate_days_worked,
    calculate_gross_wages,
    calculate_outstanding_balance,
    validate_payroll_period,
)
from livestock_ops.calculators.tasks import (
    calculate_task_metrics,
    determine_completion_status,
    validate_task_completion,
)
from livestock_ops.calculators.types import (
    GeofenceConfig,
    GeofenceResult,
    GeofenceType,
    Point,
    VerificationStatus,
    WageConfig,
    WageRateType,
)

__all__ = [
    "GeofenceConfig",
    "GeofenceResult",
    "GeofenceType",
    "Point",
    "VerificationStatus",
    "WageConfig",
    "WageRateType",
    "haversine_distance",
    "validate_coordinates",
    "validate_geofence",
    "verify_location_in_geofence",
    "calculate_attendance_summary",
    "calculate_hours_worked",
    "is_duplicate_check_in",
    "should_auto_check_out",
    "calculate_days_worked",
    "calculate_gross_wages",
    "calculate_outstanding_balance",
    "validate_payroll_period",
    "calculate_task_metrics",
    "determine_completion_status",
    "validate_task_completion",
]
