"""Attendance arithmetic: hours, duplicate detection and period summaries."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime, time, timezone
from decimal import ROUND_HALF_UP, Decimal

from livestock_ops.calculators.types import AttendanceRecord, AttendanceSummary

CENTS = Decimal("0.01")
DEFAULT_DUPLICATE_MINUTES = 5


def as_utc(value: datetime) -> datetime:
    """Aware UTC datetime; naive values are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def calculate_hours_worked(check_in: datetime, check_out: datetime) -> Decimal:
    """Hours between check-in and check-out, 2 dp, never negative."""
    seconds = (as_utc(check_out) - as_utc(check_in)).total_seconds()
    if seconds <= 0:
        return Decimal("0.00")
    hours = Decimal(str(seconds)) / Decimal(3600)
    return hours.quantize(CENTS, rounding=ROUND_HALF_UP)


def is_duplicate_check_in(
    last_check_in: datetime,
    new_check_in: datetime,
    threshold_minutes: int = DEFAULT_DUPLICATE_MINUTES,
) -> bool:
    """True when two check-ins are closer than the threshold."""
    diff = abs((new_check_in - last_check_in).total_seconds())
    return diff < threshold_minutes * 60


def should_auto_check_out(check_in: datetime, now: datetime) -> bool:
    """An open check-in from a previous calendar day is stale."""
    return check_in.date() != now.date()


def end_of_day(value: datetime) -> datetime:
    """23:59:59 on the same day, keeping the timezone."""
    return datetime.combine(value.date(), time(23, 59, 59), tzinfo=value.tzinfo)


def calculate_attendance_summary(
    records: Iterable[AttendanceRecord],
    start: date,
    end: date,
) -> AttendanceSummary:
    """Summarize check-ins whose date falls in [start, end]."""
    in_range = [r for r in records if start <= r.check_in_time.date() <= end]

    total_hours = Decimal("0.00")
    for record in in_range:
        if record.hours_worked is not None:
            total_hours += Decimal(record.hours_worked)
        elif record.check_out_time is not None:
            total_hours += calculate_hours_worked(record.check_in_time, record.check_out_time)

    return AttendanceSummary(
        total_hours=total_hours.quantize(CENTS, rounding=ROUND_HALF_UP),
        total_days=len({r.check_in_time.date() for r in in_range}),
        check_in_count=len(in_range),
        flagged_check_ins=sum(1 for r in in_range if r.check_out_time is None),
    )
