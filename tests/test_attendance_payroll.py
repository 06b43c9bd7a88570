"""Tests for attendance and wage calculations."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest
from hypothesis import given, settings, strategies as st

from livestock_ops.calculators.attendance import (
    calculate_attendance_summary,
    calculate_hours_worked,
    end_of_day,
    is_duplicate_check_in,
    should_auto_check_out,
)
from livestock_ops.calculators.payroll import (
    calculate_days_worked,
    calculate_gross_wages,
    calculate_monthly_wages,
    calculate_outstanding_balance,
    validate_payroll_period,
)
from livestock_ops.calculators.types import AttendanceRecord, WageConfig, WageRateType

UTC = timezone.utc
MORNING = datetime(2024, 3, 4, 8, 0, tzinfo=UTC)


class TestHoursWorked:
    """Test hours between check-in and check-out."""

    def test_full_day(self):
        assert calculate_hours_worked(MORNING, MORNING + timedelta(hours=8)) == Decimal("8.00")

    def test_rounds_to_hundredths(self):
        hours = calculate_hours_worked(MORNING, MORNING + timedelta(minutes=100))
        assert hours == Decimal("1.67")

    def test_check_out_before_check_in_is_zero(self):
        assert calculate_hours_worked(MORNING, MORNING - timedelta(hours=1)) == Decimal("0.00")

    @given(minutes=st.integers(min_value=0, max_value=60 * 24 * 3))
    @settings(max_examples=100)
    def test_never_negative(self, minutes: int):
        hours = calculate_hours_worked(MORNING, MORNING + timedelta(minutes=minutes))
        assert hours >= 0
        assert abs(hours - Decimal(minutes) / 60) <= Decimal("0.01")


class TestDuplicateCheckIn:
    """Test duplicate detection window."""

    def test_within_window(self):
        assert is_duplicate_check_in(MORNING, MORNING + timedelta(minutes=4)) is True

    def test_window_is_exclusive(self):
        assert is_duplicate_check_in(MORNING, MORNING + timedelta(minutes=5)) is False

    def test_order_does_not_matter(self):
        assert is_duplicate_check_in(MORNING + timedelta(minutes=2), MORNING) is True

    def test_custom_threshold(self):
        assert is_duplicate_check_in(MORNING, MORNING + timedelta(minutes=9), 10) is True


class TestAutoCheckOut:
    """Test stale check-in detection."""

    def test_same_day_is_not_stale(self):
        assert should_auto_check_out(MORNING, MORNING + timedelta(hours=10)) is False

    def test_previous_day_is_stale(self):
        assert should_auto_check_out(MORNING, MORNING + timedelta(days=1)) is True

    def test_end_of_day_keeps_timezone(self):
        closed = end_of_day(MORNING)
        assert closed == datetime(2024, 3, 4, 23, 59, 59, tzinfo=UTC)


class TestAttendanceSummary:
    """Test period summaries."""

    def test_summary(self):
        records = [
            AttendanceRecord(MORNING, MORNING + timedelta(hours=8)),
            AttendanceRecord(
                MORNING + timedelta(days=1),
                MORNING + timedelta(days=1, hours=4),
                hours_worked=Decimal("4.00"),
            ),
            AttendanceRecord(MORNING + timedelta(days=1, hours=5)),
            AttendanceRecord(MORNING + timedelta(days=30), MORNING + timedelta(days=30, hours=1)),
        ]
        summary = calculate_attendance_summary(records, date(2024, 3, 1), date(2024, 3, 10))
        assert summary.total_hours == Decimal("12.00")
        assert summary.total_days == 2
        assert summary.check_in_count == 3
        assert summary.flagged_check_ins == 1

    def test_empty(self):
        summary = calculate_attendance_summary([], date(2024, 3, 1), date(2024, 3, 10))
        assert summary.total_hours == Decimal("0.00")
        assert summary.total_days == 0


class TestGrossWages:
    """Test wage calculation by rate type."""

    def test_hourly(self):
        config = WageConfig(WageRateType.HOURLY, Decimal("12.50"))
        assert calculate_gross_wages(Decimal("7.5"), config) == Decimal("93.75")

    def test_daily(self):
        config = WageConfig(WageRateType.DAILY, Decimal("40"))
        assert calculate_gross_wages(3, config) == Decimal("120.00")

    def test_monthly_is_pro_rated(self):
        config = WageConfig(WageRateType.MONTHLY, Decimal("3000"))
        assert calculate_gross_wages(10, config, total_days_in_month=30) == Decimal("1000.00")

    def test_monthly_requires_month_length(self):
        config = WageConfig(WageRateType.MONTHLY, Decimal("3000"))
        with pytest.raises(ValueError):
            calculate_gross_wages(10, config)

    def test_monthly_with_empty_month(self):
        assert calculate_monthly_wages(5, 0, Decimal("3000")) == Decimal("0.00")

    def test_accepts_string_rate_type(self):
        config = WageConfig("hourly", Decimal("10"))
        assert calculate_gross_wages(2, config) == Decimal("20.00")

    @given(
        hours=st.decimals(min_value=0, max_value=400, places=2),
        rate=st.decimals(min_value=0, max_value=500, places=2),
    )
    @settings(max_examples=100)
    def test_hourly_is_non_negative_cents(self, hours: Decimal, rate: Decimal):
        gross = calculate_gross_wages(hours, WageConfig(WageRateType.HOURLY, rate))
        assert gross >= 0
        assert gross == gross.quantize(Decimal("0.01"))

    def test_outstanding_balance(self):
        assert calculate_outstanding_balance(Decimal("100"), Decimal("40.5")) == Decimal("59.50")
        assert calculate_outstanding_balance(Decimal("10"), Decimal("15")) == Decimal("-5.00")

    def test_days_worked_counts_distinct_dates(self):
        times = [MORNING, MORNING + timedelta(hours=3), MORNING + timedelta(days=2)]
        assert calculate_days_worked(times) == 2


class TestPayrollPeriod:
    """Test period validation."""

    def test_start_must_precede_end(self):
        assert validate_payroll_period(date(2024, 1, 10), date(2024, 1, 10)) == (
            "Start date must be before end date"
        )

    def test_overlap(self):
        existing = [(date(2024, 1, 1), date(2024, 1, 15))]
        error = validate_payroll_period(date(2024, 1, 10), date(2024, 1, 20), existing)
        assert error is not None
        assert "overlaps" in error

    def test_touching_boundary_is_allowed(self):
        existing = [(date(2024, 1, 1), date(2024, 1, 15))]
        assert validate_payroll_period(date(2024, 1, 15), date(2024, 1, 31), existing) is None
