"""Wage arithmetic and payroll period validation."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal

from livestock_ops.calculators.types import WageConfig, WageRateType

CENTS = Decimal("0.01")


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def calculate_hourly_wages(hours: Decimal | float, rate: Decimal | float) -> Decimal:
    return _money(Decimal(str(hours)) * Decimal(str(rate)))


def calculate_daily_wages(days: int | Decimal, rate: Decimal | float) -> Decimal:
    return _money(Decimal(str(days)) * Decimal(str(rate)))


def calculate_monthly_wages(
    days_worked: int | Decimal,
    total_days: int,
    rate: Decimal | float,
) -> Decimal:
    """Pro-rate a monthly salary by the days worked in the month."""
    if total_days <= 0:
        return Decimal("0.00")
    return _money(Decimal(str(days_worked)) / Decimal(total_days) * Decimal(str(rate)))


def calculate_gross_wages(
    units: Decimal | float | int,
    config: WageConfig,
    total_days_in_month: int | None = None,
) -> Decimal:
    """Gross wages for hours (hourly) or days (daily, monthly) worked.

    Raises:
        ValueError: A monthly rate is given without the number of days in
            the month.
    """
    rate_type = WageRateType(config.rate_type)
    if rate_type == WageRateType.HOURLY:
        return calculate_hourly_wages(units, config.rate_amount)
    if rate_type == WageRateType.DAILY:
        return calculate_daily_wages(Decimal(str(units)), config.rate_amount)
    if total_days_in_month is None:
        raise ValueError("total_days_in_month is required for monthly wages")
    return calculate_monthly_wages(Decimal(str(units)), total_days_in_month, config.rate_amount)


def calculate_outstanding_balance(gross: Decimal, paid: Decimal) -> Decimal:
    return _money(Decimal(gross) - Decimal(paid))


def calculate_days_worked(check_in_times: Iterable[datetime]) -> int:
    """Number of distinct calendar days with at least one check-in."""
    return len({t.date() for t in check_in_times})


def validate_payroll_period(
    start: date,
    end: date,
    existing: Sequence[tuple[date, date]] = (),
) -> str | None:
    """Return an error message, or None when the period is acceptable.

    Periods touching on a boundary day (one ends when the next starts) are
    not overlapping.
    """
    if start >= end:
        return "Start date must be before end date"
    for other_start, other_end in existing:
        if start < other_end and end > other_start:
            return f"Period overlaps with existing period {other_start} to {other_end}"
    return None
