"""Validation and alert rules for user settings."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from livestock_ops.calculators.currency import get_currency_preset
from livestock_ops.calculators.formatting import DATE_FORMATS

NESTED_KEYS = frozenset({"notifications"})


def _number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _in_range(value: Any, low: float, high: float | None = None) -> bool:
    num = _number(value)
    if num is None or num < low:
        return False
    return high is None or num <= high


def validate_setting_data(key: str, value: Any) -> str | None:
    """Validate one setting. Unknown keys pass."""
    if key == "currency_decimals" and not _in_range(value, 0, 4):
        return "Currency decimals must be between 0 and 4"
    if key == "currency_symbol_position" and value not in ("before", "after"):
        return 'Currency symbol position must be "before" or "after"'
    if key == "date_format" and value not in DATE_FORMATS:
        return "Invalid date format"
    if key == "time_format" and value not in ("12h", "24h"):
        return 'Time format must be "12h" or "24h"'
    if key == "first_day_of_week" and not _in_range(value, 0, 6):
        return "First day of week must be between 0 and 6"
    if key == "weight_unit" and value not in ("kg", "lbs"):
        return 'Weight unit must be "kg" or "lbs"'
    if key == "area_unit" and value not in ("sqm", "sqft"):
        return 'Area unit must be "sqm" or "sqft"'
    if key == "temperature_unit" and value not in ("celsius", "fahrenheit"):
        return 'Temperature unit must be "celsius" or "fahrenheit"'
    if key == "low_stock_threshold_percent" and not _in_range(value, 1, 100):
        return "Low stock threshold must be between 1 and 100"
    if key == "mortality_alert_percent" and not _in_range(value, 1, 100):
        return "Mortality alert percent must be between 1 and 100"
    if key == "mortality_alert_quantity" and not _in_range(value, 1):
        return "Mortality alert quantity must be at least 1"
    if key == "default_payment_terms_days" and not _in_range(value, 0):
        return "Default payment terms must be non-negative"
    if key == "fiscal_year_start_month" and not _in_range(value, 1, 12):
        return "Fiscal year start must be between 1 and 12"
    if key == "theme" and value not in ("light", "dark", "system"):
        return 'Theme must be "light", "dark", or "system"'
    return None


def validate_partial_settings(data: Mapping[str, Any]) -> list[str]:
    """All errors for an update, as ``"key: message"`` strings."""
    errors = []
    for key, value in data.items():
        if key in NESTED_KEYS:
            continue
        error = validate_setting_data(key, value)
        if error:
            errors.append(f"{key}: {error}")
    return errors


def validate_currency_change(old_code: str, new_code: str) -> str | None:
    if get_currency_preset(new_code) is None:
        return f'Currency code "{new_code}" is not supported'
    return None


def merge_notification_settings(
    defaults: Mapping[str, bool],
    existing: Mapping[str, bool] | None = None,
    updates: Mapping[str, bool] | None = None,
) -> dict[str, bool]:
    """Later sources win: defaults, then stored values, then updates."""
    return {**defaults, **(existing or {}), **(updates or {})}


def should_trigger_low_stock_alert(
    current_quantity: float,
    initial_quantity: float,
    threshold_percent: float,
) -> bool:
    if initial_quantity <= 0:
        return False
    return current_quantity / initial_quantity * 100 <= threshold_percent


def should_trigger_mortality_alert(
    current_quantity: float,
    initial_quantity: float,
    alert_percent: float,
    alert_quantity: float,
) -> bool:
    """Both the death percentage and the absolute deaths must reach their limits."""
    if initial_quantity <= 0:
        return False
    deaths = initial_quantity - current_quantity
    return deaths / initial_quantity * 100 >= alert_percent and deaths >= alert_quantity


def build_settings_summary(settings: Any) -> dict[str, dict[str, Any]]:
    return {
        "currency": {
            "code": settings.currency_code,
            "symbol": settings.currency_symbol,
            "position": settings.currency_symbol_position,
        },
        "region": {
            "date_format": settings.date_format,
            "time_format": settings.time_format,
            "language": settings.language,
        },
        "units": {
            "weight": settings.weight_unit,
            "area": settings.area_unit,
            "temperature": settings.temperature_unit,
        },
        "business": {
            "payment_terms_days": settings.default_payment_terms_days,
            "fiscal_year_start": settings.fiscal_year_start_month,
        },
    }
