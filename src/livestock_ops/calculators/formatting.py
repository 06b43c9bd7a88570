"""Date, time and unit formatting driven by user settings."""

from __future__ import annotations

from datetime import date, datetime

KG_TO_LBS = 2.20462
SQM_TO_SQFT = 10.7639

DATE_FORMATS = ("MM/DD/YYYY", "DD/MM/YYYY", "YYYY-MM-DD")
TIME_FORMATS = ("12h", "24h")


def format_date(value: date | datetime, date_format: str = "MM/DD/YYYY") -> str:
    day, month, year = f"{value.day:02d}", f"{value.month:02d}", f"{value.year:04d}"
    if date_format == "DD/MM/YYYY":
        return f"{day}/{month}/{year}"
    if date_format == "YYYY-MM-DD":
        return f"{year}-{month}-{day}"
    return f"{month}/{day}/{year}"


def format_time(value: datetime, time_format: str = "12h") -> str:
    if time_format == "24h":
        return f"{value.hour:02d}:{value.minute:02d}"
    suffix = "PM" if value.hour >= 12 else "AM"
    hour = value.hour % 12 or 12
    return f"{hour}:{value.minute:02d} {suffix}"


def format_date_time(
    value: datetime,
    date_format: str = "MM/DD/YYYY",
    time_format: str = "12h",
) -> str:
    return f"{format_date(value, date_format)} {format_time(value, time_format)}"


def convert_weight(weight: float, from_unit: str, to_unit: str) -> float:
    if from_unit == to_unit:
        return weight
    if from_unit == "kg":
        return weight * KG_TO_LBS
    return weight / KG_TO_LBS


def convert_area(area: float, from_unit: str, to_unit: str) -> float:
    if from_unit == to_unit:
        return area
    if from_unit == "sqm":
        return area * SQM_TO_SQFT
    return area / SQM_TO_SQFT


def convert_temperature(temp: float, from_unit: str, to_unit: str) -> float:
    if from_unit == to_unit:
        return temp
    if from_unit == "celsius":
        return temp * 9 / 5 + 32
    return (temp - 32) * 5 / 9


def format_weight(kg: float, unit: str = "kg") -> str:
    """Format a weight stored in kg in the user's unit."""
    return f"{convert_weight(kg, 'kg', unit):.2f} {unit}"


def format_area(sqm: float, unit: str = "sqm") -> str:
    label = "ft²" if unit == "sqft" else "m²"
    return f"{convert_area(sqm, 'sqm', unit):.2f} {label}"


def format_temperature(celsius: float, unit: str = "celsius") -> str:
    label = "°F" if unit == "fahrenheit" else "°C"
    return f"{convert_temperature(celsius, 'celsius', unit):.1f}{label}"


def to_metric_weight(value: float, unit: str) -> float:
    return convert_weight(value, unit, "kg")


def to_metric_area(value: float, unit: str) -> float:
    return convert_area(value, unit, "sqm")


def to_celsius(value: float, unit: str) -> float:
    return convert_temperature(value, unit, "celsius")
