"""Egg collection rules and production rates."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

XL_TERMS = ("extra large", "extra_large", "xl", "x-large")


@dataclass
class EggTotals:
    total_collected: int
    total_broken: int
    total_sold: int
    current_inventory: int


@dataclass
class EggSummary(EggTotals):
    record_count: int


def validate_egg_collection_data(data: Mapping[str, Any]) -> str | None:
    """First validation error for a new egg record, or None."""
    batch_id = data.get("batch_id")
    if not batch_id or not str(batch_id).strip():
        return "Batch ID is required"

    collected = data.get("quantity_collected", 0)
    broken = data.get("quantity_broken", 0)
    sold = data.get("quantity_sold", 0)

    if collected < 0:
        return "Quantity collected cannot be negative"
    if broken < 0:
        return "Quantity broken cannot be negative"
    if sold < 0:
        return "Quantity sold cannot be negative"
    if collected < broken + sold:
        return "Broken and sold quantities cannot exceed collected quantity"
    return None


def validate_egg_update_data(data: Mapping[str, Any]) -> str | None:
    """Per-field checks for a partial update.

    The broken + sold check needs the stored values and is done by the
    service against the merged record.
    """
    for field, label in (
        ("quantity_collected", "Quantity collected"),
        ("quantity_broken", "Quantity broken"),
        ("quantity_sold", "Quantity sold"),
    ):
        value = data.get(field)
        if value is not None and value < 0:
            return f"{label} cannot be negative"
    return None


def calculate_egg_totals(records: Iterable[Any]) -> EggTotals:
    items = list(records)
    collected = sum(r.quantity_collected for r in items)
    broken = sum(r.quantity_broken for r in items)
    sold = sum(r.quantity_sold for r in items)
    return EggTotals(
        total_collected=collected,
        total_broken=broken,
        total_sold=sold,
        current_inventory=max(0, collected - broken - sold),
    )


def build_egg_summary(records: Iterable[Any]) -> EggSummary:
    items = list(records)
    totals = calculate_egg_totals(items)
    return EggSummary(
        total_collected=totals.total_collected,
        total_broken=totals.total_broken,
        total_sold=totals.total_sold,
        current_inventory=totals.current_inventory,
        record_count=len(items),
    )


def determine_egg_grade(size: str, weight: float | None = None) -> str:
    """Grade an egg as small, medium, large or xl.

    Weight in grams takes precedence over the size label.
    """
    if weight is not None:
        if weight < 53:
            return "small"
        if weight < 63:
            return "medium"
        if weight < 73:
            return "large"
        return "xl"

    normalized = size.lower()
    # xl before large so "extra large" is not read as large
    if any(term in normalized for term in XL_TERMS):
        return "xl"
    if "small" in normalized or "s" in normalized:
        return "small"
    if "medium" in normalized or "m" in normalized:
        return "medium"
    if "large" in normalized or "l" in normalized:
        return "large"
    if len(normalized) <= 1:
        return "large"
    return "medium"


def _percent(numerator: float, denominator: float) -> float:
    if denominator <= 0 or numerator < 0:
        return 0.0
    return round(min(numerator / denominator * 100, 100.0), 2)


def calculate_fertility_rate(fertile: float, total: float) -> float:
    return _percent(fertile, total)


def calculate_laying_percentage(eggs_collected: float, flock_size: float) -> float:
    return _percent(eggs_collected, flock_size)


def calculate_breakage_rate(broken: float, total: float) -> float:
    return _percent(broken, total)


def calculate_production_rate(total_eggs: float, flock_size: float) -> float:
    """Eggs per bird, 2 dp; not clamped."""
    if flock_size <= 0 or total_eggs < 0:
        return 0.0
    return round(total_eggs / flock_size, 2)
