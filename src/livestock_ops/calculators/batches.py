"""Batch stock rules: validation, quantity changes and status."""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from livestock_ops.calculators.currency import multiply, round_currency
from livestock_ops.calculators.health import SPECIES

EXPENSE_CATEGORIES = (
    "feed",
    "medicine",
    "equipment",
    "utilities",
    "labor",
    "transport",
    "livestock",
    "maintenance",
    "marketing",
    "other",
)

SPECIES_ALIASES = {"fish": "catfish"}


def validate_batch_data(data: Mapping[str, Any]) -> str | None:
    """First validation error for a new batch, or None."""
    if not data.get("farm_id"):
        return "Farm ID is required"
    if not str(data.get("species") or "").strip():
        return "Species is required"
    if (data.get("initial_quantity") or 0) <= 0:
        return "Initial quantity must be greater than 0"
    cost = data.get("cost_per_unit")
    if cost is not None and Decimal(str(cost)) < 0:
        return "Cost per unit cannot be negative"
    if data.get("acquisition_date") is None:
        return "Acquisition date is required"
    return None


def validate_batch_update(data: Mapping[str, Any]) -> str | None:
    if "species" in data and not str(data["species"] or "").strip():
        return "Species cannot be empty"
    return None


def batch_total_cost(quantity: int, cost_per_unit: Any) -> Decimal | None:
    if cost_per_unit is None:
        return None
    return round_currency(multiply(cost_per_unit, quantity))


def calculate_new_quantity(current: int, removed: int) -> int:
    """Stock left after ``removed`` animals leave the batch, never negative."""
    return max(0, current - removed)


def determine_batch_status(current_quantity: int, sold_quantity: int = 0) -> str:
    """``sold`` when a sale emptied the batch, ``depleted`` when anything else did."""
    if sold_quantity > 0 and current_quantity == 0:
        return "sold"
    if current_quantity <= 0:
        return "depleted"
    return "active"


def validate_mortality_data(data: Mapping[str, Any], batch_quantity: int) -> str | None:
    quantity = data.get("quantity") or 0
    if quantity <= 0:
        return "Mortality quantity must be greater than 0"
    if quantity > batch_quantity:
        return "Mortality quantity cannot exceed current batch quantity"
    if data.get("date") is None:
        return "Date is required"
    return None


def validate_sale_data(data: Mapping[str, Any], batch_quantity: int | None) -> str | None:
    """First validation error for a sale; stock is checked only for batch sales."""
    quantity = data.get("quantity") or 0
    if quantity <= 0:
        return "Quantity must be greater than 0"
    if Decimal(str(data.get("unit_price", 0))) < 0:
        return "Unit price cannot be negative"
    if data.get("date") is None:
        return "Sale date is required"
    if batch_quantity is not None and quantity > batch_quantity:
        return (
            f"Insufficient stock in batch. Available: {batch_quantity}, "
            f"Requested: {quantity}"
        )
    return None


def validate_expense_data(data: Mapping[str, Any]) -> str | None:
    if not str(data.get("description") or "").strip():
        return "Description is required"
    if Decimal(str(data.get("amount", 0))) < 0:
        return "Amount cannot be negative"
    if data.get("date") is None:
        return "Date is required"
    if data.get("category") not in EXPENSE_CATEGORIES:
        return f"Invalid expense category: {data.get('category')}"
    return None


def health_species(livestock_type: str, species: str) -> str | None:
    """Map a batch to a key of the mortality threshold table.

    Poultry batches match on ``broiler`` or ``layer`` in the species name;
    other types fall back to the livestock type. Unknown batches map to
    None.
    """
    name = species.strip().lower()
    for key in SPECIES:
        if key in name:
            return key
    if livestock_type in SPECIES:
        return livestock_type
    return SPECIES_ALIASES.get(livestock_type)


def can_delete_batch(related_counts: Mapping[str, int]) -> bool:
    """A batch may be deleted only once every dependent record is gone."""
    return not any(related_counts.values())
