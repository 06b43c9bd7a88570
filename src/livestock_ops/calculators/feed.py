"""Feed record rules, summaries and feed conversion ratio."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

FEED_TYPES: tuple[str, ...] = (
    "starter",
    "grower",
    "finisher",
    "layer_mash",
    "fish_feed",
    "cattle_feed",
    "goat_feed",
    "sheep_feed",
    "hay",
    "silage",
    "bee_feed",
)

CENTS = Decimal("0.01")


@dataclass
class FeedTypeTotals:
    quantity_kg: Decimal = Decimal("0")
    cost: Decimal = Decimal("0")


@dataclass
class FeedSummary:
    total_quantity_kg: Decimal
    total_cost: Decimal
    by_type: dict[str, FeedTypeTotals] = field(default_factory=dict)
    record_count: int = 0


@dataclass
class FeedStats:
    total_quantity_kg: Decimal
    total_cost: Decimal
    record_count: int


def _dec(value: Any) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def validate_feed_record(data: Mapping[str, Any]) -> str | None:
    batch_id = data.get("batch_id")
    if not batch_id or not str(batch_id).strip():
        return "Batch ID is required"
    if _dec(data.get("quantity_kg", 0)) <= 0:
        return "Quantity must be greater than 0"
    if _dec(data.get("cost", 0)) < 0:
        return "Cost cannot be negative"
    if data.get("feed_type") not in FEED_TYPES:
        return "Invalid feed type"
    return None


def validate_feed_update_data(data: Mapping[str, Any]) -> str | None:
    """Like validate_feed_record, for the fields present only."""
    if data.get("quantity_kg") is not None and _dec(data["quantity_kg"]) <= 0:
        return "Quantity must be greater than 0"
    if data.get("cost") is not None and _dec(data["cost"]) < 0:
        return "Cost cannot be negative"
    if data.get("feed_type") is not None and data["feed_type"] not in FEED_TYPES:
        return "Invalid feed type"
    return None


def build_feed_summary(records: Iterable[Any]) -> FeedSummary:
    items = list(records)
    by_type: dict[str, FeedTypeTotals] = {}
    total_qty = Decimal("0")
    total_cost = Decimal("0")

    for record in items:
        qty, cost = _dec(record.quantity_kg), _dec(record.cost)
        total_qty += qty
        total_cost += cost
        entry = by_type.setdefault(record.feed_type, FeedTypeTotals())
        entry.quantity_kg += qty
        entry.cost += cost

    return FeedSummary(
        total_quantity_kg=total_qty,
        total_cost=total_cost,
        by_type=by_type,
        record_count=len(items),
    )


def build_feed_stats(records: Iterable[Any]) -> FeedStats:
    """Totals with every value rounded to hundredths before summing."""
    items = list(records)
    qty = sum((_dec(r.quantity_kg).quantize(CENTS, ROUND_HALF_UP) for r in items), Decimal("0"))
    cost = sum((_dec(r.cost).quantize(CENTS, ROUND_HALF_UP) for r in items), Decimal("0"))
    return FeedStats(
        total_quantity_kg=qty.quantize(CENTS),
        total_cost=cost.quantize(CENTS),
        record_count=len(items),
    )


def calculate_fcr(
    total_feed_kg: float,
    weight_gain_kg: float,
    initial_quantity: float,
) -> float | None:
    """Feed conversion ratio (feed per unit of gain), 2 dp."""
    if total_feed_kg <= 0 or weight_gain_kg <= 0 or initial_quantity <= 0:
        return None
    return round(total_feed_kg / weight_gain_kg, 2)


def calculate_new_inventory_quantity(
    existing: Decimal | str,
    deducted: Decimal | float,
) -> Decimal:
    return max(Decimal("0"), _dec(existing) - _dec(deducted))
