"""Mortality-based health status for extension dashboards."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

SPECIES: tuple[str, ...] = (
    "broiler",
    "layer",
    "catfish",
    "tilapia",
    "cattle",
    "goats",
    "sheep",
    "bees",
)


@dataclass(frozen=True)
class Thresholds:
    """Mortality-rate percentages at which a batch turns amber and red."""

    amber: float
    red: float


DEFAULT_THRESHOLDS: dict[str, Thresholds] = {
    "broiler": Thresholds(amber=5.0, red=10.0),
    "layer": Thresholds(amber=3.0, red=7.0),
    "catfish": Thresholds(amber=10.0, red=20.0),
    "tilapia": Thresholds(amber=10.0, red=20.0),
    "cattle": Thresholds(amber=2.0, red=5.0),
    "goats": Thresholds(amber=3.0, red=7.0),
    "sheep": Thresholds(amber=3.0, red=7.0),
    "bees": Thresholds(amber=15.0, red=30.0),
}


def calculate_mortality_rate(initial_quantity: int, current_quantity: int) -> float:
    """Percentage of the initial stock lost; 0 for an empty batch."""
    if initial_quantity <= 0:
        return 0.0
    return (initial_quantity - current_quantity) / initial_quantity * 100


def calculate_health_status(
    mortality_rate: float,
    species: str,
    overrides: Mapping[str, Thresholds] | None = None,
) -> str:
    """Classify a mortality rate as green, amber or red.

    Raises:
        KeyError: The species has neither an override nor a default.
    """
    thresholds = (overrides or {}).get(species) or DEFAULT_THRESHOLDS[species]
    if mortality_rate >= thresholds.red:
        return "red"
    if mortality_rate >= thresholds.amber:
        return "amber"
    return "green"
