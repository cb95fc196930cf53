"""Demand category and route type classification."""

import math

from src.models.common import AirportType, DemandCategory, RouteType

_HUB_TYPES = frozenset({AirportType.INTERNATIONAL_HUB, AirportType.MAJOR})

# (lower bound, category), checked top-down
_CATEGORY_BANDS: tuple[tuple[int, DemandCategory], ...] = (
    (80, DemandCategory.VERY_HIGH),
    (60, DemandCategory.HIGH),
    (40, DemandCategory.MEDIUM),
    (20, DemandCategory.LOW),
)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties away from zero for positives."""
    return int(math.floor(value + 0.5))


def normalize_demand(raw: float, max_raw: float, power: float) -> int:
    """Compress raw demand onto 0-100: round(100 * (raw / max_raw)^power)."""
    if max_raw <= 0 or raw <= 0:
        return 0
    return round_half_up(100.0 * (raw / max_raw) ** power)


def demand_category(demand: int) -> DemandCategory:
    """Coarse label for a 0-100 demand score."""
    for lower, category in _CATEGORY_BANDS:
        if demand >= lower:
            return category
    return DemandCategory.VERY_LOW


def route_type(
    from_airport_type: str | None,
    to_airport_type: str | None,
    distance: float,
    from_country: str | None,
    to_country: str | None,
) -> RouteType:
    """Classify a route from airport classes, distance (nm) and countries."""
    if from_airport_type in _HUB_TYPES and to_airport_type in _HUB_TYPES and distance < 3000:
        return RouteType.BUSINESS
    if from_country == to_country and distance < 1500:
        return RouteType.REGIONAL
    return RouteType.MIXED
