"""Zone assignment — airports to metro zones, and within-zone demand shares.

Assignment order:
1. Explicit ICAO membership listed on the zone.
2. Proximity: nearest zone in the same country, strictly within 81 nm (~150 km).
3. Otherwise unmapped — reported, excluded from the demand model.

Shares split a zone's demand among its airports by weight: interpolated
historical passengers when available, otherwise an airport-type weight
(many source airports carry identical placeholder traffic values).
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from uuid import UUID

from src.engine.geo import distance_nm
from src.engine.timeseries import TimeSeries
from src.models.common import AirportType, AssignmentMethod
from src.models.zone import Airport, MetroZone

logger = logging.getLogger(__name__)

PROXIMITY_RADIUS_NM = 81.0

# Approximate annual passengers (millions) per airport class.
AIRPORT_TYPE_WEIGHTS: dict[str, float] = {
    AirportType.INTERNATIONAL_HUB: 5.0,
    AirportType.REGIONAL_HUB: 2.0,
    AirportType.REGIONAL: 0.5,
    AirportType.MAJOR: 0.3,  # often military/GA, minimal commercial
    AirportType.DOMESTIC: 0.2,
    AirportType.SMALL: 0.05,
    AirportType.CLOSED: 0.01,
}
DEFAULT_TYPE_WEIGHT = 0.1


@dataclass(frozen=True)
class ZoneShare:
    """One airport's share of its zone's demand."""

    airport_id: UUID
    icao_code: str
    demand_share: float


@dataclass(frozen=True)
class Assignment:
    """Outcome of assigning one airport."""

    airport: Airport
    zone_id: str | None
    method: AssignmentMethod | None


@dataclass
class AssignmentReport:
    """Airports grouped by zone plus outcome counts."""

    zone_airports: dict[str, list[Airport]] = field(default_factory=dict)
    methods: dict[UUID, AssignmentMethod] = field(default_factory=dict)
    explicit: int = 0
    proximity: int = 0
    unmapped: list[Airport] = field(default_factory=list)

    @property
    def mapped(self) -> int:
        return self.explicit + self.proximity


class ZoneAssigner:
    """Assigns airports to zones using membership lists and proximity."""

    def __init__(
        self,
        zones: Sequence[MetroZone],
        country_codes: Mapping[str, str],
        *,
        radius_nm: float = PROXIMITY_RADIUS_NM,
    ) -> None:
        self._zones = list(zones)
        self._zones_by_id = {z.zone_id: z for z in self._zones}
        self._country_codes = dict(country_codes)
        self._radius_nm = radius_nm
        self._icao_to_zone = self.build_icao_to_zone_map(self._zones)

    @staticmethod
    def build_icao_to_zone_map(zones: Sequence[MetroZone]) -> dict[str, str]:
        """ICAO code → zone id from the explicit membership lists."""
        mapping: dict[str, str] = {}
        for zone in zones:
            for icao in zone.airports:
                mapping[icao] = zone.zone_id
        return mapping

    def country_code_for(self, country_name: str) -> str | None:
        """ISO code for an airport's country display name, if known."""
        return self._country_codes.get(country_name)

    def find_nearest_zone(self, airport: Airport, country_code: str) -> MetroZone | None:
        """Closest same-country zone strictly within the proximity radius."""
        nearest: MetroZone | None = None
        nearest_dist = float("inf")
        for zone in self._zones:
            if zone.country_code != country_code:
                continue
            dist = distance_nm(airport.latitude, airport.longitude, zone.latitude, zone.longitude)
            if dist < nearest_dist and dist < self._radius_nm:
                nearest = zone
                nearest_dist = dist
        return nearest

    def assign(self, airport: Airport) -> Assignment:
        """Assign one airport: explicit → proximity → unmapped."""
        zone_id = self._icao_to_zone.get(airport.icao_code)
        if zone_id is not None:
            return Assignment(airport=airport, zone_id=zone_id, method=AssignmentMethod.EXPLICIT)

        country_code = self.country_code_for(airport.country)
        if country_code is not None:
            nearest = self.find_nearest_zone(airport, country_code)
            if nearest is not None:
                return Assignment(
                    airport=airport, zone_id=nearest.zone_id, method=AssignmentMethod.PROXIMITY,
                )

        return Assignment(airport=airport, zone_id=None, method=None)

    def assign_all(self, airports: Sequence[Airport]) -> AssignmentReport:
        """Assign every airport and group the mapped ones by zone."""
        report = AssignmentReport(zone_airports={z.zone_id: [] for z in self._zones})
        for airport in airports:
            result = self.assign(airport)
            if result.zone_id is None or result.method is None:
                report.unmapped.append(airport)
                continue
            report.zone_airports[result.zone_id].append(airport)
            report.methods[airport.airport_id] = result.method
            if result.method == AssignmentMethod.EXPLICIT:
                report.explicit += 1
            else:
                report.proximity += 1

        logger.info(
            "Zone assignment: %d explicit, %d proximity, %d unmapped",
            report.explicit, report.proximity, len(report.unmapped),
        )
        return report


def airport_weight(
    airport: Airport,
    historical_pax: Mapping[str, TimeSeries],
    year: float,
) -> float:
    """Share weight: historical passengers if positive, else type weight."""
    series = historical_pax.get(airport.icao_code)
    if series is not None:
        pax = series.value_at(year)
        if pax > 0:
            return pax
    return AIRPORT_TYPE_WEIGHTS.get(airport.airport_type, DEFAULT_TYPE_WEIGHT)


def demand_shares(
    airports: Sequence[Airport],
    historical_pax: Mapping[str, TimeSeries],
    year: float,
) -> list[ZoneShare]:
    """Split one zone's demand across its airports.

    A single airport gets exactly 1.0. Shares always sum to 1.0; a zero
    total weight falls back to an even split.
    """
    if not airports:
        return []
    if len(airports) == 1:
        only = airports[0]
        return [ZoneShare(airport_id=only.airport_id, icao_code=only.icao_code, demand_share=1.0)]

    weights = [airport_weight(a, historical_pax, year) for a in airports]
    total = sum(weights)
    if total <= 0:
        weights = [1.0] * len(airports)
        total = float(len(airports))

    return [
        ZoneShare(airport_id=a.airport_id, icao_code=a.icao_code, demand_share=w / total)
        for a, w in zip(airports, weights)
    ]
