"""Demand output models — AirportPairDemand and per-decade run summaries."""

from uuid import UUID

from pydantic import Field

from src.engine.classification import round_half_up
from src.engine.timeseries import value_at
from src.models.common import DemandCategory, GravityBase, RouteType, ZoneId


class AirportPairDemand(GravityBase, frozen=True):
    """Normalized demand for one ordered airport pair, by decade (0-100)."""

    from_airport_id: UUID
    to_airport_id: UUID
    from_zone_id: ZoneId
    to_zone_id: ZoneId
    demands: dict[int, int] = Field(
        ...,
        description="Decade → normalized demand; every decade is present (0 when absent).",
    )
    demand_category: DemandCategory
    route_type: RouteType

    @property
    def base_demand(self) -> int:
        """Legacy single-value demand: the 2000 column."""
        return self.demands.get(2000, 0)

    def demand_at(self, year: float) -> int:
        """Demand interpolated between decade columns, clamped at the ends."""
        return round_half_up(value_at(self.demands, year))


class DecadeSummary(GravityBase, frozen=True):
    """Run statistics for one decade."""

    decade: int
    k: float
    total_raw_demand: float
    target_passengers: float
    zone_pairs_with_demand: int = Field(..., ge=0)
    airport_pairs_computed: int = Field(..., ge=0)
    airport_pairs_kept: int = Field(..., ge=0)
    max_raw_pair_demand: float = Field(..., ge=0)
