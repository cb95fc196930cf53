"""Zone models — MetroZone, Airport (input), AirportZoneAssignment."""

from uuid import UUID

from pydantic import Field

from src.engine.timeseries import value_at
from src.models.common import AssignmentMethod, CountryCode, GravityBase, ZoneId


class MetroZone(GravityBase, frozen=True):
    """Metropolitan catchment area aggregating one or more airports.

    ``population`` is in thousands, keyed by decade.
    ``airports`` is the explicit ICAO membership list.
    """

    zone_id: ZoneId
    name: str = Field(..., min_length=1)
    country_code: CountryCode
    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)
    population: dict[int, float]
    airports: list[str] = Field(default_factory=list)

    def population_at(self, year: float) -> float:
        """Interpolated population (thousands) for ``year``."""
        return value_at(self.population, year)


class Airport(GravityBase, frozen=True):
    """Active airport as read from the airport store."""

    airport_id: UUID
    icao_code: str = Field(..., min_length=3, max_length=4)
    iata_code: str | None = None
    name: str = ""
    city: str = ""
    country: str = Field(default="", description="Country display name.")
    airport_type: str = Field(default="Regional", description="Classification, e.g. 'International Hub'.")
    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)
    traffic_demand: int = 10
    is_active: bool = True


class AirportZoneAssignment(GravityBase, frozen=True):
    """Airport membership in a zone with its share of the zone's demand."""

    airport_id: UUID
    icao_code: str
    zone_id: ZoneId
    demand_share: float = Field(..., gt=0.0, le=1.0)
    method: AssignmentMethod
