"""Gravity output repositories — metro zones, zone mappings, route demands."""

from collections.abc import Sequence
from datetime import datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from src.db.tables import (
    DEMAND_DECADES,
    AirportRouteDemandRow,
    AirportRow,
    AirportZoneMappingRow,
    MetroZoneRow,
    demand_column,
)
from src.models.common import new_uuid7, utc_now
from src.models.demand import AirportPairDemand
from src.models.zone import AirportZoneAssignment, MetroZone
from src.repositories.base import BulkTableRepository

# (label, low, high) inclusive. The lowest bucket starts at 0, not at the
# threshold of 3: rows kept for another decade hold 0 here and are counted.
DISTRIBUTION_BUCKETS: tuple[tuple[str, int, int], ...] = (
    ("80-100", 80, 100),
    ("60-79", 60, 79),
    ("40-59", 40, 59),
    ("20-39", 20, 39),
    ("10-19", 10, 19),
    ("5-9", 5, 9),
    ("0-4", 0, 4),
)


def zone_to_row(zone: MetroZone, now: datetime | None = None) -> dict[str, Any]:
    return {
        "zone_id": zone.zone_id,
        "name": zone.name,
        "country_code": zone.country_code,
        "latitude": zone.latitude,
        "longitude": zone.longitude,
        "population": {str(decade): value for decade, value in sorted(zone.population.items())},
        "created_at": now or utc_now(),
    }


def assignment_to_row(assignment: AirportZoneAssignment, now: datetime | None = None) -> dict[str, Any]:
    return {
        "mapping_id": new_uuid7(),
        "airport_id": assignment.airport_id,
        "zone_id": assignment.zone_id,
        "demand_share": assignment.demand_share,
        "method": str(assignment.method),
        "created_at": now or utc_now(),
    }


def demand_to_row(demand: AirportPairDemand, now: datetime | None = None) -> dict[str, Any]:
    row: dict[str, Any] = {
        "demand_id": new_uuid7(),
        "from_airport_id": demand.from_airport_id,
        "to_airport_id": demand.to_airport_id,
        "from_zone_id": demand.from_zone_id,
        "to_zone_id": demand.to_zone_id,
        "base_demand": demand.base_demand,
        "demand_category": str(demand.demand_category),
        "route_type": str(demand.route_type),
        "created_at": now or utc_now(),
    }
    for decade in DEMAND_DECADES:
        row[demand_column(decade)] = demand.demands.get(decade, 0)
    return row


class MetroZoneRepository(BulkTableRepository[MetroZoneRow]):
    row_class = MetroZoneRow

    async def get(self, zone_id: str) -> MetroZoneRow | None:
        return await self._session.get(MetroZoneRow, zone_id)

    async def insert_zones(self, zones: Sequence[MetroZone], *, batch_size: int = 1000) -> int:
        now = utc_now()
        return await self.insert_ignore([zone_to_row(z, now) for z in zones], batch_size=batch_size)


class AirportZoneMappingRepository(BulkTableRepository[AirportZoneMappingRow]):
    row_class = AirportZoneMappingRow

    async def insert_assignments(
        self, assignments: Sequence[AirportZoneAssignment], *, batch_size: int = 500,
    ) -> int:
        now = utc_now()
        return await self.insert_ignore(
            [assignment_to_row(a, now) for a in assignments], batch_size=batch_size,
        )

    async def list_for_zone(self, zone_id: str) -> list[AirportZoneMappingRow]:
        result = await self._session.execute(
            select(AirportZoneMappingRow).where(AirportZoneMappingRow.zone_id == zone_id),
        )
        return list(result.scalars().all())

    async def method_counts(self) -> dict[str, int]:
        result = await self._session.execute(
            select(AirportZoneMappingRow.method, func.count())
            .group_by(AirportZoneMappingRow.method),
        )
        return {method: int(n) for method, n in result.all()}


class AirportRouteDemandRepository(BulkTableRepository[AirportRouteDemandRow]):
    row_class = AirportRouteDemandRow

    async def insert_demands(
        self, demands: Sequence[AirportPairDemand], *, batch_size: int = 1000,
    ) -> int:
        now = utc_now()
        return await self.insert_ignore(
            [demand_to_row(d, now) for d in demands], batch_size=batch_size,
        )

    async def get_pair(self, from_icao: str, to_icao: str) -> AirportRouteDemandRow | None:
        """Demand row for an ordered pair of ICAO codes."""
        origin = aliased(AirportRow)
        dest = aliased(AirportRow)
        result = await self._session.execute(
            select(AirportRouteDemandRow)
            .join(origin, AirportRouteDemandRow.from_airport_id == origin.airport_id)
            .join(dest, AirportRouteDemandRow.to_airport_id == dest.airport_id)
            .where(origin.icao_code == from_icao, dest.icao_code == to_icao),
        )
        return result.scalar_one_or_none()

    async def top_destinations(
        self, icao_code: str, decade: int, *, limit: int = 15,
    ) -> list[tuple[str, str, str, int]]:
        """(icao, name, country, demand) for the strongest routes out of ``icao_code``."""
        column = getattr(AirportRouteDemandRow, demand_column(decade))
        origin = aliased(AirportRow)
        dest = aliased(AirportRow)
        result = await self._session.execute(
            select(dest.icao_code, dest.name, dest.country, column)
            .select_from(AirportRouteDemandRow)
            .join(origin, AirportRouteDemandRow.from_airport_id == origin.airport_id)
            .join(dest, AirportRouteDemandRow.to_airport_id == dest.airport_id)
            .where(origin.icao_code == icao_code, column > 0)
            .order_by(column.desc(), dest.icao_code)
            .limit(limit),
        )
        return [(icao, name, country, int(d)) for icao, name, country, d in result.all()]

    async def category_counts(self) -> dict[str, int]:
        result = await self._session.execute(
            select(AirportRouteDemandRow.demand_category, func.count())
            .group_by(AirportRouteDemandRow.demand_category),
        )
        return {category: int(n) for category, n in result.all()}

    async def demand_distribution(self, decade: int) -> dict[str, int]:
        """Row counts per demand bucket for ``decade``."""
        column = getattr(AirportRouteDemandRow, demand_column(decade))
        distribution: dict[str, int] = {}
        for label, low, high in DISTRIBUTION_BUCKETS:
            result = await self._session.execute(
                select(func.count())
                .select_from(AirportRouteDemandRow)
                .where(column >= low, column <= high),
            )
            distribution[label] = int(result.scalar_one())
        return distribution


class GravityOutputRepository:
    """The three rebuilt tables, replaced together inside the caller's transaction."""

    def __init__(self, session: AsyncSession) -> None:
        self.zones = MetroZoneRepository(session)
        self.mappings = AirportZoneMappingRepository(session)
        self.demands = AirportRouteDemandRepository(session)

    async def delete_all(self) -> None:
        # Dependents first.
        await self.demands.delete_all()
        await self.mappings.delete_all()
        await self.zones.delete_all()

    async def replace_all(
        self,
        zones: Sequence[MetroZone],
        assignments: Sequence[AirportZoneAssignment],
        demands: Sequence[AirportPairDemand],
        *,
        batch_size: int = 1000,
        mapping_batch_size: int = 500,
    ) -> dict[str, int]:
        """Delete previous output and insert a new run's rows.

        Returns rows submitted per table.
        """
        await self.delete_all()
        return {
            "zones": await self.zones.insert_zones(zones, batch_size=batch_size),
            "mappings": await self.mappings.insert_assignments(
                assignments, batch_size=mapping_batch_size,
            ),
            "demands": await self.demands.insert_demands(demands, batch_size=batch_size),
        }
