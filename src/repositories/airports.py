"""Airport repository — the pipeline's input table."""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.tables import AirportRow
from src.models.common import new_uuid7, utc_now
from src.models.zone import Airport


def row_to_airport(row: AirportRow) -> Airport:
    return Airport(
        airport_id=row.airport_id,
        icao_code=row.icao_code,
        iata_code=row.iata_code,
        name=row.name,
        city=row.city,
        country=row.country,
        airport_type=row.airport_type,
        latitude=row.latitude,
        longitude=row.longitude,
        traffic_demand=row.traffic_demand,
        is_active=row.is_active,
    )


class AirportRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, *, icao_code: str, name: str, country: str,
                     airport_type: str, latitude: float, longitude: float,
                     city: str = "", iata_code: str | None = None,
                     traffic_demand: int = 10, is_active: bool = True,
                     airport_id: UUID | None = None) -> AirportRow:
        row = AirportRow(
            airport_id=airport_id or new_uuid7(), icao_code=icao_code,
            iata_code=iata_code, name=name, city=city, country=country,
            airport_type=airport_type, latitude=latitude, longitude=longitude,
            traffic_demand=traffic_demand, is_active=is_active,
            created_at=utc_now(),
        )
        self._session.add(row)
        await self._session.flush()
        return row

    async def get(self, airport_id: UUID) -> AirportRow | None:
        return await self._session.get(AirportRow, airport_id)

    async def get_by_icao(self, icao_code: str) -> AirportRow | None:
        result = await self._session.execute(
            select(AirportRow).where(AirportRow.icao_code == icao_code),
        )
        return result.scalar_one_or_none()

    async def list_all(self) -> list[AirportRow]:
        result = await self._session.execute(select(AirportRow))
        return list(result.scalars().all())

    async def list_active(self) -> list[Airport]:
        """Active airports as engine inputs, ordered by ICAO code."""
        result = await self._session.execute(
            select(AirportRow)
            .where(AirportRow.is_active.is_(True))
            .order_by(AirportRow.icao_code),
        )
        return [row_to_airport(row) for row in result.scalars().all()]

    async def count(self) -> int:
        result = await self._session.execute(select(func.count()).select_from(AirportRow))
        return int(result.scalar_one())
