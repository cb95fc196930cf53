"""Tests for AirportRepository."""

import pytest

from src.repositories.airports import AirportRepository


@pytest.fixture
def repo(db_session):
    return AirportRepository(db_session)


class TestAirportRepository:

    @pytest.mark.anyio
    async def test_create_and_get(self, repo: AirportRepository) -> None:
        row = await repo.create(
            icao_code="EGLL", iata_code="LHR", name="London Heathrow",
            country="United Kingdom", airport_type="International Hub",
            latitude=51.4706, longitude=-0.4619,
        )
        fetched = await repo.get(row.airport_id)
        assert fetched is not None
        assert fetched.icao_code == "EGLL"
        assert fetched.traffic_demand == 10

    @pytest.mark.anyio
    async def test_get_by_icao(self, repo: AirportRepository) -> None:
        await repo.create(icao_code="KJFK", name="JFK", country="United States",
                          airport_type="International Hub", latitude=40.64, longitude=-73.78)
        assert (await repo.get_by_icao("KJFK")) is not None
        assert (await repo.get_by_icao("ZZZZ")) is None

    @pytest.mark.anyio
    async def test_list_active_sorted_and_filtered(self, repo: AirportRepository) -> None:
        await repo.create(icao_code="LFPG", name="CDG", country="France",
                          airport_type="International Hub", latitude=49.01, longitude=2.55)
        await repo.create(icao_code="EGLL", name="LHR", country="United Kingdom",
                          airport_type="International Hub", latitude=51.47, longitude=-0.46)
        await repo.create(icao_code="EGKK", name="LGW", country="United Kingdom",
                          airport_type="Regional Hub", latitude=51.15, longitude=-0.19,
                          is_active=False)

        active = await repo.list_active()
        assert [a.icao_code for a in active] == ["EGLL", "LFPG"]
        assert active[0].country == "United Kingdom"
        assert active[0].airport_type == "International Hub"
        assert await repo.count() == 3
