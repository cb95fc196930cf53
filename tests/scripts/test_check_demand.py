"""Tests for the demand diagnostics script."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from scripts.check_demand import KEY_ROUTES, demand_report
from scripts.seed import seed_gravity_demands, seed_sample_airports
from src.data.static_loader import load_static_datasets


@pytest.fixture
async def seeded(db_session: AsyncSession) -> dict:
    await seed_sample_airports(db_session)
    return await seed_gravity_demands(db_session, datasets=load_static_datasets())


class TestDemandReport:

    @pytest.mark.anyio
    async def test_top_destinations_from_heathrow(self, db_session: AsyncSession, seeded) -> None:
        report = await demand_report(db_session, origin="EGLL", decade=2010, limit=5)
        assert 0 < len(report["top"]) <= 5
        demands = [demand for *_, demand in report["top"]]
        assert demands == sorted(demands, reverse=True)
        assert all(icao != "EGKK" for icao, *_ in report["top"])

    @pytest.mark.anyio
    async def test_key_routes(self, db_session: AsyncSession, seeded) -> None:
        report = await demand_report(db_session)
        assert set(report["routes"]) == {label for *_, label in KEY_ROUTES}
        assert report["routes"]["Heathrow-JFK"] is not None
        # Manchester is not among the sample airports
        assert report["routes"]["Heathrow-Manchester"] is None

    @pytest.mark.anyio
    async def test_distribution_covers_every_row(self, db_session: AsyncSession, seeded) -> None:
        report = await demand_report(db_session, decade=2000)
        assert sum(report["distribution"].values()) == seeded["written"]["demands"]

    @pytest.mark.anyio
    async def test_empty_database(self, db_session: AsyncSession) -> None:
        report = await demand_report(db_session)
        assert report["top"] == []
        assert all(v is None for v in report["routes"].values())
        assert sum(report["distribution"].values()) == 0
