"""Shared pytest fixtures for the gravity demand test suite.

Provides:
- db_engine: in-memory SQLite async engine with all tables
- db_session: SAVEPOINT-isolated async session (app commits don't leak)
- calibration: full-decade calibration constants matching the packaged data
- make_zone / make_airport: model factories
- two_zone_datasets: London + New York with one airport each
"""

from uuid import uuid4

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from src.data.static_loader import StaticDatasets
from src.db.session import Base
import src.db.tables  # noqa: F401 — register ORM models on Base.metadata
from src.models.calibration import CalibrationConstants, CountryEconomics, CulturalTies
from src.models.zone import Airport, MetroZone

DECADES = [1950, 1960, 1970, 1980, 1990, 2000, 2010, 2020]


@pytest.fixture(scope="session")
def anyio_backend():
    """Run anyio-marked tests on asyncio only (SQLAlchemy async requires it)."""
    return "asyncio"


@pytest.fixture
async def db_engine():
    """Create an in-memory SQLite async engine with all tables."""
    eng = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
async def db_session(db_engine):
    """Provide a SAVEPOINT-isolated session.

    The outer transaction is never committed — it rolls back at teardown.
    Application code calling session.commit() triggers a SAVEPOINT release,
    which is then restarted so subsequent operations stay in the same
    outer transaction.
    """
    async with db_engine.connect() as conn:
        trans = await conn.begin()
        session = AsyncSession(bind=conn, expire_on_commit=False)

        nested = await conn.begin_nested()

        @event.listens_for(session.sync_session, "after_transaction_end")
        def restart_savepoint(sync_session, transaction):  # noqa: ARG001
            nonlocal nested
            if transaction.nested and not transaction._parent.nested:
                nested = conn.sync_connection.begin_nested()

        yield session

        await session.close()
        await trans.rollback()


# ---------------------------------------------------------------------------
# Domain factories
# ---------------------------------------------------------------------------


@pytest.fixture
def calibration() -> CalibrationConstants:
    return CalibrationConstants(
        decades=DECADES,
        world_passengers_millions=dict(zip(DECADES, [31, 106, 310, 748, 1025, 1672, 2628, 1807])),
        alpha=0.7,
        gamma=0.7,
        eta=1.2,
        reference_gdp_per_capita=45000,
        fly_propensity=dict(zip(DECADES, [0.02, 0.05, 0.1, 0.18, 0.28, 0.4, 0.55, 0.65])),
        max_fly_rate=dict(zip(DECADES, [0.05, 0.12, 0.25, 0.4, 0.55, 0.7, 0.85, 0.95])),
        min_distance_nm=100,
        max_distance_nm=10000,
        min_effective_distance_nm=800,
    )


@pytest.fixture
def make_zone():
    def _make(
        zone_id: str,
        country_code: str,
        latitude: float,
        longitude: float,
        *,
        population: float = 10000.0,
        airports: list[str] | None = None,
        name: str | None = None,
    ) -> MetroZone:
        return MetroZone(
            zone_id=zone_id,
            name=name or zone_id,
            country_code=country_code,
            latitude=latitude,
            longitude=longitude,
            population={d: population for d in DECADES},
            airports=airports or [],
        )
    return _make


@pytest.fixture
def make_airport():
    def _make(
        icao_code: str,
        country: str,
        latitude: float,
        longitude: float,
        *,
        airport_type: str = "International Hub",
        is_active: bool = True,
    ) -> Airport:
        return Airport(
            airport_id=uuid4(),
            icao_code=icao_code,
            name=f"{icao_code} Airport",
            country=country,
            airport_type=airport_type,
            latitude=latitude,
            longitude=longitude,
            is_active=is_active,
        )
    return _make


@pytest.fixture
def economics() -> dict[str, CountryEconomics]:
    return {
        "GB": CountryEconomics(
            name="United Kingdom",
            gdp_per_capita=dict(zip(DECADES, [10000, 13000, 17000, 21000, 27000, 37000, 42000, 45000])),
        ),
        "US": CountryEconomics(
            name="United States",
            gdp_per_capita=dict(zip(DECADES, [15000, 19000, 25000, 32000, 40000, 47000, 52000, 63000])),
        ),
        "FR": CountryEconomics(
            name="France",
            gdp_per_capita=dict(zip(DECADES, [8000, 12000, 18000, 23000, 28000, 34000, 40000, 41000])),
        ),
    }


@pytest.fixture
def cultural_ties() -> CulturalTies:
    return CulturalTies.model_validate({
        "domestic_multiplier": 1.0,
        "language_groups": [
            {"name": "Anglosphere", "members": ["US", "GB", "CA", "AU"], "multiplier": 1.2},
            {"name": "Francophone", "members": ["FR", "BE", "CA"], "multiplier": 1.15},
        ],
        "commonwealth": {"name": "Commonwealth", "members": ["GB", "CA", "AU", "IN"], "multiplier": 1.1},
        "regional_blocs": [
            {"name": "EU", "members": ["FR", "BE", "DE"], "multiplier": 1.1},
        ],
        "bilateral": [
            {"from_country": "GB", "to_country": "IN", "multiplier": 1.4},
        ],
    })


@pytest.fixture
def country_codes() -> dict[str, str]:
    return {"United Kingdom": "GB", "United States": "US", "France": "FR", "India": "IN"}


@pytest.fixture
def two_zone_datasets(calibration, make_zone, economics, cultural_ties, country_codes) -> StaticDatasets:
    zones = [
        make_zone("LON", "GB", 51.47, -0.46, population=12000, airports=["EGLL"]),
        make_zone("NYC", "US", 40.64, -73.78, population=18000, airports=["KJFK"]),
    ]
    return StaticDatasets(
        calibration=calibration,
        zones=zones,
        cultural_ties=cultural_ties,
        economics=economics,
        country_codes=country_codes,
        historical_passengers={},
    )


@pytest.fixture
def two_zone_airports(make_airport) -> list[Airport]:
    return [
        make_airport("EGLL", "United Kingdom", 51.4706, -0.4619),
        make_airport("KJFK", "United States", 40.6398, -73.7789),
    ]
