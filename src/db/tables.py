"""SQLAlchemy ORM table models for the demand store.

Uses FlexJSON (JSONB on Postgres, JSON on SQLite) for decade series.

Categories:
- INPUT: Airport (maintained elsewhere, read by the pipeline)
- REBUILT EVERY RUN: MetroZone, AirportZoneMapping, AirportRouteDemand
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import JSON

from src.db.session import Base

# JSONB on PostgreSQL, plain JSON on SQLite (for tests)
FlexJSON = JSONB().with_variant(JSON(), "sqlite")

# Decades with a dedicated demand column on airport_route_demands.
DEMAND_DECADES: tuple[int, ...] = (1950, 1960, 1970, 1980, 1990, 2000, 2010, 2020)


def demand_column(decade: int) -> str:
    """Column name holding the normalized demand for ``decade``."""
    if decade not in DEMAND_DECADES:
        msg = f"No demand column for decade {decade}"
        raise ValueError(msg)
    return f"demand_{decade}"


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------


class AirportRow(Base):
    __tablename__ = "airports"

    airport_id: Mapped[UUID] = mapped_column(primary_key=True)
    icao_code: Mapped[str] = mapped_column(String(4), nullable=False, unique=True, index=True)
    iata_code: Mapped[str | None] = mapped_column(String(3), nullable=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    city: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    country: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    airport_type: Mapped[str] = mapped_column(String(50), nullable=False, default="Regional")
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    traffic_demand: Mapped[int] = mapped_column(Integer, nullable=False, default=10)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


# ---------------------------------------------------------------------------
# Gravity model output — rebuilt wholesale each run
# ---------------------------------------------------------------------------


class MetroZoneRow(Base):
    """Metro zone definition as used by the last run."""

    __tablename__ = "metro_zones"

    zone_id: Mapped[str] = mapped_column(String(10), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    country_code: Mapped[str] = mapped_column(String(2), nullable=False, index=True)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    population = mapped_column(FlexJSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class AirportZoneMappingRow(Base):
    """Airport → zone membership with the airport's share of zone demand."""

    __tablename__ = "airport_zone_mappings"
    __table_args__ = (
        UniqueConstraint("airport_id", "zone_id", name="uq_airport_zone_mapping"),
    )

    mapping_id: Mapped[UUID] = mapped_column(primary_key=True)
    airport_id: Mapped[UUID] = mapped_column(
        ForeignKey("airports.airport_id"), nullable=False, index=True,
    )
    zone_id: Mapped[str] = mapped_column(
        ForeignKey("metro_zones.zone_id"), nullable=False, index=True,
    )
    demand_share: Mapped[float] = mapped_column(Float, nullable=False)
    method: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class AirportRouteDemandRow(Base):
    """Normalized 0-100 demand for an ordered airport pair, one column per decade.

    base_demand mirrors demand_2000 for readers of the single-value column.
    """

    __tablename__ = "airport_route_demands"
    __table_args__ = (
        UniqueConstraint("from_airport_id", "to_airport_id", name="unique_airport_pair"),
    )

    demand_id: Mapped[UUID] = mapped_column(primary_key=True)
    from_airport_id: Mapped[UUID] = mapped_column(
        ForeignKey("airports.airport_id"), nullable=False, index=True,
    )
    to_airport_id: Mapped[UUID] = mapped_column(
        ForeignKey("airports.airport_id"), nullable=False, index=True,
    )
    from_zone_id: Mapped[str | None] = mapped_column(
        ForeignKey("metro_zones.zone_id"), nullable=True,
    )
    to_zone_id: Mapped[str | None] = mapped_column(
        ForeignKey("metro_zones.zone_id"), nullable=True,
    )
    base_demand: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    demand_category: Mapped[str] = mapped_column(String(20), nullable=False, default="very_low")
    route_type: Mapped[str] = mapped_column(String(20), nullable=False, default="mixed")
    demand_1950: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    demand_1960: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    demand_1970: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    demand_1980: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    demand_1990: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    demand_2000: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    demand_2010: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    demand_2020: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def demands(self) -> dict[int, int]:
        """Decade → demand for this row."""
        return {decade: getattr(self, demand_column(decade)) for decade in DEMAND_DECADES}
