"""Gravity demand schema — airports, metro zones, zone mappings, route demands.

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

DECADES = (1950, 1960, 1970, 1980, 1990, 2000, 2010, 2020)


def upgrade() -> None:
    # -- Input --
    op.create_table(
        "airports",
        sa.Column("airport_id", UUID(as_uuid=True), primary_key=True),
        sa.Column("icao_code", sa.String(4), nullable=False, unique=True),
        sa.Column("iata_code", sa.String(3), nullable=True),
        sa.Column("name", sa.String(255), nullable=False, server_default=""),
        sa.Column("city", sa.String(255), nullable=False, server_default=""),
        sa.Column("country", sa.String(100), nullable=False, server_default=""),
        sa.Column("airport_type", sa.String(50), nullable=False, server_default="Regional"),
        sa.Column("latitude", sa.Float, nullable=False),
        sa.Column("longitude", sa.Float, nullable=False),
        sa.Column("traffic_demand", sa.Integer, nullable=False, server_default="10"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_airports_icao_code", "airports", ["icao_code"])

    # -- Gravity output (rebuilt each run) --
    op.create_table(
        "metro_zones",
        sa.Column("zone_id", sa.String(10), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("country_code", sa.String(2), nullable=False),
        sa.Column("latitude", sa.Float, nullable=False),
        sa.Column("longitude", sa.Float, nullable=False),
        sa.Column("population", JSONB, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_metro_zones_country_code", "metro_zones", ["country_code"])

    op.create_table(
        "airport_zone_mappings",
        sa.Column("mapping_id", UUID(as_uuid=True), primary_key=True),
        sa.Column("airport_id", UUID(as_uuid=True),
                  sa.ForeignKey("airports.airport_id"), nullable=False),
        sa.Column("zone_id", sa.String(10),
                  sa.ForeignKey("metro_zones.zone_id"), nullable=False),
        sa.Column("demand_share", sa.Float, nullable=False),
        sa.Column("method", sa.String(20), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("airport_id", "zone_id", name="uq_airport_zone_mapping"),
    )
    op.create_index("ix_airport_zone_mappings_airport_id", "airport_zone_mappings", ["airport_id"])
    op.create_index("ix_airport_zone_mappings_zone_id", "airport_zone_mappings", ["zone_id"])

    op.create_table(
        "airport_route_demands",
        sa.Column("demand_id", UUID(as_uuid=True), primary_key=True),
        sa.Column("from_airport_id", UUID(as_uuid=True),
                  sa.ForeignKey("airports.airport_id"), nullable=False),
        sa.Column("to_airport_id", UUID(as_uuid=True),
                  sa.ForeignKey("airports.airport_id"), nullable=False),
        sa.Column("from_zone_id", sa.String(10),
                  sa.ForeignKey("metro_zones.zone_id"), nullable=True),
        sa.Column("to_zone_id", sa.String(10),
                  sa.ForeignKey("metro_zones.zone_id"), nullable=True),
        sa.Column("base_demand", sa.Integer, nullable=False, server_default="0"),
        sa.Column("demand_category", sa.String(20), nullable=False, server_default="very_low"),
        sa.Column("route_type", sa.String(20), nullable=False, server_default="mixed"),
        *[
            sa.Column(f"demand_{decade}", sa.Integer, nullable=False, server_default="0")
            for decade in DECADES
        ],
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("from_airport_id", "to_airport_id", name="unique_airport_pair"),
    )
    op.create_index("ix_airport_route_demands_from_airport_id", "airport_route_demands", ["from_airport_id"])
    op.create_index("ix_airport_route_demands_to_airport_id", "airport_route_demands", ["to_airport_id"])


def downgrade() -> None:
    op.drop_table("airport_route_demands")
    op.drop_table("airport_zone_mappings")
    op.drop_table("metro_zones")
    op.drop_table("airports")
