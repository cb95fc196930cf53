"""Shared types, enums, and base models used across the demand engine."""

from datetime import datetime, timezone
from enum import StrEnum
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, Field
from uuid_extensions import uuid7


def utc_now() -> datetime:
    """Return the current UTC timestamp (timezone-aware)."""
    return datetime.now(tz=timezone.utc)


def new_uuid7() -> UUID:
    """Generate a new time-sortable UUID v7."""
    return uuid7()


# --- Reusable annotated types ---

ZoneId = Annotated[str, Field(min_length=2, max_length=10, description="Stable metro zone code.")]
CountryCode = Annotated[str, Field(min_length=2, max_length=2, description="ISO 3166-1 alpha-2.")]


# --- Shared enums ---


class AirportType(StrEnum):
    """Airport classification as carried by the airport dataset."""

    INTERNATIONAL_HUB = "International Hub"
    REGIONAL_HUB = "Regional Hub"
    REGIONAL = "Regional"
    MAJOR = "Major"
    DOMESTIC = "Domestic"
    SMALL = "Small"
    CLOSED = "Closed"


class AssignmentMethod(StrEnum):
    """How an airport was attached to its metro zone."""

    EXPLICIT = "EXPLICIT"
    PROXIMITY = "PROXIMITY"


class DemandCategory(StrEnum):
    """Coarse demand label derived from the 0-100 score."""

    VERY_HIGH = "very_high"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    VERY_LOW = "very_low"


class RouteType(StrEnum):
    """Route classification stored alongside demand."""

    BUSINESS = "business"
    LEISURE = "leisure"
    MIXED = "mixed"
    CARGO = "cargo"
    REGIONAL = "regional"


# --- Base model ---


class GravityBase(BaseModel):
    """Base model with common configuration for all demand-engine Pydantic models."""

    model_config = {
        "populate_by_name": True,
        "protected_namespaces": (),
    }
