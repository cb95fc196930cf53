"""Static dataset loader — versioned JSON inputs for the demand engine.

Provides:
  load_calibration(path) -> CalibrationConstants
  load_metro_zones(path, decades) -> list[MetroZone]
  load_cultural_ties(path) -> CulturalTies
  load_country_economics(path) -> dict[str, CountryEconomics]
  load_country_codes(path) -> dict[str, str]
  load_historical_passengers(path) -> dict[str, TimeSeries]
  load_static_datasets(data_dir) -> StaticDatasets

Files live in ``src/data/static/`` unless a directory override is given.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from src.engine.timeseries import TimeSeries
from src.models.calibration import CalibrationConstants, CountryEconomics, CulturalTies
from src.models.zone import MetroZone

STATIC_DIR = Path(__file__).parent / "static"

CALIBRATION_FILE = "gravity_calibration.json"
ZONES_FILE = "metro_zones.json"
CULTURAL_TIES_FILE = "cultural_ties.json"
ECONOMICS_FILE = "country_economics.json"
COUNTRY_CODES_FILE = "country_codes.json"
HISTORICAL_PAX_FILE = "historical_passengers.json"


@dataclass(frozen=True)
class StaticDatasets:
    """All read-only configuration inputs for one pipeline run."""

    calibration: CalibrationConstants
    zones: list[MetroZone]
    cultural_ties: CulturalTies
    economics: dict[str, CountryEconomics]
    country_codes: dict[str, str]
    historical_passengers: dict[str, TimeSeries]


def _read_json(path: str | Path) -> object:
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def load_calibration(path: str | Path) -> CalibrationConstants:
    """Load and validate calibration constants.

    Raises:
        FileNotFoundError: If path does not exist.
        pydantic.ValidationError: If a field is missing or inconsistent.
    """
    return CalibrationConstants.model_validate(_read_json(path))


def load_metro_zones(path: str | Path, decades: Sequence[int]) -> list[MetroZone]:
    """Load zone definitions.

    Raises:
        ValueError: If zone ids repeat or a population series does not
            cover exactly ``decades``.
    """
    data = _read_json(path)
    if not isinstance(data, list):
        msg = f"{Path(path).name} must contain a list of zones"
        raise ValueError(msg)

    zones = [MetroZone.model_validate(item) for item in data]
    expected = set(decades)
    seen: set[str] = set()
    for zone in zones:
        if zone.zone_id in seen:
            msg = f"Duplicate zone id '{zone.zone_id}' in {Path(path).name}"
            raise ValueError(msg)
        seen.add(zone.zone_id)
        if set(zone.population) != expected:
            msg = (
                f"Zone '{zone.zone_id}' population decades {sorted(zone.population)} "
                f"!= {sorted(expected)}"
            )
            raise ValueError(msg)
    return zones


def load_cultural_ties(path: str | Path) -> CulturalTies:
    return CulturalTies.model_validate(_read_json(path))


def load_country_economics(path: str | Path) -> dict[str, CountryEconomics]:
    data = _read_json(path)
    if not isinstance(data, dict):
        msg = f"{Path(path).name} must map country codes to economics"
        raise ValueError(msg)
    return {code: CountryEconomics.model_validate(row) for code, row in data.items()}


def load_country_codes(path: str | Path) -> dict[str, str]:
    """Country display name → ISO alpha-2 code."""
    data = _read_json(path)
    if not isinstance(data, dict):
        msg = f"{Path(path).name} must map country names to codes"
        raise ValueError(msg)
    return {str(name): str(code) for name, code in data.items()}


def load_historical_passengers(path: str | Path) -> dict[str, TimeSeries]:
    """ICAO code → historical passenger series (millions). Missing file → empty."""
    path = Path(path)
    if not path.exists():
        return {}
    data = _read_json(path)
    airports = data.get("airports", {}) if isinstance(data, dict) else {}
    return {icao: TimeSeries.from_mapping(series) for icao, series in airports.items()}


def load_static_datasets(data_dir: str | Path | None = None) -> StaticDatasets:
    """Load every dataset from ``data_dir`` (packaged copy when omitted)."""
    base = Path(data_dir) if data_dir else STATIC_DIR
    calibration = load_calibration(base / CALIBRATION_FILE)
    return StaticDatasets(
        calibration=calibration,
        zones=load_metro_zones(base / ZONES_FILE, calibration.decades),
        cultural_ties=load_cultural_ties(base / CULTURAL_TIES_FILE),
        economics=load_country_economics(base / ECONOMICS_FILE),
        country_codes=load_country_codes(base / COUNTRY_CODES_FILE),
        historical_passengers=load_historical_passengers(base / HISTORICAL_PAX_FILE),
    )
