"""Economic model — income-elastic flying rate and air mass.

    FlyRate(gdp, t) = clamp(A_t * max(gdp / GDP_ref, 0.001)^eta, 0, MaxRate_t)
    AirMass(pop, gdp, t) = pop * FlyRate(gdp, t)

A_t and MaxRate_t are decade anchors interpolated for any year. AirMass
is the gravity model's mass term (effective flying population, thousands).

Pure deterministic — no I/O.
"""

import logging
from collections.abc import Iterable, Mapping

import numpy as np

from src.engine.timeseries import TimeSeries
from src.models.calibration import CalibrationConstants, CountryEconomics

logger = logging.getLogger(__name__)

# Floor on the income ratio so a zero GDP still yields a finite power.
_MIN_INCOME_RATIO = 0.001


class EconomicModel:
    """Flying-rate and air-mass computation for one set of constants."""

    def __init__(
        self,
        constants: CalibrationConstants,
        economics: Mapping[str, CountryEconomics],
    ) -> None:
        self._constants = constants
        self._propensity = TimeSeries.from_mapping(constants.fly_propensity)
        self._max_rate = TimeSeries.from_mapping(constants.max_fly_rate)
        self._gdp = {
            code: TimeSeries.from_mapping(country.gdp_per_capita)
            for code, country in economics.items()
            if country.gdp_per_capita
        }

    @property
    def constants(self) -> CalibrationConstants:
        return self._constants

    def propensity(self, year: float) -> float:
        """A_t: base flying propensity at reference income."""
        return self._propensity.value_at(year)

    def max_rate(self, year: float) -> float:
        return self._max_rate.value_at(year)

    def fly_rate(self, gdp_per_capita: float, year: float) -> float:
        """Fraction of the population flying per year, in [0, MaxRate_t]."""
        ratio = max(gdp_per_capita / self._constants.reference_gdp_per_capita, _MIN_INCOME_RATIO)
        rate = self.propensity(year) * ratio ** self._constants.eta
        return max(0.0, min(self.max_rate(year), rate))

    def air_mass(self, population: float, gdp_per_capita: float, year: float) -> float:
        """Effective flying population (same unit as ``population``)."""
        return population * self.fly_rate(gdp_per_capita, year)

    def fly_rates(self, gdp_per_capita: np.ndarray, year: float) -> np.ndarray:
        """Vectorized ``fly_rate`` over an array of GDP values."""
        gdp = np.asarray(gdp_per_capita, dtype=np.float64)
        ratio = np.maximum(gdp / self._constants.reference_gdp_per_capita, _MIN_INCOME_RATIO)
        rates = self.propensity(year) * ratio ** self._constants.eta
        return np.clip(rates, 0.0, self.max_rate(year))

    def air_masses(
        self, population: np.ndarray, gdp_per_capita: np.ndarray, year: float,
    ) -> np.ndarray:
        """Vectorized ``air_mass``."""
        return np.asarray(population, dtype=np.float64) * self.fly_rates(gdp_per_capita, year)

    def has_country(self, country_code: str) -> bool:
        return country_code in self._gdp

    def gdp_for_country(self, country_code: str, year: float) -> float:
        """GDP per capita for ``country_code`` at ``year``.

        Countries without data fall back to ``missing_gdp_fallback``.
        """
        series = self._gdp.get(country_code)
        if series is None:
            return self._constants.missing_gdp_fallback
        return series.value_at(year)

    def missing_countries(self, country_codes: Iterable[str]) -> list[str]:
        """Sorted country codes with no GDP data; logs them once."""
        missing = sorted({code for code in country_codes if code not in self._gdp})
        if missing:
            logger.warning(
                "No GDP data for %d countries, using fallback %.0f: %s",
                len(missing), self._constants.missing_gdp_fallback, ", ".join(missing),
            )
        return missing
