"""Gravity formula for zone-pair passenger demand.

    Raw(i, j, t) = AirMass_i^alpha * AirMass_j^alpha
                   * max(Dist_ij, D_floor)^(-gamma) * Cultural(i, j)

Pairs outside the viable distance band, or with a negligible air mass on
either side, contribute exactly zero. The distance floor keeps
ultra-short pairs from dominating through distance decay.

The scalar ``raw_zone_demand`` and the vectorized ``raw_demand_matrix``
produce identical values; the pipeline uses the matrix form.

Pure deterministic — no I/O.
"""

from collections.abc import Sequence

import numpy as np

from src.engine.cultural import CulturalAffinityResolver
from src.engine.economics import EconomicModel
from src.engine.geo import DistanceMatrix
from src.models.zone import MetroZone


class GravityModel:
    """Raw (uncalibrated) zone-pair demand."""

    def __init__(
        self,
        economics: EconomicModel,
        cultural: CulturalAffinityResolver,
    ) -> None:
        self._economics = economics
        self._cultural = cultural
        self._constants = economics.constants

    @property
    def economics(self) -> EconomicModel:
        return self._economics

    @property
    def cultural(self) -> CulturalAffinityResolver:
        return self._cultural

    def is_viable_distance(self, distance: float) -> bool:
        c = self._constants
        return c.min_distance_nm <= distance <= c.max_distance_nm

    def raw_zone_demand(
        self,
        zone_a: MetroZone,
        zone_b: MetroZone,
        gdp_a: float,
        gdp_b: float,
        distance: float,
        year: float,
    ) -> float:
        """Raw demand between two zones at ``year``.

        Args:
            zone_a: Origin zone.
            zone_b: Destination zone.
            gdp_a: GDP per capita for zone_a's country.
            gdp_b: GDP per capita for zone_b's country.
            distance: Precomputed great-circle distance (nm).
            year: Target year.

        Returns:
            Non-negative raw demand; 0 outside the viable distance band
            or when either air mass is negligible.
        """
        c = self._constants
        if not self.is_viable_distance(distance):
            return 0.0

        mass_a = self._economics.air_mass(zone_a.population_at(year), gdp_a, year)
        mass_b = self._economics.air_mass(zone_b.population_at(year), gdp_b, year)
        if mass_a < c.min_air_mass or mass_b < c.min_air_mass:
            return 0.0

        effective_distance = max(distance, c.min_effective_distance_nm)
        cultural = self._cultural.multiplier(zone_a.country_code, zone_b.country_code)
        return (
            mass_a ** c.alpha
            * mass_b ** c.alpha
            * effective_distance ** -c.gamma
            * cultural
        )

    def air_mass_vector(self, zones: Sequence[MetroZone], year: float) -> np.ndarray:
        """Air mass per zone at ``year``."""
        population = np.array([z.population_at(year) for z in zones], dtype=np.float64)
        gdp = np.array(
            [self._economics.gdp_for_country(z.country_code, year) for z in zones],
            dtype=np.float64,
        )
        return self._economics.air_masses(population, gdp, year)

    def raw_demand_matrix(
        self,
        zones: Sequence[MetroZone],
        distances: DistanceMatrix,
        year: float,
        *,
        cultural_matrix: np.ndarray | None = None,
    ) -> np.ndarray:
        """n×n raw demand for all ordered zone pairs (zero diagonal).

        Args:
            zones: Zones in the same order as ``distances.zone_ids``.
            distances: Zone distance matrix.
            year: Target year.
            cultural_matrix: Precomputed multipliers; resolved if omitted.

        Returns:
            Symmetric float64 matrix.
        """
        c = self._constants
        if tuple(z.zone_id for z in zones) != distances.zone_ids:
            msg = "zones must be ordered like distances.zone_ids."
            raise ValueError(msg)
        if cultural_matrix is None:
            cultural_matrix = self._cultural.multiplier_matrix([z.country_code for z in zones])

        masses = self.air_mass_vector(zones, year)
        mass_term = np.where(masses >= c.min_air_mass, masses ** c.alpha, 0.0)

        d = distances.matrix
        viable = (d >= c.min_distance_nm) & (d <= c.max_distance_nm)
        decay = np.maximum(d, c.min_effective_distance_nm) ** -c.gamma

        raw = np.outer(mass_term, mass_term) * decay * cultural_matrix
        raw[~viable] = 0.0
        np.fill_diagonal(raw, 0.0)
        return raw
