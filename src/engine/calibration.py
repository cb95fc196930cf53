"""Calibration solver — per-decade scale factor K.

K is solved in closed form so that the model's total demand over all
zone pairs (both directions) equals the historical world passenger
count for that year:

    K_t = WorldPassengers_t / SUM_ij Raw(i, j, t)

Valid as a single division because K is a pure multiplicative scalar.
A zero total (no viable pairs) yields K = 1.
"""

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from src.engine.geo import DistanceMatrix
from src.engine.gravity import GravityModel
from src.engine.timeseries import TimeSeries
from src.models.zone import MetroZone

PASSENGERS_PER_MILLION = 1_000_000


@dataclass(frozen=True)
class CalibrationResult:
    """Solved scale factor for one year."""

    year: int
    k: float
    total_raw_demand: float
    target_passengers: float


class CalibrationSolver:
    """Closed-form K solve against world passenger anchors."""

    def __init__(self, gravity: GravityModel) -> None:
        self._gravity = gravity
        self._targets = TimeSeries.from_mapping(
            gravity.economics.constants.world_passengers_millions,
        )

    def target_passengers(self, year: float) -> float:
        """Historical world passenger count for ``year`` (absolute)."""
        return self._targets.value_at(year) * PASSENGERS_PER_MILLION

    def calibrate(
        self,
        zones: Sequence[MetroZone],
        distances: DistanceMatrix,
        year: int,
        *,
        raw_matrix: np.ndarray | None = None,
        cultural_matrix: np.ndarray | None = None,
    ) -> CalibrationResult:
        """Solve K for ``year``.

        ``raw_matrix`` may be passed when the caller already computed it
        for the same zones and year.
        """
        if raw_matrix is None:
            raw_matrix = self._gravity.raw_demand_matrix(
                zones, distances, year, cultural_matrix=cultural_matrix,
            )
        # The matrix holds both directions of every unordered pair.
        total = float(raw_matrix.sum())
        target = self.target_passengers(year)
        k = 1.0 if total == 0.0 else target / total
        return CalibrationResult(
            year=year, k=k, total_raw_demand=total, target_passengers=target,
        )
