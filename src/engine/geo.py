"""Great-circle geometry and the zone distance matrix.

Distances are in nautical miles. The matrix is time-invariant and is
built once per pipeline run.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np

from src.models.zone import MetroZone

EARTH_RADIUS_NM = 3440.065


def distance_nm(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance between two points, in nautical miles."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_NM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def pairwise_distances_nm(latitudes: np.ndarray, longitudes: np.ndarray) -> np.ndarray:
    """Symmetric n×n haversine matrix with a zero diagonal."""
    lat = np.radians(np.asarray(latitudes, dtype=np.float64))
    lon = np.radians(np.asarray(longitudes, dtype=np.float64))

    d_lat = lat[np.newaxis, :] - lat[:, np.newaxis]
    d_lon = lon[np.newaxis, :] - lon[:, np.newaxis]
    a = (
        np.sin(d_lat / 2) ** 2
        + np.cos(lat)[:, np.newaxis] * np.cos(lat)[np.newaxis, :] * np.sin(d_lon / 2) ** 2
    )
    a = np.clip(a, 0.0, 1.0)
    d = EARTH_RADIUS_NM * 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))

    # Mirror the upper triangle so d[i, j] == d[j, i] bit for bit.
    upper = np.triu(d, k=1)
    return upper + upper.T


@dataclass(frozen=True, eq=False)
class DistanceMatrix:
    """All zone-pair distances, indexable by zone id in either order."""

    zone_ids: tuple[str, ...]
    matrix: np.ndarray
    _index: dict[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        n = len(self.zone_ids)
        if self.matrix.shape != (n, n):
            msg = f"matrix shape {self.matrix.shape} does not match {n} zones."
            raise ValueError(msg)
        object.__setattr__(self, "_index", {zid: i for i, zid in enumerate(self.zone_ids)})
        self.matrix.flags.writeable = False

    @classmethod
    def from_zones(cls, zones: Sequence[MetroZone]) -> DistanceMatrix:
        lats = np.array([z.latitude for z in zones], dtype=np.float64)
        lons = np.array([z.longitude for z in zones], dtype=np.float64)
        return cls(
            zone_ids=tuple(z.zone_id for z in zones),
            matrix=pairwise_distances_nm(lats, lons),
        )

    def __len__(self) -> int:
        return len(self.zone_ids)

    @property
    def pair_count(self) -> int:
        """Number of unordered zone pairs."""
        n = len(self.zone_ids)
        return n * (n - 1) // 2

    def index_of(self, zone_id: str) -> int:
        return self._index[zone_id]

    def between(self, zone_a: str, zone_b: str) -> float:
        """Distance between two zones (nm). Raises KeyError for unknown ids."""
        return float(self.matrix[self._index[zone_a], self._index[zone_b]])
