"""Piecewise-linear time series over sparse year knots.

Every time-varying quantity in the engine (zone population, GDP per
capita, flying propensity, max fly rate, world passenger anchors,
historical airport traffic, persisted decade demand) goes through
``value_at``. Between knots the value is linearly interpolated; outside
the covered range it is clamped to the nearest boundary value.

Pure deterministic — no I/O.
"""

from __future__ import annotations

from bisect import bisect_right
from collections.abc import Mapping
from dataclasses import dataclass


@dataclass(frozen=True)
class TimeSeries:
    """Sorted (year, value) knots with clamped linear interpolation."""

    years: tuple[int, ...]
    values: tuple[float, ...]

    def __post_init__(self) -> None:
        if len(self.years) != len(self.values):
            msg = (
                f"years ({len(self.years)}) and values ({len(self.values)}) "
                "must have the same length."
            )
            raise ValueError(msg)
        if any(b <= a for a, b in zip(self.years, self.years[1:])):
            msg = "years must be strictly increasing."
            raise ValueError(msg)

    @classmethod
    def from_mapping(cls, points: Mapping[int | str, float]) -> TimeSeries:
        """Build from a year-keyed mapping. String keys (from JSON) are accepted."""
        items = sorted((int(year), float(value)) for year, value in points.items())
        return cls(
            years=tuple(year for year, _ in items),
            values=tuple(value for _, value in items),
        )

    def __len__(self) -> int:
        return len(self.years)

    def value_at(self, year: float) -> float:
        """Value at ``year``: exact at knots, linear between, clamped outside."""
        if not self.years:
            return 0.0
        if year <= self.years[0]:
            return self.values[0]
        if year >= self.years[-1]:
            return self.values[-1]

        upper = bisect_right(self.years, year)
        lower = upper - 1
        if self.years[lower] == year:
            return self.values[lower]

        y0, y1 = self.years[lower], self.years[upper]
        v0, v1 = self.values[lower], self.values[upper]
        fraction = (year - y0) / (y1 - y0)
        return v0 + fraction * (v1 - v0)


def value_at(series: TimeSeries | Mapping[int | str, float], year: float) -> float:
    """Interpolate ``series`` at ``year``.

    Accepts a ``TimeSeries`` or a plain year-keyed mapping.

    >>> value_at({1950: 31, 1960: 106}, 1955)
    68.5
    """
    if not isinstance(series, TimeSeries):
        series = TimeSeries.from_mapping(series)
    return series.value_at(year)
