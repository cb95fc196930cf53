"""Gravity demand pipeline — zones to normalized airport-pair demand.

Steps per run:
1. Assign active airports to zones (explicit, proximity, unmapped).
2. Freeze within-zone demand shares at the share reference year.
3. Build the zone distance matrix and the cultural matrix once.
4. Per decade, on a thread pool: calibrate K, allocate scaled zone demand
   to airport pairs, normalize round(100 * (raw / max_raw)^p), drop pairs
   below the demand threshold.
5. Merge decade results in decade order into per-pair records.

Each airport belongs to exactly one zone, so every ordered airport pair
arises from exactly one ordered zone pair.

Pure computation — persistence is the caller's job.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from uuid import UUID

import numpy as np

from src.data.static_loader import StaticDatasets
from src.engine.calibration import CalibrationResult, CalibrationSolver
from src.engine.classification import demand_category, route_type
from src.engine.cultural import CulturalAffinityResolver
from src.engine.economics import EconomicModel
from src.engine.geo import DistanceMatrix
from src.engine.gravity import GravityModel
from src.engine.zone_assignment import AssignmentReport, ZoneAssigner, demand_shares
from src.models.demand import AirportPairDemand, DecadeSummary
from src.models.zone import Airport, AirportZoneAssignment, MetroZone

logger = logging.getLogger(__name__)

# Decades whose maximum drives the demand category.
CATEGORY_DECADES: tuple[int, ...] = (2000, 2010, 2020)

ProgressCallback = Callable[[int, int, int], None]


class PipelineCancelledError(RuntimeError):
    """Raised when a run is cancelled before it completes."""


@dataclass(frozen=True)
class DecadeResult:
    """Kept airport pairs for one decade, as parallel arrays.

    ``from_index`` and ``to_index`` point into the run's airport table.
    """

    decade: int
    calibration: CalibrationResult
    from_index: np.ndarray
    to_index: np.ndarray
    demand: np.ndarray
    zone_pairs_with_demand: int
    airport_pairs_computed: int
    max_raw_pair_demand: float

    @property
    def kept(self) -> int:
        return int(self.demand.size)

    def summary(self) -> DecadeSummary:
        return DecadeSummary(
            decade=self.decade,
            k=self.calibration.k,
            total_raw_demand=self.calibration.total_raw_demand,
            target_passengers=self.calibration.target_passengers,
            zone_pairs_with_demand=self.zone_pairs_with_demand,
            airport_pairs_computed=self.airport_pairs_computed,
            airport_pairs_kept=self.kept,
            max_raw_pair_demand=self.max_raw_pair_demand,
        )


@dataclass
class PipelineResult:
    """Everything a run produced, ready to persist."""

    zones: list[MetroZone]
    assignments: list[AirportZoneAssignment]
    report: AssignmentReport
    summaries: list[DecadeSummary]
    demands: list[AirportPairDemand]
    missing_gdp_countries: list[str] = field(default_factory=list)

    def category_counts(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for row in self.demands:
            counts[row.demand_category] = counts.get(row.demand_category, 0) + 1
        return counts


@dataclass
class _AirportTable:
    """Mapped airports flattened into arrays for vectorized allocation."""

    airports: list[Airport]
    zone_index: np.ndarray
    share: np.ndarray
    members: list[np.ndarray]


@dataclass
class _PairRecord:
    from_index: int
    to_index: int
    demands: dict[int, int]


class GravityPipeline:
    """One gravity demand run.

    Owns all per-run state (shares, matrices, accumulating demand map).
    Create a new instance per run.
    """

    def __init__(
        self,
        datasets: StaticDatasets,
        *,
        workers: int = 4,
        progress: ProgressCallback | None = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        if workers < 1:
            msg = f"workers must be >= 1, got {workers}"
            raise ValueError(msg)
        self._datasets = datasets
        self._constants = datasets.calibration
        self._zones = list(datasets.zones)
        self._workers = workers
        self._progress = progress
        self._cancel = cancel_event
        # Stops sibling decade workers; the caller's event is only read.
        self._stop = threading.Event()

        self._economics = EconomicModel(self._constants, datasets.economics)
        self._cultural = CulturalAffinityResolver(datasets.cultural_ties)
        self._gravity = GravityModel(self._economics, self._cultural)
        self._solver = CalibrationSolver(self._gravity)
        self._assigner = ZoneAssigner(self._zones, datasets.country_codes)

        self._distances: DistanceMatrix | None = None
        self._cultural_matrix: np.ndarray | None = None
        self._table: _AirportTable | None = None
        self._pairs: dict[tuple[UUID, UUID], _PairRecord] = {}

    @property
    def gravity(self) -> GravityModel:
        return self._gravity

    def cancel(self) -> None:
        self._stop.set()

    def _check_cancelled(self) -> None:
        if self._stop.is_set() or (self._cancel is not None and self._cancel.is_set()):
            msg = "Gravity pipeline run cancelled"
            raise PipelineCancelledError(msg)

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def assign_airports(
        self, airports: Sequence[Airport],
    ) -> tuple[AssignmentReport, list[AirportZoneAssignment]]:
        """Assign active airports and freeze their demand shares."""
        active = [a for a in airports if a.is_active]
        report = self._assigner.assign_all(active)
        year = self._constants.share_reference_year
        hist = self._datasets.historical_passengers

        assignments: list[AirportZoneAssignment] = []
        for zone in self._zones:
            for share in demand_shares(report.zone_airports[zone.zone_id], hist, year):
                assignments.append(
                    AirportZoneAssignment(
                        airport_id=share.airport_id,
                        icao_code=share.icao_code,
                        zone_id=zone.zone_id,
                        demand_share=share.demand_share,
                        method=report.methods[share.airport_id],
                    ),
                )
        return report, assignments

    def _build_table(
        self, report: AssignmentReport, assignments: Sequence[AirportZoneAssignment],
    ) -> _AirportTable:
        by_id = {a.airport_id: a for members in report.zone_airports.values() for a in members}
        zone_pos = {z.zone_id: i for i, z in enumerate(self._zones)}

        airports = [by_id[row.airport_id] for row in assignments]
        zone_index = np.array([zone_pos[row.zone_id] for row in assignments], dtype=np.intp)
        share = np.array([row.demand_share for row in assignments], dtype=np.float64)
        members = [np.flatnonzero(zone_index == i) for i in range(len(self._zones))]
        return _AirportTable(airports=airports, zone_index=zone_index, share=share, members=members)

    def build_matrices(self) -> DistanceMatrix:
        """Distance and cultural matrices; time-invariant, built once."""
        self._distances = DistanceMatrix.from_zones(self._zones)
        self._cultural_matrix = self._cultural.multiplier_matrix(
            [z.country_code for z in self._zones],
        )
        logger.info(
            "Distance matrix: %d zones, %d unique pairs",
            len(self._distances), self._distances.pair_count,
        )
        return self._distances

    # ------------------------------------------------------------------
    # Per-decade computation
    # ------------------------------------------------------------------

    def compute_decade(self, decade: int) -> DecadeResult:
        """Calibrate, allocate and normalize one decade.

        Reads only run state fixed before the decades start, so decades
        may run concurrently.
        """
        if self._distances is None or self._table is None:
            msg = "build_matrices() and airport assignment must run before compute_decade()."
            raise RuntimeError(msg)
        self._check_cancelled()
        c = self._constants
        table = self._table

        raw = self._gravity.raw_demand_matrix(
            self._zones, self._distances, decade, cultural_matrix=self._cultural_matrix,
        )
        calibration = self._solver.calibrate(self._zones, self._distances, decade, raw_matrix=raw)
        scaled = raw * calibration.k

        has_airports = np.array([m.size > 0 for m in table.members])
        zone_pairs = int(np.count_nonzero(
            (scaled > 0) & has_airports[:, np.newaxis] & has_airports[np.newaxis, :],
        ))

        from_parts: list[np.ndarray] = []
        to_parts: list[np.ndarray] = []
        raw_parts: list[np.ndarray] = []
        for i, rows in enumerate(table.members):
            if rows.size == 0:
                continue
            self._check_cancelled()
            zone_demand = scaled[i, table.zone_index]
            # Share product first so (a, b) and (b, a) multiply identical operands.
            pair_raw = np.outer(table.share[rows], table.share) * zone_demand[np.newaxis, :]
            pair_raw[np.arange(rows.size), rows] = 0.0
            r, t = np.nonzero(pair_raw > 0)
            from_parts.append(rows[r])
            to_parts.append(t)
            raw_parts.append(pair_raw[r, t])

        from_index = np.concatenate(from_parts) if from_parts else np.empty(0, dtype=np.intp)
        to_index = np.concatenate(to_parts) if to_parts else np.empty(0, dtype=np.intp)
        pair_values = np.concatenate(raw_parts) if raw_parts else np.empty(0, dtype=np.float64)

        max_raw = float(pair_values.max()) if pair_values.size else 0.0
        if max_raw > 0:
            demand = np.floor(
                100.0 * (pair_values / max_raw) ** c.normalization_power + 0.5,
            ).astype(np.int64)
        else:
            demand = np.zeros(pair_values.size, dtype=np.int64)
        keep = demand >= c.min_demand_threshold

        logger.info(
            "Decade %d: K=%.4e, %d zone pairs, %d airport pairs, %d kept",
            decade, calibration.k, zone_pairs, pair_values.size, int(keep.sum()),
        )
        return DecadeResult(
            decade=decade,
            calibration=calibration,
            from_index=from_index[keep],
            to_index=to_index[keep],
            demand=demand[keep],
            zone_pairs_with_demand=zone_pairs,
            airport_pairs_computed=int(pair_values.size),
            max_raw_pair_demand=max_raw,
        )

    def _run_decades(self) -> dict[int, DecadeResult]:
        decades = list(self._constants.decades)
        results: dict[int, DecadeResult] = {}
        with ThreadPoolExecutor(max_workers=self._workers, thread_name_prefix="decade") as pool:
            pending: dict[Future[DecadeResult], int] = {
                pool.submit(self.compute_decade, decade): decade for decade in decades
            }
            try:
                while pending:
                    done, _ = wait(pending, return_when=FIRST_COMPLETED)
                    for future in done:
                        decade = pending.pop(future)
                        results[decade] = future.result()
                        if self._progress is not None:
                            self._progress(decade, len(results), len(decades))
                        self._check_cancelled()
            except BaseException:
                self._stop.set()
                for future in pending:
                    future.cancel()
                raise
        return results

    # ------------------------------------------------------------------
    # Merge
    # ------------------------------------------------------------------

    def _merge(self, table: _AirportTable, result: DecadeResult) -> None:
        for f, t, d in zip(result.from_index.tolist(), result.to_index.tolist(), result.demand.tolist()):
            key = (table.airports[f].airport_id, table.airports[t].airport_id)
            record = self._pairs.get(key)
            if record is None:
                record = _PairRecord(from_index=f, to_index=t, demands={})
                self._pairs[key] = record
            record.demands[result.decade] = max(record.demands.get(result.decade, 0), d)

    def _build_demands(
        self, table: _AirportTable, distances: DistanceMatrix,
    ) -> list[AirportPairDemand]:
        decades = self._constants.decades

        demands: list[AirportPairDemand] = []
        for record in self._pairs.values():
            from_airport = table.airports[record.from_index]
            to_airport = table.airports[record.to_index]
            from_zone = self._zones[int(table.zone_index[record.from_index])].zone_id
            to_zone = self._zones[int(table.zone_index[record.to_index])].zone_id
            values = {decade: record.demands.get(decade, 0) for decade in decades}
            demands.append(
                AirportPairDemand(
                    from_airport_id=from_airport.airport_id,
                    to_airport_id=to_airport.airport_id,
                    from_zone_id=from_zone,
                    to_zone_id=to_zone,
                    demands=values,
                    demand_category=demand_category(
                        max(values.get(d, 0) for d in CATEGORY_DECADES),
                    ),
                    route_type=route_type(
                        from_airport.airport_type,
                        to_airport.airport_type,
                        distances.between(from_zone, to_zone),
                        from_airport.country,
                        to_airport.country,
                    ),
                ),
            )
        return demands

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def run(self, airports: Sequence[Airport]) -> PipelineResult:
        """Full computation for ``airports``.

        Raises:
            PipelineCancelledError: If the cancel event is set mid-run.
        """
        self._pairs = {}
        self._check_cancelled()

        report, assignments = self.assign_airports(airports)
        table = self._build_table(report, assignments)
        self._table = table
        missing = self._economics.missing_countries(z.country_code for z in self._zones)
        distances = self.build_matrices()

        results = self._run_decades()
        for decade in self._constants.decades:
            self._merge(table, results[decade])
        self._check_cancelled()

        demands = self._build_demands(table, distances)
        logger.info("Gravity pipeline produced %d airport-pair demand records", len(demands))
        return PipelineResult(
            zones=list(self._zones),
            assignments=assignments,
            report=report,
            summaries=[results[decade].summary() for decade in self._constants.decades],
            demands=demands,
            missing_gdp_countries=missing,
        )
