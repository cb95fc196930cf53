"""Tests for the gravity demand pipeline — src/engine/pipeline.py.

Covers: two-zone end-to-end scenario, symmetry, per-decade max of 100,
threshold filtering, multi-airport zones, progress and cancellation.
"""

import threading

import pytest

from src.data.static_loader import StaticDatasets
from src.engine.pipeline import GravityPipeline, PipelineCancelledError
from src.models.common import AssignmentMethod, DemandCategory, RouteType

DECADES = [1950, 1960, 1970, 1980, 1990, 2000, 2010, 2020]


@pytest.fixture
def three_zone_datasets(two_zone_datasets: StaticDatasets, make_zone) -> StaticDatasets:
    lon, nyc = two_zone_datasets.zones
    zones = [
        lon.model_copy(update={"airports": ["EGLL", "EGKK"]}),
        nyc,
        make_zone("PAR", "FR", 49.0097, 2.5479, population=11000, airports=["LFPG"]),
    ]
    return StaticDatasets(
        calibration=two_zone_datasets.calibration,
        zones=zones,
        cultural_ties=two_zone_datasets.cultural_ties,
        economics=two_zone_datasets.economics,
        country_codes=two_zone_datasets.country_codes,
        historical_passengers={},
    )


@pytest.fixture
def three_zone_airports(two_zone_airports, make_airport):
    return [
        *two_zone_airports,
        make_airport("EGKK", "United Kingdom", 51.1481, -0.1903, airport_type="Regional Hub"),
        make_airport("LFPG", "France", 49.0097, 2.5479),
    ]


def _by_icao(result, airports):
    icao = {a.airport_id: a.icao_code for a in airports}
    return {(icao[d.from_airport_id], icao[d.to_airport_id]): d for d in result.demands}


# ===================================================================
# Two-zone scenario
# ===================================================================


class TestTwoZones:
    def test_both_directions_at_100_every_decade(self, two_zone_datasets, two_zone_airports) -> None:
        result = GravityPipeline(two_zone_datasets, workers=2).run(two_zone_airports)
        pairs = _by_icao(result, two_zone_airports)
        assert set(pairs) == {("EGLL", "KJFK"), ("KJFK", "EGLL")}
        for demand in pairs.values():
            assert demand.demands == {d: 100 for d in DECADES}
            assert demand.base_demand == 100
            assert demand.demand_category == DemandCategory.VERY_HIGH

    def test_zone_ids_and_route_type(self, two_zone_datasets, two_zone_airports) -> None:
        result = GravityPipeline(two_zone_datasets).run(two_zone_airports)
        pairs = _by_icao(result, two_zone_airports)
        forward = pairs[("EGLL", "KJFK")]
        assert (forward.from_zone_id, forward.to_zone_id) == ("LON", "NYC")
        # Both hubs, ~2991 nm apart
        assert forward.route_type == RouteType.BUSINESS

    def test_assignments_single_airport_share(self, two_zone_datasets, two_zone_airports) -> None:
        result = GravityPipeline(two_zone_datasets).run(two_zone_airports)
        assert len(result.assignments) == 2
        assert all(a.demand_share == 1.0 for a in result.assignments)
        assert all(a.method == AssignmentMethod.EXPLICIT for a in result.assignments)

    def test_calibration_per_decade(self, two_zone_datasets, two_zone_airports) -> None:
        result = GravityPipeline(two_zone_datasets).run(two_zone_airports)
        assert [s.decade for s in result.summaries] == DECADES
        for s in result.summaries:
            assert s.k * s.total_raw_demand == pytest.approx(s.target_passengers)
            assert s.zone_pairs_with_demand == 2
            assert s.airport_pairs_kept == 2

    def test_inactive_and_unmapped_airports_excluded(
        self, two_zone_datasets, two_zone_airports, make_airport,
    ) -> None:
        airports = [
            *two_zone_airports,
            make_airport("EGKK", "United Kingdom", 51.15, -0.19, is_active=False),
            make_airport("PHTO", "United States", 19.72, -155.05),
        ]
        result = GravityPipeline(two_zone_datasets).run(airports)
        assert len(result.demands) == 2
        assert [a.icao_code for a in result.report.unmapped] == ["PHTO"]

    def test_no_airports_gives_no_demand(self, two_zone_datasets) -> None:
        result = GravityPipeline(two_zone_datasets).run([])
        assert result.demands == []
        assert all(s.airport_pairs_computed == 0 for s in result.summaries)


# ===================================================================
# Multi-zone properties
# ===================================================================


class TestProperties:
    def test_symmetric_per_decade(self, three_zone_datasets, three_zone_airports) -> None:
        result = GravityPipeline(three_zone_datasets).run(three_zone_airports)
        pairs = _by_icao(result, three_zone_airports)
        for (a, b), demand in pairs.items():
            assert pairs[(b, a)].demands == demand.demands

    def test_max_pair_is_100_each_decade(self, three_zone_datasets, three_zone_airports) -> None:
        result = GravityPipeline(three_zone_datasets).run(three_zone_airports)
        for decade in DECADES:
            assert max(d.demands[decade] for d in result.demands) == 100

    def test_values_in_range_and_above_threshold(self, three_zone_datasets, three_zone_airports) -> None:
        result = GravityPipeline(three_zone_datasets).run(three_zone_airports)
        for demand in result.demands:
            for value in demand.demands.values():
                assert value == 0 or 3 <= value <= 100

    def test_no_pairs_within_a_zone(self, three_zone_datasets, three_zone_airports) -> None:
        result = GravityPipeline(three_zone_datasets).run(three_zone_airports)
        assert all(d.from_zone_id != d.to_zone_id for d in result.demands)

    def test_larger_share_gets_more_demand(self, three_zone_datasets, three_zone_airports) -> None:
        result = GravityPipeline(three_zone_datasets).run(three_zone_airports)
        pairs = _by_icao(result, three_zone_airports)
        hub = pairs[("EGLL", "KJFK")].demands[2000]
        secondary = pairs[("EGKK", "KJFK")].demands[2000]
        assert hub >= secondary
        assert pairs[("EGKK", "KJFK")].route_type == RouteType.MIXED

    def test_shares_sum_to_one_per_zone(self, three_zone_datasets, three_zone_airports) -> None:
        result = GravityPipeline(three_zone_datasets).run(three_zone_airports)
        totals: dict[str, float] = {}
        for a in result.assignments:
            totals[a.zone_id] = totals.get(a.zone_id, 0.0) + a.demand_share
        assert totals == pytest.approx({"LON": 1.0, "NYC": 1.0, "PAR": 1.0}, abs=1e-4)

    def test_threshold_removes_everything_below(self, three_zone_datasets, three_zone_airports) -> None:
        strict = three_zone_datasets.calibration.model_copy(update={"min_demand_threshold": 100})
        datasets = StaticDatasets(
            calibration=strict,
            zones=three_zone_datasets.zones,
            cultural_ties=three_zone_datasets.cultural_ties,
            economics=three_zone_datasets.economics,
            country_codes=three_zone_datasets.country_codes,
            historical_passengers={},
        )
        result = GravityPipeline(datasets).run(three_zone_airports)
        assert result.demands
        for demand in result.demands:
            assert set(demand.demands.values()) <= {0, 100}

    def test_deterministic(self, three_zone_datasets, three_zone_airports) -> None:
        first = GravityPipeline(three_zone_datasets, workers=1).run(three_zone_airports)
        second = GravityPipeline(three_zone_datasets, workers=4).run(three_zone_airports)
        assert _by_icao(first, three_zone_airports) == _by_icao(second, three_zone_airports)

    def test_category_counts(self, two_zone_datasets, two_zone_airports) -> None:
        result = GravityPipeline(two_zone_datasets).run(two_zone_airports)
        assert result.category_counts() == {DemandCategory.VERY_HIGH: 2}


# ===================================================================
# Progress and cancellation
# ===================================================================


class TestRunControl:
    def test_progress_reported_per_decade(self, two_zone_datasets, two_zone_airports) -> None:
        calls: list[tuple[int, int, int]] = []
        GravityPipeline(
            two_zone_datasets, workers=3, progress=lambda *args: calls.append(args),
        ).run(two_zone_airports)
        assert sorted(decade for decade, _, _ in calls) == DECADES
        assert [completed for _, completed, _ in calls] == list(range(1, 9))
        assert {total for _, _, total in calls} == {8}

    def test_cancelled_before_start(self, two_zone_datasets, two_zone_airports) -> None:
        event = threading.Event()
        event.set()
        with pytest.raises(PipelineCancelledError):
            GravityPipeline(two_zone_datasets, cancel_event=event).run(two_zone_airports)

    def test_cancelled_mid_run(self, two_zone_datasets, two_zone_airports) -> None:
        event = threading.Event()
        calls: list[int] = []

        def _cancel_after_first(decade: int, completed: int, total: int) -> None:
            calls.append(decade)
            event.set()

        pipeline = GravityPipeline(
            two_zone_datasets, workers=1, progress=_cancel_after_first, cancel_event=event,
        )
        with pytest.raises(PipelineCancelledError):
            pipeline.run(two_zone_airports)
        assert len(calls) == 1

    def test_invalid_worker_count(self, two_zone_datasets) -> None:
        with pytest.raises(ValueError, match="workers"):
            GravityPipeline(two_zone_datasets, workers=0)

    def test_failed_run_leaves_caller_event_clear(self, two_zone_datasets, two_zone_airports) -> None:
        event = threading.Event()

        def _broken_progress(decade: int, completed: int, total: int) -> None:
            raise RuntimeError("progress sink down")

        with pytest.raises(RuntimeError, match="progress sink down"):
            GravityPipeline(
                two_zone_datasets, progress=_broken_progress, cancel_event=event,
            ).run(two_zone_airports)
        assert not event.is_set()

        result = GravityPipeline(two_zone_datasets, cancel_event=event).run(two_zone_airports)
        assert len(result.demands) == 2

    def test_cancel_method_stops_run(self, two_zone_datasets, two_zone_airports) -> None:
        event = threading.Event()
        pipeline = GravityPipeline(two_zone_datasets, cancel_event=event)
        pipeline.cancel()
        with pytest.raises(PipelineCancelledError):
            pipeline.run(two_zone_airports)
        assert not event.is_set()
