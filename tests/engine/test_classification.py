"""Tests for normalization, demand categories and route types."""

import pytest

from src.engine.classification import demand_category, normalize_demand, round_half_up, route_type
from src.models.common import DemandCategory, RouteType


class TestNormalizeDemand:
    def test_max_pair_is_100(self) -> None:
        assert normalize_demand(4.2e6, 4.2e6, 0.25) == 100

    def test_fourth_root_compression(self) -> None:
        # (1/16)^0.25 = 0.5
        assert normalize_demand(1.0, 16.0, 0.25) == 50

    def test_below_threshold_value(self) -> None:
        # (0.02^4)^0.25 = 0.02 → 2
        assert normalize_demand(0.02 ** 4, 1.0, 0.25) == 2

    def test_zero_max_gives_zero(self) -> None:
        assert normalize_demand(5.0, 0.0, 0.25) == 0

    def test_zero_raw_gives_zero(self) -> None:
        assert normalize_demand(0.0, 10.0, 0.25) == 0


class TestRoundHalfUp:
    @pytest.mark.parametrize(("value", "expected"), [(2.5, 3), (0.5, 1), (3.49, 3), (99.5, 100), (7.0, 7)])
    def test_ties_round_up(self, value: float, expected: int) -> None:
        assert round_half_up(value) == expected


class TestDemandCategory:
    @pytest.mark.parametrize(
        ("demand", "expected"),
        [
            (100, DemandCategory.VERY_HIGH),
            (80, DemandCategory.VERY_HIGH),
            (79, DemandCategory.HIGH),
            (60, DemandCategory.HIGH),
            (59, DemandCategory.MEDIUM),
            (40, DemandCategory.MEDIUM),
            (20, DemandCategory.LOW),
            (19, DemandCategory.VERY_LOW),
            (0, DemandCategory.VERY_LOW),
        ],
    )
    def test_bands(self, demand: int, expected: DemandCategory) -> None:
        assert demand_category(demand) == expected


class TestRouteType:
    def test_hub_pair_short_haul_is_business(self) -> None:
        assert route_type("International Hub", "International Hub", 2991, "United Kingdom", "United States") == RouteType.BUSINESS

    def test_major_counts_as_hub(self) -> None:
        assert route_type("Major", "International Hub", 500, "France", "Spain") == RouteType.BUSINESS

    def test_hub_pair_long_haul_is_mixed(self) -> None:
        assert route_type("International Hub", "International Hub", 3000, "United Kingdom", "Australia") == RouteType.MIXED

    def test_domestic_short_is_regional(self) -> None:
        assert route_type("Regional", "Small", 1499, "United States", "United States") == RouteType.REGIONAL

    def test_domestic_hubs_prefer_business(self) -> None:
        assert route_type("International Hub", "International Hub", 300, "Japan", "Japan") == RouteType.BUSINESS

    def test_domestic_long_is_mixed(self) -> None:
        assert route_type("Regional", "Regional", 1500, "United States", "United States") == RouteType.MIXED

    def test_missing_types(self) -> None:
        assert route_type(None, None, 800, "France", "Germany") == RouteType.MIXED
