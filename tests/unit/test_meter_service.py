"""Unit tests for meter usage and utility cost calculations."""

from decimal import Decimal

import pytest

from src.services.meter_service import calculate_meter_usage, calculate_utility_cost


class TestCalculateMeterUsage:
    """Tests for calculate_meter_usage."""

    @pytest.mark.parametrize(
        "start,end",
        [(None, 100), (100, None), (None, None)],
    )
    def test_missing_reading_gives_zero(self, start, end):
        assert calculate_meter_usage(start, end) == 0

    def test_forward_reading(self):
        assert calculate_meter_usage(Decimal("100"), Decimal("250.5")) == Decimal("150.5")

    def test_equal_readings(self):
        assert calculate_meter_usage(500, 500) == 0

    def test_rollover(self):
        """999995 -> 3 on a 6-digit meter is 7 units."""
        assert calculate_meter_usage(999995, 3) == 7

    def test_rollover_near_ceiling(self):
        assert calculate_meter_usage(999990, 5) == 14

    def test_custom_ceiling(self):
        assert calculate_meter_usage(9990, 10, max_meter_value=9999) == 19

    def test_usage_is_never_negative(self):
        for start, end in [(0, 999999), (999999, 0), (1, 0), (500000, 499999)]:
            assert calculate_meter_usage(start, end) >= 0


class TestCalculateUtilityCost:
    """Tests for calculate_utility_cost."""

    def test_water_and_electricity_priced(self):
        cost = calculate_utility_cost(
            100, 110, 1000, 1100, Decimal("2.5"), Decimal("1.25")
        )
        assert cost.water_usage == 10
        assert cost.electricity_usage == 100
        assert cost.water_cost == Decimal("25.0")
        assert cost.electricity_cost == Decimal("125.00")
        assert cost.total == Decimal("150.00")

    def test_missing_price_counts_as_zero(self):
        cost = calculate_utility_cost(0, 10, 0, 10, None, Decimal("3"))
        assert cost.water_cost == 0
        assert cost.total == Decimal("30.00")

    def test_only_electricity_recorded(self):
        cost = calculate_utility_cost(None, None, 999995, 3, Decimal("2"), Decimal("1.5"))
        assert cost.water_usage == 0
        assert cost.total == Decimal("10.50")

    def test_total_rounds_half_up_to_cents(self):
        cost = calculate_utility_cost(0, 1, None, None, Decimal("0.125"), Decimal("0"))
        assert cost.total == Decimal("0.13")
