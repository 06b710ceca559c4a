"""Meter usage and utility cost calculations."""

from decimal import ROUND_HALF_UP, Decimal
from typing import NamedTuple

# Most meters are 6-digit displays; they wrap to 0 after this value
DEFAULT_MAX_METER_VALUE = 999999

CENT = Decimal("0.01")


def _to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def calculate_meter_usage(
    start_reading,
    end_reading,
    max_meter_value: int = DEFAULT_MAX_METER_VALUE,
) -> Decimal:
    """Calculate consumption between two meter readings.

    Formula:
        end >= start: end - start
        end <  start: (max - start) + end   (meter rolled over exactly once)

    Args:
        start_reading: Reading at the start of the window (None if not taken)
        end_reading: Reading at the end of the window (None if not taken)
        max_meter_value: Largest value the meter displays before wrapping to 0

    Returns:
        Non-negative usage as Decimal; 0 when either reading is missing
    """
    if start_reading is None or end_reading is None:
        return Decimal(0)

    start = _to_decimal(start_reading)
    end = _to_decimal(end_reading)

    if end >= start:
        return end - start

    return (_to_decimal(max_meter_value) - start) + end


class UtilityCost(NamedTuple):
    """Consumption and EGP cost of one utility reading."""

    water_usage: Decimal
    electricity_usage: Decimal
    water_cost: Decimal
    electricity_cost: Decimal

    @property
    def total(self) -> Decimal:
        """Water plus electricity, rounded to cents."""
        return (self.water_cost + self.electricity_cost).quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_utility_cost(
    water_start,
    water_end,
    electricity_start,
    electricity_end,
    water_price,
    electricity_price,
    max_meter_value: int = DEFAULT_MAX_METER_VALUE,
) -> UtilityCost:
    """Price a utility reading with its village's unit rates.

    A missing price counts as 0. The result is always in EGP.
    """
    water_usage = calculate_meter_usage(water_start, water_end, max_meter_value)
    electricity_usage = calculate_meter_usage(electricity_start, electricity_end, max_meter_value)

    water_rate = _to_decimal(water_price) if water_price is not None else Decimal(0)
    electricity_rate = _to_decimal(electricity_price) if electricity_price is not None else Decimal(0)

    return UtilityCost(
        water_usage=water_usage,
        electricity_usage=electricity_usage,
        water_cost=water_usage * water_rate,
        electricity_cost=electricity_usage * electricity_rate,
    )


__all__ = [
    "DEFAULT_MAX_METER_VALUE",
    "calculate_meter_usage",
    "calculate_utility_cost",
    "UtilityCost",
]
