"""Battery level reading from a 12-bit ADC."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import NamedTuple

_log = logging.getLogger(__name__)

BATTERY_MAX = 2990
BATTERY_MIN = 2250
BATTERY_NOT_CONNECTED = 800
BATTERY_MAX_VOLTAGE = 16500


def arduino_map(value: int, in_min: int, in_max: int, out_min: int, out_max: int) -> int:
    """Linearly rescale an integer, truncating toward zero like integer division."""
    run = in_max - in_min
    if run == 0:
        raise ValueError("invalid input range, min == max")
    numerator = (value - in_min) * (out_max - out_min)
    quotient = abs(numerator) // abs(run)
    if (numerator < 0) != (run < 0):
        quotient = -quotient
    return quotient + out_min


class BatteryStatus(NamedTuple):
    level: int
    voltage: int
    raw: int


class Battery:
    """Battery pack measured through an ADC input."""

    def __init__(self, read_adc: Callable[[], int]) -> None:
        self._read_adc = read_adc

    def raw(self) -> int:
        """Raw ADC value, 0 to 4095."""
        return self._read_adc()

    def level(self) -> int:
        """Charge level in percent."""
        return arduino_map(self.raw(), BATTERY_MIN, BATTERY_MAX, 0, 100)

    def voltage(self) -> int:
        """Pack voltage in millivolts."""
        return arduino_map(self.raw(), 0, BATTERY_MAX, 0, BATTERY_MAX_VOLTAGE)

    def is_connected(self) -> bool:
        return self.raw() >= BATTERY_NOT_CONNECTED

    def status(self) -> BatteryStatus:
        """Log and return level, voltage and raw value."""
        snapshot = BatteryStatus(self.level(), self.voltage(), self.raw())
        _log.info(
            "Battery: %i %%, %d mV, %i raw", snapshot.level, snapshot.voltage, snapshot.raw
        )
        return snapshot