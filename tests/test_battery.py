import pytest

from homerobot.battery import (
    BATTERY_MAX,
    BATTERY_MAX_VOLTAGE,
    BATTERY_MIN,
    BATTERY_NOT_CONNECTED,
    Battery,
    arduino_map,
)


def test_level_bounds():
    assert Battery(lambda: BATTERY_MIN).level() == 0
    assert Battery(lambda: BATTERY_MAX).level() == 100


def test_voltage_bounds():
    assert Battery(lambda: 0).voltage() == 0
    assert Battery(lambda: BATTERY_MAX).voltage() == BATTERY_MAX_VOLTAGE


def test_level_is_monotonic():
    levels = [Battery(lambda v=v: v).level() for v in range(BATTERY_MIN, BATTERY_MAX + 1, 37)]
    assert levels == sorted(levels)


def test_connection_threshold():
    assert Battery(lambda: BATTERY_NOT_CONNECTED - 1).is_connected() is False
    assert Battery(lambda: BATTERY_NOT_CONNECTED).is_connected() is True


def test_status_matches_readings():
    battery = Battery(lambda: 2600)
    status = battery.status()
    assert status.raw == 2600
    assert status.level == battery.level()
    assert status.voltage == battery.voltage()


def test_map_truncates_toward_zero():
    assert arduino_map(1, 0, 3, 0, 10) == 3
    assert arduino_map(-1, 0, 3, 0, 10) == -3


def test_map_identity():
    assert arduino_map(1234, 0, 4095, 0, 4095) == 1234


def test_map_rejects_empty_range():
    with pytest.raises(ValueError):
        arduino_map(5, 5, 5, 0, 100)