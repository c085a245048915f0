"""Inertial measurement unit sensor streamed to the server."""

from __future__ import annotations

import struct
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import NamedTuple

from .packet_types import SendPacketType
from .sensor import SerializationError, Sensor

IMU_ADDR = 0x68
_FLOAT_SIZE = 4


def _millis() -> int:
    return (time.monotonic_ns() // 1_000_000) & 0xFFFFFFFF


class Vector3(NamedTuple):
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


class ImuDevice(ABC):
    """An accelerometer/gyroscope chip, optionally with a magnetometer."""

    @abstractmethod
    def update(self) -> None:
        """Fetch a new sample from the chip."""

    @abstractmethod
    def accel(self) -> Vector3:
        """Acceleration in m/s^2."""

    @abstractmethod
    def gyro(self) -> Vector3:
        """Angular rate in rad/s."""

    @abstractmethod
    def mag(self) -> Vector3:
        """Magnetic field in microtesla."""

    @abstractmethod
    def has_magnetometer(self) -> bool:
        """Whether ``mag`` returns real data."""


class Imu(Sensor):
    """Sensor wrapping an IMU device; sends its axes as big-endian floats."""

    def __init__(self, device: ImuDevice, clock: Callable[[], int] | None = None) -> None:
        self.device = device
        self._clock = clock if clock is not None else _millis
        self._read_millis = 0
        self.accel = Vector3()
        self.gyro = Vector3()
        self.mag = Vector3()

    def name(self) -> str:
        return "IMU"

    def read(self) -> None:
        self._read_millis = self._clock() & 0xFFFFFFFF
        self.device.update()
        self.accel = Vector3(*self.device.accel())
        self.gyro = Vector3(*self.device.gyro())
        if self.device.has_magnetometer():
            self.mag = Vector3(*self.device.mag())

    def millis(self) -> int:
        return self._read_millis

    def packet_type(self) -> SendPacketType:
        return SendPacketType.TX_IMU

    def _values(self) -> tuple[float, ...]:
        values = (*self.accel, *self.gyro)
        if self.device.has_magnetometer():
            values += tuple(self.mag)
        return values

    def data_size(self) -> int:
        axes = 9 if self.device.has_magnetometer() else 6
        return axes * _FLOAT_SIZE

    def serialize(self, max_size: int) -> bytes:
        values = self._values()
        size = len(values) * _FLOAT_SIZE
        if size > max_size:
            raise SerializationError(f"IMU data needs {size} bytes, only {max_size} available")
        return struct.pack(f">{len(values)}f", *values)

    def report(self) -> str:
        """Human-readable dump of the latest reading."""
        lines = [
            f"IMU State (last read: {self._read_millis} ms):",
            "Accelerometer (m/s²):",
            *_axis_lines(self.accel),
            "Gyroscope (rad/s):",
            *_axis_lines(self.gyro),
        ]
        if self.device.has_magnetometer():
            lines += ["Magnetometer (µT):", *_axis_lines(self.mag)]
        return "\n".join(lines) + "\n"


def _axis_lines(vector: Vector3) -> list[str]:
    return [f"\t{axis}: {value:.2f}" for axis, value in zip("XYZ", vector)]