"""Rotating LiDAR sensor that buffers raw scan points for the server."""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Callable

from .packet_types import SendPacketType
from .sensor import SerializationError, Sensor
from .utils import LED_RED, Color, led_blink

_log = logging.getLogger(__name__)

# Raw point: 8-bit quality, 16-bit angle, 16-bit distance.
LIDAR_POINT_SIZE = 5
MAX_LIDAR_BUFFER_SIZE = 900
# A full scan holds about 180 points, so the buffer keeps 5 full scans.
MAX_LIDAR_FULL_READINGS = 5 + 1
DEFAULT_SCAN_FREQ_HZ = 1.0
START_RETRY_DELAY = 0.5


def _millis() -> int:
    return (time.monotonic_ns() // 1_000_000) & 0xFFFFFFFF


class LidarDriver(ABC):
    """Low-level LiDAR device driver.

    The driver delivers every raw point to ``on_packet(packet, scan_completed)``
    while ``loop`` runs.
    """

    on_packet: Callable[[bytes, bool], object] | None = None

    @abstractmethod
    def start(self) -> bool:
        """Start scanning; return whether the device answered correctly."""

    @abstractmethod
    def stop(self) -> None:
        """Stop scanning."""

    @abstractmethod
    def loop(self) -> None:
        """Process pending serial data, delivering points to ``on_packet``."""

    @abstractmethod
    def is_active(self) -> bool:
        """Whether the device is scanning."""

    @abstractmethod
    def set_scan_target_freq_hz(self, hz: float) -> None:
        """Set the rotation frequency of the scan head."""


class Lidar(Sensor):
    """Buffers raw points per full scan and sends one scan per packet."""

    def __init__(
        self,
        driver: LidarDriver,
        *,
        clock: Callable[[], int] | None = None,
        sleep: Callable[[float], object] = time.sleep,
        led: Callable[[Color], object] | None = None,
    ) -> None:
        self.driver = driver
        self._clock = clock if clock is not None else _millis
        self._sleep = sleep
        self._led = led
        self._points: deque[bytes] = deque()
        self._full_read_size: deque[int] = deque()
        self._read_millis: deque[int] = deque()
        self._points_in_scan = 0
        self._bytes_in_scan = 0
        self._push(self._read_millis, self._clock() & 0xFFFFFFFF, MAX_LIDAR_FULL_READINGS)
        driver.on_packet = self.packet_callback

    @staticmethod
    def _push(queue: deque, item: object, limit: int) -> bool:
        if len(queue) >= limit:
            return False
        queue.append(item)
        return True

    def name(self) -> str:
        return "Lidar"

    def read(self) -> None:
        self.driver.loop()

    def start_reading(self) -> None:
        """Start the device, retrying until it answers, then set the default speed."""
        while not self.driver.start():
            _log.error("Is the LiDAR connected?")
            if self._led is not None:
                led_blink("..", LED_RED, self._led, self._sleep)
            self._sleep(START_RETRY_DELAY)
        self.driver.set_scan_target_freq_hz(DEFAULT_SCAN_FREQ_HZ)

    def stop_reading(self) -> None:
        """Stop the device and drop everything buffered."""
        self.driver.stop()
        self._points.clear()
        self._full_read_size.clear()
        self._read_millis.clear()

    def is_active(self) -> bool:
        return self.driver.is_active()

    def set_scan_target_freq_hz(self, hz: float) -> None:
        self.driver.set_scan_target_freq_hz(hz)

    def packet_callback(self, packet: bytes, scan_completed: bool = False) -> None:
        """Store one raw point; on scan completion record the scan length and time."""
        if len(packet) != LIDAR_POINT_SIZE:
            _log.warning("Invalid packet size")
            return

        if len(self._points) < MAX_LIDAR_BUFFER_SIZE:
            self._points.append(bytes(packet))
            self._points_in_scan += 1
            self._bytes_in_scan += LIDAR_POINT_SIZE
        else:
            _log.warning("Buffer full, dropping packet")
            self.stop_reading()

        if scan_completed:
            if not self._push(
                self._full_read_size, self._points_in_scan & 0xFFFF, MAX_LIDAR_FULL_READINGS
            ):
                _log.warning("Failed to push read size")
            if not self._push(
                self._read_millis, self._clock() & 0xFFFFFFFF, MAX_LIDAR_FULL_READINGS
            ):
                _log.warning("Failed to push timestamp")
            _log.info(
                "Scan end. RpR: %d BpR %d Used space: %d Free space: %d",
                self._points_in_scan,
                self._bytes_in_scan,
                len(self._points),
                MAX_LIDAR_BUFFER_SIZE - len(self._points),
            )
            self._points_in_scan = 0
            self._bytes_in_scan = 0

    def millis(self) -> int:
        """Start time of the oldest pending scan, or 0 if none is recorded."""
        return self._read_millis[0] if self._read_millis else 0

    def packet_type(self) -> SendPacketType:
        return SendPacketType.TX_LIDAR

    def data_size(self) -> int:
        if not self._full_read_size:
            return 0
        return self._full_read_size[0] * LIDAR_POINT_SIZE

    def serialize(self, max_size: int) -> bytes:
        """Pop the oldest complete scan and return its raw points."""
        if not self._full_read_size:
            return b""
        points = self._full_read_size.popleft()
        if not self._read_millis:
            raise SerializationError("no timestamp for the pending scan")
        self._read_millis.popleft()

        size = points * LIDAR_POINT_SIZE
        if size > max_size:
            raise SerializationError(f"scan needs {size} bytes, only {max_size} available")

        out = bytearray()
        for _ in range(points):
            if not self._points:
                raise SerializationError("scan points missing from the buffer")
            out += self._points.popleft()
        return bytes(out)