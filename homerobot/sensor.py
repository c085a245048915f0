"""Base class for sensors whose data is streamed to the server."""

from __future__ import annotations

from abc import ABC, abstractmethod

from .packet_types import SendPacketType


class SerializationError(Exception):
    """A sensor could not serialize its data."""


class Sensor(ABC):
    """A sensor that reads data and serializes it for transmission."""

    @abstractmethod
    def name(self) -> str:
        """Human-readable sensor name."""

    @abstractmethod
    def read(self) -> None:
        """Take a reading and store it internally."""

    @abstractmethod
    def millis(self) -> int:
        """Timestamp in milliseconds of the reading to be sent next."""

    @abstractmethod
    def packet_type(self) -> SendPacketType:
        """Packet type under which the data is sent."""

    @abstractmethod
    def data_size(self) -> int:
        """Size in bytes of the data ``serialize`` will produce; 0 when empty."""

    @abstractmethod
    def serialize(self, max_size: int) -> bytes:
        """Return the data as bytes.

        Raises SerializationError when the data does not fit in ``max_size``
        bytes or is not available.
        """

    def start_reading(self) -> None:
        """Start the sensor (for example spin a motor); no-op by default."""

    def stop_reading(self) -> None:
        """Undo ``start_reading``; no-op by default."""