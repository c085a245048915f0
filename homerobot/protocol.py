"""Framed packet protocol between the robot and the server.

Every packet starts with a 7-byte big-endian header: 4 bytes of milliseconds,
1 byte of packet type and 2 bytes of payload size.
"""

from __future__ import annotations

import logging
import struct
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from .net_client import NetClient, SocketClient
from .packet_types import SendPacketType
from .sensor import SerializationError, Sensor
from .utils import LED_GREEN, LED_ORANGE, LED_RED, Color

_log = logging.getLogger(__name__)

RX_MAX_PACKET_SIZE = 128
RX_BUFFER_SIZE = RX_MAX_PACKET_SIZE * 8
TX_BUFFER_SIZE = 1024
HEADER_SIZE = 7
MAX_SENSORS = 5
DEFAULT_HOST = "192.168.1.1"
DEFAULT_PORT = 12345

_HEADER = struct.Struct(">IBH")
_CONNECT_RETRIES = 5


@dataclass(frozen=True)
class HomeRobotHeader:
    """Packet header: creation time, raw packet type and payload size."""

    sequence_millis: int = 0
    type: int = 0
    size: int = 0


@dataclass
class HomeRobotPacket:
    """A header together with its payload."""

    header: HomeRobotHeader = field(default_factory=HomeRobotHeader)
    data: bytes = b""


@dataclass
class ProtocolStats:
    rx_packets: int = 0
    tx_packets: int = 0
    rx_bytes: int = 0
    tx_bytes: int = 0


@dataclass(frozen=True)
class ProtocolStatus:
    """Snapshot of the connection and receive state."""

    wifi_connected: bool
    server_connected: bool
    latest_millis: int
    used_buffer: int
    read_header: bool
    sensors_count: int

    @property
    def led(self) -> Color:
        if self.server_connected:
            return LED_GREEN
        if self.wifi_connected:
            return LED_ORANGE
        return LED_RED


class Protocol:
    """Sends sensor data to the server and parses packets coming back."""

    def __init__(
        self,
        client: NetClient | None = None,
        *,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        client_factory: Callable[[], NetClient] = SocketClient,
        restart_network: Callable[[], object] | None = None,
        wifi_connected: Callable[[], bool] | None = None,
        retry_delay: float = 2.0,
        sleep: Callable[[float], object] = time.sleep,
    ) -> None:
        self._host = host
        self._port = port
        self._client_factory = client_factory
        self._restart_network = restart_network
        self._wifi_connected = wifi_connected
        self._retry_delay = retry_delay
        self._sleep = sleep
        self._client = client if client is not None else client_factory()
        self._sensors: list[Sensor] = []
        self._rx_buffer = bytearray()
        self._rx_latest_millis = 0
        self._read_header = False
        self.stats = ProtocolStats()
        self.receive_packet = HomeRobotPacket()
        self.connect()

    # Connection handling

    def connect(self) -> bool:
        """Connect to the server, retrying a few times; return whether it worked."""
        if self._client is None:
            _log.error("No client to connect with")
            return False
        attempt = 0
        while not self._client.connect(self._host, self._port):
            attempt += 1
            if attempt > _CONNECT_RETRIES:
                break
            _log.debug("Failed to connect to server")
            self._sleep(self._retry_delay)
        if attempt >= _CONNECT_RETRIES:
            _log.error("Failed to connect to server")
            return False
        _log.info("Connected to server")
        return True

    def is_connected(self) -> bool:
        return self._client is not None and self._client.connected()

    def hard_restart(self) -> None:
        """Restart the network, reset the protocol state and reconnect."""
        if self._restart_network is not None:
            self._restart_network()
        self.soft_restart()
        self.connect()

    def soft_restart(self) -> None:
        """Reset the receive state; recreate the client if it is disconnected."""
        self.receive_packet = HomeRobotPacket()
        self._rx_latest_millis = 0
        self._rx_buffer.clear()
        self._read_header = False
        self.stats = ProtocolStats()
        if not self.is_connected():
            _log.info("Server not connected, restarting")
            if self._client is not None:
                self._client.stop()
            self._client = self._client_factory()
            self.connect()

    def status(self) -> ProtocolStatus:
        """Log and return the current connection and buffer state."""
        snapshot = ProtocolStatus(
            wifi_connected=bool(self._wifi_connected and self._wifi_connected()),
            server_connected=self.is_connected(),
            latest_millis=self._rx_latest_millis,
            used_buffer=len(self._rx_buffer),
            read_header=self._read_header,
            sensors_count=len(self._sensors),
        )
        _log.info(
            "Wifi %d, Server: %d, Latest millis: %d, Used: %d, Read header: %d, Sensors count: %d",
            snapshot.wifi_connected,
            snapshot.server_connected,
            snapshot.latest_millis,
            snapshot.used_buffer,
            snapshot.read_header,
            snapshot.sensors_count,
        )
        return snapshot

    # Sending

    @staticmethod
    def header_size() -> int:
        return HEADER_SIZE

    @staticmethod
    def generate_header(
        millis: int,
        packet_type: int,
        size: int,
        max_size: int = TX_BUFFER_SIZE,
    ) -> bytes:
        """Encode a header; raise ValueError if it does not fit in ``max_size``."""
        if HEADER_SIZE > max_size:
            raise ValueError(f"header needs {HEADER_SIZE} bytes, only {max_size} available")
        return _HEADER.pack(millis & 0xFFFFFFFF, int(packet_type), size)

    def send_packet(self, packet: HomeRobotPacket) -> int:
        """Send one packet; return the number of bytes written."""
        if not self.is_connected():
            _log.error("Error client not connected")
            return 0
        header = packet.header
        payload = bytes(packet.data[:header.size]).ljust(header.size, b"\0")
        frame = self.generate_header(header.sequence_millis, header.type, header.size) + payload
        written = self._client.write(frame)
        if written != len(frame):
            _log.error("Error writing packet")
        return written

    def add_sensor(self, sensor: Sensor) -> None:
        if len(self._sensors) >= MAX_SENSORS:
            raise ValueError(f"at most {MAX_SENSORS} sensors are supported")
        self._sensors.append(sensor)

    def send_sensors(self) -> int:
        """Send every sensor with data in a single write; return bytes written."""
        out = bytearray()
        for sensor in self._sensors:
            size = sensor.data_size()
            if size <= 0:
                continue
            name = sensor.name()
            _log.debug("Creating packet for sensor %s with size %d", name, size)
            try:
                header = self.generate_header(
                    sensor.millis(), sensor.packet_type(), size, TX_BUFFER_SIZE - len(out)
                )
            except ValueError:
                _log.error("Failed to generate header for sensor %s", name)
                continue
            out += header
            try:
                data = sensor.serialize(TX_BUFFER_SIZE - len(out))
            except SerializationError:
                _log.error("Failed to serialize sensor %s", name)
                continue
            if len(data) != size:
                _log.error("Failed to serialize sensor %s", name)
                continue
            out += data
            _log.debug("Current buffer offset %d", len(out))

        if not out:
            return 0
        _log.info("Sending %d bytes of sensors data", len(out))
        written = self._client.write(bytes(out))
        if written == 0:
            _log.error(
                "Failed to send complete sensors packet. Expected: %d, Sent: %d", len(out), written
            )
            self._client.stop()
            self.hard_restart()
        else:
            self.stats.tx_bytes += written
            self._client.flush()
        return written

    def loop(self) -> None:
        """Read every sensor and send their data if connected."""
        for sensor in self._sensors:
            sensor.read()
        if self.is_connected():
            self.send_sensors()

    # Receiving

    def receive(self) -> bool:
        """Read from the connection; return True when ``receive_packet`` holds a new packet."""
        self._read_raw_data()
        return self._process_next_packet()

    def used_buffer(self) -> int:
        return len(self._rx_buffer)

    def has_read_header(self) -> bool:
        return self._read_header

    def parsed_header(self) -> HomeRobotHeader:
        return self.receive_packet.header

    def _read_raw_data(self) -> None:
        space = RX_BUFFER_SIZE - len(self._rx_buffer)
        if space <= 0:
            _log.debug("No space left for new packet!")
            return
        if self._client is None:
            return
        try:
            data = self._client.read(space)
        except OSError as exc:
            _log.error("Error reading from server: %s", exc)
            return
        self._rx_buffer += data
        self.stats.rx_bytes += len(data)

    def _parse_header(self) -> None:
        millis, packet_type, size = _HEADER.unpack_from(self._rx_buffer)
        self.receive_packet.header = HomeRobotHeader(millis, packet_type, size)
        _log.debug("Parsed header. Millis %d Type: %d Size: %d", millis, packet_type, size)
        self._read_header = True

    def _process_next_packet(self) -> bool:
        if len(self._rx_buffer) < HEADER_SIZE:
            return False
        if not self._read_header:
            self._parse_header()
            self.stats.rx_packets += 1

        header = self.receive_packet.header
        total = HEADER_SIZE + header.size
        if len(self._rx_buffer) < total:
            return False
        if total > RX_MAX_PACKET_SIZE:
            _log.error("Received packet too large. Size: %d", total)
            self._rx_buffer.clear()
            self._read_header = False
            return False

        self.receive_packet.data = bytes(self._rx_buffer[HEADER_SIZE:total])
        del self._rx_buffer[:total]
        self._read_header = False

        if header.sequence_millis < self._rx_latest_millis:
            _log.debug(
                "Old packet received, discarding. %d < %d",
                header.sequence_millis,
                self._rx_latest_millis,
            )
            return False

        self._rx_latest_millis = header.sequence_millis
        return True