"""Command handling for serial and server input."""

from __future__ import annotations

import logging
import struct
import time
from collections.abc import Callable
from dataclasses import replace
from enum import IntEnum

from .lidar import Lidar
from .motor import motor_config, motor_move
from .motor_pid import Motor
from .packet_types import ReceivePacketType
from .protocol import HomeRobotPacket, Protocol

_log = logging.getLogger(__name__)

FAST_REFRESH_HZ = 500
SLOW_REFRESH_HZ = 1000
MOTOR_GO_TARGET = 360

_NATIVE_FLOAT = struct.Struct("<f")


def _millis() -> int:
    return (time.monotonic_ns() // 1_000_000) & 0xFFFFFFFF


class RobotState(IntEnum):
    """What the main loop should do next."""

    IDLE = 0
    STOP = 1
    LIDAR = 2
    WIFI_SOFT = 3
    WIFI_HARD = 4
    MOTOR_GO = 5
    RESTART = 6
    """A device restart was requested; carried out by the caller."""


_SERIAL_COMMANDS = {
    "r": (RobotState.RESTART, "Restart"),
    "s": (RobotState.STOP, "Stop"),
    "g": (RobotState.MOTOR_GO, "Motor go"),
    "l": (RobotState.LIDAR, "Lidar start"),
    "w": (RobotState.WIFI_SOFT, "Reset wifi soft"),
    "W": (RobotState.WIFI_HARD, "Reset wifi hard"),
}


def serial_command(cmd: str) -> RobotState:
    """Map a one-character serial command to a state; unknown input is IDLE."""
    entry = _SERIAL_COMMANDS.get(cmd)
    if entry is None:
        return RobotState.IDLE
    state, label = entry
    _log.info("Serial cmd: %s", label)
    return state


def wifi_commands(
    protocol: Protocol,
    lidar: Lidar,
    motor_dx: Motor,
    motor_sx: Motor,
    clock: Callable[[], int] | None = None,
) -> RobotState:
    """Receive at most one packet from the server and act on it."""
    if not protocol.receive():
        return RobotState.IDLE

    packet = protocol.receive_packet
    try:
        packet_type = ReceivePacketType(packet.header.type)
    except ValueError:
        _log.error("Unknown cmd")
        return RobotState.IDLE

    if packet_type is ReceivePacketType.RX_MOTOR_MOVE:
        _log.info("Received motor move")
        motor_move(packet.data, motor_dx, motor_sx)
    elif packet_type is ReceivePacketType.RX_MOTOR_CONFIG:
        _log.info("Received motor config")
        motor_config(packet.data, motor_dx, motor_sx)
    elif packet_type is ReceivePacketType.RX_LIDAR_MOTOR:
        _log.info("Received Lidar start")
        if len(packet.data) < _NATIVE_FLOAT.size:
            raise ValueError(f"lidar speed needs 4 bytes, got {len(packet.data)}")
        (hz,) = _NATIVE_FLOAT.unpack_from(packet.data)
        lidar.set_scan_target_freq_hz(hz)
    elif packet_type is ReceivePacketType.RX_STOP_ALL:
        _log.info("Received stop all")
        motor_sx.turn_off()
        motor_dx.turn_off()
        lidar.stop_reading()
    elif packet_type is ReceivePacketType.RX_REQUEST:
        _log.info("Received request")
        now = (clock if clock is not None else _millis)() & 0xFFFFFFFF
        echo = HomeRobotPacket(replace(packet.header, sequence_millis=now), packet.data)
        protocol.receive_packet = echo
        protocol.send_packet(echo)
    return RobotState.IDLE


def apply_state(
    state: RobotState,
    protocol: Protocol,
    lidar: Lidar,
    motor_dx: Motor,
    motor_sx: Motor,
) -> None:
    """Carry out the action of a state."""
    if state == RobotState.STOP:
        motor_sx.turn_off()
        motor_dx.turn_off()
    elif state == RobotState.MOTOR_GO:
        motor_sx.set_position(0)
        motor_dx.set_position(0)
        motor_sx.set_target(MOTOR_GO_TARGET)
        motor_dx.set_target(MOTOR_GO_TARGET)
        motor_sx.turn_on()
        motor_dx.turn_on()
    elif state == RobotState.LIDAR:
        _log.info("Start LiDAR by serial command")
        if not lidar.is_active():
            lidar.start_reading()
    elif state == RobotState.WIFI_HARD:
        protocol.status()
        protocol.hard_restart()
    elif state == RobotState.WIFI_SOFT:
        protocol.status()
        protocol.soft_restart()