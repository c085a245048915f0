"""Decoding of motor commands received from the server."""

from __future__ import annotations

import logging
import math
import struct
from dataclasses import dataclass

from .motor_pid import Direction, Motor

_log = logging.getLogger(__name__)

_MOVE = struct.Struct(">BfBf")
_LE_FLOAT = struct.Struct("<f")
CONFIG_SIZE = 13
CONFIG_LOWER_LIMIT = 50


@dataclass(frozen=True)
class MotorMove:
    """Power and angle for the right (dx) and left (sx) motors."""

    dx_power: int
    dx_angle: float
    sx_power: int
    sx_angle: float


@dataclass(frozen=True)
class MotorConfig:
    """PID constants and maximum power for one motor."""

    kp: float
    ki: float
    kd: float
    upper_limit: int


def parse_motor_move(data: bytes) -> MotorMove:
    """Decode a move payload: power byte and big-endian float angle, twice."""
    if len(data) < _MOVE.size:
        raise ValueError(f"motor move needs {_MOVE.size} bytes, got {len(data)}")
    return MotorMove(*_MOVE.unpack_from(bytes(data)))


def _drive(motor: Motor, power: int, angle: float) -> None:
    if power == 0:
        motor.turn_off()
    else:
        negative = math.copysign(1.0, angle) < 0
        motor.set_motor(Direction.BACKWARD if negative else Direction.FORWARD, power)


def motor_move(data: bytes, motor_dx: Motor, motor_sx: Motor) -> MotorMove:
    """Apply a move payload to both motors and return what was decoded."""
    move = parse_motor_move(data)
    _log.info(
        "Motor DX: %u %f, SX: %u %f", move.dx_power, move.dx_angle, move.sx_power, move.sx_angle
    )
    _drive(motor_dx, move.dx_power, move.dx_angle)
    _drive(motor_sx, move.sx_power, move.sx_angle)
    return move


def extract_motor_config(data: bytes, offset: int = 0) -> tuple[MotorConfig, int]:
    """Decode one motor configuration starting at ``offset``.

    Returns the configuration and the offset just past it. ``kp`` is always
    taken from the start of the payload.
    """
    end = offset + CONFIG_SIZE
    if len(data) < end:
        raise ValueError(f"motor config needs {end} bytes, got {len(data)}")
    raw = bytes(data)
    (kp,) = _LE_FLOAT.unpack_from(raw, 0)
    (ki,) = _LE_FLOAT.unpack_from(raw, offset + 4)
    (kd,) = _LE_FLOAT.unpack_from(raw, offset + 8)
    upper_limit = raw[offset + 12]
    return MotorConfig(kp, ki, kd, upper_limit), end


def motor_config(
    data: bytes, motor_dx: Motor, motor_sx: Motor
) -> tuple[MotorConfig, MotorConfig]:
    """Apply a configuration payload (dx first, then sx) to both motors."""
    dx_config, offset = extract_motor_config(data, 0)
    sx_config, _ = extract_motor_config(data, offset)
    motor_dx.config_set_pid(dx_config.kp, dx_config.ki, dx_config.kd)
    motor_dx.config_set_limit(CONFIG_LOWER_LIMIT, dx_config.upper_limit)
    motor_sx.config_set_pid(sx_config.kp, sx_config.ki, sx_config.kd)
    motor_sx.config_set_limit(CONFIG_LOWER_LIMIT, sx_config.upper_limit)
    return dx_config, sx_config