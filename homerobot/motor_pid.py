"""Position-controlled DC motor driven by a PID loop and a quadrature encoder."""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable
from enum import IntEnum

_log = logging.getLogger(__name__)

LOW = 0
HIGH = 1
INPUT = "INPUT"
OUTPUT = "OUTPUT"

MAX_POWER = 255.0
POSITION_TOLERANCE = 2
DEBUG_INTERVAL_MS = 1000

_U32 = 0xFFFFFFFF


def _millis() -> int:
    return (time.monotonic_ns() // 1_000_000) & _U32


def _trunc_div(a: int, b: int) -> int:
    """Integer division rounding toward zero."""
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b > 0) else -q


class Direction(IntEnum):
    """Drive direction of a motor."""

    FORWARD = 1
    BACKWARD = 2
    BRAKE = 3
    FREE = 4

    def __str__(self) -> str:
        return self.name


class Encoder:
    """Quadrature encoder counter."""

    def __init__(self, count: int = 0) -> None:
        self.count = count

    def read(self) -> int:
        return self.count

    def write(self, value: int) -> None:
        self.count = value


class PinDriver:
    """Records pin modes and output levels written by a motor."""

    def __init__(self) -> None:
        self.modes: dict[int, str] = {}
        self.levels: dict[int, int] = {}
        self.writes: list[tuple[str, int, int]] = []

    def pin_mode(self, pin: int, mode: str) -> None:
        self.modes[pin] = mode

    def digital_write(self, pin: int, value: int) -> None:
        self.levels[pin] = value
        self.writes.append(("digital", pin, value))

    def analog_write(self, pin: int, value: int) -> None:
        self.levels[pin] = value
        self.writes.append(("analog", pin, value))


class Motor:
    """A motor that drives its encoder position toward a target with PID control."""

    def __init__(
        self,
        name: str,
        encoder: Encoder,
        in1: int,
        in2: int,
        pwm_pin: int = 0,
        lower_limit: int = 50,
        upper_limit: int = 255,
        *,
        pins: PinDriver | None = None,
        clock: Callable[[], int] | None = None,
    ) -> None:
        self.name = name
        self.encoder = encoder
        self.in1 = in1
        self.in2 = in2
        self.pwm_pin = pwm_pin
        self.lower_limit = lower_limit & 0xFF
        self.upper_limit = upper_limit & 0xFF
        self.pins = pins if pins is not None else PinDriver()
        self._clock = clock if clock is not None else _millis
        self.kp = 0.0
        self.ki = 0.0
        self.kd = 0.0
        self.direction = Direction.BRAKE
        self.power = 0
        self.position = 0
        self._target = 0
        self._previous_error = 0
        self._eintegral = 0.0
        self._previous_timestamp = 0
        self._target_is_reached = False
        self._ekp = 0.0
        self._eki = 0.0
        self._ekd = 0.0
        self._last_debug_time = 0
        self.set_position(0)

    def init(self, kp: float, ki: float, kd: float) -> None:
        """Set the PID constants and configure the output pins."""
        self.kp = kp
        self.ki = ki
        self.kd = kd
        if self.pwm_pin != 0:
            self.pins.pin_mode(self.pwm_pin, OUTPUT)
        self.pins.pin_mode(self.in1, OUTPUT)
        self.pins.pin_mode(self.in2, OUTPUT)
        self.direction = Direction.FORWARD

    def config_set_pid(self, kp: float, ki: float, kd: float) -> None:
        """Change the PID constants and reset the controller state."""
        self.kp = kp
        self.ki = ki
        self.kd = kd
        self._previous_error = 0
        self._eintegral = 0.0
        self._previous_timestamp = 0

    def config_set_limit(self, lower_limit: int, upper_limit: int) -> None:
        self.lower_limit = lower_limit & 0xFF
        self.upper_limit = upper_limit & 0xFF

    def set_motor(self, direction: Direction, pwm_value: int) -> None:
        """Drive the output pins for ``direction`` at ``pwm_value``."""
        if self.pwm_pin != 0:
            self._set_with_pwm_pin(direction, pwm_value)
        else:
            self._set_without_pwm_pin(direction, pwm_value)

    def _set_with_pwm_pin(self, direction: Direction, pwm_value: int) -> None:
        self.pins.analog_write(self.pwm_pin, pwm_value)
        if direction == Direction.FORWARD:
            self.pins.digital_write(self.in1, HIGH)
            self.pins.digital_write(self.in2, LOW)
        elif direction == Direction.BACKWARD:
            self.pins.digital_write(self.in1, LOW)
            self.pins.digital_write(self.in2, HIGH)
        else:
            self.pins.digital_write(self.in1, LOW)
            self.pins.digital_write(self.in2, LOW)

    def _set_without_pwm_pin(self, direction: Direction, pwm_value: int) -> None:
        if direction == Direction.FORWARD:
            self.pins.analog_write(self.in1, pwm_value)
            self.pins.analog_write(self.in2, LOW)
        elif direction == Direction.BACKWARD:
            self.pins.analog_write(self.in1, LOW)
            self.pins.analog_write(self.in2, pwm_value)
        elif direction in (Direction.BRAKE, Direction.FREE):
            self.pins.analog_write(self.in1, LOW)
            self.pins.analog_write(self.in2, LOW)

    def loop(self) -> None:
        """Run one control step; call it repeatedly without delays."""
        now = self._clock()
        current = self._read_encoder()
        delta_time = (now - self._previous_timestamp) & _U32
        self._previous_timestamp = now

        control = self._pid_signal(current, delta_time)
        self.power = self._limit_power(abs(control))
        position_error = current - self._target

        if ((now - self._last_debug_time) & _U32) >= DEBUG_INTERVAL_MS:
            self._last_debug_time = now
            _log.debug("%s", self.state_string())

        if self.direction == Direction.FREE:
            return

        if abs(position_error) <= POSITION_TOLERANCE:
            self.direction = Direction.BRAKE
            self.power = 0
            self.set_motor(self.direction, self.power)
            self._target_is_reached = True
        else:
            negative = math.copysign(1.0, control) < 0
            self.direction = Direction.BACKWARD if negative else Direction.FORWARD
            self.set_motor(self.direction, self.power)
            self._target_is_reached = False

    def _pid_signal(self, current_position: int, delta_time: int) -> float:
        error = self._target - current_position
        diff = error - self._previous_error
        if delta_time:
            derivative = diff / delta_time
        else:
            derivative = math.copysign(math.inf, diff) if diff else math.nan
        self._previous_error = error
        self._eintegral += error * (delta_time / 1000.0)
        self._ekp = self.kp * error
        self._eki = self.ki * self._eintegral
        self._ekd = self.kd * derivative
        return self._ekp + self._eki + self._ekd

    def _limit_power(self, power: float) -> int:
        if abs(power) > 2:
            if power < self.lower_limit:
                return self.lower_limit
            if power > self.upper_limit:
                return self.upper_limit
            return int(power)
        return 0

    def _read_encoder(self) -> int:
        self.position = _trunc_div(self.encoder.read(), 2)
        return self.position

    def turn_on(self, direction: Direction = Direction.FORWARD) -> None:
        self.direction = direction

    def turn_off(self) -> None:
        self.direction = Direction.FREE
        self.set_motor(Direction.FREE, 0)

    def set_position(self, pos: int) -> None:
        self.position = pos
        self.encoder.write(pos * 2)

    def get_position(self, force_update: bool = False) -> int:
        if force_update:
            self._read_encoder()
        return self.position

    def set_target(self, target: int) -> None:
        """Set a new target position and reset the PID state."""
        self._target = target
        self._eintegral = 0.0
        self._previous_error = 0
        self._previous_timestamp = self._clock()
        self._target_is_reached = False

    def get_target(self) -> int:
        return self._target

    def target_reached(self, reset: bool = False) -> bool:
        if reset:
            self._target_is_reached = False
        return self._target_is_reached

    def state_string(self) -> str:
        """One-line description of the controller state."""
        return (
            f"{self.name} Position: {self.position} Target: {self._target}"
            f" Reached: {int(self._target_is_reached)} Error: {self._previous_error}"
            f" Ekp: {self._ekp:.2f} Eki: {self._eki:.2f} Ekd: {self._ekd:.2f}"
            f" Direction: {self.direction.name} Power: {self.power}"
        )