"""Robot wiring: configuration, motor construction and the main control loop."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from .battery import Battery, BatteryStatus
from .imu import Imu
from .lidar import Lidar
from .motor_pid import Encoder, Motor, PinDriver
from .protocol import DEFAULT_HOST, DEFAULT_PORT, Protocol, ProtocolStatus
from .state_machine import RobotState, apply_state, serial_command, wifi_commands
from .utils import LED_GREEN, LED_OFF, LED_PURPLE, LED_WHITE, Color, led_blink

_log = logging.getLogger(__name__)

_U32 = 0xFFFFFFFF

MAIN_LOGGER = 0
PROTO_LOGGER = 1
MOTOR_LOGGER = 2
LIDAR_LOGGER = 3
IMU_LOGGER = 4


def _millis() -> int:
    return (time.monotonic_ns() // 1_000_000) & _U32


@dataclass(frozen=True)
class RobotConfig:
    """Network settings, pin assignments and control constants of the robot."""

    wifi_ssid: str = "WiFi name"
    wifi_password: str = "password"
    server_host: str = DEFAULT_HOST
    server_port: int = DEFAULT_PORT
    local_ip: str = "192.168.199.123"
    gateway: str = "192.168.199.254"
    subnet: str = "255.255.255.0"

    # Motor power range, full range 0 - 255.
    pwm_lower_limit: int = 63
    pwm_upper_limit: int = 255

    # Left motor.
    encoder_sx_a: int = 21
    encoder_sx_b: int = 20
    motor_sx_backward: int = 18
    motor_sx_forward: int = 19
    motor_sx_pwm: int = 0

    # Right motor.
    encoder_dx_a: int = 23
    encoder_dx_b: int = 22
    motor_dx_forward: int = 11
    motor_dx_backward: int = 10
    motor_dx_pwm: int = 0

    # PID constants.
    kp: float = 1.0
    ki: float = 0.01
    kd: float = 0.1

    i2c_sda: int = 4
    i2c_scl: int = 5

    center_to_wheel_mm: int = 100
    center_to_lidar_mm: int = 100

    status_interval_ms: int = 10000
    min_battery_level: int = 5
    battery_retry_delay: float = 5.0


def build_motors(
    config: RobotConfig,
    encoder_sx: Encoder,
    encoder_dx: Encoder,
    pins: PinDriver | None = None,
    clock: Callable[[], int] | None = None,
) -> tuple[Motor, Motor]:
    """Create and initialise the left (sx) and right (dx) motors."""
    _log.info("INIT MOTORS - START")
    pins = pins if pins is not None else PinDriver()
    motor_sx = Motor(
        "SX",
        encoder_sx,
        config.motor_sx_forward,
        config.motor_sx_backward,
        config.motor_sx_pwm,
        config.pwm_lower_limit,
        config.pwm_upper_limit,
        pins=pins,
        clock=clock,
    )
    motor_dx = Motor(
        "DX",
        encoder_dx,
        config.motor_dx_forward,
        config.motor_dx_backward,
        config.motor_dx_pwm,
        config.pwm_lower_limit,
        config.pwm_upper_limit,
        pins=pins,
        clock=clock,
    )
    motor_sx.init(config.kp, config.ki, config.kd)
    motor_dx.init(config.kp, config.ki, config.kd)
    _log.info("INIT MOTORS - END")
    return motor_sx, motor_dx


class Robot:
    """The assembled robot: waits for the battery, then runs the control loop."""

    def __init__(
        self,
        config: RobotConfig,
        *,
        protocol: Protocol,
        battery: Battery,
        lidar: Lidar,
        imu: Imu | None = None,
        encoder_sx: Encoder | None = None,
        encoder_dx: Encoder | None = None,
        pins: PinDriver | None = None,
        clock: Callable[[], int] | None = None,
        sleep: Callable[[float], object] = time.sleep,
        led: Callable[[Color], object] | None = None,
        apply_states: bool = False,
    ) -> None:
        self.config = config
        self.protocol = protocol
        self.battery = battery
        self.lidar = lidar
        self.imu = imu
        self._clock = clock if clock is not None else _millis
        self._sleep = sleep
        self._led = led
        self._apply_states = apply_states
        self._last_status = 0

        if led is not None:
            led(LED_OFF)
            led_blink(".", LED_WHITE, led, sleep)

        self._wait_for_battery()

        self.motor_sx, self.motor_dx = build_motors(
            config,
            encoder_sx if encoder_sx is not None else Encoder(),
            encoder_dx if encoder_dx is not None else Encoder(),
            pins,
            self._clock,
        )

        if led is not None:
            led_blink("--", LED_GREEN, led, sleep)

    def _wait_for_battery(self) -> None:
        while (
            not self.battery.is_connected()
            or self.battery.level() < self.config.min_battery_level
        ):
            _log.warning(
                "Battery not connected or battery level is low. Waiting %g seconds",
                self.config.battery_retry_delay,
            )
            self.battery.status()
            if self._led is not None:
                led_blink("-", LED_PURPLE, self._led, self._sleep)
            self._sleep(self.config.battery_retry_delay)

    def show_status(self) -> tuple[BatteryStatus, ProtocolStatus] | None:
        """Report battery and connection state once per status interval.

        Returns the reports when they were made, None otherwise.
        """
        now = self._clock() & _U32
        if ((now - self._last_status) & _U32) < self.config.status_interval_ms:
            return None
        self._last_status = now
        battery_status = self.battery.status()
        protocol_status = self.protocol.status()
        if self._led is not None:
            self._led(protocol_status.led)
        return battery_status, protocol_status

    def step(self, serial_char: str | None = None) -> RobotState:
        """Run one iteration of the main loop and return the serial-requested state."""
        state = RobotState.IDLE
        self.show_status()

        if serial_char:
            state = serial_command(serial_char)

        if self.protocol.is_connected():
            wifi_commands(self.protocol, self.lidar, self.motor_dx, self.motor_sx, self._clock)

        if self._apply_states and state not in (RobotState.IDLE, RobotState.RESTART):
            apply_state(state, self.protocol, self.lidar, self.motor_dx, self.motor_sx)
        return state