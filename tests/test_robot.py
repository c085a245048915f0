import pytest

from homerobot.battery import Battery
from homerobot.lidar import Lidar, LidarDriver
from homerobot.motor_pid import OUTPUT, Direction, Encoder, PinDriver
from homerobot.net_client import ChunkedClient
from homerobot.packet_types import ReceivePacketType
from homerobot.protocol import Protocol
from homerobot.robot import Robot, RobotConfig, build_motors
from homerobot.state_machine import RobotState
from homerobot.utils import LED_PURPLE


class FakeDriver(LidarDriver):
    def __init__(self):
        self.active = False
        self.stopped = 0
        self.hz = None

    def start(self):
        self.active = True
        return True

    def stop(self):
        self.active = False
        self.stopped += 1

    def loop(self):
        pass

    def is_active(self):
        return self.active

    def set_scan_target_freq_hz(self, hz):
        self.hz = hz


class Clock:
    def __init__(self, now=0):
        self.now = now

    def __call__(self):
        return self.now


def make_robot(data=b"", clock=None, apply_states=False, adc=3000):
    client = ChunkedClient(data)
    clock = clock if clock is not None else Clock()
    protocol = Protocol(client, sleep=lambda s: None)
    driver = FakeDriver()
    lidar = Lidar(driver, clock=clock, sleep=lambda s: None)
    robot = Robot(
        RobotConfig(),
        protocol=protocol,
        battery=Battery(lambda: adc),
        lidar=lidar,
        clock=clock,
        sleep=lambda s: None,
        apply_states=apply_states,
    )
    return robot, client, driver


def test_build_motors_wires_pins_and_pid():
    config = RobotConfig()
    pins = PinDriver()
    motor_sx, motor_dx = build_motors(config, Encoder(), Encoder(), pins, Clock())
    assert (motor_sx.in1, motor_sx.in2) == (19, 18)
    assert (motor_dx.in1, motor_dx.in2) == (11, 10)
    assert motor_sx.lower_limit == 63
    assert motor_dx.upper_limit == 255
    assert (motor_sx.kp, motor_sx.ki, motor_sx.kd) == (config.kp, config.ki, config.kd)
    for pin in (19, 18, 11, 10):
        assert pins.modes[pin] == OUTPUT
    assert motor_sx.direction == Direction.FORWARD


def test_build_motors_resets_encoder_position():
    encoder = Encoder(40)
    motor_sx, _ = build_motors(RobotConfig(), encoder, Encoder(), None, Clock())
    assert encoder.read() == 0
    assert motor_sx.get_position(True) == 0


def test_config_defaults_match_server_settings():
    config = RobotConfig()
    assert config.server_host == "192.168.1.1"
    assert config.server_port == 12345


def test_waits_for_battery_until_charged():
    state = {"adc": 500}
    sleeps = []
    colors = []

    def sleep(seconds):
        sleeps.append(seconds)
        if seconds == 5.0:
            state["adc"] = 3000

    clock = Clock()
    Robot(
        RobotConfig(),
        protocol=Protocol(ChunkedClient(), sleep=lambda s: None),
        battery=Battery(lambda: state["adc"]),
        lidar=Lidar(FakeDriver(), clock=clock),
        clock=clock,
        sleep=sleep,
        led=colors.append,
    )
    assert sleeps.count(5.0) == 1
    assert LED_PURPLE in colors


def test_no_battery_wait_when_charged():
    sleeps = []
    clock = Clock()
    Robot(
        RobotConfig(),
        protocol=Protocol(ChunkedClient(), sleep=lambda s: None),
        battery=Battery(lambda: 3000),
        lidar=Lidar(FakeDriver(), clock=clock),
        clock=clock,
        sleep=sleeps.append,
    )
    assert sleeps == []


def test_step_without_input_is_idle():
    robot, _, _ = make_robot()
    assert robot.step() == RobotState.IDLE


@pytest.mark.parametrize(
    "char, expected",
    [("s", RobotState.STOP), ("g", RobotState.MOTOR_GO), ("W", RobotState.WIFI_HARD), ("x", RobotState.IDLE)],
)
def test_step_returns_serial_state(char, expected):
    robot, _, _ = make_robot()
    assert robot.step(char) == expected


def test_step_does_not_apply_state_by_default():
    robot, _, _ = make_robot()
    robot.step("s")
    assert robot.motor_sx.direction == Direction.FORWARD


def test_step_applies_stop_when_enabled():
    robot, _, _ = make_robot(apply_states=True)
    robot.step("s")
    assert robot.motor_sx.direction == Direction.FREE
    assert robot.motor_dx.direction == Direction.FREE


def test_step_handles_stop_all_packet():
    packet = Protocol.generate_header(1, ReceivePacketType.RX_STOP_ALL, 0)
    robot, _, driver = make_robot(packet)
    robot.step()
    assert robot.motor_sx.direction == Direction.FREE
    assert robot.motor_dx.direction == Direction.FREE
    assert driver.stopped == 1


def test_step_echoes_request_with_current_time():
    clock = Clock(42)
    packet = Protocol.generate_header(5, ReceivePacketType.RX_REQUEST, 0)
    robot, client, _ = make_robot(packet, clock=clock)
    robot.step()
    assert bytes(client.output) == Protocol.generate_header(42, ReceivePacketType.RX_REQUEST, 0)


def test_show_status_respects_interval():
    clock = Clock(0)
    robot, _, _ = make_robot(clock=clock)
    assert robot.show_status() is None
    clock.now = 10000
    report = robot.show_status()
    battery_status, protocol_status = report
    assert battery_status.raw == 3000
    assert protocol_status.server_connected is True
    clock.now = 15000
    assert robot.show_status() is None
    clock.now = 20000
    assert robot.show_status()[0].raw == 3000