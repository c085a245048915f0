import struct

import pytest

from homerobot.motor import (
    MotorConfig,
    MotorMove,
    extract_motor_config,
    motor_config,
    motor_move,
    parse_motor_move,
)
from homerobot.motor_pid import Direction, Encoder, Motor, PinDriver


def make_motor(name, in1, in2):
    return Motor(name, Encoder(), in1, in2, pins=PinDriver(), clock=lambda: 0)


def move_payload(dx_power, dx_angle, sx_power, sx_angle):
    return (
        bytes([dx_power])
        + struct.pack(">f", dx_angle)
        + bytes([sx_power])
        + struct.pack(">f", sx_angle)
    )


def config_payload(kp, ki, kd, upper):
    return struct.pack("<fff", kp, ki, kd) + bytes([upper])


def test_parse_motor_move_round_trip():
    data = move_payload(80, 90.5, 40, -12.25)
    assert parse_motor_move(data) == MotorMove(80, 90.5, 40, -12.25)


def test_parse_motor_move_rejects_short_payload():
    with pytest.raises(ValueError):
        parse_motor_move(b"\x01\x02\x03")


def test_motor_move_sets_directions():
    dx = make_motor("DX", 11, 10)
    sx = make_motor("SX", 19, 18)
    move = motor_move(move_payload(80, 90.0, 40, -45.0), dx, sx)
    assert move.dx_power == 80
    assert dx.pins.levels == {11: 80, 10: 0}
    assert sx.pins.levels == {19: 0, 18: 40}


def test_motor_move_negative_zero_angle_is_backward():
    dx = make_motor("DX", 11, 10)
    sx = make_motor("SX", 19, 18)
    motor_move(move_payload(30, -0.0, 30, 0.0), dx, sx)
    assert dx.pins.levels == {11: 0, 10: 30}
    assert sx.pins.levels == {19: 30, 18: 0}


def test_motor_move_zero_power_turns_off():
    dx = make_motor("DX", 11, 10)
    sx = make_motor("SX", 19, 18)
    motor_move(move_payload(0, 90.0, 0, 90.0), dx, sx)
    assert dx.direction == Direction.FREE
    assert sx.direction == Direction.FREE


def test_extract_motor_config_first_block():
    data = config_payload(1.0, 0.5, 0.25, 200) + config_payload(2.0, 0.75, 0.125, 150)
    config, offset = extract_motor_config(data, 0)
    assert config == MotorConfig(1.0, 0.5, 0.25, 200)
    assert offset == 13


def test_extract_motor_config_second_block_reuses_first_kp():
    data = config_payload(1.0, 0.5, 0.25, 200) + config_payload(2.0, 0.75, 0.125, 150)
    config, offset = extract_motor_config(data, 13)
    assert config == MotorConfig(1.0, 0.75, 0.125, 150)
    assert offset == 26


def test_extract_motor_config_rejects_short_payload():
    with pytest.raises(ValueError):
        extract_motor_config(config_payload(1.0, 0.5, 0.25, 200), 13)


def test_motor_config_applies_to_motors():
    dx = make_motor("DX", 11, 10)
    sx = make_motor("SX", 19, 18)
    data = config_payload(1.0, 0.5, 0.25, 200) + config_payload(2.0, 0.75, 0.125, 150)
    dx_config, sx_config = motor_config(data, dx, sx)
    assert (dx.kp, dx.ki, dx.kd) == (1.0, 0.5, 0.25)
    assert (dx.lower_limit, dx.upper_limit) == (50, 200)
    assert (sx.kp, sx.ki, sx.kd) == (1.0, 0.75, 0.125)
    assert (sx.lower_limit, sx.upper_limit) == (50, 150)
    assert sx_config.upper_limit == 150