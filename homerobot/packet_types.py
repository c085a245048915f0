"""Packet type identifiers used on the robot <-> server link."""

from enum import IntEnum


class SendPacketType(IntEnum):
    """Packets sent from the robot to the server."""

    TX_LIDAR = 0
    """LiDAR scan points: angle, distance, quality."""
    TX_IMU = 1
    """Accelerometer, gyroscope and optional magnetometer axes."""
    TX_BATTERY = 2
    """Battery percentage and raw ADC value."""
    TX_ENCODER_MOTORS = 4
    """Right and left motor encoder readings."""
    TX_CONFIG = 8
    """LiDAR speed and PID/max speed settings for both motors."""
    TX_ECHO = 16
    """Echo of a request packet."""


class ReceivePacketType(IntEnum):
    """Packets sent from the server to the robot."""

    RX_MOTOR_MOVE = 0
    """Power and angle for the right and left motors."""
    RX_MOTOR_CONFIG = 1
    """PID constants and max speed for both motors."""
    RX_LIDAR_MOTOR = 2
    """Target scan frequency of the LiDAR."""
    RX_STOP_ALL = 4
    """Stop the motors and the LiDAR."""
    RX_REQUEST = 8
    """Request a packet back, used as echo/ping."""