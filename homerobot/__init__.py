"""Control logic for a two-wheeled home robot: wire protocol, PID motors, battery, IMU and LiDAR."""

__version__ = "0.1.0"