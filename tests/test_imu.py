import struct

import pytest

from homerobot.imu import Imu, ImuDevice, Vector3
from homerobot.packet_types import SendPacketType
from homerobot.sensor import SerializationError


class FakeDevice(ImuDevice):
    def __init__(self, with_mag):
        self.with_mag = with_mag
        self.updates = 0

    def update(self):
        self.updates += 1

    def accel(self):
        return Vector3(1.0, 2.0, -0.5)

    def gyro(self):
        return Vector3(0.25, -1.5, 3.0)

    def mag(self):
        return Vector3(10.0, 20.0, 30.0)

    def has_magnetometer(self):
        return self.with_mag


def test_device_is_abstract():
    with pytest.raises(TypeError):
        ImuDevice()


def test_identity():
    imu = Imu(FakeDevice(False), clock=lambda: 0)
    assert imu.name() == "IMU"
    assert imu.packet_type() == SendPacketType.TX_IMU


def test_read_updates_state_and_millis():
    device = FakeDevice(False)
    imu = Imu(device, clock=lambda: 1234)
    assert imu.millis() == 0
    imu.read()
    assert device.updates == 1
    assert imu.millis() == 1234
    assert imu.accel == Vector3(1.0, 2.0, -0.5)
    assert imu.mag == Vector3()


def test_serialize_without_magnetometer():
    imu = Imu(FakeDevice(False), clock=lambda: 5)
    imu.read()
    data = imu.serialize(1024)
    assert len(data) == imu.data_size() == 24
    assert struct.unpack(">6f", data) == (1.0, 2.0, -0.5, 0.25, -1.5, 3.0)


def test_serialize_with_magnetometer():
    imu = Imu(FakeDevice(True), clock=lambda: 5)
    imu.read()
    data = imu.serialize(1024)
    assert len(data) == imu.data_size() == 36
    assert struct.unpack(">9f", data)[6:] == (10.0, 20.0, 30.0)


def test_serialize_too_small_buffer():
    imu = Imu(FakeDevice(False), clock=lambda: 5)
    imu.read()
    with pytest.raises(SerializationError):
        imu.serialize(10)


def test_report_lists_axes():
    imu = Imu(FakeDevice(True), clock=lambda: 42)
    imu.read()
    text = imu.report()
    assert text.startswith("IMU State (last read: 42 ms):\n")
    assert "\tZ: -0.50" in text
    assert "Magnetometer" in text


def test_report_without_magnetometer():
    imu = Imu(FakeDevice(False), clock=lambda: 42)
    imu.read()
    assert "Magnetometer" not in imu.report()