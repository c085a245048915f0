# homerobot

The control logic of a small two-wheeled home robot. The robot talks to a
server over a TCP link with a compact binary protocol, drives two
encoder-equipped motors with a PID position controller, and reports readings
from a battery monitor, an IMU and a LiDAR.

Hardware access sits behind small interfaces and callables, so all of the
logic runs and can be tested on an ordinary computer. The package has no
dependencies outside the standard library.

## Modules

| Module | Contents |
| --- | --- |
| `homerobot.packet_types` | `SendPacketType` (robot to server) and `ReceivePacketType` (server to robot) |
| `homerobot.net_client` | the `NetClient` interface; `SocketClient`, a TCP client with non-blocking reads; `ChunkedClient`, an in-memory client that hands out its input in predefined read sizes and collects writes in `output` |
| `homerobot.utils` | `net_to_host_float` / `host_to_net_float`, the LED `Color` and its constants, `blink_schedule` and `led_blink` |
| `homerobot.sensor` | the `Sensor` base class and `SerializationError` |
| `homerobot.protocol` | `Protocol` (framing, header parsing, packet reassembly, sensor uploads), `HomeRobotHeader`, `HomeRobotPacket`, `ProtocolStats`, `ProtocolStatus` |
| `homerobot.motor_pid` | `Motor` with PID position control, `Direction`, `Encoder` and `PinDriver` |
| `homerobot.motor` | `parse_motor_move`, `motor_move`, `extract_motor_config`, `motor_config`, with the `MotorMove` and `MotorConfig` records |
| `homerobot.battery` | `Battery` (raw value, level, voltage, connection check, status) and `arduino_map` |
| `homerobot.imu` | `Imu` sensor over an `ImuDevice`, with `Vector3` |
| `homerobot.lidar` | `Lidar` sensor that buffers full scans delivered by a `LidarDriver` |
| `homerobot.state_machine` | `RobotState`, `serial_command`, `wifi_commands`, `apply_state` |
| `homerobot.robot` | `RobotConfig`, `build_motors` and `Robot`, which tie everything together |

## Wire format

Every packet starts with a 7-byte header in network byte order:

| Bytes | Field |
| --- | --- |
| 4 | sequence timestamp in milliseconds |
| 1 | packet type |
| 2 | payload size |

The payload follows. `Protocol.receive()` reads whatever the client has
available and returns `True` when `receive_packet` holds a new, complete
packet. It delivers at most one packet per call. A packet larger than 128
bytes in total, header included, is rejected and the receive buffer is
cleared. A packet whose timestamp is older than the last accepted one is
discarded.

Commands the robot acts on (`ReceivePacketType`, handled by
`wifi_commands`):

* `RX_MOTOR_MOVE`: a power byte and a big-endian float angle, for the right
  motor and then the left. Zero power turns the motor off. A negative angle
  drives the motor backward.
* `RX_MOTOR_CONFIG`: kp, ki, kd and the maximum power for each motor.
* `RX_LIDAR_MOTOR`: the target LiDAR scan frequency as a float.
* `RX_STOP_ALL`: turns off both motors and stops the LiDAR.
* `RX_REQUEST`: sends the packet back with a fresh timestamp.

Sensors added with `Protocol.add_sensor` (at most five) are read by
`Protocol.loop()`. Their data goes out in a single write, one framed packet
per sensor that has data.

## Usage

Building a header for an outgoing packet:

```python
from homerobot.packet_types import SendPacketType
from homerobot.protocol import Protocol

header = Protocol.generate_header(1000, SendPacketType.TX_IMU, 24, 1024)
assert len(header) == Protocol.header_size()
```

Feeding a byte stream through the receiver a few bytes at a time:

```python
from homerobot.net_client import ChunkedClient
from homerobot.packet_types import ReceivePacketType
from homerobot.protocol import Protocol

stream = Protocol.generate_header(1000, ReceivePacketType.RX_REQUEST, 3) + b"\xde\xad\xbe"
client = ChunkedClient(stream, [3, 4, 3])
protocol = Protocol(client)

assert not protocol.receive()   # 3 bytes: header incomplete
assert not protocol.receive()   # header parsed, payload missing
assert protocol.receive()       # full packet
assert protocol.receive_packet.data == b"\xde\xad\xbe"
```

Floats travel in network byte order:

```python
from homerobot.utils import host_to_net_float, net_to_host_float

assert net_to_host_float(host_to_net_float(1.5)) == 1.5
```

Single-character serial commands map to states through `serial_command`:
`s` stop, `g` motor go, `l` LiDAR start, `w` soft and `W` hard network
reset, and `r` restart. Any other character gives `IDLE`. `Robot.step`
returns the requested state. It carries the state out with `apply_state`
only when the robot was built with `apply_states=True`. `RESTART` is always
left to the caller.

## Running on hardware

`Robot` takes a `Protocol`, a `Battery` (built from a callable that returns
the raw ADC value), a `Lidar` and, optionally, an `Imu`, encoders, a pin
driver, a clock, a sleep function and an LED callable. To drive real
devices, implement `NetClient`, `ImuDevice` and `LidarDriver`, and subclass
`Encoder` and `PinDriver`, for your board.

## What this package does not do

* It has no command-line entry point. Your own program creates a `Robot` and
  calls `step()` in its loop.
* It does not join or manage a wireless network. `Protocol` takes optional
  `restart_network` and `wifi_connected` callables for that.
* It ships no drivers for actual chips. Apart from `SocketClient`, the device
  interfaces are for you to implement.

## Tests

The tests use pytest, installed with the `test` extra.