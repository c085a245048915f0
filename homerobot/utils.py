"""Status LED sequences and network float encoding."""

from __future__ import annotations

import struct
import time
from collections.abc import Callable, Iterator
from typing import NamedTuple

RGB_BRIGHTNESS = 64
LED_TIMING_MS = 250

_NET_FLOAT = struct.Struct(">f")


class Color(NamedTuple):
    """An RGB colour for the status LED."""

    red: int
    green: int
    blue: int


LED_RED = Color(RGB_BRIGHTNESS, 0, 0)
LED_GREEN = Color(0, RGB_BRIGHTNESS, 0)
LED_BLUE = Color(0, 0, RGB_BRIGHTNESS)
LED_YELLOW = Color(RGB_BRIGHTNESS, RGB_BRIGHTNESS, 0)
LED_ORANGE = Color(RGB_BRIGHTNESS, RGB_BRIGHTNESS // 2, 0)
LED_PURPLE = Color(RGB_BRIGHTNESS, 0, RGB_BRIGHTNESS)
LED_CYAN = Color(0, RGB_BRIGHTNESS, RGB_BRIGHTNESS)
LED_WHITE = Color(RGB_BRIGHTNESS, RGB_BRIGHTNESS, RGB_BRIGHTNESS)
LED_OFF = Color(0, 0, 0)


def net_to_host_float(value: bytes) -> float:
    """Decode a 4-byte big-endian IEEE-754 float."""
    return _NET_FLOAT.unpack(bytes(value))[0]


def host_to_net_float(value: float) -> bytes:
    """Encode a float as 4 big-endian IEEE-754 bytes."""
    return _NET_FLOAT.pack(value)


def blink_schedule(sequence: str, color: Color) -> Iterator[tuple[Color, int]]:
    """Yield ``(colour, milliseconds)`` steps for a morse-like sequence.

    A ``.`` lights the LED for one time unit, a ``-`` for two; every character,
    recognised or not, is followed by one unit with the LED off.
    """
    color = Color(*color)
    for char in sequence:
        if char == ".":
            yield color, LED_TIMING_MS
        elif char == "-":
            yield color, LED_TIMING_MS * 2
        yield LED_OFF, LED_TIMING_MS


def led_blink(
    sequence: str,
    color: Color,
    write: Callable[[Color], object],
    sleep: Callable[[float], object] = time.sleep,
) -> None:
    """Play a blink sequence through ``write``, ending with the LED off."""
    for step_color, duration_ms in blink_schedule(sequence, color):
        write(step_color)
        sleep(duration_ms / 1000)