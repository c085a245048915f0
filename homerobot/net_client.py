"""Byte-stream clients used by the protocol layer."""

from __future__ import annotations

import select
import socket
from abc import ABC, abstractmethod
from collections.abc import Iterable


class NetClient(ABC):
    """Minimal stream client interface."""

    @abstractmethod
    def read(self, size: int) -> bytes:
        """Return up to ``size`` bytes that are available now, possibly none."""

    @abstractmethod
    def write(self, data: bytes) -> int:
        """Send ``data`` and return the number of bytes written."""

    @abstractmethod
    def connected(self) -> bool:
        """Whether the connection is open."""

    @abstractmethod
    def connect(self, host: str, port: int) -> bool:
        """Open a connection to ``host:port``; return whether it succeeded."""

    @abstractmethod
    def stop(self) -> None:
        """Close the connection."""

    @abstractmethod
    def flush(self) -> None:
        """Flush pending outgoing bytes."""


class ChunkedClient(NetClient):
    """In-memory client that hands out its input in predefined chunk sizes.

    Each read consumes the next chunk limit, if any remain; once the limits are
    used up reads return whatever is left. Written bytes collect in ``output``.
    """

    def __init__(self, data: bytes = b"", chunks: Iterable[int] = ()) -> None:
        self.output = bytearray()
        self.is_connected = True
        self.set_input(data, chunks)

    def set_input(self, data: bytes, chunks: Iterable[int] = ()) -> None:
        """Replace the input stream and the per-read size limits."""
        self._input = bytes(data)
        self._chunks = list(chunks)
        self._in_pos = 0
        self._chunk_pos = 0

    def read(self, size: int) -> bytes:
        if self._in_pos >= len(self._input):
            return b""
        to_read = min(size, len(self._input) - self._in_pos)
        if self._chunk_pos < len(self._chunks):
            to_read = min(to_read, self._chunks[self._chunk_pos])
            self._chunk_pos += 1
        if to_read <= 0:
            return b""
        data = self._input[self._in_pos:self._in_pos + to_read]
        self._in_pos += to_read
        return data

    def write(self, data: bytes) -> int:
        if not self.is_connected:
            return 0
        self.output += data
        return len(data)

    def connected(self) -> bool:
        return self.is_connected

    def connect(self, host: str, port: int) -> bool:
        self.is_connected = True
        return True

    def stop(self) -> None:
        self.is_connected = False

    def flush(self) -> None:
        pass


class SocketClient(NetClient):
    """TCP client with non-blocking reads."""

    def __init__(self, timeout: float = 5.0) -> None:
        self._timeout = timeout
        self._sock: socket.socket | None = None

    def __enter__(self) -> SocketClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    def read(self, size: int) -> bytes:
        if self._sock is None or size <= 0:
            return b""
        ready, _, _ = select.select([self._sock], [], [], 0)
        if not ready:
            return b""
        try:
            data = self._sock.recv(size)
        except OSError:
            self.stop()
            raise
        if not data:
            self.stop()
        return data

    def write(self, data: bytes) -> int:
        if self._sock is None:
            return 0
        try:
            self._sock.sendall(data)
        except OSError:
            self.stop()
            return 0
        return len(data)

    def connected(self) -> bool:
        return self._sock is not None

    def connect(self, host: str, port: int) -> bool:
        self.stop()
        try:
            self._sock = socket.create_connection((host, port), timeout=self._timeout)
        except OSError:
            return False
        return True

    def stop(self) -> None:
        if self._sock is not None:
            self._sock.close()
            self._sock = None

    def flush(self) -> None:
        pass