"""Wire codecs used to move values through a channel as bytes."""

import struct
from typing import Any

from .exceptions import UnexpectedChannelError


class IntCodec:
    """Fixed-width signed 64-bit little-endian integer codec."""

    _format = struct.Struct('<q')

    @property
    def width(self) -> int:
        return self._format.size

    def encode(self, value: int) -> bytes:
        if isinstance(value, bool) or not isinstance(value, int):
            raise UnexpectedChannelError(
                f"Cannot encode {type(value).__name__} as an integer frame"
            )
        try:
            return self._format.pack(value)
        except struct.error as e:
            raise UnexpectedChannelError(f"Integer {value} does not fit a frame", e)

    def decode(self, frame: bytes) -> int:
        if len(frame) != self.width:
            raise UnexpectedChannelError(
                f"Short frame: expected {self.width} bytes, got {len(frame)}"
            )
        return self._format.unpack(frame)[0]


class ByteCodec:
    """Single-byte codec (the ping-pong handshake sends one byte at a time)."""

    width = 1

    def encode(self, value: Any) -> bytes:
        if isinstance(value, str):
            value = value.encode('latin-1')
        if not isinstance(value, (bytes, bytearray)) or len(value) != 1:
            raise UnexpectedChannelError(f"Expected exactly one byte, got {value!r}")
        return bytes(value)

    def decode(self, frame: bytes) -> bytes:
        if len(frame) != 1:
            raise UnexpectedChannelError(
                f"Short frame: expected 1 byte, got {len(frame)}"
            )
        return frame
