"""Wire-level primitives shared by every message: ids, integer readers and the packet base."""

from __future__ import annotations

import abc
import enum
import struct

UNCONNECTED_MESSAGE_SEQUENCE = bytes(
    [
        0x00, 0xFF, 0xFF, 0x00, 0xFE, 0xFE, 0xFE, 0xFE,
        0xFD, 0xFD, 0xFD, 0xFD, 0x12, 0x34, 0x56, 0x78,
    ]
)
"""Magic bytes that mark unconnected messages."""


class ProtocolError(ValueError):
    """Raised when bytes received from the network cannot be decoded."""


class PacketId(enum.IntEnum):
    """Identifiers carried in the first byte of a message."""

    CONNECTED_PING = 0x00
    UNCONNECTED_PING = 0x01
    UNCONNECTED_PING_OPEN_CONNECTIONS = 0x02
    CONNECTED_PONG = 0x03
    DETECT_LOST_CONNECTIONS = 0x04
    OPEN_CONNECTION_REQUEST_1 = 0x05
    OPEN_CONNECTION_REPLY_1 = 0x06
    OPEN_CONNECTION_REQUEST_2 = 0x07
    OPEN_CONNECTION_REPLY_2 = 0x08
    CONNECTION_REQUEST = 0x09
    CONNECTION_REQUEST_ACCEPTED = 0x10
    NEW_INCOMING_CONNECTION = 0x13
    DISCONNECT_NOTIFICATION = 0x15
    INCOMPATIBLE_PROTOCOL_VERSION = 0x19
    UNCONNECTED_PONG = 0x1C
    GAME_PACKET = 0xFE
    UNKNOWN = 0xFF

    @classmethod
    def from_byte(cls, value: int) -> "PacketId":
        """Map a leading byte to its id; anything unrecognised becomes UNKNOWN."""
        if value in _DECODABLE_IDS:
            return cls(value)
        return cls.UNKNOWN


_DECODABLE_IDS = frozenset(
    member.value
    for member in PacketId
    if member not in (PacketId.GAME_PACKET, PacketId.UNKNOWN)
)


class Packet(abc.ABC):
    """A message that can be turned into bytes and read back."""

    @abc.abstractmethod
    def serialize(self) -> bytes:
        """Encode the message for the wire."""

    @classmethod
    @abc.abstractmethod
    def deserialize(cls, data: bytes) -> "Packet":
        """Decode the message body; raise ProtocolError on malformed input."""


def _unpack(fmt: str, data: bytes, what: str) -> int:
    size = struct.calcsize(fmt)
    if len(data) < size:
        raise ProtocolError(f"need {size} bytes to read {what}, got {len(data)}")
    return struct.unpack_from(fmt, data)[0]


def read_u24(data: bytes) -> int:
    """Read a little-endian 24-bit unsigned integer."""
    if len(data) < 3:
        raise ProtocolError(f"need 3 bytes to read uint24, got {len(data)}")
    return int.from_bytes(data[:3], "little")


def write_u24(value: int) -> bytes:
    """Encode the low 24 bits of value as little-endian bytes."""
    return (value & 0xFFFFFF).to_bytes(3, "little")


def read_be_u64(data: bytes) -> int:
    """Read a big-endian unsigned 64-bit integer from the start of data."""
    return _unpack(">Q", data, "u64")


def read_be_u32(data: bytes) -> int:
    """Read a big-endian unsigned 32-bit integer from the start of data."""
    return _unpack(">I", data, "u32")


def read_be_u16(data: bytes) -> int:
    """Read a big-endian unsigned 16-bit integer from the start of data."""
    return _unpack(">H", data, "u16")


def read_be_i64(data: bytes) -> int:
    """Read a big-endian signed 64-bit integer from the start of data."""
    return _unpack(">q", data, "i64")