"""Ping and pong messages, the server status record and the catch-all message."""

from __future__ import annotations

from dataclasses import dataclass, field

from .types import (
    UNCONNECTED_MESSAGE_SEQUENCE,
    Packet,
    PacketId,
    ProtocolError,
    read_be_u16,
    read_be_u64,
)

_MAX_STATUS_LENGTH = 0xFFFF


def _u64(value: int) -> bytes:
    return value.to_bytes(8, "big")


@dataclass
class ConnectedPing(Packet):
    """Keep-alive ping sent over an established connection."""

    client_send_time: int

    def serialize(self) -> bytes:
        return bytes([PacketId.CONNECTED_PING]) + _u64(self.client_send_time)

    @classmethod
    def deserialize(cls, data: bytes) -> "ConnectedPing":
        if len(data) < 8:
            raise ProtocolError("Invalid packet length")
        return cls(client_send_time=read_be_u64(data))


@dataclass
class ConnectedPong(Packet):
    """Answer to a ConnectedPing, echoing the client's send time."""

    client_send_time: int

    def serialize(self) -> bytes:
        return bytes([PacketId.CONNECTED_PONG]) + _u64(self.client_send_time)

    @classmethod
    def deserialize(cls, data: bytes) -> "ConnectedPong":
        if len(data) < 8:
            raise ProtocolError("Invalid data length")
        return cls(client_send_time=read_be_u64(data))


@dataclass
class UnconnectedPing(Packet):
    """Status query sent by a client that is not connected yet."""

    client_send_time: int
    client_guid: int

    def serialize(self) -> bytes:
        return (
            bytes([PacketId.UNCONNECTED_PING])
            + _u64(self.client_send_time)
            + UNCONNECTED_MESSAGE_SEQUENCE
            + _u64(self.client_guid)
        )

    @classmethod
    def deserialize(cls, data: bytes) -> "UnconnectedPing":
        if len(data) < 32:
            raise ProtocolError("Invalid data length")
        return cls(
            client_send_time=read_be_u64(data),
            client_guid=read_be_u64(data[24:]),
        )


@dataclass
class UnconnectedPong(Packet):
    """Status answer carrying the server's guid and its status string."""

    client_send_time: int
    server_guid: int
    data: str

    def serialize(self) -> bytes:
        encoded = self.data.encode("utf-8")
        if len(encoded) > _MAX_STATUS_LENGTH:
            raise ValueError(
                f"status string of {len(encoded)} bytes exceeds {_MAX_STATUS_LENGTH}"
            )
        return (
            bytes([PacketId.UNCONNECTED_PONG])
            + _u64(self.client_send_time)
            + _u64(self.server_guid)
            + UNCONNECTED_MESSAGE_SEQUENCE
            + len(encoded).to_bytes(2, "big")
            + encoded
        )

    @classmethod
    def deserialize(cls, data: bytes) -> "UnconnectedPong":
        if len(data) < 34:
            raise ProtocolError("Invalid data length")
        size = read_be_u16(data[32:])
        if len(data) < 34 + size:
            raise ProtocolError("Invalid data length")
        return cls(
            client_send_time=read_be_u64(data),
            server_guid=read_be_u64(data[8:]),
            data=bytes(data[34:34 + size]).decode("latin-1"),
        )


@dataclass
class Motd(Packet):
    """Server status record; its body is read like an UnconnectedPing."""

    client_send_time: int
    client_guid: int

    def serialize(self) -> bytes:
        """The record has no fields of its own to write, so it encodes as nothing."""
        return b""

    @classmethod
    def deserialize(cls, data: bytes) -> "Motd":
        if len(data) < 32:
            raise ProtocolError("Invalid data length")
        return cls(
            client_send_time=read_be_u64(data),
            client_guid=read_be_u64(data[24:]),
        )


@dataclass
class UnknownPacket(Packet):
    """Any message without a dedicated decoder: its id and raw body."""

    id: int
    data: bytes = field(default=b"")

    def serialize(self) -> bytes:
        return bytes([self.id]) + bytes(self.data)

    @classmethod
    def deserialize(cls, data: bytes) -> "UnknownPacket":
        """Decode a whole message, id byte included."""
        if not data:
            raise ProtocolError("Invalid data length")
        return cls(id=data[0], data=bytes(data[1:]))

    def __str__(self) -> str:
        body = ", ".join(f"0x{b:02X}" for b in self.data)
        return f"UnknownPacket {{ id: {self.id}, data: [{body}] }}"