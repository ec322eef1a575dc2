"""Messages of the open-connection handshake that negotiates the MTU."""

from __future__ import annotations

from dataclasses import dataclass

from .address import Address, AddrType, addr_size, read_addr
from .types import (
    UNCONNECTED_MESSAGE_SEQUENCE,
    Packet,
    PacketId,
    ProtocolError,
    read_be_u16,
    read_be_u32,
    read_be_u64,
)

# IP header + UDP header.
_IP_UDP_HEADERS = 20 + 8
# The server never asks clients for security in the second request.
_SERVER_HAS_SECURITY = False


def _encode_address(address: Address) -> bytes:
    if address.addr_type is AddrType.IPV6:
        return address.serialize()
    ip = bytes(address.addr[:4]).ljust(4, b"\x00")
    return bytes([4]) + bytes(b ^ 0xFF for b in ip) + address.port.to_bytes(2, "big")


@dataclass
class OpenConnectionRequest1(Packet):
    """First handshake request: protocol version, MTU implied by the datagram size."""

    client_protocol: int
    max_transmission_unit: int

    def serialize(self) -> bytes:
        return (
            bytes([PacketId.OPEN_CONNECTION_REQUEST_1])
            + UNCONNECTED_MESSAGE_SEQUENCE
            + bytes([self.client_protocol])
        )

    @classmethod
    def deserialize(cls, data: bytes) -> "OpenConnectionRequest1":
        if len(data) < 17:
            raise ProtocolError("Invalid data length")
        mtu = (len(data) + _IP_UDP_HEADERS + 1) & 0xFFFF
        return cls(client_protocol=data[16], max_transmission_unit=mtu)


@dataclass
class OpenConnectionReply1(Packet):
    """Server's answer to the first request, carrying the agreed MTU."""

    server_guid: int
    server_has_security: bool
    cookie: int
    max_transmission_unit: int

    def serialize(self) -> bytes:
        parts = [
            bytes([PacketId.OPEN_CONNECTION_REPLY_1]),
            UNCONNECTED_MESSAGE_SEQUENCE,
            self.server_guid.to_bytes(8, "big"),
            bytes([int(self.server_has_security)]),
        ]
        if self.server_has_security:
            parts.append(self.cookie.to_bytes(4, "big"))
        parts.append(self.max_transmission_unit.to_bytes(8, "big"))
        return b"".join(parts)

    @classmethod
    def deserialize(cls, data: bytes) -> "OpenConnectionReply1":
        """Decode the body; the MTU is taken from the last two bytes of the message."""
        if len(data) < 27 or len(data) < 27 + data[24] * 4:
            raise ProtocolError("Invalid OpenConnectionReply1 packet")
        has_security = data[24] != 0
        return cls(
            server_guid=read_be_u64(data[16:]),
            server_has_security=has_security,
            cookie=read_be_u32(data[25:]) if has_security else 0,
            max_transmission_unit=read_be_u16(data[-2:]),
        )


@dataclass
class OpenConnectionRequest2(Packet):
    """Second handshake request: server address, MTU and client guid."""

    server_address: Address
    max_transmission_unit: int
    client_guid: int
    server_has_security: bool = False
    cookie: int = 0

    def serialize(self) -> bytes:
        parts = [bytes([PacketId.OPEN_CONNECTION_REQUEST_2]), UNCONNECTED_MESSAGE_SEQUENCE]
        if self.server_has_security:
            parts.append(self.cookie.to_bytes(4, "big") + b"\x00")
        parts.append(_encode_address(self.server_address))
        parts.append(self.max_transmission_unit.to_bytes(2, "big"))
        parts.append(self.client_guid.to_bytes(8, "big"))
        return b"".join(parts)

    @classmethod
    def deserialize(cls, data: bytes) -> "OpenConnectionRequest2":
        offset = 5 if _SERVER_HAS_SECURITY else 0
        if len(data) < 16 + offset or len(data) < 26 + offset + addr_size(data[16 + offset:]):
            raise ProtocolError("invalid size")
        cookie = read_be_u32(data[16:]) if _SERVER_HAS_SECURITY else 0
        server_address = read_addr(data[16 + offset:])
        offset += addr_size(data[16 + offset:])
        return cls(
            server_address=server_address,
            max_transmission_unit=read_be_u16(data[16 + offset:]),
            client_guid=read_be_u64(data[18 + offset:]),
            server_has_security=_SERVER_HAS_SECURITY,
            cookie=cookie,
        )


@dataclass
class OpenConnectionReply2(Packet):
    """Server's answer to the second request, echoing the client's address."""

    server_guid: int
    client_address: Address
    max_transmission_unit: int
    do_security: bool

    def serialize(self) -> bytes:
        return (
            bytes([PacketId.OPEN_CONNECTION_REPLY_2])
            + UNCONNECTED_MESSAGE_SEQUENCE
            + self.server_guid.to_bytes(8, "big")
            + _encode_address(self.client_address)
            + self.max_transmission_unit.to_bytes(2, "big")
            + bytes([int(self.do_security)])
        )

    @classmethod
    def deserialize(cls, data: bytes) -> "OpenConnectionReply2":
        if len(data) < 24 or len(data) < 27 + addr_size(data[24:]):
            raise ProtocolError("Invalid OpenConnectionReply2 packet")
        client_address = read_addr(data[24:])
        offset = addr_size(data[24:])
        return cls(
            server_guid=read_be_u64(data[16:]),
            client_address=client_address,
            max_transmission_unit=read_be_u16(data[24 + offset:]),
            do_security=data[26 + offset] != 0,
        )