"""Decoding of raw unconnected messages into packet objects."""

from __future__ import annotations

from .handshake import (
    OpenConnectionReply1,
    OpenConnectionReply2,
    OpenConnectionRequest1,
    OpenConnectionRequest2,
)
from .pings import (
    ConnectedPing,
    ConnectedPong,
    UnconnectedPing,
    UnconnectedPong,
    UnknownPacket,
)
from .types import Packet, PacketId, ProtocolError

_DECODERS: dict[PacketId, type[Packet]] = {
    PacketId.CONNECTED_PING: ConnectedPing,
    PacketId.CONNECTED_PONG: ConnectedPong,
    PacketId.UNCONNECTED_PING: UnconnectedPing,
    PacketId.UNCONNECTED_PONG: UnconnectedPong,
    PacketId.OPEN_CONNECTION_REQUEST_1: OpenConnectionRequest1,
    PacketId.OPEN_CONNECTION_REPLY_1: OpenConnectionReply1,
    PacketId.OPEN_CONNECTION_REQUEST_2: OpenConnectionRequest2,
    PacketId.OPEN_CONNECTION_REPLY_2: OpenConnectionReply2,
}


def read_packet(data: bytes) -> Packet:
    """Decode one message by its leading id byte.

    Datagram, ACK and NACK framing is not handled here. Messages without a
    decoder come back as UnknownPacket.
    """
    if not data:
        raise ProtocolError("Cannot read a packet from empty data")
    packet_cls = _DECODERS.get(PacketId.from_byte(data[0]))
    if packet_cls is None:
        return UnknownPacket.deserialize(data)
    try:
        return packet_cls.deserialize(data[1:])
    except ProtocolError as exc:
        raise ProtocolError(
            f'Error deserializing {packet_cls.__name__} packet: "{exc}"'
        ) from exc