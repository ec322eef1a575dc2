"""Encapsulated packets sent once a connection is established, and splitting of payloads."""

from __future__ import annotations

import enum
from dataclasses import dataclass

from .types import ProtocolError

SPLIT_FLAG = 0x10

# Datagram header, sequence number, packet header, content length,
# message index, order index and order channel.
PACKET_ADDITIONAL_SIZE = 1 + 3 + 1 + 2 + 3 + 3 + 1
# Split count, split id and split index.
SPLIT_ADDITIONAL_SIZE = 4 + 2 + 4


class Reliability(enum.IntEnum):
    """Delivery guarantee of an encapsulated packet."""

    UNRELIABLE = 0
    UNRELIABLE_SEQUENCED = 1
    RELIABLE = 2
    RELIABLE_ORDERED = 3
    RELIABLE_SEQUENCED = 4

    @classmethod
    def from_byte(cls, value: int) -> "Reliability":
        """Decode a reliability value, rejecting anything out of range."""
        try:
            return cls(value)
        except ValueError as exc:
            raise ProtocolError(f"Invalid reliability type: {value}") from exc


class PacketBitFlags(enum.IntFlag):
    """Bits of the first byte that classify a datagram."""

    DATAGRAM = 0x80
    ACK = 0x40
    NACK = 0x20
    NEEDS_B_AND_AS = 0x04


@dataclass
class EncapsulatedPacket:
    """A payload wrapped with its reliability and ordering metadata."""

    reliability: Reliability = Reliability.UNRELIABLE
    message_index: int = 0
    sequence_index: int = 0
    order_index: int = 0
    data: bytes = b""
    split: bool = False
    split_count: int = 0
    split_index: int = 0
    split_id: int = 0

    def reliable(self) -> bool:
        return self.reliability in (
            Reliability.RELIABLE,
            Reliability.RELIABLE_ORDERED,
            Reliability.RELIABLE_SEQUENCED,
        )

    def sequenced(self) -> bool:
        return self.reliability in (
            Reliability.RELIABLE_SEQUENCED,
            Reliability.UNRELIABLE_SEQUENCED,
        )

    def sequenced_or_ordered(self) -> bool:
        return self.reliability in (
            Reliability.RELIABLE_ORDERED,
            Reliability.RELIABLE_SEQUENCED,
            Reliability.UNRELIABLE_SEQUENCED,
        )


def split_packet(data: bytes, mtu: int) -> list[bytes]:
    """Cut data into fragments that fit a datagram of the given MTU."""
    size = len(data)
    max_size = mtu - PACKET_ADDITIONAL_SIZE
    if size > max_size:
        max_size -= SPLIT_ADDITIONAL_SIZE
    if max_size <= 0:
        raise ValueError(f"MTU {mtu} is too small to carry any payload")
    return [bytes(data[start:start + max_size]) for start in range(0, size, max_size)]