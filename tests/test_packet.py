import pytest

from bedrock_raknet.packet import (
    PACKET_ADDITIONAL_SIZE,
    SPLIT_ADDITIONAL_SIZE,
    EncapsulatedPacket,
    PacketBitFlags,
    Reliability,
    split_packet,
)
from bedrock_raknet.types import ProtocolError


@pytest.mark.parametrize("value", range(5))
def test_reliability_from_byte_round_trip(value):
    assert int(Reliability.from_byte(value)) == value


@pytest.mark.parametrize("value", [5, 6, 255])
def test_reliability_from_byte_rejects_out_of_range(value):
    with pytest.raises(ProtocolError):
        Reliability.from_byte(value)


@pytest.mark.parametrize(
    "reliability, reliable, sequenced, sequenced_or_ordered",
    [
        (Reliability.UNRELIABLE, False, False, False),
        (Reliability.UNRELIABLE_SEQUENCED, False, True, True),
        (Reliability.RELIABLE, True, False, False),
        (Reliability.RELIABLE_ORDERED, True, False, True),
        (Reliability.RELIABLE_SEQUENCED, True, True, True),
    ],
)
def test_reliability_predicates(reliability, reliable, sequenced, sequenced_or_ordered):
    packet = EncapsulatedPacket(reliability=reliability)
    assert packet.reliable() is reliable
    assert packet.sequenced() is sequenced
    assert packet.sequenced_or_ordered() is sequenced_or_ordered


def test_default_packet_is_unreliable_and_unsplit():
    packet = EncapsulatedPacket()
    assert packet.reliability is Reliability.UNRELIABLE
    assert packet.split is False
    assert packet.data == b""


@pytest.mark.parametrize(
    "value, expected",
    [
        (0x80, "DATAGRAM"),
        (0x40, "ACK"),
        (0x20, "NACK"),
        (0x04, "NEEDS_B_AND_AS"),
    ],
)
def test_flags_look_up_by_value(value, expected):
    flag = PacketBitFlags(value)
    assert flag is PacketBitFlags[expected]
    assert 0x84 & flag == (0x84 & value)


def test_split_small_payload_is_single_fragment():
    assert split_packet(b"hello", 576) == [b"hello"]


def test_split_empty_payload_has_no_fragments():
    assert split_packet(b"", 576) == []


def test_split_payload_that_exactly_fits():
    data = bytes(576 - PACKET_ADDITIONAL_SIZE)
    assert split_packet(data, 576) == [data]


def test_split_large_payload_reassembles():
    data = bytes(i % 251 for i in range(5000))
    fragments = split_packet(data, 576)
    limit = 576 - PACKET_ADDITIONAL_SIZE - SPLIT_ADDITIONAL_SIZE
    assert b"".join(fragments) == data
    assert all(0 < len(fragment) <= limit for fragment in fragments)
    assert all(len(fragment) == limit for fragment in fragments[:-1])


@pytest.mark.parametrize("mtu", [10, PACKET_ADDITIONAL_SIZE])
def test_split_rejects_tiny_mtu(mtu):
    with pytest.raises(ValueError):
        split_packet(b"x", mtu)