import asyncio

import pytest

from bedrock_raknet import conn as conn_module
from bedrock_raknet.codec import read_packet
from bedrock_raknet.conn import Conn
from bedrock_raknet.packet import PacketBitFlags
from bedrock_raknet.pings import ConnectedPing, UnconnectedPing, UnknownPacket
from bedrock_raknet.types import ProtocolError, write_u24


class FakeTransport:
    def __init__(self):
        self.sent = []

    def sendto(self, data, addr=None):
        self.sent.append((bytes(data), addr))


def make_conn(is_server=False):
    transport = FakeTransport()
    return Conn(transport, 1492, is_server), transport


def test_effective_mtu_subtracts_headers():
    conn, _ = make_conn()
    assert conn.effective_mtu() == 1464


def test_mtu_smaller_than_headers_rejected():
    with pytest.raises(ValueError):
        Conn(FakeTransport(), 10, False)


@pytest.mark.asyncio
async def test_receive_plain_packet_is_decoded():
    conn, _ = make_conn()
    ping = UnconnectedPing(client_send_time=123, client_guid=456)
    packet = await conn.receive_packet(ping.serialize())
    assert packet == ping


@pytest.mark.asyncio
async def test_receive_ack_is_read_as_raw_packet():
    conn, _ = make_conn()
    packet = await conn.receive_packet(bytes([0xC0, 1, 2]))
    assert packet == UnknownPacket(id=0xC0, data=b"\x01\x02")


@pytest.mark.asyncio
async def test_receive_empty_raises():
    conn, _ = make_conn()
    with pytest.raises(ProtocolError):
        await conn.receive_packet(b"")


@pytest.mark.asyncio
async def test_write_packet_sends_serialized_bytes():
    conn, transport = make_conn()
    ping = ConnectedPing(client_send_time=77)
    await conn.write_packet(ping, True)
    assert transport.sent == [(ping.serialize(), None)]


@pytest.mark.asyncio
async def test_write_packet_refused_on_server():
    conn, transport = make_conn(is_server=True)
    with pytest.raises(RuntimeError):
        await conn.write_packet(ConnectedPing(client_send_time=1), True)
    assert transport.sent == []


@pytest.mark.asyncio
async def test_write_packet_to_uses_address():
    conn, transport = make_conn(is_server=True)
    ping = ConnectedPing(client_send_time=5)
    await conn.write_packet_to(ping, ("10.0.0.2", 19132), True)
    assert transport.sent == [(ping.serialize(), ("10.0.0.2", 19132))]


@pytest.mark.asyncio
async def test_send_nack_encodes_ranges_and_singles():
    conn, transport = make_conn()
    await conn.send_nack([7, 3, 1, 2])
    assert transport.sent[0][0] == (
        b"\x20\x00\x02" + b"\x00\x01\x00\x00\x03\x00\x00" + b"\x01\x07\x00\x00"
    )


@pytest.mark.asyncio
async def test_send_ack_with_nothing_raises():
    conn, _ = make_conn()
    with pytest.raises(ValueError):
        await conn.send_ack([], PacketBitFlags.ACK)


@pytest.mark.asyncio
async def test_datagram_body_is_queued_and_duplicates_dropped():
    conn, _ = make_conn()
    datagram = bytes([0x84]) + write_u24(0) + b"payload"
    assert await conn.receive_packet(datagram) is None
    assert await conn.receive_packet(datagram) is None
    assert conn.ack_slice == [0]
    assert len(conn.packets) == 1
    assert conn.packets.recv() == b"payload"


@pytest.mark.asyncio
async def test_short_datagram_raises():
    conn, _ = make_conn()
    with pytest.raises(ProtocolError):
        await conn.handle_datagram(bytes([0x80, 1]))


@pytest.mark.asyncio
async def test_window_too_big_raises():
    conn, _ = make_conn()
    with pytest.raises(ProtocolError, match="window size is too big"):
        await conn.handle_datagram(bytes([0x80]) + write_u24(5000))


@pytest.mark.asyncio
async def test_window_limit_can_be_disabled():
    conn, _ = make_conn()
    conn.limits_enabled = False
    assert await conn.handle_datagram(bytes([0x80]) + write_u24(5000)) is None
    assert conn.ack_slice == [5000]


@pytest.mark.asyncio
async def test_check_resend_only_resends_stale_datagrams():
    conn, transport = make_conn()
    conn.round_trip_time = 1.0
    conn.recovery[3] = (b"abc", ("1.2.3.4", 5), 10.0)
    assert await conn.check_resend(10.5) == []
    assert transport.sent == []
    assert await conn.check_resend(11.6) == [3]
    assert transport.sent == [(b"abc", ("1.2.3.4", 5))]
    assert conn.recovery[3][2] == 11.6


@pytest.mark.asyncio
async def test_ticking_sends_pings_until_closed(monkeypatch):
    monkeypatch.setattr(conn_module, "TICK_INTERVAL", 0.01)
    conn, transport = make_conn()
    task = asyncio.create_task(conn.start_ticking())
    await asyncio.sleep(0.2)
    conn.close()
    await asyncio.wait_for(task, 1)
    assert transport.sent
    assert all(isinstance(read_packet(data), ConnectedPing) for data, _ in transport.sent)
    count = len(transport.sent)
    await asyncio.sleep(0.05)
    assert len(transport.sent) == count