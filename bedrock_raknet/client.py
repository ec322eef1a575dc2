"""UDP client that pings a server and negotiates the MTU."""

from __future__ import annotations

import asyncio
import random
import time
from typing import Optional

from .conn import PROTOCOL_VERSION, Conn, _open_endpoint, _split_host_port
from .handshake import OpenConnectionReply1, OpenConnectionRequest1
from .pings import UnconnectedPing, UnconnectedPong
from .types import Packet, ProtocolError

BUFFER_SIZE = 1492
RETRY_INTERVAL = 1.2
ATTEMPTS_PER_MTU = 4


class MtuNegotiationError(ConnectionError):
    """Raised when no MTU candidate got an answer from the server."""


def mtu_candidates() -> tuple[int, ...]:
    """MTU sizes tried, largest first."""
    return (1492, 1200, 576)


async def _receive(conn: Conn, data: bytes) -> Optional[Packet]:
    try:
        return await conn.receive_packet(data)
    except ProtocolError as exc:
        print(exc)
        return None


async def _await_reply1(conn: Conn, endpoint, timeout: float) -> Optional[tuple]:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while True:
        remaining = deadline - loop.time()
        if remaining <= 0:
            return None
        try:
            data, src = await asyncio.wait_for(endpoint.recv(), remaining)
        except asyncio.TimeoutError:
            return None
        packet = await _receive(conn, data)
        if isinstance(packet, OpenConnectionReply1):
            return packet, src


async def _negotiate_mtu(conn: Conn, endpoint) -> int:
    for mtu in mtu_candidates():
        request = OpenConnectionRequest1(
            client_protocol=PROTOCOL_VERSION, max_transmission_unit=mtu
        )
        for _ in range(ATTEMPTS_PER_MTU):
            await conn.write_packet(request, True)
            print(f"Sent OpenConnectionRequest1 with MTU {mtu}")
            answer = await _await_reply1(conn, endpoint, RETRY_INTERVAL)
            if answer is not None:
                reply, src = answer
                print(
                    f"Received OpenConnectionReply1 from {src} "
                    f"with MTU {reply.max_transmission_unit}"
                )
                return reply.max_transmission_unit
    raise MtuNegotiationError("Failed to negotiate MTU")


async def run_client(target_address: str) -> None:
    """Ping target_address ("host:port"), negotiate the MTU and keep listening."""
    print(f"Connecting to {target_address}")
    host, port = _split_host_port(target_address)
    started = time.monotonic()
    transport, endpoint = await _open_endpoint(remote_addr=(host, port))
    try:
        print(f"Bound to {transport.get_extra_info('sockname')}")
        elapsed_ms = int((time.monotonic() - started) * 1000)
        print(f"Connected to {target_address} in {elapsed_ms}ms")
        ping = UnconnectedPing(
            client_send_time=int(time.time() * 1000),
            client_guid=random.getrandbits(64),
        )
        transport.sendto(ping.serialize())
        conn = Conn(transport, BUFFER_SIZE, False)
        max_mtu = 0
        while True:
            data, src = await endpoint.recv()
            packet = await _receive(conn, data)
            if packet is None:
                continue
            print(f"Received packet from {src}    : {packet!r}")
            if isinstance(packet, OpenConnectionReply1):
                print(
                    f"Received OpenConnectionReply1 from {src} "
                    f"with MTU {packet.max_transmission_unit}"
                )
                max_mtu = packet.max_transmission_unit
            elif isinstance(packet, UnconnectedPong):
                if max_mtu == 0:
                    max_mtu = await _negotiate_mtu(conn, endpoint)
                print(f"Negotiated MTU: {max_mtu}")
            else:
                print(f"Received Unsupported packet id: 0x{data[0]:02X}")
    finally:
        transport.close()