"""Connection state: the receive window, acknowledgements and writing packets to a socket."""

from __future__ import annotations

import asyncio
import itertools
import logging
import time
from typing import Any, Iterable, Optional, Protocol

from .codec import read_packet
from .dynamic_queue import DynamicQueue
from .frame import Window
from .packet import PacketBitFlags
from .packet_queue import PacketQueue
from .pings import ConnectedPing
from .types import Packet, ProtocolError, read_u24, write_u24

log = logging.getLogger(__name__)

PROTOCOL_VERSION = 11
MIN_TRANSMISSION_UNIT_SIZE = 576
MAX_TRANSMISSION_UNIT_SIZE = 1492
MAX_WINDOW_SIZE = 2048
UDP_HEADER_SIZE = 28
TICK_INTERVAL = 0.1

_RECORD_RANGE = 0
_RECORD_SINGLE = 1


class _Transport(Protocol):
    def sendto(self, data: bytes, addr: Any = None) -> None: ...


class _DatagramEndpoint(asyncio.DatagramProtocol):
    """Collects received datagrams so they can be awaited one at a time."""

    def __init__(self) -> None:
        self._incoming: asyncio.Queue = asyncio.Queue()

    def datagram_received(self, data: bytes, addr: Any) -> None:
        self._incoming.put_nowait((data, addr))

    def error_received(self, exc: Exception) -> None:
        self._incoming.put_nowait(exc)

    async def recv(self) -> tuple[bytes, Any]:
        item = await self._incoming.get()
        if isinstance(item, Exception):
            raise item
        return item


def _split_host_port(text: str) -> tuple[str, int]:
    """Split "host:port" (or "[v6]:port") into its host and port."""
    host, sep, port_text = text.rpartition(":")
    if not sep or not host:
        raise ValueError(f"Invalid address {text!r}, expected host:port")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    try:
        port = int(port_text)
    except ValueError as exc:
        raise ValueError(f"Invalid port in address {text!r}") from exc
    if not 0 <= port <= 0xFFFF:
        raise ValueError(f"Port out of range in address {text!r}")
    return host, port


async def _open_endpoint(*, local_addr=None, remote_addr=None):
    loop = asyncio.get_running_loop()
    return await loop.create_datagram_endpoint(
        _DatagramEndpoint, local_addr=local_addr, remote_addr=remote_addr
    )


def _encode_records(indices: Iterable[int]) -> list[bytes]:
    records = []
    ordered = sorted(set(indices))
    for _, run in itertools.groupby(enumerate(ordered), key=lambda pair: pair[1] - pair[0]):
        values = [value for _, value in run]
        first, last = values[0], values[-1]
        if first == last:
            records.append(bytes([_RECORD_SINGLE]) + write_u24(first))
        else:
            records.append(bytes([_RECORD_RANGE]) + write_u24(first) + write_u24(last))
    return records


class Conn:
    """State of one endpoint: datagram window, ordering queues and the socket it writes to."""

    def __init__(self, transport: _Transport, max_transmission_unit: int, is_server: bool) -> None:
        if max_transmission_unit < UDP_HEADER_SIZE:
            raise ValueError(
                f"MTU {max_transmission_unit} is smaller than the UDP header size {UDP_HEADER_SIZE}"
            )
        self.transport = transport
        self.max_transmission_unit = max_transmission_unit
        self.is_server = is_server
        self.remote_addr: Any = None

        self.round_trip_time = 0.0
        self.closing = False

        self.sequence_number = 0
        self.order_index = 0
        self.message_index = 0
        self.split_id = 0
        self.splits: dict[int, list[bytes]] = {}

        self.window = Window()
        self.ack_slice: list[int] = []
        self.packet_queue = PacketQueue()
        self.packets: DynamicQueue[bytes] = DynamicQueue(4, 4096)
        # sequence number -> (datagram, destination, time last sent)
        self.recovery: dict[int, tuple[bytes, Any, float]] = {}

        self.last_packet_time = time.monotonic()
        self.limits_enabled = True
        self._window_lock = asyncio.Lock()

    def effective_mtu(self) -> int:
        """MTU available to payload once IP and UDP headers are taken off."""
        return self.max_transmission_unit - UDP_HEADER_SIZE

    async def start_ticking(self) -> None:
        """Run periodic work until close() is called: resends and keep-alive pings."""
        tick_count = 0
        while True:
            await asyncio.sleep(TICK_INTERVAL)
            tick_count += 1
            if self.closing:
                break
            if tick_count % 3 == 0:
                await self.check_resend(time.monotonic())
            if tick_count % 5 == 0:
                ping = ConnectedPing(client_send_time=int(time.time() * 1000))
                self.transport.sendto(ping.serialize(), self.remote_addr)

    def close(self) -> None:
        """Ask the ticking loop to stop."""
        self.closing = True

    def handle_ack(self, data: bytes) -> Packet:
        return read_packet(data)

    def handle_nack(self, data: bytes) -> Packet:
        return read_packet(data)

    async def send_ack(self, missing: Iterable[int], flags: PacketBitFlags) -> None:
        """Send an acknowledgement record list covering the given sequence numbers."""
        records = _encode_records(missing)
        if not records:
            raise ValueError("nothing to acknowledge")
        payload = bytes([int(flags)]) + len(records).to_bytes(2, "big") + b"".join(records)
        self.transport.sendto(payload, self.remote_addr)

    async def send_nack(self, missing: Iterable[int]) -> None:
        await self.send_ack(missing, PacketBitFlags.NACK)

    async def check_resend(self, now: float) -> list[int]:
        """Resend datagrams unacknowledged for longer than 1.5 round trips; return their numbers."""
        delay = self.round_trip_time * 1.5
        resent = []
        for sequence_number, (data, addr, sent_at) in sorted(self.recovery.items()):
            if now - sent_at >= delay:
                self.transport.sendto(data, addr)
                self.recovery[sequence_number] = (data, addr, now)
                resent.append(sequence_number)
        return resent

    async def receive_packet(self, data: bytes) -> Optional[Packet]:
        """Classify a received datagram by its flag bits and decode it."""
        if not data:
            raise ProtocolError("Cannot receive an empty datagram")
        self.last_packet_time = time.monotonic()
        first = data[0]
        if first & PacketBitFlags.ACK:
            return self.handle_ack(data)
        if first & PacketBitFlags.NACK:
            return self.handle_nack(data)
        if first & PacketBitFlags.DATAGRAM:
            return await self.handle_datagram(data)
        return read_packet(data)

    async def write_packet(self, packet: Packet, immediate: bool = True) -> None:
        """Send a packet to the connected peer; not available on a server."""
        if self.is_server:
            raise RuntimeError(
                "write_packet: a server cannot send packets, use write_packet_to instead"
            )
        log.debug("write_packet: %r", packet)
        self.transport.sendto(packet.serialize(), self.remote_addr)

    async def write_packet_to(self, packet: Packet, addr: Any, immediate: bool = True) -> None:
        """Send a packet to the given address."""
        log.debug("write_packet_to %s: %r", addr, packet)
        self.transport.sendto(packet.serialize(), addr)

    async def handle_datagram(self, data: bytes) -> None:
        """Track a datagram in the receive window and queue its body for processing."""
        if len(data) < 4:
            raise ProtocolError("Datagram too short to hold a sequence number")
        sequence_number = read_u24(data[1:4])
        async with self._window_lock:
            if not self.window.add(sequence_number):
                return None
            self.ack_slice.append(sequence_number)

            if self.window.shift() == 0:
                missing = self.window.missing(self.round_trip_time * 1.5)
                if missing:
                    try:
                        await self.send_nack(missing)
                    except OSError as exc:
                        raise ProtocolError(f"Failed to send nack: {exc}") from exc

            if len(self.window) > MAX_WINDOW_SIZE and self.limits_enabled:
                raise ProtocolError(
                    "receive datagram: queue window size is too big "
                    f"({self.window.lowest}->{self.window.highest})"
                )
        body = bytes(data[4:])
        if body:
            self.packets.send(body)
        return None