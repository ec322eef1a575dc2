"""UDP server answering pings and the open-connection handshake."""

from __future__ import annotations

import random
from typing import Any, Optional

from .address import Address
from .conn import Conn, _open_endpoint, _split_host_port
from .handshake import (
    OpenConnectionReply1,
    OpenConnectionReply2,
    OpenConnectionRequest1,
    OpenConnectionRequest2,
)
from .pings import ConnectedPing, ConnectedPong, UnconnectedPing, UnconnectedPong
from .types import Packet, ProtocolError

BUFFER_SIZE = 1492
REPLY_TRANSMISSION_UNIT = 1492
STATUS = (
    "MCPE;Dedicated Server;786;1.21.73;0;10;11954621141260796043;"
    "Bedrock level;Survival;1;19132;19133;0;"
)


def build_response(
    packet: Packet, src: Any, server_id: int, buffer_size: int = BUFFER_SIZE
) -> Optional[Packet]:
    """The server's answer to a received packet, or None when it does not answer."""
    if isinstance(packet, ConnectedPing):
        return ConnectedPong(client_send_time=packet.client_send_time)
    if isinstance(packet, UnconnectedPing):
        return UnconnectedPong(
            client_send_time=packet.client_send_time,
            server_guid=server_id,
            data=STATUS,
        )
    if isinstance(packet, OpenConnectionRequest1):
        if packet.max_transmission_unit > buffer_size:
            print(
                f"Ignoring MTU {packet.max_transmission_unit} as it is larger than buffer size"
            )
            return None
        return OpenConnectionReply1(
            server_guid=server_id,
            server_has_security=False,
            cookie=0,
            max_transmission_unit=packet.max_transmission_unit,
        )
    if isinstance(packet, OpenConnectionRequest2):
        if packet.max_transmission_unit > buffer_size:
            return None
        return OpenConnectionReply2(
            server_guid=server_id,
            client_address=Address.from_socket_addr(src),
            max_transmission_unit=REPLY_TRANSMISSION_UNIT,
            do_security=packet.server_has_security,
        )
    return None


async def run_server(local_addr: str) -> None:
    """Listen on local_addr ("host:port") and answer clients until cancelled."""
    print(f"Listening on {local_addr}")
    host, port = _split_host_port(local_addr)
    transport, endpoint = await _open_endpoint(local_addr=(host, port))
    server_id = random.getrandbits(64)
    conn = Conn(transport, BUFFER_SIZE, True)
    try:
        while True:
            data, src = await endpoint.recv()
            data = data[:BUFFER_SIZE]
            try:
                packet = await conn.receive_packet(data)
            except ProtocolError as exc:
                dump = ", ".join(f"0x{b:02X}" for b in data)
                print(f"{exc} | data: [{dump}]")
                continue
            if packet is None:
                continue
            print(f"Received {packet!r}")
            response = build_response(packet, src, server_id)
            if response is None:
                if not isinstance(packet, (OpenConnectionRequest1, OpenConnectionRequest2)):
                    print(f"Received Unhandled packet id: 0x{data[0]:02X}")
                continue
            await conn.write_packet_to(response, src, True)
            if isinstance(response, ConnectedPong):
                print(f"Sent ConnectedPong to {src}")
    finally:
        transport.close()