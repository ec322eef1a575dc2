# bedrock-raknet

This package covers the offline part of RakNet, the UDP protocol that
Minecraft Bedrock Edition uses. It uses only the standard library.

## What is in it

- `bedrock_raknet.types`: `PacketId`, the `Packet` base class,
  `ProtocolError`, the unconnected-message magic bytes, and readers for
  big-endian integers (`read_be_u16`, `read_be_u32`, `read_be_u64`,
  `read_be_i64`). It also reads and writes 24-bit little-endian integers with
  `read_u24` and `write_u24`.
- `bedrock_raknet.address`: `Address`, which can be built with `Address.parse("ip:port")`
  or `Address.from_socket_addr(("10.0.0.1", 19132))`. The module also has
  `read_addr`, `addr_size`, `serialize_addr` and `AddressError`. Note that
  `serialize_addr` only produces bytes for IPv6 addresses. For other addresses
  it returns empty bytes. The handshake messages encode IPv4 addresses
  themselves.
- `bedrock_raknet.pings`: `ConnectedPing`, `ConnectedPong`, `UnconnectedPing`,
  `UnconnectedPong`, `Motd` and `UnknownPacket`.
- `bedrock_raknet.handshake`: `OpenConnectionRequest1`,
  `OpenConnectionReply1`, `OpenConnectionRequest2` and `OpenConnectionReply2`.
- `bedrock_raknet.codec.read_packet`: decodes a message by its first byte.
  When no decoder matches, it returns an `UnknownPacket`.
- `bedrock_raknet.packet`: `Reliability`, `PacketBitFlags`,
  `EncapsulatedPacket` and `split_packet(data, mtu)`, which cuts a payload
  into fragments for a given MTU.
- Receive bookkeeping:
  - `frame.Window`, a window of datagram sequence numbers.
  - `packet_queue.PacketQueue`, which releases buffers in order.
  - `dynamic_queue.DynamicQueue`, a thread-safe FIFO with a blocking `recv`.
- `bedrock_raknet.conn.Conn`: classifies incoming datagrams by their flag bits
  and writes messages to a UDP transport. It has these methods:
  - `receive_packet(data)`
  - `write_packet(packet)`, which raises `RuntimeError` on a server
  - `write_packet_to(packet, addr)`
  - `send_ack` and `send_nack`, which send acknowledgement record lists
  - `start_ticking()`, a loop that resends on a timer and sends keep-alive
    pings. `close()` stops it.

Malformed input raises `ProtocolError`.

## Command line

```
bedrock-raknet <address> <server|client>
```

Run a server that listens on a local address:

```
bedrock-raknet 0.0.0.0:19132 server
```

The server answers four kinds of message:

- `ConnectedPing` with a `ConnectedPong`.
- `UnconnectedPing` with an `UnconnectedPong` that carries a fixed status
  string.
- `OpenConnectionRequest1` with an `OpenConnectionReply1` that echoes the
  requested MTU. It ignores requests above 1492.
- `OpenConnectionRequest2` with an `OpenConnectionReply2` that carries the
  client's address and an MTU of 1492.

Ping a server and negotiate the MTU:

```
bedrock-raknet 127.0.0.1:19132 client
```

The client sends an unconnected ping. When the pong arrives, it sends
`OpenConnectionRequest1` with MTU 1492, then 1200, then 576. It tries each
size up to four times and waits 1.2 seconds between attempts. It stops at the
first `OpenConnectionReply1` and then keeps listening.

The command exits with status 1 in these cases:

- fewer than two arguments are given (it prints a usage line first)
- the address is invalid
- no MTU could be negotiated

If the second argument is anything other than `server`, the command starts the
client.

## Library use

```python
from bedrock_raknet.codec import read_packet
from bedrock_raknet.pings import UnconnectedPing, UnconnectedPong
from bedrock_raknet.server import build_response

ping = UnconnectedPing(client_send_time=1234, client_guid=42)
decoded = read_packet(ping.serialize())
assert isinstance(decoded, UnconnectedPing) and decoded.client_guid == 42

reply = build_response(decoded, ("127.0.0.1", 50000), server_id=7)
assert isinstance(reply, UnconnectedPong) and reply.server_guid == 7
```

`build_response` returns the server's reply to a decoded message, or `None`
when the server would not answer. It does not touch the network.

`Conn.receive_packet` has three outcomes:

- A datagram whose first byte has the datagram flag returns `None`. Its body
  is queued on `conn.packets`.
- A datagram with the ACK or NACK flag is decoded with `read_packet`.
- Anything else is also decoded with `read_packet`.

## What it does not do

The package stops at the offline handshake:

- It has no session after `OpenConnectionReply2`: no connection request or
  acceptance, and no game packets.
- Datagram bodies are queued but not unpacked into `EncapsulatedPacket`s.
- Split packets are not reassembled.
- Incoming ACKs and NACKs are not applied to any resend state.

## Running the tests

```
pip install ".[test]"
pytest
```