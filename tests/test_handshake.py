import pytest

from bedrock_raknet.address import Address, AddrType
from bedrock_raknet.handshake import (
    OpenConnectionReply1,
    OpenConnectionReply2,
    OpenConnectionRequest1,
    OpenConnectionRequest2,
)
from bedrock_raknet.types import (
    UNCONNECTED_MESSAGE_SEQUENCE,
    PacketId,
    ProtocolError,
)


def test_request1_layout():
    wire = OpenConnectionRequest1(client_protocol=11, max_transmission_unit=1492).serialize()
    assert wire[0] == PacketId.OPEN_CONNECTION_REQUEST_1
    assert wire[1:17] == UNCONNECTED_MESSAGE_SEQUENCE
    assert wire[17:] == bytes([11])


def test_request1_mtu_from_padded_body():
    body = UNCONNECTED_MESSAGE_SEQUENCE + bytes([11])
    body += bytes(1492 - 29 - len(body))
    request = OpenConnectionRequest1.deserialize(body)
    assert request == OpenConnectionRequest1(client_protocol=11, max_transmission_unit=1492)


def test_request1_short_body():
    with pytest.raises(ProtocolError):
        OpenConnectionRequest1.deserialize(UNCONNECTED_MESSAGE_SEQUENCE)


def test_reply1_round_trip_without_security():
    reply = OpenConnectionReply1(
        server_guid=11954621141260796043, server_has_security=False, cookie=0, max_transmission_unit=1492
    )
    wire = reply.serialize()
    assert wire[0] == PacketId.OPEN_CONNECTION_REPLY_1
    assert OpenConnectionReply1.deserialize(wire[1:]) == reply


def test_reply1_round_trip_with_security():
    reply = OpenConnectionReply1(
        server_guid=5, server_has_security=True, cookie=0xDEADBEEF, max_transmission_unit=1200
    )
    assert OpenConnectionReply1.deserialize(reply.serialize()[1:]) == reply


def test_reply1_reads_two_byte_mtu():
    body = UNCONNECTED_MESSAGE_SEQUENCE + (7).to_bytes(8, "big") + b"\x00" + (576).to_bytes(2, "big")
    reply = OpenConnectionReply1.deserialize(body)
    assert reply.max_transmission_unit == 576
    assert reply.server_guid == 7
    assert reply.server_has_security is False


def test_reply1_short_body():
    with pytest.raises(ProtocolError, match="OpenConnectionReply1"):
        OpenConnectionReply1.deserialize(bytes(26))


def test_reply1_security_without_cookie():
    body = UNCONNECTED_MESSAGE_SEQUENCE + bytes(8) + b"\x01" + bytes(2)
    with pytest.raises(ProtocolError):
        OpenConnectionReply1.deserialize(body)


def test_request2_round_trip_ipv4():
    request = OpenConnectionRequest2(
        server_address=Address.parse("192.168.1.20:19132"),
        max_transmission_unit=1492,
        client_guid=123456789,
    )
    wire = request.serialize()
    assert wire[0] == PacketId.OPEN_CONNECTION_REQUEST_2
    decoded = OpenConnectionRequest2.deserialize(wire[1:])
    assert decoded == request
    assert decoded.server_address.addr_type is AddrType.IPV4


def test_request2_short_body():
    with pytest.raises(ProtocolError, match="invalid size"):
        OpenConnectionRequest2.deserialize(bytes(20))


@pytest.mark.parametrize("do_security", [False, True])
def test_reply2_round_trip_ipv4(do_security):
    reply = OpenConnectionReply2(
        server_guid=99,
        client_address=Address.from_socket_addr(("127.0.0.1", 19132)),
        max_transmission_unit=1492,
        do_security=do_security,
    )
    wire = reply.serialize()
    assert wire[0] == PacketId.OPEN_CONNECTION_REPLY_2
    assert OpenConnectionReply2.deserialize(wire[1:]) == reply


def test_reply2_ipv6_cannot_be_read_back():
    reply = OpenConnectionReply2(
        server_guid=1,
        client_address=Address.from_socket_addr(("::1", 19133)),
        max_transmission_unit=1492,
        do_security=False,
    )
    with pytest.raises(ProtocolError):
        OpenConnectionReply2.deserialize(reply.serialize()[1:])


def test_reply2_short_body():
    with pytest.raises(ProtocolError, match="OpenConnectionReply2"):
        OpenConnectionReply2.deserialize(bytes(23))