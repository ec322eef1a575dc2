"""Network addresses as carried inside handshake messages."""

from __future__ import annotations

import enum
import ipaddress
import re
from dataclasses import dataclass

from .types import ProtocolError

SIZEOF_ADDR4 = 1 + 4 + 2
SIZEOF_ADDR6 = 1 + 2 + 2 + 4 + 16 + 4
_SIZEOF_ZERO = 5

_DECIMAL = re.compile(r"\+?[0-9]+")
_HEXADECIMAL = re.compile(r"\+?[0-9a-fA-F]+")


class AddressError(ProtocolError):
    """Raised when an address cannot be parsed or decoded."""


class AddrType(enum.Enum):
    """Kind of address stored in an Address."""

    IPV4 = "ipv4"
    IPV6 = "ipv6"
    ZERO = "zero"


def _parse_uint(text: str, pattern: re.Pattern, base: int, limit: int, message: str) -> int:
    if not pattern.fullmatch(text):
        raise AddressError(message)
    value = int(text, base)
    if value > limit:
        raise AddressError(message)
    return value


def parse_ip(text: str) -> bytes:
    """Parse the part of text before the first ':' into 4 or 16 address bytes."""
    ip_str = text.split(":", 1)[0]
    if "." in ip_str:
        parts = ip_str.split(".")
        if len(parts) != 4:
            raise AddressError("Invalid IPv4 address format")
        return bytes(
            _parse_uint(part, _DECIMAL, 10, 0xFF, "Invalid IPv4 address format")
            for part in parts
        )
    groups = ip_str.split(":")
    if len(groups) > 8:
        raise AddressError("Invalid IPv6 address format")
    encoded = b"".join(
        _parse_uint(group, _HEXADECIMAL, 16, 0xFFFF, "Invalid IPv6 address format").to_bytes(2, "big")
        for group in groups
    )
    return encoded.ljust(16, b"\x00")


@dataclass
class Address:
    """An IP address with its port."""

    addr: bytes
    port: int
    addr_type: AddrType

    @classmethod
    def parse(cls, text: str) -> "Address":
        """Parse "ip:port" text."""
        parts = text.split(":")
        if len(parts) < 2:
            raise AddressError("Invalid address format")
        port = _parse_uint(parts[1], _DECIMAL, 10, 0xFFFF, "Invalid port format")
        addr = parse_ip(parts[0])
        addr_type = AddrType.IPV4 if len(addr) == 4 else AddrType.IPV6
        return cls(addr=addr, port=port, addr_type=addr_type)

    @classmethod
    def from_socket_addr(cls, sock_addr) -> "Address":
        """Build an address from a socket address tuple such as ("10.0.0.1", 19132)."""
        host, port = sock_addr[0], sock_addr[1]
        try:
            ip = ipaddress.ip_address(host)
        except ValueError as exc:
            raise AddressError(f"Invalid socket address host: {host!r}") from exc
        addr_type = AddrType.IPV4 if ip.version == 4 else AddrType.IPV6
        return cls(addr=ip.packed, port=int(port), addr_type=addr_type)

    def format(self) -> str:
        """Render the address bytes as characters followed by ':port'."""
        return "".join(chr(b) for b in self.addr) + f":{self.port}"

    def size(self) -> int:
        """Number of bytes this kind of address occupies on the wire."""
        if self.addr_type is AddrType.IPV4:
            return SIZEOF_ADDR4
        if self.addr_type is AddrType.IPV6:
            return SIZEOF_ADDR6
        return _SIZEOF_ZERO

    def serialize(self) -> bytes:
        """Encode the address; see serialize_addr."""
        return serialize_addr(self)


def serialize_addr(addr: Address) -> bytes:
    """Encode an address. Only IPv6 addresses produce bytes; the others encode as empty."""
    if addr.addr_type is AddrType.IPV6:
        return (
            bytes([6])
            + (23).to_bytes(2, "big")
            + addr.port.to_bytes(2, "big")
            + bytes(addr.addr)
        )
    return b""


def read_addr(buf: bytes) -> Address:
    """Decode an address from the start of buf."""
    if len(buf) < 5:
        raise AddressError("Invalid address length")
    kind = buf[0]
    if kind == 0:
        addr_type = AddrType.ZERO
    elif kind == 4:
        addr_type = AddrType.IPV4
    else:
        addr_type = AddrType.IPV6

    if addr_type is AddrType.IPV6:
        port = int.from_bytes(buf[3:5], "big")
        ip = bytes(buf[9:])
        if len(ip) != 16:
            raise AddressError(f"IPv6 address needs exactly 16 bytes after the header, got {len(ip)}")
        return Address(addr=ip, port=port, addr_type=addr_type)

    ip = bytes(b ^ 0xFF for b in buf[1:5])
    if len(buf) < 7:
        raise AddressError("Failed to read port")
    port = int.from_bytes(buf[5:7], "big")
    return Address(addr=ip, port=port, addr_type=addr_type)


def addr_size(buf: bytes) -> int:
    """Size of the encoded address that begins buf, judged by its first byte."""
    if not buf or buf[0] in (0, 4):
        return SIZEOF_ADDR4
    return SIZEOF_ADDR6