"""SOCKS5 frame encoding according to RFC 1928 and RFC 1929."""

import socket
from dataclasses import dataclass
from typing import Final

from proxy_dialer.core.codec.common import encode_field, pack_port, unpack_port
from proxy_dialer.core.exceptions import ProxyConfigError, ProxyProtocolError

# SOCKS protocol constants
SOCKS_VERSION: Final = 5
AUTH_VERSION: Final = 1
CMD_CONNECT: Final = 1
ADDR_TYPE_IPV4: Final = 1
ADDR_TYPE_DOMAIN: Final = 3
ADDR_TYPE_IPV6: Final = 4
RESERVED: Final = 0

# Authentication methods
METHOD_NO_AUTH: Final = 0x00
METHOD_USERNAME_PASSWORD: Final = 0x02
METHOD_NO_ACCEPTABLE: Final = 0xFF

MAX_FIELD_LENGTH: Final = 255

# Response codes
RESP_SUCCESS: Final = 0
SOCKS5_ERRORS: Final = {
    0x01: "general SOCKS server failure",
    0x02: "connection not allowed by ruleset",
    0x03: "network unreachable",
    0x04: "host unreachable",
    0x05: "connection refused",
    0x06: "TTL expired",
    0x07: "command not supported",
    0x08: "address type not supported",
}

# Lengths of the bound address that follows the reply header, by type
_FIXED_ADDRESS_LENGTHS: Final = {ADDR_TYPE_IPV4: 4, ADDR_TYPE_IPV6: 16}


@dataclass(frozen=True)
class ReplyHeader:
    """First four bytes of the request reply."""

    status: int
    address_type: int


def describe_status(status: int) -> str:
    """Return the documented meaning of a SOCKS5 reply code."""
    return SOCKS5_ERRORS.get(status, f"unknown SOCKS5 reply {status:#04x}")


def build_greeting(methods: list[int]) -> bytes:
    """Offer authentication methods: ``VER NMETHODS METHODS``."""
    return bytes([SOCKS_VERSION, len(methods), *methods])


def parse_method_selection(data: bytes, offered: list[int]) -> int:
    """Return the method chosen by the server.

    ``METHOD_NO_ACCEPTABLE`` is returned as-is; the client turns it into a
    rejection.
    """
    version, method = data[0], data[1]
    if version != SOCKS_VERSION:
        raise ProxyProtocolError(f"unexpected SOCKS version {version} in method selection")
    if method != METHOD_NO_ACCEPTABLE and method not in offered:
        raise ProxyProtocolError(f"proxy selected method {method:#04x} which was not offered")
    return method


def build_auth_request(username: str, password: str) -> bytes:
    """Username/password sub-negotiation frame (RFC 1929)."""
    user = encode_field(username, "username", MAX_FIELD_LENGTH)
    secret = encode_field(password, "password", MAX_FIELD_LENGTH)
    return bytes([AUTH_VERSION, len(user)]) + user + bytes([len(secret)]) + secret


def parse_auth_reply(data: bytes) -> int:
    """Return the sub-negotiation status byte, zero meaning success."""
    if data[0] != AUTH_VERSION:
        raise ProxyProtocolError(f"unexpected authentication version {data[0]}")
    return data[1]


def encode_address(address_type: int, value: str) -> bytes:
    """Encode the destination address for ``address_type``.

    Raises:
        ProxyConfigError: If a domain name does not fit the length byte
    """
    if address_type == ADDR_TYPE_IPV4:
        return socket.inet_pton(socket.AF_INET, value)
    if address_type == ADDR_TYPE_IPV6:
        return socket.inet_pton(socket.AF_INET6, value.strip("[]"))
    if address_type == ADDR_TYPE_DOMAIN:
        name = encode_field(value, "domain name", MAX_FIELD_LENGTH)
        if not name:
            raise ProxyConfigError("domain name must not be empty")
        return bytes([len(name)]) + name
    raise ProxyConfigError(f"unsupported address type {address_type}")


def build_request(address_type: int, value: str, port: int, command: int = CMD_CONNECT) -> bytes:
    """Build ``VER CMD RSV ATYP DST.ADDR DST.PORT``."""
    return (
        bytes([SOCKS_VERSION, command, RESERVED, address_type])
        + encode_address(address_type, value)
        + pack_port(port)
    )


def parse_reply_header(data: bytes) -> ReplyHeader:
    """Decode ``VER REP RSV ATYP``."""
    version, status, _, address_type = data[0], data[1], data[2], data[3]
    if version != SOCKS_VERSION:
        raise ProxyProtocolError(f"unexpected SOCKS version {version} in reply")
    if address_type not in (ADDR_TYPE_IPV4, ADDR_TYPE_DOMAIN, ADDR_TYPE_IPV6):
        raise ProxyProtocolError(f"unknown bound address type {address_type}")
    return ReplyHeader(status=status, address_type=address_type)


def bound_address_length(address_type: int, first_byte: int | None = None) -> int:
    """Number of bytes left to read for the bound address and port.

    For domain names, ``first_byte`` is the length prefix that has already
    been read.
    """
    if address_type == ADDR_TYPE_DOMAIN:
        if first_byte is None:
            raise ValueError("domain length prefix required")
        return first_byte + 2
    return _FIXED_ADDRESS_LENGTHS[address_type] + 2


def decode_bound_address(address_type: int, data: bytes) -> tuple[str, int]:
    """Decode the bound address and port from the reply tail."""
    address, port = data[:-2], unpack_port(data[-2:])
    if address_type == ADDR_TYPE_IPV4:
        return socket.inet_ntop(socket.AF_INET, address), port
    if address_type == ADDR_TYPE_IPV6:
        return socket.inet_ntop(socket.AF_INET6, address), port
    return address.decode("utf-8", errors="replace"), port
