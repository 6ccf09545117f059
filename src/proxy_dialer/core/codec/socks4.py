"""SOCKS4 and SOCKS4a frame encoding.

Request::

    +----+----+----+----+----+----+----+----+----+----+....+----+
    | VN | CD | DSTPORT |      DSTIP        | USERID       |NULL|
    +----+----+----+----+----+----+----+----+----+----+....+----+

SOCKS4a sends ``0.0.0.1`` as DSTIP and appends the NUL-terminated hostname.
The reply is always eight bytes: reserved, status, port, address.
"""

import socket
from dataclasses import dataclass
from typing import Final

from proxy_dialer.core.codec.common import encode_field, pack_port, unpack_port
from proxy_dialer.core.exceptions import ProxyConfigError, ProxyProtocolError

SOCKS4_VERSION: Final = 4
CMD_CONNECT: Final = 1
REPLY_LENGTH: Final = 8

# Address telling a SOCKS4a proxy to resolve the trailing hostname
SOCKS4A_SENTINEL: Final = bytes([0, 0, 0, 1])

STATUS_GRANTED: Final = 0x5A
SOCKS4_ERRORS: Final = {
    0x5B: "request rejected or failed",
    0x5C: "request rejected because the proxy cannot reach identd on the client",
    0x5D: "request rejected because identd reported a different user-id",
}


@dataclass(frozen=True)
class Socks4Reply:
    status: int
    port: int
    address: str

    @property
    def granted(self) -> bool:
        return self.status == STATUS_GRANTED


def describe_status(status: int) -> str:
    """Return the documented meaning of a SOCKS4 status byte."""
    return SOCKS4_ERRORS.get(status, f"unknown SOCKS4 status {status:#04x}")


def build_request(
    port: int,
    address: bytes,
    user_id: str | None = None,
    hostname: str | None = None,
    command: int = CMD_CONNECT,
) -> bytes:
    """Build a SOCKS4 request, or a SOCKS4a one when ``hostname`` is set.

    Args:
        port: Destination port
        address: Packed IPv4 address (ignored for SOCKS4a hostnames)
        user_id: Optional user-id field
        hostname: Name the proxy should resolve (SOCKS4a only)
        command: Request command, CONNECT by default
    """
    user = encode_field(user_id or "", "user-id")
    if b"\x00" in user:
        raise ProxyConfigError("user-id must not contain NUL bytes")

    if hostname is not None:
        address = SOCKS4A_SENTINEL
    elif len(address) != 4:
        raise ProxyConfigError("SOCKS4 needs a 4-byte IPv4 address")

    frame = bytes([SOCKS4_VERSION, command]) + pack_port(port) + address + user + b"\x00"
    if hostname is not None:
        name = encode_field(hostname, "hostname")
        if b"\x00" in name:
            raise ProxyConfigError("hostname must not contain NUL bytes")
        frame += name + b"\x00"
    return frame


def parse_reply(data: bytes) -> Socks4Reply:
    """Decode the 8-byte reply."""
    if len(data) != REPLY_LENGTH:
        raise ProxyProtocolError(f"SOCKS4 reply must be {REPLY_LENGTH} bytes, got {len(data)}")
    return Socks4Reply(
        status=data[1],
        port=unpack_port(data[2:4]),
        address=socket.inet_ntoa(data[4:8]),
    )
