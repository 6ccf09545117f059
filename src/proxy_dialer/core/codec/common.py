"""Helpers shared by the handshake codecs."""

import struct

from proxy_dialer.core.exceptions import ProxyConfigError

PORT_FORMAT = struct.Struct("!H")


def pack_port(port: int) -> bytes:
    """Encode a TCP port as two big-endian bytes."""
    return PORT_FORMAT.pack(port)


def unpack_port(data: bytes) -> int:
    """Decode two big-endian bytes into a TCP port."""
    return PORT_FORMAT.unpack(data)[0]


def encode_field(value: str, what: str, limit: int | None = None) -> bytes:
    """Encode a text field as UTF-8, optionally enforcing a byte limit."""
    encoded = value.encode("utf-8")
    if limit is not None and len(encoded) > limit:
        raise ProxyConfigError(f"{what} is {len(encoded)} bytes long, the limit is {limit}")
    return encoded
