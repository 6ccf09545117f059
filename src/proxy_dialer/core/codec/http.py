"""HTTP CONNECT request encoding and status line parsing."""

import base64
import re
from dataclasses import dataclass
from typing import Final

from proxy_dialer.core.exceptions import ProxyProtocolError
from proxy_dialer.core.types import Credentials, format_authority, validate_host

MAX_HEADER_BYTES: Final = 64 * 1024

_STATUS_LINE = re.compile(rb"^HTTP/(\d)\.(\d) (\d{3})(?: (.*))?$")


@dataclass(frozen=True)
class HttpStatus:
    """Parsed status line of the proxy's reply."""

    version: str
    code: int
    reason: str
    raw: str

    @property
    def is_success(self) -> bool:
        return 200 <= self.code < 300


def basic_authorization(credentials: Credentials) -> str:
    """Build the value of a Basic ``Proxy-Authorization`` header."""
    token = f"{credentials.username}:{credentials.password or ''}".encode()
    return "Basic " + base64.b64encode(token).decode("ascii")


def build_connect_request(host: str, port: int, credentials: Credentials | None = None) -> bytes:
    """Build the CONNECT request for ``host:port``.

    Raises:
        ProxyConfigError: If ``host`` would break the request line
    """
    authority = format_authority(validate_host(host, "target host"), port)
    lines = [
        f"CONNECT {authority} HTTP/1.1",
        f"Host: {authority}",
    ]
    if credentials is not None and not credentials.is_anonymous:
        lines.append(f"Proxy-Authorization: {basic_authorization(credentials)}")
    lines.append("Proxy-Connection: Keep-Alive")
    return ("\r\n".join(lines) + "\r\n\r\n").encode("utf-8")


def parse_status_line(line: bytes) -> HttpStatus:
    """Parse ``HTTP/1.1 200 Connection established``.

    Args:
        line: Status line without the trailing CRLF

    Raises:
        ProxyProtocolError: If the line is not an HTTP status line
    """
    raw = line.decode("latin-1")
    match = _STATUS_LINE.match(line.rstrip(b"\r\n"))
    if match is None:
        raise ProxyProtocolError(f"malformed HTTP status line: {raw!r}")
    major, minor, code, reason = match.groups()
    return HttpStatus(
        version=f"{major.decode()}.{minor.decode()}",
        code=int(code),
        reason=(reason or b"").decode("latin-1").strip(),
        raw=raw,
    )
