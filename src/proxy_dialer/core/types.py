"""Value types shared by the proxy clients.

Example:
    endpoint = ProxyEndpoint("127.0.0.1", 1080)
    creds = Credentials("alice", "secret")
"""

import socket
from dataclasses import dataclass
from enum import Enum
from typing import Final, Protocol, Self

from proxy_dialer.core.exceptions import ProxyConfigError

MIN_PORT: Final = 1
MAX_PORT: Final = 65535


class ProxyType(Enum):
    """Supported proxy protocols.

    ``NONE`` means "unspecified"; the factory always rejects it.
    """

    NONE = "none"
    HTTP = "http"
    SOCKS4 = "socks4"
    SOCKS4A = "socks4a"
    SOCKS5 = "socks5"


class ClientState(Enum):
    """Lifecycle of a proxy client."""

    CREATED = "created"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    FAILED = "failed"
    CLOSED = "closed"


def validate_port(port: object, what: str = "port") -> int:
    """Return ``port`` if it is an integer in 1..65535.

    Raises:
        ProxyConfigError: If the value is not a usable TCP port
    """
    if isinstance(port, bool) or not isinstance(port, int):
        raise ProxyConfigError(f"{what} must be an integer, got {port!r}")
    if not MIN_PORT <= port <= MAX_PORT:
        raise ProxyConfigError(f"{what} must be between {MIN_PORT} and {MAX_PORT}, got {port}")
    return port


def validate_host(host: object, what: str = "host") -> str:
    """Return ``host`` stripped, if it is a non-empty string.

    Hosts end up verbatim in request lines and headers, so inner
    whitespace and control characters are refused.

    Raises:
        ProxyConfigError: If the value cannot be used as a host
    """
    if not isinstance(host, str) or not host.strip():
        raise ProxyConfigError(f"{what} must be a non-empty string, got {host!r}")
    host = host.strip()
    if any(ch.isspace() or not ch.isprintable() for ch in host):
        raise ProxyConfigError(f"{what} contains whitespace or control characters: {host!r}")
    return host


@dataclass(frozen=True)
class ProxyEndpoint:
    """Address of the proxy server.

    Attributes:
        host: Numeric IP address or DNS name of the proxy
        port: TCP port of the proxy
    """

    host: str
    port: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "host", validate_host(self.host, "proxy host"))
        validate_port(self.port, "proxy port")

    def __str__(self) -> str:
        return format_authority(self.host, self.port)


@dataclass(frozen=True)
class TargetEndpoint:
    """Destination the caller wants to reach through the proxy."""

    host: str
    port: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "host", validate_host(self.host, "target host"))
        validate_port(self.port, "target port")

    def __str__(self) -> str:
        return format_authority(self.host, self.port)


@dataclass(frozen=True)
class Credentials:
    """Optional proxy credentials.

    HTTP and SOCKS5 proxies use both fields. SOCKS4 and SOCKS4a only carry
    the username, sent as the user-id field.
    """

    username: str | None = None
    password: str | None = None

    def __post_init__(self) -> None:
        if self.password is not None and self.username is None:
            raise ProxyConfigError("a password was given without a username")

    @property
    def is_anonymous(self) -> bool:
        return self.username is None

    def __repr__(self) -> str:
        masked = None if self.password is None else "***"
        return f"Credentials(username={self.username!r}, password={masked!r})"


def is_ipv4_literal(host: str) -> bool:
    """Check whether ``host`` is a dotted-quad IPv4 address."""
    try:
        socket.inet_pton(socket.AF_INET, host)
    except OSError:
        return False
    return True


def is_ipv6_literal(host: str) -> bool:
    """Check whether ``host`` is an IPv6 address (brackets allowed)."""
    try:
        socket.inet_pton(socket.AF_INET6, host.strip("[]"))
    except OSError:
        return False
    return True


def format_authority(host: str, port: int) -> str:
    """Format ``host:port``, bracketing IPv6 literals."""
    if is_ipv6_literal(host):
        return f"[{host.strip('[]')}]:{port}"
    return f"{host}:{port}"


class ProxyClient(Protocol):
    """Interface shared by the HTTP, SOCKS4, SOCKS4a and SOCKS5 clients."""

    proxy_type: ProxyType
    proxy_name: str
    endpoint: ProxyEndpoint | None

    @property
    def proxy_host(self) -> str | None: ...

    @property
    def proxy_port(self) -> int | None: ...

    @property
    def state(self) -> ClientState: ...

    @property
    def transport(self) -> socket.socket | None: ...

    def attach(self, transport: socket.socket) -> None: ...

    def create_connection(self, host: str, port: int) -> socket.socket: ...

    def close(self) -> None: ...

    def __enter__(self) -> Self: ...

    def __exit__(self, *exc_info: object) -> None: ...
