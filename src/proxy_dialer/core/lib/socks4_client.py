"""SOCKS4 proxy client.

SOCKS4 can only carry an IPv4 address, so target names are resolved on
this side before the request is built. A failed resolution is raised
before the proxy is contacted.
"""

import socket
from typing import Self

from loguru import logger

from proxy_dialer.core.codec import socks4
from proxy_dialer.core.exceptions import ProxyConfigError, ProxyRejectedError
from proxy_dialer.core.lib.transport import TransportSlot, make_endpoint, recv_exact
from proxy_dialer.core.resolver import HostResolver, resolve_destination
from proxy_dialer.core.types import ClientState, Credentials, ProxyType, TargetEndpoint


def user_id_from(credentials: Credentials, proxy_name: str) -> str | None:
    """Return the user-id field; SOCKS4 has no room for a password."""
    if credentials.password is not None:
        raise ProxyConfigError(f"{proxy_name} proxies do not support passwords")
    return credentials.username


def exchange(sock: socket.socket, request: bytes) -> socks4.Socks4Reply:
    """Send a SOCKS4/4a request and read the granted reply.

    Raises:
        ProxyRejectedError: If the status is anything but 0x5A
        ProxyCommunicationError: If fewer than eight bytes arrive
    """
    sock.sendall(request)
    reply = socks4.parse_reply(recv_exact(sock, socks4.REPLY_LENGTH))
    logger.debug(f"SOCKS4 reply status {reply.status:#04x}")
    if not reply.granted:
        raise ProxyRejectedError(reply.status, socks4.describe_status(reply.status))
    return reply


class Socks4ProxyClient:
    """Tunnel TCP connections through a SOCKS4 proxy."""

    proxy_type = ProxyType.SOCKS4
    proxy_name = "SOCKS4"

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        username: str | None = None,
        password: str | None = None,
        *,
        transport: socket.socket | None = None,
        timeout: float | None = None,
        resolver: HostResolver | None = None,
    ) -> None:
        self.endpoint = make_endpoint(host, port)
        self.user_id = user_id_from(Credentials(username, password), self.proxy_name)
        self.resolver = resolver
        self.bound_address: tuple[str, int] | None = None
        self._slot = TransportSlot(self.proxy_name, self.endpoint, timeout, transport)

    @property
    def proxy_host(self) -> str | None:
        return self.endpoint.host if self.endpoint else None

    @property
    def proxy_port(self) -> int | None:
        return self.endpoint.port if self.endpoint else None

    @property
    def state(self) -> ClientState:
        return self._slot.state

    @property
    def transport(self) -> socket.socket | None:
        return self._slot.transport

    def attach(self, transport: socket.socket) -> None:
        self._slot.attach(transport)

    def create_connection(self, host: str, port: int) -> socket.socket:
        """Open a tunnel to ``host:port`` through the proxy.

        Raises:
            DNSResolutionError: If ``host`` has no IPv4 address
            ProxyRejectedError: If the proxy does not grant the request
            ProxyCommunicationError: If the connection fails or closes early
        """
        target = TargetEndpoint(host, port)
        destination = resolve_destination(self.proxy_type, target.host, self.resolver)
        request = socks4.build_request(target.port, destination.packed, self.user_id)
        return self._slot.run(target, lambda sock: self._handshake(sock, request))

    def _handshake(self, sock: socket.socket, request: bytes) -> None:
        reply = exchange(sock, request)
        self.bound_address = (reply.address, reply.port)

    def close(self) -> None:
        self._slot.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
