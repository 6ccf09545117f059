"""HTTP CONNECT proxy client.

Sends a CONNECT request and accepts any 2xx status. The reply headers are
read up to the blank line and dropped; everything after it belongs to the
tunnel.

Example:
    client = HttpProxyClient("proxy.local", 8080, "alice", "secret")
    sock = client.create_connection("example.com", 443)
"""

import socket
from typing import Self

from loguru import logger

from proxy_dialer.core.codec import http
from proxy_dialer.core.exceptions import ProxyRejectedError
from proxy_dialer.core.lib.transport import TransportSlot, make_endpoint, recv_line
from proxy_dialer.core.resolver import resolve_destination
from proxy_dialer.core.types import ClientState, Credentials, ProxyType, TargetEndpoint


class HttpProxyClient:
    """Tunnel TCP connections through an HTTP proxy."""

    proxy_type = ProxyType.HTTP
    proxy_name = "HTTP"

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        username: str | None = None,
        password: str | None = None,
        *,
        transport: socket.socket | None = None,
        timeout: float | None = None,
    ) -> None:
        self.endpoint = make_endpoint(host, port)
        self.credentials = Credentials(username, password)
        self.status: http.HttpStatus | None = None
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

        Returns:
            socket.socket: Proxy socket carrying the tunnel

        Raises:
            ProxyRejectedError: If the proxy answers with a non-2xx status
            ProxyProtocolError: If the status line is malformed
            ProxyCommunicationError: If the connection fails or closes early
        """
        target = TargetEndpoint(host, port)
        destination = resolve_destination(self.proxy_type, target.host)
        request = http.build_connect_request(destination.host, target.port, self.credentials)
        return self._slot.run(target, lambda sock: self._handshake(sock, request))

    def _handshake(self, sock: socket.socket, request: bytes) -> None:
        sock.sendall(request)

        self.status = http.parse_status_line(recv_line(sock, http.MAX_HEADER_BYTES))
        logger.debug(f"HTTP proxy answered {self.status.raw!r}")
        if not self.status.is_success:
            raise ProxyRejectedError(
                self.status.code, self.status.reason or "HTTP proxy error", self.status.raw
            )

        # Drain the remaining headers up to the blank line
        remaining = max(http.MAX_HEADER_BYTES - len(self.status.raw) - 2, 0)
        while line := recv_line(sock, remaining):
            remaining = max(remaining - len(line) - 2, 0)

    def close(self) -> None:
        self._slot.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
