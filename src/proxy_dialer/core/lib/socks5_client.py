"""SOCKS5 proxy client implementation according to RFC 1928.

The handshake runs in three phases:

1. Method negotiation: no-auth is always offered, username/password too
   when credentials are configured
2. Username/password sub-negotiation (RFC 1929) if the proxy picked it
3. CONNECT request; the reply, including the bound address, is always
   read in full so the stream stays aligned

Example:
    client = Socks5ProxyClient("127.0.0.1", 1080)
    sock = client.create_connection("example.com", 80)
    sock.sendall(b"GET / HTTP/1.0\\r\\n\\r\\n")
"""

import socket
from typing import Final, Self

from loguru import logger

from proxy_dialer.core.codec import socks5
from proxy_dialer.core.exceptions import ProxyAuthenticationError, ProxyRejectedError
from proxy_dialer.core.lib.transport import TransportSlot, make_endpoint, recv_exact
from proxy_dialer.core.resolver import AddressKind, resolve_destination
from proxy_dialer.core.types import ClientState, Credentials, ProxyType, TargetEndpoint

ADDRESS_TYPES: Final = {
    AddressKind.IPV4: socks5.ADDR_TYPE_IPV4,
    AddressKind.IPV6: socks5.ADDR_TYPE_IPV6,
    AddressKind.DOMAIN: socks5.ADDR_TYPE_DOMAIN,
}


class Socks5ProxyClient:
    """Tunnel TCP connections through a SOCKS5 proxy."""

    proxy_type = ProxyType.SOCKS5
    proxy_name = "SOCKS5"

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
        self._auth_request: bytes | None = None
        if not self.credentials.is_anonymous:
            # Encoding up front rejects over-long credentials before any I/O
            self._auth_request = socks5.build_auth_request(
                self.credentials.username or "", self.credentials.password or ""
            )
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

    @property
    def methods(self) -> list[int]:
        """Authentication methods offered to the proxy."""
        if self._auth_request is None:
            return [socks5.METHOD_NO_AUTH]
        return [socks5.METHOD_NO_AUTH, socks5.METHOD_USERNAME_PASSWORD]

    def attach(self, transport: socket.socket) -> None:
        self._slot.attach(transport)

    def create_connection(self, host: str, port: int) -> socket.socket:
        """Open a tunnel to ``host:port`` through the proxy.

        Raises:
            ProxyConfigError: If a domain name is longer than 255 bytes
            ProxyAuthenticationError: If the proxy refuses the credentials
            ProxyRejectedError: If the proxy refuses the request
            ProxyProtocolError: If the proxy does not speak SOCKS5
            ProxyCommunicationError: If the connection fails or closes early
        """
        target = TargetEndpoint(host, port)
        destination = resolve_destination(self.proxy_type, target.host)
        request = socks5.build_request(ADDRESS_TYPES[destination.kind], destination.host, target.port)
        return self._slot.run(target, lambda sock: self._handshake(sock, request))

    def _handshake(self, sock: socket.socket, request: bytes) -> None:
        self._negotiate(sock)
        sock.sendall(request)

        header = socks5.parse_reply_header(recv_exact(sock, 4))
        if header.address_type == socks5.ADDR_TYPE_DOMAIN:
            length = recv_exact(sock, 1)[0]
            tail = recv_exact(sock, socks5.bound_address_length(header.address_type, length))
        else:
            tail = recv_exact(sock, socks5.bound_address_length(header.address_type))
        bound = socks5.decode_bound_address(header.address_type, tail)

        if header.status != socks5.RESP_SUCCESS:
            raise ProxyRejectedError(header.status, socks5.describe_status(header.status))
        self.bound_address = bound
        logger.debug(f"SOCKS5 proxy bound {bound[0]}:{bound[1]}")

    def _negotiate(self, sock: socket.socket) -> None:
        """Perform SOCKS5 method negotiation and optional authentication."""
        methods = self.methods
        sock.sendall(socks5.build_greeting(methods))
        method = socks5.parse_method_selection(recv_exact(sock, 2), methods)
        logger.debug(f"SOCKS5 proxy selected method {method:#04x}")

        if method == socks5.METHOD_NO_ACCEPTABLE:
            raise ProxyRejectedError(method, "no acceptable authentication methods")

        if method == socks5.METHOD_USERNAME_PASSWORD and self._auth_request is not None:
            sock.sendall(self._auth_request)
            status = socks5.parse_auth_reply(recv_exact(sock, 2))
            if status != 0:
                raise ProxyAuthenticationError(status, "authentication failed")

    def close(self) -> None:
        self._slot.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
