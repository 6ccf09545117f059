"""SOCKS4a proxy client.

Same frames as SOCKS4, except that a target which is not an IPv4 literal
is sent by name and resolved by the proxy.
"""

import socket
from typing import Self

from proxy_dialer.core.codec import socks4
from proxy_dialer.core.lib.socks4_client import exchange, user_id_from
from proxy_dialer.core.lib.transport import TransportSlot, make_endpoint
from proxy_dialer.core.resolver import AddressKind, resolve_destination
from proxy_dialer.core.types import ClientState, Credentials, ProxyType, TargetEndpoint


class Socks4aProxyClient:
    """Tunnel TCP connections through a SOCKS4a proxy."""

    proxy_type = ProxyType.SOCKS4A
    proxy_name = "SOCKS4a"

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
        self.user_id = user_id_from(Credentials(username, password), self.proxy_name)
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
        """Open a tunnel to ``host:port``, letting the proxy resolve names."""
        target = TargetEndpoint(host, port)
        destination = resolve_destination(self.proxy_type, target.host)
        if destination.kind is AddressKind.IPV4:
            request = socks4.build_request(target.port, destination.packed, self.user_id)
        else:
            request = socks4.build_request(
                target.port, socks4.SOCKS4A_SENTINEL, self.user_id, hostname=destination.host
            )
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
