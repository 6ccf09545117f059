"""Transport handling shared by the proxy clients.

The clients do not inherit from a common base. Each one composes a
``TransportSlot`` that owns the proxy socket, tracks the client state and
runs a handshake callable with uniform error handling:

- ``OSError`` raised while the handshake runs becomes
  ``ProxyCommunicationError``
- any failure moves the client to ``FAILED`` and closes the socket if the
  client opened it
- success moves the client to ``CONNECTED`` and hands the socket to the
  caller
"""

import socket
from collections.abc import Callable

from loguru import logger

from proxy_dialer.core.exceptions import (
    ProxyCommunicationError,
    ProxyConfigError,
    ProxyError,
    ProxyProtocolError,
)
from proxy_dialer.core.types import ClientState, ProxyEndpoint, TargetEndpoint

Handshake = Callable[[socket.socket], None]


def is_open(sock: socket.socket) -> bool:
    """Check that ``sock`` has not been closed."""
    try:
        return sock.fileno() != -1
    except OSError:
        return False


def recv_exact(sock: socket.socket, length: int) -> bytes:
    """Read exactly ``length`` bytes.

    Raises:
        ProxyCommunicationError: If the stream ends first
    """
    chunks = bytearray()
    while len(chunks) < length:
        chunk = sock.recv(length - len(chunks))
        if not chunk:
            raise ProxyCommunicationError(
                f"connection closed by proxy after {len(chunks)} of {length} bytes"
            )
        chunks += chunk
    return bytes(chunks)


def recv_line(sock: socket.socket, limit: int) -> bytes:
    """Read one CRLF-terminated line byte by byte, without the terminator.

    Reading one byte at a time keeps data that follows the line in the
    socket.

    Raises:
        ProxyCommunicationError: If the stream ends before the line does
        ProxyProtocolError: If the line, without its terminator, is longer
            than ``limit`` bytes
    """
    line = bytearray()
    while not line.endswith(b"\r\n"):
        if len(line) > limit + 1:
            raise ProxyProtocolError(f"line exceeds {limit} bytes")
        byte = sock.recv(1)
        if not byte:
            raise ProxyCommunicationError("connection closed")
        line += byte
    return bytes(line[:-2])


def open_transport(endpoint: ProxyEndpoint, timeout: float | None = None) -> socket.socket:
    """Dial the proxy.

    Raises:
        ProxyCommunicationError: If the TCP connection cannot be made
    """
    try:
        return socket.create_connection((endpoint.host, endpoint.port), timeout=timeout)
    except OSError as e:
        raise ProxyCommunicationError(f"could not connect to proxy {endpoint}: {e}") from e


class TransportSlot:
    """Owns the proxy socket of one client and runs its handshakes."""

    def __init__(
        self,
        name: str,
        endpoint: ProxyEndpoint | None,
        timeout: float | None = None,
        transport: socket.socket | None = None,
    ) -> None:
        self.name = name
        self.endpoint = endpoint
        self.timeout = timeout
        self.state = ClientState.CREATED
        self.transport: socket.socket | None = None
        self._owned = False
        if transport is not None:
            self.attach(transport)

    def attach(self, transport: socket.socket) -> None:
        """Use an already open socket instead of dialing the proxy.

        The caller keeps ownership: a failed handshake does not close it.

        Raises:
            ProxyConfigError: If the socket is closed or a handshake is running
        """
        if self.state is ClientState.CONNECTING:
            raise ProxyConfigError("cannot attach a transport while a handshake is running")
        if not is_open(transport):
            raise ProxyConfigError("attached transport must already be open")
        self.transport = transport
        self._owned = False
        self.state = ClientState.CREATED

    def run(self, target: TargetEndpoint, handshake: Handshake) -> socket.socket:
        """Run ``handshake`` over the proxy socket and return the tunnel."""
        if self.state is not ClientState.CREATED:
            raise ProxyConfigError(
                f"{self.name} client is {self.state.value}; attach an open transport to reuse it"
            )

        self.state = ClientState.CONNECTING
        if self.transport is None:
            if self.endpoint is None:
                self.state = ClientState.CREATED
                raise ProxyConfigError("no proxy host/port and no attached transport")
            logger.debug(f"Dialing {self.name} proxy {self.endpoint}")
            try:
                self.transport = open_transport(self.endpoint, self.timeout)
            except ProxyCommunicationError:
                self.state = ClientState.FAILED
                raise
            self._owned = True

        sock = self.transport
        try:
            handshake(sock)
        except ProxyError as e:
            self._fail(target, e)
            raise
        except OSError as e:
            error = ProxyCommunicationError(f"{self.name} handshake with proxy failed: {e}")
            self._fail(target, error)
            raise error from e

        self.state = ClientState.CONNECTED
        self._owned = False
        logger.info(f"{self.name} tunnel to {target} established")
        return sock

    def _fail(self, target: TargetEndpoint, error: Exception) -> None:
        logger.warning(f"{self.name} handshake for {target} failed: {error}")
        self.state = ClientState.FAILED
        if self._owned and self.transport is not None:
            self.transport.close()
            self.transport = None
            self._owned = False

    def close(self) -> None:
        """Release the client.

        Only a socket the client still owns is closed; a tunnel handed to
        the caller and an attached transport are left alone.
        """
        if self._owned and self.transport is not None:
            self.transport.close()
        self.transport = None
        self._owned = False
        self.state = ClientState.CLOSED


def make_endpoint(host: str | None, port: int | None) -> ProxyEndpoint | None:
    """Build the proxy endpoint, or ``None`` when a transport will be attached.

    Raises:
        ProxyConfigError: If only one of ``host`` and ``port`` is given
    """
    if host is None and port is None:
        return None
    if host is None or port is None:
        raise ProxyConfigError("proxy host and port must be given together")
    return ProxyEndpoint(host, port)
