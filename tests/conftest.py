"""Shared fixtures: scripted sockets and a loopback proxy."""

import socket
import threading

import pytest

from proxy_dialer.core.exceptions import DNSResolutionError


class FakeSocket:
    """Socket stand-in that records writes and replays a scripted reply."""

    def __init__(self, reply: bytes = b"", chunk_size: int = 3) -> None:
        self.reply = bytearray(reply)
        self.chunk_size = chunk_size
        self.sent = bytearray()
        self.closed = False

    def fileno(self) -> int:
        return -1 if self.closed else 99

    def sendall(self, data: bytes) -> None:
        if self.closed:
            raise OSError("socket is closed")
        self.sent += data

    def recv(self, size: int) -> bytes:
        if self.closed:
            raise OSError("socket is closed")
        n = min(size, self.chunk_size, len(self.reply))
        data = bytes(self.reply[:n])
        del self.reply[:n]
        return data

    def close(self) -> None:
        self.closed = True


class ResettingSocket(FakeSocket):
    def recv(self, size: int) -> bytes:
        raise ConnectionResetError("connection reset by peer")


class StaticResolver:
    def __init__(self, table: dict[str, str]) -> None:
        self.table = table
        self.queries: list[str] = []

    def resolve(self, domain: str) -> str:
        self.queries.append(domain)
        try:
            return self.table[domain]
        except KeyError:
            raise DNSResolutionError(f"Could not resolve {domain}") from None


@pytest.fixture
def fake_socket():
    return FakeSocket


@pytest.fixture
def resolver():
    return StaticResolver({"intranet.example": "10.1.2.3", "v6only.example": "::1"})


@pytest.fixture
def proxy_server():
    """Start loopback servers that send a canned reply on accept.

    ``start(reply, hold=True)`` returns ``(port, received)``. With ``hold``
    the server keeps reading until the client closes, so ``received`` holds
    everything the client sent once the fixture has finished.
    """
    servers = []

    def start(reply: bytes, *, hold: bool = True) -> tuple[int, bytearray]:
        listener = socket.create_server(("127.0.0.1", 0))
        listener.settimeout(5)
        received = bytearray()

        def serve() -> None:
            try:
                conn, _ = listener.accept()
            except OSError:
                return
            with conn:
                conn.settimeout(5)
                conn.sendall(reply)
                if not hold:
                    return
                try:
                    while chunk := conn.recv(4096):
                        received.extend(chunk)
                except OSError:
                    pass

        thread = threading.Thread(target=serve, daemon=True)
        thread.start()
        servers.append((listener, thread))
        return listener.getsockname()[1], received

    yield start

    for listener, thread in servers:
        listener.close()
        thread.join(timeout=5)


@pytest.fixture
def closed_port():
    """A loopback port nothing listens on."""
    with socket.create_server(("127.0.0.1", 0)) as listener:
        port = listener.getsockname()[1]
    return port


@pytest.fixture
def resetting_socket():
    return ResettingSocket()
