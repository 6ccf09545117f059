import pytest

from proxy_dialer.core.codec import http
from proxy_dialer.core.exceptions import (
    ProxyCommunicationError,
    ProxyConfigError,
    ProxyProtocolError,
    ProxyRejectedError,
)
from proxy_dialer.core.lib.http_client import HttpProxyClient
from proxy_dialer.core.lib.transport import recv_exact
from proxy_dialer.core.types import ClientState


def test_connect_success_leaves_tunnel_data_unread(fake_socket):
    sock = fake_socket(b"HTTP/1.1 200 Connection established\r\nVia: 1.1 squid\r\n\r\nHELLO")
    client = HttpProxyClient(transport=sock)

    tunnel = client.create_connection("example.com", 443)

    assert tunnel is sock
    assert client.state is ClientState.CONNECTED
    assert client.status.code == 200
    assert bytes(sock.sent).startswith(b"CONNECT example.com:443 HTTP/1.1\r\n")
    assert recv_exact(tunnel, 5) == b"HELLO"


def test_credentials_add_basic_authorization(fake_socket):
    sock = fake_socket(b"HTTP/1.0 200 OK\r\n\r\n")
    client = HttpProxyClient("proxy.local", 3128, "alice", "secret", transport=sock)

    client.create_connection("example.com", 80)

    assert b"Proxy-Authorization: Basic YWxpY2U6c2VjcmV0\r\n" in sock.sent
    assert client.proxy_host == "proxy.local"
    assert client.proxy_port == 3128


def test_407_is_a_rejection_not_a_transport_failure(fake_socket):
    sock = fake_socket(b"HTTP/1.1 407 Proxy Authentication Required\r\nProxy-Authenticate: Basic\r\n\r\n")
    client = HttpProxyClient(transport=sock)

    with pytest.raises(ProxyRejectedError) as excinfo:
        client.create_connection("example.com", 443)

    error = excinfo.value
    assert not isinstance(error, ProxyCommunicationError)
    assert error.code == 407
    assert error.reason == "Proxy Authentication Required"
    assert error.detail == "HTTP/1.1 407 Proxy Authentication Required"
    assert client.state is ClientState.FAILED
    # Caller-supplied transports are never closed by the client
    assert not sock.closed


@pytest.mark.parametrize("status", [b"HTTP/1.1 502 Bad Gateway", b"HTTP/1.1 301 Moved Permanently"])
def test_non_2xx_statuses_are_rejections(fake_socket, status):
    client = HttpProxyClient(transport=fake_socket(status + b"\r\n\r\n"))
    with pytest.raises(ProxyRejectedError):
        client.create_connection("example.com", 443)


def test_malformed_status_line(fake_socket):
    client = HttpProxyClient(transport=fake_socket(b"garbage\r\n\r\n"))
    with pytest.raises(ProxyProtocolError, match="garbage"):
        client.create_connection("example.com", 443)
    assert client.state is ClientState.FAILED


@pytest.mark.parametrize("reply", [b"", b"HTTP/1.1 200 Conn", b"HTTP/1.1 200 OK\r\nVia: x\r\n"])
def test_closed_before_reply_is_complete(fake_socket, reply):
    client = HttpProxyClient(transport=fake_socket(reply))
    with pytest.raises(ProxyCommunicationError, match="connection closed"):
        client.create_connection("example.com", 443)


def test_connection_reset_is_wrapped(resetting_socket):
    client = HttpProxyClient(transport=resetting_socket)
    with pytest.raises(ProxyCommunicationError) as excinfo:
        client.create_connection("example.com", 443)
    assert isinstance(excinfo.value.__cause__, ConnectionResetError)


@pytest.mark.parametrize(
    "host",
    ["example.com:80 HTTP/1.1\r\nX-Injected: yes\r\nX-Pad: a", "example.com\r\n", "exa mple.com", "example\x00.com"],
)
def test_unsafe_target_host_fails_before_sending(fake_socket, host):
    sock = fake_socket(b"HTTP/1.1 200 OK\r\n\r\n")
    client = HttpProxyClient(transport=sock)

    with pytest.raises(ProxyConfigError, match="whitespace or control characters"):
        client.create_connection(host, 80)

    assert sock.sent == b""
    assert client.state is ClientState.CREATED


def test_header_block_may_end_exactly_at_the_limit(fake_socket, monkeypatch):
    monkeypatch.setattr(http, "MAX_HEADER_BYTES", len(b"HTTP/1.1 200 OK\r\nVia: x\r\n"))
    client = HttpProxyClient(transport=fake_socket(b"HTTP/1.1 200 OK\r\nVia: x\r\n\r\n"))

    client.create_connection("example.com", 443)

    assert client.state is ClientState.CONNECTED


def test_oversized_header_block_is_a_protocol_error(fake_socket, monkeypatch):
    monkeypatch.setattr(http, "MAX_HEADER_BYTES", 20)
    client = HttpProxyClient(transport=fake_socket(b"HTTP/1.1 200 OK\r\nVia: x\r\n\r\n"))

    with pytest.raises(ProxyProtocolError, match="exceeds"):
        client.create_connection("example.com", 443)
