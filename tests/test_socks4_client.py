import pytest

from proxy_dialer.core.exceptions import (
    DNSResolutionError,
    ProxyCommunicationError,
    ProxyConfigError,
    ProxyRejectedError,
)
from proxy_dialer.core.lib.socks4_client import Socks4ProxyClient
from proxy_dialer.core.lib.socks4a_client import Socks4aProxyClient
from proxy_dialer.core.lib.transport import recv_exact
from proxy_dialer.core.types import ClientState

GRANTED = b"\x00\x5a\x00\x00\x00\x00\x00\x00"


def test_socks4_connect_to_ipv4(fake_socket):
    sock = fake_socket(GRANTED + b"payload")
    client = Socks4ProxyClient(username="bob", transport=sock)

    tunnel = client.create_connection("10.0.0.1", 80)

    assert bytes(sock.sent) == b"\x04\x01\x00\x50\x0a\x00\x00\x01bob\x00"
    assert client.state is ClientState.CONNECTED
    assert recv_exact(tunnel, 7) == b"payload"


def test_socks4_resolves_names_locally(fake_socket, resolver):
    sock = fake_socket(GRANTED)
    client = Socks4ProxyClient(transport=sock, resolver=resolver)

    client.create_connection("intranet.example", 8080)

    assert resolver.queries == ["intranet.example"]
    assert bytes(sock.sent) == b"\x04\x01\x1f\x90\x0a\x01\x02\x03\x00"


def test_socks4_unresolvable_name_fails_before_sending(fake_socket, resolver):
    sock = fake_socket(GRANTED)
    client = Socks4ProxyClient(transport=sock, resolver=resolver)

    with pytest.raises(DNSResolutionError):
        client.create_connection("nowhere.example", 80)

    assert sock.sent == b""
    assert client.state is ClientState.CREATED


def test_socks4_cannot_carry_ipv6(fake_socket):
    sock = fake_socket(GRANTED)
    with pytest.raises(DNSResolutionError):
        Socks4ProxyClient(transport=sock).create_connection("::1", 80)
    assert sock.sent == b""


def test_socks4_rejects_password():
    with pytest.raises(ProxyConfigError):
        Socks4ProxyClient("127.0.0.1", 1080, "bob", "secret")


@pytest.mark.parametrize(
    ("status", "reason"),
    [
        (0x5B, "request rejected or failed"),
        (0x5C, "request rejected because the proxy cannot reach identd on the client"),
        (0x5D, "request rejected because identd reported a different user-id"),
        (0x13, "unknown SOCKS4 status 0x13"),
    ],
)
def test_socks4_status_codes(fake_socket, status, reason):
    client = Socks4ProxyClient(transport=fake_socket(bytes([0, status]) + bytes(6)))
    with pytest.raises(ProxyRejectedError) as excinfo:
        client.create_connection("10.0.0.1", 80)
    assert excinfo.value.code == status
    assert excinfo.value.reason == reason
    assert client.state is ClientState.FAILED


def test_socks4_truncated_reply_is_a_transport_failure(fake_socket):
    client = Socks4ProxyClient(transport=fake_socket(b"\x00\x5a\x00"))
    with pytest.raises(ProxyCommunicationError, match="3 of 8 bytes"):
        client.create_connection("10.0.0.1", 80)


def test_socks4a_sends_hostname_for_proxy_resolution(fake_socket):
    sock = fake_socket(GRANTED)
    client = Socks4aProxyClient(username="bob", transport=sock)

    client.create_connection("example.com", 80)

    assert bytes(sock.sent) == b"\x04\x01\x00\x50\x00\x00\x00\x01bob\x00example.com\x00"
    assert client.state is ClientState.CONNECTED


def test_socks4a_sends_ipv4_literals_as_addresses(fake_socket):
    sock = fake_socket(GRANTED)
    Socks4aProxyClient(transport=sock).create_connection("192.168.0.7", 443)
    assert bytes(sock.sent) == b"\x04\x01\x01\xbb\xc0\xa8\x00\x07\x00"


def test_socks4a_rejection(fake_socket):
    client = Socks4aProxyClient(transport=fake_socket(b"\x00\x5b" + bytes(6)))
    with pytest.raises(ProxyRejectedError, match="request rejected or failed"):
        client.create_connection("example.com", 80)
