"""Protocol-aware destination resolution.

Decides, per proxy type, whether a target hostname is resolved here or
handed to the proxy:

- SOCKS4 carries only an IPv4 address, so names are resolved locally
- SOCKS4a sends names to the proxy; IPv4 literals are sent as addresses
- SOCKS5 sends IPv4 and IPv6 literals as addresses and names as domains
- HTTP always sends the host text in the CONNECT line

Example:
    dest = resolve_destination(ProxyType.SOCKS5, "example.com")
    assert dest.kind is AddressKind.DOMAIN
"""

import socket
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from loguru import logger

from proxy_dialer.core.exceptions import DNSResolutionError, ProxyConfigError
from proxy_dialer.core.lib.dns_handler import dns_resolver
from proxy_dialer.core.types import ProxyType, is_ipv4_literal, is_ipv6_literal


class HostResolver(Protocol):
    def resolve(self, domain: str) -> str: ...


class AddressKind(Enum):
    IPV4 = "ipv4"
    IPV6 = "ipv6"
    DOMAIN = "domain"


@dataclass(frozen=True)
class Destination:
    """Target host in the form a proxy protocol will encode it.

    Attributes:
        kind: How the host is expressed on the wire
        host: Address literal (without brackets) or domain name
    """

    kind: AddressKind
    host: str

    @property
    def packed(self) -> bytes:
        """Binary form of an address literal."""
        if self.kind is AddressKind.IPV4:
            return socket.inet_pton(socket.AF_INET, self.host)
        if self.kind is AddressKind.IPV6:
            return socket.inet_pton(socket.AF_INET6, self.host)
        raise ValueError("domain names have no packed form")


def classify_host(host: str) -> Destination:
    """Classify ``host`` as an IPv4 literal, IPv6 literal or name."""
    if is_ipv4_literal(host):
        return Destination(AddressKind.IPV4, host)
    if is_ipv6_literal(host):
        return Destination(AddressKind.IPV6, host.strip("[]"))
    return Destination(AddressKind.DOMAIN, host)


def resolve_destination(
    proxy_type: ProxyType,
    host: str,
    resolver: HostResolver | None = None,
) -> Destination:
    """Express ``host`` the way ``proxy_type`` needs it.

    Args:
        proxy_type: Protocol the destination will be sent with
        host: Target host given by the caller
        resolver: Resolver for SOCKS4 names, the default DNS resolver if omitted

    Raises:
        DNSResolutionError: If SOCKS4 cannot get an IPv4 address for ``host``
        ProxyConfigError: If ``proxy_type`` does not carry destinations
    """
    destination = classify_host(host)

    match proxy_type:
        case ProxyType.SOCKS4:
            if destination.kind is AddressKind.IPV4:
                return destination
            if destination.kind is AddressKind.IPV6:
                raise DNSResolutionError(f"SOCKS4 cannot reach IPv6 address {host}")
            address = (resolver or dns_resolver).resolve(host)
            if not is_ipv4_literal(address):
                raise DNSResolutionError(f"{host} resolved to {address}, which is not an IPv4 address")
            logger.debug(f"Resolved {host} locally to {address} for SOCKS4")
            return Destination(AddressKind.IPV4, address)
        case ProxyType.SOCKS4A:
            # SOCKS4a has no IPv6 form; the proxy gets the literal as a name
            if destination.kind is AddressKind.IPV6:
                return Destination(AddressKind.DOMAIN, destination.host)
            return destination
        case ProxyType.SOCKS5 | ProxyType.HTTP:
            return destination
        case _:
            raise ProxyConfigError(f"{proxy_type} does not carry a destination")
