"""Proxy client library components."""

from .dns_handler import DNSResolver, dns_resolver
from .http_client import HttpProxyClient
from .socks4_client import Socks4ProxyClient
from .socks4a_client import Socks4aProxyClient
from .socks5_client import Socks5ProxyClient
from .transport import TransportSlot

__all__ = [
    "DNSResolver",
    "dns_resolver",
    "HttpProxyClient",
    "Socks4aProxyClient",
    "Socks4ProxyClient",
    "Socks5ProxyClient",
    "TransportSlot",
]
