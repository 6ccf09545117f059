"""Public entry points of the proxy client core.

This module exposes the parts of the core that applications need: the
factory and the client types it produces. Handshake internals stay in
``proxy_dialer.core.lib`` and ``proxy_dialer.core.codec``.

Example:
    from proxy_dialer.core.proxy import create_proxy_client

    client = create_proxy_client("socks5", host="127.0.0.1", port=1080)
    sock = client.create_connection("example.com", 443)

Attributes:
    __all__ (list): List of public components exposed by this module
"""

from .factory import ProxyClientFactory, create_proxy_client
from .lib import HttpProxyClient, Socks4aProxyClient, Socks4ProxyClient, Socks5ProxyClient
from .types import ProxyClient, ProxyType

__all__ = [
    "create_proxy_client",
    "HttpProxyClient",
    "ProxyClient",
    "ProxyClientFactory",
    "ProxyType",
    "Socks4aProxyClient",
    "Socks4ProxyClient",
    "Socks5ProxyClient",
]
