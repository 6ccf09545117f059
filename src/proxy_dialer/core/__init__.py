"""Core proxy client implementation.

This package contains the building blocks of the proxy clients:
- Frame codecs for HTTP CONNECT, SOCKS4/4a and SOCKS5 (``codec``)
- Protocol clients and transport handling (``lib``)
- Destination resolution rules per protocol
- The client factory
- Exception types

The core package performs the handshakes and hands back connected
sockets, while the command-line interface lives in ``proxy_dialer.cmd``.
"""
