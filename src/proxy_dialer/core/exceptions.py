"""Custom exceptions for the proxy clients.

Every failure raised while configuring a client or running a handshake is a
``ProxyError``. The subclasses split failures into the categories callers
act on:

- ``ProxyConfigError``: bad arguments, detected before any I/O
- ``DNSResolutionError``: a name could not be turned into the address form
  the protocol needs
- ``ProxyCommunicationError``: the transport failed (reset, timeout,
  premature end of stream)
- ``ProxyProtocolError``: the proxy answered with bytes that do not follow
  the protocol
- ``ProxyRejectedError``: the proxy explicitly denied the request

Example:
    try:
        sock = client.create_connection("example.com", 443)
    except ProxyRejectedError as e:
        console.print(f"[red]Proxy refused: {e.reason} ({e.code})")
    except ProxyCommunicationError:
        console.print("[red]Proxy unreachable")
"""


class ProxyError(Exception):
    """Base exception for proxy errors."""


class ProxyConfigError(ProxyError, ValueError):
    """Raised when a client is configured or used incorrectly."""


class UnsupportedProxyTypeError(ProxyConfigError):
    """Raised when the requested proxy type has no client implementation."""


class DNSResolutionError(ProxyError):
    """Raised when DNS resolution fails."""


class ProxyCommunicationError(ProxyError):
    """Raised when the connection to the proxy fails during a handshake."""


class ProxyProtocolError(ProxyError):
    """Raised when the proxy sends a reply that cannot be understood."""


class ProxyRejectedError(ProxyProtocolError):
    """Raised when the proxy denies the request with a status code.

    Attributes:
        code: Protocol status code (SOCKS reply byte or HTTP status)
        reason: Human readable meaning of ``code``
    """

    def __init__(self, code: int, reason: str, detail: str | None = None) -> None:
        self.code = code
        self.reason = reason
        self.detail = detail
        message = f"{reason} (code {code})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class ProxyAuthenticationError(ProxyRejectedError):
    """Raised when the proxy refuses the supplied credentials."""
