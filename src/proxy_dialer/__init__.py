"""Client-side proxy tunneling over HTTP CONNECT, SOCKS4, SOCKS4a and SOCKS5."""

import pathlib
import tomllib

from proxy_dialer.core.exceptions import (
    DNSResolutionError,
    ProxyAuthenticationError,
    ProxyCommunicationError,
    ProxyConfigError,
    ProxyError,
    ProxyProtocolError,
    ProxyRejectedError,
    UnsupportedProxyTypeError,
)
from proxy_dialer.core.proxy import ProxyClientFactory, create_proxy_client
from proxy_dialer.core.types import ClientState, Credentials, ProxyEndpoint, ProxyType


def get_version() -> str:
    """Read version from pyproject.toml."""
    current_dir = pathlib.Path(__file__).parent
    for parent in [current_dir, *current_dir.parents]:
        pyproject_path = parent / "pyproject.toml"
        if pyproject_path.exists():
            with pyproject_path.open("rb") as f:
                pyproject_data = tomllib.load(f)
            return pyproject_data["project"]["version"]

    # Fallback version if file not found
    return "0.0.0"


__version__ = get_version()

__all__ = [
    "ClientState",
    "create_proxy_client",
    "Credentials",
    "DNSResolutionError",
    "ProxyAuthenticationError",
    "ProxyClientFactory",
    "ProxyCommunicationError",
    "ProxyConfigError",
    "ProxyEndpoint",
    "ProxyError",
    "ProxyProtocolError",
    "ProxyRejectedError",
    "ProxyType",
    "UnsupportedProxyTypeError",
]
