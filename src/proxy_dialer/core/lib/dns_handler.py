"""DNS resolution using dnspython.

Used where a proxy protocol cannot carry a hostname (SOCKS4): the name has
to become an IPv4 address on this side of the proxy. The system resolver
is tried first, then the configured nameservers through dnspython.

Answers from dnspython go through a bounded ``dns.resolver.LRUCache``, so
cached addresses expire with their TTL. System resolver answers are not
cached here.
"""

import socket
from typing import TYPE_CHECKING, Final, NoReturn, cast

import dns.exception
import dns.resolver
from loguru import logger

from proxy_dialer.core.exceptions import DNSResolutionError

if TYPE_CHECKING:
    from dns.resolver import Resolver

# DNS resolver constants
DEFAULT_TIMEOUT: Final = 1.0  # seconds
DEFAULT_LIFETIME: Final = 3.0  # seconds
DEFAULT_CACHE_SIZE: Final = 1024
DEFAULT_NAMESERVERS: Final = [
    "1.1.1.1",  # Cloudflare
    "8.8.8.8",  # Google
    "9.9.9.9",  # Quad9
]


class DNSResolver:
    """IPv4 resolver with system DNS first and dnspython as fallback."""

    def __init__(
        self,
        nameservers: list[str] | None = None,
        *,
        use_system: bool = True,
        timeout: float = DEFAULT_TIMEOUT,
        lifetime: float = DEFAULT_LIFETIME,
        cache_size: int = DEFAULT_CACHE_SIZE,
    ) -> None:
        """Initialize the DNS resolver.

        Args:
            nameservers: Nameservers for the dnspython fallback
            use_system: Whether to try the operating system resolver first
            timeout: Per-nameserver query timeout in seconds
            lifetime: Total time limit for one lookup across all nameservers
            cache_size: Maximum number of answers kept by the dnspython cache
        """
        self.nameservers = list(nameservers or DEFAULT_NAMESERVERS)
        self.use_system = use_system
        self.timeout = timeout
        self.lifetime = lifetime
        self.cache = dns.resolver.LRUCache(cache_size)

    def _make_resolver(self) -> "Resolver":
        resolver = cast("Resolver", dns.resolver.Resolver(configure=False))
        resolver.timeout = self.timeout
        resolver.lifetime = self.lifetime
        resolver.nameservers = self.nameservers
        resolver.cache = self.cache
        return resolver

    def _try_system_dns(self, domain: str) -> str | None:
        """Try resolving using system DNS."""
        try:
            infos = socket.getaddrinfo(domain, None, socket.AF_INET, socket.SOCK_STREAM)
        except (socket.gaierror, UnicodeError) as e:
            logger.debug(f"System DNS resolution failed for {domain}: {e}")
            return None
        for *_, sockaddr in infos:
            return str(sockaddr[0])
        return None

    def _try_configured_resolver(self, domain: str) -> str | None:
        """Try resolving using the configured nameservers.

        dnspython moves on to the next nameserver itself, within
        ``lifetime``.
        """
        try:
            answer = self._make_resolver().resolve(domain, "A")
        except dns.exception.DNSException as e:
            logger.debug(f"Nameservers {self.nameservers} failed for {domain}: {e}")
            return None
        return str(answer[0])

    def _raise_dns_error(self, msg: str) -> NoReturn:
        """Raise a DNS resolution error.

        Raises:
            DNSResolutionError: Always raised with the given message
        """
        raise DNSResolutionError(msg)

    def resolve(self, domain: str) -> str:
        """Resolve domain name to an IPv4 address.

        Args:
            domain: Domain name to resolve

        Returns:
            str: Resolved IPv4 address

        Raises:
            DNSResolutionError: If resolution fails
        """
        attempts = [self._try_configured_resolver]
        if self.use_system:
            attempts.insert(0, self._try_system_dns)

        for attempt in attempts:
            if ip := attempt(domain):
                logger.debug(f"Resolved {domain} to {ip}")
                return ip

        error_msg = f"Could not resolve {domain} using any available method"
        logger.error(error_msg)
        self._raise_dns_error(error_msg)

    def clear_cache(self) -> None:
        self.cache.flush()


# Default resolver instance
dns_resolver = DNSResolver()
