"""Client keys derived from IP addresses.

IPv4 addresses are used as-is. IPv6 addresses are collapsed to their
enclosing subnet (``/56`` by default) so a client cannot dodge limits by
rotating addresses inside its own allocation.

If you write a custom key function that falls back to the client IP for
anonymous callers, return ``ip_key_generator(ip)`` rather than the raw IP so
subnet collapsing is applied uniformly.
"""

from __future__ import annotations

import ipaddress
import logging
from typing import Any

from ratekeeper.core.config import KeySettings, settings
from ratekeeper.core.errors import InvalidSubnetSizeError
from ratekeeper.utils.fifo_cache import FifoCache

logger = logging.getLogger(__name__)

DEFAULT_IPV6_SUBNET = 56
DEFAULT_CACHE_MAX_ENTRIES = 10_000

_MIN_PREFIX = 1
_MAX_PREFIX = 128
_ALL_ONES = (1 << 128) - 1

# Marks "use the normalizer's configured subnet"
_CONFIGURED = object()


def _validate_subnet_size(subnet_size: object) -> int:
    if (
        isinstance(subnet_size, bool)
        or not isinstance(subnet_size, int)
        or not _MIN_PREFIX <= subnet_size <= _MAX_PREFIX
    ):
        raise InvalidSubnetSizeError(
            code="invalid_subnet_size",
            message=f"IPv6 subnet size must be between 1 and 128, got {subnet_size!r}",
            details={
                "min_value": _MIN_PREFIX,
                "max_value": _MAX_PREFIX,
                "actual_value": subnet_size,
            },
        )
    return subnet_size


def subnet_start(address: ipaddress.IPv6Address, subnet_size: int) -> str:
    """Return the compressed first address of the /subnet_size containing address."""
    mask = _ALL_ONES ^ ((1 << (_MAX_PREFIX - subnet_size)) - 1)
    return ipaddress.IPv6Address(int(address) & mask).compressed


class KeyNormalizer:
    """Map raw IP addresses to rate limiting keys, memoizing IPv6 subnets."""

    def __init__(
        self,
        *,
        ipv6_subnet: int | None = DEFAULT_IPV6_SUBNET,
        max_entries: int = DEFAULT_CACHE_MAX_ENTRIES,
    ) -> None:
        if ipv6_subnet is not None:
            _validate_subnet_size(ipv6_subnet)
        self._ipv6_subnet = ipv6_subnet
        self._cache: FifoCache[tuple[str, int], str] = FifoCache(max_entries=max_entries)

    @property
    def cache(self) -> FifoCache[tuple[str, int], str]:
        return self._cache

    @property
    def ipv6_subnet(self) -> int | None:
        return self._ipv6_subnet

    def normalize(self, ip: str, subnet_size: Any = _CONFIGURED) -> str:
        """Return the key for ``ip``.

        Args:
            ip: Client address, usually the request's remote address.
            subnet_size: IPv6 prefix length (1-128), or None/False to disable
                collapsing. Defaults to the normalizer's ipv6_subnet.

        Returns:
            ``ip`` unchanged for IPv4, non-IP input or when collapsing is
            disabled; otherwise the canonical subnet in CIDR notation,
            e.g. ``2001:db8:8500::/56``.

        Raises:
            InvalidSubnetSizeError: If subnet_size is outside 1-128.
        """
        if subnet_size is _CONFIGURED:
            subnet_size = self._ipv6_subnet
        if subnet_size is None or subnet_size is False:
            return ip
        subnet_size = _validate_subnet_size(subnet_size)

        # IPv4 and hostnames never contain a colon
        if ":" not in ip:
            return ip

        cache_key = (ip, subnet_size)
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        try:
            address = ipaddress.IPv6Address(ip)
        except ValueError:
            return ip

        result = f"{subnet_start(address, subnet_size)}/{subnet_size}"
        self._cache.set(cache_key, result)
        logger.debug(
            "key_normalizer.cache_miss",
            extra={"subnet_size": subnet_size, "entries": len(self._cache)},
        )
        return result

    def clear(self) -> None:
        """Drop every memoized key."""
        self._cache.clear()


def create_key_normalizer(key_settings: KeySettings | None = None) -> KeyNormalizer:
    """Build a KeyNormalizer from configuration.

    Args:
        key_settings: Optional key settings; defaults to global settings if omitted.
    """
    cfg = key_settings or settings.key
    return KeyNormalizer(
        ipv6_subnet=cfg.ipv6_subnet,
        max_entries=cfg.cache_max_entries,
    )


_default_normalizer = KeyNormalizer()


def ip_key_generator(ip: str, ipv6_subnet: int | None | bool = DEFAULT_IPV6_SUBNET) -> str:
    """Return the IP itself for IPv4, or its CIDR subnet for IPv6.

    Uses a process-wide KeyNormalizer. Pass an explicit KeyNormalizer around
    instead when isolated caches are needed.
    """
    return _default_normalizer.normalize(ip, ipv6_subnet)
