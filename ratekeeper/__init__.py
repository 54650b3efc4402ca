"""Counting core for request rate limiting.

Exposes the in-memory fixed-window counter store and the IP key normalizer.
"""

from ratekeeper.adapters.store import (
    AbstractStore,
    ClientRateLimitInfo,
    MemoryStore,
    create_store,
)
from ratekeeper.core.errors import AppError, InvalidSubnetSizeError, NotInitializedError
from ratekeeper.utils.ip_keys import KeyNormalizer, create_key_normalizer, ip_key_generator

__version__ = "0.1.0"

__all__ = [
    "AbstractStore",
    "AppError",
    "ClientRateLimitInfo",
    "InvalidSubnetSizeError",
    "KeyNormalizer",
    "MemoryStore",
    "NotInitializedError",
    "create_key_normalizer",
    "create_store",
    "ip_key_generator",
]
