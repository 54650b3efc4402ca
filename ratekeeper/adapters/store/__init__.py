"""Counter store adapters.

A small abstraction layer so callers can start with the in-memory store and
later move to a shared backend without changing how they count hits.
"""

from ratekeeper.adapters.store.base import AbstractStore, ClientRateLimitInfo
from ratekeeper.adapters.store.factory import create_store
from ratekeeper.adapters.store.memory import MemoryStore

__all__ = [
    "AbstractStore",
    "ClientRateLimitInfo",
    "MemoryStore",
    "create_store",
]
