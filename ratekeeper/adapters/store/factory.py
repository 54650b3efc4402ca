"""Factory for creating counter store instances."""

from __future__ import annotations

import time
from typing import Callable

from ratekeeper.adapters.store.base import AbstractStore
from ratekeeper.adapters.store.memory import MemoryStore
from ratekeeper.core.config import StoreSettings, settings


def create_store(
    store_settings: StoreSettings | None = None,
    *,
    clock: Callable[[], float] = time.time,
) -> AbstractStore:
    """Build and initialize a counter store from configuration.

    Each call returns a new, independent store; the caller owns it and is
    responsible for calling ``shutdown()``.

    Args:
        store_settings: Optional store settings; defaults to global settings if omitted.
        clock: Time source returning UNIX time in seconds.

    Returns:
        AbstractStore: Initialized store.
    """
    cfg = store_settings or settings.store

    store = MemoryStore(
        clock=clock,
        sweep_chunk_size=cfg.sweep_chunk_size,
        prefix=cfg.prefix,
    )
    store.init(cfg.window_ms)
    return store
