"""In-memory fixed-window counter store.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: one lock guards the records; a background thread sweeps
  expired records in chunks so it never holds the lock for long.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable

from ratekeeper.adapters.store.base import AbstractStore, ClientRateLimitInfo
from ratekeeper.core.errors import NotInitializedError
from ratekeeper.core.logging import hash_key

logger = logging.getLogger(__name__)


@dataclass
class _HitRecord:
    count: int
    reset_time: float


class MemoryStore(AbstractStore):
    """Store counting hits per key within a fixed window.

    A key's window starts at its first hit and ends ``window_ms`` later; hits
    inside the window never move the reset time. Records whose reset time has
    passed are treated as absent by every read, and a background sweep
    removes them so keys that stop being queried do not pin memory.

    Important:
        Call ``init`` before any other operation. ``shutdown`` stops the
        sweep and clears the records; ``init`` may be called again afterwards.
    """

    local_keys = True

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.time,
        sweep_chunk_size: int = 1000,
        prefix: str = "",
    ) -> None:
        """Create an uninitialized store.

        Args:
            clock: Time source returning UNIX time in seconds.
            sweep_chunk_size: Keys examined per lock acquisition while sweeping.
            prefix: Namespace prepended to every key.

        Raises:
            ValueError: If sweep_chunk_size is invalid.
        """
        if sweep_chunk_size < 1:
            raise ValueError("sweep_chunk_size must be >= 1")

        self._clock = clock
        self._sweep_chunk_size = sweep_chunk_size
        self._prefix = prefix
        self._lock = threading.Lock()
        self._records: dict[str, _HitRecord] = {}
        # (reset_time, key) in creation order
        self._expiries: deque[tuple[float, str]] = deque()
        self._initialized = False
        self._window_ms: int | None = None
        self._window_seconds = 0.0
        self._stop_event: threading.Event | None = None
        self._sweeper: threading.Thread | None = None

    def __len__(self) -> int:
        return len(self._records)

    @property
    def window_ms(self) -> int | None:
        return self._window_ms

    @property
    def initialized(self) -> bool:
        return self._initialized

    def init(self, window_ms: int) -> None:
        """Configure the window length and start the background sweep.

        Calling ``init`` on a live store re-configures the window and replaces
        the sweep thread; existing records keep their reset times.

        Args:
            window_ms: Window length in milliseconds.

        Raises:
            ValueError: If window_ms is invalid.
        """
        if window_ms < 1:
            raise ValueError("window_ms must be >= 1")

        self._stop_sweeper()
        with self._lock:
            self._window_ms = window_ms
            self._window_seconds = window_ms / 1000
            self._initialized = True
        self._start_sweeper()

        logger.info("store.init", extra={"window_ms": window_ms, "prefix": self._prefix})

    def increment(self, key: str) -> ClientRateLimitInfo:
        """Count one hit for ``key``.

        Args:
            key: Client key.

        Returns:
            ClientRateLimitInfo with the updated count and the window reset time.

        Raises:
            NotInitializedError: If the store has not been initialized.
        """
        key = self._prefix + key
        now = self._clock()

        with self._lock:
            self._ensure_initialized_locked("increment")
            record = self._records.get(key)
            if record is not None and record.reset_time > now:
                record.count += 1
                return ClientRateLimitInfo(record.count, record.reset_time)

            record = _HitRecord(count=1, reset_time=now + self._window_seconds)
            self._records[key] = record
            self._expiries.append((record.reset_time, key))
            return ClientRateLimitInfo(record.count, record.reset_time)

    def decrement(self, key: str) -> None:
        """Undo one hit for ``key``; the count never drops below zero.

        Raises:
            NotInitializedError: If the store has not been initialized.
        """
        key = self._prefix + key
        now = self._clock()

        with self._lock:
            self._ensure_initialized_locked("decrement")
            record = self._live_record_locked(key, now)
            if record is not None and record.count > 0:
                record.count -= 1

    def get(self, key: str) -> ClientRateLimitInfo | None:
        """Return the live record for ``key``, or None if absent or expired.

        Raises:
            NotInitializedError: If the store has not been initialized.
        """
        key = self._prefix + key
        now = self._clock()

        with self._lock:
            self._ensure_initialized_locked("get")
            record = self._live_record_locked(key, now)
            if record is None:
                return None
            return ClientRateLimitInfo(record.count, record.reset_time)

    def reset_key(self, key: str) -> None:
        """Remove any record for ``key``, live or expired.

        Raises:
            NotInitializedError: If the store has not been initialized.
        """
        with self._lock:
            self._ensure_initialized_locked("reset_key")
            self._records.pop(self._prefix + key, None)

    def reset_all(self) -> None:
        """Remove every record.

        Raises:
            NotInitializedError: If the store has not been initialized.
        """
        with self._lock:
            self._ensure_initialized_locked("reset_all")
            self._records.clear()
            self._expiries.clear()

    def shutdown(self) -> None:
        """Stop the sweep and drop all records. Safe to call repeatedly."""
        with self._lock:
            was_initialized = self._initialized
            self._initialized = False
            self._window_ms = None
            self._records.clear()
            self._expiries.clear()
        self._stop_sweeper()

        if was_initialized:
            logger.info("store.shutdown", extra={"prefix": self._prefix})

    def sweep(self, now: float | None = None) -> int:
        """Remove every record whose reset time has passed.

        New records are queued in creation order, and with one window length
        their reset times are non-decreasing, so expired records sit at the
        head of the queue. Each lock acquisition pops at most
        ``sweep_chunk_size`` entries and re-checks the record, so a key
        renewed since it was queued is left alone.

        Args:
            now: Reference time; defaults to the store clock.

        Returns:
            Number of records removed.
        """
        if now is None:
            now = self._clock()

        removed = 0
        more = True
        while more:
            with self._lock:
                chunk_removed, more = self._sweep_chunk_locked(now)
            removed += chunk_removed

        if removed:
            logger.debug(
                "store.sweep",
                extra={"removed": removed, "remaining": len(self._records)},
            )
        return removed

    def _sweep_chunk_locked(self, now: float) -> tuple[int, bool]:
        """Pop one chunk of expired queue entries.

        Returns:
            Tuple of (records removed, whether more expired entries may remain).
        """
        removed = 0
        for _ in range(self._sweep_chunk_size):
            if not self._expiries or self._expiries[0][0] > now:
                return removed, False
            _, key = self._expiries.popleft()
            record = self._records.get(key)
            if record is not None and record.reset_time <= now:
                del self._records[key]
                removed += 1
        return removed, True

    def _live_record_locked(self, key: str, now: float) -> _HitRecord | None:
        """Return the record for key if live; drop it if expired."""
        record = self._records.get(key)
        if record is None:
            return None
        if record.reset_time <= now:
            del self._records[key]
            logger.debug("store.expired", extra={"key_hash": hash_key(key)})
            return None
        return record

    def _ensure_initialized_locked(self, operation: str) -> None:
        if not self._initialized:
            raise NotInitializedError(
                code="store_not_initialized",
                message=f"MemoryStore.{operation}() called before init()",
                details={
                    "operation": operation,
                    "hint": "call init(window_ms) first",
                },
            )

    def _start_sweeper(self) -> None:
        stop_event = threading.Event()
        interval = self._window_seconds

        def _run() -> None:
            while not stop_event.wait(interval):
                try:
                    self.sweep()
                except Exception:  # noqa: BLE001
                    logger.exception("store.sweep_failed")

        sweeper = threading.Thread(target=_run, name="ratekeeper-sweep", daemon=True)
        self._stop_event = stop_event
        self._sweeper = sweeper
        sweeper.start()

    def _stop_sweeper(self) -> None:
        stop_event, sweeper = self._stop_event, self._sweeper
        self._stop_event = None
        self._sweeper = None
        if stop_event is not None:
            stop_event.set()
        if sweeper is not None and sweeper is not threading.current_thread():
            sweeper.join()
