"""Counter store interfaces.

Callers should depend on this abstraction (not the concrete implementation)
so the in-memory store can be swapped for another backend later.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone


@dataclass(frozen=True)
class ClientRateLimitInfo:
    """Snapshot of a client's hit record.

    Attributes:
        total_hits: Hits counted in the current window.
        reset_time: UNIX epoch seconds at which the window ends.
    """

    total_hits: int
    reset_time: float

    @property
    def reset_at(self) -> datetime:
        """Reset time as an aware UTC datetime."""
        return datetime.fromtimestamp(self.reset_time, tz=timezone.utc)


class AbstractStore(ABC):
    """Interface for hit-counting stores."""

    #: Whether counts live in this process only.
    local_keys: bool = True

    @abstractmethod
    def init(self, window_ms: int) -> None:
        """Configure the window length and start background maintenance."""
        raise NotImplementedError

    @abstractmethod
    def increment(self, key: str) -> ClientRateLimitInfo:
        """Count one hit for ``key`` and return the updated record."""
        raise NotImplementedError

    @abstractmethod
    def decrement(self, key: str) -> None:
        """Undo one previously counted hit for ``key``."""
        raise NotImplementedError

    @abstractmethod
    def get(self, key: str) -> ClientRateLimitInfo | None:
        """Return the live record for ``key`` or None."""
        raise NotImplementedError

    @abstractmethod
    def reset_key(self, key: str) -> None:
        """Remove any record for ``key``."""
        raise NotImplementedError

    @abstractmethod
    def reset_all(self) -> None:
        """Remove every record."""
        raise NotImplementedError

    @abstractmethod
    def shutdown(self) -> None:
        """Stop background work and release resources."""
        raise NotImplementedError
