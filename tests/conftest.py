"""Pytest configuration and fixtures shared across all test modules.

TESTING is set before ratekeeper is imported so settings never load a
developer's .env file.
"""

import os

os.environ["TESTING"] = "true"

from typing import Iterator

import pytest

from ratekeeper.adapters.store.memory import MemoryStore


class FakeClock:
    """Deterministic clock used to test window expiry."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> Iterator[MemoryStore]:
    store = MemoryStore(clock=clock)
    store.init(60_000)
    yield store
    store.shutdown()
