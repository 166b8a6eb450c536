"""
Main pytest configuration for backend tests.

Fixtures for deterministic cache timing and counting producers.
"""

import os
import asyncio
from typing import Any, List, Optional

import pytest

# Set test environment variables before importing app modules
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "DEBUG"
os.environ["LOG_FORMAT"] = "console"

from alumni_registry.domain.cache.value_objects import NamespacePolicy
from alumni_registry.services.cache.ttl_cache import TTLCache


class ManualClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class CountingProducer:
    """
    Async producer that records how often it was called.

    Returns ``values`` in order (repeating the last one); a value that is
    an exception instance is raised instead. When ``gate`` is given, each
    call blocks until the event is set.
    """

    def __init__(self, *values: Any, gate: Optional[asyncio.Event] = None):
        self.values: List[Any] = list(values) or [None]
        self.gate = gate
        self.calls = 0

    async def __call__(self) -> Any:
        self.calls += 1
        index = min(self.calls, len(self.values)) - 1
        if self.gate is not None:
            await self.gate.wait()
        value = self.values[index]
        if isinstance(value, BaseException):
            raise value
        return value


@pytest.fixture
def clock():
    """Manual clock starting at t=1000s."""
    return ManualClock()


@pytest.fixture
def cache(clock):
    """Cache with the namespaces used throughout the tests."""
    cache = TTLCache(clock=clock)
    cache.register_namespace(
        "students", NamespacePolicy(ttl_seconds=300, max_entries=2)
    )
    cache.register_namespace("verify", NamespacePolicy(ttl_seconds=60, max_entries=100))
    cache.register_namespace(
        "dashboard",
        NamespacePolicy(ttl_seconds=0.1, stale_window_seconds=0.2, max_entries=50),
    )
    return cache


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "api: marks tests that drive the HTTP layer")


def pytest_collection_modifyitems(config, items):
    """Add markers based on test file location."""
    for item in items:
        if "/api/" in item.nodeid:
            item.add_marker(pytest.mark.api)


@pytest.fixture
def make_producer():
    """Factory for CountingProducer instances."""
    return CountingProducer
