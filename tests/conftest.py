"""Shared test fixtures for questcore tests."""

from __future__ import annotations

import pytest

from questcore.cache.ttl_cache import TTLCache
from questcore.store import QuestStore
from tests.fakes.clock import FakeClock
from tests.fakes.gateway import FakeGateway


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def cache(clock: FakeClock) -> TTLCache[object]:
    return TTLCache(clock=clock)


@pytest.fixture
def store(gateway: FakeGateway, clock: FakeClock) -> QuestStore:
    """A store over the fake gateway with instant polling."""
    return QuestStore(gateway, clock=clock, poll_interval=0, max_poll_attempts=5, max_days_ahead=1)
