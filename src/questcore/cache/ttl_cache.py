"""Time-to-live cache keyed by entity scope."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterator
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from typing import Generic, TypeVar

_LOG = logging.getLogger(__name__)

V = TypeVar("V")

CACHE_EXPIRY = timedelta(minutes=5)

Clock = Callable[[], datetime]

ROADMAP_PREFIX = "roadmap:"


def utc_now() -> datetime:
    return datetime.now(UTC)


def goals_scope() -> str:
    return "goals"


def roadmap_scope(goal_id: str) -> str:
    return f"{ROADMAP_PREFIX}{goal_id}"


def tasks_scope(day: date) -> str:
    return f"tasks:{day.isoformat()}"


def goal_id_from_scope(key: str) -> str | None:
    if not key.startswith(ROADMAP_PREFIX):
        return None
    return key[len(ROADMAP_PREFIX) :]


@dataclass(frozen=True)
class CachedValue(Generic[V]):
    value: V
    fetched_at: datetime


class TTLCache(Generic[V]):
    """Scope-keyed cache whose entries are fresh for ``ttl`` after fetching.

    Invalidation bumps a per-scope generation counter. A write tagged with an
    older generation is dropped, so a fetch that was in flight when its scope
    was invalidated cannot resurrect the entry.
    """

    def __init__(self, *, ttl: timedelta = CACHE_EXPIRY, clock: Clock | None = None) -> None:
        self._ttl = ttl
        self._clock: Clock = clock or utc_now
        self._entries: dict[str, CachedValue[V]] = {}
        self._generations: dict[str, int] = {}
        self._epoch = 0

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def now(self) -> datetime:
        return self._clock()

    def get(self, key: str) -> CachedValue[V] | None:
        return self._entries.get(key)

    def is_fresh(self, entry: CachedValue[V]) -> bool:
        return self._clock() - entry.fetched_at < self._ttl

    def get_fresh(self, key: str) -> CachedValue[V] | None:
        entry = self._entries.get(key)
        if entry is None or not self.is_fresh(entry):
            return None
        return entry

    def generation(self, key: str) -> tuple[int, int]:
        return self._epoch, self._generations.get(key, 0)

    def put(
        self,
        key: str,
        value: V,
        fetched_at: datetime | None = None,
        *,
        generation: tuple[int, int] | None = None,
    ) -> bool:
        """Store *value* under *key*; returns False if the write was stale."""
        if generation is not None and generation != self.generation(key):
            _LOG.debug("Dropping stale cache write for %s", key)
            return False
        self._entries[key] = CachedValue(value=value, fetched_at=fetched_at or self._clock())
        return True

    def invalidate(self, key: str | None = None) -> None:
        if key is None:
            self._entries.clear()
            self._generations.clear()
            self._epoch += 1
            return
        self._entries.pop(key, None)
        self._generations[key] = self._generations.get(key, 0) + 1

    def invalidate_matching(self, prefix: str) -> None:
        for key in {*self._entries, *self._generations}:
            if not key.startswith(prefix):
                continue
            self.invalidate(key)

    def items(self, prefix: str = "") -> Iterator[tuple[str, CachedValue[V]]]:
        for key, entry in list(self._entries.items()):
            if key.startswith(prefix):
                yield key, entry

    async def resolve(
        self,
        key: str,
        fetch: Callable[[], Awaitable[V]],
        *,
        force_refresh: bool = False,
    ) -> V:
        """Return the fresh cached value for *key*, fetching on miss or staleness.

        ``force_refresh`` skips the freshness check but still repopulates the
        cache. A failed fetch leaves the previous entry untouched.
        """
        if not force_refresh:
            cached = self.get_fresh(key)
            if cached is not None:
                _LOG.debug("Cache hit: %s", key)
                return cached.value
        _LOG.debug("Cache %s: %s", "refresh" if force_refresh else "miss", key)
        generation = self.generation(key)
        value = await fetch()
        self.put(key, value, generation=generation)
        return value
