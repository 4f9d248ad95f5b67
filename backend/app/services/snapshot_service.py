"""Snapshot service - cached read model for the dashboard."""

import time
from collections.abc import Callable
from datetime import timedelta
from functools import lru_cache

from app.config import get_settings
from app.schemas.radar import SnapshotResponse
from app.services.radar_store import RadarStore


class SnapshotCache:
    """
    Single-slot, process-local cache with a TTL.

    Only absorbs bursts of near-simultaneous reads; there is no invalidation,
    so a snapshot may be up to `ttl_seconds` stale after an ingestion cycle.
    """

    def __init__(self, ttl_seconds: float = 10.0, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._value: SnapshotResponse | None = None
        self._timestamp = 0.0

    def get(self) -> SnapshotResponse | None:
        """Return the cached snapshot while it is younger than the TTL."""
        if self._value is not None and self.clock() - self._timestamp < self.ttl_seconds:
            return self._value
        return None

    def set(self, value: SnapshotResponse, timestamp: float | None = None) -> None:
        self._value = value
        self._timestamp = self.clock() if timestamp is None else timestamp

    def clear(self) -> None:
        self._value = None
        self._timestamp = 0.0


class SnapshotService:
    """Builds snapshots from the store, going through the cache first."""

    def __init__(
        self,
        store: RadarStore,
        cache: SnapshotCache,
        refresh_period: timedelta = timedelta(minutes=30),
    ) -> None:
        self.store = store
        self.cache = cache
        self.refresh_period = refresh_period

    async def get_snapshot(self) -> SnapshotResponse:
        cached = self.cache.get()
        if cached is not None:
            return cached

        data = await self.store.get_radar_data()
        last_update = await self.store.get_last_update_time()
        snapshot = SnapshotResponse(
            data=data,
            lastUpdate=last_update,
            nextUpdate=last_update + self.refresh_period if last_update else None,
        )
        self.cache.set(snapshot)
        return snapshot


@lru_cache
def get_snapshot_cache() -> SnapshotCache:
    """Process-wide snapshot cache."""
    return SnapshotCache(ttl_seconds=get_settings().snapshot_cache_ttl_seconds)
