"""Dashboard refresh scheduling: countdown, catch-up fetch and auto-refresh.

Two independent triggers feed the same fetch:

* a one-second tick that shows a countdown to the server's `nextUpdate` and,
  once it has passed, schedules a single deferred catch-up fetch;
* a long fixed-interval auto-refresh.

Both go through one `InFlightGuard`, so a server whose `nextUpdate` lags the
wall clock never gets more than one request in flight from this client.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime, timedelta

from app.schemas.radar import SnapshotResponse

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(UTC)


class InFlightGuard:
    """Single-slot guard: at most one holder at a time."""

    def __init__(self) -> None:
        self._held = False

    @property
    def in_flight(self) -> bool:
        return self._held

    def try_acquire(self) -> bool:
        """Take the slot if it is free; never waits."""
        if self._held:
            return False
        self._held = True
        return True

    def release(self) -> None:
        self._held = False


class RefreshScheduler:
    """
    Keeps a dashboard snapshot fresh.

    `tick()` and `refresh()` are the two trigger paths and are safe to call
    directly (tests drive them with a fake clock). `start()` wires them to
    timers; `close()` cancels timers but lets an in-flight fetch finish
    without applying its result.
    """

    def __init__(
        self,
        fetch: Callable[[], Awaitable[SnapshotResponse]],
        *,
        on_snapshot: Callable[[SnapshotResponse], None] | None = None,
        tick_interval: float = 1.0,
        catchup_delay: float = 2.0,
        auto_refresh_interval: float = 30 * 60,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._fetch = fetch
        self._on_snapshot = on_snapshot
        self.tick_interval = tick_interval
        self.catchup_delay = catchup_delay
        self.auto_refresh_interval = auto_refresh_interval
        self.clock = clock

        self.guard = InFlightGuard()
        self.snapshot: SnapshotResponse | None = None
        self.last_update: datetime | None = None
        self.next_update: datetime | None = None
        self.countdown: timedelta | None = None

        self._closed = False
        self._catchup_timer: asyncio.TimerHandle | None = None
        self._loops: list[asyncio.Task] = []
        self._fetches: set[asyncio.Task] = set()

    @property
    def catchup_pending(self) -> bool:
        return self._catchup_timer is not None

    def remaining(self) -> timedelta | None:
        """Time until the server's advertised next update, if known."""
        if self.next_update is None:
            return None
        return self.next_update - self.clock()

    def tick(self) -> timedelta | None:
        """Update the countdown; once it has expired, schedule one catch-up fetch."""
        remaining = self.remaining()
        self.countdown = remaining
        if remaining is not None and remaining <= timedelta(0):
            self._schedule_catchup()
        return remaining

    def refresh(self) -> asyncio.Task | None:
        """Start a fetch now unless one is already scheduled or running."""
        if self._closed or not self.guard.try_acquire():
            return None
        return self._launch()

    def _schedule_catchup(self) -> bool:
        if self._closed or not self.guard.try_acquire():
            return False
        loop = asyncio.get_running_loop()
        self._catchup_timer = loop.call_later(self.catchup_delay, self._launch)
        logger.debug(f"Next update overdue, fetching in {self.catchup_delay}s")
        return True

    def _launch(self) -> asyncio.Task:
        """Run the fetch as its own task. Caller must hold the guard."""
        self._catchup_timer = None
        task = asyncio.get_running_loop().create_task(self._fetch_and_apply())
        self._fetches.add(task)
        task.add_done_callback(self._fetches.discard)
        return task

    async def _fetch_and_apply(self) -> None:
        try:
            snapshot = await self._fetch()
            if not self._closed:
                self._apply(snapshot)
        except Exception as e:
            logger.warning(f"Snapshot fetch failed: {e}")
        finally:
            self.guard.release()

    def _apply(self, snapshot: SnapshotResponse) -> None:
        self.snapshot = snapshot
        self.last_update = snapshot.lastUpdate
        self.next_update = snapshot.nextUpdate
        self.countdown = self.remaining()
        if self._on_snapshot is not None:
            self._on_snapshot(snapshot)

    async def _tick_loop(self) -> None:
        while True:
            self.tick()
            await asyncio.sleep(self.tick_interval)

    async def _auto_refresh_loop(self) -> None:
        while True:
            await asyncio.sleep(self.auto_refresh_interval)
            self.refresh()

    def start(self) -> asyncio.Task | None:
        """Load the first snapshot and start both timers."""
        initial = self.refresh()
        self._loops = [
            asyncio.create_task(self._tick_loop()),
            asyncio.create_task(self._auto_refresh_loop()),
        ]
        return initial

    async def wait_idle(self) -> None:
        """Wait for every in-flight fetch to settle."""
        if self._fetches:
            await asyncio.gather(*self._fetches, return_exceptions=True)

    async def close(self) -> None:
        """Cancel pending timers; in-flight fetches finish but are not applied."""
        self._closed = True
        if self._catchup_timer is not None:
            self._catchup_timer.cancel()
            self._catchup_timer = None
            self.guard.release()
        for task in self._loops:
            task.cancel()
        await asyncio.gather(*self._loops, return_exceptions=True)
        self._loops = []
