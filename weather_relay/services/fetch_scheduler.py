"""
Background fetch loop for the Netatmo station.

Each tick rotates the credential pair, reads the station and publishes the
reading to the snapshot cache. Ticks fire on a fixed period whether or not
the previous one has finished; a failing tick is logged and leaves the cache
untouched.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

from weather_relay.models.tokens import TokenPair
from weather_relay.schemas.weather import WeatherSnapshot
from weather_relay.services.snapshot_cache import SnapshotCache

logger = logging.getLogger(__name__)


class TokenRotator(Protocol):
    async def rotate(self) -> TokenPair: ...


class SnapshotFetcher(Protocol):
    async def fetch_snapshot(
        self, access_token: str, *, device_id: str, module_id: str
    ) -> WeatherSnapshot: ...


class TickState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    DONE = "done"
    FAILED = "failed"


@dataclass
class TickResult:
    """Outcome of a single fetch cycle."""

    state: TickState
    started_at: float
    finished_at: Optional[float] = None
    snapshot: Optional[WeatherSnapshot] = None
    error: Optional[Exception] = None


class FetchScheduler:
    """Drives the rotate → fetch → publish cycle on a fixed period."""

    def __init__(
        self,
        credentials: TokenRotator,
        netatmo_client: SnapshotFetcher,
        snapshots: SnapshotCache,
        *,
        device_id: str,
        module_id: str,
        interval_seconds: float = 30.0,
    ) -> None:
        self._credentials = credentials
        self._client = netatmo_client
        self._snapshots = snapshots
        self._device_id = device_id
        self._module_id = module_id
        self.interval_seconds = interval_seconds
        self._state = TickState.IDLE
        self._last_result: Optional[TickResult] = None
        self._timer_task: Optional[asyncio.Task] = None
        self._ticks: set[asyncio.Task] = set()
        self._stop_event = asyncio.Event()

    @property
    def state(self) -> TickState:
        return self._state

    @property
    def last_result(self) -> Optional[TickResult]:
        return self._last_result

    @property
    def running(self) -> bool:
        return self._timer_task is not None and not self._timer_task.done()

    async def tick(self) -> TickResult:
        """Run one fetch cycle. Never raises for upstream or credential failures."""
        result = TickResult(state=TickState.FETCHING, started_at=time.time())
        self._state = TickState.FETCHING

        try:
            pair = await self._credentials.rotate()
            snapshot = await self._client.fetch_snapshot(
                pair.access_token,
                device_id=self._device_id,
                module_id=self._module_id,
            )
            self._snapshots.publish(snapshot)
        except Exception as exc:
            logger.error("Error updating weather data: %s", exc, exc_info=True)
            result.state = TickState.FAILED
            result.error = exc
        else:
            result.state = TickState.DONE
            result.snapshot = snapshot

        result.finished_at = time.time()
        self._state = result.state
        self._last_result = result
        return result

    def _spawn_tick(self) -> None:
        if self._ticks:
            logger.warning(
                "Starting fetch tick while %d previous tick(s) still running",
                len(self._ticks),
            )
        task = asyncio.create_task(self.tick())
        self._ticks.add(task)
        task.add_done_callback(self._ticks.discard)

    async def _timer_loop(self) -> None:
        logger.info("Fetch loop started (every %ss)", self.interval_seconds)

        while not self._stop_event.is_set():
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(
                    self._stop_event.wait(), timeout=self.interval_seconds
                )
            if self._stop_event.is_set():
                break
            self._spawn_tick()

        logger.info("Fetch loop stopped")

    async def start(self) -> None:
        """Run one tick immediately, then start the periodic timer."""
        if self.running:
            logger.warning("Fetch scheduler already running")
            return

        self._stop_event.clear()
        await self.tick()
        self._timer_task = asyncio.create_task(self._timer_loop())

    async def stop(self, timeout: float = 5.0) -> None:
        """Stop the timer and wait briefly for in-flight ticks."""
        timer_task = self._timer_task
        if timer_task is None or timer_task.done():
            logger.warning("Fetch scheduler not running")
            return

        self._stop_event.set()
        await timer_task

        pending = list(self._ticks)
        if not pending:
            return
        _, still_running = await asyncio.wait(pending, timeout=timeout)
        for task in still_running:
            logger.warning("Fetch tick did not finish in time, cancelling")
            task.cancel()
        for task in still_running:
            with contextlib.suppress(asyncio.CancelledError):
                await task


__all__ = ["FetchScheduler", "TickResult", "TickState"]
