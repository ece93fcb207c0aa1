"""Single-flight coordination for operations that must never run twice at once."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SingleFlight(Generic[T]):
    """
    Run at most one instance of an async operation at a time.

    The first caller starts the operation; callers arriving while it is in
    flight await the same result (or exception) instead of starting their own.
    The operation runs as its own task so a cancelled caller never aborts it
    half way through.
    """

    def __init__(self, name: str) -> None:
        self._name = name
        self._lock = asyncio.Lock()
        self._inflight: Optional[asyncio.Future[T]] = None

    @property
    def in_flight(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Start ``operation`` or join the one already running."""
        task = self._inflight
        if task is None or task.done():
            task = asyncio.ensure_future(self._execute(operation))
            self._inflight = task
        else:
            logger.debug("Joining in-flight %s", self._name)
        return await asyncio.shield(task)

    async def _execute(self, operation: Callable[[], Awaitable[T]]) -> T:
        async with self._lock:
            return await operation()


__all__ = ["SingleFlight"]
