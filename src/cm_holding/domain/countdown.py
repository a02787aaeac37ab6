"""Live maturation countdown: cooperative, cancellable 1 Hz recomputation.

The remaining time is recomputed from a fixed deadline on every tick rather
than decremented, so a late tick never drifts. The owner must stop the ticker
when its surface closes; stop() cancels the task instead of just ignoring it.
"""

import asyncio
import logging
import math
import time
from collections.abc import AsyncIterator, Awaitable, Callable

logger = logging.getLogger(__name__)

TickCallback = Callable[[int], Awaitable[None] | None]


class CountdownTicker:
    def __init__(
        self,
        remaining_seconds: int,
        on_tick: TickCallback,
        interval: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._clock = clock
        self._deadline = clock() + max(0, remaining_seconds)
        self._on_tick = on_tick
        self._interval = interval
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def remaining(self) -> int:
        return max(0, math.ceil(self._deadline - self._clock()))

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        while True:
            secs = self.remaining()
            result = self._on_tick(secs)
            if asyncio.iscoroutine(result):
                await result
            if secs <= 0:
                logger.debug("Countdown reached zero")
                return
            await asyncio.sleep(self._interval)

    async def __aenter__(self) -> "CountdownTicker":
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()


async def countdown_stream(
    remaining_seconds: int,
    interval: float = 1.0,
    clock: Callable[[], float] = time.monotonic,
) -> AsyncIterator[int]:
    """Async-iterator form: yields remaining seconds each tick, ending at 0.

    Closing the iterator (client disconnect) cancels the pending sleep.
    """
    deadline = clock() + max(0, remaining_seconds)
    while True:
        secs = max(0, math.ceil(deadline - clock()))
        yield secs
        if secs <= 0:
            return
        await asyncio.sleep(interval)
