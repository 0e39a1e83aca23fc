"""Timer-driven background sweeps."""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass
class PeriodicTask:
    """Run a job every ``interval_seconds`` on the event loop.

    A tick that arrives while the previous run is still going is skipped, so
    a job never overlaps with itself. Failures are logged and the loop keeps
    going.
    """

    name: str
    interval_seconds: float
    job: Callable[[], Awaitable[None] | None]
    _task: asyncio.Task | None = field(default=None, init=False)
    _running: bool = field(default=False, init=False)
    _inflight: set[asyncio.Task] = field(default_factory=set, init=False)

    @property
    def is_started(self) -> bool:
        """Return true while the loop task is alive."""
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the loop on the running event loop."""
        if self.is_started:
            return
        self._task = asyncio.get_running_loop().create_task(self._loop())

    async def stop(self) -> None:
        """Cancel the loop and wait for it to exit."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        for run in list(self._inflight):
            run.cancel()

    async def run_once(self) -> bool:
        """Run the job now unless a run is in progress; return whether it ran."""
        if self._running:
            logger.debug("Skipping overlapping run", extra={"task": self.name})
            return False
        self._running = True
        try:
            result = self.job()
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Background job failed", extra={"task": self.name})
        finally:
            self._running = False
        return True

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            run = asyncio.get_running_loop().create_task(self.run_once())
            self._inflight.add(run)
            run.add_done_callback(self._inflight.discard)
