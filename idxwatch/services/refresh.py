"""Background refresh loops (quotes on a short timer, ancillary feeds on a long one)."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from ..errors import ProviderError

logger = logging.getLogger(__name__)


class PeriodicRefresher:
    """
    Runs `job` every `interval` seconds in a background task.

    At most one run is in flight; a run requested meanwhile is skipped.
    Failures are kept as `last_error` and retried on the next tick.
    """

    def __init__(self, name: str, job: Callable[[], Awaitable[None]], interval: float):
        self.name = name
        self.job = job
        self.interval = interval
        self.last_error: Optional[str] = None
        self.runs = 0
        self._in_flight = False
        self._wakeup = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> bool:
        """Run the job now. Returns False if a run was already in flight."""
        if self._in_flight:
            logger.debug("%s refresh already in progress, skipping", self.name)
            return False
        self._in_flight = True
        try:
            await self.job()
            self.last_error = None
        except ProviderError as exc:
            self.last_error = str(exc)
            logger.warning("%s refresh failed: %s", self.name, exc)
        except Exception as exc:
            self.last_error = str(exc) or type(exc).__name__
            logger.exception("%s refresh job error: %s", self.name, exc)
        finally:
            self._in_flight = False
            self.runs += 1
        return True

    def request_refresh(self) -> None:
        """Wake the loop for an immediate run (no-op if not started)."""
        self._wakeup.set()

    def start(self) -> asyncio.Task:
        if self.running:
            return self._task
        self._task = asyncio.create_task(self._loop(), name=f"{self.name}-refresh")
        logger.info("%s refresh started (every %ss)", self.name, self.interval)
        return self._task

    async def stop(self) -> None:
        """Cancel the loop; an in-flight request is abandoned."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("%s refresh stopped", self.name)

    async def _loop(self) -> None:
        while True:
            self._wakeup.clear()
            await self.run_once()
            try:
                await asyncio.wait_for(self._wakeup.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass
