"""Periodic sweep of expired cache entries."""

import asyncio
import contextlib
import logging
from datetime import timedelta
from types import TracebackType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from estatecache.core.services.cache_store import CacheStore

logger = logging.getLogger(__name__)


class CacheJanitor:
    """Runs ``CacheStore.cleanup`` on a fixed interval.

    Expired entries are never served, but they keep occupying slots
    until something touches them. The janitor frees them in the
    background for the lifetime of the application.

    Example:
        async with CacheJanitor(store):
            await run_app()
    """

    def __init__(
        self,
        store: "CacheStore",
        interval: timedelta | None = None,
    ) -> None:
        """Initialize the janitor.

        Args:
            store: The cache store to sweep.
            interval: Time between sweeps. Uses the store's
                ``cleanup_interval`` if not provided.
        """
        self._store = store
        self._interval = interval or store.config.cleanup_interval
        if self._interval <= timedelta(0):
            raise ValueError("Cleanup interval must be positive")
        self._task: asyncio.Task[None] | None = None
        self._sweeps = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def sweeps(self) -> int:
        """Number of sweeps completed so far."""
        return self._sweeps

    def start(self) -> None:
        """Start sweeping. Must be called from a running event loop."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.debug(
            "Cache janitor started (every %ss)", self._interval.total_seconds()
        )

    async def stop(self) -> None:
        """Stop sweeping and wait for the background task to finish."""
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.debug("Cache janitor stopped after %d sweep(s)", self._sweeps)

    def sweep(self) -> int:
        """Run one sweep now.

        Returns:
            Number of expired entries removed.
        """
        removed = self._store.cleanup()
        self._sweeps += 1
        return removed

    async def __aenter__(self) -> "CacheJanitor":
        self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.stop()

    async def _run(self) -> None:
        seconds = self._interval.total_seconds()
        while True:
            await asyncio.sleep(seconds)
            self.sweep()
