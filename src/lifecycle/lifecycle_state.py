"""
Readiness / liveness state.

Two flags queried by the probe endpoints:
- ready: set by the host once startup tasks have finished
- shutting_down: set once by the shutdown coordinator, never cleared
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Iterable, List, Optional

from lifecycle.errors import StartupFailedError
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.LIFECYCLE)


class LifecycleState:
    """
    Ready / shutting-down flags with startup gating.

    Startup tasks may be coroutines, tasks or futures. Coroutines are wrapped
    in tasks on first use so that repeated set_ready(True) calls await the
    same work instead of re-running it.
    """

    def __init__(self, startup_tasks: Optional[Iterable[Awaitable[Any]]] = None):
        self._ready = False
        self._shutting_down = False
        self._startup_pending: List[Awaitable[Any]] = list(startup_tasks or [])
        self._startup_futures: Optional[List[asyncio.Future]] = None

    def _get_startup_futures(self) -> List[asyncio.Future]:
        if self._startup_futures is None:
            self._startup_futures = [asyncio.ensure_future(t) for t in self._startup_pending]
            self._startup_pending = []
        return self._startup_futures

    @staticmethod
    def _first_failure(futures: List[asyncio.Future]) -> Optional[BaseException]:
        """First failed startup task in registration order; a cancelled task counts as failed."""
        for future in futures:
            if not future.done():
                continue
            if future.cancelled():
                return asyncio.CancelledError("startup task was cancelled")
            if future.exception() is not None:
                return future.exception()
        return None

    async def set_ready(self, value: bool) -> None:
        """
        Set the ready flag.

        True waits for every startup task first; if one fails,
        StartupFailedError is raised and the flag stays False.
        False applies immediately.
        """
        if value:
            futures = self._get_startup_futures()
            if futures:
                log.info("Waiting for initialization tasks to resolve...", count=len(futures))
                # startup tasks outlive a cancelled caller
                await asyncio.wait(futures, return_when=asyncio.FIRST_EXCEPTION)
                failure = self._first_failure(futures)
                if failure is not None:
                    log.error("Initialization task failed", error=str(failure), error_type=type(failure).__name__)
                    raise StartupFailedError(failure) from failure
                log.info("All initialization tasks resolved")

        if self._ready != value:
            log.info("Ready state changed", ready=value)
        self._ready = value

    def get_ready(self) -> bool:
        return self._ready

    def mark_shutting_down(self) -> None:
        """Flip shutting_down to True. Later calls are no-ops."""
        if self._shutting_down:
            return
        self._shutting_down = True
        log.info("Server marked as shutting down")

    def is_shutting_down(self) -> bool:
        return self._shutting_down
