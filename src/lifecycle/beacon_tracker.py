"""
Beacon Tracker
--------------

Counts in-flight work so shutdown can wait for it to finish.

A beacon is created when a unit of work starts and dies when it completes.
The shutdown coordinator awaits wait_for_drain() before running cleanup.

Features:
- create / retire beacons with free-form context (for logs only)
- level-triggered drain wait (resolves at once when nothing is in flight)
- context manager and task helpers that retire automatically
"""

from __future__ import annotations

import asyncio
import itertools
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Callable, Coroutine, Dict, List, Optional

from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.BEACON)

BeaconContext = Dict[str, Any]


# ---------------------------------------------------------------------------
# BEACON
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class Beacon:
    """One unit of in-flight work. Compared by identity."""
    id: int
    context: BeaconContext = field(default_factory=dict)
    created_at: float = field(default_factory=time.monotonic)


class BeaconHandle:
    """
    Retirement handle returned to the caller of create_beacon().

    The tracker owns the beacon; the handle can only retire it.
    """

    def __init__(self, tracker: "BeaconTracker", beacon: Beacon):
        self._tracker = tracker
        self._beacon = beacon

    @property
    def id(self) -> int:
        return self._beacon.id

    @property
    def context(self) -> BeaconContext:
        return self._beacon.context

    @property
    def alive(self) -> bool:
        return self._tracker._is_live(self._beacon)

    async def die(self) -> None:
        """Retire the beacon. Safe to call more than once."""
        await self._tracker.retire(self)

    def __repr__(self) -> str:
        state = "alive" if self.alive else "dead"
        return f"<BeaconHandle id={self.id} {state} context={self.context!r}>"


# ---------------------------------------------------------------------------
# TRACKER
# ---------------------------------------------------------------------------

class BeaconTracker:
    """
    Live beacon collection plus an observer list.

    Every add and remove notifies observers synchronously, inside the call
    that changed the collection. All methods except retire() and
    wait_for_drain() are synchronous.
    """

    def __init__(self) -> None:
        self._beacons: List[Beacon] = []
        self._listeners: List[Callable[[], None]] = []
        self._ids = itertools.count(1)

    # -----------------------------
    # Observers
    # -----------------------------
    def _subscribe(self, listener: Callable[[], None]) -> None:
        self._listeners.append(listener)

    def _unsubscribe(self, listener: Callable[[], None]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self) -> None:
        # Listeners may unsubscribe themselves while we iterate
        for listener in list(self._listeners):
            listener()

    def _is_live(self, beacon: Beacon) -> bool:
        return any(b is beacon for b in self._beacons)

    # -----------------------------
    # Public API
    # -----------------------------
    def create_beacon(self, context: Optional[BeaconContext] = None) -> BeaconHandle:
        """Register a live beacon and return its retirement handle."""
        beacon = Beacon(id=next(self._ids), context=dict(context or {}))
        self._beacons.append(beacon)

        log.debug("Beacon created", beacons_count=len(self._beacons), context=beacon.context)
        self._notify()

        return BeaconHandle(self, beacon)

    def discard(self, handle: BeaconHandle) -> bool:
        """
        Remove a beacon without yielding.

        Returns False (and changes nothing) when the beacon is unknown or
        already dead.
        """
        beacon = handle._beacon
        if not self._is_live(beacon):
            log.debug("Ignoring retirement of unknown beacon", beacon_id=beacon.id)
            return False

        log.debug("Beacon dying", context=beacon.context)
        self._beacons.remove(beacon)
        self._notify()
        log.debug("Beacon died", remaining_beacons=len(self._beacons))
        return True

    async def retire(self, handle: BeaconHandle) -> None:
        """
        Retire a beacon, then yield to the loop once.

        The yield lets drain waiters resumed by this retirement run before
        the caller continues.
        """
        if self.discard(handle):
            await asyncio.sleep(0)

    @property
    def count(self) -> int:
        return len(self._beacons)

    def get_beacons_count(self) -> int:
        return len(self._beacons)

    def contexts(self) -> List[BeaconContext]:
        """Snapshot of live beacon contexts, oldest first."""
        return [dict(b.context) for b in self._beacons]

    async def wait_for_drain(self) -> None:
        """
        Wait until no beacons are live.

        Returns immediately when nothing is in flight. Otherwise the first
        notification that observes zero resolves the wait. Each waiter
        unsubscribes itself, including when cancelled.
        """
        if not self._beacons:
            log.info("No beacons to wait for")
            return

        log.info("Waiting for beacons to die", beacons_count=len(self._beacons))

        drained = asyncio.get_running_loop().create_future()

        def check() -> None:
            if self._beacons:
                log.info(
                    "Still waiting for beacons",
                    beacons_count=len(self._beacons),
                    contexts=self.contexts(),
                )
                return
            self._unsubscribe(check)
            if not drained.done():
                log.info("All beacons have died, proceeding with shutdown")
                drained.set_result(None)

        self._subscribe(check)
        try:
            check()
            await drained
        finally:
            self._unsubscribe(check)

    # -----------------------------
    # Helpers
    # -----------------------------
    @asynccontextmanager
    async def beacon(self, context: Optional[BeaconContext] = None) -> AsyncIterator[BeaconHandle]:
        """Hold a beacon for the duration of an ``async with`` block."""
        handle = self.create_beacon(context)
        try:
            yield handle
        finally:
            await handle.die()

    def track(
        self,
        coro: Coroutine[Any, Any, Any],
        context: Optional[BeaconContext] = None,
        *,
        name: Optional[str] = None,
    ) -> asyncio.Task:
        """
        Run a coroutine as a task that holds a beacon until it finishes.

        The beacon dies however the task ends.
        """
        loop = asyncio.get_running_loop()
        task = loop.create_task(coro, name=name)
        handle = self.create_beacon(context)
        task.add_done_callback(lambda _task: self.discard(handle))
        return task

    def summary(self) -> str:
        """Return human-readable summary for logs."""
        return f"Beacons: live={len(self._beacons)}, waiters={len(self._listeners)}"
