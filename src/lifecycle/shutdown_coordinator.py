"""
Shutdown coordinator that orchestrates graceful shutdown.

Sequence (each phase entered once, strictly forward):

    IDLE -> SIGNALED -> GRACE_PERIOD -> DRAINING -> CLEANING_UP -> COMPLETE

SIGNALED marks the lifecycle state as shutting down so probes start failing
at once. GRACE_PERIOD only happens under an orchestrator, to outlast its probe
cache. DRAINING waits for every beacon to die. CLEANING_UP runs the user
callback and then registered shutdown handlers in priority order.
"""

import asyncio
import inspect
import signal
from typing import Any, Awaitable, Callable, List, Optional, Union

from lifecycle.beacon_tracker import BeaconTracker
from lifecycle.errors import ShutdownCallbackError
from lifecycle.lifecycle_state import LifecycleState
from models.config import LifecycleConfig
from models.enums import ShutdownPhase
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.SHUTDOWN)

ShutdownCallback = Callable[[], Union[Awaitable[Any], Any]]


class ShutdownCoordinator:
    """
    Coordinates graceful shutdown of the process.

    A shutdown can be started from a signal handler (trigger(), which
    schedules the sequence as a task) or awaited directly (run()). Only the
    first request starts the sequence; later ones are ignored.

    Example:
        coordinator = ShutdownCoordinator(state, beacons, shutdown_callback=close_db)
        coordinator.register(APIServerShutdownHandler(api_wrapper))

        coordinator.setup_signal_handlers(loop)
        exit_code = await coordinator.wait_for_completion()
    """

    def __init__(
        self,
        state: LifecycleState,
        beacons: BeaconTracker,
        *,
        shutdown_callback: Optional[ShutdownCallback] = None,
        orchestrated: bool = False,
        grace_delay: Optional[float] = None,
        timeout_per_handler: float = 5.0,
    ):
        """
        Initialize shutdown coordinator.

        Args:
            state: Lifecycle flags to mark as shutting down
            beacons: Tracker whose beacons must drain before cleanup
            shutdown_callback: User cleanup hook, sync or async
            orchestrated: Running under Kubernetes; enables the grace delay
            grace_delay: Grace delay in seconds (default: LifecycleConfig defaults, 30 s)
            timeout_per_handler: Timeout for each registered handler (seconds)
        """
        self._state = state
        self._beacons = beacons
        self._shutdown_callback = shutdown_callback
        self._orchestrated = orchestrated
        self._grace_delay = LifecycleConfig().grace_delay_seconds if grace_delay is None else grace_delay
        self._timeout_per_handler = timeout_per_handler

        self._handlers: List = []
        self._phase = ShutdownPhase.IDLE
        self._reason: Optional[str] = None
        self._task: Optional[asyncio.Task] = None
        self._completed = asyncio.Event()
        self._callback_error: Optional[BaseException] = None

    # ----------------------------------------------------------------------
    # STATE
    # ----------------------------------------------------------------------
    @property
    def phase(self) -> ShutdownPhase:
        return self._phase

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    @property
    def is_complete(self) -> bool:
        return self._phase is ShutdownPhase.COMPLETE

    @property
    def error(self) -> Optional[ShutdownCallbackError]:
        """Callback failure of a completed sequence, if any."""
        if self._callback_error is None:
            return None
        return ShutdownCallbackError(self._callback_error)

    @property
    def exit_code(self) -> Optional[int]:
        """0 or 1 once complete, None before."""
        if not self.is_complete:
            return None
        return 1 if self._callback_error is not None else 0

    def _set_phase(self, phase: ShutdownPhase) -> None:
        log.debug(f"Shutdown phase: {self._phase.name} → {phase.name}")
        self._phase = phase

    # ----------------------------------------------------------------------
    # HANDLERS
    # ----------------------------------------------------------------------
    def register(self, handler) -> None:
        """
        Register a shutdown handler.

        Handler must have:
        - shutdown_priority property (int)
        - async shutdown() method

        Args:
            handler: Object implementing IShutdownHandler protocol
        """
        if not hasattr(handler, "shutdown_priority"):
            raise ValueError(f"Handler {handler} missing shutdown_priority property")
        if not hasattr(handler, "shutdown"):
            raise ValueError(f"Handler {handler} missing shutdown() method")

        self._handlers.append(handler)
        log.debug(f"Registered shutdown handler: {handler.__class__.__name__}")

    # ----------------------------------------------------------------------
    # SIGNALS
    # ----------------------------------------------------------------------
    def setup_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        """
        Install OS signal handlers for graceful shutdown.

        Registers SIGINT (Ctrl+C) and SIGTERM. Each delivery calls trigger();
        repeated signals are ignored by the idempotency guard.

        Args:
            loop: Running asyncio event loop
        """
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, lambda s=sig: self.trigger(s.name))

        log.info("Signal handlers installed (SIGINT, SIGTERM)")

    def remove_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(sig)

    # ----------------------------------------------------------------------
    # SEQUENCE
    # ----------------------------------------------------------------------
    def _begin(self, reason: str) -> bool:
        """Leave IDLE and fail probes. False when a shutdown already started."""
        if self._phase is not ShutdownPhase.IDLE:
            log.debug("Shutdown already in progress, ignoring trigger", reason=reason, phase=self._phase.name)
            return False

        self._reason = reason
        self._set_phase(ShutdownPhase.SIGNALED)
        log.info("🛑 Shutdown signal received", reason=reason)
        self._state.mark_shutting_down()
        return True

    def trigger(self, reason: str = "MANUAL") -> Optional[asyncio.Task]:
        """
        Start the shutdown sequence in the background.

        Safe to call from a signal handler. The lifecycle state is marked as
        shutting down before this returns.

        Returns:
            The sequence task, or None when a shutdown was already running
        """
        if not self._begin(reason):
            return None
        self._task = asyncio.get_running_loop().create_task(
            self._continue(), name="ShutdownSequence"
        )
        return self._task

    async def run(self, reason: str = "MANUAL") -> None:
        """
        Run the whole shutdown sequence and wait for it.

        Returns immediately if a shutdown was already started.

        Raises:
            ShutdownCallbackError: The user callback failed. The sequence
                still reached COMPLETE.
        """
        if not self._begin(reason):
            return
        await self._continue()
        if self._callback_error is not None:
            raise ShutdownCallbackError(self._callback_error) from self._callback_error

    async def _continue(self) -> None:
        if self._orchestrated:
            self._set_phase(ShutdownPhase.GRACE_PERIOD)
            log.info(
                "Waiting before shutdown (Kubernetes grace period)",
                delay_ms=int(self._grace_delay * 1000),
            )
            await asyncio.sleep(self._grace_delay)

        self._set_phase(ShutdownPhase.DRAINING)
        log.debug("Draining in-flight work", beacons=self._beacons.summary())
        await self._beacons.wait_for_drain()

        self._set_phase(ShutdownPhase.CLEANING_UP)
        await self._run_callback()
        await self._run_handlers()

        self._set_phase(ShutdownPhase.COMPLETE)
        self._completed.set()
        log.info("✓ Shutdown sequence complete", exit_code=self.exit_code)

    async def _run_callback(self) -> None:
        if self._shutdown_callback is None:
            return

        log.info("Executing custom shutdown handler")
        try:
            result = self._shutdown_callback()
            if inspect.isawaitable(result):
                await result
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._callback_error = e
            log.error(f"❌ Custom shutdown handler failed: {e}", exc_info=True)

    async def _run_handlers(self) -> None:
        """Run registered handlers, highest priority first. Errors are logged."""
        sorted_handlers = sorted(
            self._handlers, key=lambda h: h.shutdown_priority, reverse=True
        )

        for handler in sorted_handlers:
            hlog = log.bind(handler=handler.__class__.__name__)
            try:
                hlog.debug("Shutting down handler", priority=handler.shutdown_priority)
                await asyncio.wait_for(handler.shutdown(), timeout=self._timeout_per_handler)
                hlog.debug("✓ Handler shutdown complete")

            except asyncio.TimeoutError:
                hlog.error("⚠️  Handler shutdown timeout", timeout_s=self._timeout_per_handler)

            except asyncio.CancelledError:
                hlog.debug("Handler shutdown was cancelled")
                raise

            except Exception as e:
                hlog.error(f"❌ Handler shutdown failed: {e}", exc_info=True)

    async def wait_for_completion(self) -> int:
        """
        Wait until the sequence reaches COMPLETE.

        Returns:
            Exit code for the process (0, or 1 if the callback failed)
        """
        await self._completed.wait()
        return self.exit_code
