"""
Lifecycle facade.

LifecycleServer composes the lifecycle state, the beacon tracker and the
shutdown coordinator behind the operations the host application uses, and
wires them to the probe API.

Example:
    lifecycle = create_lifecycle_server(LifecycleConfig(
        startup_tasks=[connect_db()],
        shutdown_callback=close_db,
    ))

    async def handle_job(job):
        async with lifecycle.get_beacon_tracker().beacon({"job": job.id}):
            await job.run()

    await lifecycle.set_ready(True)
    sys.exit(await lifecycle.run())
"""

from __future__ import annotations

import asyncio
from typing import Optional

from fastapi import FastAPI

from lifecycle.api_server_wrapper import APIServerWrapper
from lifecycle.beacon_tracker import BeaconTracker
from lifecycle.handlers import APIServerShutdownHandler
from lifecycle.lifecycle_state import LifecycleState
from lifecycle.port_manager import PortManager
from lifecycle.probes import ProbeResult, run_probe
from lifecycle.registry import LifecycleRegistry
from lifecycle.shutdown_coordinator import ShutdownCoordinator
from models.config import LifecycleConfig
from models.enums import ProbeKind, ShutdownPhase
from utils.logger import get_logger, configure_logger, LogCategory

log = get_logger().for_category(LogCategory.LIFECYCLE)


class LifecycleServer:
    """
    Public lifecycle surface for the host application and the probe API.

    Only this class (through LifecycleState and BeaconTracker) mutates the
    ready / shutting-down flags and the live beacon collection.
    """

    def __init__(self, config: Optional[LifecycleConfig] = None):
        self.config = config or LifecycleConfig()
        self._state = LifecycleState(self.config.startup_tasks)
        self._beacons = BeaconTracker()
        self._coordinator = ShutdownCoordinator(
            self._state,
            self._beacons,
            shutdown_callback=self.config.shutdown_callback,
            orchestrated=self.config.orchestrated,
            grace_delay=self.config.grace_delay_seconds,
            timeout_per_handler=self.config.handler_timeout,
        )
        self.app: Optional[FastAPI] = None
        self.api_wrapper: Optional[APIServerWrapper] = None

    # ----------------------------------------------------------------------
    # STATE
    # ----------------------------------------------------------------------
    def get_beacon_tracker(self) -> BeaconTracker:
        return self._beacons

    @property
    def coordinator(self) -> ShutdownCoordinator:
        return self._coordinator

    async def set_ready(self, value: bool) -> None:
        """Set readiness; True waits for the configured startup tasks."""
        await self._state.set_ready(value)

    def get_ready(self) -> bool:
        return self._state.get_ready()

    def is_shutting_down(self) -> bool:
        return self._state.is_shutting_down()

    # ----------------------------------------------------------------------
    # PROBES
    # ----------------------------------------------------------------------
    def probe(self, kind: ProbeKind) -> ProbeResult:
        return run_probe(kind, self._state)

    def health(self) -> ProbeResult:
        return self.probe(ProbeKind.HEALTH)

    def live(self) -> ProbeResult:
        return self.probe(ProbeKind.LIVE)

    def ready(self) -> ProbeResult:
        return self.probe(ProbeKind.READY)

    # ----------------------------------------------------------------------
    # SHUTDOWN
    # ----------------------------------------------------------------------
    def trigger_shutdown(self, reason: str = "MANUAL") -> Optional[asyncio.Task]:
        """Start the shutdown sequence in the background (idempotent)."""
        return self._coordinator.trigger(reason)

    async def shutdown(self, reason: str = "MANUAL") -> None:
        """Run the shutdown sequence and wait for it (idempotent)."""
        await self._coordinator.run(reason)

    # ----------------------------------------------------------------------
    # HTTP
    # ----------------------------------------------------------------------
    def init(self) -> FastAPI:
        """
        Build the probe API and register its shutdown handler.

        Returns:
            The FastAPI app (also available as self.app)
        """
        from api.main import create_app

        self.app = create_app(self)
        self.api_wrapper = APIServerWrapper(
            self.app,
            host=self.config.host,
            port=self.config.port,
            port_manager=PortManager(production=self.config.production),
        )
        self._coordinator.register(APIServerShutdownHandler(self.api_wrapper))
        return self.app

    async def run(self) -> int:
        """
        Serve probes until the shutdown sequence completes.

        Installs SIGINT/SIGTERM handlers. If the API server dies before any
        shutdown was requested, a shutdown is triggered.

        Returns:
            Process exit code (0, or 1 if the shutdown callback failed)
        """
        if self.api_wrapper is None:
            self.init()

        loop = asyncio.get_running_loop()
        self._coordinator.setup_signal_handlers(loop)

        server_task = asyncio.create_task(self.api_wrapper.start(), name="LifecycleAPIServer")
        completion = asyncio.create_task(self._coordinator.wait_for_completion(), name="ShutdownCompletion")

        try:
            done, _ = await asyncio.wait(
                {server_task, completion}, return_when=asyncio.FIRST_COMPLETED
            )
            if completion not in done and self._coordinator.phase is ShutdownPhase.IDLE:
                log.error("❌ API server stopped unexpectedly, shutting down")
                self._coordinator.trigger("API_SERVER_FAILURE")
            exit_code = await completion
        finally:
            if not completion.done():
                completion.cancel()
            self._coordinator.remove_signal_handlers(loop)
            await self.api_wrapper.stop()
            results = await asyncio.gather(server_task, return_exceptions=True)
            for result in results:
                if isinstance(result, Exception):
                    log.error("API server task failed", error=str(result), error_type=type(result).__name__)

        error = self._coordinator.error
        if error is not None:
            log.error("Shutdown finished with errors", error=str(error))
        log.info("Process may now exit", exit_code=exit_code)
        return exit_code


def create_lifecycle_server(config: Optional[LifecycleConfig] = None) -> LifecycleServer:
    """
    Build and initialise a LifecycleServer.

    Applies the config's logger settings, builds the probe API and offers the
    server to LifecycleRegistry (the first one created becomes the default).
    """
    config = config or LifecycleConfig()
    configure_logger(
        config.log_level,
        use_colors=config.log_colors,
        enabled=config.log_enabled,
        pretty=config.log_pretty,
    )

    lifecycle = LifecycleServer(config)
    lifecycle.init()
    LifecycleRegistry.register(lifecycle)
    return lifecycle
