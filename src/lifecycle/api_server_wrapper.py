from __future__ import annotations
import asyncio
import contextlib
import uvicorn
from fastapi import FastAPI
from typing import Iterator, Optional

from lifecycle.port_manager import PortManager
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.API)


class _EmbeddedServer(uvicorn.Server):
    """uvicorn.Server that never touches process signal handlers."""

    def install_signal_handlers(self) -> None:
        pass

    @contextlib.contextmanager
    def capture_signals(self) -> Iterator[None]:
        yield


class APIServerWrapper:
    """
    Runs the probe API (uvicorn) inside the application's event loop.

    Uvicorn's own signal handlers are disabled: SIGINT/SIGTERM belong to the
    ShutdownCoordinator, which must keep answering probes while it drains.

    Behaviour:
      - start() picks a port, launches uvicorn.Server.serve() as a background
        task and blocks until stop() is called.
      - stop() unblocks start(), shuts uvicorn down, closes sockets and
        cancels the serve task.
      - Outside production, an occupied port is not fatal: its holder is
        killed in the background and the next free port is used.
    """

    def __init__(
        self,
        app: FastAPI,
        host: str = "0.0.0.0",
        port: int = 9000,
        port_manager: Optional[PortManager] = None,
    ):
        self.app = app
        self.host = host
        self.port = port
        self.port_manager = port_manager or PortManager()
        self._server: Optional[uvicorn.Server] = None
        self._serve_task: Optional[asyncio.Task] = None
        self._stop_event: asyncio.Event = asyncio.Event()

    # ----------------------------------------------------------------------
    # INTERNAL
    # ----------------------------------------------------------------------
    def _create_server(self) -> uvicorn.Server:
        """Create a uvicorn.Server instance with disabled signal handlers."""
        config = uvicorn.Config(
            app=self.app,
            host=self.host,
            port=self.port,
            loop="asyncio",
            log_level="warning",
            access_log=False,
            server_header=False,
        )

        return _EmbeddedServer(config)

    def _resolve_port(self) -> int:
        """Return the port to bind, falling back to the next free one in development."""
        ports = self.port_manager
        if ports.production or not ports.is_port_in_use(self.port, self.host):
            return self.port

        log.warn("Port still in use, finding alternative port...", port=self.port)
        ports.kill_port_process_background(self.port)
        available_port = ports.find_available_port(self.port + 1, self.host)
        log.info("Using alternative port", port=available_port)
        return available_port

    # ----------------------------------------------------------------------
    # PUBLIC API
    # ----------------------------------------------------------------------
    async def start(self, *, wait_started_timeout: float = 5.0) -> None:
        """
        Start uvicorn in the background and wait until stop() is called.

        Schedule start() as a task for a non-blocking start. Returns early if
        uvicorn exits on its own; a serve() failure is re-raised.
        """
        if self._serve_task is not None and not self._serve_task.done():
            raise RuntimeError("API server already started")

        self.port = self._resolve_port()
        self._server = self._create_server()
        self._stop_event.clear()

        serve_task = asyncio.create_task(
            self._server.serve(), name="UvicornServeInternal"
        )
        self._serve_task = serve_task
        stop_requested = asyncio.create_task(self._stop_event.wait(), name="UvicornStopRequested")

        try:
            await self._wait_started(serve_task, wait_started_timeout)
            await asyncio.wait({serve_task, stop_requested}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            log.debug("start() cancelled externally, invoking stop()")
            await self.stop()
            raise
        finally:
            stop_requested.cancel()

        if self._stop_event.is_set():
            log.debug("APIServerWrapper.start() exiting (stop_event set)")
            return

        log.error("API server exited before stop() was called", port=self.port)
        self._server = None
        self._serve_task = None
        if not serve_task.cancelled() and serve_task.exception() is not None:
            raise serve_task.exception()

    async def _wait_started(self, serve_task: asyncio.Task, timeout: float) -> None:
        """Poll until uvicorn reports started. Returns early when serve() ends or stop() is requested."""
        server = self._server
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while loop.time() < deadline:
            if serve_task.done() or self._stop_event.is_set():
                return
            if getattr(server, "started", False):
                log.info(f"🌎 Lifecycle Server listening on http://{self.host}:{self.port}")
                return
            await asyncio.sleep(0.05)
        log.warn("API server did not report started in time", timeout_s=timeout)

    async def stop(self, *, shutdown_timeout: float = 2.0) -> None:
        """
        Stop the API server and release the port.

        Steps:
          1. set stop_event so start() unblocks
          2. server.shutdown() with timeout (force_exit skips lifespan waits)
          3. close sockets and cancel serve task if still running
        """
        self._stop_event.set()

        if self._server is None:
            log.debug("API server stop() called but server was not running")
            return

        server = self._server
        log.info("🌎 Stopping API server...")

        try:
            server.should_exit = True
            server.force_exit = True
            await asyncio.wait_for(server.shutdown(), timeout=shutdown_timeout)
            log.info("🌎 API server shutdown completed")
        except asyncio.TimeoutError:
            log.warn("🌎 API server shutdown timeout; proceeding to force-close sockets")
        except Exception as e:
            log.error(f"Error during API server.shutdown(): {e}", exc_info=True)

        for s in getattr(server, "servers", None) or []:
            try:
                s.close()
            except Exception:
                log.debug("🌎 Exception while closing socket", exc_info=True)

        if self._serve_task and not self._serve_task.done():
            self._serve_task.cancel()
            try:
                await asyncio.wait_for(self._serve_task, timeout=1.0)
            except asyncio.CancelledError:
                log.debug("Uvicorn serve task cancelled cleanly")
            except asyncio.TimeoutError:
                log.debug("Uvicorn serve task did not stop in time")

        self._server = None
        self._serve_task = None

        log.info("🌎 API server stopped and port released", port=self.port)

    # ----------------------------------------------------------------------
    # PROPERTIES
    # ----------------------------------------------------------------------
    @property
    def is_running(self) -> bool:
        """Return whether a uvicorn serve task is active."""
        return self._serve_task is not None and not self._serve_task.done()

    @property
    def task(self) -> Optional[asyncio.Task]:
        return self._serve_task

    @property
    def server(self) -> Optional[uvicorn.Server]:
        return self._server
