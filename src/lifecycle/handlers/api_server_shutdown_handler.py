from __future__ import annotations
from typing import TYPE_CHECKING

from lifecycle.shutdown_protocol import IShutdownHandler
from utils.logger import get_logger, LogCategory

if TYPE_CHECKING:
    from lifecycle.api_server_wrapper import APIServerWrapper

log = get_logger().for_category(LogCategory.SHUTDOWN)

class APIServerShutdownHandler(IShutdownHandler):
    """
    Shutdown handler for the probe API server (FastAPI + Uvicorn).

    Registered with the lowest priority so that probes keep answering
    SERVER_IS_SHUTTING_DOWN through the grace period, the drain and every
    other handler. Stopping it releases the port.

    Priority: 0 (shutdown last)
    """

    def __init__(self, api_wrapper: "APIServerWrapper"):
        self.api_wrapper = api_wrapper

    @property
    def shutdown_priority(self) -> int:
        return 0

    async def shutdown(self) -> None:
        if not self.api_wrapper.is_running:
            log.debug("API server not running")
            return

        log.info("Stopping API server...")
        await self.api_wrapper.stop()
