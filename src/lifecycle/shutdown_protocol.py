"""
Shutdown handler protocol.

Components that need cleanup after in-flight work has drained implement
IShutdownHandler and register with the ShutdownCoordinator. Handlers run in
the CLEANING_UP phase, after the user shutdown callback.
"""

from typing import Protocol


class IShutdownHandler(Protocol):
    """
    Protocol for components that need graceful shutdown.

    Example:
        class QueueShutdownHandler:
            @property
            def shutdown_priority(self) -> int:
                return 50

            async def shutdown(self) -> None:
                await self.queue.close()
    """

    @property
    def shutdown_priority(self) -> int:
        """
        Higher priority shuts down earlier.
        """
        ...

    async def shutdown(self) -> None:
        """
        Called during coordinated shutdown.
        """
        ...
