"""
Default lifecycle registry.

The first lifecycle server registered becomes the process default, so that
library code can reach the shared beacon tracker without threading the server
through every call. Querying before anything is registered raises
NotInitializedError instead of silently creating a detached instance.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from lifecycle.errors import NotInitializedError
from utils.logger import get_logger, LogCategory

if TYPE_CHECKING:
    from lifecycle.beacon_tracker import BeaconTracker
    from lifecycle.lifecycle_server import LifecycleServer

log = get_logger().for_category(LogCategory.LIFECYCLE)


class LifecycleRegistry:
    """Holds the default LifecycleServer. First registration wins."""

    _default: Optional["LifecycleServer"] = None

    @classmethod
    def register(cls, lifecycle: "LifecycleServer") -> bool:
        """
        Offer a lifecycle server as the default.

        Returns:
            True if it became the default, False if one was already set
        """
        if cls._default is not None:
            return False
        cls._default = lifecycle
        log.debug("Default lifecycle server registered")
        return True

    @classmethod
    def default(cls) -> "LifecycleServer":
        if cls._default is None:
            raise NotInitializedError()
        return cls._default

    @classmethod
    def is_initialized(cls) -> bool:
        return cls._default is not None

    @classmethod
    def reset(cls) -> None:
        """Forget the default (tests, embedded re-initialisation)."""
        cls._default = None


def get_default_lifecycle() -> "LifecycleServer":
    return LifecycleRegistry.default()


def get_default_beacon_tracker() -> "BeaconTracker":
    return LifecycleRegistry.default().get_beacon_tracker()
