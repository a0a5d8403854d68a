"""
Lifecycle subsystem
-------------------

Exports the public API for:
- readiness / liveness state and probes
- in-flight work tracking (beacons)
- graceful shutdown
- the LifecycleServer facade and its default registry

External code should import from:
    from lifecycle import create_lifecycle_server, LifecycleServer
    from lifecycle.handlers import APIServerShutdownHandler
"""

from .beacon_tracker import BeaconTracker, BeaconHandle, Beacon
from .errors import LifecycleError, StartupFailedError, ShutdownCallbackError, NotInitializedError
from .lifecycle_state import LifecycleState
from .probes import ProbeResult, run_probe
from .shutdown_protocol import IShutdownHandler
from .shutdown_coordinator import ShutdownCoordinator
from .registry import LifecycleRegistry, get_default_lifecycle, get_default_beacon_tracker
from .lifecycle_server import LifecycleServer, create_lifecycle_server
from . import handlers

__all__ = [
    "BeaconTracker",
    "BeaconHandle",
    "Beacon",
    "LifecycleError",
    "StartupFailedError",
    "ShutdownCallbackError",
    "NotInitializedError",
    "LifecycleState",
    "ProbeResult",
    "run_probe",
    "IShutdownHandler",
    "ShutdownCoordinator",
    "LifecycleRegistry",
    "get_default_lifecycle",
    "get_default_beacon_tracker",
    "LifecycleServer",
    "create_lifecycle_server",
    "handlers",
]
