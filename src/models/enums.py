"""
Enums for the lifecycle state machine, probes and logging
"""

from enum import Enum, auto


class ShutdownPhase(Enum):
    """
    Phases of the shutdown sequence (strictly forward)

    IDLE:         no shutdown requested yet
    SIGNALED:     trigger received, probes start failing
    GRACE_PERIOD: waiting for the orchestrator to stop routing traffic
    DRAINING:     waiting for live beacons to die
    CLEANING_UP:  user callback and shutdown handlers running
    COMPLETE:     process may terminate
    """
    IDLE = auto()
    SIGNALED = auto()
    GRACE_PERIOD = auto()
    DRAINING = auto()
    CLEANING_UP = auto()
    COMPLETE = auto()


class ProbeReason(Enum):
    """Machine-readable probe outcome (value is the wire string)"""
    READY = "SERVER_IS_READY"
    NOT_READY = "SERVER_IS_NOT_READY"
    SHUTTING_DOWN = "SERVER_IS_SHUTTING_DOWN"
    NOT_SHUTTING_DOWN = "SERVER_IS_NOT_SHUTTING_DOWN"


class ProbeKind(Enum):
    """Probe endpoints exposed to the orchestrator"""
    HEALTH = "health"
    LIVE = "live"
    READY = "ready"


class LogLevel(Enum):
    """Log severity levels"""
    DEBUG = auto()
    INFO = auto()
    WARN = auto()
    ERROR = auto()


class LogCategory(Enum):
    """Log categories for grouping related events"""
    CONFIG = auto()      # Configuration loading, env overrides
    SYSTEM = auto()      # Startup, entry point
    LIFECYCLE = auto()   # Ready / shutting-down state changes
    BEACON = auto()      # In-flight work tracking
    SHUTDOWN = auto()    # Shutdown sequence and handlers
    PROBE = auto()       # Health / live / ready checks
    API = auto()         # HTTP server
    PORT = auto()        # Port availability helpers
