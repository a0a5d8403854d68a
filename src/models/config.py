"""
Lifecycle configuration model

Built by ConfigManager from config/lifecycle.yaml plus environment overrides,
or constructed directly by the host application.
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, ClassVar, List, Optional

from models.enums import LogLevel


@dataclass
class LifecycleConfig:
    """
    Options recognised by LifecycleServer.

    readiness_period_seconds and readiness_failure_threshold mirror the
    orchestrator's readiness probe settings; their product is the grace window
    the shutdown sequence waits before draining.
    """
    host: str = "0.0.0.0"
    port: int = 9000
    readiness_period_seconds: float = 10
    readiness_failure_threshold: int = 3
    orchestrated: bool = False
    production: bool = False
    startup_tasks: List[Awaitable[Any]] = field(default_factory=list)
    shutdown_callback: Optional[Callable[[], Awaitable[Any]]] = None
    handler_timeout: float = 5.0
    log_level: LogLevel = LogLevel.INFO
    log_colors: bool = True
    log_enabled: bool = True
    log_pretty: bool = True

    DEFAULT_GRACE_DELAY_SECONDS: ClassVar[float] = 5.0

    @property
    def grace_delay_seconds(self) -> float:
        """Grace window in seconds; a zero product falls back to the 5 s default."""
        delay = self.readiness_period_seconds * self.readiness_failure_threshold
        return delay or self.DEFAULT_GRACE_DELAY_SECONDS
