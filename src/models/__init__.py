"""
Models package - Data models for the lifecycle coordinator
"""

from .enums import ShutdownPhase, ProbeReason, ProbeKind, LogLevel, LogCategory
from .config import LifecycleConfig

__all__ = [
    'ShutdownPhase',
    'ProbeReason',
    'ProbeKind',
    'LogLevel',
    'LogCategory',
    'LifecycleConfig',
]
