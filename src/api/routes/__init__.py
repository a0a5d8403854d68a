from . import probes

__all__ = ["probes"]
