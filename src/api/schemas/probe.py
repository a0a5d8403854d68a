"""
Pydantic schemas for probe and status endpoints.

Probe bodies follow the usual terminus-style shape so existing dashboards
and orchestrator tooling can read them:
- success (200): {"status": "ok", "info": "SERVER_IS_READY"}
- failure (503): {"status": "error", "error": "SERVER_IS_NOT_READY"}
"""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Literal, Optional


class ProbeResponse(BaseModel):
    """Outcome of a health / live / ready check."""
    status: Literal["ok", "error"] = Field(description="ok when the probe passed")
    info: Optional[str] = Field(None, description="Reason code of a passing probe")
    error: Optional[str] = Field(None, description="Reason code of a failing probe")

    class Config:
        json_schema_extra = {
            "example": {
                "status": "error",
                "error": "SERVER_IS_SHUTTING_DOWN"
            }
        }


class LifecycleStatusResponse(BaseModel):
    """Snapshot of lifecycle state for debugging stuck shutdowns."""
    ready: bool = Field(description="Ready flag set by the application")
    shutting_down: bool = Field(description="Shutdown has been signalled")
    phase: str = Field(description="Current shutdown phase")
    beacons: int = Field(description="Live in-flight beacons")
    beacon_contexts: List[Dict[str, Any]] = Field(
        default_factory=list,
        description="Context of each live beacon, oldest first"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "ready": True,
                "shutting_down": True,
                "phase": "DRAINING",
                "beacons": 1,
                "beacon_contexts": [{"job": "export-42"}]
            }
        }
