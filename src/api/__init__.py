"""
Lifecycle API Layer

HTTP surface consumed by the orchestrator's probes.

Structure:
- routes/  : Probe and status endpoints
- schemas/ : Pydantic response schemas
"""

from api.main import create_app

__all__ = ["create_app"]
