"""
Probe endpoints for the orchestrator.

Provides:
- GET /health - ready and not shutting down
- GET /live   - not shutting down
- GET /ready  - ready and not shutting down
- GET /status - lifecycle snapshot (phase, flags, live beacons)
"""

from fastapi import APIRouter, Depends, Response, status

from api.dependencies import get_lifecycle
from api.schemas.probe import LifecycleStatusResponse, ProbeResponse
from lifecycle.probes import ProbeResult
from models.enums import ProbeKind

router = APIRouter(tags=["Probes"])


def _to_response(result: ProbeResult, response: Response) -> ProbeResponse:
    if result.ok:
        return ProbeResponse(status="ok", info=result.reason.value)
    response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return ProbeResponse(status="error", error=result.reason.value)


@router.get("/health", response_model=ProbeResponse, response_model_exclude_none=True)
async def health(response: Response, lifecycle=Depends(get_lifecycle)):
    return _to_response(lifecycle.probe(ProbeKind.HEALTH), response)


@router.get("/live", response_model=ProbeResponse, response_model_exclude_none=True)
async def live(response: Response, lifecycle=Depends(get_lifecycle)):
    return _to_response(lifecycle.probe(ProbeKind.LIVE), response)


@router.get("/ready", response_model=ProbeResponse, response_model_exclude_none=True)
async def ready(response: Response, lifecycle=Depends(get_lifecycle)):
    return _to_response(lifecycle.probe(ProbeKind.READY), response)


@router.get("/status", response_model=LifecycleStatusResponse)
async def lifecycle_status(lifecycle=Depends(get_lifecycle)):
    """Useful for debugging a shutdown that hangs in DRAINING."""
    beacons = lifecycle.get_beacon_tracker()
    return LifecycleStatusResponse(
        ready=lifecycle.get_ready(),
        shutting_down=lifecycle.is_shutting_down(),
        phase=lifecycle.coordinator.phase.name,
        beacons=beacons.count,
        beacon_contexts=beacons.contexts(),
    )
