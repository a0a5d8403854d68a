"""
API Dependencies - lifecycle access for FastAPI endpoints

create_app() stores the LifecycleServer on app.state; endpoints receive it
through Depends(get_lifecycle).

Example:
    @router.get("/ready")
    async def ready(lifecycle=Depends(get_lifecycle)):
        return lifecycle.probe(ProbeKind.READY)
"""

from fastapi import HTTPException, Request, status


async def get_lifecycle(request: Request):
    """
    FastAPI dependency for accessing the lifecycle server.

    Raises:
        HTTPException: 503 Service Unavailable if no lifecycle is attached
    """
    lifecycle = getattr(request.app.state, "lifecycle", None)
    if lifecycle is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Lifecycle server not initialized."
        )
    return lifecycle
