"""
FastAPI Application Factory

Assembles the small HTTP surface the orchestrator talks to:
- GET /                       plain "ok"
- GET /health, /live, /ready  probes backed by the lifecycle state
- GET /status                 lifecycle snapshot

The factory pattern keeps the app testable: tests build an app around their
own LifecycleServer and drive it with TestClient.
"""

from typing import Optional

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from api.routes import probes
from utils.logger import get_logger
from models.enums import LogCategory

log = get_logger().for_category(LogCategory.API)


def create_app(
    lifecycle=None,
    title: str = "Lifecycle Server",
    version: str = "1.0.0",
    docs_enabled: bool = False,
) -> FastAPI:
    """
    Create and configure the probe API.

    Args:
        lifecycle: LifecycleServer backing the probes; endpoints answer 503
            until one is attached (app.state.lifecycle)
        title: API title (shown in docs)
        version: API version
        docs_enabled: Enable /docs and /openapi.json

    Returns:
        Configured FastAPI application ready to run
    """
    app = FastAPI(
        title=title,
        version=version,
        docs_url="/docs" if docs_enabled else None,
        redoc_url=None,
        openapi_url="/openapi.json" if docs_enabled else None
    )
    app.state.lifecycle = lifecycle

    app.include_router(probes.router)

    @app.get("/", include_in_schema=False, response_class=PlainTextResponse)
    async def root():
        return "ok"

    log.debug("Routes registered: /, /health, /live, /ready, /status")

    return app
