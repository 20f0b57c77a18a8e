"""HTTP diagnostics surface for the dispatcher.

Read-only status endpoints plus the two operator resets (rotation cursor and
health registry).  Mount ``build_dispatch_router`` into an existing FastAPI
app, or use ``create_app`` for a standalone diagnostics service.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, FastAPI, Request, Response
from fastapi.responses import ORJSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from service_dispatch.config import DispatchSettings
from service_dispatch.dispatcher import ServiceDispatcher
from service_dispatch.exceptions import (
    DispatchError,
    DuplicateEndpointError,
    EndpointNotFoundError,
)

logger = structlog.get_logger(__name__)


def build_dispatch_router(dispatcher: ServiceDispatcher) -> APIRouter:
    router = APIRouter(prefix="/dispatch", tags=["Dispatch"])

    @router.get("/status")
    async def dispatch_status() -> dict[str, Any]:
        """Rotation cursor and per-endpoint health for every configured endpoint."""
        statuses = dispatcher.status()
        return {
            "rotation_cursor": dispatcher.rotation_cursor,
            "usable": len(dispatcher.enabled_endpoints()),
            "endpoints": [s.to_dict() for s in statuses],
        }

    @router.get("/endpoints/{endpoint_id}")
    async def endpoint_status(endpoint_id: str) -> dict[str, Any]:
        for status in dispatcher.status():
            if status.endpoint_id == endpoint_id:
                return status.to_dict()
        raise EndpointNotFoundError(endpoint_id)

    @router.post("/rotation/reset")
    async def reset_rotation() -> dict[str, Any]:
        """Operator: restart round-robin from the first endpoint."""
        dispatcher.reset_rotation()
        return {"status": "reset", "rotation_cursor": dispatcher.rotation_cursor}

    @router.post("/health/reset")
    async def reset_health() -> dict[str, str]:
        """Operator: forget all counters and lift every cooldown."""
        dispatcher.reset_health()
        return {"status": "reset"}

    return router


def register_exception_handlers(app: FastAPI) -> None:
    """Map dispatch errors to HTTP responses."""

    @app.exception_handler(EndpointNotFoundError)
    async def handle_not_found(
        request: Request, exc: EndpointNotFoundError
    ) -> ORJSONResponse:
        return ORJSONResponse(
            status_code=404,
            content={"code": exc.code, "message": exc.message},
        )

    @app.exception_handler(DuplicateEndpointError)
    async def handle_duplicate(
        request: Request, exc: DuplicateEndpointError
    ) -> ORJSONResponse:
        return ORJSONResponse(
            status_code=409,
            content={"code": exc.code, "message": exc.message},
        )

    @app.exception_handler(DispatchError)
    async def handle_dispatch(request: Request, exc: DispatchError) -> ORJSONResponse:
        return ORJSONResponse(
            status_code=400,
            content={"code": exc.code, "message": exc.message},
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> ORJSONResponse:
        logger.exception("unhandled_exception", error=str(exc))
        return ORJSONResponse(
            status_code=500,
            content={
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
            },
        )


def create_app(
    dispatcher: ServiceDispatcher, settings: DispatchSettings | None = None
) -> FastAPI:
    settings = settings or dispatcher.settings
    app = FastAPI(
        title="service-dispatch",
        default_response_class=ORJSONResponse,
    )
    app.include_router(build_dispatch_router(dispatcher))
    register_exception_handlers(app)

    if settings.metrics_enabled:

        @app.get("/metrics")
        async def prometheus_metrics() -> Response:
            return Response(
                content=generate_latest(),
                media_type=CONTENT_TYPE_LATEST,
            )

    return app
