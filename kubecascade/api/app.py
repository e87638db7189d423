"""FastAPI application factory for kubecascade.

Usage::

    from kubecascade.api.app import create_app

    app = create_app(workflow=workflow, config=config)

Both arguments are optional. Without a workflow the inspector works only
on caller-supplied candidate snapshots.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app

from kubecascade.api.routes import router
from kubecascade.api.schemas import ErrorResponse

_log = structlog.get_logger(component="api.app")

_API_PREFIX = "/api/v1"


def create_app(workflow: Any = None, config: Any = None) -> FastAPI:
    """Create and configure the kubecascade FastAPI application.

    Args:
        workflow: Optional DeletionWorkflow used to list candidates live.
        config:   Optional KubeCascadeConfig for cluster_id, depth and force policy.
    """
    from kubecascade import __version__

    cluster_id: str = ""
    if config is not None and hasattr(config, "cluster_id"):
        cluster_id = config.cluster_id or ""

    app = FastAPI(
        title="kubecascade",
        summary="Kubernetes deletion pre-flight API",
        version=__version__,
        description=(
            "Reports which resources depend on a deletion target, which ones the "
            "garbage collector will cascade to, and whether the deletion should be blocked."
        ),
        docs_url=f"{_API_PREFIX}/docs",
        redoc_url=f"{_API_PREFIX}/redoc",
        openapi_url=f"{_API_PREFIX}/openapi.json",
    )

    app.state.workflow = workflow
    app.state.config = config
    app.state.cluster_id = cluster_id

    app.include_router(router, prefix=_API_PREFIX)
    app.mount("/metrics", make_asgi_app())

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        _request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        errors = exc.errors()
        detail = "Invalid request body."
        if errors:
            locs = errors[0].get("loc", ())
            field = ".".join(str(loc) for loc in locs[1:]) if len(locs) > 1 else ""
            msg = str(errors[0].get("msg", ""))
            detail = f"{field}: {msg}" if field else msg
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(error="INVALID_REQUEST", detail=detail).model_dump(),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Catch-all for unhandled exceptions. Stack traces are never exposed."""
        _log.error(
            "unhandled_exception",
            path=str(request.url.path),
            method=request.method,
            error=str(exc),
        )
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="INTERNAL_ERROR",
                detail="An unexpected error occurred.",
            ).model_dump(),
        )

    return app
