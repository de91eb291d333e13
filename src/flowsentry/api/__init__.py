"""FastAPI application factory for FlowSentry."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from flowsentry import storage
from flowsentry.api.routers import analyze, health, projects, webhooks
from flowsentry.errors import (
    FlowSentryError,
    PresentationError,
    ProviderUnavailable,
    RuleAccessDenied,
    WorkflowNotFound,
)
from flowsentry.observability import add_observability_middleware

log = logging.getLogger("flowsentry.api")


def _status_for(exc: FlowSentryError) -> int:
    if isinstance(exc, WorkflowNotFound):
        return 404
    if isinstance(exc, ProviderUnavailable):
        return 503
    if isinstance(exc, RuleAccessDenied):
        return 403
    if isinstance(exc, PresentationError) and exc.code == "PERMISSION_DENIED":
        return 403
    return 422


def create_app(
    db_path: str | Path = "",
    store_backend: str | None = None,
    webhook_secret: str = "",
) -> FastAPI:
    """Build and return a configured FastAPI application."""
    app = FastAPI(
        title="FlowSentry",
        description="Deterministic multi-signal workflow risk analysis",
        version="0.1.0",
    )

    app.state.webhook_secret = webhook_secret or os.environ.get("FLOWSENTRY_WEBHOOK_SECRET", "")
    storage.init(
        db_path=str(db_path) if db_path else None,
        backend=store_backend or os.environ.get("FLOWSENTRY_STORE_BACKEND"),
    )

    if not app.state.webhook_secret:
        log.warning("FLOWSENTRY_WEBHOOK_SECRET not set: webhook signatures are not verified")

    # ---------------------------------------------------------------
    # Exception handlers: {"error": "..."} bodies
    # ---------------------------------------------------------------

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        if errors:
            first = errors[0]
            loc = ".".join(str(part) for part in first.get("loc", []))
            msg = first.get("msg", "Invalid input")
            detail = f"{loc}: {msg}" if loc else msg
        else:
            detail = "Invalid JSON body"
        return JSONResponse(status_code=400, content={"error": detail})

    @app.exception_handler(FlowSentryError)
    async def domain_exception_handler(request: Request, exc: FlowSentryError):
        return JSONResponse(status_code=_status_for(exc), content=exc.to_dict())

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        log.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": str(exc)})

    add_observability_middleware(app)

    # ---------------------------------------------------------------
    # Routers
    # ---------------------------------------------------------------

    api = APIRouter()
    api.include_router(analyze.router)
    api.include_router(projects.router)
    app.include_router(api, prefix="/v1")

    app.include_router(health.router)
    app.include_router(webhooks.router)

    return app
