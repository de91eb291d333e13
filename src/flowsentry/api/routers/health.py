"""Health check and metrics endpoints (no auth required)."""

from __future__ import annotations

from fastapi import APIRouter, Response
from fastapi.responses import JSONResponse

from flowsentry import storage
from flowsentry.models import now_iso
from flowsentry.observability import generate_metrics

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    return {"status": "ok", "timestamp": now_iso()}


@router.get("/health/ready")
def health_ready():
    """Readiness probe: the snapshot store answers a query."""
    try:
        storage.keys()
        return {"status": "ok", "timestamp": now_iso()}
    except Exception as e:
        return JSONResponse(
            status_code=503,
            content={"status": "unavailable", "error": str(e), "timestamp": now_iso()},
        )


@router.get("/health/live")
def health_live():
    return {"status": "ok"}


@router.get("/metrics")
def metrics():
    """Prometheus-compatible metrics endpoint."""
    return Response(content=generate_metrics(), media_type="text/plain; charset=utf-8")
