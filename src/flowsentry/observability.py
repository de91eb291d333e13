"""Observability: structured JSON logging, Prometheus-style metrics, HTTP middleware."""

from __future__ import annotations

import json
import logging
import os
import threading
import time
from collections import defaultdict
from typing import Any

from fastapi import FastAPI, Request, Response

_HTTP_ERROR_THRESHOLD = 500
_MS_PER_SECOND = 1000

_EXTRA_FIELDS = (
    "trace_id", "project_id", "issue_id", "method", "path", "status_code", "duration_ms",
)


# ---------------------------------------------------------------------------
# Structured JSON logging
# ---------------------------------------------------------------------------

class JsonFormatter(logging.Formatter):
    """Emit log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        for key in _EXTRA_FIELDS:
            val = getattr(record, key, None)
            if val is not None:
                entry[key] = val
        return json.dumps(entry, default=str)


def setup_logging(level: str | None = None) -> None:
    """Configure the root logger with JSON output.

    *level* defaults to ``FLOWSENTRY_LOG_LEVEL`` (``INFO``).
    """
    level = level or os.environ.get("FLOWSENTRY_LOG_LEVEL", "INFO")
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


# ---------------------------------------------------------------------------
# Prometheus-compatible metrics
# ---------------------------------------------------------------------------

_metrics_lock = threading.Lock()
_request_count: dict[tuple[str, str, str], int] = defaultdict(int)
_request_latency_sum: dict[tuple[str, str], float] = defaultdict(float)
_request_latency_count: dict[tuple[str, str], int] = defaultdict(int)
_error_count: dict[tuple[str, str], int] = defaultdict(int)
_analyses: dict[str, int] = defaultdict(int)  # outcome -> count
_transitions_recorded = 0


def record_request(method: str, path: str, status: int, duration: float) -> None:
    with _metrics_lock:
        _request_count[(method, path, str(status))] += 1
        _request_latency_sum[(method, path)] += duration
        _request_latency_count[(method, path)] += 1
        if status >= _HTTP_ERROR_THRESHOLD:
            _error_count[(method, path)] += 1


def record_analysis(outcome: str) -> None:
    with _metrics_lock:
        _analyses[outcome] += 1


def record_transition() -> None:
    global _transitions_recorded
    with _metrics_lock:
        _transitions_recorded += 1


def reset_metrics() -> None:
    global _transitions_recorded
    with _metrics_lock:
        for d in (_request_count, _request_latency_sum, _request_latency_count, _error_count, _analyses):
            d.clear()
        _transitions_recorded = 0


def generate_metrics() -> str:
    """Render metrics in Prometheus text exposition format."""
    lines: list[str] = []
    with _metrics_lock:
        lines.append("# HELP flowsentry_http_requests_total Total HTTP requests by method, path, status.")
        lines.append("# TYPE flowsentry_http_requests_total counter")
        for (method, path, status), count in sorted(_request_count.items()):
            lines.append(f'flowsentry_http_requests_total{{method="{method}",path="{path}",status="{status}"}} {count}')

        lines.append("# HELP flowsentry_http_request_duration_seconds Total request duration by method and path.")
        lines.append("# TYPE flowsentry_http_request_duration_seconds summary")
        for (method, path), total in sorted(_request_latency_sum.items()):
            cnt = _request_latency_count[(method, path)]
            lines.append(f'flowsentry_http_request_duration_seconds_sum{{method="{method}",path="{path}"}} {total:.6f}')
            lines.append(f'flowsentry_http_request_duration_seconds_count{{method="{method}",path="{path}"}} {cnt}')

        lines.append("# HELP flowsentry_http_errors_total Total 5xx errors.")
        lines.append("# TYPE flowsentry_http_errors_total counter")
        for (method, path), count in sorted(_error_count.items()):
            lines.append(f'flowsentry_http_errors_total{{method="{method}",path="{path}"}} {count}')

        lines.append("# HELP flowsentry_analyses_total Pipeline runs by outcome.")
        lines.append("# TYPE flowsentry_analyses_total counter")
        for outcome, count in sorted(_analyses.items()):
            lines.append(f'flowsentry_analyses_total{{outcome="{outcome}"}} {count}')

        lines.append("# HELP flowsentry_transitions_recorded_total Status transitions fed to timing aggregates.")
        lines.append("# TYPE flowsentry_transitions_recorded_total counter")
        lines.append(f"flowsentry_transitions_recorded_total {_transitions_recorded}")

    return "\n".join(lines) + "\n"


# ---------------------------------------------------------------------------
# FastAPI middleware
# ---------------------------------------------------------------------------

def add_observability_middleware(app: FastAPI) -> None:
    """Add request logging and metrics collection middleware."""

    @app.middleware("http")
    async def observe_request(request: Request, call_next) -> Response:
        start = time.time()
        response: Response = await call_next(request)
        duration = time.time() - start

        path = request.url.path
        method = request.method
        status = response.status_code
        record_request(method, path, status, duration)

        logging.getLogger("flowsentry.access").info(
            "%s %s %d %.0fms",
            method, path, status, duration * _MS_PER_SECOND,
            extra={
                "method": method,
                "path": path,
                "status_code": status,
                "duration_ms": round(duration * _MS_PER_SECOND, 1),
                "trace_id": request.headers.get("x-trace-id", ""),
            },
        )
        return response
