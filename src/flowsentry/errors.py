"""Typed errors with stable code strings.

Every error raised by FlowSentry derives from ``FlowSentryError`` and carries
a ``code`` that callers (API, CLI, orchestration) can rely on as data rather
than matching on class identity.
"""

from __future__ import annotations

from typing import Any


class FlowSentryError(Exception):
    """Base class for all domain errors."""

    code = "FLOWSENTRY_ERROR"

    def __init__(self, message: str = "", *, code: str | None = None) -> None:
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__
        if code:
            self.code = code

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message, "code": self.code}


# ---------------------------------------------------------------------------
# Core analysis
# ---------------------------------------------------------------------------

class InvalidGraph(FlowSentryError):
    code = "INVALID_GRAPH"


class InvalidTransitionSequence(FlowSentryError):
    code = "INVALID_TRANSITION_SEQUENCE"


class InsufficientData(FlowSentryError):
    """No timing samples yet. Expected and recoverable."""
    code = "INSUFFICIENT_DATA"


class MissingSignal(FlowSentryError):
    code = "MISSING_SIGNAL"


class ExplanationMismatch(FlowSentryError):
    code = "EXPLANATION_MISMATCH"


class UnsupportedRuleType(FlowSentryError):
    code = "UNSUPPORTED_RULE_TYPE"


# ---------------------------------------------------------------------------
# Ingestion and providers
# ---------------------------------------------------------------------------

class InvalidPayload(FlowSentryError):
    code = "INVALID_PAYLOAD"


class UnsupportedEventType(FlowSentryError):
    code = "UNSUPPORTED_EVENT_TYPE"


class WorkflowNotFound(FlowSentryError):
    code = "WORKFLOW_NOT_FOUND"


class ProviderUnavailable(FlowSentryError):
    """Upstream provider failed or throttled the request."""
    code = "API_RATE_LIMITED"


class RuleAccessDenied(FlowSentryError):
    code = "RULE_ACCESS_DENIED"


# ---------------------------------------------------------------------------
# Storage and presentation
# ---------------------------------------------------------------------------

class StorageError(FlowSentryError):
    code = "DATA_CORRUPTED"


class PresentationError(FlowSentryError):
    """Raised with ``PERMISSION_DENIED`` or ``UI_RENDER_LIMIT``."""
    code = "UI_RENDER_LIMIT"
