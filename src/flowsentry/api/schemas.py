"""Pydantic request models for strict input validation."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Analysis
# ---------------------------------------------------------------------------

class TransitionEventBody(BaseModel):
    issue_id: str = Field(..., min_length=1)
    from_state: str = Field(..., min_length=1)
    to_state: str = Field(..., min_length=1)
    timestamp: str | int | float


class AnalyzeBody(BaseModel):
    project_id: str = Field(..., min_length=1, description="Project identifier")
    workflow: dict[str, Any] = Field(..., description="{id, states, transitions: [{from, to}]}")
    rules: list[dict[str, Any]] = Field(default_factory=list)
    transitions: list[TransitionEventBody] = Field(default_factory=list)


class AskBody(AnalyzeBody):
    question: str = Field(..., min_length=1)
