"""Stateless analysis endpoints: score explicit inputs, answer questions."""

from __future__ import annotations

from fastapi import APIRouter

from flowsentry import engine
from flowsentry.analysis.timing import TimingAggregator
from flowsentry.api.schemas import AnalyzeBody, AskBody
from flowsentry.models import AnalysisResult
from flowsentry.query import answer_question

router = APIRouter(tags=["analyze"])


def _run(body: AnalyzeBody) -> AnalysisResult:
    aggregator = TimingAggregator(body.project_id)
    for t in body.transitions:
        aggregator.record_transition(t.issue_id, t.from_state, t.to_state, t.timestamp)
    return engine.analyze_project(body.project_id, body.workflow, body.rules, aggregator)


@router.post("/analyze")
def analyze(body: AnalyzeBody):
    return _run(body).to_dict()


@router.post("/ask")
def ask(body: AskBody):
    return answer_question(body.question, _run(body))
