"""Read-only project views over stored snapshots."""

from __future__ import annotations

from fastapi import APIRouter

from flowsentry import engine
from flowsentry.presentation import SnapshotInsightSource, get_dashboard_data, report_from_snapshot

router = APIRouter(tags=["projects"])


@router.get("/projects/{project_id}/snapshot")
def project_snapshot(project_id: str):
    return engine.get_project_snapshot(project_id)


@router.get("/projects/{project_id}/dashboard")
def project_dashboard(project_id: str):
    return get_dashboard_data(project_id, SnapshotInsightSource()).to_dict()


@router.get("/projects/{project_id}/report")
def project_report(project_id: str):
    return report_from_snapshot(engine.get_project_snapshot(project_id)).to_dict()


@router.get("/issues/{issue_key}/snapshot")
def issue_snapshot(issue_key: str):
    return engine.get_risk_snapshot(issue_key)
