"""Shared fixtures for flowsentry tests."""

import logging

import pytest

from flowsentry import engine, providers, storage
from flowsentry.adapters.memory_store import MemoryStore
from flowsentry.adapters.sqlite_store import SqliteStore
from flowsentry.observability import reset_metrics
from flowsentry.providers import StaticRuleProvider, StaticWorkflowProvider


# ---------------------------------------------------------------------------
# Auto-use fixtures: cleanup global state between tests
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _reset_globals():
    """Reset store, providers, timing registry and metrics after every test."""
    yield
    storage.close()
    providers.configure(None, None)
    engine.reset_timing()
    reset_metrics()


@pytest.fixture(autouse=True)
def _restore_logging():
    """``setup_logging`` replaces root handlers; put them back."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


# ---------------------------------------------------------------------------
# Stores and providers
# ---------------------------------------------------------------------------

@pytest.fixture
def memory_store():
    store = MemoryStore()
    storage.configure(store)
    return store


@pytest.fixture
def db_path(tmp_path):
    """Fresh SQLite database wired to the storage facade."""
    path = tmp_path / "test_state.db"
    storage.configure(SqliteStore(path))
    return path


@pytest.fixture
def demo_providers():
    wf, rules = StaticWorkflowProvider.demo(), StaticRuleProvider.demo()
    providers.configure(wf, rules)
    return wf, rules


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

def workflow(states, edges, id="WF-1"):
    """Shared test helper: ``workflow(["A", "B"], [("A", "B")])``."""
    return {
        "id": id,
        "states": list(states),
        "transitions": [{"from": a, "to": b} for a, b in edges],
    }


def transition_event(issue_id, from_state, to_state, received_at, project_id="PROJ"):
    return {
        "source": "jira",
        "eventType": "issue_transitioned",
        "receivedAt": received_at,
        "payload": {
            "issue": {"id": issue_id, "fields": {"project": {"id": project_id}}},
            "changelog": {"fromString": from_state, "toString": to_state},
        },
    }


# ---------------------------------------------------------------------------
# Marker registration
# ---------------------------------------------------------------------------

def pytest_configure(config):
    config.addinivalue_line("markers", "integration: marks tests that exercise the full pipeline")
