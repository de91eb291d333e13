"""Tests for dwell-time aggregation and bottleneck detection."""

from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone

import pytest

from flowsentry.analysis.timing import TimingAggregator, TimingRegistry, parse_instant
from flowsentry.errors import InsufficientData, InvalidTransitionSequence
from flowsentry.models import TimingSample

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _at(seconds: float) -> str:
    return (T0 + timedelta(seconds=seconds)).isoformat()


def _dwell(agg: TimingAggregator, issue: str, state: str, seconds: float) -> None:
    """Record one issue entering *state* at T0 and leaving it *seconds* later."""
    agg.record_transition(issue, "NEW", state, _at(0))
    agg.record_transition(issue, state, "DONE", _at(seconds))


class TestParseInstant:
    def test_z_suffix(self):
        assert parse_instant("2024-01-01T00:00:00Z") == T0

    def test_offset(self):
        assert parse_instant("2024-01-01T02:00:00+02:00") == T0

    def test_naive_is_utc(self):
        assert parse_instant("2024-01-01T00:00:00") == T0

    def test_epoch_millis(self):
        assert parse_instant(1704067200000) == T0

    def test_datetime_passthrough(self):
        assert parse_instant(T0) is T0

    @pytest.mark.parametrize("value", ["not-a-date", "", None, True, {"ts": 1}])
    def test_rejects(self, value):
        with pytest.raises(InvalidTransitionSequence):
            parse_instant(value)


class TestRecordTransition:
    def test_first_transition_credits_nothing(self):
        agg = TimingAggregator("P")
        assert agg.record_transition("I1", "OPEN", "REVIEW", "2024-01-01T00:00:00Z") is None
        assert agg.state_averages() == {}
        assert agg.issue_count == 1

    def test_credits_previous_state(self):
        agg = TimingAggregator("P")
        agg.record_transition("I1", "OPEN", "REVIEW", "2024-01-01T00:00:00Z")
        elapsed = agg.record_transition("I1", "REVIEW", "DONE", "2024-01-01T02:00:00Z")
        assert elapsed == 7200.0
        assert agg.state_averages() == {"REVIEW": 7200.0}

    def test_averages_across_issues(self):
        agg = TimingAggregator("P")
        _dwell(agg, "I1", "REVIEW", 100)
        _dwell(agg, "I2", "REVIEW", 300)
        assert agg.state_averages() == {"REVIEW": 200.0}

    def test_same_timestamp_is_zero(self):
        agg = TimingAggregator("P")
        agg.record_transition("I1", "A", "B", _at(10))
        assert agg.record_transition("I1", "B", "C", _at(10)) == 0.0

    def test_out_of_order_rejected_without_mutation(self):
        agg = TimingAggregator("P")
        agg.record_transition("I1", "A", "B", _at(100))
        with pytest.raises(InvalidTransitionSequence):
            agg.record_transition("I1", "B", "C", _at(50))
        assert agg.state_averages() == {}
        # Pointer still at B/100
        assert agg.record_transition("I1", "B", "C", _at(160)) == 60.0

    @pytest.mark.parametrize("issue,src,dst", [("", "A", "B"), ("I1", "", "B"), ("I1", "A", None)])
    def test_missing_fields(self, issue, src, dst):
        agg = TimingAggregator("P")
        with pytest.raises(InvalidTransitionSequence):
            agg.record_transition(issue, src, dst, _at(0))
        assert agg.issue_count == 0

    def test_bad_timestamp(self):
        agg = TimingAggregator("P")
        with pytest.raises(InvalidTransitionSequence):
            agg.record_transition("I1", "A", "B", "yesterday")
        assert agg.issue_count == 0

    def test_mixed_timestamp_forms(self):
        agg = TimingAggregator("P")
        agg.record_transition("I1", "A", "B", "2024-01-01T00:00:00")
        agg.record_transition("I1", "B", "C", 1704067200000 + 3_600_000)
        assert agg.state_averages() == {"B": 3600.0}

    def test_record_sample(self):
        agg = TimingAggregator("P")
        agg.record_sample(TimingSample.from_dict(
            {"issue_id": "I1", "from_state": "A", "to_state": "B", "timestamp": _at(0)}
        ))
        assert agg.record_sample(TimingSample("I1", "B", "C", _at(5))) == 5.0

    def test_concurrent_recording(self):
        agg = TimingAggregator("P")

        def worker(n: int) -> None:
            for i in range(50):
                _dwell(agg, f"W{n}-{i}", "X", 10)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert agg.export_state()["states"]["X"]["sample_count"] == 400
        assert agg.state_averages() == {"X": 10.0}


class TestBottlenecks:
    def test_insufficient_data_before_records(self):
        with pytest.raises(InsufficientData):
            TimingAggregator("P").compute_bottlenecks("P")

    def test_empty_scope_key(self):
        agg = TimingAggregator("P")
        _dwell(agg, "I1", "A", 10)
        with pytest.raises(InsufficientData):
            agg.compute_bottlenecks("")

    def test_flags_slow_state(self):
        agg = TimingAggregator("P")
        agg.record_transition("I1", "NEW", "A", _at(0))
        agg.record_transition("I1", "A", "B", _at(100))
        agg.record_transition("I1", "B", "C", _at(200))
        agg.record_transition("I1", "C", "DONE", _at(1200))
        result = agg.compute_bottlenecks("P")
        assert result.state_averages == {"A": 100.0, "B": 100.0, "C": 1000.0}
        assert result.bottlenecks == ["C"]

    def test_single_state_never_bottleneck(self):
        agg = TimingAggregator("P")
        _dwell(agg, "I1", "A", 5000)
        assert agg.compute_bottlenecks("P").bottlenecks == []

    def test_baseline_is_unweighted_mean(self):
        agg = TimingAggregator("P")
        for i in range(9):
            _dwell(agg, f"X{i}", "X", 10)
        _dwell(agg, "Y0", "Y", 20)
        # Mean of averages is 15, so Y (20) stays under 22.5.
        assert agg.compute_bottlenecks("P").bottlenecks == []

    def test_or_empty(self):
        result = TimingAggregator("P").bottlenecks_or_empty("P")
        assert result.state_averages == {}
        assert result.bottlenecks == []


class TestPersistenceAndScopes:
    def test_export_and_restore(self):
        agg = TimingAggregator("P")
        _dwell(agg, "I1", "A", 30)
        agg.record_transition("I2", "NEW", "B", _at(0))

        restored = TimingAggregator.from_state(agg.export_state())
        assert restored.scope == "P"
        assert restored.state_averages() == {"A": 30.0}
        assert restored.record_transition("I2", "B", "C", _at(45)) == 45.0

    def test_instances_independent(self):
        a, b = TimingAggregator("A"), TimingAggregator("B")
        _dwell(a, "I1", "X", 10)
        assert b.state_averages() == {}

    def test_registry_one_aggregator_per_scope(self):
        registry = TimingRegistry()
        assert registry.get("P1") is registry.get("P1")
        assert registry.get("P1") is not registry.get("P2")
        assert sorted(registry.scopes()) == ["P1", "P2"]

    def test_registry_clear(self):
        registry = TimingRegistry()
        _dwell(registry.get("P1"), "I1", "X", 10)
        registry.clear()
        assert registry.get("P1").state_averages() == {}

    def test_registry_put(self):
        registry = TimingRegistry()
        assert "P1" not in registry
        restored = TimingAggregator("P1")
        registry.put("P1", restored)
        assert "P1" in registry
        assert registry.get("P1") is restored
