"""Per-state dwell-time aggregation and bottleneck detection.

A ``TimingAggregator`` owns the running totals for one project scope.  Each
recorded transition credits the elapsed time to the state the issue was
leaving, then moves the issue's pointer to the new state.  Aggregates grow
for the life of the instance; ``export_state`` / ``from_state`` let a
caller persist and restore them.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Any

from flowsentry.defaults import BOTTLENECK_RATIO, MS_PER_SECOND
from flowsentry.errors import InsufficientData, InvalidTransitionSequence
from flowsentry.models import IssuePointer, StateTiming, TimingAnalysis, TimingSample

log = logging.getLogger("flowsentry.analysis.timing")


def parse_instant(value: Any) -> datetime:
    """Parse an ISO-8601 string, datetime, or epoch milliseconds as UTC-aware.

    Naive values are taken to be UTC.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            dt = datetime.fromtimestamp(value / MS_PER_SECOND, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as e:
            raise InvalidTransitionSequence(f"Timestamp out of range: {value!r}") from e
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError as e:
            raise InvalidTransitionSequence(f"Unparseable timestamp: {value!r}") from e
    else:
        raise InvalidTransitionSequence(f"Unparseable timestamp: {value!r}")
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


class TimingAggregator:
    """Running dwell-time aggregates for a single project scope.

    ``record_transition`` is atomic per call: the two maps are updated
    under one lock and nothing is mutated when validation fails.
    """

    def __init__(self, scope: str = "") -> None:
        self.scope = scope
        self._states: dict[str, StateTiming] = {}
        self._issues: dict[str, IssuePointer] = {}
        self._lock = threading.Lock()

    # -- ingestion ---------------------------------------------------------

    def record_transition(
        self,
        issue_id: str,
        from_state: str,
        to_state: str,
        timestamp: Any,
    ) -> float | None:
        """Record one observed transition.

        Returns the seconds credited to the issue's previous state, or
        ``None`` for the issue's first observed transition.
        """
        if not issue_id or not from_state or not to_state:
            raise InvalidTransitionSequence("issue_id, from_state and to_state are required")
        when = parse_instant(timestamp)

        with self._lock:
            previous = self._issues.get(issue_id)
            elapsed: float | None = None
            if previous is not None:
                elapsed = (when - previous.timestamp).total_seconds()
                if elapsed < 0:
                    raise InvalidTransitionSequence(
                        f"Timestamp for issue {issue_id} precedes its previous transition"
                    )
                bucket = self._states.setdefault(previous.state, StateTiming())
                bucket.total_seconds += elapsed
                bucket.sample_count += 1
            self._issues[issue_id] = IssuePointer(state=to_state, timestamp=when)

        log.debug("Issue %s %s -> %s (credited %s s)", issue_id, from_state, to_state, elapsed)
        return elapsed

    def record_sample(self, sample: TimingSample) -> float | None:
        return self.record_transition(
            sample.issue_id, sample.from_state, sample.to_state, sample.timestamp,
        )

    # -- queries -----------------------------------------------------------

    def state_averages(self) -> dict[str, float]:
        with self._lock:
            return {
                state: t.average for state, t in self._states.items() if t.sample_count > 0
            }

    def compute_bottlenecks(self, scope_key: str) -> TimingAnalysis:
        """Flag states whose average dwell exceeds 1.5x the mean of averages.

        The baseline is the unweighted mean of per-state averages, not a
        sample-weighted mean.
        """
        if not scope_key:
            raise InsufficientData("scope_key is required")
        averages = self.state_averages()
        if not averages:
            raise InsufficientData(f"No timing samples recorded for {scope_key}")

        global_average = sum(averages.values()) / len(averages)
        bottlenecks = [
            state for state, avg in averages.items()
            if avg > BOTTLENECK_RATIO * global_average
        ]
        return TimingAnalysis(state_averages=averages, bottlenecks=bottlenecks)

    def bottlenecks_or_empty(self, scope_key: str) -> TimingAnalysis:
        """``compute_bottlenecks`` with the empty result substituted for
        ``InsufficientData``.  Every other error propagates."""
        try:
            return self.compute_bottlenecks(scope_key)
        except InsufficientData:
            log.debug("No timing data yet for %s", scope_key)
            return TimingAnalysis.empty()

    # -- persistence -------------------------------------------------------

    def export_state(self) -> dict[str, Any]:
        with self._lock:
            return {
                "scope": self.scope,
                "states": {
                    s: {"total_seconds": t.total_seconds, "sample_count": t.sample_count}
                    for s, t in self._states.items()
                },
                "issues": {
                    i: {"state": p.state, "timestamp": p.timestamp.isoformat()}
                    for i, p in self._issues.items()
                },
            }

    @classmethod
    def from_state(cls, data: dict[str, Any], scope: str | None = None) -> TimingAggregator:
        agg = cls(scope if scope is not None else data.get("scope", ""))
        for state, t in data.get("states", {}).items():
            agg._states[state] = StateTiming(
                total_seconds=float(t["total_seconds"]), sample_count=int(t["sample_count"]),
            )
        for issue, p in data.get("issues", {}).items():
            agg._issues[issue] = IssuePointer(state=p["state"], timestamp=parse_instant(p["timestamp"]))
        return agg

    @property
    def issue_count(self) -> int:
        return len(self._issues)


class TimingRegistry:
    """One ``TimingAggregator`` per project scope; scopes never share state."""

    def __init__(self) -> None:
        self._aggregators: dict[str, TimingAggregator] = {}
        self._lock = threading.Lock()

    def get(self, scope: str) -> TimingAggregator:
        with self._lock:
            agg = self._aggregators.get(scope)
            if agg is None:
                agg = TimingAggregator(scope)
                self._aggregators[scope] = agg
            return agg

    def put(self, scope: str, aggregator: TimingAggregator) -> None:
        with self._lock:
            self._aggregators[scope] = aggregator

    def __contains__(self, scope: object) -> bool:
        with self._lock:
            return scope in self._aggregators

    def scopes(self) -> list[str]:
        with self._lock:
            return list(self._aggregators)

    def clear(self) -> None:
        with self._lock:
            self._aggregators.clear()
