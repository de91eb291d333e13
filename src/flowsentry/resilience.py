"""Resilience primitives for provider calls: circuit breaker and retry.

The analysis core performs no I/O and never retries.  These wrap the
outbound Jira requests only.
"""

from __future__ import annotations

import functools
import logging
import threading
import time
from typing import Any, Callable, TypeVar

log = logging.getLogger("flowsentry.resilience")

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Circuit Breaker
# ---------------------------------------------------------------------------

class CircuitOpen(Exception):
    """Raised instead of calling through while the breaker is open."""


class CircuitBreaker:
    """Closed → open after *failure_threshold* consecutive failures.

    After *recovery_timeout* seconds the breaker lets calls through again
    (half-open); *success_threshold* consecutive successes close it, one
    failure re-opens it.
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout: float = 30.0,
        success_threshold: int = 1,
        name: str = "default",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.success_threshold = success_threshold
        self.name = name
        self._clock = clock
        self._state = self.CLOSED
        self._failures = 0
        self._successes = 0
        self._opened_at = 0.0
        self._lock = threading.Lock()

    @property
    def state(self) -> str:
        with self._lock:
            if self._state == self.OPEN and self._clock() - self._opened_at >= self.recovery_timeout:
                self._state = self.HALF_OPEN
                self._successes = 0
            return self._state

    def record_success(self) -> None:
        with self._lock:
            self._failures = 0
            if self._state != self.HALF_OPEN:
                return
            self._successes += 1
            if self._successes >= self.success_threshold:
                self._state = self.CLOSED
                log.info("Circuit '%s' closed", self.name)

    def record_failure(self) -> None:
        with self._lock:
            self._failures += 1
            if self._state == self.HALF_OPEN or self._failures >= self.failure_threshold:
                if self._state != self.OPEN:
                    log.warning("Circuit '%s' opened after %d failure(s)", self.name, self._failures)
                self._state = self.OPEN
                self._opened_at = self._clock()

    def call(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        if self.state == self.OPEN:
            raise CircuitOpen(f"Circuit '{self.name}' is open")
        try:
            result = func(*args, **kwargs)
        except Exception:
            self.record_failure()
            raise
        self.record_success()
        return result

    def __call__(self, func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            return self.call(func, *args, **kwargs)
        return wrapper

    def reset(self) -> None:
        with self._lock:
            self._state = self.CLOSED
            self._failures = 0
            self._successes = 0


# ---------------------------------------------------------------------------
# Retry with exponential backoff
# ---------------------------------------------------------------------------

def retry(
    max_attempts: int = 3,
    base_delay: float = 0.5,
    max_delay: float = 10.0,
    backoff_factor: float = 2.0,
    exceptions: tuple[type[BaseException], ...] = (Exception,),
    sleep: Callable[[float], None] = time.sleep,
) -> Callable:
    """Retry the wrapped call on *exceptions* with bounded exponential backoff.

    Exceptions outside *exceptions* propagate on the first attempt.
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            delay = base_delay
            attempt = 1
            while True:
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if attempt >= max_attempts:
                        raise
                    log.warning(
                        "Attempt %d/%d of %s failed: %s (retrying in %.1fs)",
                        attempt, max_attempts, func.__name__, e, delay,
                    )
                    sleep(delay)
                    delay = min(delay * backoff_factor, max_delay)
                    attempt += 1

        return wrapper
    return decorator
