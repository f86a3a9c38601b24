"""
Circuit breaker implementation for fault tolerance.

Prevents cascading failures by temporarily blocking requests to failing services.
One breaker is shared by every request sent through the same upstream
client, so state transitions are guarded by a lock.
"""

import logging
import threading
import time
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from ..domain.exceptions import CircuitBreakerOpenException
from ..metrics import circuit_breaker_state

logger = logging.getLogger(__name__)


class CircuitState(str, Enum):
    """Circuit breaker states."""

    CLOSED = "closed"  # Normal operation
    OPEN = "open"  # Blocking requests after failures
    HALF_OPEN = "half_open"  # Testing if service recovered


_STATE_GAUGE_VALUES = {
    CircuitState.CLOSED: 0,
    CircuitState.HALF_OPEN: 1,
    CircuitState.OPEN: 2,
}


def _always(_: Any) -> bool:
    return True


def _never(_: Any) -> bool:
    return False


class CircuitBreaker:
    """
    Circuit breaker pattern implementation.

    Protects external service calls from cascading failures:
    - CLOSED: Normal operation, requests pass through
    - OPEN: Too many consecutive failures, block all requests
    - HALF_OPEN: Cooldown elapsed, let a limited number of trial requests through

    A call counts as a failure when it raises an exception accepted by
    ``is_handled_exception`` or returns a value accepted by
    ``is_failure_result``. Other exceptions propagate untouched.
    """

    def __init__(
        self,
        failure_threshold: int = 3,
        recovery_timeout: float = 30,
        half_open_max_calls: int = 1,
        name: str = "default",
        is_handled_exception: Callable[[BaseException], bool] = _always,
        is_failure_result: Callable[[Any], bool] = _never,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize circuit breaker.

        Args:
            failure_threshold: Consecutive failures before opening circuit
            recovery_timeout: Seconds to wait before attempting recovery
            half_open_max_calls: Trial calls admitted at once, and successes
                needed to close again
            name: Circuit breaker name for logging
            is_handled_exception: Predicate selecting exceptions that count as failures
            is_failure_result: Predicate selecting return values that count as failures
            clock: Monotonic time source
        """
        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.half_open_max_calls = half_open_max_calls
        self.is_handled_exception = is_handled_exception
        self.is_failure_result = is_failure_result
        self._clock = clock
        self._lock = threading.Lock()

        self.state = CircuitState.CLOSED
        self.failure_count = 0
        self.success_count = 0
        self.trial_calls = 0
        self.opened_at: Optional[float] = None
        circuit_breaker_state.labels(name=self.name).set(0)

    async def call(self, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
        """
        Await ``func`` through the circuit breaker.

        Raises:
            CircuitBreakerOpenException: If circuit is open
            Exception: Any exception from func execution
        """
        is_trial = self._before_call()

        try:
            try:
                result = await func(*args, **kwargs)
            except Exception as exc:
                if self.is_handled_exception(exc):
                    self._on_failure()
                raise

            if self.is_failure_result(result):
                self._on_failure()
            else:
                self._on_success()
            return result
        finally:
            if is_trial:
                self._release_trial()

    def _before_call(self) -> bool:
        """
        Admit or reject a call.

        Returns:
            True when the call is admitted as a HALF_OPEN trial
        """
        with self._lock:
            if self.state == CircuitState.OPEN and self._should_attempt_recovery():
                logger.info(f"Circuit breaker '{self.name}' entering HALF_OPEN state")
                self._set_state(CircuitState.HALF_OPEN)
                self.success_count = 0

            if self.state == CircuitState.CLOSED:
                return False

            # At most half_open_max_calls trials in flight
            if (
                self.state == CircuitState.HALF_OPEN
                and self.trial_calls < self.half_open_max_calls
            ):
                self.trial_calls += 1
                return True

            retry_after = (
                self._get_retry_after_seconds() if self.state == CircuitState.OPEN else 0
            )
            failure_count = self.failure_count
            state = self.state.value

        logger.warning(f"Circuit breaker '{self.name}' is {state}, retry after {retry_after}s")
        raise CircuitBreakerOpenException(
            service=self.name,
            failure_count=failure_count,
            retry_after=retry_after,
        )

    def _release_trial(self) -> None:
        with self._lock:
            if self.trial_calls > 0:
                self.trial_calls -= 1

    def _on_success(self) -> None:
        with self._lock:
            self.failure_count = 0

            if self.state == CircuitState.HALF_OPEN:
                self.success_count += 1
                if self.success_count >= self.half_open_max_calls:
                    logger.info(f"Circuit breaker '{self.name}' closing after recovery")
                    self._set_state(CircuitState.CLOSED)
                    self.opened_at = None

    def _on_failure(self) -> None:
        with self._lock:
            self.failure_count += 1

            if self.state == CircuitState.HALF_OPEN:
                # Failed during recovery - back to OPEN
                self._set_state(CircuitState.OPEN)
                self.opened_at = self._clock()
                reopened = True
            elif self.state == CircuitState.CLOSED and self.failure_count >= self.failure_threshold:
                self._set_state(CircuitState.OPEN)
                self.opened_at = self._clock()
                reopened = True
            else:
                reopened = False
            failure_count = self.failure_count

        logger.warning(
            f"Circuit breaker '{self.name}' failure "
            f"({failure_count}/{self.failure_threshold})"
        )
        if reopened:
            logger.error(f"Circuit breaker '{self.name}' OPEN after {failure_count} failures")

    def _set_state(self, state: CircuitState) -> None:
        self.state = state
        circuit_breaker_state.labels(name=self.name).set(_STATE_GAUGE_VALUES[state])

    def _should_attempt_recovery(self) -> bool:
        """Check if enough time has passed to attempt recovery."""
        if self.opened_at is None:
            return False
        return self._clock() - self.opened_at >= self.recovery_timeout

    def _get_retry_after_seconds(self) -> int:
        """Calculate remaining time until recovery attempt."""
        if self.opened_at is None:
            return int(self.recovery_timeout)
        elapsed = self._clock() - self.opened_at
        return max(0, int(self.recovery_timeout - elapsed))

    def reset(self) -> None:
        """Manually reset circuit breaker to CLOSED state."""
        logger.info(f"Circuit breaker '{self.name}' manually reset")
        with self._lock:
            self._set_state(CircuitState.CLOSED)
            self.failure_count = 0
            self.success_count = 0
            self.trial_calls = 0
            self.opened_at = None

    def get_status(self) -> dict:
        """Get current circuit breaker status."""
        with self._lock:
            return {
                "name": self.name,
                "state": self.state.value,
                "failure_count": self.failure_count,
                "failure_threshold": self.failure_threshold,
                "retry_after_seconds": (
                    self._get_retry_after_seconds() if self.state == CircuitState.OPEN else None
                ),
            }
