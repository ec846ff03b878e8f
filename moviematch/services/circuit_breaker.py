"""
CircuitBreaker - Prevents cascading failures by stopping requests to failing services.

States:
- CLOSED: Normal operation, requests pass through
- OPEN: Service is failing, requests are blocked
- HALF_OPEN: Testing if service has recovered

Transitions:
- CLOSED → OPEN: When failure_threshold consecutive failures are reached
- OPEN → HALF_OPEN: Once next_attempt_time has passed
- HALF_OPEN → CLOSED: After success_threshold successful probes
- HALF_OPEN → OPEN: On any failed probe

One breaker guards one dependency. It is built once at startup and passed
by handle to whoever calls that dependency; each process holds its own
state.
"""

import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Awaitable, Callable, TypeVar

from loguru import logger
from pydantic import BaseModel

from moviematch.metrics import MetricsSink, default_metrics
from moviematch.services.errors import CircuitOpenError
from moviematch.settings import Settings

T = TypeVar("T")


class CircuitState(str, Enum):
    """Circuit breaker states."""

    CLOSED = "CLOSED"  # Normal operation
    OPEN = "OPEN"  # Blocking requests
    HALF_OPEN = "HALF_OPEN"  # Testing recovery


@dataclass
class CircuitBreakerConfig:
    """Configuration for circuit breaker."""

    failure_threshold: int = 5  # Failures before opening
    reset_timeout: timedelta = timedelta(seconds=60)  # Time before half-open
    monitoring_period: timedelta = timedelta(minutes=5)  # Quiet time that clears failures
    success_threshold: int = 2  # Successes needed to close from half-open
    half_open_max_requests: int = 1  # Concurrent probes allowed in half-open

    @classmethod
    def from_settings(cls, settings: Settings) -> "CircuitBreakerConfig":
        return cls(
            failure_threshold=settings.circuit_breaker_failure_threshold,
            reset_timeout=timedelta(milliseconds=settings.circuit_breaker_timeout_ms),
            monitoring_period=timedelta(
                milliseconds=settings.circuit_breaker_monitoring_ms
            ),
            success_threshold=settings.circuit_breaker_success_threshold,
        )


class CircuitSnapshot(BaseModel):
    """Point-in-time view of a breaker's state."""

    state: CircuitState
    failure_count: int
    success_count: int
    last_failure_time: datetime | None = None
    next_attempt_time: datetime | None = None


class CircuitBreaker:
    """
    Circuit breaker implementation for a single service.

    Usage:
        cb = CircuitBreaker("tmdb")

        try:
            result = await cb.execute(lambda: make_request())
        except CircuitOpenError:
            ...  # dependency known-bad, failed fast
    """

    def __init__(
        self,
        service_id: str,
        config: CircuitBreakerConfig | None = None,
        clock: Callable[[], datetime] = datetime.now,
        metrics: MetricsSink | None = None,
    ):
        self.service_id = service_id
        self.config = config or CircuitBreakerConfig()
        self._clock = clock
        self._metrics = metrics or default_metrics

        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._success_count = 0
        self._last_failure_time: datetime | None = None
        self._next_attempt_time: datetime | None = None
        self._half_open_requests = 0

        self._metrics.breaker_state(self.service_id, self._state.value)

    @property
    def state(self) -> CircuitState:
        """Get current state, checking for automatic transitions."""
        self._update_state(self._clock())
        return self._state

    @property
    def failure_count(self) -> int:
        return self._failure_count

    @property
    def success_count(self) -> int:
        return self._success_count

    async def execute(self, operation: Callable[[], Awaitable[T]]) -> T:
        """
        Run operation under the breaker.

        Raises:
            CircuitOpenError: If the circuit is open (operation not attempted)
            Exception: Whatever the operation itself raised
        """
        started = time.perf_counter()
        self._update_state(self._clock())

        if self._state == CircuitState.OPEN:
            self._emit("rejected", started)
            raise self._open_error()

        probing = self._state == CircuitState.HALF_OPEN
        if probing:
            if self._half_open_requests >= self.config.half_open_max_requests:
                self._emit("rejected", started)
                raise self._open_error()
            self._half_open_requests += 1

        try:
            result = await operation()
        except Exception as e:
            self.record_failure()
            self._emit("failure", started)
            logger.warning(
                f"Circuit breaker '{self.service_id}' call failed "
                f"({type(e).__name__}: {e}), state={self._state.value}, "
                f"failures={self._failure_count}"
            )
            raise
        finally:
            if probing:
                self._half_open_requests = max(0, self._half_open_requests - 1)

        self.record_success()
        self._emit("success", started)
        return result

    def record_success(self) -> None:
        """Record a successful request."""
        if self._state == CircuitState.HALF_OPEN:
            self._success_count += 1
            if self._success_count >= self.config.success_threshold:
                self._close()
        elif self._state == CircuitState.CLOSED:
            # Reset failure count on success
            self._failure_count = 0

    def record_failure(self) -> None:
        """Record a failed request."""
        self._last_failure_time = self._clock()

        if self._state == CircuitState.HALF_OPEN:
            # Any failure in half-open reopens the circuit
            self._open()
        elif self._state == CircuitState.CLOSED:
            self._failure_count += 1
            if self._failure_count >= self.config.failure_threshold:
                self._open()

    def force_open(self) -> None:
        """Manually open the circuit for a full reset_timeout."""
        self._open(manual=True)

    def force_close(self) -> None:
        """Manually close the circuit and clear all counters."""
        self.reset()
        logger.info(f"Circuit breaker '{self.service_id}' manually CLOSED")

    def reset(self) -> None:
        """Return to the initial CLOSED state."""
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._success_count = 0
        self._next_attempt_time = None
        self._last_failure_time = None
        self._half_open_requests = 0
        self._metrics.breaker_state(self.service_id, self._state.value)

    def get_time_until_reset(self) -> float | None:
        """Get seconds until circuit transitions to half-open."""
        if self._state != CircuitState.OPEN or not self._next_attempt_time:
            return None

        remaining = (self._next_attempt_time - self._clock()).total_seconds()
        return max(0, remaining)

    def snapshot(self) -> CircuitSnapshot:
        return CircuitSnapshot(
            state=self.state,
            failure_count=self._failure_count,
            success_count=self._success_count,
            last_failure_time=self._last_failure_time,
            next_attempt_time=self._next_attempt_time,
        )

    def get_status(self) -> dict[str, Any]:
        """Get current status as dictionary."""
        return {
            "service_id": self.service_id,
            **self.snapshot().model_dump(mode="json"),
            "time_until_reset": self.get_time_until_reset(),
        }

    def _update_state(self, now: datetime) -> None:
        if self._state == CircuitState.CLOSED:
            # Failures older than the monitoring period no longer count
            if (
                self._failure_count
                and self._last_failure_time
                and now - self._last_failure_time > self.config.monitoring_period
            ):
                logger.debug(
                    f"Circuit breaker '{self.service_id}' failure count expired"
                )
                self._failure_count = 0
        elif self._state == CircuitState.OPEN:
            if self._next_attempt_time and now >= self._next_attempt_time:
                self._state = CircuitState.HALF_OPEN
                self._success_count = 0
                self._half_open_requests = 0
                self._metrics.breaker_state(self.service_id, self._state.value)
                logger.info(
                    f"Circuit breaker '{self.service_id}' transitioned to HALF_OPEN"
                )

    def _open(self, manual: bool = False) -> None:
        """Transition to OPEN state."""
        previous = self._state
        self._state = CircuitState.OPEN
        self._next_attempt_time = self._clock() + self.config.reset_timeout
        self._success_count = 0
        self._half_open_requests = 0
        self._metrics.breaker_state(self.service_id, self._state.value)
        if manual:
            logger.warning(f"Circuit breaker '{self.service_id}' manually OPENED")
        elif previous == CircuitState.HALF_OPEN:
            logger.warning(
                f"Circuit breaker '{self.service_id}' back to OPEN, probe failed"
            )
        else:
            logger.warning(
                f"Circuit breaker '{self.service_id}' OPENED after {self._failure_count} failures"
            )

    def _close(self) -> None:
        """Transition to CLOSED state."""
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._success_count = 0
        self._next_attempt_time = None
        self._half_open_requests = 0
        self._metrics.breaker_state(self.service_id, self._state.value)
        logger.info(f"Circuit breaker '{self.service_id}' CLOSED (recovered)")

    def _open_error(self) -> CircuitOpenError:
        return CircuitOpenError(
            self.service_id,
            self.get_time_until_reset() or 0,
            next_attempt_time=self._next_attempt_time,
        )

    def _emit(self, outcome: str, started: float) -> None:
        self._metrics.breaker_call(
            self.service_id,
            self._state.value,
            outcome,
            time.perf_counter() - started,
        )
